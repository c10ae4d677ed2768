"""
Turns raw portal documents (user document + application document, camelCase
keys as the web client wrote them) into ApplicantRecord.

Nothing here raises on missing or odd fields: absent strings become "",
absent flags become False, unparsable timestamps become None.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from portal.config.logger import logger
from portal.domain.departments import DEFAULT_REGISTRY, DepartmentRegistry
from portal.domain.models import (
    AnswerBundle, ApplicantProfile, ApplicantRecord, ApplicationStatus, StatusEntry,
    collapse_by_department,
)

# keys of the application document that are not department forms
_APPLICATION_META_KEYS = {"userId", "submittedAt", "updatedAt", "status", "createdAt"}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Accepts datetime, epoch seconds / milliseconds, ISO strings and
    exported Firestore timestamps ({"seconds": ..., "nanoseconds": ...}).
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            return None
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        try:
            return datetime.fromtimestamp(float(seconds) + float(nanos) / 1e9, tz=timezone.utc)
        except (ValueError, OverflowError, OSError, TypeError):
            logger.warning("Unparsable timestamp skipped: %r", value)
            return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # heuristics: milliseconds after ~2001-09
        seconds = value / 1000 if value > 10_000_000_000 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            logger.warning("Timestamp out of range skipped: %r", value)
            return None
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparsable timestamp skipped: %r", value)
            return None
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return None


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _parse_status_entry(raw: Any) -> StatusEntry:
    if isinstance(raw, str):
        raw = {"status": raw}
    if not isinstance(raw, Mapping):
        return StatusEntry()
    try:
        status = ApplicationStatus(raw.get("status") or ApplicationStatus.PENDING.value)
    except ValueError:
        logger.warning("Unknown status %r treated as pending", raw.get("status"))
        status = ApplicationStatus.PENDING
    feedback = raw.get("feedback")
    return StatusEntry(
        status=status,
        feedback=feedback if isinstance(feedback, str) and feedback else None,
        updated_at=parse_timestamp(raw.get("updatedAt") or raw.get("reviewedAt")),
        reviewed_by=raw.get("reviewedBy") if isinstance(raw.get("reviewedBy"), str) else None,
    )


def _collect_answers(
        application_doc: Mapping[str, Any] | None,
        registry: DepartmentRegistry,
) -> Dict[str, AnswerBundle]:
    """
    Every mapping-valued key that normalizes to a known department is a form.
    If two aliases of one department are present, the canonical key wins,
    otherwise the first one seen.
    """
    answers: Dict[str, AnswerBundle] = {}
    for key, value in (application_doc or {}).items():
        if key in _APPLICATION_META_KEYS or not isinstance(value, Mapping):
            continue
        code = registry.normalize(key)
        if not registry.is_valid(code):
            logger.debug("Application key %r is not a department form, skipped", key)
            continue
        if code in answers and key != code:
            continue
        answers[code] = dict(value)
    return answers


def parse_applicant_document(
        user_doc: Mapping[str, Any],
        application_doc: Mapping[str, Any] | None = None,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> ApplicantRecord:
    raw_departments = user_doc.get("departments") or []
    if not isinstance(raw_departments, (list, tuple)):
        raw_departments = []

    statuses_raw = user_doc.get("departmentStatuses") or {}
    statuses = {
        code: _parse_status_entry(value)
        for code, value in collapse_by_department(statuses_raw, registry).items()
    } if isinstance(statuses_raw, Mapping) else {}

    # only an explicit true counts as submitted
    submitted = user_doc.get("applicationSubmitted") is True
    submitted_at = None
    if submitted:
        submitted_at = parse_timestamp(user_doc.get("applicationSubmittedAt"))
        if submitted_at is None and application_doc:
            submitted_at = parse_timestamp(application_doc.get("submittedAt"))

    return ApplicantRecord(
        id=str(user_doc.get("id") or user_doc.get("userId") or ""),
        profile=ApplicantProfile(
            name=_str(user_doc.get("name")),
            email=_str(user_doc.get("email")),
            reg_no=_str(user_doc.get("regNo")),
            phone=_str(user_doc.get("phone")),
        ),
        selected_departments=[str(d) for d in raw_departments if d],
        department_answers=_collect_answers(application_doc, registry),
        department_statuses=statuses,
        application_submitted=submitted,
        submitted_at=submitted_at,
        created_at=parse_timestamp(user_doc.get("createdAt")),
        status=_str(user_doc.get("status")) or ApplicationStatus.PENDING.value,
    )
