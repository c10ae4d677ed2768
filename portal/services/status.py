# portal/services/status.py
"""
The only place that turns status entries into a single status.

Headline precedence: approved > rejected > pending. Being accepted by one
department is a success even if another one said no.
"""
from __future__ import annotations

from typing import Optional

from portal.domain.departments import DEFAULT_REGISTRY, DepartmentRegistry
from portal.domain.models import ApplicantRecord, ApplicationStatus, collapse_by_department, get_status


def _coerce(status) -> ApplicationStatus:
    try:
        return ApplicationStatus(status)
    except ValueError:
        return ApplicationStatus.PENDING


def effective_department_status(
        record: ApplicantRecord,
        dept: str,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> ApplicationStatus:
    return _coerce(get_status(record, dept, registry).status)


def effective_overall_status(
        record: ApplicantRecord,
        scope_dept: Optional[str] = None,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> ApplicationStatus:
    if scope_dept is not None:
        return effective_department_status(record, scope_dept, registry)

    # one entry per department, so a stale alias row cannot outvote a newer review
    entries = collapse_by_department(record.department_statuses, registry)
    statuses = {_coerce(entry.status) for entry in entries.values()}
    if ApplicationStatus.APPROVED in statuses:
        return ApplicationStatus.APPROVED
    if ApplicationStatus.REJECTED in statuses:
        return ApplicationStatus.REJECTED
    return ApplicationStatus.PENDING
