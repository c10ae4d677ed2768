# portal/services/progress.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from portal.domain.departments import DEFAULT_REGISTRY, DepartmentCode, DepartmentRegistry
from portal.domain.models import ApplicantRecord, ApplicationStatus, canonical_departments, get_answers
from portal.services.status import effective_department_status


@dataclass
class ApplicationProgress:
    """
    What the applicant dashboard shows: which forms are done and
    where each department's review stands.
    """
    applicant_id: str
    selected: List[DepartmentCode]
    completed: List[DepartmentCode]
    missing: List[DepartmentCode]
    percent: int
    is_complete: bool
    submitted: bool
    statuses: Dict[DepartmentCode, ApplicationStatus] = field(default_factory=dict)


def completed_departments(
        record: ApplicantRecord,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> List[DepartmentCode]:
    """
    Selected departments whose form was saved at least once.

    An answers entry counts even when every field in it is blank; old
    clients saved empty bundles and those applicants were shown as done.
    """
    return [
        code for code in canonical_departments(record, registry)
        if get_answers(record, code, registry) is not None
    ]


def missing_departments(
        record: ApplicantRecord,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> List[DepartmentCode]:
    done = set(completed_departments(record, registry))
    return [code for code in canonical_departments(record, registry) if code not in done]


def progress_percent(
        record: ApplicantRecord,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> int:
    selected = len(canonical_departments(record, registry))
    if selected == 0:
        return 0
    done = len(completed_departments(record, registry))
    # round half up, in integers
    return (200 * done + selected) // (2 * selected)


def is_complete(
        record: ApplicantRecord,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> bool:
    selected = canonical_departments(record, registry)
    return bool(selected) and len(completed_departments(record, registry)) == len(selected)


def application_progress(
        record: ApplicantRecord,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> ApplicationProgress:
    selected = canonical_departments(record, registry)
    completed = completed_departments(record, registry)
    return ApplicationProgress(
        applicant_id=record.id,
        selected=selected,
        completed=completed,
        missing=[c for c in selected if c not in completed],
        percent=progress_percent(record, registry),
        is_complete=is_complete(record, registry),
        submitted=record.application_submitted is True,
        statuses={c: effective_department_status(record, c, registry) for c in selected},
    )
