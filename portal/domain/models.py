from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from portal.domain.departments import DEFAULT_REGISTRY, DepartmentCode, DepartmentRegistry


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AdminRole(str, Enum):
    CORE_TEAM = "core_team"
    DEPT_LEAD = "dept_lead"


@dataclass
class ApplicantProfile:
    """
    Descriptive fields only; the engines never look inside except for
    search and name sorting.
    """
    name: str = ""
    email: str = ""
    reg_no: str = ""  # university registration number
    phone: str = ""


@dataclass
class StatusEntry:
    """
    Review result of one department for one applicant.
    A write always replaces the whole entry.
    """
    status: ApplicationStatus = ApplicationStatus.PENDING
    feedback: Optional[str] = None
    updated_at: Optional[datetime.datetime] = None
    reviewed_by: Optional[str] = None  # admin email / id


# answers of one department form: arbitrary keys, plus "dynamicFields"
AnswerBundle = Dict[str, Any]


@dataclass
class ApplicantRecord:
    """
    Applicant with everything the portal knows about their application.

    Keys of department_answers / department_statuses and the entries of
    selected_departments may still be legacy aliases when the record comes
    straight from storage; always read them through get_answers / get_status.
    """
    id: str
    profile: ApplicantProfile = field(default_factory=ApplicantProfile)
    selected_departments: List[str] = field(default_factory=list)
    department_answers: Dict[str, AnswerBundle] = field(default_factory=dict)
    department_statuses: Dict[str, StatusEntry] = field(default_factory=dict)
    application_submitted: bool = False
    submitted_at: Optional[datetime.datetime] = None
    created_at: Optional[datetime.datetime] = None
    status: str = ApplicationStatus.PENDING.value  # legacy top-level field, display only


@dataclass(frozen=True)
class AdminScope:
    """
    Who is looking at the admin views.
    Core team sees everything, a department lead only their department.
    """
    role: AdminRole
    department: Optional[DepartmentCode] = None

    @classmethod
    def core_team(cls) -> "AdminScope":
        return cls(role=AdminRole.CORE_TEAM)

    @classmethod
    def lead_of(cls, raw_dept: str, registry: DepartmentRegistry = DEFAULT_REGISTRY) -> "AdminScope":
        return cls(role=AdminRole.DEPT_LEAD, department=registry.normalize(raw_dept))

    @property
    def is_core_team(self) -> bool:
        return self.role == AdminRole.CORE_TEAM

    @property
    def scope_dept(self) -> Optional[DepartmentCode]:
        return None if self.is_core_team else self.department

    def can_review(self, raw_dept: str, registry: DepartmentRegistry = DEFAULT_REGISTRY) -> bool:
        if self.is_core_team:
            return True
        return self.department is not None and registry.normalize(raw_dept) == self.department


# ———————————————————— accessors ————————————————————————————————————————


def _find_by_department(mapping: Dict[str, Any], raw_dept: str, registry: DepartmentRegistry):
    code = registry.normalize(raw_dept)
    if code in mapping:
        return mapping[code]
    for key, value in mapping.items():
        if registry.normalize(key) == code:
            return value
    return None


def collapse_by_department(
        mapping: Optional[Dict[str, Any]],
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> Dict[DepartmentCode, Any]:
    """
    Re-keys a per-department mapping by normalized code, one value per
    department. A value stored under the canonical key beats alias keys,
    otherwise the first alias seen is kept.
    """
    collapsed: Dict[DepartmentCode, Any] = {}
    for key, value in (mapping or {}).items():
        code = registry.normalize(key)
        if code in collapsed and key != code:
            continue
        collapsed[code] = value
    return collapsed


def canonical_departments(
        record: ApplicantRecord,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> List[DepartmentCode]:
    """
    Selected departments after normalization, duplicates dropped,
    first occurrence wins.
    """
    seen: List[DepartmentCode] = []
    for raw in record.selected_departments or []:
        code = registry.normalize(raw)
        if code not in seen:
            seen.append(code)
    return seen


def get_answers(
        record: ApplicantRecord,
        raw_dept: str,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> Optional[AnswerBundle]:
    return _find_by_department(record.department_answers or {}, raw_dept, registry)


def get_status(
        record: ApplicantRecord,
        raw_dept: str,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> StatusEntry:
    entry = _find_by_department(record.department_statuses or {}, raw_dept, registry)
    return entry if entry is not None else StatusEntry()
