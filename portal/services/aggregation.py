# portal/services/aggregation.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from portal.config.config import settings
from portal.config.logger import logger
from portal.domain.departments import DEFAULT_REGISTRY, DepartmentCode, DepartmentRegistry
from portal.domain.errors import StatsInvariantError
from portal.domain.models import AdminScope, ApplicantRecord, ApplicationStatus, canonical_departments
from portal.services.status import effective_department_status, effective_overall_status


@dataclass
class Stats:
    total: int = 0
    submitted: int = 0
    not_submitted: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0

    def count(self, submitted: bool, status: ApplicationStatus) -> None:
        self.total += 1
        if not submitted:
            # unsubmitted applicants never land in a status bucket
            self.not_submitted += 1
            return
        self.submitted += 1
        if status == ApplicationStatus.APPROVED:
            self.approved += 1
        elif status == ApplicationStatus.REJECTED:
            self.rejected += 1
        else:
            self.pending += 1

    def as_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "submitted": self.submitted,
            "not_submitted": self.not_submitted,
            "pending": self.pending,
            "approved": self.approved,
            "rejected": self.rejected,
        }


@dataclass
class DepartmentStats:
    department: DepartmentCode
    name: str
    stats: Stats = field(default_factory=Stats)


@dataclass
class DashboardStatistics:
    """
    Admin dashboard numbers: one headline block and one row per department.
    """
    overall: Stats
    departments: List[DepartmentStats]

    @classmethod
    def empty(cls) -> "DashboardStatistics":
        return cls(overall=Stats(), departments=[])


def check_invariants(stats: Stats, label: str = "overall") -> None:
    """
    submitted + not_submitted == total and pending + approved + rejected == submitted.
    Loud in dev, logged elsewhere.
    """
    problems = []
    if stats.submitted + stats.not_submitted != stats.total:
        problems.append(
            f"submitted({stats.submitted}) + not_submitted({stats.not_submitted}) != total({stats.total})"
        )
    if stats.pending + stats.approved + stats.rejected != stats.submitted:
        problems.append(
            f"pending({stats.pending}) + approved({stats.approved}) + rejected({stats.rejected})"
            f" != submitted({stats.submitted})"
        )
    if not problems:
        return
    message = f"stats invariant broken [{label}]: " + "; ".join(problems)
    if settings.env == "dev":
        raise StatsInvariantError(message)
    logger.error(message)


def _is_submitted(record: ApplicantRecord) -> bool:
    return record.application_submitted is True


def aggregate(
        records: Iterable[ApplicantRecord],
        scope_dept: Optional[str] = None,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> Stats:
    """
    Counts over applicants, each applicant counted once.

    Without a scope every record is in, even those with no departments.
    With a scope only applicants that picked that department are in and
    their status is that department's status.
    """
    scope = registry.normalize(scope_dept) if scope_dept is not None else None
    stats = Stats()
    for record in records:
        if scope is not None and scope not in canonical_departments(record, registry):
            continue
        status = effective_overall_status(record, scope, registry)
        stats.count(_is_submitted(record), status)

    check_invariants(stats, label=scope or "overall")
    return stats


def department_breakdown(
        records: Iterable[ApplicantRecord],
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> Dict[DepartmentCode, DepartmentStats]:
    """
    One row per canonical department (zero rows included), in registry order.
    Codes that are not in the registry are skipped.
    """
    rows: Dict[DepartmentCode, DepartmentStats] = {
        code: DepartmentStats(department=code, name=registry.display_name(code))
        for code in registry.codes
    }
    known = registry.all_codes()
    for record in records:
        submitted = _is_submitted(record)
        # canonical_departments already collapses aliases of the same department
        for code in canonical_departments(record, registry):
            if code not in known:
                continue
            rows[code].stats.count(submitted, effective_department_status(record, code, registry))

    for code, row in rows.items():
        check_invariants(row.stats, label=code)
    return rows


def dashboard_statistics(
        records: Iterable[ApplicantRecord],
        scope: AdminScope,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> DashboardStatistics:
    records = list(records)
    rows = department_breakdown(records, registry)

    if scope.is_core_team:
        # stable sort: equal totals keep registry order
        departments = sorted(rows.values(), key=lambda r: r.stats.total, reverse=True)
        return DashboardStatistics(overall=aggregate(records, None, registry), departments=departments)

    if scope.department is None or scope.department not in rows:
        logger.warning("Department lead scope without a known department: %r", scope.department)
        return DashboardStatistics.empty()

    return DashboardStatistics(
        overall=aggregate(records, scope.department, registry),
        departments=[rows[scope.department]],
    )
