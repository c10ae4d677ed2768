# portal/services/listing.py
"""
Admin listing: search, filters, sort and pagination over applicant records.
"""
from __future__ import annotations

import datetime
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Generic, Iterable, List, Optional, Sequence, TypeVar

from portal.domain.departments import DEFAULT_REGISTRY, DepartmentRegistry
from portal.domain.models import AdminScope, ApplicantRecord, ApplicationStatus, canonical_departments
from portal.services.status import effective_overall_status

T = TypeVar("T")

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


class SubmissionFilter(str, Enum):
    ALL = "all"
    SUBMITTED = "submitted"
    NOT_SUBMITTED = "not-submitted"


class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME = "name"


@dataclass(frozen=True)
class ListingQuery:
    search: str = ""
    status: Optional[ApplicationStatus] = None  # None / "all" → any status
    department: Optional[str] = None  # None / "all" → any department
    submission: SubmissionFilter = SubmissionFilter.ALL
    sort: SortKey = SortKey.NEWEST


@dataclass(frozen=True)
class ListingState:
    """
    Filters plus the page the admin is on.
    Any change of a filter or of the sort order sends the admin back to page 1.
    """
    query: ListingQuery = ListingQuery()
    page: int = 1

    def with_filters(self, **changes) -> "ListingState":
        new_query = replace(self.query, **changes)
        if new_query == self.query:
            return self
        return ListingState(query=new_query, page=1)

    def with_page(self, page: int) -> "ListingState":
        return ListingState(query=self.query, page=max(1, int(page)))


@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def _text(value) -> str:
    return value if isinstance(value, str) else ""


def _matches_search(record: ApplicantRecord, needle: str) -> bool:
    profile = record.profile
    haystacks = (
        _text(getattr(profile, "name", None)),
        _text(getattr(profile, "email", None)),
        _text(getattr(profile, "reg_no", None)),
    )
    return any(needle in h.lower() for h in haystacks)


def _timestamp(record: ApplicantRecord) -> float:
    for dt in (record.submitted_at, record.created_at):
        if isinstance(dt, datetime.datetime):
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=datetime.timezone.utc)
            return dt.timestamp()
    return _EPOCH.timestamp()


def filter_records(
        records: Iterable[ApplicantRecord],
        query: ListingQuery,
        scope: Optional[AdminScope] = None,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> List[ApplicantRecord]:
    """
    All filters are ANDed and independent of each other: the status filter
    does not imply submission, that is what the submission filter is for.
    """
    scope_dept = scope.scope_dept if scope is not None else None
    needle = (query.search or "").strip().lower()
    dept = query.department
    if dept is not None and dept != "all":
        dept = registry.normalize(dept)
    else:
        dept = None
    status = query.status
    status = ApplicationStatus(status) if status is not None and status != "all" else None

    result: List[ApplicantRecord] = []
    for record in records:
        submitted = record.application_submitted is True
        departments = None

        if scope_dept is not None:
            departments = canonical_departments(record, registry)
            if scope_dept not in departments:
                continue

        if query.submission == SubmissionFilter.SUBMITTED and not submitted:
            continue
        if query.submission == SubmissionFilter.NOT_SUBMITTED and submitted:
            continue

        if needle and not _matches_search(record, needle):
            continue

        if status is not None:
            if effective_overall_status(record, scope_dept, registry) != status:
                continue

        if dept is not None:
            if departments is None:
                departments = canonical_departments(record, registry)
            if dept not in departments:
                continue

        result.append(record)
    return result


def sort_records(records: Sequence[ApplicantRecord], sort: SortKey) -> List[ApplicantRecord]:
    # sorted() is stable, reverse=True included
    sort = SortKey(sort)
    if sort == SortKey.NAME:
        return sorted(records, key=lambda r: _text(getattr(r.profile, "name", None)).casefold())
    return sorted(records, key=_timestamp, reverse=(sort == SortKey.NEWEST))


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    total_pages = max(1, math.ceil(len(items) / page_size))
    page = min(max(1, page), total_pages)
    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        total_items=len(items),
        total_pages=total_pages,
    )


def list_applications(
        records: Iterable[ApplicantRecord],
        state: ListingState,
        page_size: int,
        scope: Optional[AdminScope] = None,
        registry: DepartmentRegistry = DEFAULT_REGISTRY,
) -> Page[ApplicantRecord]:
    filtered = filter_records(records, state.query, scope, registry)
    ordered = sort_records(filtered, state.query.sort)
    return paginate(ordered, state.page, page_size)
