"""Shared fixtures: in-memory database, repository, record factory."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portal.domain.models import ApplicantProfile, ApplicantRecord, ApplicationStatus, StatusEntry
from portal.infrastructure.db.models import Base
from portal.infrastructure.db.repositories.applicant_repository import ApplicantRepository

T0 = datetime(2025, 8, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def session():
    """One SQLite in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, future=True)
    s = Session()
    try:
        yield s
    finally:
        s.close()
        engine.dispose()


@pytest.fixture()
def repo(session):
    return ApplicantRepository(session)


def make_record(
        applicant_id: str = "u1",
        name: str = "",
        email: str = "",
        reg_no: str = "",
        departments=(),
        answers=None,
        statuses=None,
        submitted: bool = False,
        submitted_at: datetime | None = None,
        created_at: datetime | None = None,
        status: str = "pending",
) -> ApplicantRecord:
    """Build a record; statuses may be given as plain strings."""
    entries = {}
    for dept, value in (statuses or {}).items():
        entries[dept] = value if isinstance(value, StatusEntry) else StatusEntry(status=ApplicationStatus(value))
    if submitted and submitted_at is None:
        submitted_at = (created_at or T0) + timedelta(hours=1)
    return ApplicantRecord(
        id=applicant_id,
        profile=ApplicantProfile(name=name, email=email, reg_no=reg_no),
        selected_departments=list(departments),
        department_answers=dict(answers or {}),
        department_statuses=entries,
        application_submitted=submitted,
        submitted_at=submitted_at,
        created_at=created_at or T0,
        status=status,
    )


@pytest.fixture()
def record_factory():
    return make_record


class FixedClock:
    """Callable returning a fixed aware datetime."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock():
    return FixedClock()
