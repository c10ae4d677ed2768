import pytest

from portal.domain.models import ApplicationStatus, StatusEntry
from portal.services.status import effective_department_status, effective_overall_status

A, R, P = ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, ApplicationStatus.PENDING


def test_department_status_default_pending(record_factory):
    record = record_factory(departments=["dev"])
    assert effective_department_status(record, "dev") == P


def test_department_status_normalizes_argument(record_factory):
    record = record_factory(departments=["dev"], statuses={"dev": "approved"})
    assert effective_department_status(record, "development") == A


def test_approved_beats_rejected(record_factory):
    record = record_factory(departments=["ai-ml", "dev"], statuses={"ai-ml": "approved", "dev": "rejected"})
    assert effective_overall_status(record) == A


@pytest.mark.parametrize("statuses, expected", [
    ({}, P),
    ({"dev": "pending"}, P),
    ({"dev": "rejected"}, R),
    ({"dev": "rejected", "design": "pending"}, R),
    ({"dev": "pending", "design": "approved"}, A),
    ({"dev": "rejected", "design": "approved"}, A),
])
def test_overall_precedence(record_factory, statuses, expected):
    record = record_factory(departments=list(statuses), statuses=statuses)
    assert effective_overall_status(record) == expected


def test_scope_collapses_to_that_department(record_factory):
    record = record_factory(departments=["ai-ml", "dev"], statuses={"ai-ml": "approved", "dev": "rejected"})
    assert effective_overall_status(record, "dev") == R
    assert effective_overall_status(record, "aiMl") == A
    assert effective_overall_status(record, "design") == P


def test_legacy_top_level_status_is_ignored(record_factory):
    record = record_factory(departments=["dev"], status="approved")
    assert effective_overall_status(record) == P


def test_garbage_status_value_is_pending(record_factory):
    record = record_factory(departments=["dev"], statuses={"dev": StatusEntry(status="maybe")})
    assert effective_department_status(record, "dev") == P
    assert effective_overall_status(record) == P
