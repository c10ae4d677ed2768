from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from portal.application.use_cases.get_application_progress import GetApplicationProgressUseCase
from portal.application.use_cases.list_applications import ListApplicationsUseCase
from portal.application.use_cases.load_dashboard import LoadDashboardUseCase
from portal.application.use_cases.review_department import ReviewDepartmentUseCase
from portal.application.use_cases.save_department_answers import SaveDepartmentAnswersUseCase
from portal.application.use_cases.select_departments import SelectDepartmentsUseCase
from portal.application.use_cases.submit_application import SubmitApplicationUseCase
from portal.config.config import settings
from portal.domain.errors import (
    ApplicantNotFoundError, ApplicationLockedError, DepartmentNotSelectedError,
    IncompleteApplicationError, ReviewNotAllowedError, StorageError, SubmissionsClosedError,
    TooManyDepartmentsError, UnknownDepartmentError,
)
from portal.domain.models import AdminScope, ApplicationStatus, StatusEntry
from portal.infrastructure.parser.applicant_document_parser import parse_applicant_document
from portal.services.aggregation import Stats, aggregate, department_breakdown
from portal.services.listing import ListingQuery, ListingState
from portal.services.status import effective_overall_status

T0 = datetime(2025, 8, 1, 9, 0, tzinfo=timezone.utc)


class BrokenRepo:
    """Repository whose every call fails like a dropped database connection."""

    def __init__(self):
        self.rolled_back = False

    def _fail(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    get_all_applicants = _fail
    get_applicant = _fail

    def rollback(self):
        self.rolled_back = True


@pytest.fixture()
def stored(repo, record_factory):
    repo.add_applicant(record_factory("u1", name="Asha", departments=[]))
    repo.commit()
    return repo


# ——— department selection —————————————————————————————————————————

def test_select_departments_normalizes_and_dedupes(stored):
    codes = SelectDepartmentsUseCase(stored).execute("u1", ["aiMl", "ai-ml", "Social Media"])
    assert codes == ["ai-ml", "social-media"]
    assert stored.get_applicant("u1").selected_departments == ["ai-ml", "social-media"]


def test_select_departments_limits(stored):
    with pytest.raises(TooManyDepartmentsError):
        SelectDepartmentsUseCase(stored).execute("u1", ["dev", "design", "marketing"])
    with pytest.raises(UnknownDepartmentError):
        SelectDepartmentsUseCase(stored).execute("u1", ["cooking"])
    with pytest.raises(ApplicantNotFoundError):
        SelectDepartmentsUseCase(stored).execute("ghost", ["dev"])


def test_select_departments_limit_comes_from_config(stored):
    config = settings.model_copy(update={"max_departments": 3})
    codes = SelectDepartmentsUseCase(stored, config=config).execute("u1", ["dev", "design", "marketing"])
    assert len(codes) == 3


# ——— the applicant flow ———————————————————————————————————————————

def test_full_applicant_flow(stored, clock):
    SelectDepartmentsUseCase(stored).execute("u1", ["ai-ml", "dev"])
    save = SaveDepartmentAnswersUseCase(stored, clock=clock)
    submit = SubmitApplicationUseCase(stored, clock=clock)

    save.execute("u1", "aiMl", {"whyJoin": "models"})
    progress = GetApplicationProgressUseCase(stored).execute("u1")
    assert progress.percent == 50
    assert progress.missing == ["dev"]

    with pytest.raises(IncompleteApplicationError) as err:
        submit.execute("u1")
    assert err.value.missing == ["dev"]

    save.execute("u1", "development", {"whyJoin": "apps"})
    submitted_at = submit.execute("u1")
    assert submitted_at == clock.now

    # second submission keeps the first timestamp
    clock.now = clock.now + timedelta(days=2)
    assert submit.execute("u1") == T0

    # everything is frozen now
    with pytest.raises(ApplicationLockedError):
        save.execute("u1", "dev", {"whyJoin": "changed"})
    with pytest.raises(ApplicationLockedError):
        SelectDepartmentsUseCase(stored).execute("u1", ["design"])

    progress = GetApplicationProgressUseCase(stored).execute("u1")
    assert progress.is_complete and progress.submitted


def test_submit_without_departments_is_incomplete(stored, clock):
    with pytest.raises(IncompleteApplicationError) as err:
        SubmitApplicationUseCase(stored, clock=clock).execute("u1")
    assert err.value.missing == []


def test_save_for_unselected_department(stored, clock):
    SelectDepartmentsUseCase(stored).execute("u1", ["dev"])
    with pytest.raises(DepartmentNotSelectedError):
        SaveDepartmentAnswersUseCase(stored, clock=clock).execute("u1", "design", {"whyJoin": "x"})


def _ready(stored, clock):
    SelectDepartmentsUseCase(stored).execute("u1", ["dev"])
    SaveDepartmentAnswersUseCase(stored, clock=clock).execute("u1", "dev", {"whyJoin": "x"})


def test_submit_refused_when_closed(stored, clock):
    _ready(stored, clock)
    config = settings.model_copy(update={"application_closed": True})
    with pytest.raises(SubmissionsClosedError):
        SubmitApplicationUseCase(stored, config=config, clock=clock).execute("u1")


def test_submit_after_deadline(stored, clock):
    _ready(stored, clock)
    late = settings.model_copy(update={"application_deadline": date(2025, 7, 31)})
    with pytest.raises(SubmissionsClosedError):
        SubmitApplicationUseCase(stored, config=late, clock=clock).execute("u1")

    allowed = late.model_copy(update={"allow_late_submissions": True})
    assert SubmitApplicationUseCase(stored, config=allowed, clock=clock).execute("u1") == T0


def test_submit_on_deadline_day(stored, clock):
    _ready(stored, clock)
    config = settings.model_copy(update={"application_deadline": date(2025, 8, 1)})
    assert SubmitApplicationUseCase(stored, config=config, clock=clock).execute("u1") == T0


# ——— admin review ——————————————————————————————————————————————————

def test_lead_reviews_own_department_only(stored, clock):
    SelectDepartmentsUseCase(stored).execute("u1", ["ai-ml", "dev"])
    review = ReviewDepartmentUseCase(stored, clock=clock)
    lead = AdminScope.lead_of("ai_ml")

    entry = review.execute("u1", "aiMl", "approved", lead, feedback="  welcome ", reviewer="lead@club")
    assert entry.status == ApplicationStatus.APPROVED
    assert entry.feedback == "welcome"

    with pytest.raises(ReviewNotAllowedError):
        review.execute("u1", "dev", "rejected", lead)

    review.execute("u1", "dev", ApplicationStatus.REJECTED, AdminScope.core_team())

    statuses = stored.get_applicant("u1").department_statuses
    assert statuses["ai-ml"].status == ApplicationStatus.APPROVED
    assert statuses["ai-ml"].reviewed_by == "lead@club"
    assert statuses["dev"].status == ApplicationStatus.REJECTED


def test_review_replaces_imported_legacy_status(repo, clock):
    repo.add_applicant(parse_applicant_document({
        "id": "u1", "departments": ["aiMl"], "applicationSubmitted": True,
        "departmentStatuses": {"aiMl": {"status": "approved"}},
    }))
    repo.commit()

    ReviewDepartmentUseCase(repo, clock=clock).execute("u1", "ai-ml", "rejected", AdminScope.core_team())

    record = repo.get_applicant("u1")
    assert list(record.department_statuses) == ["ai-ml"]
    assert effective_overall_status(record) == ApplicationStatus.REJECTED
    stats = aggregate([record])
    assert (stats.approved, stats.rejected) == (0, 1)
    assert department_breakdown([record])["ai-ml"].stats.rejected == 1


def test_stale_alias_row_does_not_outvote_review(repo, record_factory, clock):
    repo.add_applicant(record_factory("u1", departments=["ai-ml"], submitted=True))
    # row left behind by an older writer that used the camelCase key
    repo.upsert_department_status("u1", "aiMl", StatusEntry(status=ApplicationStatus.APPROVED))
    repo.commit()

    ReviewDepartmentUseCase(repo, clock=clock).execute("u1", "aiMl", "rejected", AdminScope.core_team())

    record = repo.get_applicant("u1")
    assert effective_overall_status(record) == ApplicationStatus.REJECTED
    assert aggregate([record]).rejected == 1


def test_review_of_unselected_department(stored, clock):
    SelectDepartmentsUseCase(stored).execute("u1", ["dev"])
    with pytest.raises(DepartmentNotSelectedError):
        ReviewDepartmentUseCase(stored, clock=clock).execute("u1", "design", "approved", AdminScope.core_team())


def test_review_with_unknown_status_value(stored, clock):
    SelectDepartmentsUseCase(stored).execute("u1", ["dev"])
    with pytest.raises(ValueError):
        ReviewDepartmentUseCase(stored, clock=clock).execute("u1", "dev", "maybe", AdminScope.core_team())


# ——— admin views ——————————————————————————————————————————————————

def test_dashboard_and_listing(repo, record_factory):
    repo.add_applicants_bulk([
        record_factory("a", name="Asha", departments=["dev"], submitted=True, statuses={"dev": "approved"}),
        record_factory("b", name="Ben", departments=["design"], submitted=True),
        record_factory("c", name="Chen", departments=["marketing"]),
    ])
    repo.commit()

    dashboard = LoadDashboardUseCase(repo).execute(AdminScope.core_team())
    assert dashboard.overall == Stats(total=3, submitted=2, not_submitted=1, pending=1, approved=1, rejected=0)

    config = settings.model_copy(update={"page_size": 2})
    state = ListingState(query=ListingQuery(sort="name"))
    page = ListApplicationsUseCase(repo, config=config).execute(state, AdminScope.core_team())
    assert [r.id for r in page.items] == ["a", "b"]
    assert page.total_pages == 2


def test_dashboard_storage_failure_is_empty():
    dashboard = LoadDashboardUseCase(BrokenRepo()).execute(AdminScope.core_team())
    assert dashboard.overall == Stats()
    assert dashboard.departments == []


def test_storage_failures_surface_as_storage_error(clock):
    with pytest.raises(StorageError):
        ListApplicationsUseCase(BrokenRepo()).execute(ListingState(), AdminScope.core_team())
    with pytest.raises(StorageError):
        GetApplicationProgressUseCase(BrokenRepo()).execute("u1")

    broken = BrokenRepo()
    with pytest.raises(StorageError) as err:
        SubmitApplicationUseCase(broken, clock=clock).execute("u1")
    assert err.value.operation == "mark_submitted"
    assert broken.rolled_back
