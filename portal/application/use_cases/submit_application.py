from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from portal.config.config import Settings, settings
from portal.config.logger import logger
from portal.domain.departments import DEFAULT_REGISTRY, DepartmentRegistry
from portal.domain.errors import (
    ApplicantNotFoundError, IncompleteApplicationError, StorageError, SubmissionsClosedError,
)
from portal.infrastructure.db.repositories.applicant_repository import ApplicantRepository
from portal.services.progress import is_complete, missing_departments


class SubmitApplicationUseCase:
    """
    Final submission.

      • every selected department needs a saved form
      • refused while the portal is closed or after the deadline
        (unless late submissions are allowed)
      • idempotent: a second call returns the first submitted_at
    """

    def __init__(self, repo: ApplicantRepository,
                 config: Settings = settings,
                 registry: DepartmentRegistry = DEFAULT_REGISTRY,
                 clock: Optional[Callable[[], datetime]] = None):
        self._repo = repo
        self._config = config
        self._registry = registry
        self._clock = clock or (lambda: datetime.now(config.timezone))

    def _check_window(self, now: datetime) -> None:
        if self._config.application_closed:
            raise SubmissionsClosedError("applications are closed")
        deadline = self._config.application_deadline
        if deadline is None or self._config.allow_late_submissions:
            return
        local_day = now.astimezone(self._config.timezone).date() if now.tzinfo else now.date()
        if local_day > deadline:
            raise SubmissionsClosedError(f"deadline {deadline.isoformat()} has passed")

    def execute(self, applicant_id: str) -> datetime:
        try:
            record = self._repo.get_applicant(applicant_id)
            if record is None:
                raise ApplicantNotFoundError(applicant_id)

            if record.application_submitted:
                logger.info("Applicant %s already submitted at %s", applicant_id, record.submitted_at)
                return record.submitted_at

            now = self._clock()
            self._check_window(now)

            if not is_complete(record, self._registry):
                raise IncompleteApplicationError(applicant_id, missing_departments(record, self._registry))

            flipped = self._repo.mark_submitted(applicant_id, now)
            self._repo.commit()
            if not flipped:
                # someone else submitted in between; keep their timestamp
                stored = self._repo.get_applicant(applicant_id)
                return stored.submitted_at if stored else now
        except SQLAlchemyError as db_err:
            logger.exception("Submission of %s failed, rolling back: %s", applicant_id, db_err)
            self._repo.rollback()
            raise StorageError("mark_submitted", db_err) from db_err

        logger.info("✅ Applicant %s submitted the application", applicant_id)
        return now
