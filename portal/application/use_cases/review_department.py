from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from portal.config.config import settings
from portal.config.logger import logger
from portal.domain.departments import DEFAULT_REGISTRY, DepartmentRegistry
from portal.domain.errors import (
    ApplicantNotFoundError, DepartmentNotSelectedError, ReviewNotAllowedError, StorageError,
)
from portal.domain.models import AdminScope, ApplicationStatus, StatusEntry, canonical_departments
from portal.infrastructure.db.repositories.applicant_repository import ApplicantRepository


class ReviewDepartmentUseCase:
    """
    Admin decision for one department of one applicant.

    The new entry replaces the old one completely (status, feedback, time,
    reviewer); other departments' entries stay as they are in storage.
    """

    def __init__(self, repo: ApplicantRepository,
                 registry: DepartmentRegistry = DEFAULT_REGISTRY,
                 clock: Optional[Callable[[], datetime]] = None):
        self._repo = repo
        self._registry = registry
        self._clock = clock or (lambda: datetime.now(settings.timezone))

    def execute(
            self,
            applicant_id: str,
            raw_dept: str,
            status: ApplicationStatus | str,
            scope: AdminScope,
            feedback: str | None = None,
            reviewer: str | None = None,
    ) -> StatusEntry:
        code = self._registry.normalize(raw_dept)
        if not scope.can_review(code, self._registry):
            raise ReviewNotAllowedError(code)

        entry = StatusEntry(
            status=ApplicationStatus(status),
            feedback=(feedback or "").strip() or None,
            updated_at=self._clock(),
            reviewed_by=reviewer,
        )

        try:
            record = self._repo.get_applicant(applicant_id)
            if record is None:
                raise ApplicantNotFoundError(applicant_id)
            if code not in canonical_departments(record, self._registry):
                raise DepartmentNotSelectedError(applicant_id, code)

            self._repo.upsert_department_status(applicant_id, code, entry)
            self._repo.commit()
        except SQLAlchemyError as db_err:
            logger.exception("Review of %s/%s failed, rolling back: %s", applicant_id, code, db_err)
            self._repo.rollback()
            raise StorageError("write_department_status", db_err) from db_err

        logger.info("→ %s: %s set to %s by %s", applicant_id, code, entry.status.value, reviewer or "?")
        return entry
