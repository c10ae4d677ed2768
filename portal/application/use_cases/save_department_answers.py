from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from portal.config.config import settings
from portal.config.logger import logger
from portal.domain.departments import DEFAULT_REGISTRY, DepartmentCode, DepartmentRegistry
from portal.domain.errors import (
    ApplicantNotFoundError, ApplicationLockedError, DepartmentNotSelectedError, StorageError,
)
from portal.domain.models import AnswerBundle, canonical_departments
from portal.infrastructure.db.repositories.applicant_repository import ApplicantRepository


class SaveDepartmentAnswersUseCase:
    """
    Stores one department form. Other departments' forms are not touched.
    """

    def __init__(self, repo: ApplicantRepository,
                 registry: DepartmentRegistry = DEFAULT_REGISTRY,
                 clock: Optional[Callable[[], datetime]] = None):
        self._repo = repo
        self._registry = registry
        self._clock = clock or (lambda: datetime.now(settings.timezone))

    def execute(self, applicant_id: str, raw_dept: str, answers: AnswerBundle) -> DepartmentCode:
        code = self._registry.normalize(raw_dept)
        try:
            record = self._repo.get_applicant(applicant_id)
            if record is None:
                raise ApplicantNotFoundError(applicant_id)
            if record.application_submitted:
                raise ApplicationLockedError(applicant_id)
            if code not in canonical_departments(record, self._registry):
                raise DepartmentNotSelectedError(applicant_id, code)

            self._repo.upsert_department_answers(applicant_id, code, answers, updated_at=self._clock())
            self._repo.commit()
        except SQLAlchemyError as db_err:
            logger.exception("Saving %s form of %s failed, rolling back: %s", code, applicant_id, db_err)
            self._repo.rollback()
            raise StorageError("write_department_answers", db_err) from db_err

        logger.info("→ Saved %s form of %s (%d fields)", code, applicant_id, len(answers or {}))
        return code
