from __future__ import annotations

from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError

from portal.config.config import Settings, settings
from portal.config.logger import logger
from portal.domain.departments import DEFAULT_REGISTRY, DepartmentCode, DepartmentRegistry
from portal.domain.errors import (
    ApplicantNotFoundError, ApplicationLockedError, StorageError,
    TooManyDepartmentsError, UnknownDepartmentError,
)
from portal.infrastructure.db.repositories.applicant_repository import ApplicantRepository


class SelectDepartmentsUseCase:
    """
    Applicant picks (or re-picks) their departments.

      • every key is normalized, aliases of one department collapse into one
      • unknown departments and more than settings.max_departments are refused
      • after the final submission the choice is frozen
    """

    def __init__(self, repo: ApplicantRepository,
                 config: Settings = settings,
                 registry: DepartmentRegistry = DEFAULT_REGISTRY):
        self._repo = repo
        self._config = config
        self._registry = registry

    def _canonical(self, raw_departments: Sequence[str]) -> List[DepartmentCode]:
        codes: List[DepartmentCode] = []
        for raw in raw_departments:
            code = self._registry.normalize(raw)
            if not self._registry.is_valid(code):
                raise UnknownDepartmentError(raw)
            if code not in codes:
                codes.append(code)
        if len(codes) > self._config.max_departments:
            raise TooManyDepartmentsError(len(codes), self._config.max_departments)
        return codes

    def execute(self, applicant_id: str, raw_departments: Sequence[str]) -> List[DepartmentCode]:
        codes = self._canonical(raw_departments)
        try:
            record = self._repo.get_applicant(applicant_id)
            if record is None:
                raise ApplicantNotFoundError(applicant_id)
            if record.application_submitted:
                raise ApplicationLockedError(applicant_id)

            self._repo.write_selected_departments(applicant_id, codes)
            self._repo.commit()
        except SQLAlchemyError as db_err:
            logger.exception("Saving departments of %s failed, rolling back: %s", applicant_id, db_err)
            self._repo.rollback()
            raise StorageError("write_selected_departments", db_err) from db_err

        logger.info("Applicant %s selected departments: %s", applicant_id, ", ".join(codes) or "—")
        return codes
