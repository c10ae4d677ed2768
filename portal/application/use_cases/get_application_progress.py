from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from portal.config.logger import logger
from portal.domain.departments import DEFAULT_REGISTRY, DepartmentRegistry
from portal.domain.errors import ApplicantNotFoundError, StorageError
from portal.infrastructure.db.repositories.applicant_repository import ApplicantRepository
from portal.services.progress import ApplicationProgress, application_progress


class GetApplicationProgressUseCase:
    """
    Applicant dashboard / status page: form completion and per-department review state.
    """

    def __init__(self, repo: ApplicantRepository, registry: DepartmentRegistry = DEFAULT_REGISTRY):
        self._repo = repo
        self._registry = registry

    def execute(self, applicant_id: str) -> ApplicationProgress:
        try:
            record = self._repo.get_applicant(applicant_id)
        except SQLAlchemyError as db_err:
            logger.exception("Loading applicant %s failed: %s", applicant_id, db_err)
            raise StorageError("load_applicant", db_err) from db_err
        if record is None:
            raise ApplicantNotFoundError(applicant_id)
        return application_progress(record, self._registry)
