from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from portal.config.config import Settings, settings
from portal.config.logger import logger
from portal.domain.departments import DEFAULT_REGISTRY, DepartmentRegistry
from portal.domain.errors import StorageError
from portal.domain.models import AdminScope, ApplicantRecord
from portal.infrastructure.db.repositories.applicant_repository import ApplicantRepository
from portal.services.listing import ListingState, Page, list_applications


class ListApplicationsUseCase:
    """
    Admin applications table: one page of filtered and sorted applicants.
    """

    def __init__(self, repo: ApplicantRepository,
                 config: Settings = settings,
                 registry: DepartmentRegistry = DEFAULT_REGISTRY):
        self._repo = repo
        self._config = config
        self._registry = registry

    def execute(self, state: ListingState, scope: AdminScope) -> Page[ApplicantRecord]:
        try:
            records = self._repo.get_all_applicants()
        except SQLAlchemyError as db_err:
            logger.exception("Loading applicants for the listing failed: %s", db_err)
            raise StorageError("load_all_applicants", db_err) from db_err

        page = list_applications(records, state, self._config.page_size, scope, self._registry)
        logger.debug("Listing: %d matches, page %d/%d", page.total_items, page.page, page.total_pages)
        return page
