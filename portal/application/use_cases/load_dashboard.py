from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from portal.config.logger import logger
from portal.domain.departments import DEFAULT_REGISTRY, DepartmentRegistry
from portal.domain.models import AdminScope
from portal.infrastructure.db.repositories.applicant_repository import ApplicantRepository
from portal.services.aggregation import DashboardStatistics, dashboard_statistics


class LoadDashboardUseCase:
    """
    Admin dashboard numbers for the given admin scope.

    If the applicants cannot be loaded the dashboard is empty (all zeros),
    never a half-computed set of counts.
    """

    def __init__(self, repo: ApplicantRepository, registry: DepartmentRegistry = DEFAULT_REGISTRY):
        self._repo = repo
        self._registry = registry

    def execute(self, scope: AdminScope) -> DashboardStatistics:
        try:
            records = self._repo.get_all_applicants()
        except SQLAlchemyError as db_err:
            logger.exception("Loading applicants for the dashboard failed: %s", db_err)
            return DashboardStatistics.empty()

        logger.debug("Dashboard input: %d applicants", len(records))
        return dashboard_statistics(records, scope, self._registry)
