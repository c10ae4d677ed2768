#!/usr/bin/env python3
import sys

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from portal.application.use_cases.load_dashboard import LoadDashboardUseCase
from portal.config.config import settings
from portal.domain.models import AdminScope
from portal.infrastructure.db.queries.statistics import (
    department_stats_frame,
    reviews_by_department,
    saved_forms_by_department,
    total_applicants,
    total_submitted,
)
from portal.infrastructure.db.repositories.applicant_repository import ApplicantRepository


def main(lead_of: str | None = None) -> None:
    engine = create_engine(settings.database_url, echo=settings.db_echo, future=True)
    Session = sessionmaker(bind=engine, future=True)
    session = Session()

    try:
        scope = AdminScope.lead_of(lead_of) if lead_of else AdminScope.core_team()
        dashboard = LoadDashboardUseCase(ApplicantRepository(session)).execute(scope)

        print("Scope:", scope.department or "core team")
        for key, value in dashboard.overall.as_dict().items():
            print(f"  {key:>13}: {value}")

        print("\nBy department:")
        print(department_stats_frame(dashboard.departments).to_string(index=False))

        print("\nStored rows:")
        print("  applicants:", total_applicants(session))
        print("  submitted: ", total_submitted(session))
        print("  saved forms:", saved_forms_by_department(session))
        print("  reviews:    ", reviews_by_department(session))
    finally:
        session.close()


if __name__ == "__main__":
    main(*sys.argv[1:2])
