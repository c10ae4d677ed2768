# portal/infrastructure/db/queries/statistics.py

from typing import Iterable, List, Tuple

import pandas as pd
from sqlalchemy import func, desc
from sqlalchemy.orm import Session

from portal.infrastructure.db.models import (
    ApplicantModel,
    DepartmentAnswersModel,
    DepartmentStatusModel,
)
from portal.services.aggregation import DepartmentStats


def total_applicants(
        session: Session
) -> int:
    """
    Number of applicant rows.
    """
    q = session.query(func.count()).select_from(ApplicantModel)
    return q.scalar() or 0


def total_submitted(
        session: Session
) -> int:
    """
    Applicants that finished the final submission.
    """
    q = (
        session.query(func.count())
        .select_from(ApplicantModel)
        .filter(ApplicantModel.application_submitted.is_(True))
    )
    return q.scalar() or 0


def saved_forms_by_department(
        session: Session
) -> List[Tuple[str, int]]:
    """
    How many forms were saved per stored department key, most first.
    Keys are as stored, not normalized.
    """
    q = (
        session.query(
            DepartmentAnswersModel.department_code,
            func.count().label("cnt")
        )
        .group_by(DepartmentAnswersModel.department_code)
        .order_by(desc("cnt"))
    )
    return q.all()


def reviews_by_department(
        session: Session
) -> List[Tuple[str, str, int]]:
    """
    Raw review rows: (department_code, status, count).
    Applicants without a row are not here; they are pending by definition.
    """
    q = (
        session.query(
            DepartmentStatusModel.department_code,
            DepartmentStatusModel.status,
            func.count().label("cnt")
        )
        .group_by(DepartmentStatusModel.department_code, DepartmentStatusModel.status)
        .order_by(DepartmentStatusModel.department_code, DepartmentStatusModel.status)
    )
    return q.all()


def department_stats_frame(rows: Iterable[DepartmentStats]) -> "pd.DataFrame":
    """
    DataFrame:
        department | name | total | submitted | not_submitted | pending | approved | rejected
    """
    records = [
        {"department": r.department, "name": r.name, **r.stats.as_dict()}
        for r in rows
    ]
    columns = ["department", "name", "total", "submitted", "not_submitted",
               "pending", "approved", "rejected"]
    return pd.DataFrame(records, columns=columns)
