# repositories/applicant_repository.py
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Sequence

from sqlalchemy import update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from portal.domain.departments import DEFAULT_REGISTRY, DepartmentCode, DepartmentRegistry
from portal.domain.models import (
    AnswerBundle, ApplicantProfile, ApplicantRecord, ApplicationStatus, StatusEntry,
    collapse_by_department,
)
from portal.infrastructure.db.models import (
    ApplicantModel, DepartmentAnswersModel, DepartmentStatusModel,
)


def _to_db_dt(dt: datetime | None) -> datetime | None:
    """Stored as naive UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _from_db_dt(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


class ApplicantRepository:
    """
    Storage side of the application core.

    Writes are keyed by (applicant_id, department_code): saving one
    department's review or form never rewrites another department's row.
    """

    def __init__(self, session: Session, registry: DepartmentRegistry = DEFAULT_REGISTRY):
        self._session = session
        self._registry = registry

    # ——— MAPPERS ——————————————————————————————————————————————
    @staticmethod
    def _to_applicant_model(record: ApplicantRecord) -> ApplicantModel:
        return ApplicantModel(
            id=record.id,
            name=record.profile.name or "",
            email=record.profile.email or "",
            reg_no=record.profile.reg_no or "",
            phone=record.profile.phone or "",
            selected_departments=list(record.selected_departments),
            application_submitted=bool(record.application_submitted),
            submitted_at=_to_db_dt(record.submitted_at),
            created_at=_to_db_dt(record.created_at),
            status=record.status or ApplicationStatus.PENDING.value,
        )

    @staticmethod
    def _to_status_domain(m: DepartmentStatusModel) -> StatusEntry:
        try:
            status = ApplicationStatus(m.status)
        except ValueError:
            status = ApplicationStatus.PENDING
        return StatusEntry(
            status=status,
            feedback=m.feedback,
            updated_at=_from_db_dt(m.updated_at),
            reviewed_by=m.reviewed_by,
        )

    @classmethod
    def _to_applicant_domain(
            cls,
            m: ApplicantModel,
            answers: Sequence[DepartmentAnswersModel],
            statuses: Sequence[DepartmentStatusModel],
    ) -> ApplicantRecord:
        return ApplicantRecord(
            id=m.id,
            profile=ApplicantProfile(
                name=m.name or "",
                email=m.email or "",
                reg_no=m.reg_no or "",
                phone=m.phone or "",
            ),
            selected_departments=list(m.selected_departments or []),
            department_answers={a.department_code: dict(a.answers or {}) for a in answers},
            department_statuses={s.department_code: cls._to_status_domain(s) for s in statuses},
            application_submitted=bool(m.application_submitted),
            submitted_at=_from_db_dt(m.submitted_at),
            created_at=_from_db_dt(m.created_at),
            status=m.status or ApplicationStatus.PENDING.value,
        )

    # ——— READS ———————————————————————————————————————————————————

    def get_all_applicants(self) -> List[ApplicantRecord]:
        applicants = self._session.query(ApplicantModel).order_by(ApplicantModel.created_at.desc()).all()

        answers: Dict[str, List[DepartmentAnswersModel]] = defaultdict(list)
        for a in self._session.query(DepartmentAnswersModel).all():
            answers[a.applicant_id].append(a)

        statuses: Dict[str, List[DepartmentStatusModel]] = defaultdict(list)
        for s in self._session.query(DepartmentStatusModel).all():
            statuses[s.applicant_id].append(s)

        return [
            self._to_applicant_domain(m, answers.get(m.id, []), statuses.get(m.id, []))
            for m in applicants
        ]

    def get_applicant(self, applicant_id: str) -> ApplicantRecord | None:
        m = self._session.query(ApplicantModel).filter_by(id=applicant_id).one_or_none()
        if m is None:
            return None
        answers = self._session.query(DepartmentAnswersModel).filter_by(applicant_id=applicant_id).all()
        statuses = self._session.query(DepartmentStatusModel).filter_by(applicant_id=applicant_id).all()
        return self._to_applicant_domain(m, answers, statuses)

    # ——— WRITES ——————————————————————————————————————————————————

    def add_applicant(self, record: ApplicantRecord) -> None:
        """
        Insert or replace the applicant row together with its answers and statuses.
        Used by imports; regular edits go through the keyed writes below.
        Department keys are stored normalized, the same keys reviews write to.
        """
        self._session.merge(self._to_applicant_model(record))
        for dept, bundle in collapse_by_department(record.department_answers, self._registry).items():
            self.upsert_department_answers(record.id, dept, bundle)
        for dept, entry in collapse_by_department(record.department_statuses, self._registry).items():
            self.upsert_department_status(record.id, dept, entry)

    def add_applicants_bulk(self, records: Iterable[ApplicantRecord]) -> int:
        n = 0
        for record in records:
            self.add_applicant(record)
            n += 1
        return n

    def write_selected_departments(self, applicant_id: str, departments: Sequence[DepartmentCode]) -> bool:
        result = self._session.execute(
            update(ApplicantModel)
            .where(ApplicantModel.id == applicant_id)
            .values(selected_departments=list(departments))
        )
        return result.rowcount > 0

    def upsert_department_status(self, applicant_id: str, dept: DepartmentCode, entry: StatusEntry) -> None:
        """
        Replace the status entry of exactly one department.
        """
        row = {
            "applicant_id": applicant_id,
            "department_code": dept,
            "status": ApplicationStatus(entry.status).value,
            "feedback": entry.feedback,
            "updated_at": _to_db_dt(entry.updated_at),
            "reviewed_by": entry.reviewed_by,
        }
        insert_stmt = sqlite_insert(DepartmentStatusModel).values(row)
        upsert_stmt = insert_stmt.on_conflict_do_update(
            index_elements=["applicant_id", "department_code"],
            set_={
                "status": insert_stmt.excluded.status,
                "feedback": insert_stmt.excluded.feedback,
                "updated_at": insert_stmt.excluded.updated_at,
                "reviewed_by": insert_stmt.excluded.reviewed_by,
            },
        )
        self._session.execute(upsert_stmt)

    def upsert_department_answers(
            self,
            applicant_id: str,
            dept: DepartmentCode,
            answers: AnswerBundle,
            updated_at: datetime | None = None,
    ) -> None:
        row = {
            "applicant_id": applicant_id,
            "department_code": dept,
            "answers": dict(answers or {}),
            "updated_at": _to_db_dt(updated_at),
        }
        insert_stmt = sqlite_insert(DepartmentAnswersModel).values(row)
        upsert_stmt = insert_stmt.on_conflict_do_update(
            index_elements=["applicant_id", "department_code"],
            set_={
                "answers": insert_stmt.excluded.answers,
                "updated_at": insert_stmt.excluded.updated_at,
            },
        )
        self._session.execute(upsert_stmt)

    def mark_submitted(self, applicant_id: str, submitted_at: datetime) -> bool:
        """
        Flip application_submitted once. A second call changes nothing.
        Returns True only for the call that actually flipped it.
        """
        result = self._session.execute(
            update(ApplicantModel)
            .where(
                ApplicantModel.id == applicant_id,
                ApplicantModel.application_submitted.is_(False),
            )
            .values(
                application_submitted=True,
                submitted_at=_to_db_dt(submitted_at),
                status=ApplicationStatus.PENDING.value,
            )
        )
        return result.rowcount > 0

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()
