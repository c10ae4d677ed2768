from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, JSON, Text, Index
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class ApplicantModel(Base):
    __tablename__ = 'applicants'
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, default="")
    email = Column(String, nullable=False, default="")
    reg_no = Column(String, nullable=False, default="")
    phone = Column(String, nullable=False, default="")
    # ordered list of department codes, as the applicant picked them
    selected_departments = Column(JSON, nullable=False, default=list)
    application_submitted = Column(Boolean, nullable=False, default=False)
    submitted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=True)
    status = Column(String, nullable=False, default="pending")

    answers = relationship('DepartmentAnswersModel', back_populates='applicant')
    statuses = relationship('DepartmentStatusModel', back_populates='applicant')


class DepartmentAnswersModel(Base):
    __tablename__ = 'department_answers'
    # composite PK: applicant + department, one row per saved form
    applicant_id = Column(String, ForeignKey('applicants.id'), primary_key=True)
    department_code = Column(String, primary_key=True)
    answers = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, nullable=True)

    applicant = relationship('ApplicantModel', back_populates='answers')


class DepartmentStatusModel(Base):
    __tablename__ = 'department_statuses'
    # composite PK: applicant + department, written independently per department
    applicant_id = Column(String, ForeignKey('applicants.id'), primary_key=True)
    department_code = Column(String, primary_key=True)
    status = Column(String, nullable=False, default="pending")
    feedback = Column(Text, nullable=True)
    updated_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String, nullable=True)

    applicant = relationship('ApplicantModel', back_populates='statuses')

    __table_args__ = (
        Index('ix_department_statuses_dept_status', 'department_code', 'status'),
    )
