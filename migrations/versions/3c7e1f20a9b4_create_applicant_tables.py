"""create applicant tables

Revision ID: 3c7e1f20a9b4
Revises:
Create Date: 2025-08-20 12:00:00
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3c7e1f20a9b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'applicants',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, server_default=''),
        sa.Column('email', sa.String(), nullable=False, server_default=''),
        sa.Column('reg_no', sa.String(), nullable=False, server_default=''),
        sa.Column('phone', sa.String(), nullable=False, server_default=''),
        sa.Column('selected_departments', sa.JSON(), nullable=False),
        sa.Column('application_submitted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
    )
    op.create_table(
        'department_answers',
        sa.Column('applicant_id', sa.String(), sa.ForeignKey('applicants.id'), primary_key=True),
        sa.Column('department_code', sa.String(), primary_key=True),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'department_statuses',
        sa.Column('applicant_id', sa.String(), sa.ForeignKey('applicants.id'), primary_key=True),
        sa.Column('department_code', sa.String(), primary_key=True),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('reviewed_by', sa.String(), nullable=True),
    )
    op.create_index('ix_department_statuses_dept_status', 'department_statuses', ['department_code', 'status'])


def downgrade() -> None:
    op.drop_index('ix_department_statuses_dept_status', table_name='department_statuses')
    op.drop_table('department_statuses')
    op.drop_table('department_answers')
    op.drop_table('applicants')
