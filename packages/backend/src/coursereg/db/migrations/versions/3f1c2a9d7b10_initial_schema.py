"""Initial schema: accounts, courses, registrations

Learn: the three unique constraints here are what make duplicate
usernames, course numbers and enrollments impossible even when two
requests pass their pre-checks at the same moment.

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-17 10:12:41.512093
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column(
            'role',
            sa.Enum('TEACHER', 'STUDENT', name='account_role', native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
    )
    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('course_no', sa.String(length=32), nullable=False),
        sa.Column('course_name', sa.String(length=120), nullable=False),
        sa.Column('teacher_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['teacher_id'], ['accounts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('course_no'),
    )
    op.create_index('ix_courses_teacher_id', 'courses', ['teacher_id'])
    op.create_table(
        'registrations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['accounts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id', 'course_id', name='uq_registrations_student_course'),
    )
    op.create_index('ix_registrations_student_id', 'registrations', ['student_id'])
    op.create_index('ix_registrations_course_id', 'registrations', ['course_id'])


def downgrade() -> None:
    op.drop_index('ix_registrations_course_id', table_name='registrations')
    op.drop_index('ix_registrations_student_id', table_name='registrations')
    op.drop_table('registrations')
    op.drop_index('ix_courses_teacher_id', table_name='courses')
    op.drop_table('courses')
    op.drop_table('accounts')
