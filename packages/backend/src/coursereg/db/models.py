"""SQLAlchemy ORM models: single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations are written against these models.

Key concepts:
- Uniqueness lives in the schema (username, course_no, student+course), so a
  race between two requests that both pass a pre-check still ends in one row
- Ownership (Course.teacher_id) is set at creation and never updated
- Relationships are eager (lazy="joined") because async sessions cannot
  lazy-load, and the ownership gate always needs the owner's username
"""

from datetime import datetime, timezone

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from coursereg.auth.identity import Role


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    """A login identity. Role is fixed at registration."""

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="account_role", native_enum=False, length=16),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


class Course(Base):
    """A course, owned by exactly one teacher."""

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_no: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    course_name: Mapped[str] = mapped_column(String(120), nullable=False)
    teacher_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    teacher: Mapped["Account"] = relationship(lazy="joined")


class Registration(Base):
    """A student's enrollment in a course. At most one per pair."""

    __tablename__ = "registrations"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_registrations_student_course"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id"), nullable=False, index=True
    )
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    student: Mapped["Account"] = relationship(lazy="joined")
    course: Mapped["Course"] = relationship(lazy="joined")
