"""Course service: teachers create and manage their own courses.

Learn: every mutating method starts with the same visible sequence:
require_role → load target (NotFound) → require_owner (NotOwner).
Course numbers are unique; the pre-check gives a clean 409 in the common
case, and catching IntegrityError at commit gives the same 409 when two
requests race past the pre-check together.
"""

from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coursereg.auth.guard import require_owner, require_role
from coursereg.auth.identity import Identity, Role
from coursereg.db.engine import is_unique_violation
from coursereg.db.models import Course, Registration
from coursereg.errors import DuplicateConstraint, NotFound
from coursereg.services.account_service import AccountService

logger = structlog.get_logger()

COURSE_NO_TAKEN = "Course number already exists"


class CourseService:
    """Business logic for courses."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.accounts = AccountService(db)

    # ─── Queries ────────────────────────────────────────

    async def list_courses(self) -> list[Course]:
        result = await self.db.execute(select(Course).order_by(Course.course_no))
        return list(result.scalars().all())

    async def list_my_courses(self, identity: Optional[Identity]) -> list[Course]:
        identity = require_role(identity, Role.TEACHER)
        teacher = await self.accounts.require_account(identity)
        result = await self.db.execute(
            select(Course)
            .where(Course.teacher_id == teacher.id)
            .order_by(Course.course_no)
        )
        return list(result.scalars().all())

    async def get_course(self, course_id: int) -> Course | None:
        return await self.db.get(Course, course_id)

    async def get_course_or_raise(self, course_id: int) -> Course:
        course = await self.get_course(course_id)
        if course is None:
            raise NotFound("Course not found")
        return course

    async def get_owned_course(self, identity: Optional[Identity], course_id: int) -> Course:
        """Role-gate, load, then ownership-gate. Returns the course."""
        identity = require_role(identity, Role.TEACHER)
        course = await self.get_course_or_raise(course_id)
        require_owner(identity, course.teacher.username, resource="course")
        return course

    async def _course_no_taken(self, course_no: str) -> bool:
        result = await self.db.execute(
            select(Course.id).where(Course.course_no == course_no)
        )
        return result.first() is not None

    async def _commit_unique(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if not is_unique_violation(e):
                raise
            raise DuplicateConstraint(COURSE_NO_TAKEN)

    # ─── Mutations ──────────────────────────────────────

    async def create_course(
        self, identity: Optional[Identity], course_no: str, course_name: str
    ) -> Course:
        identity = require_role(identity, Role.TEACHER)
        teacher = await self.accounts.require_account(identity)
        if await self._course_no_taken(course_no):
            raise DuplicateConstraint(COURSE_NO_TAKEN)

        course = Course(course_no=course_no, course_name=course_name, teacher=teacher)
        self.db.add(course)
        await self._commit_unique()

        logger.info("course.created", course_id=course.id, course_no=course_no)
        return course

    async def update_course(
        self,
        identity: Optional[Identity],
        course_id: int,
        course_no: str,
        course_name: str,
    ) -> Course:
        course = await self.get_owned_course(identity, course_id)
        if course.course_no != course_no and await self._course_no_taken(course_no):
            raise DuplicateConstraint(COURSE_NO_TAKEN)

        course.course_no = course_no
        course.course_name = course_name
        await self._commit_unique()

        logger.info("course.updated", course_id=course.id, course_no=course_no)
        return course

    async def delete_course(self, identity: Optional[Identity], course_id: int) -> None:
        course = await self.get_owned_course(identity, course_id)
        await self.db.execute(
            delete(Registration).where(Registration.course_id == course.id)
        )
        await self.db.delete(course)
        await self.db.commit()
        logger.info("course.deleted", course_id=course_id)
