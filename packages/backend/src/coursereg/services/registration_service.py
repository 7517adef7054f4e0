"""Registration service: students enroll in and drop courses.

Learn: a registration is a unique (student, course) link. enroll() is
idempotency-sensitive: a second enroll for the same pair is rejected with
DuplicateConstraint, never stored twice. The unique constraint in the
schema backs up the pre-check when two enrolls race.

Students only ever see and drop their own links, since every lookup is
scoped by the caller's account. Course rosters are restricted to the
course's own teacher.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coursereg.auth.guard import require_role
from coursereg.auth.identity import Identity, Role
from coursereg.db.engine import is_unique_violation
from coursereg.db.models import Account, Registration
from coursereg.errors import DuplicateConstraint, NotFound
from coursereg.services.account_service import AccountService
from coursereg.services.course_service import CourseService

logger = structlog.get_logger()

ALREADY_REGISTERED = "Already registered"


class RegistrationService:
    """Business logic for enrollments."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.accounts = AccountService(db)
        self.courses = CourseService(db)

    async def _find(self, student: Account, course_id: int) -> Registration | None:
        result = await self.db.execute(
            select(Registration).where(
                Registration.student_id == student.id,
                Registration.course_id == course_id,
            )
        )
        return result.scalars().first()

    async def enroll(self, identity: Optional[Identity], course_id: int) -> Registration:
        identity = require_role(identity, Role.STUDENT)
        student = await self.accounts.require_account(identity)
        course = await self.courses.get_course_or_raise(course_id)
        if await self._find(student, course.id) is not None:
            raise DuplicateConstraint(ALREADY_REGISTERED)

        registration = Registration(student=student, course=course)
        self.db.add(registration)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if is_unique_violation(e):
                raise DuplicateConstraint(ALREADY_REGISTERED)
            # Course deleted by its teacher after we loaded it.
            if await self.courses.get_course(course_id) is None:
                raise NotFound("Course not found")
            raise

        logger.info("registration.created", course_id=course.id)
        return registration

    async def drop(self, identity: Optional[Identity], course_id: int) -> None:
        identity = require_role(identity, Role.STUDENT)
        student = await self.accounts.require_account(identity)
        registration = await self._find(student, course_id)
        if registration is None:
            raise NotFound("Registration not found")

        await self.db.delete(registration)
        await self.db.commit()
        logger.info("registration.dropped", course_id=course_id)

    async def my_registrations(self, identity: Optional[Identity]) -> list[Registration]:
        identity = require_role(identity, Role.STUDENT)
        student = await self.accounts.require_account(identity)
        result = await self.db.execute(
            select(Registration)
            .where(Registration.student_id == student.id)
            .order_by(Registration.id)
        )
        return list(result.scalars().all())

    async def course_roster(
        self, identity: Optional[Identity], course_id: int
    ) -> list[Registration]:
        course = await self.courses.get_owned_course(identity, course_id)
        result = await self.db.execute(
            select(Registration)
            .where(Registration.course_id == course.id)
            .order_by(Registration.id)
        )
        return list(result.scalars().all())
