"""Service-layer tests: called directly, no HTTP.

Learn: the race tests patch out the pre-check so the insert reaches the
database's unique constraint, which is what happens when two requests
pass the pre-check at the same moment. The constraint violation must
surface as the same DuplicateConstraint the pre-check raises.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError

from coursereg.auth.identity import Identity, Role
from coursereg.db.engine import is_unique_violation
from coursereg.db.models import Account, Course, Registration
from coursereg.errors import (
    AuthenticationFailure,
    DuplicateConstraint,
    NotFound,
    NotOwner,
    Unauthenticated,
)
from coursereg.services.account_service import AccountService
from coursereg.services.course_service import CourseService
from coursereg.services.registration_service import RegistrationService

ALICE = Identity("alice", Role.TEACHER)
DAVE = Identity("dave", Role.TEACHER)
BOB = Identity("bob", Role.STUDENT)


async def _count(db, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


@pytest.fixture
async def accounts(db_session):
    svc = AccountService(db_session)
    await svc.register("alice", "pw1", Role.TEACHER)
    await svc.register("dave", "pw3", Role.TEACHER)
    await svc.register("bob", "pw2", Role.STUDENT)
    return svc


# ─── Credential verification ────────────────────────────


@pytest.mark.asyncio
async def test_authenticate_returns_account_with_role(accounts):
    account = await accounts.authenticate("alice", "pw1")
    assert account.username == "alice"
    assert account.role is Role.TEACHER


@pytest.mark.asyncio
async def test_authenticate_unknown_user_still_runs_bcrypt(accounts):
    with patch("coursereg.services.account_service.dummy_verify") as dummy:
        with pytest.raises(AuthenticationFailure):
            await accounts.authenticate("nobody", "pw")
    dummy.assert_called_once_with("pw")


@pytest.mark.asyncio
async def test_authenticate_wrong_password(accounts):
    with pytest.raises(AuthenticationFailure) as exc_info:
        await accounts.authenticate("alice", "wrong")
    assert "alice" not in str(exc_info.value)


@pytest.mark.asyncio
async def test_password_is_stored_hashed(accounts, db_session):
    account = (
        await db_session.execute(select(Account).where(Account.username == "alice"))
    ).scalar_one()
    assert account.password_hash != "pw1"
    assert account.password_hash.startswith("$2")


@pytest.mark.asyncio
async def test_valid_token_for_missing_account_is_unauthenticated(db_session):
    svc = CourseService(db_session)
    with pytest.raises(Unauthenticated):
        await svc.create_course(Identity("ghost", Role.TEACHER), "CS101", "Intro")


# ─── Races on unique constraints ────────────────────────


@pytest.mark.asyncio
async def test_register_race_maps_to_duplicate(accounts, db_session):
    accounts.get_by_username = AsyncMock(return_value=None)
    with pytest.raises(DuplicateConstraint):
        await accounts.register("alice", "other", Role.STUDENT)
    assert await _count(db_session, Account) == 3


@pytest.mark.asyncio
async def test_course_number_race_maps_to_duplicate(accounts, db_session):
    svc = CourseService(db_session)
    await svc.create_course(ALICE, "CS101", "Intro")

    svc._course_no_taken = AsyncMock(return_value=False)
    with pytest.raises(DuplicateConstraint, match="Course number"):
        await svc.create_course(ALICE, "CS101", "Intro again")
    assert await _count(db_session, Course) == 1


@pytest.mark.asyncio
async def test_enroll_race_maps_to_duplicate(accounts, db_session):
    course = await CourseService(db_session).create_course(ALICE, "CS101", "Intro")
    svc = RegistrationService(db_session)
    await svc.enroll(BOB, course.id)

    svc._find = AsyncMock(return_value=None)
    with pytest.raises(DuplicateConstraint, match="Already registered"):
        await svc.enroll(BOB, course.id)
    assert await _count(db_session, Registration) == 1


@pytest.mark.asyncio
async def test_enroll_into_course_deleted_mid_request_is_not_found(accounts, db_session):
    course = await CourseService(db_session).create_course(ALICE, "CS101", "Intro")
    await db_session.execute(text("PRAGMA foreign_keys=ON"))
    await db_session.execute(text("DELETE FROM courses WHERE id = :id"), {"id": course.id})
    await db_session.commit()

    svc = RegistrationService(db_session)
    svc.courses.get_course_or_raise = AsyncMock(return_value=course)
    with pytest.raises(NotFound, match="Course not found"):
        await svc.enroll(BOB, course.id)
    assert await _count(db_session, Registration) == 0


@pytest.mark.asyncio
async def test_course_create_with_missing_teacher_is_not_duplicate(accounts, db_session):
    teacher = await accounts.get_by_username("alice")
    await db_session.execute(text("PRAGMA foreign_keys=ON"))
    await db_session.execute(text("DELETE FROM accounts WHERE id = :id"), {"id": teacher.id})
    await db_session.commit()

    svc = CourseService(db_session)
    svc.accounts.require_account = AsyncMock(return_value=teacher)
    with pytest.raises(IntegrityError, match="FOREIGN KEY"):
        await svc.create_course(ALICE, "CS101", "Intro")


def test_only_unique_constraint_failures_count_as_duplicates():
    unique = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: courses.course_no"))
    foreign = IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
    assert is_unique_violation(unique)
    assert not is_unique_violation(foreign)


# ─── Guard ordering ─────────────────────────────────────


@pytest.mark.asyncio
async def test_owner_is_set_at_creation_and_survives_update(accounts, db_session):
    svc = CourseService(db_session)
    course = await svc.create_course(ALICE, "CS101", "Intro")
    updated = await svc.update_course(ALICE, course.id, "CS101", "Intro II")
    assert updated.teacher.username == "alice"


@pytest.mark.asyncio
async def test_non_owner_update_leaves_course_untouched(accounts, db_session):
    svc = CourseService(db_session)
    course = await svc.create_course(ALICE, "CS101", "Intro")
    with pytest.raises(NotOwner):
        await svc.update_course(DAVE, course.id, "CS999", "Stolen")
    assert (await svc.get_course(course.id)).course_no == "CS101"


@pytest.mark.asyncio
async def test_not_found_takes_priority_over_not_owner(accounts, db_session):
    svc = CourseService(db_session)
    with pytest.raises(NotFound):
        await svc.delete_course(DAVE, 12345)
