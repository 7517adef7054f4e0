"""Course API routes.

Learn: routes stay thin. They resolve the (optional) identity, hand it to
the service, and convert ORM rows to read schemas. Role and ownership
checks happen inside CourseService / RegistrationService, and the domain
errors they raise are rendered by the handler registered in main.py.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from coursereg.auth.dependencies import get_identity
from coursereg.auth.identity import Identity
from coursereg.db.engine import get_db
from coursereg.schemas.course import CourseRead, CourseRequest, RegistrationRead
from coursereg.services.course_service import CourseService
from coursereg.services.registration_service import RegistrationService

router = APIRouter(prefix="/courses")


def _svc(db: AsyncSession = Depends(get_db)) -> CourseService:
    return CourseService(db)


def _registrations(db: AsyncSession = Depends(get_db)) -> RegistrationService:
    return RegistrationService(db)


@router.get("", response_model=list[CourseRead])
async def list_courses(svc: CourseService = Depends(_svc)):
    return [CourseRead.from_course(c) for c in await svc.list_courses()]


@router.get("/mine", response_model=list[CourseRead])
async def list_my_courses(
    identity: Optional[Identity] = Depends(get_identity),
    svc: CourseService = Depends(_svc),
):
    """Courses owned by the calling teacher."""
    return [CourseRead.from_course(c) for c in await svc.list_my_courses(identity)]


@router.get("/{course_id}", response_model=CourseRead)
async def get_course(course_id: int, svc: CourseService = Depends(_svc)):
    return CourseRead.from_course(await svc.get_course_or_raise(course_id))


@router.post("", response_model=CourseRead, status_code=201)
async def create_course(
    body: CourseRequest,
    identity: Optional[Identity] = Depends(get_identity),
    svc: CourseService = Depends(_svc),
):
    course = await svc.create_course(identity, body.course_no, body.course_name)
    return CourseRead.from_course(course)


@router.put("/{course_id}", response_model=CourseRead)
async def update_course(
    course_id: int,
    body: CourseRequest,
    identity: Optional[Identity] = Depends(get_identity),
    svc: CourseService = Depends(_svc),
):
    course = await svc.update_course(identity, course_id, body.course_no, body.course_name)
    return CourseRead.from_course(course)


@router.delete("/{course_id}", status_code=204)
async def delete_course(
    course_id: int,
    identity: Optional[Identity] = Depends(get_identity),
    svc: CourseService = Depends(_svc),
):
    await svc.delete_course(identity, course_id)
    return Response(status_code=204)


@router.get("/{course_id}/students", response_model=list[RegistrationRead])
async def list_course_students(
    course_id: int,
    identity: Optional[Identity] = Depends(get_identity),
    svc: RegistrationService = Depends(_registrations),
):
    """Roster of a course. Only its own teacher may see it."""
    roster = await svc.course_roster(identity, course_id)
    return [RegistrationRead.from_registration(r) for r in roster]
