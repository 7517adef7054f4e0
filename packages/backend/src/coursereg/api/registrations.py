"""Registration API routes.

- POST /registrations → enroll the calling student
- DELETE /registrations/{course_id} → drop the caller's own enrollment
- GET /registrations/mine → the caller's enrollments
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from coursereg.auth.dependencies import get_identity
from coursereg.auth.identity import Identity
from coursereg.db.engine import get_db
from coursereg.schemas.course import RegistrationRead, RegistrationRequest
from coursereg.services.registration_service import RegistrationService

router = APIRouter(prefix="/registrations")


def _svc(db: AsyncSession = Depends(get_db)) -> RegistrationService:
    return RegistrationService(db)


@router.post("", response_model=RegistrationRead, status_code=201)
async def enroll(
    body: RegistrationRequest,
    identity: Optional[Identity] = Depends(get_identity),
    svc: RegistrationService = Depends(_svc),
):
    registration = await svc.enroll(identity, body.course_id)
    return RegistrationRead.from_registration(registration)


@router.delete("/{course_id}", status_code=204)
async def drop(
    course_id: int,
    identity: Optional[Identity] = Depends(get_identity),
    svc: RegistrationService = Depends(_svc),
):
    await svc.drop(identity, course_id)
    return Response(status_code=204)


@router.get("/mine", response_model=list[RegistrationRead])
async def my_registrations(
    identity: Optional[Identity] = Depends(get_identity),
    svc: RegistrationService = Depends(_svc),
):
    return [RegistrationRead.from_registration(r) for r in await svc.my_registrations(identity)]
