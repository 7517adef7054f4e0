"""Pydantic schemas for courses and registrations.

Read schemas flatten the owner/student and course relationships into
plain fields, so responses never expose password hashes or nested rows.
"""

from pydantic import BaseModel, Field

from coursereg.db.models import Course, Registration


# ─── Courses ────────────────────────────────────────────

class CourseRequest(BaseModel):
    course_no: str = Field(..., min_length=1, max_length=32)
    course_name: str = Field(..., min_length=1, max_length=120)


class CourseRead(BaseModel):
    id: int
    course_no: str
    course_name: str
    teacher_id: int
    teacher_username: str

    @classmethod
    def from_course(cls, course: Course) -> "CourseRead":
        return cls(
            id=course.id,
            course_no=course.course_no,
            course_name=course.course_name,
            teacher_id=course.teacher_id,
            teacher_username=course.teacher.username,
        )


# ─── Registrations ──────────────────────────────────────

class RegistrationRequest(BaseModel):
    course_id: int


class RegistrationRead(BaseModel):
    id: int
    course_id: int
    course_no: str
    course_name: str
    student_id: int
    student_username: str

    @classmethod
    def from_registration(cls, registration: Registration) -> "RegistrationRead":
        return cls(
            id=registration.id,
            course_id=registration.course_id,
            course_no=registration.course.course_no,
            course_name=registration.course.course_name,
            student_id=registration.student_id,
            student_username=registration.student.username,
        )
