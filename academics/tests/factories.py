from __future__ import annotations

from datetime import date, time
from uuid import uuid4

from django.contrib.auth import get_user_model

from accounts.models import FacultyProfile, StudentProfile
from academics.models import (
    Course,
    Department,
    Enrollment,
    Room,
    Section,
    Semester,
    TimeSlot,
)

PASSWORD = "secret-pass-123"


def _suffix() -> str:
    return uuid4().hex[:6]


def create_department(name: str | None = None) -> Department:
    name = name or f"Department {_suffix()}"
    department, _ = Department.objects.get_or_create(name=name)
    return department


def create_semester(name: str | None = None) -> Semester:
    name = name or f"Semester {_suffix()}"
    semester, _ = Semester.objects.get_or_create(
        name=name,
        defaults={"start_date": date(2024, 1, 8), "end_date": date(2024, 5, 3)},
    )
    return semester


def create_course(
    *,
    name: str | None = None,
    code: str | None = None,
    department: Department | None = None,
    semester: Semester | None = None,
    credit_hours: int = 3,
) -> Course:
    suffix = _suffix()
    return Course.objects.create(
        name=name or f"Course {suffix}",
        code=code or f"C{suffix}",
        description="Course description",
        credit_hours=credit_hours,
        department=department or create_department(),
        semester=semester or create_semester(),
    )


def create_room(number: str | None = None, max_capacity: int = 40) -> Room:
    return Room.objects.create(number=number or f"R{_suffix()}", max_capacity=max_capacity)


def create_admin(username: str = "admin@example.com"):
    return get_user_model().objects.create_user(
        username=username, email=username, password=PASSWORD, is_staff=True
    )


def create_faculty(username: str | None = None, *, department: Department | None = None):
    username = username or f"faculty-{_suffix()}@example.com"
    user = get_user_model().objects.create_user(
        username=username,
        email=username,
        password=PASSWORD,
        first_name="Faculty",
        last_name=_suffix(),
    )
    FacultyProfile.objects.create(user=user, department=department or create_department())
    return user


def create_student(username: str | None = None, *, banner_no: str | None = None):
    username = username or f"student-{_suffix()}@example.com"
    user = get_user_model().objects.create_user(
        username=username,
        email=username,
        password=PASSWORD,
        first_name="Student",
        last_name=_suffix(),
    )
    StudentProfile.objects.create(user=user, banner_no=banner_no or _suffix())
    return user


def create_section(
    *,
    course: Course | None = None,
    room: Room | None = None,
    faculty=None,
    code: str | None = None,
    slots: list[tuple[str, time, time]] | None = None,
) -> Section:
    suffix = _suffix()
    section = Section.objects.create(
        name=f"Section {suffix}",
        code=code or f"S{suffix}",
        course=course or create_course(),
        room=room or create_room(),
        faculty=faculty or create_faculty(),
    )
    for day, start, end in slots or []:
        TimeSlot.objects.create(section=section, day=day, start_time=start, end_time=end)
    return section


def enroll(student, section: Section) -> Enrollment:
    return Enrollment.objects.create(student=student, section=section)
