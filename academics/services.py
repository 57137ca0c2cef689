from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import time
from typing import Iterable, Sequence

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q

from .models import Enrollment, Section, TimeSlot

logger = logging.getLogger(__name__)

ALREADY_ENROLLED_MESSAGE = "You are already enrolled in one section of this course"


class EnrollmentError(Exception):
    """Raised when a student may not enroll in a section."""


@dataclass(frozen=True)
class SlotRequest:
    day: str
    start_time: time
    end_time: time

    def overlaps(self, other) -> bool:
        return (
            self.day == other.day
            and self.start_time < other.end_time
            and other.start_time < self.end_time
        )


def is_enrolled(student, section: Section | int) -> bool:
    section_id = getattr(section, "pk", section)
    return Enrollment.objects.filter(student=student, section_id=section_id).exists()


@transaction.atomic
def enroll_student(student, section: Section) -> Enrollment:
    """Enroll ``student`` in ``section``.

    A student can hold at most one section per course. The student's user
    row is locked while the check runs, so two concurrent requests for the
    same student serialise on backends that support ``SELECT ... FOR UPDATE``
    even before the student has any enrollment.
    """

    list(
        get_user_model()
        .objects.select_for_update()
        .filter(pk=student.pk)
        .values_list("pk", flat=True)
    )

    if Enrollment.objects.filter(
        student=student, section__course_id=section.course_id
    ).exists():
        logger.info(
            "Rejected enrollment of user %s in section %s: already in course %s",
            student.pk,
            section.pk,
            section.course_id,
        )
        raise EnrollmentError(ALREADY_ENROLLED_MESSAGE)

    try:
        with transaction.atomic():
            enrollment = Enrollment.objects.create(student=student, section=section)
    except IntegrityError as exc:
        raise EnrollmentError(ALREADY_ENROLLED_MESSAGE) from exc

    logger.info("Enrolled user %s in section %s", student.pk, section.pk)
    return enrollment


def drop_enrollment(student, section: Section | int) -> bool:
    section_id = getattr(section, "pk", section)
    deleted, _ = Enrollment.objects.filter(student=student, section_id=section_id).delete()
    return bool(deleted)


def find_slot_conflicts(
    slots: Sequence[SlotRequest],
    *,
    room,
    faculty,
    exclude_section: Section | None = None,
) -> list[str]:
    """Return human-readable conflicts for ``slots``.

    Slots must not overlap each other, nor any existing slot held in the same
    room or taught by the same faculty member.
    """

    errors: list[str] = []

    for index, slot in enumerate(slots):
        for other in slots[index + 1:]:
            if slot.overlaps(other):
                errors.append(
                    f"Time slots on {slot.day.title()} overlap each other."
                )

    if not slots:
        return errors

    existing = TimeSlot.objects.select_related("section", "section__room").filter(
        day__in={slot.day for slot in slots}
    )
    if exclude_section is not None:
        existing = existing.exclude(section=exclude_section)

    room_id = getattr(room, "pk", None)
    faculty_id = getattr(faculty, "pk", None)
    for booked in _candidates(existing, room_id=room_id, faculty_id=faculty_id):
        for slot in slots:
            if not slot.overlaps(booked):
                continue
            if room_id is not None and booked.section.room_id == room_id:
                errors.append(
                    f"Room {booked.section.room.number} is already booked on "
                    f"{booked.get_day_display()} {booked.start_time:%H:%M}-{booked.end_time:%H:%M}."
                )
            if faculty_id is not None and booked.section.faculty_id == faculty_id:
                errors.append(
                    f"The faculty member already teaches {booked.section.code} on "
                    f"{booked.get_day_display()} {booked.start_time:%H:%M}-{booked.end_time:%H:%M}."
                )

    return errors


def _candidates(existing, *, room_id, faculty_id) -> Iterable[TimeSlot]:
    if room_id is None and faculty_id is None:
        return []
    condition = Q()
    if room_id is not None:
        condition |= Q(section__room_id=room_id)
    if faculty_id is not None:
        condition |= Q(section__faculty_id=faculty_id)
    return existing.filter(condition)


@transaction.atomic
def create_section(*, slots: Sequence[SlotRequest], **fields) -> Section:
    section = Section.objects.create(**fields)
    TimeSlot.objects.bulk_create(
        [
            TimeSlot(
                section=section,
                day=slot.day,
                start_time=slot.start_time,
                end_time=slot.end_time,
            )
            for slot in slots
        ]
    )
    return section
