from __future__ import annotations

import datetime

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from accounts.models import FacultyProfile, StudentProfile
from academics.models import Course, Department, Room, Section, Semester


class Command(BaseCommand):
    help = "Creates demo accounts and one course section for trying the site locally"

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default="password",
            help="Password assigned to every demo account",
        )
        parser.add_argument(
            "--domain",
            default="app.com",
            help="E-mail domain of the demo accounts",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password: str = options["password"]
        domain: str = options["domain"]

        department, _ = Department.objects.get_or_create(name="CSE")
        today = datetime.date.today()
        semester, _ = Semester.objects.get_or_create(
            name="Summer 2023",
            defaults={"start_date": today, "end_date": today},
        )

        admin = self._account(f"admin@{domain}", "Admin", password, is_staff=True)
        faculty = self._account(f"faculty@{domain}", "Faculty", password)
        FacultyProfile.objects.update_or_create(
            user=faculty, defaults={"department": department}
        )
        student = self._account(f"student@{domain}", "Student", password)
        StudentProfile.objects.update_or_create(
            user=student,
            defaults={"banner_no": "700737913", "date_of_birth": today},
        )

        course, _ = Course.objects.update_or_create(
            code="4001",
            defaults={
                "name": "Project Management",
                "description": "Management of the Project",
                "credit_hours": 3,
                "department": department,
                "semester": semester,
            },
        )
        room, _ = Room.objects.get_or_create(number="101", defaults={"max_capacity": 50})
        section, _ = Section.objects.update_or_create(
            code="CSE4001-A",
            defaults={
                "name": "Section A",
                "course": course,
                "room": room,
                "faculty": faculty,
            },
        )

        self.stdout.write(self.style.SUCCESS("Demo data is ready."))
        for user in (admin, faculty, student):
            self.stdout.write(f"Account: {user.username} / {password}")
        self.stdout.write(f"Section: {section.code} of {course}")

    def _account(self, email: str, name: str, password: str, *, is_staff: bool = False):
        User = get_user_model()
        user, created = User.objects.get_or_create(
            username=email,
            defaults={"email": email, "first_name": name, "is_staff": is_staff},
        )
        if created:
            user.set_password(password)
            user.save(update_fields=["password"])
        return user
