from datetime import time

from django.test import TestCase
from django.urls import reverse

from academics.models import Course, Department, Room, Section, TimeSlot
from . import factories


class AdminAccessTests(TestCase):
    def test_anonymous_user_is_sent_to_login(self):
        response = self.client.get(reverse("academics:course-list"))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("accounts:login"), response["Location"])

    def test_student_is_forbidden(self):
        self.client.force_login(factories.create_student())
        response = self.client.get(reverse("academics:course-list"))
        self.assertEqual(response.status_code, 403)

    def test_faculty_is_forbidden(self):
        self.client.force_login(factories.create_faculty())
        response = self.client.post(reverse("academics:department-create"), {"name": "Physics"})
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Department.objects.filter(name="Physics").exists())


class DepartmentViewTests(TestCase):
    def setUp(self):
        self.client.force_login(factories.create_admin())

    def test_create_department(self):
        response = self.client.post(reverse("academics:department-create"), {"name": "Physics"})
        self.assertRedirects(response, reverse("academics:department-list"))
        self.assertTrue(Department.objects.filter(name="Physics").exists())

    def test_duplicate_name_rerenders_form_with_400(self):
        factories.create_department("Physics")
        response = self.client.post(reverse("academics:department-create"), {"name": "physics"})
        self.assertEqual(response.status_code, 400)
        self.assertContains(response, "Department name already exists", status_code=400)
        self.assertEqual(Department.objects.count(), 1)

    def test_duplicate_name_as_json(self):
        factories.create_department("Physics")
        response = self.client.post(
            reverse("academics:department-create"),
            {"name": "Physics"},
            HTTP_ACCEPT="application/json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {"success": False, "fieldErrors": {"name": "Department name already exists"}},
        )

    def test_short_name_is_rejected(self):
        response = self.client.post(
            reverse("academics:department-create"),
            {"name": "CS"},
            HTTP_X_REQUESTED_WITH="XMLHttpRequest",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["fieldErrors"]["name"], "Name must be at least 3 characters"
        )

    def test_rename_keeps_own_name_valid(self):
        department = factories.create_department("Physics")
        response = self.client.post(
            reverse("academics:department-edit", args=[department.pk]), {"name": "Physics"}
        )
        self.assertRedirects(response, reverse("academics:department-list"))

    def test_delete_department_with_courses_is_refused(self):
        course = factories.create_course()
        response = self.client.post(
            reverse("academics:department-delete", args=[course.department_id]), follow=True
        )
        self.assertContains(response, "cannot be deleted")
        self.assertTrue(Department.objects.filter(pk=course.department_id).exists())

    def test_delete_requires_post(self):
        department = factories.create_department()
        response = self.client.get(reverse("academics:department-delete", args=[department.pk]))
        self.assertEqual(response.status_code, 405)


class CourseViewTests(TestCase):
    def setUp(self):
        self.client.force_login(factories.create_admin())
        self.department = factories.create_department("Computer Science")
        self.semester = factories.create_semester("Fall 2024")

    def _payload(self, **overrides):
        payload = {
            "name": "Project Management",
            "description": "Management of the project",
            "code": "4001",
            "credit_hours": 3,
            "department": self.department.pk,
            "semester": self.semester.pk,
        }
        payload.update(overrides)
        return payload

    def test_create_course(self):
        response = self.client.post(reverse("academics:course-create"), self._payload())
        self.assertRedirects(response, reverse("academics:course-list"))
        course = Course.objects.get(code="4001")
        self.assertEqual(course.department, self.department)

    def test_duplicate_name_and_code_are_reported_per_field(self):
        factories.create_course(
            name="Project Management",
            code="4001",
            department=self.department,
            semester=self.semester,
        )
        response = self.client.post(
            reverse("academics:course-create"),
            self._payload(),
            HTTP_ACCEPT="application/json",
        )
        self.assertEqual(response.status_code, 400)
        errors = response.json()["fieldErrors"]
        self.assertEqual(errors["name"], "Course with same name already exists")
        self.assertEqual(errors["code"], "Course with same code already exists")

    def test_credit_hours_out_of_range(self):
        response = self.client.post(
            reverse("academics:course-create"), self._payload(credit_hours=0)
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Course.objects.exists())

    def test_list_shows_courses(self):
        factories.create_course(name="Databases", department=self.department)
        response = self.client.get(reverse("academics:course-list"))
        self.assertContains(response, "Databases")


class RoomViewTests(TestCase):
    def setUp(self):
        self.client.force_login(factories.create_admin())

    def test_create_and_reject_duplicate_room(self):
        url = reverse("academics:room-create")
        self.client.post(url, {"number": "101", "max_capacity": 50})
        self.assertTrue(Room.objects.filter(number="101").exists())

        response = self.client.post(url, {"number": "101", "max_capacity": 20})
        self.assertContains(response, "Room with this number already exists", status_code=400)

    def test_capacity_must_be_positive(self):
        response = self.client.post(
            reverse("academics:room-create"), {"number": "102", "max_capacity": 0}
        )
        self.assertEqual(response.status_code, 400)


class SectionViewTests(TestCase):
    def setUp(self):
        self.client.force_login(factories.create_admin())
        self.course = factories.create_course()
        self.room = factories.create_room("101")
        self.faculty = factories.create_faculty()

    def _payload(self, code="CSE4001-A", slots=(), room=None, faculty=None):
        payload = {
            "name": "Section A",
            "code": code,
            "course": self.course.pk,
            "room": (room or self.room).pk,
            "faculty": (faculty or self.faculty).pk,
            "slots-TOTAL_FORMS": str(max(len(slots), 1)),
            "slots-INITIAL_FORMS": "0",
            "slots-MIN_NUM_FORMS": "0",
            "slots-MAX_NUM_FORMS": "1000",
        }
        for index, (day, start, end) in enumerate(slots):
            payload[f"slots-{index}-day"] = day
            payload[f"slots-{index}-start_time"] = start
            payload[f"slots-{index}-end_time"] = end
        return payload

    def test_create_section_with_time_slots(self):
        response = self.client.post(
            reverse("academics:section-create"),
            self._payload(slots=[("MONDAY", "09:00", "10:15"), ("WEDNESDAY", "09:00", "10:15")]),
        )
        self.assertRedirects(response, reverse("academics:section-list"))
        section = Section.objects.get(code="CSE4001-A")
        self.assertEqual(section.time_slots.count(), 2)

    def test_create_section_without_slots(self):
        response = self.client.post(reverse("academics:section-create"), self._payload())
        self.assertRedirects(response, reverse("academics:section-list"))
        self.assertFalse(TimeSlot.objects.exists())

    def test_duplicate_code(self):
        factories.create_section(code="CSE4001-A")
        response = self.client.post(
            reverse("academics:section-create"),
            self._payload(),
            HTTP_ACCEPT="application/json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["fieldErrors"]["code"], "Section with this code already exists"
        )

    def test_room_double_booking_is_rejected(self):
        factories.create_section(
            room=self.room, slots=[("MONDAY", time(9, 0), time(10, 0))]
        )
        response = self.client.post(
            reverse("academics:section-create"),
            self._payload(slots=[("MONDAY", "09:30", "10:30")]),
            HTTP_ACCEPT="application/json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("Room 101 is already booked", response.json()["fieldErrors"]["slots"])
        self.assertFalse(Section.objects.filter(code="CSE4001-A").exists())

    def test_faculty_double_booking_is_rejected(self):
        factories.create_section(
            faculty=self.faculty, slots=[("TUESDAY", time(13, 0), time(14, 0))]
        )
        response = self.client.post(
            reverse("academics:section-create"),
            self._payload(slots=[("TUESDAY", "13:30", "15:00")]),
        )
        self.assertEqual(response.status_code, 400)
        self.assertContains(response, "already teaches", status_code=400)

    def test_back_to_back_slots_do_not_conflict(self):
        factories.create_section(
            room=self.room, slots=[("MONDAY", time(9, 0), time(10, 0))]
        )
        response = self.client.post(
            reverse("academics:section-create"),
            self._payload(slots=[("MONDAY", "10:00", "11:00")]),
        )
        self.assertEqual(response.status_code, 302)

    def test_overlapping_slots_in_one_request(self):
        response = self.client.post(
            reverse("academics:section-create"),
            self._payload(slots=[("FRIDAY", "09:00", "11:00"), ("FRIDAY", "10:00", "12:00")]),
        )
        self.assertContains(response, "overlap each other", status_code=400)

    def test_end_before_start(self):
        response = self.client.post(
            reverse("academics:section-create"),
            self._payload(slots=[("FRIDAY", "11:00", "09:00")]),
        )
        self.assertEqual(response.status_code, 400)

    def test_moving_section_into_booked_room_is_rejected(self):
        other_room = factories.create_room("202")
        factories.create_section(room=other_room, slots=[("MONDAY", time(9, 0), time(10, 0))])
        section = factories.create_section(
            course=self.course,
            room=self.room,
            faculty=self.faculty,
            slots=[("MONDAY", time(9, 0), time(10, 0))],
        )
        response = self.client.post(
            reverse("academics:section-edit", args=[section.pk]),
            {
                "name": section.name,
                "code": section.code,
                "course": self.course.pk,
                "room": other_room.pk,
                "faculty": self.faculty.pk,
            },
        )
        self.assertEqual(response.status_code, 400)
        section.refresh_from_db()
        self.assertEqual(section.room, self.room)

    def test_list_shows_student_counts(self):
        section = factories.create_section(course=self.course, room=self.room)
        factories.enroll(factories.create_student(), section)
        response = self.client.get(reverse("academics:section-list"))
        self.assertContains(response, f"1 / {self.room.max_capacity}")
