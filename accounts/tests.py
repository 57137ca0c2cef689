from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from django.urls import reverse

from academics.tests import factories
from accounts.context_processors import user_role
from accounts.models import FacultyProfile, Role, StudentProfile, get_user_role

User = get_user_model()

JSON = {"HTTP_ACCEPT": "application/json"}


class SignupTests(TestCase):
    def setUp(self):
        self.url = reverse("accounts:signup")

    def _payload(self, **overrides):
        payload = {
            "name": "Ada Lovelace",
            "email": "Ada@Example.com",
            "banner_no": "700100200",
            "date_of_birth": "2001-12-10",
            "password": "correct-horse-42",
        }
        payload.update(overrides)
        return payload

    def test_signup_creates_student_and_logs_in(self):
        response = self.client.post(self.url, self._payload())
        self.assertRedirects(response, reverse("home"), target_status_code=302)

        user = User.objects.get(username="ada@example.com")
        self.assertEqual(user.first_name, "Ada")
        self.assertEqual(user.last_name, "Lovelace")
        self.assertEqual(user.studentprofile.banner_no, "700100200")
        self.assertEqual(get_user_role(user), Role.STUDENT)
        self.assertEqual(int(self.client.session["_auth_user_id"]), user.pk)

    def test_duplicate_email_and_banner(self):
        factories.create_student("ada@example.com", banner_no="700100200")
        response = self.client.post(self.url, self._payload(), **JSON)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["fieldErrors"],
            {
                "email": "An account with this email already exists",
                "banner_no": "This banner number is already registered",
            },
        )

    def test_weak_password_rerenders_form(self):
        response = self.client.post(self.url, self._payload(password="123"))
        self.assertEqual(response.status_code, 400)
        self.assertTemplateUsed(response, "accounts/signup.html")
        self.assertFalse(StudentProfile.objects.exists())


class FacultyManagementTests(TestCase):
    def setUp(self):
        self.admin = factories.create_admin()
        self.department = factories.create_department("Computer Science")
        self.client.force_login(self.admin)

    def _payload(self, **overrides):
        payload = {
            "name": "Grace Hopper",
            "email": "grace@example.com",
            "department": self.department.pk,
            "password": "cobol-1959",
        }
        payload.update(overrides)
        return payload

    def test_non_admins_are_forbidden(self):
        self.client.force_login(factories.create_faculty())
        self.assertEqual(self.client.get(reverse("accounts:faculty-list")).status_code, 403)

    def test_create_faculty(self):
        response = self.client.post(reverse("accounts:faculty-create"), self._payload())
        self.assertRedirects(response, reverse("accounts:faculty-list"))
        profile = FacultyProfile.objects.select_related("user").get()
        self.assertEqual(profile.user.username, "grace@example.com")
        self.assertEqual(profile.department, self.department)
        self.assertTrue(profile.user.check_password("cobol-1959"))
        self.assertEqual(get_user_role(profile.user), Role.FACULTY)

    def test_password_rules_on_create(self):
        url = reverse("accounts:faculty-create")
        response = self.client.post(url, self._payload(password=""), **JSON)
        self.assertEqual(response.json()["fieldErrors"], {"password": "Password is required"})

        response = self.client.post(url, self._payload(password="short"), **JSON)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["fieldErrors"], {"password": "Password must be at least 8 characters"}
        )
        self.assertFalse(FacultyProfile.objects.exists())

    def test_invalid_fields(self):
        response = self.client.post(
            reverse("accounts:faculty-create"),
            self._payload(name="Al", email="not-an-email"),
            **JSON,
        )
        self.assertEqual(
            response.json()["fieldErrors"],
            {
                "name": "Name must be at least 3 characters",
                "email": "Please enter a valid email",
            },
        )

    def test_edit_keeps_password_when_blank(self):
        faculty = factories.create_faculty("grace@example.com")
        profile = faculty.facultyprofile
        response = self.client.post(
            reverse("accounts:faculty-edit", args=[profile.pk]),
            self._payload(name="Grace Brewster Hopper", password=""),
        )
        self.assertRedirects(response, reverse("accounts:faculty-list"))
        faculty.refresh_from_db()
        self.assertEqual(faculty.first_name, "Grace")
        self.assertEqual(faculty.last_name, "Brewster Hopper")
        self.assertTrue(faculty.check_password(factories.PASSWORD))

    def test_edit_rejects_email_of_another_user(self):
        factories.create_student("taken@example.com")
        profile = factories.create_faculty().facultyprofile
        response = self.client.post(
            reverse("accounts:faculty-edit", args=[profile.pk]),
            self._payload(email="taken@example.com", password=""),
            **JSON,
        )
        self.assertEqual(
            response.json()["fieldErrors"], {"email": "A user with this email already exists"}
        )

    def test_delete(self):
        profile = factories.create_faculty().facultyprofile
        response = self.client.post(reverse("accounts:faculty-delete", args=[profile.pk]))
        self.assertRedirects(response, reverse("accounts:faculty-list"))
        self.assertFalse(FacultyProfile.objects.exists())

    def test_teaching_faculty_cannot_be_deleted(self):
        faculty = factories.create_faculty()
        factories.create_section(faculty=faculty)
        response = self.client.post(
            reverse("accounts:faculty-delete", args=[faculty.facultyprofile.pk]), follow=True
        )
        self.assertContains(response, "still teaches sections")
        self.assertTrue(User.objects.filter(pk=faculty.pk).exists())

    def test_student_list(self):
        factories.create_student("lin@example.com", banner_no="700000001")
        response = self.client.get(reverse("accounts:student-list"))
        self.assertContains(response, "700000001")
        self.assertContains(response, "lin@example.com")


class RoleTests(TestCase):
    def test_roles(self):
        self.assertEqual(get_user_role(factories.create_admin()), Role.ADMIN)
        self.assertEqual(get_user_role(factories.create_faculty()), Role.FACULTY)
        self.assertEqual(get_user_role(factories.create_student()), Role.STUDENT)
        plain = User.objects.create_user(username="plain", password="x")
        self.assertIsNone(get_user_role(plain))

    def test_context_processor(self):
        request = RequestFactory().get("/")
        request.user = factories.create_faculty()
        self.assertEqual(user_role(request), {"user_role": Role.FACULTY})
