from django import forms
from django.test import RequestFactory, SimpleTestCase, TestCase
from django.urls import reverse

from academics.tests import factories
from coursehub.http import field_errors, form_error_response, wants_json


class HomeViewTests(TestCase):
    def test_anonymous_sees_landing_page(self) -> None:
        response = self.client.get(reverse("home"))
        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, "home.html")

    def test_role_start_pages(self) -> None:
        cases = [
            (factories.create_admin(), reverse("academics:course-list")),
            (factories.create_faculty(), reverse("coursework:faculty-sections")),
            (factories.create_student(), reverse("academics:my-sections")),
        ]
        for user, target in cases:
            with self.subTest(user=user.username):
                self.client.force_login(user)
                self.assertRedirects(self.client.get(reverse("home")), target)


class _NameForm(forms.Form):
    name = forms.CharField(min_length=3, error_messages={"min_length": "Too short"})


class HttpHelperTests(SimpleTestCase):
    def setUp(self) -> None:
        self.factory = RequestFactory()

    def test_wants_json(self) -> None:
        self.assertTrue(wants_json(self.factory.get("/", HTTP_ACCEPT="application/json")))
        self.assertTrue(wants_json(self.factory.get("/", HTTP_X_REQUESTED_WITH="XMLHttpRequest")))
        self.assertFalse(
            wants_json(self.factory.get("/", HTTP_ACCEPT="text/html,application/json;q=0.9"))
        )
        self.assertFalse(wants_json(self.factory.get("/")))

    def test_field_errors_keeps_first_message(self) -> None:
        form = _NameForm({"name": "ab"})
        form.add_error(None, "Something else")
        self.assertEqual(field_errors(form), {"name": "Too short", "__all__": "Something else"})

    def test_json_error_response(self) -> None:
        request = self.factory.post("/", HTTP_ACCEPT="application/json")
        form = _NameForm({"name": ""})
        response = form_error_response(request, form, "home.html")
        self.assertEqual(response.status_code, 400)
        self.assertJSONEqual(
            response.content,
            {"success": False, "fieldErrors": {"name": "This field is required."}},
        )
