from datetime import timedelta
from decimal import Decimal

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from academics.tests import factories
from coursework.models import Assignment, Document, Submission
from uploads.tests.helpers import TemporaryObjectStorageMixin

JSON = {"HTTP_ACCEPT": "application/json"}


class StudentSectionTests(TemporaryObjectStorageMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.student = factories.create_student()
        self.section = factories.create_section()
        factories.enroll(self.student, self.section)
        self.url = reverse("coursework:student-section-detail", args=[self.section.pk])
        self.client.force_login(self.student)

    def test_not_enrolled_is_sent_back(self):
        other = factories.create_section()
        response = self.client.get(reverse("coursework:student-section-detail", args=[other.pk]))
        self.assertRedirects(response, reverse("academics:my-sections"))

    def test_faculty_cannot_use_student_pages(self):
        self.client.force_login(self.section.faculty)
        self.assertEqual(self.client.get(self.url).status_code, 403)

    def test_only_visible_documents_are_listed(self):
        shown = Document.objects.create(
            section=self.section, name="Syllabus", file_key="uploads/1/0001-syllabus.pdf"
        )
        Document.objects.create(section=self.section, name="Answer key", visible=False)
        response = self.client.get(self.url)
        self.assertEqual(list(response.context["documents"]), [shown])
        self.assertContains(response, "/media/uploads/1/0001-syllabus.pdf")
        self.assertNotContains(response, "Answer key")

    def test_assignment_status(self):
        graded = Assignment.objects.create(
            section=self.section, title="Proposal", deadline=timezone.now() + timedelta(days=1)
        )
        Assignment.objects.create(
            section=self.section, title="Retrospective", deadline=timezone.now() - timedelta(days=1)
        )
        Submission.objects.create(
            assignment=graded, student=self.student, grade=Decimal("91.00")
        )
        response = self.client.get(self.url)
        self.assertContains(response, "Graded: 91.00")
        self.assertContains(response, "Overdue")
        self.assertEqual(
            [a.title for a in response.context["assignments"]], ["Retrospective", "Proposal"]
        )


class StudentSubmissionTests(TemporaryObjectStorageMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.student = factories.create_student()
        self.section = factories.create_section()
        factories.enroll(self.student, self.section)
        self.text_assignment = Assignment.objects.create(
            section=self.section,
            title="Reflection",
            type=Assignment.Type.TEXT,
            deadline=timezone.now() + timedelta(days=2),
            text_content="What did you learn?",
        )
        self.file_assignment = Assignment.objects.create(
            section=self.section,
            title="Report",
            type=Assignment.Type.FILE,
            deadline=timezone.now() + timedelta(days=2),
            file_key="uploads/1/0001-template.docx",
        )
        self.client.force_login(self.student)

    def _url(self, assignment):
        return reverse(
            "coursework:student-assignment-detail", args=[self.section.pk, assignment.pk]
        )

    def test_text_submission(self):
        url = self._url(self.text_assignment)
        response = self.client.post(url, {"text_content": "Scope creep is real."})
        self.assertRedirects(response, url)
        submission = Submission.objects.get(student=self.student)
        self.assertEqual(submission.text_content, "Scope creep is real.")
        self.assertFalse(submission.has_file)

    def test_text_answer_is_required(self):
        response = self.client.post(self._url(self.text_assignment), {"text_content": "  "}, **JSON)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {"success": False, "fieldErrors": {"text_content": "Please write your answer"}},
        )

    def test_second_submission_is_refused(self):
        url = self._url(self.text_assignment)
        self.client.post(url, {"text_content": "First try"})
        response = self.client.post(url, {"text_content": "Second try"})
        self.assertContains(
            response, "You have already submitted this assignment", status_code=400
        )
        self.assertEqual(Submission.objects.get().text_content, "First try")

    def test_duplicate_error_as_json(self):
        Submission.objects.create(assignment=self.text_assignment, student=self.student)
        response = self.client.post(
            self._url(self.text_assignment), {"text_content": "Again"}, **JSON
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["fieldErrors"],
            {"text_content": "You have already submitted this assignment"},
        )

    def test_file_submission(self):
        url = self._url(self.file_assignment)
        response = self.client.post(
            url, {"file": SimpleUploadedFile("report.pdf", b"%PDF", content_type="application/pdf")}
        )
        self.assertRedirects(response, url)
        submission = Submission.objects.get()
        self.assertTrue(submission.file_key.startswith(f"uploads/{self.student.pk}/"))
        self.assertTrue(self.object_storage.exists(submission.file_key))

    def test_file_submission_with_presigned_key(self):
        key = self.put_object(f"uploads/{self.student.pk}/0001-report.pdf")
        url = self._url(self.file_assignment)
        response = self.client.post(url, {"file_key": key})
        self.assertRedirects(response, url)
        self.assertEqual(Submission.objects.get().file_key, key)

    def test_file_is_required(self):
        response = self.client.post(self._url(self.file_assignment), {}, **JSON)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["fieldErrors"], {"file": "Please attach a file"})

    def test_file_requirement_follows_assignment_type(self):
        response = self.client.get(self._url(self.file_assignment))
        self.assertContains(response, "data-file-required>")
        response = self.client.get(self._url(self.text_assignment))
        self.assertNotContains(response, "data-file-required>")

    def test_shows_grade_and_feedback(self):
        Submission.objects.create(
            assignment=self.text_assignment,
            student=self.student,
            text_content="Answer",
            grade=Decimal("77.50"),
            feedback="Cite your sources",
            graded_at=timezone.now(),
        )
        response = self.client.get(self._url(self.text_assignment))
        self.assertContains(response, "77.50 / 100")
        self.assertContains(response, "Cite your sources")
        self.assertNotContains(response, "name=\"text_content\"")

    def test_not_enrolled(self):
        self.section.enrollments.all().delete()
        response = self.client.post(self._url(self.text_assignment), {"text_content": "Hi"})
        self.assertRedirects(response, reverse("academics:my-sections"))
        self.assertFalse(Submission.objects.exists())
