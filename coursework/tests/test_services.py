from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import IntegrityError
from django.test import TestCase
from django.utils import timezone

from academics.tests import factories
from coursework.models import Assignment, Document, Submission
from coursework.services import (
    DuplicateSubmission,
    UploadRejected,
    create_assignment,
    create_document,
    create_submission,
    delete_with_object,
    grade_submission,
    record_with_upload,
)
from uploads.storage import UploadMissing
from uploads.tests.helpers import TemporaryObjectStorageMixin


class UploadThenRecordTests(TemporaryObjectStorageMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.faculty = factories.create_faculty()
        self.section = factories.create_section(faculty=self.faculty)

    def _stored_keys(self):
        return sorted(self.object_storage.iter_keys("uploads"))

    def test_server_side_upload_is_stored_before_the_row(self):
        upload = SimpleUploadedFile("Week 1.pdf", b"%PDF-1.4", content_type="application/pdf")
        document = create_document(
            self.section,
            data={"name": "Week 1", "description": "", "visible": True},
            user=self.faculty,
            upload=upload,
        )
        self.assertTrue(document.file_key.startswith(f"uploads/{self.faculty.pk}/"))
        self.assertTrue(document.file_name.endswith("-week-1.pdf"))
        self.assertEqual(document.file_extension, ".pdf")
        self.assertEqual(document.file_bucket, "test-bucket")
        self.assertEqual(document.file_region, "auto")
        self.assertTrue(self.object_storage.exists(document.file_key))

    def test_presigned_key_is_verified(self):
        key = self.put_object(f"uploads/{self.faculty.pk}/0001-slides.pptx")
        document = create_document(
            self.section,
            data={"name": "Slides", "description": "", "visible": True},
            user=self.faculty,
            key=key,
        )
        self.assertEqual(document.file_key, key)
        self.assertEqual(document.file_name, "0001-slides.pptx")
        self.assertEqual(self._stored_keys(), [key])

    def test_missing_object_writes_no_row(self):
        with self.assertRaises(UploadMissing):
            create_document(
                self.section,
                data={"name": "Slides", "description": "", "visible": True},
                user=self.faculty,
                key=f"uploads/{self.faculty.pk}/0001-never-uploaded.pdf",
            )
        self.assertFalse(Document.objects.exists())

    def test_foreign_key_is_rejected(self):
        other = factories.create_faculty()
        key = self.put_object(f"uploads/{other.pk}/0001-theirs.pdf")
        with self.assertRaises(UploadRejected):
            create_document(
                self.section,
                data={"name": "Theirs", "description": "", "visible": True},
                user=self.faculty,
                key=key,
            )
        self.assertFalse(Document.objects.exists())
        self.assertTrue(self.object_storage.exists(key))

    def test_failed_row_write_deletes_the_object(self):
        def failing_create(file_fields):
            raise IntegrityError("boom")

        upload = SimpleUploadedFile("notes.txt", b"notes", content_type="text/plain")
        with self.assertRaises(IntegrityError):
            record_with_upload(failing_create, self.faculty, upload=upload)
        self.assertEqual(self._stored_keys(), [])

    def test_record_without_file(self):
        assignment = create_assignment(
            self.section,
            data={
                "title": "Essay",
                "description": "",
                "type": Assignment.Type.TEXT,
                "deadline": timezone.now() + timedelta(days=3),
                "text_content": "Write about risk management.",
            },
            user=self.faculty,
        )
        self.assertFalse(assignment.has_file)
        self.assertEqual(self._stored_keys(), [])

    def test_delete_removes_object_after_commit(self):
        key = self.put_object(f"uploads/{self.faculty.pk}/0001-old.pdf")
        document = Document.objects.create(section=self.section, name="Old", file_key=key)
        with self.captureOnCommitCallbacks(execute=True):
            delete_with_object(document)
        self.assertFalse(Document.objects.exists())
        self.assertFalse(self.object_storage.exists(key))


class SubmissionServiceTests(TemporaryObjectStorageMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.student = factories.create_student()
        section = factories.create_section()
        factories.enroll(self.student, section)
        self.assignment = Assignment.objects.create(
            section=section,
            title="Report",
            type=Assignment.Type.FILE,
            deadline=timezone.now() + timedelta(days=1),
        )

    def test_second_submission_is_rejected(self):
        create_submission(self.assignment, self.student, text_content="first")
        with self.assertRaisesMessage(DuplicateSubmission, "You have already submitted this assignment"):
            create_submission(self.assignment, self.student, text_content="second")
        self.assertEqual(Submission.objects.count(), 1)

    def test_lost_race_removes_the_second_upload(self):
        create_submission(
            self.assignment,
            self.student,
            upload=SimpleUploadedFile("v1.pdf", b"1", content_type="application/pdf"),
        )
        with mock.patch("coursework.services.has_submitted", return_value=False):
            with self.assertRaises(DuplicateSubmission):
                create_submission(
                    self.assignment,
                    self.student,
                    upload=SimpleUploadedFile("v2.pdf", b"2", content_type="application/pdf"),
                )
        keys = list(self.object_storage.iter_keys("uploads"))
        self.assertEqual(len(keys), 1)
        self.assertTrue(keys[0].endswith("-v1.pdf"))


class GradeSubmissionTests(TestCase):
    def setUp(self):
        student = factories.create_student()
        section = factories.create_section()
        assignment = Assignment.objects.create(
            section=section, title="Quiz", deadline=timezone.now() + timedelta(days=1)
        )
        self.submission = Submission.objects.create(
            assignment=assignment, student=student, text_content="42"
        )

    def test_grade_and_regrade(self):
        grade_submission(self.submission, grade=Decimal("70"), feedback="Good start")
        self.submission.refresh_from_db()
        self.assertEqual(self.submission.grade, Decimal("70"))
        first_graded_at = self.submission.graded_at
        self.assertIsNotNone(first_graded_at)

        grade_submission(self.submission, grade=Decimal("95.5"), feedback="")
        self.submission.refresh_from_db()
        self.assertEqual(self.submission.grade, Decimal("95.5"))
        self.assertEqual(self.submission.feedback, "")
        self.assertGreaterEqual(self.submission.graded_at, first_graded_at)
