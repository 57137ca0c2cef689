import io

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings

from academics.tests import factories
from coursework.models import Document
from uploads.storage import reset_object_storage
from .helpers import TemporaryObjectStorageMixin


class CleanupOrphanedUploadsCommandTests(TemporaryObjectStorageMixin, TestCase):
    def setUp(self):
        super().setUp()
        section = factories.create_section()
        self.kept = self.put_object("uploads/1/0001-kept.pdf")
        self.orphan = self.put_object("uploads/1/0002-orphan.pdf")
        self.fresh = self.put_object("uploads/1/0003-just-uploaded.pdf")
        for key in (self.kept, self.orphan):
            self.age_object(key, hours=48)
        Document.objects.create(section=section, name="Kept", file_key=self.kept)

    def test_dry_run_lists_orphans(self):
        stdout = io.StringIO()
        call_command("cleanup_orphaned_uploads", stdout=stdout)
        output = stdout.getvalue()
        self.assertIn(f"ORPHAN: {self.orphan}", output)
        self.assertNotIn(self.kept, output)
        self.assertNotIn(self.fresh, output)
        self.assertIn("Dry-run complete. 3 object(s) scanned, 1 recent kept.", output)
        self.assertTrue(self.object_storage.exists(self.orphan))

    def test_delete_removes_only_old_orphans(self):
        stdout = io.StringIO()
        call_command("cleanup_orphaned_uploads", "--delete", stdout=stdout)
        self.assertIn(
            "Removed 1 orphaned object(s) (scanned 3, kept 1 recent).", stdout.getvalue()
        )
        self.assertFalse(self.object_storage.exists(self.orphan))
        self.assertTrue(self.object_storage.exists(self.kept))
        self.assertTrue(self.object_storage.exists(self.fresh))

    def test_pending_browser_upload_survives_until_old_enough(self):
        self.age_object(self.fresh, hours=2)
        call_command("cleanup_orphaned_uploads", "--delete", stdout=io.StringIO())
        self.assertTrue(self.object_storage.exists(self.fresh))

        call_command(
            "cleanup_orphaned_uploads", "--delete", "--min-age-hours", "1", stdout=io.StringIO()
        )
        self.assertFalse(self.object_storage.exists(self.fresh))

    def test_upload_window_is_the_lower_bound(self):
        call_command(
            "cleanup_orphaned_uploads", "--delete", "--min-age-hours", "0", stdout=io.StringIO()
        )
        self.assertTrue(self.object_storage.exists(self.fresh))


class CleanupWithoutStorageTests(TestCase):
    @override_settings(OBJECT_STORAGE_BUCKET="")
    def test_reports_missing_configuration(self):
        reset_object_storage()
        with self.assertRaises(CommandError):
            call_command("cleanup_orphaned_uploads", stdout=io.StringIO())
