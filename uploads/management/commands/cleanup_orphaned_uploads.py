from __future__ import annotations

from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from coursework.models import referenced_file_keys
from uploads.storage import StorageNotConfigured, get_object_storage


class Command(BaseCommand):
    help = "List or delete stored objects that no document, assignment or submission uses."

    def add_arguments(self, parser):
        parser.add_argument(
            "--prefix",
            default=None,
            help="Storage prefix to scan (default: OBJECT_STORAGE_KEY_PREFIX).",
        )
        parser.add_argument(
            "--delete",
            action="store_true",
            help="Delete objects instead of dry-run.",
        )
        parser.add_argument(
            "--min-age-hours",
            type=float,
            default=24.0,
            help=(
                "Keep unreferenced objects younger than this; a browser upload "
                "has no record until its form is submitted (default: 24)."
            ),
        )

    def handle(self, *args, **options):
        try:
            storage = get_object_storage()
        except StorageNotConfigured as exc:
            raise CommandError(str(exc)) from exc

        prefix = options["prefix"]
        if prefix is None:
            prefix = storage.config.key_prefix
        delete_mode = bool(options["delete"])
        min_age = max(
            timedelta(hours=options["min_age_hours"]),
            timedelta(seconds=storage.config.upload_expires),
        )
        cutoff = timezone.now() - min_age

        referenced = referenced_file_keys()

        total = 0
        deleted = 0
        recent = 0
        for key in storage.iter_keys(prefix):
            total += 1
            if key in referenced:
                continue
            if storage.modified_time(key) > cutoff:
                recent += 1
                continue

            if delete_mode:
                storage.delete(key)
                deleted += 1
            else:
                self.stdout.write(f"ORPHAN: {key}")

        if delete_mode:
            self.stdout.write(
                self.style.SUCCESS(
                    f"Removed {deleted} orphaned object(s) "
                    f"(scanned {total}, kept {recent} recent)."
                )
            )
        else:
            self.stdout.write(
                self.style.WARNING(
                    f"Dry-run complete. {total} object(s) scanned, {recent} recent kept. "
                    "Re-run with --delete to remove orphans."
                )
            )
