"""Write paths for documents, assignments, submissions and grades.

Records that carry a file are written in two steps: the object lands in the
bucket first (either the browser PUT it through a presigned URL, or the
server saves a multipart upload), then the row is inserted. The row insert is
a single transaction. When it fails, the object is deleted again so the
bucket does not collect files nothing points at.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, TypeVar

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from academics.models import Section
from academics.services import is_enrolled
from uploads.storage import (
    get_object_storage,
    key_extension,
    key_filename,
)

from .models import Assignment, Document, StoredObject, Submission

logger = logging.getLogger(__name__)

T = TypeVar("T")

DUPLICATE_SUBMISSION_MESSAGE = "You have already submitted this assignment"


class UploadRejected(Exception):
    """The submitted key does not belong to the uploading user."""


class DuplicateSubmission(Exception):
    pass


def _file_fields(storage, key: str) -> dict:
    return {
        "file_key": key,
        "file_name": key_filename(key),
        "file_extension": key_extension(key),
        "file_bucket": storage.config.bucket,
        "file_region": storage.config.region,
    }


def store_upload(user, *, key: str = "", upload=None) -> dict:
    """Make sure the file for a new record is in the bucket.

    ``upload`` is a Django ``UploadedFile`` the server stores itself; ``key``
    names an object the browser already PUT. Returns the ``StoredObject``
    field values for the record, or ``{}`` when no file was given.
    """

    if upload is None and not key:
        return {}

    storage = get_object_storage()
    if upload is not None:
        key = storage.generate_key(
            upload.name, owner_id=user.pk, content_type=getattr(upload, "content_type", None)
        )
        key = storage.save(key, upload)
    else:
        if not storage.owns(key, user.pk):
            logger.warning("User %s tried to attach foreign key %s", user.pk, key)
            raise UploadRejected(key)
        storage.verify_uploaded(key)
    return _file_fields(storage, key)


def record_with_upload(
    create: Callable[[dict], T], user, *, key: str = "", upload=None
) -> T:
    """Store the file, then run ``create(file_fields)`` in a transaction.

    If ``create`` raises, the stored object is removed and the exception
    propagates unchanged.
    """

    file_fields = store_upload(user, key=key, upload=upload)
    try:
        with transaction.atomic():
            return create(file_fields)
    except Exception:
        if file_fields:
            _discard_object(file_fields["file_key"])
        raise


def _discard_object(key: str) -> None:
    try:
        get_object_storage().delete(key)
    except Exception:
        logger.exception("Compensating delete of %s failed; object is orphaned", key)
    else:
        logger.info("Removed %s after its record could not be saved", key)


def delete_with_object(instance: StoredObject) -> None:
    """Delete ``instance`` and, once the transaction commits, its object."""

    key = instance.file_key
    with transaction.atomic():
        instance.delete()
        if key:
            transaction.on_commit(lambda: _delete_object(key))


def _delete_object(key: str) -> None:
    try:
        get_object_storage().delete(key)
    except Exception:
        logger.exception("Could not delete %s; it is left for cleanup_orphaned_uploads", key)


# Documents and assignments

def create_document(section: Section, *, data: dict, user, key: str = "", upload=None) -> Document:
    return record_with_upload(
        lambda file_fields: Document.objects.create(section=section, **data, **file_fields),
        user,
        key=key,
        upload=upload,
    )


def create_assignment(
    section: Section, *, data: dict, user, key: str = "", upload=None
) -> Assignment:
    return record_with_upload(
        lambda file_fields: Assignment.objects.create(section=section, **data, **file_fields),
        user,
        key=key,
        upload=upload,
    )


# Submissions

def ensure_enrolled(student, section: Section) -> bool:
    return is_enrolled(student, section)


def has_submitted(student, assignment: Assignment) -> bool:
    return Submission.objects.filter(assignment=assignment, student=student).exists()


def create_submission(
    assignment: Assignment, student, *, text_content: str = "", key: str = "", upload=None
) -> Submission:
    """Record the single submission ``student`` may make for ``assignment``."""

    if has_submitted(student, assignment):
        raise DuplicateSubmission(DUPLICATE_SUBMISSION_MESSAGE)

    def create(file_fields: dict) -> Submission:
        try:
            with transaction.atomic():
                return Submission.objects.create(
                    assignment=assignment,
                    student=student,
                    text_content=text_content,
                    **file_fields,
                )
        except IntegrityError as exc:
            raise DuplicateSubmission(DUPLICATE_SUBMISSION_MESSAGE) from exc

    submission = record_with_upload(create, student, key=key, upload=upload)
    logger.info("User %s submitted assignment %s", student.pk, assignment.pk)
    return submission


def grade_submission(
    submission: Submission, *, grade: Decimal, feedback: str = "", grader=None
) -> Submission:
    """Overwrite the grade and feedback of ``submission``.

    Callers validate ``grade`` against the 0..100 range before calling.
    """

    previous = submission.grade
    submission.grade = grade
    submission.feedback = feedback
    submission.graded_at = timezone.now()
    submission.save(update_fields=["grade", "feedback", "graded_at"])
    logger.info(
        "Submission %s graded %s (was %s) by user %s",
        submission.pk,
        grade,
        previous,
        getattr(grader, "pk", None),
    )
    return submission


# Access

def can_read_key(user, key: str) -> bool:
    """Whether ``user`` may read the object stored under ``key``."""

    if not key or not user.is_authenticated:
        return False
    if user.is_staff:
        return True

    teaches = Q(section__faculty=user)
    enrolled = Q(section__enrollments__student=user)
    if Document.objects.filter(Q(file_key=key) & (teaches | (enrolled & Q(visible=True)))).exists():
        return True
    if Assignment.objects.filter(Q(file_key=key) & (teaches | enrolled)).exists():
        return True
    return Submission.objects.filter(
        Q(file_key=key) & (Q(student=user) | Q(assignment__section__faculty=user))
    ).exists()
