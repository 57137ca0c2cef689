"""Models for section documents, assignments and student submissions."""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from academics.models import Section


class StoredObject(models.Model):
    """Reference to one object in the upload bucket.

    The bytes live in object storage; the row only keeps where to find them.
    """

    file_key = models.CharField(max_length=512, blank=True)
    file_name = models.CharField(max_length=255, blank=True)
    file_extension = models.CharField(max_length=16, blank=True)
    file_bucket = models.CharField(max_length=255, blank=True)
    file_region = models.CharField(max_length=64, blank=True)

    class Meta:
        abstract = True

    @property
    def has_file(self) -> bool:
        return bool(self.file_key)


class Document(StoredObject):
    """Course material shared by a faculty member with a section."""

    section = models.ForeignKey(
        Section, related_name="documents", on_delete=models.CASCADE
    )
    name = models.CharField(max_length=255, validators=[MinLengthValidator(3)])
    description = models.TextField(blank=True)
    visible = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return self.name


class Assignment(StoredObject):
    """An assignment posted to a section."""

    class Type(models.TextChoices):
        TEXT = "TEXT", "Text"
        FILE = "FILE", "File"

    section = models.ForeignKey(
        Section, related_name="assignments", on_delete=models.CASCADE
    )
    title = models.CharField(max_length=255, validators=[MinLengthValidator(3)])
    description = models.TextField(blank=True)
    type = models.CharField(max_length=4, choices=Type.choices, default=Type.TEXT)
    deadline = models.DateTimeField()
    text_content = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("deadline", "pk")

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return self.title

    @property
    def is_overdue(self) -> bool:
        return timezone.now() > self.deadline


class Submission(StoredObject):
    """A student's submission for a particular assignment."""

    assignment = models.ForeignKey(
        Assignment, related_name="submissions", on_delete=models.CASCADE
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name="submissions", on_delete=models.CASCADE
    )
    text_content = models.TextField(blank=True)
    grade = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    feedback = models.TextField(blank=True)
    submitted_at = models.DateTimeField(auto_now_add=True)
    graded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = ("assignment", "student")
        ordering = ("-submitted_at",)

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return f"{self.student} - {self.assignment}"

    @property
    def is_graded(self) -> bool:
        return self.grade is not None

    @property
    def is_late(self) -> bool:
        return self.submitted_at > self.assignment.deadline


def referenced_file_keys() -> set[str]:
    """Every object key still used by a document, assignment or submission."""

    keys: set[str] = set()
    for model in (Document, Assignment, Submission):
        keys.update(model.objects.exclude(file_key="").values_list("file_key", flat=True))
    return keys
