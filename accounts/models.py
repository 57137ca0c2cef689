from django.conf import settings
from django.db import models


class StudentProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    banner_no = models.CharField(max_length=32, unique=True)
    date_of_birth = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ("banner_no",)

    def __str__(self):
        return f"{self.user.username} (student)"


class FacultyProfile(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    department = models.ForeignKey(
        "academics.Department",
        on_delete=models.PROTECT,
        related_name="faculty_members",
    )

    def __str__(self):
        return f"{self.user.username} (faculty)"


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    FACULTY = "faculty", "Faculty"
    STUDENT = "student", "Student"


def get_user_role(user) -> str | None:
    """Return the role of ``user`` or ``None`` for anonymous/unassigned users.

    Staff accounts are administrators regardless of profiles. A user that
    somehow carries both profiles is treated as faculty.
    """

    if not user or not user.is_authenticated:
        return None
    if user.is_staff:
        return Role.ADMIN
    if hasattr(user, "facultyprofile"):
        return Role.FACULTY
    if hasattr(user, "studentprofile"):
        return Role.STUDENT
    return None


def display_name(user) -> str:
    return user.get_full_name() or user.username
