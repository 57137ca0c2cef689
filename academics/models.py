from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import models
from django.urls import reverse


class TimeStampedModel(models.Model):
    """Reusable timestamped base model for academic entities."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Department(TimeStampedModel):
    name = models.CharField(
        max_length=120,
        unique=True,
        validators=[MinLengthValidator(3)],
    )

    class Meta:
        ordering = ("name",)

    def __str__(self) -> str:
        return self.name


class Semester(TimeStampedModel):
    name = models.CharField(max_length=120, unique=True)
    start_date = models.DateField()
    end_date = models.DateField()

    class Meta:
        ordering = ("-start_date", "name")

    def clean(self):
        super().clean()
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": "End date must not be before the start date."})

    def __str__(self) -> str:
        return self.name


class Course(TimeStampedModel):
    name = models.CharField(max_length=255, unique=True, validators=[MinLengthValidator(3)])
    code = models.CharField(max_length=32, unique=True, validators=[MinLengthValidator(3)])
    description = models.TextField()
    credit_hours = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(12)],
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name="courses",
    )
    semester = models.ForeignKey(
        Semester,
        on_delete=models.PROTECT,
        related_name="courses",
    )

    class Meta:
        ordering = ("code",)

    def __str__(self) -> str:
        return f"{self.code} {self.name}"


class Room(TimeStampedModel):
    number = models.CharField(max_length=32, unique=True, validators=[MinLengthValidator(3)])
    max_capacity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        ordering = ("number",)

    def __str__(self) -> str:
        return self.number


class Section(TimeStampedModel):
    name = models.CharField(max_length=120)
    code = models.CharField(max_length=32, unique=True)
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="sections",
    )
    room = models.ForeignKey(
        Room,
        on_delete=models.PROTECT,
        related_name="sections",
    )
    faculty = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="taught_sections",
    )
    students = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="Enrollment",
        related_name="enrolled_sections",
        blank=True,
    )

    class Meta:
        ordering = ("course__code", "code")

    def __str__(self) -> str:
        return f"{self.code} ({self.name})"

    def get_absolute_url(self) -> str:
        return reverse("coursework:faculty-section-detail", kwargs={"section_id": self.pk})


class TimeSlotQuerySet(models.QuerySet):
    def in_week_order(self):
        """Order by weekday (Monday first), then start time."""

        day_index = models.Case(
            *[
                models.When(day=day, then=models.Value(index))
                for index, day in enumerate(TimeSlot.Day.values)
            ],
            output_field=models.IntegerField(),
        )
        return self.annotate(day_index=day_index).order_by("day_index", "start_time")


class TimeSlot(models.Model):
    class Day(models.TextChoices):
        MONDAY = "MONDAY", "Monday"
        TUESDAY = "TUESDAY", "Tuesday"
        WEDNESDAY = "WEDNESDAY", "Wednesday"
        THURSDAY = "THURSDAY", "Thursday"
        FRIDAY = "FRIDAY", "Friday"
        SATURDAY = "SATURDAY", "Saturday"
        SUNDAY = "SUNDAY", "Sunday"

    section = models.ForeignKey(
        Section,
        on_delete=models.CASCADE,
        related_name="time_slots",
    )
    day = models.CharField(max_length=10, choices=Day.choices)
    start_time = models.TimeField()
    end_time = models.TimeField()

    objects = TimeSlotQuerySet.as_manager()

    class Meta:
        ordering = ("section", "day", "start_time")
        indexes = [
            models.Index(fields=["day", "start_time"], name="academics_slot_day_idx"),
        ]

    def clean(self):
        super().clean()
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError({"end_time": "End time must be after the start time."})

    def overlaps(self, other: "TimeSlot") -> bool:
        return (
            self.day == other.day
            and self.start_time < other.end_time
            and other.start_time < self.end_time
        )

    def __str__(self) -> str:
        return f"{self.get_day_display()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


class Enrollment(models.Model):
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="enrollments",
    )
    section = models.ForeignKey(
        Section,
        on_delete=models.CASCADE,
        related_name="enrollments",
    )
    enrolled_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("student", "section")
        verbose_name = "Enrollment"
        verbose_name_plural = "Enrollments"

    def __str__(self) -> str:
        return f"{self.student} → {self.section}"
