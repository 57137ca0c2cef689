from django import forms
from django.contrib.auth import get_user_model
from django.forms import formset_factory
from django.utils.translation import gettext_lazy as _

from .models import Course, Department, Room, Section, TimeSlot
from .services import SlotRequest, find_slot_conflicts

User = get_user_model()


class UniqueFieldsMixin:
    """Pre-check unique fields so duplicates surface as field errors.

    ``unique_messages`` maps a field name to the error shown when another row
    already holds the submitted value.
    """

    unique_messages: dict = {}

    def _check_unique(self, field: str, value):
        model = self._meta.model
        lookup = {f"{field}__iexact": value} if isinstance(value, str) else {field: value}
        queryset = model.objects.filter(**lookup)
        if self.instance.pk:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise forms.ValidationError(self.unique_messages[field], code="unique")
        return value

    def clean(self):
        cleaned_data = super().clean()
        for field in self.unique_messages:
            if field in cleaned_data and field not in self.errors:
                try:
                    self._check_unique(field, cleaned_data[field])
                except forms.ValidationError as exc:
                    self.add_error(field, exc)
        return cleaned_data


class DepartmentForm(UniqueFieldsMixin, forms.ModelForm):
    unique_messages = {"name": _("Department name already exists")}

    class Meta:
        model = Department
        fields = ("name",)
        error_messages = {
            "name": {"min_length": _("Name must be at least 3 characters")},
        }


class CourseForm(UniqueFieldsMixin, forms.ModelForm):
    unique_messages = {
        "name": _("Course with same name already exists"),
        "code": _("Course with same code already exists"),
    }

    class Meta:
        model = Course
        fields = ("name", "description", "code", "credit_hours", "department", "semester")
        labels = {"credit_hours": _("Credit hours")}
        widgets = {"description": forms.Textarea(attrs={"rows": 3})}
        error_messages = {
            "name": {"min_length": _("Name must be at least 3 characters")},
            "code": {"min_length": _("Code must be at least 3 characters")},
        }

    def clean_description(self):
        description = self.cleaned_data["description"].strip()
        if len(description) < 3:
            raise forms.ValidationError(_("Description must be at least 3 characters"))
        return description


class RoomForm(UniqueFieldsMixin, forms.ModelForm):
    unique_messages = {"number": _("Room with this number already exists")}

    class Meta:
        model = Room
        fields = ("number", "max_capacity")
        labels = {"number": _("Room No."), "max_capacity": _("Max capacity")}
        error_messages = {
            "number": {"min_length": _("Room number must be at least 3 characters")},
        }


class SectionForm(UniqueFieldsMixin, forms.ModelForm):
    unique_messages = {"code": _("Section with this code already exists")}

    class Meta:
        model = Section
        fields = ("name", "code", "course", "room", "faculty")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["course"].queryset = Course.objects.order_by("code")
        self.fields["room"].queryset = Room.objects.order_by("number")
        self.fields["faculty"].queryset = (
            User.objects.filter(facultyprofile__isnull=False)
            .order_by("first_name", "last_name")
        )
        self.fields["faculty"].label_from_instance = (
            lambda user: user.get_full_name() or user.username
        )


class TimeSlotForm(forms.Form):
    day = forms.ChoiceField(label=_("Day"), choices=TimeSlot.Day.choices, required=False)
    start_time = forms.TimeField(
        label=_("Start"), required=False, widget=forms.TimeInput(attrs={"type": "time"})
    )
    end_time = forms.TimeField(
        label=_("End"), required=False, widget=forms.TimeInput(attrs={"type": "time"})
    )

    def clean(self):
        cleaned_data = super().clean()
        values = [cleaned_data.get(name) for name in ("day", "start_time", "end_time")]
        if not any(values):
            return cleaned_data
        if not all(values):
            raise forms.ValidationError(_("Day, start and end time are all required."))
        if cleaned_data["start_time"] >= cleaned_data["end_time"]:
            self.add_error("end_time", _("End time must be after the start time."))
        return cleaned_data

    def to_slot(self) -> SlotRequest | None:
        data = getattr(self, "cleaned_data", None) or {}
        if not data.get("day") or data.get("DELETE"):
            return None
        return SlotRequest(
            day=data["day"], start_time=data["start_time"], end_time=data["end_time"]
        )


class BaseTimeSlotFormSet(forms.BaseFormSet):
    """Collects slots and rejects overlaps against each other and the timetable."""

    room = None
    faculty = None

    def slots(self) -> list[SlotRequest]:
        return [slot for slot in (form.to_slot() for form in self.forms) if slot]

    def clean(self):
        super().clean()
        if any(self.errors):
            return
        conflicts = find_slot_conflicts(self.slots(), room=self.room, faculty=self.faculty)
        if conflicts:
            raise forms.ValidationError(conflicts)


TimeSlotFormSet = formset_factory(
    TimeSlotForm, formset=BaseTimeSlotFormSet, extra=3, can_delete=True
)


def build_time_slot_formset(*, data=None, room=None, faculty=None, prefix: str = "slots"):
    """Return a time-slot formset checking conflicts for ``room`` and ``faculty``."""

    formset = TimeSlotFormSet(data=data, prefix=prefix)
    formset.room = room
    formset.faculty = faculty
    return formset


class EnrollmentForm(forms.Form):
    section = forms.ModelChoiceField(
        queryset=Section.objects.select_related("course"),
        error_messages={"required": _("Invalid request"), "invalid_choice": _("Invalid request")},
    )
