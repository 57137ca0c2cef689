from django import forms
from django.utils.translation import gettext_lazy as _

from .models import Assignment, Document, Submission
from .services import DUPLICATE_SUBMISSION_MESSAGE, has_submitted

DATETIME_INPUT_FORMAT = "%Y-%m-%dT%H:%M"


class FileOrKeyMixin(forms.Form):
    """A file field that also accepts the key of an object PUT by the browser.

    ``file`` carries a multipart upload; ``file_key`` is filled in by the page
    script after a presigned upload succeeded. At most one is used, the
    uploaded file taking precedence.
    """

    file = forms.FileField(label=_("File"), required=False)
    file_key = forms.CharField(required=False, max_length=512, widget=forms.HiddenInput)

    def has_upload(self) -> bool:
        return bool(self.cleaned_data.get("file") or self.cleaned_data.get("file_key"))

    def upload_kwargs(self) -> dict:
        upload = self.cleaned_data.get("file")
        if upload:
            return {"upload": upload}
        return {"key": self.cleaned_data.get("file_key", "").strip()}

    def model_data(self) -> dict:
        return {name: self.cleaned_data[name] for name in self._meta.fields}


class DocumentForm(FileOrKeyMixin, forms.ModelForm):
    class Meta:
        model = Document
        fields = ("name", "description", "visible")
        widgets = {"description": forms.Textarea(attrs={"rows": 4})}
        error_messages = {
            "name": {"min_length": _("Name must be at least 3 characters")},
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance.pk:
            del self.fields["file"]
            del self.fields["file_key"]

    def clean(self):
        cleaned_data = super().clean()
        if not self.instance.pk and not self.has_upload():
            self.add_error("file", _("File is required"))
        return cleaned_data


class AssignmentForm(FileOrKeyMixin, forms.ModelForm):
    class Meta:
        model = Assignment
        fields = ("title", "description", "type", "deadline", "text_content")
        labels = {"text_content": _("Assignment text")}
        widgets = {
            "description": forms.Textarea(attrs={"rows": 3}),
            "text_content": forms.Textarea(attrs={"rows": 6}),
            "deadline": forms.DateTimeInput(
                attrs={"type": "datetime-local"}, format=DATETIME_INPUT_FORMAT
            ),
        }
        error_messages = {
            "title": {"min_length": _("Title must be at least 3 characters")},
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance.pk:
            del self.fields["file"]
            del self.fields["file_key"]

    def clean(self):
        cleaned_data = super().clean()
        kind = cleaned_data.get("type")
        if kind == Assignment.Type.FILE:
            has_file = self.instance.has_file if self.instance.pk else self.has_upload()
            if not has_file:
                self.add_error("file" if "file" in self.fields else "type", _(
                    "A file is required for file assignments"
                ))
        elif kind == Assignment.Type.TEXT and not cleaned_data.get("text_content", "").strip():
            self.add_error("text_content", _("Text content is required for text assignments"))
        return cleaned_data


class SubmissionForm(FileOrKeyMixin, forms.Form):
    text_content = forms.CharField(
        label=_("Answer"), required=False, widget=forms.Textarea(attrs={"rows": 8})
    )

    def __init__(self, *args, assignment: Assignment, student, **kwargs):
        self.assignment = assignment
        self.student = student
        super().__init__(*args, **kwargs)
        if assignment.type == Assignment.Type.TEXT:
            del self.fields["file"]
            del self.fields["file_key"]

    def clean(self):
        cleaned_data = super().clean()
        if has_submitted(self.student, self.assignment):
            raise forms.ValidationError(
                {"text_content": DUPLICATE_SUBMISSION_MESSAGE}, code="duplicate"
            )
        if self.assignment.type == Assignment.Type.FILE:
            if not self.has_upload():
                self.add_error("file", _("Please attach a file"))
        elif not cleaned_data.get("text_content", "").strip():
            self.add_error("text_content", _("Please write your answer"))
        return cleaned_data

    def upload_kwargs(self) -> dict:
        if self.assignment.type == Assignment.Type.TEXT:
            return {}
        return super().upload_kwargs()


class GradeSubmissionForm(forms.Form):
    submission = forms.ModelChoiceField(
        queryset=Submission.objects.none(),
        widget=forms.HiddenInput,
        error_messages={"invalid_choice": _("Submission not found")},
    )
    grade = forms.DecimalField(
        label=_("Grade"),
        max_digits=5,
        decimal_places=2,
        min_value=0,
        max_value=100,
        error_messages={
            "required": _("Grade is required"),
            "invalid": _("Grade must be a number"),
            "min_value": _("Grade must be between 0 and 100"),
            "max_value": _("Grade must be between 0 and 100"),
        },
    )
    feedback = forms.CharField(
        label=_("Feedback"), required=False, widget=forms.Textarea(attrs={"rows": 3})
    )

    def __init__(self, *args, submissions=None, **kwargs):
        super().__init__(*args, **kwargs)
        if submissions is not None:
            self.fields["submission"].queryset = submissions
