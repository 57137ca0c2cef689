from django import forms
from django.contrib.auth import get_user_model
from django.contrib.auth.forms import AuthenticationForm
from django.contrib.auth.password_validation import validate_password
from django.db import transaction
from django.utils.translation import gettext_lazy as _

from academics.models import Department

from .models import FacultyProfile, StudentProfile

User = get_user_model()


def _split_name(name: str) -> tuple[str, str]:
    first, _sep, last = name.strip().partition(" ")
    return first, last.strip()


class LoginForm(AuthenticationForm):
    pass


class SignupForm(forms.Form):
    """Self-registration for students."""

    name = forms.CharField(label=_("Full name"), min_length=3, max_length=150)
    email = forms.EmailField(label=_("Email"))
    banner_no = forms.CharField(label=_("Banner number"), max_length=32)
    date_of_birth = forms.DateField(
        label=_("Date of birth"),
        required=False,
        widget=forms.DateInput(attrs={"type": "date"}),
    )
    password = forms.CharField(label=_("Password"), widget=forms.PasswordInput)

    def clean_email(self):
        email = self.cleaned_data["email"].lower()
        if User.objects.filter(username=email).exists():
            raise forms.ValidationError(_("An account with this email already exists"))
        return email

    def clean_banner_no(self):
        banner_no = self.cleaned_data["banner_no"].strip()
        if StudentProfile.objects.filter(banner_no=banner_no).exists():
            raise forms.ValidationError(_("This banner number is already registered"))
        return banner_no

    def clean_password(self):
        password = self.cleaned_data["password"]
        validate_password(password)
        return password

    @transaction.atomic
    def save(self):
        first_name, last_name = _split_name(self.cleaned_data["name"])
        user = User(
            username=self.cleaned_data["email"],
            email=self.cleaned_data["email"],
            first_name=first_name,
            last_name=last_name,
        )
        user.set_password(self.cleaned_data["password"])
        user.save()
        StudentProfile.objects.create(
            user=user,
            banner_no=self.cleaned_data["banner_no"],
            date_of_birth=self.cleaned_data.get("date_of_birth"),
        )
        return user


class FacultyForm(forms.Form):
    """Create or edit a faculty account.

    The password is mandatory when creating an account. When editing, an empty
    password keeps the current one.
    """

    name = forms.CharField(
        label=_("Name"),
        min_length=3,
        max_length=150,
        error_messages={"min_length": _("Name must be at least 3 characters")},
    )
    email = forms.EmailField(
        label=_("Email"),
        error_messages={"invalid": _("Please enter a valid email")},
    )
    department = forms.ModelChoiceField(
        label=_("Department"),
        queryset=Department.objects.order_by("name"),
    )
    password = forms.CharField(
        label=_("Password"),
        required=False,
        widget=forms.PasswordInput,
    )

    def __init__(self, *args, instance: FacultyProfile | None = None, **kwargs):
        self.instance = instance
        if instance is not None:
            kwargs.setdefault(
                "initial",
                {
                    "name": instance.user.get_full_name(),
                    "email": instance.user.email,
                    "department": instance.department_id,
                },
            )
        super().__init__(*args, **kwargs)

    def clean_email(self):
        email = self.cleaned_data["email"].lower()
        existing = User.objects.filter(username=email)
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.user_id)
        if existing.exists():
            raise forms.ValidationError(_("A user with this email already exists"))
        return email

    def clean_password(self):
        password = self.cleaned_data.get("password") or ""
        if not password:
            if self.instance is None:
                raise forms.ValidationError(_("Password is required"))
            return ""
        if len(password) < 8:
            raise forms.ValidationError(_("Password must be at least 8 characters"))
        return password

    @transaction.atomic
    def save(self) -> FacultyProfile:
        first_name, last_name = _split_name(self.cleaned_data["name"])
        email = self.cleaned_data["email"]
        password = self.cleaned_data.get("password")

        if self.instance is None:
            user = User(username=email)
            profile = FacultyProfile(user=user)
        else:
            profile = self.instance
            user = profile.user

        user.username = email
        user.email = email
        user.first_name = first_name
        user.last_name = last_name
        if password:
            user.set_password(password)
        user.save()

        profile.user = user
        profile.department = self.cleaned_data["department"]
        profile.save()
        return profile
