import logging

from django.contrib import messages
from django.contrib.auth import get_user_model, login
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse_lazy
from django.utils.translation import gettext_lazy as _
from django.views.generic import FormView, ListView, View

from coursehub.http import BadRequestFormMixin, form_error_response

from .forms import FacultyForm, SignupForm
from .models import FacultyProfile, StudentProfile
from .permissions import StaffRequiredMixin


logger = logging.getLogger(__name__)

User = get_user_model()


def signup(request):
    """Register a new student account and log them in."""

    if request.method == "POST":
        form = SignupForm(request.POST)
        if form.is_valid():
            user = form.save()
            login(request, user)
            return redirect("home")
        return form_error_response(request, form, "accounts/signup.html")
    form = SignupForm()
    return render(request, "accounts/signup.html", {"form": form})


class FacultyListView(StaffRequiredMixin, ListView):
    template_name = "accounts/faculty_list.html"
    context_object_name = "faculty_members"

    def get_queryset(self):
        return FacultyProfile.objects.select_related("user", "department").order_by(
            "user__first_name", "user__last_name"
        )


class FacultyCreateView(StaffRequiredMixin, BadRequestFormMixin, FormView):
    template_name = "accounts/faculty_form.html"
    form_class = FacultyForm
    success_url = reverse_lazy("accounts:faculty-list")

    def form_valid(self, form):
        profile = form.save()
        logger.info("Created faculty account %s", profile.user.username)
        messages.success(self.request, _("Faculty account created."))
        return super().form_valid(form)


class FacultyUpdateView(StaffRequiredMixin, BadRequestFormMixin, FormView):
    template_name = "accounts/faculty_form.html"
    form_class = FacultyForm
    success_url = reverse_lazy("accounts:faculty-list")

    def dispatch(self, request, *args, **kwargs):
        self.profile = get_object_or_404(
            FacultyProfile.objects.select_related("user"), pk=kwargs["pk"]
        )
        return super().dispatch(request, *args, **kwargs)

    def get_form_kwargs(self):
        kwargs = super().get_form_kwargs()
        kwargs["instance"] = self.profile
        return kwargs

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["profile"] = self.profile
        return context

    def form_valid(self, form):
        form.save()
        messages.success(self.request, _("Faculty account updated."))
        return super().form_valid(form)


class FacultyDeleteView(StaffRequiredMixin, View):
    http_method_names = ["post"]

    def post(self, request, pk):
        profile = get_object_or_404(FacultyProfile.objects.select_related("user"), pk=pk)
        try:
            profile.user.delete()
        except ProtectedError:
            messages.error(
                request, _("This faculty member still teaches sections and cannot be deleted.")
            )
        else:
            messages.success(request, _("Faculty account deleted."))
        return redirect("accounts:faculty-list")


class StudentListView(StaffRequiredMixin, ListView):
    template_name = "accounts/student_list.html"
    context_object_name = "students"

    def get_queryset(self):
        return StudentProfile.objects.select_related("user").order_by("banner_no")
