import logging

from django.contrib import messages
from django.db.models import Count, Prefetch
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse_lazy
from django.utils.translation import gettext_lazy as _
from django.views.decorators.http import require_POST
from django.views.generic import CreateView, ListView, UpdateView, View

from accounts.permissions import StaffRequiredMixin, student_required
from coursehub.http import BadRequestFormMixin, bad_request, field_errors

from .forms import (
    CourseForm,
    DepartmentForm,
    EnrollmentForm,
    RoomForm,
    SectionForm,
    build_time_slot_formset,
)
from .models import Course, Department, Enrollment, Room, Section, TimeSlot
from .services import (
    EnrollmentError,
    SlotRequest,
    create_section,
    drop_enrollment,
    enroll_student,
    find_slot_conflicts,
)

logger = logging.getLogger(__name__)


def _week_ordered_slots() -> Prefetch:
    return Prefetch("time_slots", queryset=TimeSlot.objects.in_week_order())


class ManageMixin(StaffRequiredMixin):
    """Common settings for the administrator CRUD pages of one model."""

    model = None
    title = ""
    list_url_name = ""

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["title"] = self.title
        context["list_url"] = reverse_lazy(self.list_url_name)
        return context


class ManageFormMixin(ManageMixin, BadRequestFormMixin):
    template_name = "academics/manage_form.html"
    success_message = ""

    def get_success_url(self):
        return reverse_lazy(self.list_url_name)

    def form_valid(self, form):
        response = super().form_valid(form)
        logger.info("Saved %s %s", self.model._meta.model_name, self.object.pk)
        messages.success(self.request, self.success_message)
        return response


class ManageDeleteView(ManageMixin, View):
    http_method_names = ["post"]
    protected_message = ""

    def post(self, request, pk):
        obj = get_object_or_404(self.model, pk=pk)
        try:
            obj.delete()
        except ProtectedError:
            messages.error(request, self.protected_message)
        else:
            logger.info("Deleted %s %s", self.model._meta.model_name, pk)
            messages.success(request, _("%(name)s deleted.") % {"name": obj})
        return redirect(self.list_url_name)


# Departments

class DepartmentListView(ManageMixin, ListView):
    model = Department
    title = _("Departments")
    list_url_name = "academics:department-list"
    template_name = "academics/department_list.html"
    context_object_name = "departments"

    def get_queryset(self):
        return Department.objects.annotate(course_count=Count("courses"))


class DepartmentCreateView(ManageFormMixin, CreateView):
    model = Department
    form_class = DepartmentForm
    title = _("New department")
    list_url_name = "academics:department-list"
    success_message = _("Department created.")


class DepartmentUpdateView(ManageFormMixin, UpdateView):
    model = Department
    form_class = DepartmentForm
    title = _("Edit department")
    list_url_name = "academics:department-list"
    success_message = _("Department updated.")


class DepartmentDeleteView(ManageDeleteView):
    model = Department
    list_url_name = "academics:department-list"
    protected_message = _("Department still has courses or faculty and cannot be deleted.")


# Courses

class CourseListView(ManageMixin, ListView):
    model = Course
    title = _("Courses")
    list_url_name = "academics:course-list"
    template_name = "academics/course_list.html"
    context_object_name = "courses"

    def get_queryset(self):
        return Course.objects.select_related("department", "semester").annotate(
            section_count=Count("sections")
        )


class CourseCreateView(ManageFormMixin, CreateView):
    model = Course
    form_class = CourseForm
    title = _("New course")
    list_url_name = "academics:course-list"
    success_message = _("Course created.")


class CourseUpdateView(ManageFormMixin, UpdateView):
    model = Course
    form_class = CourseForm
    title = _("Edit course")
    list_url_name = "academics:course-list"
    success_message = _("Course updated.")


class CourseDeleteView(ManageDeleteView):
    model = Course
    list_url_name = "academics:course-list"
    protected_message = _("Course cannot be deleted while its sections are in use.")


# Rooms

class RoomListView(ManageMixin, ListView):
    model = Room
    title = _("Rooms")
    list_url_name = "academics:room-list"
    template_name = "academics/room_list.html"
    context_object_name = "rooms"


class RoomCreateView(ManageFormMixin, CreateView):
    model = Room
    form_class = RoomForm
    title = _("New room")
    list_url_name = "academics:room-list"
    success_message = _("Room created.")


class RoomUpdateView(ManageFormMixin, UpdateView):
    model = Room
    form_class = RoomForm
    title = _("Edit room")
    list_url_name = "academics:room-list"
    success_message = _("Room updated.")


class RoomDeleteView(ManageDeleteView):
    model = Room
    list_url_name = "academics:room-list"
    protected_message = _("Room is assigned to sections and cannot be deleted.")


# Sections

class SectionListView(ManageMixin, ListView):
    model = Section
    title = _("Sections")
    list_url_name = "academics:section-list"
    template_name = "academics/section_list.html"
    context_object_name = "sections"

    def get_queryset(self):
        return (
            Section.objects.select_related("course", "room", "faculty")
            .prefetch_related(_week_ordered_slots())
            .annotate(student_count=Count("enrollments"))
        )


class SectionCreateView(ManageMixin, View):
    """Create a section together with its weekly time slots."""

    title = _("New section")
    list_url_name = "academics:section-list"
    template_name = "academics/section_form.html"

    def get_context_data(self, **kwargs):
        kwargs["title"] = self.title
        kwargs["list_url"] = reverse_lazy(self.list_url_name)
        return kwargs

    def get(self, request):
        context = self.get_context_data(
            form=SectionForm(), formset=build_time_slot_formset()
        )
        return render(request, self.template_name, context)

    def post(self, request):
        form = SectionForm(request.POST)
        form_ok = form.is_valid()
        formset = build_time_slot_formset(
            data=request.POST,
            room=form.cleaned_data.get("room"),
            faculty=form.cleaned_data.get("faculty"),
        )
        if not (form_ok and formset.is_valid()):
            errors = field_errors(form)
            if formset.non_form_errors():
                errors["slots"] = str(formset.non_form_errors()[0])
            for index, slot_errors in enumerate(formset.errors):
                for field, messages_ in slot_errors.items():
                    errors.setdefault(f"slots-{index}-{field}", str(messages_[0]))
            return bad_request(
                request,
                errors=errors,
                template_name=self.template_name,
                context=self.get_context_data(form=form, formset=formset),
            )

        section = create_section(slots=formset.slots(), **form.cleaned_data)
        logger.info("Created section %s with %d slots", section.code, section.time_slots.count())
        messages.success(request, _("Section created."))
        return redirect(self.list_url_name)


class SectionUpdateView(ManageFormMixin, UpdateView):
    model = Section
    form_class = SectionForm
    title = _("Edit section")
    list_url_name = "academics:section-list"
    success_message = _("Section updated.")

    def form_valid(self, form):
        slots = [
            SlotRequest(day=slot.day, start_time=slot.start_time, end_time=slot.end_time)
            for slot in self.object.time_slots.all()
        ]
        conflicts = find_slot_conflicts(
            slots,
            room=form.cleaned_data["room"],
            faculty=form.cleaned_data["faculty"],
            exclude_section=self.object,
        )
        if conflicts:
            form.add_error(None, conflicts)
            return self.form_invalid(form)
        return super().form_valid(form)


class SectionDeleteView(ManageDeleteView):
    model = Section
    list_url_name = "academics:section-list"
    protected_message = _("Section cannot be deleted.")


# Student catalog

def _catalog_context(student) -> dict:
    sections = Section.objects.select_related("room", "faculty").prefetch_related(
        _week_ordered_slots()
    )
    courses = Course.objects.select_related("department", "semester").prefetch_related(
        Prefetch("sections", queryset=sections)
    )
    enrolled_section_ids = set(
        Enrollment.objects.filter(student=student).values_list("section_id", flat=True)
    )
    enrolled_course_ids = set(
        Section.objects.filter(pk__in=enrolled_section_ids).values_list("course_id", flat=True)
    )
    return {
        "courses": courses,
        "enrolled_section_ids": enrolled_section_ids,
        "enrolled_course_ids": enrolled_course_ids,
    }


@student_required
def course_catalog(request):
    """List every course with its sections and the student's enrollment state."""

    return render(request, "academics/catalog.html", _catalog_context(request.user))


@require_POST
@student_required
def enroll(request):
    form = EnrollmentForm(request.POST)
    errors = field_errors(form) if not form.is_valid() else {}

    if not errors:
        section = form.cleaned_data["section"]
        try:
            enroll_student(request.user, section)
        except EnrollmentError as exc:
            errors = {"section": str(exc)}

    if errors:
        context = _catalog_context(request.user)
        context["enroll_error"] = errors["section"]
        return bad_request(
            request, errors=errors, template_name="academics/catalog.html", context=context
        )

    messages.success(request, _("Enrolled in %(section)s.") % {"section": section})
    return redirect("academics:my-sections")


@student_required
def my_sections(request):
    sections = (
        Section.objects.filter(enrollments__student=request.user)
        .select_related("course", "room", "faculty")
        .prefetch_related(_week_ordered_slots())
        .order_by("course__code")
    )
    return render(request, "academics/my_sections.html", {"sections": sections})


@require_POST
@student_required
def drop(request, section_id):
    if drop_enrollment(request.user, section_id):
        logger.info("User %s dropped section %s", request.user.pk, section_id)
        messages.success(request, _("Section dropped."))
    else:
        messages.error(request, _("You are not enrolled in that section."))
    return redirect("academics:my-sections")
