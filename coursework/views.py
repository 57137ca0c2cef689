"""Faculty and student pages for section documents, assignments and grading."""

import logging

from django.contrib import messages
from django.core.exceptions import PermissionDenied
from django.db.models import Count, Prefetch
from django.shortcuts import get_object_or_404, redirect, render
from django.utils.translation import gettext_lazy as _

from academics.models import Section, TimeSlot
from accounts.permissions import faculty_required, student_required
from coursehub.http import form_error_response
from uploads.storage import StorageNotConfigured, UploadMissing

from .forms import AssignmentForm, DocumentForm, GradeSubmissionForm, SubmissionForm
from .models import Assignment, Document, Submission
from .services import (
    DuplicateSubmission,
    UploadRejected,
    create_assignment,
    create_document,
    create_submission,
    delete_with_object,
    ensure_enrolled,
    grade_submission,
)

logger = logging.getLogger(__name__)

UPLOAD_ERRORS = {
    UploadMissing: _("The uploaded file could not be found. Please upload it again."),
    UploadRejected: _("This file was not uploaded by you."),
    StorageNotConfigured: _("File upload failed. Please try again later."),
}


def _store(form, save):
    """Run ``save()`` and turn upload failures into a ``file`` field error.

    Returns the saved object, or ``None`` when an error was added to ``form``.
    """

    try:
        return save()
    except tuple(UPLOAD_ERRORS) as exc:
        for error_type, message in UPLOAD_ERRORS.items():
            if isinstance(exc, error_type):
                field = "file" if "file" in form.fields else None
                form.add_error(field, message)
                break
        return None


def _taught_section(request, section_id) -> Section:
    section = get_object_or_404(
        Section.objects.select_related("course", "room"), pk=section_id
    )
    if section.faculty_id != request.user.pk:
        raise PermissionDenied("You do not teach this section")
    return section


# Faculty

@faculty_required
def faculty_sections(request):
    sections = (
        Section.objects.filter(faculty=request.user)
        .select_related("course", "room")
        .prefetch_related(
            Prefetch("time_slots", queryset=TimeSlot.objects.in_week_order())
        )
        .annotate(student_count=Count("enrollments", distinct=True))
        .order_by("course__code", "code")
    )
    return render(request, "coursework/faculty/sections.html", {"sections": sections})


@faculty_required
def faculty_section_detail(request, section_id):
    section = _taught_section(request, section_id)
    context = {
        "section": section,
        "documents": section.documents.all(),
        "assignments": section.assignments.annotate(
            submission_count=Count("submissions")
        ).order_by("deadline"),
        "students": section.students.order_by("first_name", "last_name"),
    }
    return render(request, "coursework/faculty/section_detail.html", context)


@faculty_required
def document_create(request, section_id):
    section = _taught_section(request, section_id)
    template = "coursework/faculty/document_form.html"
    if request.method == "POST":
        form = DocumentForm(request.POST, request.FILES)
        if form.is_valid():
            document = _store(
                form,
                lambda: create_document(
                    section,
                    data=form.model_data(),
                    user=request.user,
                    **form.upload_kwargs(),
                ),
            )
            if document is not None:
                logger.info("Document %s added to section %s", document.pk, section.pk)
                messages.success(request, _("Document uploaded."))
                return redirect(section)
        return form_error_response(request, form, template, {"section": section})
    return render(request, template, {"form": DocumentForm(), "section": section})


@faculty_required
def document_edit(request, section_id, document_id):
    section = _taught_section(request, section_id)
    document = get_object_or_404(Document, pk=document_id, section=section)
    template = "coursework/faculty/document_form.html"
    context = {"section": section, "document": document}

    if request.method == "POST":
        if request.POST.get("intent") == "delete":
            delete_with_object(document)
            messages.success(request, _("Document deleted."))
            return redirect(section)
        form = DocumentForm(request.POST, instance=document)
        if form.is_valid():
            form.save()
            messages.success(request, _("Document updated."))
            return redirect(section)
        return form_error_response(request, form, template, context)

    context["form"] = DocumentForm(instance=document)
    return render(request, template, context)


@faculty_required
def assignment_create(request, section_id):
    section = _taught_section(request, section_id)
    template = "coursework/faculty/assignment_form.html"
    if request.method == "POST":
        form = AssignmentForm(request.POST, request.FILES)
        if form.is_valid():
            upload = form.upload_kwargs() if form.cleaned_data["type"] == Assignment.Type.FILE else {}
            assignment = _store(
                form,
                lambda: create_assignment(
                    section,
                    data=form.model_data(),
                    user=request.user,
                    **upload,
                ),
            )
            if assignment is not None:
                logger.info("Assignment %s added to section %s", assignment.pk, section.pk)
                messages.success(request, _("Assignment created."))
                return redirect(section)
        return form_error_response(request, form, template, {"section": section})
    return render(request, template, {"form": AssignmentForm(), "section": section})


@faculty_required
def assignment_edit(request, section_id, assignment_id):
    section = _taught_section(request, section_id)
    assignment = get_object_or_404(Assignment, pk=assignment_id, section=section)
    template = "coursework/faculty/assignment_form.html"
    context = {"section": section, "assignment": assignment}

    if request.method == "POST":
        if request.POST.get("intent") == "delete":
            delete_with_object(assignment)
            messages.success(request, _("Assignment deleted."))
            return redirect(section)
        form = AssignmentForm(request.POST, instance=assignment)
        if form.is_valid():
            form.save()
            messages.success(request, _("Assignment updated."))
            return redirect(
                "coursework:faculty-assignment-detail",
                section_id=section.pk,
                assignment_id=assignment.pk,
            )
        return form_error_response(request, form, template, context)

    context["form"] = AssignmentForm(instance=assignment)
    return render(request, template, context)


def _grade_from_post(request, submissions, template, context):
    """Validate and apply a grading POST; ``None`` on success."""

    form = GradeSubmissionForm(request.POST, submissions=submissions)
    if not form.is_valid():
        context["grade_form"] = form
        return form_error_response(request, form, template, context)
    grade_submission(
        form.cleaned_data["submission"],
        grade=form.cleaned_data["grade"],
        feedback=form.cleaned_data["feedback"],
        grader=request.user,
    )
    messages.success(request, _("Grade saved."))
    return None


@faculty_required
def faculty_assignment_detail(request, section_id, assignment_id):
    section = _taught_section(request, section_id)
    assignment = get_object_or_404(Assignment, pk=assignment_id, section=section)
    submissions = assignment.submissions.select_related("student").order_by(
        "student__first_name", "student__last_name"
    )
    template = "coursework/faculty/assignment_detail.html"
    context = {
        "section": section,
        "assignment": assignment,
        "submissions": submissions,
        "missing": section.students.exclude(submissions__assignment=assignment),
    }

    if request.method == "POST":
        response = _grade_from_post(request, submissions, template, context)
        if response is not None:
            return response
        return redirect(
            "coursework:faculty-assignment-detail",
            section_id=section.pk,
            assignment_id=assignment.pk,
        )

    return render(request, template, context)


@faculty_required
def faculty_submission_detail(request, section_id, assignment_id, submission_id):
    section = _taught_section(request, section_id)
    assignment = get_object_or_404(Assignment, pk=assignment_id, section=section)
    submission = get_object_or_404(
        Submission.objects.select_related("student"), pk=submission_id, assignment=assignment
    )
    template = "coursework/faculty/submission_detail.html"
    context = {"section": section, "assignment": assignment, "submission": submission}

    if request.method == "POST":
        response = _grade_from_post(
            request, assignment.submissions.filter(pk=submission.pk), template, context
        )
        if response is not None:
            return response
        return redirect(
            "coursework:faculty-submission-detail",
            section_id=section.pk,
            assignment_id=assignment.pk,
            submission_id=submission.pk,
        )

    context["grade_form"] = GradeSubmissionForm(
        initial={
            "submission": submission.pk,
            "grade": submission.grade,
            "feedback": submission.feedback,
        }
    )
    return render(request, template, context)


# Students

def _enrolled_section(request, section_id):
    section = get_object_or_404(
        Section.objects.select_related("course", "room", "faculty"), pk=section_id
    )
    if not ensure_enrolled(request.user, section):
        messages.error(request, _("You are not enrolled in this section."))
        return None
    return section


@student_required
def student_section_detail(request, section_id):
    section = _enrolled_section(request, section_id)
    if section is None:
        return redirect("academics:my-sections")

    own = Submission.objects.filter(student=request.user)
    assignments = section.assignments.prefetch_related(
        Prefetch("submissions", queryset=own, to_attr="own_submissions")
    ).order_by("deadline")
    context = {
        "section": section,
        "documents": section.documents.filter(visible=True),
        "assignments": assignments,
    }
    return render(request, "coursework/student/section_detail.html", context)


@student_required
def student_assignment_detail(request, section_id, assignment_id):
    section = _enrolled_section(request, section_id)
    if section is None:
        return redirect("academics:my-sections")

    assignment = get_object_or_404(Assignment, pk=assignment_id, section=section)
    submission = Submission.objects.filter(assignment=assignment, student=request.user).first()
    template = "coursework/student/assignment_detail.html"
    context = {"section": section, "assignment": assignment, "submission": submission}

    if request.method == "POST":
        form = SubmissionForm(
            request.POST, request.FILES, assignment=assignment, student=request.user
        )
        if form.is_valid():
            try:
                created = _store(
                    form,
                    lambda: create_submission(
                        assignment,
                        request.user,
                        text_content=form.cleaned_data["text_content"],
                        **form.upload_kwargs(),
                    ),
                )
            except DuplicateSubmission as exc:
                form.add_error("text_content", str(exc))
                created = None
            if created is not None:
                messages.success(request, _("Submission received."))
                return redirect(
                    "coursework:student-assignment-detail",
                    section_id=section.pk,
                    assignment_id=assignment.pk,
                )
        return form_error_response(request, form, template, context)

    if submission is None:
        context["form"] = SubmissionForm(assignment=assignment, student=request.user)
    return render(request, template, context)
