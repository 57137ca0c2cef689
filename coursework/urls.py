"""URL configuration for the coursework app."""

from django.urls import path

from . import views

app_name = "coursework"

urlpatterns = [
    path("faculty/sections/", views.faculty_sections, name="faculty-sections"),
    path(
        "faculty/sections/<int:section_id>/",
        views.faculty_section_detail,
        name="faculty-section-detail",
    ),
    path(
        "faculty/sections/<int:section_id>/documents/new/",
        views.document_create,
        name="document-create",
    ),
    path(
        "faculty/sections/<int:section_id>/documents/<int:document_id>/",
        views.document_edit,
        name="document-edit",
    ),
    path(
        "faculty/sections/<int:section_id>/assignments/new/",
        views.assignment_create,
        name="assignment-create",
    ),
    path(
        "faculty/sections/<int:section_id>/assignments/<int:assignment_id>/",
        views.faculty_assignment_detail,
        name="faculty-assignment-detail",
    ),
    path(
        "faculty/sections/<int:section_id>/assignments/<int:assignment_id>/edit/",
        views.assignment_edit,
        name="assignment-edit",
    ),
    path(
        "faculty/sections/<int:section_id>/assignments/<int:assignment_id>/submissions/<int:submission_id>/",
        views.faculty_submission_detail,
        name="faculty-submission-detail",
    ),
    path(
        "student/sections/<int:section_id>/",
        views.student_section_detail,
        name="student-section-detail",
    ),
    path(
        "student/sections/<int:section_id>/assignments/<int:assignment_id>/",
        views.student_assignment_detail,
        name="student-assignment-detail",
    ),
]
