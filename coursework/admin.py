from django.contrib import admin

from .models import Assignment, Document, Submission


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ("name", "section", "visible", "file_name", "created_at")
    list_filter = ("visible", "section")
    search_fields = ("name", "file_key")


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ("title", "section", "type", "deadline")
    list_filter = ("type", "section")
    search_fields = ("title", "file_key")


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ("assignment", "student", "submitted_at", "grade", "graded_at")
    list_filter = ("assignment__section", "assignment")
    search_fields = ("student__username", "file_key")
    readonly_fields = ("submitted_at", "graded_at")
