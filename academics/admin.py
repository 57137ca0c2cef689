from django.contrib import admin

from .models import (
    Course,
    Department,
    Enrollment,
    Room,
    Section,
    Semester,
    TimeSlot,
)


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("name", "created_at")
    search_fields = ("name",)


@admin.register(Semester)
class SemesterAdmin(admin.ModelAdmin):
    list_display = ("name", "start_date", "end_date")
    search_fields = ("name",)


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "credit_hours",
        "department",
        "semester",
    )
    list_filter = ("department", "semester")
    search_fields = ("code", "name", "description")
    readonly_fields = ("created_at", "updated_at")


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("number", "max_capacity")
    search_fields = ("number",)


class TimeSlotInline(admin.TabularInline):
    model = TimeSlot
    extra = 0
    fields = ("day", "start_time", "end_time")
    ordering = ("day", "start_time")


@admin.register(Section)
class SectionAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "course", "room", "faculty")
    list_filter = ("course", "room")
    search_fields = ("code", "name", "course__name", "course__code")
    autocomplete_fields = ("course", "room")
    inlines = (TimeSlotInline,)


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ("student", "section", "enrolled_at")
    list_filter = ("section",)
    search_fields = ("student__username", "section__code")
    autocomplete_fields = ("section",)
    readonly_fields = ("enrolled_at",)
