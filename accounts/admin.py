from django.contrib import admin

from .models import FacultyProfile, StudentProfile


@admin.register(StudentProfile)
class StudentProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "banner_no", "date_of_birth")
    search_fields = ("user__username", "user__first_name", "user__last_name", "banner_no")


@admin.register(FacultyProfile)
class FacultyProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "department")
    list_filter = ("department",)
    search_fields = ("user__username", "user__first_name", "user__last_name")
