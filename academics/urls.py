from django.urls import path

from . import views

app_name = "academics"

urlpatterns = [
    path("manage/departments/", views.DepartmentListView.as_view(), name="department-list"),
    path("manage/departments/new/", views.DepartmentCreateView.as_view(), name="department-create"),
    path(
        "manage/departments/<int:pk>/edit/",
        views.DepartmentUpdateView.as_view(),
        name="department-edit",
    ),
    path(
        "manage/departments/<int:pk>/delete/",
        views.DepartmentDeleteView.as_view(),
        name="department-delete",
    ),
    path("manage/courses/", views.CourseListView.as_view(), name="course-list"),
    path("manage/courses/new/", views.CourseCreateView.as_view(), name="course-create"),
    path("manage/courses/<int:pk>/edit/", views.CourseUpdateView.as_view(), name="course-edit"),
    path(
        "manage/courses/<int:pk>/delete/",
        views.CourseDeleteView.as_view(),
        name="course-delete",
    ),
    path("manage/rooms/", views.RoomListView.as_view(), name="room-list"),
    path("manage/rooms/new/", views.RoomCreateView.as_view(), name="room-create"),
    path("manage/rooms/<int:pk>/edit/", views.RoomUpdateView.as_view(), name="room-edit"),
    path("manage/rooms/<int:pk>/delete/", views.RoomDeleteView.as_view(), name="room-delete"),
    path("manage/sections/", views.SectionListView.as_view(), name="section-list"),
    path("manage/sections/new/", views.SectionCreateView.as_view(), name="section-create"),
    path(
        "manage/sections/<int:pk>/edit/",
        views.SectionUpdateView.as_view(),
        name="section-edit",
    ),
    path(
        "manage/sections/<int:pk>/delete/",
        views.SectionDeleteView.as_view(),
        name="section-delete",
    ),
    path("student/courses/", views.course_catalog, name="catalog"),
    path("student/enroll/", views.enroll, name="enroll"),
    path("student/my-sections/", views.my_sections, name="my-sections"),
    path("student/my-sections/<int:section_id>/drop/", views.drop, name="drop"),
]
