from django.urls import path
from django.contrib.auth import views as auth_views

from .forms import LoginForm
from . import views

app_name = "accounts"

urlpatterns = [
    path("signup/", views.signup, name="signup"),
    path(
        "login/",
        auth_views.LoginView.as_view(
            template_name="accounts/login.html", authentication_form=LoginForm
        ),
        name="login",
    ),
    path("logout/", auth_views.LogoutView.as_view(), name="logout"),
    path("faculty/", views.FacultyListView.as_view(), name="faculty-list"),
    path("faculty/new/", views.FacultyCreateView.as_view(), name="faculty-create"),
    path("faculty/<int:pk>/edit/", views.FacultyUpdateView.as_view(), name="faculty-edit"),
    path("faculty/<int:pk>/delete/", views.FacultyDeleteView.as_view(), name="faculty-delete"),
    path("students/", views.StudentListView.as_view(), name="student-list"),
]
