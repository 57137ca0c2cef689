from django.shortcuts import redirect
from django.views.generic import TemplateView

from accounts.models import Role, get_user_role

ROLE_HOME = {
    Role.ADMIN: "academics:course-list",
    Role.FACULTY: "coursework:faculty-sections",
    Role.STUDENT: "academics:my-sections",
}


class HomeView(TemplateView):
    """Send signed-in users to their role's start page; others see the landing page."""

    template_name = "home.html"

    def get(self, request, *args, **kwargs):
        role = get_user_role(request.user)
        if role in ROLE_HOME:
            return redirect(ROLE_HOME[role])
        return super().get(request, *args, **kwargs)
