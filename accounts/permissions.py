from __future__ import annotations

from functools import wraps

from django.contrib.auth.decorators import login_required
from django.contrib.auth.mixins import LoginRequiredMixin, UserPassesTestMixin
from django.core.exceptions import PermissionDenied

from .models import Role, get_user_role


def role_required(role: str):
    """Restrict a function view to authenticated users holding ``role``."""

    def decorator(view_func):
        @login_required
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            if get_user_role(request.user) != role:
                raise PermissionDenied("Only %s users can access this section" % role)
            return view_func(request, *args, **kwargs)

        return _wrapped

    return decorator


faculty_required = role_required(Role.FACULTY)
student_required = role_required(Role.STUDENT)


class StaffRequiredMixin(LoginRequiredMixin, UserPassesTestMixin):
    def test_func(self) -> bool:
        return self.request.user.is_staff

    def handle_no_permission(self):
        if self.request.user.is_authenticated:
            raise PermissionDenied("Only administrators can access this section")
        return super().handle_no_permission()
