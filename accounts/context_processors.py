from __future__ import annotations

from typing import Any, Dict

from .models import get_user_role


def user_role(request) -> Dict[str, Any]:
    """Expose the current user's role to all templates.

    Injects:
      - user_role: "admin", "faculty", "student" or None
    """
    user = getattr(request, "user", None)
    return {"user_role": get_user_role(user)}
