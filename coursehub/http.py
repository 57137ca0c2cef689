"""Shared response helpers for form-handling views.

Every write endpoint answers a failed validation with HTTP 400. Browsers get
the form page re-rendered with inline errors; clients that ask for JSON get
``{"success": false, "fieldErrors": {...}}`` with one message per field.
"""
from __future__ import annotations

from typing import Any, Mapping

from django.forms import BaseForm
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import render

NON_FIELD_KEY = "__all__"


def wants_json(request: HttpRequest) -> bool:
    if request.headers.get("x-requested-with") == "XMLHttpRequest":
        return True
    accept = request.headers.get("accept", "")
    return "application/json" in accept and "text/html" not in accept


def field_errors(form: BaseForm) -> dict[str, str]:
    """Flatten form errors to the first message per field."""

    return {field: str(messages[0]) for field, messages in form.errors.items() if messages}


def bad_request(
    request: HttpRequest,
    *,
    errors: Mapping[str, str],
    template_name: str | None = None,
    context: Mapping[str, Any] | None = None,
) -> HttpResponse:
    if wants_json(request) or template_name is None:
        return JsonResponse({"success": False, "fieldErrors": dict(errors)}, status=400)
    return render(request, template_name, dict(context or {}), status=400)


def form_error_response(
    request: HttpRequest,
    form: BaseForm,
    template_name: str,
    context: Mapping[str, Any] | None = None,
) -> HttpResponse:
    ctx = {"form": form}
    ctx.update(context or {})
    return bad_request(
        request,
        errors=field_errors(form),
        template_name=template_name,
        context=ctx,
    )


class BadRequestFormMixin:
    """Make class-based form views answer invalid submissions with 400."""

    def form_invalid(self, form):
        return form_error_response(
            self.request,
            form,
            self.get_template_names()[0],
            self.get_context_data(form=form),
        )
