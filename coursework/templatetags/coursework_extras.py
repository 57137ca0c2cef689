from __future__ import annotations

import logging

import bleach
import markdown
from django import template
from django.utils.safestring import mark_safe

from uploads.storage import StorageNotConfigured, get_object_storage

logger = logging.getLogger(__name__)

register = template.Library()

_MARKDOWN_EXTENSIONS = [
    "markdown.extensions.extra",
    "markdown.extensions.sane_lists",
]

_ALLOWED_TAGS = [
    "a",
    "b",
    "blockquote",
    "br",
    "code",
    "em",
    "h3",
    "h4",
    "h5",
    "h6",
    "hr",
    "i",
    "li",
    "ol",
    "p",
    "pre",
    "strong",
    "ul",
    "table",
    "thead",
    "tbody",
    "tr",
    "th",
    "td",
]

_ALLOWED_ATTRS = {
    "a": ["href", "title", "rel"],
    "th": ["colspan", "rowspan"],
    "td": ["colspan", "rowspan"],
}

_ALLOWED_PROTOCOLS = ["http", "https", "mailto"]


def sanitize_html(value: str) -> str:
    return bleach.clean(
        value,
        tags=_ALLOWED_TAGS,
        attributes=_ALLOWED_ATTRS,
        protocols=_ALLOWED_PROTOCOLS,
        strip=True,
    )


@register.filter(name="render_markdown")
def render_markdown(value: str | None) -> str:
    """Render user-written Markdown (descriptions, text answers) to safe HTML."""

    if not value:
        return ""

    html = markdown.markdown(
        value,
        extensions=_MARKDOWN_EXTENSIONS,
        output_format="html5",
    )
    return mark_safe(sanitize_html(html))


@register.filter(name="file_url")
def file_url(obj) -> str:
    """Readable URL of the file attached to ``obj``, or an empty string."""

    key = getattr(obj, "file_key", "")
    if not key:
        return ""
    try:
        return get_object_storage().url_for(key)
    except StorageNotConfigured:
        logger.warning("Cannot build a URL for %s: storage is not configured", key)
        return ""
