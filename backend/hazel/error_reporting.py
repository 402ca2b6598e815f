# Overview: Reports unexpected server errors to an operations webhook and shapes the 500 response.

"""
Error Reporting

Expected failures (ValidationError, ConflictError, NotFoundError, StateError)
are answered directly by the routes and never reported. Anything else is
logged, posted to ERROR_WEBHOOK_URL as a Discord-style embed, and answered
with a generic message so no internals reach the caller.
"""

from __future__ import annotations

import logging
import re
import traceback

import httpx
from flask import current_app, has_request_context, jsonify, request

from hazel.time_utils import local_now

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"
EMBED_COLOR = 0xE5614E
WEBHOOK_TIMEOUT_SECONDS = 5.0
MAX_STACK_LINES = 20

_SANITIZERS = (
    (re.compile(r"/(?:Users|home)/[^/\s]+"), "/home/user"),
    (re.compile(r"[A-Za-z0-9_.+-]+@[A-Za-z0-9.-]+"), "[EMAIL]"),
    (re.compile(r"token[:=]\s*['\"]?[^\s'\"]+", re.IGNORECASE), "token=[REDACTED]"),
    (re.compile(r"password[:=]\s*['\"]?[^\s'\"]+", re.IGNORECASE), "password=[REDACTED]"),
    (re.compile(r"key[:=]\s*['\"]?[^\s'\"]{20,}", re.IGNORECASE), "key=[REDACTED]"),
)


def sanitize_stack(stack: str) -> str:
    for pattern, replacement in _SANITIZERS:
        stack = pattern.sub(replacement, stack)
    lines = stack.splitlines()
    return "\n".join(lines[-MAX_STACK_LINES:])


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def build_embed(exc: BaseException, *, action: str | None, url: str | None) -> dict:
    stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    fields = [
        {"name": "Error", "value": _truncate(str(exc) or type(exc).__name__, 256), "inline": False},
        {"name": "Action", "value": action or "(unknown)", "inline": True},
        {"name": "Time", "value": local_now().strftime("%Y-%m-%d %H:%M:%S %Z"), "inline": True},
    ]
    if url:
        fields.append({"name": "URL", "value": url, "inline": False})
    fields.append({
        "name": "Stack trace",
        "value": "```\n" + _truncate(sanitize_stack(stack), 1000) + "\n```",
        "inline": False,
    })
    return {"title": "Server error", "color": EMBED_COLOR, "fields": fields}


def report_error(exc: BaseException, *, action: str | None = None, url: str | None = None) -> bool:
    """
    Post the error to the configured webhook.

    Returns True when the webhook accepted the report. Webhook failures are
    logged and never raised; reporting must not mask the original error.
    """
    webhook_url = current_app.config.get("ERROR_WEBHOOK_URL")
    if not webhook_url or current_app.config.get("TESTING"):
        return False

    payload = {"embeds": [build_embed(exc, action=action, url=url)]}
    try:
        response = httpx.post(webhook_url, json=payload, timeout=WEBHOOK_TIMEOUT_SECONDS)
        response.raise_for_status()
    except httpx.HTTPError:
        logger.warning("Error webhook delivery failed for action %s", action, exc_info=True)
        return False
    return True


def internal_error(action: str, exc: BaseException):
    """Log, report, and build the generic 500 response for an unexpected exception."""
    current_app.logger.exception("Unhandled error in %s", action)
    report_error(exc, action=action, url=request.url if has_request_context() else None)
    return jsonify({"error": GENERIC_ERROR_MESSAGE}), 500
