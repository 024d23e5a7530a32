"""Markup stripping and per-field normalisation for untrusted form input.

Nothing here rejects input: malformed values shrink to whatever survives
sanitisation and the validator decides whether that is acceptable.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

import nh3

# Everything except digits, "+", "-", parentheses and whitespace
_PHONE_DISALLOWED = re.compile(r"[^\d+\-()\s]")

SUBMISSION_FIELDS = ("fullName", "email", "phone", "message", "securityPreferences")


def strip_markup(text: str) -> str:
    """Remove every HTML tag and attribute from ``text``.

    Contents of ``<script>`` and ``<style>`` elements are dropped entirely;
    other elements are unwrapped so their text survives.
    """
    if not text:
        return ""
    return nh3.clean(text, tags=set(), attributes={}, strip_comments=True)


def sanitize_text(value: str) -> str:
    return strip_markup(value.strip()).strip()


def sanitize_email(value: str) -> str:
    return sanitize_text(value.strip().lower())


def sanitize_phone(value: str) -> str:
    return sanitize_text(_PHONE_DISALLOWED.sub("", value))


def sanitize_preferences(values: list[Any]) -> list[Any]:
    """Clean string members and drop duplicates, keeping first occurrences."""
    seen: set[Any] = set()
    cleaned: list[Any] = []
    for item in values:
        if isinstance(item, str):
            item = sanitize_text(item)
        try:
            if item in seen:
                continue
            seen.add(item)
        except TypeError:
            # Unhashable members are left for the validator to reject
            pass
        cleaned.append(item)
    return cleaned


_FIELD_SANITIZERS = {
    "fullName": sanitize_text,
    "email": sanitize_email,
    "phone": sanitize_phone,
    "message": sanitize_text,
}


def sanitize_submission(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Sanitize the known fields of a raw submission payload.

    Unknown keys are dropped. Values of unexpected types are passed through
    unchanged so validation can report them. An empty phone number is
    treated as absent.

    Args:
        raw: Decoded JSON body as received from the client.

    Returns:
        New dict holding the sanitized known fields.
    """
    data: dict[str, Any] = {}
    for field in SUBMISSION_FIELDS:
        if field not in raw:
            continue
        value = raw[field]

        if field == "securityPreferences":
            data[field] = sanitize_preferences(value) if isinstance(value, list) else value
            continue

        if isinstance(value, str):
            value = _FIELD_SANITIZERS[field](value)
        data[field] = value

    if data.get("phone") == "":
        data.pop("phone")
    return data
