"""
Validation of booking drafts into typed appointment fields.
"""

import re
from datetime import datetime
from typing import Any, Dict

import pendulum
from pendulum import DateTime

from .exceptions import ValidationError
from .models import AppointmentDraft, Service

PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]+$")

_REQUIRED_FIELDS = ("name", "phone_number", "service", "start")


def parse_start(value: Any, tz_offset: int = 0) -> DateTime:
    """
    Parse a start value into a UTC instant.

    Values that carry an offset are taken as is. Naive strings and naive
    datetimes are local wall time and shifted by ``tz_offset`` minutes.

    Raises:
        ValueError: If the value is not a date-time
    """
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("expected an ISO-8601 date-time string")
        # tz=None keeps strings without an offset naive
        value = pendulum.parse(text, tz=None)
        if not isinstance(value, DateTime):
            raise ValueError(f"not a date-time: {text!r}")

    if not isinstance(value, datetime):
        raise ValueError("expected an ISO-8601 date-time string")

    if value.tzinfo is None:
        return pendulum.instance(value, tz="UTC").add(minutes=tz_offset)
    return pendulum.instance(value).in_timezone("UTC")


def validate_draft(draft: AppointmentDraft, *, partial: bool = False) -> Dict[str, Any]:
    """
    Validate the supplied fields of a draft.

    Args:
        draft: Booking request or partial update
        partial: When True, missing fields are allowed (update semantics)

    Returns:
        Mapping of supplied field names to their validated values

    Raises:
        ValidationError: With one message per offending field
    """
    errors: Dict[str, str] = {}
    values: Dict[str, Any] = {}

    if not partial:
        for name in _REQUIRED_FIELDS:
            if getattr(draft, name) is None:
                errors[name] = "field is required"

    if draft.name is not None:
        name = draft.name.strip() if isinstance(draft.name, str) else ""
        if name:
            values["name"] = name
        else:
            errors["name"] = "must not be empty"

    if draft.phone_number is not None:
        phone = draft.phone_number.strip() if isinstance(draft.phone_number, str) else ""
        if phone and PHONE_PATTERN.match(phone):
            values["phone_number"] = phone
        else:
            errors["phone_number"] = "must contain only digits, spaces, '+', '-' and parentheses"

    if draft.service is not None:
        try:
            values["service"] = Service(draft.service)
        except ValueError:
            known = ", ".join(s.value for s in Service)
            errors["service"] = f"unknown service {draft.service!r} (expected one of: {known})"

    if draft.start is not None:
        try:
            values["start"] = parse_start(draft.start, draft.tz_offset or 0)
        except ValueError as exc:
            errors["start"] = str(exc)

    if errors:
        raise ValidationError(errors)

    return values
