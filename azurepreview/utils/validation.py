"""Schema-level validators, raising ValidationError before any API call"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..core.errors import ValidationError

E = TypeVar("E", bound=Enum)


def string_is_not_empty(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(key, f"expected a string, got {type(value).__name__}")
    if not value.strip():
        raise ValidationError(key, "must not be empty")
    return value


def optional_string_is_not_empty(value: Any, key: str) -> Optional[str]:
    if value is None:
        return None
    return string_is_not_empty(value, key)


def string_length_between(value: Any, minimum: int, maximum: int, key: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(key, f"expected a string, got {type(value).__name__}")
    if not minimum <= len(value) <= maximum:
        raise ValidationError(
            key, f"length must be between {minimum} and {maximum}, got {len(value)}"
        )
    return value


def string_is_uuid(value: Any, key: str) -> str:
    """Return the canonical lower-case form of a UUID string"""
    if not isinstance(value, str):
        raise ValidationError(key, f"expected a UUID string, got {type(value).__name__}")
    try:
        return str(uuid.UUID(value))
    except ValueError:
        raise ValidationError(key, f"{value!r} is not a valid UUID")


def parse_enum(enum_cls: Type[E], value: Any, key: str) -> E:
    """Accept an enum member or its string value"""
    if isinstance(value, enum_cls):
        return value
    valid = [member.value for member in enum_cls]
    if isinstance(value, str):
        for member in enum_cls:
            if member.value == value:
                return member
    raise ValidationError(key, f"expected one of {valid}, got {value!r}")


def parse_rfc3339(value: Any, key: str) -> datetime:
    """Parse an RFC3339 timestamp; naive values are taken as UTC"""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(key, f"expected an RFC3339 timestamp, got {value!r}")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(key, f"{value!r} is not a valid RFC3339 timestamp")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
