"""
Validation of values received at the API boundary.

Every validator returns the value converted to its canonical Python type or
raises ValidationError.
"""

import ipaddress
import re
from datetime import datetime
from typing import Any, Optional

from core.clock import parse_datetime
from core.exceptions import ValidationError
from core.types import MessageType

PROFILE_ID_PATTERN = re.compile(r"^[a-zA-Z0-9-.]+$")
COMMON_NAME_PATTERN = re.compile(r"^[a-fA-F0-9]{32}$")
PERMISSION_PATTERN = re.compile(r"^[^\x00-\x1f\x7f]{1,256}$")
USER_ID_MAX_LENGTH = 256
DIGITS_PATTERN = re.compile(r"^[0-9]+$")
# 9999-12-31T23:59:59Z, the last second datetime can represent
MAX_TIMESTAMP = 253402300799
# SQLite INTEGER is a signed 64 bit value
MAX_INTEGER = 2 ** 63 - 1


def profile_id(value: str) -> str:
    """Validate profile id format."""
    if not PROFILE_ID_PATTERN.fullmatch(value or ''):
        raise ValidationError("profile_id", value, "Must contain only alphanumeric characters, dots or hyphens")
    return value


def common_name(value: str) -> str:
    """Validate certificate common name format."""
    if not COMMON_NAME_PATTERN.fullmatch(value or ''):
        raise ValidationError("common_name", value, "Must be 32 hexadecimal characters")
    return value


def user_id(value: str) -> str:
    """Validate external user id."""
    if not value or len(value) > USER_ID_MAX_LENGTH:
        raise ValidationError("user_id", value, f"Must be between 1 and {USER_ID_MAX_LENGTH} characters")
    if any(ord(c) < 32 or ord(c) == 127 for c in value):
        raise ValidationError("user_id", value, "Must not contain control characters")
    return value


def permission(value: str) -> str:
    """Validate a single permission (group) tag."""
    if not PERMISSION_PATTERN.fullmatch(value or ''):
        raise ValidationError("permission", value, "Must be between 1 and 256 printable characters")
    return value


def ip4(value: str) -> str:
    """Validate IPv4 address literal."""
    try:
        return str(ipaddress.IPv4Address(value))
    except (ipaddress.AddressValueError, ValueError):
        raise ValidationError("ip4", value, "Invalid IPv4 address")


def ip6(value: str) -> str:
    """Validate IPv6 address literal."""
    try:
        return str(ipaddress.IPv6Address(value))
    except (ipaddress.AddressValueError, ValueError):
        raise ValidationError("ip6", value, "Invalid IPv6 address")


def ip_address(value: str) -> str:
    """Validate an IPv4 or IPv6 address literal."""
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        raise ValidationError("ip_address", value, "Invalid IP address")


def _non_negative_int(field: str, value: Any, maximum: int) -> int:
    text = str(value) if value is not None else ''
    if not DIGITS_PATTERN.fullmatch(text):
        raise ValidationError(field, text, "Must be a non-negative integer")
    digits = text.lstrip('0') or '0'
    # length first, int() refuses very long digit strings
    if len(digits) > len(str(maximum)) or int(digits) > maximum:
        raise ValidationError(field, text[:32], f"Must not be larger than {maximum}")
    return int(digits)


def connected_at(value: str) -> int:
    """Validate a Unix timestamp of the start of a connection."""
    return _non_negative_int("connected_at", value, MAX_TIMESTAMP)


def disconnected_at(value: str) -> int:
    """Validate a Unix timestamp of the end of a connection."""
    return _non_negative_int("disconnected_at", value, MAX_TIMESTAMP)


def bytes_transferred(value: str) -> int:
    """Validate a byte counter."""
    return _non_negative_int("bytes_transferred", value, MAX_INTEGER)


def message_id(value: str) -> int:
    """Validate a system message id."""
    number = _non_negative_int("message_id", value, MAX_INTEGER)
    if number < 1:
        raise ValidationError("message_id", str(value), "Must be a positive integer")
    return number


def message_type(value: str) -> str:
    """Validate system message type."""
    try:
        return MessageType(value).value
    except ValueError:
        allowed = ', '.join(t.value for t in MessageType)
        raise ValidationError("message_type", value, f"Must be one of: {allowed}")


def date_time(value: str, field: str = "date_time") -> datetime:
    """Validate a ``YYYY-MM-DD HH:MM:SS`` or ISO-8601 timestamp."""
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValidationError(field, value, "Invalid date/time, expected YYYY-MM-DD HH:MM:SS")
    return parsed


def optional_date_time(value: Optional[str], field: str) -> Optional[datetime]:
    """Like date_time, but an empty value means "not set"."""
    if value is None or value == '':
        return None
    return date_time(value, field)
