"""Shared parsing helpers for runtime values and CLI record fields."""

from __future__ import annotations

import re


_INTEGER_PATTERN = re.compile(r"[+-]?\d+")


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_positive_float(value: object, field_name: str) -> float:
    """Parse a strictly positive float from text or numeric input.

    Raises:
        ValueError: If the value is not a finite number above zero.
    """

    if isinstance(value, bool):
        raise ValueError(f"`{field_name}` must be a positive number.")
    try:
        parsed = float(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"`{field_name}` must be a positive number.") from exc
    if not parsed > 0.0 or parsed == float("inf"):
        raise ValueError(f"`{field_name}` must be a positive number.")
    return parsed


def split_assignment(token: str, option_name: str) -> tuple[str, str]:
    """Split a `KEY=VALUE` token into a stripped key and raw value.

    Raises:
        ValueError: If the token has no `=` or the key is blank.
    """

    key, separator, value = token.partition("=")
    key = key.strip()
    if not separator or not key:
        raise ValueError(f"`{option_name}` expects `KEY=VALUE`, got `{token}`.")
    return key, value


def parse_number_token(value: str, field_name: str) -> int | float:
    """Parse a numeric record value, keeping integers exact.

    Raises:
        ValueError: If the text is neither an integer nor a finite float.
    """

    text = value.strip()
    if _INTEGER_PATTERN.fullmatch(text):
        return int(text)
    try:
        parsed = float(text)
    except ValueError as exc:
        raise ValueError(f"`{field_name}` must be numeric, got `{value}`.") from exc
    if parsed != parsed or parsed in (float("inf"), float("-inf")):
        raise ValueError(f"`{field_name}` must be a finite number, got `{value}`.")
    return parsed
