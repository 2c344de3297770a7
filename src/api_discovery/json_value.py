"""Untyped JSON value tree helpers.

Parses and serializes JSON text and reads typed values out of parsed
dictionaries, raising api_discovery errors instead of KeyError/TypeError.
"""

import json
from typing import Any

from api_discovery.errors import ParseError, ValidationError


def parse(text: str) -> Any:
    """Parse JSON text into a tree of dicts, lists and scalars."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON: {exc}") from exc


def serialize(value: Any, canonical: bool = False) -> str:
    """Serialize a JSON value tree to text.

    With ``canonical`` the keys are sorted and whitespace is dropped, so equal
    trees always give equal text.
    """
    if canonical:
        return json.dumps(value, sort_keys=True, separators=(",", ":"))
    return json.dumps(value)


def get_string(node: dict, key: str) -> str | None:
    """Return the string under ``key``, or None when it is absent or null."""
    value = node.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"Field '{key}' must be a string, got {type(value).__name__}")
    return value


def get_required_string(node: dict, key: str) -> str:
    value = get_string(node, key)
    if value is None:
        raise ValidationError(f"Required field '{key}' is missing")
    return value


def get_string_list(node: dict, key: str) -> list[str]:
    """Return the list of strings under ``key``; absent means empty."""
    value = node.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"Field '{key}' must be a list of strings")
    return list(value)


def get_mapping(node: dict, key: str) -> dict | None:
    """Return the object under ``key``, or None when it is absent or null."""
    value = node.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationError(f"Field '{key}' must be an object, got {type(value).__name__}")
    return value
