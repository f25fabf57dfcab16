"""Shared validation helpers for service settings."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, get_origin

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def _split_list(value: str) -> list[Any]:
    """Split a JSON array string or a comma-separated string into raw items."""
    stripped = value.strip()
    if not stripped:
        raise ValueError("List value must not be empty")

    if stripped.startswith("["):
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON array: {e}") from e
        if not isinstance(parsed, list):
            raise ValueError("JSON value must be an array")
        return parsed

    return [item.strip() for item in stripped.split(",") if item.strip()]


def parse_int_list(value: str | list[int] | list[str], *, allow_empty: bool = False) -> list[int]:
    """Parse an integer list from an environment variable or config value.

    Accepts:
    - A list of integers or integer strings
    - A JSON array string: '[16, 8]'
    - A comma-separated string: '16,8'

    Raises ValueError for empty string values, malformed JSON, or non-integer items.
    When allow_empty is False (default), also rejects empty lists.
    """
    items = value if isinstance(value, list) else _split_list(value)

    result: list[int] = []
    for item in items:
        if isinstance(item, bool):
            raise ValueError("List items must be integers")
        if isinstance(item, int):
            result.append(item)
        elif isinstance(item, str) and item.strip().lstrip("-").isdigit():
            result.append(int(item))
        else:
            raise ValueError(f"List items must be integers, got {item!r}")

    if not allow_empty and not result:
        raise ValueError("List value must not be empty")
    return result


class RawListEnvSettingsSource(EnvSettingsSource):
    """Env settings source that passes list-typed fields as raw strings to validators.

    pydantic-settings tries to JSON-decode list-typed fields from env vars before
    validators run. This subclass bypasses that so the field validators handle
    both JSON and CSV formats.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if get_origin(field.annotation) is list and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
