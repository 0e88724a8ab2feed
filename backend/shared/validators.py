"""Validation helpers for settings read from environment variables."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, ClassVar
from urllib.parse import urlsplit

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo

WILDCARD_ORIGIN = "*"


def parse_string_list(value: str | list[str]) -> list[str]:
    """Parse a non-empty string list from an env var or config value.

    Accepts a list of strings (returned as-is), a JSON array string
    ('["a","b"]') or a comma-separated string ('a,b'). Empty segments of a
    comma-separated string are dropped.

    Raises ValueError for empty values or malformed JSON.
    """
    if isinstance(value, list):
        items = value
    else:
        stripped = value.strip()
        if stripped.startswith("["):
            try:
                items = json.loads(stripped)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON array: {e}") from e
            if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
                raise ValueError("JSON value must be an array of strings")
        else:
            items = [item.strip() for item in stripped.split(",") if item.strip()]

    if not items:
        raise ValueError("String list value must not be empty")
    return items


def normalize_origin(origin: str) -> str:
    """Validate one CORS origin and strip any trailing slash.

    An origin is either ``*`` or ``scheme://host[:port]`` with an http(s)
    scheme and no path, query or fragment.
    """
    origin = origin.strip()
    if origin == WILDCARD_ORIGIN:
        return origin
    parts = urlsplit(origin.rstrip("/"))
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise ValueError(f"Invalid origin {origin!r}: expected '*' or http(s)://host[:port]")
    if parts.path or parts.query or parts.fragment:
        raise ValueError(f"Invalid origin {origin!r}: must not contain a path, query or fragment")
    return f"{parts.scheme}://{parts.netloc}"


def parse_origin_list(value: str | list[str]) -> list[str]:
    """Parse and normalize a CORS origin list. ``*`` may not be mixed with explicit origins."""
    origins = [normalize_origin(origin) for origin in parse_string_list(value)]
    if WILDCARD_ORIGIN in origins and len(origins) > 1:
        raise ValueError("'*' cannot be combined with explicit origins")
    return origins


class StringListEnvSettingsSource(EnvSettingsSource):
    """Env settings source that hands string-list fields to validators as raw strings.

    pydantic-settings JSON-decodes list-typed fields from env vars before
    validators run, which rejects the comma-separated form. Fields named in
    ``string_list_fields`` skip that step.
    """

    string_list_fields: ClassVar[frozenset[str]] = frozenset({"cors_origins"})

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in self.string_list_fields and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
