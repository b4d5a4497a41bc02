# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Query parameter normalization.

Turns any combination of URL query string and explicit parameter map into
the single flat ``str -> str`` mapping the canonical query string is built
from.  Nested structures follow the ACS wire convention for repeated and
structured parameters:

- ``{"a": {"b": 1}}`` becomes ``a.b=1``
- ``{"ids": [1, 2, 3]}`` becomes ``ids=[1,2,3]`` (one JSON value)
- ``{"Tag": [{"Key": "k"}]}`` becomes ``Tag.1.Key=k`` (1-based index)
"""

from __future__ import annotations

import json
import urllib.parse
from collections.abc import Mapping
from typing import Any


class MalformedInputError(ValueError):
    """Raised when query parameters cannot be parsed or flattened."""


def parse_json_params(text: str) -> dict[str, Any]:
    """Parse a JSON object text into a parameter mapping.

    Args:
        text: JSON text.  Blank text means no parameters.

    Returns:
        Parsed mapping.

    Raises:
        MalformedInputError: If the text is not valid JSON or is not an
            object.
    """
    if not text.strip():
        return {}
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"Invalid JSON parameters: {e}") from e
    if not isinstance(value, dict):
        raise MalformedInputError(
            f"JSON parameters must be an object, got {type(value).__name__}"
        )
    return value


def _scalar_text(value: object) -> str:
    """Render a scalar parameter value as wire text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedInputError(
                f"Parameter bytes are not valid UTF-8: {e}"
            ) from e
    if isinstance(value, (int, float)):
        return str(value)
    raise MalformedInputError(
        f"Unsupported parameter value type: {type(value).__name__}"
    )


def _flatten_into(out: dict[str, str], key: str, value: object) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for sub_key, sub_value in value.items():
            _flatten_into(out, f"{key}.{sub_key}", sub_value)
        return
    if isinstance(value, (list, tuple)):
        if value and all(isinstance(item, Mapping) for item in value):
            for index, item in enumerate(value, start=1):
                _flatten_into(out, f"{key}.{index}", item)
            return
        try:
            out[key] = json.dumps(
                list(value), separators=(",", ":"), ensure_ascii=False
            )
        except TypeError as e:
            raise MalformedInputError(
                f"Parameter {key!r} is not JSON-serializable: {e}"
            ) from e
        return
    out[key] = _scalar_text(value)


def flatten_params(params: Mapping[str, Any]) -> dict[str, str]:
    """Flatten nested parameters into dot/index-qualified keys.

    Mappings nest with ``.``; a list whose elements are all mappings is
    indexed from 1; any other list becomes a single compact JSON value.
    ``None`` values are dropped.

    Args:
        params: Possibly nested parameter mapping.

    Returns:
        Flat mapping of key to wire text.

    Raises:
        MalformedInputError: If a value has an unsupported type.
    """
    out: dict[str, str] = {}
    for key, value in params.items():
        _flatten_into(out, str(key), value)
    return out


def merge_query(
    url_query: str, explicit: Mapping[str, Any] | str | None
) -> dict[str, str]:
    """Merge a URL query string with explicit parameters and flatten.

    Args:
        url_query: Raw query string (without leading ``?``).
        explicit: Explicit parameters (mapping or JSON object text).  Keys
            here replace URL keys with the same flattened name.

    Returns:
        Flat parameter mapping.

    Raises:
        MalformedInputError: If the URL query repeats a key.  Repeated
            parameters must use indexed keys (``Tag.1.Key``, ``Tag.2.Key``)
            or a JSON list value.
    """
    merged: dict[str, str] = {}
    for key, value in urllib.parse.parse_qsl(
        url_query, keep_blank_values=True
    ):
        if key in merged:
            raise MalformedInputError(
                f"Query parameter {key!r} is repeated in the URL"
            )
        merged[key] = value
    if isinstance(explicit, str):
        explicit = parse_json_params(explicit)
    if explicit:
        merged.update(flatten_params(explicit))
    return merged
