from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict

_TRUE_WORDS = {"true", "yes", "on"}
_FALSE_WORDS = {"false", "no", "off"}


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two mappings.

    Values from `override` take precedence.
    Nested mappings are merged, all other values are replaced.
    """
    result: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], Mapping)
            and isinstance(value, Mapping)
        ):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def parse_bool(raw: str) -> bool | None:
    """Return True/False for the usual boolean words, None for anything else."""
    lowered = raw.strip().lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    return None


def parse_scalar(raw: str) -> Any:
    """
    Best-effort parsing for string values from env variables and INI files.

    Converts:
      - "true"/"false", "yes"/"no", "on"/"off" (case-insensitive) to bool
      - integer strings to int
      - float strings to float
    Leaves everything else as str.
    """
    flag = parse_bool(raw)
    if flag is not None:
        return flag

    try:
        return int(raw)
    except ValueError:
        pass

    try:
        return float(raw)
    except ValueError:
        pass

    return raw
