from __future__ import annotations

from typing import Any, Mapping

from .exceptions import ConfigurationError, ValidationError


def validate_config(data: Mapping[str, Any], schema: Mapping[str, Any] | None) -> None:
    """
    Validate configuration data against a JSON Schema.

    :param data: Configuration mapping to validate.
    :param schema: JSON Schema mapping. If None, validation is skipped.
    :raises ValidationError: if validation fails.
    :raises ConfigurationError: if jsonschema is missing.
    """
    if schema is None:
        return

    try:
        import jsonschema
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise ConfigurationError(
            "JSON Schema validation requested but 'jsonschema' package is not installed."
        ) from exc

    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        path_str = ".".join(str(p) for p in exc.path) if exc.path else "<root>"
        raise ValidationError(
            f"Configuration validation error at '{path_str}': {exc.message}"
        ) from exc
    except jsonschema.SchemaError as exc:
        raise ValidationError(f"Invalid configuration schema: {exc.message}") from exc
