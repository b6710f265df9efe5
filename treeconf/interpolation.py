from __future__ import annotations

import os
import re
from typing import Any, Optional, Protocol, Set

from .exceptions import ConfigurationError

_VARIABLE = re.compile(r"\$\{([^${}]+)\}")

ENV_PREFIX = "env:"


class VariableResolver(Protocol):
    def resolve_variable(self, name: str) -> Any: ...


def interpolate(value: Any, config: Optional[VariableResolver]) -> Any:
    """
    Replace ``${name}`` references in value using config.

    - ``${name}`` is resolved with ``config.resolve_variable(name)``;
    - ``${env:NAME}`` reads the environment variable NAME;
    - unresolvable references are kept as they are;
    - values that are not strings are returned unchanged.

    :raises ConfigurationError: if a variable refers to itself, directly or
        through other variables.
    """
    if config is None or not isinstance(value, str):
        return value
    return _substitute(value, config, set())


def _substitute(text: str, config: VariableResolver, seen: Set[str]) -> str:
    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in seen:
            raise ConfigurationError(
                f"Infinite loop in property interpolation of {text!r}: "
                f"variable {name!r} refers to itself."
            )

        if name.startswith(ENV_PREFIX):
            resolved: Any = os.environ.get(name[len(ENV_PREFIX):])
        else:
            resolved = config.resolve_variable(name)
        if resolved is None:
            return match.group(0)

        resolved = str(resolved)
        if _VARIABLE.search(resolved):
            resolved = _substitute(resolved, config, seen | {name})
        return resolved

    return _VARIABLE.sub(replace, text)
