"""Variable substitution for service configuration values.

Service files mix two kinds of ``${...}`` references:

- environment references resolved here: ``${env:VAR}``,
  ``${env:VAR, 'default'}``, and the shorthand ``${VAR}`` / ``${VAR:default}``
- host references (``${opt:stage}``, ``${self:custom.bucket}``, ``${ssm:...}``
  and the other sources in ``HOST_VARIABLE_SOURCES``) that only the deploy
  framework can resolve; these are left exactly as written

DDL placeholders such as ``{S3Location}`` carry no ``$`` and are left for
``athena_tables.ddl`` to substitute later.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Innermost references only; a nested ``${self:a.${opt:b}}`` never matches as a whole.
_VARIABLE_PATTERN = re.compile(r"\$\{([^{}]+)\}")

ENV_SOURCE = "env"
HOST_VARIABLE_SOURCES = frozenset([
    "aws", "cf", "file", "git", "opt", "param", "s3", "self", "sls", "ssm", "strToBool",
])


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _lookup(var_name: str, default_value: Optional[str]) -> str:
    env_value = os.environ.get(var_name)
    if env_value is not None:
        return env_value
    if default_value is not None:
        return default_value
    raise ValueError(
        f"Environment variable '{var_name}' is not set and no default provided"
    )


def _replace(match: re.Match) -> str:
    expression = match.group(1)
    source, sep, rest = expression.partition(":")
    source = source.strip()

    if sep and source == ENV_SOURCE:
        var_name, comma, fallback = rest.partition(",")
        return _lookup(var_name.strip(), _unquote(fallback) if comma else None)

    if sep and source in HOST_VARIABLE_SOURCES:
        logger.debug("Leaving host variable %s for the deploy framework", match.group(0))
        return match.group(0)

    return _lookup(source, rest if sep else None)


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute environment references in config values.

    Raises:
        ValueError: If a referenced environment variable is not set and has no default
    """
    if isinstance(value, str):
        return _VARIABLE_PATTERN.sub(_replace, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(item) for item in value]

    else:
        return value


def apply_env_substitution(config: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable substitution to an entire config tree."""
    return substitute_env_vars(config)
