"""Validation helpers for host input precondition checks.

Eliminates repeated shape checks while parsing function input and
authoring configuration.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from .errors import InvalidInputError


def require_mapping(value: Any, error_msg: str) -> Mapping:
    """Require that a value is a JSON object."""
    if not isinstance(value, Mapping):
        raise InvalidInputError(error_msg)
    return value


def require_list(value: Any, error_msg: str) -> Sequence:
    """Require that a value is a JSON array."""
    if not isinstance(value, list):
        raise InvalidInputError(error_msg)
    return value


def require_not_empty(field: Any, error_msg: str) -> None:
    """Require that a field is non-empty."""
    if not field:
        raise InvalidInputError(error_msg)


def require_distinct(first: str, second: str, error_msg: str) -> None:
    """Require that two identifiers differ."""
    if first == second:
        raise InvalidInputError(error_msg)


def optional_mapping(parent: Mapping, key: str) -> Mapping:
    """Return parent[key] when it is an object, otherwise an empty mapping.

    Nullable GraphQL fields arrive as ``null``; treat them as absent.
    """
    value = parent.get(key)
    if isinstance(value, Mapping):
        return value
    return {}
