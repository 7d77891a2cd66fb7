"""Command builder.

Folds argument specs, in schema order, into one argv token list.
The first invalid argument aborts the build with CommandBuildError;
no partial token list is ever returned.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..errors import CommandBuildError
from .types import (
    ArgumentSpec,
    ChoiceValue,
    CountValue,
    FlagValue,
    MultiChoiceValue,
    MultiPathValue,
    MultiTextValue,
    PathValue,
    TextValue,
)

__all__ = ["build_command", "build_fragment", "INTERNAL_ERROR_MESSAGE"]

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal error."


def _value_fragment(spec: ArgumentSpec, value: str) -> list[str]:
    if spec.call_name is None:
        return [value]
    if spec.use_equals:
        return [f"{spec.call_name}={value}"]
    return [spec.call_name, value]


def _single_fragment(spec: ArgumentSpec, value: str) -> list[str]:
    if value:
        return _value_fragment(spec, value)
    if not spec.optional:
        raise CommandBuildError(spec.name, f"{spec.name} is required.")
    return []


def _repeat_call_name(spec: ArgumentSpec, times: int) -> list[str]:
    if times <= 0:
        return []
    if spec.call_name is None:
        # Counts and flags without a call token are a schema misconfiguration
        raise CommandBuildError(spec.name, INTERNAL_ERROR_MESSAGE)
    return [spec.call_name] * times


def build_fragment(spec: ArgumentSpec) -> list[str]:
    """Serialize a single argument.

    Raises:
        CommandBuildError: The argument's current value cannot be serialized
    """
    kind = spec.kind
    if isinstance(kind, (TextValue, PathValue)):
        return _single_fragment(spec, kind.value)
    if isinstance(kind, ChoiceValue):
        return _single_fragment(spec, kind.selected.value)
    if isinstance(kind, (MultiTextValue, MultiPathValue)):
        return [token for value in kind.values for token in _value_fragment(spec, value)]
    if isinstance(kind, MultiChoiceValue):
        return [token for entry in kind.entries for token in _value_fragment(spec, entry.value)]
    if isinstance(kind, CountValue):
        return _repeat_call_name(spec, kind.count)
    if isinstance(kind, FlagValue):
        return _repeat_call_name(spec, 1 if kind.enabled else 0)
    raise TypeError(f"Unknown value shape: {type(kind).__name__}")


def build_command(specs: Iterable[ArgumentSpec]) -> list[str]:
    """Build the argument vector for all specs.

    Args:
        specs: Argument specs in schema order

    Returns:
        Token list, multi-valued groups kept in schema position

    Raises:
        CommandBuildError: First argument that failed to serialize
    """
    args: list[str] = []
    for spec in specs:
        args.extend(build_fragment(spec))
    logger.debug(f"Built command with {len(args)} tokens")
    return args
