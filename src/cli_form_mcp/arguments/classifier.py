"""Argument classifier.

Maps one ArgumentDefinition to an ArgumentSpec with its initial value.

The mapping is a decision table keyed by
(multiple, takes_value, is_path_hint, has_possible_values). Every one of
the sixteen keys has exactly one entry; the table is checked at import
time so a missing combination fails loudly instead of falling through.
"""

from __future__ import annotations

import itertools
import logging
from typing import Callable

from .types import (
    ArgumentDefinition,
    ArgumentSpec,
    ChoiceEntry,
    ChoiceValue,
    CountValue,
    FlagValue,
    MultiChoiceValue,
    MultiPathValue,
    MultiTextValue,
    PathValue,
    TextValue,
    ValueShape,
    to_sentence_case,
)

__all__ = ["classify", "classify_all", "CLASSIFICATION_TABLE"]

logger = logging.getLogger(__name__)

ShapeFactory = Callable[[ArgumentDefinition, bool], ValueShape]
ClassificationKey = tuple[bool, bool, bool, bool]


def _multi_path(definition: ArgumentDefinition, optional: bool) -> ValueShape:
    default = list(definition.default_values)
    return MultiPathValue(
        values=list(default),
        default=default,
        allow_dir=definition.value_hint.allows_dir,
        allow_file=definition.value_hint.allows_file,
    )


def _multi_text(definition: ArgumentDefinition, optional: bool) -> ValueShape:
    default = list(definition.default_values)
    return MultiTextValue(values=list(default), default=default)


def _path(definition: ArgumentDefinition, optional: bool) -> ValueShape:
    default = definition.default_values[0] if definition.default_values else None
    return PathValue(
        value=default or "",
        default=default,
        allow_dir=definition.value_hint.allows_dir,
        allow_file=definition.value_hint.allows_file,
    )


def _text(definition: ArgumentDefinition, optional: bool) -> ValueShape:
    default = definition.default_values[0] if definition.default_values else None
    return TextValue(value="", default=default)


def _count(definition: ArgumentDefinition, optional: bool) -> ValueShape:
    return CountValue(0)


def _flag(definition: ArgumentDefinition, optional: bool) -> ValueShape:
    return FlagValue(False)


def _choice(definition: ArgumentDefinition, optional: bool) -> ValueShape:
    possible = tuple(definition.possible_values or ())
    # A required choice starts on its first allowed value
    selected = "" if optional or not possible else possible[0]
    return ChoiceValue(selected=ChoiceEntry(selected), possible=possible)


def _multi_choice(definition: ArgumentDefinition, optional: bool) -> ValueShape:
    return MultiChoiceValue(entries=[], possible=tuple(definition.possible_values or ()))


ANY = None

# (multiple, takes_value, is_path_hint, has_possible_values) -> shape
CLASSIFICATION_RULES: list[tuple[tuple[bool | None, ...], ShapeFactory]] = [
    ((True, True, True, False), _multi_path),
    ((True, True, False, False), _multi_text),
    ((False, True, True, False), _path),
    ((False, True, False, False), _text),
    ((True, False, ANY, False), _count),
    ((False, False, ANY, False), _flag),
    ((False, ANY, ANY, True), _choice),
    ((True, ANY, ANY, True), _multi_choice),
]


def _expand(pattern: tuple[bool | None, ...]) -> list[ClassificationKey]:
    options = [(True, False) if p is ANY else (p,) for p in pattern]
    return list(itertools.product(*options))


def _build_table() -> dict[ClassificationKey, ShapeFactory]:
    table: dict[ClassificationKey, ShapeFactory] = {}
    for pattern, factory in CLASSIFICATION_RULES:
        for key in _expand(pattern):
            if key in table:
                raise RuntimeError(f"Overlapping classification rules for {key}")
            table[key] = factory

    missing = [key for key in itertools.product((True, False), repeat=4) if key not in table]
    if missing:
        raise RuntimeError(f"Unclassified argument combinations: {missing}")
    return table


CLASSIFICATION_TABLE: dict[ClassificationKey, ShapeFactory] = _build_table()


def classify(definition: ArgumentDefinition) -> ArgumentSpec:
    """Classify one argument definition.

    Args:
        definition: Schema-level argument definition

    Returns:
        ArgumentSpec carrying the initial value for the argument's shape
    """
    optional = definition.is_optional
    key = (
        definition.multiple,
        definition.takes_value,
        definition.value_hint.is_path,
        definition.possible_values is not None,
    )
    kind = CLASSIFICATION_TABLE[key](definition, optional)

    spec = ArgumentSpec(
        name=to_sentence_case(definition.name),
        call_name=definition.call_name,
        desc=definition.description,
        optional=optional,
        use_equals=definition.require_equals,
        kind=kind,
    )
    logger.debug(f"Classified argument {definition.name!r} as {spec.shape}")
    return spec


def classify_all(definitions: list[ArgumentDefinition]) -> list[ArgumentSpec]:
    """Classify definitions, keeping schema order."""
    return [classify(d) for d in definitions]
