"""Argument model: schema classification, editable state and argv building."""

from __future__ import annotations

from .builder import build_command
from .classifier import classify, classify_all
from .model import ArgumentModel
from .sources import definitions_from_parser, load_definitions
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
    ValidationError,
    ValueHint,
)

__all__ = [
    "ArgumentDefinition",
    "ArgumentModel",
    "ArgumentSpec",
    "ChoiceEntry",
    "ChoiceValue",
    "CountValue",
    "FlagValue",
    "MultiChoiceValue",
    "MultiPathValue",
    "MultiTextValue",
    "PathValue",
    "TextValue",
    "ValidationError",
    "ValueHint",
    "build_command",
    "classify",
    "classify_all",
    "definitions_from_parser",
    "load_definitions",
]
