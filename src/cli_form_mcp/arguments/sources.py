"""Schema sources.

Produce ArgumentDefinition lists from:
- an argparse.ArgumentParser (the usual way a Python tool declares its CLI)
- a JSON file holding an array of definition objects
"""

from __future__ import annotations

import argparse
import json
import logging
import pathlib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

from .types import ArgumentDefinition, ValueHint

__all__ = [
    "DefinitionEntry",
    "definitions_from_parser",
    "definition_from_dict",
    "load_definitions",
]

logger = logging.getLogger(__name__)

# metavar -> hint, for tools that do not use type=Path
_METAVAR_HINTS = {
    "PATH": ValueHint.ANY_PATH,
    "DIR": ValueHint.DIR_PATH,
    "DIRECTORY": ValueHint.DIR_PATH,
    "FILE": ValueHint.FILE_PATH,
    "EXE": ValueHint.EXECUTABLE_PATH,
    "EXECUTABLE": ValueHint.EXECUTABLE_PATH,
}

_SKIPPED_ACTIONS = (argparse._HelpAction, argparse._VersionAction)


def _value_hint(action: argparse.Action) -> ValueHint:
    if action.type is pathlib.Path or action.type is pathlib.PurePath:
        return ValueHint.ANY_PATH
    if isinstance(action.type, argparse.FileType):
        return ValueHint.FILE_PATH
    if isinstance(action.metavar, str):
        return _METAVAR_HINTS.get(action.metavar.upper(), ValueHint.NONE)
    return ValueHint.NONE


def _is_multiple(action: argparse.Action) -> bool:
    if isinstance(action, (argparse._AppendAction, argparse._ExtendAction, argparse._CountAction)):
        return True
    nargs = action.nargs
    if nargs in ("*", "+", argparse.REMAINDER):
        return True
    return isinstance(nargs, int) and nargs > 1


def _default_values(action: argparse.Action, takes_value: bool) -> tuple[str, ...]:
    default = action.default
    if not takes_value or default is None or default is argparse.SUPPRESS:
        return ()
    if isinstance(default, (list, tuple)):
        return tuple(str(item) for item in default)
    return (str(default),)


def _option_names(action: argparse.Action, prefix_chars: str) -> tuple[str | None, str | None]:
    long: str | None = None
    short: str | None = None
    for option in action.option_strings:
        if option.startswith("no-", 2):
            # BooleanOptionalAction's negative twin
            continue
        if len(option) > 2 and option[0] in prefix_chars and option[1] == option[0]:
            long = long or option[2:]
        elif len(option) == 2 and option[0] in prefix_chars:
            short = short or option[1:]
    return long, short


def definitions_from_parser(parser: argparse.ArgumentParser) -> list[ArgumentDefinition]:
    """Describe every argument of an argparse parser.

    Help and version actions are skipped; subparsers are not supported.

    Args:
        parser: Parser of the tool to drive

    Returns:
        Definitions in declaration order
    """
    definitions: list[ArgumentDefinition] = []
    for action in parser._actions:
        if isinstance(action, _SKIPPED_ACTIONS):
            continue
        if isinstance(action, argparse._SubParsersAction):
            logger.warning(f"Skipping subcommands of {parser.prog!r}: not supported")
            continue

        takes_value = action.nargs != 0
        long, short = _option_names(action, parser.prefix_chars)
        help_text = None if action.help is argparse.SUPPRESS else action.help
        choices = action.choices
        definitions.append(
            ArgumentDefinition(
                name=action.dest,
                long=long,
                short=short,
                help=help_text,
                required=bool(action.required),
                multiple=_is_multiple(action),
                takes_value=takes_value,
                value_hint=_value_hint(action) if takes_value else ValueHint.NONE,
                possible_values=tuple(str(c) for c in choices) if choices is not None else None,
                default_values=_default_values(action, takes_value),
            )
        )
    logger.debug(f"Read {len(definitions)} argument definitions from {parser.prog!r}")
    return definitions


class DefinitionEntry(BaseModel):
    """One object of a JSON schema file.

    Booleans are strict so that "false" is rejected instead of being read
    as a truthy string. Numbers in value lists are accepted as strings.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        coerce_numbers_to_str=True,
    )

    name: str = Field(min_length=1)
    long: str | None = None
    short: str | None = None
    help: str | None = None
    long_help: str | None = None
    required: StrictBool = False
    multiple: StrictBool = False
    takes_value: StrictBool = False
    value_hint: ValueHint = ValueHint.NONE
    possible_values: tuple[str, ...] | None = None
    default_values: tuple[str, ...] = ()
    require_equals: StrictBool = False
    forbid_empty_values: StrictBool = False

    @field_validator("default_values", mode="before")
    @classmethod
    def _wrap_single_default(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            return (value,)
        return value

    def to_definition(self) -> ArgumentDefinition:
        return ArgumentDefinition(**self.model_dump())


def definition_from_dict(data: Any) -> ArgumentDefinition:
    """Build a definition from a JSON object.

    Raises:
        pydantic.ValidationError: Missing name, unknown keys or wrongly typed
            fields (a ValueError subclass)
    """
    return DefinitionEntry.model_validate(data).to_definition()


def load_definitions(path: str | Path) -> list[ArgumentDefinition]:
    """Load definitions from a JSON file holding an array of objects."""
    path = Path(path).expanduser()
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Schema file {path} must contain a JSON array")
    definitions = [definition_from_dict(item) for item in data]
    logger.info(f"Loaded {len(definitions)} argument definitions from {path}")
    return definitions
