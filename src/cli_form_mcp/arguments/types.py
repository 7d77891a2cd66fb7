"""Argument schema and value-shape types.

cli-form-mcp arguments module v0.1.0

Defines the neutral schema representation consumed by the classifier
(ArgumentDefinition), the immutable per-argument description (ArgumentSpec)
and the eight mutually exclusive value shapes an argument can take.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

__all__ = [
    "ValueHint",
    "ArgumentDefinition",
    "ChoiceEntry",
    "TextValue",
    "MultiTextValue",
    "CountValue",
    "FlagValue",
    "PathValue",
    "MultiPathValue",
    "ChoiceValue",
    "MultiChoiceValue",
    "ValueShape",
    "ArgumentSpec",
    "ValidationError",
    "to_sentence_case",
]


class ValueHint(str, Enum):
    """What kind of value an argument expects.

    Only the path hints influence classification; OTHER covers any
    non-path hint a schema source may report (urls, hostnames, ...).
    """

    NONE = "none"
    ANY_PATH = "any_path"
    DIR_PATH = "dir_path"
    FILE_PATH = "file_path"
    EXECUTABLE_PATH = "executable_path"
    OTHER = "other"

    @property
    def is_path(self) -> bool:
        return self in _PATH_HINTS

    @property
    def allows_dir(self) -> bool:
        return self in (ValueHint.ANY_PATH, ValueHint.DIR_PATH)

    @property
    def allows_file(self) -> bool:
        return self in (ValueHint.ANY_PATH, ValueHint.FILE_PATH, ValueHint.EXECUTABLE_PATH)


_PATH_HINTS = frozenset({
    ValueHint.ANY_PATH,
    ValueHint.DIR_PATH,
    ValueHint.FILE_PATH,
    ValueHint.EXECUTABLE_PATH,
})


@dataclass(frozen=True)
class ArgumentDefinition:
    """One command-line argument as reported by a schema source.

    Attributes:
        name: Identifier of the argument (e.g. "output_dir")
        long: Long flag without dashes (e.g. "output-dir")
        short: Short flag character without dash (e.g. "o")
        help: Short help text
        long_help: Long help text, preferred over help when present
        required: Argument must be supplied
        multiple: Argument may occur more than once
        takes_value: Argument carries a value
        value_hint: Value classification
        possible_values: Allowed values, None when unrestricted
        default_values: Default value(s)
        require_equals: Join flag and value with "="
        forbid_empty_values: Empty values are rejected by the tool
    """

    name: str
    long: str | None = None
    short: str | None = None
    help: str | None = None
    long_help: str | None = None
    required: bool = False
    multiple: bool = False
    takes_value: bool = False
    value_hint: ValueHint = ValueHint.NONE
    possible_values: tuple[str, ...] | None = None
    default_values: tuple[str, ...] = ()
    require_equals: bool = False
    forbid_empty_values: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.value_hint, str) and not isinstance(self.value_hint, ValueHint):
            object.__setattr__(self, "value_hint", ValueHint(self.value_hint))
        if self.possible_values is not None and not isinstance(self.possible_values, tuple):
            object.__setattr__(self, "possible_values", tuple(self.possible_values))
        if not isinstance(self.default_values, tuple):
            object.__setattr__(self, "default_values", tuple(self.default_values))

    @property
    def call_name(self) -> str | None:
        if self.long:
            return f"--{self.long}"
        if self.short:
            return f"-{self.short}"
        return None

    @property
    def description(self) -> str | None:
        return self.long_help or self.help

    @property
    def is_optional(self) -> bool:
        return not self.required and not self.forbid_empty_values


@dataclass
class ChoiceEntry:
    """A selected choice plus an opaque identity key.

    The key lets consumers tell apart otherwise identical entries of a
    multi-choice list. It never takes part in serialization.
    """

    value: str = ""
    key: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class TextValue:
    value: str = ""
    default: str | None = None


@dataclass
class MultiTextValue:
    values: list[str] = field(default_factory=list)
    default: list[str] = field(default_factory=list)


@dataclass
class CountValue:
    count: int = 0


@dataclass
class FlagValue:
    enabled: bool = False


@dataclass
class PathValue:
    value: str = ""
    default: str | None = None
    allow_dir: bool = True
    allow_file: bool = True


@dataclass
class MultiPathValue:
    values: list[str] = field(default_factory=list)
    default: list[str] = field(default_factory=list)
    allow_dir: bool = True
    allow_file: bool = True


@dataclass
class ChoiceValue:
    selected: ChoiceEntry = field(default_factory=ChoiceEntry)
    possible: tuple[str, ...] = ()


@dataclass
class MultiChoiceValue:
    entries: list[ChoiceEntry] = field(default_factory=list)
    possible: tuple[str, ...] = ()


ValueShape = Union[
    TextValue,
    MultiTextValue,
    CountValue,
    FlagValue,
    PathValue,
    MultiPathValue,
    ChoiceValue,
    MultiChoiceValue,
]


@dataclass(frozen=True)
class ArgumentSpec:
    """Immutable identity of one argument plus its (mutable) value state.

    The spec is frozen, so ``kind`` can never be swapped for another
    shape; the form layer edits the fields of ``kind`` in place.

    Attributes:
        name: Display name
        call_name: Flag token prefixed to the value, None for positionals
        desc: Description shown next to the field
        optional: Empty value is acceptable
        use_equals: Emit "call=value" instead of two tokens
        kind: Value shape
    """

    name: str
    call_name: str | None
    desc: str | None
    optional: bool
    use_equals: bool
    kind: ValueShape

    @property
    def shape(self) -> str:
        return type(self.kind).__name__

    def to_dict(self) -> dict[str, Any]:
        """Describe the argument as plain JSON-compatible data."""
        kind = self.kind
        data: dict[str, Any] = {
            "name": self.name,
            "call_name": self.call_name,
            "desc": self.desc,
            "optional": self.optional,
            "use_equals": self.use_equals,
            "shape": self.shape,
        }
        if isinstance(kind, (TextValue, PathValue)):
            data["value"] = kind.value
            data["default"] = kind.default
        elif isinstance(kind, (MultiTextValue, MultiPathValue)):
            data["values"] = list(kind.values)
            data["default"] = list(kind.default)
        elif isinstance(kind, CountValue):
            data["value"] = kind.count
        elif isinstance(kind, FlagValue):
            data["value"] = kind.enabled
        elif isinstance(kind, ChoiceValue):
            data["value"] = kind.selected.value
            data["possible"] = list(kind.possible)
        elif isinstance(kind, MultiChoiceValue):
            data["values"] = [entry.value for entry in kind.entries]
            data["possible"] = list(kind.possible)
        if isinstance(kind, (PathValue, MultiPathValue)):
            data["allow_dir"] = kind.allow_dir
            data["allow_file"] = kind.allow_file
        return data


@dataclass(frozen=True)
class ValidationError:
    """The active validation failure of one argument."""

    name: str
    message: str


_WORD_BOUNDARY = re.compile(r"[_\-\s]+|(?<=[a-z0-9])(?=[A-Z])")


def to_sentence_case(identifier: str) -> str:
    """Turn an identifier into a display label.

    "output_dir", "output-dir" and "outputDir" all become "Output dir".
    """
    words = [w for w in _WORD_BOUNDARY.split(identifier) if w]
    if not words:
        return identifier
    sentence = " ".join(w.lower() for w in words)
    return sentence[0].upper() + sentence[1:]
