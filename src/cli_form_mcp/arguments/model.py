"""Argument model.

Mutable per-argument state edited by the form layer, plus a side channel
holding the active validation error. Validation only happens as a
by-product of build_command(); every edit of an argument clears that
argument's error.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any, TypeVar

from ..errors import CommandBuildError
from .builder import build_command
from .classifier import classify_all
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
    ValueShape,
)

__all__ = ["ArgumentModel"]

logger = logging.getLogger(__name__)

_Shape = TypeVar("_Shape")


class ArgumentModel:
    """Ordered collection of argument specs for one command.

    Example:
        model = ArgumentModel.from_definitions(definitions)
        model.set_value("Name", "bob")
        model.increment("Verbose")
        try:
            argv = model.build_command()
        except CommandBuildError as e:
            show_error(e.name, e.message)
    """

    def __init__(self, specs: Iterable[ArgumentSpec]) -> None:
        self._specs: list[ArgumentSpec] = list(specs)
        self._by_name: dict[str, ArgumentSpec] = {}
        for spec in self._specs:
            if spec.name in self._by_name:
                raise ValueError(f"Duplicate argument name: {spec.name!r}")
            self._by_name[spec.name] = spec
        self._validation_error: ValidationError | None = None

    @classmethod
    def from_definitions(cls, definitions: Iterable[ArgumentDefinition]) -> "ArgumentModel":
        return cls(classify_all(list(definitions)))

    def __iter__(self) -> Iterator[ArgumentSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def names(self) -> list[str]:
        return [spec.name for spec in self._specs]

    def get(self, name: str) -> ArgumentSpec:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Unknown argument: {name!r}") from None

    # ------------------------------------------------------------------
    # Validation side channel
    # ------------------------------------------------------------------

    @property
    def validation_error(self) -> ValidationError | None:
        return self._validation_error

    def error_for(self, name: str) -> str | None:
        """Message of the active validation error if it belongs to name."""
        error = self._validation_error
        if error is not None and error.name == name:
            return error.message
        return None

    def _touch(self, name: str) -> None:
        if self._validation_error is not None and self._validation_error.name == name:
            logger.debug(f"Clearing validation error of {name!r}")
            self._validation_error = None

    def _kind(self, name: str, *shapes: type[_Shape]) -> _Shape:
        kind: ValueShape = self.get(name).kind
        if not isinstance(kind, shapes):
            expected = "/".join(s.__name__ for s in shapes)
            raise TypeError(f"{name!r} is {type(kind).__name__}, expected {expected}")
        self._touch(name)
        return kind  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def set_value(self, name: str, value: str) -> None:
        """Set the value of a Text or Path argument."""
        kind = self._kind(name, TextValue, PathValue)
        kind.value = value

    def reset_to_default(self, name: str) -> None:
        kind = self._kind(name, TextValue, PathValue, MultiTextValue, MultiPathValue)
        if isinstance(kind, (TextValue, PathValue)):
            kind.value = kind.default or ""
        else:
            kind.values = list(kind.default)

    def set_flag(self, name: str, enabled: bool) -> None:
        kind = self._kind(name, FlagValue)
        kind.enabled = bool(enabled)

    def set_count(self, name: str, count: int) -> None:
        if count < 0:
            raise ValueError(f"Count of {name!r} cannot be negative: {count}")
        kind = self._kind(name, CountValue)
        kind.count = count

    def increment(self, name: str) -> int:
        kind = self._kind(name, CountValue)
        kind.count += 1
        return kind.count

    def decrement(self, name: str) -> int:
        kind = self._kind(name, CountValue)
        kind.count = max(kind.count - 1, 0)
        return kind.count

    def select(self, name: str, value: str) -> None:
        """Select a value of a Choice argument ("" clears the selection)."""
        spec = self.get(name)
        kind = spec.kind
        if isinstance(kind, ChoiceValue):
            self._check_choice(name, kind.possible, value, allow_empty=True)
        kind = self._kind(name, ChoiceValue)
        kind.selected.value = value

    def set_values(self, name: str, values: Iterable[str]) -> None:
        """Replace the whole list of a multi-valued argument."""
        values = list(values)
        kind = self.get(name).kind
        if isinstance(kind, MultiChoiceValue):
            for value in values:
                self._check_choice(name, kind.possible, value, allow_empty=True)
        kind = self._kind(name, MultiTextValue, MultiPathValue, MultiChoiceValue)
        if isinstance(kind, MultiChoiceValue):
            kind.entries = [ChoiceEntry(value) for value in values]
        else:
            kind.values = values

    def append_value(self, name: str, value: str = "") -> None:
        kind = self.get(name).kind
        if isinstance(kind, MultiChoiceValue):
            self._check_choice(name, kind.possible, value, allow_empty=True)
        kind = self._kind(name, MultiTextValue, MultiPathValue, MultiChoiceValue)
        if isinstance(kind, MultiChoiceValue):
            kind.entries.append(ChoiceEntry(value))
        else:
            kind.values.append(value)

    def remove_value(self, name: str, index: int) -> None:
        kind = self.get(name).kind
        if isinstance(kind, (MultiTextValue, MultiPathValue, MultiChoiceValue)):
            items = kind.entries if isinstance(kind, MultiChoiceValue) else kind.values
            if not -len(items) <= index < len(items):
                raise IndexError(f"{name!r} has no value at index {index}")
        kind = self._kind(name, MultiTextValue, MultiPathValue, MultiChoiceValue)
        if isinstance(kind, MultiChoiceValue):
            del kind.entries[index]
        else:
            del kind.values[index]

    @staticmethod
    def _check_choice(name: str, possible: tuple[str, ...], value: str, allow_empty: bool) -> None:
        if value == "" and allow_empty:
            return
        if value not in possible:
            raise ValueError(
                f"{value!r} is not a possible value of {name!r} "
                f"(expected one of {', '.join(possible)})"
            )

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build_command(self) -> list[str]:
        """Build the argv, recording a failure in the validation side channel.

        Raises:
            CommandBuildError: First argument that failed to serialize
        """
        try:
            return build_command(self._specs)
        except CommandBuildError as e:
            logger.info(f"Command build failed: {e.message}")
            self._validation_error = ValidationError(e.name, e.message)
            raise

    def snapshot(self) -> list[dict[str, Any]]:
        """Plain-data description of every argument, in schema order."""
        items = []
        for spec in self._specs:
            data = spec.to_dict()
            data["error"] = self.error_for(spec.name)
            items.append(data)
        return items
