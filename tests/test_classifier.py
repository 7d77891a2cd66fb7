"""Argument classifier tests.

Test coverage:
- Every row of the classification table
- Derived fields (call name, description, optional, display name)
- Determinism and exhaustiveness
"""

from __future__ import annotations

import itertools

import pytest

from cli_form_mcp.arguments import (
    ArgumentDefinition,
    ChoiceValue,
    CountValue,
    FlagValue,
    MultiChoiceValue,
    MultiPathValue,
    MultiTextValue,
    PathValue,
    TextValue,
    ValueHint,
    classify,
)
from cli_form_mcp.arguments.classifier import CLASSIFICATION_TABLE
from cli_form_mcp.arguments.types import to_sentence_case


# =============================================================================
# Classification table
# =============================================================================


class TestClassificationTable:
    """Test the eight-way shape partition."""

    def test_multiple_path_value(self):
        spec = classify(ArgumentDefinition(
            name="inputs", long="input", multiple=True, takes_value=True,
            value_hint=ValueHint.ANY_PATH, default_values=("a.txt", "b.txt"),
        ))
        assert isinstance(spec.kind, MultiPathValue)
        assert spec.kind.values == ["a.txt", "b.txt"]
        assert spec.kind.default == ["a.txt", "b.txt"]
        assert spec.kind.allow_dir is True
        assert spec.kind.allow_file is True

    def test_multiple_path_values_are_independent_of_default(self):
        spec = classify(ArgumentDefinition(
            name="inputs", multiple=True, takes_value=True,
            value_hint=ValueHint.FILE_PATH, default_values=("a",),
        ))
        spec.kind.values.append("b")
        assert spec.kind.default == ["a"]

    def test_multiple_text_value(self):
        spec = classify(ArgumentDefinition(
            name="tag", long="tag", multiple=True, takes_value=True,
            default_values=("x",),
        ))
        assert isinstance(spec.kind, MultiTextValue)
        assert spec.kind.values == ["x"]

    def test_single_path_value(self):
        spec = classify(ArgumentDefinition(
            name="out", long="out", takes_value=True,
            value_hint=ValueHint.DIR_PATH, default_values=("/tmp",),
        ))
        assert isinstance(spec.kind, PathValue)
        assert spec.kind.value == "/tmp"
        assert spec.kind.default == "/tmp"
        assert spec.kind.allow_dir is True
        assert spec.kind.allow_file is False

    def test_single_path_without_default(self):
        spec = classify(ArgumentDefinition(
            name="exe", takes_value=True, value_hint=ValueHint.EXECUTABLE_PATH,
        ))
        assert isinstance(spec.kind, PathValue)
        assert spec.kind.value == ""
        assert spec.kind.default is None
        assert spec.kind.allow_dir is False
        assert spec.kind.allow_file is True

    def test_single_text_starts_empty_with_default_hint(self):
        spec = classify(ArgumentDefinition(
            name="name", long="name", takes_value=True, default_values=("alice",),
        ))
        assert isinstance(spec.kind, TextValue)
        assert spec.kind.value == ""
        assert spec.kind.default == "alice"

    def test_non_path_hint_is_text(self):
        spec = classify(ArgumentDefinition(
            name="url", long="url", takes_value=True, value_hint=ValueHint.OTHER,
        ))
        assert isinstance(spec.kind, TextValue)

    def test_multiple_without_value_is_count(self):
        spec = classify(ArgumentDefinition(name="verbose", short="v", multiple=True))
        assert isinstance(spec.kind, CountValue)
        assert spec.kind.count == 0

    def test_single_without_value_is_flag(self):
        spec = classify(ArgumentDefinition(name="force", long="force"))
        assert isinstance(spec.kind, FlagValue)
        assert spec.kind.enabled is False

    def test_required_choice_selects_first(self):
        spec = classify(ArgumentDefinition(
            name="mode", long="mode", takes_value=True, required=True,
            possible_values=("fast", "slow"),
        ))
        assert isinstance(spec.kind, ChoiceValue)
        assert spec.kind.selected.value == "fast"
        assert spec.kind.possible == ("fast", "slow")

    def test_optional_choice_starts_empty(self):
        spec = classify(ArgumentDefinition(
            name="mode", long="mode", takes_value=True, possible_values=("fast", "slow"),
        ))
        assert isinstance(spec.kind, ChoiceValue)
        assert spec.kind.selected.value == ""

    def test_choice_ignores_takes_value(self):
        spec = classify(ArgumentDefinition(name="mode", possible_values=("a",), required=True))
        assert isinstance(spec.kind, ChoiceValue)

    def test_multiple_choice_starts_empty(self):
        spec = classify(ArgumentDefinition(
            name="feature", long="feature", multiple=True, takes_value=True,
            possible_values=("a", "b"), default_values=("a",),
        ))
        assert isinstance(spec.kind, MultiChoiceValue)
        assert spec.kind.entries == []
        assert spec.kind.possible == ("a", "b")

    def test_choice_wins_over_path_hint(self):
        spec = classify(ArgumentDefinition(
            name="target", takes_value=True, value_hint=ValueHint.FILE_PATH,
            possible_values=("a", "b"),
        ))
        assert isinstance(spec.kind, ChoiceValue)


class TestTableExhaustive:
    """Test every key is classified exactly once."""

    def test_all_sixteen_keys_present(self):
        keys = set(itertools.product((True, False), repeat=4))
        assert set(CLASSIFICATION_TABLE) == keys

    @pytest.mark.parametrize("multiple,takes_value,hint,has_set", list(itertools.product(
        (True, False), (True, False), list(ValueHint), (True, False),
    )))
    def test_every_definition_classifies(self, multiple, takes_value, hint, has_set):
        definition = ArgumentDefinition(
            name="arg", long="arg", multiple=multiple, takes_value=takes_value,
            value_hint=hint, possible_values=("x",) if has_set else None,
        )
        assert classify(definition).kind is not None


# =============================================================================
# Derived fields
# =============================================================================


class TestDerivedFields:
    """Test call name, description, optional and display name."""

    def test_long_preferred_over_short(self):
        spec = classify(ArgumentDefinition(name="name", long="name", short="n"))
        assert spec.call_name == "--name"

    def test_short_when_no_long(self):
        spec = classify(ArgumentDefinition(name="name", short="n"))
        assert spec.call_name == "-n"

    def test_positional_has_no_call_name(self):
        spec = classify(ArgumentDefinition(name="file", takes_value=True))
        assert spec.call_name is None

    def test_long_help_preferred(self):
        spec = classify(ArgumentDefinition(name="x", help="short", long_help="long"))
        assert spec.desc == "long"

    def test_help_fallback(self):
        spec = classify(ArgumentDefinition(name="x", help="short"))
        assert spec.desc == "short"

    def test_required_is_not_optional(self):
        assert classify(ArgumentDefinition(name="x", required=True)).optional is False

    def test_forbid_empty_values_is_not_optional(self):
        assert classify(ArgumentDefinition(name="x", forbid_empty_values=True)).optional is False

    def test_default_is_optional(self):
        assert classify(ArgumentDefinition(name="x")).optional is True

    def test_require_equals(self):
        spec = classify(ArgumentDefinition(name="x", long="x", takes_value=True, require_equals=True))
        assert spec.use_equals is True

    def test_display_name_is_sentence_case(self):
        assert classify(ArgumentDefinition(name="output_dir")).name == "Output dir"

    @pytest.mark.parametrize("identifier,expected", [
        ("name", "Name"),
        ("output_dir", "Output dir"),
        ("output-dir", "Output dir"),
        ("outputDir", "Output dir"),
        ("MAX_SIZE", "Max size"),
    ])
    def test_to_sentence_case(self, identifier, expected):
        assert to_sentence_case(identifier) == expected

    def test_string_hint_is_converted(self):
        definition = ArgumentDefinition(name="x", takes_value=True, value_hint="dir_path")
        assert definition.value_hint is ValueHint.DIR_PATH


class TestDeterminism:
    """Test re-classifying gives the same result."""

    @pytest.mark.parametrize("definition", [
        ArgumentDefinition(name="a", long="a", takes_value=True, default_values=("1",)),
        ArgumentDefinition(name="b", multiple=True, takes_value=True, value_hint=ValueHint.ANY_PATH),
        ArgumentDefinition(name="c", short="c", multiple=True),
        ArgumentDefinition(name="d", long="d"),
        ArgumentDefinition(name="e", multiple=True, possible_values=("x", "y")),
    ])
    def test_same_definition_same_spec(self, definition):
        assert classify(definition) == classify(definition)

    def test_choice_same_shape_and_value(self):
        definition = ArgumentDefinition(name="m", required=True, possible_values=("x", "y"))
        first, second = classify(definition), classify(definition)
        assert first.shape == second.shape
        assert first.kind.selected.value == second.kind.selected.value
        assert first.kind.selected.key != second.kind.selected.key
