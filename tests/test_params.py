"""Test interactive parameter conversion and choice overrides."""

from __future__ import annotations

import pytest

from contractgen.sdk.errors import ParameterValidationError
from contractgen.sdk.models import ParamSpec
from contractgen.sdk.params import (
    ChoiceRule,
    ParameterCollector,
    collect_parameter,
    parse_boolean,
    parse_bytes,
)
from tests.helpers import ScriptedReader


@pytest.fixture
def collector() -> ParameterCollector:
    return ParameterCollector()


def test_bounded_integer_accepts_in_range(collector: ParameterCollector) -> None:
    """Test '2' converts to 2 for a 0..3 parameter."""
    assert collector.convert(ParamSpec(name="level", declared_type="0..3"), "2") == 2


@pytest.mark.parametrize("text", ["7", "abc", "-1", ""])
def test_bounded_integer_rejects_bad_input(collector: ParameterCollector, text: str) -> None:
    """Test out-of-range and non-numeric input raise validation errors."""
    with pytest.raises(ParameterValidationError):
        collector.convert(ParamSpec(name="level", declared_type="0..3"), text)


def test_integer_error_messages(collector: ParameterCollector) -> None:
    """Test validation messages name the parameter and the bound."""
    with pytest.raises(ParameterValidationError, match="amount must be <= 255"):
        collector.convert(ParamSpec(name="amount", declared_type="Uint<8>"), "256")
    with pytest.raises(ParameterValidationError, match="Invalid number for amount"):
        collector.convert(ParamSpec(name="amount", declared_type="Uint<8>"), "12x")


def test_integer_allows_whitespace_and_separators(collector: ParameterCollector) -> None:
    """Test friendly integer formatting."""
    assert collector.convert(ParamSpec(name="n", declared_type="Uint<64>"), " 1_000 ") == 1000


@pytest.mark.parametrize("text, expected", [
    ("true", True), ("TRUE", True), ("1", True), ("yes", True), ("y", True),
    ("false", False), ("0", False), ("nope", False), ("", False),
])
def test_boolean_tokens(text: str, expected: bool) -> None:
    """Test only the fixed truthy tokens are true."""
    assert parse_boolean(text) is expected


def test_bytes_conversion() -> None:
    """Test 0x hex and raw text conversion without length enforcement."""
    assert parse_bytes("0xdeadbeef") == b"\xde\xad\xbe\xef"
    assert parse_bytes("0XAB") == b"\xab"
    assert parse_bytes("hello") == b"hello"
    with pytest.raises(ParameterValidationError, match="Invalid hex"):
        parse_bytes("0xzz")


def test_other_types_pass_through(collector: ParameterCollector) -> None:
    """Test unknown and text types return the raw input."""
    assert collector.convert(ParamSpec(name="memo", declared_type='Opaque<"string">'), " hi ") == " hi "
    assert collector.convert(ParamSpec(name="thing", declared_type="Mystery"), "x") == "x"


@pytest.mark.asyncio
async def test_index_parameter_uses_choice_prompt() -> None:
    """Test names containing 'index' get the enumerated-choice prompt."""
    reader = ScriptedReader(["1"])
    value = await collect_parameter(ParamSpec(name="choice_index", declared_type="Uint<8>"), reader)

    assert value == 1
    assert reader.prompts[0].startswith("Select option:")
    assert "0. Option A" in reader.prompts[0]
    assert "Enter choice (0 or 1)" in reader.prompts[0]


@pytest.mark.asyncio
async def test_choice_prompt_rejects_other_values() -> None:
    """Test closed choices refuse values outside the menu."""
    reader = ScriptedReader(["2"])
    with pytest.raises(ParameterValidationError, match="Please enter 0 or 1"):
        await collect_parameter(ParamSpec(name="index", declared_type="Uint<8>"), reader)


@pytest.mark.asyncio
async def test_free_text_prompt_mentions_type() -> None:
    """Test regular parameters get a typed free-text prompt."""
    reader = ScriptedReader(["42"])
    value = await collect_parameter(ParamSpec(name="amount", declared_type="Uint<8>"), reader)

    assert value == 42
    assert reader.prompts == ["Enter amount (integer 0..255): "]


@pytest.mark.asyncio
async def test_rules_are_prioritized() -> None:
    """Test the first matching rule wins and rule lists are extensible."""
    rules = (
        ChoiceRule("side", ((0, "Left"), (1, "Right"), (2, "Center")), title="Pick a side:"),
        ChoiceRule("index", ((0, "Option A"), (1, "Option B"))),
    )
    collector = ParameterCollector(rules=rules)
    reader = ScriptedReader(["2"])

    value = await collector.collect(ParamSpec(name="side_index", declared_type="Uint<8>"), reader)

    assert value == 2
    assert reader.prompts[0].startswith("Pick a side:")
    assert "Enter choice (0, 1 or 2)" in reader.prompts[0]


@pytest.mark.asyncio
async def test_collect_all_keeps_order(collector: ParameterCollector) -> None:
    """Test parameters are collected positionally."""
    params = [
        ParamSpec(name="sk", declared_type="Bytes<32>"),
        ParamSpec(name="flag", declared_type="Boolean"),
    ]
    values = await collector.collect_all(params, ScriptedReader(["0x01", "yes"]))
    assert values == [b"\x01", True]
