"""Interactive parameter elicitation.

Converts a line of user input into the value a contract call expects,
based on the parameter's declared type. Parameter names matching a
ChoiceRule get a closed menu instead of free-text entry; rules are checked
in order and the first match wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from contractgen.sdk.errors import ParameterValidationError
from contractgen.sdk.models import ParamSpec
from contractgen.sdk.types import MappedType, TypeKind, TypeMapper

TRUTHY_TOKENS = frozenset({"true", "1", "yes", "y"})


class LineReader(Protocol):
    """Anything that can ask a question and await one line of input."""

    async def question(self, prompt: str) -> str: ...


@dataclass(frozen=True)
class ChoiceRule:
    """Closed-choice prompt for parameters whose name contains ``substring``."""

    substring: str
    choices: tuple[tuple[int, str], ...]
    title: str = "Select option:"

    def matches(self, param_name: str) -> bool:
        return self.substring in param_name

    def prompt(self) -> str:
        lines = [self.title]
        lines.extend(f"  {value}. {label}" for value, label in self.choices)
        lines.append(f"Enter choice ({self._allowed_text()}): ")
        return "\n".join(lines)

    def convert(self, text: str) -> int:
        allowed = {value for value, _ in self.choices}
        try:
            value = int(text.strip())
        except ValueError:
            value = None
        if value not in allowed:
            raise ParameterValidationError(f"Invalid choice. Please enter {self._allowed_text()}.")
        return value

    def _allowed_text(self) -> str:
        values = [str(value) for value, _ in self.choices]
        if len(values) <= 1:
            return "".join(values)
        return f"{', '.join(values[:-1])} or {values[-1]}"


DEFAULT_CHOICE_RULES: tuple[ChoiceRule, ...] = (
    ChoiceRule("index", ((0, "Option A"), (1, "Option B"))),
)


def parse_integer(text: str, mapped: MappedType, name: str = "value") -> int:
    """Parse base-10 input and check it against the mapped range."""
    cleaned = text.strip().replace("_", "")
    try:
        value = int(cleaned, 10)
    except ValueError:
        raise ParameterValidationError(f"Invalid number for {name}: {text!r}") from None
    if mapped.minimum is not None and value < mapped.minimum:
        raise ParameterValidationError(f"{name} must be >= {mapped.minimum}, got {value}")
    if mapped.maximum is not None and value > mapped.maximum:
        raise ParameterValidationError(f"{name} must be <= {mapped.maximum}, got {value}")
    return value


def parse_boolean(text: str) -> bool:
    return text.strip().lower() in TRUTHY_TOKENS


def parse_bytes(text: str, name: str = "value") -> bytes:
    """``0x``-prefixed hex or raw UTF-8 text. Length is left to the binding."""
    stripped = text.strip()
    if stripped[:2].lower() == "0x":
        try:
            return bytes.fromhex(stripped[2:])
        except ValueError:
            raise ParameterValidationError(f"Invalid hex for {name}: {stripped!r}") from None
    return text.encode("utf-8")


@dataclass
class ParameterCollector:
    """Prompt for and convert each declared parameter."""

    type_mapper: TypeMapper = field(default_factory=TypeMapper)
    rules: Sequence[ChoiceRule] = DEFAULT_CHOICE_RULES

    def rule_for(self, param: ParamSpec) -> ChoiceRule | None:
        for rule in self.rules:
            if rule.matches(param.name):
                return rule
        return None

    def prompt_for(self, param: ParamSpec) -> str:
        return f"Enter {param.name} ({self.type_mapper.map(param.declared_type).describe()}): "

    def convert(self, param: ParamSpec, text: str) -> Any:
        """Convert raw input according to the declared type."""
        mapped = self.type_mapper.map(param.declared_type)
        if mapped.kind is TypeKind.INTEGER:
            return parse_integer(text, mapped, param.name)
        if mapped.kind is TypeKind.BOOLEAN:
            return parse_boolean(text)
        if mapped.kind is TypeKind.BYTES:
            return parse_bytes(text, param.name)
        return text

    async def collect(self, param: ParamSpec, reader: LineReader) -> Any:
        rule = self.rule_for(param)
        if rule is not None:
            return rule.convert(await reader.question(rule.prompt()))
        return self.convert(param, await reader.question(self.prompt_for(param)))

    async def collect_all(self, params: Sequence[ParamSpec], reader: LineReader) -> list[Any]:
        return [await self.collect(param, reader) for param in params]


_default_collector = ParameterCollector()


async def collect_parameter(param: ParamSpec, reader: LineReader) -> Any:
    """Collect one parameter with the default type table and choice rules."""
    return await _default_collector.collect(param, reader)
