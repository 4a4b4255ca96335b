"""Dynamic CLI engine.

Builds a numbered menu from a ContractInterface at run time and drives the
interactive loop against a live contract binding:

    Menu -> ParameterCollection(0..n) -> Dispatch -> ResultDisplay -> Menu

Choosing Exit ends the session. Failures inside one operation are logged
and the menu comes back; they never end the session.
"""

from __future__ import annotations

import logging
from collections.abc import Set as AbstractSet
from dataclasses import dataclass
from typing import Any, Sequence

from contractgen.sdk.binding import CapabilitySet, contract_address, read_ledger_state, to_receipt
from contractgen.sdk.models import ContractInterface, FunctionSpec, MenuItem, StateSpec
from contractgen.sdk.params import LineReader, ParameterCollector

logger = logging.getLogger(__name__)

DISPLAY_STATE_ID = "display_state"
EXIT_ID = "exit"


@dataclass(frozen=True)
class FailureHint:
    """Friendlier explanation shown when a failure message contains ``substring``."""

    substring: str
    hint: str


DEFAULT_FAILURE_HINTS: tuple[FailureHint, ...] = (
    FailureHint("member", "This might be because you have already voted. Each wallet can only vote once."),
)


def report_failure(function_name: str, error: BaseException, hints: Sequence[FailureHint] = DEFAULT_FAILURE_HINTS) -> str | None:
    """Log a failed operation and return the matching hint, if any."""
    message = str(error) or type(error).__name__
    logger.error("❌ %s failed: %s", function_name, message)
    for rule in hints:
        if rule.substring in message:
            logger.warning("💡 %s", rule.hint)
            return rule.hint
    return None


def format_state_value(value: Any) -> str:
    if value is None:
        return "Not available"
    if isinstance(value, (bytes, bytearray)):
        return f"0x{bytes(value).hex()}"
    if isinstance(value, AbstractSet):
        if not value:
            return "Empty set"
        items = sorted(format_state_value(item) for item in value)
        return f"Set with {len(items)} item(s): [{', '.join(items)}]"
    return str(value)


async def display_state(binding: Any, state_variables: Sequence[StateSpec | tuple[str, str]]) -> dict[str, str]:
    """Print every ledger state variable; returns the rendered lines by name."""
    logger.info("=== Contract State ===")
    address = contract_address(binding)
    if address:
        logger.info("Contract Address: %s", address)
    try:
        state = await read_ledger_state(binding)
    except Exception as e:
        logger.warning("Could not fetch ledger state: %s", e)
        state = {}

    rendered: dict[str, str] = {}
    for entry in state_variables:
        name, declared_type = (entry.name, entry.declared_type) if isinstance(entry, StateSpec) else entry
        rendered[name] = format_state_value(state.get(name))
        logger.info("%s (%s): %s", name, declared_type, rendered[name])
    return rendered


def function_label(func: FunctionSpec) -> str:
    """Title Case name plus a parameter count, e.g. 'Vote For (1 param)'."""
    count = len(func.parameters)
    if count == 0:
        return func.title
    return f"{func.title} ({count} param{'s' if count > 1 else ''})"


def menu_question(items: Sequence[MenuItem]) -> str:
    lines = ["", "You can do one of the following:"]
    for number, item in enumerate(items, start=1):
        marker = " (read-only)" if item.is_read_only and item.id not in (DISPLAY_STATE_ID, EXIT_ID) else ""
        lines.append(f"  {number}. {item.label}{marker}")
    lines.append("Which would you like to do? ")
    return "\n".join(lines)


class DynamicCLIEngine:
    """Interactive menu bound to one contract instance for one session."""

    def __init__(
        self,
        interface: ContractInterface,
        binding: Any,
        reader: LineReader,
        collector: ParameterCollector | None = None,
        hints: Sequence[FailureHint] = DEFAULT_FAILURE_HINTS,
    ):
        self.interface = interface
        self.binding = binding
        self.reader = reader
        self.collector = collector or ParameterCollector()
        self.hints = hints
        self.capabilities = CapabilitySet.from_binding(interface, binding)
        self.last_result: Any = None
        self.last_hint: str | None = None

    def build_menu(self) -> list[MenuItem]:
        """One entry per function followed by the state display and exit entries."""
        items = [
            MenuItem(
                id=f"func_{func.name}",
                label=function_label(func),
                description=func.description or f"Execute {func.name}",
                is_read_only=func.is_read_only,
                action=self._function_action(func),
            )
            for func in self.interface.functions
        ]
        items.append(
            MenuItem(
                id=DISPLAY_STATE_ID,
                label="Display contract state",
                description="Show current values of all ledger state",
                is_read_only=True,
                action=self._display_state,
            )
        )
        items.append(MenuItem(id=EXIT_ID, label="Exit", description="Exit the CLI", is_read_only=True))
        return items

    def menu_question(self, items: Sequence[MenuItem]) -> str:
        return menu_question(items)

    async def run(self) -> int:
        """Drive the menu loop until Exit. Returns the number of dispatched actions."""
        items = self.build_menu()
        logger.info("=== %s CLI ===", self.interface.contract_name)
        logger.info("📊 Available functions: %s", ", ".join(f.name for f in self.interface.functions) or "none")

        dispatched = 0
        while True:
            choice = (await self.reader.question(self.menu_question(items))).strip()
            item = self.select(items, choice)
            if item is None:
                logger.error("❌ Invalid choice: %s", choice)
                continue
            if item.is_exit:
                logger.info("👋 Goodbye!")
                return dispatched
            if item.action is not None:
                await item.action()
                dispatched += 1

    @staticmethod
    def select(items: Sequence[MenuItem], choice: str) -> MenuItem | None:
        if not choice.isdecimal():
            return None
        try:
            index = int(choice) - 1
        except ValueError:
            return None
        if 0 <= index < len(items):
            return items[index]
        return None

    def _function_action(self, func: FunctionSpec):
        async def action() -> None:
            await self.execute(func)
        return action

    async def execute(self, func: FunctionSpec) -> Any:
        """Collect parameters, dispatch and report. Failures are logged, not raised."""
        self.last_result = None
        self.last_hint = None
        logger.info("🔧 Executing %s...", func.name)
        try:
            args = await self.collector.collect_all(func.parameters, self.reader)
            result = await self.capabilities.invoke(func.name, *args)
        except Exception as e:
            self.last_hint = report_failure(func.name, e, self.hints)
            return None

        if func.mutates:
            receipt = to_receipt(result)
            logger.info("Transaction %s added in block %s", receipt.transaction_id, receipt.block_height)
            self.last_result = receipt
        else:
            logger.info("%s returned: %s", func.name, format_state_value(result))
            self.last_result = result
        logger.info("✅ %s executed successfully!", func.name)
        return self.last_result

    async def _display_state(self) -> None:
        await display_state(self.binding, self.interface.state_variables)
