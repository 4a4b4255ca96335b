"""Template-based generation of API wrapper and CLI modules.

Rendering is a pure function of the ContractInterface: no timestamps, no
environment lookups, stable ordering. Regenerating an unchanged interface
gives byte-identical files. Writing always overwrites the whole file, so
hand edits to generated modules do not survive regeneration.
"""

from __future__ import annotations

import logging
import pprint
from pathlib import Path

from contractgen.sdk.engine import function_label
from contractgen.sdk.models import (
    ContractInterface,
    FunctionSpec,
    GenerationArtifact,
    ParamSpec,
    function_metadata,
)
from contractgen.sdk.types import TypeMapper

logger = logging.getLogger(__name__)

GUIDE_FILE_NAME = "DYNAMIC_CLI_GUIDE.md"

# module-level names in generated API modules that functions must not shadow
_API_RESERVED = frozenset({
    "Any", "TxReceipt", "CONTRACT_NAME", "SOURCE_FILE", "CONTRACT_METADATA", "annotations", "_binding",
})
# names referenced inside generated API functions and CLI handlers
_HANDLER_RESERVED = frozenset({
    "binding", "reader", "result", "receipt", "api", "logger",
    "_binding", "_engine", "ParamSpec", "collect_parameter",
})


def _docstring(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')


def _header(title: str, interface: ContractInterface) -> list[str]:
    source = interface.source_file or "contract source"
    return [
        f'"""{_docstring(title)}',
        "",
        f"Generated by contractgen from {_docstring(source)}. Do not edit: regeneration",
        "overwrites this file.",
        '"""',
        "",
        "from __future__ import annotations",
        "",
    ]


class CodeGenerator:
    """Render and write the generated client package for one contract."""

    def __init__(self, type_mapper: TypeMapper | None = None):
        self.type_mapper = type_mapper or TypeMapper()

    def api_module_name(self, interface: ContractInterface) -> str:
        return f"{interface.module_stem}_api"

    def cli_module_name(self, interface: ContractInterface) -> str:
        return f"{interface.module_stem}_cli"

    @staticmethod
    def api_function_name(func: FunctionSpec) -> str:
        name = func.identifier
        return f"{name}_" if name in _API_RESERVED else name

    @staticmethod
    def argument_name(param: ParamSpec) -> str:
        name = param.identifier
        return f"{name}_" if name in _HANDLER_RESERVED else name

    def render_api(self, interface: ContractInterface) -> str:
        """One async operation per function, delegating to the binding."""
        lines = _header(f"API wrapper for {interface.contract_name}.", interface)
        lines += [
            "from typing import Any",
            "",
            "from contractgen.sdk import binding as _binding",
            "from contractgen.sdk.models import TxReceipt",
            "",
            f"CONTRACT_NAME = {interface.contract_name!r}",
            f"SOURCE_FILE = {interface.source_file!r}",
        ]
        for func in interface.functions:
            lines += ["", ""] + self._render_api_function(func)

        metadata = {
            "name": interface.contract_name,
            "file_name": interface.source_file,
            "functions": [function_metadata(func) for func in interface.functions],
            "ledger_state": [{"name": s.name, "type": s.declared_type} for s in interface.state_variables],
        }
        lines += ["", "", f"CONTRACT_METADATA = {pprint.pformat(metadata, sort_dicts=False, width=88)}", ""]
        return "\n".join(lines)

    def _render_api_function(self, func: FunctionSpec) -> list[str]:
        args = [self.argument_name(p) for p in func.parameters]
        signature = ["binding: Any"] + [
            f"{arg}: {self.type_mapper.python_type(p.declared_type)}" for arg, p in zip(args, func.parameters)
        ]
        call_args = "".join(f", {arg}" for arg in args)
        if func.mutates:
            returns = "TxReceipt"
            kind = "Mutation: submits a transaction and returns its receipt."
            body = f"return await _binding.submit_transaction(binding, {func.name!r}{call_args})"
        else:
            returns = self.type_mapper.python_type(func.return_type)
            kind = f"Query: returns the contract's {func.return_type or '[]'} value."
            body = f"return await _binding.query(binding, {func.name!r}{call_args})"

        lines = [f"async def {self.api_function_name(func)}({', '.join(signature)}) -> {returns}:"]
        lines.append(f'    """{_docstring(func.description or f"Execute {func.name}.")}')
        lines.append("")
        lines.append(f"    {kind}")
        if func.parameters:
            lines.append("")
            lines.append("    Args:")
            for arg, param in zip(args, func.parameters):
                lines.append(f"        {arg}: {_docstring(param.declared_type)}")
        lines.append('    """')
        lines.append(f"    {body}")
        return lines

    def render_cli(self, interface: ContractInterface) -> str:
        """Numbered menu, dispatch table and interactive loop."""
        functions = interface.functions
        display_choice = str(len(functions) + 1)
        exit_choice = str(len(functions) + 2)

        lines = _header(f"Interactive menu for {interface.contract_name}.", interface)
        lines += [
            "import logging",
            "from typing import Any",
            "",
            "from contractgen.sdk import engine as _engine",
            "from contractgen.sdk.models import ParamSpec",
            "from contractgen.sdk.params import LineReader, collect_parameter",
            "",
            f"from . import {self.api_module_name(interface)} as api",
            "",
            "logger = logging.getLogger(__name__)",
            "",
            "MENU = (",
        ]
        for func in functions:
            lines.append(f"    ({function_label(func)!r}, {func.is_read_only!r}),")
        lines += [
            "    ('Display contract state', False),",
            "    ('Exit', False),",
            ")",
            "STATE_VARIABLES = (",
        ]
        for state in interface.state_variables:
            lines.append(f"    ({state.name!r}, {state.declared_type!r}),")
        lines += [
            ")",
            f"DISPLAY_STATE_CHOICE = {display_choice!r}",
            f"EXIT_CHOICE = {exit_choice!r}",
            "",
            "",
            "def menu_question() -> str:",
            "    lines = ['', 'You can do one of the following:']",
            "    for number, (label, read_only) in enumerate(MENU, start=1):",
            "        lines.append(f\"  {number}. {label}{' (read-only)' if read_only else ''}\")",
            "    lines.append('Which would you like to do? ')",
            "    return '\\n'.join(lines)",
        ]
        for func in functions:
            lines += ["", ""] + self._render_handler(func)

        lines += ["", "", "DISPATCH = {"]
        for number, func in enumerate(functions, start=1):
            lines.append(f"    {str(number)!r}: ({func.name!r}, _call_{func.identifier}),")
        lines += [
            "}",
            "",
            "",
            "async def run(binding: Any, reader: LineReader) -> None:",
            '    """Menu loop; returns when the user picks Exit."""',
            f"    logger.info({f'=== {interface.contract_name} CLI ==='!r})",
            "    while True:",
            "        choice = (await reader.question(menu_question())).strip()",
            "        if choice == EXIT_CHOICE:",
            "            logger.info('Goodbye!')",
            "            return",
            "        if choice == DISPLAY_STATE_CHOICE:",
            "            await _engine.display_state(binding, STATE_VARIABLES)",
            "            continue",
            "        entry = DISPATCH.get(choice)",
            "        if entry is None:",
            "            logger.error('Invalid choice: %s', choice)",
            "            continue",
            "        name, handler = entry",
            "        try:",
            "            await handler(binding, reader)",
            "        except Exception as e:",
            "            _engine.report_failure(name, e)",
            "",
        ]
        return "\n".join(lines)

    def _render_handler(self, func: FunctionSpec) -> list[str]:
        lines = [f"async def _call_{func.identifier}(binding: Any, reader: LineReader) -> None:"]
        args = []
        for param in func.parameters:
            arg = self.argument_name(param)
            args.append(arg)
            spec = f"ParamSpec(name={param.name!r}, declared_type={param.declared_type!r})"
            lines.append(f"    {arg} = await collect_parameter({spec}, reader)")
        call = f"api.{self.api_function_name(func)}({', '.join(['binding'] + args)})"
        if func.mutates:
            lines.append(f"    receipt = await {call}")
            lines.append("    logger.info('Transaction %s added in block %s', receipt.transaction_id, receipt.block_height)")
        else:
            lines.append(f"    result = await {call}")
            lines.append(f"    logger.info({f'{func.name} returned: %s'!r}, _engine.format_state_value(result))")
        return lines

    def render_package_init(self, interface: ContractInterface) -> str:
        api_module = self.api_module_name(interface)
        cli_module = self.cli_module_name(interface)
        return "\n".join([
            f'"""Generated client package for {_docstring(interface.contract_name)}."""',
            "",
            f"from . import {api_module}, {cli_module}",
            "",
            f"__all__ = [{api_module!r}, {cli_module!r}]",
            "",
        ])

    def render_guide(self, interface: ContractInterface) -> str:
        """Markdown usage guide for the generated package."""
        lines = [
            f"# Dynamic CLI for {interface.contract_name}",
            "",
            f"Generated from `{interface.source_file or 'contract source'}`. Regeneration overwrites this file.",
            "",
            "## Contract Analysis",
            "",
            f"- **Contract:** {interface.contract_name}",
            f"- **Functions:** {len(interface.functions)}",
            f"- **State Variables:** {len(interface.state_variables)}",
            "",
            "## Available Functions",
        ]
        for number, func in enumerate(interface.functions, start=1):
            params = ", ".join(f"{p.name}: {p.declared_type}" for p in func.parameters) or "None"
            lines += [
                "",
                f"### {number}. {func.name}",
                "",
                f"- **Type:** {'query' if func.is_read_only else 'mutation'}",
                f"- **Description:** {func.description}",
                f"- **Parameters:** {params}",
                f"- **Return Type:** {func.return_type} -> `{self.type_mapper.python_type(func.return_type)}`",
                f"- **Read-Only:** {'Yes' if func.is_read_only else 'No'}",
            ]
        lines += ["", "## Contract State", ""]
        if interface.state_variables:
            lines += [f"- **{s.name}**: {s.declared_type}" for s in interface.state_variables]
        else:
            lines.append("No ledger state declared.")
        lines += [
            "",
            "## Usage",
            "",
            "```python",
            f"from {self.cli_module_name(interface)} import run",
            "",
            "await run(binding, reader)",
            "```",
            "",
            "Rebuild after changing the contract with `contractgen build`.",
            "",
        ]
        return "\n".join(lines)

    def generate(self, interface: ContractInterface, output_dir: Path) -> list[GenerationArtifact]:
        """Render every artifact for ``interface`` without touching the filesystem."""
        return [
            GenerationArtifact(path=output_dir / f"{self.api_module_name(interface)}.py", content=self.render_api(interface)),
            GenerationArtifact(path=output_dir / f"{self.cli_module_name(interface)}.py", content=self.render_cli(interface)),
            GenerationArtifact(path=output_dir / "__init__.py", content=self.render_package_init(interface)),
            GenerationArtifact(path=output_dir / GUIDE_FILE_NAME, content=self.render_guide(interface)),
        ]

    def write(self, interface: ContractInterface, output_dir: Path) -> list[GenerationArtifact]:
        """Render and fully overwrite the generated files in ``output_dir``."""
        artifacts = self.generate(interface, output_dir)
        for artifact in artifacts:
            artifact.write()
            logger.debug("Wrote %s", artifact.path)
        logger.info("📝 Generated %d files in %s", len(artifacts), output_dir)
        return artifacts
