"""Typer CLI for contractgen.

Provides commands: inspect, generate, build, watch, interact.
Main entrypoint for the contractgen command-line interface.
"""

from __future__ import annotations

import asyncio
import importlib
import inspect as pyinspect
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from contractgen import __version__
from contractgen.cli.config import ContractGenConfig, create_orchestrator, validate_config
from contractgen.cli.console import ConsoleLineReader
from contractgen.cli.log import configure_logging
from contractgen.sdk.codegen import CodeGenerator
from contractgen.sdk.engine import DynamicCLIEngine
from contractgen.sdk.errors import ExternalToolError, GenerationIOError
from contractgen.sdk.models import ContractInterface
from contractgen.sdk.parser import parse_file
from contractgen.sdk.types import TypeMapper


app = typer.Typer(
    name="contractgen",
    help="Contract interface code generator and dynamic CLI engine",
    add_completion=False,
    rich_markup_mode="rich"
)
console = Console()


def version_callback(show_version: bool) -> None:
    """Show version and exit."""
    if show_version:
        console.print(f"contractgen version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging and tool output"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level")
) -> None:
    """contractgen CLI."""
    configure_logging(log_level.upper(), verbose, console)


def _load_interface(source: Path) -> ContractInterface:
    """Parse a contract source file, failing on missing files."""
    if not source.is_file():
        raise ValueError(f"Contract file not found: {source}")
    return parse_file(source)


def _load_config(**overrides: Any) -> ContractGenConfig:
    """Environment configuration with command-line overrides applied."""
    return ContractGenConfig(**{key: value for key, value in overrides.items() if value is not None})


@app.command()
def inspect(
    source: Path = typer.Argument(..., help="Path to the .compact contract source"),
    as_json: bool = typer.Option(False, "--json", help="Print the interface as JSON")
) -> None:
    """Show the functions and ledger state found in a contract."""
    try:
        interface = _load_interface(source)
    except Exception as e:
        console.print(f"❌ Error reading contract: {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(interface.model_dump_json(indent=2))
        return

    mapper = TypeMapper()
    table = Table(title=interface.contract_name)
    table.add_column("#", justify="right")
    table.add_column("Function")
    table.add_column("Parameters")
    table.add_column("Returns")
    table.add_column("Kind")
    for number, func in enumerate(interface.functions, start=1):
        params = ", ".join(f"{p.name}: {p.declared_type}" for p in func.parameters) or "-"
        returns = f"{func.return_type} ({mapper.python_type(func.return_type)})"
        table.add_row(str(number), func.name, params, returns, "query" if func.is_read_only else "mutation")
    console.print(table)

    if interface.state_variables:
        console.print("Ledger state:")
        for state in interface.state_variables:
            console.print(f"  {state.name}: {state.declared_type}", markup=False)
    if interface.is_empty():
        console.print("⚠️  No declarations found")


@app.command()
def generate(
    source: Path = typer.Argument(..., help="Path to the .compact contract source"),
    out: Path = typer.Option(Path("generated"), "--out", "-o", help="Output directory")
) -> None:
    """Generate API wrapper and CLI modules without running external tools."""
    try:
        interface = _load_interface(source)
        artifacts = CodeGenerator().write(interface, out)
    except GenerationIOError as e:
        console.print(f"❌ Error writing generated files: {e}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"❌ Error generating client: {e}")
        raise typer.Exit(1)

    console.print("✅ Client generated successfully!")
    console.print(f"Contract: [bold]{interface.contract_name}[/bold]")
    for artifact in artifacts:
        console.print(f"  {artifact.path}", markup=False)


@app.command()
def build(
    reason: str = typer.Option("Manual generation", "--reason", help="Reason shown in progress output"),
    source_dir: Path | None = typer.Option(None, "--source-dir", help="Contract source directory"),
    contract_file: str | None = typer.Option(None, "--file", "-f", help="Contract file name"),
    out: Path | None = typer.Option(None, "--out", "-o", help="Output directory"),
    skip_compile: bool = typer.Option(False, "--skip-compile", help="Skip the DSL compiler step"),
    skip_build: bool = typer.Option(False, "--skip-build", help="Skip both build steps")
) -> None:
    """Run the full pipeline: parse, compile, build, generate, build."""
    try:
        config = _load_config(
            contract_source_dir=source_dir,
            contract_file_name=contract_file,
            output_dir=out,
            compile_enabled=False if skip_compile else None,
            build_contract_enabled=False if skip_build else None,
            build_cli_enabled=False if skip_build else None,
        )
        validate_config(config)
        result = create_orchestrator(config).run(reason)
    except ExternalToolError as e:
        console.print(f"❌ Step '{e.step}' failed with exit code {e.exit_code}")
        if e.command:
            console.print(f"Command: {' '.join(e.command)}", markup=False)
        if e.output:
            console.print(e.output, markup=False)
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"❌ Generation failed: {e}")
        raise typer.Exit(1)

    if result is None:
        console.print("⏳ Generation already running; request skipped")
        return
    console.print("✅ Generation complete!")
    console.print(f"Steps: {' -> '.join(result.steps)}")
    console.print(f"Files: {len(result.artifacts)}")


@app.command()
def watch(
    source_dir: Path | None = typer.Option(None, "--source-dir", help="Contract source directory"),
    out: Path | None = typer.Option(None, "--out", "-o", help="Output directory")
) -> None:
    """Regenerate whenever the contract source changes."""
    try:
        config = _load_config(contract_source_dir=source_dir, output_dir=out)
        validate_config(config)
        orchestrator = create_orchestrator(config)
        orchestrator.run("Initial generation")
        orchestrator.watch(poll_interval=config.poll_interval)
    except KeyboardInterrupt:
        console.print("👋 Stopped watching")
    except Exception as e:
        console.print(f"❌ Watch failed: {e}")
        raise typer.Exit(1)


def _load_binding(spec: str) -> Any:
    """Import ``module:attribute``; callables are treated as factories."""
    module_name, sep, attribute = spec.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Binding must look like 'package.module:factory', got {spec!r}")
    target = getattr(importlib.import_module(module_name), attribute)
    return target() if callable(target) else target


async def _run_session(interface: ContractInterface, binding_spec: str) -> int:
    binding = _load_binding(binding_spec)
    if pyinspect.isawaitable(binding):
        binding = await binding
    engine = DynamicCLIEngine(interface, binding, ConsoleLineReader(console))
    return await engine.run()


@app.command()
def interact(
    source: Path = typer.Argument(..., help="Path to the .compact contract source"),
    binding: str = typer.Option(..., "--binding", "-b", help="Binding factory as package.module:factory")
) -> None:
    """Open an interactive menu against a live contract binding."""
    try:
        interface = _load_interface(source)
        dispatched = asyncio.run(_run_session(interface, binding))
    except (KeyboardInterrupt, EOFError):
        console.print("👋 Session closed")
        return
    except Exception as e:
        console.print(f"❌ Session failed: {e}")
        raise typer.Exit(1)

    console.print(f"✅ Session finished after {dispatched} operation(s)")


if __name__ == "__main__":
    app()
