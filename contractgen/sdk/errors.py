"""Error taxonomy for parsing, generation, build and dispatch failures.

Parsing never raises: a source without declarations simply yields an empty
interface. Everything else that can go wrong is one of the classes below.
"""

from __future__ import annotations

from pathlib import Path


class ContractGenError(Exception):
    """Base class for contractgen failures."""


class ExternalToolError(ContractGenError):
    """An external compiler or build command exited non-zero."""

    def __init__(self, step: str, exit_code: int, output: str = "", command: list[str] | None = None):
        self.step = step
        self.exit_code = exit_code
        self.output = output
        self.command = command or []
        super().__init__(f"Step '{step}' failed with exit code {exit_code}")


class GenerationIOError(ContractGenError):
    """A generated artifact could not be written."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write {path}: {reason}")


class ParameterValidationError(ContractGenError, ValueError):
    """Interactive input could not be converted to the declared type."""


class InvocationError(ContractGenError):
    """A bound contract operation is missing or rejected the call."""
