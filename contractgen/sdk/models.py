"""Pydantic models for contract interface data structures.

Provides the parsed interface (functions, parameters, ledger state),
generation artifacts, transaction receipts and runtime menu items.
"""

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, Field, model_validator

from contractgen.sdk.errors import GenerationIOError


def python_identifier(name: str) -> str:
    """Turn a DSL identifier into a safe Python identifier."""
    ident = re.sub(r"\W", "_", name.strip()) or "_"
    if ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident):
        ident = f"{ident}_"
    return ident


class ParamSpec(BaseModel):
    """Positional parameter of a contract function."""

    name: str = Field(..., description="Parameter name as declared")
    declared_type: str = Field(..., description="Raw declared type token")

    @property
    def identifier(self) -> str:
        return python_identifier(self.name)


class StateSpec(BaseModel):
    """Persisted ledger state variable."""

    name: str = Field(..., description="State variable name")
    declared_type: str = Field(..., description="Raw declared type token")
    description: str = Field(default="", description="Human-readable description")


class FunctionSpec(BaseModel):
    """Callable contract function (circuit)."""

    name: str = Field(..., description="Function name")
    parameters: list[ParamSpec] = Field(default_factory=list)
    return_type: str = Field(default="[]", description="Raw declared return type")
    mutates: bool = Field(..., description="True when calling submits a transaction")
    description: str = Field(default="", description="Human-readable description")

    @property
    def is_read_only(self) -> bool:
        return not self.mutates

    @property
    def identifier(self) -> str:
        return python_identifier(self.name)

    @property
    def title(self) -> str:
        """Title Case rendering of the snake_case name."""
        return " ".join(word[:1].upper() + word[1:] for word in self.name.split("_") if word)


class ContractInterface(BaseModel):
    """Functions and state exposed by one contract source file."""

    contract_name: str = Field(..., description="Display name, e.g. 'Zkvote Contract'")
    source_file: str = Field(default="", description="Source file name the interface came from")
    functions: list[FunctionSpec] = Field(default_factory=list)
    state_variables: list[StateSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_function_names(self) -> ContractInterface:
        """Function names must be unique within one interface."""
        seen: set[str] = set()
        for func in self.functions:
            if func.name in seen:
                raise ValueError(f"Duplicate function name: {func.name}")
            seen.add(func.name)
        return self

    @property
    def module_stem(self) -> str:
        """Base name for generated modules."""
        stem = Path(self.source_file).stem if self.source_file else self.contract_name.removesuffix(" Contract")
        return python_identifier(stem.lower())

    @property
    def mutations(self) -> list[FunctionSpec]:
        return [func for func in self.functions if func.mutates]

    @property
    def queries(self) -> list[FunctionSpec]:
        return [func for func in self.functions if not func.mutates]

    def function(self, name: str) -> FunctionSpec | None:
        """Look up a function by its declared name."""
        for func in self.functions:
            if func.name == name:
                return func
        return None

    def is_empty(self) -> bool:
        return not self.functions and not self.state_variables


class TxReceipt(BaseModel):
    """Normalized result of a submitted mutation."""

    transaction_id: str = Field(..., description="Transaction identifier")
    block_height: int | None = Field(default=None, description="Block the transaction landed in")


class GenerationArtifact(BaseModel):
    """Generated source text and the file it belongs to."""

    path: Path
    content: str

    def write(self) -> Path:
        """Write the artifact, fully overwriting any previous file."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self.content, encoding="utf-8")
        except OSError as e:
            raise GenerationIOError(self.path, str(e)) from e
        return self.path


class PipelineResult(BaseModel):
    """Outcome of one executed orchestrator run."""

    reason: str
    interface: ContractInterface
    artifacts: list[GenerationArtifact] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list, description="Completed step names in order")
    started_at: datetime
    finished_at: datetime | None = None


MenuAction = Callable[[], Awaitable[None]]


@dataclass
class MenuItem:
    """Selectable CLI entry, built fresh for each session."""

    id: str
    label: str
    description: str
    is_read_only: bool
    action: MenuAction | None = None

    @property
    def is_exit(self) -> bool:
        return self.id == "exit"


def function_metadata(func: FunctionSpec) -> dict[str, Any]:
    """Plain-data description of a function for generated metadata."""
    return {
        "name": func.name,
        "parameters": [{"name": p.name, "type": p.declared_type} for p in func.parameters],
        "return_type": func.return_type,
        "read_only": func.is_read_only,
        "description": func.description,
    }
