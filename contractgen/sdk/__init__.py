"""Parsing, classification, code generation and runtime dispatch for contract interfaces."""

from contractgen.sdk.classifier import is_read_only, mutates
from contractgen.sdk.codegen import CodeGenerator
from contractgen.sdk.engine import DynamicCLIEngine
from contractgen.sdk.errors import (
    ContractGenError,
    ExternalToolError,
    GenerationIOError,
    InvocationError,
    ParameterValidationError,
)
from contractgen.sdk.models import (
    ContractInterface,
    FunctionSpec,
    GenerationArtifact,
    MenuItem,
    ParamSpec,
    StateSpec,
    TxReceipt,
)
from contractgen.sdk.orchestrator import BuildOrchestrator, SingleFlightGuard
from contractgen.sdk.parser import InterfaceParser, parse_file, parse_source
from contractgen.sdk.types import MappedType, TypeKind, TypeMapper

__all__ = [
    "BuildOrchestrator",
    "CodeGenerator",
    "ContractGenError",
    "ContractInterface",
    "DynamicCLIEngine",
    "ExternalToolError",
    "FunctionSpec",
    "GenerationArtifact",
    "GenerationIOError",
    "InterfaceParser",
    "InvocationError",
    "MappedType",
    "MenuItem",
    "ParamSpec",
    "ParameterValidationError",
    "SingleFlightGuard",
    "StateSpec",
    "TxReceipt",
    "TypeKind",
    "TypeMapper",
    "is_read_only",
    "mutates",
    "parse_file",
    "parse_source",
]
