"""Contract source analyzer.

Extracts a ContractInterface from Compact-style source text. Only two
statement shapes are recognized; everything else is silently ignored:

    export ledger NAME: TYPE;
    export circuit NAME(PARAMS): RETURN {

This is a pattern-based reader, not a grammar. Parameter lists are split
with a bracket-depth-aware tokenizer so nested generics such as
``Set<Bytes<32>>`` survive intact.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from contractgen.sdk.classifier import mutates
from contractgen.sdk.models import ContractInterface, FunctionSpec, ParamSpec, StateSpec
from contractgen.sdk.types import CLOSE_BRACKETS, OPEN_BRACKETS, split_top_level

logger = logging.getLogger(__name__)

CONTRACT_SUFFIX = ".compact"

_LEDGER = re.compile(r"\bexport\s+(?:sealed\s+)?ledger\s+(\w+)\s*:\s*([^;]+);")
_CIRCUIT_HEAD = re.compile(r"\bexport\s+(?:pure\s+)?circuit\s+(\w+)\s*(?:<[^<>(){};]*>)?\s*\(")
_RETURN_TYPE = re.compile(r"\s*:\s*([^{;]+?)\s*\{")


def _blank_comments(text: str) -> str:
    """Replace comment bodies with spaces, keeping offsets and newlines intact."""
    out = list(text)
    i, n = 0, len(text)
    quote: str | None = None
    while i < n:
        char = text[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = None
            i += 1
        elif char in "\"'":
            quote = char
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            end = n if end == -1 else end
            out[i:end] = " " * (end - i)
            i = end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = n if end == -1 else end + 2
            out[i:end] = ["\n" if c == "\n" else " " for c in text[i:end]]
            i = end
        else:
            i += 1
    return "".join(out)


def _matching_paren(text: str, open_index: int) -> int:
    """Index of the bracket closing the one at open_index, or -1."""
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char in OPEN_BRACKETS:
            depth += 1
        elif char in CLOSE_BRACKETS:
            depth -= 1
            if depth == 0:
                return index if char == ")" else -1
    return -1


def _doc_comment(original: str, position: int) -> str:
    """Collect the run of ``//`` lines directly above ``position``."""
    lines = original[:position].split("\n")
    # the first element is the text before the declaration on its own line
    collected: list[str] = []
    for line in reversed(lines[:-1]):
        stripped = line.strip()
        if not stripped.startswith("//"):
            break
        collected.append(stripped.lstrip("/").strip())
    return " ".join(reversed([line for line in collected if line]))


def parse_parameters(text: str) -> list[ParamSpec]:
    """Split ``name: Type, other: Generic<A, B>`` into ParamSpecs."""
    params: list[ParamSpec] = []
    for segment in split_top_level(text):
        name, colon, declared_type = segment.partition(":")
        name = name.strip()
        if not colon or not name:
            continue
        params.append(ParamSpec(name=name, declared_type=declared_type.strip()))
    return params


def contract_display_name(file_name: str) -> str:
    stem = Path(file_name).stem if file_name else "contract"
    return f"{stem[:1].upper()}{stem[1:]} Contract"


def default_function_description(name: str, parameter_count: int) -> str:
    return f"Execute {name} function with {parameter_count} parameter(s)"


class InterfaceParser:
    """Pattern-based extractor for contract functions and ledger state."""

    def parse(self, text: str, file_name: str = "") -> ContractInterface:
        """Parse source text. Never raises; an empty interface means nothing was found."""
        source = text or ""
        blanked = _blank_comments(source)

        interface = ContractInterface(
            contract_name=contract_display_name(file_name),
            source_file=Path(file_name).name if file_name else "",
            functions=self._parse_functions(source, blanked),
            state_variables=self._parse_state(source, blanked),
        )
        if interface.is_empty():
            logger.warning("No ledger or circuit declarations found in %s", file_name or "<source>")
        else:
            logger.debug(
                "Parsed %s: %d functions, %d state variables",
                interface.contract_name, len(interface.functions), len(interface.state_variables),
            )
        return interface

    def _parse_state(self, source: str, blanked: str) -> list[StateSpec]:
        states: list[StateSpec] = []
        for match in _LEDGER.finditer(blanked):
            name, declared_type = match.group(1), match.group(2).strip()
            states.append(
                StateSpec(
                    name=name,
                    declared_type=declared_type,
                    description=_doc_comment(source, match.start()) or f"State variable: {name}",
                )
            )
        return states

    def _parse_functions(self, source: str, blanked: str) -> list[FunctionSpec]:
        functions: list[FunctionSpec] = []
        seen: set[str] = set()
        for match in _CIRCUIT_HEAD.finditer(blanked):
            name = match.group(1)
            open_index = match.end() - 1
            close_index = _matching_paren(blanked, open_index)
            if close_index == -1:
                logger.debug("Skipping circuit %s: unbalanced parameter list", name)
                continue
            returns = _RETURN_TYPE.match(blanked, close_index + 1)
            if not returns:
                logger.debug("Skipping circuit %s: no return type and body", name)
                continue
            if name in seen:
                logger.warning("Duplicate circuit %s ignored; keeping the first declaration", name)
                continue
            seen.add(name)

            parameters = parse_parameters(blanked[open_index + 1:close_index])
            return_type = returns.group(1).strip()
            functions.append(
                FunctionSpec(
                    name=name,
                    parameters=parameters,
                    return_type=return_type,
                    mutates=mutates(name, return_type),
                    description=_doc_comment(source, match.start())
                    or default_function_description(name, len(parameters)),
                )
            )
        return functions


def parse_source(text: str, file_name: str = "") -> ContractInterface:
    return InterfaceParser().parse(text, file_name)


def locate_contract_source(directory: Path, file_name: str | None = None) -> Path:
    """Find the contract file, auto-detecting when the named one is absent."""
    if not directory.is_dir():
        raise FileNotFoundError(f"Contract source directory not found: {directory}")

    if file_name:
        explicit = directory / file_name
        if explicit.is_file():
            return explicit
        logger.warning("Specified contract file not found: %s", file_name)

    candidates = sorted(p for p in directory.iterdir() if p.suffix == CONTRACT_SUFFIX and p.is_file())
    if not candidates:
        raise FileNotFoundError(f"No {CONTRACT_SUFFIX} files found in {directory}")
    if len(candidates) > 1:
        logger.warning(
            "Found %d %s files: %s; using %s",
            len(candidates), CONTRACT_SUFFIX, ", ".join(p.name for p in candidates), candidates[0].name,
        )
    logger.info("🔍 Auto-detected contract file: %s", candidates[0].name)
    return candidates[0]


def parse_file(path: Path) -> ContractInterface:
    """Read and parse a contract source file."""
    return parse_source(path.read_text(encoding="utf-8"), path.name)
