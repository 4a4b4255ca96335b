"""Mapping of declared contract types to Python types.

The mapper is total: every token, including ones it has never seen,
yields a MappedType. Unrecognized tokens come back with kind UNKNOWN so
that generation is never blocked by an unfamiliar DSL type.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, Field

OPEN_BRACKETS = "<([{"
CLOSE_BRACKETS = ">)]}"

UNIT_TOKENS = frozenset({"", "[]", "void", "Void"})

# widths above this are treated as unbounded
MAX_BIT_WIDTH = 512

# numeric literals are capped at 512 digits; longer ones fall through to UNKNOWN
_UINT_WIDTH = re.compile(r"^Uint\s*<\s*(\d{1,512})\s*>$")
_UINT_RANGE = re.compile(r"^Uint\s*<\s*(\d{1,512})\s*\.\.\s*(\d{1,512})\s*>$")
_BARE_RANGE = re.compile(r"^(\d{1,512})\s*\.\.\s*(\d{1,512})$")
_INT_WIDTH = re.compile(r"^Int\s*<\s*(\d{1,512})\s*>$")
_BYTES = re.compile(r"^Bytes\s*<\s*(\d{1,512})\s*>$")
_OPAQUE_STRING = re.compile(r"""^Opaque\s*<\s*["']string["']\s*>$""")
_GENERIC = re.compile(r"^(\w+)\s*<(.*)>$", re.DOTALL)


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on separators that are not nested inside any bracket pair.

    ``"a: Set<Bytes<32>>, b: Map<K, V>"`` splits into two segments, not three.
    Unbalanced closing brackets never drive the depth below zero.
    """
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char in OPEN_BRACKETS:
            depth += 1
        elif char in CLOSE_BRACKETS:
            depth = max(depth - 1, 0)
        if char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    return parts


class TypeKind(str, Enum):
    """Coarse classification used for input conversion and rendering."""
    INTEGER = "integer"
    BYTES = "bytes"
    BOOLEAN = "boolean"
    UNIT = "unit"
    TEXT = "text"
    COLLECTION = "collection"
    UNKNOWN = "unknown"


class MappedType(BaseModel):
    """Python-side view of a declared type."""

    declared: str = Field(..., description="Declared token, whitespace-trimmed")
    kind: TypeKind
    python_type: str = Field(..., description="Annotation used in generated code")
    minimum: int | None = None
    maximum: int | None = None
    byte_length: int | None = None

    @property
    def is_integer(self) -> bool:
        return self.kind is TypeKind.INTEGER

    @property
    def is_unit(self) -> bool:
        return self.kind is TypeKind.UNIT

    def describe(self) -> str:
        """Short label for prompts, e.g. 'integer 0..255'."""
        if self.kind is TypeKind.INTEGER:
            if self.minimum is not None and self.maximum is not None:
                return f"integer {self.minimum}..{self.maximum}"
            return "integer"
        if self.kind is TypeKind.BYTES:
            suffix = f"[{self.byte_length}]" if self.byte_length is not None else ""
            return f"bytes{suffix}, 0x-hex or text"
        if self.kind is TypeKind.BOOLEAN:
            return "boolean"
        return self.declared or self.kind.value


_COLLECTIONS = {
    "Set": ("set", 1),
    "List": ("list", 1),
    "Vector": ("list", 2),
    "Map": ("dict", 2),
}


class TypeMapper:
    """Translate declared type tokens to MappedType via a fixed table."""

    def map(self, token: str) -> MappedType:
        declared = (token or "").strip()

        if declared in UNIT_TOKENS:
            return MappedType(declared=declared, kind=TypeKind.UNIT, python_type="None")
        if declared == "Boolean":
            return MappedType(declared=declared, kind=TypeKind.BOOLEAN, python_type="bool")
        if declared in ("Field", "Counter"):
            return MappedType(declared=declared, kind=TypeKind.INTEGER, python_type="int", minimum=0)

        integer = self._map_integer(declared)
        if integer is not None:
            return integer

        match = _BYTES.match(declared)
        if match:
            return MappedType(
                declared=declared, kind=TypeKind.BYTES, python_type="bytes", byte_length=int(match.group(1))
            )
        if _OPAQUE_STRING.match(declared):
            return MappedType(declared=declared, kind=TypeKind.TEXT, python_type="str")

        collection = self._map_collection(declared)
        if collection is not None:
            return collection

        return MappedType(declared=declared, kind=TypeKind.UNKNOWN, python_type="Any")

    def python_type(self, token: str) -> str:
        return self.map(token).python_type

    def _map_integer(self, declared: str) -> MappedType | None:
        match = _UINT_WIDTH.match(declared)
        if match:
            width = int(match.group(1))
            return self._integer(declared, 0, 2**width - 1 if width <= MAX_BIT_WIDTH else None)
        match = _UINT_RANGE.match(declared) or _BARE_RANGE.match(declared)
        if match:
            low, high = int(match.group(1)), int(match.group(2))
            return self._integer(declared, min(low, high), max(low, high))
        match = _INT_WIDTH.match(declared)
        if match:
            width = max(int(match.group(1)), 1)
            if width > MAX_BIT_WIDTH:
                return self._integer(declared, None, None)
            return self._integer(declared, -(2 ** (width - 1)), 2 ** (width - 1) - 1)
        return None

    @staticmethod
    def _integer(declared: str, minimum: int | None, maximum: int | None) -> MappedType:
        return MappedType(
            declared=declared, kind=TypeKind.INTEGER, python_type="int", minimum=minimum, maximum=maximum
        )

    def _map_collection(self, declared: str) -> MappedType | None:
        match = _GENERIC.match(declared)
        if not match or match.group(1) not in _COLLECTIONS:
            return None
        container, arity = _COLLECTIONS[match.group(1)]
        args = split_top_level(match.group(2))
        if len(args) != arity or not all(args):
            return None
        if match.group(1) == "Vector":
            # Vector<N, T>: the length is not part of the Python annotation
            element_types = [self.python_type(args[1])]
        else:
            element_types = [self.python_type(arg) for arg in args]
        python_type = f"{container}[{', '.join(element_types)}]"
        return MappedType(declared=declared, kind=TypeKind.COLLECTION, python_type=python_type)
