"""Query vs. mutation classification for contract functions.

Rules, first match wins:

1. name starts with ``get_``          -> read-only
2. name contains ``public_key``       -> read-only
3. return type is the no-value marker -> mutating
4. anything else                      -> read-only

A function that changes state and also returns a value is classified
read-only by rule 4 and dispatched as a query.
"""

from __future__ import annotations

from contractgen.sdk.types import UNIT_TOKENS

READ_ONLY_PREFIXES = ("get_",)
READ_ONLY_MARKERS = ("public_key",)


def mutates(name: str, return_type: str) -> bool:
    """Return True when calling ``name`` submits a state-changing transaction."""
    if name.startswith(READ_ONLY_PREFIXES):
        return False
    if any(marker in name for marker in READ_ONLY_MARKERS):
        return False
    return (return_type or "").strip() in UNIT_TOKENS


def is_read_only(name: str, return_type: str) -> bool:
    return not mutates(name, return_type)
