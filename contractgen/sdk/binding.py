"""Contract binding access.

A binding is whatever object the wallet/network layer hands back for a
deployed contract. It is used through a narrow surface:

- ``binding.call_tx[name](*args)`` (mapping or attribute namespace) submits
  a mutation and resolves to ``{"public": {"txId": ..., "blockHeight": ...}}``;
- ``binding.<name>(*args)`` answers a query;
- ``binding.ledger_state()`` (optional) returns current ledger values;
- ``binding.contract_address`` (optional) identifies the deployment.

Dispatch is a dictionary lookup in a CapabilitySet built once per session.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Callable

from contractgen.sdk.errors import InvocationError
from contractgen.sdk.models import ContractInterface, FunctionSpec, TxReceipt

logger = logging.getLogger(__name__)

Operation = Callable[..., Awaitable[Any]]


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _field(container: Any, *names: str) -> Any:
    """First present field among names, for mappings or attribute objects."""
    for name in names:
        if isinstance(container, Mapping):
            if name in container:
                return container[name]
        elif hasattr(container, name):
            return getattr(container, name)
    return None


def to_receipt(result: Any) -> TxReceipt:
    """Normalize a transaction result to the fixed receipt shape."""
    if isinstance(result, TxReceipt):
        return result
    public = _field(result, "public")
    source = public if public is not None else result
    tx_id = _field(source, "txId", "tx_id", "transaction_id")
    if tx_id is None:
        raise InvocationError(f"Unexpected transaction result: {result!r}")
    height = _field(source, "blockHeight", "block_height")
    return TxReceipt(transaction_id=str(tx_id), block_height=int(height) if height is not None else None)


def _lookup_transaction(binding: Any, name: str) -> Callable[..., Any] | None:
    call_tx = getattr(binding, "call_tx", None)
    if call_tx is None and isinstance(binding, Mapping):
        call_tx = binding.get("call_tx")
    if call_tx is None:
        return None
    if isinstance(call_tx, Mapping):
        return call_tx.get(name)
    return getattr(call_tx, name, None)


def _lookup_query(binding: Any, name: str) -> Callable[..., Any] | None:
    if isinstance(binding, Mapping):
        candidate = binding.get(name)
    else:
        candidate = getattr(binding, name, None)
    return candidate if callable(candidate) else None


async def submit_transaction(binding: Any, name: str, *args: Any) -> TxReceipt:
    """Submit mutation ``name`` through ``binding.call_tx`` and return its receipt."""
    operation = _lookup_transaction(binding, name)
    if operation is None:
        raise InvocationError(f"Function {name} not found on contract")
    return to_receipt(await _resolve(operation(*args)))


async def query(binding: Any, name: str, *args: Any) -> Any:
    """Call read-only accessor ``name`` on the binding."""
    operation = _lookup_query(binding, name)
    if operation is None:
        raise InvocationError(f"Function {name} not found on contract")
    return await _resolve(operation(*args))


async def read_ledger_state(binding: Any) -> Mapping[str, Any]:
    """Current ledger values, or an empty mapping when the binding exposes none."""
    reader = getattr(binding, "ledger_state", None)
    if reader is None:
        return {}
    state = await _resolve(reader() if callable(reader) else reader)
    if state is None:
        return {}
    if isinstance(state, Mapping):
        return state
    return {key: value for key, value in getattr(state, "__dict__", {}).items() if not key.startswith("_")}


def contract_address(binding: Any) -> str | None:
    address = getattr(binding, "contract_address", None)
    return str(address) if address is not None else None


class CapabilitySet:
    """Typed map from function name to a bound operation."""

    def __init__(self, operations: dict[str, Operation], missing: set[str] | None = None):
        self._operations = operations
        self.missing = missing or set()

    @classmethod
    def from_binding(cls, interface: ContractInterface, binding: Any) -> CapabilitySet:
        operations: dict[str, Operation] = {}
        missing: set[str] = set()
        for func in interface.functions:
            lookup = _lookup_transaction if func.mutates else _lookup_query
            if lookup(binding, func.name) is None:
                missing.add(func.name)
                continue
            operations[func.name] = cls._bind(binding, func)
        if missing:
            logger.warning("Binding does not expose: %s", ", ".join(sorted(missing)))
        return cls(operations, missing)

    @staticmethod
    def _bind(binding: Any, func: FunctionSpec) -> Operation:
        if func.mutates:
            async def invoke(*args: Any) -> Any:
                return await submit_transaction(binding, func.name, *args)
        else:
            async def invoke(*args: Any) -> Any:
                return await query(binding, func.name, *args)
        return invoke

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    def __len__(self) -> int:
        return len(self._operations)

    def names(self) -> list[str]:
        return list(self._operations)

    async def invoke(self, name: str, *args: Any) -> Any:
        operation = self._operations.get(name)
        if operation is None:
            raise InvocationError(f"Function {name} not found on contract")
        return await operation(*args)
