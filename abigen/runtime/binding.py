"""Base class and capabilities shared by all generated contract bindings.

A binding is bound to one contract address. Queries go through a *method
invoker*, messages through a *message sender*; both are supplied by the
caller and are the only places a binding suspends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Protocol

from pytoniq_core import Address, Cell

from abigen.runtime.codec import raw_address, to_address
from abigen.runtime.errors import (
    BindingError,
    InvocationError,
    InvocationFailureKind,
    ProbeAssertionError,
)
from abigen.runtime.stack import StackEntry, StackReader

logger = logging.getLogger(__name__)

# Exit codes of a successful get-method run
SUCCESS_EXIT_CODES = frozenset({0, 1})


@dataclass
class QueryOutcome:
    stack: list[StackEntry] = field(default_factory=list)
    exit_code: int = 0


@dataclass
class SendResult:
    """Handle returned by a message sender."""

    transactions: list[Any] = field(default_factory=list)


class MethodInvoker(Protocol):
    async def invoke_query(
        self, address: Address, method_name: str, args: list[StackEntry]
    ) -> QueryOutcome | list[StackEntry]: ...


class MessageSender(Protocol):
    async def send_message(self, address: Address, body: Cell) -> Any: ...


class ValueShape(Enum):
    """Runtime shape a probe expects a decoded value to have."""

    INT = "int"
    BOOL = "bool"
    ADDRESS = "address"  # Address or None
    TEXT = "text"
    CELL = "cell"
    OPTIONAL_CELL = "optional_cell"
    NONE = "none"
    ANY = "any"


def _matches(value: Any, shape: ValueShape) -> bool:
    if shape == ValueShape.INT:
        return isinstance(value, int) and not isinstance(value, bool)
    if shape == ValueShape.BOOL:
        return isinstance(value, bool)
    if shape == ValueShape.ADDRESS:
        return value is None or isinstance(value, Address)
    if shape == ValueShape.TEXT:
        return isinstance(value, str)
    if shape == ValueShape.CELL:
        return isinstance(value, Cell)
    if shape == ValueShape.OPTIONAL_CELL:
        return value is None or isinstance(value, Cell)
    if shape == ValueShape.NONE:
        return value is None
    return True


def expect_shape(value: Any, shape: ValueShape, label: str) -> None:
    if not _matches(value, shape):
        raise ProbeAssertionError(
            f"{label}: expected {shape.value}, got {type(value).__name__}"
        )


def expect_record(value: Any, record_type: type, label: str) -> None:
    if not isinstance(value, record_type):
        raise ProbeAssertionError(
            f"{label}: expected {record_type.__name__}, got {type(value).__name__}"
        )


def expect_send_result(value: Any, label: str) -> None:
    """A send probe passes when the sender returned a transaction list."""
    transactions = getattr(value, "transactions", None)
    if not isinstance(transactions, list):
        raise ProbeAssertionError(f"{label}: sender returned no transaction list")


def _exit_code_of(exc: Exception) -> int | None:
    """Exit code carried by an invoker's exception, as sandboxes and lite clients report it."""
    for attr in ("exit_code", "exitCode"):
        code = getattr(exc, attr, None)
        if isinstance(code, int) and not isinstance(code, bool):
            return code
    return None


class ContractBinding:
    """Base class of generated bindings.

    Subclasses set the class attributes below and add one coroutine per
    query/send method plus a ``probe_<method>`` coroutine for each.
    """

    interface_name: ClassVar[str] = ""
    parent_interface: ClassVar[str | None] = None
    fingerprints: ClassVar[tuple[str, ...]] = ()
    query_methods: ClassVar[tuple[str, ...]] = ()
    send_methods: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        address: Address | str,
        invoker: MethodInvoker,
        sender: MessageSender | None = None,
    ):
        self.address = to_address(address)
        self.invoker = invoker
        if sender is None and hasattr(invoker, "send_message"):
            sender = invoker
        self.sender = sender

    def probe(self, method_name: str):
        """Return the probe coroutine function for ``method_name``."""
        try:
            return getattr(self, f"probe_{method_name}")
        except AttributeError:
            raise BindingError(
                f"{type(self).__name__} has no probe for method '{method_name}'"
            ) from None

    async def _run_query(self, method_name: str, args: list[StackEntry]) -> StackReader:
        logger.debug("Invoking %s on %s", method_name, self.address)
        try:
            outcome = await self.invoker.invoke_query(self.address, method_name, args)
        except InvocationError:
            raise
        except Exception as exc:
            exit_code = _exit_code_of(exc)
            if exit_code is not None:
                raise InvocationError.from_exit_code(
                    exit_code, method_name, self.address, self.interface_name, detail=str(exc)
                ) from exc
            raise InvocationError(
                InvocationFailureKind.OTHER,
                method_name,
                self.address,
                self.interface_name,
                detail=str(exc),
            ) from exc

        if isinstance(outcome, QueryOutcome):
            if outcome.exit_code not in SUCCESS_EXIT_CODES:
                raise InvocationError.from_exit_code(
                    outcome.exit_code, method_name, self.address, self.interface_name
                )
            return StackReader(outcome.stack)
        return StackReader(outcome)

    async def _send(self, body: Cell) -> Any:
        if self.sender is None:
            raise BindingError(f"{type(self).__name__} has no message sender configured")
        logger.debug("Sending message to %s", self.address)
        return await self.sender.send_message(self.address, body)

    expect_shape = staticmethod(expect_shape)
    expect_record = staticmethod(expect_record)
    expect_send_result = staticmethod(expect_send_result)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={raw_address(self.address)!r})"
