"""Get-method stack entries and a positional reader for result stacks."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pytoniq_core import Address, Cell

from abigen.runtime.codec import read_text_cell, to_address
from abigen.runtime.errors import StackReadError


class StackKind(Enum):
    INT = "int"
    BOOLEAN = "boolean"
    NULL = "null"
    ADDRESS = "address"
    CELL = "cell"
    SLICE = "slice"
    BUILDER = "builder"
    TEXT = "text"
    OPAQUE = "opaque"  # Value of a type the generator could not shape


_CELL_KINDS = (StackKind.CELL, StackKind.SLICE, StackKind.BUILDER)


@dataclass(frozen=True)
class StackEntry:
    kind: StackKind
    value: Any = None

    @classmethod
    def null(cls) -> StackEntry:
        return cls(StackKind.NULL)

    @classmethod
    def integer(cls, value: int) -> StackEntry:
        return cls(StackKind.INT, int(value))

    @classmethod
    def boolean(cls, value: bool) -> StackEntry:
        return cls(StackKind.BOOLEAN, bool(value))

    @classmethod
    def address(cls, value: Address | str | None) -> StackEntry:
        if value is None:
            return cls.null()
        if isinstance(value, str):
            value = to_address(value)
        return cls(StackKind.ADDRESS, value)

    @classmethod
    def cell(cls, value: Cell | None) -> StackEntry:
        return cls.null() if value is None else cls(StackKind.CELL, value)

    @classmethod
    def slice(cls, value: Cell | None) -> StackEntry:
        return cls.null() if value is None else cls(StackKind.SLICE, value)

    @classmethod
    def builder(cls, value: Cell | None) -> StackEntry:
        return cls.null() if value is None else cls(StackKind.BUILDER, value)

    @classmethod
    def text(cls, value: str) -> StackEntry:
        return cls(StackKind.TEXT, str(value))

    @classmethod
    def opaque(cls, value: Any) -> StackEntry:
        return cls.null() if value is None else cls(StackKind.OPAQUE, value)


class StackReader:
    """Reads typed values off a result stack, front to back.

    Each ``read_*`` consumes exactly one entry and raises
    :class:`StackReadError` when the stack is exhausted or the entry has a
    kind that cannot be converted.
    """

    def __init__(self, entries: Iterable[StackEntry]):
        self._entries = list(entries)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._entries) - self._pos

    def _next(self, expected: str) -> StackEntry:
        if self._pos >= len(self._entries):
            raise StackReadError(f"Stack underflow: expected {expected} at position {self._pos}")
        entry = self._entries[self._pos]
        self._pos += 1
        return entry

    def _mismatch(self, expected: str, entry: StackEntry) -> StackReadError:
        return StackReadError(
            f"Expected {expected} at position {self._pos - 1}, got {entry.kind.value}"
        )

    def read_int(self) -> int:
        entry = self._next("int")
        if entry.kind == StackKind.INT:
            return int(entry.value)
        if entry.kind == StackKind.BOOLEAN:
            return -1 if entry.value else 0
        raise self._mismatch("int", entry)

    def read_bool(self) -> bool:
        entry = self._next("boolean")
        if entry.kind in (StackKind.BOOLEAN, StackKind.INT):
            return bool(entry.value)
        raise self._mismatch("boolean", entry)

    def read_address_opt(self) -> Address | None:
        entry = self._next("address")
        if entry.kind == StackKind.NULL:
            return None
        if entry.kind == StackKind.ADDRESS:
            return entry.value
        if entry.kind in _CELL_KINDS:
            return entry.value.begin_parse().load_address()
        raise self._mismatch("address", entry)

    def read_address(self) -> Address:
        address = self.read_address_opt()
        if address is None:
            raise StackReadError(f"Expected address at position {self._pos - 1}, got null")
        return address

    def read_cell(self) -> Cell:
        entry = self._next("cell")
        if entry.kind in _CELL_KINDS:
            return entry.value
        raise self._mismatch("cell", entry)

    def read_cell_opt(self) -> Cell | None:
        entry = self._next("cell")
        if entry.kind == StackKind.NULL:
            return None
        if entry.kind in _CELL_KINDS:
            return entry.value
        raise self._mismatch("cell", entry)

    def read_text(self) -> str:
        entry = self._next("text")
        if entry.kind == StackKind.TEXT:
            return entry.value
        if entry.kind in _CELL_KINDS:
            return read_text_cell(entry.value)
        raise self._mismatch("text", entry)

    def read_any(self) -> Any:
        return self._next("value").value
