"""Value helpers on top of pytoniq-core cells and addresses.

Cells, builders, slices and addresses come from pytoniq-core. This module
adds the few conversions generated bindings need beyond its API: coercing
address text, the raw address form used as a history key, snake text
cells and the opaque codec for values of unshaped types.
"""

from __future__ import annotations

from pytoniq_core import Address, Builder, Cell, begin_cell

EMPTY_CELL = begin_cell().end_cell()
ZERO_ADDRESS = Address((0, bytes(32)))


def to_address(value: Address | str) -> Address:
    """Accept an address or its raw/user-friendly text."""
    return value if isinstance(value, Address) else Address(value)


def raw_address(address: Address | str) -> str:
    """``<workchain>:<hex hash>``, the same for every text form of an address."""
    return to_address(address).to_str(is_user_friendly=False)


def text_cell(text: str) -> Cell:
    return begin_cell().store_snake_string(text).end_cell()


def read_text_cell(cell: Cell) -> str:
    return cell.begin_parse().load_snake_string()


def opaque_cell(value: object) -> Cell:
    """Wrap a value of a type the generator could not shape in a cell.

    Cells pass through, builders are finished, bytes and text are
    snake-encoded and None becomes an empty cell.
    """
    if value is None:
        return EMPTY_CELL
    if isinstance(value, Cell):
        return value
    if isinstance(value, Builder):
        return value.end_cell()
    if isinstance(value, (bytes, bytearray)):
        return begin_cell().store_snake_bytes(bytes(value)).end_cell()
    if isinstance(value, str):
        return text_cell(value)
    raise TypeError(f"Cannot store opaque value of type {type(value).__name__}")
