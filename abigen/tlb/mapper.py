"""Type mapper — raw schema type tokens to semantic type categories.

Schemas are living documents: a token the mapper does not recognise never
aborts generation. It becomes ``UNKNOWN(raw)``, which the emitter routes
through the opaque-bytes codec.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from abigen.ir.models import Parameter


class TypeKind(Enum):
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ADDRESS = "address"
    CELL = "cell"
    SLICE = "slice"
    BUILDER = "builder"
    TEXT = "text"
    OPTIONAL = "optional"  # (Maybe X)
    EITHER = "either"  # (Either X Y)
    VARUINT = "varuint"  # (VarUInteger n)
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TypeCategory:
    """The semantic category of a type token.

    Only the fields relevant to ``kind`` are set: ``bits``/``signed`` for
    integers, ``max_bytes`` for var-uints, ``args`` for optional/either and
    ``raw`` for unknown tokens.
    """

    kind: TypeKind
    bits: int = 0
    signed: bool = False
    max_bytes: int = 0
    args: tuple[TypeCategory, ...] = ()
    raw: str = ""

    @classmethod
    def integer(cls, bits: int, signed: bool = False) -> TypeCategory:
        return cls(TypeKind.INTEGER, bits=bits, signed=signed)

    @classmethod
    def optional(cls, inner: TypeCategory) -> TypeCategory:
        return cls(TypeKind.OPTIONAL, args=(inner,))

    @classmethod
    def either(cls, left: TypeCategory, right: TypeCategory) -> TypeCategory:
        return cls(TypeKind.EITHER, args=(left, right))

    @classmethod
    def varuint(cls, max_bytes: int = 16) -> TypeCategory:
        return cls(TypeKind.VARUINT, max_bytes=max_bytes)

    @classmethod
    def unknown(cls, raw: str) -> TypeCategory:
        return cls(TypeKind.UNKNOWN, raw=raw)

    @property
    def inner(self) -> TypeCategory | None:
        return self.args[0] if self.kind == TypeKind.OPTIONAL else None

    @property
    def is_cell_like(self) -> bool:
        return self.kind in (TypeKind.CELL, TypeKind.SLICE, TypeKind.BUILDER, TypeKind.EITHER)

    def __str__(self) -> str:
        if self.kind == TypeKind.INTEGER:
            return f"{'int' if self.signed else 'uint'}{self.bits}"
        if self.kind == TypeKind.VARUINT:
            return f"varuint{self.max_bytes}"
        if self.kind == TypeKind.OPTIONAL:
            return f"optional[{self.args[0]}]"
        if self.kind == TypeKind.EITHER:
            return f"either[{self.args[0]}, {self.args[1]}]"
        if self.kind == TypeKind.UNKNOWN:
            return f"unknown[{self.raw}]"
        return self.kind.value


BOOLEAN = TypeCategory(TypeKind.BOOLEAN)
ADDRESS = TypeCategory(TypeKind.ADDRESS)
CELL = TypeCategory(TypeKind.CELL)
SLICE = TypeCategory(TypeKind.SLICE)
BUILDER = TypeCategory(TypeKind.BUILDER)
TEXT = TypeCategory(TypeKind.TEXT)

# Width of a TVM stack integer
STACK_INT_BITS = 257
DEFAULT_VARUINT_BYTES = 16

_INTEGER_RE = re.compile(r"^(u?)int(\d+)$")

_LITERALS: dict[str, TypeCategory] = {
    "int": TypeCategory.integer(STACK_INT_BITS, signed=True),
    "bool": BOOLEAN,
    "Bool": BOOLEAN,
    "msgaddress": ADDRESS,
    "MsgAddress": ADDRESS,
    "MsgAddressInt": ADDRESS,
    "address": ADDRESS,
    "text": TEXT,
    "string": TEXT,
    "coins": TypeCategory.varuint(DEFAULT_VARUINT_BYTES),
    "Coins": TypeCategory.varuint(DEFAULT_VARUINT_BYTES),
    "Grams": TypeCategory.varuint(DEFAULT_VARUINT_BYTES),
    "cell": CELL,
    "slice": SLICE,
    "builder": BUILDER,
}

# Stack element kinds used as a fallback for get-method parameters
_STACK_CATEGORIES: dict[str, TypeCategory] = {
    "int": TypeCategory.integer(STACK_INT_BITS, signed=True),
    "tinyint": TypeCategory.integer(STACK_INT_BITS, signed=True),
    "bool": BOOLEAN,
    "cell": CELL,
    "slice": SLICE,
    "builder": BUILDER,
}


def map_type(raw_token: str | None) -> TypeCategory:
    """Map a raw type token to its category. Total: never raises."""
    return _map_token((raw_token or "").strip())


def map_parameter(param: Parameter) -> TypeCategory:
    """Map a get-method parameter, falling back to its stack category.

    The raw type wins when it is recognised; a missing or unrecognised raw
    type defers to the stack element kind (``<cell name="x">any</cell>`` is
    a cell).
    """
    category = map_type(param.raw_type)
    if category.kind == TypeKind.UNKNOWN and param.category in _STACK_CATEGORIES:
        return _STACK_CATEGORIES[param.category]
    return category


@lru_cache(maxsize=1024)
def _map_token(token: str) -> TypeCategory:
    if token in _LITERALS:
        return _LITERALS[token]

    match = _INTEGER_RE.match(token)
    if match and 0 < int(match.group(2)) <= STACK_INT_BITS:
        return TypeCategory.integer(int(match.group(2)), signed=not match.group(1))

    if token.startswith("(Maybe"):
        args = _constructor_args(token)
        return TypeCategory.optional(_map_token(args[0]) if args else TypeCategory.unknown(""))

    if token.startswith("(Either"):
        args = _constructor_args(token)
        if len(args) >= 2:
            return TypeCategory.either(_map_token(args[0]), _map_token(args[1]))
        return TypeCategory.either(CELL, CELL)

    if token.startswith("(VarUInteger"):
        args = _constructor_args(token)
        try:
            return TypeCategory.varuint(int(args[0]))
        except (IndexError, ValueError):
            return TypeCategory.varuint(DEFAULT_VARUINT_BYTES)

    if "Cell" in token:
        return CELL
    if "Slice" in token:
        return SLICE
    if "Builder" in token:
        return BUILDER

    return TypeCategory.unknown(token)


def _constructor_args(token: str) -> list[str]:
    """Split ``(Either Cell ^Cell)`` into ``["Cell", "^Cell"]``.

    Splitting happens on spaces at parenthesis depth zero, so nested
    constructors stay whole.
    """
    body = token[1:-1] if token.endswith(")") else token[1:]
    parts: list[str] = []
    depth = 0
    current = ""
    for char in body:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == " " and depth == 0:
            if current:
                parts.append(current)
            current = ""
        else:
            current += char
    if current:
        parts.append(current)
    return parts[1:]


# --- Per-category codegen recipes ---

_STACK_FACTORIES = {
    TypeKind.INTEGER: "integer",
    TypeKind.VARUINT: "integer",
    TypeKind.BOOLEAN: "boolean",
    TypeKind.ADDRESS: "address",
    TypeKind.CELL: "cell",
    TypeKind.EITHER: "cell",
    TypeKind.SLICE: "slice",
    TypeKind.BUILDER: "builder",
    TypeKind.TEXT: "text",
}


def python_annotation(category: TypeCategory, for_message: bool = False) -> str:
    """Annotation text for a value of ``category`` in generated code.

    Message fields use nested references for ``(Maybe X)``, so an optional
    message field is always ``Cell | None``.
    """
    kind = category.kind
    if kind in (TypeKind.INTEGER, TypeKind.VARUINT):
        return "int"
    if kind == TypeKind.BOOLEAN:
        return "bool"
    if kind == TypeKind.ADDRESS:
        return "Address | None"
    if kind == TypeKind.TEXT:
        return "str"
    if category.is_cell_like:
        return "Cell"
    if kind == TypeKind.OPTIONAL:
        if for_message:
            return "Cell | None"
        inner = python_annotation(category.inner)
        return inner if inner.endswith("| None") or inner == "Any" else f"{inner} | None"
    return "Any"


def stack_factory(category: TypeCategory) -> str:
    """Name of the ``StackEntry`` constructor used to pass a query argument."""
    if category.kind == TypeKind.OPTIONAL:
        inner = category.inner
        if inner.kind == TypeKind.ADDRESS or inner.is_cell_like:
            return stack_factory(inner)
        return "opaque"
    return _STACK_FACTORIES.get(category.kind, "opaque")


def stack_reader(category: TypeCategory) -> str:
    """Name of the ``StackReader`` method that reads a query result."""
    kind = category.kind
    if kind in (TypeKind.INTEGER, TypeKind.VARUINT):
        return "read_int"
    if kind == TypeKind.BOOLEAN:
        return "read_bool"
    if kind == TypeKind.ADDRESS:
        return "read_address_opt"
    if kind == TypeKind.TEXT:
        return "read_text"
    if category.is_cell_like:
        return "read_cell"
    if kind == TypeKind.OPTIONAL:
        if category.inner.kind == TypeKind.ADDRESS:
            return "read_address_opt"
        if category.inner.is_cell_like:
            return "read_cell_opt"
    return "read_any"


def value_shape(category: TypeCategory) -> str:
    """Name of the ``ValueShape`` member a probe checks a result against."""
    reader = stack_reader(category)
    return {
        "read_int": "INT",
        "read_bool": "BOOL",
        "read_address_opt": "ADDRESS",
        "read_text": "TEXT",
        "read_cell": "CELL",
        "read_cell_opt": "OPTIONAL_CELL",
    }.get(reader, "ANY")


def probe_default(category: TypeCategory, for_message: bool = False) -> str:
    """Expression text of the default argument passed by a probe."""
    kind = category.kind
    if kind in (TypeKind.INTEGER, TypeKind.VARUINT):
        return "0"
    if kind == TypeKind.BOOLEAN:
        return "False"
    if kind == TypeKind.TEXT:
        return '""'
    if kind == TypeKind.ADDRESS:
        # A message payload needs a structurally valid address
        return "ZERO_ADDRESS" if for_message else "None"
    if category.is_cell_like:
        return "EMPTY_CELL"
    return "None"
