"""Emitter model — what to generate, before any text is produced.

The builder fills these records from the IR; the renderer only formats
them. Every string field here is already a valid Python identifier or
expression fragment.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from abigen.codegen.naming import probe_method_name
from abigen.tlb.mapper import TypeCategory


@dataclass
class Argument:
    """A query-method input, passed to the invoker as a stack entry."""

    name: str
    source_name: str
    category: TypeCategory
    annotation: str
    stack_factory: str  # StackEntry constructor
    default: str  # Probe default expression


@dataclass
class ResultField:
    """One positional output of a query method."""

    name: str
    source_name: str
    category: TypeCategory
    annotation: str
    reader: str  # StackReader method
    shape: str  # ValueShape member


@dataclass
class ResultRecord:
    class_name: str
    fields: list[ResultField] = field(default_factory=list)


@dataclass
class PayloadField:
    """One message parameter with its store and load recipes."""

    name: str
    source_name: str
    category: TypeCategory
    annotation: str
    store: str  # Format string with {value}, e.g. "store_uint({value}, 64)"
    load: str  # Slice call, e.g. "load_uint(64)"
    default: str

    def store_call(self, value: str) -> str:
        return self.store.format(value=value)


@dataclass
class QueryMethod:
    python_name: str
    method_name: str  # Get-method name passed to the invoker
    declared_in: str
    arguments: list[Argument] = field(default_factory=list)
    outputs: list[ResultField] = field(default_factory=list)
    record: ResultRecord | None = None

    @property
    def probe_name(self) -> str:
        return probe_method_name(self.python_name)

    @property
    def return_annotation(self) -> str:
        if self.record is not None:
            return self.record.class_name
        if self.outputs:
            return self.outputs[0].annotation
        return "None"


@dataclass
class SendMethod:
    python_name: str
    message_name: str
    declared_in: str
    opcode_value: int
    opcode_bits: int
    fields: list[PayloadField] = field(default_factory=list)

    @property
    def probe_name(self) -> str:
        return probe_method_name(self.python_name)

    @property
    def opcode_literal(self) -> str:
        return f"0x{self.opcode_value:0{self.opcode_bits // 4}x}"


@dataclass
class MessageType:
    """A message payload dataclass for the shared messages module."""

    class_name: str
    message_name: str
    definition_name: str
    return_type_name: str
    opcode_value: int
    opcode_bits: int
    fields: list[PayloadField] = field(default_factory=list)

    @property
    def opcode_literal(self) -> str:
        return f"0x{self.opcode_value:0{self.opcode_bits // 4}x}"


@dataclass
class BindingClass:
    """Everything emitted for one interface."""

    class_name: str
    interface_name: str
    module_name: str
    protocol_name: str
    parent_name: str | None = None
    parent_protocol: str | None = None
    fingerprints: list[str] = field(default_factory=list)
    query_methods: list[QueryMethod] = field(default_factory=list)
    send_methods: list[SendMethod] = field(default_factory=list)

    @property
    def records(self) -> list[ResultRecord]:
        return [m.record for m in self.query_methods if m.record is not None]

    @property
    def probeable(self) -> bool:
        """Only query probes decide conformance, so at least one is needed."""
        return bool(self.query_methods)

    def own_query_methods(self) -> list[QueryMethod]:
        return [m for m in self.query_methods if m.declared_in == self.interface_name]

    def own_send_methods(self) -> list[SendMethod]:
        return [m for m in self.send_methods if m.declared_in == self.interface_name]
