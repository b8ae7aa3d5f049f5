"""IR data models — the parsed form of a contract interface schema.

These models are built once by the parser and then read (never mutated) by
the type mapper, the inheritance resolver and the code emitter.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum


class WarningKind(Enum):
    SCHEMA_PARSE_FAILURE = "schema_parse_failure"  # Message record did not match the grammar
    DANGLING_REFERENCE = "dangling_reference"  # Reference to a name absent from the document
    CYCLE_DETECTED = "cycle_detected"  # Inheritance cycle, broken during traversal


@dataclass(frozen=True)
class SchemaWarning:
    """A recoverable problem found while parsing or resolving a schema."""

    kind: WarningKind
    message: str
    subject: str = ""  # Name of the interface/method/message concerned
    raw_text: str = ""

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


# --- Core IR Nodes ---


@dataclass
class Parameter:
    """A positional parameter of a get-method or an internal message.

    ``category`` is the stack element kind for get-method parameters
    (``int``, ``slice``, ``cell``...) and empty for message parameters.
    """

    name: str
    raw_type: str | None = None
    category: str = ""


@dataclass
class GetMethodDecl:
    """A read-only method invoked by name with positional stack arguments."""

    name: str
    inputs: list[Parameter] = field(default_factory=list)
    outputs: list[Parameter] = field(default_factory=list)


@dataclass
class MessageDecl:
    """An internal message declaration.

    ``name`` is the declaration-site identifier (the schema node name),
    ``definition_name`` the constructor name used inside the grammar text.
    """

    name: str
    definition_name: str = ""
    opcode: str = ""  # Hex text as written, prefixed with 0x
    params: list[Parameter] = field(default_factory=list)
    return_type_name: str = ""
    error: bool = False
    raw_text: str = ""

    @property
    def opcode_value(self) -> int:
        if not self.opcode:
            return 0
        return int(self.opcode, 16)

    def same_opcode(self, other: str) -> bool:
        return self.opcode.lower() == other.lower()


@dataclass
class InterfaceDecl:
    """A named set of get-methods and messages, optionally extending a parent."""

    name: str
    parent: str | None = None
    fingerprints: list[str] = field(default_factory=list)
    get_method_refs: list[str] = field(default_factory=list)
    inbound_message_refs: list[str] = field(default_factory=list)
    outbound_message_refs: list[str] = field(default_factory=list)

    @property
    def fingerprint(self) -> str | None:
        return self.fingerprints[0] if self.fingerprints else None


@dataclass
class SchemaDocument:
    """The complete IR for one schema document.

    Lookups are by name and return the first declaration with that name;
    later duplicates are shadowed.
    """

    interfaces: list[InterfaceDecl] = field(default_factory=list)
    get_methods: list[GetMethodDecl] = field(default_factory=list)
    messages: list[MessageDecl] = field(default_factory=list)

    def find_interface(self, name: str) -> InterfaceDecl | None:
        return next((i for i in self.interfaces if i.name == name), None)

    def find_get_method(self, name: str) -> GetMethodDecl | None:
        return next((m for m in self.get_methods if m.name == name), None)

    def find_message(self, name: str) -> MessageDecl | None:
        """Return the first well-formed message called ``name``."""
        return next((m for m in self.messages if m.name == name and not m.error), None)

    @property
    def valid_messages(self) -> list[MessageDecl]:
        return [m for m in self.messages if not m.error]

    @property
    def interface_names(self) -> list[str]:
        return [i.name for i in self.interfaces]


# --- Serialization ---


def document_to_dict(document: SchemaDocument) -> dict:
    """Convert a document to plain dicts/lists, suitable for JSON."""
    return asdict(document)


def document_from_dict(data: dict) -> SchemaDocument:
    """Rebuild a document from the output of :func:`document_to_dict`."""
    interfaces = [
        InterfaceDecl(
            name=item.get("name", ""),
            parent=item.get("parent"),
            fingerprints=list(item.get("fingerprints", [])),
            get_method_refs=list(item.get("get_method_refs", [])),
            inbound_message_refs=list(item.get("inbound_message_refs", [])),
            outbound_message_refs=list(item.get("outbound_message_refs", [])),
        )
        for item in data.get("interfaces", [])
    ]
    get_methods = [
        GetMethodDecl(
            name=item.get("name", ""),
            inputs=[_param_from_dict(p) for p in item.get("inputs", [])],
            outputs=[_param_from_dict(p) for p in item.get("outputs", [])],
        )
        for item in data.get("get_methods", [])
    ]
    messages = [
        MessageDecl(
            name=item.get("name", ""),
            definition_name=item.get("definition_name", ""),
            opcode=item.get("opcode", ""),
            params=[_param_from_dict(p) for p in item.get("params", [])],
            return_type_name=item.get("return_type_name", ""),
            error=bool(item.get("error", False)),
            raw_text=item.get("raw_text", ""),
        )
        for item in data.get("messages", [])
    ]
    return SchemaDocument(interfaces=interfaces, get_methods=get_methods, messages=messages)


def _param_from_dict(data: dict) -> Parameter:
    return Parameter(
        name=data.get("name", ""),
        raw_type=data.get("raw_type"),
        category=data.get("category", ""),
    )
