"""Binding builder — assembles the emitter model from IR.

For each interface (in inheritance order) the builder resolves the
effective get-methods and inbound messages, maps every parameter to its
type category and derives the call, read, store and probe recipes. Missing
or malformed references are skipped with a warning.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

from abigen.codegen import naming
from abigen.codegen.model import (
    Argument,
    BindingClass,
    MessageType,
    PayloadField,
    QueryMethod,
    ResultField,
    ResultRecord,
    SendMethod,
)
from abigen.ir.inheritance import InheritanceResolution, resolve
from abigen.ir.models import (
    GetMethodDecl,
    InterfaceDecl,
    MessageDecl,
    Parameter,
    SchemaDocument,
    SchemaWarning,
    WarningKind,
)
from abigen.tlb.mapper import (
    TypeCategory,
    TypeKind,
    map_parameter,
    map_type,
    probe_default,
    python_annotation,
    stack_factory,
    stack_reader,
    value_shape,
)

logger = logging.getLogger(__name__)

TypeMapper = Callable[[str | None], TypeCategory]

OPCODE_BITS = 32
# VarUInteger 16, the width of Grams/coins amounts
COINS_MAX_BYTES = 16


def _var_uint_prefix_bits(category: TypeCategory) -> int:
    # VarUInteger n stores its byte length in (n - 1).bit_length() bits
    return (category.max_bytes - 1).bit_length()


def store_recipe(category: TypeCategory) -> str:
    """Builder call that stores a message field of ``category``."""
    kind = category.kind
    if kind == TypeKind.INTEGER:
        method = "store_int" if category.signed else "store_uint"
        return f"{method}({{value}}, {category.bits})"
    if kind == TypeKind.VARUINT:
        if category.max_bytes == COINS_MAX_BYTES:
            return "store_coins({value})"
        return f"store_var_uint({{value}}, {_var_uint_prefix_bits(category)})"
    if kind == TypeKind.BOOLEAN:
        return "store_bit({value})"
    if kind == TypeKind.ADDRESS:
        return "store_address({value})"
    if kind == TypeKind.OPTIONAL:
        return "store_maybe_ref({value})"
    if kind == TypeKind.TEXT:
        return "store_ref(text_cell({value}))"
    if category.is_cell_like:
        return "store_ref({value})"
    return "store_ref(opaque_cell({value}))"


def load_recipe(category: TypeCategory) -> str:
    """Slice call that reads back what :func:`store_recipe` stored."""
    kind = category.kind
    if kind == TypeKind.INTEGER:
        method = "load_int" if category.signed else "load_uint"
        return f"{method}({category.bits})"
    if kind == TypeKind.VARUINT:
        if category.max_bytes == COINS_MAX_BYTES:
            return "load_coins()"
        return f"load_var_uint({_var_uint_prefix_bits(category)})"
    if kind == TypeKind.BOOLEAN:
        return "load_bit()"
    if kind == TypeKind.ADDRESS:
        return "load_address()"
    if kind == TypeKind.OPTIONAL:
        return "load_maybe_ref()"
    if kind == TypeKind.TEXT:
        return "load_ref().begin_parse().load_snake_string()"
    return "load_ref()"


def opcode_bits(message: MessageDecl) -> int:
    digits = len(message.opcode[2:]) if message.opcode.lower().startswith("0x") else len(message.opcode)
    return max(OPCODE_BITS, digits * 4)


class BindingBuilder:
    """Builds :class:`BindingClass` trees for every interface of a document."""

    def __init__(
        self,
        document: SchemaDocument,
        resolution: InheritanceResolution | None = None,
        type_mapper: TypeMapper = map_type,
    ):
        self.document = document
        self.resolution = resolution if resolution is not None else resolve(document)
        self.type_mapper = type_mapper
        self.warnings: list[SchemaWarning] = []
        self._reported: set[tuple[str, str]] = set()

    def build(self) -> list[BindingClass]:
        """Return one binding per interface, parents before children."""
        bindings: list[BindingClass] = []
        class_names: set[str] = set()
        module_names: set[str] = set()
        protocols: dict[str, str] = {}

        for name in self.resolution.topo_order:
            interface = self.document.find_interface(name)
            class_name = _unique(naming.binding_class_name(name), class_names)
            parent = self.resolution.parents.get(name)
            binding = BindingClass(
                class_name=class_name,
                interface_name=name,
                module_name=_unique(naming.module_name(name), module_names),
                protocol_name=naming.protocol_name(class_name),
                parent_name=parent,
                parent_protocol=protocols.get(parent) if parent else None,
                fingerprints=list(interface.fingerprints),
            )
            protocols[name] = binding.protocol_name
            self._fill_methods(binding, interface)
            bindings.append(binding)
            logger.debug(
                "Built binding %s: %d queries, %d sends",
                class_name,
                len(binding.query_methods),
                len(binding.send_methods),
            )
        return bindings

    def message_types(self) -> list[MessageType]:
        """Payload dataclasses for every well-formed message, first name wins."""
        types: list[MessageType] = []
        seen: set[str] = set()
        class_names: set[str] = set()
        for message in self.document.valid_messages:
            if message.name in seen:
                continue
            seen.add(message.name)
            types.append(
                MessageType(
                    class_name=_unique(naming.message_class_name(message.name), class_names),
                    message_name=message.name,
                    definition_name=message.definition_name,
                    return_type_name=message.return_type_name,
                    opcode_value=message.opcode_value,
                    opcode_bits=opcode_bits(message),
                    fields=self._payload_fields(message),
                )
            )
        return types

    # --- Per-interface resolution ---

    def _fill_methods(self, binding: BindingClass, interface: InterfaceDecl) -> None:
        members = self.resolution.effective_members(interface.name)
        used: set[str] = set()

        for ref in members.get_methods:
            get_method = self.document.find_get_method(ref)
            if get_method is None:
                self._warn_dangling(interface.name, ref, f"Get-method '{ref}' is not declared")
                continue
            declared_in = self._declaring_interface(members.chain, ref, "get_method_refs")
            python_name = _unique_method(naming.query_method_name(get_method.name), used)
            binding.query_methods.append(self._query_method(get_method, python_name, declared_in))

        for ref in members.inbound_messages:
            message = self.document.find_message(ref)
            if message is None:
                reason = (
                    f"Message '{ref}' failed to parse"
                    if any(m.name == ref for m in self.document.messages)
                    else f"Message '{ref}' is not declared"
                )
                self._warn_dangling(interface.name, ref, reason)
                continue
            declared_in = self._declaring_interface(members.chain, ref, "inbound_message_refs")
            python_name = _unique_method(naming.send_method_name(message.name), used)
            binding.send_methods.append(
                SendMethod(
                    python_name=python_name,
                    message_name=message.name,
                    declared_in=declared_in,
                    opcode_value=message.opcode_value,
                    opcode_bits=opcode_bits(message),
                    fields=self._payload_fields(message),
                )
            )

    def _declaring_interface(self, chain: list[str], ref: str, attribute: str) -> str:
        for name in chain:
            interface = self.document.find_interface(name)
            if ref in getattr(interface, attribute):
                return name
        return chain[0]

    def _warn_dangling(self, interface: str, ref: str, reason: str) -> None:
        if (interface, ref) in self._reported:
            return
        self._reported.add((interface, ref))
        logger.warning("Skipping %s in interface %s: %s", ref, interface, reason)
        self.warnings.append(
            SchemaWarning(
                kind=WarningKind.DANGLING_REFERENCE,
                message=f"{reason}; skipped in interface '{interface}'",
                subject=interface,
            )
        )

    # --- Methods ---

    def _map_stack_param(self, param: Parameter) -> TypeCategory:
        category = self.type_mapper(param.raw_type)
        if category.kind == TypeKind.UNKNOWN:
            fallback = map_parameter(replace(param, raw_type=None))
            if fallback.kind != TypeKind.UNKNOWN:
                return fallback
        return category

    def _query_method(self, get_method: GetMethodDecl, python_name: str, declared_in: str) -> QueryMethod:
        method = QueryMethod(python_name=python_name, method_name=get_method.name, declared_in=declared_in)

        input_names = naming.field_names([p.name for p in get_method.inputs])
        for ident, param in zip(input_names, get_method.inputs):
            category = self._map_stack_param(param)
            method.arguments.append(
                Argument(
                    name=ident,
                    source_name=param.name,
                    category=category,
                    annotation=python_annotation(category),
                    stack_factory=stack_factory(category),
                    default=probe_default(category),
                )
            )

        output_names = naming.field_names([p.name for p in get_method.outputs])
        for ident, param in zip(output_names, get_method.outputs):
            category = self._map_stack_param(param)
            method.outputs.append(
                ResultField(
                    name=ident,
                    source_name=param.name,
                    category=category,
                    annotation=python_annotation(category),
                    reader=stack_reader(category),
                    shape=value_shape(category),
                )
            )

        if len(method.outputs) > 1:
            method.record = ResultRecord(naming.record_name(python_name), list(method.outputs))
        return method

    def _payload_fields(self, message: MessageDecl) -> list[PayloadField]:
        fields: list[PayloadField] = []
        idents = naming.field_names([p.name for p in message.params])
        for ident, param in zip(idents, message.params):
            category = self.type_mapper(param.raw_type)
            fields.append(
                PayloadField(
                    name=ident,
                    source_name=param.name,
                    category=category,
                    annotation=python_annotation(category, for_message=True),
                    store=store_recipe(category),
                    load=load_recipe(category),
                    default=probe_default(category, for_message=True),
                )
            )
        return fields


def _unique(name: str, used: set[str]) -> str:
    candidate = name
    index = 2
    while candidate in used:
        candidate = f"{name}{index}"
        index += 1
    used.add(candidate)
    return candidate


def _unique_method(name: str, used: set[str]) -> str:
    """Like :func:`_unique`, but the method's probe name must be free too."""
    candidate = name
    index = 2
    while candidate in used or naming.probe_method_name(candidate) in used:
        candidate = f"{name}{index}"
        index += 1
    used.add(candidate)
    used.add(naming.probe_method_name(candidate))
    return candidate
