"""Renderer — formats emitter model records as Python source text.

Each ``render_*`` function walks one part of the model and returns the
complete text of one generated module.
"""

from __future__ import annotations

from abigen.codegen.model import BindingClass, MessageType, QueryMethod, SendMethod

HEADER = "# Generated by abigen. Do not edit by hand.\n"
INDENT = "    "


def _indent(lines: list[str], depth: int = 1) -> list[str]:
    prefix = INDENT * depth
    return [f"{prefix}{line}" if line else "" for line in lines]


def _signature(params: list[tuple[str, str, str | None]]) -> str:
    """``self, a: int, b: Cell = EMPTY_CELL`` from (name, annotation, default)."""
    parts = ["self"]
    for name, annotation, default in params:
        part = f"{name}: {annotation}"
        if default is not None:
            part += f" = {default}"
        parts.append(part)
    return ", ".join(parts)


def _tuple_literal(items: list[str]) -> str:
    if not items:
        return "()"
    if len(items) == 1:
        return f"({items[0]!r},)"
    return "(" + ", ".join(repr(i) for i in items) + ")"


# ── Binding modules ──────────────────────────────────────────────────────


def render_binding_module(binding: BindingClass) -> str:
    lines = [
        HEADER.rstrip(),
        f'"""Binding for the ``{binding.interface_name}`` contract interface."""',
        "",
        "from __future__ import annotations",
        "",
    ]
    if binding.records:
        lines.append("from dataclasses import dataclass")
    lines += [
        "from typing import Any  # noqa: F401",
        "",
        "from abigen.runtime import (  # noqa: F401",
        "    EMPTY_CELL,",
        "    ZERO_ADDRESS,",
        "    Address,",
        "    Cell,",
        "    ContractBinding,",
        "    StackEntry,",
        "    ValueShape,",
        "    begin_cell,",
        "    opaque_cell,",
        "    text_cell,",
        ")",
    ]

    for record in binding.records:
        lines += ["", "", "@dataclass", f"class {record.class_name}:"]
        lines += _indent([f"{f.name}: {f.annotation}" for f in record.fields])

    lines += ["", "", f"class {binding.class_name}(ContractBinding):"]
    body = [f'"""Client for contracts implementing ``{binding.interface_name}``."""', ""]
    body += [
        f"interface_name = {binding.interface_name!r}",
        f"parent_interface = {binding.parent_name!r}",
        f"fingerprints = {_tuple_literal(binding.fingerprints)}",
        f"query_methods = {_tuple_literal([m.python_name for m in binding.query_methods])}",
        f"send_methods = {_tuple_literal([m.python_name for m in binding.send_methods])}",
    ]
    for method in binding.query_methods:
        body += [""] + _render_query(method)
    for method in binding.send_methods:
        body += [""] + _render_send(method)
    for method in binding.query_methods:
        body += [""] + _render_query_probe(method)
    for method in binding.send_methods:
        body += [""] + _render_send_probe(method)
    lines += _indent(body)
    return "\n".join(lines) + "\n"


def _render_query(method: QueryMethod) -> list[str]:
    signature = _signature([(a.name, a.annotation, None) for a in method.arguments])
    lines = [f"async def {method.python_name}({signature}) -> {method.return_annotation}:"]
    args = ", ".join(f"StackEntry.{a.stack_factory}({a.name})" for a in method.arguments)
    call = f"self._run_query({method.method_name!r}, [{args}])"

    if not method.outputs:
        lines += _indent([f"await {call}", "return None"])
    elif method.record is None:
        lines += _indent([f"reader = await {call}", f"return reader.{method.outputs[0].reader}()"])
    else:
        lines += _indent([f"reader = await {call}", f"return {method.record.class_name}("])
        lines += _indent([f"{f.name}=reader.{f.reader}()," for f in method.outputs], 2)
        lines += _indent([")"])
    return lines


def _render_send(method: SendMethod) -> list[str]:
    signature = _signature([(f.name, f.annotation, None) for f in method.fields])
    lines = [f"async def {method.python_name}({signature}) -> Any:"]
    chain = ["begin_cell()", f".store_uint({method.opcode_literal}, {method.opcode_bits})"]
    chain += [f".{f.store_call(f.name)}" for f in method.fields]
    chain.append(".end_cell()")
    lines += _indent(["body = ("] + _indent(chain) + [")", "return await self._send(body)"])
    return lines


def _render_query_probe(method: QueryMethod) -> list[str]:
    signature = _signature([(a.name, a.annotation, a.default) for a in method.arguments])
    label = method.method_name
    call = f"await self.{method.python_name}({', '.join(a.name for a in method.arguments)})"
    lines = [f"async def {method.probe_name}({signature}) -> None:"]

    if not method.outputs:
        body = [f"result = {call}", f"self.expect_shape(result, ValueShape.NONE, {label!r})"]
    elif method.record is None:
        body = [
            f"result = {call}",
            f"self.expect_shape(result, ValueShape.{method.outputs[0].shape}, {label!r})",
        ]
    else:
        body = [
            f"result = {call}",
            f"self.expect_record(result, {method.record.class_name}, {label!r})",
        ]
        body += [
            f"self.expect_shape(result.{f.name}, ValueShape.{f.shape}, {label + '.' + f.name!r})"
            for f in method.outputs
        ]
    return lines + _indent(body)


def _render_send_probe(method: SendMethod) -> list[str]:
    signature = _signature([(f.name, f.annotation, f.default) for f in method.fields])
    call = f"await self.{method.python_name}({', '.join(f.name for f in method.fields)})"
    lines = [f"async def {method.probe_name}({signature}) -> None:"]
    return lines + _indent(
        [f"result = {call}", f"self.expect_send_result(result, {method.message_name!r})"]
    )


# ── Shared modules ───────────────────────────────────────────────────────


def render_messages_module(message_types: list[MessageType]) -> str:
    lines = [
        HEADER.rstrip(),
        '"""Message payload types, one dataclass per internal message."""',
        "",
        "from __future__ import annotations",
        "",
        "from dataclasses import dataclass",
        "from typing import Any, ClassVar  # noqa: F401",
        "",
        "from abigen.runtime import (  # noqa: F401",
        "    Address,",
        "    Builder,",
        "    Cell,",
        "    begin_cell,",
        "    opaque_cell,",
        "    text_cell,",
        ")",
    ]
    for message in message_types:
        lines += ["", ""] + _render_message_type(message)
    return "\n".join(lines) + "\n"


def _render_message_type(message: MessageType) -> list[str]:
    lines = ["@dataclass", f"class {message.class_name}:"]
    body = [
        f'"""``{message.definition_name}`` message, returning ``{message.return_type_name}``."""',
        "",
        f"OPCODE: ClassVar[int] = {message.opcode_literal}",
        f"OPCODE_BITS: ClassVar[int] = {message.opcode_bits}",
    ]
    body += [f"{f.name}: {f.annotation}" for f in message.fields]

    body += ["", "def store(self, builder: Builder) -> Builder:"]
    store = ["builder.store_uint(self.OPCODE, self.OPCODE_BITS)"]
    store += [f"builder.{f.store_call('self.' + f.name)}" for f in message.fields]
    store.append("return builder")
    body += _indent(store)

    body += ["", "def to_cell(self) -> Cell:"]
    body += _indent(["return self.store(begin_cell()).end_cell()"])

    body += ["", "@classmethod", f"def load(cls, cell: Cell) -> {message.class_name}:"]
    load = [
        "reader = cell.begin_parse()",
        "opcode = reader.load_uint(cls.OPCODE_BITS)",
        "if opcode != cls.OPCODE:",
        f'    raise ValueError(f"Expected opcode {message.opcode_literal}, got {{opcode:#x}}")',
    ]
    if message.fields:
        load.append("return cls(")
        load += _indent([f"{f.name}=reader.{f.load}," for f in message.fields])
        load.append(")")
    else:
        load.append("return cls()")
    body += _indent(load)
    return lines + _indent(body)


def render_interfaces_module(bindings: list[BindingClass]) -> str:
    """Protocol classes mirroring each binding; a child protocol extends its parent's."""
    lines = [
        HEADER.rstrip(),
        '"""Structural interface types for the generated bindings."""',
        "",
        "from __future__ import annotations",
        "",
        "from typing import Any, Protocol  # noqa: F401",
        "",
        "from abigen.runtime import Address, Cell  # noqa: F401",
    ]
    record_modules = sorted({b.module_name for b in bindings if _own_records(b)})
    if record_modules:
        lines.append("")
        lines += [f"from . import {module} as _{module}" for module in record_modules]

    for binding in bindings:
        bases = f"{binding.parent_protocol}, Protocol" if binding.parent_protocol else "Protocol"
        lines += ["", "", f"class {binding.protocol_name}({bases}):"]
        body = [f'"""Methods declared by ``{binding.interface_name}``."""']
        for method in binding.own_query_methods():
            signature = _signature([(a.name, a.annotation, None) for a in method.arguments])
            returns = method.return_annotation
            if method.record is not None:
                returns = f"_{binding.module_name}.{method.record.class_name}"
            body += ["", f"async def {method.python_name}({signature}) -> {returns}: ..."]
        for method in binding.own_send_methods():
            signature = _signature([(f.name, f.annotation, None) for f in method.fields])
            body += ["", f"async def {method.python_name}({signature}) -> Any: ..."]
        lines += _indent(body)

    return "\n".join(lines) + "\n"


def _own_records(binding: BindingClass) -> bool:
    return any(m.record is not None for m in binding.own_query_methods())


def render_registry_module(bindings: list[BindingClass], probe_order: list[str]) -> str:
    lines = [
        HEADER.rstrip(),
        '"""Binding registry in conformance probe order (most derived first)."""',
        "",
        "from __future__ import annotations",
        "",
        "from abigen.conformance import BindingRegistry",
    ]
    if bindings:
        lines.append("")
        lines += [f"from .{b.module_name} import {b.class_name}" for b in bindings]

    lines += ["", "BINDINGS = ("]
    lines += _indent([f"{b.class_name}," for b in bindings])
    lines += [")", "", "PROBE_ORDER = ("]
    lines += _indent([f"{name!r}," for name in probe_order])
    lines += [")"]
    lines += [
        "",
        "",
        "def build_registry() -> BindingRegistry:",
        '    """Return a registry of every generated binding."""',
        "    return BindingRegistry.from_bindings(BINDINGS, order=PROBE_ORDER)",
    ]
    return "\n".join(lines) + "\n"


def render_package_init(bindings: list[BindingClass]) -> str:
    names = [b.class_name for b in bindings]
    lines = [HEADER.rstrip(), '"""Generated contract bindings."""', ""]
    lines += [f"from .{b.module_name} import {b.class_name}" for b in bindings]
    lines.append("from .registry import BINDINGS, PROBE_ORDER, build_registry")
    lines += ["", "__all__ = ["]
    lines += _indent([f"{name!r}," for name in names + ["BINDINGS", "PROBE_ORDER", "build_registry"]])
    lines.append("]")
    return "\n".join(lines) + "\n"
