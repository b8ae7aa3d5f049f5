"""Schema parser — builds IR from an ABI schema document.

The container is XML (``<interface>``, ``<get_method>`` and ``<internal>``
elements under one root). Internal messages carry their wire layout as a
one-line grammar, ``name#opcode param:type ... = ReturnType;``, which is
parsed here as well. Individual malformed records are kept in the IR with an
error flag and reported as warnings; only an unparsable container is fatal.
"""

from __future__ import annotations

import json
import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import NamedTuple

from abigen.errors import SchemaSyntaxError
from abigen.ir.models import (
    GetMethodDecl,
    InterfaceDecl,
    MessageDecl,
    Parameter,
    SchemaDocument,
    SchemaWarning,
    WarningKind,
    document_from_dict,
)

logger = logging.getLogger(__name__)

# The parameter section is optional: ``name#hex = Ret;`` has none.
_MESSAGE_RE = re.compile(r"(\w+)#([0-9a-fA-F]+)(?:\s+(.*?))?\s+=\s+(\w+);")
_WHITESPACE_RE = re.compile(r"\s+")


class ParseResult(NamedTuple):
    document: SchemaDocument
    warnings: list[SchemaWarning]


class MessageSyntax(NamedTuple):
    """The parts of a successfully parsed message declaration."""

    definition_name: str
    opcode: str
    params: list[Parameter]
    return_type_name: str


def parse_schema(text: str | bytes) -> ParseResult:
    """Parse a schema document into an IR document plus warnings.

    Raises:
        SchemaSyntaxError: if the XML container cannot be parsed at all.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise SchemaSyntaxError(f"Schema is not well-formed XML: {exc}") from exc

    document = SchemaDocument()
    warnings: list[SchemaWarning] = []

    for element in root:
        if element.tag == "interface":
            document.interfaces.append(_parse_interface(element))
        elif element.tag == "get_method":
            document.get_methods.append(_parse_get_method(element))
        elif element.tag == "internal":
            message, warning = _parse_internal(element)
            document.messages.append(message)
            if warning:
                warnings.append(warning)

    logger.debug(
        "Parsed schema: %d interfaces, %d get-methods, %d messages (%d warnings)",
        len(document.interfaces),
        len(document.get_methods),
        len(document.messages),
        len(warnings),
    )
    return ParseResult(document, warnings)


def parse_schema_file(path: str | Path) -> ParseResult:
    """Parse a schema from disk. ``.json`` files are read as serialized IR."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        return ParseResult(document_from_dict(json.loads(path.read_text())), [])
    return parse_schema(path.read_bytes())


def parse_message_text(text: str) -> MessageSyntax | None:
    """Parse one message declaration; return None if it does not match.

    Multi-line declarations are collapsed to one line first, so they parse
    identically to single-line ones.
    """
    normalized = _WHITESPACE_RE.sub(" ", text).strip()
    match = _MESSAGE_RE.search(normalized)
    if not match:
        return None

    name, opcode, params_text, return_type = match.groups()
    params = [
        Parameter(name=param_name, raw_type=param_type)
        for param_name, param_type in split_params(params_text or "")
    ]
    return MessageSyntax(
        definition_name=name,
        opcode=f"0x{opcode}",
        params=params,
        return_type_name=return_type,
    )


def split_params(text: str) -> list[tuple[str, str]]:
    """Split ``a:uint64 b:(VarUInteger 16)`` into ``[(name, type), ...]``.

    A space at parenthesis depth zero ends a parameter only when the rest of
    the string still contains a ``:``; otherwise it belongs to the type.
    """
    params: list[tuple[str, str]] = []
    remaining = text.strip()

    while remaining:
        name, sep, remaining = remaining.partition(":")
        if not sep:
            break

        depth = 0
        boundary = None
        for i, char in enumerate(remaining):
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            elif char == " " and depth == 0 and ":" in remaining[i + 1 :]:
                boundary = i
                break

        if boundary is None:
            params.append((name.strip(), remaining.strip()))
            remaining = ""
        else:
            params.append((name.strip(), remaining[:boundary].strip()))
            remaining = remaining[boundary + 1 :].strip()

    return params


def _parse_interface(element: ET.Element) -> InterfaceDecl:
    interface = InterfaceDecl(
        name=element.get("name", ""),
        parent=element.get("inherits") or None,
    )

    for child in element:
        if child.tag == "code_hash":
            code_hash = (child.text or "").strip()
            if code_hash:
                interface.fingerprints.append(code_hash)
        elif child.tag == "get_method":
            if child.get("name"):
                interface.get_method_refs.append(child.get("name"))
        elif child.tag == "msg_in":
            interface.inbound_message_refs.extend(_internal_refs(child))
        elif child.tag == "msg_out":
            interface.outbound_message_refs.extend(_internal_refs(child))

    return interface


def _internal_refs(section: ET.Element) -> list[str]:
    return [
        node.get("name")
        for node in section
        if node.tag == "internal" and node.get("name")
    ]


def _parse_get_method(element: ET.Element) -> GetMethodDecl:
    method = GetMethodDecl(name=element.get("name", ""))

    for section in element:
        if section.tag == "input":
            target = method.inputs
        elif section.tag == "output":
            target = method.outputs
        else:
            continue
        for param in section:
            raw_type = "".join(param.itertext()).strip()
            target.append(
                Parameter(
                    name=param.get("name", ""),
                    raw_type=raw_type or None,
                    category=param.tag,
                )
            )

    return method


def _parse_internal(element: ET.Element) -> tuple[MessageDecl, SchemaWarning | None]:
    name = element.get("name", "")
    text = "".join(element.itertext())
    syntax = parse_message_text(text) if text.strip() else None

    if syntax is None:
        logger.warning("Could not parse internal message %r: %s", name, text.strip())
        warning = SchemaWarning(
            kind=WarningKind.SCHEMA_PARSE_FAILURE,
            message=f"Could not parse internal message '{name}'",
            subject=name,
            raw_text=text,
        )
        return MessageDecl(name=name, error=True, raw_text=text), warning

    message = MessageDecl(
        name=name,
        definition_name=syntax.definition_name,
        opcode=syntax.opcode,
        params=syntax.params,
        return_type_name=syntax.return_type_name,
        raw_text=text,
    )
    return message, None
