"""Python identifiers for schema names."""

from __future__ import annotations

import keyword
import re

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_INVALID_CHARS_RE = re.compile(r"\W+")

# Attributes of ContractBinding that generated methods must not shadow
RESERVED_MEMBERS = frozenset(
    {
        "address",
        "invoker",
        "sender",
        "probe",
        "interface_name",
        "parent_interface",
        "fingerprints",
        "query_methods",
        "send_methods",
        "expect_shape",
        "expect_record",
        "expect_send_result",
        "self",
    }
)

# Runtime names generated modules call; parameters must not shadow them
RUNTIME_NAMES = frozenset({"begin_cell", "text_cell", "opaque_cell", "dataclass"})

# File names the emitter uses for its shared modules
RESERVED_MODULES = frozenset({"messages", "interfaces", "registry", "__init__"})


def safe_identifier(name: str) -> str:
    """Turn ``name`` into a valid identifier that is not a keyword."""
    ident = _INVALID_CHARS_RE.sub("_", name).strip("_") or "value"
    if ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident) or ident in RESERVED_MEMBERS or ident in RUNTIME_NAMES:
        ident = f"{ident}_"
    return ident


def snake_case(name: str) -> str:
    """``NftItemSimple`` -> ``nft_item_simple``; snake_case names are kept."""
    name = _CAMEL_BOUNDARY_RE.sub("_", name)
    return _INVALID_CHARS_RE.sub("_", name).strip("_").lower()


def pascal_case(name: str) -> str:
    """``nft_item`` -> ``NftItem``; PascalCase names are kept."""
    parts = [p for p in _INVALID_CHARS_RE.sub("_", name).split("_") if p]
    ident = "".join(p[0].upper() + p[1:] for p in parts) or "Unnamed"
    return f"_{ident}" if ident[0].isdigit() else ident


def query_method_name(get_method: str) -> str:
    return safe_identifier(snake_case(get_method))


def send_method_name(message: str) -> str:
    return safe_identifier(f"send_{snake_case(message)}")


def probe_method_name(method: str) -> str:
    return f"probe_{method}"


def binding_class_name(interface: str) -> str:
    return pascal_case(interface)


def protocol_name(interface: str) -> str:
    return f"{pascal_case(interface)}Interface"


def record_name(method: str) -> str:
    return f"{pascal_case(method)}Result"


def message_class_name(message: str) -> str:
    return pascal_case(message)


def module_name(interface: str) -> str:
    """Module file stem for an interface binding, clear of the shared modules."""
    stem = snake_case(interface) or "interface"
    if stem[0].isdigit():
        stem = f"_{stem}"
    if stem in RESERVED_MODULES or keyword.iskeyword(stem):
        stem = f"{stem}_binding"
    return stem


def field_names(names: list[str]) -> list[str]:
    """Identifiers for positional parameters, unique within one method.

    Unnamed parameters become ``arg<index>``.
    """
    result: list[str] = []
    for index, name in enumerate(names):
        ident = safe_identifier(name) if name else f"arg{index}"
        if ident in result:
            ident = f"{ident}_{index}"
        result.append(ident)
    return result
