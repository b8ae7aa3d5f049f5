"""Interface inheritance resolution.

Builds the single-parent inheritance graph of a document and derives:
- a topological order (parents before children), used for emission;
- the reverse order (most-derived first), used for conformance probing, since
  a derived interface requires a superset of its ancestors' methods;
- the effective members of each interface (own plus inherited).

Graph problems never abort resolution: a missing parent or a cycle is
recorded as a warning and the offending edge is dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from abigen.ir.models import InterfaceDecl, SchemaDocument, SchemaWarning, WarningKind

logger = logging.getLogger(__name__)


@dataclass
class EffectiveMembers:
    """Member references of an interface including everything it inherits.

    ``chain`` lists the interface followed by its ancestors, nearest first.
    """

    get_methods: list[str] = field(default_factory=list)
    inbound_messages: list[str] = field(default_factory=list)
    outbound_messages: list[str] = field(default_factory=list)
    chain: list[str] = field(default_factory=list)


@dataclass
class InheritanceResolution:
    """Derived orderings and member sets for one document."""

    topo_order: list[str] = field(default_factory=list)
    reverse_topo_order: list[str] = field(default_factory=list)
    parents: dict[str, str] = field(default_factory=dict)  # child -> parent, kept edges only
    warnings: list[SchemaWarning] = field(default_factory=list)
    _members: dict[str, EffectiveMembers] = field(default_factory=dict, repr=False)

    def effective_members(self, name: str) -> EffectiveMembers:
        """Return the own + inherited members of ``name`` (empty if unknown)."""
        return self._members.get(name, EffectiveMembers())

    def ancestors(self, name: str) -> list[str]:
        return self.effective_members(name).chain[1:]


def resolve(document: SchemaDocument) -> InheritanceResolution:
    """Resolve inheritance for every interface of ``document``."""
    resolution = InheritanceResolution()
    interfaces: dict[str, InterfaceDecl] = {}
    for interface in document.interfaces:
        # First declaration wins, as for every other lookup
        interfaces.setdefault(interface.name, interface)

    edges: dict[str, str] = {}
    for name, interface in interfaces.items():
        if not interface.parent:
            continue
        if interface.parent not in interfaces:
            logger.warning("Parent interface %s of %s not found", interface.parent, name)
            resolution.warnings.append(
                SchemaWarning(
                    kind=WarningKind.DANGLING_REFERENCE,
                    message=f"Parent interface '{interface.parent}' of '{name}' is not declared",
                    subject=name,
                )
            )
            continue
        edges[name] = interface.parent

    visited: set[str] = set()
    on_stack: set[str] = set()

    def visit(name: str, path: list[str]) -> None:
        if name in on_stack:
            cycle = path[path.index(name) :] + [name]
            child = path[-1]
            logger.warning("Inheritance cycle detected: %s", " -> ".join(cycle))
            resolution.warnings.append(
                SchemaWarning(
                    kind=WarningKind.CYCLE_DETECTED,
                    message=f"Inheritance cycle detected: {' -> '.join(cycle)}",
                    subject=child,
                )
            )
            edges.pop(child, None)
            return
        if name in visited:
            return

        on_stack.add(name)
        parent = edges.get(name)
        if parent is not None:
            visit(parent, path + [name])
        on_stack.discard(name)
        visited.add(name)
        resolution.topo_order.append(name)

    for name in interfaces:
        if name not in visited:
            visit(name, [])

    resolution.reverse_topo_order = list(reversed(resolution.topo_order))
    resolution.parents = dict(edges)

    for name in interfaces:
        resolution._members[name] = _collect_members(name, interfaces, edges)

    return resolution


def _collect_members(
    name: str, interfaces: dict[str, InterfaceDecl], edges: dict[str, str]
) -> EffectiveMembers:
    members = EffectiveMembers()
    current: str | None = name
    # Bounded walk: at most one step per interface even if an edge survived a cycle
    for _ in range(len(interfaces)):
        if current is None or current in members.chain:
            break
        interface = interfaces[current]
        members.chain.append(current)
        _extend_unique(members.get_methods, interface.get_method_refs)
        _extend_unique(members.inbound_messages, interface.inbound_message_refs)
        _extend_unique(members.outbound_messages, interface.outbound_message_refs)
        current = edges.get(current)
    return members


def _extend_unique(target: list[str], items: list[str]) -> None:
    for item in items:
        if item not in target:
            target.append(item)
