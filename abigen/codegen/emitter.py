"""Code emitter — turns a schema document into binding source text.

Pure: no I/O. :func:`emit` builds the model with :class:`BindingBuilder`
and renders every module; writing the files is the caller's job (see
:mod:`abigen.generators.writer`).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from abigen.codegen.builder import BindingBuilder, TypeMapper
from abigen.codegen.model import BindingClass, MessageType
from abigen.codegen.renderer import (
    render_binding_module,
    render_interfaces_module,
    render_messages_module,
    render_package_init,
    render_registry_module,
)
from abigen.ir.inheritance import InheritanceResolution, resolve
from abigen.ir.models import SchemaDocument, SchemaWarning
from abigen.tlb.mapper import map_type


@dataclass
class EmitResult:
    """Rendered sources, keyed by interface name where per-interface."""

    bindings: dict[str, str] = field(default_factory=dict)
    module_names: dict[str, str] = field(default_factory=dict)
    data_types: str = ""
    interfaces: str = ""
    registry: str = ""
    package_init: str = ""
    probe_order: list[str] = field(default_factory=list)
    warnings: list[SchemaWarning] = field(default_factory=list)
    binding_classes: list[BindingClass] = field(default_factory=list, repr=False)
    message_types: list[MessageType] = field(default_factory=list, repr=False)

    def files(self) -> dict[str, str]:
        """File name -> source text for the whole generated package."""
        files = {"__init__.py": self.package_init}
        for interface_name, source in self.bindings.items():
            files[f"{self.module_names[interface_name]}.py"] = source
        files["messages.py"] = self.data_types
        files["interfaces.py"] = self.interfaces
        files["registry.py"] = self.registry
        return files

    def summary(self) -> str:
        return (
            f"{len(self.bindings)} bindings, {len(self.message_types)} message types, "
            f"{len(self.warnings)} warnings"
        )


def emit(
    document: SchemaDocument,
    resolution: InheritanceResolution | None = None,
    type_mapper: TypeMapper = map_type,
) -> EmitResult:
    """Emit bindings for every interface of ``document``.

    ``resolution`` is computed when not given; its warnings are included
    in the result along with the emitter's own.
    """
    if resolution is None:
        resolution = resolve(document)

    builder = BindingBuilder(document, resolution, type_mapper)
    bindings = builder.build()
    message_types = builder.message_types()

    by_name = {b.interface_name: b for b in bindings}
    probe_order = [
        name
        for name in resolution.reverse_topo_order
        if name in by_name and by_name[name].probeable
    ]

    result = EmitResult(
        data_types=render_messages_module(message_types),
        interfaces=render_interfaces_module(bindings),
        registry=render_registry_module(bindings, probe_order),
        package_init=render_package_init(bindings),
        probe_order=probe_order,
        warnings=list(resolution.warnings) + builder.warnings,
        binding_classes=bindings,
        message_types=message_types,
    )
    for binding in bindings:
        result.bindings[binding.interface_name] = render_binding_module(binding)
        result.module_names[binding.interface_name] = binding.module_name
    return result
