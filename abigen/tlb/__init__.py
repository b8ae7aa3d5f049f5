"""TL-B type tokens and their semantic categories."""

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

__all__ = [
    "TypeCategory",
    "TypeKind",
    "map_parameter",
    "map_type",
    "probe_default",
    "python_annotation",
    "stack_factory",
    "stack_reader",
    "value_shape",
]
