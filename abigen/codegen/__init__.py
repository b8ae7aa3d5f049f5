"""Code emission: IR -> binding model -> Python source text."""

from abigen.codegen.emitter import EmitResult, emit

__all__ = ["EmitResult", "emit"]
