"""Intermediate Representation (IR) for contract interface schemas.

The IR is what the parser builds from raw schema text and what every
downstream stage (type mapping, inheritance resolution, code emission)
reads. It covers:
- Interfaces and their single-parent inheritance
- Get-methods with ordered input/output parameters
- Internal messages with opcodes and ordered parameters
"""
