"""Runtime support imported by generated bindings.

Cells, builders, slices and addresses are pytoniq-core's, re-exported here
so generated modules have a single import source.
"""

from pytoniq_core import Address, Builder, Cell, Slice, begin_cell

from abigen.runtime.binding import (
    ContractBinding,
    MessageSender,
    MethodInvoker,
    QueryOutcome,
    SendResult,
    ValueShape,
    expect_record,
    expect_send_result,
    expect_shape,
)
from abigen.runtime.codec import (
    EMPTY_CELL,
    ZERO_ADDRESS,
    opaque_cell,
    raw_address,
    read_text_cell,
    text_cell,
    to_address,
)
from abigen.runtime.errors import (
    BindingError,
    InvocationError,
    InvocationFailureKind,
    ProbeAssertionError,
    StackReadError,
)
from abigen.runtime.stack import StackEntry, StackKind, StackReader

__all__ = [
    "Address",
    "BindingError",
    "Builder",
    "Cell",
    "ContractBinding",
    "EMPTY_CELL",
    "InvocationError",
    "InvocationFailureKind",
    "MessageSender",
    "MethodInvoker",
    "ProbeAssertionError",
    "QueryOutcome",
    "SendResult",
    "Slice",
    "StackEntry",
    "StackKind",
    "StackReader",
    "StackReadError",
    "ValueShape",
    "ZERO_ADDRESS",
    "begin_cell",
    "expect_record",
    "expect_send_result",
    "expect_shape",
    "opaque_cell",
    "raw_address",
    "read_text_cell",
    "text_cell",
    "to_address",
]
