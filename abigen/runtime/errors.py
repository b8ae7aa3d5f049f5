"""Errors raised by generated bindings and their result readers."""

from __future__ import annotations

from enum import Enum

from abigen.errors import AbigenError


class InvocationFailureKind(Enum):
    METHOD_NOT_FOUND = "method_not_found"
    INVALID_ARGUMENTS = "invalid_arguments"
    TARGET_UNREACHABLE = "target_unreachable"
    OTHER = "other"


# Exit codes reported by the execution environment for failed get-methods
EXIT_CODE_KINDS: dict[int, InvocationFailureKind] = {
    11: InvocationFailureKind.METHOD_NOT_FOUND,
    4: InvocationFailureKind.INVALID_ARGUMENTS,
    2: InvocationFailureKind.TARGET_UNREACHABLE,
}


class InvocationError(AbigenError):
    """A get-method invocation failed.

    ``kind`` tells callers why, independently of how the underlying
    environment reported it.
    """

    def __init__(
        self,
        kind: InvocationFailureKind,
        method_name: str,
        address: object = None,
        interface_name: str = "",
        exit_code: int | None = None,
        detail: str = "",
    ):
        self.kind = kind
        self.method_name = method_name
        self.address = address
        self.interface_name = interface_name
        self.exit_code = exit_code
        self.detail = detail
        super().__init__(self._describe())

    @classmethod
    def from_exit_code(
        cls,
        exit_code: int,
        method_name: str,
        address: object = None,
        interface_name: str = "",
        detail: str = "",
    ) -> InvocationError:
        kind = EXIT_CODE_KINDS.get(exit_code, InvocationFailureKind.OTHER)
        return cls(kind, method_name, address, interface_name, exit_code, detail)

    def _describe(self) -> str:
        if self.kind == InvocationFailureKind.METHOD_NOT_FOUND:
            message = f"Method '{self.method_name}' does not exist in contract at address {self.address}."
            if self.interface_name:
                message += (
                    f" Is it correct that this contract implements interface "
                    f"'{self.interface_name}'?"
                )
            return message
        if self.kind == InvocationFailureKind.INVALID_ARGUMENTS:
            return f"Invalid arguments for method '{self.method_name}'."
        if self.kind == InvocationFailureKind.TARGET_UNREACHABLE:
            return f"Contract at address {self.address} is not responding."
        if self.exit_code is not None:
            message = (
                f"Method '{self.method_name}' returned error code {self.exit_code}. "
                f"The contract might not implement the expected interface."
            )
            return f"{message} Details: {self.detail}" if self.detail else message
        return f"Error executing method '{self.method_name}': {self.detail or 'unknown error'}"


class BindingError(AbigenError):
    """A binding was used without the capability it needs."""


class ProbeAssertionError(AbigenError):
    """A probe result does not have the declared shape."""


class StackReadError(ValueError):
    """A result stack entry is missing or has the wrong kind."""
