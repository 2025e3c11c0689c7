"""
Exception hierarchy for the hvclient bindings.

Every failure reported by libvirt becomes a NativeCallError carrying the
name of the native function and a snapshot of libvirt's error record.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import ErrorInfo


class HVError(Exception):
    """Base exception for all hvclient errors."""


class FreedHandleError(HVError):
    """Operation attempted on a handle that has already been freed."""

    pass


class ArgumentError(HVError, TypeError):
    """Caller input is malformed (wrong arity or container shape)."""

    pass


class InvalidParameterKind(HVError):
    """A typed parameter carried a kind tag outside the known set."""

    def __init__(self, kind: int, field: str | None = None):
        self.kind = kind
        self.field = field
        msg = f"Invalid parameter type {kind}"
        if field:
            msg += f" for {field!r}"
        super().__init__(msg)


class TypeMismatchError(HVError, TypeError):
    """A value cannot be converted to the kind libvirt reported for its field."""

    def __init__(self, field: str, kind: object, value: object, reason: str | None = None):
        self.field = field
        self.kind = kind
        self.value = value
        msg = f"wrong value for {field!r} (expected {kind}, got {type(value).__name__})"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class LibraryNotFoundError(HVError, RuntimeError):
    """The libvirt shared library could not be located."""

    pass


class NativeCallError(HVError):
    """A libvirt call reported failure.

    The libvirt error record is captured at the moment of failure and is
    available both as ``error`` and through the convenience properties.
    """

    def __init__(self, function_name: str, error: "ErrorInfo | None" = None):
        self.function_name = function_name
        self.error = error
        if error is not None and error.message:
            msg = f"Call to {function_name} failed: {error.message}"
        else:
            msg = f"Call to {function_name} failed"
        super().__init__(msg)

    @property
    def code(self) -> int | None:
        return self.error.code if self.error else None

    @property
    def component(self) -> int | None:
        """The libvirt error domain (which subsystem raised the error)."""
        return self.error.component if self.error else None

    @property
    def level(self) -> int | None:
        return self.error.level if self.error else None

    @property
    def libvirt_message(self) -> str | None:
        return self.error.message if self.error else None


class RetrieveError(NativeCallError):
    """Failure while retrieving information from libvirt."""

    pass


class DefinitionError(NativeCallError):
    """Failure while defining or creating an object from XML."""

    pass


class NoSupportError(NativeCallError):
    """The loaded libvirt does not export the requested function."""

    def __init__(self, function_name: str):
        super().__init__(function_name)
        self.args = (f"Function {function_name} is not supported by the loaded libvirt",)
