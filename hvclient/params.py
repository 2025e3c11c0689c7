"""
Typed parameter sets (virTypedParameter arrays).

libvirt exposes bulk configuration (memory tunables, scheduler weights,
block I/O tunables, ...) as arrays of named, kind-tagged values. Reading one
is a two-call exchange: ask how many parameters exist, then have libvirt fill
a buffer of that size. Writing fetches the current array first, since its
kind tags are the only way to know how each new value must be encoded, then
overwrites just the fields the caller supplied and hands the array back.
"""

from __future__ import annotations

import abc
import logging
import numbers
from collections.abc import Mapping, Sequence
from ctypes import addressof, byref, c_int, create_string_buffer
from typing import TYPE_CHECKING, Any

from . import _calls, _ffi
from .errors import ArgumentError, InvalidParameterKind, NoSupportError, TypeMismatchError
from .types import TypedParameterKind

if TYPE_CHECKING:
    from .handle import Resource

logger = logging.getLogger(__name__)

_INT_MEMBERS = {
    TypedParameterKind.INT: ("i", -(2**31), 2**31 - 1),
    TypedParameterKind.UINT: ("ui", 0, 2**32 - 1),
    TypedParameterKind.LLONG: ("l", -(2**63), 2**63 - 1),
    TypedParameterKind.ULLONG: ("ul", 0, 2**64 - 1),
}


def _kind_of(param: _ffi.TypedParameterStruct, field: str) -> TypedParameterKind:
    try:
        return TypedParameterKind(param.type)
    except ValueError:
        raise InvalidParameterKind(param.type, field) from None


def decode(params: Any, nparams: int) -> dict[str, Any]:
    """Convert the first ``nparams`` entries of a native array to a dict.

    Keys keep the order libvirt reported them in.
    """
    result: dict[str, Any] = {}
    for i in range(nparams):
        param = params[i]
        field = param.field.decode("utf-8")
        kind = _kind_of(param, field)

        if kind in _INT_MEMBERS:
            value = getattr(param.value, _INT_MEMBERS[kind][0])
        elif kind == TypedParameterKind.DOUBLE:
            value = param.value.d
        elif kind == TypedParameterKind.BOOLEAN:
            value = param.value.b != 0
        else:
            value = _ffi.string_at(param.value.s) if param.value.s else None

        result[field] = value
    return result


def _convert(field: str, kind: TypedParameterKind, value: Any) -> Any:
    if kind in _INT_MEMBERS:
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise TypeMismatchError(field, kind.name, value)
        _, low, high = _INT_MEMBERS[kind]
        if not low <= value <= high:
            raise TypeMismatchError(field, kind.name, value, f"{value} out of range")
        return int(value)
    if kind == TypedParameterKind.DOUBLE:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise TypeMismatchError(field, kind.name, value)
        return float(value)
    if kind == TypedParameterKind.BOOLEAN:
        if not isinstance(value, bool):
            raise TypeMismatchError(field, kind.name, value)
        return value
    if not isinstance(value, str):
        raise TypeMismatchError(field, kind.name, value)
    return value


def encode(params: Any, nparams: int, values: Mapping[str, Any]) -> dict[int, tuple[int | None, Any]]:
    """Overwrite the entries of ``params`` named in ``values``, in place.

    Each entry keeps its existing kind tag. Entries whose name is absent
    from ``values`` (or maps to None) are left untouched. Every value is
    converted before anything is written, so a TypeMismatchError leaves
    ``params`` unchanged.

    Returns, for each string slot that was replaced, the pointer it held
    before and the buffer it now points at. The buffers must stay alive
    until libvirt has consumed ``params``.
    """
    pending = []
    seen = set()
    for i in range(nparams):
        param = params[i]
        field = param.field.decode("utf-8")
        seen.add(field)
        value = values.get(field)
        if value is None:
            continue
        kind = _kind_of(param, field)
        pending.append((i, kind, _convert(field, kind, value)))

    ignored = set(values) - seen
    if ignored:
        logger.debug("ignoring unknown parameters: %s", sorted(map(str, ignored)))

    replaced: dict[int, tuple[int | None, Any]] = {}
    for i, kind, value in pending:
        slot = params[i].value
        if kind in _INT_MEMBERS:
            setattr(slot, _INT_MEMBERS[kind][0], value)
        elif kind == TypedParameterKind.DOUBLE:
            slot.d = value
        elif kind == TypedParameterKind.BOOLEAN:
            slot.b = 1 if value else 0
        else:
            buf = create_string_buffer(value.encode("utf-8"))
            replaced[i] = (slot.s, buf)
            slot.s = addressof(buf)
    return replaced


def _clear(params: Any, nparams: int) -> None:
    """Release the strings libvirt allocated inside ``params``."""
    try:
        clear = _ffi.function("virTypedParamsClear")
    except NoSupportError:
        # libvirt < 1.0.2 has no way to release them
        return
    clear(params, nparams)


class ParameterSource(abc.ABC):
    """How one kind of resource exposes one typed parameter set."""

    @abc.abstractmethod
    def count(self, resource: "Resource", flags: int) -> int:
        """Return how many parameters the set currently holds."""

    @abc.abstractmethod
    def fill(self, resource: "Resource", flags: int, params: Any, nparams: c_int) -> None:
        """Fill ``params``; ``nparams`` is updated to the number written."""

    @abc.abstractmethod
    def store(self, resource: "Resource", flags: int, params: Any, nparams: int) -> None:
        """Apply ``params`` to the resource."""


class QueryCountSource(ParameterSource):
    """A parameter set whose getter reports the count when given no buffer.

    This is the convention of virDomainGetMemoryParameters,
    virDomainGetBlkioParameters and virNodeGetMemoryParameters.
    """

    def __init__(self, get_func: str, set_func: str) -> None:
        self.get_func = get_func
        self.set_func = set_func

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.get_func!r}, {self.set_func!r})"

    def count(self, resource: "Resource", flags: int) -> int:
        nparams = c_int(0)
        _calls.call_int(self.get_func, resource.connection, resource.ptr, None, byref(nparams), flags)
        return nparams.value

    def fill(self, resource: "Resource", flags: int, params: Any, nparams: c_int) -> None:
        _calls.call_int(self.get_func, resource.connection, resource.ptr, params, byref(nparams), flags)

    def store(self, resource: "Resource", flags: int, params: Any, nparams: int) -> None:
        _calls.call_int(self.set_func, resource.connection, resource.ptr, params, nparams, flags)


class SchedulerSource(QueryCountSource):
    """Scheduler parameters, whose count comes from virDomainGetSchedulerType."""

    def __init__(self) -> None:
        super().__init__("virDomainGetSchedulerParametersFlags", "virDomainSetSchedulerParametersFlags")

    def count(self, resource: "Resource", flags: int) -> int:
        nparams = c_int(0)
        _calls.call_string("virDomainGetSchedulerType", resource.connection, True, resource.ptr, byref(nparams))
        return nparams.value


def get_typed_parameters(resource: "Resource", source: ParameterSource, flags: int = 0) -> dict[str, Any]:
    """Fetch a whole parameter set as a dict."""
    with resource.context.lock:
        count = source.count(resource, flags)
        if count == 0:
            return {}

        params = (_ffi.TypedParameterStruct * count)()
        nparams = c_int(count)
        source.fill(resource, flags, params, nparams)
        try:
            return decode(params, nparams.value)
        finally:
            _clear(params, nparams.value)


def set_typed_parameters(
    resource: "Resource", source: ParameterSource, values: Mapping[str, Any], flags: int = 0
) -> None:
    """Update the named parameters, leaving the rest of the set unchanged."""
    if not isinstance(values, Mapping):
        raise ArgumentError(f"wrong argument type {type(values).__name__} (expected Mapping)")
    for key in values:
        if not isinstance(key, str):
            raise ArgumentError(f"wrong parameter name type {type(key).__name__} (expected str)")
    if not values:
        return

    with resource.context.lock:
        count = source.count(resource, flags)
        if count == 0:
            logger.debug("%r reports no parameters; nothing to set", source)
            return

        params = (_ffi.TypedParameterStruct * count)()
        nparams = c_int(count)
        source.fill(resource, flags, params, nparams)

        replaced: dict[int, tuple[int | None, Any]] = {}
        try:
            replaced = encode(params, nparams.value, values)
            source.store(resource, flags, params, nparams.value)
        finally:
            # our buffers are not libvirt's to free
            for i, (original, _buf) in replaced.items():
                params[i].value.s = original
            _clear(params, nparams.value)


def split_values_and_flags(arg: Any) -> tuple[Mapping[str, Any], int]:
    """Accept either ``values`` or ``(values, flags)``.

    Property setters receive a single argument; this lets them take flags
    too.
    """
    if isinstance(arg, Mapping):
        return arg, 0
    if isinstance(arg, Sequence) and not isinstance(arg, (str, bytes)):
        if len(arg) != 2:
            raise ArgumentError(f"wrong number of arguments ({len(arg)} for 1 or 2)")
        values, flags = arg
        if not isinstance(values, Mapping):
            raise ArgumentError(f"wrong argument type {type(values).__name__} (expected Mapping)")
        if flags is None:
            flags = 0
        elif isinstance(flags, bool) or not isinstance(flags, numbers.Integral):
            raise ArgumentError(f"wrong argument type {type(flags).__name__} (expected int)")
        return values, int(flags)
    raise ArgumentError(f"wrong argument type {type(arg).__name__} (expected Mapping or tuple)")
