"""
Decode hooks plugging Bits and Bytes into structure decoders.

A decode hook is a callable `hook(from_type, to_type, data)`. It returns `data` unchanged when
it does not apply to the (from_type, to_type) pair, so that hooks can be chained, or the converted
value otherwise. Errors raised by a hook are terminal for the field being decoded.

Example:
    >>> @dataclass
    ... class Limits:
    ...     bandwidth: Bits
    ...     cache: Bytes = Bytes(0)
    >>> decode({"bandwidth": "100Mb", "cache": "64MB"}, Limits)
    Limits(bandwidth=Bits(count=100000000), cache=Bytes(count=536870912))
"""

# Standard library -----------------------------------------------------------------------------------------------------
import dataclasses
import logging
import types
import typing
from collections.abc import Mapping
from typing import Any, Callable, TypeVar

# Local ----------------------------------------------------------------------------------------------------------------
from .errors import DecodeError
from .units import Bits, Bytes, ScaledUnit

logger = logging.getLogger(__name__)

DecodeHook = Callable[[type, type, Any], Any]

T = TypeVar("T")


# Hooks ----------------------------------------------------------------------------------------------------------------

def string_to_unit_hook(cls: type[ScaledUnit]) -> DecodeHook:
    """
    Build a hook converting str data into a value of the given unit class.

    The hook applies only when from_type is str (or a str subclass) and to_type is exactly cls.

    Raises:
        TypeError: cls is not a ScaledUnit subclass.
    """
    if not (isinstance(cls, type) and issubclass(cls, ScaledUnit)):
        raise TypeError(f"cls must be a ScaledUnit subclass, got {cls!r}")

    def hook(from_type: type, to_type: type, data: Any) -> Any:
        if to_type is not cls:
            return data
        if not (isinstance(from_type, type) and issubclass(from_type, str)):
            logger.debug("%s hook skipped: source type %r is not str", cls.__name__, from_type)
            return data
        return cls.parse(data)

    hook.__name__ = hook.__qualname__ = f"string_to_{cls.__name__.lower()}_hook"
    return hook


def string_to_bits_hook() -> DecodeHook:
    """Hook converting str data into Bits fields."""
    return string_to_unit_hook(Bits)


def string_to_bytes_hook() -> DecodeHook:
    """Hook converting str data into Bytes fields."""
    return string_to_unit_hook(Bytes)


def compose_hooks(*hooks: DecodeHook) -> DecodeHook:
    """
    Chain hooks into one, each receives the output of the previous one.

    from_type is updated to the type of the current data before every hook runs.
    The first exception stops the chain.
    """

    def composed(from_type: type, to_type: type, data: Any) -> Any:
        for hook in hooks:
            data = hook(from_type, to_type, data)
            from_type = type(data)
        return data

    return composed


def default_hook() -> DecodeHook:
    """Bits and Bytes hooks composed."""
    return compose_hooks(string_to_bits_hook(), string_to_bytes_hook())


# Decoder --------------------------------------------------------------------------------------------------------------

def decode(data: Mapping[str, Any], cls: type[T], hook: DecodeHook | None = None) -> T:
    """
    Build a dataclass instance from a mapping, running a decode hook on every field value.

    Fields typed with a dataclass are decoded recursively from nested mappings. `X | None`
    fields accept None. Keys without a matching field are ignored and missing keys fall back
    to the field defaults.

    Parameters:
        data (Mapping): Source mapping, e.g. a config file loaded with read_json()
        cls (type): Target dataclass type
        hook (DecodeHook): Hook applied to field values, default_hook() if None

    Raises:
        TypeError: cls is not a dataclass type.
        DecodeError: A field is missing or its value cannot be converted; the error names the
            dotted field path and chains the original exception.
    """
    if not _is_structure(cls):
        raise TypeError(f"cls must be a dataclass type, got {cls!r}")

    hook = default_hook() if hook is None else hook
    return _decode_dataclass(data, cls, hook, path="")


def _decode_dataclass(data: Any, cls: type[T], hook: DecodeHook, path: str) -> T:
    if not isinstance(data, Mapping):
        raise DecodeError(f"expected a mapping for {cls.__name__}, got {type(data).__name__}", path)

    hints = typing.get_type_hints(cls)
    kwargs = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue

        field_path = f"{path}.{f.name}" if path else f.name
        if f.name not in data:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                raise DecodeError("missing required field", field_path)
            logger.debug("Field %s not set, using its default", field_path)
            continue

        kwargs[f.name] = _decode_value(data[f.name], hints[f.name], hook, field_path)

    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as e:
        raise DecodeError(str(e), path) from e


def _decode_value(value: Any, target: Any, hook: DecodeHook, path: str) -> Any:
    target, optional = _unwrap_optional(target)
    if value is None and optional:
        return None

    # Unit values are dataclasses too, they are converted by the hook
    if _is_structure(target):
        if isinstance(value, target):
            return value
        return _decode_dataclass(value, target, hook, path)

    try:
        return hook(type(value), target, value)
    except (TypeError, ValueError) as e:
        raise DecodeError(str(e), path) from e


def _is_structure(target: Any) -> bool:
    """True for dataclass types decoded field by field, False for unit types and the rest."""
    return (
        isinstance(target, type)
        and dataclasses.is_dataclass(target)
        and not issubclass(target, ScaledUnit)
    )


def _unwrap_optional(target: Any) -> tuple[Any, bool]:
    """Split `X | None` into (X, True), other types into (target, False)."""
    if typing.get_origin(target) not in (typing.Union, types.UnionType):
        return target, False

    args = typing.get_args(target)
    rest = [arg for arg in args if arg is not type(None)]
    if len(rest) == 1 and len(rest) < len(args):
        return rest[0], True
    return target, False
