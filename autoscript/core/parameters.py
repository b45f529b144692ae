"""Typed access to loosely-typed parameter bags.

Step, condition and action parameters come from decoded JSON documents
or from code, so a value requested as ``int`` may arrive as ``5``,
``5.0``, ``"5"``, ``numpy.int64(5)`` or ``[5]``.  ``get_param`` folds
all of these into the requested type and falls back to the caller's
default whenever the value is missing or cannot be converted.  It never
raises.

Typical usage::

    x = get_param(action.parameters, "x", 0)
    text = get_param(action.parameters, "text", "")
    op = get_param(cond.parameters, "operator", ConditionOperator.AND)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from enum import Enum
from typing import Any, TypeVar

import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on", "y"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off", "n", ""})


class _CoercionError(ValueError):
    pass


def _lookup(params: Mapping[str, Any] | None, key: str) -> Any:
    if not params:
        return None
    if key in params:
        return params[key]
    lowered = key.lower()
    for k, v in params.items():
        if str(k).lower() == lowered:
            return v
    return None


def _unwrap(value: Any) -> Any:
    """Reduce container and NumPy representations to a plain scalar."""
    if isinstance(value, np.ndarray):
        if value.size != 1:
            raise _CoercionError(f"array of size {value.size}")
        value = value.reshape(-1)[0]
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, (list, tuple)):
        if len(value) != 1:
            raise _CoercionError(f"sequence of length {len(value)}")
        return _unwrap(value[0])
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8")
    return value


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise _CoercionError(f"cannot read {value!r} as bool")


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise _CoercionError(f"non-finite number {value!r}")
        return int(round(value))
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 0) if text.lower().startswith("0x") else int(text)
        except ValueError:
            return _to_int(float(text))
    raise _CoercionError(f"cannot read {value!r} as int")


def _to_float(value: Any) -> float:
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise _CoercionError(f"cannot read {value!r} as float")


def _to_str(value: Any) -> str:
    if isinstance(value, (Mapping, set)):
        raise _CoercionError(f"cannot read {type(value).__name__} as str")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _to_enum(value: Any, enum_type: type[Enum]) -> Enum:
    if isinstance(value, enum_type):
        return value
    for member in enum_type:
        if member.value == value:
            return member
    text = str(value).strip().lower()
    for member in enum_type:
        if member.name.lower() == text or str(member.value).lower() == text:
            return member
    raise _CoercionError(f"{value!r} is not a {enum_type.__name__}")


def coerce(value: Any, as_type: type[T]) -> T:
    """Convert *value* to *as_type*.

    Supported targets are ``str``, ``int``, ``float``, ``bool`` and
    ``Enum`` subclasses.

    Raises:
        ValueError: If the value cannot be represented.
    """
    try:
        scalar = _unwrap(value)
    except UnicodeDecodeError as exc:
        raise _CoercionError(str(exc)) from exc
    if scalar is None:
        raise _CoercionError("value is null")
    if isinstance(as_type, type) and issubclass(as_type, Enum):
        return _to_enum(scalar, as_type)  # type: ignore[return-value]
    if as_type is bool:
        return _to_bool(scalar)  # type: ignore[return-value]
    if as_type is int:
        return _to_int(scalar)  # type: ignore[return-value]
    if as_type is float:
        return _to_float(scalar)  # type: ignore[return-value]
    if as_type is str:
        return _to_str(scalar)  # type: ignore[return-value]
    raise _CoercionError(f"unsupported target type {as_type!r}")


def get_param(
    params: Mapping[str, Any] | None,
    key: str,
    default: T,
    as_type: type | None = None,
) -> T:
    """Read ``params[key]`` as the type of *default*.

    The key is matched exactly first and then case-insensitively.

    Args:
        params: Parameter bag; ``None`` behaves like an empty bag.
        key: Parameter name.
        default: Value returned when the key is missing or the value
            cannot be converted.  Its type is the target type unless
            *as_type* is given.
        as_type: Explicit target type, needed when *default* is
            ``None``.

    Returns:
        The converted value, or *default*.
    """
    target = as_type if as_type is not None else type(default)
    value = _lookup(params, key)
    if value is None:
        return default
    try:
        return coerce(value, target)
    except (ValueError, TypeError, OverflowError) as exc:
        logger.debug(
            "Parameter %r=%r not readable as %s: %s",
            key,
            value,
            getattr(target, "__name__", target),
            exc,
        )
        return default
