from __future__ import annotations

import math
from collections import abc
from typing import Any, List, Mapping, Sequence, Union

import numpy as np

Value = Union[
    None,
    bool,
    int,
    float,
    str,
    Sequence["Value"],
    Mapping["Value", "Value"],
    np.ndarray,
    np.generic,
]

NAN_LITERAL = "float('nan')"
POS_INF_LITERAL = "float('inf')"
NEG_INF_LITERAL = "float('-inf')"

_QUOTE = '"""'
_BINARY = (bytes, bytearray, memoryview)


def _from_numpy(value: Any) -> Any:
    # numpy scalars -> python scalars, arrays -> (nested) python lists
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return value


def render_int(n: int) -> str:
    return str(int(n))


def render_float(x: float) -> str:
    """
    Scientific notation with 6 digits after the point, e.g. 1.500000e+00.
    Python has no literal for nan/inf, so those render as float(...) calls.
    """
    x = float(x)
    if math.isnan(x):
        return NAN_LITERAL
    if math.isinf(x):
        return POS_INF_LITERAL if x > 0 else NEG_INF_LITERAL
    return format(x, ".6e")


def render_str(s: str) -> str:
    """
    Triple double quoted text. Only what would break the literal is escaped:
    backslashes, CR and NUL, lone surrogates (which no codec can write), and
    a quote that runs into another quote or into the closing delimiter.
    """
    out: List[str] = []
    last = len(s) - 1
    for i, ch in enumerate(s):
        if ch == "\\":
            out.append("\\\\")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\x00":
            out.append("\\x00")
        elif "\ud800" <= ch <= "\udfff":
            out.append(f"\\u{ord(ch):04x}")
        elif ch == '"' and (i == last or s[i + 1] == '"'):
            out.append('\\"')
        else:
            out.append(ch)
    return _QUOTE + "".join(out) + _QUOTE


def render_sequence(items: Sequence[Any], *, sort_keys: bool = False) -> str:
    parts: List[str] = ["["]
    for item in items:
        parts.append(render(item, sort_keys=sort_keys))
        parts.append(",")
    parts.append("]")
    return "".join(parts)


def render_mapping(mapping: Mapping[Any, Any], *, sort_keys: bool = False) -> str:
    # keys may be of mixed types, so sorting is on the rendered key text
    pairs = [(render(k, sort_keys=sort_keys), v) for k, v in mapping.items()]
    if sort_keys:
        pairs.sort(key=lambda kv: kv[0])

    parts: List[str] = ["{"]
    for k, v in pairs:
        parts.append(k)
        parts.append(":")
        parts.append(render(v, sort_keys=sort_keys))
        parts.append(",")
    parts.append("}")
    return "".join(parts)


def render(value: Value, *, sort_keys: bool = False) -> str:
    """
    Render a value as Python source text.

    Dispatch is over a closed set: None, bool, int, float, str, mapping and
    sequence (any collections.abc.Sequence other than bytes, plus ndarray).
    Anything else is a TypeError.
    bool is checked before int since it subclasses it.
    """
    value = _from_numpy(value)

    if value is None:
        return "None"
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, int):
        return render_int(value)
    if isinstance(value, float):
        return render_float(value)
    if isinstance(value, str):
        return render_str(value)
    if isinstance(value, abc.Mapping):
        return render_mapping(value, sort_keys=sort_keys)
    if isinstance(value, abc.Sequence) and not isinstance(value, _BINARY):
        return render_sequence(value, sort_keys=sort_keys)

    raise TypeError(f"Cannot render {type(value).__name__} as a Python literal")


class Literal:
    """Lazy literal for splicing values into raw lines: f"plt.plot({Literal(ys)})"."""

    __slots__ = ("value", "sort_keys")

    def __init__(self, value: Value, sort_keys: bool = False) -> None:
        self.value = value
        self.sort_keys = sort_keys

    def __str__(self) -> str:
        return render(self.value, sort_keys=self.sort_keys)

    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"
