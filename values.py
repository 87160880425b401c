"""
Closed value model for test-case inputs and expected outputs.

Every expected output is one of: number, boolean, string, or an array of those
(arrays may nest). ``canonical`` renders a value the way a sandboxed program
prints it with JSON.stringify / json.dumps-style output, which is what the
reconciler looks for in raw program output.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Tuple, Union

from errors import CatalogDefinitionError


@dataclass(frozen=True)
class NumberValue:
    value: Union[int, float]

    @property
    def is_float(self) -> bool:
        return isinstance(self.value, float)


@dataclass(frozen=True)
class BoolValue:
    value: bool


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class ArrayValue:
    items: Tuple["Value", ...]


Value = Union[NumberValue, BoolValue, StringValue, ArrayValue]


def to_value(raw: Any) -> Value:
    # bool first: bool is a subclass of int
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            raise CatalogDefinitionError("expected value must be a finite number")
        return NumberValue(raw)
    if isinstance(raw, str):
        return StringValue(raw)
    if isinstance(raw, (list, tuple)):
        return ArrayValue(tuple(to_value(item) for item in raw))
    raise CatalogDefinitionError(f"unsupported value shape: {type(raw).__name__}")


def to_python(value: Value) -> Any:
    if isinstance(value, ArrayValue):
        return [to_python(item) for item in value.items]
    return value.value


def _format_number(n: Union[int, float]) -> str:
    # JSON.stringify prints 2.0 as "2"
    if isinstance(n, float) and n.is_integer():
        return str(int(n))
    return repr(n)


def canonical(value: Value) -> str:
    """Compact JSON-style text: ``true``, ``6``, ``"abc"``, ``[[-1,-1,2],[-1,0,1]]``."""
    if isinstance(value, BoolValue):
        return "true" if value.value else "false"
    if isinstance(value, NumberValue):
        return _format_number(value.value)
    if isinstance(value, StringValue):
        return json.dumps(value.value, ensure_ascii=False)
    if isinstance(value, ArrayValue):
        return "[" + ",".join(canonical(item) for item in value.items) + "]"
    raise CatalogDefinitionError(f"unsupported value: {value!r}")


def plain(value: Value) -> str:
    """
    Unwrapped string conversion: strings without quotes, arrays flattened and
    comma-joined (``[1,[2,3]]`` -> ``1,2,3``).
    """
    if isinstance(value, StringValue):
        return value.value
    if isinstance(value, ArrayValue):
        return ",".join(plain(item) for item in value.items)
    return canonical(value)
