"""
Decides whether raw sandbox output satisfies an expected value.

The submitted program prints whatever it likes, so matching is tolerant:
the canonical text of the expected value may appear anywhere in the output
(extra diagnostic prints are fine), or the whole output may equal the plain,
unwrapped string conversion. Containment is a known source of false
positives (expected ``[0,1]`` matches ``prefix[0,1]suffix``);
``ReconcilePolicy.strict_boundaries`` rejects matches glued to neighbouring
tokens but stays off until product confirms the stricter behaviour.

Floating-point expectations are also compared numerically within a
tolerance, so ``2.4999999999`` satisfies ``2.5``.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from values import ArrayValue, BoolValue, NumberValue, StringValue, Value, canonical, plain

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_DECODER = json.JSONDecoder()


@dataclass(frozen=True)
class ReconcilePolicy:
    abs_tol: float = 1e-6
    rel_tol: float = 1e-9
    strict_boundaries: bool = False


DEFAULT_POLICY = ReconcilePolicy()


def verify(raw_output: Optional[str], expected: Value, policy: Optional[ReconcilePolicy] = None) -> bool:
    policy = policy or DEFAULT_POLICY
    out = (raw_output or "").strip()
    canon = canonical(expected)

    if _contains(out, canon, policy.strict_boundaries):
        return True

    # An empty plain form (expected []) would let silent programs pass
    flat = plain(expected)
    if flat and out == flat:
        return True

    if _has_float(expected):
        return _matches_with_tolerance(out, expected, policy)
    return False


# --- Matching helpers -------------------------------------------------------------


def _contains(out: str, canon: str, strict: bool) -> bool:
    if not strict:
        return canon in out
    pattern = r'(?<![\w.\-\[\],"])' + re.escape(canon) + r'(?![\w.\[\],"])'
    return re.search(pattern, out) is not None


def _has_float(value: Value) -> bool:
    if isinstance(value, NumberValue):
        return value.is_float
    if isinstance(value, ArrayValue):
        return any(_has_float(item) for item in value.items)
    return False


def _close(a: float, b: float, policy: ReconcilePolicy) -> bool:
    return math.isclose(a, b, rel_tol=policy.rel_tol, abs_tol=policy.abs_tol)


def _matches_with_tolerance(out: str, expected: Value, policy: ReconcilePolicy) -> bool:
    if isinstance(expected, NumberValue):
        return any(_close(float(tok), float(expected.value), policy) for tok in _numbers(out))
    # Arrays with floats: any bracketed JSON span in the output, labels around it allowed
    return any(_structurally_equal(expected, parsed, policy) for parsed in _arrays(out))


def _numbers(out: str) -> Iterable[str]:
    return _NUMBER_RE.findall(out)


def _arrays(out: str) -> Iterable[Any]:
    pos = out.find("[")
    while pos >= 0:
        try:
            parsed, _ = _DECODER.raw_decode(out, pos)
        except ValueError:
            pass
        else:
            yield parsed
        pos = out.find("[", pos + 1)


def _structurally_equal(expected: Value, actual: Any, policy: ReconcilePolicy) -> bool:
    if isinstance(expected, BoolValue):
        return isinstance(actual, bool) and actual == expected.value
    if isinstance(expected, NumberValue):
        if isinstance(actual, bool) or not isinstance(actual, (int, float)):
            return False
        return _close(float(actual), float(expected.value), policy)
    if isinstance(expected, StringValue):
        return isinstance(actual, str) and actual == expected.value
    if isinstance(expected, ArrayValue):
        if not isinstance(actual, list) or len(actual) != len(expected.items):
            return False
        return all(_structurally_equal(e, a, policy) for e, a in zip(expected.items, actual))
    return False
