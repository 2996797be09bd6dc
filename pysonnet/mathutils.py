"""
Tolerant floating point helpers.

Bounds and solution values are compared with an absolute tolerance, so that
tiny numerical noise coming back from a solver does not count as a change.
"""
import math

from pysonnet.constants import EPSILON


def equals_eps(a: float, b: float, eps: float = EPSILON) -> bool:
    "Returns whether `a` and `b` are equal within `eps`. Equal infinities are equal."
    if a == b:
        return True
    return abs(a - b) <= eps

def compare_to_eps(a: float, b: float, eps: float = EPSILON) -> int:
    "Three-way comparison of `a` and `b` which treats values within `eps` as equal."
    if equals_eps(a, b, eps):
        return 0
    return -1 if a < b else 1

def is_between(value: float, lower: float, upper: float, eps: float = EPSILON) -> bool:
    "Returns whether `value` lies in the closed interval [lower, upper], within `eps`."
    return compare_to_eps(value, lower, eps) >= 0 and compare_to_eps(value, upper, eps) <= 0

def is_integer(value: float, eps: float = EPSILON) -> bool:
    if math.isinf(value) or math.isnan(value):
        return False
    return equals_eps(value, round(value), eps)

def to_double_string(value: float) -> str:
    if math.isinf(value):
        return 'Inf' if value > 0 else '-Inf'
    return format(value, 'g')
