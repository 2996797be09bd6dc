import pytest

from pysonnet import INF
from pysonnet.mathutils import compare_to_eps, equals_eps, is_between, is_integer, to_double_string


@pytest.mark.parametrize(
    "a, b, expected",
    [
        (1.0, 1.0, 0),
        (1.0, 1.0 + 1e-6, 0),
        (1.0, 1.1, -1),
        (1.1, 1.0, 1),
        (INF, INF, 0),
        (-INF, -INF, 0),
        (INF, 1e300, 1),
        (-INF, INF, -1),
    ],
)
def test_compare_to_eps(a, b, expected):
    assert compare_to_eps(a, b) == expected


def test_equals_eps_with_custom_tolerance():
    assert equals_eps(1.0, 1.05, eps=0.1)
    assert not equals_eps(1.0, 1.05)


def test_is_between_is_inclusive():
    assert is_between(0.0, 0.0, 1.0)
    assert is_between(1.0, 0.0, 1.0)
    assert is_between(1.0 + 1e-7, 0.0, 1.0)
    assert not is_between(1.01, 0.0, 1.0)
    assert is_between(5.0, -INF, INF)


@pytest.mark.parametrize(
    "value, expected",
    [(3.0, True), (-2.0, True), (2.9999999, True), (2.5, False), (INF, False), (float("nan"), False)],
)
def test_is_integer(value, expected):
    assert is_integer(value) is expected


@pytest.mark.parametrize(
    "value, text",
    [(INF, "Inf"), (-INF, "-Inf"), (0.0, "0"), (2.5, "2.5"), (-3.0, "-3"), (1e20, "1e+20")],
)
def test_to_double_string(value, text):
    assert to_double_string(value) == text
