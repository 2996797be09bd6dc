import pytest

from pysonnet import (
    Dot,
    InvalidArgumentError,
    InvalidStateError,
    LinearConstraint,
    LinearExpression,
    ObjectiveFunction,
    Sum,
    UnsupportedError,
    Variable,
)
from pysonnet.enums import ConstraintSign


@pytest.fixture
def xy(solver):
    x, y = Variable("x"), Variable("y")
    x.assign(solver, 0, 2.0, 0.0)
    y.assign(solver, 1, 3.0, 0.0)
    return x, y


def test_expression_arithmetic_returns_new_objects():
    x = Variable("x")
    expr = x + 1
    other = expr + x
    assert expr.elements == {x: 1}
    assert other.elements == {x: 2}


def test_expression_subtraction_and_scaling():
    x, y = Variable("x"), Variable("y")
    expr = (2 * x + 3 * y + 4) * 2 - (x + 1)
    assert expr.elements == {x: 3.0, y: 6.0}
    assert expr.constant == 7.0

    halved = expr / 2
    assert halved.elements == {x: 1.5, y: 3.0}


def test_constant_minus_expression():
    x = Variable("x")
    expr = 10 - (x + 4)
    assert expr.elements == {x: -1}
    assert expr.constant == 6


def test_expression_value(xy):
    x, y = xy
    assert (2 * x - y + 1).value == 2.0


def test_expression_value_before_solve():
    with pytest.raises(InvalidStateError):
        (Variable("x") + 1).value


def test_expression_string():
    x, y = Variable("x"), Variable("y")
    assert str(2 * x - y + 1) == "2 x - 1 y + 1"
    assert str(-x) == "- 1 x"
    assert str(LinearExpression()) == "0"


def test_expression_not_equal_is_unsupported():
    x = Variable("x")
    with pytest.raises(UnsupportedError):
        (x + 1) != 2


def test_expression_products_are_unsupported():
    x, y = Variable("x"), Variable("y")
    with pytest.raises(UnsupportedError):
        (x + 1) * (y + 1)
    with pytest.raises(UnsupportedError):
        2 / (x + 1)


def test_constraint_moves_constant_to_rhs():
    x, y = Variable("x"), Variable("y")
    constr = x + 2 <= y + 5
    assert constr.expression.elements == {x: 1, y: -1}
    assert constr.rhs == 3
    assert constr.sign == ConstraintSign.LEQ


def test_constraint_names():
    x = Variable("x")
    unnamed = LinearConstraint(x >= 1)
    named = LinearConstraint(x >= 1, "lower_x")
    assert unnamed.name == f"Con_{unnamed.id}"
    assert named.name == "lower_x"
    assert str(named) == "lower_x : 1 x >= 1"


def test_constraint_rejects_other_input():
    x = Variable("x")
    with pytest.raises(InvalidArgumentError):
        LinearConstraint(x + 1)
    with pytest.raises(InvalidArgumentError):
        LinearConstraint(True)


def test_constraint_is_satisfied(xy):
    x, y = xy
    assert (x + y <= 5).is_satisfied()
    assert (x + y >= 5).is_satisfied()
    assert (x + y == 5).is_satisfied()
    assert not (x + y <= 4.9).is_satisfied()
    assert not (x - y == 0).is_satisfied()
    assert (x + y).value == 5


def test_constraint_dual(solver):
    constr = LinearConstraint(Variable("x") <= 1)
    with pytest.raises(InvalidStateError):
        constr.dual
    constr.assign(solver, 2, -0.5)
    assert constr.dual == -0.5
    assert constr.offset(solver) == 2


def test_objective_accepts_variables_and_numbers():
    x = Variable("x")
    assert ObjectiveFunction(x).expression.elements == {x: 1}
    assert ObjectiveFunction(3).expression.constant == 3
    assert ObjectiveFunction().expression.elements == {}


def test_sum():
    variables = Variable.new_list(3, "x")
    expr = Sum(variables)
    assert expr.elements == {var: 1 for var in variables}

    by_key = Variable.new_dict("ab", "y")
    assert Sum(by_key).variables() == list(by_key.values())

    assert Sum([]).elements == {}
    assert Sum([1, 2]).constant == 3


def test_dot():
    variables = Variable.new_list(3, "x")
    expr = Dot([1, 2, 3], variables)
    assert expr.elements == {variables[0]: 1.0, variables[1]: 2.0, variables[2]: 3.0}

    scaled = Dot(variables, 2)
    assert set(scaled.elements.values()) == {2.0}

    assert Dot(2, 3) == 6
