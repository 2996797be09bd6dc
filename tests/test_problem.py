import pytest
import highspy

from pysonnet import (
    InvalidStateError,
    LinearConstraint,
    Problem,
    SolverError,
    SolveStatus,
    Variable,
    VarType,
)
from pysonnet.solvers import HighsApi
from pysonnet.solvers.highsapi import _check


@pytest.fixture
def lp():
    """
    maximize x + 2y
    subject to x + y <= 10, x - y >= -2, 0 <= x <= 4, y >= 0

    The optimum is x = 4, y = 6 with value 16.
    """
    x = Variable("x", upper=4)
    y = Variable("y")
    capacity = LinearConstraint(x + y <= 10, "capacity")
    balance = LinearConstraint(x - y >= -2, "balance")
    prob = (
        Problem(name="lp", solver_api=HighsApi)
        .add_constrs(capacity, balance)
        .set_objective(x + 2 * y, is_minimization=False)
    )
    return prob, x, y, capacity, balance


def test_solve_assigns_solution(lp):
    prob, x, y, capacity, balance = lp
    prob.solve()

    assert prob.solve_status == SolveStatus.OPTIMUM
    assert prob.get_objectivefunction_value() == pytest.approx(16)
    assert x.value == pytest.approx(4)
    assert y.value == pytest.approx(6)
    assert x.assigned_solver is prob.solver
    assert x.is_feasible()
    assert isinstance(capacity.dual, float)
    assert capacity.is_satisfied()


def test_variables_are_loaded_from_constraints(lp):
    prob, x, y, *_ = lp
    prob.update()

    assert [var.name for var in prob.variables] == ["x", "y"]
    assert x.offset(prob.solver) == 0
    assert y.offset(prob.solver) == 1
    assert prob.get_var_bycolumn(1) is y
    assert prob.get_var_byname("x") is x
    assert prob.get_constr_byrow(1).name == "balance"


def test_objective_only_variable_is_loaded():
    x = Variable("x", upper=3)
    z = Variable("z", upper=2)
    prob = (
        Problem(name="objective_only", solver_api=HighsApi)
        .add_constr(x <= 5)
        .set_objective(x + z, is_minimization=False)
        .solve()
    )
    assert prob.get_objectivefunction_value() == pytest.approx(5)
    assert z.value == pytest.approx(2)


def test_bound_change_reaches_the_solver(lp):
    prob, x, y, *_ = lp
    prob.solve()

    x.upper = 2
    prob.solve()

    assert x.value == pytest.approx(2)
    assert y.value == pytest.approx(4)
    assert prob.get_objectivefunction_value() == pytest.approx(10)


def test_freeze_and_unfreeze(lp):
    prob, x, y, *_ = lp
    prob.solve()

    x.freeze()
    x.upper = 2
    prob.solve()
    assert x.value == pytest.approx(4)
    assert y.value == pytest.approx(6)

    x.unfreeze()
    prob.solve()
    assert x.value == pytest.approx(2)
    assert y.value == pytest.approx(4)


def test_frozen_variable_enters_new_solver_frozen():
    x = Variable("x", upper=10)
    first = Problem(name="first", solver_api=HighsApi).add_constr(x <= 7).set_objective(x, is_minimization=False)
    first.solve()
    assert x.value == pytest.approx(7)

    x.freeze()
    second = Problem(name="second", solver_api=HighsApi).add_constr(x >= 0).set_objective(x, is_minimization=True)
    second.solve()
    assert x.value == pytest.approx(7)


def test_shared_variables_sync_every_solver(lp):
    prob, x, y, *_ = lp
    other = (
        Problem(name="other", solver_api=HighsApi)
        .add_constr(x + y <= 10)
        .set_objective(x + 2 * y, is_minimization=False)
    )
    prob.update()
    other.update()
    assert x.solvers == (prob.solver, other.solver)

    x.lower = 1

    other.solve()
    assert x.value == pytest.approx(1)
    assert y.value == pytest.approx(9)

    prob.solve()
    assert x.value == pytest.approx(4)
    assert x.assigned_solver is prob.solver


def test_type_change_reaches_the_solver():
    y = Variable("y", vartype=VarType.INTEGER)
    prob = (
        Problem(name="mip", solver_api=HighsApi)
        .add_constr(2 * y <= 7)
        .set_objective(y, is_minimization=False)
        .solve()
    )
    assert y.value == pytest.approx(3)
    assert y.is_feasible()

    y.vartype = VarType.CONTINUOUS
    prob.solve()
    assert y.value == pytest.approx(3.5)


def test_rename(lp):
    prob, x, *_ = lp
    prob.solve()
    x.name = "renamed"
    assert prob.get_var_byname("renamed") is x
    prob.solve()
    assert x.value == pytest.approx(4)


def test_del_constr(lp):
    prob, x, y, capacity, balance = lp
    prob.solve()

    prob.del_constr(balance).solve()

    assert prob.constraints == [capacity]
    assert not balance.is_attached(prob.solver)
    assert capacity.offset(prob.solver) == 0
    assert prob.get_objectivefunction_value() == pytest.approx(20)


def test_del_var(lp):
    prob, x, y, capacity, balance = lp
    prob.solve()

    prob.del_var(x).solve()

    assert [var.name for var in prob.variables] == ["y"]
    assert y.offset(prob.solver) == 0
    assert not x.is_attached(prob.solver)
    assert capacity.expression.elements[x] == 1
    assert y.value == pytest.approx(2)


def test_del_several_vars_in_one_update():
    x = Variable("x", upper=1)
    y = Variable("y", upper=2)
    z = Variable("z", upper=3)
    prob = Problem(name="columns", solver_api=HighsApi).set_objective(x + y + z, is_minimization=False)
    prob.add_vars([x, y, z]).solve()
    assert prob.get_objectivefunction_value() == pytest.approx(6)

    prob.del_vars([z, x]).solve()

    assert prob.solver.model.getNumCol() == 1
    assert [var.name for var in prob.variables] == ["y"]
    assert y.offset(prob.solver) == 0
    assert y.value == pytest.approx(2)
    assert prob.get_objectivefunction_value() == pytest.approx(2)

    y.upper = 1.5
    prob.solve()
    assert y.value == pytest.approx(1.5)


def test_del_several_constrs_in_one_update():
    x = Variable("x")
    first = LinearConstraint(x <= 1, "first")
    second = LinearConstraint(x <= 2, "second")
    third = LinearConstraint(x <= 3, "third")
    prob = (
        Problem(name="rows", solver_api=HighsApi)
        .add_constrs(first, second, third)
        .set_objective(x, is_minimization=False)
        .solve()
    )
    assert x.value == pytest.approx(1)

    prob.del_constrs([second, first]).solve()

    assert prob.solver.model.getNumRow() == 1
    assert prob.constraints == [third]
    assert third.offset(prob.solver) == 0
    assert x.value == pytest.approx(3)


def test_deleting_a_var_keeps_shared_constraints_intact():
    x = Variable("x", upper=4)
    y = Variable("y", upper=8)
    shared = LinearConstraint(x + y <= 10, "shared")
    first = Problem(name="first", solver_api=HighsApi).add_constr(shared).set_objective(x + y, is_minimization=False)
    second = Problem(name="second", solver_api=HighsApi).add_constr(shared).set_objective(x + y, is_minimization=False)
    first.solve()
    second.solve()

    first.del_var(x).solve()
    assert first.get_objectivefunction_value() == pytest.approx(8)
    assert shared.expression.elements == {x: 1, y: 1}

    second.clear_solver().solve()
    assert [var.name for var in second.variables] == ["x", "y"]
    assert second.get_objectivefunction_value() == pytest.approx(10)

    # The deleted variable stays out of the rebuilt model
    first.set_solver(HighsApi).solve()
    assert [var.name for var in first.variables] == ["y"]
    assert first.get_objectivefunction_value() == pytest.approx(8)


def test_del_pending_var_by_column():
    prob = Problem(name="columns", solver_api=HighsApi)
    variables = Variable.new_list(3, "v", upper=1)
    prob.add_vars(variables).update()
    prob.del_vars(0, 2).update()

    assert [var.name for var in prob.variables] == ["v_1"]
    assert variables[1].offset(prob.solver) == 0

    with pytest.raises(KeyError):
        prob.del_var(5)


def test_set_solver_rebuilds_the_model(lp):
    prob, x, y, *_ = lp
    prob.solve()
    old_solver = prob.solver

    prob.set_solver(HighsApi)
    assert not x.is_attached(old_solver)

    prob.solve()
    assert x.solvers == (prob.solver,)
    assert y.value == pytest.approx(6)


def test_infeasible_problem_assigns_nothing():
    x = Variable("x", upper=4)
    prob = Problem(name="infeasible", solver_api=HighsApi).add_constr(x >= 5).set_objective(x).solve()

    assert prob.solve_status != SolveStatus.OPTIMUM
    with pytest.raises(InvalidStateError):
        x.value
    with pytest.raises(InvalidStateError):
        prob.get_objectivefunction_value()


def test_solve_needs_a_solver_and_variables():
    with pytest.raises(InvalidStateError):
        Problem(name="no_solver").solve()
    with pytest.raises(InvalidStateError):
        Problem(name="empty", solver_api=HighsApi).solve()


def test_options_are_passed_to_the_solver(lp):
    prob, *_ = lp
    prob.set_option("presolve", "off").solve()
    assert prob.solver.get_option("presolve") == "off"


def test_problem_string(lp):
    prob, *_ = lp
    text = str(prob)
    assert text.splitlines()[0] == "Problem lp"
    assert "Maximize: 1 x + 2 y" in text
    assert "capacity : 1 x + 1 y <= 10" in text


def test_solver_log_is_shown_unless_turned_off(lp):
    prob, *_ = lp
    assert prob.solver.show_log is False

    prob.solve()
    assert prob.solver.show_log is True

    prob.set_option("output_flag", False).solve()
    assert prob.solver.show_log is False


def test_rejected_solver_calls_raise():
    with pytest.raises(SolverError):
        HighsApi().set_option("no_such_option", 1)
    with pytest.raises(SolverError):
        _check(highspy.HighsStatus.kError, "run a test")
