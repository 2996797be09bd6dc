"""Shared fixtures: a recording solver that stands in for a solver library."""

from __future__ import annotations

import pytest

from pysonnet import Variable


class RecordingSolver:
    """Implements the notifications a variable sends and records every call.

    Solvers built with the same ``journal`` list write to it in call order, so
    tests can check the order in which several solvers were notified.
    """

    def __init__(self, solver_name: str = "recorder", journal: list | None = None):
        self.solver_name = solver_name
        self.calls: list[tuple] = []
        self.journal = journal if journal is not None else []

    def _record(self, method: str, variable, *args):
        call = (method, variable, *args)
        self.calls.append(call)
        self.journal.append((self.solver_name, *call))
        return self

    def set_variable_lower(self, variable, lower):
        return self._record("set_variable_lower", variable, lower)

    def set_variable_upper(self, variable, upper):
        return self._record("set_variable_upper", variable, upper)

    def set_variable_bounds(self, variable, lower, upper):
        return self._record("set_variable_bounds", variable, lower, upper)

    def set_variable_type(self, variable, vartype):
        return self._record("set_variable_type", variable, vartype)

    def set_variable_name(self, variable, name):
        return self._record("set_variable_name", variable, name)

    def calls_to(self, method: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == method]


@pytest.fixture
def solver() -> RecordingSolver:
    return RecordingSolver()


@pytest.fixture
def three_solvers() -> list[RecordingSolver]:
    journal: list = []
    return [RecordingSolver(f"S{idx}", journal) for idx in range(1, 4)]


@pytest.fixture
def attached_var(solver) -> Variable:
    "A variable with bounds [0, 10] attached to the recording solver at offset 0."
    var = Variable("x", 0, 10)
    var.attach(solver, 0)
    return var


@pytest.fixture
def solved_var(solver) -> Variable:
    "A variable with bounds [0, 10] which the recording solver assigned the value 3."
    var = Variable("x", 0, 10)
    var.assign(solver, 0, 3.0, 0.5)
    return var
