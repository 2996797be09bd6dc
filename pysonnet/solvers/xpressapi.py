from dataclasses import dataclass, field
from typing import Any, Optional

import xpress as xp

from pysonnet.enums import ConstraintSign, SolveStatus, VarType
from pysonnet.logging import get_logger
from pysonnet.mainstructures import LinearConstraint, LinearExpression, ObjectiveFunction, Variable
from pysonnet.solvers.abstractsolverapi import AbstractSolverApi


logger = get_logger(__name__)

# Name type of columns in `addnames`
_COLUMN_NAMES = 2


def _xp_bound(value: float) -> float:
    if value == float('inf'):
        return xp.infinity
    if value == -float('inf'):
        return -xp.infinity
    return value


@dataclass(eq=False)
class XpressApi(AbstractSolverApi):

    solver_name: str = field(default='Xpress', init=False)

    @property
    def show_log(self) -> bool:
        return self.model.getControl('OUTPUTLOG') > 0

    def init_model(self) -> "XpressApi":
        self.model = xp.problem()
        return self

    def get_version(self) -> str:
        return f"v{xp.getversion()}"

    def _to_xpvar(self, variable: Variable):
        lb, ub = variable.frozen_bounds
        vartype = xp.integer if variable.vartype == VarType.INTEGER else xp.continuous
        return xp.var(name=variable.name, vartype=vartype, lb=_xp_bound(lb), ub=_xp_bound(ub))

    def add_var(self, variable: Variable, column: int) -> "XpressApi":
        return self.add_vars([variable], column)

    def add_vars(self, variables: list[Variable], first_column: int) -> "XpressApi":
        if not variables:
            return self
        if first_column != self.model.attributes.cols:
            raise ValueError(
                f"New columns must be appended: got column {first_column} "
                f"for a model with {self.model.attributes.cols} columns."
            )
        self.model.addVariable(*[self._to_xpvar(var) for var in variables])
        for idx, var in enumerate(variables):
            var.attach(self, first_column + idx)
        return self

    def del_var(self, variable: Variable) -> "XpressApi":
        return self.del_vars([variable])

    def del_vars(self, variables: list[Variable]) -> "XpressApi":
        if not variables:
            return self
        self.model.delVariable(sorted(self.column(variable) for variable in variables))
        for variable in variables:
            variable.detach(self)
        return self

    def _to_xpsum(self, expression: LinearExpression):
        xpvars = []
        vars, coefs = self.linear_terms(expression)
        if vars:
            xpvars = self.model.getVariable([self.column(var) for var in vars])
        return xp.Sum([xpvar * coef for xpvar, coef in zip(xpvars, coefs)])

    def add_constr(self, constraint: LinearConstraint, row: int) -> "XpressApi":
        lhs = self._to_xpsum(constraint.expression)

        match constraint.sign:
            case ConstraintSign.EQ:
                xpconstr = xp.constraint(lhs == constraint.rhs, name=constraint.name)
            case ConstraintSign.LEQ:
                xpconstr = xp.constraint(lhs <= constraint.rhs, name=constraint.name)
            case ConstraintSign.GEQ:
                xpconstr = xp.constraint(lhs >= constraint.rhs, name=constraint.name)

        self.model.addConstraint(xpconstr)
        constraint.attach(self, row)
        return self

    def del_constr(self, constraint: LinearConstraint) -> "XpressApi":
        return self.del_constrs([constraint])

    def del_constrs(self, constraints: list[LinearConstraint]) -> "XpressApi":
        if not constraints:
            return self
        self.model.delConstraint(sorted(self.row(constraint) for constraint in constraints))
        for constraint in constraints:
            constraint.detach(self)
        return self

    def set_objective(self, objetive_function: ObjectiveFunction | Variable | LinearExpression | float | int) -> "XpressApi":
        if isinstance(objetive_function, (Variable, float, int)):
            objetive_function += LinearExpression()
        if isinstance(objetive_function, LinearExpression):
            objetive_function = ObjectiveFunction(expression=objetive_function)

        self.model.setObjective(
            self._to_xpsum(objetive_function.expression) + objetive_function.expression.constant,
            sense=xp.minimize if objetive_function.is_minimization else xp.maximize
        )
        return self

    def set_variable_lower(self, variable: Variable, lower: float) -> "XpressApi":
        self.model.chgbounds([self.column(variable)], ['L'], [_xp_bound(lower)])
        return self

    def set_variable_upper(self, variable: Variable, upper: float) -> "XpressApi":
        self.model.chgbounds([self.column(variable)], ['U'], [_xp_bound(upper)])
        return self

    def set_variable_bounds(self, variable: Variable, lower: float, upper: float) -> "XpressApi":
        column = self.column(variable)
        self.model.chgbounds([column, column], ['L', 'U'], [_xp_bound(lower), _xp_bound(upper)])
        return self

    def set_variable_type(self, variable: Variable, vartype: VarType) -> "XpressApi":
        self.model.chgcoltype([self.column(variable)], ['I' if vartype == VarType.INTEGER else 'C'])
        return self

    def set_variable_name(self, variable: Variable, name: str) -> "XpressApi":
        column = self.column(variable)
        self.model.addnames(_COLUMN_NAMES, [name], column, column)
        return self

    def set_option(self, name: str, value) -> "XpressApi":
        self.model.setControl(name, value)
        return self

    def get_option(self, name: str) -> Any:
        return self.model.getControl(name)

    def fetch_solution(self) -> "XpressApi":
        self.solution = list(self.model.getSolution())
        # MIP solves carry no dual information
        if self.model.attributes.mipents > 0:
            self.reduced_costs = [0.0] * len(self.solution)
            self.duals = [0.0] * self.model.attributes.rows
        else:
            self.reduced_costs = list(self.model.getRCost())
            self.duals = list(self.model.getDual())
        return self

    def get_objective_value(self) -> float:
        return self.model.getObjVal()

    def fetch_solve_status(self) -> "XpressApi":
        match self.model.getAttrib('SOLSTATUS'):
            case xp.SolStatus.OPTIMAL:
                self.solve_status = SolveStatus.OPTIMUM
            case xp.SolStatus.INFEASIBLE:
                self.solve_status = SolveStatus.INFEASIBLE
            case xp.SolStatus.UNBOUNDED:
                self.solve_status = SolveStatus.UNBOUNDED
            case xp.SolStatus.FEASIBLE:
                self.solve_status = SolveStatus.FEASIBLE
            case _:
                self.solve_status = SolveStatus.UNKNOWN

        return self

    def run(self, options: Optional[dict[str, Any]] = None) -> "XpressApi":
        self.set_options(options or dict())
        self.solution = None
        self.reduced_costs = None
        self.duals = None

        logger.info("Solver: %s %s", self.solver_name, self.get_version())
        self.model.optimize()
        return self
