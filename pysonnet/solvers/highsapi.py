from dataclasses import dataclass, field
from typing import Any, Optional

import highspy

from pysonnet.enums import ConstraintSign, SolveStatus, VarType
from pysonnet.exceptions import SolverError
from pysonnet.logging import get_logger
from pysonnet.mainstructures import LinearConstraint, LinearExpression, ObjectiveFunction, Variable
from pysonnet.solvers.abstractsolverapi import AbstractSolverApi


logger = get_logger(__name__)


def _highs_bound(value: float) -> float:
    # HiGHS takes its own infinity, which is float('inf') in current releases
    if value == float('inf'):
        return highspy.kHighsInf
    if value == -float('inf'):
        return -highspy.kHighsInf
    return value

def _highs_vartype(vartype: VarType):
    if vartype == VarType.INTEGER:
        return highspy.HighsVarType.kInteger
    return highspy.HighsVarType.kContinuous

def _check(status, action: str):
    "Raises `SolverError` if HiGHS rejected the call. Warnings are only logged."
    if status == highspy.HighsStatus.kError:
        raise SolverError(f"HiGHS failed to {action}.")
    if status == highspy.HighsStatus.kWarning:
        logger.warning("HiGHS returned a warning when trying to %s", action)


@dataclass(eq=False)
class HighsApi(AbstractSolverApi):

    solver_name: str = field(default='HiGHS', init=False)

    @property
    def show_log(self) -> bool:
        if self.model is None:
            raise ValueError("The solver model was not set.")
        return bool(self.get_option('output_flag'))

    def init_model(self) -> "HighsApi":
        self.model = highspy.Highs()
        self._set_log(False)
        return self

    def _set_log(self, flag: bool) -> "HighsApi":
        self.set_option('output_flag', flag)
        return self

    def get_version(self) -> str:
        return f"v{self.model.version()}"

    @property
    def num_columns(self) -> int:
        return self.model.getNumCol()

    def add_var(self, variable: Variable, column: int) -> "HighsApi":
        return self.add_vars([variable], column)

    def add_vars(self, variables: list[Variable], first_column: int) -> "HighsApi":
        if not variables:
            return self
        if first_column != self.num_columns:
            raise ValueError(
                f"New columns must be appended: got column {first_column} for a model with {self.num_columns} columns."
            )

        # Frozen variables enter the model with their frozen bounds
        bounds = [var.frozen_bounds for var in variables]
        _check(
            self.model.addVars(
                len(variables),
                [_highs_bound(lb) for lb, _ in bounds],
                [_highs_bound(ub) for _, ub in bounds],
            ),
            f"add {len(variables)} columns"
        )
        for idx, var in enumerate(variables):
            column = first_column + idx
            var.attach(self, column)
            self.model.passColName(column, var.name)
            if var.vartype == VarType.INTEGER:
                _check(
                    self.model.changeColIntegrality(column, highspy.HighsVarType.kInteger),
                    f"set the type of column {column}"
                )

        return self

    def del_var(self, variable: Variable) -> "HighsApi":
        return self.del_vars([variable])

    def del_vars(self, variables: list[Variable]) -> "HighsApi":
        if not variables:
            return self
        # HiGHS only takes index sets in increasing order
        columns = sorted(self.column(variable) for variable in variables)
        _check(self.model.deleteCols(len(columns), columns), f"delete columns {columns}")
        for variable in variables:
            variable.detach(self)
        return self

    def add_constr(self, constr: LinearConstraint, row: int) -> "HighsApi":
        vars, coefs = self.linear_terms(constr.expression)
        _check(
            self.model.addRow(
                -highspy.kHighsInf if constr.sign == ConstraintSign.LEQ else constr.rhs,
                highspy.kHighsInf if constr.sign == ConstraintSign.GEQ else constr.rhs,
                len(vars),
                [self.column(var) for var in vars],
                coefs
            ),
            f"add the row '{constr.name}'"
        )
        constr.attach(self, row)
        self.model.passRowName(row, constr.name)
        return self

    def del_constr(self, constr: LinearConstraint) -> "HighsApi":
        return self.del_constrs([constr])

    def del_constrs(self, constrs: list[LinearConstraint]) -> "HighsApi":
        if not constrs:
            return self
        rows = sorted(self.row(constr) for constr in constrs)
        _check(self.model.deleteRows(len(rows), rows), f"delete rows {rows}")
        for constr in constrs:
            constr.detach(self)
        return self

    def set_objective(self, objetive_function: ObjectiveFunction | Variable | LinearExpression | float | int) -> "HighsApi":
        if isinstance(objetive_function, (Variable, float, int)):
            objetive_function += LinearExpression()
        if isinstance(objetive_function, LinearExpression):
            objetive_function = ObjectiveFunction(expression=objetive_function)

        num_vars = self.num_columns
        if num_vars > 0:
            self.model.changeColsCost(num_vars, list(range(num_vars)), [0.0]*num_vars)
        vars, coefs = self.linear_terms(objetive_function.expression)
        if vars:
            _check(
                self.model.changeColsCost(len(vars), [self.column(var) for var in vars], coefs),
                "set the objective costs"
            )

        self.model.changeObjectiveOffset(objetive_function.expression.constant)
        self.model.changeObjectiveSense(
            highspy.ObjSense.kMinimize if objetive_function.is_minimization else highspy.ObjSense.kMaximize
        )
        return self

    def set_variable_lower(self, variable: Variable, lower: float) -> "HighsApi":
        return self.set_variable_bounds(variable, lower, variable.upper)

    def set_variable_upper(self, variable: Variable, upper: float) -> "HighsApi":
        return self.set_variable_bounds(variable, variable.lower, upper)

    def set_variable_bounds(self, variable: Variable, lower: float, upper: float) -> "HighsApi":
        column = self.column(variable)
        _check(
            self.model.changeColBounds(column, _highs_bound(lower), _highs_bound(upper)),
            f"change the bounds of column {column}"
        )
        return self

    def set_variable_type(self, variable: Variable, vartype: VarType) -> "HighsApi":
        column = self.column(variable)
        _check(
            self.model.changeColIntegrality(column, _highs_vartype(vartype)),
            f"change the type of column {column}"
        )
        return self

    def set_variable_name(self, variable: Variable, name: str) -> "HighsApi":
        self.model.passColName(self.column(variable), name)
        return self

    def set_option(self, name: str, value: Any) -> "HighsApi":
        _check(self.model.setOptionValue(name, value), f"set the option '{name}'")
        return self

    def get_option(self, name: str) -> Any:
        status, value = self.model.getOptionValue(name)
        _check(status, f"read the option '{name}'")
        return value

    def get_objective_value(self) -> float | None:
        return self.model.getObjectiveValue()

    def fetch_solution(self) -> "HighsApi":
        solver_solution = self.model.getSolution()
        self.solution = list(solver_solution.col_value)
        # MIP solves carry no dual information
        if solver_solution.dual_valid:
            self.reduced_costs = list(solver_solution.col_dual)
            self.duals = list(solver_solution.row_dual)
        else:
            self.reduced_costs = [0.0] * len(self.solution)
            self.duals = [0.0] * self.model.getNumRow()
        return self

    def fetch_solve_status(self) -> "HighsApi":
        match self.model.getModelStatus():
            case highspy.HighsModelStatus.kOptimal:
                self.solve_status = SolveStatus.OPTIMUM
            case highspy.HighsModelStatus.kInfeasible:
                self.solve_status = SolveStatus.INFEASIBLE
            case highspy.HighsModelStatus.kUnbounded:
                self.solve_status = SolveStatus.UNBOUNDED
            case _:
                self.solve_status = SolveStatus.UNKNOWN
        return self

    def run(self, options: Optional[dict[str, Any]] = None) -> "HighsApi":
        # The solver log is shown unless the options turn it off
        self._set_log(True)
        self.set_options(options or dict())
        self.solution = None
        self.reduced_costs = None
        self.duals = None

        logger.info("Solver: %s %s", self.solver_name, self.get_version())
        self.model.run()
        return self
