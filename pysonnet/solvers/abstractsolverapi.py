from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from pysonnet.enums import SolveStatus, VarType
from pysonnet.exceptions import InvalidStateError
from pysonnet.logging import get_logger
from pysonnet.mainstructures import Variable, LinearConstraint, ObjectiveFunction, LinearExpression


logger = get_logger(__name__)


@dataclass(eq=False)
class AbstractSolverApi(ABC):
    """
    Interface to a solver library.

    Besides building and running the solver model, a solver takes the notifications that
    variables send when their name, bounds or type change. Each variable carries its column
    in this solver as its offset, attached when the variable is added.
    """
    solver_name: str = field(default=None, init=False)
    model: Any | None = field(default=None, init=False, repr=False)
    solve_status: SolveStatus | None = field(default=None, init=False)
    solution: list | dict | None = field(default=None, init=False, repr=False)
    reduced_costs: list | dict | None = field(default=None, init=False, repr=False)
    duals: list | dict | None = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.init_model()

    @property
    @abstractmethod
    def show_log(self) -> bool:
        ...

    @abstractmethod
    def init_model(self) -> "AbstractSolverApi":
        "Initializes the solver."
        ...

    @abstractmethod
    def get_version(self) -> str:
        ...

    def column(self, variable: Variable) -> int:
        "Returns the column of a variable in this solver."
        return variable.offset(self)

    def row(self, constraint: LinearConstraint) -> int:
        "Returns the row of a constraint in this solver."
        return constraint.offset(self)

    def linear_terms(self, expression: LinearExpression) -> tuple[list[Variable], list[float]]:
        """
        Splits an expression into its variables and coefficients, keeping only the
        variables loaded into this solver.
        """
        terms = [(var, coef) for var, coef in expression.elements.items() if var.is_attached(self)]
        return [var for var, _ in terms], [coef for _, coef in terms]

    @abstractmethod
    def add_var(self, variable: Variable, column: int) -> "AbstractSolverApi":
        "Adds a variable to the solver as the given column and attaches it."
        ...

    def add_vars(self, variables: list[Variable], first_column: int) -> "AbstractSolverApi":
        "Adds some variables to the solver, in consecutive columns."
        for idx, var in enumerate(variables):
            self.add_var(var, first_column + idx)
        return self

    @abstractmethod
    def del_var(self, variable: Variable) -> "AbstractSolverApi":
        "Deletes the whole column from the actual optimization model and detaches the variable."
        ...

    def del_vars(self, variables: list[Variable]) -> "AbstractSolverApi":
        "Deletes whole columns from the actual optimization model."
        for var in variables:
            self.del_var(var)
        return self

    @abstractmethod
    def add_constr(self, constraint: LinearConstraint, row: int) -> "AbstractSolverApi":
        "Adds a contraint to the solver as the given row."
        ...

    def add_constrs(self, constrs: list[LinearConstraint], first_row: int) -> "AbstractSolverApi":
        "Adds some constraints to the solver, in consecutive rows."
        for idx, constr in enumerate(constrs):
            self.add_constr(constr, first_row + idx)
        return self

    @abstractmethod
    def del_constr(self, constraint: LinearConstraint) -> "AbstractSolverApi":
        "Deletes the row of a constraint from the actual optimization model."
        ...

    def del_constrs(self, constrs: list[LinearConstraint]) -> "AbstractSolverApi":
        for constr in constrs:
            self.del_constr(constr)
        return self

    @abstractmethod
    def set_objective(self, objetive_function: ObjectiveFunction | Variable | LinearExpression | float | int) -> "AbstractSolverApi":
        "Sets the problem objective function to the solver."
        ...

    # Notifications sent by variables to every solver they are attached to

    @abstractmethod
    def set_variable_lower(self, variable: Variable, lower: float) -> "AbstractSolverApi":
        ...

    @abstractmethod
    def set_variable_upper(self, variable: Variable, upper: float) -> "AbstractSolverApi":
        ...

    @abstractmethod
    def set_variable_bounds(self, variable: Variable, lower: float, upper: float) -> "AbstractSolverApi":
        "Changes both bounds of a variable in one call."
        ...

    @abstractmethod
    def set_variable_type(self, variable: Variable, vartype: VarType) -> "AbstractSolverApi":
        ...

    @abstractmethod
    def set_variable_name(self, variable: Variable, name: str) -> "AbstractSolverApi":
        ...

    @abstractmethod
    def set_option(self, name: str, value) -> "AbstractSolverApi":
        "Sets an option to the solver."
        ...

    def set_options(self, options: dict[str, Any]) -> "AbstractSolverApi":
        "Sets some options to the solver."
        for name, val in options.items():
            self.set_option(name, val)
        return self

    @abstractmethod
    def get_option(self, name: str) -> Any:
        "Returns the value of an option from the solver."
        ...

    def get_options(self, options: list[str]) -> dict[str, Any]:
        "Returns the values of some options from the solver."
        return {
            option: self.get_option(option)
            for option in options
        }

    @abstractmethod
    def fetch_solution(self) -> "AbstractSolverApi":
        "Retrieves all primal values, reduced costs and duals after a solve."
        ...

    @abstractmethod
    def get_objective_value(self) -> float:
        "Returns the model's objective function value."
        ...

    def _fetched(self, values: list | dict | None, kind: str) -> list | dict:
        if values is None:
            self.fetch_solution()
            values = getattr(self, kind)
        if values is None:
            raise InvalidStateError(f"The solver {self.solver_name} has no {kind.replace('_', ' ')}. Run it first.")
        return values

    def get_solution(self, variable: Variable) -> float:
        "Returns the solution value of a variable."
        return self._fetched(self.solution, "solution")[self.column(variable)]

    def get_reduced_cost(self, variable: Variable) -> float:
        "Returns the reduced cost of a variable."
        return self._fetched(self.reduced_costs, "reduced_costs")[self.column(variable)]

    def get_dual(self, constraint: LinearConstraint) -> float:
        "Returns the dual value of a constraint."
        return self._fetched(self.duals, "duals")[self.row(constraint)]

    def assign_solution(self,
                        variables: list[Variable],
                        constraints: Optional[list[LinearConstraint]] = None) -> "AbstractSolverApi":
        "Fetches the solution and hands it to each variable and constraint."
        self.fetch_solution()
        for variable in variables:
            column = self.column(variable)
            variable.assign(self, column, self.solution[column], self.reduced_costs[column])
        for constraint in constraints or []:
            row = self.row(constraint)
            constraint.assign(self, row, self.duals[row])
        logger.debug(
            "%s assigned the solution of %d variables and %d constraints",
            self.solver_name, len(variables), len(constraints or [])
        )
        return self

    @abstractmethod
    def fetch_solve_status(self) -> "AbstractSolverApi":
        "Sets the status of the solving process"
        ...

    @abstractmethod
    def run(self, options: Optional[dict[str, Any]] = None) -> "AbstractSolverApi":
        "Runs the solver for the optimization problem."
        ...

    def clear(self) -> "AbstractSolverApi":
        "Clears the model. The caller is responsible for detaching the entities."
        self.solve_status = None
        self.solution = None
        self.reduced_costs = None
        self.duals = None
        self.init_model()
        return self
