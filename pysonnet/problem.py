from dataclasses import dataclass, field, InitVar
from itertools import chain
from typing import Any, Type

from pysonnet.enums import SolveStatus
from pysonnet.exceptions import InvalidStateError
from pysonnet.logging import get_logger
from pysonnet.mainstructures import Variable, LinearConstraint, ObjectiveFunction, LinearExpression
from pysonnet.solvers.abstractsolverapi import AbstractSolverApi


logger = get_logger(__name__)


@dataclass(eq=False)
class Problem:
    """
    The optimization problem class.

    A problem keeps the constraints and the objective function and loads them into its solver.
    Variables do not need to be added: `update()` loads every variable used by the constraints
    and the objective function. The same variables can be shared by several problems, each one
    with its own solver, and changes to a variable reach all of those solvers.
    """

    name: str = None
    solver_api: InitVar[Type[AbstractSolverApi]] = None
    options: dict[str, Any] = field(default_factory=dict)

    solver: AbstractSolverApi = field(default=None, init=False)
    variables: list[Variable] = field(default_factory=list, init=False)
    pending_variables: list[Variable] = field(default_factory=list, init=False)
    deleting_variables: list[Variable] = field(default_factory=list, init=False)
    constraints: list[LinearConstraint] = field(default_factory=list, init=False)
    pending_constraints: list[LinearConstraint] = field(default_factory=list, init=False)
    deleting_constraints: list[LinearConstraint] = field(default_factory=list, init=False)
    objective_function: ObjectiveFunction | None = field(default=None, init=False)

    _variable_ids: set[int] = field(default_factory=set, init=False, repr=False)
    _constraint_ids: set[int] = field(default_factory=set, init=False, repr=False)
    _deleted_variable_ids: set[int] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self, solver_api: Type[AbstractSolverApi]):
        if solver_api is not None:
            self.solver = solver_api()

    def __str__(self):
        lines = [f"Problem {self.name or ''}".rstrip()]
        if self.objective_function is not None:
            sense = 'Minimize' if self.objective_function.is_minimization else 'Maximize'
            lines += [f"{sense}: {self.objective_function.expression}"]
        lines += ["Subject to:"]
        lines += [f"  {constr}" for constr in chain(self.constraints, self.pending_constraints)]
        lines += ["Variables:"]
        lines += [f"  {var}" for var in chain(self.variables, self.pending_variables)]
        return "\n".join(lines)

    def _require_solver(self):
        if self.solver is None:
            raise InvalidStateError("The solver api should be set before building or solving the problem.")

    @property
    def solve_status(self):
        if self.solver is None:
            return SolveStatus.NOT_SOLVED
        return self.solver.solve_status or SolveStatus.NOT_SOLVED

    def get_vars_bycolumn(self, columns: list[int]) -> list[Variable]:
        "Finds some variables by searching for column numbers. It will ignore any pending variables."
        return [self.variables[column] for column in columns if 0 <= column < len(self.variables)]

    def get_var_bycolumn(self, column: int) -> Variable:
        """
        Finds a variable by searching for its column number. It will ignore any pending variables.

        It will raise a `KeyError` exception if no variable is found.
        """
        filter_vars = self.get_vars_bycolumn([column])
        if not filter_vars:
            raise KeyError(f"There is no variable with column number '{column}'.")
        return filter_vars[0]

    def get_vars_byname(self, names: list[str]) -> list[Variable]:
        "Finds some variables by searching for a list of names. It will ignore pending ones."
        return [var for var in self.variables if var.name in names]

    def get_var_byname(self, name: str) -> Variable:
        """
        Finds a variable by searching for its name. It will ignore pending ones.

        It will raise a `KeyError` exception if no variable is found.
        """
        filter_vars = self.get_vars_byname([name])
        if not filter_vars:
            raise KeyError(f"There is no variable with name '{name}'.")
        return filter_vars[0]

    def get_constrs_byrow(self, rows: list[int]) -> list[LinearConstraint]:
        "Finds some constraints by searching for row numbers. It will ignore pending ones."
        return [self.constraints[row] for row in rows if 0 <= row < len(self.constraints)]

    def get_constr_byrow(self, row: int) -> LinearConstraint:
        """
        Finds a constraint by searching for its row number. It will ignore pending ones.

        It will raise a `KeyError` exception if no constraint is found.
        """
        filter_constrs = self.get_constrs_byrow([row])
        if not filter_constrs:
            raise KeyError(f"There is no constraint with row number '{row}'.")
        return filter_constrs[0]

    def get_constrs_byname(self, names: list[str]) -> list[LinearConstraint]:
        "Finds some constraints by searching for a list of names. It will ignore pending ones."
        return [constr for constr in self.constraints if constr.name in names]

    def get_constr_byname(self, name: str) -> LinearConstraint:
        """
        Finds a contraint by searching for its name. It will ignore pending ones.

        It will raise a `KeyError` exception if no constraint is found.
        """
        filter_constrs = self.get_constrs_byname([name])
        if not filter_constrs:
            raise KeyError(f"There is no constraint with name '{name}'.")
        return filter_constrs[0]

    def set_option(self, name: str, value):
        "Sets the solver option"
        self.options[name] = value
        return self

    def set_options(self, options: dict[str, Any]):
        "Sets a some solver options"
        for key, val in options.items():
            self.set_option(key, val)
        return self

    def add_var(self, variable: Variable):
        """
        Adds a new column to the optimization model. Commit new variable with `problem.update()`.
        Adding a variable that is already in the model only cancels a pending deletion.
        """
        self._deleted_variable_ids.discard(variable.id)
        self.deleting_variables = [var for var in self.deleting_variables if var is not variable]
        if variable.id not in self._variable_ids:
            self._variable_ids.add(variable.id)
            self.pending_variables += [variable]
        return self

    def add_vars(self, *variables: list | dict | Variable):
        "Adds some columns to the optimization model. Commit new variables with `problem.update()`."
        for list_of_variables in variables:
            if isinstance(list_of_variables, dict):
                list_of_variables = list_of_variables.values()
            elif isinstance(list_of_variables, Variable):
                list_of_variables = [list_of_variables]
            for var in list_of_variables:
                self.add_var(var)
        return self

    def del_var(self, variable: Variable | int):
        """
        Marks a variable (object or column index) to be deleted from the model.
        Commit deletion with `problem.update()`.
        The variable is no longer loaded from the constraints or the objective function, whose
        expressions are left untouched, until it is added again with `add_var()`.
        """
        if isinstance(variable, int):
            if not 0 <= variable < len(self.variables):
                raise KeyError(f"No variable with column index {variable} was added to the model.")
            variable = self.variables[variable]

        self._deleted_variable_ids.add(variable.id)
        if any(var is variable for var in self.pending_variables):
            self.pending_variables = [var for var in self.pending_variables if var is not variable]
            self._variable_ids.discard(variable.id)
        elif any(var is variable for var in self.variables):
            if not any(var is variable for var in self.deleting_variables):
                self.deleting_variables += [variable]
        return self

    def del_vars(self, *variables: list | dict | Variable):
        """
        Marks a set of variables (objects or column indexes) to be deleted from the model.
        Commit deletion with `problem.update()`.
        """
        for list_of_vars in variables:
            if isinstance(list_of_vars, dict):
                list_of_vars = list_of_vars.values()
            elif isinstance(list_of_vars, (Variable, int)):
                list_of_vars = [list_of_vars]
            for var in list_of_vars:
                self.del_var(var)
        return self

    def add_constr(self, constr: LinearConstraint):
        "Adds a new constraint to the model. Commit new constraint with `problem.update()`."
        if not isinstance(constr, LinearConstraint):
            constr = LinearConstraint(constr)
        self.deleting_constraints = [con for con in self.deleting_constraints if con is not constr]
        if constr.id not in self._constraint_ids:
            self._constraint_ids.add(constr.id)
            self.pending_constraints += [constr]
        return self

    def add_constrs(self, *constrs: list | dict | LinearConstraint):
        "Adds some constraints to the model. Commit new constraints with `problem.update()`."
        for list_of_constrs in constrs:
            if isinstance(list_of_constrs, dict):
                list_of_constrs = list_of_constrs.values()
            elif isinstance(list_of_constrs, LinearConstraint):
                list_of_constrs = [list_of_constrs]
            for constr in list_of_constrs:
                self.add_constr(constr)
        return self

    def del_constr(self, constr: LinearConstraint | int):
        "Marks a constraint to be removed from the model. Commit deletion with `problem.update()`"
        if isinstance(constr, int):
            if not 0 <= constr < len(self.constraints):
                raise KeyError(f"No constraint with row index {constr} was added to the model.")
            constr = self.constraints[constr]

        if constr in self.pending_constraints:
            self.pending_constraints.remove(constr)
            self._constraint_ids.discard(constr.id)
        elif constr in self.constraints and constr not in self.deleting_constraints:
            self.deleting_constraints += [constr]
        return self

    def del_constrs(self, *constraints: list | dict | LinearConstraint):
        "Marks some constraints to be removed from the model. Commit deletion with `problem.update()`"
        for list_of_constrs in constraints:
            if isinstance(list_of_constrs, dict):
                list_of_constrs = list_of_constrs.values()
            elif isinstance(list_of_constrs, (LinearConstraint, int)):
                list_of_constrs = [list_of_constrs]
            for constr in list_of_constrs:
                self.del_constr(constr)
        return self

    def set_objective(self,
                      objective: ObjectiveFunction | Variable | LinearExpression | float | int,
                      is_minimization: bool = True):
        "Sets the objetive function to solve for."
        if isinstance(objective, (Variable, float, int)):
            objective += LinearExpression()
        if isinstance(objective, LinearExpression):
            objective = ObjectiveFunction(expression=objective, is_minimization=is_minimization)

        self.objective_function = objective
        return self

    def set_solver(self, solver_api: Type[AbstractSolverApi]):
        """
        Sets the solver from the given interface. The model is detached from the previous
        solver and loaded into the new one on the next `update()`.
        """
        if self.solver is not None:
            self.clear_solver()
        self.solver = solver_api()
        return self

    def _collect_variables(self):
        "Queues the variables used by the pending constraints and the objective function."
        expressions = [constr.expression for constr in self.pending_constraints]
        if self.objective_function is not None:
            expressions += [self.objective_function.expression]
        for expression in expressions:
            for var in expression.elements:
                if var.id not in self._variable_ids and var.id not in self._deleted_variable_ids:
                    self.add_var(var)

    def _update_del_vars(self):
        if not self.deleting_variables:
            return
        self.solver.del_vars(self.deleting_variables)  # model should delete the whole columns
        deleting_ids = {var.id for var in self.deleting_variables}
        self.variables = [var for var in self.variables if var.id not in deleting_ids]
        for column, var in enumerate(self.variables):
            var.attach(self.solver, column)

        self._variable_ids -= deleting_ids
        logger.debug("Problem '%s': deleted %d variables", self.name, len(deleting_ids))
        self.deleting_variables = []

    def _update_del_constrs(self):
        if not self.deleting_constraints:
            return
        self.solver.del_constrs(self.deleting_constraints)  # Delete rows
        deleting_ids = {constr.id for constr in self.deleting_constraints}
        self.constraints = [constr for constr in self.constraints if constr.id not in deleting_ids]
        for row, constr in enumerate(self.constraints):
            constr.attach(self.solver, row)
        self._constraint_ids -= deleting_ids
        self.deleting_constraints = []

    def _update_add_vars(self):
        self._collect_variables()
        self.solver.add_vars(self.pending_variables, len(self.variables))
        self.variables += self.pending_variables
        self.pending_variables = []

    def _update_add_constrs(self):
        self.solver.add_constrs(self.pending_constraints, len(self.constraints))
        self.constraints += self.pending_constraints
        self.pending_constraints = []

    def update(self):
        """
        Deletes and adds any pending variables and constraints to the solver model.
        Variables used by constraints or by the objective function are added as needed.
        """
        self._require_solver()
        self._update_del_vars()
        self._update_del_constrs()
        self._update_add_vars()
        self._update_add_constrs()
        return self

    def solve(self, update: bool = True):
        "Runs the solver for the optimization problem and assigns the solution to the variables."
        self._require_solver()

        if update:
            self.update()

        if not self.variables:
            raise InvalidStateError("No variable was added to the problem.")

        objective = self.objective_function or ObjectiveFunction()
        self.solver.set_objective(objective)
        self.solver.run(objective.options or self.options or dict())
        return self.fetch_solution()

    def fetch_solve_status(self):
        self.solver.fetch_solve_status()
        return self

    def fetch_solution(self):
        "Assigns the variable values, reduced costs and duals after a solve."
        self._require_solver()
        self.solver.fetch_solve_status()
        logger.info("Problem '%s' solve status: %s", self.name, self.solve_status.value)
        if self.solve_status in [SolveStatus.FEASIBLE, SolveStatus.OPTIMUM]:
            self.solver.assign_solution(self.variables, self.constraints)
        return self

    def get_objectivefunction_value(self) -> float:
        if self.solve_status not in [SolveStatus.FEASIBLE, SolveStatus.OPTIMUM]:
            raise InvalidStateError(f"The problem has no solution (status: {self.solve_status.value}).")
        return self.solver.get_objective_value()

    def get_solution(self, variable: Variable) -> float:
        "Returns the solution value of a variable."
        return self.solver.get_solution(variable)

    def get_dual(self, constraint: LinearConstraint) -> float:
        "Returns the dual value of a constraint."
        return self.solver.get_dual(constraint)

    def clear_solver(self):
        """
        Clears the solver but keeps the optimization problem.
        Running `update()` will rebuild the solver model with the previous
        variables, constraints and objective function.
        """
        if self.solver is not None:
            for entity in chain(self.variables, self.constraints):
                entity.detach(self.solver)

        for var in self.deleting_variables:
            self._variable_ids.discard(var.id)
        self.pending_variables = [
            var for var in self.variables if var.id in self._variable_ids
        ] + self.pending_variables
        self.variables = []
        self.deleting_variables = []

        for constr in self.deleting_constraints:
            self._constraint_ids.discard(constr.id)
        self.pending_constraints = [
            constr for constr in self.constraints if constr.id in self._constraint_ids
        ] + self.pending_constraints
        self.constraints = []
        self.deleting_constraints = []

        if self.solver is not None:
            self.solver.clear()
        return self
