from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from itertools import count
from threading import Lock
from typing import Any, Hashable, Iterable, Optional, TYPE_CHECKING

from pysonnet.constants import INF
from pysonnet.enums import ConstraintSign, VarType
from pysonnet.exceptions import InvalidArgumentError, InvalidStateError, UnsupportedError
from pysonnet.logging import get_logger
from pysonnet.mathutils import compare_to_eps, is_between, is_integer, to_double_string

if TYPE_CHECKING:
    from pysonnet.solvers.abstractsolverapi import AbstractSolverApi


logger = get_logger(__name__)

NOT_EQUAL_MESSAGE = "Cannot use the != operator: there is no 'not equal' linear constraint."


class IdCounter:
    "Process-wide id generator. Ids are handed out in increasing order and never reused."

    def __init__(self, start: int = 0):
        self._counter = count(start)
        self._lock = Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)


class ModelEntity:
    """
    Base class of the objects that are loaded into solvers (variables and constraints).

    An entity keeps, in attachment order, the solvers it is loaded into and its
    position (offset) in each of them. The solvers are only referenced, never owned.
    """

    def __init__(self, name: str):
        self._name = name
        self._solvers: list["AbstractSolverApi"] = []
        self._offsets: list[int] = []
        self._assigned_solver: Optional["AbstractSolverApi"] = None

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str):
        self._name = value

    @property
    def solvers(self) -> tuple["AbstractSolverApi", ...]:
        "The solvers this entity is attached to, in attachment order."
        return tuple(self._solvers)

    @property
    def assigned(self) -> bool:
        "Whether a solver has assigned its results to this entity."
        return self._assigned_solver is not None

    @property
    def assigned_solver(self) -> Optional["AbstractSolverApi"]:
        return self._assigned_solver

    def _solver_index(self, solver: "AbstractSolverApi") -> int | None:
        # Solvers are matched by identity
        for idx, attached in enumerate(self._solvers):
            if attached is solver:
                return idx
        return None

    def is_attached(self, solver: "AbstractSolverApi") -> bool:
        return self._solver_index(solver) is not None

    def attach(self, solver: "AbstractSolverApi", offset: int):
        """
        Registers the solver (with the entity's position inside it) to be notified of changes.
        Attaching an already attached solver only updates the offset.
        """
        idx = self._solver_index(solver)
        if idx is None:
            self._solvers.append(solver)
            self._offsets.append(offset)
            logger.debug("Attached '%s' to %s at offset %d", self.name, solver.solver_name, offset)
        else:
            self._offsets[idx] = offset
        return self

    def detach(self, solver: "AbstractSolverApi"):
        "Stops notifying the solver. Nothing happens if the solver is not attached."
        idx = self._solver_index(solver)
        if idx is None:
            return self
        del self._solvers[idx]
        del self._offsets[idx]
        if self._assigned_solver is solver:
            self._assigned_solver = None
        logger.debug("Detached '%s' from %s", self.name, solver.solver_name)
        return self

    def offset(self, solver: "AbstractSolverApi") -> int:
        "Returns the position of this entity in the given solver."
        idx = self._solver_index(solver)
        if idx is None:
            raise InvalidStateError(f"'{self.name}' is not attached to the solver {solver.solver_name}.")
        return self._offsets[idx]

    def assign(self, solver: "AbstractSolverApi", offset: int):
        "Marks the solver as the one whose results this entity currently holds."
        self.attach(solver, offset)
        self._assigned_solver = solver
        return self


@dataclass(eq=False)
class LinearExpression:
    "A wrapper for general expressions"
    elements: dict["Variable", float] = field(default_factory=dict, init=False)
    constant: float = field(default=0, init=False)

    def copy(self):
        "Returns a copy of the linear expression"
        new_expr = LinearExpression()
        new_expr.elements = self.elements.copy()
        new_expr.constant = self.constant
        return new_expr

    def variables(self) -> list["Variable"]:
        return list(self.elements)

    def _add_expression(self, expr: "LinearExpression", addition: bool = True):
        new_expr = self.copy()
        sign = 1 if addition else -1
        new_expr.constant = self.constant + sign * expr.constant
        for key, val in expr.elements.items():
            new_expr.elements[key] = self.elements.get(key, 0) + sign * val
        return new_expr

    def _add_var(self, var: "Variable", addition: bool = True):
        new_expr = self.copy()
        sign = 1 if addition else -1
        new_expr.elements[var] = self.elements.get(var, 0) + sign
        return new_expr

    def _add_constant(self, val: float | int, addition: bool = True):
        new_expr = self.copy()
        sign = 1 if addition else -1
        new_expr.constant = self.constant + float(val) * sign
        return new_expr

    def _add(self, other, addition: bool = True):
        if isinstance(other, LinearExpression):
            return self._add_expression(other, addition)
        if isinstance(other, Variable):
            return self._add_var(other, addition)
        return self._add_constant(other, addition)

    def __add__(self, other: "LinearExpression | Variable | float | int"):
        return self._add(other)

    def __radd__(self, other: "LinearExpression | Variable | float | int"):
        return self + other

    def __sub__(self, other: "LinearExpression | Variable | float | int"):
        return self._add(other, False)

    def __rsub__(self, other: "LinearExpression | Variable | float | int"):
        return (-self) + other

    def _multiplication(self, coef: float | int, multiplication: bool = True):
        if isinstance(coef, (LinearExpression, Variable)):
            raise UnsupportedError("The product or quotient of two linear terms is not linear.")
        coef = float(coef)
        factor = coef if multiplication else 1 / coef
        new_expr = self.copy()
        new_expr.elements = {key: val * factor for key, val in self.elements.items()}
        new_expr.constant *= factor
        return new_expr

    def __mul__(self, coef: float | int):
        return self._multiplication(coef)

    def __rmul__(self, coef: float | int):
        return self._multiplication(coef)

    def __truediv__(self, coef: float | int):
        return self._multiplication(coef, False)

    def __rtruediv__(self, other):
        raise UnsupportedError("Cannot divide by a linear expression.")

    def _compare(self, rhs: "LinearExpression | Variable | float | int", sign: ConstraintSign):
        # Every term goes to the left-hand side and the constant becomes the right-hand side
        constr = LinearConstraint((LinearExpression() + (self.copy() - rhs), sign))
        constr.expression.constant = 0.0 - constr.expression.constant
        return constr

    def __eq__(self, rhs: "LinearExpression | Variable | float | int"):
        return self._compare(rhs, ConstraintSign.EQ)

    def __le__(self, rhs: "LinearExpression | Variable | float | int"):
        return self._compare(rhs, ConstraintSign.LEQ)

    def __ge__(self, rhs: "LinearExpression | Variable | float | int"):
        return self._compare(rhs, ConstraintSign.GEQ)

    def __ne__(self, rhs):
        raise UnsupportedError(NOT_EQUAL_MESSAGE)

    __hash__ = None

    def __neg__(self):
        return LinearExpression() - self.copy()

    def __pos__(self):
        return LinearExpression() + self.copy()

    @property
    def value(self) -> float:
        "Evaluates the expression with the values assigned to its variables."
        return sum(coef * var.value for var, coef in self.elements.items()) + self.constant

    def terms_to_string(self) -> str:
        terms = [
            f"{'-' if coef < 0 else '+'} {to_double_string(abs(coef))} {var.name}"
            for var, coef in self.elements.items()
        ]
        text = " ".join(terms)
        if text.startswith("+ "):
            text = text[2:]
        return text or "0"

    def __str__(self):
        text = self.terms_to_string()
        if self.constant:
            text += f" {'-' if self.constant < 0 else '+'} {to_double_string(abs(self.constant))}"
        return text


class Variable(ModelEntity):
    """
    The decision variable.

    A variable has a name, a lower and an upper bound, and a type (continuous or integer).
    Variables are not added to a model explicitly: a problem loads the variables used by
    its constraints and objective. Every change of name, bounds or type is pushed at once
    to every solver the variable is attached to, in attachment order.

    After a solve, the solver assigns the solution value and reduced cost of the variable.
    """

    _ids = IdCounter()

    def __init__(self,
                 name: Optional[str] = None,
                 lower: float = 0.0,
                 upper: float = INF,
                 vartype: VarType = VarType.CONTINUOUS):
        self._id = Variable._ids.next()
        super().__init__(name or f"Var_{self._id}")
        self._lower = float(lower)
        self._upper = float(upper)
        self._vartype = vartype

        self._frozen = 0
        self._frozen_value: float | None = None
        self._value: float | None = None
        self._reduced_cost: float | None = None
        self._warn_crossed_bounds()

    @classmethod
    def new_list(cls,
                 n: int,
                 name: str = "",
                 lower: float = 0.0,
                 upper: float = INF,
                 vartype: VarType = VarType.CONTINUOUS) -> list["Variable"]:
        """
        Returns `n` new variables sharing the same bounds and type.

        Given a base name `x`, they are named `x_0`, `x_1`, and so on.
        Without a base name the default names are used.
        """
        return [
            cls(f"{name}_{idx}" if name else None, lower, upper, vartype)
            for idx in range(n)
        ]

    @classmethod
    def new_dict(cls,
                 keys: Iterable[Hashable],
                 name: str = "",
                 lower: float = 0.0,
                 upper: float = INF,
                 vartype: VarType = VarType.CONTINUOUS) -> dict[Any, "Variable"]:
        """
        Returns a dictionary with a new variable for each key, in the order of the keys.

        Given a base name `x`, the variable of key `k` is named `x_k`.
        """
        return {
            key: cls(f"{name}_{key}" if name else None, lower, upper, vartype)
            for key in dict.fromkeys(keys)
        }

    @classmethod
    def new_enum_dict(cls,
                      enum_type: type[Enum],
                      name: str = "",
                      lower: float = 0.0,
                      upper: float = INF,
                      vartype: VarType = VarType.CONTINUOUS) -> dict[Enum, "Variable"]:
        """
        Returns a dictionary with a new variable for each member of an enumeration.

        Given a base name `x`, the variable of member `Color.RED` is named `x_RED`.
        Raises `InvalidArgumentError` if `enum_type` is not an enumeration.
        """
        if not (isinstance(enum_type, type) and issubclass(enum_type, Enum)):
            raise InvalidArgumentError(f"{enum_type!r} must be an enumerated type.")
        return {
            member: cls(f"{name}_{member.name}" if name else None, lower, upper, vartype)
            for member in enum_type
        }

    @property
    def id(self) -> int:
        return self._id

    def __hash__(self):
        return hash(self._id)

    def __repr__(self):
        return f"Variable(name={self.name!r}, id={self._id})"

    def __str__(self):
        return (
            f"{self.name} : {self._vartype.name.capitalize()} : "
            f"[{to_double_string(self._lower)}, {to_double_string(self._upper)}]"
        )

    def to_level_string(self) -> str:
        "Returns the variable together with its value and reduced cost."
        return f"{self} = {to_double_string(self.value)}   ( {to_double_string(self.reduced_cost)} )"

    def _notify(self, method: str, *args):
        for solver in tuple(self._solvers):
            logger.debug("'%s': %s%s on %s", self.name, method, args, solver.solver_name)
            getattr(solver, method)(self, *args)

    def _warn_crossed_bounds(self):
        if self._lower > self._upper:
            logger.warning(
                "Variable '%s' has a lower bound above its upper bound: [%s, %s]",
                self.name, to_double_string(self._lower), to_double_string(self._upper)
            )

    @ModelEntity.name.setter
    def name(self, value: str):
        if self._name == value:
            return
        self._name = value
        self._notify("set_variable_name", value)

    @property
    def lower(self) -> float:
        return self._lower

    @lower.setter
    def lower(self, value: float):
        value = float(value)
        if compare_to_eps(self._lower, value) == 0:
            return
        self._lower = value
        self._warn_crossed_bounds()
        if self.is_frozen:
            return
        self._notify("set_variable_lower", value)

    @property
    def upper(self) -> float:
        return self._upper

    @upper.setter
    def upper(self, value: float):
        value = float(value)
        if compare_to_eps(self._upper, value) == 0:
            return
        self._upper = value
        self._warn_crossed_bounds()
        if self.is_frozen:
            return
        self._notify("set_variable_upper", value)

    def set_bounds(self, lower: float, upper: float):
        "Changes both bounds with a single notification per solver."
        lower, upper = float(lower), float(upper)
        if compare_to_eps(self._lower, lower) == 0 and compare_to_eps(self._upper, upper) == 0:
            return self
        self._lower, self._upper = lower, upper
        self._warn_crossed_bounds()
        if not self.is_frozen:
            self._notify("set_variable_bounds", lower, upper)
        return self

    @property
    def vartype(self) -> VarType:
        return self._vartype

    @vartype.setter
    def vartype(self, value: VarType):
        if self._vartype == value:
            return
        self._vartype = value
        self._notify("set_variable_type", value)

    @property
    def is_frozen(self) -> bool:
        return self._frozen > 0

    @property
    def freeze_count(self) -> int:
        return self._frozen

    @property
    def frozen_bounds(self) -> tuple[float, float]:
        "The bounds the attached solvers currently hold for this variable."
        if self.is_frozen:
            return self._frozen_value, self._frozen_value
        return self._lower, self._upper

    def freeze(self) -> bool:
        """
        Fixes the variable at its current value: both solver bounds are set to the value.
        The bounds of the variable itself are kept and restored by `unfreeze()`.

        Calls nest; only the first one changes the solvers.
        Returns True if the variable was not frozen before.
        """
        if self._frozen > 0:
            self._frozen += 1
            return False

        value = self.value
        self._frozen = 1
        self._frozen_value = value
        logger.debug("Freezing '%s' at %s", self.name, to_double_string(value))
        self._notify("set_variable_bounds", value, value)
        return True

    def unfreeze(self) -> bool:
        """
        Undoes one `freeze()` call. The bounds are given back to the solvers only when the
        last freeze is undone.

        Returns True if the variable was unfrozen by this call.
        """
        if self._frozen == 0:
            return False

        self._frozen -= 1
        if self._frozen > 0:
            return False

        self._frozen_value = None
        logger.debug("Unfreezing '%s'", self.name)
        self._notify("set_variable_bounds", self._lower, self._upper)
        return True

    @contextmanager
    def keep_frozen(self):
        "Keeps the variable frozen at its current value within the block."
        self.freeze()
        try:
            yield self
        finally:
            self.unfreeze()

    def assign(self, solver: "AbstractSolverApi", offset: int, value: float, reduced_cost: float):
        """
        Stores the solution of a solver: the offset of the variable in that solver,
        its value and its reduced cost. The last solver to assign wins.
        """
        super().assign(solver, offset)
        self._value = float(value)
        self._reduced_cost = float(reduced_cost)
        return self

    @property
    def value(self) -> float:
        if self._value is None:
            raise InvalidStateError(f"Variable '{self.name}' has no value: no solver assigned a solution yet.")
        return self._value

    @property
    def reduced_cost(self) -> float:
        if self._reduced_cost is None:
            raise InvalidStateError(f"Variable '{self.name}' has no reduced cost: no solver assigned a solution yet.")
        return self._reduced_cost

    def is_feasible(self) -> bool:
        "Whether the current value is within the bounds and, for integer variables, integral."
        value = self.value
        if not is_between(value, self._lower, self._upper):
            return False
        if self._vartype == VarType.INTEGER and not is_integer(value):
            return False
        return True

    def to_linexpr(self):
        "Transforms the variable into a linear expression"
        return LinearExpression() + self

    def __add__(self, other: "LinearExpression | Variable | float | int"):
        return self.to_linexpr() + other

    def __radd__(self, other: "LinearExpression | Variable | float | int"):
        return self + other

    def __sub__(self, other: "LinearExpression | Variable | float | int"):
        return self.to_linexpr() - other

    def __rsub__(self, other: "LinearExpression | Variable | float | int"):
        return (-self) + other

    def __mul__(self, val: float | int):
        return self.to_linexpr() * val

    def __rmul__(self, val: float | int):
        return self * val

    def __truediv__(self, val: float | int):
        return self.to_linexpr() / val

    def __rtruediv__(self, val):
        raise UnsupportedError("Cannot divide by a variable.")

    def __eq__(self, rhs: "LinearExpression | Variable | float | int"):
        return self.to_linexpr() == rhs

    def __le__(self, rhs: "LinearExpression | Variable | float | int"):
        return self.to_linexpr() <= rhs

    def __ge__(self, rhs: "LinearExpression | Variable | float | int"):
        return self.to_linexpr() >= rhs

    def __ne__(self, rhs):
        raise UnsupportedError(NOT_EQUAL_MESSAGE)

    def __neg__(self):
        return LinearExpression() - self

    def __pos__(self):
        return LinearExpression() + self

    def plus(self, other: "LinearExpression | Variable | float | int") -> LinearExpression:
        return self + other

    def minus(self, other: "LinearExpression | Variable | float | int") -> LinearExpression:
        return self - other

    def times(self, coef: float | int) -> LinearExpression:
        return self * coef

    def divided_by(self, coef: float | int) -> LinearExpression:
        return self / coef

    def less_equal(self, rhs: "LinearExpression | Variable | float | int") -> "LinearConstraint":
        return self <= rhs

    def greater_equal(self, rhs: "LinearExpression | Variable | float | int") -> "LinearConstraint":
        return self >= rhs

    def equal(self, rhs: "LinearExpression | Variable | float | int") -> "LinearConstraint":
        return self == rhs

    def not_equal(self, rhs):
        "Always fails: there is no 'not equal' linear constraint."
        raise UnsupportedError(NOT_EQUAL_MESSAGE)


class LinearConstraint(ModelEntity):
    """
    The linear constraint class.

    The expression holds all the variable terms, and its constant is the right-hand side.
    """

    _ids = IdCounter()

    expression: LinearExpression
    sign: ConstraintSign

    def __init__(self,
                 constr: "LinearConstraint | tuple[LinearExpression, ConstraintSign]",
                 name: Optional[str] = None):
        if isinstance(constr, LinearConstraint):
            expression, sign = constr.expression, constr.sign
        elif (
            isinstance(constr, tuple)
            and len(constr) == 2
            and isinstance(constr[0], LinearExpression)
            and isinstance(constr[1], ConstraintSign)
        ):
            expression, sign = constr
        else:
            raise InvalidArgumentError(f"The constraint expression must be an inequality, not `{constr}`.")

        self._id = LinearConstraint._ids.next()
        super().__init__(name or f"Con_{self._id}")
        self.expression = expression
        self.sign = sign
        self._dual: float | None = None

    @property
    def id(self) -> int:
        return self._id

    def __hash__(self):
        return hash(self._id)

    def __repr__(self):
        return f"LinearConstraint(name={self.name!r}, id={self._id})"

    def __str__(self):
        return (
            f"{self.name} : {self.expression.terms_to_string()} "
            f"{self.sign.value} {to_double_string(self.rhs)}"
        )

    @property
    def rhs(self) -> float:
        return self.expression.constant

    def variables(self) -> list[Variable]:
        return self.expression.variables()

    def assign(self, solver: "AbstractSolverApi", offset: int, dual: float):
        "Stores the dual value of the constraint given by a solver after a solve."
        super().assign(solver, offset)
        self._dual = float(dual)
        return self

    @property
    def dual(self) -> float:
        if self._dual is None:
            raise InvalidStateError(f"Constraint '{self.name}' has no dual value: no solver assigned a solution yet.")
        return self._dual

    @property
    def activity(self) -> float:
        "The value of the left-hand side for the assigned variable values."
        return self.expression.value - self.expression.constant

    def is_satisfied(self) -> bool:
        comparison = compare_to_eps(self.activity, self.rhs)
        match self.sign:
            case ConstraintSign.LEQ:
                return comparison <= 0
            case ConstraintSign.GEQ:
                return comparison >= 0
            case ConstraintSign.EQ:
                return comparison == 0


@dataclass(eq=False)
class ObjectiveFunction:
    expression: "LinearExpression" = field(default_factory=LinearExpression)
    is_minimization: bool = True
    name: str | None = field(default=None)
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.expression += LinearExpression()

    @property
    def value(self) -> float:
        return self.expression.value

    def variables(self) -> list[Variable]:
        return self.expression.variables()
