from pysonnet.constants import INF, EPSILON
from pysonnet.enums import ConstraintSign, VarType, SolveStatus
from pysonnet.exceptions import SonnetError, InvalidStateError, InvalidArgumentError, UnsupportedError, SolverError
from pysonnet.mainstructures import (
    ModelEntity, Variable, LinearExpression, LinearConstraint, ObjectiveFunction
)
from pysonnet.problem import Problem
from pysonnet.utils import Sum, Dot

__version__ = "0.1.0"
