from pysonnet.solvers.abstractsolverapi import AbstractSolverApi
from pysonnet.solvers.highsapi import HighsApi
