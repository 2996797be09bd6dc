class SonnetError(Exception):
    "Base class of all errors raised by pysonnet."


class InvalidStateError(SonnetError):
    "The operation needs a solved model (or other context) that does not exist yet."


class InvalidArgumentError(SonnetError, ValueError):
    "Malformed input given to a constructor or builder."


class UnsupportedError(SonnetError, NotImplementedError):
    "The operation has no meaning for linear models."


class SolverError(SonnetError):
    "The solver library rejected a call."
