"""
qpsens Exception Classes
========================

Custom exceptions for qpsens error handling.

All of them are fatal to the call that raised them: no retry is attempted
and no partial result is returned.
"""

from typing import Any, Optional


class QpsensError(Exception):
    """Base exception for all qpsens errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InfeasibleSpecError(QpsensError):
    """
    Raised when parameter data does not fit the solution map.

    Examples: a demand vector whose length differs from the number of
    periods, a missing or unknown parameter group, NaN values, or a
    tangent/seed whose shape differs from the primal quantity.
    """

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid specification: {message}")


class SolveFailedError(QpsensError):
    """
    Raised when the solver did not report an optimal solution.

    The solver status is kept on the exception so callers can tell an
    infeasible model from a numerical failure.
    """

    def __init__(self, status: Any, message: Optional[str] = None) -> None:
        self.status = status
        if message is None:
            message = f"Solve failed with status '{status}'"
        super().__init__(message)


class NotSolvedError(QpsensError):
    """
    Raised when a sensitivity is requested from a model that has not been
    solved to optimality.
    """

    def __init__(self, message: str = "Model has not been solved to optimality") -> None:
        super().__init__(message)


class UnknownNameError(QpsensError):
    """
    Raised when a variable, constraint or channel name is not registered
    on a model, or is registered twice.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
