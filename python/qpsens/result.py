"""
qpsens Result Classes
=====================

Data classes for solver results and status.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import cvxpy as cp
import numpy as np


class Status(Enum):
    """
    Solver status codes.

    Attributes:
        OPTIMAL: Solution found within tolerance
        OPTIMAL_INACCURATE: Solution found at reduced accuracy
        INFEASIBLE: Problem has no feasible solution
        UNBOUNDED: Objective is unbounded below
        MAX_ITERATIONS: Iteration or time limit reached
        NUMERICAL_ERROR: Numerical issues encountered or the solver crashed
        UNSOLVED: Problem not yet solved
    """

    OPTIMAL = "optimal"
    OPTIMAL_INACCURATE = "optimal_inaccurate"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    MAX_ITERATIONS = "max_iterations"
    NUMERICAL_ERROR = "numerical_error"
    UNSOLVED = "unsolved"

    def __str__(self) -> str:
        return self.value

    @property
    def is_successful(self) -> bool:
        """True if an optimal solution was found."""
        return self == Status.OPTIMAL

    @property
    def has_solution(self) -> bool:
        """True if a (possibly inaccurate) optimal solution is available."""
        return self in (Status.OPTIMAL, Status.OPTIMAL_INACCURATE)

    @classmethod
    def from_cvxpy(cls, status: Optional[str]) -> "Status":
        """Translate a cvxpy problem status string."""
        status_map = {
            cp.OPTIMAL: cls.OPTIMAL,
            cp.OPTIMAL_INACCURATE: cls.OPTIMAL_INACCURATE,
            cp.INFEASIBLE: cls.INFEASIBLE,
            cp.INFEASIBLE_INACCURATE: cls.INFEASIBLE,
            cp.UNBOUNDED: cls.UNBOUNDED,
            cp.UNBOUNDED_INACCURATE: cls.UNBOUNDED,
            cp.USER_LIMIT: cls.MAX_ITERATIONS,
            cp.SOLVER_ERROR: cls.NUMERICAL_ERROR,
        }
        if status is None:
            return cls.UNSOLVED
        return status_map.get(status, cls.NUMERICAL_ERROR)


@dataclass
class SolveResult:
    """
    Result of solving a model.

    Attributes:
        status: Solver status
        objective: Optimal objective value (nan when unsolved)
        primal: Solved values keyed by variable name
        iterations: Number of solver iterations (0 if unknown)
        solve_time: Wall clock time in seconds

    Example:
        >>> result = model.solve()
        >>> if result.status == Status.OPTIMAL:
        ...     print(result.get_value("p"))
    """

    status: Status
    objective: float
    primal: Dict[str, np.ndarray]
    iterations: int = 0
    solve_time: float = 0.0

    # Optional metadata
    problem_info: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"SolveResult(status={self.status}, "
            f"objective={self.objective:.6g}, "
            f"iterations={self.iterations}, "
            f"time={self.solve_time:.4f}s)"
        )

    def get_value(self, name: str) -> np.ndarray:
        """
        Get the solution value of a named variable.

        Args:
            name: Variable name used when the variable was added

        Returns:
            Optimal value with the variable's shape
        """
        return self.primal[name]

    def summary(self) -> str:
        """Return a formatted summary of the solve result."""
        lines = [
            "=" * 50,
            "qpsens Solve Summary",
            "=" * 50,
            f"Status:           {self.status}",
            f"Objective:        {self.objective:.10g}",
            f"Iterations:       {self.iterations}",
            f"Solve time:       {self.solve_time:.4f} s",
            "-" * 50,
        ]
        for name, value in self.primal.items():
            lines.append(f"{name:<18}shape={np.shape(value)}")
        lines.append("=" * 50)
        return "\n".join(lines)
