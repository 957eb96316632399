"""
qpsens: Sensitivity Analysis Through Convex Optimization Solves
===============================================================

qpsens differentiates the optimal solution of a convex (linear or
quadratic) program with respect to its input parameters. A *solution map*
wraps model building and solving behind ``solution(params) -> outputs``;
its forward rule returns directional derivatives of the outputs and its
reverse rule returns the gradient of each parameter group.

Solving and the derivative of the solution are delegated to cvxpy and
diffcp (SCS backend).

Quick Start
-----------
>>> import numpy as np
>>> from qpsens import UnitCommitmentMap
>>>
>>> ucm = UnitCommitmentMap()
>>> params = {
...     "load1_demand": [1.0, 1.2, 1.4, 1.6],
...     "load2_demand": [1.0, 1.2, 1.4, 1.6],
...     "gen_costs": [1000.0, 1500.0],
...     "noload_costs": [500.0, 1000.0],
... }
>>> solved = ucm.solve(params)
>>> solved.output.shape
(2, 4)
>>> dp = ucm.forward(solved, {"load1_demand": 0.1 * np.ones(4)})
>>> grads = ucm.reverse(solved, np.ones((2, 4)))

Ridge regression point sensitivities:

>>> from qpsens import generate_data, fit_ridge, point_sensitivities
>>> data = generate_data(n=100, seed=42)
>>> fit = fit_ridge(data.X, data.Y, alpha=0.1)
>>> grad = point_sensitivities(fit)
"""

__version__ = "0.1.0"
__author__ = "qpsens Contributors"

# Import public API
from .model import Model, Channel, ChannelKind, ModelState
from .solver import solve, DEFAULT_PARAMS
from .result import SolveResult, Status
from .sensitivity import SolutionMap, SolvedModel
from .unit_commitment import UnitCommitmentData, UnitCommitmentMap, unit_commitment
from .ridge import (
    RidgeData,
    RidgeFit,
    RidgeMap,
    closed_form_ridge,
    fit_ridge,
    generate_data,
    plot_data,
    point_sensitivities,
    ridge_objective,
)
from .exceptions import (
    QpsensError,
    InfeasibleSpecError,
    SolveFailedError,
    NotSolvedError,
    UnknownNameError,
)

__all__ = [
    # Version
    "__version__",

    # Model building
    "Model",
    "Channel",
    "ChannelKind",
    "ModelState",

    # Solving
    "solve",
    "DEFAULT_PARAMS",

    # Results
    "SolveResult",
    "Status",

    # Solution maps
    "SolutionMap",
    "SolvedModel",
    "UnitCommitmentData",
    "UnitCommitmentMap",
    "unit_commitment",
    "RidgeData",
    "RidgeFit",
    "RidgeMap",
    "closed_form_ridge",
    "fit_ridge",
    "generate_data",
    "plot_data",
    "point_sensitivities",
    "ridge_objective",

    # Exceptions
    "QpsensError",
    "InfeasibleSpecError",
    "SolveFailedError",
    "NotSolvedError",
    "UnknownNameError",
]


def info() -> str:
    """Return information about the qpsens installation."""
    import platform

    import cvxpy
    import diffcp

    lines = [
        f"qpsens version: {__version__}",
        f"Python version: {platform.python_version()}",
        f"Platform: {platform.platform()}",
        f"cvxpy version: {cvxpy.__version__}",
        f"diffcp version: {getattr(diffcp, '__version__', 'unknown')}",
    ]

    try:
        import torch

        lines.append(f"PyTorch version: {torch.__version__}")
    except ImportError:
        lines.append("PyTorch: not installed")

    return "\n".join(lines)
