"""qpsens Solver Interface."""

from __future__ import annotations

import time
import warnings
from typing import TYPE_CHECKING, Any, Dict, Optional

import numpy as np
from cvxpy.error import DCPError, DPPError

from .result import SolveResult, Status

if TYPE_CHECKING:
    from .model import Model

DEFAULT_PARAMS: Dict[str, Any] = {
    "tolerance": 1e-8,
    "max_iterations": 100000,
    "verbose": False,
    "derivative_mode": "dense",
    "allow_inaccurate": True,
}


def resolve_params(params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Merge user parameters over DEFAULT_PARAMS, accepting short aliases."""
    params = params or {}
    settings = dict(DEFAULT_PARAMS)
    settings["tolerance"] = params.get("tolerance", params.get("tol", settings["tolerance"]))
    settings["max_iterations"] = params.get(
        "max_iterations", params.get("max_iters", settings["max_iterations"])
    )
    for key in ("verbose", "derivative_mode", "allow_inaccurate"):
        settings[key] = params.get(key, settings[key])
    return settings


def _solver_options(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Translate settings into keyword arguments for diffcp/SCS."""
    options = {
        "eps_abs": settings["tolerance"],
        "eps_rel": settings["tolerance"],
        "max_iters": int(settings["max_iterations"]),
    }
    if settings["derivative_mode"] is not None:
        options["mode"] = settings["derivative_mode"]
    return options


def solve(model: "Model", params: Optional[Dict[str, Any]] = None) -> SolveResult:
    """
    Solve a model so that it can be differentiated.

    The problem is solved through cvxpy with ``requires_grad=True``, which
    routes it to diffcp (SCS backend) and caches the derivative of the
    solution map on the problem.

    Args:
        model: Model to solve
        params: Solver parameters:
            tolerance / tol: SCS absolute and relative tolerance
            max_iterations / max_iters: SCS iteration limit
            verbose: Forwarded to the solver
            derivative_mode: diffcp derivative mode ("dense", "lsmr", "lsqr", ...);
                None keeps the diffcp default
            allow_inaccurate: Accept OPTIMAL_INACCURATE with a warning

    Returns:
        SolveResult; the model records whether it may be differentiated
    """
    start_time = time.perf_counter()
    settings = resolve_params(params)
    problem = model.problem

    try:
        problem.solve(
            requires_grad=True,
            verbose=settings["verbose"],
            **_solver_options(settings),
        )
        status = Status.from_cvxpy(problem.status)
    except (DCPError, DPPError):
        raise
    except Exception as e:
        warnings.warn(f"Solver failed on model '{model.name}': {e}")
        status = Status.NUMERICAL_ERROR

    if status.has_solution:
        values = {name: model.variable(name).value for name in model.variables}
        primal = {
            name: np.asarray(value, dtype=np.float64)
            for name, value in values.items()
            if value is not None
        }
        objective = float(problem.value)
    else:
        primal = {}
        objective = float("nan")

    iterations = getattr(problem.solver_stats, "num_iters", None) or 0

    result = SolveResult(
        status=status,
        objective=objective,
        primal=primal,
        iterations=int(iterations),
        solve_time=time.perf_counter() - start_time,
        problem_info={
            "num_vars": model.num_vars,
            "num_constrs": model.num_constrs,
            "num_channels": model.num_channels,
        },
    )

    accepted = status.is_successful
    if status == Status.OPTIMAL_INACCURATE:
        if settings["allow_inaccurate"]:
            warnings.warn(
                f"Solver returned {status} for model '{model.name}'. "
                "Sensitivities may be inaccurate."
            )
            accepted = True
        else:
            warnings.warn(f"Solver returned {status} for model '{model.name}'; rejected.")

    model._record_result(result, accepted)
    return result
