"""
Sensitivity Analysis of Ridge Regression
========================================

Fits a line to noisy points with ridge regression and measures how much
each data point moves the fitted slope.

The fit is written as a quadratic program:

    minimize    e'e + alpha (w^2 + b^2)
    subject to  e_i = y_i - w x_i - b,   i = 1..N

where ``w`` and ``b`` are slope and intercept and ``e`` the residuals.
This is not the usual way to solve ridge regression; it keeps the data
points as solver channels (``x`` as constraint coefficients, ``y`` as
constraint constants) so the solve can be differentiated with respect
to them.

The sensitivity of point ``i`` is the derivative of ``w`` along

    e_i = (y_i + theta_y) - w (x_i + theta_x) - b,   theta_x = 1, theta_y = -1

which shifts the point one unit right and one unit down. Points at the
extremes of the segment move the slope the most.

Example:
    >>> data = generate_data(n=100, seed=42)
    >>> fit = fit_ridge(data.X, data.Y, alpha=0.1)
    >>> grad = point_sensitivities(fit)
    >>> payload = plot_data(fit, grad)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import cvxpy as cp
import numpy as np
from scipy import linalg

from .model import Model
from .sensitivity import SolutionMap, SolvedModel


@dataclass
class RidgeData:
    """
    Noisy points around a line.

    Attributes:
        X: Abscissae (N,)
        Y: Ordinates (N,)
        slope: Slope used to generate the points
        intercept: Intercept used to generate the points
    """

    X: np.ndarray
    Y: np.ndarray
    slope: float
    intercept: float


def generate_data(n: int = 100, seed: int = 42, noise: float = 0.8) -> RidgeData:
    """
    Construct noisy (gaussian) points around a random line.

    The slope is ``2|N(0,1)|`` and the intercept ``U(0,1)``.

    Args:
        n: Number of points
        seed: Random seed
        noise: Standard deviation of the vertical noise

    Returns:
        RidgeData
    """
    rng = np.random.RandomState(seed)
    w = 2 * abs(rng.randn())
    b = rng.rand()
    X = rng.randn(n)
    Y = w * X + b + noise * rng.randn(n)
    return RidgeData(X=X, Y=Y, slope=float(w), intercept=float(b))


class RidgeMap(SolutionMap):
    """
    Solution map ``(x, y) -> (w, b)`` of the ridge QP.

    Args:
        n_points: Number of data points
        alpha: Regularization constant
        params: Solver parameters
    """

    outputs = ("w", "b")

    def __init__(self, n_points: int, alpha: float = 0.1, params: Optional[Dict[str, Any]] = None):
        super().__init__(params)
        self.n_points = int(n_points)
        self.alpha = float(alpha)

    @property
    def param_shapes(self) -> Dict[str, Tuple[int, ...]]:
        return {"x": (self.n_points,), "y": (self.n_points,)}

    def build(self, params: Dict[str, np.ndarray]) -> Model:
        model = Model(name="ridge")
        w = model.add_variable("w")  # angular coefficient
        b = model.add_variable("b")  # linear coefficient
        e = model.add_variable("e", self.n_points)  # approximation error

        x = model.add_coefficient("x", params["x"])
        y = model.add_constant("y", params["y"])

        # constraint defining approximation error
        model.add_constraint("cons", e == y - cp.multiply(x, w) - b)
        # objective minimizing squared error and ridge penalty
        model.minimize(cp.sum_squares(e) + self.alpha * (cp.square(w) + cp.square(b)))
        return model

    def push_forward(self, tangent: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        return {"x": tangent["x"], "y": tangent["y"]}

    def pull_back(self, gradients: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        return {"x": gradients["x"], "y": gradients["y"]}


@dataclass
class RidgeFit:
    """
    A solved ridge regression.

    Attributes:
        ridge_map: Solution map used for the fit
        solved: Solved model, reused by sensitivity queries
    """

    ridge_map: RidgeMap
    solved: SolvedModel

    @property
    def X(self) -> np.ndarray:
        return self.solved.params["x"]

    @property
    def Y(self) -> np.ndarray:
        return self.solved.params["y"]

    @property
    def w(self) -> float:
        return float(self.solved.output[0])

    @property
    def b(self) -> float:
        return float(self.solved.output[1])

    @property
    def objective(self) -> float:
        return ridge_objective(self.X, self.Y, self.w, self.b, self.ridge_map.alpha)


def fit_ridge(
    X: np.ndarray,
    Y: np.ndarray,
    alpha: float = 0.1,
    params: Optional[Dict[str, Any]] = None,
) -> RidgeFit:
    """
    Fit slope and intercept by solving the ridge QP.

    Args:
        X: Abscissae (N,)
        Y: Ordinates (N,)
        alpha: Regularization constant
        params: Solver parameters

    Returns:
        RidgeFit
    """
    ridge_map = RidgeMap(len(Y), alpha=alpha, params=params)
    solved = ridge_map.solve({"x": X, "y": Y})
    return RidgeFit(ridge_map=ridge_map, solved=solved)


def ridge_objective(X: np.ndarray, Y: np.ndarray, w: float, b: float, alpha: float) -> float:
    """Residual sum of squares plus ``alpha (w^2 + b^2)``."""
    residual = np.asarray(Y) - w * np.asarray(X) - b
    return float(residual @ residual + alpha * (w * w + b * b))


def closed_form_ridge(X: np.ndarray, Y: np.ndarray, alpha: float = 0.1) -> Tuple[float, float]:
    """
    Slope and intercept from the ridge normal equations.

    Solves ``(Z'Z + alpha I) [w, b] = Z'Y`` with ``Z = [X, 1]``; the
    intercept is penalized like the slope.
    """
    Z = np.column_stack([np.asarray(X, dtype=np.float64), np.ones(len(X))])
    theta = linalg.solve(Z.T @ Z + alpha * np.eye(2), Z.T @ np.asarray(Y), assume_a="pos")
    return float(theta[0]), float(theta[1])


def point_sensitivities(
    fit: RidgeFit,
    normalize: bool = True,
    method: str = "forward",
) -> np.ndarray:
    """
    Magnitude of the slope's sensitivity to each data point.

    Args:
        fit: Solved ridge regression
        normalize: Scale the result to unit 2-norm
        method: "forward" pushes one tangent per point through the solved
            model; "reverse" pulls one seed on ``w`` back to every point

    Returns:
        Array of shape (N,)
    """
    ridge_map, solved = fit.ridge_map, fit.solved
    n = ridge_map.n_points

    if method == "forward":
        grad = np.zeros(n)
        for i in range(n):
            unit = np.zeros(n)
            unit[i] = 1.0
            dw, _ = ridge_map.forward(solved, {"x": unit, "y": -unit})
            grad[i] = abs(dw)
    elif method == "reverse":
        grads = ridge_map.reverse(solved, np.array([1.0, 0.0]))
        grad = np.abs(grads["x"] - grads["y"])
    else:
        raise ValueError(f"Unknown method '{method}', expected 'forward' or 'reverse'")

    if normalize:
        norm = linalg.norm(grad)
        if norm > 0:
            grad = grad / norm
    return grad


def plot_data(fit: RidgeFit, sensitivities: np.ndarray) -> Dict[str, Any]:
    """
    Presentation payload for a scatter plot of point sensitivities.

    Nothing is drawn; the result can be handed to any plotting library.

    Returns:
        Dict with the points, per-point colors and marker sizes, and the
        end-points of the fitted line
    """
    X, Y = fit.X, fit.Y
    lo, hi = float(np.min(X)), float(np.max(X))
    return {
        "x": X,
        "y": Y,
        "colors": ["red" if s > 0 else "blue" for s in sensitivities],
        "sizes": 25 * np.abs(sensitivities),
        "line_x": np.array([lo, hi]),
        "line_y": np.array([lo * fit.w + fit.b, hi * fit.w + fit.b]),
    }
