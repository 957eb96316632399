"""
Solution Maps and Their Sensitivities
=====================================

A *solution map* is a function from named parameter groups to the optimal
value of selected decision variables:

    solution(params) -> outputs

Each call builds a fresh ``Model``, solves it and returns the outputs. The
forward rule pushes a tangent on the parameter groups through the solved
model and returns the directional derivative of the outputs. The reverse
rule pulls a cotangent (seed) on the outputs back to one gradient per
parameter group.

Both rules take the ``SolvedModel`` explicitly, so repeated sensitivity
queries reuse one solve:

    >>> ucm = UnitCommitmentMap()
    >>> solved = ucm.solve(params)
    >>> dp = ucm.forward(solved, {"load1_demand": 0.1 * np.ones(4)})
    >>> grads = ucm.reverse(solved, np.ones((2, 4)))

Subclasses describe how parameter groups feed the model channels through
``build``, ``push_forward`` and ``pull_back``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from .exceptions import InfeasibleSpecError, SolveFailedError
from .model import Model
from .result import SolveResult, Status
from .utils.validation import validate_array, validate_params, validate_tangent


@dataclass
class SolvedModel:
    """
    A model solved for one set of parameters.

    Attributes:
        model: The solved model (owns the cached derivative)
        params: Validated parameter groups used to build it
        output: Value returned by the solution map
        result: Raw solve result
    """

    model: Model
    params: Dict[str, np.ndarray]
    output: np.ndarray
    result: SolveResult

    @property
    def status(self) -> Status:
        return self.result.status


class SolutionMap(ABC):
    """
    Differentiable map from parameter groups to optimal outputs.

    Subclasses set ``outputs`` (names of the variables returned by the map)
    and implement ``param_shapes``, ``build``, ``push_forward`` and
    ``pull_back``.

    With a single output the map returns that variable's value. With
    several outputs of equal shape it returns them stacked along a new
    leading axis.

    Args:
        params: Solver parameters forwarded to ``Model.solve``
    """

    outputs: Tuple[str, ...] = ()

    def __init__(self, params: Optional[Dict[str, Any]] = None):
        self.solver_params = params

    @property
    @abstractmethod
    def param_shapes(self) -> Dict[str, Tuple[int, ...]]:
        """Shape of every parameter group, in call order."""

    @abstractmethod
    def build(self, params: Dict[str, np.ndarray]) -> Model:
        """Build a fresh model for validated parameter groups."""

    @abstractmethod
    def push_forward(self, tangent: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        """Map a parameter tangent onto channel perturbations."""

    @abstractmethod
    def pull_back(self, gradients: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        """Map channel gradients onto parameter-group gradients."""

    # ------------------------------------------------------------------

    def _gather(self, values: Mapping[str, np.ndarray]) -> np.ndarray:
        if len(self.outputs) == 1:
            return np.asarray(values[self.outputs[0]], dtype=np.float64)
        return np.stack([np.asarray(values[name], dtype=np.float64) for name in self.outputs])

    def _scatter(self, seed: np.ndarray) -> Dict[str, np.ndarray]:
        if len(self.outputs) == 1:
            return {self.outputs[0]: seed}
        return {name: seed[i] for i, name in enumerate(self.outputs)}

    def solve(self, params: Mapping[str, Any]) -> SolvedModel:
        """
        Build and solve a fresh model.

        Args:
            params: Parameter groups keyed by name

        Returns:
            SolvedModel to pass to ``forward`` / ``reverse``

        Raises:
            InfeasibleSpecError: If a group is missing, unknown or misshaped
            SolveFailedError: If the solver does not report an optimal solution
        """
        values = validate_params(params, self.param_shapes)
        model = self.build(values)
        result = model.solve(self.solver_params)
        if not model.is_solved:
            raise SolveFailedError(result.status)
        output = self._gather({name: model.value(name) for name in self.outputs})
        return SolvedModel(model=model, params=values, output=output, result=result)

    def solution(self, params: Mapping[str, Any]) -> np.ndarray:
        """Optimal outputs for ``params``."""
        return self.solve(params).output

    def forward(
        self,
        solved: SolvedModel,
        tangent: Optional[Mapping[str, Any]] = None,
    ) -> np.ndarray:
        """
        Directional derivative of the outputs.

        Groups missing from ``tangent`` are treated as unperturbed.

        Args:
            solved: Result of ``solve`` on this map
            tangent: Perturbation per parameter group

        Returns:
            Perturbation of the outputs, shaped like ``solved.output``

        Raises:
            NotSolvedError: If ``solved.model`` has no usable solution
        """
        model = solved.model
        model.check_solved()
        tangent = validate_tangent(tangent, self.param_shapes)
        for channel, delta in self.push_forward(tangent).items():
            model.set_forward_perturbation(channel, delta)
        deltas = model.compute_forward()
        return self._gather(deltas)

    def reverse(self, solved: SolvedModel, seed: Any) -> Dict[str, np.ndarray]:
        """
        Gradient of ``<seed, outputs>`` with respect to each parameter group.

        Args:
            solved: Result of ``solve`` on this map
            seed: Cotangent shaped like ``solved.output``

        Returns:
            Gradient per parameter group, shaped like the group

        Raises:
            NotSolvedError: If ``solved.model`` has no usable solution
        """
        model = solved.model
        model.check_solved()
        seed = validate_array("seed", seed, solved.output.shape)
        for name, value in self._scatter(seed).items():
            model.set_backward_seed(name, value)
        gradients = self.pull_back(model.compute_backward())

        shapes = self.param_shapes
        for name, grad in gradients.items():
            if grad.shape != shapes[name]:
                raise InfeasibleSpecError(
                    f"pull-back of '{name}' has shape {grad.shape}, expected {shapes[name]}"
                )
        return gradients

    def value_and_forward(
        self,
        params: Mapping[str, Any],
        tangent: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Solve and push one tangent: ``(outputs, d outputs)``."""
        solved = self.solve(params)
        return solved.output, self.forward(solved, tangent)
