"""
qpsens Model Builder
====================

Named registry around a cvxpy problem.

Variables, constraints and *channels* are registered by name. A channel is
a cvxpy ``Parameter`` through which parameter perturbations enter the
sensitivity computation: a constraint constant (right-hand side), a linear
objective coefficient, or a constraint coefficient.

After a successful solve the model exposes four sensitivity operations:

- ``set_forward_perturbation(channel, value)``
- ``compute_forward() -> {variable: directional derivative}``
- ``set_backward_seed(variable, value)``
- ``compute_backward() -> {channel: gradient}``

Both directions reuse the derivative cached by the solve; the model is
never re-solved to answer a sensitivity query.

Example:
    >>> model = Model("toy")
    >>> x = model.add_variable("x", 2, lb=0.0)
    >>> c = model.add_cost("c", [1.0, 2.0])
    >>> rhs = model.add_constant("budget", 1.0)
    >>> model.add_constraint("budget", cp.sum(x) == rhs)
    >>> model.minimize(c @ x + cp.sum_squares(x))
    >>> result = model.solve()
    >>> model.set_forward_perturbation("budget", 1.0)
    >>> model.compute_forward()["x"]
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Union

import cvxpy as cp
import numpy as np

from .exceptions import InfeasibleSpecError, NotSolvedError, QpsensError, UnknownNameError

if TYPE_CHECKING:
    from .result import SolveResult


class ChannelKind(Enum):
    """Role of a channel in the model."""

    CONSTRAINT_CONSTANT = "constraint_constant"
    OBJECTIVE_COEFFICIENT = "objective_coefficient"
    CONSTRAINT_COEFFICIENT = "constraint_coefficient"


class ModelState(Enum):
    """
    Lifecycle of a model.

    BUILT -> SOLVED -> SENSITIVITY_READY, or BUILT -> FAILED when the
    solver does not return a usable solution.
    """

    BUILT = "built"
    SOLVED = "solved"
    SENSITIVITY_READY = "sensitivity_ready"
    FAILED = "failed"


@dataclass
class Channel:
    """
    Named perturbation channel.

    Attributes:
        name: Channel name
        kind: Role of the channel
        parameter: Underlying cvxpy Parameter
    """

    name: str
    kind: ChannelKind
    parameter: cp.Parameter

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.parameter.shape

    @property
    def value(self) -> np.ndarray:
        return np.asarray(self.parameter.value, dtype=np.float64)

    def __repr__(self) -> str:
        return f"Channel({self.name}, {self.kind.value}, shape={self.shape})"


def _as_array(value: Any, shape: Tuple[int, ...]) -> np.ndarray:
    """Read a cvxpy value/delta/gradient as a float array of ``shape``."""
    if value is None:
        return np.zeros(shape)
    return np.asarray(value, dtype=np.float64).reshape(shape)


def _broadcast(name: str, value: Any, shape: Tuple[int, ...]) -> np.ndarray:
    """Accept a scalar or an array of exactly ``shape``."""
    array = np.asarray(value, dtype=np.float64)
    if array.ndim == 0:
        return np.full(shape, float(array))
    if array.shape != tuple(shape):
        raise InfeasibleSpecError(f"'{name}' has shape {array.shape}, expected {tuple(shape)}")
    return array


class Model:
    """
    Optimization model with named variables, constraints and channels.

    The objective is always minimized. The model can be solved once;
    registering new elements after the solve is an error.

    Example:
        >>> model = Model("unit_commitment")
        >>> p = model.add_variable("p", (2, 4), lb=0.0)
        >>> demand = model.add_constant("energy_balance", np.ones(4))
        >>> model.add_constraint("energy_balance", cp.sum(p, axis=0) == demand)
        >>> model.minimize(cp.sum(p))
        >>> model.solve().status
        <Status.OPTIMAL: 'optimal'>
    """

    def __init__(self, name: str = ""):
        """
        Create a new model.

        Args:
            name: Optional model name
        """
        self.name = name
        self._vars: Dict[str, cp.Variable] = {}
        self._constrs: Dict[str, List[cp.Constraint]] = {}
        self._channels: Dict[str, Channel] = {}
        self._objective: Any = 0.0
        self._problem: Optional[cp.Problem] = None
        self._state = ModelState.BUILT
        self._result: Optional["SolveResult"] = None

        # Sensitivity input registers
        self._forward_in: Dict[str, np.ndarray] = {}
        self._backward_in: Dict[str, np.ndarray] = {}

    @property
    def num_vars(self) -> int:
        """Number of named variables in the model."""
        return len(self._vars)

    @property
    def num_constrs(self) -> int:
        """Number of named constraint families in the model."""
        return len(self._constrs)

    @property
    def num_channels(self) -> int:
        """Number of perturbation channels in the model."""
        return len(self._channels)

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def is_solved(self) -> bool:
        """True once a usable solution is available."""
        return self._state in (ModelState.SOLVED, ModelState.SENSITIVITY_READY)

    @property
    def result(self) -> Optional["SolveResult"]:
        """Result of the last solve, or None."""
        return self._result

    @property
    def variables(self) -> List[str]:
        return list(self._vars)

    @property
    def channels(self) -> List[str]:
        return list(self._channels)

    @property
    def constraints(self) -> List[str]:
        return list(self._constrs)

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def _check_new(self, name: str, registry: Dict[str, Any], kind: str) -> None:
        if self._problem is not None:
            raise QpsensError("Model cannot be modified after it has been solved")
        if name in registry:
            raise UnknownNameError(f"{kind} '{name}' is already defined")

    def add_variable(
        self,
        name: str,
        shape: Union[int, Tuple[int, ...]] = (),
        lb: Optional[Any] = None,
        ub: Optional[Any] = None,
    ) -> cp.Variable:
        """
        Add a named decision variable.

        Bounds are added as constraints named ``{name}_lb`` / ``{name}_ub``.

        Args:
            name: Variable name
            shape: Variable shape (scalar by default)
            lb: Lower bound, scalar or array (None for free)
            ub: Upper bound, scalar or array (None for free)

        Returns:
            The cvxpy Variable
        """
        self._check_new(name, self._vars, "variable")
        var = cp.Variable(shape, name=name)
        self._vars[name] = var
        if lb is not None:
            self.add_constraint(f"{name}_lb", var >= lb)
        if ub is not None:
            self.add_constraint(f"{name}_ub", var <= ub)
        return var

    def _add_channel(self, name: str, value: Any, kind: ChannelKind) -> cp.Parameter:
        self._check_new(name, self._channels, "channel")
        value = np.asarray(value, dtype=np.float64)
        param = cp.Parameter(value.shape, name=name, value=value)
        self._channels[name] = Channel(name, kind, param)
        return param

    def add_constant(self, name: str, value: Any) -> cp.Parameter:
        """
        Add a constraint-constant channel (a right-hand side).

        Args:
            name: Channel name, usually the name of the constraint it feeds
            value: Current value of the constant

        Returns:
            The cvxpy Parameter to use in constraints
        """
        return self._add_channel(name, value, ChannelKind.CONSTRAINT_CONSTANT)

    def add_cost(self, name: str, value: Any) -> cp.Parameter:
        """Add a linear objective coefficient channel."""
        return self._add_channel(name, value, ChannelKind.OBJECTIVE_COEFFICIENT)

    def add_coefficient(self, name: str, value: Any) -> cp.Parameter:
        """Add a channel for coefficients multiplying variables in constraints."""
        return self._add_channel(name, value, ChannelKind.CONSTRAINT_COEFFICIENT)

    def add_constraint(
        self,
        name: str,
        constraint: Union[cp.Constraint, Sequence[cp.Constraint]],
    ) -> List[cp.Constraint]:
        """
        Add a named constraint or family of constraints.

        Args:
            name: Constraint name
            constraint: cvxpy constraint, or a list of them

        Returns:
            List of the added constraints
        """
        self._check_new(name, self._constrs, "constraint")
        if isinstance(constraint, (list, tuple)):
            constrs = list(constraint)
        else:
            constrs = [constraint]
        self._constrs[name] = constrs
        return constrs

    def minimize(self, expr: Any) -> None:
        """
        Set the objective to minimize.

        Args:
            expr: Convex cvxpy expression (linear or quadratic)
        """
        if self._problem is not None:
            raise QpsensError("Model cannot be modified after it has been solved")
        self._objective = expr

    @property
    def problem(self) -> cp.Problem:
        """The cvxpy problem; built on first access."""
        if self._problem is None:
            constraints = [c for group in self._constrs.values() for c in group]
            self._problem = cp.Problem(cp.Minimize(self._objective), constraints)
        return self._problem

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def variable(self, name: str) -> cp.Variable:
        if name not in self._vars:
            raise UnknownNameError(f"Unknown variable '{name}'")
        return self._vars[name]

    def constraint(self, name: str) -> List[cp.Constraint]:
        if name not in self._constrs:
            raise UnknownNameError(f"Unknown constraint '{name}'")
        return self._constrs[name]

    def channel(self, name: str) -> Channel:
        if name not in self._channels:
            raise UnknownNameError(f"Unknown channel '{name}'")
        return self._channels[name]

    def value(self, name: str) -> np.ndarray:
        """
        Solved value of a variable.

        Raises:
            NotSolvedError: If the model has no usable solution
        """
        self.check_solved()
        var = self.variable(name)
        return _as_array(var.value, var.shape)

    # ------------------------------------------------------------------
    # Solving
    # ------------------------------------------------------------------

    def solve(self, params: Optional[Dict[str, Any]] = None) -> "SolveResult":
        """
        Solve the model.

        Args:
            params: Solver parameters (tolerance, max_iterations, etc.)

        Returns:
            SolveResult with status, objective and primal values
        """
        from .solver import solve

        return solve(self, params)

    def _record_result(self, result: "SolveResult", accepted: bool) -> None:
        self._result = result
        self._state = ModelState.SOLVED if accepted else ModelState.FAILED
        self.reset_sensitivities()

    def check_solved(self) -> None:
        """Raise NotSolvedError unless a usable solution is available."""
        if not self.is_solved:
            raise NotSolvedError(
                f"Model '{self.name}' is {self._state.value}; "
                "sensitivities require a successful solve"
            )

    # ------------------------------------------------------------------
    # Sensitivities
    # ------------------------------------------------------------------

    def set_forward_perturbation(self, name: str, value: Any) -> None:
        """
        Set the perturbation of a channel for the next forward computation.

        Args:
            name: Channel name
            value: Scalar (broadcast) or array of the channel's shape
        """
        self.check_solved()
        channel = self.channel(name)
        self._forward_in[name] = _broadcast(f"d{name}", value, channel.shape)

    def compute_forward(self) -> Dict[str, np.ndarray]:
        """
        Propagate the channel perturbations to the variables.

        Channels without a perturbation are treated as unperturbed.

        Returns:
            Directional derivative of every variable, keyed by name
        """
        self.check_solved()
        for name, channel in self._channels.items():
            channel.parameter.delta = self._forward_in.get(name, np.zeros(channel.shape))
        self.problem.derivative()
        self._state = ModelState.SENSITIVITY_READY
        return {name: _as_array(var.delta, var.shape) for name, var in self._vars.items()}

    def set_backward_seed(self, name: str, value: Any) -> None:
        """
        Set the cotangent of a variable for the next backward computation.

        Args:
            name: Variable name
            value: Scalar (broadcast) or array of the variable's shape
        """
        self.check_solved()
        var = self.variable(name)
        self._backward_in[name] = _broadcast(f"seed {name}", value, var.shape)

    def compute_backward(self) -> Dict[str, np.ndarray]:
        """
        Pull the variable cotangents back onto the channels.

        Variables without a seed get a zero cotangent.

        Returns:
            Gradient of every channel, keyed by name
        """
        self.check_solved()
        for name, var in self._vars.items():
            var.gradient = self._backward_in.get(name, np.zeros(var.shape))
        self.problem.backward()
        self._state = ModelState.SENSITIVITY_READY
        return {
            name: _as_array(channel.parameter.gradient, channel.shape)
            for name, channel in self._channels.items()
        }

    def reset_sensitivities(self) -> None:
        """Clear all forward perturbations and backward seeds."""
        self._forward_in.clear()
        self._backward_in.clear()

    def __repr__(self) -> str:
        return (
            f"Model(name={self.name!r}, vars={self.num_vars}, "
            f"constrs={self.num_constrs}, channels={self.num_channels}, "
            f"state={self._state.value})"
        )
