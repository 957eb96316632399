"""
Unit Commitment
===============

Small unit-commitment instance wrapped as a differentiable solution map.

Two generators serve two loads over four periods:

    minimize    sum_{g,t} Cp_g p[g,t] + Cnl_g u[g,t]
    subject to  sum_g p[g,t] = D1[t] + D2[t]              (energy balance)
                Pmin_g u[g,t] <= p[g,t] <= Pmax_g u[g,t]  (generation limits)
                |p[g,t] - p[g,t-1]| <= 60 RR_g             (ramp rates, p[g,0] = P0_g)
                0 <= u <= 1,  p >= 0

Parameter groups: ``load1_demand`` and ``load2_demand`` (one value per
period), ``gen_costs`` and ``noload_costs`` (one value per generator).
The map returns the optimal power output ``p`` with shape
``(n_units, n_periods)``.

Perturbation conventions:

- Both demand groups feed the one energy-balance constant, which is their
  sum. A forward tangent adds the demand tangents; the reverse rule gives
  every demand group the gradient of that constant.
- A per-generator cost feeds one objective coefficient per period. A
  forward tangent is broadcast over periods; the reverse rule sums over
  periods.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import cvxpy as cp
import numpy as np

from .model import Model
from .sensitivity import SolutionMap


@dataclass(frozen=True)
class UnitCommitmentData:
    """
    Fixed data of the unit-commitment instance.

    Attributes:
        unit_codes: Generator identifiers
        load_names: Load identifiers
        n_periods: Number of time periods
        p_min: Minimum power output per generator (pu)
        p_max: Maximum power output per generator (pu)
        ramp_rate: Ramp rate per generator (pu/min)
        ramp_minutes: Minutes per period over which the ramp rate applies
        p_initial: Power output before the first period (pu)
    """

    unit_codes: Tuple[int, ...] = (1, 2)
    load_names: Tuple[str, ...] = ("Load1", "Load2")
    n_periods: int = 4
    p_min: Tuple[float, ...] = (0.5, 0.5)
    p_max: Tuple[float, ...] = (3.0, 3.0)
    ramp_rate: Tuple[float, ...] = (0.25, 0.25)
    ramp_minutes: float = 60.0
    p_initial: Tuple[float, ...] = field(default=(0.0, 0.0))

    @property
    def n_units(self) -> int:
        return len(self.unit_codes)

    @property
    def demand_groups(self) -> Tuple[str, ...]:
        return tuple(f"load{k}_demand" for k in range(1, len(self.load_names) + 1))

    def per_unit(self, values: Sequence[float], width: int = 1) -> np.ndarray:
        """Per-generator data repeated over ``width`` columns: (n_units, width)."""
        array = np.asarray(values, dtype=np.float64)
        if array.shape != (self.n_units,):
            raise ValueError(f"expected {self.n_units} per-unit values, got {array.shape}")
        return np.repeat(array.reshape(-1, 1), width, axis=1)


class UnitCommitmentMap(SolutionMap):
    """
    Solution map of the unit-commitment problem.

    Args:
        data: Fixed problem data
        params: Solver parameters

    Example:
        >>> ucm = UnitCommitmentMap()
        >>> p = ucm.solution({
        ...     "load1_demand": [1.0, 1.2, 1.4, 1.6],
        ...     "load2_demand": [1.0, 1.2, 1.4, 1.6],
        ...     "gen_costs": [1000.0, 1500.0],
        ...     "noload_costs": [500.0, 1000.0],
        ... })
        >>> p.shape
        (2, 4)
    """

    outputs = ("p",)

    def __init__(
        self,
        data: Optional[UnitCommitmentData] = None,
        params: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(params)
        self.data = data or UnitCommitmentData()

    @property
    def param_shapes(self) -> Dict[str, Tuple[int, ...]]:
        shapes = {name: (self.data.n_periods,) for name in self.data.demand_groups}
        shapes["gen_costs"] = (self.data.n_units,)
        shapes["noload_costs"] = (self.data.n_units,)
        return shapes

    def _per_cell(self, per_unit: np.ndarray) -> np.ndarray:
        return self.data.per_unit(per_unit, self.data.n_periods)

    def build(self, params: Dict[str, np.ndarray]) -> Model:
        data = self.data
        n_units, n_periods = data.n_units, data.n_periods

        model = Model(name="unit_commitment")

        # Variables
        u = model.add_variable("u", (n_units, n_periods), lb=0.0, ub=1.0)  # commitment
        p = model.add_variable("p", (n_units, n_periods), lb=0.0)  # power output

        # Channels
        demand = model.add_constant(
            "energy_balance", sum(params[name] for name in data.demand_groups)
        )
        gen_cost = model.add_cost("gen_cost", self._per_cell(params["gen_costs"]))
        noload_cost = model.add_cost("noload_cost", self._per_cell(params["noload_costs"]))

        # Energy balance
        model.add_constraint("energy_balance", cp.sum(p, axis=0) == demand)

        # Generation limits
        p_min = data.per_unit(data.p_min, n_periods)
        p_max = data.per_unit(data.p_max, n_periods)
        model.add_constraint("generation_min", cp.multiply(p_min, u) <= p)
        model.add_constraint("generation_max", p <= cp.multiply(p_max, u))

        # Ramp rates
        ramp = data.ramp_minutes * np.asarray(data.ramp_rate, dtype=np.float64)
        p0 = data.per_unit(data.p_initial)
        ramp_up = [p[:, 0:1] - p0 <= data.per_unit(ramp)]
        ramp_down = [p0 - p[:, 0:1] <= data.per_unit(ramp)]
        if n_periods > 1:
            ramp_up.append(p[:, 1:] - p[:, :-1] <= data.per_unit(ramp, n_periods - 1))
            ramp_down.append(p[:, :-1] - p[:, 1:] <= data.per_unit(ramp, n_periods - 1))
        model.add_constraint("ramp_up", ramp_up)
        model.add_constraint("ramp_down", ramp_down)

        # Objective
        model.minimize(cp.sum(cp.multiply(gen_cost, p)) + cp.sum(cp.multiply(noload_cost, u)))
        return model

    def push_forward(self, tangent: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        return {
            "energy_balance": sum(tangent[name] for name in self.data.demand_groups),
            "gen_cost": self._per_cell(tangent["gen_costs"]),
            "noload_cost": self._per_cell(tangent["noload_costs"]),
        }

    def pull_back(self, gradients: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        result = {name: gradients["energy_balance"].copy() for name in self.data.demand_groups}
        result["gen_costs"] = gradients["gen_cost"].sum(axis=1)
        result["noload_costs"] = gradients["noload_cost"].sum(axis=1)
        return result


def unit_commitment(
    load1_demand: Sequence[float],
    load2_demand: Sequence[float],
    gen_costs: Sequence[float],
    noload_costs: Sequence[float],
    params: Optional[Dict[str, Any]] = None,
) -> np.ndarray:
    """
    Optimal power output ``p`` of the default instance.

    Args:
        load1_demand: Demand of the first load per period
        load2_demand: Demand of the second load per period
        gen_costs: Generation cost coefficient per generator ($/pu)
        noload_costs: Fixed activation cost per generator ($)
        params: Solver parameters

    Returns:
        Array of shape (2, 4)
    """
    return UnitCommitmentMap(params=params).solution(
        {
            "load1_demand": load1_demand,
            "load2_demand": load2_demand,
            "gen_costs": gen_costs,
            "noload_costs": noload_costs,
        }
    )
