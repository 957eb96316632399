#!/usr/bin/env python3
"""
Unit commitment: forward and reverse sensitivities of the optimal dispatch.

The solution map takes the demand of two loads and the generator costs and
returns the optimal power output p (2 generators x 4 periods).
"""

import numpy as np

import qpsens
from qpsens import UnitCommitmentMap

load1_demand = np.array([1.0, 1.2, 1.4, 1.6])
load2_demand = np.array([1.0, 1.2, 1.4, 1.6])
gen_costs = np.array([1000.0, 1500.0])
noload_costs = np.array([500.0, 1000.0])


def main():
    print(f"qpsens version: {qpsens.__version__}")
    print("=" * 70)
    print("Unit commitment solution map")
    print("=" * 70)

    ucm = UnitCommitmentMap()
    solved = ucm.solve({
        "load1_demand": load1_demand,
        "load2_demand": load2_demand,
        "gen_costs": gen_costs,
        "noload_costs": noload_costs,
    })
    print(solved.result.summary())
    print("p =")
    print(np.round(solved.output, 4))

    # Forward rule: perturb every input group
    tangent = {
        "load1_demand": np.zeros_like(load1_demand) + 0.1,
        "load2_demand": np.zeros_like(load2_demand) + 0.2,
        "gen_costs": np.zeros_like(gen_costs) + 0.1,
        "noload_costs": np.zeros_like(noload_costs) + 0.4,
    }
    dp = ucm.forward(solved, tangent)
    print("\nForward sensitivity dp =")
    print(np.round(dp, 4))

    # Reverse rule: pull back a seed of ones
    grads = ucm.reverse(solved, np.ones(solved.output.shape))
    print("\nReverse sensitivity (seed of ones):")
    for name, grad in grads.items():
        print(f"  d{name:<14} = {np.round(grad, 4)}")


if __name__ == "__main__":
    main()
