"""
pytest configuration and fixtures for qpsens tests.
"""

import cvxpy as cp
import numpy as np
import pytest

from qpsens import Model, UnitCommitmentMap, fit_ridge, generate_data


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(scope="module")
def uc_params():
    """
    Reference unit-commitment scenario.

    Total demand [2.0, 2.4, 2.8, 3.2]; generator 1 is cheaper and runs up
    to its 3.0 limit, generator 2 covers the remaining 0.2 in period 4.
    """
    return {
        "load1_demand": np.array([1.0, 1.2, 1.4, 1.6]),
        "load2_demand": np.array([1.0, 1.2, 1.4, 1.6]),
        "gen_costs": np.array([1000.0, 1500.0]),
        "noload_costs": np.array([500.0, 1000.0]),
    }


@pytest.fixture(scope="module")
def ucm():
    return UnitCommitmentMap()


@pytest.fixture(scope="module")
def uc_solved(ucm, uc_params):
    """Unit-commitment model solved once and shared by sensitivity tests."""
    return ucm.solve(uc_params)


@pytest.fixture(scope="module")
def ridge_data():
    return generate_data(n=100, seed=42)


@pytest.fixture(scope="module")
def ridge_fit(ridge_data):
    return fit_ridge(ridge_data.X, ridge_data.Y, alpha=0.1)


def build_toy_model(q=(1.0, 2.0), r=1.0):
    """
    Small equality-constrained QP.

    minimize:   ||x||^2 + q'x
    subject to: x_1 + x_2 = r

    With q = [1, 2], r = 1: x = [0.75, 0.25], dx/dr = [0.5, 0.5],
    dx/dq_1 = [-0.25, 0.25].
    """
    model = Model("toy")
    x = model.add_variable("x", 2)
    cost = model.add_cost("q", np.asarray(q, dtype=np.float64))
    rhs = model.add_constant("budget", r)
    model.add_constraint("budget", cp.sum(x) == rhs)
    model.minimize(cp.sum_squares(x) + cost @ x)
    return model


@pytest.fixture
def toy_model_factory():
    return build_toy_model


@pytest.fixture
def toy_model():
    """Unsolved toy QP (see ``build_toy_model``)."""
    return build_toy_model()


@pytest.fixture
def solved_toy_model():
    model = build_toy_model()
    model.solve()
    return model


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")
