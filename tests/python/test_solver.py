"""
Tests for the solver interface, its parameters and status handling.
"""

import cvxpy as cp
import numpy as np
import pytest
from cvxpy.error import DPPError

from qpsens import DEFAULT_PARAMS, Model, ModelState, SolveResult, Status, solve
from qpsens.solver import _solver_options, resolve_params


class TestParams:
    """Tests for solver parameter handling."""

    def test_defaults(self):
        settings = resolve_params()
        assert settings == DEFAULT_PARAMS
        assert settings is not DEFAULT_PARAMS

    def test_aliases(self):
        settings = resolve_params({"tol": 1e-6, "max_iters": 500})
        assert settings["tolerance"] == 1e-6
        assert settings["max_iterations"] == 500

    def test_long_names_win(self):
        settings = resolve_params({"tolerance": 1e-5, "tol": 1e-3})
        assert settings["tolerance"] == 1e-5

    def test_solver_options(self):
        options = _solver_options(resolve_params({"tol": 1e-6, "max_iters": 200}))
        assert options == {"eps_abs": 1e-6, "eps_rel": 1e-6, "max_iters": 200, "mode": "dense"}

    def test_derivative_mode(self):
        assert DEFAULT_PARAMS["derivative_mode"] == "dense"
        options = _solver_options(resolve_params({"derivative_mode": "lsmr"}))
        assert options["mode"] == "lsmr"

    def test_solver_default_mode(self):
        options = _solver_options(resolve_params({"derivative_mode": None}))
        assert "mode" not in options


class TestStatus:
    """Tests for status translation."""

    @pytest.mark.parametrize(
        "cvxpy_status, expected",
        [
            (cp.OPTIMAL, Status.OPTIMAL),
            (cp.OPTIMAL_INACCURATE, Status.OPTIMAL_INACCURATE),
            (cp.INFEASIBLE, Status.INFEASIBLE),
            (cp.UNBOUNDED, Status.UNBOUNDED),
            (cp.USER_LIMIT, Status.MAX_ITERATIONS),
            (cp.SOLVER_ERROR, Status.NUMERICAL_ERROR),
            (None, Status.UNSOLVED),
        ],
    )
    def test_from_cvxpy(self, cvxpy_status, expected):
        assert Status.from_cvxpy(cvxpy_status) == expected

    def test_flags(self):
        assert Status.OPTIMAL.is_successful
        assert not Status.OPTIMAL_INACCURATE.is_successful
        assert Status.OPTIMAL_INACCURATE.has_solution
        assert not Status.INFEASIBLE.has_solution


class TestSolve:
    """Tests for ``solve`` on a model."""

    def test_result(self, toy_model):
        result = solve(toy_model, {"tol": 1e-8})

        assert isinstance(result, SolveResult)
        assert result.status == Status.OPTIMAL
        assert result.solve_time > 0
        assert result.iterations >= 0
        assert set(result.primal) == {"x"}
        assert "objective" in repr(result)

    def test_inaccurate_accepted(self, toy_model, monkeypatch):
        monkeypatch.setattr(
            Status, "from_cvxpy", classmethod(lambda cls, status: cls.OPTIMAL_INACCURATE)
        )
        with pytest.warns(UserWarning, match="inaccurate"):
            result = solve(toy_model)

        assert result.status == Status.OPTIMAL_INACCURATE
        assert toy_model.state == ModelState.SOLVED
        np.testing.assert_allclose(toy_model.value("x"), [0.75, 0.25], atol=1e-5)

    def test_inaccurate_rejected(self, toy_model, monkeypatch):
        monkeypatch.setattr(
            Status, "from_cvxpy", classmethod(lambda cls, status: cls.OPTIMAL_INACCURATE)
        )
        with pytest.warns(UserWarning, match="rejected"):
            solve(toy_model, {"allow_inaccurate": False})

        assert toy_model.state == ModelState.FAILED
        assert not toy_model.is_solved

    def test_parameter_values_are_used(self, toy_model_factory):
        model = toy_model_factory(q=(0.0, 0.0), r=2.0)
        model.solve()
        np.testing.assert_allclose(model.value("x"), [1.0, 1.0], atol=1e-5)

    def test_non_dpp_model_raises(self):
        """A product of two parameters cannot be differentiated."""
        model = Model("non_dpp")
        x = model.add_variable("x", lb=0.0, ub=1.0)
        c = model.add_cost("c", 2.0)
        model.minimize(c * c * x)

        with pytest.raises(DPPError):
            solve(model)
        assert model.state == ModelState.BUILT
