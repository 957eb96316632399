"""
Tests for PyTorch integration of solution maps.

These tests verify:
1. Forward pass returns the optimal outputs
2. Backward pass matches the reverse rule
3. Forward-mode AD matches the forward rule
4. Error handling and dtype/device propagation
"""

import pytest
import numpy as np

try:
    import torch
    import torch.autograd.forward_ad as fwAD
    HAS_TORCH = True
except ImportError:
    HAS_TORCH = False

from qpsens import RidgeMap, UnitCommitmentMap
from qpsens.exceptions import InfeasibleSpecError

# Skip all tests if torch not available
pytestmark = pytest.mark.skipif(not HAS_TORCH, reason="PyTorch not installed")

ATOL = 1e-3


@pytest.fixture
def dtype():
    """Default dtype for tests."""
    return torch.float64


@pytest.fixture
def uc_tensors(uc_params, dtype):
    return {
        name: torch.tensor(value, dtype=dtype, requires_grad=True)
        for name, value in uc_params.items()
    }


class TestForwardPass:

    def test_output(self, uc_tensors, uc_solved):
        from qpsens.torch import solution_map_apply

        p = solution_map_apply(UnitCommitmentMap(), **uc_tensors)

        assert isinstance(p, torch.Tensor)
        assert p.shape == (2, 4)
        assert p.dtype == torch.float64
        np.testing.assert_allclose(p.detach().numpy(), uc_solved.output, atol=1e-4)

    def test_float32(self, uc_params):
        from qpsens.torch import solution_map_apply

        params = {k: torch.tensor(v, dtype=torch.float32) for k, v in uc_params.items()}
        p = solution_map_apply(UnitCommitmentMap(), **params)
        assert p.dtype == torch.float32

    def test_array_inputs(self, uc_params):
        from qpsens.torch import solution_map_apply

        p = solution_map_apply(UnitCommitmentMap(), **uc_params)
        assert p.dtype == torch.float64
        assert p.device.type == "cpu"

    def test_missing_group(self, uc_tensors):
        from qpsens.torch import solution_map_apply

        del uc_tensors["gen_costs"]
        with pytest.raises(InfeasibleSpecError):
            solution_map_apply(UnitCommitmentMap(), **uc_tensors)

    def test_unknown_group(self, uc_tensors):
        from qpsens.torch import solution_map_apply

        with pytest.raises(InfeasibleSpecError):
            solution_map_apply(UnitCommitmentMap(), extra=torch.ones(1), **uc_tensors)


class TestBackward:

    def test_matches_reverse(self, uc_tensors, ucm, uc_solved):
        from qpsens.torch import solution_map_apply

        seed = np.arange(8.0).reshape(2, 4) / 8
        p = solution_map_apply(UnitCommitmentMap(), **uc_tensors)
        (p * torch.tensor(seed)).sum().backward()

        expected = ucm.reverse(uc_solved, seed)
        for name, tensor in uc_tensors.items():
            assert tensor.grad is not None
            np.testing.assert_allclose(tensor.grad.numpy(), expected[name], atol=ATOL)

    def test_total_output(self, uc_tensors):
        from qpsens.torch import solution_map_apply

        p = solution_map_apply(UnitCommitmentMap(), **uc_tensors)
        p.sum().backward()

        ones = np.ones(4)
        np.testing.assert_allclose(uc_tensors["load1_demand"].grad.numpy(), ones, atol=ATOL)
        np.testing.assert_allclose(uc_tensors["load2_demand"].grad.numpy(), ones, atol=ATOL)

    def test_partial_requires_grad(self, uc_params, dtype):
        from qpsens.torch import solution_map_apply

        params = {k: torch.tensor(v, dtype=dtype) for k, v in uc_params.items()}
        params["load1_demand"].requires_grad_(True)

        p = solution_map_apply(UnitCommitmentMap(), **params)
        p.sum().backward()

        assert params["load1_demand"].grad is not None
        assert params["gen_costs"].grad is None

    def test_ridge(self, ridge_data, dtype):
        from qpsens.torch import solution_map_apply

        x = torch.tensor(ridge_data.X, dtype=dtype)
        y = torch.tensor(ridge_data.Y, dtype=dtype, requires_grad=True)
        theta = solution_map_apply(RidgeMap(100), x=x, y=y)
        theta[0].backward()

        Z = np.column_stack([ridge_data.X, np.ones(100)])
        Minv = np.linalg.inv(Z.T @ Z + 0.1 * np.eye(2))
        expected = Minv[0, 0] * ridge_data.X + Minv[0, 1]
        np.testing.assert_allclose(y.grad.numpy(), expected, rtol=1e-3, atol=1e-6)


class TestForwardMode:

    def test_jvp_matches_forward(self, uc_params, ucm, uc_solved, dtype):
        from qpsens.torch import solution_map_apply

        d1 = np.array([0.1, -0.05, 0.02, 0.0])
        params = {k: torch.tensor(v, dtype=dtype) for k, v in uc_params.items()}

        with fwAD.dual_level():
            params["load1_demand"] = fwAD.make_dual(
                params["load1_demand"], torch.tensor(d1, dtype=dtype)
            )
            p = solution_map_apply(UnitCommitmentMap(), **params)
            tangent = fwAD.unpack_dual(p).tangent

        expected = ucm.forward(uc_solved, {"load1_demand": d1})
        assert tangent is not None
        np.testing.assert_allclose(tangent.numpy(), expected, atol=ATOL)
        np.testing.assert_allclose(tangent.numpy().sum(axis=0), d1, atol=ATOL)


class TestLayer:

    def test_layer(self, uc_tensors, uc_solved):
        from qpsens.torch import SolutionMapLayer

        layer = SolutionMapLayer(UnitCommitmentMap())
        p = layer(**uc_tensors)
        np.testing.assert_allclose(p.detach().numpy(), uc_solved.output, atol=1e-4)

        p.sum().backward()
        assert uc_tensors["gen_costs"].grad.shape == (2,)

    def test_repr(self):
        from qpsens.torch import SolutionMapLayer

        layer = SolutionMapLayer(UnitCommitmentMap())
        assert "UnitCommitmentMap" in repr(layer)
        assert "gen_costs" in repr(layer)


class TestUtils:

    def test_roundtrip(self, dtype):
        from qpsens.torch.utils import to_numpy, to_torch

        t = torch.arange(6, dtype=torch.float32).reshape(2, 3)
        a = to_numpy(t)
        assert a.dtype == np.float64
        back = to_torch(a, torch.device("cpu"), dtype)
        assert back.dtype == dtype
        assert back.shape == (2, 3)
