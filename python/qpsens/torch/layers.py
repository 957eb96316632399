"""
Differentiable Solution-Map Layers
==================================

PyTorch nn.Module wrappers around solution maps.
"""

from __future__ import annotations

try:
    import torch.nn as nn
    from torch import Tensor

    HAS_TORCH = True
except ImportError:
    HAS_TORCH = False
    nn = type("Module", (), {})  # Placeholder

from .functions import solution_map_apply
from .utils import check_torch_available


class SolutionMapLayer(nn.Module if HAS_TORCH else object):
    """
    Layer evaluating a solution map on keyword tensors.

    Args:
        solution_map: Any ``SolutionMap``

    Example:
        >>> from qpsens import UnitCommitmentMap
        >>> layer = SolutionMapLayer(UnitCommitmentMap())
        >>> p = layer(load1_demand=d1, load2_demand=d2,
        ...           gen_costs=costs, noload_costs=c0)
        >>> p.sum().backward()
        >>> costs.grad
    """

    def __init__(self, solution_map) -> None:
        check_torch_available()
        super().__init__()
        self.solution_map = solution_map

    def forward(self, **params: Tensor) -> Tensor:
        return solution_map_apply(self.solution_map, **params)

    def extra_repr(self) -> str:
        groups = ", ".join(self.solution_map.param_shapes)
        return f"{type(self.solution_map).__name__}({groups})"
