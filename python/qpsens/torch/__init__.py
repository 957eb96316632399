"""
qpsens PyTorch Integration
==========================

Solution maps as differentiable PyTorch operations, in both reverse mode
(``Tensor.backward``) and forward mode (``torch.autograd.forward_ad``).

Quick Start
-----------
>>> import torch
>>> from qpsens import UnitCommitmentMap
>>> from qpsens.torch import solution_map_apply
>>>
>>> d1 = torch.tensor([1.0, 1.2, 1.4, 1.6], dtype=torch.float64, requires_grad=True)
>>> p = solution_map_apply(
...     UnitCommitmentMap(),
...     load1_demand=d1,
...     load2_demand=d1.detach().clone(),
...     gen_costs=torch.tensor([1000.0, 1500.0], dtype=torch.float64),
...     noload_costs=torch.tensor([500.0, 1000.0], dtype=torch.float64),
... )
>>> p.sum().backward()
>>> d1.grad

Forward mode
------------
>>> import torch.autograd.forward_ad as fwAD
>>> with fwAD.dual_level():
...     dual = fwAD.make_dual(d1.detach(), 0.1 * torch.ones(4, dtype=torch.float64))
...     p = solution_map_apply(UnitCommitmentMap(), load1_demand=dual, ...)
...     dp = fwAD.unpack_dual(p).tangent
"""

from .functions import SolutionMapFunction, solution_map_apply
from .layers import SolutionMapLayer

__all__ = [
    "SolutionMapFunction",
    "solution_map_apply",
    "SolutionMapLayer",
]
