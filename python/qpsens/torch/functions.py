"""
Autograd Functions for Differentiable Solution Maps
===================================================

This module exposes any ``SolutionMap`` to PyTorch autograd.

- Reverse mode (``backward``) seeds the map's outputs with the incoming
  gradient and pulls it back with ``SolutionMap.reverse``.
- Forward mode (``jvp``, used by ``torch.autograd.forward_ad``) pushes the
  input tangents through ``SolutionMap.forward``.

Both directions reuse the model solved in the forward pass; nothing is
re-solved during differentiation.
"""

from __future__ import annotations

from typing import Any, Tuple

try:
    import torch
    from torch import Tensor
    from torch.autograd import Function

    HAS_TORCH = True
except ImportError:
    HAS_TORCH = False
    Tensor = Any
    Function = object

from ..exceptions import InfeasibleSpecError
from .utils import check_torch_available, to_numpy, to_torch


class SolutionMapFunction(Function):
    """
    Autograd function wrapping ``SolutionMap.solution``.

    Forward: Builds and solves a fresh model for the given parameter groups
    Backward: ``SolutionMap.reverse`` on the solved model
    JVP: ``SolutionMap.forward`` on the solved model

    Inputs after ``ctx`` are the solution map, the tuple of group names,
    then one tensor per group in that order.
    """

    @staticmethod
    def forward(ctx, solution_map, names: Tuple[str, ...], *values: Tensor) -> Tensor:
        device, dtype = values[0].device, values[0].dtype
        params = {name: to_numpy(value) for name, value in zip(names, values)}
        solved = solution_map.solve(params)

        # The solved model is not a tensor; keep it on the context
        ctx.solution_map = solution_map
        ctx.solved = solved
        ctx.names = names
        ctx.device = device
        ctx.dtype = dtype

        return to_torch(solved.output, device, dtype)

    @staticmethod
    def backward(ctx, grad_output: Tensor):
        needs_grad = ctx.needs_input_grad[2:]
        if not any(needs_grad):
            return (None, None) + (None,) * len(ctx.names)

        grads = ctx.solution_map.reverse(ctx.solved, to_numpy(grad_output))
        input_grads = tuple(
            to_torch(grads[name], ctx.device, ctx.dtype) if needed else None
            for name, needed in zip(ctx.names, needs_grad)
        )
        return (None, None) + input_grads

    @staticmethod
    def jvp(ctx, _map_tangent, _names_tangent, *tangents: Tensor) -> Tensor:
        tangent = {
            name: to_numpy(t) for name, t in zip(ctx.names, tangents) if t is not None
        }
        d_output = ctx.solution_map.forward(ctx.solved, tangent)
        return to_torch(d_output, ctx.device, ctx.dtype)


def solution_map_apply(solution_map, **params: Any) -> Tensor:
    """
    Differentiable evaluation of a solution map.

    Args:
        solution_map: Any ``SolutionMap``
        **params: One tensor (or array-like) per parameter group

    Returns:
        Optimal outputs as a tensor, with the dtype and device of the
        first tensor argument (float64 on CPU if none is a tensor)

    Example:
        >>> from qpsens import UnitCommitmentMap
        >>> gen_costs = torch.tensor([1000., 1500.], requires_grad=True)
        >>> p = solution_map_apply(UnitCommitmentMap(), load1_demand=d1,
        ...                        load2_demand=d2, gen_costs=gen_costs,
        ...                        noload_costs=c0)
        >>> p.sum().backward()
    """
    check_torch_available()

    names = tuple(solution_map.param_shapes)
    unknown = sorted(set(params) - set(names))
    if unknown:
        raise InfeasibleSpecError(f"unknown parameter groups {unknown}")
    missing = [name for name in names if name not in params]
    if missing:
        raise InfeasibleSpecError(f"missing parameter groups {missing}")

    reference = next(
        (v for v in params.values() if isinstance(v, torch.Tensor)),
        None,
    )
    device = reference.device if reference is not None else torch.device("cpu")
    dtype = reference.dtype if reference is not None else torch.float64

    values = [
        params[name] if isinstance(params[name], torch.Tensor)
        else torch.as_tensor(params[name], dtype=dtype, device=device)
        for name in names
    ]
    return SolutionMapFunction.apply(solution_map, names, *values)
