"""
Tensor/array conversion between PyTorch and solution maps.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import torch


def to_numpy(tensor: torch.Tensor) -> np.ndarray:
    """Detached float64 copy of a parameter group, as solution maps expect."""
    return tensor.detach().cpu().numpy().astype(np.float64)


def to_torch(
    array: np.ndarray,
    device: torch.device,
    dtype: torch.dtype,
) -> torch.Tensor:
    """
    Wrap a solution-map output or gradient as a tensor.

    Args:
        array: Output, tangent or gradient returned by a solution map
        device: Device of the parameter tensors
        dtype: Dtype of the parameter tensors

    Returns:
        Tensor on ``device`` with ``dtype``
    """
    import torch

    array = np.ascontiguousarray(array, dtype=np.float64)
    return torch.from_numpy(array).to(device=device, dtype=dtype)


def check_torch_available() -> None:
    """Fail early when qpsens.torch is used without PyTorch installed."""
    try:
        import torch  # noqa: F401
    except ImportError as e:
        raise ImportError(
            "qpsens.torch needs PyTorch; install it with: pip install qpsens[torch]"
        ) from e
