"""Input validation utilities."""

from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from ..exceptions import InfeasibleSpecError

Shape = Tuple[int, ...]


def validate_array(name: str, value: Any, shape: Shape) -> np.ndarray:
    """
    Convert ``value`` to a float array and check its shape.

    Raises:
        InfeasibleSpecError: If the shape differs or the data is not finite
    """
    try:
        array = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InfeasibleSpecError(f"'{name}' is not numeric: {e}") from e

    if array.shape != tuple(shape):
        raise InfeasibleSpecError(
            f"'{name}' has shape {array.shape}, expected {tuple(shape)}"
        )
    if not np.all(np.isfinite(array)):
        raise InfeasibleSpecError(f"'{name}' contains NaN or infinite values")
    return array


def validate_params(
    params: Mapping[str, Any],
    shapes: Mapping[str, Shape],
) -> Dict[str, np.ndarray]:
    """
    Validate a full set of parameter groups.

    Every group in ``shapes`` must be present and no other group may be given.

    Returns:
        Dict of float arrays in the order of ``shapes``
    """
    unknown = sorted(set(params) - set(shapes))
    if unknown:
        raise InfeasibleSpecError(f"unknown parameter groups {unknown}")
    missing = [name for name in shapes if name not in params]
    if missing:
        raise InfeasibleSpecError(f"missing parameter groups {missing}")

    return {name: validate_array(name, params[name], shape) for name, shape in shapes.items()}


def validate_tangent(
    tangent: Optional[Mapping[str, Any]],
    shapes: Mapping[str, Shape],
) -> Dict[str, np.ndarray]:
    """
    Validate a forward-mode tangent, zero-filling groups it leaves out.

    Returns:
        Dict of float arrays covering every group in ``shapes``
    """
    tangent = tangent or {}
    unknown = sorted(set(tangent) - set(shapes))
    if unknown:
        raise InfeasibleSpecError(f"unknown tangent groups {unknown}")

    result = {}
    for name, shape in shapes.items():
        if tangent.get(name) is None:
            result[name] = np.zeros(shape)
        else:
            result[name] = validate_array(f"d{name}", tangent[name], shape)
    return result
