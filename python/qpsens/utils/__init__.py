"""Shared helpers for qpsens."""

from .validation import validate_array, validate_params, validate_tangent

__all__ = ["validate_array", "validate_params", "validate_tangent"]
