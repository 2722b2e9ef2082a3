"""
JAX-based spatial transforms used by the kinematic tree.

This module provides:
- quaternion helpers (rotation module), all in (w, x, y, z) order
- Transform3d, an immutable homogeneous transform

All functions are pure and stateless; node state lives in ``core``.
"""

from .rotation import (
    normalize_quaternions,
    quaternion_from_axis_angle,
    quaternion_multiply,
    quaternion_to_matrix,
    rotate_vector,
)
from .transform import Transform3d

__all__ = [
    "Transform3d",
    "normalize_quaternions",
    "quaternion_from_axis_angle",
    "quaternion_multiply",
    "quaternion_to_matrix",
    "rotate_vector",
]
