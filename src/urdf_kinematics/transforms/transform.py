"""Homogeneous rigid-body transforms implemented with JAX."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Optional

import jax
import jax.numpy as jnp
from jax.tree_util import register_pytree_node_class

from .rotation import quaternion_to_matrix

Array = jax.Array

@register_pytree_node_class  # let Transform3d pass through jit / vmap
@dataclass(frozen=True)
class Transform3d:
    """Immutable homogeneous transform(s) of shape (..., 4, 4)."""
    matrix: Array

    # Constructors
    @classmethod
    def from_matrix(cls, matrix: Array) -> "Transform3d":
        matrix = jnp.asarray(matrix)
        if matrix.shape[-2:] != (4, 4):
            raise ValueError(f"matrix must have shape (...,4,4), got {matrix.shape}")
        return cls(matrix)

    @classmethod
    def from_pos_quat(cls, pos: Array, quat: Optional[Array] = None) -> "Transform3d":
        pos = jnp.asarray(pos, dtype=jnp.float64)
        if pos.shape[-1] != 3:
            raise ValueError(f"pos must have shape (...,3), got {pos.shape}")
        batch_shape = pos.shape[:-1]
        m = jnp.broadcast_to(jnp.eye(4, dtype=pos.dtype), batch_shape + (4, 4))

        m = m.at[..., :3, 3].set(pos)
        if quat is not None:
            m = m.at[..., :3, :3].set(quaternion_to_matrix(jnp.asarray(quat, dtype=pos.dtype)))
        return cls(m)

    @classmethod
    def identity(cls, batch_shape: Tuple[int, ...] = (), *, dtype=jnp.float64) -> "Transform3d":
        m = jnp.eye(4, dtype=dtype)
        return cls(jnp.broadcast_to(m, batch_shape + (4, 4)))

    # PyTree boiler-plate
    def tree_flatten(self):
        return (self.matrix,), None

    @classmethod
    def tree_unflatten(cls, aux, children):
        (matrix,) = children
        return cls(matrix)

    # Basic operations
    def compose(self, other: "Transform3d") -> "Transform3d":
        """Self ∘ other (apply *other* first, then self)."""
        return Transform3d(jnp.matmul(self.matrix, other.matrix))

    def inverse(self) -> "Transform3d":
        """Rigid inverse using the block structure."""
        R = self.matrix[..., :3, :3]
        t = self.matrix[..., :3, 3]

        R_inv = jnp.swapaxes(R, -1, -2)
        t_inv = -jnp.matmul(R_inv, t[..., None])[..., 0]

        m = jnp.broadcast_to(jnp.eye(4, dtype=self.matrix.dtype), self.matrix.shape)
        m = m.at[..., :3, :3].set(R_inv)
        m = m.at[..., :3, 3].set(t_inv)
        return Transform3d(m)

    def transform_points(self, points: Array) -> Array:
        """
        Apply a single (4, 4) transform to a point of shape (3,) or to
        points of shape (N, 3).
        """
        if self.matrix.ndim != 2:
            raise ValueError("transform_points expects an unbatched transform")
        points = jnp.asarray(points, dtype=self.matrix.dtype)
        if points.shape[-1] != 3 or points.ndim > 2:
            raise ValueError("points must have shape (3,) or (N,3)")

        R = self.matrix[:3, :3]
        t = self.matrix[:3, 3]
        return jnp.matmul(points, R.T) + t

    # Convenience helpers
    def get_position(self) -> Array:
        return self.matrix[..., :3, 3]

    def get_rotation_matrix(self) -> Array:
        return self.matrix[..., :3, :3]
