"""Quaternion utilities in JAX.

Quaternions are stored in (w, x, y, z) order throughout the library.
"""

import jax
import jax.numpy as jnp
from typing import Union

# Type aliases
Array = jax.Array
Scalar = Union[float, Array]

IDENTITY_QUATERNION = (1.0, 0.0, 0.0, 0.0)


def normalize_quaternions(quaternions: Array) -> Array:
    """Normalize quaternions to unit length."""
    return quaternions / jnp.linalg.norm(quaternions, axis=-1, keepdims=True)


def quaternion_to_matrix(quaternions: Array) -> Array:
    """
    Convert quaternions to rotation matrices.
    
    Args:
        quaternions: (..., 4) array of quaternions in (w, x, y, z) format
        
    Returns:
        (..., 3, 3) array of rotation matrices
    """
    quaternions = normalize_quaternions(quaternions)
    w, x, y, z = jnp.moveaxis(quaternions, -1, 0)
    
    xx, yy, zz = x*x, y*y, z*z
    wx, wy, wz = w*x, w*y, w*z
    xy, xz, yz = x*y, x*z, y*z
    
    return jnp.stack([
        jnp.stack([1 - 2*(yy + zz), 2*(xy - wz), 2*(xz + wy)], axis=-1),
        jnp.stack([2*(xy + wz), 1 - 2*(xx + zz), 2*(yz - wx)], axis=-1),
        jnp.stack([2*(xz - wy), 2*(yz + wx), 1 - 2*(xx + yy)], axis=-1)
    ], axis=-2)


def quaternion_from_axis_angle(axis: Array, angle: Scalar) -> Array:
    """
    Build the quaternion rotating by *angle* radians about *axis*.

    Args:
        axis: (..., 3) rotation axis, normalized here
        angle: scalar or (...,) rotation angle in radians

    Returns:
        (..., 4) unit quaternion in (w, x, y, z) format
    """
    axis = jnp.asarray(axis, dtype=jnp.float64)
    axis = axis / jnp.linalg.norm(axis, axis=-1, keepdims=True)
    half = 0.5 * jnp.asarray(angle, dtype=axis.dtype)
    w = jnp.cos(half)[..., None]
    xyz = axis * jnp.sin(half)[..., None]
    return jnp.concatenate([w, xyz], axis=-1)


def quaternion_multiply(q1: Array, q2: Array) -> Array:
    """
    Hamilton product q1 * q2.

    The result applies *q2* first and then *q1*, so
    ``quaternion_multiply(origin, local)`` expresses *local* in the frame
    described by *origin*.
    """
    w1, x1, y1, z1 = jnp.moveaxis(q1, -1, 0)
    w2, x2, y2, z2 = jnp.moveaxis(q2, -1, 0)
    product = jnp.stack([
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2,
    ], axis=-1)
    # keep the invariant that stored orientations are unit length
    return normalize_quaternions(product)


def rotate_vector(quaternions: Array, v: Array) -> Array:
    """
    Rotate vector(s) by quaternion(s).

    Args:
        quaternions: (..., 4) rotation in (w, x, y, z) format
        v: (..., 3) vector(s)

    Returns:
        (..., 3) rotated vector(s)
    """
    R = quaternion_to_matrix(quaternions)
    return jnp.einsum('...ij,...j->...i', R, jnp.asarray(v, dtype=R.dtype))
