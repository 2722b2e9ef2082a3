"""Joint state and the per-joint-type local transform update.

A joint node carries a :class:`Joint` component. Calling
:func:`set_joint_value` on the node refreshes every dependent mimic joint,
then moves the node relative to the pose it had before any joint motion
was applied. Updates are never cumulative.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import jax
import jax.numpy as jnp
from flax import struct

from ..transforms.rotation import (
    quaternion_from_axis_angle,
    quaternion_multiply,
    rotate_vector,
)

if TYPE_CHECKING:
    from .node import SpatialNode

Array = jax.Array
JointValues = Tuple[Optional[float], ...]

logger = logging.getLogger(__name__)


class JointType(str, enum.Enum):
    """Motion type of a joint."""
    FIXED = "fixed"
    CONTINUOUS = "continuous"
    REVOLUTE = "revolute"
    PRISMATIC = "prismatic"
    PLANAR = "planar"
    FLOATING = "floating"

    @property
    def dof(self) -> int:
        """Number of degrees of freedom for this joint type."""
        return _DOF_COUNTS[self]

    @property
    def has_limits(self) -> bool:
        """Whether motion limits are enforced for this joint type."""
        return self in (JointType.REVOLUTE, JointType.PRISMATIC)


_DOF_COUNTS = {
    JointType.FIXED: 0,
    JointType.CONTINUOUS: 1,
    JointType.REVOLUTE: 1,
    JointType.PRISMATIC: 1,
    JointType.PLANAR: 3,
    JointType.FLOATING: 6,
}


@struct.dataclass
class JointLimit:
    """Lower and upper bound of a revolute or prismatic joint."""
    lower: float = 0.0
    upper: float = 0.0

    def clamp(self, value: float) -> float:
        """Clip *value* into [lower, upper]."""
        return max(self.lower, min(self.upper, value))


@struct.dataclass
class MimicParams:
    """Affine map ``v * multiplier + offset`` from a source joint's values.

    Attributes:
        source: The joint node being mimicked. A relation only; the mimic
                joint does not own it. Static so the record stays a valid
                pytree.
        offset: Added after scaling.
        multiplier: Scale applied to each source value.
    """
    source: Optional["SpatialNode"] = struct.field(pytree_node=False, default=None)
    offset: float = 0.0
    multiplier: float = 1.0

    def apply(self, value: Optional[float]) -> Optional[float]:
        """Map one source value; None (no change requested) passes through."""
        if value is None:
            return None
        return value * self.multiplier + self.offset


class Joint:
    """Kinematic state of a joint node.

    Attributes:
        joint_value: One float per degree of freedom; the length always
                     matches ``joint_type.dof``.
        axis: Unit motion axis in the joint's local frame.
        limit: Bounds used for revolute and prismatic joints.
        ignore_limits: Bypass clamping when True.
        origin_position: Position before any joint motion. Captured on the
                         first update and never recomputed.
        origin_quaternion: Orientation before any joint motion.
        mimic_joints: Mimic joint nodes refreshed whenever this joint is set.
        mimic: Mimic parameters when this joint is itself a mimic joint.
    """

    DEFAULT_AXIS = (1.0, 0.0, 0.0)
    # planar joints move in the local XY plane and rotate about local Z
    PLANAR_AXIS = (0.0, 0.0, 1.0)

    def __init__(self, joint_type=JointType.FIXED, axis=None, limit: Optional[JointLimit] = None,
                 ignore_limits: bool = False, mimic: Optional[MimicParams] = None):
        self._joint_type: Optional[JointType] = None
        self.joint_value: List[float] = []
        self.axis = _as_axis(self.DEFAULT_AXIS if axis is None else axis)
        self.limit = limit if limit is not None else JointLimit()
        self.ignore_limits = ignore_limits
        self.origin_position: Optional[Array] = None
        self.origin_quaternion: Optional[Array] = None
        self.mimic_joints: List["SpatialNode"] = []
        self.mimic = mimic
        self.joint_type = joint_type

    @property
    def joint_type(self) -> JointType:
        return self._joint_type

    @joint_type.setter
    def joint_type(self, value) -> None:
        value = JointType(value)
        if value is self._joint_type:
            return
        self._joint_type = value
        if value is JointType.PLANAR:
            self.axis = _as_axis(self.PLANAR_AXIS)
        self.joint_value = [0.0] * value.dof

    @property
    def angle(self) -> Optional[float]:
        """First degree of freedom, or None for fixed joints."""
        return self.joint_value[0] if self.joint_value else None

    @property
    def is_mimic(self) -> bool:
        return self.mimic is not None

    def copy(self) -> "Joint":
        other = Joint(self.joint_type, axis=self.axis, limit=self.limit,
                      ignore_limits=self.ignore_limits, mimic=self.mimic)
        other.joint_value = list(self.joint_value)
        other.origin_position = self.origin_position
        other.origin_quaternion = self.origin_quaternion
        other.mimic_joints = list(self.mimic_joints)
        return other

    def __repr__(self) -> str:
        return (f"Joint(type={self.joint_type.value!r}, value={self.joint_value!r}, "
                f"mimics={len(self.mimic_joints)})")


def _as_axis(axis) -> Array:
    axis = jnp.asarray(axis, dtype=jnp.float64)
    if axis.shape != (3,):
        raise ValueError(f"axis must have shape (3,), got {axis.shape}")
    return axis / jnp.linalg.norm(axis)


def _coerce(values: Sequence) -> JointValues:
    return tuple(None if v is None else float(v) for v in values)


def _slot(values: JointValues, index: int) -> Optional[float]:
    return values[index] if index < len(values) else None


def set_joint_value(node: "SpatialNode", *values) -> bool:
    """Set the value or values of a joint node.

    Args:
        node: A node carrying a joint component.
        *values: One value per degree of freedom. Extra values are ignored;
                 missing or ``None`` values leave that DoF unchanged.

    Returns:
        True if this joint or any of its mimic joints changed.
    """
    joint = node.joint
    values = _coerce(values)

    if joint.origin_position is None or joint.origin_quaternion is None:
        joint.origin_position = node.position
        joint.origin_quaternion = node.quaternion

    did_update = False
    for mimic_node in joint.mimic_joints:
        did_update = update_from_mimicked_joint(mimic_node, *values) or did_update

    changed = _UPDATERS[joint.joint_type](node, joint, values)
    return changed or did_update


def update_from_mimicked_joint(node: "SpatialNode", *values) -> bool:
    """Apply the mimic map to the source values and update *node* with them."""
    params = node.joint.mimic
    mapped = [params.apply(v) for v in _coerce(values)]
    return set_joint_value(node, *mapped)


def _update_fixed(node: "SpatialNode", joint: Joint, values: JointValues) -> bool:
    return False


def _update_rotational(node: "SpatialNode", joint: Joint, values: JointValues) -> bool:
    angle = _slot(values, 0)
    if angle is None or angle == joint.joint_value[0]:
        return False

    if joint.joint_type is JointType.REVOLUTE and not joint.ignore_limits:
        angle = joint.limit.clamp(angle)

    node.quaternion = quaternion_multiply(
        joint.origin_quaternion, quaternion_from_axis_angle(joint.axis, angle))

    if angle == joint.joint_value[0]:
        return False
    joint.joint_value[0] = angle
    node.world_needs_update = True
    return True


def _update_prismatic(node: "SpatialNode", joint: Joint, values: JointValues) -> bool:
    distance = _slot(values, 0)
    if distance is None or distance == joint.joint_value[0]:
        return False

    if not joint.ignore_limits:
        distance = joint.limit.clamp(distance)

    # axis as currently oriented
    moving_axis = rotate_vector(node.quaternion, joint.axis)
    node.position = joint.origin_position + moving_axis * distance

    if distance == joint.joint_value[0]:
        return False
    joint.joint_value[0] = distance
    node.world_needs_update = True
    return True


def _update_planar(node: "SpatialNode", joint: Joint, values: JointValues) -> bool:
    requested = [_slot(values, i) for i in range(3)]
    if all(r is None or r == stored for r, stored in zip(requested, joint.joint_value)):
        return False

    # X distance, Y distance, Z rotation
    changed = [False, False, False]
    x, y, rot_z = (stored if r is None else r for r, stored in zip(requested, joint.joint_value))

    # local X and Y as currently oriented, before this call's Z rotation
    x_axis = rotate_vector(node.quaternion, jnp.array([1.0, 0.0, 0.0]))
    y_axis = rotate_vector(node.quaternion, jnp.array([0.0, 1.0, 0.0]))
    position = joint.origin_position
    position = position + x_axis * x
    position = position + y_axis * y
    node.position = position

    if requested[2] is not None:
        node.quaternion = quaternion_multiply(
            joint.origin_quaternion, quaternion_from_axis_angle(joint.axis, rot_z))

    for i, value in enumerate(requested):
        if value is not None and value != joint.joint_value[i]:
            joint.joint_value[i] = value
            changed[i] = True

    if any(changed):
        node.world_needs_update = True
    return any(changed)


def _update_floating(node: "SpatialNode", joint: Joint, values: JointValues) -> bool:
    logger.warning("'%s' joint not yet supported (joint %r)", joint.joint_type.value, node.name)
    return False


_UPDATERS = {
    JointType.FIXED: _update_fixed,
    JointType.CONTINUOUS: _update_rotational,
    JointType.REVOLUTE: _update_rotational,
    JointType.PRISMATIC: _update_prismatic,
    JointType.PLANAR: _update_planar,
    JointType.FLOATING: _update_floating,
}
