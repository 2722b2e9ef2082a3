"""Spatial nodes of the kinematic tree.

Every node in the tree is a :class:`SpatialNode`. What a node can do is
decided by its :class:`NodeKind` tag and the matching :class:`Capability`
set, not by subclassing. Joint kinds carry a :class:`~.joint.Joint`
component holding their degree-of-freedom state.
"""

from __future__ import annotations

import enum
from typing import Any, Iterator, List, Optional

import jax
import jax.numpy as jnp

from ..transforms import Transform3d, normalize_quaternions
from ..transforms.rotation import IDENTITY_QUATERNION
from .joint import Joint, JointLimit, JointType, MimicParams, set_joint_value

Array = jax.Array


class NodeKind(enum.Enum):
    LINK = "link"
    JOINT = "joint"
    MIMIC_JOINT = "mimic_joint"
    VISUAL = "visual"
    COLLIDER = "collider"
    ROBOT = "robot"


class Capability(enum.Flag):
    NONE = 0
    TRANSFORM = enum.auto()
    JOINT = enum.auto()
    MIMIC = enum.auto()
    ROOT = enum.auto()


_KIND_CAPABILITIES = {
    NodeKind.LINK: Capability.TRANSFORM,
    NodeKind.VISUAL: Capability.TRANSFORM,
    NodeKind.COLLIDER: Capability.TRANSFORM,
    NodeKind.JOINT: Capability.TRANSFORM | Capability.JOINT,
    NodeKind.MIMIC_JOINT: Capability.TRANSFORM | Capability.JOINT | Capability.MIMIC,
    NodeKind.ROBOT: Capability.TRANSFORM | Capability.ROOT,
}


class SpatialNode:
    """A named, positioned and oriented node in the robot tree.

    Attributes:
        name: Name taken from the source document; may be empty.
        kind: Variant tag deciding the node's capabilities.
        urdf_element: Opaque handle to the originating document element.
        position: (3,) local position relative to the parent.
        quaternion: (4,) unit local orientation in (w, x, y, z) order.
        joint: Joint component, present only on joint kinds.
        world_needs_update: Raised whenever the local transform changes
                            through a joint update. Cleared by the world
                            pose refresh in :mod:`urdf_kinematics.chain`.
        world_matrix: Last computed (4, 4) world transform, or None.
    """

    def __init__(self, name: str = "", kind=NodeKind.LINK, position=None, quaternion=None,
                 urdf_element: Any = None, joint: Optional[Joint] = None):
        self.kind = NodeKind(kind)
        self.name = name
        self.urdf_element = urdf_element
        self.parent: Optional["SpatialNode"] = None
        self.children: List["SpatialNode"] = []
        self.position = jnp.zeros(3) if position is None else position
        self.quaternion = IDENTITY_QUATERNION if quaternion is None else quaternion
        self.world_needs_update = True
        self.world_matrix: Optional[Array] = None

        if self.is_joint:
            joint = joint if joint is not None else Joint()
        elif joint is not None:
            raise ValueError(f"{self.kind.value} node {name!r} cannot carry a joint component")
        self.joint = joint

    @property
    def position(self) -> Array:
        return self._position

    @position.setter
    def position(self, value) -> None:
        value = jnp.asarray(value, dtype=jnp.float64)
        if value.shape != (3,):
            raise ValueError(f"position must have shape (3,), got {value.shape}")
        self._position = value

    @property
    def quaternion(self) -> Array:
        return self._quaternion

    @quaternion.setter
    def quaternion(self, value) -> None:
        value = jnp.asarray(value, dtype=jnp.float64)
        if value.shape != (4,):
            raise ValueError(f"quaternion must have shape (4,), got {value.shape}")
        self._quaternion = normalize_quaternions(value)

    # Capabilities
    @property
    def capabilities(self) -> Capability:
        return _KIND_CAPABILITIES[self.kind]

    @property
    def is_joint(self) -> bool:
        return bool(self.capabilities & Capability.JOINT)

    @property
    def is_mimic(self) -> bool:
        return bool(self.capabilities & Capability.MIMIC)

    @property
    def is_root(self) -> bool:
        return bool(self.capabilities & Capability.ROOT)

    @property
    def is_link(self) -> bool:
        # the robot root doubles as the root link
        return self.kind in (NodeKind.LINK, NodeKind.ROBOT)

    @property
    def is_visual(self) -> bool:
        return self.kind is NodeKind.VISUAL

    @property
    def is_collider(self) -> bool:
        return self.kind is NodeKind.COLLIDER

    # Tree
    def add(self, *children: "SpatialNode") -> "SpatialNode":
        for child in children:
            if child.parent is not None:
                child.parent.children.remove(child)
            child.parent = self
            self.children.append(child)
            child.world_needs_update = True
        return self

    def traverse(self) -> Iterator["SpatialNode"]:
        """Yield this node and all descendants, parent before children."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    @property
    def local_transform(self) -> Transform3d:
        return Transform3d.from_pos_quat(self.position, self.quaternion)

    # Joint access
    @property
    def angle(self) -> Optional[float]:
        return self.joint.angle if self.joint is not None else None

    def set_joint_value(self, *values) -> bool:
        if self.joint is None:
            return False
        return set_joint_value(self, *values)

    def copy(self) -> "SpatialNode":
        """Copy this node without its parent or children."""
        joint = self.joint.copy() if self.joint is not None else None
        other = SpatialNode(self.name, self.kind, self.position, self.quaternion,
                            urdf_element=self.urdf_element, joint=joint)
        other.world_needs_update = self.world_needs_update
        other.world_matrix = self.world_matrix
        return other

    def __repr__(self) -> str:
        return f"SpatialNode(name={self.name!r}, kind={self.kind.value})"


def make_link(name: str, **kwargs) -> SpatialNode:
    return SpatialNode(name, NodeKind.LINK, **kwargs)


def make_visual(name: str, **kwargs) -> SpatialNode:
    return SpatialNode(name, NodeKind.VISUAL, **kwargs)


def make_collider(name: str, **kwargs) -> SpatialNode:
    return SpatialNode(name, NodeKind.COLLIDER, **kwargs)


def make_joint(name: str, joint_type=JointType.FIXED, axis=None, limit=None,
               ignore_limits: bool = False, **kwargs) -> SpatialNode:
    """Create a joint node.

    ``limit`` may be a :class:`JointLimit` or a ``(lower, upper)`` pair.
    """
    if limit is not None and not isinstance(limit, JointLimit):
        lower, upper = limit
        limit = JointLimit(lower=float(lower), upper=float(upper))
    joint = Joint(joint_type, axis=axis, limit=limit, ignore_limits=ignore_limits)
    return SpatialNode(name, NodeKind.JOINT, joint=joint, **kwargs)


def make_mimic_joint(name: str, source: SpatialNode, joint_type=JointType.FIXED,
                     multiplier: float = 1.0, offset: float = 0.0, axis=None, limit=None,
                     ignore_limits: bool = False, **kwargs) -> SpatialNode:
    """Create a mimic joint driven by *source* and register it there."""
    if source.joint is None:
        raise ValueError(f"mimic source {source.name!r} is not a joint")
    node = make_joint(name, joint_type, axis=axis, limit=limit,
                      ignore_limits=ignore_limits, **kwargs)
    node.kind = NodeKind.MIMIC_JOINT
    node.joint.mimic = MimicParams(source=source, offset=float(offset),
                                   multiplier=float(multiplier))
    source.joint.mimic_joints.append(node)
    return node
