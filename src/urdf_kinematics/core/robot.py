"""Robot: the tree root plus name-indexed access to its frames.

The robot keeps four category maps (links, joints, visuals, colliders) and
a merged ``frames`` map. When names collide across categories, joints win
over links, links over visuals and visuals over colliders.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import numpy as np

from .node import NodeKind, SpatialNode

logger = logging.getLogger(__name__)

JointInput = Union[float, Sequence[Optional[float]]]


class Robot:
    """Name index and joint-value API over a tree rooted at a robot node.

    Attributes:
        root: Root node of the tree; its kind is ``NodeKind.ROBOT``.
        robot_name: Name of the robot from the source document.
        urdf_robot_element: Opaque handle to the document's robot element.
        links, joints, visuals, colliders: Category maps keyed by name.
        frames: Merged map over all four categories.
    """

    def __init__(self, root: SpatialNode, robot_name: Optional[str] = None,
                 urdf_robot_element: Any = None):
        if not root.is_root:
            raise ValueError(f"robot root must be a {NodeKind.ROBOT.value} node, got {root.kind.value}")
        self.root = root
        self.robot_name = robot_name
        self.urdf_robot_element = urdf_robot_element

        self.links: Dict[str, SpatialNode] = {}
        self.joints: Dict[str, SpatialNode] = {}
        self.visuals: Dict[str, SpatialNode] = {}
        self.colliders: Dict[str, SpatialNode] = {}
        self.frames: Dict[str, SpatialNode] = {}

    @classmethod
    def from_tree(cls, root: SpatialNode, robot_name: Optional[str] = None,
                  urdf_robot_element: Any = None) -> "Robot":
        """Build a robot and index every named node reachable from *root*."""
        robot = cls(root, robot_name, urdf_robot_element)
        for node in root.traverse():
            if node.name:
                robot._category(node)[node.name] = node
        robot._rebuild_frames()
        logger.debug("Indexed robot %r: %d links, %d joints, %d visuals, %d colliders",
                     robot_name, len(robot.links), len(robot.joints),
                     len(robot.visuals), len(robot.colliders))
        return robot

    def _category(self, node: SpatialNode) -> Dict[str, SpatialNode]:
        if node.is_joint:
            return self.joints
        if node.is_link:
            return self.links
        if node.is_visual:
            return self.visuals
        if node.is_collider:
            return self.colliders
        raise ValueError(f"node {node.name!r} of kind {node.kind.value} has no category")

    def _rebuild_frames(self) -> None:
        self.frames = {
            **self.colliders,
            **self.visuals,
            **self.links,
            **self.joints,
        }

    def register(self, node: SpatialNode) -> SpatialNode:
        """Add *node* to its category map under its own name."""
        self._category(node)[node.name] = node
        self._rebuild_frames()
        return node

    # Lookup
    def get_frame(self, name: str) -> Optional[SpatialNode]:
        return self.frames.get(name)

    def get_joint(self, name: str) -> Optional[SpatialNode]:
        return self.joints.get(name)

    # Joint values
    def set_joint_value(self, joint_name: str, *values) -> bool:
        """Set the value(s) of the named joint.

        Returns:
            False if no joint has that name, otherwise whether anything changed.
        """
        joint = self.joints.get(joint_name)
        if joint is None:
            return False
        return joint.set_joint_value(*values)

    def set_joint_values(self, values: Mapping[str, JointInput]) -> bool:
        """Set several joints at once; a scalar counts as a single value.

        Every entry is applied, in mapping order, regardless of the result of
        the others.
        """
        did_change = False
        for name, value in values.items():
            if np.ndim(value) == 0:
                did_change = self.set_joint_value(name, value) or did_change
            else:
                did_change = self.set_joint_value(name, *value) or did_change
        return did_change

    def get_joint_values(self) -> Dict[str, list]:
        return {name: list(node.joint.joint_value) for name, node in self.joints.items()}

    # Cloning
    def clone(self) -> "Robot":
        """Deep-copy the tree and re-index it against this robot's maps.

        Mimic relations are re-pointed at the copied joints.
        """
        copies: Dict[int, SpatialNode] = {}

        def copy_subtree(node: SpatialNode) -> SpatialNode:
            new = node.copy()
            copies[id(node)] = new
            for child in node.children:
                new.add(copy_subtree(child))
            return new

        root = copy_subtree(self.root)
        for new in copies.values():
            joint = new.joint
            if joint is None:
                continue
            joint.mimic_joints = [copies.get(id(m), m) for m in joint.mimic_joints]
            if joint.mimic is not None and joint.mimic.source is not None:
                joint.mimic = joint.mimic.replace(
                    source=copies.get(id(joint.mimic.source), joint.mimic.source))

        robot = Robot(root, self.robot_name, self.urdf_robot_element)
        for node in root.traverse():
            if node.is_joint and node.name in self.joints:
                robot.joints[node.name] = node
            if node.is_link and node.name in self.links:
                robot.links[node.name] = node
            if node.is_collider and node.name in self.colliders:
                robot.colliders[node.name] = node
            if node.is_visual and node.name in self.visuals:
                robot.visuals[node.name] = node
        robot._rebuild_frames()
        return robot

    def __repr__(self) -> str:
        return f"Robot(name={self.robot_name!r}, joints={len(self.joints)}, links={len(self.links)})"
