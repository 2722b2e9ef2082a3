"""Assembly-time checks for a robot tree.

The joint update path trusts its configuration: a mimic cycle recurses
without bound and a mis-sized value list is silently truncated. Tree
builders run :func:`validate_robot` once after assembly to rule both out.
"""

from typing import Dict, Iterable, List, Optional

from .node import SpatialNode
from .robot import Robot


class RobotConfigurationError(ValueError):
    """The assembled tree cannot be driven safely."""


class MimicCycleError(RobotConfigurationError):
    """Mimic relations form a cycle."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__("Mimic joints form a cycle: " + " -> ".join(cycle))


class JointValueSizeError(RobotConfigurationError):
    """A joint's stored values do not match its degree-of-freedom count."""


def find_mimic_cycle(joints: Iterable[SpatialNode]) -> Optional[List[str]]:
    """Return joint names along a mimic cycle, or None if there is none.

    The returned list starts and ends with the same name.
    """
    WHITE, GREY, BLACK = 0, 1, 2
    color: Dict[int, int] = {}
    path: List[SpatialNode] = []

    def visit(node: SpatialNode) -> Optional[List[str]]:
        color[id(node)] = GREY
        path.append(node)
        for mimic in node.joint.mimic_joints:
            state = color.get(id(mimic), WHITE)
            if state == GREY:
                start = next(i for i, n in enumerate(path) if n is mimic)
                return [n.name for n in path[start:]] + [mimic.name]
            if state == WHITE:
                cycle = visit(mimic)
                if cycle is not None:
                    return cycle
        path.pop()
        color[id(node)] = BLACK
        return None

    for joint in joints:
        if color.get(id(joint), WHITE) == WHITE:
            cycle = visit(joint)
            if cycle is not None:
                return cycle
    return None


def validate_robot(robot: Robot) -> None:
    """Raise :class:`RobotConfigurationError` if *robot* is misconfigured."""
    members = {id(node) for node in robot.joints.values()}

    for name, node in robot.joints.items():
        joint = node.joint
        if len(joint.joint_value) != joint.joint_type.dof:
            raise JointValueSizeError(
                f"Joint '{name}' of type '{joint.joint_type.value}' expects "
                f"{joint.joint_type.dof} values, has {len(joint.joint_value)}")

        if node.is_mimic:
            source = joint.mimic.source if joint.mimic is not None else None
            if source is None or id(source) not in members:
                raise RobotConfigurationError(f"Mimic joint '{name}' has no source joint in robot")
            if not any(m is node for m in source.joint.mimic_joints):
                raise RobotConfigurationError(
                    f"Mimic joint '{name}' is not registered on its source '{source.name}'")

    cycle = find_mimic_cycle(robot.joints.values())
    if cycle is not None:
        raise MimicCycleError(cycle)
