"""Core kinematic tree for URDF Kinematics.

This module provides the node, joint and robot structures that keep each
joint's local transform up to date as degree-of-freedom values change.
"""

from .frame_poses import FramePoses
from .joint import Joint, JointLimit, JointType, MimicParams, set_joint_value, update_from_mimicked_joint
from .node import (
    Capability,
    NodeKind,
    SpatialNode,
    make_collider,
    make_joint,
    make_link,
    make_mimic_joint,
    make_visual,
)
from .robot import Robot
from .validation import (
    JointValueSizeError,
    MimicCycleError,
    RobotConfigurationError,
    find_mimic_cycle,
    validate_robot,
)

__all__ = [
    "Capability",
    "FramePoses",
    "Joint",
    "JointLimit",
    "JointType",
    "JointValueSizeError",
    "MimicCycleError",
    "MimicParams",
    "NodeKind",
    "Robot",
    "RobotConfigurationError",
    "SpatialNode",
    "find_mimic_cycle",
    "make_collider",
    "make_joint",
    "make_link",
    "make_mimic_joint",
    "make_visual",
    "set_joint_value",
    "update_from_mimicked_joint",
    "validate_robot",
]
