"""Shared robot fixtures."""

import jax.numpy as jnp
import pytest

import urdf_kinematics  # noqa: F401  enables float64
from urdf_kinematics.core import (
    NodeKind,
    Robot,
    SpatialNode,
    make_collider,
    make_joint,
    make_link,
    make_mimic_joint,
    make_visual,
)


def build_arm() -> Robot:
    """A small arm: revolute shoulder, prismatic slider, mimic gripper."""
    base = SpatialNode("base_link", NodeKind.ROBOT)
    shoulder = make_joint("shoulder", "revolute", axis=(0.0, 0.0, 1.0),
                          limit=(-jnp.pi, jnp.pi), position=[0.0, 0.0, 0.5])
    upper_arm = make_link("upper_arm")
    slider = make_joint("slider", "prismatic", axis=(1.0, 0.0, 0.0),
                        limit=(0.0, 1.0), position=[1.0, 0.0, 0.0])
    forearm = make_link("forearm")
    finger_left = make_joint("finger_left", "continuous", axis=(0.0, 1.0, 0.0))
    finger_right = make_mimic_joint("finger_right", finger_left, "continuous",
                                    axis=(0.0, 1.0, 0.0), multiplier=-1.0)

    base.add(shoulder)
    shoulder.add(upper_arm)
    # names shared with other categories to exercise frame precedence
    upper_arm.add(make_visual("upper_arm"), make_collider("upper_arm"),
                  make_collider("slider"), slider)
    slider.add(forearm)
    forearm.add(finger_left, finger_right)
    finger_left.add(make_link("left_tip"))
    finger_right.add(make_link("right_tip"))

    return Robot.from_tree(base, robot_name="arm")


@pytest.fixture
def arm() -> Robot:
    return build_arm()
