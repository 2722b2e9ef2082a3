"""Tests for the joint update algorithm and mimic propagation."""

import logging

import jax.numpy as jnp
import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

import urdf_kinematics  # noqa: F401  enables float64
from urdf_kinematics.core import (
    JointLimit,
    JointType,
    NodeKind,
    make_joint,
    make_link,
    make_mimic_joint,
)
from urdf_kinematics.transforms import quaternion_from_axis_angle, quaternion_multiply

values_strategy = st.floats(-10.0, 10.0, allow_nan=False)


def test_joint_type_sizes_values():
    """Changing the joint type resets values to zeros of the right length."""
    node = make_joint("j")
    assert node.joint.joint_type is JointType.FIXED
    assert node.joint.joint_value == []
    assert node.angle is None

    for joint_type, dof in [("continuous", 1), ("revolute", 1), ("prismatic", 1),
                            ("planar", 3), ("floating", 6)]:
        node.joint.joint_value = [9.0]
        node.joint.joint_type = joint_type
        assert node.joint.joint_value == [0.0] * dof
        assert node.joint.joint_type.dof == dof


def test_same_joint_type_keeps_values():
    node = make_joint("j", "revolute", limit=(-1.0, 1.0))
    node.set_joint_value(0.5)
    node.joint.joint_type = JointType.REVOLUTE
    assert node.angle == 0.5


def test_planar_forces_z_axis():
    node = make_joint("j", "planar", axis=(1.0, 0.0, 0.0))
    np.testing.assert_allclose(node.joint.axis, jnp.array([0.0, 0.0, 1.0]))


def test_default_axis():
    node = make_joint("j", "continuous")
    np.testing.assert_allclose(node.joint.axis, jnp.array([1.0, 0.0, 0.0]))
    assert node.kind is NodeKind.JOINT


def test_revolute_rotates_about_axis_from_origin():
    """Orientation is the origin orientation followed by the axis rotation."""
    origin_q = quaternion_from_axis_angle(jnp.array([1.0, 0.0, 0.0]), 0.3)
    node = make_joint("j", "revolute", axis=(0.0, 0.0, 1.0), limit=(-2.0, 2.0),
                      position=[0.0, 0.0, 1.0], quaternion=origin_q)

    assert node.set_joint_value(0.5) is True
    expected = quaternion_multiply(origin_q, quaternion_from_axis_angle(jnp.array([0.0, 0.0, 1.0]), 0.5))
    np.testing.assert_allclose(node.quaternion, expected, atol=1e-9)
    np.testing.assert_allclose(node.position, jnp.array([0.0, 0.0, 1.0]))

    # Not cumulative: setting the same angle again after another value
    node.set_joint_value(1.0)
    node.set_joint_value(0.5)
    np.testing.assert_allclose(node.quaternion, expected, atol=1e-9)
    np.testing.assert_allclose(node.joint.origin_quaternion, origin_q, atol=1e-9)


def test_revolute_marks_world_stale():
    node = make_joint("j", "revolute", limit=(-1.0, 1.0))
    node.world_needs_update = False
    assert node.set_joint_value(0.2)
    assert node.world_needs_update


def test_revolute_clamped_to_same_value_reports_no_change():
    node = make_joint("j", "revolute", limit=(-1.0, 1.0))
    assert node.set_joint_value(5.0) is True
    assert node.angle == 1.0
    node.world_needs_update = False
    assert node.set_joint_value(7.0) is False
    assert node.world_needs_update is False


def test_continuous_ignores_limits():
    node = make_joint("j", "continuous", limit=(-1.0, 1.0))
    node.set_joint_value(4.0)
    assert node.angle == 4.0


@pytest.mark.parametrize("joint_type, values", [
    ("continuous", [0.4]),
    ("revolute", [0.4]),
    ("prismatic", [0.4]),
    ("planar", [0.1, 0.2, 0.3]),
])
def test_set_value_is_idempotent(joint_type, values):
    node = make_joint("j", joint_type, limit=(-1.0, 1.0))
    assert node.set_joint_value(*values) is True
    assert node.set_joint_value(*values) is False


def test_fixed_joint_never_moves():
    node = make_joint("j", "fixed", position=[1.0, 2.0, 3.0])
    quat = node.quaternion
    assert node.set_joint_value(1.0, 2.0, 3.0) is False
    np.testing.assert_allclose(node.position, jnp.array([1.0, 2.0, 3.0]))
    np.testing.assert_allclose(node.quaternion, quat)


@given(v=values_strategy)
@settings(max_examples=25, deadline=None)
def test_revolute_value_is_clamped(v):
    node = make_joint("j", "revolute", limit=JointLimit(lower=-1.5, upper=0.5))
    node.set_joint_value(v)
    assert node.angle == min(max(v, -1.5), 0.5)


@given(v=values_strategy)
@settings(max_examples=25, deadline=None)
def test_prismatic_value_is_clamped(v):
    node = make_joint("j", "prismatic", limit=(0.0, 2.0))
    node.set_joint_value(v)
    assert node.angle == min(max(v, 0.0), 2.0)


@given(v=values_strategy, joint_type=st.sampled_from(["revolute", "prismatic"]))
@settings(max_examples=25, deadline=None)
def test_ignore_limits_stores_raw_value(v, joint_type):
    node = make_joint("j", joint_type, limit=(-0.1, 0.1), ignore_limits=True)
    node.set_joint_value(v)
    assert node.angle == v


def test_prismatic_is_not_cumulative():
    node = make_joint("j", "prismatic", axis=(0.0, 1.0, 0.0), limit=(-5.0, 5.0),
                      position=[1.0, 0.0, 0.0])
    node.set_joint_value(1.0)
    node.set_joint_value(0.5)
    np.testing.assert_allclose(node.position, jnp.array([1.0, 0.5, 0.0]), atol=1e-9)


def test_prismatic_axis_follows_orientation():
    """The axis is expressed in the node's rotated frame."""
    quat = quaternion_from_axis_angle(jnp.array([0.0, 0.0, 1.0]), jnp.pi / 2)
    node = make_joint("j", "prismatic", axis=(1.0, 0.0, 0.0), limit=(-5.0, 5.0),
                      quaternion=quat)
    node.set_joint_value(2.0)
    np.testing.assert_allclose(node.position, jnp.array([0.0, 2.0, 0.0]), atol=1e-9)


def test_planar_translation_is_not_cumulative():
    node = make_joint("j", "planar", position=[0.0, 0.0, 1.0])
    node.set_joint_value(1.0, 2.0, 0.0)
    node.set_joint_value(0.5, 2.0, 0.0)
    np.testing.assert_allclose(node.position, jnp.array([0.5, 2.0, 1.0]), atol=1e-9)
    assert node.joint.joint_value == [0.5, 2.0, 0.0]


def test_planar_rotation_only():
    node = make_joint("j", "planar")
    node.set_joint_value(0.1, 0.2, 0.0)
    assert node.set_joint_value(None, None, 0.4) is True
    assert node.joint.joint_value == [0.1, 0.2, 0.4]
    # translation keeps the stored offsets
    np.testing.assert_allclose(node.position, jnp.array([0.1, 0.2, 0.0]), atol=1e-9)
    expected = quaternion_from_axis_angle(jnp.array([0.0, 0.0, 1.0]), 0.4)
    np.testing.assert_allclose(node.quaternion, expected, atol=1e-9)


def test_planar_partial_update_reports_changed_slots_only():
    node = make_joint("j", "planar")
    node.set_joint_value(0.1, 0.2, 0.3)
    # every supplied value equals its stored slot
    assert node.set_joint_value(0.1, None, 0.3) is False
    assert node.set_joint_value(0.1, 0.5) is True
    assert node.joint.joint_value == [0.1, 0.5, 0.3]


def test_floating_is_unsupported(caplog):
    node = make_joint("free", "floating", position=[1.0, 0.0, 0.0])
    with caplog.at_level(logging.WARNING, logger="urdf_kinematics.core.joint"):
        assert node.set_joint_value(1.0, 2.0, 3.0, 0.1, 0.2, 0.3) is False
    assert "not yet supported" in caplog.text
    assert node.joint.joint_value == [0.0] * 6
    np.testing.assert_allclose(node.position, jnp.array([1.0, 0.0, 0.0]))


def test_missing_and_extra_values():
    node = make_joint("j", "revolute", limit=(-1.0, 1.0))
    assert node.set_joint_value() is False
    assert node.set_joint_value(None) is False
    assert node.set_joint_value(0.3, 99.0) is True
    assert node.joint.joint_value == [0.3]


def test_values_are_coerced_to_float():
    node = make_joint("j", "continuous")
    node.set_joint_value("0.25")
    assert node.angle == 0.25
    node.set_joint_value(np.float32(0.5))
    assert node.angle == 0.5


def test_origin_captured_once():
    node = make_joint("j", "prismatic", limit=(-1.0, 1.0), position=[0.0, 0.0, 2.0])
    node.set_joint_value(0.5)
    np.testing.assert_allclose(node.joint.origin_position, jnp.array([0.0, 0.0, 2.0]))
    node.set_joint_value(-0.5)
    np.testing.assert_allclose(node.joint.origin_position, jnp.array([0.0, 0.0, 2.0]))


def test_link_has_no_joint_value():
    link = make_link("base")
    assert link.joint is None
    assert link.set_joint_value(1.0) is False


# Mimic joints
def test_mimic_affine_map():
    source = make_joint("src", "continuous")
    mimic = make_mimic_joint("dst", source, "continuous", multiplier=2.0, offset=0.1)
    assert mimic.kind is NodeKind.MIMIC_JOINT
    assert mimic.is_mimic
    assert source.joint.mimic_joints == [mimic]

    assert source.set_joint_value(0.3) is True
    assert mimic.angle == pytest.approx(0.7)


def test_mimic_can_have_different_type():
    source = make_joint("src", "revolute", limit=(-1.0, 1.0))
    mimic = make_mimic_joint("slide", source, "prismatic", multiplier=0.5,
                             axis=(0.0, 0.0, 1.0), limit=(-1.0, 1.0))
    source.set_joint_value(0.8)
    assert mimic.angle == pytest.approx(0.4)
    np.testing.assert_allclose(mimic.position, jnp.array([0.0, 0.0, 0.4]), atol=1e-9)


def test_mimic_sees_unclamped_request():
    """Mimic joints are refreshed with the requested value, before the source clamps."""
    source = make_joint("src", "revolute", limit=(-0.5, 0.5))
    mimic = make_mimic_joint("dst", source, "continuous")
    source.set_joint_value(2.0)
    assert source.angle == 0.5
    assert mimic.angle == 2.0


def test_fixed_joint_reports_mimic_changes():
    source = make_joint("src", "fixed", position=[1.0, 0.0, 0.0])
    mimic = make_mimic_joint("dst", source, "continuous", offset=1.0)

    assert source.set_joint_value(0.5) is True
    assert mimic.angle == 1.5
    np.testing.assert_allclose(source.position, jnp.array([1.0, 0.0, 0.0]))

    assert source.set_joint_value(0.5) is False


def test_mimic_chain():
    a = make_joint("a", "continuous")
    b = make_mimic_joint("b", a, "continuous", multiplier=2.0)
    c = make_mimic_joint("c", b, "continuous", offset=1.0)
    a.set_joint_value(0.25)
    assert b.angle == 0.5
    assert c.angle == 1.5


def test_mimic_source_must_be_joint():
    with pytest.raises(ValueError, match="is not a joint"):
        make_mimic_joint("dst", make_link("base"), "continuous")


def test_joint_copy_is_independent():
    node = make_joint("j", "planar")
    node.set_joint_value(0.1, 0.2, 0.3)
    other = node.copy()
    other.set_joint_value(1.0, 1.0, 1.0)
    assert node.joint.joint_value == [0.1, 0.2, 0.3]
    assert other.joint.joint_value == [1.0, 1.0, 1.0]


def test_planar_translation_follows_current_rotation():
    """X/Y offsets use the local axes as currently oriented."""
    node = make_joint("j", "planar")
    node.set_joint_value(0.0, 0.0, jnp.pi / 2)
    node.set_joint_value(1.0, 0.0, jnp.pi / 2)
    np.testing.assert_allclose(node.position, jnp.array([0.0, 1.0, 0.0]), atol=1e-9)
    assert node.joint.joint_value == [1.0, 0.0, np.pi / 2]
