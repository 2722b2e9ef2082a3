"""World pose refresh for a robot tree.

Joint updates only touch local transforms and raise ``world_needs_update``.
This module consumes that flag: it recomputes world transforms parent-first
for stale subtrees and leaves the rest of the cached poses untouched.
"""

import logging
from collections import deque
from typing import Dict, Mapping, Optional

import jax.numpy as jnp
from jax import Array

from .core import FramePoses, Robot, SpatialNode

logger = logging.getLogger(__name__)


def update_world_transforms(robot: Robot, force: bool = False) -> FramePoses:
    """Refresh cached world transforms of every node in the robot tree.

    Args:
        robot: Robot whose tree is refreshed in place
        force: Recompute every node, not just stale subtrees

    Returns:
        FramePoses with the world pose of every named frame
    """
    identity = jnp.identity(4)
    queue = deque([(robot.root, identity, False)])
    refreshed = 0
    visited = set()

    # Breadth-first so a parent's world pose is final before its children
    while queue:
        node, parent_world, parent_changed = queue.popleft()
        visited.add(id(node))

        changed = force or parent_changed or node.world_needs_update or node.world_matrix is None
        if changed:
            node.world_matrix = parent_world @ node.local_transform.matrix
            node.world_needs_update = False
            refreshed += 1

        for child in node.children:
            queue.append((child, node.world_matrix, changed))

    logger.debug("Refreshed %d world transforms for robot %r", refreshed, robot.robot_name)

    names = tuple(robot.frames)
    if names:
        # registered frames outside the tree are evaluated on their own chain
        matrices = jnp.stack([
            node.world_matrix if id(node) in visited else world_transform(node)
            for node in (robot.frames[name] for name in names)
        ])
    else:
        matrices = jnp.zeros((0, 4, 4))
    return FramePoses(names=names, matrices=matrices)


def forward_kinematics(robot: Robot, values: Optional[Mapping] = None) -> Dict[str, Array]:
    """Compute world poses for all named frames.

    Args:
        robot: Robot to evaluate
        values: Optional joint values applied with ``set_joint_values`` first

    Returns:
        Dictionary mapping frame names to their 4x4 world poses
    """
    if values:
        robot.set_joint_values(values)
    return update_world_transforms(robot).as_dict()


def world_transform(node: SpatialNode) -> Array:
    """World transform of a single node, recomputed along its ancestor chain.

    Every call starts from scratch: cached world matrices are not read and
    dirty flags are not cleared.
    """
    chain = []
    current = node
    while current is not None:
        chain.append(current)
        current = current.parent

    world = jnp.identity(4)
    for ancestor in reversed(chain):
        world = world @ ancestor.local_transform.matrix
    return world
