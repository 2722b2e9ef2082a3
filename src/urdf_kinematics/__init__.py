"""
URDF Kinematics: joint kinematics for articulated robot trees.

This library keeps the local transform of every joint node up to date as
degree-of-freedom values change, propagates mimic joints, and exposes
name-based lookup of joints and frames across the tree.
"""

import jax
jax.config.update("jax_enable_x64", True)

# Import core modules
from . import transforms
from . import core
from . import chain
from .core import JointType, NodeKind, Robot, SpatialNode

__version__ = "0.1.0"
__all__ = ["transforms", "core", "chain", "JointType", "NodeKind", "Robot", "SpatialNode"]
