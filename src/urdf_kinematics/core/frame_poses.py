"""FramePoses PyTree holding world poses of a robot's named frames.

This module defines the immutable snapshot returned by the world pose
refresh, so the poses can be handed to jit-compiled consumers.
"""

from typing import Dict, Tuple

from jax import Array
from flax import struct


@struct.dataclass
class FramePoses:
    """Immutable PyTree of world poses keyed by frame name.

    Attributes:
        names: Tuple of frame names. Index corresponds to the row of
               ``matrices``. Marked as a static field for JIT compilation.
        matrices: Array of shape (num_frames, 4, 4) with the world transform
                  of each frame.
    """
    names: Tuple[str, ...] = struct.field(pytree_node=False)
    matrices: Array

    def __getitem__(self, name: str) -> Array:
        try:
            return self.matrices[self.names.index(name)]
        except ValueError:
            raise KeyError(f"Frame '{name}' not found") from None

    def __contains__(self, name: str) -> bool:
        return name in self.names

    def as_dict(self) -> Dict[str, Array]:
        return {name: self.matrices[i] for i, name in enumerate(self.names)}
