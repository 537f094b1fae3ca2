"""
Rigid-body transform helpers used by the tree builder and the forward pass.

- SO(3) rotations and roll-pitch-yaw conversion (so3 module)
- SE(3) homogeneous transforms and joint motion (se3 module)

All functions are pure and operate on JAX arrays.
"""

from . import so3
from . import se3

__all__ = [
    "so3",
    "se3",
]
