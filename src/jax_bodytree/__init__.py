"""
JAX BodyTree: assemble flat link/joint models into rooted body trees.

A flat, unordered description of a mechanism (named links plus joints that
reference them by name) is converted into a parent-before-child tree of body
nodes, in one of three variants: skeleton, robot or free object. The result
is a JAX PyTree ready for kinematics and dynamics code.
"""

import jax
jax.config.update("jax_enable_x64", True)

# Import core modules
from . import transforms
from . import core
from . import io
from .builders import build_object, build_robot, build_skeleton, build_tree
from .errors import StructuralError

__version__ = "0.1.0"
__all__ = [
    "transforms",
    "core",
    "io",
    "build_object",
    "build_robot",
    "build_skeleton",
    "build_tree",
    "StructuralError",
]
