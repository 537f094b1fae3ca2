"""Core data structures for jax_bodytree.

The flat input model, its index arena, and the immutable assembled tree.
"""

from .flat_model import (
    FlatModel,
    Geometry,
    GeometryKind,
    Inertial,
    JointLimits,
    JointRecord,
    JointType,
    LinkRecord,
    Origin,
)
from .arena import ModelArena, ResolvedJoint
from .body_tree import BodyNode, BodyTree, Joint, StructureKind

__all__ = [
    "BodyNode",
    "BodyTree",
    "FlatModel",
    "Geometry",
    "GeometryKind",
    "Inertial",
    "Joint",
    "JointLimits",
    "JointRecord",
    "JointType",
    "LinkRecord",
    "ModelArena",
    "Origin",
    "ResolvedJoint",
    "StructureKind",
]
