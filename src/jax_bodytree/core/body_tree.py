"""BodyTree PyTree: the assembled, parent-before-child body tree.

The tree keeps both an object view (``BodyNode`` / ``Joint`` records, static
for JIT compilation) and an array view in the per-node layout consumed by
the forward pass: node ``i`` stores the transform, twist and configuration
slot of its incoming joint.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import jax
import jax.numpy as jnp
from jax import Array
from flax import struct

from jax_bodytree.core.flat_model import (
    Geometry,
    Inertial,
    JointLimits,
    JointType,
    Origin,
    Vec3,
)
from jax_bodytree.transforms import se3


class StructureKind(str, Enum):
    SKELETON = "skeleton"
    ROBOT = "robot"
    OBJECT = "object"


@dataclass(frozen=True)
class BodyNode:
    """Structurally placed runtime representation of a link.

    Attributes:
        name: Link name, unique within the tree.
        index: Position in ``BodyTree.nodes``.
        child_joints: Indices of outgoing joints, in discovery order.
        parent_joint: Index of the incoming joint, or None for the tree base
                      and for detached object parts.
        is_virtual: True only for the synthesized default base node.
    """
    name: str
    index: int
    inertial: Inertial = Inertial()
    visuals: Tuple[Geometry, ...] = ()
    collisions: Tuple[Geometry, ...] = ()
    child_joints: Tuple[int, ...] = ()
    parent_joint: Optional[int] = None
    is_virtual: bool = False


@dataclass(frozen=True)
class Joint:
    """A typed parent-to-child edge between two body nodes.

    ``parent`` is None when the joint anchors its child to the world frame.
    """
    name: str
    type: JointType
    index: int
    parent: Optional[int]
    child: int
    origin: Origin = Origin()
    axis: Vec3 = (1.0, 0.0, 0.0)
    limits: Optional[JointLimits] = None
    is_synthetic: bool = False

    @property
    def num_dofs(self) -> int:
        return self.type.num_dofs

    def twist(self) -> Array:
        """6D twist [vx,vy,vz,wx,wy,wz] of a unit displacement of this joint."""
        axis = jnp.asarray(self.axis, dtype=jnp.float64)
        if self.type in (JointType.REVOLUTE, JointType.CONTINUOUS):
            return jnp.concatenate([jnp.zeros(3), axis])
        if self.type is JointType.PRISMATIC:
            return jnp.concatenate([axis, jnp.zeros(3)])
        return jnp.zeros(6)


@struct.dataclass
class BodyTree:
    """Immutable PyTree representation of an assembled body tree.

    Attributes:
        name: Model name.
        kind: Which structural variant produced the tree.
        nodes: Body nodes; every node comes after its parent.
        joints: Joints in discovery order, root anchor joint first.
        parent_indices: Array of shape (num_nodes,); the parent node index of
                        each node. Nodes without a parent point to themselves.
        joint_transforms: Array of shape (num_nodes, 4, 4); origin of each
                          node's incoming joint, identity when there is none.
        joint_axes: Array of shape (num_nodes, 6); twist of each node's
                    incoming joint, zero for joints without a single DOF.
        dof_indices: Array of shape (num_nodes,); slot of each node's incoming
                     joint in the configuration vector, -1 when it has none.
        base_pose: Array of shape (4, 4); pose of the base frame in the world.
    """
    name: str = struct.field(pytree_node=False)
    kind: StructureKind = struct.field(pytree_node=False)
    nodes: Tuple[BodyNode, ...] = struct.field(pytree_node=False)
    joints: Tuple[Joint, ...] = struct.field(pytree_node=False)
    parent_indices: Array
    joint_transforms: Array
    joint_axes: Array
    dof_indices: Array
    base_pose: Array

    @property
    def node_names(self) -> Tuple[str, ...]:
        return tuple(node.name for node in self.nodes)

    @property
    def joint_names(self) -> Tuple[str, ...]:
        return tuple(joint.name for joint in self.joints)

    @property
    def actuated_joint_names(self) -> Tuple[str, ...]:
        """Joints with one DOF, in configuration-vector order."""
        return tuple(joint.name for joint in self.joints if joint.num_dofs == 1)

    @property
    def num_dofs(self) -> int:
        return len(self.actuated_joint_names)

    @property
    def base(self) -> BodyNode:
        return self.nodes[0]

    def node_index(self, name: str) -> int:
        try:
            return self.node_names.index(name)
        except ValueError:
            raise ValueError(f"Node '{name}' not found in body tree") from None

    def node(self, name: str) -> BodyNode:
        return self.nodes[self.node_index(name)]

    def joint(self, name: str) -> Joint:
        try:
            return self.joints[self.joint_names.index(name)]
        except ValueError:
            raise ValueError(f"Joint '{name}' not found in body tree") from None

    def incoming_joint(self, name: str) -> Optional[Joint]:
        node = self.node(name)
        if node.parent_joint is None:
            return None
        return self.joints[node.parent_joint]

    def parent_of(self, name: str) -> Optional[BodyNode]:
        joint = self.incoming_joint(name)
        if joint is None or joint.parent is None:
            return None
        return self.nodes[joint.parent]

    def children_of(self, name: str) -> Tuple[BodyNode, ...]:
        return tuple(self.nodes[self.joints[j].child] for j in self.node(name).child_joints)

    def topology(self) -> Tuple[Tuple[str, Optional[str], str], ...]:
        """``(joint, parent node, child node)`` triples in joint order."""
        return tuple(
            (
                joint.name,
                None if joint.parent is None else self.nodes[joint.parent].name,
                self.nodes[joint.child].name,
            )
            for joint in self.joints
        )

    def with_base_pose(self, xyz: Vec3 = (0.0, 0.0, 0.0), rpy: Vec3 = (0.0, 0.0, 0.0)) -> "BodyTree":
        """Return a copy of the tree with its base frame placed at ``(xyz, rpy)``."""
        return self.replace(base_pose=se3.from_xyz_rpy(xyz, rpy))

    @property
    def base_xyz_rpy(self) -> Tuple[jax.Array, jax.Array]:
        return se3.to_xyz_rpy(self.base_pose)
