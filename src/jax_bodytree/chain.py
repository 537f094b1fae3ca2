"""Forward pass over an assembled body tree.

The nodes of a BodyTree are stored parent-before-child, so every world
transform can be resolved in one ``jax.lax.scan`` over the node sequence.
"""

from typing import Dict, Optional

import jax
import jax.numpy as jnp
from jax import Array

from .core import BodyTree
from .transforms import se3


def forward_kinematics(tree: BodyTree, q: Optional[Array] = None) -> Dict[str, Array]:
    """Compute world poses for all nodes in the tree.

    Args:
        tree: Assembled BodyTree.
        q: Displacements of shape (num_dofs,) for the 1-DOF joints, in
           joint order. Defaults to the zero configuration.

    Returns:
        Dictionary mapping node names to their 4x4 SE(3) world poses
    """
    if q is None:
        q = jnp.zeros(tree.num_dofs)
    elif jnp.shape(q) != (tree.num_dofs,):
        raise ValueError(f"Expected configuration of shape ({tree.num_dofs},), got {jnp.shape(q)}")

    world_transforms = forward_kinematics_world(tree, q)
    return {name: world_transforms[i] for i, name in enumerate(tree.node_names)}


def forward_kinematics_world(tree: BodyTree, q: Array) -> Array:
    """Internal forward pass returning an array of world transforms.

    Nodes without a parent (the base and any detached object part) are
    placed by ``base_pose`` composed with their own joint transform.

    Args:
        tree: Assembled BodyTree.
        q: Displacements of shape (num_dofs,) for the 1-DOF joints.

    Returns:
        Array of shape (num_nodes, 4, 4) with world poses for all nodes
    """
    num_nodes = tree.parent_indices.shape[0]

    # Slot -1 reads the trailing zero, so nodes without a DOF do not move.
    q_padded = jnp.concatenate([jnp.asarray(q, dtype=jnp.float64), jnp.zeros(1)])
    q_full = q_padded[tree.dof_indices]

    world_transforms = jnp.broadcast_to(tree.base_pose, (num_nodes, 4, 4))

    def scan_body(carry, i):
        """Processes node `i` using its parent's world pose from `carry`."""
        parent = tree.parent_indices[i]
        T_world_to_parent = jnp.where(parent == i, tree.base_pose, carry[parent])

        T_joint_motion = se3.joint_motion(tree.joint_axes[i], q_full[i])
        T_parent_to_child = se3.multiply(tree.joint_transforms[i], T_joint_motion)

        carry = carry.at[i].set(se3.multiply(T_world_to_parent, T_parent_to_child))
        return carry, None

    final_transforms, _ = jax.lax.scan(scan_body, world_transforms, jnp.arange(num_nodes))
    return final_transforms
