"""Breadth-first tree assembly.

``breadth_first_order`` produces the parent-before-child node order that
downstream consumers rely on to resolve every parent transform in a single
forward pass. ``TreeAssembly`` collects nodes and joints in that order and
finalizes them into an immutable ``BodyTree``.
"""

import dataclasses
import logging
from collections import deque
from typing import Dict, List, Optional, Sequence

import jax.numpy as jnp

from jax_bodytree.core.body_tree import BodyNode, BodyTree, Joint, StructureKind
from jax_bodytree.core.flat_model import Vec3
from jax_bodytree.errors import (
    DuplicateJointName,
    DuplicateLinkName,
    JointCycleError,
    MultiplyParentedLink,
    StructuralError,
)
from jax_bodytree.transforms import se3

logger = logging.getLogger(__name__)


def breadth_first_order(
    root: int,
    child_joints: Sequence[Sequence[int]],
    joint_child: Sequence[int],
    num_nodes: int,
) -> List[int]:
    """
    Order the nodes reachable from ``root`` so that parents come first.

    Children are enqueued in the order of their parent's child-joint list.
    The traversal stops when the queue empties or once ``num_nodes`` nodes
    have been emitted, whichever comes first; together with the visited set
    this guarantees termination on cyclic or multiply-parented graphs.

    Args:
        root: Index of the start node.
        child_joints: Outgoing joint indices per node.
        joint_child: Child node index per joint.
        num_nodes: Total number of converted nodes.

    Returns:
        Visited node indices in breadth-first order.
    """
    order: List[int] = []
    visited = set()
    queue = deque([root])

    while queue and len(order) < num_nodes:
        node = queue.popleft()
        if node in visited:
            continue

        visited.add(node)
        order.append(node)

        for joint in child_joints[node]:
            child = joint_child[joint]
            if child not in visited:
                queue.append(child)

    logger.debug("Pushed %d of %d nodes in tree-like order", len(order), num_nodes)
    return order


def order_detached_parts(
    unvisited: Sequence[int],
    child_joints: Sequence[Sequence[int]],
    joint_child: Sequence[int],
    parent_joint: Sequence[Optional[int]],
    names: Sequence[str],
) -> List[int]:
    """
    Order nodes that are not reachable from the root.

    Each detached part is traversed breadth-first from its own parentless
    node, parts taken in ``unvisited`` order. Nodes left over after that can
    only sit on a closed loop and are rejected.

    Raises:
        JointCycleError: If some unreachable nodes form a cycle.
    """
    order: List[int] = []
    placed = set()

    for node in unvisited:
        if parent_joint[node] is None and node not in placed:
            part = breadth_first_order(node, child_joints, joint_child, len(unvisited))
            order.extend(part)
            placed.update(part)

    leftovers = [node for node in unvisited if node not in placed]
    if leftovers:
        raise JointCycleError(names[node] for node in leftovers)
    return order


class TreeAssembly:
    """Accumulates nodes and joints and finalizes them into a ``BodyTree``.

    Nodes must be appended parent-before-child. Indices carried by appended
    nodes and joints are provisional; ``init_structure`` renumbers them in
    append order.
    """

    def __init__(self, name: str, kind: StructureKind):
        self.name = name
        self.kind = kind
        self._nodes: List[BodyNode] = []
        self._child_joints: List[List[int]] = []
        self._joints: List[Joint] = []
        self._base_pose = se3.identity()

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    def append_node(self, node: BodyNode, child_joints: Sequence[int] = ()):
        self._nodes.append(node)
        self._child_joints.append(list(child_joints))

    def append_joint(self, joint: Joint):
        self._joints.append(joint)

    def set_base_pose(self, xyz: Vec3 = (0.0, 0.0, 0.0), rpy: Vec3 = (0.0, 0.0, 0.0)):
        self._base_pose = se3.from_xyz_rpy(xyz, rpy)

    def init_structure(self) -> BodyTree:
        """
        Renumber nodes and joints, rebuild the incoming-joint index and pack
        the per-node arrays.

        Returns:
            The finished BodyTree.
        """
        node_pos: Dict[int, int] = {}
        seen_names = set()
        for pos, node in enumerate(self._nodes):
            if node.name in seen_names:
                raise DuplicateLinkName(node.name)
            seen_names.add(node.name)
            node_pos[node.index] = pos

        joint_pos: Dict[int, int] = {}
        joints: List[Joint] = []
        seen_names = set()
        for pos, joint in enumerate(self._joints):
            if joint.name in seen_names:
                raise DuplicateJointName(joint.name)
            seen_names.add(joint.name)
            joint_pos[joint.index] = pos
            joints.append(dataclasses.replace(
                joint,
                index=pos,
                parent=None if joint.parent is None else node_pos[joint.parent],
                child=node_pos[joint.child],
            ))

        # Reverse index: the single incoming joint of every node.
        parent_joint: List[Optional[int]] = [None] * len(self._nodes)
        for joint in joints:
            if parent_joint[joint.child] is not None:
                raise MultiplyParentedLink(
                    self._nodes[joint.child].name,
                    (joints[parent_joint[joint.child]].name, joint.name),
                )
            if joint.parent is not None and joint.parent >= joint.child:
                raise JointCycleError(
                    (self._nodes[joint.parent].name, self._nodes[joint.child].name)
                )
            parent_joint[joint.child] = joint.index

        for pos, node in enumerate(self._nodes):
            missing = [j for j in self._child_joints[pos] if j not in joint_pos]
            if missing:
                raise StructuralError(
                    f"Node '{node.name}' lists child joint(s) {missing} that were never appended"
                )

        nodes = tuple(
            dataclasses.replace(
                node,
                index=pos,
                child_joints=tuple(joint_pos[j] for j in self._child_joints[pos]),
                parent_joint=parent_joint[pos],
            )
            for pos, node in enumerate(self._nodes)
        )

        dof_of_joint: Dict[int, int] = {}
        for joint in joints:
            if joint.num_dofs == 1:
                dof_of_joint[joint.index] = len(dof_of_joint)

        parent_indices = []
        joint_transforms = []
        joint_axes = []
        dof_indices = []
        for node in nodes:
            if node.parent_joint is None:
                parent_indices.append(node.index)  # Parentless nodes parent themselves
                joint_transforms.append(se3.identity())
                joint_axes.append(jnp.zeros(6))
                dof_indices.append(-1)
                continue

            joint = joints[node.parent_joint]
            parent_indices.append(node.index if joint.parent is None else joint.parent)
            joint_transforms.append(joint.origin.as_matrix())
            joint_axes.append(joint.twist())
            dof_indices.append(dof_of_joint.get(joint.index, -1))

        logger.debug(
            "Initialized %s '%s': %d nodes, %d joints, %d dofs",
            self.kind.value, self.name, len(nodes), len(joints), len(dof_of_joint),
        )

        return BodyTree(
            name=self.name,
            kind=self.kind,
            nodes=nodes,
            joints=tuple(joints),
            parent_indices=jnp.array(parent_indices, dtype=jnp.int32),
            joint_transforms=jnp.stack(joint_transforms),
            joint_axes=jnp.stack(joint_axes),
            dof_indices=jnp.array(dof_indices, dtype=jnp.int32),
            base_pose=self._base_pose,
        )
