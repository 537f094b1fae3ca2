"""Skeleton, Robot and Object builders.

All three variants convert every link and joint, synthesize a root joint and
assemble the nodes breadth-first from the root. They differ only in the
``VariantPolicy`` they run under:

- Skeleton: the root node is the tree base, anchored to the world by a
  fixed joint.
- Robot: a virtual base node is prepended and the root joint is floating.
- Object: as Robot, but links unreachable from the root are kept and
  appended after the reachable ones.
"""

import logging
from dataclasses import dataclass
from typing import List

from jax_bodytree.assembler import TreeAssembly, breadth_first_order, order_detached_parts
from jax_bodytree.convert import (
    create_body_node,
    create_joint,
    create_root_joint,
    create_virtual_base,
    default_root_joint_type,
)
from jax_bodytree.core.arena import ModelArena
from jax_bodytree.core.body_tree import BodyTree, StructureKind
from jax_bodytree.core.flat_model import FlatModel, JointType
from jax_bodytree.errors import DuplicateLinkName, UnreachableLink

logger = logging.getLogger(__name__)

DEFAULT_BASE_NAME = "default_root"


@dataclass(frozen=True)
class VariantPolicy:
    """Per-variant assembly options.

    Attributes:
        kind: Structural variant recorded on the output tree.
        virtual_base: Prepend a virtual base node above the root node.
        root_joint_type: Type of the synthesized root joint.
        keep_unreachable: Append links unreachable from the root instead of
                          raising ``UnreachableLink``.
        base_name: Name of the virtual base node.
    """
    kind: StructureKind
    virtual_base: bool
    root_joint_type: JointType
    keep_unreachable: bool = False
    base_name: str = DEFAULT_BASE_NAME


SKELETON_POLICY = VariantPolicy(
    kind=StructureKind.SKELETON,
    virtual_base=False,
    root_joint_type=default_root_joint_type(StructureKind.SKELETON),
)
ROBOT_POLICY = VariantPolicy(
    kind=StructureKind.ROBOT,
    virtual_base=True,
    root_joint_type=default_root_joint_type(StructureKind.ROBOT),
)
OBJECT_POLICY = VariantPolicy(
    kind=StructureKind.OBJECT,
    virtual_base=True,
    root_joint_type=default_root_joint_type(StructureKind.OBJECT),
    keep_unreachable=True,
)

POLICIES = {
    StructureKind.SKELETON: SKELETON_POLICY,
    StructureKind.ROBOT: ROBOT_POLICY,
    StructureKind.OBJECT: OBJECT_POLICY,
}


def build_tree(model: FlatModel, policy: VariantPolicy) -> BodyTree:
    """
    Convert a flat model into an assembled BodyTree.

    Args:
        model: Links, joints and root link name.
        policy: Variant options.

    Returns:
        BodyTree with identity base pose.

    Raises:
        UnknownRootLink: The root link is missing or has a parent joint.
        UnresolvedJointEndpoint: A joint names a link that does not exist.
        DuplicateLinkName: A link name collides with the virtual base name.
        MultiplyParentedLink: A link is the child of several joints.
        UnreachableLink: Some links cannot be reached from the root and the
                         policy does not keep them.
        JointCycleError: The joints close a loop.
    """
    arena = ModelArena(model, strict_root=not policy.keep_unreachable)
    if policy.virtual_base and policy.base_name in arena.index:
        raise DuplicateLinkName(policy.base_name)

    nodes = [create_body_node(link, i) for i, link in enumerate(arena.links)]
    logger.debug("Created %d body nodes", len(nodes))

    child_joints: List[List[int]] = [[] for _ in nodes]
    joints = [create_joint(resolved, j, child_joints) for j, resolved in enumerate(arena.joints)]

    base_index = len(nodes)
    root_joint = create_root_joint(
        arena.links[arena.root],
        root_index=arena.root,
        index=len(joints),
        kind=policy.kind,
        has_default_base=policy.virtual_base,
        base_index=base_index if policy.virtual_base else None,
        joint_type=policy.root_joint_type,
    )
    logger.debug("Created %d joints", len(joints) + 1)

    joint_child = [joint.child for joint in joints]
    order = breadth_first_order(arena.root, child_joints, joint_child, len(nodes))

    if len(order) < len(nodes):
        visited = set(order)
        unvisited = [i for i in range(len(nodes)) if i not in visited]
        unreached_names = [arena.name_of(i) for i in unvisited]
        if not policy.keep_unreachable:
            raise UnreachableLink(unreached_names)

        logger.warning(
            "%s '%s': appending %d link(s) unreachable from root '%s': %s",
            policy.kind.value, model.name, len(unvisited),
            arena.name_of(arena.root), ", ".join(unreached_names),
        )
        order.extend(order_detached_parts(
            unvisited,
            child_joints,
            joint_child,
            arena.parent_joint,
            [link.name for link in arena.links],
        ))

    assembly = TreeAssembly(model.name, policy.kind)
    if policy.virtual_base:
        assembly.append_node(create_virtual_base(policy.base_name, base_index), [root_joint.index])
    for i in order:
        assembly.append_node(nodes[i], child_joints[i])

    assembly.append_joint(root_joint)
    for i in order:
        for j in child_joints[i]:
            assembly.append_joint(joints[j])

    return assembly.init_structure()


def build_skeleton(model: FlatModel) -> BodyTree:
    """Root link is the tree base, fixed to the world frame."""
    return build_tree(model, SKELETON_POLICY)


def build_robot(model: FlatModel) -> BodyTree:
    """Virtual base node plus a floating joint into the root link."""
    return build_tree(model, ROBOT_POLICY)


def build_object(model: FlatModel) -> BodyTree:
    """Like ``build_robot``, keeping links unreachable from the root."""
    return build_tree(model, OBJECT_POLICY)
