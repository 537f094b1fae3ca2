"""Per-record conversion of links and joints into tree elements.

Nodes and joints are created with provisional indices (link index, joint
index in the arena); ``TreeAssembly.init_structure`` renumbers them into
output order.
"""

from typing import List, Optional, Sequence

from jax_bodytree.core.arena import ResolvedJoint
from jax_bodytree.core.body_tree import BodyNode, Joint, StructureKind
from jax_bodytree.core.flat_model import JointType, LinkRecord


def create_body_node(link: LinkRecord, index: int) -> BodyNode:
    """Copy a link's name and physical parameters into a new body node."""
    return BodyNode(
        name=link.name,
        index=index,
        inertial=link.inertial,
        visuals=link.visuals,
        collisions=link.collisions,
    )


def create_virtual_base(name: str, index: int) -> BodyNode:
    """Massless node standing in for the engine's default root body."""
    return BodyNode(name=name, index=index, is_virtual=True)


def create_joint(resolved: ResolvedJoint, index: int, child_joints: Sequence[List[int]]) -> Joint:
    """
    Convert one resolved joint record and register it on its parent node.

    Args:
        resolved: Joint record with endpoints resolved to link indices.
        index: Provisional joint index.
        child_joints: Per-node outgoing joint lists; ``index`` is appended
                      to the list of the parent node.

    Returns:
        Joint wired to its parent and child nodes.
    """
    record = resolved.record
    joint = Joint(
        name=record.name,
        type=record.type,
        index=index,
        parent=resolved.parent,
        child=resolved.child,
        origin=record.origin,
        axis=record.axis,
        limits=record.limits,
    )
    child_joints[resolved.parent].append(index)
    return joint


def default_root_joint_type(kind: StructureKind) -> JointType:
    if kind is StructureKind.SKELETON:
        return JointType.FIXED
    return JointType.FLOATING


def create_root_joint(
    root_link: LinkRecord,
    root_index: int,
    index: int,
    kind: StructureKind,
    has_default_base: bool,
    base_index: Optional[int] = None,
    joint_type: Optional[JointType] = None,
) -> Joint:
    """
    Synthesize the joint anchoring the root node.

    Without a default base the joint connects the world frame directly to
    the root node, which then is the tree base. With one, it connects the
    virtual base node to the root node.

    Args:
        root_link: Record of the root link.
        root_index: Provisional index of the root node.
        index: Provisional index of the new joint.
        kind: Structural variant being built; decides the default type.
        has_default_base: Whether a virtual base node exists.
        base_index: Provisional index of the virtual base node.
        joint_type: Overrides the variant's default joint type.

    Returns:
        The synthetic root joint.
    """
    if has_default_base and base_index is None:
        raise ValueError("base_index is required when a default base node is used")

    return Joint(
        name=f"{root_link.name}_root_joint",
        type=joint_type if joint_type is not None else default_root_joint_type(kind),
        index=index,
        parent=base_index if has_default_base else None,
        child=root_index,
        is_synthetic=True,
    )
