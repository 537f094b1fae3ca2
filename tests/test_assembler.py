"""Tests for the breadth-first traversal, tree assembly and per-record conversion."""

import jax.numpy as jnp
import numpy as np
import pytest

from jax_bodytree.assembler import TreeAssembly, breadth_first_order, order_detached_parts
from jax_bodytree.convert import create_body_node, create_joint, create_root_joint
from jax_bodytree.core import (
    BodyNode,
    FlatModel,
    Inertial,
    Joint,
    JointRecord,
    JointType,
    LinkRecord,
    ModelArena,
    Origin,
    StructureKind,
)
from jax_bodytree.errors import DuplicateLinkName, JointCycleError, MultiplyParentedLink, StructuralError


def test_breadth_first_order_simple_chain():
    # 0 -> 1 -> 2 through joints 0 and 1
    child_joints = [[0], [1], []]
    joint_child = [1, 2]

    assert breadth_first_order(0, child_joints, joint_child, 3) == [0, 1, 2]


def test_breadth_first_order_siblings_in_joint_order():
    child_joints = [[2, 0, 1], [], [], []]
    joint_child = [1, 2, 3]

    assert breadth_first_order(0, child_joints, joint_child, 4) == [0, 3, 1, 2]


def test_breadth_first_order_terminates_on_cycle():
    """A cycle in the child lists never makes the traversal loop forever."""
    child_joints = [[0], [1], [2]]
    joint_child = [1, 2, 0]

    assert breadth_first_order(0, child_joints, joint_child, 3) == [0, 1, 2]


def test_breadth_first_order_respects_node_bound():
    """Emission stops once num_nodes nodes have been appended."""
    child_joints = [[0, 1], [], []]
    joint_child = [1, 2]

    assert breadth_first_order(0, child_joints, joint_child, 2) == [0, 1]


def test_breadth_first_order_visits_shared_child_once():
    child_joints = [[0, 1], [2], [3], []]
    joint_child = [1, 2, 3, 3]

    assert breadth_first_order(0, child_joints, joint_child, 4) == [0, 1, 2, 3]


def test_order_detached_parts():
    # Nodes 2 -> 1 form a part rooted at 2; node 3 stands alone.
    child_joints = [[], [], [0], []]
    joint_child = [1]
    parent_joint = [None, 0, None, None]
    names = ["root", "knob", "lid", "crumb"]

    assert order_detached_parts([1, 2, 3], child_joints, joint_child, parent_joint, names) == [2, 1, 3]


def test_order_detached_parts_rejects_cycle():
    child_joints = [[], [0], [1]]
    joint_child = [2, 1]
    parent_joint = [None, 1, 0]
    names = ["root", "x", "y"]

    with pytest.raises(JointCycleError) as excinfo:
        order_detached_parts([1, 2], child_joints, joint_child, parent_joint, names)
    assert excinfo.value.names == ("x", "y")


def test_create_body_node_copies_link():
    link = LinkRecord("arm", inertial=Inertial(mass=1.5, inertia=(1.0, 0.0, 0.0, 2.0, 0.0, 3.0)))

    node = create_body_node(link, 4)

    assert node.name == "arm"
    assert node.index == 4
    assert node.inertial.mass == 1.5
    assert node.child_joints == ()
    assert node.parent_joint is None
    np.testing.assert_allclose(node.inertial.inertia_matrix(), np.diag([1.0, 2.0, 3.0]))


def test_create_joint_registers_on_parent():
    model = FlatModel.from_records(
        "arm",
        [LinkRecord("base"), LinkRecord("arm")],
        [JointRecord("shoulder", JointType.REVOLUTE, "base", "arm", axis=(0.0, 1.0, 0.0))],
    )
    arena = ModelArena(model)
    child_joints = [[] for _ in arena.links]

    joint = create_joint(arena.joints[0], 0, child_joints)

    assert joint.parent == arena.index["base"]
    assert joint.child == arena.index["arm"]
    assert joint.axis == (0.0, 1.0, 0.0)
    assert child_joints[arena.index["base"]] == [0]
    assert child_joints[arena.index["arm"]] == []


def test_create_root_joint_variants():
    link = LinkRecord("pelvis")

    skeleton = create_root_joint(link, 0, 5, StructureKind.SKELETON, has_default_base=False)
    assert skeleton.name == "pelvis_root_joint"
    assert skeleton.type is JointType.FIXED
    assert skeleton.parent is None
    assert skeleton.is_synthetic

    robot = create_root_joint(link, 0, 5, StructureKind.ROBOT, has_default_base=True, base_index=9)
    assert robot.type is JointType.FLOATING
    assert robot.parent == 9

    with pytest.raises(ValueError, match="base_index"):
        create_root_joint(link, 0, 5, StructureKind.OBJECT, has_default_base=True)


def test_tree_assembly_renumbers_in_append_order():
    assembly = TreeAssembly("pair", StructureKind.SKELETON)
    # Provisional indices 7 and 3, appended parent first.
    assembly.append_node(BodyNode("parent", 7), [11])
    assembly.append_node(BodyNode("child", 3))
    assembly.append_joint(Joint("anchor", JointType.FIXED, 20, None, 7, is_synthetic=True))
    assembly.append_joint(
        Joint("hinge", JointType.REVOLUTE, 11, 7, 3, origin=Origin(xyz=(1.0, 0.0, 0.0)), axis=(0.0, 0.0, 1.0))
    )
    assembly.set_base_pose((0.0, 0.0, 2.0))

    tree = assembly.init_structure()

    assert tree.node_names == ("parent", "child")
    assert [n.index for n in tree.nodes] == [0, 1]
    assert tree.joint("hinge").index == 1
    assert tree.joint("hinge").parent == 0
    assert tree.joint("hinge").child == 1
    assert tree.node("parent").child_joints == (1,)
    assert tree.node("parent").parent_joint == 0
    assert tree.node("child").parent_joint == 1

    np.testing.assert_array_equal(tree.parent_indices, [0, 0])
    np.testing.assert_array_equal(tree.dof_indices, [-1, 0])
    np.testing.assert_allclose(tree.joint_axes[1], [0, 0, 0, 0, 0, 1])
    np.testing.assert_allclose(tree.joint_transforms[1][:3, 3], [1.0, 0.0, 0.0])
    np.testing.assert_allclose(tree.base_pose[:3, 3], [0.0, 0.0, 2.0])


def test_tree_assembly_rejects_child_before_parent():
    assembly = TreeAssembly("backwards", StructureKind.SKELETON)
    assembly.append_node(BodyNode("child", 1))
    assembly.append_node(BodyNode("parent", 0), [0])
    assembly.append_joint(Joint("hinge", JointType.REVOLUTE, 0, 0, 1))

    with pytest.raises(JointCycleError):
        assembly.init_structure()


def test_tree_assembly_rejects_duplicate_names():
    assembly = TreeAssembly("twins", StructureKind.SKELETON)
    assembly.append_node(BodyNode("same", 0))
    assembly.append_node(BodyNode("same", 1))

    with pytest.raises(DuplicateLinkName):
        assembly.init_structure()


def test_tree_assembly_rejects_two_incoming_joints():
    assembly = TreeAssembly("twice", StructureKind.SKELETON)
    assembly.append_node(BodyNode("a", 0), [0, 1])
    assembly.append_node(BodyNode("b", 1))
    assembly.append_joint(Joint("first", JointType.FIXED, 0, 0, 1))
    assembly.append_joint(Joint("second", JointType.FIXED, 1, 0, 1))

    with pytest.raises(MultiplyParentedLink, match="'b'"):
        assembly.init_structure()


def test_joint_twist_layout():
    revolute = Joint("r", JointType.REVOLUTE, 0, 0, 1, axis=(0.0, 1.0, 0.0))
    prismatic = Joint("p", JointType.PRISMATIC, 0, 0, 1, axis=(1.0, 0.0, 0.0))
    fixed = Joint("f", JointType.FIXED, 0, 0, 1)

    np.testing.assert_allclose(revolute.twist(), [0, 0, 0, 0, 1, 0])
    np.testing.assert_allclose(prismatic.twist(), [1, 0, 0, 0, 0, 0])
    np.testing.assert_allclose(fixed.twist(), jnp.zeros(6))


def test_tree_assembly_rejects_unappended_child_joint():
    """A child joint id with no appended joint is an error, not a dropped edge."""
    assembly = TreeAssembly("dangling", StructureKind.SKELETON)
    assembly.append_node(BodyNode("a", 0), [0, 5])
    assembly.append_node(BodyNode("b", 1))
    assembly.append_joint(Joint("hinge", JointType.REVOLUTE, 0, 0, 1))

    with pytest.raises(StructuralError, match=r"'a' lists child joint\(s\) \[5\]"):
        assembly.init_structure()
