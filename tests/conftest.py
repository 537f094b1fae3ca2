"""Shared fixtures for the body tree tests."""

from pathlib import Path

import pytest

from jax_bodytree.core import FlatModel, JointRecord, JointType, LinkRecord, Origin

FIXTURES = Path(__file__).parent / "fixtures"


def make_model(name, links, joints, root=None):
    """Build a FlatModel from link names and ``(joint, parent, child)`` triples."""
    return FlatModel.from_records(
        name,
        [LinkRecord(link) for link in links],
        [
            JointRecord(joint, JointType.REVOLUTE, parent, child, axis=(0.0, 0.0, 1.0))
            for joint, parent, child in joints
        ],
        root=root,
    )


@pytest.fixture
def fixtures_dir():
    return FIXTURES


@pytest.fixture
def arm_model():
    """base -> arm1 -> arm2, listed out of order."""
    return make_model(
        "arm",
        ["arm2", "base", "arm1"],
        [("j2", "arm1", "arm2"), ("j1", "base", "arm1")],
        root="base",
    )


@pytest.fixture
def branched_model():
    """A torso with two legs and a head; joints listed in a fixed order."""
    links = ["torso", "head", "l_thigh", "l_shin", "r_thigh", "r_shin"]
    joints = [
        ("l_hip", "torso", "l_thigh"),
        ("neck", "torso", "head"),
        ("r_hip", "torso", "r_thigh"),
        ("r_knee", "r_thigh", "r_shin"),
        ("l_knee", "l_thigh", "l_shin"),
    ]
    return FlatModel.from_records(
        "walker",
        [LinkRecord(link) for link in links],
        [
            JointRecord(joint, JointType.REVOLUTE, parent, child, origin=Origin(xyz=(0.0, 0.0, -0.4)))
            for joint, parent, child in joints
        ],
        root="torso",
    )
