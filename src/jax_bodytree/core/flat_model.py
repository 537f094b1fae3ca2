"""Flat, unordered link/joint description of a mechanism.

This is the shape produced by a markup parser before any tree structure is
known: links keyed by name, joints keyed by name that reference links only
by name, and a designated root link. All records are frozen and hashable so
that they can travel as static fields of a flax PyTree.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional, Tuple

import jax
import numpy as np

from jax_bodytree.errors import DuplicateJointName, DuplicateLinkName, UnknownRootLink
from jax_bodytree.transforms import se3

Vec3 = Tuple[float, float, float]


class JointType(str, Enum):
    REVOLUTE = "revolute"
    CONTINUOUS = "continuous"
    PRISMATIC = "prismatic"
    FIXED = "fixed"
    FLOATING = "floating"
    PLANAR = "planar"

    @property
    def num_dofs(self) -> int:
        if self in (JointType.REVOLUTE, JointType.CONTINUOUS, JointType.PRISMATIC):
            return 1
        if self is JointType.FLOATING:
            return 6
        if self is JointType.PLANAR:
            return 3
        return 0


@dataclass(frozen=True)
class Origin:
    """Translation plus roll-pitch-yaw rotation, URDF style."""
    xyz: Vec3 = (0.0, 0.0, 0.0)
    rpy: Vec3 = (0.0, 0.0, 0.0)

    def as_matrix(self) -> jax.Array:
        return se3.from_xyz_rpy(self.xyz, self.rpy)


@dataclass(frozen=True)
class Inertial:
    """Mass properties of a link.

    Attributes:
        mass: Link mass in kilograms.
        origin: Pose of the center of mass in the link frame.
        inertia: Upper triangle ``(ixx, ixy, ixz, iyy, iyz, izz)`` of the
                 inertia tensor about the center of mass.
    """
    mass: float = 0.0
    origin: Origin = Origin()
    inertia: Tuple[float, float, float, float, float, float] = (0.0,) * 6

    def inertia_matrix(self) -> np.ndarray:
        ixx, ixy, ixz, iyy, iyz, izz = self.inertia
        return np.array([
            [ixx, ixy, ixz],
            [ixy, iyy, iyz],
            [ixz, iyz, izz],
        ])


class GeometryKind(str, Enum):
    BOX = "box"
    CYLINDER = "cylinder"
    SPHERE = "sphere"
    MESH = "mesh"


@dataclass(frozen=True)
class Geometry:
    """A visual or collision shape attached to a link.

    Only the fields relevant to ``kind`` are set: ``size`` for boxes,
    ``radius``/``length`` for cylinders and spheres, ``filename``/``scale``
    for meshes.
    """
    kind: GeometryKind
    origin: Origin = Origin()
    size: Optional[Vec3] = None
    radius: Optional[float] = None
    length: Optional[float] = None
    filename: Optional[str] = None
    scale: Vec3 = (1.0, 1.0, 1.0)


@dataclass(frozen=True)
class JointLimits:
    lower: float = 0.0
    upper: float = 0.0
    effort: float = 0.0
    velocity: float = 0.0


@dataclass(frozen=True)
class LinkRecord:
    name: str
    inertial: Inertial = Inertial()
    visuals: Tuple[Geometry, ...] = ()
    collisions: Tuple[Geometry, ...] = ()


@dataclass(frozen=True)
class JointRecord:
    """A typed connection from a parent link to a child link.

    ``origin`` is the transform from the parent link frame to the joint
    frame, which is also the child link frame at zero displacement.
    """
    name: str
    type: JointType
    parent: str
    child: str
    origin: Origin = Origin()
    axis: Vec3 = (1.0, 0.0, 0.0)
    limits: Optional[JointLimits] = None


@dataclass(frozen=True)
class FlatModel:
    """Links and joints keyed by name, plus the designated root link.

    Mapping iteration order is the ingestion order and is the only order the
    builders rely on when they need one (e.g. loose object parts).
    """
    name: str
    links: Mapping[str, LinkRecord] = field(default_factory=dict)
    joints: Mapping[str, JointRecord] = field(default_factory=dict)
    root: Optional[str] = None

    def __post_init__(self):
        for key, link in self.links.items():
            if key != link.name:
                # One record reachable under two names.
                raise DuplicateLinkName(link.name)
        for key, joint in self.joints.items():
            if key != joint.name:
                raise DuplicateJointName(joint.name)

    @classmethod
    def from_records(
        cls,
        name: str,
        links: Iterable[LinkRecord],
        joints: Iterable[JointRecord] = (),
        root: Optional[str] = None,
        strict_root: bool = True,
    ) -> "FlatModel":
        """Build a model from record sequences, rejecting duplicate names.

        Args:
            name: Model name.
            links: Link records; names must be unique.
            joints: Joint records; names must be unique.
            root: Root link name. When omitted, the single link that is never
                  the child of a joint is used.
            strict_root: When False and several links have no parent joint,
                         the first one is taken as root instead of raising.

        Returns:
            FlatModel with ``root`` always set.
        """
        link_map = {}
        for link in links:
            if link.name in link_map:
                raise DuplicateLinkName(link.name)
            link_map[link.name] = link

        joint_map = {}
        for joint in joints:
            if joint.name in joint_map:
                raise DuplicateJointName(joint.name)
            joint_map[joint.name] = joint

        if root is None:
            root = find_root_link(link_map, joint_map.values(), strict=strict_root)

        return cls(name=name, links=link_map, joints=joint_map, root=root)

    @property
    def link_names(self) -> Tuple[str, ...]:
        return tuple(self.links)

    @property
    def joint_names(self) -> Tuple[str, ...]:
        return tuple(self.joints)


def find_root_link(
    links: Mapping[str, LinkRecord],
    joints: Iterable[JointRecord],
    strict: bool = True,
) -> str:
    """Return the link that is not the child of any joint.

    With ``strict`` the link must be unique; otherwise the first candidate in
    ingestion order wins, which suits models made of detached parts.
    """
    child_links = {joint.child for joint in joints}
    candidates = [name for name in links if name not in child_links]

    if not candidates:
        raise UnknownRootLink(None, "every link is the child of a joint")
    if len(candidates) > 1 and strict:
        raise UnknownRootLink(None, f"expected exactly one root link, found: {candidates}")
    return candidates[0]
