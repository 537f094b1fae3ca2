"""URDF parser producing flat models and assembled body trees.

This module reads links and joints out of a URDF document with lxml and
hands them, unordered, to the builders in ``jax_bodytree.builders``.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from lxml import etree

from jax_bodytree.builders import build_object, build_robot, build_skeleton
from jax_bodytree.core.body_tree import BodyTree
from jax_bodytree.core.flat_model import (
    FlatModel,
    Geometry,
    GeometryKind,
    Inertial,
    JointLimits,
    JointRecord,
    JointType,
    LinkRecord,
    Origin,
    Vec3,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_flat_model(urdf_path: PathLike, strict_root: bool = True) -> FlatModel:
    """Load a URDF file into a FlatModel.

    Args:
        urdf_path: Path to the URDF file to load.
        strict_root: Require exactly one link without a parent joint.

    Returns:
        FlatModel: Links and joints keyed by name, root inferred.
    """
    tree = etree.parse(str(urdf_path))
    return flat_model_from_element(tree.getroot(), strict_root)


def parse_flat_model(xml_string: Union[str, bytes], strict_root: bool = True) -> FlatModel:
    """Parse a URDF document held in memory."""
    if isinstance(xml_string, str):
        xml_string = xml_string.encode("utf-8")
    return flat_model_from_element(etree.fromstring(xml_string), strict_root)


def flat_model_from_element(robot: etree._Element, strict_root: bool = True) -> FlatModel:
    """Convert a ``<robot>`` element into a FlatModel."""
    if robot.tag != "robot":
        raise ValueError(f"Expected a <robot> element, got <{robot.tag}>")

    links = [_parse_link(link) for link in robot.findall("link")]
    joints = [_parse_joint(joint) for joint in robot.findall("joint")]
    logger.debug("Parsed URDF '%s': %d links, %d joints", robot.get("name"), len(links), len(joints))

    return FlatModel.from_records(robot.get("name", ""), links, joints, strict_root=strict_root)


def load_skeleton(urdf_path: PathLike) -> BodyTree:
    return build_skeleton(load_flat_model(urdf_path))


def load_robot(urdf_path: PathLike) -> BodyTree:
    return build_robot(load_flat_model(urdf_path))


def load_object(urdf_path: PathLike) -> BodyTree:
    return build_object(load_flat_model(urdf_path, strict_root=False))


def _parse_link(link: etree._Element) -> LinkRecord:
    inertial = Inertial()
    inertial_elem = link.find("inertial")
    if inertial_elem is not None:
        inertial = _parse_inertial(inertial_elem)

    return LinkRecord(
        name=required_attribute(link, "name"),
        inertial=inertial,
        visuals=tuple(filter(None, (_parse_geometry(e) for e in link.findall("visual")))),
        collisions=tuple(filter(None, (_parse_geometry(e) for e in link.findall("collision")))),
    )


def _parse_inertial(elem: etree._Element) -> Inertial:
    mass_elem = elem.find("mass")
    mass = _float(mass_elem.get("value", "0")) if mass_elem is not None else 0.0

    inertia = (0.0,) * 6
    inertia_elem = elem.find("inertia")
    if inertia_elem is not None:
        inertia = tuple(
            _float(inertia_elem.get(key, "0"))
            for key in ("ixx", "ixy", "ixz", "iyy", "iyz", "izz")
        )

    return Inertial(mass=mass, origin=parse_origin(elem.find("origin")), inertia=inertia)


def _parse_geometry(elem: etree._Element) -> Optional[Geometry]:
    """Parse a ``<visual>`` or ``<collision>`` block; None if it has no shape."""
    geometry = elem.find("geometry")
    if geometry is None or len(geometry) == 0:
        return None

    shape = geometry[0]
    origin = parse_origin(elem.find("origin"))

    if shape.tag == "box":
        return Geometry(GeometryKind.BOX, origin=origin, size=_vec3(shape.get("size", "0 0 0")))
    if shape.tag == "cylinder":
        return Geometry(
            GeometryKind.CYLINDER,
            origin=origin,
            radius=_float(shape.get("radius", "0")),
            length=_float(shape.get("length", "0")),
        )
    if shape.tag == "sphere":
        return Geometry(GeometryKind.SPHERE, origin=origin, radius=_float(shape.get("radius", "0")))
    if shape.tag == "mesh":
        return Geometry(
            GeometryKind.MESH,
            origin=origin,
            filename=shape.get("filename"),
            scale=_vec3(shape.get("scale", "1 1 1")),
        )

    logger.warning("Ignoring unsupported geometry <%s>", shape.tag)
    return None


def _parse_joint(joint: etree._Element) -> JointRecord:
    name = required_attribute(joint, "name")
    type_str = required_attribute(joint, "type")
    try:
        joint_type = JointType(type_str)
    except ValueError:
        raise ValueError(f"Joint '{name}' has unknown type '{type_str}'") from None

    parent_elem = joint.find("parent")
    child_elem = joint.find("child")
    if parent_elem is None or child_elem is None:
        raise ValueError(f"Joint '{name}' needs both <parent> and <child>")

    axis = (1.0, 0.0, 0.0)  # URDF default axis
    axis_elem = joint.find("axis")
    if axis_elem is not None:
        axis = _vec3(axis_elem.get("xyz", "1 0 0"))

    limits = None
    limit_elem = joint.find("limit")
    if limit_elem is not None:
        limits = JointLimits(
            lower=_float(limit_elem.get("lower", "0")),
            upper=_float(limit_elem.get("upper", "0")),
            effort=_float(limit_elem.get("effort", "0")),
            velocity=_float(limit_elem.get("velocity", "0")),
        )

    return JointRecord(
        name=name,
        type=joint_type,
        parent=required_attribute(parent_elem, "link"),
        child=required_attribute(child_elem, "link"),
        origin=parse_origin(joint.find("origin")),
        axis=axis,
        limits=limits,
    )


def parse_origin(elem: Optional[etree._Element]) -> Origin:
    if elem is None:
        return Origin()
    return Origin(xyz=_vec3(elem.get("xyz", "0 0 0")), rpy=_vec3(elem.get("rpy", "0 0 0")))


def required_attribute(elem: etree._Element, attribute: str) -> str:
    value = elem.get(attribute)
    if value is None:
        raise ValueError(f"<{elem.tag}> on line {elem.sourceline} is missing '{attribute}'")
    return value


def _float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"Invalid number '{text}'") from None


def _vec3(text: str) -> Vec3:
    values: Tuple[float, ...] = tuple(_float(x) for x in text.split())
    if len(values) != 3:
        raise ValueError(f"Expected three numbers, got '{text}'")
    return values
