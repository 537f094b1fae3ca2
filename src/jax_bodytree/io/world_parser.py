"""World files: several posed robots and objects in one scene.

A world file includes model URDFs and instantiates them as entities::

    <world name="kitchen">
      <include filename="robots/arm.urdf" model_name="arm"/>
      <include filename="objects/mug.urdf" model_name="mug"/>
      <entity model="arm" name="left_arm">
        <origin xyz="0 0.5 0" rpy="0 0 0"/>
      </entity>
      <entity model="mug" name="mug_1" type="object">
        <origin xyz="0.4 0 0.8"/>
      </entity>
    </world>

Entities are robots unless ``type="object"``. Include paths are resolved
relative to the world file.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Tuple

from lxml import etree

from jax_bodytree.builders import build_object, build_robot
from jax_bodytree.core.body_tree import BodyTree, StructureKind
from jax_bodytree.core.flat_model import FlatModel
from jax_bodytree.io.urdf_parser import PathLike, load_flat_model, parse_origin, required_attribute

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class World:
    name: str
    robots: Tuple[BodyTree, ...] = ()
    objects: Tuple[BodyTree, ...] = ()

    def robot(self, name: str) -> BodyTree:
        return _find(self.robots, name, "Robot")

    def object(self, name: str) -> BodyTree:
        return _find(self.objects, name, "Object")


def normalize_path(path: PathLike) -> Path:
    """Accept Windows-style separators on every platform."""
    return Path(str(path).replace("\\", "/"))


def load_world(world_path: PathLike) -> World:
    """
    Load a world file and build every entity it declares.

    Args:
        world_path: Path to the world file.

    Returns:
        World holding robots and objects, each with its entity name and base
        pose applied.
    """
    world_path = normalize_path(world_path)
    base_dir = world_path.parent

    root = etree.parse(str(world_path)).getroot()
    if root.tag != "world":
        raise ValueError(f"Expected a <world> element, got <{root.tag}>")

    models: Dict[str, FlatModel] = {}
    for include in root.findall("include"):
        filename = normalize_path(required_attribute(include, "filename"))
        model_name = include.get("model_name") or filename.stem
        if model_name in models:
            raise ValueError(f"Model name '{model_name}' is included more than once")
        # Robots with detached parts still fail in build_robot.
        models[model_name] = load_flat_model(base_dir / filename, strict_root=False)

    robots = []
    objects = []
    entity_names = set()
    for entity in root.findall("entity"):
        model_name = required_attribute(entity, "model")
        if model_name not in models:
            raise ValueError(f"Entity refers to model '{model_name}' which is not included")
        name = entity.get("name", model_name)
        if name in entity_names:
            raise ValueError(f"Entity name '{name}' is used more than once")
        entity_names.add(name)

        kind = StructureKind(entity.get("type", StructureKind.ROBOT.value))
        if kind is StructureKind.SKELETON:
            raise ValueError("World entities must be of type 'robot' or 'object'")

        model = models[model_name]
        tree = build_object(model) if kind is StructureKind.OBJECT else build_robot(model)

        origin = parse_origin(entity.find("origin"))
        tree = tree.with_base_pose(origin.xyz, origin.rpy).replace(name=name)
        (objects if kind is StructureKind.OBJECT else robots).append(tree)

    logger.debug(
        "Loaded world '%s': %d robots, %d objects", root.get("name"), len(robots), len(objects)
    )
    return World(name=root.get("name", ""), robots=tuple(robots), objects=tuple(objects))


def _find(trees: Tuple[BodyTree, ...], name: str, label: str) -> BodyTree:
    for tree in trees:
        if tree.name == name:
            return tree
    raise ValueError(f"{label} '{name}' not found in world")
