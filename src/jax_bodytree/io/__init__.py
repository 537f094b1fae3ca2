"""I/O utilities for loading body trees from URDF files.

This module parses URDF documents and world files into flat models and
hands them to the structure builders.
"""

from .urdf_parser import (
    load_flat_model,
    load_object,
    load_robot,
    load_skeleton,
    parse_flat_model,
)
from .world_parser import World, load_world

__all__ = [
    "World",
    "load_flat_model",
    "load_object",
    "load_robot",
    "load_skeleton",
    "load_world",
    "parse_flat_model",
]
