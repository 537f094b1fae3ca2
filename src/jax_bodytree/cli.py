"""Command line entry point: assemble a URDF model and print its tree."""

import argparse
import logging
import sys
from typing import List, Optional

from lxml import etree

from jax_bodytree.builders import POLICIES, build_tree
from jax_bodytree.core.body_tree import BodyTree, StructureKind
from jax_bodytree.io.urdf_parser import load_flat_model


def format_tree(tree: BodyTree) -> str:
    """Render the tree with box-drawing connectors, one node per line."""
    lines = [f"{tree.kind.value} '{tree.name}': {len(tree.nodes)} nodes, {len(tree.joints)} joints"]

    def _visit(index: int, prefix: str, is_last: bool, is_top: bool):
        node = tree.nodes[index]
        label = f"[{node.name}]" + (" (virtual)" if node.is_virtual else "")
        if node.parent_joint is not None:
            joint = tree.joints[node.parent_joint]
            label = f"{joint.name} ({joint.type.value}) -> {label}"

        if is_top:
            lines.append(f"{prefix}{label}")
            child_prefix = prefix
        else:
            lines.append(f"{prefix}{'└── ' if is_last else '├── '}{label}")
            child_prefix = prefix + ("    " if is_last else "│   ")

        children = [tree.joints[j].child for j in node.child_joints]
        for i, child in enumerate(children):
            _visit(child, child_prefix, i == len(children) - 1, False)

    for node in tree.nodes:
        joint = None if node.parent_joint is None else tree.joints[node.parent_joint]
        if joint is None or joint.parent is None:
            _visit(node.index, "", True, True)
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Assemble a URDF model into a body tree")
    parser.add_argument("model", help="Path to the URDF file")
    parser.add_argument(
        "--variant",
        choices=[kind.value for kind in StructureKind],
        default=StructureKind.SKELETON.value,
        help="Structural variant to build",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log assembly details")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    kind = StructureKind(args.variant)
    try:
        model = load_flat_model(args.model, strict_root=kind is not StructureKind.OBJECT)
        tree = build_tree(model, POLICIES[kind])
    except (OSError, ValueError, etree.XMLSyntaxError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(format_tree(tree))
    return 0


if __name__ == "__main__":
    sys.exit(main())
