"""Dense integer indexing of a flat model.

Every link gets an index in ingestion order and every joint endpoint is
resolved to link indices exactly once, so the builders never look anything
up by name after this point.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from jax_bodytree.core.flat_model import FlatModel, JointRecord, LinkRecord, find_root_link
from jax_bodytree.errors import (
    JointCycleError,
    MultiplyParentedLink,
    UnknownRootLink,
    UnresolvedJointEndpoint,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedJoint:
    """A joint record whose endpoints have been resolved to link indices."""
    record: JointRecord
    parent: int
    child: int


class ModelArena:
    """Index-addressed view of a ``FlatModel``.

    Attributes:
        model: The source model.
        links: Link records; position is the link index.
        joints: Resolved joints; position is the joint index.
        index: Link name to link index.
        root: Index of the root link.
        parent_joint: For each link, the index of its incoming joint or None.

    When the model names no root, it is inferred; with ``strict_root`` off
    the first of several parentless links is taken.
    """

    def __init__(self, model: FlatModel, strict_root: bool = True):
        self.model = model
        self.links: Tuple[LinkRecord, ...] = tuple(model.links.values())
        self.index: Dict[str, int] = {link.name: i for i, link in enumerate(self.links)}

        joints = []
        for record in model.joints.values():
            joints.append(ResolvedJoint(
                record=record,
                parent=self._resolve(record, "parent", record.parent),
                child=self._resolve(record, "child", record.child),
            ))
        self.joints: Tuple[ResolvedJoint, ...] = tuple(joints)

        self.parent_joint: List[Optional[int]] = [None] * len(self.links)
        for j, joint in enumerate(self.joints):
            previous = self.parent_joint[joint.child]
            if previous is not None:
                raise MultiplyParentedLink(
                    joint.record.child,
                    (self.joints[previous].record.name, joint.record.name),
                )
            self.parent_joint[joint.child] = j

        root_name = model.root
        if root_name is None:
            root_name = find_root_link(model.links, model.joints.values(), strict=strict_root)
        if root_name not in self.index:
            raise UnknownRootLink(root_name)
        self.root = self.index[root_name]
        self._check_root_is_parentless()

        logger.debug(
            "Indexed model '%s': %d links, %d joints, root '%s'",
            model.name, len(self.links), len(self.joints), root_name,
        )

    def __len__(self) -> int:
        return len(self.links)

    def name_of(self, index: int) -> str:
        return self.links[index].name

    def _resolve(self, record: JointRecord, role: str, link: str) -> int:
        try:
            return self.index[link]
        except KeyError:
            raise UnresolvedJointEndpoint(record.name, role, link) from None

    def _check_root_is_parentless(self):
        incoming = self.parent_joint[self.root]
        if incoming is None:
            return

        # Walk up the single-parent chain; it either ends or closes a loop.
        chain = [self.root]
        seen = {self.root}
        current = self.joints[incoming].parent
        while current not in seen:
            chain.append(current)
            seen.add(current)
            j = self.parent_joint[current]
            if j is None:
                raise UnknownRootLink(
                    self.name_of(self.root),
                    f"is the child of joint '{self.joints[incoming].record.name}'",
                )
            current = self.joints[j].parent

        cycle = chain[chain.index(current):]
        raise JointCycleError(self.name_of(i) for i in cycle)
