"""Structural errors raised while assembling a body tree.

Every error carries the offending name(s) so that a malformed model can be
diagnosed without re-running the conversion.
"""

from typing import Iterable, Optional, Tuple


class StructuralError(ValueError):
    """Base class for inconsistencies in a flat link/joint model."""


class UnknownRootLink(StructuralError):
    """The root link is missing, ambiguous, or not a valid tree root."""

    def __init__(self, name: Optional[str], reason: str = "is not in the link set"):
        self.name = name
        if name is None:
            super().__init__(f"Cannot determine root link: {reason}")
        else:
            super().__init__(f"Root link '{name}' {reason}")


class UnresolvedJointEndpoint(StructuralError):
    """A joint references a parent or child link that does not exist."""

    def __init__(self, joint: str, role: str, link: str):
        self.joint = joint
        self.role = role
        self.link = link
        super().__init__(f"Joint '{joint}' references unknown {role} link '{link}'")


class UnreachableLink(StructuralError):
    """Links never visited by the traversal from the root."""

    def __init__(self, names: Iterable[str]):
        self.names: Tuple[str, ...] = tuple(names)
        super().__init__(
            f"{len(self.names)} link(s) not reachable from the root: {', '.join(self.names)}"
        )


class DuplicateLinkName(StructuralError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Link name '{name}' is defined more than once")


class DuplicateJointName(StructuralError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Joint name '{name}' is defined more than once")


class MultiplyParentedLink(StructuralError):
    """A link is the child of more than one joint."""

    def __init__(self, name: str, joints: Iterable[str]):
        self.name = name
        self.joints: Tuple[str, ...] = tuple(joints)
        super().__init__(
            f"Link '{name}' has more than one parent joint: {', '.join(self.joints)}"
        )


class JointCycleError(StructuralError):
    def __init__(self, names: Iterable[str]):
        self.names: Tuple[str, ...] = tuple(names)
        super().__init__(f"Joint graph contains a cycle through: {', '.join(self.names)}")
