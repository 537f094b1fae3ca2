"""SE(3) homogeneous transforms in JAX.

Transforms are (..., 4, 4) matrices. Joint motion uses 6D twists in
``[vx, vy, vz, wx, wy, wz]`` order, with the linear part first.
"""

import jax
import jax.numpy as jnp

from . import so3

Array = jax.Array


def identity() -> Array:
    return jnp.eye(4)


def from_position_and_rotation(p: Array, R: Array) -> Array:
    """
    Construct SE(3) transform from position and rotation.

    Args:
        p: (..., 3) position vector
        R: (..., 3, 3) rotation matrix

    Returns:
        (..., 4, 4) homogeneous transformation matrix
    """
    batch_shape = jnp.broadcast_shapes(p.shape[:-1], R.shape[:-2])
    p = jnp.broadcast_to(p, batch_shape + (3,))
    R = jnp.broadcast_to(R, batch_shape + (3, 3))

    bottom = jnp.broadcast_to(jnp.array([0.0, 0.0, 0.0, 1.0], dtype=R.dtype), batch_shape + (1, 4))
    top = jnp.concatenate([R, p[..., None].astype(R.dtype)], axis=-1)
    return jnp.concatenate([top, bottom], axis=-2)


def from_xyz_rpy(xyz, rpy) -> Array:
    """Build a transform from a translation and roll-pitch-yaw angles."""
    xyz = jnp.asarray(xyz, dtype=jnp.float64)
    return from_position_and_rotation(xyz, so3.from_rpy(rpy))


def to_xyz_rpy(T: Array):
    """Split a transform into ``(xyz, rpy)``."""
    return get_position(T), so3.to_rpy(get_rotation(T))


def joint_motion(axis: Array, q: Array) -> Array:
    """
    Transform produced by displacing a 1-DOF joint by ``q``.

    Revolute axes carry their direction in the angular half of the twist,
    prismatic axes in the linear half; a zero twist gives the identity.

    Args:
        axis: (..., 6) joint twist
        q: (...) joint displacement

    Returns:
        (..., 4, 4) transform
    """
    q = jnp.asarray(q)[..., None]
    R = so3.exp(axis[..., 3:] * q)
    return from_position_and_rotation(axis[..., :3] * q, R)


def multiply(T1: Array, T2: Array) -> Array:
    """T1 @ T2: apply ``T2`` first, then ``T1``."""
    return jnp.matmul(T1, T2)


def inverse(T: Array) -> Array:
    """
    Inverse of an SE(3) transform using the block structure
    ``T^-1 = [[R^T, -R^T t], [0, 1]]``.
    """
    R_inv = jnp.swapaxes(get_rotation(T), -1, -2)
    t_inv = -jnp.einsum("...ij,...j->...i", R_inv, get_position(T))
    return from_position_and_rotation(t_inv, R_inv)


def get_position(T: Array) -> Array:
    return T[..., :3, 3]


def get_rotation(T: Array) -> Array:
    return T[..., :3, :3]
