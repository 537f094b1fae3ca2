"""SO(3) rotation helpers in JAX.

Rotations are stored as 3x3 matrices. Roll-pitch-yaw angles follow the URDF
convention: fixed-axis rotations about X, then Y, then Z, i.e.
``R = Rz(yaw) @ Ry(pitch) @ Rx(roll)``.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def exp(log_r: Array) -> Array:
    """
    Rodrigues' formula: axis-angle vector to rotation matrix.

    Args:
        log_r: (..., 3) axis-angle vectors

    Returns:
        (..., 3, 3) rotation matrices
    """
    angle_sq = jnp.sum(log_r**2, axis=-1, keepdims=True)
    small_angle = angle_sq < 1e-16

    # sqrt is only taken away from zero so the gradient stays finite at q = 0
    angle = jnp.sqrt(jnp.where(small_angle, 1.0, angle_sq))
    sin_term = jnp.where(small_angle, 1.0 - angle_sq / 6.0, jnp.sin(angle) / angle)
    cos_term = jnp.where(small_angle, 0.5 - angle_sq / 24.0, (1.0 - jnp.cos(angle)) / angle**2)

    K = skew_symmetric(log_r)
    I = jnp.broadcast_to(jnp.eye(3, dtype=log_r.dtype), log_r.shape[:-1] + (3, 3))

    return I + sin_term[..., None] * K + cos_term[..., None] * jnp.matmul(K, K)


def skew_symmetric(v: Array) -> Array:
    """(..., 3) vector to its (..., 3, 3) cross-product matrix."""
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)

    return jnp.stack([
        jnp.stack([zeros, -v[..., 2], v[..., 1]], axis=-1),
        jnp.stack([v[..., 2], zeros, -v[..., 0]], axis=-1),
        jnp.stack([-v[..., 1], v[..., 0], zeros], axis=-1)
    ], axis=-2)


def from_rpy(rpy: Array) -> Array:
    """
    Convert roll-pitch-yaw angles to a rotation matrix.

    Args:
        rpy: (..., 3) array of [roll, pitch, yaw] in radians

    Returns:
        (..., 3, 3) rotation matrix
    """
    rpy = jnp.asarray(rpy, dtype=jnp.float64)
    cr, cp, cy = jnp.cos(rpy[..., 0]), jnp.cos(rpy[..., 1]), jnp.cos(rpy[..., 2])
    sr, sp, sy = jnp.sin(rpy[..., 0]), jnp.sin(rpy[..., 1]), jnp.sin(rpy[..., 2])

    return jnp.stack([
        jnp.stack([cy * cp, cy * sp * sr - sy * cr, cy * sp * cr + sy * sr], axis=-1),
        jnp.stack([sy * cp, sy * sp * sr + cy * cr, sy * sp * cr - cy * sr], axis=-1),
        jnp.stack([-sp, cp * sr, cp * cr], axis=-1)
    ], axis=-2)


def to_rpy(R: Array) -> Array:
    """
    Recover roll-pitch-yaw angles from a rotation matrix.

    At gimbal lock (pitch = ±pi/2) roll is set to zero and the whole
    rotation about Z is reported as yaw.

    Args:
        R: (..., 3, 3) rotation matrix

    Returns:
        (..., 3) array of [roll, pitch, yaw]
    """
    pitch = jnp.arcsin(jnp.clip(-R[..., 2, 0], -1.0, 1.0))
    gimbal_lock = jnp.abs(R[..., 2, 0]) > 1.0 - 1e-9

    roll = jnp.where(gimbal_lock, 0.0, jnp.arctan2(R[..., 2, 1], R[..., 2, 2]))
    yaw = jnp.where(
        gimbal_lock,
        jnp.arctan2(-R[..., 0, 1], R[..., 1, 1]),
        jnp.arctan2(R[..., 1, 0], R[..., 0, 0]),
    )
    return jnp.stack([roll, pitch, yaw], axis=-1)
