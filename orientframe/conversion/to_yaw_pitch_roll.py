# to_yaw_pitch_roll.py
import math
from typing import Optional

from numpy import empty as np_empty
from numpy import float64 as np_float64
from numpy import ndarray
from numba import njit

from orientframe.conversion.representation import Representation
from orientframe.features import as_rotation_matrix
from orientframe.tolerance import (
    EPS_NEAR_ZERO,
    GIMBAL_LOCK_EPSILON,
    clamp_unit,
    contains_nan3,
    contains_nan4,
    contains_nan9,
    norm3,
    norm4,
)

from numba.core.errors import NumbaPerformanceWarning
import warnings
warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)


@njit(cache=True)
def _elements_to_yaw_pitch_roll(m00, m01, m10, m11, m20, m21, m22, out):
    """
    Yaw, pitch and roll from the seven elements of R = Rz(yaw) Ry(pitch) Rx(roll)
    they depend on. NaN elements propagate to all three angles.
    """
    if contains_nan4(m00, m01, m10, m11) or contains_nan3(m20, m21, m22):
        out[0], out[1], out[2] = math.nan, math.nan, math.nan
        return out

    pitch = math.asin(clamp_unit(-m20))

    # |cos(pitch)| is the norm of both (m00, m10) and (m21, m22). When it
    # vanishes only yaw - roll (or yaw + roll) is observable, roll is set to 0.
    if math.hypot(m00, m10) < GIMBAL_LOCK_EPSILON or math.hypot(m21, m22) < GIMBAL_LOCK_EPSILON:
        yaw = math.atan2(-m01, m11)
        roll = 0.0
    else:
        yaw = math.atan2(m10, m00)
        roll = math.atan2(m21, m22)

    out[0], out[1], out[2] = yaw, pitch, roll
    return out


@njit(cache=True)
def _matrix_to_yaw_pitch_roll(m, out):
    if contains_nan9(m[0, 0], m[0, 1], m[0, 2], m[1, 0], m[1, 1], m[1, 2], m[2, 0], m[2, 1], m[2, 2]):
        out[0], out[1], out[2] = math.nan, math.nan, math.nan
        return out
    return _elements_to_yaw_pitch_roll(m[0, 0], m[0, 1], m[1, 0], m[1, 1], m[2, 0], m[2, 1], m[2, 2], out)


@njit(cache=True)
def _quaternion_to_yaw_pitch_roll(qx, qy, qz, qs, out):
    if contains_nan4(qx, qy, qz, qs):
        out[0], out[1], out[2] = math.nan, math.nan, math.nan
        return out

    norm = norm4(qx, qy, qz, qs)
    if norm < EPS_NEAR_ZERO:
        out[0], out[1], out[2] = 0.0, 0.0, 0.0
        return out

    norm = 1.0 / norm
    qx *= norm
    qy *= norm
    qz *= norm
    qs *= norm

    xx = qx * qx
    yy = qy * qy
    zz = qz * qz
    xy = qx * qy
    xz = qx * qz
    yz = qy * qz
    sx = qs * qx
    sy = qs * qy
    sz = qs * qz

    return _elements_to_yaw_pitch_roll(
        1.0 - 2.0 * (yy + zz),
        2.0 * (xy - sz),
        2.0 * (xy + sz),
        1.0 - 2.0 * (xx + zz),
        2.0 * (xz - sy),
        2.0 * (yz + sx),
        1.0 - 2.0 * (xx + yy),
        out,
    )


@njit(cache=True)
def _axis_angle_to_yaw_pitch_roll(ux, uy, uz, angle, out):
    if contains_nan4(ux, uy, uz, angle):
        out[0], out[1], out[2] = math.nan, math.nan, math.nan
        return out

    u_norm = norm3(ux, uy, uz)
    if u_norm < EPS_NEAR_ZERO:
        out[0], out[1], out[2] = 0.0, 0.0, 0.0
        return out

    u_norm = 1.0 / u_norm
    ux *= u_norm
    uy *= u_norm
    uz *= u_norm

    sin_theta = math.sin(angle)
    cos_theta = math.cos(angle)
    t = 1.0 - cos_theta

    xy = t * ux * uy
    xz = t * ux * uz
    yz = t * uy * uz

    return _elements_to_yaw_pitch_roll(
        t * ux * ux + cos_theta,
        xy - sin_theta * uz,
        xy + sin_theta * uz,
        t * uy * uy + cos_theta,
        xz - sin_theta * uy,
        yz + sin_theta * ux,
        t * uz * uz + cos_theta,
        out,
    )


@njit(cache=True)
def _rotation_vector_to_yaw_pitch_roll(rx, ry, rz, out):
    if contains_nan3(rx, ry, rz):
        out[0], out[1], out[2] = math.nan, math.nan, math.nan
        return out

    angle = norm3(rx, ry, rz)
    if angle < EPS_NEAR_ZERO:
        out[0], out[1], out[2] = 0.0, 0.0, 0.0
        return out

    half_angle = 0.5 * angle
    sin_half_angle = math.sin(half_angle) / angle
    return _quaternion_to_yaw_pitch_roll(rx * sin_half_angle, ry * sin_half_angle, rz * sin_half_angle,
                                         math.cos(half_angle), out)


def _destination(out: Optional[ndarray]) -> ndarray:
    return np_empty(3, dtype=np_float64) if out is None else out


def matrix_to_yaw_pitch_roll(matrix, out: Optional[ndarray] = None, check: bool = True) -> ndarray:
    """
    Convert a 3x3 rotation matrix to (yaw, pitch, roll) such that
    R = Rz(yaw) @ Ry(pitch) @ Rx(roll).

    Pitch lies in [-pi/2, pi/2], yaw and roll in [-pi, pi]. At gimbal lock,
    i.e. |cos(pitch)| < GIMBAL_LOCK_EPSILON, yaw and roll are coupled and the
    result is chosen deterministically with roll = 0.

    Parameters:
        matrix (array_like): 3x3 rotation matrix.
        out (ndarray, optional): length-3 array to write into.
        check (bool, optional): validate that `matrix` is a rotation matrix.

    Returns:
        ndarray: the yaw, pitch and roll angles in radians.

    Raises:
        NotARotationMatrixError: if `check` is set and `matrix` is not a rotation.
    """
    m = as_rotation_matrix(matrix, check)
    return _matrix_to_yaw_pitch_roll(m, _destination(out))


def quaternion_to_yaw_pitch_roll(quaternion, out: Optional[ndarray] = None) -> ndarray:
    """Convert a quaternion (x, y, z, s) to yaw-pitch-roll. The quaternion is normalized first."""
    qx, qy, qz, qs = Representation.QUATERNION.validate(quaternion)
    return _quaternion_to_yaw_pitch_roll(qx, qy, qz, qs, _destination(out))


def axis_angle_to_yaw_pitch_roll(axis_angle, out: Optional[ndarray] = None) -> ndarray:
    ux, uy, uz, angle = Representation.AXIS_ANGLE.validate(axis_angle)
    return _axis_angle_to_yaw_pitch_roll(ux, uy, uz, angle, _destination(out))


def rotation_vector_to_yaw_pitch_roll(rotation_vector, out: Optional[ndarray] = None) -> ndarray:
    rx, ry, rz = Representation.ROTATION_VECTOR.validate(rotation_vector)
    return _rotation_vector_to_yaw_pitch_roll(rx, ry, rz, _destination(out))
