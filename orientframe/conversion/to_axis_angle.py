# to_axis_angle.py
import math
from typing import Optional

from numpy import empty as np_empty
from numpy import float64 as np_float64
from numpy import ndarray
from numba import njit

from orientframe.conversion.representation import Representation
from orientframe.conversion.to_quaternion import _yaw_pitch_roll_to_quaternion
from orientframe.features import as_rotation_matrix
from orientframe.tolerance import (
    EPS_NEAR_ZERO,
    contains_nan3,
    contains_nan4,
    contains_nan9,
    norm3,
)

from numba.core.errors import NumbaPerformanceWarning
import warnings
warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)


# below this cosine the axis is read from the symmetric part of the matrix
_COS_SYMMETRIC_BRANCH = -0.9


@njit(cache=True, inline='always')
def _set_axis_angle(ux, uy, uz, angle, out):
    out[0], out[1], out[2], out[3] = ux, uy, uz, angle
    return out


@njit(cache=True, inline='always')
def _set_zero(out):
    return _set_axis_angle(1.0, 0.0, 0.0, 0.0, out)


@njit(cache=True, inline='always')
def _set_nan(out):
    return _set_axis_angle(math.nan, math.nan, math.nan, math.nan, out)


@njit(cache=True)
def _matrix_to_axis_angle(m, out):
    m00, m01, m02 = m[0, 0], m[0, 1], m[0, 2]
    m10, m11, m12 = m[1, 0], m[1, 1], m[1, 2]
    m20, m21, m22 = m[2, 0], m[2, 1], m[2, 2]

    if contains_nan9(m00, m01, m02, m10, m11, m12, m20, m21, m22):
        return _set_nan(out)

    # twice sin(angle) * axis
    x = m21 - m12
    y = m02 - m20
    z = m10 - m01
    s = norm3(x, y, z)
    cos_angle = 0.5 * (m00 + m11 + m22 - 1.0)

    if s > EPS_NEAR_ZERO:
        angle = math.atan2(0.5 * s, cos_angle)
        if cos_angle > _COS_SYMMETRIC_BRANCH:
            return _set_axis_angle(x / s, y / s, z / s, angle, out)
    elif cos_angle > 0.0:
        # symmetric and closer to the identity than to a half-turn, the trace
        # may exceed 3 within the rotation tolerance
        return _set_zero(out)
    else:
        angle = math.pi

    # close to a half-turn the skew part vanishes: (1 - cos) * u * u^T is read
    # from the symmetric part instead, using the largest diagonal term as pivot
    t = 1.0 - cos_angle
    if t <= EPS_NEAR_ZERO:
        return _set_zero(out)
    xx = (m00 - cos_angle) / t
    yy = (m11 - cos_angle) / t
    zz = (m22 - cos_angle) / t
    xy = 0.5 * (m01 + m10) / t
    xz = 0.5 * (m02 + m20) / t
    yz = 0.5 * (m12 + m21) / t

    if xx > yy and xx > zz:
        ux = math.sqrt(xx)
        uy = xy / ux
        uz = xz / ux
    elif yy > zz:
        uy = math.sqrt(yy)
        ux = xy / uy
        uz = yz / uy
    else:
        uz = math.sqrt(zz)
        ux = xz / uz
        uy = yz / uz

    # the symmetric part only gives the axis up to its sign
    if ux * x + uy * y + uz * z < 0.0:
        ux, uy, uz = -ux, -uy, -uz

    u_norm = 1.0 / norm3(ux, uy, uz)
    return _set_axis_angle(ux * u_norm, uy * u_norm, uz * u_norm, angle, out)


@njit(cache=True)
def _quaternion_to_axis_angle(qx, qy, qz, qs, out):
    if contains_nan4(qx, qy, qz, qs):
        return _set_nan(out)

    # q and -q are the same rotation, the one with s >= 0 has angle in [0, pi]
    if qs < 0.0:
        qx, qy, qz, qs = -qx, -qy, -qz, -qs

    v_norm = norm3(qx, qy, qz)
    if v_norm <= EPS_NEAR_ZERO:
        return _set_zero(out)

    angle = 2.0 * math.atan2(v_norm, qs)
    v_norm = 1.0 / v_norm
    return _set_axis_angle(qx * v_norm, qy * v_norm, qz * v_norm, angle, out)


@njit(cache=True)
def _rotation_vector_to_axis_angle(rx, ry, rz, out):
    if contains_nan3(rx, ry, rz):
        return _set_nan(out)

    angle = norm3(rx, ry, rz)
    if angle < EPS_NEAR_ZERO:
        return _set_zero(out)

    inv = 1.0 / angle
    return _set_axis_angle(rx * inv, ry * inv, rz * inv, angle, out)


@njit(cache=True)
def _yaw_pitch_roll_to_axis_angle(yaw, pitch, roll, out):
    q = _yaw_pitch_roll_to_quaternion(yaw, pitch, roll, np_empty(4, dtype=np_float64))
    return _quaternion_to_axis_angle(q[0], q[1], q[2], q[3], out)


def _destination(out: Optional[ndarray]) -> ndarray:
    return np_empty(4, dtype=np_float64) if out is None else out


def matrix_to_axis_angle(matrix, out: Optional[ndarray] = None, check: bool = True) -> ndarray:
    """
    Convert a 3x3 rotation matrix to an axis-angle (ux, uy, uz, angle).

    The angle is in [0, pi] and the axis has unit norm. The zero rotation gives
    (1, 0, 0, 0). At a half-turn, where the skew-symmetric part of the matrix
    vanishes, the axis is recovered from the symmetric part.

    Parameters:
        matrix (array_like): 3x3 rotation matrix.
        out (ndarray, optional): length-4 array to write into.
        check (bool, optional): validate that `matrix` is a rotation matrix.

    Returns:
        ndarray: the axis-angle.

    Raises:
        NotARotationMatrixError: if `check` is set and `matrix` is not a rotation.
    """
    m = as_rotation_matrix(matrix, check)
    return _matrix_to_axis_angle(m, _destination(out))


def quaternion_to_axis_angle(quaternion, out: Optional[ndarray] = None) -> ndarray:
    """
    Convert a quaternion (x, y, z, s) to an axis-angle.

    The quaternion does not need to be normalized. Its sign is flipped when
    s < 0 so that the angle lies in [0, pi].
    """
    qx, qy, qz, qs = Representation.QUATERNION.validate(quaternion)
    return _quaternion_to_axis_angle(qx, qy, qz, qs, _destination(out))


def yaw_pitch_roll_to_axis_angle(yaw_pitch_roll, out: Optional[ndarray] = None) -> ndarray:
    yaw, pitch, roll = Representation.YAW_PITCH_ROLL.validate(yaw_pitch_roll)
    return _yaw_pitch_roll_to_axis_angle(yaw, pitch, roll, _destination(out))


def rotation_vector_to_axis_angle(rotation_vector, out: Optional[ndarray] = None) -> ndarray:
    """Split a rotation vector into its direction and its norm."""
    rx, ry, rz = Representation.ROTATION_VECTOR.validate(rotation_vector)
    return _rotation_vector_to_axis_angle(rx, ry, rz, _destination(out))
