# to_quaternion.py
import math
from typing import Optional

from numpy import empty as np_empty
from numpy import float64 as np_float64
from numpy import ndarray
from numba import njit

from orientframe.conversion.representation import Representation
from orientframe.features import as_rotation_matrix
from orientframe.tolerance import EPS_QUATERNION, contains_nan3, contains_nan4, contains_nan9, norm3, norm4

from numba.core.errors import NumbaPerformanceWarning
import warnings
warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)


# a unit quaternion has at least one element >= 0.5 in magnitude. The first
# one above 0.45 is used as pivot: 4 * 0.45**2 - 1 = -0.19
_PIVOT_THRESHOLD = -0.19


@njit(cache=True, inline='always')
def _set_quaternion(qx, qy, qz, qs, out):
    out[0], out[1], out[2], out[3] = qx, qy, qz, qs
    return out


@njit(cache=True, inline='always')
def _set_nan(out):
    return _set_quaternion(math.nan, math.nan, math.nan, math.nan, out)


@njit(cache=True)
def _matrix_to_quaternion(m, out):
    m00, m01, m02 = m[0, 0], m[0, 1], m[0, 2]
    m10, m11, m12 = m[1, 0], m[1, 1], m[1, 2]
    m20, m21, m22 = m[2, 0], m[2, 1], m[2, 2]

    if contains_nan9(m00, m01, m02, m10, m11, m12, m20, m21, m22):
        return _set_nan(out)

    s = m00 + m11 + m22
    if s > _PIVOT_THRESHOLD:
        qs = 0.5 * math.sqrt(s + 1.0)
        inv = 0.25 / qs
        qx = inv * (m21 - m12)
        qy = inv * (m02 - m20)
        qz = inv * (m10 - m01)
    else:
        s = m00 - m11 - m22
        if s > _PIVOT_THRESHOLD:
            qx = 0.5 * math.sqrt(s + 1.0)
            inv = 0.25 / qx
            qs = inv * (m21 - m12)
            qy = inv * (m10 + m01)
            qz = inv * (m20 + m02)
        else:
            s = m11 - m00 - m22
            if s > _PIVOT_THRESHOLD:
                qy = 0.5 * math.sqrt(s + 1.0)
                inv = 0.25 / qy
                qs = inv * (m02 - m20)
                qx = inv * (m10 + m01)
                qz = inv * (m12 + m21)
            else:
                s = m22 - m00 - m11
                qz = 0.5 * math.sqrt(s + 1.0)
                inv = 0.25 / qz
                qs = inv * (m10 - m01)
                qx = inv * (m20 + m02)
                qy = inv * (m12 + m21)

    norm = norm4(qx, qy, qz, qs)
    if qs < 0.0:
        norm = -norm
    norm = 1.0 / norm
    return _set_quaternion(qx * norm, qy * norm, qz * norm, qs * norm, out)


@njit(cache=True)
def _axis_angle_to_quaternion(ux, uy, uz, angle, out):
    if contains_nan4(ux, uy, uz, angle):
        return _set_nan(out)

    u_norm = norm3(ux, uy, uz)
    if u_norm < EPS_QUATERNION:
        return _set_quaternion(0.0, 0.0, 0.0, 1.0, out)

    half_angle = 0.5 * angle
    sin_half_angle = math.sin(half_angle) / u_norm
    return _set_quaternion(ux * sin_half_angle, uy * sin_half_angle, uz * sin_half_angle, math.cos(half_angle), out)


@njit(cache=True)
def _rotation_vector_to_quaternion(rx, ry, rz, out):
    if contains_nan3(rx, ry, rz):
        return _set_nan(out)

    angle = norm3(rx, ry, rz)
    if angle < EPS_QUATERNION:
        return _set_quaternion(0.0, 0.0, 0.0, 1.0, out)

    half_angle = 0.5 * angle
    sin_half_angle = math.sin(half_angle) / angle
    return _set_quaternion(rx * sin_half_angle, ry * sin_half_angle, rz * sin_half_angle, math.cos(half_angle), out)


@njit(cache=True)
def _yaw_pitch_roll_to_quaternion(yaw, pitch, roll, out):
    if contains_nan3(yaw, pitch, roll):
        return _set_nan(out)

    half_yaw = 0.5 * yaw
    c_yaw, s_yaw = math.cos(half_yaw), math.sin(half_yaw)
    half_pitch = 0.5 * pitch
    c_pitch, s_pitch = math.cos(half_pitch), math.sin(half_pitch)
    half_roll = 0.5 * roll
    c_roll, s_roll = math.cos(half_roll), math.sin(half_roll)

    # q = q_yaw * q_pitch * q_roll, expanded
    qs = c_yaw * c_pitch * c_roll + s_yaw * s_pitch * s_roll
    qx = c_yaw * c_pitch * s_roll - s_yaw * s_pitch * c_roll
    qy = s_yaw * c_pitch * s_roll + c_yaw * s_pitch * c_roll
    qz = s_yaw * c_pitch * c_roll - c_yaw * s_pitch * s_roll
    return _set_quaternion(qx, qy, qz, qs, out)


def _destination(out: Optional[ndarray]) -> ndarray:
    return np_empty(4, dtype=np_float64) if out is None else out


def matrix_to_quaternion(matrix, out: Optional[ndarray] = None, check: bool = True) -> ndarray:
    """
    Convert a 3x3 rotation matrix to a unit quaternion (x, y, z, s).

    The element of largest magnitude is recovered first from the diagonal, and
    the three others are deduced from it, so no division by a small number
    occurs. The result is normalized and its sign chosen so that s >= 0.

    Parameters:
        matrix (array_like): 3x3 rotation matrix.
        out (ndarray, optional): length-4 array to write into.
        check (bool, optional): validate that `matrix` is a rotation matrix.

    Returns:
        ndarray: the quaternion.

    Raises:
        NotARotationMatrixError: if `check` is set and `matrix` is not a rotation.
    """
    m = as_rotation_matrix(matrix, check)
    return _matrix_to_quaternion(m, _destination(out))


def axis_angle_to_quaternion(axis_angle, out: Optional[ndarray] = None) -> ndarray:
    """
    Convert an axis-angle to a quaternion with the half-angle formula.

    The axis does not need to be unit length. An axis shorter than
    EPS_QUATERNION gives the identity quaternion (0, 0, 0, 1).
    """
    ux, uy, uz, angle = Representation.AXIS_ANGLE.validate(axis_angle)
    return _axis_angle_to_quaternion(ux, uy, uz, angle, _destination(out))


def rotation_vector_to_quaternion(rotation_vector, out: Optional[ndarray] = None) -> ndarray:
    rx, ry, rz = Representation.ROTATION_VECTOR.validate(rotation_vector)
    return _rotation_vector_to_quaternion(rx, ry, rz, _destination(out))


def yaw_pitch_roll_to_quaternion(yaw_pitch_roll, out: Optional[ndarray] = None) -> ndarray:
    """Product of the yaw, pitch and roll quaternions, in that order."""
    yaw, pitch, roll = Representation.YAW_PITCH_ROLL.validate(yaw_pitch_roll)
    return _yaw_pitch_roll_to_quaternion(yaw, pitch, roll, _destination(out))


def yaw_quaternion(yaw: float, out: Optional[ndarray] = None) -> ndarray:
    half_yaw = 0.5 * yaw
    return _set_quaternion(0.0, 0.0, math.sin(half_yaw), math.cos(half_yaw), _destination(out))


def pitch_quaternion(pitch: float, out: Optional[ndarray] = None) -> ndarray:
    half_pitch = 0.5 * pitch
    return _set_quaternion(0.0, math.sin(half_pitch), 0.0, math.cos(half_pitch), _destination(out))


def roll_quaternion(roll: float, out: Optional[ndarray] = None) -> ndarray:
    half_roll = 0.5 * roll
    return _set_quaternion(math.sin(half_roll), 0.0, 0.0, math.cos(half_roll), _destination(out))
