# to_rotation_vector.py
import math
from typing import Optional

from numpy import empty as np_empty
from numpy import float64 as np_float64
from numpy import ndarray
from numba import njit

from orientframe.conversion.representation import Representation
from orientframe.conversion.to_axis_angle import _matrix_to_axis_angle
from orientframe.conversion.to_quaternion import _yaw_pitch_roll_to_quaternion
from orientframe.features import as_rotation_matrix
from orientframe.tolerance import EPS_NEAR_ZERO, contains_nan3, contains_nan4, norm3

from numba.core.errors import NumbaPerformanceWarning
import warnings
warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)


@njit(cache=True, inline='always')
def _set_vector(x, y, z, out):
    out[0], out[1], out[2] = x, y, z
    return out


@njit(cache=True)
def _axis_angle_to_rotation_vector(ux, uy, uz, angle, out):
    if contains_nan4(ux, uy, uz, angle):
        return _set_vector(math.nan, math.nan, math.nan, out)

    u_norm = norm3(ux, uy, uz)
    if u_norm < EPS_NEAR_ZERO:
        return _set_vector(0.0, 0.0, 0.0, out)

    scale = angle / u_norm
    return _set_vector(ux * scale, uy * scale, uz * scale, out)


@njit(cache=True)
def _quaternion_to_rotation_vector(qx, qy, qz, qs, out):
    if contains_nan4(qx, qy, qz, qs):
        return _set_vector(math.nan, math.nan, math.nan, out)

    v_norm = norm3(qx, qy, qz)
    if v_norm < EPS_NEAR_ZERO:
        return _set_vector(0.0, 0.0, 0.0, out)

    # no sign flip: a quaternion with s < 0 maps to an angle in (pi, 2 pi)
    scale = 2.0 * math.atan2(v_norm, qs) / v_norm
    return _set_vector(qx * scale, qy * scale, qz * scale, out)


@njit(cache=True)
def _matrix_to_rotation_vector(m, out):
    axis_angle = _matrix_to_axis_angle(m, np_empty(4, dtype=np_float64))
    angle = axis_angle[3]
    return _set_vector(axis_angle[0] * angle, axis_angle[1] * angle, axis_angle[2] * angle, out)


@njit(cache=True)
def _yaw_pitch_roll_to_rotation_vector(yaw, pitch, roll, out):
    if contains_nan3(yaw, pitch, roll):
        return _set_vector(math.nan, math.nan, math.nan, out)
    q = _yaw_pitch_roll_to_quaternion(yaw, pitch, roll, np_empty(4, dtype=np_float64))
    return _quaternion_to_rotation_vector(q[0], q[1], q[2], q[3], out)


def _destination(out: Optional[ndarray]) -> ndarray:
    return np_empty(3, dtype=np_float64) if out is None else out


def matrix_to_rotation_vector(matrix, out: Optional[ndarray] = None, check: bool = True) -> ndarray:
    """
    Convert a 3x3 rotation matrix to a rotation vector, the unit axis scaled by
    the angle in [0, pi].

    Raises:
        NotARotationMatrixError: if `check` is set and `matrix` is not a rotation.
    """
    m = as_rotation_matrix(matrix, check)
    return _matrix_to_rotation_vector(m, _destination(out))


def axis_angle_to_rotation_vector(axis_angle, out: Optional[ndarray] = None) -> ndarray:
    """
    Convert an axis-angle to a rotation vector.

    The axis is normalized before being scaled by the angle. A zero angle or a
    (near-)zero axis gives the exact zero vector.
    """
    ux, uy, uz, angle = Representation.AXIS_ANGLE.validate(axis_angle)
    return _axis_angle_to_rotation_vector(ux, uy, uz, angle, _destination(out))


def quaternion_to_rotation_vector(quaternion, out: Optional[ndarray] = None) -> ndarray:
    """
    Convert a quaternion (x, y, z, s) to a rotation vector.

    The quaternion does not need to be normalized. Its sign is kept, so a
    quaternion with s < 0 gives a vector of norm greater than pi that
    describes the same rotation as the shorter one.
    """
    qx, qy, qz, qs = Representation.QUATERNION.validate(quaternion)
    return _quaternion_to_rotation_vector(qx, qy, qz, qs, _destination(out))


def yaw_pitch_roll_to_rotation_vector(yaw_pitch_roll, out: Optional[ndarray] = None) -> ndarray:
    yaw, pitch, roll = Representation.YAW_PITCH_ROLL.validate(yaw_pitch_roll)
    return _yaw_pitch_roll_to_rotation_vector(yaw, pitch, roll, _destination(out))
