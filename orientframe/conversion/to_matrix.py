# to_matrix.py
import math
from typing import Optional

from numpy import empty as np_empty
from numpy import float64 as np_float64
from numpy import ndarray
from numba import njit

from orientframe.conversion.representation import Representation
from orientframe.tolerance import EPS_NEAR_ZERO, contains_nan3, contains_nan4, norm3, norm4

from numba.core.errors import NumbaPerformanceWarning
import warnings
warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)


@njit(cache=True, inline='always')
def _set_identity(out):
    out[0, 0], out[0, 1], out[0, 2] = 1.0, 0.0, 0.0
    out[1, 0], out[1, 1], out[1, 2] = 0.0, 1.0, 0.0
    out[2, 0], out[2, 1], out[2, 2] = 0.0, 0.0, 1.0
    return out


@njit(cache=True, inline='always')
def _set_nan(out):
    for i in range(3):
        for j in range(3):
            out[i, j] = math.nan
    return out


@njit(cache=True)
def _rodrigues(ax, ay, az, sin_theta, cos_theta, out):
    """Rotation matrix about the unit axis (ax, ay, az) given the sine and cosine of the angle."""
    t = 1.0 - cos_theta

    xz = ax * az
    xy = ax * ay
    yz = ay * az

    out[0, 0] = t * ax * ax + cos_theta
    out[0, 1] = t * xy - sin_theta * az
    out[0, 2] = t * xz + sin_theta * ay
    out[1, 0] = t * xy + sin_theta * az
    out[1, 1] = t * ay * ay + cos_theta
    out[1, 2] = t * yz - sin_theta * ax
    out[2, 0] = t * xz - sin_theta * ay
    out[2, 1] = t * yz + sin_theta * ax
    out[2, 2] = t * az * az + cos_theta
    return out


@njit(cache=True)
def _axis_angle_to_matrix(ux, uy, uz, angle, out):
    if contains_nan4(ux, uy, uz, angle):
        return _set_nan(out)

    u_norm = norm3(ux, uy, uz)
    if u_norm < EPS_NEAR_ZERO:
        return _set_identity(out)

    u_norm = 1.0 / u_norm
    return _rodrigues(ux * u_norm, uy * u_norm, uz * u_norm, math.sin(angle), math.cos(angle), out)


@njit(cache=True)
def _rotation_vector_to_matrix(rx, ry, rz, out):
    if contains_nan3(rx, ry, rz):
        return _set_nan(out)

    # the norm of a rotation vector is its angle
    angle = norm3(rx, ry, rz)
    if angle < EPS_NEAR_ZERO:
        return _set_identity(out)

    inv = 1.0 / angle
    return _rodrigues(rx * inv, ry * inv, rz * inv, math.sin(angle), math.cos(angle), out)


@njit(cache=True)
def _quaternion_to_matrix(qx, qy, qz, qs, out):
    if contains_nan4(qx, qy, qz, qs):
        return _set_nan(out)

    norm = norm4(qx, qy, qz, qs)
    if norm < EPS_NEAR_ZERO:
        return _set_identity(out)

    norm = 1.0 / norm
    qx *= norm
    qy *= norm
    qz *= norm
    qs *= norm

    # precompute products
    yy2 = 2.0 * qy * qy
    zz2 = 2.0 * qz * qz
    xx2 = 2.0 * qx * qx
    xy2 = 2.0 * qx * qy
    sz2 = 2.0 * qs * qz
    xz2 = 2.0 * qx * qz
    sy2 = 2.0 * qs * qy
    yz2 = 2.0 * qy * qz
    sx2 = 2.0 * qs * qx

    out[0, 0] = 1.0 - yy2 - zz2
    out[0, 1] = xy2 - sz2
    out[0, 2] = xz2 + sy2
    out[1, 0] = xy2 + sz2
    out[1, 1] = 1.0 - xx2 - zz2
    out[1, 2] = yz2 - sx2
    out[2, 0] = xz2 - sy2
    out[2, 1] = yz2 + sx2
    out[2, 2] = 1.0 - xx2 - yy2
    return out


@njit(cache=True)
def _yaw_pitch_roll_to_matrix(yaw, pitch, roll, out):
    if contains_nan3(yaw, pitch, roll):
        return _set_nan(out)

    sy, cy = math.sin(yaw), math.cos(yaw)
    sp, cp = math.sin(pitch), math.cos(pitch)
    sr, cr = math.sin(roll), math.cos(roll)

    # R = Rz(yaw) @ Ry(pitch) @ Rx(roll)
    out[0, 0] = cy * cp
    out[0, 1] = cy * sp * sr - sy * cr
    out[0, 2] = cy * sp * cr + sy * sr

    out[1, 0] = sy * cp
    out[1, 1] = sy * sp * sr + cy * cr
    out[1, 2] = sy * sp * cr - cy * sr

    out[2, 0] = -sp
    out[2, 1] = cp * sr
    out[2, 2] = cp * cr
    return out


def _destination(out: Optional[ndarray]) -> ndarray:
    return np_empty((3, 3), dtype=np_float64) if out is None else out


def axis_angle_to_matrix(axis_angle, out: Optional[ndarray] = None) -> ndarray:
    """
    Convert an axis-angle (ux, uy, uz, angle) to a 3x3 rotation matrix.

    The axis is normalized first. An axis of (near-)zero norm gives the identity,
    and any NaN component gives a NaN-filled matrix.

    Parameters:
        axis_angle (array_like): 4-element axis-angle.
        out (ndarray, optional): (3, 3) array to write into.

    Returns:
        ndarray: the rotation matrix.
    """
    ux, uy, uz, angle = Representation.AXIS_ANGLE.validate(axis_angle)
    return _axis_angle_to_matrix(ux, uy, uz, angle, _destination(out))


def quaternion_to_matrix(quaternion, out: Optional[ndarray] = None) -> ndarray:
    """
    Convert a quaternion (x, y, z, s) to a 3x3 rotation matrix.

    The quaternion is normalized first, so q and -q, as well as any positive
    multiple of q, give the same matrix. A (near-)zero quaternion gives the
    identity.
    """
    qx, qy, qz, qs = Representation.QUATERNION.validate(quaternion)
    return _quaternion_to_matrix(qx, qy, qz, qs, _destination(out))


def yaw_pitch_roll_to_matrix(yaw_pitch_roll, out: Optional[ndarray] = None) -> ndarray:
    """
    Convert yaw-pitch-roll angles to a 3x3 rotation matrix.

    The rotation is R = Rz(yaw) @ Ry(pitch) @ Rx(roll), i.e. intrinsic Z-Y-X
    Euler angles.
    """
    yaw, pitch, roll = Representation.YAW_PITCH_ROLL.validate(yaw_pitch_roll)
    return _yaw_pitch_roll_to_matrix(yaw, pitch, roll, _destination(out))


def rotation_vector_to_matrix(rotation_vector, out: Optional[ndarray] = None) -> ndarray:
    """Convert a rotation vector (axis * angle) to a 3x3 rotation matrix."""
    rx, ry, rz = Representation.ROTATION_VECTOR.validate(rotation_vector)
    return _rotation_vector_to_matrix(rx, ry, rz, _destination(out))


def yaw_matrix(yaw: float, out: Optional[ndarray] = None) -> ndarray:
    """Rotation of `yaw` radians about the z-axis."""
    s, c = math.sin(yaw), math.cos(yaw)
    out = _destination(out)
    out[:] = ((c, -s, 0.0), (s, c, 0.0), (0.0, 0.0, 1.0))
    return out


def pitch_matrix(pitch: float, out: Optional[ndarray] = None) -> ndarray:
    """Rotation of `pitch` radians about the y-axis."""
    s, c = math.sin(pitch), math.cos(pitch)
    out = _destination(out)
    out[:] = ((c, 0.0, s), (0.0, 1.0, 0.0), (-s, 0.0, c))
    return out


def roll_matrix(roll: float, out: Optional[ndarray] = None) -> ndarray:
    """Rotation of `roll` radians about the x-axis."""
    s, c = math.sin(roll), math.cos(roll)
    out = _destination(out)
    out[:] = ((1.0, 0.0, 0.0), (0.0, c, -s), (0.0, s, c))
    return out
