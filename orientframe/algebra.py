# algebra.py
"""
Composition and application of rotations stored as quaternions (x, y, z, s)
and 3x3 matrices.
"""
import math
from typing import Optional

from numpy import asarray as np_asarray
from numpy import empty as np_empty
from numpy import float64 as np_float64
from numpy import ndarray
from numba import njit

from orientframe.conversion.representation import Representation
from orientframe.features import as_matrix3
from orientframe.tolerance import EPS_NEAR_ZERO, EPS_QUATERNION, clamp_unit, norm3, norm4

from numba.core.errors import NumbaPerformanceWarning
import warnings
warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)


#########
# Quaternions
#

@njit(cache=True)
def _quaternion_multiply(x1, y1, z1, s1, x2, y2, z2, s2, out):
    # Hamilton product, no sign canonicalization
    out[0] = s1 * x2 + x1 * s2 + y1 * z2 - z1 * y2
    out[1] = s1 * y2 - x1 * z2 + y1 * s2 + z1 * x2
    out[2] = s1 * z2 + x1 * y2 - y1 * x2 + z1 * s2
    out[3] = s1 * s2 - x1 * x2 - y1 * y2 - z1 * z2
    return out


@njit(cache=True)
def _quaternion_normalize(x, y, z, s, out):
    norm = norm4(x, y, z, s)
    if norm < EPS_NEAR_ZERO:
        out[0], out[1], out[2], out[3] = 0.0, 0.0, 0.0, 1.0
        return out
    norm = 1.0 / norm
    out[0], out[1], out[2], out[3] = x * norm, y * norm, z * norm, s * norm
    return out


@njit(cache=True)
def _quaternion_transform(qx, qy, qz, qs, vx, vy, vz, inverse, out):
    norm_squared = qx * qx + qy * qy + qz * qz + qs * qs
    if norm_squared < EPS_NEAR_ZERO:
        out[0], out[1], out[2] = vx, vy, vz
        return out
    if inverse:
        qx, qy, qz = -qx, -qy, -qz

    # v' = v + 2 s (q x v) + 2 q x (q x v), for a unit q
    inv = 1.0 / norm_squared
    cx = qy * vz - qz * vy
    cy = qz * vx - qx * vz
    cz = qx * vy - qy * vx
    out[0] = vx + 2.0 * inv * (qs * cx + qy * cz - qz * cy)
    out[1] = vy + 2.0 * inv * (qs * cy + qz * cx - qx * cz)
    out[2] = vz + 2.0 * inv * (qs * cz + qx * cy - qy * cx)
    return out


@njit(cache=True)
def _quaternion_distance(x1, y1, z1, s1, x2, y2, z2, s2):
    # conj(q1) * q2, ordered so that swapping q1 and q2 negates v exactly
    s = s1 * s2 + x1 * x2 + y1 * y2 + z1 * z2
    vx = (s1 * x2 - s2 * x1) - (y1 * z2 - z1 * y2)
    vy = (s1 * y2 - s2 * y1) - (z1 * x2 - x1 * z2)
    vz = (s1 * z2 - s2 * z1) - (x1 * y2 - y1 * x2)
    # |s| folds the double cover: q and -q are the same rotation
    return 2.0 * math.atan2(norm3(vx, vy, vz), abs(s))


@njit(cache=True)
def _quaternion_interpolate(x0, y0, z0, s0, x1, y1, z1, s1, alpha, out):
    cos_half_theta = x0 * x1 + y0 * y1 + z0 * z1 + s0 * s1
    # q1 and -q1 are the same rotation, take the shorter arc
    sign = 1.0
    if cos_half_theta < 0.0:
        sign = -1.0
        cos_half_theta = -cos_half_theta

    alpha0 = 1.0 - alpha
    alpha1 = alpha
    # nearly parallel: linear blend, normalized below
    if 1.0 - cos_half_theta > EPS_QUATERNION:
        half_theta = math.acos(clamp_unit(cos_half_theta))
        inv_sin_half_theta = 1.0 / math.sin(half_theta)
        alpha0 = math.sin(alpha0 * half_theta) * inv_sin_half_theta
        alpha1 = math.sin(alpha1 * half_theta) * inv_sin_half_theta
    alpha1 *= sign

    return _quaternion_normalize(
        alpha0 * x0 + alpha1 * x1,
        alpha0 * y0 + alpha1 * y1,
        alpha0 * z0 + alpha1 * z1,
        alpha0 * s0 + alpha1 * s1,
        out,
    )


def quaternion_multiply(q1, q2, out: Optional[ndarray] = None,
                        conjugate_left: bool = False, conjugate_right: bool = False) -> ndarray:
    """
    Hamilton product q1 * q2 of two quaternions (x, y, z, s).

    Applying the result to a vector rotates it by q2 first, then by q1.

    Parameters:
        q1 (array_like): left quaternion.
        q2 (array_like): right quaternion.
        out (ndarray, optional): length-4 array to write into, may alias q1 or q2.
        conjugate_left (bool, optional): use the conjugate of q1.
        conjugate_right (bool, optional): use the conjugate of q2.

    Returns:
        ndarray: the product, neither normalized nor sign-canonicalized.
    """
    x1, y1, z1, s1 = Representation.QUATERNION.validate(q1)
    x2, y2, z2, s2 = Representation.QUATERNION.validate(q2)
    if conjugate_left:
        x1, y1, z1 = -x1, -y1, -z1
    if conjugate_right:
        x2, y2, z2 = -x2, -y2, -z2
    if out is None:
        out = np_empty(4, dtype=np_float64)
    return _quaternion_multiply(x1, y1, z1, s1, x2, y2, z2, s2, out)


def quaternion_conjugate(quaternion, out: Optional[ndarray] = None) -> ndarray:
    x, y, z, s = Representation.QUATERNION.validate(quaternion)
    if out is None:
        out = np_empty(4, dtype=np_float64)
    out[0], out[1], out[2], out[3] = -x, -y, -z, s
    return out


def quaternion_normalize(quaternion, out: Optional[ndarray] = None) -> ndarray:
    """Scale a quaternion to unit norm. A (near-)zero quaternion becomes the identity (0, 0, 0, 1)."""
    x, y, z, s = Representation.QUATERNION.validate(quaternion)
    if out is None:
        out = np_empty(4, dtype=np_float64)
    return _quaternion_normalize(x, y, z, s, out)


def quaternion_transform(quaternion, vector, out: Optional[ndarray] = None, inverse: bool = False) -> ndarray:
    """
    Rotate a 3D vector by a quaternion, or by its inverse when `inverse` is set.

    The quaternion does not need to be normalized.
    """
    qx, qy, qz, qs = Representation.QUATERNION.validate(quaternion)
    vx, vy, vz = _as_vector3(vector)
    if out is None:
        out = np_empty(3, dtype=np_float64)
    return _quaternion_transform(qx, qy, qz, qs, vx, vy, vz, inverse, out)


def quaternion_distance(q1, q2) -> float:
    """
    Angle in [0, pi] of the rotation taking q1 to q2.

    The result is symmetric in its arguments and does not depend on the sign
    or the norm of either quaternion. NaN components give NaN.
    """
    x1, y1, z1, s1 = Representation.QUATERNION.validate(q1)
    x2, y2, z2, s2 = Representation.QUATERNION.validate(q2)
    return _quaternion_distance(x1, y1, z1, s1, x2, y2, z2, s2)


def quaternion_interpolate(q0, q1, alpha: float, out: Optional[ndarray] = None) -> ndarray:
    """
    Spherical linear interpolation from q0 (alpha = 0) to q1 (alpha = 1).

    The interpolation follows the shorter of the two arcs, so q1 and -q1 give
    the same path. Both inputs are expected to be unit quaternions; the result
    is normalized. `alpha` outside of [0, 1] extrapolates along the same arc.

    Parameters:
        q0 (array_like): start quaternion (x, y, z, s).
        q1 (array_like): end quaternion.
        alpha (float): interpolation parameter.
        out (ndarray, optional): length-4 array to write into, may alias q0 or q1.

    Returns:
        ndarray: the interpolated quaternion.
    """
    x0, y0, z0, s0 = Representation.QUATERNION.validate(q0)
    x1, y1, z1, s1 = Representation.QUATERNION.validate(q1)
    if out is None:
        out = np_empty(4, dtype=np_float64)
    return _quaternion_interpolate(x0, y0, z0, s0, x1, y1, z1, s1, float(alpha), out)


#########
# Matrices
#

@njit(cache=True)
def _matrix_multiply(a, b, transpose_left, transpose_right, out):
    # accumulate in a scratch array so that out may alias a or b
    result = np_empty((3, 3), dtype=np_float64)
    for i in range(3):
        for j in range(3):
            total = 0.0
            for k in range(3):
                left = a[k, i] if transpose_left else a[i, k]
                right = b[j, k] if transpose_right else b[k, j]
                total += left * right
            result[i, j] = total
    out[:, :] = result
    return out


@njit(cache=True)
def _matrix_transform(m, vx, vy, vz, inverse, out):
    if inverse:
        # inverse of a rotation is its transpose
        out[0] = m[0, 0] * vx + m[1, 0] * vy + m[2, 0] * vz
        out[1] = m[0, 1] * vx + m[1, 1] * vy + m[2, 1] * vz
        out[2] = m[0, 2] * vx + m[1, 2] * vy + m[2, 2] * vz
    else:
        out[0] = m[0, 0] * vx + m[0, 1] * vy + m[0, 2] * vz
        out[1] = m[1, 0] * vx + m[1, 1] * vy + m[1, 2] * vz
        out[2] = m[2, 0] * vx + m[2, 1] * vy + m[2, 2] * vz
    return out


def matrix_multiply(a, b, out: Optional[ndarray] = None,
                    transpose_left: bool = False, transpose_right: bool = False) -> ndarray:
    """
    Product of two 3x3 matrices, either of which may be transposed first.

    For rotation matrices the transpose is the inverse, so
    `matrix_multiply(a, b, transpose_left=True)` is a^-1 @ b.
    """
    a = as_matrix3(a)
    b = as_matrix3(b)
    if out is None:
        out = np_empty((3, 3), dtype=np_float64)
    return _matrix_multiply(a, b, transpose_left, transpose_right, out)


def matrix_transform(matrix, vector, out: Optional[ndarray] = None, inverse: bool = False) -> ndarray:
    """Apply a rotation matrix, or its transpose when `inverse` is set, to a 3D vector."""
    m = as_matrix3(matrix)
    vx, vy, vz = _as_vector3(vector)
    if out is None:
        out = np_empty(3, dtype=np_float64)
    return _matrix_transform(m, vx, vy, vz, inverse, out)


def _as_vector3(vector) -> ndarray:
    v = np_asarray(vector, dtype=np_float64)
    if v.shape != (3,):
        raise ValueError(f"Invalid vector shape: {v.shape}, expected (3,)")
    return v
