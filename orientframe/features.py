# features.py
import logging
import math
from typing import Optional, Tuple

import numpy as np
from numpy import asarray as np_asarray
from numpy import empty as np_empty
from numpy import float64 as np_float64
from numpy import ndarray
from numba import njit

from orientframe.exceptions import (
    NotAMatrix2DError,
    NotARotationMatrixError,
    NotARotationScaleMatrixError,
    SingularMatrixError,
)
from orientframe.tolerance import (
    EPS_CHECK_2D,
    EPS_CHECK_IDENTITY,
    EPS_CHECK_ROTATION,
    EPS_CHECK_SKEW,
    EPS_CHECK_ZERO_ROTATION,
    EPS_NEAR_ZERO,
    EPS_NORM,
)

from numba.core.errors import NumbaPerformanceWarning
import warnings
warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)

logger = logging.getLogger(__name__)


def as_matrix3(matrix) -> ndarray:
    """Return `matrix` as a (3, 3) float64 array, raising ValueError on any other shape."""
    m = np_asarray(matrix, dtype=np_float64)
    if m.shape != (3, 3):
        raise ValueError(f"Invalid matrix shape: {m.shape}, expected (3, 3)")
    return m


#########
# Compiled kernels
#

@njit(inline='always', cache=True)
def _determinant(m):
    return (
        m[0, 0] * (m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1])
        + m[0, 1] * (m[1, 2] * m[2, 0] - m[1, 0] * m[2, 2])
        + m[0, 2] * (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0])
    )


@njit(cache=True)
def _contains_nan(m) -> bool:
    for i in range(3):
        for j in range(3):
            if math.isnan(m[i, j]):
                return True
    return False


@njit(cache=True)
def _is_rotation_matrix(m, epsilon: float) -> bool:
    # written as "not <=" so that NaN entries fail every test
    xy_dot = m[0, 0] * m[1, 0] + m[0, 1] * m[1, 1] + m[0, 2] * m[1, 2]
    if not abs(xy_dot) <= epsilon:
        return False
    xz_dot = m[0, 0] * m[2, 0] + m[0, 1] * m[2, 1] + m[0, 2] * m[2, 2]
    if not abs(xz_dot) <= epsilon:
        return False
    yz_dot = m[1, 0] * m[2, 0] + m[1, 1] * m[2, 1] + m[1, 2] * m[2, 2]
    if not abs(yz_dot) <= epsilon:
        return False

    x_norm_squared = m[0, 0] * m[0, 0] + m[0, 1] * m[0, 1] + m[0, 2] * m[0, 2]
    if not abs(x_norm_squared - 1.0) <= epsilon:
        return False
    y_norm_squared = m[1, 0] * m[1, 0] + m[1, 1] * m[1, 1] + m[1, 2] * m[1, 2]
    if not abs(y_norm_squared - 1.0) <= epsilon:
        return False
    z_norm_squared = m[2, 0] * m[2, 0] + m[2, 1] * m[2, 1] + m[2, 2] * m[2, 2]
    if not abs(z_norm_squared - 1.0) <= epsilon:
        return False

    return abs(_determinant(m) - 1.0) <= epsilon


@njit(cache=True)
def _column_norms(m, out):
    out[0] = math.sqrt(m[0, 0] * m[0, 0] + m[1, 0] * m[1, 0] + m[2, 0] * m[2, 0])
    out[1] = math.sqrt(m[0, 1] * m[0, 1] + m[1, 1] * m[1, 1] + m[2, 1] * m[2, 1])
    out[2] = math.sqrt(m[0, 2] * m[0, 2] + m[1, 2] * m[1, 2] + m[2, 2] * m[2, 2])
    return out


@njit(cache=True)
def _is_rotation_scale_matrix(m, epsilon: float) -> bool:
    if not _determinant(m) > 0.0:
        return False

    scale = _column_norms(m, np.empty(3, dtype=np.float64))
    if scale[0] <= EPS_NEAR_ZERO or scale[1] <= EPS_NEAR_ZERO or scale[2] <= EPS_NEAR_ZERO:
        return False

    rotation = np.empty((3, 3), dtype=np.float64)
    for i in range(3):
        for j in range(3):
            rotation[i, j] = m[i, j] / scale[j]
    return _is_rotation_matrix(rotation, epsilon)


@njit(cache=True)
def _extract_scale(m, out):
    _column_norms(m, out)
    # a reflection is carried by the last axis so that m * diag(1 / s) stays proper
    if _determinant(m) < 0.0:
        out[2] = -out[2]
    return out


@njit(cache=True)
def _is_matrix_2d(m, epsilon: float) -> bool:
    if not abs(m[2, 0]) <= epsilon:
        return False
    if not abs(m[0, 2]) <= epsilon:
        return False
    if not abs(m[2, 1]) <= epsilon:
        return False
    if not abs(m[1, 2]) <= epsilon:
        return False
    return abs(m[2, 2] - 1.0) <= epsilon


@njit(cache=True)
def _is_identity(m, epsilon: float) -> bool:
    for i in range(3):
        for j in range(3):
            expected = 1.0 if i == j else 0.0
            if not abs(m[i, j] - expected) <= epsilon:
                return False
    return True


@njit(cache=True)
def _is_zero_rotation(m, epsilon: float) -> bool:
    return (
        abs(m[0, 0] + m[1, 1] + m[2, 2] - 3.0) < epsilon
        and abs(m[0, 1] + m[1, 0]) < epsilon
        and abs(m[0, 2] + m[2, 0]) < epsilon
        and abs(m[1, 2] + m[2, 1]) < epsilon
    )


@njit(cache=True)
def _is_skew_symmetric(m, epsilon: float) -> bool:
    if not (abs(m[0, 0]) <= epsilon and abs(m[1, 1]) <= epsilon and abs(m[2, 2]) <= epsilon):
        return False
    return (
        abs(m[0, 1] + m[1, 0]) <= epsilon
        and abs(m[0, 2] + m[2, 0]) <= epsilon
        and abs(m[1, 2] + m[2, 1]) <= epsilon
    )


@njit(cache=True, inline='always')
def _inverse_magnitude(squared_norm: float) -> float:
    # first-order expansion of 1 / sqrt(x) around 1
    if abs(1.0 - squared_norm) < EPS_NORM:
        return 2.0 / (1.0 + squared_norm)
    return 1.0 / math.sqrt(squared_norm)


@njit(cache=True)
def _normalize_rotation_matrix(m, out):
    """Gram-Schmidt on the columns: x is kept, y is made orthogonal to x, z to both."""
    m00, m01, m02 = m[0, 0], m[0, 1], m[0, 2]
    m10, m11, m12 = m[1, 0], m[1, 1], m[1, 2]
    m20, m21, m22 = m[2, 0], m[2, 1], m[2, 2]

    xdoty = m00 * m01 + m10 * m11 + m20 * m21
    xdotx = m00 * m00 + m10 * m10 + m20 * m20
    tmp = xdoty / xdotx

    m01 -= tmp * m00
    m11 -= tmp * m10
    m21 -= tmp * m20

    zdoty = m02 * m01 + m12 * m11 + m22 * m21
    zdotx = m02 * m00 + m12 * m10 + m22 * m20
    ydoty = m01 * m01 + m11 * m11 + m21 * m21

    tmp = zdotx / xdotx
    tmp1 = zdoty / ydoty

    m02 -= tmp * m00 + tmp1 * m01
    m12 -= tmp * m10 + tmp1 * m11
    m22 -= tmp * m20 + tmp1 * m21

    inv_x = _inverse_magnitude(m00 * m00 + m10 * m10 + m20 * m20)
    inv_y = _inverse_magnitude(m01 * m01 + m11 * m11 + m21 * m21)
    inv_z = _inverse_magnitude(m02 * m02 + m12 * m12 + m22 * m22)

    out[0, 0], out[0, 1], out[0, 2] = m00 * inv_x, m01 * inv_y, m02 * inv_z
    out[1, 0], out[1, 1], out[1, 2] = m10 * inv_x, m11 * inv_y, m12 * inv_z
    out[2, 0], out[2, 1], out[2, 2] = m20 * inv_x, m21 * inv_y, m22 * inv_z
    return out


@njit(cache=True)
def _invert(m, det, out):
    """Analytic inverse of a 3 x 3, `det` being its non-zero determinant."""
    invd = 1.0 / det
    m00, m01, m02 = m[0, 0], m[0, 1], m[0, 2]
    m10, m11, m12 = m[1, 0], m[1, 1], m[1, 2]
    m20, m21, m22 = m[2, 0], m[2, 1], m[2, 2]
    out[0, 0] = (m11 * m22 - m12 * m21) * invd
    out[0, 1] = -(m01 * m22 - m02 * m21) * invd
    out[0, 2] = (m01 * m12 - m02 * m11) * invd
    out[1, 0] = -(m10 * m22 - m12 * m20) * invd
    out[1, 1] = (m00 * m22 - m02 * m20) * invd
    out[1, 2] = -(m00 * m12 - m02 * m10) * invd
    out[2, 0] = (m10 * m21 - m11 * m20) * invd
    out[2, 1] = -(m00 * m21 - m01 * m20) * invd
    out[2, 2] = (m00 * m11 - m01 * m10) * invd
    return out


#########
# Predicates, never raise on valid shapes
#

def determinant(matrix) -> float:
    """Determinant of a 3 x 3 (cheaper than np.linalg.det for tiny matrices)."""
    return _determinant(as_matrix3(matrix))


def contains_nan(matrix) -> bool:
    """True if any of the nine entries is NaN."""
    return _contains_nan(as_matrix3(matrix))


def is_rotation_matrix(matrix, epsilon: float = EPS_CHECK_ROTATION) -> bool:
    """
    Test whether a 3x3 matrix is a proper rotation.

    The rows must be pairwise orthogonal, of unit norm, and the determinant
    must be +1, each test within `epsilon`. Reflections (det = -1), shears and
    scaled rows are rejected. Matrices containing NaN are rejected.

    Parameters:
        matrix (array_like): 3x3 matrix to test.
        epsilon (float, optional): tolerance applied to every test.

    Returns:
        bool: True if the matrix is a rotation matrix.
    """
    return _is_rotation_matrix(as_matrix3(matrix), epsilon)


def is_rotation_scale_matrix(matrix, epsilon: float = EPS_CHECK_ROTATION) -> bool:
    """
    Test whether a 3x3 matrix can be written as R @ diag(sx, sy, sz) with R a
    proper rotation and strictly positive scales.

    The columns are normalized and the result must pass `is_rotation_matrix`.
    A matrix with a negative determinant, i.e. a negative scale on any axis,
    is rejected, as is one with a (near-)zero column.

    Parameters:
        matrix (array_like): 3x3 matrix to test.
        epsilon (float, optional): tolerance used on the normalized matrix.

    Returns:
        bool: True if the matrix is a rotation-scale matrix.
    """
    return _is_rotation_scale_matrix(as_matrix3(matrix), epsilon)


def is_matrix_2d(matrix, epsilon: float = EPS_CHECK_2D) -> bool:
    """True if the matrix only acts in the XY-plane: m02, m12, m20, m21 are zero and m22 is one."""
    return _is_matrix_2d(as_matrix3(matrix), epsilon)


def is_identity(matrix, epsilon: float = EPS_CHECK_IDENTITY) -> bool:
    return _is_identity(as_matrix3(matrix), epsilon)


def is_zero_rotation(matrix, epsilon: float = EPS_CHECK_ZERO_ROTATION) -> bool:
    """True if the trace is 3 and the skew-symmetric part vanishes."""
    return _is_zero_rotation(as_matrix3(matrix), epsilon)


def is_matrix_skew_symmetric(matrix, epsilon: float = EPS_CHECK_SKEW) -> bool:
    return _is_skew_symmetric(as_matrix3(matrix), epsilon)


def extract_scale(matrix, out: Optional[ndarray] = None) -> ndarray:
    """
    Extract the scale factors (sx, sy, sz) of a rotation-scale matrix.

    The scales are the column norms of the matrix. When the determinant is
    negative, i.e. the matrix contains a reflection, the z scale is negated
    so that `matrix @ diag(1 / s)` remains a proper rotation. The sign is
    therefore always carried by the last axis, whichever axis was negated
    originally: R @ diag(2, -3, 4) yields (2, 3, -4) with a rotation
    R @ diag(1, -1, -1).

    Parameters:
        matrix (array_like): 3x3 matrix.
        out (ndarray, optional): length-3 array to write into.

    Returns:
        ndarray: the scale vector.
    """
    if out is None:
        out = np_empty(3, dtype=np_float64)
    return _extract_scale(as_matrix3(matrix), out)


#########
# Assertions, raise the typed errors
#

def check_if_rotation_matrix(matrix, epsilon: float = EPS_CHECK_ROTATION) -> None:
    """Raise NotARotationMatrixError if `matrix` is not a proper rotation."""
    m = as_matrix3(matrix)
    if not _is_rotation_matrix(m, epsilon):
        logger.debug("rejected rotation matrix (det=%s)", _determinant(m))
        raise NotARotationMatrixError(m)


def check_if_rotation_scale_matrix(matrix, epsilon: float = EPS_CHECK_ROTATION) -> None:
    """Raise NotARotationScaleMatrixError if `matrix` is not R @ diag(s) with positive s."""
    m = as_matrix3(matrix)
    if not _is_rotation_scale_matrix(m, epsilon):
        logger.debug("rejected rotation-scale matrix (det=%s)", _determinant(m))
        raise NotARotationScaleMatrixError(m)


def check_if_matrix_2d(matrix, epsilon: float = EPS_CHECK_2D) -> None:
    """Raise NotAMatrix2DError if `matrix` has out-of-plane components."""
    m = as_matrix3(matrix)
    if not _is_matrix_2d(m, epsilon):
        logger.debug("rejected 2D matrix")
        raise NotAMatrix2DError(m)


def check_if_not_singular(matrix, epsilon: float = EPS_NEAR_ZERO) -> float:
    """
    Raise SingularMatrixError if |det(matrix)| <= epsilon.

    Returns:
        float: the determinant, for callers that need it next.
    """
    m = as_matrix3(matrix)
    det = _determinant(m)
    if not abs(det) > epsilon:
        logger.debug("rejected singular matrix (det=%s)", det)
        raise SingularMatrixError(m)
    return det


#########
# Structure extraction
#

def normalize_rotation_matrix(matrix, out: Optional[ndarray] = None) -> ndarray:
    """
    Orthonormalize a nearly-rotation matrix with Gram-Schmidt on its columns.

    The x column keeps its direction, y is made orthogonal to x, and z
    orthogonal to both. NaN entries propagate.
    """
    if out is None:
        out = np_empty((3, 3), dtype=np_float64)
    return _normalize_rotation_matrix(as_matrix3(matrix), out)


def invert_matrix(matrix, out: Optional[ndarray] = None, epsilon: float = EPS_NEAR_ZERO) -> ndarray:
    """
    Analytic inverse of a 3x3 matrix.

    Raises:
        SingularMatrixError: if |det(matrix)| <= epsilon.
    """
    m = as_matrix3(matrix)
    det = check_if_not_singular(m, epsilon)
    if out is None:
        out = np_empty((3, 3), dtype=np_float64)
    return _invert(m, det, out)


def decompose_rotation_scale(matrix, epsilon: float = EPS_CHECK_ROTATION) -> Tuple[ndarray, ndarray]:
    """
    Split a rotation-scale matrix M = R @ diag(s) into R and s.

    Returns:
        tuple[ndarray, ndarray]: the (3, 3) rotation and the positive scale vector.

    Raises:
        SingularMatrixError: if the determinant is (near-)zero.
        NotARotationScaleMatrixError: if M is not a rotation-scale matrix.
    """
    m = as_matrix3(matrix)
    check_if_not_singular(m)
    check_if_rotation_scale_matrix(m, epsilon)
    scale = _column_norms(m, np_empty(3, dtype=np_float64))
    rotation = m / scale
    return rotation, scale


def as_rotation_matrix(matrix, check: bool = True) -> ndarray:
    """
    Return `matrix` as a (3, 3) float64 array ready to be converted.

    With `check`, a matrix that is not a proper rotation raises
    NotARotationMatrixError. A matrix containing NaN is let through so that the
    NaN propagates to the conversion result.
    """
    m = as_matrix3(matrix)
    if check and not _contains_nan(m):
        check_if_rotation_matrix(m)
    return m
