# rotation_scale_matrix.py
import logging
from typing import Optional

import numpy as np
from numpy import array2string as np_array2string
from numpy import asarray as np_asarray
from numpy import float64 as np_float64
from numpy import ndarray

from orientframe.features import as_matrix3, decompose_rotation_scale
from orientframe.orientation import Orientation3D, RotationMatrix
from orientframe.tolerance import EPS_CHECK_ROTATION, EPS_NEAR_ZERO

logger = logging.getLogger(__name__)

_BASE_SCALE = np.ones(3, dtype=np_float64)


def _as_scale(scale) -> ndarray:
    s = np_asarray(scale, dtype=np_float64)
    if s.ndim == 0:
        s = np.full(3, s, dtype=np_float64)
    if s.shape != (3,):
        raise ValueError(f"Invalid scale shape: {s.shape}, expected (3,)")
    if not np.all(s > EPS_NEAR_ZERO):
        logger.debug("rejected scale %s", s)
        raise ValueError(f"Scale factors must be strictly positive, got {s}")
    return s


class RotationScaleMatrix:
    """
    A 3x3 matrix M = R @ diag(sx, sy, sz) with R a proper rotation and
    strictly positive scale factors.

    The rotation and the scale are stored separately; `matrix` recomposes them.
    """
    __slots__ = ('_rotation', '_scale')

    def __init__(self, matrix=None, epsilon: float = EPS_CHECK_ROTATION):
        self._rotation = RotationMatrix.identity()
        self._scale = _BASE_SCALE.copy()
        if matrix is not None:
            self.set(matrix, epsilon)

    @classmethod
    def from_rotation_and_scale(cls, rotation, scale):
        """
        Build from a rotation, given as an orientation or a raw rotation matrix,
        and a scale vector (or a single uniform scale).

        Raises:
            NotARotationMatrixError: if a raw `rotation` is not a rotation matrix.
            ValueError: if a scale factor is not strictly positive.
        """
        instance = object.__new__(cls)
        instance._rotation = RotationMatrix(rotation)
        instance._scale = _as_scale(scale).copy()
        return instance

    @property
    def rotation(self) -> RotationMatrix:
        return self._rotation

    @property
    def scale(self) -> ndarray:
        return self._scale

    @property
    def matrix(self) -> ndarray:
        """The recomposed 3x3 matrix R @ diag(s)."""
        return self._rotation.values * self._scale

    def set(self, matrix, epsilon: float = EPS_CHECK_ROTATION):
        """
        Set from a raw rotation-scale matrix.

        Raises:
            SingularMatrixError: if the matrix has a (near-)zero determinant.
            NotARotationScaleMatrixError: if it cannot be split into R @ diag(s)
                with positive s.
        """
        if isinstance(matrix, RotationScaleMatrix):
            self._rotation.set(matrix._rotation)
            self._scale[:] = matrix._scale
            return self

        rotation, scale = decompose_rotation_scale(as_matrix3(matrix), epsilon)
        self._rotation.set_unchecked(rotation)
        self._scale[:] = scale
        return self

    def set_rotation(self, rotation):
        """Replace the rotation part, keeping the scale."""
        self._rotation.set(rotation)
        return self

    def set_scale(self, scale):
        """Replace the scale part, keeping the rotation."""
        self._scale[:] = _as_scale(scale)
        return self

    def reset_scale(self):
        self._scale[:] = _BASE_SCALE
        return self

    def get(self, destination):
        """Materialize the rotation part, see `Orientation3D.get`."""
        return self._rotation.get(destination)

    def transform(self, vector, out: Optional[ndarray] = None) -> ndarray:
        """Scale then rotate a 3D vector."""
        v = np_asarray(vector, dtype=np_float64)
        if v.shape != (3,):
            raise ValueError(f"Invalid vector shape: {v.shape}, expected (3,)")
        return self._rotation.transform(v * self._scale, out)

    def inverse_transform(self, vector, out: Optional[ndarray] = None) -> ndarray:
        out = self._rotation.inverse_transform(vector, out)
        out /= self._scale
        return out

    def copy(self) -> "RotationScaleMatrix":
        return self.__class__.from_rotation_and_scale(self._rotation.copy(), self._scale.copy())

    def __matmul__(self, other):
        """Apply to a 3D vector, or multiply by another matrix as a raw 3x3."""
        if isinstance(other, (RotationScaleMatrix, Orientation3D)):
            other = other.matrix if isinstance(other, RotationScaleMatrix) else other.as_matrix()
            return self.matrix @ other
        other = np_asarray(other)
        if other.shape == (3,):
            return self.transform(other)
        return self.matrix @ other

    def __eq__(self, other) -> bool:
        if self is other:
            return True
        if self.__class__ is not other.__class__:
            return False
        return self._rotation == other._rotation and np.allclose(self._scale, other._scale)

    def __repr__(self):
        return f"{self.__class__.__name__}({np_array2string(self.matrix, precision=6, separator=', ')})"

    def __str__(self):
        return self.__repr__()

    def __copy__(self) -> "RotationScaleMatrix":
        return self.copy()

    def __deepcopy__(self, memo) -> "RotationScaleMatrix":
        return self.copy()

    def __reduce__(self):
        return (self.__class__.from_rotation_and_scale, (self._rotation, self._scale.copy()))

