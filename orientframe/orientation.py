# orientation.py
from typing import Optional, Type, Union

import numpy as np
from numpy import array2string as np_array2string
from numpy import asarray as np_asarray
from numpy import float64 as np_float64
from numpy import ndarray

from orientframe.algebra import (
    matrix_multiply,
    matrix_transform,
    quaternion_conjugate,
    quaternion_distance,
    quaternion_interpolate,
    quaternion_multiply,
    quaternion_normalize,
    quaternion_transform,
)
from orientframe.conversion import (
    Representation,
    convert,
    pitch_matrix,
    pitch_quaternion,
    roll_matrix,
    roll_quaternion,
    yaw_matrix,
    yaw_quaternion,
)
from orientframe.features import (
    as_rotation_matrix,
    check_if_matrix_2d,
    is_matrix_2d,
    normalize_rotation_matrix,
)
from orientframe.tolerance import EPS_CHECK_2D, EPS_CHECK_ROTATION, EPS_NEAR_ZERO

_IDENTITY_QUATERNION = Representation.QUATERNION.identity()


class Orientation3D:
    """
    A 3D orientation stored as one float64 array in the layout of its
    `representation`.

    Every orientation can be read as, and set from, any of the other ones.
    Composition, inversion and comparison are defined across representations.
    Operations that modify the orientation do so in place and return `self`.
    """
    __slots__ = ('_data',)

    representation: Representation = None

    def __init__(self, values=None):
        self._data = self.representation.identity()
        if values is not None:
            self.set(values)

    @classmethod
    def from_unchecked_values(cls, values: ndarray):
        """Wrap `values` without copying or validating it. Useful for performance when the input is known to be valid."""
        instance = object.__new__(cls)
        instance._data = values
        return instance

    @classmethod
    def identity(cls):
        return cls.from_unchecked_values(cls.representation.identity())

    @classmethod
    def nan(cls):
        return cls.from_unchecked_values(cls.representation.nan())

    @classmethod
    def from_matrix(cls, matrix, check: bool = True):
        return cls._from(matrix, Representation.MATRIX, check)

    @classmethod
    def from_axis_angle(cls, axis, angle: float):
        values = np.empty(4, dtype=np_float64)
        values[:3] = axis
        values[3] = angle
        return cls._from(values, Representation.AXIS_ANGLE)

    @classmethod
    def from_quaternion(cls, quaternion):
        return cls._from(quaternion, Representation.QUATERNION)

    @classmethod
    def from_yaw_pitch_roll(cls, yaw: float, pitch: float, roll: float):
        return cls._from((yaw, pitch, roll), Representation.YAW_PITCH_ROLL)

    @classmethod
    def from_rotation_vector(cls, rotation_vector):
        return cls._from(rotation_vector, Representation.ROTATION_VECTOR)

    @classmethod
    def _from(cls, values, source: Representation, check: bool = True):
        return cls.from_unchecked_values(convert(values, source, cls.representation, check=check))

    @property
    def values(self) -> ndarray:
        """The underlying array. Writing to it bypasses validation."""
        return self._data

    #########
    # Setters
    #

    def set(self, other: Union["Orientation3D", ndarray]):
        """
        Set this orientation from another one of any representation, or from a
        raw array in this orientation's own layout.

        Raises:
            ValueError: if a raw array does not have this representation's shape.
            NotARotationMatrixError: if a raw matrix is not a rotation.
        """
        if isinstance(other, Orientation3D):
            convert(other._data, other.representation, self.representation, out=self._data, check=False)
        else:
            self._data[...] = self._validate(other)
        return self

    def _validate(self, values) -> ndarray:
        return self.representation.validate(values)

    def _set_from(self, values: ndarray, source: Representation):
        convert(values, source, self.representation, out=self._data, check=False)
        return self

    def set_to_zero(self):
        self._data[...] = self.representation.identity()
        return self

    def set_to_nan(self):
        self._data.fill(np.nan)
        return self

    def normalize(self):
        """Remove numerical drift from the stored values. A no-op for representations without a norm constraint."""
        return self

    #########
    # Getters
    #

    def get(self, destination: Union[Representation, Type["Orientation3D"], "Orientation3D"]):
        """
        Materialize this orientation in another form.

        Parameters:
            destination: a `Representation` to get a raw array, an orientation
                class to get a new instance, or an orientation instance to set.

        Returns:
            ndarray or Orientation3D: the converted orientation.
        """
        if isinstance(destination, Orientation3D):
            return destination.set(self)
        if isinstance(destination, type) and issubclass(destination, Orientation3D):
            return destination.from_unchecked_values(self._to(destination.representation))
        return self._to(Representation(destination))

    def _to(self, representation: Representation, out: Optional[ndarray] = None) -> ndarray:
        return convert(self._data, self.representation, representation, out=out, check=False)

    def as_matrix(self) -> ndarray:
        return self._to(Representation.MATRIX)

    def as_axis_angle(self) -> ndarray:
        return self._to(Representation.AXIS_ANGLE)

    def as_quaternion(self) -> ndarray:
        return self._to(Representation.QUATERNION)

    def get_yaw_pitch_roll(self) -> ndarray:
        return self._to(Representation.YAW_PITCH_ROLL)

    def get_rotation_vector(self) -> ndarray:
        return self._to(Representation.ROTATION_VECTOR)

    def get_yaw(self) -> float:
        return float(self.get_yaw_pitch_roll()[0])

    def get_pitch(self) -> float:
        return float(self.get_yaw_pitch_roll()[1])

    def get_roll(self) -> float:
        return float(self.get_yaw_pitch_roll()[2])

    #########
    # Queries
    #

    def contains_nan(self) -> bool:
        return bool(np.isnan(self._data).any())

    def get_angle(self) -> float:
        """Angle in [0, pi] of this rotation."""
        return quaternion_distance(_IDENTITY_QUATERNION, self.as_quaternion())

    def is_zero_orientation(self, epsilon: float = EPS_CHECK_ROTATION) -> bool:
        return self.get_angle() <= epsilon

    def is_orientation_2d(self, epsilon: float = EPS_CHECK_2D) -> bool:
        """True if this orientation is a rotation about the z-axis only."""
        return is_matrix_2d(self.as_matrix(), epsilon)

    def distance(self, other: "Orientation3D") -> float:
        """Angle in [0, pi] of the rotation taking this orientation to `other`."""
        return quaternion_distance(self.as_quaternion(), _as_orientation(other).as_quaternion())

    def geometrically_equals(self, other: "Orientation3D", epsilon: float = EPS_CHECK_ROTATION) -> bool:
        """
        True if this orientation and `other` describe the same rotation within
        `epsilon` radians, whatever their representations.

        The comparison is reflexive, symmetric, and monotonic in `epsilon`. An
        orientation containing NaN is not equal to anything.
        """
        return self.distance(other) <= epsilon

    def epsilon_equals(self, other: "Orientation3D", epsilon: float = EPS_CHECK_ROTATION) -> bool:
        """Component-wise comparison with another orientation of the same class."""
        if self.__class__ is not other.__class__:
            return False
        return bool(np.all(np.abs(self._data - other._data) <= epsilon))

    #########
    # Algebra
    #

    def multiply(self, other: "Orientation3D"):
        """Set this orientation to `self * other`: `other` is applied first, then `self`."""
        q = quaternion_multiply(self.as_quaternion(), _as_orientation(other).as_quaternion())
        return self._set_from(quaternion_normalize(q, out=q), Representation.QUATERNION)

    def pre_multiply(self, other: "Orientation3D"):
        """Set this orientation to `other * self`: `self` is applied first, then `other`."""
        q = quaternion_multiply(_as_orientation(other).as_quaternion(), self.as_quaternion())
        return self._set_from(quaternion_normalize(q, out=q), Representation.QUATERNION)

    def invert(self):
        q = self.as_quaternion()
        return self._set_from(quaternion_conjugate(q, out=q), Representation.QUATERNION)

    def inverse(self):
        return self.copy().invert()

    def interpolate(self, other: "Orientation3D", alpha: float):
        """
        Set this orientation to the spherical interpolation from its current
        value (alpha = 0) to `other` (alpha = 1), along the shorter arc.
        """
        q = quaternion_interpolate(self.as_quaternion(), _as_orientation(other).as_quaternion(), alpha)
        return self._set_from(q, Representation.QUATERNION)

    #########
    # Elementary rotations
    #

    def append_yaw_rotation(self, yaw: float):
        """Set this orientation to `self * Rz(yaw)`."""
        return self._append(yaw, yaw_quaternion, yaw_matrix)

    def append_pitch_rotation(self, pitch: float):
        """Set this orientation to `self * Ry(pitch)`."""
        return self._append(pitch, pitch_quaternion, pitch_matrix)

    def append_roll_rotation(self, roll: float):
        """Set this orientation to `self * Rx(roll)`."""
        return self._append(roll, roll_quaternion, roll_matrix)

    def prepend_yaw_rotation(self, yaw: float):
        """Set this orientation to `Rz(yaw) * self`."""
        return self._prepend(yaw, yaw_quaternion, yaw_matrix)

    def prepend_pitch_rotation(self, pitch: float):
        """Set this orientation to `Ry(pitch) * self`."""
        return self._prepend(pitch, pitch_quaternion, pitch_matrix)

    def prepend_roll_rotation(self, roll: float):
        """Set this orientation to `Rx(roll) * self`."""
        return self._prepend(roll, roll_quaternion, roll_matrix)

    def _append(self, angle: float, as_quaternion, as_matrix):
        q = quaternion_multiply(self.as_quaternion(), as_quaternion(angle))
        return self._set_from(quaternion_normalize(q, out=q), Representation.QUATERNION)

    def _prepend(self, angle: float, as_quaternion, as_matrix):
        q = quaternion_multiply(as_quaternion(angle), self.as_quaternion())
        return self._set_from(quaternion_normalize(q, out=q), Representation.QUATERNION)

    #########
    # Vector transforms
    #

    def transform(self, vector, out: Optional[ndarray] = None) -> ndarray:
        """Rotate a 3D vector by this orientation."""
        return quaternion_transform(self.as_quaternion(), vector, out)

    def inverse_transform(self, vector, out: Optional[ndarray] = None) -> ndarray:
        """Rotate a 3D vector by the inverse of this orientation."""
        return quaternion_transform(self.as_quaternion(), vector, out, inverse=True)

    def transform_2d(self, vector, out: Optional[ndarray] = None, check_if_in_xy_plane: bool = True) -> ndarray:
        """
        Rotate a 2D vector by this orientation, seen as a rotation in the XY-plane.

        Raises:
            NotAMatrix2DError: if `check_if_in_xy_plane` is set and the rotation
                has components outside of the XY-plane.
        """
        v = np_asarray(vector, dtype=np_float64)
        if v.shape != (2,):
            raise ValueError(f"Invalid 2D vector shape: {v.shape}, expected (2,)")
        m = self.as_matrix()
        if check_if_in_xy_plane:
            check_if_matrix_2d(m)
        if out is None:
            out = np.empty(2, dtype=np_float64)
        x, y = v
        out[0] = m[0, 0] * x + m[0, 1] * y
        out[1] = m[1, 0] * x + m[1, 1] * y
        return out

    #########
    # Dunders
    #

    def copy(self):
        return self.__class__.from_unchecked_values(self._data.copy())

    def __matmul__(self, other):
        """
        Compose with another orientation, or rotate a 3D vector.

        Args:
            other: an Orientation3D, composed as `self * other` into a new
                instance of this class, or a 3D vector to transform.
        """
        if isinstance(other, Orientation3D):
            return self.copy().multiply(other)
        return self.transform(other)

    def __eq__(self, other) -> bool:
        """
        True if `other` is the same class and the values are equal within a small tolerance.
        """
        if self is other:
            return True
        if self.__class__ is not other.__class__:
            return False
        return np.allclose(self._data, other._data)

    def __repr__(self):
        return f"{self.__class__.__name__}({np_array2string(self._data, precision=6, separator=', ')})"

    def __str__(self):
        return self.__repr__()

    def __copy__(self):
        return self.copy()

    def __deepcopy__(self, memo):
        # values are numeric, so shallow vs deep is effectively the same here
        return self.copy()

    def __reduce__(self):
        # restores the values as they are, without validating them again
        return (self.__class__.from_unchecked_values, (self._data.copy(),))


def _as_orientation(other) -> Orientation3D:
    if not isinstance(other, Orientation3D):
        raise TypeError(f"Expected an Orientation3D, got {type(other).__name__}")
    return other


class RotationMatrix(Orientation3D):
    """A proper 3x3 rotation matrix. Raw matrices are validated when set."""
    __slots__ = ()

    representation = Representation.MATRIX

    def _validate(self, values) -> ndarray:
        return as_rotation_matrix(values, check=True)

    def set_unchecked(self, matrix):
        """Set from a raw 3x3 matrix without checking it is a rotation."""
        self._data[...] = as_rotation_matrix(matrix, check=False)
        return self

    def normalize(self):
        """Orthonormalize the matrix with Gram-Schmidt on its columns."""
        normalize_rotation_matrix(self._data, out=self._data)
        return self

    def multiply(self, other: Orientation3D):
        matrix_multiply(self._data, _as_orientation(other).as_matrix(), out=self._data)
        return self

    def pre_multiply(self, other: Orientation3D):
        matrix_multiply(_as_orientation(other).as_matrix(), self._data, out=self._data)
        return self

    def _append(self, angle: float, as_quaternion, as_matrix):
        matrix_multiply(self._data, as_matrix(angle), out=self._data)
        return self

    def _prepend(self, angle: float, as_quaternion, as_matrix):
        matrix_multiply(as_matrix(angle), self._data, out=self._data)
        return self

    def invert(self):
        self._data[...] = self._data.T.copy()
        return self

    def transform(self, vector, out: Optional[ndarray] = None) -> ndarray:
        return matrix_transform(self._data, vector, out)

    def inverse_transform(self, vector, out: Optional[ndarray] = None) -> ndarray:
        return matrix_transform(self._data, vector, out, inverse=True)

    def is_orientation_2d(self, epsilon: float = EPS_CHECK_2D) -> bool:
        return is_matrix_2d(self._data, epsilon)


class AxisAngle(Orientation3D):
    """A rotation of `angle` radians about `axis`, stored as (ux, uy, uz, angle)."""
    __slots__ = ()

    representation = Representation.AXIS_ANGLE

    @property
    def axis(self) -> ndarray:
        return self._data[:3]

    @property
    def angle(self) -> float:
        return float(self._data[3])

    def normalize(self):
        """Scale the axis to unit norm. A (near-)zero axis resets to (1, 0, 0, 0)."""
        norm = np.linalg.norm(self._data[:3])
        if norm < EPS_NEAR_ZERO:
            return self.set_to_zero()
        self._data[:3] /= norm
        return self

    def invert(self):
        self._data[3] = -self._data[3]
        return self


class Quaternion(Orientation3D):
    """A unit quaternion stored as (x, y, z, s), scalar last."""
    __slots__ = ()

    representation = Representation.QUATERNION

    @property
    def vector(self) -> ndarray:
        return self._data[:3]

    @property
    def scalar(self) -> float:
        return float(self._data[3])

    def normalize(self):
        quaternion_normalize(self._data, out=self._data)
        return self

    def invert(self):
        quaternion_conjugate(self._data, out=self._data)
        return self

    def transform(self, vector, out: Optional[ndarray] = None) -> ndarray:
        return quaternion_transform(self._data, vector, out)

    def inverse_transform(self, vector, out: Optional[ndarray] = None) -> ndarray:
        return quaternion_transform(self._data, vector, out, inverse=True)


class YawPitchRoll(Orientation3D):
    """Intrinsic Z-Y-X angles (yaw, pitch, roll) with R = Rz(yaw) @ Ry(pitch) @ Rx(roll)."""
    __slots__ = ()

    representation = Representation.YAW_PITCH_ROLL

    @property
    def yaw(self) -> float:
        return float(self._data[0])

    @yaw.setter
    def yaw(self, value: float):
        self._data[0] = value

    @property
    def pitch(self) -> float:
        return float(self._data[1])

    @pitch.setter
    def pitch(self, value: float):
        self._data[1] = value

    @property
    def roll(self) -> float:
        return float(self._data[2])

    @roll.setter
    def roll(self, value: float):
        self._data[2] = value


ORIENTATION_TYPES = {
    Representation.MATRIX: RotationMatrix,
    Representation.AXIS_ANGLE: AxisAngle,
    Representation.QUATERNION: Quaternion,
    Representation.YAW_PITCH_ROLL: YawPitchRoll,
}
