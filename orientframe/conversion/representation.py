# representation.py
from enum import Enum
from typing import Tuple

import numpy as np
from numpy import asarray as np_asarray
from numpy import float64 as np_float64
from numpy import ndarray


class Representation(Enum):
    MATRIX = 0
    AXIS_ANGLE = 1
    QUATERNION = 2
    YAW_PITCH_ROLL = 3
    ROTATION_VECTOR = 4

    @property
    def shape(self) -> Tuple[int, ...]:
        return _SHAPES[self]

    def empty(self) -> ndarray:
        """Uninitialized float64 array of this representation's shape."""
        return np.empty(_SHAPES[self], dtype=np_float64)

    def identity(self) -> ndarray:
        """Canonical encoding of the zero rotation."""
        return _IDENTITIES[self].copy()

    def nan(self) -> ndarray:
        return np.full(_SHAPES[self], np.nan, dtype=np_float64)

    def validate(self, values) -> ndarray:
        """Return `values` as a float64 array of this representation's shape, raising ValueError otherwise."""
        arr = np_asarray(values, dtype=np_float64)
        if arr.shape != _SHAPES[self]:
            raise ValueError(
                f"Invalid {self.name.lower()} shape: {arr.shape}, expected {_SHAPES[self]}")
        return arr


# array layout of each representation
_SHAPES = {
    Representation.MATRIX: (3, 3),
    Representation.AXIS_ANGLE: (4,),        # ux, uy, uz, angle
    Representation.QUATERNION: (4,),        # x, y, z, s
    Representation.YAW_PITCH_ROLL: (3,),    # yaw, pitch, roll
    Representation.ROTATION_VECTOR: (3,),   # axis * angle
}

_IDENTITIES = {
    Representation.MATRIX: np.eye(3, dtype=np_float64),
    Representation.AXIS_ANGLE: np.array([1.0, 0.0, 0.0, 0.0], dtype=np_float64),
    Representation.QUATERNION: np.array([0.0, 0.0, 0.0, 1.0], dtype=np_float64),
    Representation.YAW_PITCH_ROLL: np.zeros(3, dtype=np_float64),
    Representation.ROTATION_VECTOR: np.zeros(3, dtype=np_float64),
}
