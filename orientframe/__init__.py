"""
Orientframe: conversions between 3D orientation representations (rotation
matrix, axis-angle, quaternion, yaw-pitch-roll and rotation vector) and a
classifier of 3x3 matrix features, built on numba-compiled kernels.
"""
import logging

__version__ = version = "0.1.0"

# exposing the public API of the package
from orientframe.conversion import Representation, convert
from orientframe.exceptions import (
    MatrixError,
    NotAMatrix2DError,
    NotARotationMatrixError,
    NotARotationScaleMatrixError,
    SingularMatrixError,
)
from orientframe.orientation import (
    AxisAngle,
    Orientation3D,
    Quaternion,
    RotationMatrix,
    YawPitchRoll,
)
from orientframe.rotation_scale_matrix import RotationScaleMatrix

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Representation",
    "convert",
    "Orientation3D",
    "RotationMatrix",
    "AxisAngle",
    "Quaternion",
    "YawPitchRoll",
    "RotationScaleMatrix",
    "MatrixError",
    "NotARotationMatrixError",
    "NotARotationScaleMatrixError",
    "NotAMatrix2DError",
    "SingularMatrixError",
]
