# __init__.py
"""
Conversions between the five orientation representations.

Every conversion is a pure function `src_to_dst(values, out=None)` writing
into `out` when given; conversions from a matrix also take `check=True`.
`convert` dispatches on a pair of `Representation` tags.
"""
from typing import Optional

from numpy import ndarray

from orientframe.conversion.representation import Representation
from orientframe.conversion.to_axis_angle import (
    matrix_to_axis_angle,
    quaternion_to_axis_angle,
    rotation_vector_to_axis_angle,
    yaw_pitch_roll_to_axis_angle,
)
from orientframe.conversion.to_matrix import (
    axis_angle_to_matrix,
    pitch_matrix,
    quaternion_to_matrix,
    roll_matrix,
    rotation_vector_to_matrix,
    yaw_matrix,
    yaw_pitch_roll_to_matrix,
)
from orientframe.conversion.to_quaternion import (
    axis_angle_to_quaternion,
    matrix_to_quaternion,
    pitch_quaternion,
    roll_quaternion,
    rotation_vector_to_quaternion,
    yaw_pitch_roll_to_quaternion,
    yaw_quaternion,
)
from orientframe.conversion.to_rotation_vector import (
    axis_angle_to_rotation_vector,
    matrix_to_rotation_vector,
    quaternion_to_rotation_vector,
    yaw_pitch_roll_to_rotation_vector,
)
from orientframe.conversion.to_yaw_pitch_roll import (
    axis_angle_to_yaw_pitch_roll,
    matrix_to_yaw_pitch_roll,
    quaternion_to_yaw_pitch_roll,
    rotation_vector_to_yaw_pitch_roll,
)
from orientframe.features import as_rotation_matrix

_M = Representation.MATRIX
_AA = Representation.AXIS_ANGLE
_Q = Representation.QUATERNION
_YPR = Representation.YAW_PITCH_ROLL
_RV = Representation.ROTATION_VECTOR

_CONVERTERS = {
    (_M, _AA): matrix_to_axis_angle,
    (_M, _Q): matrix_to_quaternion,
    (_M, _YPR): matrix_to_yaw_pitch_roll,
    (_M, _RV): matrix_to_rotation_vector,

    (_AA, _M): axis_angle_to_matrix,
    (_AA, _Q): axis_angle_to_quaternion,
    (_AA, _YPR): axis_angle_to_yaw_pitch_roll,
    (_AA, _RV): axis_angle_to_rotation_vector,

    (_Q, _M): quaternion_to_matrix,
    (_Q, _AA): quaternion_to_axis_angle,
    (_Q, _YPR): quaternion_to_yaw_pitch_roll,
    (_Q, _RV): quaternion_to_rotation_vector,

    (_YPR, _M): yaw_pitch_roll_to_matrix,
    (_YPR, _AA): yaw_pitch_roll_to_axis_angle,
    (_YPR, _Q): yaw_pitch_roll_to_quaternion,
    (_YPR, _RV): yaw_pitch_roll_to_rotation_vector,

    (_RV, _M): rotation_vector_to_matrix,
    (_RV, _AA): rotation_vector_to_axis_angle,
    (_RV, _Q): rotation_vector_to_quaternion,
    (_RV, _YPR): rotation_vector_to_yaw_pitch_roll,
}


def get_converter(source: Representation, destination: Representation):
    """
    Return the conversion function from `source` to `destination`.

    Raises:
        KeyError: if source and destination are the same representation.
    """
    return _CONVERTERS[(Representation(source), Representation(destination))]


def convert(values, source: Representation, destination: Representation,
            out: Optional[ndarray] = None, check: bool = True) -> ndarray:
    """
    Convert `values` from one representation to another.

    Parameters:
        values (array_like): data in the layout of `source`.
        source (Representation): representation of `values`.
        destination (Representation): representation to produce.
        out (ndarray, optional): array of the destination's shape to write into.
        check (bool, optional): validate a matrix source. Ignored for other sources.

    Returns:
        ndarray: the converted data. When source and destination are equal,
        a copy of `values`.

    Raises:
        ValueError: if `values` does not have the shape of `source`.
        NotARotationMatrixError: if `check` is set and a matrix source is not a rotation.
    """
    source = Representation(source)
    destination = Representation(destination)

    if source is destination:
        if source is _M:
            values = as_rotation_matrix(values, check)
        else:
            values = source.validate(values)
        if out is None:
            return values.copy()
        out[...] = values
        return out

    converter = _CONVERTERS[(source, destination)]
    if source is _M:
        return converter(values, out, check=check)
    return converter(values, out)


__all__ = [
    "Representation",
    "convert",
    "get_converter",
    "axis_angle_to_matrix",
    "quaternion_to_matrix",
    "yaw_pitch_roll_to_matrix",
    "rotation_vector_to_matrix",
    "yaw_matrix",
    "pitch_matrix",
    "roll_matrix",
    "matrix_to_axis_angle",
    "quaternion_to_axis_angle",
    "yaw_pitch_roll_to_axis_angle",
    "rotation_vector_to_axis_angle",
    "matrix_to_quaternion",
    "axis_angle_to_quaternion",
    "yaw_pitch_roll_to_quaternion",
    "rotation_vector_to_quaternion",
    "yaw_quaternion",
    "pitch_quaternion",
    "roll_quaternion",
    "matrix_to_yaw_pitch_roll",
    "quaternion_to_yaw_pitch_roll",
    "axis_angle_to_yaw_pitch_roll",
    "rotation_vector_to_yaw_pitch_roll",
    "matrix_to_rotation_vector",
    "quaternion_to_rotation_vector",
    "axis_angle_to_rotation_vector",
    "yaw_pitch_roll_to_rotation_vector",
]
