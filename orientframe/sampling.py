# sampling.py
"""
Random orientations for tests and benchmarks, drawn from a `numpy.random.Generator`.

Axes are uniformly distributed on the unit sphere and angles uniformly
distributed in [-max_angle, max_angle].
"""
import math

import numpy as np
from numpy import float64 as np_float64
from numpy import ndarray
from numpy.random import Generator

from orientframe.conversion import Representation, convert
from orientframe.orientation import AxisAngle, Quaternion, RotationMatrix, YawPitchRoll
from orientframe.rotation_scale_matrix import RotationScaleMatrix
from orientframe.tolerance import MAX_PITCH_ANGLE


def next_unit_vector(rng: Generator) -> ndarray:
    """Point picked uniformly on the unit sphere."""
    z = rng.uniform(-1.0, 1.0)
    phi = rng.uniform(0.0, 2.0 * math.pi)
    r = math.sqrt(1.0 - z * z)
    return np.array([r * math.cos(phi), r * math.sin(phi), z], dtype=np_float64)


def _next_axis_angle_values(rng: Generator, max_angle: float) -> ndarray:
    values = np.empty(4, dtype=np_float64)
    values[:3] = next_unit_vector(rng)
    values[3] = rng.uniform(-max_angle, max_angle)
    return values


def next_axis_angle(rng: Generator, max_angle: float = math.pi) -> AxisAngle:
    return AxisAngle.from_unchecked_values(_next_axis_angle_values(rng, max_angle))


def next_rotation_matrix(rng: Generator, max_angle: float = math.pi) -> RotationMatrix:
    values = _next_axis_angle_values(rng, max_angle)
    return RotationMatrix.from_unchecked_values(
        convert(values, Representation.AXIS_ANGLE, Representation.MATRIX))


def next_quaternion(rng: Generator, max_angle: float = math.pi) -> Quaternion:
    values = _next_axis_angle_values(rng, max_angle)
    return Quaternion.from_unchecked_values(
        convert(values, Representation.AXIS_ANGLE, Representation.QUATERNION))


def next_yaw_pitch_roll(rng: Generator, max_pitch: float = MAX_PITCH_ANGLE,
                        max_yaw: float = math.pi, max_roll: float = math.pi) -> YawPitchRoll:
    """
    Random yaw, pitch and roll angles.

    Pitch is kept within `max_pitch`, by default a safe distance away from
    gimbal lock.
    """
    values = np.array([
        rng.uniform(-max_yaw, max_yaw),
        rng.uniform(-max_pitch, max_pitch),
        rng.uniform(-max_roll, max_roll),
    ], dtype=np_float64)
    return YawPitchRoll.from_unchecked_values(values)


def next_rotation_vector(rng: Generator, max_angle: float = math.pi) -> ndarray:
    values = _next_axis_angle_values(rng, max_angle)
    return convert(values, Representation.AXIS_ANGLE, Representation.ROTATION_VECTOR)


def next_rotation_scale_matrix(rng: Generator, max_scale: float = 2.0, max_angle: float = math.pi) -> RotationScaleMatrix:
    """Random rotation with each scale factor in ]0, max_scale]."""
    rotation = next_rotation_matrix(rng, max_angle)
    scale = max_scale - rng.uniform(0.0, max_scale, size=3)
    return RotationScaleMatrix.from_rotation_and_scale(rotation, scale)


def next_orientation(rng: Generator, representation: Representation) -> ndarray:
    """Random orientation as a raw array in the layout of `representation`."""
    representation = Representation(representation)
    if representation is Representation.YAW_PITCH_ROLL:
        return next_yaw_pitch_roll(rng).values
    if representation is Representation.ROTATION_VECTOR:
        return next_rotation_vector(rng)
    values = _next_axis_angle_values(rng, math.pi)
    if representation is Representation.AXIS_ANGLE:
        return values
    return convert(values, Representation.AXIS_ANGLE, representation)
