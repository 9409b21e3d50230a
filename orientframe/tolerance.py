# tolerance.py
import math
from numba import njit

from numba.core.errors import NumbaPerformanceWarning
import warnings
warnings.filterwarnings("ignore", category=NumbaPerformanceWarning)


# matrix validity checks
EPS_CHECK_ROTATION = 1.0e-7
EPS_CHECK_IDENTITY = 1.0e-7
EPS_CHECK_2D = 1.0e-8
EPS_CHECK_ZERO_ROTATION = 1.0e-10
EPS_CHECK_SKEW = 1.0e-8

# axis normalization and angle-near-zero branches
EPS_NEAR_ZERO = 1.0e-12
EPS_QUATERNION = 1.0e-7
EPS_NORM = 2.107342e-08

# |cos(pitch)| below this value means yaw and roll are coupled
GIMBAL_LOCK_EPSILON = 1.0e-7
SAFE_THRESHOLD_PITCH = math.radians(1.82)
MAX_PITCH_ANGLE = math.pi / 2.0 - SAFE_THRESHOLD_PITCH
MIN_PITCH_ANGLE = -MAX_PITCH_ANGLE

# round-trip accuracy, away from and inside singular neighborhoods
ROUND_TRIP_EPSILON = 1.0e-9
SINGULARITY_EPSILON = 1.0e-6


@njit(cache=True, inline='always')
def clamp_unit(value: float) -> float:
    """
    Restrict a cosine or dot-product argument to [-1, 1] so that asin/acos
    never see values pushed out of range by rounding.
    """
    if value > 1.0:
        return 1.0
    if value < -1.0:
        return -1.0
    return value


@njit(cache=True, inline='always')
def contains_nan3(x: float, y: float, z: float) -> bool:
    return math.isnan(x) or math.isnan(y) or math.isnan(z)


@njit(cache=True, inline='always')
def contains_nan4(x: float, y: float, z: float, s: float) -> bool:
    return math.isnan(x) or math.isnan(y) or math.isnan(z) or math.isnan(s)


@njit(cache=True, inline='always')
def contains_nan9(m00, m01, m02, m10, m11, m12, m20, m21, m22) -> bool:
    if math.isnan(m00) or math.isnan(m01) or math.isnan(m02):
        return True
    if math.isnan(m10) or math.isnan(m11) or math.isnan(m12):
        return True
    if math.isnan(m20) or math.isnan(m21) or math.isnan(m22):
        return True
    return False


@njit(cache=True, inline='always')
def norm3(x: float, y: float, z: float) -> float:
    return math.sqrt(x * x + y * y + z * z)


@njit(cache=True, inline='always')
def norm4(x: float, y: float, z: float, s: float) -> float:
    return math.sqrt(x * x + y * y + z * z + s * s)
