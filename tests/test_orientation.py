# tests/test_orientation.py

import copy
import math
import pickle
import unittest

import numpy as np
from scipy.spatial.transform import Rotation, Slerp

from orientframe import (
    AxisAngle,
    NotAMatrix2DError,
    NotARotationMatrixError,
    Quaternion,
    Representation,
    RotationMatrix,
    YawPitchRoll,
)
from orientframe.sampling import (
    next_axis_angle,
    next_quaternion,
    next_rotation_matrix,
    next_yaw_pitch_roll,
)

TYPES = (RotationMatrix, AxisAngle, Quaternion, YawPitchRoll)


class TestOrientationBase(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(8)

    def random_of(self, cls):
        return cls().set(next_quaternion(self.rng))


class TestSetGet(TestOrientationBase):
    def test_default_is_identity(self):
        for cls in TYPES:
            o = cls()
            np.testing.assert_array_equal(o.values, cls.representation.identity())
            self.assertTrue(o.is_zero_orientation())

    def test_set_across_types(self):
        source = next_rotation_matrix(self.rng)
        for cls in TYPES:
            o = cls().set(source)
            np.testing.assert_allclose(o.as_matrix(), source.values, atol=1e-12)
            self.assertTrue(o.geometrically_equals(source, 1e-9))

    def test_set_raw(self):
        ypr = YawPitchRoll([0.1, 0.2, 0.3])
        np.testing.assert_array_equal(ypr.values, [0.1, 0.2, 0.3])
        self.assertEqual(ypr.yaw, 0.1)
        self.assertEqual(ypr.pitch, 0.2)
        self.assertEqual(ypr.roll, 0.3)
        with self.assertRaises(ValueError):
            YawPitchRoll([0.1, 0.2])

    def test_rotation_matrix_is_validated(self):
        with self.assertRaises(NotARotationMatrixError):
            RotationMatrix(np.diag([1.0, 1.0, -1.0]))
        with self.assertRaises(NotARotationMatrixError):
            RotationMatrix().set(2.0 * np.eye(3))
        # the unchecked fast path accepts anything of the right shape
        m = RotationMatrix().set_unchecked(2.0 * np.eye(3))
        np.testing.assert_array_equal(m.values, 2.0 * np.eye(3))
        with self.assertRaises(ValueError):
            RotationMatrix().set_unchecked(np.eye(2))

    def test_get(self):
        q = next_quaternion(self.rng)
        m = q.get(RotationMatrix)
        self.assertIsInstance(m, RotationMatrix)
        np.testing.assert_allclose(m.values, Rotation.from_quat(q.values).as_matrix(), atol=1e-12)

        target = YawPitchRoll()
        self.assertIs(q.get(target), target)
        self.assertTrue(target.geometrically_equals(q, 1e-9))

        raw = q.get(Representation.ROTATION_VECTOR)
        np.testing.assert_allclose(raw, Rotation.from_quat(q.values).as_rotvec(), atol=1e-9)

    def test_getters(self):
        ypr = [0.4, -0.3, 1.2]
        q = Quaternion.from_yaw_pitch_roll(*ypr)
        self.assertAlmostEqual(q.get_yaw(), 0.4, places=12)
        self.assertAlmostEqual(q.get_pitch(), -0.3, places=12)
        self.assertAlmostEqual(q.get_roll(), 1.2, places=12)
        np.testing.assert_allclose(q.get_yaw_pitch_roll(), ypr, atol=1e-12)
        r = Rotation.from_euler('ZYX', ypr)
        np.testing.assert_allclose(q.as_matrix(), r.as_matrix(), atol=1e-12)
        np.testing.assert_allclose(q.get_rotation_vector(), r.as_rotvec(), atol=1e-12)
        axis_angle = q.as_axis_angle()
        np.testing.assert_allclose(axis_angle[:3] * axis_angle[3], r.as_rotvec(), atol=1e-12)

    def test_constructors(self):
        axis_angle = AxisAngle.from_axis_angle([0.0, 0.0, 1.0], 0.5)
        np.testing.assert_array_equal(axis_angle.values, [0.0, 0.0, 1.0, 0.5])
        np.testing.assert_array_equal(axis_angle.axis, [0.0, 0.0, 1.0])
        self.assertEqual(axis_angle.angle, 0.5)
        matrix = RotationMatrix.from_rotation_vector([0.0, 0.0, 0.5])
        self.assertTrue(matrix.geometrically_equals(axis_angle, 1e-12))
        quaternion = Quaternion.from_matrix(matrix.values)
        self.assertTrue(quaternion.geometrically_equals(axis_angle, 1e-12))
        self.assertAlmostEqual(quaternion.scalar, math.cos(0.25))
        with self.assertRaises(NotARotationMatrixError):
            Quaternion.from_matrix(np.diag([1.0, 2.0, 3.0]))

    def test_set_to_zero_and_nan(self):
        for cls in TYPES:
            o = self.random_of(cls)
            self.assertFalse(o.is_zero_orientation())
            o.set_to_nan()
            self.assertTrue(o.contains_nan())
            self.assertTrue(np.isnan(o.as_quaternion()).all())
            o.set_to_zero()
            self.assertFalse(o.contains_nan())
            self.assertTrue(o.is_zero_orientation())
            np.testing.assert_array_equal(o.values, cls.representation.identity())


class TestAlgebra(TestOrientationBase):
    def test_multiply_matches_scipy(self):
        for cls in TYPES:
            for other_cls in TYPES:
                a = self.random_of(cls)
                b = self.random_of(other_cls)
                expected = Rotation.from_matrix(a.as_matrix()) * Rotation.from_matrix(b.as_matrix())
                result = a.copy().multiply(b)
                self.assertIsInstance(result, cls)
                np.testing.assert_allclose(result.as_matrix(), expected.as_matrix(), atol=1e-9)

    def test_pre_multiply(self):
        for cls in TYPES:
            a = self.random_of(cls)
            b = self.random_of(Quaternion)
            expected = b.as_matrix() @ a.as_matrix()
            np.testing.assert_allclose(a.copy().pre_multiply(b).as_matrix(), expected, atol=1e-9)

    def test_invert(self):
        for cls in TYPES:
            o = self.random_of(cls)
            inverse = o.inverse()
            self.assertIsNot(inverse, o)
            np.testing.assert_allclose(inverse.as_matrix(), o.as_matrix().T, atol=1e-9)
            composed = o.copy().multiply(inverse)
            self.assertTrue(composed.is_zero_orientation(1e-9))
            o2 = o.copy()
            self.assertIs(o2.invert(), o2)
            self.assertTrue(o2.geometrically_equals(inverse, 1e-9))

    def test_transform(self):
        v = np.array([1.0, -2.0, 3.0])
        for cls in TYPES:
            o = self.random_of(cls)
            R = o.as_matrix()
            np.testing.assert_allclose(o.transform(v), R @ v, atol=1e-9)
            np.testing.assert_allclose(o.inverse_transform(v), R.T @ v, atol=1e-9)
            np.testing.assert_allclose(o.inverse_transform(o.transform(v)), v, atol=1e-9)

    def test_transform_2d(self):
        for cls in TYPES:
            o = cls().set(YawPitchRoll([0.5, 0.0, 0.0]))
            self.assertTrue(o.is_orientation_2d())
            expected = [math.cos(0.5), math.sin(0.5)]
            np.testing.assert_allclose(o.transform_2d([1.0, 0.0]), expected, atol=1e-12)

            tilted = cls().set(YawPitchRoll([0.5, 0.1, 0.0]))
            self.assertFalse(tilted.is_orientation_2d())
            with self.assertRaises(NotAMatrix2DError):
                tilted.transform_2d([1.0, 0.0])
            # without the check only the in-plane part is applied
            tilted.transform_2d([1.0, 0.0], check_if_in_xy_plane=False)

    def test_matmul(self):
        a = self.random_of(RotationMatrix)
        b = self.random_of(Quaternion)
        composed = a @ b
        self.assertIsInstance(composed, RotationMatrix)
        np.testing.assert_allclose(composed.as_matrix(), a.as_matrix() @ b.as_matrix(), atol=1e-9)
        v = np.array([0.3, 0.2, 0.1])
        np.testing.assert_allclose(b @ v, b.as_matrix() @ v, atol=1e-12)

    def test_multiply_rejects_raw_arrays(self):
        with self.assertRaises(TypeError):
            Quaternion().multiply(np.eye(3))

    def test_normalize(self):
        q = Quaternion([0.0, 0.0, 3.0, 4.0])
        q.normalize()
        np.testing.assert_allclose(q.values, [0.0, 0.0, 0.6, 0.8])

        aa = AxisAngle([0.0, 2.0, 0.0, 0.3]).normalize()
        np.testing.assert_allclose(aa.values, [0.0, 1.0, 0.0, 0.3])
        np.testing.assert_array_equal(AxisAngle([0.0, 0.0, 0.0, 0.3]).normalize().values, [1.0, 0.0, 0.0, 0.0])

        m = next_rotation_matrix(self.rng)
        noisy = RotationMatrix().set_unchecked(m.values + 1e-7)
        noisy.normalize()
        self.assertTrue(RotationMatrix(noisy.values).geometrically_equals(m, 1e-6))


class TestInterpolation(TestOrientationBase):
    def test_endpoints(self):
        for cls in TYPES:
            a = self.random_of(cls)
            b = self.random_of(Quaternion)
            self.assertTrue(a.copy().interpolate(b, 0.0).geometrically_equals(a, 1e-9))
            self.assertTrue(a.copy().interpolate(b, 1.0).geometrically_equals(b, 1e-9))
            result = a.copy()
            self.assertIs(result.interpolate(b, 0.5), result)

    def test_midpoint_angle(self):
        for cls in TYPES:
            a = self.random_of(cls)
            b = self.random_of(YawPitchRoll)
            mid = a.copy().interpolate(b, 0.5)
            self.assertAlmostEqual(a.distance(mid), 0.5 * a.distance(b), places=9)
            self.assertAlmostEqual(mid.distance(b), 0.5 * a.distance(b), places=9)

    def test_matches_scipy(self):
        a = self.random_of(Quaternion)
        b = self.random_of(Quaternion)
        slerp = Slerp([0.0, 1.0], Rotation.from_quat([a.values, b.values]))
        for alpha in (0.1, 0.25, 0.7):
            result = a.copy().interpolate(b, alpha)
            np.testing.assert_allclose(result.as_matrix(), slerp([alpha]).as_matrix()[0], atol=1e-9)

    def test_takes_the_shorter_arc(self):
        a = self.random_of(Quaternion)
        b = self.random_of(Quaternion)
        negated = Quaternion.from_unchecked_values(-b.values)
        self.assertTrue(a.copy().interpolate(b, 0.3).geometrically_equals(a.copy().interpolate(negated, 0.3), 1e-9))
        self.assertLessEqual(a.distance(a.copy().interpolate(negated, 0.3)), a.distance(b) + 1e-12)

    def test_antipodal_quaternions(self):
        # q and -q are the same rotation, every intermediate value is that rotation too
        q = self.random_of(Quaternion)
        negated = Quaternion.from_unchecked_values(-q.values)
        for alpha in (0.0, 0.5, 1.0):
            self.assertTrue(q.copy().interpolate(negated, alpha).geometrically_equals(q, 1e-12))

    def test_nan_propagates(self):
        result = Quaternion().interpolate(Quaternion.nan(), 0.5)
        self.assertTrue(np.isnan(result.values).all())


class TestElementaryRotations(TestOrientationBase):
    ELEMENTARY = (
        ("yaw", [0.3, 0.0, 0.0]),
        ("pitch", [0.0, 0.3, 0.0]),
        ("roll", [0.0, 0.0, 0.3]),
    )

    def test_append(self):
        for cls in TYPES:
            for name, ypr in self.ELEMENTARY:
                o = self.random_of(cls)
                expected = o.copy().multiply(YawPitchRoll(ypr))
                result = o.copy()
                self.assertIs(getattr(result, f"append_{name}_rotation")(0.3), result)
                self.assertTrue(result.geometrically_equals(expected, 1e-9))
                np.testing.assert_allclose(result.as_matrix(), o.as_matrix() @ YawPitchRoll(ypr).as_matrix(), atol=1e-9)

    def test_prepend(self):
        for cls in TYPES:
            for name, ypr in self.ELEMENTARY:
                o = self.random_of(cls)
                expected = o.copy().pre_multiply(YawPitchRoll(ypr))
                result = getattr(o.copy(), f"prepend_{name}_rotation")(0.3)
                self.assertTrue(result.geometrically_equals(expected, 1e-9))
                np.testing.assert_allclose(result.as_matrix(), YawPitchRoll(ypr).as_matrix() @ o.as_matrix(), atol=1e-9)

    def test_axes(self):
        for cls in TYPES:
            np.testing.assert_allclose(cls().append_yaw_rotation(0.3).as_matrix(),
                                       Rotation.from_euler('z', 0.3).as_matrix(), atol=1e-12)
            np.testing.assert_allclose(cls().prepend_pitch_rotation(0.3).as_matrix(),
                                       Rotation.from_euler('y', 0.3).as_matrix(), atol=1e-12)
            np.testing.assert_allclose(cls().append_roll_rotation(0.3).as_matrix(),
                                       Rotation.from_euler('x', 0.3).as_matrix(), atol=1e-12)


class TestEquality(TestOrientationBase):
    def test_reflexive(self):
        for cls in TYPES:
            o = self.random_of(cls)
            self.assertTrue(o.geometrically_equals(o, 0.0))
            self.assertEqual(o.distance(o), 0.0)

    def test_symmetric(self):
        for cls in TYPES:
            for other_cls in TYPES:
                a = self.random_of(cls)
                b = self.random_of(other_cls)
                self.assertEqual(a.distance(b), b.distance(a))
                for epsilon in (1e-3, 0.5, 1.0, 2.0, 3.0):
                    self.assertEqual(a.geometrically_equals(b, epsilon), b.geometrically_equals(a, epsilon))

    def test_monotonic(self):
        a = self.random_of(Quaternion)
        b = self.random_of(YawPitchRoll)
        epsilons = np.linspace(0.0, math.pi, 50)
        results = [a.geometrically_equals(b, e) for e in epsilons]
        # once equal, equal for every larger epsilon
        first = results.index(True) if True in results else len(results)
        self.assertTrue(all(results[first:]))
        self.assertFalse(any(results[:first]))

    def test_across_double_cover(self):
        q = next_quaternion(self.rng)
        negated = Quaternion.from_unchecked_values(-q.values)
        self.assertTrue(q.geometrically_equals(negated, 1e-12))
        self.assertFalse(q.epsilon_equals(negated, 1e-12))

    def test_nan_is_never_equal(self):
        nan = Quaternion.nan()
        self.assertFalse(nan.geometrically_equals(nan, 1.0))
        self.assertFalse(nan.geometrically_equals(Quaternion(), math.pi))

    def test_epsilon_equals(self):
        a = YawPitchRoll([0.1, 0.2, 0.3])
        b = YawPitchRoll([0.1, 0.2, 0.3 + 1e-9])
        self.assertTrue(a.epsilon_equals(b, 1e-8))
        self.assertFalse(a.epsilon_equals(b, 1e-10))
        self.assertFalse(a.epsilon_equals(Quaternion(), 1.0))

    def test_gimbal_lock_orientations_are_equal(self):
        # at pitch = pi / 2 only yaw - roll is observable
        a = YawPitchRoll([0.3, math.pi / 2.0, 0.2])
        b = YawPitchRoll([0.5, math.pi / 2.0, 0.4])
        self.assertTrue(a.geometrically_equals(b, 1e-9))
        self.assertFalse(a.epsilon_equals(b, 1e-9))
        np.testing.assert_allclose(RotationMatrix().set(a).get_yaw_pitch_roll(),
                                   RotationMatrix().set(b).get_yaw_pitch_roll(), atol=1e-9)


class TestDunders(TestOrientationBase):
    def test_copy(self):
        for cls in TYPES:
            o = self.random_of(cls)
            for c in (o.copy(), copy.copy(o), copy.deepcopy(o)):
                self.assertIsInstance(c, cls)
                self.assertIsNot(c.values, o.values)
                self.assertTrue(c == o)
            c = o.copy()
            c.set_to_zero()
            self.assertFalse(c == o)

    def test_pickle(self):
        for cls in TYPES:
            o = self.random_of(cls)
            restored = pickle.loads(pickle.dumps(o))
            self.assertIsInstance(restored, cls)
            np.testing.assert_array_equal(restored.values, o.values)

    def test_pickle_keeps_unchecked_values(self):
        drifted = RotationMatrix()
        drifted.values[0, 0] = 1.0 + 5e-7
        restored = pickle.loads(pickle.dumps(drifted))
        self.assertIsInstance(restored, RotationMatrix)
        np.testing.assert_array_equal(restored.values, drifted.values)

        scaled = RotationMatrix().set_unchecked(2.0 * np.eye(3))
        np.testing.assert_array_equal(pickle.loads(pickle.dumps(scaled)).values, 2.0 * np.eye(3))

    def test_eq_other_class(self):
        self.assertFalse(Quaternion() == RotationMatrix())
        self.assertFalse(Quaternion() == np.array([0.0, 0.0, 0.0, 1.0]))

    def test_repr(self):
        text = repr(YawPitchRoll([0.1, 0.2, 0.3]))
        self.assertTrue(text.startswith("YawPitchRoll("))
        self.assertIn("0.1", text)
        self.assertEqual(str(Quaternion()), repr(Quaternion()))


class TestSampling(TestOrientationBase):
    def test_yaw_pitch_roll_stays_away_from_gimbal_lock(self):
        for _ in range(500):
            ypr = next_yaw_pitch_roll(self.rng, max_pitch=0.5)
            self.assertLessEqual(abs(ypr.pitch), 0.5)

    def test_axis_angle(self):
        for _ in range(200):
            aa = next_axis_angle(self.rng, max_angle=1.0)
            self.assertAlmostEqual(np.linalg.norm(aa.axis), 1.0, places=12)
            self.assertLessEqual(abs(aa.angle), 1.0)


if __name__ == "__main__":
    unittest.main()
