# tests/test_features.py

import pickle
import unittest

import numpy as np
from scipy.spatial.transform import Rotation

from orientframe import features
from orientframe.exceptions import (
    MatrixError,
    NotAMatrix2DError,
    NotARotationMatrixError,
    NotARotationScaleMatrixError,
    SingularMatrixError,
)
from orientframe.conversion import pitch_matrix, yaw_matrix


def random_rotation(rng):
    rotvec = rng.normal(size=3)
    rotvec *= rng.uniform(0.0, np.pi) / np.linalg.norm(rotvec)
    return Rotation.from_rotvec(rotvec).as_matrix()


class TestRotationPredicate(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(1234)

    def test_random_rotations_pass(self):
        for _ in range(200):
            self.assertTrue(features.is_rotation_matrix(random_rotation(self.rng)))

    def test_identity_passes(self):
        self.assertTrue(features.is_rotation_matrix(np.eye(3)))

    def test_reflection_fails(self):
        self.assertFalse(features.is_rotation_matrix(np.diag([1.0, 1.0, -1.0])))
        R = random_rotation(self.rng)
        self.assertFalse(features.is_rotation_matrix(-R))

    def test_shear_fails(self):
        shear = np.eye(3)
        shear[0, 1] = 0.1
        self.assertFalse(features.is_rotation_matrix(shear))

    def test_scaled_row_fails(self):
        R = random_rotation(self.rng)
        R[1] *= 2.0
        self.assertFalse(features.is_rotation_matrix(R))

    def test_nan_fails(self):
        R = np.eye(3)
        R[2, 1] = np.nan
        self.assertFalse(features.is_rotation_matrix(R))
        self.assertTrue(features.contains_nan(R))
        self.assertFalse(features.contains_nan(np.eye(3)))

    def test_epsilon_is_honored(self):
        R = np.eye(3)
        R[0, 1] = 1e-5
        self.assertFalse(features.is_rotation_matrix(R))
        self.assertTrue(features.is_rotation_matrix(R, epsilon=1e-4))

    def test_invalid_shape_raises(self):
        with self.assertRaises(ValueError):
            features.is_rotation_matrix(np.eye(4))
        with self.assertRaises(ValueError):
            features.determinant([1.0, 2.0, 3.0])

    def test_check_raises_with_snapshot(self):
        bad = np.diag([1.0, 2.0, 1.0])
        with self.assertRaises(NotARotationMatrixError) as ctx:
            features.check_if_rotation_matrix(bad)
        np.testing.assert_array_equal(ctx.exception.matrix, bad)
        self.assertIsInstance(ctx.exception, MatrixError)
        self.assertIsInstance(ctx.exception, ValueError)
        # a valid matrix does not raise
        features.check_if_rotation_matrix(random_rotation(self.rng))

    def test_error_snapshot_is_a_copy(self):
        bad = np.diag([1.0, 2.0, 1.0])
        error = NotARotationMatrixError(bad)
        bad[0, 0] = 5.0
        self.assertEqual(error.matrix[0, 0], 1.0)

    def test_error_pickles(self):
        error = NotARotationScaleMatrixError(np.arange(9.0).reshape(3, 3))
        restored = pickle.loads(pickle.dumps(error))
        self.assertIsInstance(restored, NotARotationScaleMatrixError)
        np.testing.assert_array_equal(restored.matrix, error.matrix)
        self.assertEqual(str(restored), str(error))


class TestRotationScale(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(42)

    def test_positive_scale(self):
        for _ in range(50):
            R = random_rotation(self.rng)
            M = R @ np.diag([2.0, 3.0, 4.0])
            self.assertTrue(features.is_rotation_scale_matrix(M))
            np.testing.assert_allclose(features.extract_scale(M), [2.0, 3.0, 4.0], atol=1e-9)

    def test_negative_scale_is_carried_by_last_axis(self):
        for _ in range(50):
            R = random_rotation(self.rng)
            M = R @ np.diag([2.0, -3.0, 4.0])
            self.assertFalse(features.is_rotation_scale_matrix(M))
            np.testing.assert_allclose(features.extract_scale(M), [2.0, 3.0, -4.0], atol=1e-9)

    def test_extract_scale_out(self):
        out = np.empty(3)
        result = features.extract_scale(np.diag([1.0, 5.0, 2.0]), out=out)
        self.assertIs(result, out)
        np.testing.assert_allclose(out, [1.0, 5.0, 2.0])

    def test_zero_column_fails(self):
        M = np.eye(3)
        M[:, 1] = 0.0
        self.assertFalse(features.is_rotation_scale_matrix(M))

    def test_shear_fails(self):
        M = np.diag([2.0, 3.0, 4.0])
        M[0, 1] = 0.5
        self.assertFalse(features.is_rotation_scale_matrix(M))
        with self.assertRaises(NotARotationScaleMatrixError):
            features.check_if_rotation_scale_matrix(M)

    def test_decompose(self):
        R = random_rotation(self.rng)
        rotation, scale = features.decompose_rotation_scale(R @ np.diag([0.5, 1.5, 3.0]))
        np.testing.assert_allclose(rotation, R, atol=1e-12)
        np.testing.assert_allclose(scale, [0.5, 1.5, 3.0], atol=1e-12)

    def test_decompose_singular_raises(self):
        with self.assertRaises(SingularMatrixError):
            features.decompose_rotation_scale(np.diag([1.0, 0.0, 1.0]))


class TestOtherFeatures(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(7)

    def test_determinant(self):
        for _ in range(20):
            M = self.rng.uniform(-1.0, 1.0, size=(3, 3))
            self.assertAlmostEqual(features.determinant(M), np.linalg.det(M), places=12)

    def test_matrix_2d(self):
        self.assertTrue(features.is_matrix_2d(yaw_matrix(0.7)))
        self.assertFalse(features.is_matrix_2d(pitch_matrix(0.7)))
        features.check_if_matrix_2d(yaw_matrix(-2.0))
        with self.assertRaises(NotAMatrix2DError):
            features.check_if_matrix_2d(pitch_matrix(0.1))

    def test_identity(self):
        self.assertTrue(features.is_identity(np.eye(3)))
        self.assertTrue(features.is_identity(np.eye(3) + 1e-9))
        self.assertFalse(features.is_identity(yaw_matrix(0.01)))

    def test_zero_rotation(self):
        self.assertTrue(features.is_zero_rotation(np.eye(3)))
        self.assertFalse(features.is_zero_rotation(yaw_matrix(1e-3)))
        # a half-turn has a vanishing skew part but is not the zero rotation
        self.assertFalse(features.is_zero_rotation(np.diag([1.0, -1.0, -1.0])))

    def test_skew_symmetric(self):
        skew = np.array([[0.0, -3.0, 2.0],
                         [3.0, 0.0, -1.0],
                         [-2.0, 1.0, 0.0]])
        self.assertTrue(features.is_matrix_skew_symmetric(skew))
        self.assertFalse(features.is_matrix_skew_symmetric(skew + np.eye(3)))
        self.assertFalse(features.is_matrix_skew_symmetric(np.eye(3)))

    def test_singular(self):
        with self.assertRaises(SingularMatrixError) as ctx:
            features.check_if_not_singular(np.ones((3, 3)))
        self.assertIsInstance(ctx.exception, ZeroDivisionError)
        self.assertAlmostEqual(ctx.exception.determinant, 0.0)
        self.assertAlmostEqual(features.check_if_not_singular(np.diag([1.0, 2.0, 3.0])), 6.0)

    def test_invert(self):
        for _ in range(20):
            M = self.rng.uniform(-1.0, 1.0, size=(3, 3)) + 3.0 * np.eye(3)
            np.testing.assert_allclose(features.invert_matrix(M), np.linalg.inv(M), atol=1e-12)
        with self.assertRaises(ZeroDivisionError):
            features.invert_matrix(np.zeros((3, 3)))

    def test_normalize(self):
        R = random_rotation(self.rng)
        noisy = R + self.rng.uniform(-1e-6, 1e-6, size=(3, 3))
        self.assertFalse(features.is_rotation_matrix(noisy, epsilon=1e-9))
        fixed = features.normalize_rotation_matrix(noisy)
        self.assertTrue(features.is_rotation_matrix(fixed, epsilon=1e-12))
        np.testing.assert_allclose(fixed, R, atol=1e-5)

    def test_normalize_in_place(self):
        M = np.diag([2.0, 3.0, 4.0])
        result = features.normalize_rotation_matrix(M, out=M)
        self.assertIs(result, M)
        np.testing.assert_allclose(M, np.eye(3), atol=1e-15)

    def test_as_rotation_matrix(self):
        with self.assertRaises(NotARotationMatrixError):
            features.as_rotation_matrix(np.diag([1.0, 2.0, 1.0]))
        features.as_rotation_matrix(np.diag([1.0, 2.0, 1.0]), check=False)
        # NaN is let through to propagate
        nan = np.full((3, 3), np.nan)
        self.assertTrue(np.isnan(features.as_rotation_matrix(nan)).all())


if __name__ == "__main__":
    unittest.main()
