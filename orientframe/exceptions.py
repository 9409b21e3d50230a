# exceptions.py
import numpy as np


class MatrixError(ValueError):
    """
    Base class for matrix validation failures.

    The offending matrix is kept as a (3, 3) float64 snapshot in `matrix` so
    callers can inspect or render it themselves.
    """

    description = "invalid matrix"

    def __init__(self, matrix):
        self.matrix = np.array(matrix, dtype=np.float64).reshape((3, 3))
        super().__init__(f"{self.description}:\n{self._format_matrix()}")

    def _format_matrix(self) -> str:
        return np.array2string(self.matrix, precision=6, separator=', ')

    def __reduce__(self):
        return (self.__class__, (self.matrix.copy(),))


class NotARotationMatrixError(MatrixError):
    """The matrix is not orthonormal or its determinant is not +1."""

    description = "The matrix is not a rotation matrix"


class NotARotationScaleMatrixError(MatrixError):
    """The matrix cannot be written as R * diag(s) with a rotation R and positive scales s."""

    description = "The matrix is not a rotation-scale matrix"


class NotAMatrix2DError(MatrixError):
    """The matrix has components outside of the XY-plane."""

    description = "The matrix is not in the XY-plane"


class SingularMatrixError(MatrixError, ZeroDivisionError):
    """The matrix has a (near-)zero determinant where a non-zero one is required."""

    description = "The matrix is singular"

    @property
    def determinant(self) -> float:
        return float(np.linalg.det(self.matrix))
