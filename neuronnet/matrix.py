"""
Dense Matrix
============

A small row-major 2D float32 buffer. Element (row, col) lives at flat index
``row * cols + col`` of ``data``.

Operations that need compatible shapes (``multiply``, ``add``) return None
when the shapes do not match; the caller decides what to do with that.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


class Matrix:
    """
    Row-major matrix of float32 values.

    Args:
        rows: Number of rows
        cols: Number of columns
        data: Optional initial values (anything reshapeable to rows*cols)
    """

    def __init__(self, rows, cols, data=None):
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Matrix dimensions must be positive, got ({rows}, {cols})")

        self.rows = rows
        self.cols = cols
        if data is None:
            self.data = np.zeros(rows * cols, dtype=np.float32)
        else:
            self.data = np.array(data, dtype=np.float32).reshape(rows * cols)

    @classmethod
    def from_array(cls, array):
        array = np.asarray(array, dtype=np.float32)
        if array.ndim != 2:
            raise ValueError(f"Expected a 2D array, got {array.ndim}D")
        return cls(array.shape[0], array.shape[1], array)

    @property
    def shape(self):
        return (self.rows, self.cols)

    def to_array(self):
        """Return a 2D copy of the matrix contents."""
        return self.data.reshape(self.rows, self.cols).copy()

    def get(self, row, col):
        return float(self.data[row * self.cols + col])

    def set(self, row, col, value):
        self.data[row * self.cols + col] = value

    def multiply(self, other):
        """Matrix product self @ other, or None if self.cols != other.rows."""
        if self.cols != other.rows:
            logger.debug("Cannot multiply %s by %s", self.shape, other.shape)
            return None

        a = self.data.reshape(self.rows, self.cols)
        b = other.data.reshape(other.rows, other.cols)
        return Matrix(self.rows, other.cols, a @ b)

    def transpose(self):
        return Matrix(self.cols, self.rows, self.data.reshape(self.rows, self.cols).T)

    def add(self, other):
        """Element-wise sum, or None if the shapes differ."""
        if self.shape != other.shape:
            logger.debug("Cannot add %s and %s", self.shape, other.shape)
            return None
        return Matrix(self.rows, self.cols, self.data + other.data)

    def scale(self, scalar):
        """Multiply every element by `scalar` in place."""
        self.data *= np.float32(scalar)

    def copy(self):
        return Matrix(self.rows, self.cols, self.data.copy())

    def apply(self, func):
        """
        Replace every element x with func(x) in place.

        `func` may be a vectorized kernel (an Activation, a NumPy ufunc) or a
        plain scalar function.
        """
        try:
            result = np.asarray(func(self.data), dtype=np.float32)
        except (TypeError, ValueError):
            result = None

        if result is None or result.shape != self.data.shape:
            result = np.array([func(float(x)) for x in self.data], dtype=np.float32)

        self.data[:] = result

    def randomize(self, min_value, max_value, rng=None):
        """Fill with values drawn uniformly from [min_value, max_value]."""
        rng = np.random if rng is None else rng
        self.data[:] = rng.uniform(min_value, max_value, size=self.data.size)

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and np.array_equal(self.data, other.data)

    def __repr__(self):
        return f"Matrix({self.rows}, {self.cols})"
