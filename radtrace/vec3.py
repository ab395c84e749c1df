"""
Vector3 class for 3D math operations.

This is the fundamental building block of the engine, used for:
- Points in 3D space
- Direction vectors and surface normals
- RGB color values

Vectors are immutable: every operation returns a new value.
"""

from __future__ import annotations
import math
import sys
from typing import Union
import numpy as np

from .errors import DegenerateVectorError, TotalInternalReflection

# Lengths below the smallest normal double cannot be normalized reliably
_MIN_LENGTH = sys.float_info.min


class Vec3:
    """An immutable 3D vector.

    Uses a read-only numpy array internally for efficient computation while
    providing a clean, Pythonic API.
    """

    __slots__ = ('_data',)

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        data = np.array([x, y, z], dtype=np.float64)
        data.flags.writeable = False
        self._data = data

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vec3:
        """Create Vec3 from a numpy array (the data is copied)."""
        v = cls.__new__(cls)
        data = np.array(arr, dtype=np.float64).reshape(3)
        data.flags.writeable = False
        v._data = data
        return v

    @property
    def x(self) -> float:
        return float(self._data[0])

    @property
    def y(self) -> float:
        return float(self._data[1])

    @property
    def z(self) -> float:
        return float(self._data[2])

    # Aliases for color operations
    @property
    def r(self) -> float:
        return self.x

    @property
    def g(self) -> float:
        return self.y

    @property
    def b(self) -> float:
        return self.z

    def __repr__(self) -> str:
        return f"Vec3({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vec3):
            return NotImplemented
        return bool(np.allclose(self._data, other._data))

    def __hash__(self) -> int:
        return hash(tuple(self._data))

    def __neg__(self) -> Vec3:
        return Vec3.from_array(-self._data)

    def __add__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data + other._data)
        return Vec3.from_array(self._data + other)

    def __radd__(self, other: float) -> Vec3:
        return Vec3.from_array(other + self._data)

    def __sub__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data - other._data)
        return Vec3.from_array(self._data - other)

    def __rsub__(self, other: float) -> Vec3:
        return Vec3.from_array(other - self._data)

    def __mul__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data * other._data)
        return Vec3.from_array(self._data * other)

    def __rmul__(self, other: float) -> Vec3:
        return Vec3.from_array(other * self._data)

    def __truediv__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data / other._data)
        return Vec3.from_array(self._data / other)

    def __getitem__(self, index: int) -> float:
        return float(self._data[index])

    def length(self) -> float:
        """Return the magnitude (length) of the vector."""
        return float(np.linalg.norm(self._data))

    def length_squared(self) -> float:
        """Return the squared magnitude (avoids sqrt for comparisons)."""
        return float(np.dot(self._data, self._data))

    def normalize(self) -> Vec3:
        """Return a unit vector in the same direction.

        Raises:
            DegenerateVectorError: if the vector has zero or denormal length
        """
        length = self.length()
        if not length >= _MIN_LENGTH:
            raise DegenerateVectorError(f"Cannot normalize {self!r}")
        return Vec3.from_array(self._data / length)

    def dot(self, other: Vec3) -> float:
        """Compute dot product with another vector."""
        return float(np.dot(self._data, other._data))

    def cross(self, other: Vec3) -> Vec3:
        """Compute cross product with another vector."""
        return Vec3.from_array(np.cross(self._data, other._data))

    def reflect(self, normal: Vec3) -> Vec3:
        """Reflect this vector around the given unit normal."""
        return self - normal * 2 * self.dot(normal)

    def refract(self, normal: Vec3, eta_ratio: float) -> Vec3:
        """Refract this unit vector through a surface using Snell's law.

        Args:
            normal: Unit surface normal, facing against this vector
            eta_ratio: Ratio of refractive indices (n1/n2)

        Returns:
            Refracted direction vector

        Raises:
            TotalInternalReflection: if no refracted direction exists
        """
        cos_theta = min(-self.dot(normal), 1.0)
        r_out_perp = (self + normal * cos_theta) * eta_ratio
        perp_len_sq = r_out_perp.length_squared()

        if perp_len_sq > 1.0:
            raise TotalInternalReflection(
                f"No refraction for eta ratio {eta_ratio} at cos(theta)={cos_theta:.4f}"
            )

        r_out_parallel = normal * (-math.sqrt(abs(1.0 - perp_len_sq)))
        return r_out_perp + r_out_parallel

    def near_zero(self, epsilon: float = 1e-8) -> bool:
        """Check if vector is close to zero in all dimensions."""
        return bool(np.all(np.abs(self._data) < epsilon))

    def to_array(self) -> np.ndarray:
        """Return the underlying numpy array (copy)."""
        return self._data.copy()

    def clamp(self, min_val: float = 0.0, max_val: float = 1.0) -> Vec3:
        """Clamp all components to the given range."""
        return Vec3.from_array(np.clip(self._data, min_val, max_val))

    def gamma_correct(self, gamma: float = 2.2) -> Vec3:
        """Apply gamma correction (for converting linear to sRGB)."""
        inv_gamma = 1.0 / gamma
        return Vec3(
            self.x ** inv_gamma if self.x > 0 else 0,
            self.y ** inv_gamma if self.y > 0 else 0,
            self.z ** inv_gamma if self.z > 0 else 0
        )

    @staticmethod
    def random(rng: np.random.Generator, min_val: float = 0.0, max_val: float = 1.0) -> Vec3:
        """Generate a random vector with components in [min_val, max_val)."""
        return Vec3.from_array(rng.uniform(min_val, max_val, 3))

    @staticmethod
    def random_in_unit_sphere(rng: np.random.Generator) -> Vec3:
        """Generate a random point inside the unit sphere."""
        while True:
            p = Vec3.random(rng, -1, 1)
            if p.length_squared() < 1:
                return p

    @staticmethod
    def random_unit_vector(rng: np.random.Generator) -> Vec3:
        """Generate a random unit vector (uniform on sphere surface)."""
        while True:
            p = Vec3.random(rng, -1, 1)
            if 1e-160 < p.length_squared() < 1:
                return p.normalize()

    @staticmethod
    def random_in_hemisphere(rng: np.random.Generator, normal: Vec3) -> Vec3:
        """Generate a random vector in the hemisphere defined by normal."""
        in_unit_sphere = Vec3.random_in_unit_sphere(rng)
        if in_unit_sphere.dot(normal) > 0.0:
            return in_unit_sphere
        return -in_unit_sphere


# Convenience type aliases
Point3 = Vec3
Color = Vec3
