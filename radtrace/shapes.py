"""
Geometric shapes for the ray tracer.

Each shape implements the Hittable protocol with a `hit` method. Shapes that
have a finite surface (everything except the scene list) are also Surfaces:
they report their area and can draw points uniformly over it, which is what
the view-factor estimator needs.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple, TYPE_CHECKING
import math

import numpy as np

from .errors import DegenerateVectorError, InvalidGeometryError
from .vec3 import Vec3, Point3
from .ray import Ray

if TYPE_CHECKING:
    from .materials import Material


# Direction components below this are treated as parallel to a slab or plane
_PARALLEL_EPSILON = 1e-12


@dataclass
class HitRecord:
    """Stores information about a ray-object intersection.

    Attributes:
        point: The intersection point in world space
        normal: Unit surface normal at the intersection (always points against ray)
        t: The ray parameter at intersection
        front_face: True if ray hit from outside the object
        material: The material at the hit point
    """
    point: Point3
    normal: Vec3
    t: float
    front_face: bool
    material: Optional[Material] = None

    def set_face_normal(self, ray: Ray, outward_normal: Vec3) -> None:
        """Set the normal to always point against the ray direction.

        Args:
            ray: The incoming ray
            outward_normal: The geometric unit normal pointing outward from surface
        """
        self.front_face = ray.direction.dot(outward_normal) < 0
        self.normal = outward_normal if self.front_face else -outward_normal


class Hittable(ABC):
    """Abstract base class for all objects that can be hit by rays."""

    @abstractmethod
    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test if ray intersects this object.

        Args:
            ray: The ray to test
            t_min: Minimum t value to consider (avoid self-intersection)
            t_max: Maximum t value to consider

        Returns:
            HitRecord if intersection found, None otherwise
        """
        pass


class Surface(Hittable):
    """A hittable object with a finite, sampleable surface."""

    material: Optional[Material] = None

    @abstractmethod
    def area(self) -> float:
        """Total surface area."""
        pass

    @abstractmethod
    def sample_surface(self, rng: np.random.Generator, n: int) -> Tuple[np.ndarray, np.ndarray]:
        """Draw points uniformly (by area) over the surface.

        Args:
            rng: Random generator
            n: Number of points

        Returns:
            Tuple of (points, normals), each an (n, 3) array. Normals are unit
            length and point out of the surface's radiating side.
        """
        pass


class Sphere(Surface):
    """A sphere defined by center and radius."""

    def __init__(self, center: Point3, radius: float, material: Optional[Material] = None):
        """Create a sphere.

        Args:
            center: Center point of the sphere
            radius: Radius of the sphere (must be positive)
            material: Material for shading

        Raises:
            InvalidGeometryError: if the radius is not positive
        """
        if not radius > 0:
            raise InvalidGeometryError(f"Sphere radius must be positive, got {radius}")
        self.center = center
        self.radius = float(radius)
        self.material = material

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test ray-sphere intersection using the quadratic formula.

        The equation (P-C)·(P-C) = r² where P = ray.at(t)
        expands to: t²(d·d) + 2t(d·(O-C)) + (O-C)·(O-C) - r² = 0
        which is the quadratic at² + bt + c = 0.
        """
        oc = ray.origin - self.center
        a = ray.direction.length_squared()
        if a == 0.0:
            return None
        half_b = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = half_b * half_b - a * c
        if discriminant < 0:
            return None

        sqrtd = math.sqrt(discriminant)

        # Find the nearest root in the acceptable range
        root = (-half_b - sqrtd) / a
        if root < t_min or root > t_max:
            root = (-half_b + sqrtd) / a
            if root < t_min or root > t_max:
                return None

        point = ray.at(root)
        outward_normal = (point - self.center) / self.radius

        hit_record = HitRecord(
            point=point,
            normal=outward_normal,
            t=root,
            front_face=True,
            material=self.material
        )
        hit_record.set_face_normal(ray, outward_normal)

        return hit_record

    def area(self) -> float:
        return 4.0 * math.pi * self.radius * self.radius

    def sample_surface(self, rng: np.random.Generator, n: int) -> Tuple[np.ndarray, np.ndarray]:
        """Uniform points on the sphere (normalized Gaussian directions)."""
        normals = rng.standard_normal((n, 3))
        norms = np.linalg.norm(normals, axis=1)
        # A zero Gaussian draw has probability zero; map it to the pole anyway
        zero = norms == 0.0
        normals[zero] = (0.0, 0.0, 1.0)
        norms[zero] = 1.0
        normals /= norms[:, np.newaxis]
        points = self.center.to_array() + self.radius * normals
        return points, normals

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


class Cube(Surface):
    """An axis-aligned box defined by two corner points."""

    def __init__(self, min_corner: Point3, max_corner: Point3, material: Optional[Material] = None):
        """Create a box from two opposite corners.

        Args:
            min_corner: One corner of the box
            max_corner: Opposite corner of the box
            material: Material for shading

        Raises:
            InvalidGeometryError: if the box is flat along any axis
        """
        lo = np.minimum(min_corner.to_array(), max_corner.to_array())
        hi = np.maximum(min_corner.to_array(), max_corner.to_array())
        if not np.all(hi - lo > 0):
            raise InvalidGeometryError(
                f"Cube extents must be positive, got {Vec3.from_array(hi - lo)}"
            )
        self.min_corner = Point3.from_array(lo)
        self.max_corner = Point3.from_array(hi)
        self.material = material

    @classmethod
    def from_center(cls, center: Point3, length: float, material: Optional[Material] = None) -> Cube:
        """Create a cube of edge `length` centered on `center`."""
        if not length > 0:
            raise InvalidGeometryError(f"Cube edge length must be positive, got {length}")
        half = Vec3(length, length, length) / 2
        return cls(center - half, center + half, material)

    @property
    def size(self) -> Vec3:
        return self.max_corner - self.min_corner

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test ray-box intersection using the slab method.

        The entry point is reported when it lies in [t_min, t_max]; otherwise
        the exit point is (the ray starts inside the box).
        """
        t_enter = -math.inf
        t_exit = math.inf
        enter_axis = -1
        exit_axis = -1

        for i in range(3):
            d = ray.direction[i]
            o = ray.origin[i]
            if abs(d) < _PARALLEL_EPSILON:
                # Parallel to this slab: either always inside it or never
                if o < self.min_corner[i] or o > self.max_corner[i]:
                    return None
                continue

            inv_d = 1.0 / d
            t0 = (self.min_corner[i] - o) * inv_d
            t1 = (self.max_corner[i] - o) * inv_d
            if inv_d < 0:
                t0, t1 = t1, t0

            if t0 > t_enter:
                t_enter = t0
                enter_axis = i
            if t1 < t_exit:
                t_exit = t1
                exit_axis = i

            if t_exit < t_enter:
                return None

        if enter_axis >= 0 and t_min <= t_enter <= t_max:
            t, axis, leaving = t_enter, enter_axis, False
        elif exit_axis >= 0 and t_min <= t_exit <= t_max:
            t, axis, leaving = t_exit, exit_axis, True
        else:
            return None

        # Outward normal of the crossed face
        sign = 1.0 if ray.direction[axis] > 0 else -1.0
        if not leaving:
            sign = -sign
        components = [0.0, 0.0, 0.0]
        components[axis] = sign
        outward_normal = Vec3(*components)

        hit_record = HitRecord(
            point=ray.at(t),
            normal=outward_normal,
            t=t,
            front_face=True,
            material=self.material
        )
        hit_record.set_face_normal(ray, outward_normal)

        return hit_record

    def face_areas(self) -> np.ndarray:
        """Areas of the six faces, ordered (-x, +x, -y, +y, -z, +z)."""
        sx, sy, sz = self.size.to_array()
        per_axis = np.array([sy * sz, sx * sz, sx * sy])
        return np.repeat(per_axis, 2)

    def area(self) -> float:
        return float(self.face_areas().sum())

    def sample_surface(self, rng: np.random.Generator, n: int) -> Tuple[np.ndarray, np.ndarray]:
        """Pick a face with probability proportional to its area, then a uniform point on it."""
        face_areas = self.face_areas()
        faces = rng.choice(6, size=n, p=face_areas / face_areas.sum())
        axes = faces // 2
        signs = np.where(faces % 2 == 1, 1.0, -1.0)

        lo = self.min_corner.to_array()
        hi = self.max_corner.to_array()
        points = lo + rng.random((n, 3)) * (hi - lo)
        rows = np.arange(n)
        points[rows, axes] = np.where(signs > 0, hi[axes], lo[axes])

        normals = np.zeros((n, 3))
        normals[rows, axes] = signs
        return points, normals

    def __repr__(self) -> str:
        return f"Cube(min={self.min_corner}, max={self.max_corner})"


class Rectangle(Surface):
    """A one-sided planar rectangle.

    The rectangle is centered on `center` and spanned by the orthogonal unit
    axes `u` (width) and `v` (height). Its radiating side faces w = u x v.
    """

    def __init__(
        self,
        center: Point3,
        u: Vec3,
        v: Vec3,
        width: float,
        height: float,
        material: Optional[Material] = None
    ):
        """Create a rectangle.

        Args:
            center: Center of the rectangle
            u: Width axis (normalized on construction)
            v: Height axis, orthogonal to u (normalized on construction)
            width: Extent along u
            height: Extent along v
            material: Material for shading

        Raises:
            InvalidGeometryError: for non-positive sides or degenerate axes
        """
        if not (width > 0 and height > 0):
            raise InvalidGeometryError(
                f"Rectangle sides must be positive, got {width} x {height}"
            )
        try:
            u = u.normalize()
            v = v.normalize()
        except DegenerateVectorError as exc:
            raise InvalidGeometryError("Rectangle axes must be non-zero") from exc
        if abs(u.dot(v)) > 1e-9:
            raise InvalidGeometryError("Rectangle axes must be orthogonal")

        self.center = center
        self.u = u
        self.v = v
        self.normal = u.cross(v)
        self.width = float(width)
        self.height = float(height)
        self.material = material

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test ray-plane intersection, then the in-plane bounds."""
        denom = self.normal.dot(ray.direction)

        # Ray is parallel to the plane
        if abs(denom) < _PARALLEL_EPSILON:
            return None

        t = (self.center - ray.origin).dot(self.normal) / denom
        if t < t_min or t > t_max:
            return None

        point = ray.at(t)
        offset = point - self.center
        if abs(offset.dot(self.u)) > self.width / 2 or abs(offset.dot(self.v)) > self.height / 2:
            return None

        hit_record = HitRecord(
            point=point,
            normal=self.normal,
            t=t,
            front_face=True,
            material=self.material
        )
        hit_record.set_face_normal(ray, self.normal)

        return hit_record

    def area(self) -> float:
        return self.width * self.height

    def sample_surface(self, rng: np.random.Generator, n: int) -> Tuple[np.ndarray, np.ndarray]:
        st = rng.random((n, 2)) - 0.5
        points = (
            self.center.to_array()
            + np.outer(st[:, 0] * self.width, self.u.to_array())
            + np.outer(st[:, 1] * self.height, self.v.to_array())
        )
        normals = np.tile(self.normal.to_array(), (n, 1))
        return points, normals

    def __repr__(self) -> str:
        return f"Rectangle(center={self.center}, size={self.width}x{self.height}, normal={self.normal})"


class Square(Rectangle):
    """A rectangle with equal sides."""

    def __init__(self, center: Point3, u: Vec3, v: Vec3, length: float, material: Optional[Material] = None):
        super().__init__(center, u, v, length, length, material)

    @property
    def length(self) -> float:
        return self.width


class HittableList(Hittable):
    """A collection of hittable objects (the scene)."""

    def __init__(self, objects: Optional[list[Hittable]] = None):
        self.objects: list[Hittable] = list(objects) if objects is not None else []

    def add(self, obj: Hittable) -> None:
        """Add an object to the list."""
        self.objects.append(obj)

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Find the closest intersection among all objects.

        Equal-distance hits keep the earliest inserted object.
        """
        closest_hit: Optional[HitRecord] = None
        closest_t = t_max

        for obj in self.objects:
            hit_record = obj.hit(ray, t_min, closest_t)
            if hit_record is not None and (closest_hit is None or hit_record.t < closest_t):
                closest_hit = hit_record
                closest_t = hit_record.t

        return closest_hit

    def occluded(
        self,
        ray: Ray,
        t_min: float,
        t_max: float,
        exclude: Iterable[Hittable] = ()
    ) -> bool:
        """Return True if any object, other than the excluded ones, blocks the ray segment."""
        skipped = tuple(exclude)
        for obj in self.objects:
            if any(obj is other for other in skipped):
                continue
            if obj.hit(ray, t_min, t_max) is not None:
                return True
        return False

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self) -> Iterator[Hittable]:
        return iter(self.objects)

    def __getitem__(self, index: int) -> Hittable:
        return self.objects[index]
