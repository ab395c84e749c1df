"""
Radiative view factors.

The view factor F(A -> B) is the fraction of the energy leaving surface A
diffusely that reaches surface B directly:

    F(A -> B) = 1/A_A * integral over A and B of cos(a) cos(b) / (pi d^2) dA_B dA_A

Two spheres are handled exactly by radtrace.analytic. Every other pair is
estimated with Monte Carlo: N pairs of points are drawn uniformly by area on
A and on B, and the kernel above is averaged, optionally discarding pairs
whose connecting segment is blocked by another object of the scene. A
sphere that encloses the other shape radiates from its inside face, so its
sampled normals point inward.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
import logging
import math

import numpy as np

from .analytic import sphere_to_sphere
from .errors import InvalidGeometryError
from .ray import Ray
from .shapes import HittableList, Sphere, Surface
from .vec3 import Vec3, Point3

logger = logging.getLogger(__name__)


@dataclass
class ViewFactorSettings:
    """Configuration for the view-factor estimator."""
    sample_count: int = 100_000
    min_distance: float = 1e-9
    occlusion_epsilon: float = 1e-6
    quadrature_order: int = 128
    seed: Optional[int] = None

    def __post_init__(self):
        if self.sample_count < 1:
            raise ValueError(f"sample_count must be at least 1, got {self.sample_count}")
        if not self.min_distance >= 0:
            raise ValueError(f"min_distance must be non-negative, got {self.min_distance}")
        if not 0 <= self.occlusion_epsilon < 0.5:
            raise ValueError(
                f"occlusion_epsilon must be in [0, 0.5), got {self.occlusion_epsilon}"
            )
        if self.quadrature_order < 1:
            raise ValueError(
                f"quadrature_order must be at least 1, got {self.quadrature_order}"
            )


@dataclass(eq=False)
class ViewFactorMatrix:
    """View factors between every pair of scene objects.

    Attributes:
        factors: Square matrix, factors[i, j] = F(i -> j)
        areas: Surface area of every object
    """
    factors: np.ndarray
    areas: np.ndarray = field(repr=False)

    def __getitem__(self, key):
        return self.factors[key]

    def __len__(self) -> int:
        return len(self.areas)

    def row_sums(self) -> np.ndarray:
        """Sum of F(i -> j) over j. Equals 1 for an object inside a closed enclosure."""
        return self.factors.sum(axis=1)

    def reciprocity_error(self) -> float:
        """Largest |A_i F_ij - A_j F_ji| over all pairs."""
        exchange = self.areas[:, np.newaxis] * self.factors
        return float(np.max(np.abs(exchange - exchange.T), initial=0.0))

    def __str__(self) -> str:
        n = len(self)
        return "\n".join(
            f"F({i},{j}) = {self.factors[i, j]:.4f}"
            for i in range(n)
            for j in range(i + 1, n)
        )


def _check_area(shape: Surface) -> float:
    area = shape.area()
    if not area > 0:
        raise InvalidGeometryError(f"{shape!r} has non-positive area {area}")
    return area


def _has_blockers(shape_a: Surface, shape_b: Surface, scene: Optional[HittableList]) -> bool:
    """True if the scene holds anything besides the two shapes."""
    if scene is None:
        return False
    return any(obj is not shape_a and obj is not shape_b for obj in scene)


def _check_sphere_pair(sphere_a: Sphere, sphere_b: Sphere) -> float:
    """Center distance of two spheres that are either nested or disjoint."""
    distance = (sphere_b.center - sphere_a.center).length()
    small, big = sorted((sphere_a.radius, sphere_b.radius))
    if distance == 0 and small == big:
        raise InvalidGeometryError("Coincident spheres have no view factor")
    if big - small < distance < big + small:
        raise InvalidGeometryError(
            f"Intersecting spheres {sphere_a!r} and {sphere_b!r}"
        )
    return distance


def _encloses(sphere: Sphere, points: np.ndarray) -> bool:
    offsets = points - sphere.center.to_array()
    return bool(np.all(np.einsum('ij,ij->i', offsets, offsets) <= sphere.radius ** 2))


def _monte_carlo(
    shape_a: Surface,
    shape_b: Surface,
    area_b: float,
    sample_count: int,
    rng: np.random.Generator,
    scene: Optional[HittableList],
    settings: ViewFactorSettings
) -> float:
    points_a, normals_a = shape_a.sample_surface(rng, sample_count)
    points_b, normals_b = shape_b.sample_surface(rng, sample_count)

    # A sphere around the other shape radiates from its inside face
    if isinstance(shape_a, Sphere) and _encloses(shape_a, points_b):
        normals_a = -normals_a
    if isinstance(shape_b, Sphere) and _encloses(shape_b, points_a):
        normals_b = -normals_b

    separation = points_b - points_a
    dist_sq = np.einsum('ij,ij->i', separation, separation)
    close = dist_sq < settings.min_distance ** 2
    dist = np.sqrt(np.where(close, 1.0, dist_sq))

    cos_a = np.einsum('ij,ij->i', separation, normals_a) / dist
    cos_b = -np.einsum('ij,ij->i', separation, normals_b) / dist
    facing = (cos_a > 0) & (cos_b > 0) & ~close

    kernel = np.zeros(sample_count)
    kernel[facing] = cos_a[facing] * cos_b[facing] / (math.pi * dist_sq[facing])

    occluded = 0
    if scene is not None:
        t_min = settings.occlusion_epsilon
        t_max = 1.0 - settings.occlusion_epsilon
        for i in np.flatnonzero(facing):
            ray = Ray(Point3.from_array(points_a[i]), Vec3.from_array(separation[i]))
            if scene.occluded(ray, t_min, t_max, exclude=(shape_a, shape_b)):
                kernel[i] = 0.0
                occluded += 1

    logger.debug(
        "Monte Carlo view factor: %d samples, %d too close, %d back-facing, %d occluded",
        sample_count,
        int(close.sum()),
        int((~facing & ~close).sum()),
        occluded
    )

    return float(area_b * kernel.mean())


def view_factor(
    shape_a: Surface,
    shape_b: Surface,
    sample_count: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    scene: Optional[HittableList] = None,
    settings: Optional[ViewFactorSettings] = None
) -> float:
    """View factor from shape_a to shape_b.

    Args:
        shape_a: Emitting surface
        shape_b: Receiving surface
        sample_count: Monte Carlo pairs (settings.sample_count if None)
        rng: Random generator (seeded from settings.seed if None)
        scene: Scene whose other objects may block the line of sight
        settings: Estimator configuration (defaults if None)

    Returns:
        F(A -> B) in [0, 1]

    Raises:
        ValueError: if sample_count is below 1
        InvalidGeometryError: for shapes with non-positive area, or
            intersecting spheres
    """
    settings = settings if settings is not None else ViewFactorSettings()
    if sample_count is None:
        sample_count = settings.sample_count
    if sample_count < 1:
        raise ValueError(f"sample_count must be at least 1, got {sample_count}")

    area_a = _check_area(shape_a)
    area_b = _check_area(shape_b)

    # Every supported surface is convex or flat: it never sees itself
    if shape_a is shape_b:
        return 0.0

    if not _has_blockers(shape_a, shape_b, scene):
        scene = None

    both_spheres = isinstance(shape_a, Sphere) and isinstance(shape_b, Sphere)
    if both_spheres:
        distance = _check_sphere_pair(shape_a, shape_b)

    if both_spheres and scene is None:
        logger.debug("Analytic view factor for %r -> %r", shape_a, shape_b)
        return sphere_to_sphere(
            shape_a.radius, shape_b.radius, distance, order=settings.quadrature_order
        )

    rng = rng if rng is not None else np.random.default_rng(settings.seed)
    estimate = _monte_carlo(shape_a, shape_b, area_b, sample_count, rng, scene, settings)
    logger.debug(
        "Monte Carlo view factor for %r -> %r: %.6f (areas %.4g, %.4g)",
        shape_a, shape_b, estimate, area_a, area_b
    )
    return min(1.0, max(0.0, estimate))


def view_factors(
    scene: HittableList,
    sample_count: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    occlusion: bool = True,
    settings: Optional[ViewFactorSettings] = None
) -> ViewFactorMatrix:
    """View factors between all objects of a scene.

    F(i -> j) is estimated for i < j; F(j -> i) follows from reciprocity,
    A_i F(i -> j) = A_j F(j -> i).

    Args:
        scene: Scene of Surface objects
        sample_count: Monte Carlo pairs per estimate
        rng: Random generator shared by every estimate
        occlusion: Whether other scene objects block the line of sight
        settings: Estimator configuration (defaults if None)

    Raises:
        InvalidGeometryError: if an object has no sampleable surface
    """
    settings = settings if settings is not None else ViewFactorSettings()
    rng = rng if rng is not None else np.random.default_rng(settings.seed)

    shapes = list(scene)
    for shape in shapes:
        if not isinstance(shape, Surface):
            raise InvalidGeometryError(f"{shape!r} has no sampleable surface")

    n = len(shapes)
    areas = np.array([_check_area(shape) for shape in shapes])
    factors = np.zeros((n, n))
    blocker = scene if occlusion else None

    logger.info("Computing view factors for %d objects", n)
    for i in range(n):
        for j in range(i + 1, n):
            f_ij = view_factor(shapes[i], shapes[j], sample_count, rng, blocker, settings)
            factors[i, j] = f_ij
            factors[j, i] = areas[i] * f_ij / areas[j]

    return ViewFactorMatrix(factors=factors, areas=areas)
