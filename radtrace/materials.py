"""
Surface materials.

Implements:
- Lambertian diffuse
- Metal (specular reflection with fuzz)
- Dielectric (glass, water - with refraction)

Materials are immutable and may be shared by any number of shapes. All
randomness comes from the generator passed to `scatter`.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING
import math

import numpy as np

from .errors import DegenerateVectorError, TotalInternalReflection
from .vec3 import Vec3, Color
from .ray import Ray

if TYPE_CHECKING:
    from .shapes import HitRecord


@dataclass(frozen=True)
class ScatterResult:
    """Result of a material scatter operation."""
    attenuation: Color
    scattered_ray: Ray


class Material(ABC):
    """Abstract base class for materials."""

    @abstractmethod
    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        """Compute the scattered ray and attenuation.

        Args:
            ray_in: The incoming ray
            rec: Hit record at the intersection (normal faces against ray_in)
            rng: Random generator

        Returns:
            ScatterResult if ray scatters, None if absorbed
        """
        pass


@dataclass(frozen=True)
class Lambertian(Material):
    """Diffuse material with Lambertian (ideal matte) scattering."""

    albedo: Color

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        scatter_direction = rec.normal + Vec3.random_unit_vector(rng)

        # Catch degenerate scatter direction
        if scatter_direction.near_zero():
            scatter_direction = rec.normal

        return ScatterResult(
            attenuation=self.albedo,
            scattered_ray=Ray(rec.point, scatter_direction.normalize())
        )


@dataclass(frozen=True)
class Metal(Material):
    """Metallic material with specular reflection.

    Attributes:
        albedo: The reflection color
        fuzz: Reflection roughness, clamped to [0, 1] (0 = mirror)
    """

    albedo: Color
    fuzz: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'fuzz', max(0.0, min(float(self.fuzz), 1.0)))

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        try:
            reflected = ray_in.direction.normalize().reflect(rec.normal)
            if self.fuzz > 0:
                reflected = reflected + Vec3.random_unit_vector(rng) * self.fuzz
            direction = reflected.normalize()
        except DegenerateVectorError:
            return None

        # Only scatter if reflection is in the correct hemisphere
        if direction.dot(rec.normal) <= 0:
            return None
        return ScatterResult(
            attenuation=self.albedo,
            scattered_ray=Ray(rec.point, direction)
        )


@dataclass(frozen=True)
class Dielectric(Material):
    """Dielectric (glass-like) material with refraction.

    Attributes:
        refractive_index: Index of refraction (1.0 = air, 1.5 = glass, 2.4 = diamond)
    """

    refractive_index: float = 1.5
    attenuation: Color = field(default_factory=lambda: Color(1, 1, 1), init=False, repr=False)

    def __post_init__(self):
        if not self.refractive_index > 0:
            raise ValueError(f"Refractive index must be positive, got {self.refractive_index}")

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: np.random.Generator) -> Optional[ScatterResult]:
        # Determine refraction ratio based on whether we're entering or exiting
        refraction_ratio = 1.0 / self.refractive_index if rec.front_face else self.refractive_index

        try:
            unit_direction = ray_in.direction.normalize()
        except DegenerateVectorError:
            return None
        cos_theta = min(-unit_direction.dot(rec.normal), 1.0)

        # Use Schlick's approximation for reflectance
        if self.reflectance(cos_theta, refraction_ratio) > rng.random():
            direction = unit_direction.reflect(rec.normal)
        else:
            try:
                direction = unit_direction.refract(rec.normal, refraction_ratio)
            except TotalInternalReflection:
                direction = unit_direction.reflect(rec.normal)

        return ScatterResult(
            attenuation=self.attenuation,
            scattered_ray=Ray(rec.point, direction.normalize())
        )

    @staticmethod
    def reflectance(cosine: float, ref_idx: float) -> float:
        """Schlick's approximation for reflectance."""
        r0 = (1 - ref_idx) / (1 + ref_idx)
        r0 = r0 * r0
        return r0 + (1 - r0) * math.pow(1 - cosine, 5)
