"""
Path tracer - the light transport integrator.

Implements:
- Bounded recursive path tracing (depth strictly decreases)
- Sky gradient or solid color background
- Multi-sample averaging over caller-generated rays

Camera ray generation and image assembly live outside this package.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Optional

import numpy as np

from .vec3 import Vec3, Color
from .ray import Ray
from .shapes import Hittable
from .errors import DegenerateVectorError


def sky_color(direction: Vec3, bottom: Optional[Color] = None, top: Optional[Color] = None) -> Color:
    """Background gradient as a pure function of the ray direction.

    Args:
        direction: Ray direction (any non-zero length)
        bottom: Color looking straight down (white by default)
        top: Color looking straight up (light blue by default)

    Returns:
        Sky color at this direction
    """
    bottom = bottom if bottom is not None else Color(1.0, 1.0, 1.0)
    top = top if top is not None else Color(0.5, 0.7, 1.0)
    unit_direction = direction.normalize()
    t = 0.5 * (unit_direction.y + 1.0)
    return bottom * (1.0 - t) + top * t


@dataclass
class TraceSettings:
    """Configuration for the path tracer."""
    max_depth: int = 50
    t_min: float = 0.001
    use_sky_gradient: bool = True
    background_color: Color = field(default_factory=lambda: Color(0.0, 0.0, 0.0))
    sky_bottom: Color = field(default_factory=lambda: Color(1.0, 1.0, 1.0))
    sky_top: Color = field(default_factory=lambda: Color(0.5, 0.7, 1.0))

    def __post_init__(self):
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if not self.t_min >= 0:
            raise ValueError(f"t_min must be non-negative, got {self.t_min}")


class PathTracer:
    """Recursive path tracer over a linear scene list."""

    def __init__(self, settings: Optional[TraceSettings] = None):
        """Create a tracer with the given settings.

        Args:
            settings: Trace configuration (uses defaults if None)
        """
        self.settings = settings if settings else TraceSettings()

    def ray_color(self, ray: Ray, scene: Hittable, depth: int, rng: np.random.Generator) -> Color:
        """Compute the color for a ray using path tracing.

        Args:
            ray: The ray to trace
            scene: The scene to trace against
            depth: Remaining bounces
            rng: Random generator handed to the materials

        Returns:
            The computed color for this ray
        """
        if depth <= 0:
            return Color(0, 0, 0)

        hit_record = scene.hit(ray, self.settings.t_min, float('inf'))

        if hit_record is None:
            return self.background(ray)

        if hit_record.material is None:
            # No material - return normal as color (for debugging)
            return (hit_record.normal + Color(1, 1, 1)) * 0.5

        scatter_result = hit_record.material.scatter(ray, hit_record, rng)
        if scatter_result is None:
            return Color(0, 0, 0)

        return scatter_result.attenuation * self.ray_color(
            scatter_result.scattered_ray, scene, depth - 1, rng
        )

    def background(self, ray: Ray) -> Color:
        """Color seen by a ray that escapes the scene.

        A zero-length direction has no sky position and gets the solid
        background color.
        """
        if self.settings.use_sky_gradient:
            try:
                return sky_color(ray.direction, self.settings.sky_bottom, self.settings.sky_top)
            except DegenerateVectorError:
                return self.settings.background_color
        return self.settings.background_color

    def trace(self, ray: Ray, scene: Hittable, rng: Optional[np.random.Generator] = None) -> Color:
        """Trace one ray with the configured maximum depth."""
        rng = rng if rng is not None else np.random.default_rng()
        return self.ray_color(ray, scene, self.settings.max_depth, rng)

    def sample(self, rays: Iterable[Ray], scene: Hittable, rng: Optional[np.random.Generator] = None) -> Color:
        """Average the traced color of several rays (one pixel's samples).

        Raises:
            ValueError: if no rays are given
        """
        rng = rng if rng is not None else np.random.default_rng()
        total = np.zeros(3)
        count = 0
        for ray in rays:
            total += self.ray_color(ray, scene, self.settings.max_depth, rng).to_array()
            count += 1
        if count == 0:
            raise ValueError("At least one ray is required")
        return Color.from_array(total / count)


def trace(
    ray: Ray,
    scene: Hittable,
    max_depth: int,
    rng: Optional[np.random.Generator] = None,
    settings: Optional[TraceSettings] = None
) -> Color:
    """Trace a single ray through the scene.

    Args:
        ray: Primary ray (generated by the caller's camera)
        scene: Scene to trace against, usually a HittableList
        max_depth: Maximum number of bounces
        rng: Random generator (a fresh unseeded one if None)
        settings: Background and epsilon settings; max_depth overrides its depth

    Returns:
        Linear RGB color carried back along the ray
    """
    settings = settings if settings is not None else TraceSettings()
    tracer = PathTracer(settings)
    rng = rng if rng is not None else np.random.default_rng()
    return tracer.ray_color(ray, scene, max_depth, rng)
