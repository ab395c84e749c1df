"""
radtrace - Ray tracing and radiative view factors

A small geometry engine with support for:
- Ray/shape intersection (spheres, cubes, rectangles)
- Path tracing with diffuse, metal and dielectric materials
- View factors between shapes (exact for spheres, Monte Carlo otherwise)
"""

import logging

__version__ = "0.1.0"

from .errors import (
    RadTraceError, DegenerateVectorError, InvalidGeometryError,
    TotalInternalReflection, SceneBuildError
)
from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .shapes import HitRecord, Hittable, Surface, Sphere, Cube, Rectangle, Square, HittableList
from .materials import Material, ScatterResult, Lambertian, Metal, Dielectric
from .tracer import TraceSettings, PathTracer, trace, sky_color
from .radiation import ViewFactorSettings, ViewFactorMatrix, view_factor, view_factors
from .analytic import sphere_to_sphere, differential_to_sphere, parallel_rectangles
from .scene import build_material, build_hittable, build_scene, random_scene
from .logging_config import setup_logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Errors
    'RadTraceError', 'DegenerateVectorError', 'InvalidGeometryError',
    'TotalInternalReflection', 'SceneBuildError',
    # Core
    'Vec3', 'Point3', 'Color', 'Ray',
    # Shapes
    'HitRecord', 'Hittable', 'Surface', 'Sphere', 'Cube', 'Rectangle', 'Square', 'HittableList',
    # Materials
    'Material', 'ScatterResult', 'Lambertian', 'Metal', 'Dielectric',
    # Tracing
    'TraceSettings', 'PathTracer', 'trace', 'sky_color',
    # View factors
    'ViewFactorSettings', 'ViewFactorMatrix', 'view_factor', 'view_factors',
    'sphere_to_sphere', 'differential_to_sphere', 'parallel_rectangles',
    # Scene construction
    'build_material', 'build_hittable', 'build_scene', 'random_scene',
    'setup_logging',
]
