"""
Closed-form radiative view factors.

These are used directly for sphere pairs and serve as reference values for
the Monte Carlo estimator:

- differential_to_sphere: planar element to a sphere, any tilt
- sphere_to_sphere: sphere to sphere (nested or disjoint)
- parallel_rectangles: directly opposed, aligned, parallel rectangles
"""

from __future__ import annotations
import math
from functools import lru_cache
from typing import Tuple

import numpy as np

from .errors import InvalidGeometryError


def _element_to_sphere(big_h: np.ndarray, cos_theta: np.ndarray) -> np.ndarray:
    """Vectorised element-to-sphere factor.

    Args:
        big_h: Distance from element to sphere center over the sphere radius (> 1)
        cos_theta: Cosine between the element normal and the direction to the center

    Returns:
        View factor for every pair of inputs
    """
    big_h = np.asarray(big_h, dtype=np.float64)
    cos_theta = np.clip(np.asarray(cos_theta, dtype=np.float64), -1.0, 1.0)
    big_h, cos_theta = np.broadcast_arrays(big_h, cos_theta)
    result = np.zeros(big_h.shape)

    # Whole sphere above the element's horizon
    full = cos_theta * big_h >= 1.0
    result[full] = cos_theta[full] / big_h[full] ** 2

    # Sphere cut by the horizon
    partial = ~full & (cos_theta * big_h > -1.0)
    if np.any(partial):
        h = big_h[partial]
        c = cos_theta[partial]
        s = np.sqrt(1.0 - c * c)
        x = np.sqrt(h * h - 1.0)
        result[partial] = (
            0.5
            - np.arcsin(np.clip(x / (h * s), -1.0, 1.0)) / math.pi
            + (
                c * np.arccos(np.clip(-x * c / s, -1.0, 1.0))
                - x * np.sqrt(np.maximum(0.0, 1.0 - h * h * c * c))
            ) / (math.pi * h * h)
        )

    return result


def differential_to_sphere(distance: float, radius: float, theta: float) -> float:
    """View factor from a differential planar element to a sphere.

    Args:
        distance: Distance from the element to the sphere center
        radius: Sphere radius
        theta: Angle (radians) between the element normal and the line to the center

    Returns:
        The view factor. theta = 0 gives (radius/distance)**2 and
        theta = pi/2 gives (atan(1/X) - X/H**2)/pi with H = distance/radius,
        X = sqrt(H**2 - 1).

    Raises:
        InvalidGeometryError: if the element is not outside the sphere
    """
    if not radius > 0:
        raise InvalidGeometryError(f"Sphere radius must be positive, got {radius}")
    if not distance > radius:
        raise InvalidGeometryError(
            f"Element must lie outside the sphere (distance {distance}, radius {radius})"
        )
    return float(_element_to_sphere(distance / radius, math.cos(theta)))


@lru_cache(maxsize=8)
def _gauss_legendre(order: int) -> Tuple[np.ndarray, np.ndarray]:
    return np.polynomial.legendre.leggauss(order)


def _integrate(func, lo: float, hi: float, order: int) -> float:
    if hi <= lo:
        return 0.0
    nodes, weights = _gauss_legendre(order)
    half = 0.5 * (hi - lo)
    x = half * nodes + 0.5 * (hi + lo)
    return float(half * np.dot(weights, func(x)))


def sphere_to_sphere(radius_a: float, radius_b: float, distance: float, order: int = 128) -> float:
    """View factor from sphere A to sphere B.

    Nested spheres are exact: the inner sphere sees only the outer one
    (F = 1) and the outer sphere, radiating from its inside face, gets the
    reciprocal share (radius_inner / radius_outer)**2.

    For disjoint spheres the differential element-to-sphere factor is
    integrated over A. With u the cosine of the polar angle on A measured
    from the line of centers, F = 1/2 * integral of F_dA(u) over [-1, 1].
    The integrand is exactly zero below u = (r_a - r_b)/d, is the
    unobstructed cos(theta)/H**2 above u = (r_a + r_b)/d, and both pieces are
    smooth, so Gauss-Legendre quadrature on each piece converges quickly.

    Args:
        radius_a: Radius of the emitting sphere
        radius_b: Radius of the receiving sphere
        distance: Distance between the centers
        order: Gauss-Legendre points per piece

    Raises:
        InvalidGeometryError: for non-positive radii, coincident or
            intersecting spheres
    """
    if not (radius_a > 0 and radius_b > 0):
        raise InvalidGeometryError(
            f"Sphere radii must be positive, got {radius_a} and {radius_b}"
        )
    if distance < 0:
        raise InvalidGeometryError(f"Center distance must be non-negative, got {distance}")
    if distance == 0 and radius_a == radius_b:
        raise InvalidGeometryError("Coincident spheres have no view factor")

    # A inside B
    if distance + radius_a <= radius_b:
        return 1.0
    # B inside A
    if distance + radius_b <= radius_a:
        return (radius_b / radius_a) ** 2
    if distance < radius_a + radius_b:
        raise InvalidGeometryError(
            f"Intersecting spheres (radii {radius_a}, {radius_b}, distance {distance})"
        )

    def integrand(u: np.ndarray) -> np.ndarray:
        h = np.sqrt(distance * distance - 2.0 * distance * radius_a * u + radius_a * radius_a)
        cos_theta = (distance * u - radius_a) / h
        return _element_to_sphere(h / radius_b, cos_theta)

    u_lo = max(-1.0, (radius_a - radius_b) / distance)
    u_hi = min(1.0, (radius_a + radius_b) / distance)
    total = _integrate(integrand, u_lo, u_hi, order) + _integrate(integrand, u_hi, 1.0, order)
    return min(1.0, max(0.0, 0.5 * total))


def parallel_rectangles(width: float, height: float, separation: float) -> float:
    """View factor between two identical, directly opposed parallel rectangles.

    Args:
        width: Rectangle width
        height: Rectangle height
        separation: Distance between the two planes

    Raises:
        InvalidGeometryError: for non-positive dimensions
    """
    if not (width > 0 and height > 0 and separation > 0):
        raise InvalidGeometryError(
            f"Dimensions must be positive, got {width} x {height} at {separation}"
        )
    x = width / separation
    y = height / separation
    x1 = math.sqrt(1 + x * x)
    y1 = math.sqrt(1 + y * y)
    return (2.0 / (math.pi * x * y)) * (
        math.log(x1 * y1 / math.sqrt(1 + x * x + y * y))
        + x * y1 * math.atan(x / y1)
        + y * x1 * math.atan(y / x1)
        - x * math.atan(x)
        - y * math.atan(y)
    )
