"""Tests for geometric shapes."""

import pytest
import math
import numpy as np

from radtrace.errors import InvalidGeometryError
from radtrace.vec3 import Vec3, Point3, Color
from radtrace.ray import Ray
from radtrace.shapes import Sphere, Cube, Rectangle, Square, HittableList
from radtrace.materials import Lambertian


INF = float('inf')


class TestSphere:
    """Test Sphere class."""

    def test_creation(self):
        center = Point3(0, 0, 0)
        sphere = Sphere(center, 1.0)
        assert sphere.center == center
        assert sphere.radius == 1.0

    @pytest.mark.parametrize("radius", [0.0, -1.0])
    def test_non_positive_radius(self, radius):
        with pytest.raises(InvalidGeometryError):
            Sphere(Point3(0, 0, 0), radius)

    def test_hit_through_center(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1))
        hit = sphere.hit(ray, 0.001, INF)

        assert hit is not None
        assert abs(hit.t - 4.0) < 1e-9
        assert hit.normal == Vec3(0, 0, -1)
        assert hit.front_face is True

    def test_hit_with_long_direction(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 4))
        hit = sphere.hit(ray, 0.001, INF)

        assert abs(hit.t - 1.0) < 1e-9
        assert ray.at(hit.t) == Point3(0, 0, -1)

    def test_roots_symmetric_about_closest_approach(self):
        sphere = Sphere(Point3(0, 0, 0), 2.0)
        ray = Ray(Point3(-10, 0.5, 0), Vec3(1, 0, 0))
        near = sphere.hit(ray, 0.001, INF)
        far = sphere.hit(ray, near.t + 1e-6, INF)
        # Closest approach is at x = 0, i.e. t = 10
        assert abs((near.t + far.t) / 2 - 10.0) < 1e-9

    def test_hit_from_inside(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, 1))
        hit = sphere.hit(ray, 0.001, INF)

        assert hit is not None
        assert hit.front_face is False
        assert hit.normal == Vec3(0, 0, -1)

    def test_miss(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 5, -5), Vec3(0, 0, 1))
        assert sphere.hit(ray, 0.001, INF) is None

    def test_behind_ray(self):
        sphere = Sphere(Point3(0, 0, -5), 1.0)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, 1))
        assert sphere.hit(ray, 0.001, INF) is None

    def test_t_max_limits_hit(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1))
        assert sphere.hit(ray, 0.001, 3.0) is None

    def test_zero_direction_misses(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 0))
        assert sphere.hit(ray, 0.001, INF) is None

    def test_hit_point_on_surface(self):
        sphere = Sphere(Point3(1, 2, 3), 1.5)
        rng = np.random.default_rng(7)
        for _ in range(50):
            direction = (sphere.center - Point3(10, 10, 10)) + Vec3.random(rng, -0.5, 0.5)
            ray = Ray(Point3(10, 10, 10), direction)
            hit = sphere.hit(ray, 0.001, INF)
            assert hit is not None
            assert abs((ray.at(hit.t) - sphere.center).length() - 1.5) < 1e-9
            assert abs(hit.normal.length() - 1.0) < 1e-9

    def test_material_carried(self):
        mat = Lambertian(Color(0.5, 0.5, 0.5))
        sphere = Sphere(Point3(0, 0, 0), 1.0, mat)
        hit = sphere.hit(Ray(Point3(0, 0, -5), Vec3(0, 0, 1)), 0.001, INF)
        assert hit.material is mat

    def test_area(self):
        assert abs(Sphere(Point3(0, 0, 0), 2.0).area() - 16 * math.pi) < 1e-12

    def test_sample_surface(self):
        sphere = Sphere(Point3(1, 0, 0), 2.0)
        points, normals = sphere.sample_surface(np.random.default_rng(0), 2000)
        assert points.shape == (2000, 3)
        assert np.allclose(np.linalg.norm(normals, axis=1), 1.0)
        assert np.allclose(points, sphere.center.to_array() + 2.0 * normals)
        # Uniform on the sphere: mean position is the center
        assert np.allclose(points.mean(axis=0), [1, 0, 0], atol=0.15)


class TestCube:
    """Test axis-aligned Cube class."""

    def test_from_center(self):
        cube = Cube.from_center(Point3(0, 0, 0), 2.0)
        assert cube.min_corner == Point3(-1, -1, -1)
        assert cube.max_corner == Point3(1, 1, 1)

    def test_corners_reordered(self):
        cube = Cube(Point3(1, 2, 3), Point3(0, 0, 0))
        assert cube.min_corner == Point3(0, 0, 0)
        assert cube.max_corner == Point3(1, 2, 3)

    def test_flat_box_rejected(self):
        with pytest.raises(InvalidGeometryError):
            Cube(Point3(0, 0, 0), Point3(1, 0, 1))

    def test_non_positive_length_rejected(self):
        with pytest.raises(InvalidGeometryError):
            Cube.from_center(Point3(0, 0, 0), 0.0)

    def test_hit_front(self):
        cube = Cube.from_center(Point3(0, 0, 0), 2.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1))
        hit = cube.hit(ray, 0.001, INF)

        assert hit is not None
        assert abs(hit.t - 4.0) < 1e-9
        assert hit.normal == Vec3(0, 0, -1)
        assert hit.front_face is True

    def test_hit_each_face(self):
        cube = Cube.from_center(Point3(0, 0, 0), 2.0)
        for axis in range(3):
            for sign in (-1.0, 1.0):
                origin = [0.2, -0.3, 0.1]
                origin[axis] = sign * 5
                direction = [0.0, 0.0, 0.0]
                direction[axis] = -sign
                ray = Ray(Point3(*origin), Vec3(*direction))
                hit = cube.hit(ray, 0.001, INF)
                expected = [0.0, 0.0, 0.0]
                expected[axis] = sign
                assert hit.normal == Vec3(*expected)
                assert abs(hit.point[axis] - sign) < 1e-9

    def test_hit_from_inside_reports_exit(self):
        cube = Cube.from_center(Point3(0, 0, 0), 2.0)
        ray = Ray(Point3(0, 0, 0), Vec3(1, 0, 0))
        hit = cube.hit(ray, 0.001, INF)

        assert abs(hit.t - 1.0) < 1e-9
        assert hit.front_face is False
        # Normal faces against the ray
        assert hit.normal == Vec3(-1, 0, 0)

    def test_miss(self):
        cube = Cube.from_center(Point3(0, 0, 0), 2.0)
        ray = Ray(Point3(0, 5, -5), Vec3(0, 0, 1))
        assert cube.hit(ray, 0.001, INF) is None

    def test_miss_diagonal(self):
        cube = Cube.from_center(Point3(0, 0, 0), 2.0)
        ray = Ray(Point3(-5, 3, 0), Vec3(1, 1, 0))
        assert cube.hit(ray, 0.001, INF) is None

    def test_behind_ray(self):
        cube = Cube.from_center(Point3(0, 0, 5), 2.0)
        ray = Ray(Point3(0, 0, 0), Vec3(0, 0, -1))
        assert cube.hit(ray, 0.001, INF) is None

    def test_oblique_hit_on_face(self):
        cube = Cube(Point3(0, 0, 0), Point3(1, 2, 3))
        ray = Ray(Point3(-1, 0.5, 0.5), Vec3(1, 0.2, 0.3))
        hit = cube.hit(ray, 0.001, INF)
        point = ray.at(hit.t)
        assert abs(point.x) < 1e-9
        assert 0 <= point.y <= 2 and 0 <= point.z <= 3

    def test_areas(self):
        cube = Cube(Point3(0, 0, 0), Point3(1, 2, 3))
        assert np.allclose(cube.face_areas(), [6, 6, 3, 3, 2, 2])
        assert abs(cube.area() - 22.0) < 1e-12

    def test_sample_surface(self):
        cube = Cube(Point3(0, 0, 0), Point3(1, 2, 3))
        points, normals = cube.sample_surface(np.random.default_rng(5), 5000)
        assert points.shape == (5000, 3)
        assert np.allclose(np.abs(normals).sum(axis=1), 1.0)

        lo = cube.min_corner.to_array()
        hi = cube.max_corner.to_array()
        assert np.all(points >= lo - 1e-12) and np.all(points <= hi + 1e-12)
        # Each point lies on the face its normal belongs to
        axes = np.argmax(np.abs(normals), axis=1)
        rows = np.arange(len(points))
        on_face = np.where(normals[rows, axes] > 0, hi[axes], lo[axes])
        assert np.allclose(points[rows, axes], on_face)
        # Faces perpendicular to x hold 12/22 of the area
        assert abs(np.mean(axes == 0) - 12 / 22) < 0.03


class TestRectangle:
    """Test Rectangle and Square classes."""

    def test_normal(self):
        rect = Rectangle(Point3(0, 0, 0), Vec3(1, 0, 0), Vec3(0, 1, 0), 2.0, 1.0)
        assert rect.normal == Vec3(0, 0, 1)

    def test_axes_normalized(self):
        rect = Rectangle(Point3(0, 0, 0), Vec3(3, 0, 0), Vec3(0, 2, 0), 1.0, 1.0)
        assert rect.u == Vec3(1, 0, 0)
        assert rect.v == Vec3(0, 1, 0)

    def test_non_orthogonal_axes_rejected(self):
        with pytest.raises(InvalidGeometryError):
            Rectangle(Point3(0, 0, 0), Vec3(1, 0, 0), Vec3(1, 1, 0), 1.0, 1.0)

    def test_zero_axis_rejected(self):
        with pytest.raises(InvalidGeometryError):
            Rectangle(Point3(0, 0, 0), Vec3(0, 0, 0), Vec3(0, 1, 0), 1.0, 1.0)

    def test_non_positive_side_rejected(self):
        with pytest.raises(InvalidGeometryError):
            Rectangle(Point3(0, 0, 0), Vec3(1, 0, 0), Vec3(0, 1, 0), 0.0, 1.0)

    def test_hit(self):
        rect = Rectangle(Point3(0, 0, 0), Vec3(1, 0, 0), Vec3(0, 1, 0), 2.0, 1.0)
        ray = Ray(Point3(0.9, 0.4, 5), Vec3(0, 0, -1))
        hit = rect.hit(ray, 0.001, INF)
        assert abs(hit.t - 5.0) < 1e-9
        assert hit.front_face is True
        assert hit.normal == Vec3(0, 0, 1)

    def test_hit_from_back(self):
        rect = Rectangle(Point3(0, 0, 0), Vec3(1, 0, 0), Vec3(0, 1, 0), 2.0, 1.0)
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1))
        hit = rect.hit(ray, 0.001, INF)
        assert hit.front_face is False
        assert hit.normal == Vec3(0, 0, -1)

    def test_miss_outside_bounds(self):
        rect = Rectangle(Point3(0, 0, 0), Vec3(1, 0, 0), Vec3(0, 1, 0), 2.0, 1.0)
        ray = Ray(Point3(0.2, 0.6, 5), Vec3(0, 0, -1))
        assert rect.hit(ray, 0.001, INF) is None

    def test_parallel_ray_misses(self):
        rect = Rectangle(Point3(0, 0, 0), Vec3(1, 0, 0), Vec3(0, 1, 0), 2.0, 1.0)
        ray = Ray(Point3(-5, 0, 0), Vec3(1, 0, 0))
        assert rect.hit(ray, 0.001, INF) is None

    def test_square(self):
        square = Square(Point3(0, 0, 0), Vec3(0, 0, 1), Vec3(1, 0, 0), 3.0)
        assert square.length == 3.0
        assert abs(square.area() - 9.0) < 1e-12
        assert square.normal == Vec3(0, 1, 0)

    def test_sample_surface(self):
        rect = Rectangle(Point3(0, 0, 2), Vec3(1, 0, 0), Vec3(0, 1, 0), 2.0, 1.0)
        points, normals = rect.sample_surface(np.random.default_rng(9), 1000)
        assert np.allclose(points[:, 2], 2.0)
        assert np.all(np.abs(points[:, 0]) <= 1.0)
        assert np.all(np.abs(points[:, 1]) <= 0.5)
        assert np.allclose(normals, [0, 0, 1])


class TestHittableList:
    """Test HittableList class."""

    def test_empty_misses(self):
        world = HittableList()
        assert world.hit(Ray(Point3(0, 0, 0), Vec3(0, 0, 1)), 0.001, INF) is None

    def test_closest_hit(self):
        near = Sphere(Point3(0, 0, -3), 0.5)
        far = Sphere(Point3(0, 0, -10), 0.5)
        world = HittableList([far, near])
        hit = world.hit(Ray(Point3(0, 0, 0), Vec3(0, 0, -1)), 0.001, INF)
        assert abs(hit.t - 2.5) < 1e-9

    def test_tie_keeps_first_inserted(self):
        first_mat = Lambertian(Color(1, 0, 0))
        second_mat = Lambertian(Color(0, 1, 0))
        world = HittableList([
            Sphere(Point3(0, 0, -3), 1.0, first_mat),
            Sphere(Point3(0, 0, -3), 1.0, second_mat),
        ])
        hit = world.hit(Ray(Point3(0, 0, 0), Vec3(0, 0, -1)), 0.001, INF)
        assert hit.material is first_mat

    def test_occluded(self):
        a = Sphere(Point3(-5, 0, 0), 1.0)
        b = Sphere(Point3(5, 0, 0), 1.0)
        blocker = Cube.from_center(Point3(0, 0, 0), 1.0)
        world = HittableList([a, b, blocker])
        ray = Ray(Point3(-4, 0, 0), Vec3(8, 0, 0))
        assert world.occluded(ray, 1e-6, 1 - 1e-6, exclude=(a, b))

        world_open = HittableList([a, b])
        assert not world_open.occluded(ray, 1e-6, 1 - 1e-6, exclude=(a, b))

    def test_occluded_excludes_by_identity(self):
        a = Sphere(Point3(0, 0, 0), 1.0)
        twin = Sphere(Point3(0, 0, 0), 1.0)
        world = HittableList([a, twin])
        ray = Ray(Point3(-5, 0, 0), Vec3(10, 0, 0))
        assert world.occluded(ray, 0.0, 1.0, exclude=(a,))

    def test_container_protocol(self):
        a = Sphere(Point3(0, 0, 0), 1.0)
        b = Cube.from_center(Point3(3, 0, 0), 1.0)
        world = HittableList()
        world.add(a)
        world.add(b)
        assert len(world) == 2
        assert world[1] is b
        assert list(world) == [a, b]
