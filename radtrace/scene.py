"""
Scene construction from plain data.

Builds materials, shapes and whole scenes from dictionaries (as produced by
any JSON/YAML loader the host program prefers) and generates random worlds.

Example scene:
```python
{
    "materials": {
        "ground": {"type": "lambertian", "albedo": [0.5, 0.5, 0.5]},
        "glass": {"type": "dielectric", "refractive_index": 1.5},
    },
    "objects": [
        {"type": "sphere", "center": [0, -1000, 0], "radius": 1000, "material": "ground"},
        {"type": "cube", "center": [0, 1, 0], "length": 2, "material": "glass"},
        {"type": "square", "center": [3, 0, 0], "length": 1,
         "material": {"type": "metal", "albedo": [0.8, 0.8, 0.8], "fuzz": 0.1}},
    ],
}
```
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple
import logging

import numpy as np

from .errors import SceneBuildError
from .vec3 import Vec3, Point3, Color
from .shapes import Hittable, HittableList, Sphere, Cube, Rectangle, Square
from .materials import Material, Lambertian, Metal, Dielectric

logger = logging.getLogger(__name__)

# Default in-plane axes for flat shapes: the surface faces +y
_DEFAULT_U = (0.0, 0.0, 1.0)
_DEFAULT_V = (1.0, 0.0, 0.0)

FORMS = ('sphere', 'cube', 'square')
MATERIALS = ('lambertian', 'metal', 'dielectric')


def _parse_vec3(data: Any, what: str = "Vec3") -> Vec3:
    """Parse a Vec3 from a list or an {x, y, z} mapping."""
    try:
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneBuildError(f"{what} must have 3 components, got {len(data)}")
            return Vec3(float(data[0]), float(data[1]), float(data[2]))
        if isinstance(data, dict):
            return Vec3(
                float(data.get('x', 0)),
                float(data.get('y', 0)),
                float(data.get('z', 0))
            )
    except (TypeError, ValueError) as exc:
        raise SceneBuildError(f"Cannot parse {what} from: {data!r}") from exc
    raise SceneBuildError(f"Cannot parse {what} from: {data!r}")


def _parse_color(data: Any) -> Color:
    if isinstance(data, dict):
        data = [data.get('r', 0), data.get('g', 0), data.get('b', 0)]
    return _parse_vec3(data, "Color")


def _parse_float(data: Mapping[str, Any], key: str, default: Optional[float] = None) -> float:
    if key not in data:
        if default is None:
            raise SceneBuildError(f"Missing required field '{key}'")
        return default
    try:
        return float(data[key])
    except (TypeError, ValueError) as exc:
        raise SceneBuildError(f"Field '{key}' must be a number, got {data[key]!r}") from exc


def _type_of(data: Any, default: str) -> str:
    if not isinstance(data, dict):
        raise SceneBuildError(f"Expected a mapping, got {data!r}")
    kind = data.get('type', default)
    if not isinstance(kind, str):
        raise SceneBuildError(f"Type must be a string, got {kind!r}")
    return kind.lower()


def build_material(data: Dict[str, Any]) -> Material:
    """Build a material from its description.

    Args:
        data: Mapping with 'type' (lambertian, metal or dielectric) and its
            parameters: 'albedo', 'fuzz', 'refractive_index' (or 'ior')

    Raises:
        SceneBuildError: for unknown types or malformed parameters
    """
    mat_type = _type_of(data, 'lambertian')

    if mat_type == 'lambertian':
        return Lambertian(_parse_color(data.get('albedo', [0.5, 0.5, 0.5])))

    if mat_type == 'metal':
        albedo = _parse_color(data.get('albedo', [0.8, 0.8, 0.8]))
        return Metal(albedo, _parse_float(data, 'fuzz', 0.0))

    if mat_type == 'dielectric':
        key = 'ior' if 'ior' in data and 'refractive_index' not in data else 'refractive_index'
        index = _parse_float(data, key, 1.5)
        try:
            return Dielectric(index)
        except ValueError as exc:
            raise SceneBuildError(str(exc)) from exc

    raise SceneBuildError(f"Unknown material type: {mat_type}")


def _resolve_material(ref: Any, materials: Mapping[str, Material]) -> Optional[Material]:
    """Get a material by name or inline definition."""
    if ref is None:
        return None
    if isinstance(ref, Material):
        return ref
    if isinstance(ref, str):
        if ref not in materials:
            raise SceneBuildError(f"Unknown material: {ref}")
        return materials[ref]
    if isinstance(ref, dict):
        return build_material(ref)
    raise SceneBuildError(f"Invalid material reference: {ref!r}")


def build_hittable(data: Dict[str, Any], materials: Optional[Mapping[str, Material]] = None) -> Hittable:
    """Build a shape from its description.

    Args:
        data: Mapping with 'type' (sphere, cube, rectangle or square), the
            shape parameters and an optional 'material' (a name from
            `materials` or an inline material mapping)
        materials: Named materials available for reference

    Raises:
        SceneBuildError: for unknown types or malformed parameters
        InvalidGeometryError: for well-formed but degenerate geometry
    """
    obj_type = _type_of(data, 'sphere')
    material = _resolve_material(data.get('material'), materials or {})

    if obj_type == 'sphere':
        center = _parse_vec3(data.get('center', [0, 0, 0]), "center")
        return Sphere(center, _parse_float(data, 'radius', 1.0), material)

    if obj_type == 'cube':
        if 'min' in data or 'max' in data:
            if 'min' not in data or 'max' not in data:
                raise SceneBuildError("Cube needs both 'min' and 'max' corners")
            return Cube(_parse_vec3(data['min'], "min"), _parse_vec3(data['max'], "max"), material)
        center = _parse_vec3(data.get('center', [0, 0, 0]), "center")
        return Cube.from_center(center, _parse_float(data, 'length', 1.0), material)

    if obj_type in ('rectangle', 'square'):
        center = _parse_vec3(data.get('center', [0, 0, 0]), "center")
        u = _parse_vec3(data.get('u', _DEFAULT_U), "u")
        v = _parse_vec3(data.get('v', _DEFAULT_V), "v")
        if obj_type == 'square':
            return Square(center, u, v, _parse_float(data, 'length', 1.0), material)
        width = _parse_float(data, 'width')
        height = _parse_float(data, 'height')
        return Rectangle(center, u, v, width, height, material)

    raise SceneBuildError(f"Unknown object type: {obj_type}")


def build_scene(data: Dict[str, Any]) -> HittableList:
    """Build a scene from a mapping with 'materials' and 'objects' sections.

    Materials are built first, since objects reference them by name.
    """
    if not isinstance(data, dict):
        raise SceneBuildError(f"Scene must be a mapping, got {type(data).__name__}")

    materials_data = data.get('materials', {})
    if not isinstance(materials_data, dict):
        raise SceneBuildError("'materials' must be a mapping of name to material")
    materials = {name: build_material(mat) for name, mat in materials_data.items()}

    objects_data = data.get('objects', [])
    if not isinstance(objects_data, list):
        raise SceneBuildError("'objects' must be a list")

    scene = HittableList()
    for obj_data in objects_data:
        scene.add(build_hittable(obj_data, materials))

    logger.debug("Built scene with %d materials and %d objects", len(materials), len(scene))
    return scene


def _choice_probabilities(weights: Mapping[str, float], allowed: Sequence[str], what: str) -> np.ndarray:
    unknown = set(weights) - set(allowed)
    if unknown:
        raise ValueError(f"Unknown {what}: {', '.join(sorted(unknown))}")
    probs = np.array([float(weights.get(name, 0.0)) for name in allowed])
    if np.any(probs < 0) or not probs.sum() > 0:
        raise ValueError(f"{what} weights must be non-negative with a positive sum")
    return probs / probs.sum()


def _random_material(kind: str, rng: np.random.Generator) -> Material:
    if kind == 'lambertian':
        return Lambertian(Color.random(rng) * Color.random(rng))
    if kind == 'metal':
        return Metal(Color(1.0, 1.0, 1.0), 0.01 * rng.random())
    return Dielectric(1.5)


def random_scene(
    n: int,
    rng: Optional[np.random.Generator] = None,
    bounds: Tuple[Tuple[float, float], ...] = ((-5.0, 5.0), (0.0, 5.0), (-5.0, 5.0)),
    size_range: Tuple[float, float] = (0.5, 2.0),
    form_weights: Optional[Mapping[str, float]] = None,
    material_weights: Optional[Mapping[str, float]] = None
) -> HittableList:
    """Generate a random world of spheres, cubes and horizontal squares.

    Args:
        n: Number of objects
        rng: Random generator (a fresh unseeded one if None)
        bounds: (low, high) range of the object centers along x, y and z
        size_range: (low, high) range of the object size; spheres get it as
            diameter, cubes and squares as edge length
        form_weights: Relative frequency of 'sphere', 'cube' and 'square'
        material_weights: Relative frequency of 'lambertian', 'metal' and 'dielectric'

    Raises:
        ValueError: for a negative count, bad ranges or bad weights
    """
    if n < 0:
        raise ValueError(f"Object count must be non-negative, got {n}")
    if len(bounds) != 3:
        raise ValueError("bounds needs one (low, high) range per axis")
    lo = np.array([b[0] for b in bounds], dtype=np.float64)
    hi = np.array([b[1] for b in bounds], dtype=np.float64)
    if np.any(hi < lo):
        raise ValueError(f"Invalid bounds: {bounds}")
    size_lo, size_hi = size_range
    if not 0 < size_lo <= size_hi:
        raise ValueError(f"Invalid size range: {size_range}")

    rng = rng if rng is not None else np.random.default_rng()
    form_probs = _choice_probabilities(
        form_weights or {'sphere': 1.0, 'cube': 1.0, 'square': 1.0}, FORMS, "form"
    )
    material_probs = _choice_probabilities(
        material_weights or {'lambertian': 0.6, 'metal': 0.3, 'dielectric': 0.1},
        MATERIALS,
        "material"
    )

    scene = HittableList()
    for _ in range(n):
        form = FORMS[rng.choice(len(FORMS), p=form_probs)]
        material = _random_material(MATERIALS[rng.choice(len(MATERIALS), p=material_probs)], rng)
        center = Point3.from_array(lo + rng.random(3) * (hi - lo))
        size = size_lo + rng.random() * (size_hi - size_lo)

        if form == 'sphere':
            scene.add(Sphere(center, size / 2, material))
        elif form == 'cube':
            scene.add(Cube.from_center(center, size, material))
        else:
            scene.add(Square(center, Vec3(*_DEFAULT_U), Vec3(*_DEFAULT_V), size, material))

    logger.debug("Generated random scene with %d objects", len(scene))
    return scene
