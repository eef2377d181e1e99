import numpy as np

from scene import KIND_NAMES, MAX_PRIMITIVES_PER_KIND, PLANE, SPHERE, TRIANGLE
from scene_settings import SCENE_PRESETS


class Material:
    def __init__(self, albedo, exponent):
        self.albedo = np.array(albedo, dtype=np.float64)
        self.exponent = float(exponent)

    def __eq__(self, other):
        if not isinstance(other, Material):
            return NotImplemented
        return np.array_equal(self.albedo, other.albedo) and self.exponent == other.exponent

    def __repr__(self):
        return "Material(albedo={}, exponent={})".format(self.albedo.tolist(), self.exponent)


GREY = (0.5, 0.5, 0.5)
LIGHT_GREY = (0.7, 0.7, 0.7)
WHITE = (1.0, 1.0, 1.0)
RED = (1.0, 0.0, 0.0)
GREEN = (0.0, 1.0, 0.0)
BLUE = (0.0, 0.0, 1.0)

# Used when an index falls outside every range of its (scene, kind) entry
DEFAULT_MATERIALS = {
    SPHERE: Material(GREY, 10),
    TRIANGLE: Material(GREY, 10),
    PLANE: Material(LIGHT_GREY, 10),
}

# (scene id, kind) -> [(first index, end index, material), ...], end exclusive
MATERIAL_TABLE = {
    # Room: coloured walls built from triangle pairs, a grey floor plane
    (1, SPHERE): [
        (0, MAX_PRIMITIVES_PER_KIND, Material(GREY, 1000)),
    ],
    (1, TRIANGLE): [
        (0, 4, Material(BLUE, 10)),
        (4, 6, Material(WHITE, 10)),
        (6, 8, Material(GREEN, 10)),
        (8, 10, Material(RED, 10)),
        (10, 12, Material(GREY, 10)),
        (12, 32, Material((0.8, 0.8, 0.8), 10)),
    ],
    (1, PLANE): [
        (0, MAX_PRIMITIVES_PER_KIND, Material(LIGHT_GREY, 10)),
    ],

    # Spheres on a pyramid
    (2, SPHERE): [
        (0, 4, Material((0.9, 0.75, 0.2), 1000)),
        (4, MAX_PRIMITIVES_PER_KIND, Material((0.6, 0.6, 0.65), 10000)),
    ],
    (2, TRIANGLE): [
        (0, 4, Material((0.95, 0.55, 0.1), 1000)),
        (4, 6, Material((0.3, 0.3, 0.35), 10)),
        (6, 8, Material((0.2, 0.5, 0.9), 10)),
        (8, 10, Material((0.9, 0.2, 0.3), 10)),
        (10, 12, Material(GREY, 10)),
        (12, 32, Material((0.85, 0.85, 0.8), 10)),
    ],
    (2, PLANE): [
        (0, MAX_PRIMITIVES_PER_KIND, Material((0.4, 0.45, 0.5), 10)),
    ],

    # Open scene: shiny spheres over a tiled floor
    (3, SPHERE): [
        (0, 4, Material(RED, 10000)),
        (4, 6, Material(GREEN, 1000)),
        (6, 8, Material(BLUE, 1000)),
        (8, MAX_PRIMITIVES_PER_KIND, Material(WHITE, 10)),
    ],
    (3, TRIANGLE): [
        (0, 4, Material((0.9, 0.9, 0.9), 10)),
        (4, 6, Material((0.1, 0.1, 0.1), 10)),
        (6, 8, Material((0.6, 0.3, 0.1), 1000)),
        (8, 10, Material((0.1, 0.6, 0.6), 1000)),
        (10, 12, Material(GREY, 10)),
        (12, 32, Material((0.7, 0.6, 0.9), 10)),
    ],
    (3, PLANE): [
        (0, 1, Material((0.3, 0.6, 0.3), 10)),
        (1, MAX_PRIMITIVES_PER_KIND, Material((0.5, 0.7, 0.9), 10)),
    ],
}


def lookup_material(scene_id, kind, index):
    """Material of the index-th primitive of a kind in a scene preset."""
    if scene_id not in SCENE_PRESETS:
        raise ValueError("Unknown scene preset: {}".format(scene_id))
    if kind not in KIND_NAMES:
        raise ValueError("Unknown primitive kind: {}".format(kind))

    for start, end, material in MATERIAL_TABLE[(scene_id, kind)]:
        if start <= index < end:
            return material
    return DEFAULT_MATERIALS[kind]


def material_arrays(scene_id):
    """
    Materials of every primitive slot of a scene preset, for the shading kernel.

    Returns:
        albedos: (3, MAX_PRIMITIVES_PER_KIND, 3) indexed [kind, index, channel]
        exponents: (3, MAX_PRIMITIVES_PER_KIND) indexed [kind, index]
    """
    albedos = np.zeros((len(KIND_NAMES), MAX_PRIMITIVES_PER_KIND, 3))
    exponents = np.zeros((len(KIND_NAMES), MAX_PRIMITIVES_PER_KIND))

    for kind in KIND_NAMES:
        for index in range(MAX_PRIMITIVES_PER_KIND):
            material = lookup_material(scene_id, kind, index)
            albedos[kind, index] = material.albedo
            exponents[kind, index] = material.exponent

    return albedos, exponents
