import re

from light import Light
from surfaces.infinite_plane import InfinitePlane
from surfaces.sphere import Sphere
from surfaces.triangle import Triangle


# Primitive kinds, in the order the intersection passes run
SPHERE = 0
TRIANGLE = 1
PLANE = 2
KIND_NAMES = {SPHERE: "sphere", TRIANGLE: "triangle", PLANE: "plane"}

MAX_PRIMITIVES_PER_KIND = 50

# A block starting with one of these holds no entry
SKIP_SENTINELS = frozenset(("x", "xn", "x1"))

# Number of values inside each block
BLOCK_ARITY = {
    "light": 3,
    "sphere": 4,
    "plane": 6,
    "triangle": 9,
}

_HEX_PREFIX = re.compile(r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?")
_SPECIAL_PREFIX = re.compile(r"[+-]?(?:inf(?:inity)?|nan)", re.IGNORECASE)
_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class SceneCapacityError(ValueError):
    """Raised when a scene holds more entries of one kind than a frame can store."""


class Scene:
    def __init__(self):
        self.spheres = []
        self.triangles = []
        self.planes = []
        self.lights = []

    def _collection(self, keyword):
        return {
            "light": self.lights,
            "sphere": self.spheres,
            "plane": self.planes,
            "triangle": self.triangles,
        }[keyword]

    def add(self, keyword, values):
        """Append one entry built from a block's parsed values."""
        collection = self._collection(keyword)
        if len(collection) >= MAX_PRIMITIVES_PER_KIND:
            raise SceneCapacityError(
                "Scene holds more than {} {} entries".format(MAX_PRIMITIVES_PER_KIND, keyword)
            )

        if keyword == "light":
            collection.append(Light(values[:3]))
        elif keyword == "sphere":
            collection.append(Sphere(values[:3], values[3]))
        elif keyword == "plane":
            collection.append(InfinitePlane(values[:3], values[3:6]))
        elif keyword == "triangle":
            collection.append(Triangle(values[:9]))

    @property
    def light(self):
        """The light used for shading. Lights after the first are kept but unused."""
        return self.lights[0] if self.lights else None

    def is_empty(self):
        return not (self.spheres or self.triangles or self.planes or self.lights)

    def summary(self):
        return "{} spheres, {} triangles, {} planes, {} lights".format(
            len(self.spheres), len(self.triangles), len(self.planes), len(self.lights)
        )


def parse_float(token):
    """
    Read the leading number of a token the way C's atof does; 0.0 if there is none.

    Accepts decimal and hexadecimal floats, inf, infinity and nan.
    """
    match = _HEX_PREFIX.match(token)
    if match is not None:
        return float.fromhex(match.group())

    match = _SPECIAL_PREFIX.match(token) or _FLOAT_PREFIX.match(token)
    if match is None:
        return 0.0
    return float(match.group())


def parse_scene_text(text):
    """
    Parse a whitespace-tokenized scene description.

    Blocks look like ``sphere { cx cy cz r }``. A keyword not followed by
    ``{`` drops the block (and the token after it). A block whose first
    value is a skip sentinel adds nothing. Any other token is ignored.
    """
    scene = Scene()
    tokens = iter(text.split())

    for word in tokens:
        arity = BLOCK_ARITY.get(word)
        if arity is None:
            continue

        if next(tokens, None) != "{":
            continue

        first = next(tokens, None)
        if first is None or first in SKIP_SENTINELS:
            continue

        values = [parse_float(first)]
        values.extend(parse_float(next(tokens, "")) for _ in range(arity - 1))
        scene.add(word, values)

    return scene


def parse_scene_file(file_path):
    """
    Parse a scene file. A missing or unreadable file gives an empty scene;
    undecodable bytes are replaced and the rest of the file still parses.
    """
    try:
        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            text = f.read()
    except OSError as e:
        print(f"Warning: could not read scene file {file_path}: {e.strerror}")
        return Scene()

    return parse_scene_text(text)
