import numpy as np
from numba import njit

from camera import CAMERA_POSITION
from utils import PARALLEL_EPSILON, normalize


@njit(cache=True)
def _det3(a, b, c, d, e, f, g, h, k):
    # a(ek - fh) - b(dk - fg) + c(dh - eg)
    return a*(e*k - f*h) - b*(d*k - f*g) + c*(d*h - e*g)


@njit(cache=True)
def triangle_distance(dx, dy, dz, ox, oy, oz, vertices):
    """
    Ray/triangle test by Cramer's rule (JIT-compiled).

    Solves  o + t*d = v0 + u*(v1 - v0) + v*(v2 - v0)  for (t, u, v), where
    vertices is a flat array of 9 floats. Every determinant has the columns
    (-d or o - v0, e1 or o - v0, e2 or o - v0). The sign of t is not checked.

    Returns:
        (hit, t, hit_x, hit_y, hit_z)
    """
    e1x = vertices[3] - vertices[0]
    e1y = vertices[4] - vertices[1]
    e1z = vertices[5] - vertices[2]
    e2x = vertices[6] - vertices[0]
    e2y = vertices[7] - vertices[1]
    e2z = vertices[8] - vertices[2]
    rx = ox - vertices[0]
    ry = oy - vertices[1]
    rz = oz - vertices[2]

    det = _det3(-dx, e1x, e2x,
                -dy, e1y, e2y,
                -dz, e1z, e2z)
    if abs(det) < PARALLEL_EPSILON:
        return False, 0.0, 0.0, 0.0, 0.0

    t = _det3(rx, e1x, e2x,
              ry, e1y, e2y,
              rz, e1z, e2z) / det
    u = _det3(-dx, rx, e2x,
              -dy, ry, e2y,
              -dz, rz, e2z) / det
    v = _det3(-dx, e1x, rx,
              -dy, e1y, ry,
              -dz, e1z, rz) / det

    if u >= 0.0 and v >= 0.0 and u + v <= 1.0 and np.isfinite(t):
        return True, t, ox + t*dx, oy + t*dy, oz + t*dz
    return False, t, 0.0, 0.0, 0.0


class Triangle:
    def __init__(self, vertices):
        """
        Create a triangle from three vertices (any shape holding 9 floats).
        Winding gives the normal: cross(v1 - v0, v2 - v0).
        """
        self.vertices = np.array(vertices, dtype=np.float64).reshape((3, 3))
        self.edge_1 = self.vertices[1] - self.vertices[0]
        self.edge_2 = self.vertices[2] - self.vertices[0]
        self.normal = normalize(np.cross(self.edge_1, self.edge_2))

    def intersect(self, ray_direction, ray_origin=CAMERA_POSITION):
        """Test a single ray. Returns (t, hit_point) or (None, None)."""
        hit, t, hx, hy, hz = triangle_distance(
            ray_direction[0], ray_direction[1], ray_direction[2],
            ray_origin[0], ray_origin[1], ray_origin[2],
            self.as_array()
        )
        if not hit:
            return None, None
        return t, np.array([hx, hy, hz])

    def normal_at(self, point):
        return self.normal

    def as_array(self):
        return self.vertices.ravel()

    def __repr__(self):
        return "Triangle(vertices={})".format(self.vertices.tolist())
