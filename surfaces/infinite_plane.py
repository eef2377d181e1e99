import numpy as np
from numba import njit

from camera import CAMERA_POSITION
from utils import PARALLEL_EPSILON, normalize


@njit(cache=True)
def plane_distance(dx, dy, dz, ox, oy, oz, plane):
    """
    Ray/plane test (JIT-compiled). Plane is [nx, ny, nz, px, py, pz].

    t = ((p - o) . n) / (d . n), accepted for either sign of t.

    Returns:
        (hit, t, hit_x, hit_y, hit_z)
    """
    nx = plane[0]
    ny = plane[1]
    nz = plane[2]

    denom = dx*nx + dy*ny + dz*nz
    if abs(denom) < PARALLEL_EPSILON:
        return False, 0.0, 0.0, 0.0, 0.0

    t = ((plane[3] - ox)*nx + (plane[4] - oy)*ny + (plane[5] - oz)*nz) / denom
    if not np.isfinite(t):
        return False, 0.0, 0.0, 0.0, 0.0

    return True, t, ox + t*dx, oy + t*dy, oz + t*dz


class InfinitePlane:
    def __init__(self, normal, point):
        # Kept as parsed; the distance formula is invariant to its length
        self.normal = np.array(normal, dtype=np.float64)
        self.point = np.array(point, dtype=np.float64)

    def intersect(self, ray_direction, ray_origin=CAMERA_POSITION):
        """Compute ray-plane intersection. Returns (t, hit_point) or (None, None)."""
        hit, t, hx, hy, hz = plane_distance(
            ray_direction[0], ray_direction[1], ray_direction[2],
            ray_origin[0], ray_origin[1], ray_origin[2],
            self.as_array()
        )
        if not hit:
            return None, None
        return t, np.array([hx, hy, hz])

    def normal_at(self, point):
        return normalize(self.normal)

    def as_array(self):
        return np.concatenate((self.normal, self.point))

    def __repr__(self):
        return "InfinitePlane(normal={}, point={})".format(self.normal.tolist(), self.point.tolist())
