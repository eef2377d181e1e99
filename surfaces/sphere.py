import numpy as np
from numba import njit

from camera import CAMERA_POSITION
from utils import normalize


@njit(cache=True)
def sphere_distance(dx, dy, dz, ox, oy, oz, cx, cy, cz, radius):
    """
    Closest-approach test of a ray direction against a sphere (JIT-compiled).

    The direction is projected onto the camera-to-center vector, scaled by
    the squared length of the direction twice over. The test distance is the
    length of the direction minus that projection; the ray hits when the
    distance does not exceed the radius. This is not a true ray/sphere
    quadratic and the returned hit point is only an approximation used for
    lighting: each axis of the direction is shifted by (|d| - distance).

    Returns:
        (hit, distance, hit_x, hit_y, hit_z)
    """
    vx = cx - ox
    vy = cy - oy
    vz = cz - oz

    len_sq = dx*dx + dy*dy + dz*dz
    if len_sq == 0.0:
        return False, 0.0, 0.0, 0.0, 0.0

    scale = (vx*dx + vy*dy + vz*dz) / (len_sq * len_sq)

    px = dx - scale * dx
    py = dy - scale * dy
    pz = dz - scale * dz
    distance = np.sqrt(px*px + py*py + pz*pz)

    if not distance <= radius:
        return False, distance, 0.0, 0.0, 0.0

    shift = np.sqrt(len_sq) - distance
    return True, distance, dx - shift, dy - shift, dz - shift


class Sphere:
    def __init__(self, center, radius):
        self.center = np.array(center, dtype=np.float64)
        self.radius = float(radius)

    def intersect(self, ray_direction, ray_origin=CAMERA_POSITION):
        """Test a single ray. Returns (distance, hit_point) or (None, None)."""
        hit, distance, hx, hy, hz = sphere_distance(
            ray_direction[0], ray_direction[1], ray_direction[2],
            ray_origin[0], ray_origin[1], ray_origin[2],
            self.center[0], self.center[1], self.center[2], self.radius
        )
        if not hit:
            return None, None
        return distance, np.array([hx, hy, hz])

    def normal_at(self, point):
        """Radial unit normal through the given point."""
        return normalize(np.asarray(point, dtype=np.float64) - self.center)

    def as_array(self):
        return np.array([self.center[0], self.center[1], self.center[2], self.radius])

    def __repr__(self):
        return "Sphere(center={}, radius={})".format(self.center.tolist(), self.radius)
