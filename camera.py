import numpy as np


# The camera sits at the world origin and never moves; the intersection
# kernels still subtract it from every primitive.
CAMERA_POSITION = np.zeros(3, dtype=np.float64)

# Distance value of a ray that has not hit anything yet
NO_HIT = -1.0

CONVENTIONS = ("unnormalized", "normalized")


class RayBatch:
    """
    Per-frame ray storage, one entry per pixel in raster order.

    best_distance holds NO_HIT until a primitive is hit; hit_points,
    hit_kind and hit_index describe the primitive that shades the pixel
    (hit_kind is -1 where nothing was hit).
    """

    def __init__(self, directions):
        self.directions = np.ascontiguousarray(directions, dtype=np.float64)
        n = self.directions.shape[0]
        self.best_distance = np.full(n, NO_HIT)
        self.hit_points = np.zeros((n, 3))
        self.hit_kind = np.full(n, -1, dtype=np.int32)
        self.hit_index = np.full(n, -1, dtype=np.int32)

    def __len__(self):
        return self.directions.shape[0]

    @property
    def hit_mask(self):
        return self.hit_kind >= 0


class Camera:
    def __init__(self, width, height, convention="unnormalized", focal_offset=-2.0):
        if width <= 0 or height <= 0:
            raise ValueError("Image size must be positive, got {}x{}".format(width, height))
        if convention not in CONVENTIONS:
            raise ValueError("Unknown ray convention: {}".format(convention))

        self.position = CAMERA_POSITION
        self.width = int(width)
        self.height = int(height)
        self.convention = convention
        self.focal_offset = focal_offset

    def screen_coordinates(self, row_start, row_end):
        """
        Normalized screen coordinates for pixel rows [row_start, row_end).

        Returns (row, col) arrays in raster order: row = 2*(j/W) - 1 runs
        along the pixel columns j and varies fastest, col = 2*(i/H) - 1
        follows the pixel rows i.
        """
        j = np.arange(self.width, dtype=np.float64)
        i = np.arange(row_start, row_end, dtype=np.float64)

        jj, ii = np.meshgrid(j, i)
        row = 2.0 * (jj.ravel() / self.width) - 1.0
        col = 2.0 * (ii.ravel() / self.height) - 1.0
        return row, col

    def screen_positions(self):
        """(W*H, 2) array of (row, col) screen positions for the display buffer."""
        row, col = self.screen_coordinates(0, self.height)
        return np.column_stack((row, col)).astype(np.float32)

    def _directions(self, row, col):
        if self.convention == "unnormalized":
            return np.column_stack((row, col, np.full(row.shape, self.focal_offset)))

        directions = np.column_stack((row, col, np.ones(row.shape)))
        norms = np.linalg.norm(directions, axis=1, keepdims=True)
        return directions / norms

    def generate_ray(self, j, i):
        """Direction of the ray through pixel column j of pixel row i."""
        row = np.array([2.0 * (j / self.width) - 1.0])
        col = np.array([2.0 * (i / self.height) - 1.0])
        return self._directions(row, col)[0]

    def generate_all_rays(self):
        """Generate all rays for the entire image at once (vectorized)."""
        return self.generate_rays_for_rows(0, self.height)

    def generate_rays_for_rows(self, row_start, row_end):
        """Generate rays for a range of pixel rows (for parallel rendering)."""
        row, col = self.screen_coordinates(row_start, row_end)
        return RayBatch(self._directions(row, col))
