import numpy as np
from numba import njit


EPSILON = 1e-6

# Determinants and denominators below this are treated as a ray parallel to the surface
PARALLEL_EPSILON = 1e-10


def vec(values):
    """Shorthand for a double-precision 3D vector."""
    return np.array(values, dtype=np.float64)


def normalize(v):
    """Normalize a vector."""
    norm = np.linalg.norm(v)
    if norm < EPSILON:
        return v
    return v / norm


def normalize_batch(v):
    """Normalize an array of vectors (N, 3)."""
    norms = np.linalg.norm(v, axis=1, keepdims=True)
    norms = np.maximum(norms, EPSILON)  # Avoid division by zero
    return v / norms


@njit(cache=True)
def unit3(x, y, z):
    """Normalize a vector given by its components (JIT-compiled)."""
    norm = np.sqrt(x*x + y*y + z*z)
    if norm < EPSILON:
        return x, y, z
    return x / norm, y / norm, z / norm
