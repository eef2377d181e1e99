import unittest
import numpy as np

from camera import NO_HIT, Camera
from ray_tracer import find_nearest_hits, plane_pass, prepare_surface_data, sphere_pass, triangle_pass
from scene import PLANE, SPHERE, TRIANGLE, parse_scene_text


MIXED_SCENE = """
    sphere { 0 0 -8 0.5 }
    sphere { 0.5 0.5 -8 0.3 }
    triangle { -1 -1 -5 1 -1 -5 -1 1 -5 }
    triangle { -3 -3 -9 3 -3 -9 0 3 -9 }
    plane { 0 1 0 0 -1 0 }
    plane { 0 0 1 0 0 -12 }
"""


def trace(scene_text, width=8, height=8):
    scene = parse_scene_text(scene_text)
    rays = Camera(width, height).generate_all_rays()
    find_nearest_hits(rays, prepare_surface_data(scene))
    return scene, rays


class TestNearestHit(unittest.TestCase):

    def test_best_distance_is_minimum(self):
        scene, rays = trace(MIXED_SCENE)
        primitives = ([(SPHERE, i, s) for i, s in enumerate(scene.spheres)] +
                      [(TRIANGLE, i, tri) for i, tri in enumerate(scene.triangles)] +
                      [(PLANE, i, p) for i, p in enumerate(scene.planes)])

        for ray_idx, direction in enumerate(rays.directions):
            hits = []
            for kind, index, primitive in primitives:
                t, _ = primitive.intersect(direction)
                if t is not None:
                    hits.append((t, kind, index))

            if not hits:
                self.assertEqual(rays.best_distance[ray_idx], NO_HIT)
                self.assertEqual(rays.hit_kind[ray_idx], -1)
                continue

            nearest = min(t for t, _, _ in hits)
            self.assertEqual(rays.best_distance[ray_idx], nearest)
            # the last primitive reaching the minimum shades the ray
            last = [(kind, index) for t, kind, index in hits if t == nearest][-1]
            self.assertEqual((rays.hit_kind[ray_idx], rays.hit_index[ray_idx]), last)

    def test_empty_scene(self):
        _, rays = trace("")
        self.assertTrue(np.all(rays.best_distance == NO_HIT))
        self.assertFalse(np.any(rays.hit_mask))

    def test_tie_goes_to_last_primitive(self):
        _, rays = trace("sphere { 0 0 -8 0.5 } sphere { 0 0 -8 0.5 }")
        self.assertTrue(np.any(rays.hit_mask))
        self.assertTrue(np.all(rays.hit_index[rays.hit_mask] == 1))

        _, rays = trace("triangle { -1 -1 -5 1 -1 -5 -1 1 -5 } triangle { -1 -1 -5 1 -1 -5 -1 1 -5 }")
        self.assertTrue(np.any(rays.hit_mask))
        self.assertTrue(np.all(rays.hit_index[rays.hit_mask] == 1))

    def test_tie_across_kinds_goes_to_later_pass(self):
        # the center ray is (0, 0, -2): the sphere test distance is |d| = 2
        # and the plane z = -4 is reached at t = 2
        scene = parse_scene_text("sphere { 0 0 0 2 } plane { 0 0 1 0 0 -4 }")
        data = prepare_surface_data(scene)
        rays = Camera(8, 8).generate_all_rays()
        center = 4 * 8 + 4

        sphere_pass(rays, data)
        self.assertEqual(rays.hit_kind[center], SPHERE)
        self.assertEqual(rays.best_distance[center], 2.0)
        np.testing.assert_array_equal(rays.hit_points[center], [0, 0, -2])
        self.assertEqual(np.count_nonzero(rays.hit_mask), 1)

        triangle_pass(rays, data)
        plane_pass(rays, data)
        self.assertEqual(rays.hit_kind[center], PLANE)
        self.assertEqual(rays.hit_index[center], 0)
        self.assertEqual(rays.best_distance[center], 2.0)
        np.testing.assert_almost_equal(rays.hit_points[center], [0, 0, -4])
        self.assertTrue(np.all(rays.hit_kind == PLANE))
        np.testing.assert_almost_equal(rays.best_distance, np.full(64, 2.0))

    def test_closer_earlier_primitive_kept(self):
        # sphere distances are below 1, the wall sits at t = 2.5
        _, rays = trace("sphere { 0 0 -8 0.5 } triangle { -8 -8 -5 8 -8 -5 0 8 -5 }")
        center = 4 * 8 + 4
        self.assertEqual(rays.hit_kind[center], SPHERE)
        self.assertEqual(rays.best_distance[center], 0.0)

    def test_passes_run_in_order(self):
        scene = parse_scene_text("sphere { 0 0 -8 0.5 } triangle { -8 -8 -5 8 -8 -5 0 8 -5 }")
        data = prepare_surface_data(scene)
        rays = Camera(8, 8).generate_all_rays()
        center = 4 * 8 + 4

        sphere_pass(rays, data)
        self.assertEqual(rays.hit_kind[center], SPHERE)
        triangle_pass(rays, data)
        self.assertEqual(rays.hit_kind[center], SPHERE)
        # pixels outside the sphere now see the wall
        self.assertEqual(rays.hit_kind[4 * 8], TRIANGLE)
        self.assertAlmostEqual(rays.best_distance[4 * 8], 2.5)
        plane_pass(rays, data)
        self.assertEqual(rays.hit_kind[center], SPHERE)

    def test_negative_plane_distance_wins(self):
        _, rays = trace("triangle { -8 -8 -5 8 -8 -5 0 8 -5 } plane { 0 1 0 0 -1 0 }")
        # col > 0 gives the plane a negative t, smaller than the wall's
        upper = 6 * 8 + 4
        self.assertEqual(rays.hit_kind[upper], PLANE)
        self.assertLess(rays.best_distance[upper], 0)

    def test_parallel_plane_never_hits(self):
        # rays of pixel row 4 have col = 0, parallel to a y-normal plane
        _, rays = trace("plane { 0 1 0 0 -1 0 }")
        self.assertTrue(np.all(rays.best_distance[32:40] == NO_HIT))
        self.assertTrue(np.all(np.isfinite(rays.best_distance)))

    def test_hit_points(self):
        _, rays = trace("triangle { -8 -8 -5 8 -8 -5 0 8 -5 }")
        center = 4 * 8 + 4
        np.testing.assert_almost_equal(rays.hit_points[center], [0, 0, -5])


if __name__ == '__main__':
    unittest.main()
