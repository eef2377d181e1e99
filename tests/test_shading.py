import unittest
import numpy as np

from camera import Camera
from material import DEFAULT_MATERIALS, MATERIAL_TABLE, Material, lookup_material, material_arrays
from ray_tracer import prepare_surface_data, trace_rays
from scene import MAX_PRIMITIVES_PER_KIND, PLANE, SPHERE, TRIANGLE, parse_scene_text


def shade_center(scene_text, scene_id=1, background=(0.0, 0.0, 0.0)):
    scene = parse_scene_text(scene_text)
    rays = Camera(8, 8).generate_all_rays()
    albedos, exponents = material_arrays(scene_id)
    colors = trace_rays(rays, prepare_surface_data(scene), albedos, exponents, background)
    return colors[4 * 8 + 4], colors, rays


WALL = "triangle { -8 -8 -5 8 -8 -5 0 8 -5 }"


class TestMaterialLookup(unittest.TestCase):

    def test_scene1_triangle_ranges(self):
        self.assertEqual(lookup_material(1, TRIANGLE, 0), Material((0, 0, 1), 10))
        self.assertEqual(lookup_material(1, TRIANGLE, 3), Material((0, 0, 1), 10))
        self.assertEqual(lookup_material(1, TRIANGLE, 4), Material((1, 1, 1), 10))
        self.assertEqual(lookup_material(1, TRIANGLE, 7), Material((0, 1, 0), 10))
        self.assertEqual(lookup_material(1, TRIANGLE, 9), Material((1, 0, 0), 10))
        self.assertEqual(lookup_material(1, TRIANGLE, 11), Material((0.5, 0.5, 0.5), 10))

    def test_scene1_spheres_and_planes(self):
        self.assertEqual(lookup_material(1, SPHERE, 0).albedo.tolist(), [0.5, 0.5, 0.5])
        self.assertEqual(lookup_material(1, PLANE, 3).albedo.tolist(), [0.7, 0.7, 0.7])

    def test_default_outside_ranges(self):
        self.assertEqual(lookup_material(1, TRIANGLE, 40), DEFAULT_MATERIALS[TRIANGLE])

    def test_unknown_scene_or_kind(self):
        with self.assertRaises(ValueError):
            lookup_material(4, SPHERE, 0)
        with self.assertRaises(ValueError):
            lookup_material(1, 7, 0)

    def test_exponents(self):
        exponents = {material.exponent
                     for entries in MATERIAL_TABLE.values()
                     for _, _, material in entries}
        self.assertEqual(exponents, {10.0, 1000.0, 10000.0})

    def test_every_preset_and_kind_has_entries(self):
        for scene_id in (1, 2, 3):
            for kind in (SPHERE, TRIANGLE, PLANE):
                self.assertIn((scene_id, kind), MATERIAL_TABLE)

    def test_material_arrays(self):
        albedos, exponents = material_arrays(2)
        self.assertEqual(albedos.shape, (3, MAX_PRIMITIVES_PER_KIND, 3))
        self.assertEqual(exponents.shape, (3, MAX_PRIMITIVES_PER_KIND))
        np.testing.assert_array_equal(albedos[SPHERE, 5], lookup_material(2, SPHERE, 5).albedo)
        self.assertEqual(exponents[SPHERE, 5], 10000.0)


class TestShading(unittest.TestCase):

    def test_light_behind_surface(self):
        # N = (0,0,1), L = H = (0,0,-1): the inverted dot products give 1
        color, _, _ = shade_center("light { 0 0 -10 } " + WALL)
        np.testing.assert_almost_equal(color, [0, 0, 1.5])

    def test_light_in_front_of_surface(self):
        # L = (0,0,1) gives no diffuse; H is the zero vector so no specular
        color, _, _ = shade_center("light { 0 0 0 } " + WALL)
        np.testing.assert_almost_equal(color, [0, 0, 0.5])

    def test_no_light_is_ambient_only(self):
        color, _, _ = shade_center(WALL)
        np.testing.assert_almost_equal(color, [0, 0, 0.5])

    def test_only_first_light_used(self):
        first, _, _ = shade_center("light { 0 0 -10 } light { 0 0 0 } " + WALL)
        np.testing.assert_almost_equal(first, [0, 0, 1.5])

    def test_plane_color(self):
        color, _, _ = shade_center("light { 0 0 -10 } plane { 0 0 2 0 0 -5 }")
        np.testing.assert_almost_equal(color, [1.05, 1.05, 1.05])

    def test_material_depends_on_scene(self):
        color, _, _ = shade_center("light { 0 0 -10 } plane { 0 0 1 0 0 -5 }", scene_id=2)
        np.testing.assert_almost_equal(color, 1.5 * np.array([0.4, 0.45, 0.5]))

    def test_background(self):
        _, colors, rays = shade_center("sphere { 0 0 -8 0.5 }", background=(0.1, 0.2, 0.3))
        misses = ~rays.hit_mask
        self.assertTrue(np.any(misses))
        np.testing.assert_almost_equal(colors[misses], np.tile([0.1, 0.2, 0.3], (misses.sum(), 1)))

    def test_sphere_normal_is_radial(self):
        # center pixel: hit point (-2,-2,-4), N = unit(-2,-2,4), light at (4,4,0)
        color, _, _ = shade_center("light { 4 4 0 } sphere { 0 0 -8 0.5 }")
        n = np.array([-2, -2, 4]) / np.sqrt(24)
        l = np.array([6, 6, 4]) / np.sqrt(88)
        h = np.array([1, 1, 0]) / np.sqrt(2)
        diffuse = max(0.0, -n.dot(l))
        specular = max(0.0, -n.dot(h)) ** 1000
        expected = 0.5 * (0.5 + 0.5 * diffuse) + 0.5 * 0.5 * specular
        np.testing.assert_almost_equal(color, [expected] * 3)
        self.assertAlmostEqual(expected, 0.2935195, places=6)


if __name__ == '__main__':
    unittest.main()
