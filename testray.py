import os
import tempfile
import unittest
from unittest import mock

import numpy as np

import ray
from ray import *
from geometry import Sphere, CheckerboardPlane, no_hit
from materials import Material
from ExampleSceneDef import ClassicExample, FullExample, SingleSphereExample
from utils import vec, norm, normalize, cross, reflect, refract


def assert_direction_matches(v, w):
    np.testing.assert_almost_equal(normalize(v), normalize(w))


def flipy_vec(vect):
    v = vec(vect);
    v[1] = 1-v[1];
    return v;


def small_config(**kwargs):
    kwargs.setdefault('width', 16)
    kwargs.setdefault('height', 12)
    return RenderConfig(**kwargs)


class TestVectors(unittest.TestCase):

    def test_vec_dimensions(self):
        self.assertEqual(vec([1, 2]).shape, (2,))
        self.assertEqual(vec([1, 2, 3, 4]).shape, (4,))
        with self.assertRaises(ValueError):
            vec([1])
        with self.assertRaises(ValueError):
            vec([1, 2, 3, 4, 5])

    def test_normalize(self):
        np.testing.assert_allclose(normalize(vec([3, 0, 4])), [0.6, 0, 0.8], rtol=1e-6)
        np.testing.assert_allclose(normalize(vec([3, 0, 4]), 2.0), [1.2, 0, 1.6], rtol=1e-6)
        self.assertAlmostEqual(norm(normalize(vec([1, 2, 3, 4]))), 1.0, places=6)

    def test_normalize_zero_vector(self):
        with self.assertRaises(ValueError):
            normalize(vec([0, 0, 0]))

    def test_cross(self):
        np.testing.assert_allclose(cross(vec([1, 0, 0]), vec([0, 1, 0])), [0, 0, 1])
        with self.assertRaises(ValueError):
            cross(vec([1, 0]), vec([0, 1]))

    def test_double_reflection(self):
        I = normalize(vec([1, -1, 0.5]))
        N = vec([0, 1, 0])
        np.testing.assert_allclose(reflect(I, N), normalize(vec([1, 1, 0.5])), atol=1e-6)
        np.testing.assert_allclose(reflect(reflect(I, N), N), I, atol=1e-6)

    def test_refract_normal_incidence(self):
        out = refract(vec([0, 0, -1]), vec([0, 0, 1]), 1.5)
        np.testing.assert_allclose(out, [0, 0, -1], atol=1e-6)

    def test_refract_unit_index_keeps_direction(self):
        I = normalize(vec([1, -1, 0]))
        np.testing.assert_allclose(refract(I, vec([0, 1, 0]), 1.0), I, atol=1e-6)

    def test_refract_snell(self):
        # entering glass at 45 degrees: sin(theta_t) = sin(45) / 1.5
        out = refract(normalize(vec([1, -1, 0])), vec([0, 1, 0]), 1.5)
        self.assertAlmostEqual(norm(out), 1.0, places=5)
        self.assertAlmostEqual(out[0], np.sin(np.pi / 4) / 1.5, places=5)
        self.assertLess(out[1], 0)

    def test_refract_exiting(self):
        # leaving glass along the same path bends away from the normal
        I = vec([np.sin(np.pi / 4) / 1.5, np.sqrt(1 - (np.sin(np.pi / 4) / 1.5) ** 2), 0])
        out = refract(I, vec([0, 1, 0]), 1.5)
        np.testing.assert_allclose(normalize(out), normalize(vec([1, 1, 0])), atol=1e-5)

    def test_total_internal_reflection(self):
        out = refract(normalize(vec([1, 0.1, 0])), vec([0, 1, 0]), 1.5)
        np.testing.assert_array_equal(out, np.zeros(3))


class TestEntities(unittest.TestCase):

    def test_material_albedo_padding(self):
        np.testing.assert_array_equal(Material().albedo, [1, 0, 0, 0])
        np.testing.assert_allclose(Material(vec([0.6, 0.3])).albedo, [0.6, 0.3, 0, 0], rtol=1e-6)
        with self.assertRaises(ValueError):
            Material(vec([0.6, 0.3, 0.1]))

    def test_sphere_radius_must_be_positive(self):
        with self.assertRaises(ValueError):
            Sphere(vec([0, 0, 0]), 0.0, Material())
        with self.assertRaises(ValueError):
            Sphere(vec([0, 0, 0]), -1.0, Material())

    def test_light_intensity_must_be_positive(self):
        with self.assertRaises(ValueError):
            Light(vec([0, 0, 0]), 0.0)


class TestSphereIntersect(unittest.TestCase):

    def test_head_on(self):
        sphere = Sphere(vec([0, 0, 0]), 1.5, Material())
        for d in (2.0, 5.0, 40.0):
            t = sphere.ray_intersect(np.array([0, 0, d]), np.array([0., 0., -1.]))
            self.assertAlmostEqual(t, d - 1.5, places=5)

    def test_off_center(self):
        sphere = Sphere(vec([0, 0, 0]), 1.0, Material())
        t = sphere.ray_intersect(np.array([1.0, 0.5, 0.0]), np.array([-1., 0., 0.]))
        self.assertAlmostEqual(t, 1 - np.sin(np.pi / 3), places=6)

    def test_miss(self):
        sphere = Sphere(vec([0, 0, 0]), 1.0, Material())
        self.assertIsNone(sphere.ray_intersect(np.array([0, 3, 5]), np.array([0., 0., -1.])))

    def test_origin_inside(self):
        sphere = Sphere(vec([0, 0, 0]), 2.0, Material())
        t = sphere.ray_intersect(np.array([0., 0., 0.]), np.array([1., 0., 0.]))
        self.assertAlmostEqual(t, 2.0)

    def test_sphere_behind_origin(self):
        sphere = Sphere(vec([0, 0, 10]), 1.0, Material())
        self.assertIsNone(sphere.ray_intersect(np.array([0., 0., 0.]), np.array([0., 0., -1.])))


class TestCheckerboard(unittest.TestCase):

    def test_parity(self):
        board = CheckerboardPlane()
        # floor(0.5) + floor(-6.5) = -7 is odd
        np.testing.assert_allclose(board.material_at([1, -4, -13]).diffuse_color, [0.3, 0.3, 0.3], rtol=1e-6)
        # floor(1.5) + floor(-6.5) = -6 is even
        np.testing.assert_allclose(board.material_at([3, -4, -13]).diffuse_color, [0.3, 0.2, 0.1], rtol=1e-6)

    def test_hit_inside_window(self):
        board = CheckerboardPlane()
        target = np.array([1., -4., -13.])
        t = board.ray_intersect(np.zeros(3), normalize(target))
        self.assertAlmostEqual(t, norm(target), places=5)

    def test_misses(self):
        board = CheckerboardPlane()
        orig = np.zeros(3)
        # near-parallel
        self.assertIsNone(board.ray_intersect(orig, normalize(np.array([0, 1e-4, -1]))))
        # pointing away from the plane
        self.assertIsNone(board.ray_intersect(orig, normalize(np.array([0, 1, -3]))))
        # outside the z window
        self.assertIsNone(board.ray_intersect(orig, normalize(np.array([0, -4, -5]))))
        # outside the x window
        self.assertIsNone(board.ray_intersect(orig, normalize(np.array([12, -4, -15]))))


class TestSceneIntersect(unittest.TestCase):

    def setUp(self):
        self.near = Material(diffuse_color=vec([1, 0, 0]))
        self.far = Material(diffuse_color=vec([0, 1, 0]))
        self.orig = np.zeros(3)
        self.down_z = np.array([0., 0., -1.])

    def test_empty_scene(self):
        self.assertIs(scene_intersect(self.orig, self.down_z, Scene([])), no_hit)

    def test_nearest_sphere_wins(self):
        scene = Scene([
            Sphere(vec([0, 0, -20]), 1, self.far),
            Sphere(vec([0, 0, -10]), 1, self.near),
        ])
        hit = scene_intersect(self.orig, self.down_z, scene)
        self.assertAlmostEqual(hit.t, 9.0)
        self.assertIs(hit.material, self.near)
        np.testing.assert_allclose(hit.point, [0, 0, -9], atol=1e-6)
        np.testing.assert_allclose(hit.normal, [0, 0, 1], atol=1e-6)

    def test_far_plane(self):
        scene = Scene([Sphere(vec([0, 0, -2000]), 1, self.near)])
        self.assertIs(scene_intersect(self.orig, self.down_z, scene), no_hit)
        hit = scene_intersect(self.orig, self.down_z, scene, far_plane=5000.)
        self.assertAlmostEqual(hit.t, 1999.0, places=3)

    def test_scene_intersect_method(self):
        scene = Scene([Sphere(vec([0, 0, -10]), 1, self.near)])
        hit = scene.intersect(Ray(self.orig, self.down_z))
        self.assertAlmostEqual(hit.t, 9.0)

    def test_checkerboard_competes_with_spheres(self):
        dir = normalize(np.array([1., -4., -13.]))
        behind = Sphere(vec([3, -12, -39]), 1, self.near)
        scene = Scene([behind], checkerboard=CheckerboardPlane())
        hit = scene_intersect(self.orig, dir, scene)
        np.testing.assert_allclose(hit.normal, [0, 1, 0])
        np.testing.assert_allclose(hit.point, [1, -4, -13], atol=1e-5)
        np.testing.assert_allclose(hit.material.diffuse_color, [0.3, 0.3, 0.3], rtol=1e-6)

        in_front = Sphere(vec([0.5, -2, -6.5]), 1, self.near)
        scene = Scene([behind, in_front], checkerboard=CheckerboardPlane())
        self.assertIs(scene_intersect(self.orig, dir, scene).material, self.near)


class TestCastRay(unittest.TestCase):

    def setUp(self):
        self.orig = np.zeros(3)
        self.down_z = np.array([0., 0., -1.])
        self.bg = vec([0.2, 0.7, 0.8])

    def test_miss_returns_background(self):
        scene = Scene([Sphere(vec([0, 0, -10]), 1, Material())], lights=[Light(vec([0, 10, 0]), 1.0)])
        np.testing.assert_array_equal(cast_ray(self.orig, np.array([0., 1., 0.]), scene), self.bg)
        np.testing.assert_array_equal(cast_ray(self.orig, self.down_z, Scene([])), self.bg)

    def test_diffuse(self):
        mat = Material(vec([1, 0]), vec([0.5, 0.25, 0.1]))
        scene = Scene([Sphere(vec([0, 0, -5]), 1, mat)], lights=[Light(vec([0, 0, 10]), 2.0)])
        np.testing.assert_allclose(cast_ray(self.orig, self.down_z, scene), [1.0, 0.5, 0.2], rtol=1e-6)

    def test_specular(self):
        mat = Material(vec([0, 1]), vec([0.5, 0.25, 0.1]), 10.)
        scene = Scene([Sphere(vec([0, 0, -5]), 1, mat)], lights=[Light(vec([0, 0, 10]), 2.0)])
        np.testing.assert_allclose(cast_ray(self.orig, self.down_z, scene), [2, 2, 2], rtol=1e-6)

    def test_hard_shadow(self):
        mat = Material(vec([1, 0]), vec([0.5, 0.25, 0.1]))
        light = Light(vec([0, 0, 10]), 2.0)
        # the blocker sits behind the camera, between the surface and the light
        blocker = Sphere(vec([0, 0, 5]), 1, Material())
        scene = Scene([Sphere(vec([0, 0, -5]), 1, mat), blocker], lights=[light])
        np.testing.assert_array_equal(cast_ray(self.orig, self.down_z, scene), np.zeros(3))
        # a sphere beyond the light casts no shadow
        beyond = Sphere(vec([0, 0, 20]), 1, Material())
        scene = Scene([Sphere(vec([0, 0, -5]), 1, mat), beyond], lights=[light])
        np.testing.assert_allclose(cast_ray(self.orig, self.down_z, scene), [1.0, 0.5, 0.2], rtol=1e-6)

    def test_depth_past_bound_returns_background(self):
        scene = Scene([Sphere(vec([0, 0, -5]), 1, Material(diffuse_color=vec([1, 1, 1])))],
                      lights=[Light(vec([0, 0, 10]), 1.0)])
        np.testing.assert_array_equal(cast_ray(self.orig, self.down_z, scene, depth=5), self.bg)
        np.testing.assert_array_equal(cast_ray(self.orig, self.down_z, scene, depth=9), self.bg)
        np.testing.assert_array_equal(
            cast_ray(self.orig, self.down_z, scene, depth=2, config=RenderConfig(max_depth=1)), self.bg)

    def test_facing_mirrors_terminate(self):
        mirror = Material(vec([0, 0, 1, 0]), vec([1, 1, 1]))
        scene = Scene([
            Sphere(vec([0, 0, -5]), 2, mirror),
            Sphere(vec([0, 0, 5]), 2, mirror),
        ])
        with mock.patch('ray.cast_ray', wraps=ray.cast_ray) as counted:
            color = counted(self.orig, self.down_z, scene)
        # depths 0..4 each bounce once, depth 5 sees the background
        self.assertEqual(counted.call_count, MAX_DEPTH + 2)
        np.testing.assert_allclose(color, self.bg, rtol=1e-6)

    def test_mirror_depth_configurable(self):
        mirror = Material(vec([0, 0, 1, 0]), vec([1, 1, 1]))
        scene = Scene([
            Sphere(vec([0, 0, -5]), 2, mirror),
            Sphere(vec([0, 0, 5]), 2, mirror),
        ])
        with mock.patch('ray.cast_ray', wraps=ray.cast_ray) as counted:
            counted(self.orig, self.down_z, scene, config=RenderConfig(max_depth=1))
        self.assertEqual(counted.call_count, 3)

    def test_reflection_weight(self):
        half_mirror = Material(vec([0, 0, 0.5, 0]), vec([1, 1, 1]))
        scene = Scene([Sphere(vec([0, 0, -5]), 1, half_mirror)])
        # head-on: the reflected ray heads back past the camera into the background
        np.testing.assert_allclose(cast_ray(self.orig, self.down_z, scene), 0.5 * self.bg, rtol=1e-6)

    def test_transparent_sphere(self):
        # index 1 does not bend, so the ray passes through to the background
        clear = Material(vec([0, 0, 0, 1]), vec([1, 1, 1]), refractive_index=1.0)
        scene = Scene([Sphere(vec([0, 0, -5]), 1, clear)])
        np.testing.assert_allclose(cast_ray(self.orig, self.down_z, scene), self.bg, rtol=1e-6)

    def test_total_internal_reflection_adds_nothing(self):
        # leaves the unit sphere at (0.436, 0.9, 0) where the exit angle is past critical
        orig = np.array([0., 0.9, 0.])
        dir = np.array([1., 0., 0.])
        glass = Material(vec([0, 0, 0, 1]), vec([1, 1, 1]), refractive_index=1.5)
        scene = Scene([Sphere(vec([0, 0, 0]), 1, glass)])
        np.testing.assert_array_equal(cast_ray(orig, dir, scene), np.zeros(3))

        with_refraction = Material(vec([0, 0, 0.5, 1]), vec([1, 1, 1]), refractive_index=1.5)
        reflect_only = Material(vec([0, 0, 0.5, 0]), vec([1, 1, 1]), refractive_index=1.5)
        np.testing.assert_allclose(
            cast_ray(orig, dir, Scene([Sphere(vec([0, 0, 0]), 1, with_refraction)])),
            cast_ray(orig, dir, Scene([Sphere(vec([0, 0, 0]), 1, reflect_only)])))


class TestCamera(unittest.TestCase):

    def test_default_camera(self):
        # A camera located at the origin facing the -z direction
        cam = Camera()
        # Center ray is straight down the axis
        ray = cam.generate_ray(flipy_vec([0.5, 0.5]))
        np.testing.assert_almost_equal(ray.origin, vec([0,0,0]))
        assert_direction_matches(ray.direction, vec([0,0,-1]))
        # FOV is 90 degrees, so corner rays are centered in octants
        ray = cam.generate_ray(flipy_vec([0, 0]))
        assert_direction_matches(ray.direction, vec([-1,-1,-1]))
        ray = cam.generate_ray(flipy_vec([1, 0]))
        assert_direction_matches(ray.direction, vec([ 1,-1,-1]))
        ray = cam.generate_ray(flipy_vec([0, 1]))
        assert_direction_matches(ray.direction, vec([-1, 1,-1]))

    def test_aspect(self):
        # A camera with a different aspect ratio: rays should be scaled in x
        aspect = 1.5
        cam = Camera(aspect=aspect)
        ray = cam.generate_ray(flipy_vec([0.5, 0.5]))
        assert_direction_matches(ray.direction, vec([0,0,-1]))
        ray = cam.generate_ray(flipy_vec([1, 1]))
        assert_direction_matches(ray.direction, vec([aspect, 1, -1]))

    def test_arbitrary_frame(self):
        # A camera that lines up with nothing in particular
        eye = vec([3,4,5])
        target = vec([6,7,8])
        up = vec([1,2,3])
        vfov = 47
        cam = Camera(eye=eye, target=target, up=up, vfov=vfov)
        # Center ray points towards target
        ray = cam.generate_ray(flipy_vec([0.5, 0.5]))
        np.testing.assert_almost_equal(ray.origin, eye)
        assert_direction_matches(ray.direction, target - eye)

    def test_matches_pinhole_formula(self):
        width, height = 8, 6
        config = RenderConfig(width=width, height=height)
        cam = Camera(vfov=np.degrees(config.fov), aspect=config.aspect)
        scale = np.tan(config.fov / 2)
        for j in range(height):
            for i in range(width):
                x = (2 * (i + 0.5) / width - 1) * scale * width / height
                y = -(2 * (j + 0.5) / height - 1) * scale
                ray = cam.generate_ray(np.array([(i + 0.5) / width, (j + 0.5) / height]))
                np.testing.assert_allclose(ray.direction, normalize(np.array([x, y, -1.])), atol=1e-6)


class TestRender(unittest.TestCase):

    def test_empty_scene(self):
        pix = render_image(Scene([]), small_config())
        self.assertEqual(pix.shape, (12, 16, 3))
        self.assertEqual(pix.dtype, np.float32)
        np.testing.assert_array_equal(pix, np.broadcast_to(vec([0.2, 0.7, 0.8]), pix.shape))

    def test_single_sphere(self):
        scene = SingleSphereExample().scene
        width, height = 64, 48
        pix = render_image(scene, RenderConfig(width=width, height=height))
        bg = vec([0.2, 0.7, 0.8])
        diffuse_color = vec([0.4, 0.4, 0.3])

        # the sphere center (-3, 0, -16) projects to x = -3/16 on the z = -1 image plane
        i = int((-3 / 16 / (width / height) + 1) * width / 2)
        j = height // 2
        center = pix[j, i]
        self.assertLess(np.linalg.norm(center - diffuse_color), np.linalg.norm(center - bg))

        for (y, x) in [(0, 0), (0, width - 1), (height - 1, width - 1), (height - 1, 0)]:
            np.testing.assert_array_equal(pix[y, x], bg)

        from ImLite import tone_map
        np.testing.assert_array_equal(tone_map(pix)[0, 0], tone_map(bg))

    def test_worker_count_does_not_change_output(self):
        scene = FullExample().scene
        serial = render_image(scene, small_config(width=8, height=6))
        parallel = render_image(scene, small_config(width=8, height=6, workers=2))
        np.testing.assert_array_equal(serial, parallel)

    def test_examples_render(self):
        for example in (ClassicExample, FullExample):
            pix = render_image(example().scene, small_config())
            self.assertTrue(np.all(np.isfinite(pix)))
            self.assertTrue(np.all(pix >= 0))

    def test_render_writes_ppm(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, 'out.ppm')
            im = render(SingleSphereExample().scene, small_config(output_path=path))
            with open(path, 'rb') as f:
                data = f.read()
        header = b"P6\n16 12\n255\n"
        self.assertTrue(data.startswith(header))
        self.assertEqual(len(data), len(header) + 16 * 12 * 3)
        self.assertEqual(data[len(header):], im.ipixels.tobytes())

    def test_render_unwritable_path(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, 'missing', 'out.ppm')
            with self.assertRaises(OSError):
                render(Scene([]), small_config(width=2, height=2, output_path=path))

    def test_config_validation(self):
        with self.assertRaises(ValueError):
            RenderConfig(width=0)
        self.assertAlmostEqual(RenderConfig().aspect, 1024 / 768)


if __name__ == '__main__':
    unittest.main()
