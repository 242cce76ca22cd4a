import unittest
import numpy as np
from tinyray.geometry import Checkerboard, Hit, Sphere, no_hit
from tinyray.materials import Material
from tinyray.ray import *
from tinyray.utils import cross, norm, normalize, vec

def assert_direction_matches(v, w):
    np.testing.assert_almost_equal(normalize(v), normalize(w))


def flipy_vec(vect):
    v = vec(vect);
    v[1] = 1-v[1];
    return v;

matte = Material(vec([0.5, 0.5, 0.5]), albedo=(1., 0., 0., 0.))


class TestVectorMath(unittest.TestCase):

    def test_normalize_gives_unit_length(self):
        rng = np.random.default_rng(7)
        for v in rng.uniform(-50, 50, size=(20, 3)):
            self.assertAlmostEqual(norm(normalize(v)), 1.0, places=6)

    def test_normalize_zero_is_not_an_error(self):
        self.assertTrue(np.all(np.isnan(normalize(np.zeros(3)))))

    def test_cross(self):
        np.testing.assert_array_equal(cross(vec([1,0,0]), vec([0,1,0])), vec([0,0,1]))
        np.testing.assert_array_equal(cross(vec([0,1,0]), vec([1,0,0])), vec([0,0,-1]))
        u, v = vec([1,2,3]), vec([-2,0.5,4])
        np.testing.assert_allclose(cross(u, v), np.cross(u, v))

    def test_norm(self):
        self.assertAlmostEqual(norm(vec([3,4,12])), 13.0, places=6)
        self.assertEqual(norm(np.zeros(3)), 0.0)


class TestRay(unittest.TestCase):

    def test_precision_and_end(self):
        ray = Ray(vec([1,2,3]), vec([0,0,-1]), 5.)
        self.assertEqual(ray.origin.dtype, np.float64)
        self.assertEqual(ray.direction.dtype, np.float64)
        self.assertEqual(ray.end, 5.)
        self.assertEqual(Ray(vec([0,0,0]), vec([0,0,-1])).end, np.inf)


class TestReflectRefract(unittest.TestCase):

    def test_reflect(self):
        np.testing.assert_allclose(reflect(vec([1,-1,0]), vec([0,1,0])), [1, 1, 0])

    def test_reflect_twice_is_identity(self):
        rng = np.random.default_rng(3)
        for _ in range(10):
            d = normalize(rng.normal(size=3))
            n = normalize(rng.normal(size=3))
            np.testing.assert_allclose(reflect(reflect(d, n), n), d, atol=1e-12)

    def test_refract_normal_incidence_is_straight(self):
        d = np.array([0., 0., -1.])
        for ior in (0.5, 1.0, 1.33, 1.5, 2.4):
            # entering
            np.testing.assert_allclose(refract(d, np.array([0., 0., 1.]), ior), d, atol=1e-12)
            # leaving
            np.testing.assert_allclose(refract(d, np.array([0., 0., -1.]), ior), d, atol=1e-12)

    def test_refract_snell(self):
        d = normalize(np.array([1., 0., -1.]))
        t = refract(d, np.array([0., 0., 1.]), 1.5)
        self.assertAlmostEqual(norm(t), 1.0)
        self.assertAlmostEqual(t[0], np.sin(np.pi/4) / 1.5)
        self.assertLess(t[2], 0)

    def test_refract_no_bending_at_index_one(self):
        d = normalize(np.array([0.3, -0.2, -1.]))
        np.testing.assert_allclose(refract(d, normalize(np.array([0.1, 0.2, 1.])), 1.0), d, atol=1e-12)

    def test_total_internal_reflection(self):
        # leaving glass at a grazing angle
        d = normalize(np.array([1., 0., -0.2]))
        np.testing.assert_array_equal(refract(d, np.array([0., 0., -1.]), 1.5), np.zeros(3))


class TestSphereIntersect(unittest.TestCase):

    def confirm_hit(self, sphere, ray):
        # make sure hit is self-consistent, then return it
        hit = sphere.intersect(ray)
        self.assertLess(hit.t, np.inf)
        np.testing.assert_almost_equal(ray.origin + hit.t * ray.direction, hit.point)
        np.testing.assert_almost_equal(normalize(hit.point - sphere.center), hit.normal)
        self.assertAlmostEqual(np.linalg.norm(hit.point - sphere.center), sphere.radius, places=6)
        self.assertIs(hit.material, sphere.material)
        return hit

    def test_unitsphere_hits(self):
        unit_sphere = Sphere(np.array([0,0,0]), 1.0, matte)
        # dead center hit
        hit = self.confirm_hit(unit_sphere, Ray(vec([2.0,0.0,0.0]), vec([-1.0,0.0,0.0])))
        self.assertAlmostEqual(hit.t, 1.0)
        # off center hit
        hit = self.confirm_hit(unit_sphere, Ray(vec([1.0,0.5,0.0]), vec([-1.0,0.0,0.0])))
        self.assertAlmostEqual(hit.t, 1 - np.sin(np.pi/3))
        # center hit from off axis
        hit = self.confirm_hit(unit_sphere, Ray(vec([2.0,3.0,4.0]), normalize(np.array([-2.0,-3.0,-4.0]))))
        self.assertAlmostEqual(hit.t, np.sqrt(29) - 1)

    def test_unitsphere_misses(self):
        unit_sphere = Sphere(vec([0,0,0]), 1.0, matte)
        # on axis miss
        hit = unit_sphere.intersect(Ray(vec([2.0,3.0,0.0]), vec([-1.0,0.0,0.0])))
        self.assertEqual(hit.t, np.inf)
        # sphere behind the origin
        hit = unit_sphere.intersect(Ray(vec([2.0,0.0,0.0]), vec([1.0,0.0,0.0])))
        self.assertIs(hit, no_hit)

    def test_origin_inside_uses_exit(self):
        unit_sphere = Sphere(vec([0,0,0]), 1.0, matte)
        hit = self.confirm_hit(unit_sphere, Ray(vec([0.0,0.0,0.0]), vec([1.0,0.0,0.0])))
        self.assertAlmostEqual(hit.t, 1.0)
        np.testing.assert_almost_equal(hit.normal, [1, 0, 0])

    def test_nonunit_hits(self):
        # all the same as the first case, but scaled by 3 and shifted by (-1, -5, -7)
        sphere = Sphere(vec([-1,-5,-7]), 3.0, matte)
        hit = self.confirm_hit(sphere, Ray(vec([5.0,-5.0,-7.0]), vec([-1.0,0.0,0.0])))
        self.assertAlmostEqual(hit.t, 3.0)
        hit = self.confirm_hit(sphere, Ray(vec([2.0,-3.5,-7.0]), vec([-1.0,0.0,0.0])))
        self.assertAlmostEqual(hit.t, 3 * (1 - np.sin(np.pi/3)))

    def test_bad_radius(self):
        with self.assertRaises(ValueError):
            Sphere(vec([0,0,0]), 0.0, matte)


class TestCheckerboard(unittest.TestCase):

    def test_floor_hit(self):
        floor = Checkerboard()
        hit = floor.intersect(Ray(vec([0,0,0]), normalize(np.array([0., -4., -21.]))))
        np.testing.assert_allclose(hit.point, [0, -4, -21], atol=1e-9)
        np.testing.assert_array_equal(hit.normal, [0, 1, 0])
        np.testing.assert_allclose(hit.material.diffuse_color, 0.3 * Checkerboard.ORANGE, rtol=1e-6)
        self.assertEqual(hit.material.albedo, (1., 0., 0., 0.))

    def test_tile_parity_truncates_toward_zero(self):
        floor = Checkerboard()
        # 0.5 * -15 truncates to -7, so the sum is odd
        np.testing.assert_allclose(floor.color_at(vec([1, -4, -15])), 0.3 * Checkerboard.WHITE, rtol=1e-6)
        np.testing.assert_allclose(floor.color_at(vec([3, -4, -21])), 0.3 * Checkerboard.WHITE, rtol=1e-6)
        np.testing.assert_allclose(floor.color_at(vec([0, -4, -21])), 0.3 * Checkerboard.ORANGE, rtol=1e-6)

    def test_floor_misses(self):
        floor = Checkerboard()
        origin = vec([0,0,0])
        # in front of the footprint
        self.assertIs(floor.intersect(Ray(origin, normalize(np.array([0., -4., -5.])))), no_hit)
        # beside it
        self.assertIs(floor.intersect(Ray(origin, normalize(np.array([12., -4., -20.])))), no_hit)
        # nearly parallel
        self.assertIs(floor.intersect(Ray(origin, normalize(np.array([0., -1e-4, -1.])))), no_hit)
        # pointing away
        self.assertIs(floor.intersect(Ray(origin, vec([0, 1, 0]))), no_hit)


class TestScene(unittest.TestCase):

    def test_nearest_sphere_wins(self):
        near = Sphere(vec([0,0,-5]), 1.0, Material(vec([1,0,0])))
        far = Sphere(vec([0,0,-10]), 1.0, Material(vec([0,1,0])))
        for surfs in ([near, far], [far, near]):
            hit = Scene(surfs).intersect(Ray(vec([0,0,0]), vec([0,0,-1])))
            self.assertAlmostEqual(hit.t, 4.0)
            self.assertIs(hit.material, near.material)

    def test_tie_keeps_first(self):
        a = Sphere(vec([0,0,-5]), 1.0, Material(vec([1,0,0])))
        b = Sphere(vec([0,0,-5]), 1.0, Material(vec([0,1,0])))
        hit = Scene([a, b]).intersect(Ray(vec([0,0,0]), vec([0,0,-1])))
        self.assertIs(hit.material, a.material)

    def test_floor_in_front_of_sphere(self):
        # on the same ray, just below the floor
        behind = Sphere(vec([0,-5,-26.25]), 0.5, matte)
        direction = normalize(np.array([0., -4., -21.]))
        ray = Ray(vec([0,0,0]), direction)
        self.assertLess(Scene([behind]).intersect(ray).t, np.inf)
        hit = Scene([behind], floor=Checkerboard()).intersect(ray)
        np.testing.assert_array_equal(hit.normal, [0, 1, 0])
        self.assertIsNot(hit.material, matte)

    def test_far_hits_are_background(self):
        scene = Scene([Sphere(vec([0,0,-2000]), 10.0, matte)])
        self.assertIs(scene.intersect(Ray(vec([0,0,0]), vec([0,0,-1]))), no_hit)

    def test_is_occluded(self):
        scene = Scene([Sphere(vec([0,0,-5]), 1.0, matte)])
        self.assertTrue(scene.is_occluded(Ray(vec([0,0,0]), vec([0,0,-1]), end=10.)))
        self.assertFalse(scene.is_occluded(Ray(vec([0,0,0]), vec([0,0,-1]), end=3.)))
        self.assertFalse(Scene([]).is_occluded(Ray(vec([0,0,0]), vec([0,0,-1]), end=3.)))


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

    def test_pixel_ray(self):
        # 60 degree field of view on a 4:3 image
        width, height = 1024, 768
        cam = Camera(vfov=60, aspect=width/height)
        s = np.tan(np.pi/6)
        for i, j in [(0, 0), (511, 383), (1023, 767), (100, 600)]:
            x = (2 * (i + 0.5) / width - 1) * s * width / height
            y = -(2 * (j + 0.5) / height - 1) * s
            ray = cam.pixel_ray(i, j, width, height)
            np.testing.assert_allclose(ray.direction, normalize(np.array([x, y, -1.])), atol=1e-6)
            self.assertAlmostEqual(norm(ray.direction), 1.0)

    def test_wide_frame(self):
        # 60 degree field of view on a 4:3 image, still looking down -z
        cam = Camera(vfov=60, aspect=4/3)
        s = np.tan(np.pi/6)
        ray = cam.generate_ray(flipy_vec([0.5, 0.5]))
        np.testing.assert_almost_equal(ray.origin, vec([0,0,0]))
        assert_direction_matches(ray.direction, vec([0,0,-1]))
        # corners are stretched horizontally by the aspect ratio
        ray = cam.generate_ray(flipy_vec([0, 0]))
        assert_direction_matches(ray.direction, np.array([-s*4/3, -s, -1]))
        ray = cam.generate_ray(flipy_vec([1, 1]))
        assert_direction_matches(ray.direction, np.array([ s*4/3,  s, -1]))

    def test_frame_is_orthonormal(self):
        cam = Camera(vfov=60, aspect=4/3)
        np.testing.assert_allclose(cam.u, [1, 0, 0], atol=1e-7)
        np.testing.assert_allclose(cam.v, [0, 1, 0], atol=1e-7)
        np.testing.assert_allclose(cam.w, [0, 0, 1], atol=1e-7)


class TestPointLight(unittest.TestCase):

    def shading_test(self, p, n, d, l, r, I, material, scene):
        # shading at p with normal n, seen along direction d, lit from direction l
        # r is distance to light, I is intensity
        t = 1.3        # arbitrary value
        ray = Ray(p - t*d, d)  # ray consistent with hit
        hit = Hit(t, p, n, material)
        light = PointLight(p + r * normalize(l), I)
        return light.illuminate(ray, hit, scene)

    def test_diffuse(self):
        # light directly overhead, unit distance and intensity
        diffuse, _ = self.shading_test(
            vec([0,0,0]), vec([0,1,0]), normalize(vec([1, -1, 0])),  # p, n, d
            vec([0,1,0]), 1, 1.0,  # l, r, I
            matte, Scene([]))
        self.assertAlmostEqual(diffuse, 1.0)
        # light at 60 degrees, intensity 2
        diffuse, _ = self.shading_test(
            vec([0,0,0]), vec([0,1,0]), normalize(vec([1, -1, 0])),
            vec([0,1,np.sqrt(3)]), 1, 2.0,
            matte, Scene([]))
        self.assertAlmostEqual(diffuse, 1.0, places=6)
        # light below the surface
        diffuse, _ = self.shading_test(
            vec([0,0,0]), vec([0,1,0]), normalize(vec([1, -1, 0])),
            vec([0,-1,0]), 1, 1.0,
            matte, Scene([]))
        self.assertEqual(diffuse, 0.0)

    def test_specular(self):
        shiny = Material(vec([0,0,0]), albedo=(0., 1., 0., 0.), specular_exponent=50.)
        # mirror direction of the light points straight at the viewer
        _, specular = self.shading_test(
            vec([0,0,0]), vec([0,1,0]), vec([0,-1,0]),
            vec([0,1,0]), 5, 1.5,
            shiny, Scene([]))
        self.assertAlmostEqual(specular, 1.5)
        # off the mirror direction the highlight falls off with the exponent
        _, specular = self.shading_test(
            vec([0,0,0]), vec([0,1,0]), vec([0,-1,0]),
            vec([1,1,0]), 5, 1.5,
            shiny, Scene([]))
        self.assertAlmostEqual(specular, 1.5 * np.cos(np.pi/4) ** 50)

    def test_shadow(self):
        blocker = Sphere(vec([0,2,0]), 0.5, matte)
        shading = self.shading_test(
            vec([0,0,0]), vec([0,1,0]), vec([0,-1,0]),
            vec([0,1,0]), 5, 1.0,
            matte, Scene([blocker]))
        self.assertEqual(shading, (0.0, 0.0))
        # a sphere beyond the light does not shadow
        shading = self.shading_test(
            vec([0,0,0]), vec([0,1,0]), vec([0,-1,0]),
            vec([0,1,0]), 1, 1.0,
            matte, Scene([blocker]))
        self.assertAlmostEqual(shading[0], 1.0)


class TestCastRay(unittest.TestCase):

    def test_background_when_nothing_is_hit(self):
        from tinyray.scene import scene, lights
        color = cast_ray(Ray(vec([0,0,0]), vec([0,1,0])), scene, lights)
        np.testing.assert_array_equal(color, vec([0.2, 0.7, 0.8]))

    def test_depth_limit_returns_background(self):
        scene = Scene([Sphere(vec([0,0,-5]), 1.0, matte)])
        lights = [PointLight(vec([0,0,10]), 1.0)]
        ray = Ray(vec([0,0,0]), vec([0,0,-1]))
        np.testing.assert_array_equal(cast_ray(ray, scene, lights, MAX_DEPTH + 1), scene.bg_color)
        self.assertFalse(np.allclose(cast_ray(ray, scene, lights, MAX_DEPTH), scene.bg_color))

    def test_background_result_is_a_copy(self):
        scene = Scene([])
        for depth in (0, MAX_DEPTH + 1):
            color = cast_ray(Ray(vec([0,0,0]), vec([0,0,-1])), scene, [], depth)
            color *= 0
            np.testing.assert_array_equal(scene.bg_color, vec([0.2, 0.7, 0.8]))

    def test_diffuse_sphere(self):
        scene = Scene([Sphere(vec([0,0,-10]), 2.0, matte)])
        lights = [PointLight(vec([0,0,10]), 1.5)]
        color = cast_ray(Ray(vec([0,0,0]), vec([0,0,-1])), scene, lights)
        np.testing.assert_allclose(color, [0.75, 0.75, 0.75], rtol=1e-5)

    def test_occluder_removes_light(self):
        target = Sphere(vec([0,0,-10]), 2.0, matte)
        # behind the camera, between the lit point and the light
        occluder = Sphere(vec([0,0,5]), 0.5, matte)
        lights = [PointLight(vec([0,0,10]), 1.5)]
        ray = Ray(vec([0,0,0]), vec([0,0,-1]))
        lit = cast_ray(ray, Scene([target]), lights)
        shadowed = cast_ray(ray, Scene([target, occluder]), lights)
        np.testing.assert_allclose(shadowed, [0, 0, 0], atol=1e-12)
        self.assertGreater(lit.sum(), 2.0)

    def test_mirror_reflects_background(self):
        mirror = Material(vec([1,1,1]), albedo=(0., 0., 1., 0.))
        scene = Scene([Sphere(vec([0,0,-5]), 1.0, mirror)])
        color = cast_ray(Ray(vec([0,0,0]), vec([0,0,-1])), scene, [])
        np.testing.assert_allclose(color, scene.bg_color, rtol=1e-6)

    def test_total_internal_reflection_is_finite(self):
        glass = Material(vec([0.6,0.7,0.8]), albedo=(0., 0., 0., 1.), specular_exponent=125., refractive_index=1.5)
        scene = Scene([Sphere(vec([0,0,0]), 1.0, glass)])
        # starts inside and meets the surface far beyond the critical angle
        color = cast_ray(Ray(vec([0.9,0,0]), vec([0,0,-1])), scene, [])
        self.assertTrue(np.all(np.isfinite(color)))
        np.testing.assert_allclose(color, scene.bg_color, rtol=1e-6)


class TestMaterial(unittest.TestCase):

    def test_default(self):
        m = Material.default()
        self.assertEqual(m.albedo, (1., 0., 0., 0.))
        np.testing.assert_array_equal(m.diffuse_color, [0, 0, 0])
        self.assertEqual(m.specular_exponent, 0.)
        self.assertEqual(m.refractive_index, 1.0)

    def test_albedo_needs_four_weights(self):
        with self.assertRaises(ValueError):
            Material(vec([1,1,1]), albedo=(1., 0., 0.))


if __name__ == '__main__':
    unittest.main()
