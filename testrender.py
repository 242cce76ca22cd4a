import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO

import numpy as np
from PIL import Image as PIM

from tinyray import cli
from tinyray.ImLite import Image, encode
from tinyray.geometry import Sphere
from tinyray.materials import Material
from tinyray.ray import Camera, PointLight, Ray, Scene, cast_ray
from tinyray.render import Framebuffer, render_frame, render_image, row_bands
from tinyray.scene import scene, lights
from tinyray.utils import to_rgb8, vec

BACKGROUND_RGB8 = np.array([51, 178, 204])


def reference_pixel(i, j, width=1024, height=768):
    camera = Camera(vfov=60, aspect=width/height)
    color = cast_ray(camera.pixel_ray(i, j, width, height), scene, lights)
    return to_rgb8(color).astype(int)


class TestRowBands(unittest.TestCase):

    def assert_covers(self, bands, height):
        rows = [j for start, end in bands for j in range(start, end)]
        self.assertEqual(rows, list(range(height)))

    def test_even_split(self):
        bands = row_bands(768, 4)
        self.assertEqual(bands, [(0, 192), (192, 384), (384, 576), (576, 768)])

    def test_remainder_goes_to_last_band(self):
        bands = row_bands(768, 5)
        self.assertEqual(len(bands), 5)
        self.assertEqual(bands[-1], (612, 768))
        self.assert_covers(bands, 768)

    def test_more_workers_than_rows(self):
        bands = row_bands(3, 8)
        self.assertEqual(bands, [(0, 1), (1, 2), (2, 3)])

    def test_every_row_once(self):
        for height in (1, 7, 100, 768):
            for workers in (1, 2, 3, 7, 16):
                self.assert_covers(row_bands(height, workers), height)

    def test_no_workers(self):
        with self.assertRaises(ValueError):
            row_bands(10, 0)


class TestToneMapping(unittest.TestCase):

    def test_in_range(self):
        np.testing.assert_array_equal(to_rgb8([0.2, 0.0, 1.0]), [51, 0, 255])

    def test_bright_colors_keep_hue(self):
        np.testing.assert_array_equal(to_rgb8([2.0, 1.0, 0.5]), [255, 128, 64])

    def test_negative_clamps(self):
        np.testing.assert_array_equal(to_rgb8([-0.5, 0.5, 0.25]), [0, 128, 64])

    def test_rows(self):
        out = to_rgb8(np.array([[0.0, 0.0, 0.0], [4.0, 4.0, 2.0]]))
        self.assertEqual(out.dtype, np.uint8)
        np.testing.assert_array_equal(out, [[0, 0, 0], [255, 255, 128]])


class TestFramebuffer(unittest.TestCase):

    def test_layout(self):
        fb = Framebuffer(4, 3)
        self.assertEqual((fb.width, fb.height), (4, 3))
        fb.band(1, 2)[0, 2] = [1, 2, 3]
        data = fb.tobytes()
        self.assertEqual(len(data), 4 * 3 * 3)
        offset = 3 * (2 + 1 * 4)
        self.assertEqual(data[offset:offset + 3], bytes([1, 2, 3]))

    def test_bands_are_views(self):
        fb = Framebuffer(2, 4)
        top, bottom = fb.band(0, 2), fb.band(2, 4)
        top[:] = 7
        bottom[:] = 9
        self.assertTrue(np.all(fb.pixels[:2] == 7))
        self.assertTrue(np.all(fb.pixels[2:] == 9))

    def test_bad_size(self):
        with self.assertRaises(ValueError):
            Framebuffer(0, 10)


class TestRender(unittest.TestCase):

    def test_deterministic_across_workers(self):
        width, height = 24, 18
        camera = Camera(vfov=60, aspect=width/height)
        serial = render_image(camera, scene, lights, width, height).tobytes()
        for workers in (1, 2, 4, 5):
            threaded = render_frame(camera, scene, lights, width, height, workers=workers)
            self.assertEqual(threaded.tobytes(), serial)

    def test_shadow_darkens_pixel(self):
        matte = Material(vec([0.5, 0.5, 0.5]))
        target = Sphere(vec([0, 0, -10]), 2.0, matte)
        occluder = Sphere(vec([0, 0, 5]), 0.5, matte)
        lamp = [PointLight(vec([0, 0, 10]), 1.5)]
        camera = Camera(vfov=60)
        lit = render_frame(camera, Scene([target]), lamp, 3, 3, workers=2)
        dark = render_frame(camera, Scene([target, occluder]), lamp, 3, 3, workers=2)
        np.testing.assert_array_equal(lit.pixels[1, 1], [191, 191, 191])
        np.testing.assert_array_equal(dark.pixels[1, 1], [0, 0, 0])

    def test_worker_errors_propagate(self):
        class Broken:
            surfs = []
            bg_color = vec([0, 0, 0])
            def intersect(self, ray):
                raise RuntimeError("boom")
        with self.assertRaises(RuntimeError):
            render_frame(Camera(), Broken(), [], 4, 4, workers=2)


class TestReferenceScene(unittest.TestCase):

    def test_corners_see_background(self):
        for i, j in [(0, 0), (1023, 0), (0, 767), (1023, 767)]:
            np.testing.assert_allclose(reference_pixel(i, j), BACKGROUND_RGB8, atol=1)

    def test_center_is_red_rubber(self):
        r, g, b = reference_pixel(512, 384)
        self.assertGreater(r, g)
        self.assertGreater(r, b)

    def test_sphere_centers_are_not_background(self):
        # projected centers of the ivory, glass, red rubber and mirror spheres
        for i, j in [(387, 384), (678, 467), (567, 402), (844, 199)]:
            pixel = reference_pixel(i, j)
            self.assertGreater(np.abs(pixel - BACKGROUND_RGB8).max(), 1, (i, j, pixel))

    def test_known_pixels(self):
        expected = {
            (512, 384): [124, 42, 42],
            (387, 384): [145, 158, 125],
            (678, 467): [41, 145, 165],
            (567, 402): [159, 58, 58],
            (844, 199): [41, 143, 163],
            (700, 600): [56, 56, 56],
            (650, 420): [70, 73, 53],
            (610, 440): [156, 134, 79],
        }
        for (i, j), rgb in expected.items():
            np.testing.assert_allclose(reference_pixel(i, j), rgb, atol=1, err_msg=str((i, j)))

    def test_floor_below_spheres(self):
        # passes under the red rubber and glass spheres
        direction = np.array([0., -4., -21.])
        direction /= np.linalg.norm(direction)
        hit = scene.intersect(Ray(vec([0, 0, 0]), direction))
        np.testing.assert_array_equal(hit.normal, [0, 1, 0])


class TestEncode(unittest.TestCase):

    def test_writes_jpeg(self):
        pixels = np.zeros((6, 8, 3), np.uint8)
        pixels[:, :4] = [255, 0, 0]
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'out.jpg')
            encode(8, 6, 3, pixels.tobytes(), 100, path)
            with PIM.open(path) as im:
                self.assertEqual(im.format, 'JPEG')
                self.assertEqual(im.size, (8, 6))
                self.assertEqual(im.mode, 'RGB')
                r, g, b = im.getpixel((1, 1))
                self.assertGreater(r, 200)
                self.assertLess(g, 60)

    def test_wrong_length(self):
        with self.assertRaises(ValueError):
            encode(8, 6, 3, bytes(10), 90, 'never-written.jpg')

    def test_unwritable_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'missing', 'out.jpg')
            with self.assertRaises(OSError):
                encode(2, 2, 3, bytes(12), 90, path)

    def test_image_wrapper(self):
        im = Image.FromBytes(3, 2, 1, bytes(range(6)))
        self.assertEqual((im.width, im.height, im.n_color_channels), (3, 2, 1))
        self.assertEqual(im.PIL().mode, 'L')


class TestCli(unittest.TestCase):

    def test_small_render(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'out.jpg')
            status = cli.main(['--width', '16', '--height', '12', '--workers', '3',
                               '--output', path, '--quiet'])
            self.assertEqual(status, 0)
            with PIM.open(path) as im:
                self.assertEqual(im.size, (16, 12))

    def test_progress_output(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'out.png')
            out = StringIO()
            with redirect_stdout(out):
                status = cli.main(['--width', '6', '--height', '4', '--serial', '--output', path])
            self.assertEqual(status, 0)
            self.assertIn('Image saved to', out.getvalue())
            self.assertIn('rendering row 4/4', out.getvalue())

    def test_write_failure_exit_code(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'missing', 'out.jpg')
            err = StringIO()
            with redirect_stderr(err):
                status = cli.main(['--width', '4', '--height', '4', '--output', path, '--quiet'])
            self.assertEqual(status, 1)
            self.assertIn('error:', err.getvalue())


if __name__ == '__main__':
    unittest.main()
