import os
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from .ray import cast_ray
from .utils import to_rgb8

"""
Frame loop.  Rows of the image are split into contiguous bands and every band is
rendered by its own worker thread straight into a shared framebuffer.  The scene
is only read while rendering and no two bands share a row, so the workers need
no locking; the pool is joined before anyone reads the pixels.
"""


class Framebuffer:

    def __init__(self, width, height, channels=3):
        """Allocate a zeroed row-major image of width x height pixels.

        Parameters:
          width, height : int -- the image dimensions, both positive
          channels : int -- bytes per pixel (3 for interleaved RGB)
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"framebuffer needs positive dimensions, got {width}x{height}")
        self.channels = channels
        self.pixels = np.zeros((height, width, channels), np.uint8)

    @property
    def width(self):
        return self.pixels.shape[1]

    @property
    def height(self):
        return self.pixels.shape[0]

    def band(self, start, end):
        """Writable view of rows [start, end)."""
        return self.pixels[start:end]

    def tobytes(self):
        """The whole image as width*height*channels bytes, row-major."""
        return self.pixels.tobytes()


def row_bands(height, workers):
    """Split rows [0, height) into at most `workers` contiguous bands.

    Every band has height // n rows except the last, which also takes the
    leftover rows, so each row belongs to exactly one band.
    Return:
      [(start, end)] -- half-open row ranges in top-to-bottom order
    """
    if workers < 1:
        raise ValueError(f"need at least one worker, got {workers}")
    n = min(workers, height)
    size = height // n
    bands = [(k * size, (k + 1) * size) for k in range(n)]
    bands[-1] = (bands[-1][0], height)
    return bands


def render_band(camera, scene, lights, band, start, nx, ny, verbose=False):
    """Render image rows start .. start + len(band) into band.

    Parameters:
      camera : Camera -- the camera defining the view
      scene : Scene -- the scene to be rendered
      lights : [PointLight] -- the lights illuminating the scene
      band : (rows, nx, 3) uint8 -- where the rows are written
      start : int -- image row of band[0]
      nx, ny : int -- the dimensions of the whole image
    """
    for r, row in enumerate(band):
        j = start + r
        if verbose:
            print(f"rendering row {j+1}/{ny}...")
        colors = np.array([
            cast_ray(camera.pixel_ray(i, j, nx, ny), scene, lights)
            for i in range(nx)
        ])
        row[:] = to_rgb8(colors)


def render_image(camera, scene, lights, nx, ny, verbose=False):
    """Render a ray traced image on the calling thread.

    Parameters:
      camera : Camera -- the camera defining the view
      scene : Scene -- the scene to be rendered
      lights : [PointLight] -- the lights illuminating the scene
      nx, ny : int -- the dimensions of the rendered image
    Returns:
      Framebuffer -- the 8-bit RGB image
    """
    framebuffer = Framebuffer(nx, ny)
    render_band(camera, scene, lights, framebuffer.pixels, 0, nx, ny, verbose)
    return framebuffer


def render_frame(camera, scene, lights, nx, ny, workers=None, verbose=False):
    """Render a ray traced image with one thread per row band.

    Parameters:
      camera : Camera -- the camera defining the view
      scene : Scene -- the scene to be rendered
      lights : [PointLight] -- the lights illuminating the scene
      nx, ny : int -- the dimensions of the rendered image
      workers : int -- number of worker threads, defaults to the CPU count
    Returns:
      Framebuffer -- the 8-bit RGB image
    Any exception raised by a worker is re-raised here.
    """
    if workers is None:
        workers = os.cpu_count() or 1
    framebuffer = Framebuffer(nx, ny)
    bands = row_bands(ny, workers)

    start_time = time.time()
    with ThreadPoolExecutor(max_workers=len(bands), thread_name_prefix="band") as pool:
        futures = [
            pool.submit(render_band, camera, scene, lights, framebuffer.band(start, end), start, nx, ny)
            for start, end in bands
        ]
        for k, ((start, end), future) in enumerate(zip(bands, futures)):
            future.result()
            if verbose:
                print(f"band {k+1}/{len(bands)} (rows {start}-{end-1}) done "
                      f"at {time.time() - start_time:.1f}s")
    return framebuffer
