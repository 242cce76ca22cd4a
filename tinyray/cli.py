import argparse
import sys
import time

from .ImLite import encode
from .ray import Camera
from .render import render_frame, render_image

WIDTH = 1024
HEIGHT = 768
FOV = 60.
OUTPUT = 'out.jpg'
QUALITY = 100


def render(camera, scene, lights, width=WIDTH, height=HEIGHT, output_path=OUTPUT,
           quality=QUALITY, workers=None, serial=False, verbose=True):
    """Render the scene and write it to output_path.

    Parameters:
      camera : Camera -- the camera defining the view
      scene : Scene -- the scene to be rendered
      lights : [PointLight] -- the lights illuminating the scene
      width, height : int -- the dimensions of the image
      output_path : str -- where the image goes
      quality : int -- encoder quality
      workers : int -- render threads, defaults to the CPU count
      serial : bool -- render on the calling thread instead
    Return:
      Framebuffer -- the rendered pixels
    """
    if verbose:
        print(f"Scene: {len(scene.surfs)} spheres, {len(lights)} lights")
        print(f"Rendering {width}x{height} image...")
    render_start_time = time.time()
    if serial:
        framebuffer = render_image(camera, scene, lights, width, height, verbose=verbose)
    else:
        framebuffer = render_frame(camera, scene, lights, width, height, workers=workers, verbose=verbose)
    if verbose:
        print(f"Render finished in {time.time() - render_start_time:.2f} seconds.")

    encode(width, height, framebuffer.channels, framebuffer.tobytes(), quality, output_path)
    if verbose:
        print(f"Image saved to {output_path}")
    return framebuffer


def _quality(value):
    q = int(value)
    if not 1 <= q <= 100:
        raise argparse.ArgumentTypeError(f"quality must be in 1..100, got {q}")
    return q


def _positive(value):
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {n}")
    return n


def main(argv=None):
    parser = argparse.ArgumentParser(description='Ray trace the reference sphere scene to an image file')
    parser.add_argument('--width', type=_positive, default=WIDTH, help='Image width')
    parser.add_argument('--height', type=_positive, default=HEIGHT, help='Image height')
    parser.add_argument('--fov', type=float, default=FOV, help='Vertical field of view in degrees')
    parser.add_argument('--output', default=OUTPUT, help='Output image path')
    parser.add_argument('--quality', type=_quality, default=QUALITY, help='JPEG quality (1-100)')
    parser.add_argument('--workers', type=_positive, default=None, help='Render threads (default: CPU count)')
    parser.add_argument('--serial', action='store_true', help='Render on a single thread')
    parser.add_argument('--quiet', action='store_true', help='Do not print progress')
    args = parser.parse_args(argv)

    from .scene import scene, lights
    camera = Camera(vfov=args.fov, aspect=args.width / args.height)

    try:
        render(camera, scene, lights, args.width, args.height, args.output, args.quality,
               workers=args.workers, serial=args.serial, verbose=not args.quiet)
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
