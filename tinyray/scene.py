from .geometry import Checkerboard, Sphere
from .materials import Material
from .ray import PointLight, Scene
from .utils import vec

# Four spheres over a checkerboard, lit by three point lights.

ivory = Material(vec([0.4, 0.4, 0.3]), albedo=(0.6, 0.3, 0.1, 0.0), specular_exponent=50., refractive_index=1.0)
glass = Material(vec([0.6, 0.7, 0.8]), albedo=(0.0, 0.5, 0.1, 0.8), specular_exponent=125., refractive_index=1.5)
red_rubber = Material(vec([0.3, 0.1, 0.1]), albedo=(0.9, 0.1, 0.0, 0.0), specular_exponent=10., refractive_index=1.0)
mirror = Material(vec([1.0, 1.0, 1.0]), albedo=(0.0, 10.0, 0.8, 0.0), specular_exponent=1425., refractive_index=1.0)

spheres = [
    Sphere(vec([-3, 0, -16]), 1.3, ivory),
    Sphere(vec([3, -1.5, -12]), 2, glass),
    Sphere(vec([1.5, -0.5, -18]), 3, red_rubber),
    Sphere(vec([9, 5, -18]), 3.7, mirror),
]

lights = [
    PointLight(vec([-10, 23, 20]), 1.1),
    PointLight(vec([17, 50, -25]), 1.8),
    PointLight(vec([30, 20, 30]), 1.7),
]

scene = Scene(spheres, floor=Checkerboard())


if __name__ == '__main__':
    from .cli import render
    from .ray import Camera
    render(Camera(vfov=60, aspect=4/3), scene, lights)
