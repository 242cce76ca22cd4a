import numpy as np
from .geometry import FAR, no_hit
from .utils import vec, normalize, norm, cross

"""
Core implementation of the ray tracer.  This module contains the classes (Ray, Camera,
PointLight, Scene) and functions (reflect, refract, cast_ray) used by the recursive
rendering algorithm.  The frame loop and its worker threads live in `render`.

In the documentation of these classes, we indicate the expected types of arguments with a
colon, and use the convention that just writing a tuple means that the expected type is a
NumPy array of that shape.
"""


class Ray:

    def __init__(self, origin, direction, end=np.inf):
        """Create a ray with the given origin and direction.

        Parameters:
          origin : (3,) -- the start point of the ray, a 3D point
          direction : (3,) -- the direction of the ray, a unit 3D vector
          end : float -- the largest t that counts as in front of the ray, for shadow tests
        """
        # Convert these vectors to double to help ensure intersection
        # computations will be done in double precision
        self.origin = np.array(origin, np.float64)
        self.direction = np.array(direction, np.float64)
        self.end = end


class Camera:

    def __init__(self, eye=vec([0,0,0]), target=vec([0,0,-1]), up=vec([0,1,0]),
                 vfov=90.0, aspect=1.0):
        """Create a camera with given viewing parameters.

        Parameters:
          eye : (3,) -- the camera's location, aka viewpoint (a 3D point)
          target : (3,) -- where the camera is looking: a 3D point that appears centered in the view
          up : (3,) -- the camera's orientation: a 3D vector that appears straight up in the view
          vfov : float -- the full vertical field of view in degrees
          aspect : float -- the aspect ratio of the camera's view (ratio of width to height)
        """
        self.eye = vec(eye)
        self.aspect = aspect
        self.vfov = vfov

        self.w = normalize(self.eye - vec(target))
        self.u = normalize(cross(vec(up), self.w))
        self.v = cross(self.w, self.u)

        rads = np.radians(self.vfov)

        self.img_h_half = np.tan(rads / 2.0)
        self.img_w_half = self.aspect * self.img_h_half

    def generate_ray(self, img_point):
        """Compute the ray corresponding to a point in the image.

        Parameters:
          img_point : (2,) -- a 2D point in [0,1] x [0,1], where (0,0) is the upper left
                      corner of the image and (1,1) is the lower right.
        Return:
          Ray -- The ray corresponding to that image location, with a unit direction
        """
        alpha = self.img_w_half * (img_point[0] * 2.0 - 1.0)
        beta = self.img_h_half * (1.0 - img_point[1] * 2.0)

        direction = (alpha * self.u) + (beta * self.v) - self.w

        return Ray(self.eye, normalize(direction))

    def pixel_ray(self, i, j, nx, ny):
        """Ray through the center of pixel (i, j) of an nx by ny image."""
        return self.generate_ray(((i + 0.5) / nx, (j + 0.5) / ny))


MAX_DEPTH = 4 # max recursion depth
EPSILON = 1e-3 # for offsetting rays
BACKGROUND = vec([0.2, 0.7, 0.8])
WHITE = vec([1, 1, 1])


def reflect(i, n):
    """Mirror the direction i about the normal n."""
    return i - 2.0 * np.dot(i, n) * n

def refract(i, n, refractive_index):
    """Bend the unit direction i through a surface with unit normal n (Snell's law).

    The outside medium has index 1.  When i and n point the same way the ray
    is leaving the material, so the indices swap and the normal flips.
    Return:
      (3,) -- the refracted direction, or the zero vector on total internal reflection
    """
    cosi = -max(-1.0, min(1.0, float(np.dot(i, n))))
    etai, etat = 1.0, refractive_index
    if cosi < 0:
        cosi = -cosi
        etai, etat = etat, etai
        n = -n
    eta = etai / etat
    k = 1 - eta * eta * (1 - cosi * cosi)
    if k < 0:
        return np.zeros(3)
    return i * eta + n * (eta * cosi - np.sqrt(k))

def offset_origin(point, normal, direction):
    """Nudge point off the surface, to the side that direction leaves from."""
    if np.dot(direction, normal) < 0:
        return point - EPSILON * normal
    return point + EPSILON * normal


class PointLight:
    def __init__(self, position, intensity):
        """Create a point light at given position and with given intensity"""
        self.position = vec(position)
        self.intensity = intensity

    def illuminate(self, ray, hit, scene):
        """Compute the light this source delivers to a surface point.

        Shadows are binary: any geometry strictly between the point and the
        light blocks it completely.

        Parameters:
          ray : Ray -- the ray that hit the surface
          hit : Hit -- the hit data
          scene : Scene -- the scene, for shadow rays
        Return:
          (float, float) -- diffuse and specular intensity, both 0 when in shadow
        """
        to_light = self.position - hit.point
        light_dist = norm(to_light)
        light_vec = to_light / light_dist

        shadow_ray = Ray(offset_origin(hit.point, hit.normal, light_vec), light_vec, end=light_dist)
        if scene.is_occluded(shadow_ray):
            return 0.0, 0.0

        diffuse = self.intensity * max(0.0, np.dot(light_vec, hit.normal))
        highlight = max(0.0, -np.dot(reflect(-light_vec, hit.normal), ray.direction))
        specular = self.intensity * highlight ** hit.material.specular_exponent
        return diffuse, specular


class Scene:

    def __init__(self, surfs, bg_color=BACKGROUND, floor=None):
        """Create a scene containing the given objects.

        Parameters:
          surfs : [Sphere] -- list of the spheres in the scene, searched in order
          bg_color : (3,) -- RGB color that is seen where no objects appear
          floor : Checkerboard or None -- the floor under the spheres
        """
        self.surfs = list(surfs)
        self.bg_color = vec(bg_color)
        self.floor = floor

    def intersect(self, ray):
        """Computes the first (smallest t) intersection between a ray and the scene.

        Spheres are scanned in order and the first of several equally near
        hits wins.  Anything at distance FAR or beyond is background.

        Parameters:
          ray : Ray -- the ray to intersect with the scene
        Return:
          Hit -- the hit data
        """
        closest_hit = no_hit
        for surf in self.surfs:
            hit = surf.intersect(ray)
            if hit.t < closest_hit.t:
                closest_hit = hit

        if self.floor is not None:
            hit = self.floor.intersect(ray)
            if hit.t < closest_hit.t:
                closest_hit = hit

        if closest_hit.t >= FAR:
            return no_hit
        return closest_hit

    def is_occluded(self, ray):
        """Return True if the nearest surface along the ray is closer than ray.end."""
        return self.intersect(ray).t < ray.end


def cast_ray(ray, scene, lights, depth=0):
    """Compute the color seen along a ray.

    Parameters:
      ray : Ray -- the ray to trace, with a unit direction
      scene : Scene -- the scene
      lights : [PointLight] -- the lights
      depth : int -- the recursion depth so far
    Return:
      (3,) -- linear RGB color, components may exceed 1
    Reflection and refraction rays are followed until depth exceeds
    MAX_DEPTH, where the background color is returned instead.
    """
    if depth > MAX_DEPTH:
        return scene.bg_color.copy()

    hit = scene.intersect(ray)
    if hit.t == np.inf:
        return scene.bg_color.copy()

    mat = hit.material
    x = hit.point
    n = hit.normal

    reflect_dir = normalize(reflect(ray.direction, n))
    reflect_ray = Ray(offset_origin(x, n, reflect_dir), reflect_dir)
    reflect_color = cast_ray(reflect_ray, scene, lights, depth + 1)

    refract_dir = refract(ray.direction, n, mat.refractive_index)
    if np.any(refract_dir):
        refract_dir = normalize(refract_dir)
        refract_ray = Ray(offset_origin(x, n, refract_dir), refract_dir)
        refract_color = cast_ray(refract_ray, scene, lights, depth + 1)
    else:
        # total internal reflection: no transmitted ray, nothing is hit
        refract_color = scene.bg_color

    diffuse = 0.0
    specular = 0.0
    for light in lights:
        d, s = light.illuminate(ray, hit, scene)
        diffuse += d
        specular += s

    a = mat.albedo
    return (mat.diffuse_color * diffuse * a[0]
            + WHITE * specular * a[1]
            + reflect_color * a[2]
            + refract_color * a[3])
