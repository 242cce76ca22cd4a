import numpy as np
from .materials import Material
from .utils import vec, normalize

# Distances at or beyond this count as background
FAR = 1000.

class Hit:
    def __init__(self, t, point=None, normal=None, material=None):
        """Create a Hit with the given data.

        Parameters:
          t : float -- the t value of the intersection along the ray
          point : (3,) -- the 3D point where the intersection happens
          normal : (3,) -- the 3D outward-facing unit normal to the surface at the hit point
          material : (Material) -- the material of the surface
        """
        self.t = t
        self.point = point
        self.normal = normal
        self.material = material

# Value to represent absence of an intersection
no_hit = Hit(np.inf)


class Sphere:

    def __init__(self, center, radius, material):
        """Create a sphere with the given center and radius.

        Parameters:
          center : (3,) -- a 3D point specifying the sphere's center
          radius : float -- a Python float specifying the sphere's radius
          material : Material -- the material of the surface
        """
        if radius <= 0:
            raise ValueError(f"sphere radius must be positive, got {radius}")
        self.center = vec(center)
        self.radius = radius
        self.material = material

    def intersect(self, ray):
        """Computes the first intersection between a ray and this sphere.

        The entry point is used when it lies ahead of the ray origin, the exit
        point when the origin is inside the sphere. The ray direction must be
        normalized.

        Parameters:
          ray : Ray -- the ray to intersect with the sphere
        Return:
          Hit -- the hit data
        """
        l = self.center - ray.origin
        tca = np.dot(l, ray.direction)
        d2 = np.dot(l, l) - tca * tca
        r2 = self.radius * self.radius
        if d2 > r2:
            return no_hit

        thc = np.sqrt(r2 - d2)
        t = tca - thc
        if t < 0:
            t = tca + thc
        if t < 0:
            return no_hit

        point = ray.origin + t * ray.direction
        normal = normalize(point - self.center)
        return Hit(t, point, normal, self.material)


class Checkerboard:

    WHITE = vec([1, 1, 1])
    ORANGE = vec([1, 0.7, 0.3])

    def __init__(self, height=-4., half_width=10., near=-10., far=-30., shade=0.3):
        """Create a horizontal checkerboard floor.

        The floor is the plane y = height, limited to |x| < half_width and
        far < z < near. Tiles are 2 units wide.

        Parameters:
          height : float -- y coordinate of the plane
          half_width : float -- extent of the floor on both sides of x = 0
          near, far : float -- z range covered by the floor
          shade : float -- factor applied to both tile colors
        """
        self.height = height
        self.half_width = half_width
        self.near = near
        self.far = far
        self.shade = shade
        self.normal = vec([0, 1, 0])
        self.base_material = Material.default()

    def color_at(self, point):
        """Return the diffuse color of the floor at point."""
        tile = int(0.5 * point[0]) + 1000 + int(0.5 * point[2])
        color = self.WHITE if tile % 2 == 1 else self.ORANGE
        return color * self.shade

    def intersect(self, ray):
        """Intersect a ray with the floor.

        Rays nearly parallel to the plane never hit it.

        Parameters:
          ray : Ray -- the ray to intersect with the floor
        Return:
          Hit -- the hit data
        """
        dy = ray.direction[1]
        if abs(dy) <= 1e-3:
            return no_hit
        t = -(ray.origin[1] - self.height) / dy
        if t <= 0:
            return no_hit
        point = ray.origin + t * ray.direction
        if not (abs(point[0]) < self.half_width and self.far < point[2] < self.near):
            return no_hit
        material = self.base_material.with_diffuse_color(self.color_at(point))
        return Hit(t, point, self.normal, material)
