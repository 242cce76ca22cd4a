import numpy as np
from .utils import vec

class Material:

    def __init__(self, diffuse_color, albedo=(1., 0., 0., 0.), specular_exponent=0., refractive_index=1.0):
        """
        Create a new material with the given parameters.

        Parameters:
          diffuse_color : (3,) -- Base diffuse color (linear RGB, may exceed 1)
          albedo : (4,) -- Weights of the diffuse, specular, reflected and
                           refracted light, in that order; need not sum to 1
          specular_exponent : float -- Phong shininess
          refractive_index : float -- Index of Refraction (1.0 for no bending, 1.5 for glass)
        """
        if len(albedo) != 4:
            raise ValueError(f"albedo needs 4 weights, got {len(albedo)}")
        self.diffuse_color = vec(diffuse_color)
        self.albedo = tuple(float(a) for a in albedo)
        self.specular_exponent = specular_exponent
        self.refractive_index = refractive_index

    @classmethod
    def default(cls):
        """Neutral placeholder: all diffuse weight, black, no highlight."""
        return cls(vec([0, 0, 0]))

    def with_diffuse_color(self, diffuse_color):
        """Return a copy of this material with another diffuse color."""
        return Material(diffuse_color, self.albedo, self.specular_exponent, self.refractive_index)

    def __repr__(self):
        return (f"Material(diffuse_color={np.round(self.diffuse_color, 3).tolist()}, "
                f"albedo={self.albedo}, specular_exponent={self.specular_exponent}, "
                f"refractive_index={self.refractive_index})")
