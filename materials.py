import numpy as np
from utils import vec


class Material:

    def __init__(self, albedo=(1., 0., 0., 0.), diffuse_color=(0., 0., 0.), specular_exponent=0.,
                 refractive_index=1.0):
        """
        Create a new material with the given parameters.

        Parameters:
          albedo : (2,) or (4,) -- weights of the diffuse, specular, reflected and refracted
                   contributions; a 2-component albedo leaves reflection and refraction off
          diffuse_color : (3,) -- base RGB reflectance
          specular_exponent : float -- Phong shininess
          refractive_index : float -- index of refraction (1.0 for air, 1.5 for glass)
        """
        albedo = vec(albedo)
        if albedo.shape[0] == 2:
            albedo = np.concatenate([albedo, np.zeros(2, dtype=np.float32)])
        elif albedo.shape[0] != 4:
            raise ValueError(f"albedo must have 2 or 4 components, got {albedo.shape[0]}")
        self.albedo = albedo
        self.diffuse_color = vec(diffuse_color)
        self.specular_exponent = float(specular_exponent)
        self.refractive_index = float(refractive_index)

    def __repr__(self):
        return (f"Material(albedo={self.albedo.tolist()}, diffuse_color={self.diffuse_color.tolist()}, "
                f"specular_exponent={self.specular_exponent}, refractive_index={self.refractive_index})")
