import numpy as np
from utils import vec
from materials import Material


class Hit:
    def __init__(self, t, point=None, normal=None, material=None):
        """Create a Hit with the given data.

        Parameters:
          t : float -- the distance of the intersection along the ray
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
          radius : float -- a positive Python float specifying the sphere's radius
          material : Material -- the material of the surface
        """
        if radius <= 0:
            raise ValueError(f"sphere radius must be positive, got {radius}")
        self.center = vec(center)
        self.radius = float(radius)
        self.material = material

    def ray_intersect(self, orig, dir):
        """Computes the distance to the first intersection of a ray with this sphere.

        Parameters:
          orig : (3,) -- the ray origin
          dir : (3,) -- the unit ray direction
        Return:
          float or None -- the distance along the ray, None if the ray misses or the
                           sphere lies entirely behind the origin
        """
        L = self.center - orig
        tca = np.dot(L, dir)
        d2 = np.dot(L, L) - tca * tca
        r2 = self.radius * self.radius
        if d2 > r2:
            return None
        thc = np.sqrt(r2 - d2)
        t0 = tca - thc
        t1 = tca + thc
        # origin inside the sphere, or the near intersection is behind it
        if t0 < 0:
            t0 = t1
        if t0 < 0:
            return None
        return float(t0)


class CheckerboardPlane:

    def __init__(self, height=-4., x_extent=10., z_near=-10., z_far=-30., colors=None):
        """Create a horizontal two-tone plane y = height covering a window of the XZ plane.

        Parameters:
          height : float -- the y coordinate of the plane
          x_extent : float -- hits are kept where |x| < x_extent
          z_near, z_far : float -- hits are kept where z_far < z < z_near
          colors : ((3,), (3,)) -- diffuse colors of the odd and even squares
        """
        if colors is None:
            colors = (vec([0.3, 0.3, 0.3]), vec([0.3, 0.2, 0.1]))
        self.height = float(height)
        self.x_extent = float(x_extent)
        self.z_near = float(z_near)
        self.z_far = float(z_far)
        self.materials = tuple(Material(diffuse_color=c) for c in colors)
        self.normal = vec([0, 1, 0])

    def ray_intersect(self, orig, dir):
        """Return the distance to the plane along the ray, or None on a miss."""
        # rays nearly parallel to the plane never reach it inside the far plane
        if abs(dir[1]) <= 1e-3:
            return None
        t = (self.height - orig[1]) / dir[1]
        if t <= 0:
            return None
        pt = orig + t * dir
        if abs(pt[0]) < self.x_extent and self.z_far < pt[2] < self.z_near:
            return float(t)
        return None

    def material_at(self, point):
        """Material of the square containing the given point."""
        parity = (int(np.floor(0.5 * point[0])) + int(np.floor(0.5 * point[2]))) & 1
        return self.materials[0] if parity else self.materials[1]
