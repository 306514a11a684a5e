import time
from functools import partial
from multiprocessing import Pool

import numpy as np

from geometry import Hit, no_hit
from ImLite import Image
from utils import vec, norm, normalize, cross, reflect, refract

"""
Core implementation of the ray tracer.  This module contains the classes (Ray, Light, Scene,
Camera) and functions (scene_intersect, cast_ray) used in the rendering algorithm, and the
entry points `render_image` and `render`.

In the documentation of these classes, we indicate the expected types of arguments with a
colon, and use the convention that just writing a tuple means that the expected type is a
NumPy array of that shape.
"""

MAX_DEPTH = 4  # max recursion depth
EPSILON = 1e-3  # for offsetting secondary ray origins off the surface
FAR_PLANE = 1000.  # hits at or beyond this distance count as misses
BACKGROUND = (0.2, 0.7, 0.8)


class RenderConfig:

    def __init__(self, width=1024, height=768, fov=np.pi / 2, max_depth=MAX_DEPTH, epsilon=EPSILON,
                 far_plane=FAR_PLANE, output_path="out.ppm", workers=1, progress=False):
        """Settings for one render.

        Parameters:
          width, height : int -- the dimensions of the rendered image
          fov : float -- the full vertical field of view in radians
          max_depth : int -- rays spawned past this recursion depth see the background
          epsilon : float -- offset of secondary ray origins along the surface normal
          far_plane : float -- the render-distance limit for intersections
          output_path : str -- where `render` writes the image
          workers : int -- number of processes rendering scanlines (1 renders in-process)
          progress : bool -- print progress lines while rendering
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"image dimensions must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.fov = float(fov)
        self.max_depth = int(max_depth)
        self.epsilon = float(epsilon)
        self.far_plane = float(far_plane)
        self.output_path = output_path
        self.workers = max(1, int(workers))
        self.progress = progress

    @property
    def aspect(self):
        return self.width / self.height


class Ray:

    def __init__(self, origin, direction):
        """Create a ray with the given origin and direction.

        Parameters:
          origin : (3,) -- the start point of the ray, a 3D point
          direction : (3,) -- the unit direction of the ray
        """
        # Convert these vectors to double to help ensure intersection
        # computations will be done in double precision
        self.origin = np.array(origin, np.float64)
        self.direction = np.array(direction, np.float64)


def offset_origin(point, normal, direction, eps):
    """Nudge a secondary ray origin off the surface, to the side the ray leaves towards."""
    if np.dot(direction, normal) < 0:
        return point - normal * eps
    return point + normal * eps


class Light:

    def __init__(self, position, intensity):
        """Create a point light at given position and with given intensity

        Parameters:
          position : (3,) -- 3D point giving the light source location in scene
          intensity : float -- positive scalar weight of the light's contribution
        """
        if intensity <= 0:
            raise ValueError(f"light intensity must be positive, got {intensity}")
        self.position = vec(position)
        self.intensity = float(intensity)

    def illuminate(self, hit, dir, scene, config):
        """Compute the diffuse and specular intensity this light brings to a surface point.

        Parameters:
          hit : Hit -- the hit data
          dir : (3,) -- direction of the ray that hit the surface
          scene : Scene -- the scene, for shadow rays
          config : RenderConfig -- epsilon and far plane for the shadow ray
        Return:
          (float, float) -- diffuse and specular intensity, both zero when the point is in shadow
        """
        light_vec_full = self.position - hit.point
        light_distance = norm(light_vec_full)
        light_dir = normalize(light_vec_full)

        shadow_orig = offset_origin(hit.point, hit.normal, light_dir, config.epsilon)
        blocker = scene_intersect(shadow_orig, light_dir, scene, config.far_plane)
        if blocker.t < light_distance:
            return 0.0, 0.0

        diffuse = self.intensity * max(0.0, np.dot(light_dir, hit.normal))
        highlight = max(0.0, np.dot(-reflect(-light_dir, hit.normal), dir))
        specular = self.intensity * highlight ** hit.material.specular_exponent
        return diffuse, specular


class Scene:

    def __init__(self, spheres, lights=(), checkerboard=None, bg_color=None):
        """Create a scene containing the given objects.

        Parameters:
          spheres : [Sphere] -- list of the spheres in the scene
          lights : [Light] -- list of the point lights
          checkerboard : CheckerboardPlane or None -- optional ground plane
          bg_color : (3,) -- RGB color that is seen where no objects appear
        """
        self.spheres = list(spheres)
        self.lights = list(lights)
        self.checkerboard = checkerboard
        self.bg_color = vec(BACKGROUND if bg_color is None else bg_color)

    def intersect(self, ray, far_plane=FAR_PLANE):
        """Computes the first (smallest t) intersection between a ray and the scene."""
        return scene_intersect(ray.origin, ray.direction, self, far_plane)


def scene_intersect(orig, dir, scene, far_plane=FAR_PLANE):
    """Find the nearest surface along a ray.

    Parameters:
      orig : (3,) -- the ray origin
      dir : (3,) -- the unit ray direction
      scene : Scene -- spheres and optional checkerboard to test against
      far_plane : float -- hits at or beyond this distance are ignored
    Return:
      Hit -- the nearest hit, or no_hit
    """
    closest_hit = no_hit

    for sphere in scene.spheres:
        t = sphere.ray_intersect(orig, dir)
        if t is not None and t < closest_hit.t:
            point = orig + t * dir
            closest_hit = Hit(t, point, normalize(point - sphere.center), sphere.material)

    board = scene.checkerboard
    if board is not None:
        t = board.ray_intersect(orig, dir)
        if t is not None and t < closest_hit.t:
            point = orig + t * dir
            closest_hit = Hit(t, point, board.normal, board.material_at(point))

    if closest_hit.t < far_plane:
        return closest_hit
    return no_hit


def cast_ray(orig, dir, scene, depth=0, config=None):
    """Compute the color seen along a ray.

    Parameters:
      orig : (3,) -- the ray origin
      dir : (3,) -- the unit ray direction
      scene : Scene -- the scene
      depth : int -- the recursion depth so far
      config : RenderConfig -- recursion bound, epsilon and far plane
    Return:
      (3,) -- the color seen along this ray
    Rays spawned beyond config.max_depth, and rays that hit nothing, see the background.
    Reflected and refracted rays are only traced when the material gives them a weight.
    """
    if config is None:
        config = RenderConfig()
    if depth > config.max_depth:
        return scene.bg_color

    hit = scene_intersect(orig, dir, scene, config.far_plane)
    if hit.t == np.inf:
        return scene.bg_color

    mat = hit.material
    albedo = mat.albedo

    reflect_color = np.zeros(3)
    if albedo[2] != 0:
        reflect_dir = normalize(reflect(dir, hit.normal))
        reflect_orig = offset_origin(hit.point, hit.normal, reflect_dir, config.epsilon)
        reflect_color = cast_ray(reflect_orig, reflect_dir, scene, depth + 1, config)

    refract_color = np.zeros(3)
    if albedo[3] != 0:
        refract_dir = refract(dir, hit.normal, mat.refractive_index)
        # total internal reflection leaves nothing to refract
        if np.any(refract_dir):
            refract_dir = normalize(refract_dir)
            refract_orig = offset_origin(hit.point, hit.normal, refract_dir, config.epsilon)
            refract_color = cast_ray(refract_orig, refract_dir, scene, depth + 1, config)

    diffuse_intensity = 0.0
    specular_intensity = 0.0
    for light in scene.lights:
        diffuse, specular = light.illuminate(hit, dir, scene, config)
        diffuse_intensity += diffuse
        specular_intensity += specular

    return (mat.diffuse_color * diffuse_intensity * albedo[0]
            + np.ones(3) * specular_intensity * albedo[1]
            + reflect_color * albedo[2]
            + refract_color * albedo[3])


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
        self.eye = eye
        self.aspect = aspect
        self.vfov = vfov

        self.w = normalize(eye - target)
        self.u = normalize(cross(up, self.w))
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
          Ray -- The ray corresponding to that image location, with unit direction
        """
        alpha = self.img_w_half * (img_point[0] * 2.0 - 1.0)
        beta = self.img_h_half * (1.0 - img_point[1] * 2.0)

        direction = (alpha * self.u) + (beta * self.v) - self.w

        return Ray(self.eye, normalize(direction))


def _render_row(scene, camera, config, j):
    """Shade one scanline; rows only read the scene, so they can run in any process."""
    nx, ny = config.width, config.height
    row = np.zeros((nx, 3), np.float32)
    for i in range(nx):
        ray = camera.generate_ray(np.array([(i + 0.5) / nx, (j + 0.5) / ny]))
        row[i] = cast_ray(ray.origin, ray.direction, scene, 0, config)
    return row


def render_image(scene, config=None, camera=None):
    """Render a ray traced image.

    Parameters:
      scene : Scene -- the scene to be rendered
      config : RenderConfig -- resolution, field of view and tracing limits
      camera : Camera -- the view; defaults to a pinhole at the origin looking down -z
    Returns:
      (height, width, 3) float32 -- the RGB framebuffer, not yet tone mapped
    """
    if config is None:
        config = RenderConfig()
    if camera is None:
        camera = Camera(vfov=np.degrees(config.fov), aspect=config.aspect)

    nx, ny = config.width, config.height
    row_fn = partial(_render_row, scene, camera, config)
    output_image = np.zeros((ny, nx, 3), np.float32)

    start_time = time.time()
    if config.progress:
        print(f"Rendering {nx}x{ny} image with {config.workers} worker(s)...")

    if config.workers > 1:
        with Pool(processes=config.workers) as pool:
            for j, row in enumerate(pool.imap(row_fn, range(ny))):
                output_image[j] = row
                if config.progress:
                    print(f"rendering row {j+1}/{ny}...")
    else:
        for j in range(ny):
            output_image[j] = row_fn(j)
            if config.progress:
                print(f"rendering row {j+1}/{ny}...")

    if config.progress:
        print(f"Rendering completed in {time.time() - start_time:.2f} seconds")
    return output_image


def render(scene, config=None, camera=None):
    """Render the scene and write the image to config.output_path.

    Returns the Image that was written.  Raises OSError if the file cannot be written.
    """
    if config is None:
        config = RenderConfig()
    im = Image(pixels=render_image(scene, config, camera))
    im.writeToFile(config.output_path)
    if config.progress:
        print(f"Saved {config.output_path}")
    return im
