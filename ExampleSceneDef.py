import ray
from geometry import Sphere, CheckerboardPlane
from materials import Material
from utils import vec


class ExampleSceneDef(object):
    def __init__(self, scene, camera=None):
        self.scene = scene;
        self.camera = camera;

    def render(self, config=None):
        return ray.render(self.scene, config, self.camera);


def ClassicExample():
    # two-component albedo: diffuse and specular only
    ivory = Material(vec([0.6, 0.3]), vec([0.4, 0.4, 0.3]), 50.)
    red_rubber = Material(vec([0.9, 0.1]), vec([0.3, 0.1, 0.1]), 10.)

    scene = ray.Scene([
        Sphere(vec([-3, 0, -16]), 2, ivory),
        Sphere(vec([-1.0, -1.5, -12]), 2, red_rubber),
        Sphere(vec([1.5, -0.5, -18]), 3, red_rubber),
        Sphere(vec([7, 5, -18]), 4, ivory),
    ], lights=[
        ray.Light(vec([-20, 20, 20]), 1.5),
        ray.Light(vec([30, 50, -25]), 1.8),
        ray.Light(vec([30, 20, 30]), 1.7),
    ])
    return ExampleSceneDef(scene=scene);


def FullExample():
    ivory = Material(vec([0.6, 0.3, 0.1, 0.0]), vec([0.4, 0.4, 0.3]), 50.)
    glass = Material(vec([0.0, 0.5, 0.1, 0.8]), vec([0.6, 0.7, 0.8]), 125., refractive_index=1.5)
    red_rubber = Material(vec([0.9, 0.1, 0.0, 0.0]), vec([0.3, 0.1, 0.1]), 10.)
    mirror = Material(vec([0.0, 10.0, 0.8, 0.0]), vec([1.0, 1.0, 1.0]), 1425.)

    scene = ray.Scene([
        Sphere(vec([-3, 0, -16]), 2, ivory),
        Sphere(vec([-1.0, -1.5, -12]), 2, glass),
        Sphere(vec([1.5, -0.5, -18]), 3, red_rubber),
        Sphere(vec([7, 5, -18]), 4, mirror),
    ], lights=[
        ray.Light(vec([-20, 20, 20]), 1.5),
        ray.Light(vec([30, 50, -25]), 1.8),
        ray.Light(vec([30, 20, 30]), 1.7),
    ], checkerboard=CheckerboardPlane())
    return ExampleSceneDef(scene=scene);


def SingleSphereExample():
    matte = Material(vec([1.0, 0.0]), vec([0.4, 0.4, 0.3]), 0.)

    scene = ray.Scene([
        Sphere(vec([-3, 0, -16]), 2, matte),
    ], lights=[
        ray.Light(vec([-20, 20, 20]), 1.5),
    ])
    return ExampleSceneDef(scene=scene);


EXAMPLES = {
    'classic': ClassicExample,
    'full': FullExample,
    'single': SingleSphereExample,
}
