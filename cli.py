import argparse
import sys

import numpy as np

from ExampleSceneDef import EXAMPLES
from ray import RenderConfig, MAX_DEPTH


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Whitted-style sphere ray tracer")
    parser.add_argument('--scene', choices=sorted(EXAMPLES), default='full', help='Example scene to render')
    parser.add_argument('--width', type=int, default=1024, help='Image width')
    parser.add_argument('--height', type=int, default=768, help='Image height')
    parser.add_argument('--fov', type=float, default=90.0, help='Vertical field of view in degrees')
    parser.add_argument('--max-depth', type=int, default=MAX_DEPTH, help='Maximum reflection/refraction depth')
    parser.add_argument('--output', '-o', default='out.ppm', help='Output image (.ppm, or any format Pillow writes)')
    parser.add_argument('--workers', '-j', type=int, default=1, help='Processes rendering scanlines')
    parser.add_argument('--show', action='store_true', help='Display the result with matplotlib')
    parser.add_argument('--quiet', '-q', action='store_true', help='Do not print progress')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    try:
        config = RenderConfig(width=args.width, height=args.height, fov=np.radians(args.fov),
                              max_depth=args.max_depth, output_path=args.output,
                              workers=args.workers, progress=not args.quiet)
    except ValueError as e:
        print(f"Error: {e}")
        return 2

    example = EXAMPLES[args.scene]()
    try:
        im = example.render(config)
    except OSError as e:
        print(f"Error: could not write {args.output}: {e}")
        return 1

    if args.show:
        im.show(title=args.scene)
    return 0


if __name__ == '__main__':
    sys.exit(main())
