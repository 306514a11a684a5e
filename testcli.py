import os
import tempfile
import unittest
from contextlib import redirect_stdout
from io import StringIO

from cli import main, parse_args


class TestCli(unittest.TestCase):

    def test_defaults(self):
        args = parse_args([])
        self.assertEqual((args.width, args.height), (1024, 768))
        self.assertEqual(args.output, 'out.ppm')
        self.assertEqual(args.max_depth, 4)
        self.assertEqual(args.fov, 90.0)

    def test_renders_scene(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, 'single.ppm')
            out = StringIO()
            with redirect_stdout(out):
                status = main(['--scene', 'single', '--width', '8', '--height', '6', '-o', path])
            self.assertEqual(status, 0)
            with open(path, 'rb') as f:
                self.assertTrue(f.read().startswith(b"P6\n8 6\n255\n"))
        self.assertIn("rendering row 6/6...", out.getvalue())
        self.assertIn(f"Saved {path}", out.getvalue())

    def test_write_failure_exit_status(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, 'missing', 'out.ppm')
            out = StringIO()
            with redirect_stdout(out):
                status = main(['--scene', 'single', '--width', '2', '--height', '2', '-o', path, '-q'])
        self.assertEqual(status, 1)
        self.assertTrue(out.getvalue().startswith("Error:"))

    def test_invalid_size(self):
        with redirect_stdout(StringIO()):
            self.assertEqual(main(['--width', '0', '-q']), 2)


if __name__ == '__main__':
    unittest.main()
