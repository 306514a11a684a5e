import os
import tempfile
import unittest

import numpy as np

from ImLite import Image, tone_map, write_ppm
from utils import vec


class TestToneMap(unittest.TestCase):

    def test_in_range_pixels_truncate(self):
        np.testing.assert_array_equal(tone_map(vec([0.2, 0.7, 0.8])), [51, 178, 204])
        np.testing.assert_array_equal(tone_map(vec([0.0, 0.5, 1.0])), [0, 127, 255])

    def test_bright_pixel_keeps_hue(self):
        # scaled by 1/2 before quantizing
        np.testing.assert_array_equal(tone_map(vec([0.5, 2.0, 1.0])), [63, 255, 127])

    def test_negative_channels_clamp(self):
        np.testing.assert_array_equal(tone_map(vec([-0.5, 0.5, 0.0])), [0, 127, 0])

    def test_per_pixel(self):
        pix = np.array([[[0.5, 2.0, 1.0], [0.5, 0.5, 0.5]]], np.float32)
        out = tone_map(pix)
        self.assertEqual(out.dtype, np.uint8)
        self.assertEqual(out.shape, (1, 2, 3))
        # the bright neighbour does not dim this pixel
        np.testing.assert_array_equal(out[0, 1], [127, 127, 127])


class TestPPM(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def read(self, name):
        with open(os.path.join(self.tmp.name, name), 'rb') as f:
            return f.read()

    def test_black_frame(self):
        width, height = 4, 3
        Image(pixels=np.zeros((height, width, 3), np.float32)).writeToFile(os.path.join(self.tmp.name, 'black.ppm'))
        data = self.read('black.ppm')
        header = b"P6\n4 3\n255\n"
        self.assertEqual(data[:len(header)], header)
        self.assertEqual(data[len(header):], bytes(width * height * 3))

    def test_row_major_rgb(self):
        pix = np.zeros((2, 3, 3), np.uint8)
        pix[0, 1] = [10, 20, 30]
        pix[1, 2] = [40, 50, 60]
        write_ppm(os.path.join(self.tmp.name, 'order.ppm'), pix)
        payload = self.read('order.ppm')[len(b"P6\n3 2\n255\n"):]
        self.assertEqual(payload[3:6], bytes([10, 20, 30]))
        self.assertEqual(payload[(1 * 3 + 2) * 3:], bytes([40, 50, 60]))

    def test_rejects_float_data(self):
        with self.assertRaises(AssertionError):
            write_ppm(os.path.join(self.tmp.name, 'bad.ppm'), np.zeros((2, 2, 3), np.float32))

    def test_png_through_pillow(self):
        pix = np.random.rand(5, 7, 3).astype(np.float32) * 1.5
        path = os.path.join(self.tmp.name, 'out.png')
        im = Image(pixels=pix)
        im.writeToFile(path)
        self.assertEqual(im.file_path, path)
        loaded = Image(path)
        self.assertEqual((loaded.height, loaded.width), (5, 7))
        np.testing.assert_array_equal(loaded.ipixels, tone_map(pix))

    def test_fpixels(self):
        im = Image(pixels=np.full((1, 1, 3), 255, np.uint8))
        np.testing.assert_allclose(im.fpixels, np.ones((1, 1, 3)))


if __name__ == '__main__':
    unittest.main()
