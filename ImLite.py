import os

from PIL import Image as PIM
import numpy as np

import matplotlib
import matplotlib.pyplot as plt


def tone_map(pixels):
    """Map float RGB samples to 8-bit values.

    Pixels brighter than 1 in any channel are scaled down by their largest channel so
    the hue survives, then every channel is clamped to [0, 1], scaled by 255 and
    truncated.
    """
    pixels = np.asarray(pixels, dtype=np.float32)
    brightest = pixels.max(axis=-1, keepdims=True)
    scaled = pixels / np.maximum(brightest, 1.0)
    return (255 * np.clip(scaled, 0.0, 1.0)).astype(np.uint8)


def write_ppm(output_path, pixels):
    """Write an (h, w, 3) uint8 array as a binary PPM (P6) file."""
    pixels = np.asarray(pixels)
    assert pixels.dtype == np.uint8 and pixels.ndim == 3 and pixels.shape[2] == 3, \
        "PPM data must be an (h, w, 3) uint8 array"
    height, width = pixels.shape[:2]
    with open(output_path, 'wb') as f:
        f.write(b"P6\n%d %d\n255\n" % (width, height))
        f.write(np.ascontiguousarray(pixels).tobytes())


class Image(object):
    """Image

    Wraps an (h, w, 3) array of RGB samples: floats straight from the renderer, which
    may exceed 1, or already tone mapped uint8 values.
    """

    def __init__(self, path=None, pixels=None):
        # You can do Image(pixels) or Image(path)
        self._samples = None;
        self.file_path = None;
        if (isinstance(path, np.ndarray) and (pixels is None)):
            # if the path looks like pixels and pixels are undefined, treat the path as pixels
            self.pixels = path;
        else:
            self.pixels = pixels;
            self.file_path = path;
            if(self.file_path is not None and pixels is None):
                self.loadImageData(self.file_path);

    @property
    def pixels(self):
        return self.samples;

    @pixels.setter
    def pixels(self, data):
        self.samples = data;

    @property
    def samples(self):
        return self._samples;

    @samples.setter
    def samples(self, value):
        self._samples = value;

    @property
    def dtype(self):
        return self.pixels.dtype;

    @property
    def _is_float(self):
        return (self.dtype.kind in 'f');

    @property
    def fpixels(self):
        if (self._is_float):
            return self.pixels;
        else:
            return self.pixels.astype(np.float32) * np.true_divide(1.0, 255.0);

    @property
    def ipixels(self):
        """Tone mapped 8-bit pixels."""
        if (self._is_float):
            return tone_map(self.pixels);
        else:
            return self.pixels.astype(np.uint8);

    @property
    def shape(self):
        return np.asarray(self.pixels.shape)[:];

    @property
    def width(self):
        return self.shape[1];

    @property
    def height(self):
        return self.shape[0];

    def loadImageData(self, path=None):
        if (path):
            self.file_path = path;
        pim = PIM.open(fp=self.file_path).convert('RGB');
        self._samples = np.array(pim);

    def PIL(self):
        return PIM.fromarray(self.ipixels);

    def writeToFile(self, output_path=None):
        """Save the image; .ppm files get the exact binary P6 layout, anything else goes through Pillow."""
        if (output_path is None):
            output_path = self.file_path;
        if (os.path.splitext(output_path)[1].lower() == '.ppm'):
            write_ppm(output_path, self.ipixels);
        else:
            self.PIL().save(output_path);
        self.file_path = output_path;

    def show(self, title=None, new_figure=True):
        if (new_figure):
            plt.figure();
        plt.imshow(self.ipixels);
        plt.axis('off');
        if (title is not None):
            plt.title(title);
        if (matplotlib.get_backend().lower() != 'agg'):
            plt.show();
