from PIL import Image as PIM
import numpy as np

_CHANNELS = (1, 3, 4)

class Image(object):
    """Image
    Thin wrapper around an 8-bit (height, width, channels) pixel array.
    """

    def __init__(self, pixels=None):
        self.pixels = pixels

    @property
    def pixels(self):
        return self._samples

    @pixels.setter
    def pixels(self, data):
        self._samples = data

    @property
    def n_color_channels(self):
        if (len(self.pixels.shape) < 3):
            return 1
        else:
            return self.pixels.shape[2]

    @property
    def width(self):
        return self.pixels.shape[1]

    @property
    def height(self):
        return self.pixels.shape[0]

    @classmethod
    def FromBytes(cls, width, height, channels, data):
        expected = width * height * channels
        if (len(data) != expected):
            raise ValueError(f"expected {expected} bytes for a {width}x{height}x{channels} image, got {len(data)}")
        pix = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, channels)
        return cls(pixels=pix)

    def PIL(self):
        if (self.n_color_channels not in _CHANNELS):
            raise ValueError(f"no image mode for {self.n_color_channels} channels")
        pix = self.pixels
        if (self.n_color_channels == 1 and len(pix.shape) == 3):
            pix = pix[:, :, 0]
        # fromarray picks L / RGB / RGBA from the array shape
        return PIM.fromarray(np.ascontiguousarray(pix, dtype=np.uint8))

    def writeToFile(self, output_path=None, quality=None, **kwargs):
        """Save to output_path; the format comes from the file extension."""
        if (quality is not None):
            kwargs['quality'] = quality
        self.PIL().save(output_path, **kwargs)


def encode(width, height, channels, pixels, quality, output_path):
    """Write raw interleaved 8-bit pixels to an image file.

    Parameters:
      width, height, channels : int -- the image layout
      pixels : bytes -- width*height*channels bytes, row-major
      quality : int -- compression quality (1-100) for lossy formats
      output_path : str -- destination file
    Raises ValueError on a size mismatch and OSError when the file cannot be written.
    """
    Image.FromBytes(width, height, channels, pixels).writeToFile(output_path, quality=quality)
