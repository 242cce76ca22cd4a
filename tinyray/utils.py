import numpy as np

def vec(list):
    """Handy shorthand to make a single-precision float array."""
    return np.array(list, dtype=np.float32)

def norm(v):
    """Return the Euclidean length of the vector v."""
    return np.linalg.norm(v)

def normalize(v):
    """Return a unit vector in the direction of the vector v.

    The zero vector is not special-cased; it comes back as NaNs.
    """
    with np.errstate(divide='ignore', invalid='ignore'):
        return v / norm(v)

def cross(u, v):
    """Cross product of two 3D vectors."""
    return np.cross(u, v)


def to_rgb8(img):
    """Tone map linear colors to 8-bit values.

    Parameters:
      img : (..., 3) -- linear RGB colors, components may exceed 1
    Return:
      (..., 3) uint8 -- each color scaled down by its largest channel when that
      exceeds 1, clamped to [0, 1] and quantized to round(255 * c)
    """
    img = np.asarray(img, dtype=np.float64)
    peak = np.max(img, axis=-1, keepdims=True)
    img = np.where(peak > 1, img / np.maximum(peak, 1), img)
    return np.round(255.0 * np.clip(img, 0, 1)).astype(np.uint8)
