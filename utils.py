import numpy as np

# Vectors are NumPy arrays of 2, 3 or 4 components: +, -, unary -, scalar * and np.dot
# are the plain array operations.


def vec(list):
    """Handy shorthand to make a single-precision float array of 2, 3 or 4 components."""
    v = np.array(list, dtype=np.float32)
    if v.ndim != 1 or v.shape[0] not in (2, 3, 4):
        raise ValueError(f"expected a vector of 2, 3 or 4 components, got shape {v.shape}")
    return v


def norm(v):
    """Return the Euclidean length of the vector v."""
    return float(np.sqrt(np.dot(v, v)))


def normalize(v, length=1.0):
    """Return a vector in the direction of v scaled to the given length.

    Parameters:
      v : (n,) -- a non-zero vector
      length : float -- the length of the result
    Raises:
      ValueError -- if v has zero length
    """
    l = norm(v)
    if l == 0.0:
        raise ValueError("cannot normalize a zero-length vector")
    return v * (length / l)


def cross(a, b):
    """Cross product of two 3D vectors."""
    if np.shape(a) != (3,) or np.shape(b) != (3,):
        raise ValueError("cross product is only defined for 3D vectors")
    return np.cross(a, b)


def reflect(I, N):
    """Mirror the direction I about the normal N."""
    return I - N * (2.0 * np.dot(I, N))


def refract(I, N, eta_t, eta_i=1.0):
    """Bend the unit direction I through a surface with unit normal N (Snell's law).

    Parameters:
      I : (3,) -- incoming direction
      N : (3,) -- outward-facing surface normal
      eta_t : float -- refractive index of the material behind the surface
      eta_i : float -- refractive index of the medium the ray travels in
    Return:
      (3,) -- the refracted direction (not normalized), or the zero vector on
              total internal reflection
    """
    cos_i = -max(-1.0, min(1.0, float(np.dot(I, N))))
    if cos_i < 0:
        # the ray is inside the object, swap the indices and invert the normal
        return refract(I, -N, eta_i, eta_t)
    eta = eta_i / eta_t
    k = 1.0 - eta * eta * (1.0 - cos_i * cos_i)
    if k < 0:
        return np.zeros(3)
    return I * eta + N * (eta * cos_i - np.sqrt(k))
