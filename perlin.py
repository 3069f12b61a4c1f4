import numpy as np
import numpy.typing as npt


def perlin(
    w: int,
    h: int,
    scale: float = 4.0,
    rng: np.random.Generator | None = None,
) -> npt.NDArray[np.float64]:
    """Gradient noise over an h x w grid, roughly in [-1, 1].

    `scale` is the number of cells per lattice square; smaller values give
    smaller, more numerous blobs.
    """
    if scale <= 0:
        raise ValueError(f"scale must be positive, got {scale}")
    if rng is None:
        rng = np.random.default_rng()
    x, y = np.meshgrid(np.arange(w) / scale, np.arange(h) / scale)
    # permutation table, doubled so p[p[i] + j] never overflows
    p = np.arange(256, dtype=int)
    rng.shuffle(p)
    p = np.stack([p, p]).flatten()
    # lattice corner and offset inside the square
    xi = x.astype(int) % 255
    yi = y.astype(int) % 255
    xf = x - x.astype(int)
    yf = y - y.astype(int)
    u = fade(xf)
    v = fade(yf)
    n00 = gradient(p[p[xi] + yi], xf, yf)
    n01 = gradient(p[p[xi] + yi + 1], xf, yf - 1)
    n11 = gradient(p[p[xi + 1] + yi + 1], xf - 1, yf - 1)
    n10 = gradient(p[p[xi + 1] + yi], xf - 1, yf)
    x1 = lerp(n00, n10, u)
    x2 = lerp(n01, n11, u)
    return lerp(x1, x2, v)


def lerp(
    a: npt.NDArray[np.float64],
    b: npt.NDArray[np.float64],
    t: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    return a + t * (b - a)


def fade(t: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """6t^5 - 15t^4 + 10t^3"""
    return 6 * t**5 - 15 * t**4 + 10 * t**3


_GRADIENTS = np.array([[1, 1], [-1, 1], [1, -1], [-1, -1]], dtype=np.float64)


def gradient(
    h: npt.NDArray[np.int_],
    x: npt.NDArray[np.float64],
    y: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """Dot product of the hashed corner gradient with the offset (x, y)."""
    g = _GRADIENTS[h % 4]
    return g[..., 0] * x + g[..., 1] * y
