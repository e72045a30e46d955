"""Random polygon and candidate generation.

All functions draw from an explicit `numpy.random.Generator` so runs are
reproducible from a seed. Canvas dimensions must be >= 1.
"""

from __future__ import annotations

import numpy as np

from .candidate import Candidate, Polygon
from .constants import ALPHA_MAX, ALPHA_MIN, INITIAL_POLYGONS, MAX_POINTS, MIN_POINTS


def random_colour(rng: np.random.Generator) -> np.ndarray:
    """Uniform RGB in `[0, 255]`, alpha in `[ALPHA_MIN, ALPHA_MAX]` for layering."""
    rgb = rng.integers(0, 256, size=3)
    alpha = rng.integers(ALPHA_MIN, ALPHA_MAX + 1)
    return np.array([rgb[0], rgb[1], rgb[2], alpha], dtype=np.uint8)


def random_point(rng: np.random.Generator, width: int, height: int) -> np.ndarray:
    """Return a `(2,)` point with `x in [0, width)` and `y in [0, height)`."""
    return np.array([rng.uniform(0.0, float(width)), rng.uniform(0.0, float(height))], dtype=float)


def random_points(rng: np.random.Generator, width: int, height: int) -> np.ndarray:
    count = int(rng.integers(MIN_POINTS, MAX_POINTS + 1))
    return np.stack([random_point(rng, width, height) for _ in range(count)], axis=0)


def random_polygon(rng: np.random.Generator, width: int, height: int) -> Polygon:
    return Polygon(random_points(rng, width, height), random_colour(rng))


def initial_candidate(
    rng: np.random.Generator,
    width: int,
    height: int,
    *,
    n_polygons: int = INITIAL_POLYGONS,
) -> Candidate:
    """Generate a candidate of `n_polygons` independent random polygons.

    Args:
        rng: Random source.
        width: Canvas width in pixels.
        height: Canvas height in pixels.
        n_polygons: Number of polygons to generate.

    Returns:
        A fresh `Candidate`.
    """
    polygons = [random_polygon(rng, width, height) for _ in range(int(n_polygons))]
    return Candidate(polygons, int(width), int(height))
