"""Scanline rasterizer for polygon candidates.

Converts a `Candidate` into a flat, row-major RGBA uint8 buffer of length
`width * height * 4`. Rendering is deterministic and uses no graphics
library:

- polygons are filled in draw order with the even-odd scanline rule;
- each filled pixel is blended "over" the buffer with the polygon's alpha
  (`out = src * a + dst * (1 - a)` per RGB channel, float32, truncated);
- the background is opaque black, so the alpha channel of the returned
  buffer is 255 everywhere.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .candidate import Candidate, Polygon
from .constants import CHANNELS, MAX_CHANNEL, MIN_POINTS


@dataclass
class _Edge:
    y_max: int
    x: float
    inv_slope: float


def new_buffer(width: int, height: int) -> np.ndarray:
    """Allocate a zeroed flat RGBA buffer for a `width x height` canvas."""
    return np.zeros(int(width) * int(height) * CHANNELS, dtype=np.uint8)


def as_image(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """View a flat buffer as `(height, width, 4)`."""
    return np.asarray(buffer).reshape(int(height), int(width), CHANNELS)


def _edge_table(vertices: np.ndarray, y_min: int, height: int) -> dict[int, list[_Edge]]:
    """Bucket non-horizontal edges by the first scanline on which they are active."""
    buckets: dict[int, list[_Edge]] = {}
    n = vertices.shape[0]
    for i in range(n):
        x0, y0 = int(vertices[i, 0]), int(vertices[i, 1])
        x1, y1 = int(vertices[(i + 1) % n, 0]), int(vertices[(i + 1) % n, 1])
        if y0 == y1:
            continue
        if y0 < y1:
            x_lower, y_lower, x_upper, y_upper = x0, y0, x1, y1
        else:
            x_lower, y_lower, x_upper, y_upper = x1, y1, x0, y0
        if y_lower >= height or y_upper < 0:
            continue

        inv_slope = float(x_upper - x_lower) / float(y_upper - y_lower)
        x = float(x_lower)
        start = y_lower
        if start < y_min:
            # Edge enters above the canvas: advance it to the first visible row.
            x += inv_slope * (y_min - start)
            start = y_min
        buckets.setdefault(start, []).append(_Edge(y_max=y_upper, x=x, inv_slope=inv_slope))
    return buckets


def _blend_span(image: np.ndarray, y: int, x_start: int, x_end: int, rgb: np.ndarray, alpha: np.float32) -> None:
    span = image[y, x_start : x_end + 1, :3]
    blended = rgb * alpha + span.astype(np.float32) * (np.float32(1.0) - alpha)
    image[y, x_start : x_end + 1, :3] = blended.astype(np.uint8)


def fill_polygon(image: np.ndarray, polygon: Polygon) -> None:
    """Scanline-fill one polygon into an `(H, W, 4)` image in place.

    Polygons with fewer than 3 points, or entirely above/below the canvas,
    are skipped. Vertex coordinates are truncated to integer pixels.
    """
    if len(polygon) < MIN_POINTS:
        return
    height, width = int(image.shape[0]), int(image.shape[1])

    vertices = np.trunc(polygon.points).astype(np.int64)
    y_min = max(int(vertices[:, 1].min()), 0)
    y_max = min(int(vertices[:, 1].max()), height - 1)
    if y_min > y_max:
        return

    buckets = _edge_table(vertices, y_min, height)
    rgb = polygon.colour[:3].astype(np.float32)
    alpha = np.float32(int(polygon.colour[3]) / MAX_CHANNEL)

    active: list[_Edge] = []
    for y in range(y_min, y_max + 1):
        active.extend(buckets.pop(y, ()))
        active = [e for e in active if e.y_max > y]
        active.sort(key=lambda e: e.x)

        for i in range(0, len(active) - 1, 2):
            x_start = max(math.ceil(active[i].x), 0)
            x_end = min(math.floor(active[i + 1].x), width - 1)
            if x_start <= x_end:
                _blend_span(image, y, x_start, x_end, rgb, alpha)

        for edge in active:
            edge.x += edge.inv_slope


def render_into(candidate: Candidate, out: np.ndarray) -> np.ndarray:
    """Clear `out` and render `candidate` into it (buffer reuse).

    Args:
        candidate: Candidate to rasterize.
        out: Writable flat uint8 buffer of length `width * height * 4`.

    Returns:
        `out`, for chaining.
    """
    expected = candidate.width * candidate.height * CHANNELS
    if out.dtype != np.uint8 or out.size != expected:
        raise ValueError(f"render buffer must be uint8 of size {expected}, got {out.dtype} of size {out.size}")
    out.fill(0)
    image = as_image(out, candidate.width, candidate.height)
    for polygon in candidate.polygons:
        fill_polygon(image, polygon)
    image[:, :, 3] = MAX_CHANNEL
    return out


def render(candidate: Candidate) -> np.ndarray:
    """Render `candidate` into a new read-only flat RGBA buffer."""
    buffer = render_into(candidate, new_buffer(candidate.width, candidate.height))
    buffer.flags.writeable = False
    return buffer
