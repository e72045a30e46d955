"""Candidate data model.

Representation conventions:
- A point is an `(x, y)` pair of floats in pixel units.
- A polygon is a `(V, 2)` float array of vertices plus a `(4,)` uint8 RGBA colour.
- A candidate is an ordered list of polygons (later polygons paint over
  earlier ones) on a fixed `width x height` canvas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, NamedTuple

import numpy as np


@dataclass
class Polygon:
    """A filled, semi-transparent polygon."""

    points: np.ndarray
    colour: np.ndarray

    def __post_init__(self) -> None:
        self.points = np.asarray(self.points, dtype=float).reshape(-1, 2)
        self.colour = np.asarray(self.colour, dtype=np.uint8).reshape(4)

    def copy(self) -> "Polygon":
        return Polygon(self.points.copy(), self.colour.copy())

    def __len__(self) -> int:
        return int(self.points.shape[0])


@dataclass
class Candidate:
    """One point in the search space: polygons in paint order on a canvas."""

    polygons: list[Polygon] = field(default_factory=list)
    width: int = 1
    height: int = 1

    def copy(self) -> "Candidate":
        """Return a deep copy that shares no arrays with `self`."""
        return Candidate([p.copy() for p in self.polygons], self.width, self.height)

    def __len__(self) -> int:
        return len(self.polygons)

    def clamp_points(self, points: np.ndarray) -> np.ndarray:
        """Clamp `(V, 2)` coordinates into `[0, width-1] x [0, height-1]` in place."""
        np.clip(points[:, 0], 0.0, float(self.width - 1), out=points[:, 0])
        np.clip(points[:, 1], 0.0, float(self.height - 1), out=points[:, 1])
        return points


class ScoredCandidate(NamedTuple):
    score: float
    candidate: Candidate


def sort_scored(items: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    """Sort descending by score; equal scores keep their relative order."""
    return sorted(items, key=lambda item: -item.score)
