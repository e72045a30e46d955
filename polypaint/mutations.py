"""Stochastic single-edit mutation operators.

Each public operator takes a candidate and returns a new, independent
candidate; the input is never modified. Operators that cannot apply (empty
candidate, polygon count at the floor, polygon already at 3 points) return an
unchanged copy rather than raising.

`mutate` picks one operator from `MUTATION_TABLE` by weighted random choice.
The cumulative table is built once; a draw that lands past the last bound
because of floating-point rounding falls back to the first operator.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from .candidate import Candidate
from .constants import COLOUR_DELTA, MIN_POINTS, MIN_POLYGONS, POINT_MOVE_DELTA, POLYGON_MOVE_DELTA
from .generator import random_point, random_polygon

# (operator name, relative weight); weights sum to 1.0.
MUTATION_TABLE: tuple[tuple[str, float], ...] = (
    ("move-point", 0.30),
    ("change-colour", 0.30),
    ("move-polygon", 0.15),
    ("reorder-polygon", 0.10),
    ("add-polygon", 0.05),
    ("remove-polygon", 0.05),
    ("new-point", 0.03),
    ("delete-point", 0.02),
)

MUTATION_NAMES: tuple[str, ...] = tuple(name for name, _ in MUTATION_TABLE)
_CUMULATIVE: np.ndarray = np.cumsum([weight for _, weight in MUTATION_TABLE])


def pick_operator(u: float, cumulative: np.ndarray = _CUMULATIVE) -> int:
    """Map a uniform draw `u in [0, 1)` to an operator index.

    Returns the first index whose cumulative bound exceeds `u`; when rounding
    leaves `u` past the final bound, returns 0 (the first operator).
    """
    idx = int(np.searchsorted(cumulative, u, side="right"))
    if idx >= len(cumulative):
        return 0
    return idx


# --- In-place operators on a private working copy


def _move_point(work: Candidate, rng: np.random.Generator, *, min_polygons: int) -> None:
    if not work.polygons:
        return
    poly = work.polygons[int(rng.integers(0, len(work.polygons)))]
    if len(poly) == 0:
        return
    idx = int(rng.integers(0, len(poly)))
    delta = rng.uniform(-POINT_MOVE_DELTA, POINT_MOVE_DELTA, size=2)
    poly.points[idx] += delta
    work.clamp_points(poly.points[idx : idx + 1])


def _change_colour(work: Candidate, rng: np.random.Generator, *, min_polygons: int) -> None:
    if not work.polygons:
        return
    poly = work.polygons[int(rng.integers(0, len(work.polygons)))]
    channel = int(rng.integers(0, 4))
    delta = int(rng.integers(-COLOUR_DELTA, COLOUR_DELTA + 1))
    poly.colour[channel] = int(np.clip(int(poly.colour[channel]) + delta, 0, 255))


def _move_polygon(work: Candidate, rng: np.random.Generator, *, min_polygons: int) -> None:
    if not work.polygons:
        return
    poly = work.polygons[int(rng.integers(0, len(work.polygons)))]
    delta = rng.uniform(-POLYGON_MOVE_DELTA, POLYGON_MOVE_DELTA, size=2)
    poly.points += delta
    work.clamp_points(poly.points)


def _reorder_polygon(work: Candidate, rng: np.random.Generator, *, min_polygons: int) -> None:
    n = len(work.polygons)
    if n < 2:
        return
    a = int(rng.integers(0, n))
    b = int(rng.integers(0, n))
    work.polygons[a], work.polygons[b] = work.polygons[b], work.polygons[a]


def _add_polygon(work: Candidate, rng: np.random.Generator, *, min_polygons: int) -> None:
    work.polygons.append(random_polygon(rng, work.width, work.height))


def _remove_polygon(work: Candidate, rng: np.random.Generator, *, min_polygons: int) -> None:
    if len(work.polygons) > min_polygons:
        del work.polygons[int(rng.integers(0, len(work.polygons)))]


def _add_point(work: Candidate, rng: np.random.Generator, *, min_polygons: int) -> None:
    if not work.polygons:
        return
    poly = work.polygons[int(rng.integers(0, len(work.polygons)))]
    point = random_point(rng, work.width, work.height)
    poly.points = np.vstack([poly.points, point[None, :]])


def _delete_point(work: Candidate, rng: np.random.Generator, *, min_polygons: int) -> None:
    if not work.polygons:
        return
    poly = work.polygons[int(rng.integers(0, len(work.polygons)))]
    if len(poly) > MIN_POINTS:
        idx = int(rng.integers(0, len(poly)))
        poly.points = np.delete(poly.points, idx, axis=0)


_OperatorFn = Callable[..., None]

_OPERATORS: dict[str, _OperatorFn] = {
    "move-point": _move_point,
    "change-colour": _change_colour,
    "move-polygon": _move_polygon,
    "reorder-polygon": _reorder_polygon,
    "add-polygon": _add_polygon,
    "remove-polygon": _remove_polygon,
    "new-point": _add_point,
    "delete-point": _delete_point,
}


def _pure(name: str) -> Callable[..., Candidate]:
    op = _OPERATORS[name]

    def apply(candidate: Candidate, rng: np.random.Generator, *, min_polygons: int = MIN_POLYGONS) -> Candidate:
        work = candidate.copy()
        op(work, rng, min_polygons=min_polygons)
        return work

    apply.__name__ = name.replace("-", "_")
    apply.__doc__ = f"Return a copy of `candidate` with one `{name}` edit applied."
    return apply


move_point = _pure("move-point")
change_colour = _pure("change-colour")
move_polygon = _pure("move-polygon")
reorder_polygon = _pure("reorder-polygon")
add_polygon = _pure("add-polygon")
remove_polygon = _pure("remove-polygon")
add_point = _pure("new-point")
delete_point = _pure("delete-point")


def mutate_n(
    candidate: Candidate,
    rng: np.random.Generator,
    count: int = 1,
    *,
    min_polygons: int = MIN_POLYGONS,
) -> Candidate:
    """Apply `count` weighted-random mutations to one copy of `candidate`.

    Args:
        candidate: Source candidate (not modified).
        rng: Random source.
        count: Number of sequential mutations.
        min_polygons: Polygon-count floor for `remove-polygon`.

    Returns:
        A new candidate.
    """
    work = candidate.copy()
    for _ in range(int(count)):
        name = MUTATION_NAMES[pick_operator(float(rng.random()))]
        _OPERATORS[name](work, rng, min_polygons=min_polygons)
    return work


def mutate(candidate: Candidate, rng: np.random.Generator, *, min_polygons: int = MIN_POLYGONS) -> Candidate:
    """Apply a single weighted-random mutation and return the new candidate."""
    return mutate_n(candidate, rng, 1, min_polygons=min_polygons)
