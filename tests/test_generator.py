import numpy as np

from polypaint.constants import ALPHA_MAX, ALPHA_MIN, INITIAL_POLYGONS, MAX_POINTS, MIN_POINTS
from polypaint.generator import initial_candidate, random_colour, random_point, random_polygon


def test_random_colour_ranges(rng) -> None:
    colours = np.stack([random_colour(rng) for _ in range(500)])
    assert colours.dtype == np.uint8
    assert colours[:, 3].min() >= ALPHA_MIN
    assert colours[:, 3].max() <= ALPHA_MAX
    # RGB spans well beyond the alpha range.
    assert colours[:, :3].max() > ALPHA_MAX
    assert colours[:, :3].min() < ALPHA_MIN


def test_random_point_in_canvas(rng) -> None:
    for _ in range(200):
        x, y = random_point(rng, 7, 3)
        assert 0.0 <= x < 7.0
        assert 0.0 <= y < 3.0


def test_random_polygon_point_count(rng) -> None:
    counts = {len(random_polygon(rng, 10, 10)) for _ in range(300)}
    assert counts == set(range(MIN_POINTS, MAX_POINTS + 1))


def test_initial_candidate(rng) -> None:
    cand = initial_candidate(rng, 20, 15)
    assert len(cand) == INITIAL_POLYGONS
    assert (cand.width, cand.height) == (20, 15)
    assert len(initial_candidate(rng, 20, 15, n_polygons=4)) == 4


def test_seeded_generation_is_reproducible() -> None:
    a = initial_candidate(np.random.default_rng(9), 12, 12)
    b = initial_candidate(np.random.default_rng(9), 12, 12)
    for pa, pb in zip(a.polygons, b.polygons):
        np.testing.assert_array_equal(pa.points, pb.points)
        np.testing.assert_array_equal(pa.colour, pb.colour)


def test_candidate_copy_is_independent(rng) -> None:
    cand = initial_candidate(rng, 8, 8, n_polygons=3)
    dup = cand.copy()
    dup.polygons[0].points[0] = [-1.0, -1.0]
    dup.polygons[0].colour[0] = 0
    dup.polygons.pop()
    assert len(cand) == 3
    assert not np.array_equal(cand.polygons[0].points[0], [-1.0, -1.0])
