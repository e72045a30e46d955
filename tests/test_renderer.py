import numpy as np
import pytest

from helpers import full_cover, single
from polypaint.candidate import Candidate, Polygon
from polypaint.generator import initial_candidate
from polypaint.renderer import as_image, new_buffer, render, render_into

WHITE = [255, 255, 255, 255]


def _image(candidate: Candidate) -> np.ndarray:
    return as_image(render(candidate), candidate.width, candidate.height)


def test_empty_candidate_is_opaque_black() -> None:
    img = _image(Candidate([], 3, 2))
    assert img.shape == (2, 3, 4)
    assert np.all(img[:, :, :3] == 0)
    assert np.all(img[:, :, 3] == 255)


def test_opaque_full_cover() -> None:
    img = _image(single(2, 2, full_cover(2, 2, WHITE)))
    assert np.all(img == 255)


def test_alpha_blend_over_black() -> None:
    img = _image(single(2, 2, full_cover(2, 2, [200, 100, 50, 128])))
    np.testing.assert_array_equal(img[0, 0], np.array([100, 50, 25, 255], dtype=np.uint8))
    assert np.all(img == img[0, 0])


def test_later_polygons_paint_over_earlier() -> None:
    cand = Candidate([full_cover(3, 3, WHITE), full_cover(3, 3, [255, 0, 0, 255])], 3, 3)
    img = _image(cand)
    assert np.all(img[:, :, 0] == 255)
    assert np.all(img[:, :, 1:3] == 0)

    swapped = Candidate(list(reversed(cand.polygons)), 3, 3)
    assert np.all(_image(swapped) == 255)


def test_bottom_row_is_exclusive_and_right_column_inclusive() -> None:
    square = Polygon(np.array([[0, 0], [3, 0], [3, 3], [0, 3]], dtype=float), WHITE)
    img = _image(single(5, 5, square))
    white = np.all(img[:, :, :3] == 255, axis=-1)
    expected = np.zeros((5, 5), dtype=bool)
    expected[0:3, 0:4] = True
    np.testing.assert_array_equal(white, expected)


def test_triangle_coverage() -> None:
    tri = Polygon(np.array([[0, 0], [4, 0], [0, 4]], dtype=float), WHITE)
    img = _image(single(5, 5, tri))
    white = np.all(img[:, :, :3] == 255, axis=-1)
    assert int(white.sum()) == 5 + 4 + 3 + 2
    assert white[0].all()
    assert not white[4].any()


def test_fractional_vertices_are_truncated() -> None:
    exact = Polygon(np.array([[0, 0], [3, 0], [3, 3], [0, 3]], dtype=float), WHITE)
    fuzzy = Polygon(np.array([[0.9, 0.4], [3.7, 0.2], [3.99, 3.5], [0.1, 3.8]], dtype=float), WHITE)
    np.testing.assert_array_equal(render(single(5, 5, exact)), render(single(5, 5, fuzzy)))


def test_degenerate_and_offscreen_polygons_are_skipped() -> None:
    blank = render(Candidate([], 4, 4))
    segment = Polygon(np.array([[0, 0], [3, 3]], dtype=float), WHITE)
    above = Polygon(np.array([[0, -9], [3, -9], [3, -2]], dtype=float), WHITE)
    below = Polygon(np.array([[0, 10], [3, 10], [3, 20]], dtype=float), WHITE)
    flat = Polygon(np.array([[0, 1], [2, 1], [3, 1]], dtype=float), WHITE)
    for poly in (segment, above, below, flat):
        np.testing.assert_array_equal(render(single(4, 4, poly)), blank)


def test_partially_offscreen_polygon_is_clipped() -> None:
    big = Polygon(np.array([[-5, -5], [10, -5], [10, 10], [-5, 10]], dtype=float), WHITE)
    img = _image(single(4, 3, big))
    assert np.all(img == 255)


def test_render_is_deterministic() -> None:
    cand = initial_candidate(np.random.default_rng(3), 16, 12)
    a = render(cand)
    b = render(cand.copy())
    np.testing.assert_array_equal(a, b)
    assert a.shape == (16 * 12 * 4,)
    assert a.dtype == np.uint8


def test_render_returns_read_only_buffer() -> None:
    buf = render(Candidate([], 2, 2))
    assert buf.flags.writeable is False


def test_render_into_clears_previous_contents() -> None:
    out = new_buffer(3, 3)
    render_into(single(3, 3, full_cover(3, 3, WHITE)), out)
    assert np.all(out == 255)
    render_into(Candidate([], 3, 3), out)
    np.testing.assert_array_equal(out, render(Candidate([], 3, 3)))


def test_render_into_matches_render() -> None:
    cand = initial_candidate(np.random.default_rng(11), 10, 7)
    out = new_buffer(10, 7)
    assert render_into(cand, out) is out
    np.testing.assert_array_equal(out, render(cand))


def test_render_into_rejects_wrong_buffer() -> None:
    cand = Candidate([], 3, 3)
    with pytest.raises(ValueError):
        render_into(cand, new_buffer(2, 2))
    with pytest.raises(ValueError):
        render_into(cand, np.zeros(3 * 3 * 4, dtype=np.float32))
