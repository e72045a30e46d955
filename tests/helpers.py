import numpy as np

from polypaint.candidate import Candidate, Polygon


def full_cover(width: int, height: int, colour) -> Polygon:
    """A rectangle whose scanline fill covers every pixel of the canvas."""
    return Polygon(
        np.array([[0.0, 0.0], [width, 0.0], [width, height], [0.0, height]], dtype=float),
        np.array(colour, dtype=np.uint8),
    )


def single(width: int, height: int, polygon: Polygon) -> Candidate:
    return Candidate([polygon], width, height)
