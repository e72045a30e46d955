"""Approximate raster images with evolved semi-transparent polygons.

Expose the main API: the engine and its free-function facade.
"""

from .candidate import Candidate, Polygon, ScoredCandidate
from .config import EngineConfig
from .engine import Engine, get_accuracy, get_dimensions, get_iteration, initialize, is_finished, step_batch
from .renderer import render, render_into
from .scoring import mse_accuracy, sad_accuracy

__all__ = [
    "Candidate",
    "Engine",
    "EngineConfig",
    "Polygon",
    "ScoredCandidate",
    "get_accuracy",
    "get_dimensions",
    "get_iteration",
    "initialize",
    "is_finished",
    "mse_accuracy",
    "render",
    "render_into",
    "sad_accuracy",
    "step_batch",
]
