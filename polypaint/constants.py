"""Project-wide constants.

These values centralize the generator ranges, mutation step sizes and
engine defaults used throughout the codebase.
"""

from __future__ import annotations

# Random polygon generation.
MIN_POINTS: int = 3
MAX_POINTS: int = 6
ALPHA_MIN: int = 30
ALPHA_MAX: int = 150
INITIAL_POLYGONS: int = 50

# Mutation step sizes.
POINT_MOVE_DELTA: float = 5.0
POLYGON_MOVE_DELTA: float = 3.0
COLOUR_DELTA: int = 20
MIN_POLYGONS: int = 10

# Pixel buffers are RGBA, one byte per channel.
CHANNELS: int = 4
MAX_CHANNEL: int = 255

# Simulated annealing temperature guard.
TEMPERATURE_FLOOR: float = 1e-4
REHEAT_TEMPERATURE: float = 0.1
