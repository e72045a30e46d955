"""Pixel-buffer similarity metrics and candidate evaluation.

Both metrics turn a per-byte distance into an accuracy in `[0, 1]`
(1.0 = identical). They are evaluated over every byte of the buffers,
including the alpha channel. Buffers of different length, or empty buffers,
score 0.0 instead of raising.

The scoring code is NumPy-based; `scoring_jax` provides an optional batched
backend with the same semantics.
"""

from __future__ import annotations

from typing import Callable, Literal, Sequence

import numpy as np

from .candidate import Candidate
from .constants import MAX_CHANNEL
from .renderer import new_buffer, render_into

Metric = Literal["sad", "mse"]
Backend = Literal["numpy", "jax"]

MetricFn = Callable[[object, object], float]


def as_pixels(buffer: object) -> np.ndarray:
    """Return a flat uint8 view of bytes-like or array-like pixel data."""
    if isinstance(buffer, (bytes, bytearray, memoryview)):
        return np.frombuffer(buffer, dtype=np.uint8)
    return np.asarray(buffer, dtype=np.uint8).reshape(-1)


def _diff(target: object, rendered: object) -> np.ndarray | None:
    t = as_pixels(target)
    r = as_pixels(rendered)
    if t.size != r.size or t.size == 0:
        return None
    return t.astype(np.int64) - r.astype(np.int64)


def sad_accuracy(target: object, rendered: object) -> float:
    """`1 - sum|t - r| / (len * 255)`; 0.0 on length mismatch or empty input."""
    diff = _diff(target, rendered)
    if diff is None:
        return 0.0
    total = int(np.abs(diff).sum())
    return 1.0 - total / float(diff.size * MAX_CHANNEL)


def mse_accuracy(target: object, rendered: object) -> float:
    """`1 - sum(t - r)^2 / (len * 255^2)`; 0.0 on length mismatch or empty input."""
    diff = _diff(target, rendered)
    if diff is None:
        return 0.0
    total = int(np.square(diff).sum())
    return 1.0 - total / float(diff.size * MAX_CHANNEL * MAX_CHANNEL)


METRICS: dict[str, MetricFn] = {
    "sad": sad_accuracy,
    "mse": mse_accuracy,
}


def get_metric(name: str) -> MetricFn:
    try:
        return METRICS[name]
    except KeyError:
        raise ValueError(f"Unknown metric: {name!r} (expected one of {sorted(METRICS)})") from None


class Evaluator:
    """Render-and-score candidates against one fixed target.

    Holds a single reusable render buffer, so a step that scores many
    candidates does not reallocate per candidate.

    Args:
        target: Target RGBA pixels (expected length `width * height * 4`).
        width: Canvas width.
        height: Canvas height.
        metric: `"sad"` or `"mse"`; fixed for the lifetime of the evaluator.
        backend: `"numpy"` scores one buffer at a time; `"jax"` scores batches
            with `scoring_jax.batch_accuracy`.
    """

    def __init__(
        self,
        target: object,
        width: int,
        height: int,
        *,
        metric: Metric = "sad",
        backend: Backend = "numpy",
    ) -> None:
        if backend not in {"numpy", "jax"}:
            raise ValueError(f"Unknown backend: {backend!r}")
        self.target = as_pixels(target).copy()
        self.width = int(width)
        self.height = int(height)
        self.metric = metric
        self.backend = backend
        self._metric_fn = get_metric(metric)
        self._buffer = new_buffer(self.width, self.height)

    def score(self, candidate: Candidate) -> float:
        render_into(candidate, self._buffer)
        return float(self._metric_fn(self.target, self._buffer))

    def score_many(self, candidates: Sequence[Candidate]) -> list[float]:
        """Score candidates in order; the result is aligned with the input."""
        if self.backend == "numpy" or not candidates:
            return [self.score(c) for c in candidates]

        from .scoring_jax import batch_accuracy

        stack = np.empty((len(candidates), self._buffer.size), dtype=np.uint8)
        for i, candidate in enumerate(candidates):
            render_into(candidate, stack[i])
        return [float(s) for s in batch_accuracy(self.target, stack, metric=self.metric)]
