"""Optimization engine: batched stepping over a selected strategy.

Programmatic use:
  from polypaint.engine import Engine
  engine = Engine(target_pixels, width, height, "annealing", seed=0)
  finished, pixels = engine.step_batch(100)

The engine owns the iteration counter and termination. A run terminates
when `iteration >= max_iterations` or the best accuracy reaches
`target_accuracy`; afterwards `step_batch` is a no-op that returns the
frozen best rendering.
"""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from .candidate import Candidate
from .config import STRATEGIES, EngineConfig
from .renderer import render
from .scoring import Evaluator
from .strategies import Strategy, build_strategy


class Engine:
    """Drive one strategy against one target image.

    Args:
        target: Target RGBA pixels, row-major, length `width * height * 4`.
            The length is not checked here; a mismatch scores 0.0.
        width: Canvas width in pixels (> 0).
        height: Canvas height in pixels (> 0).
        strategy: `"elitist"`, `"annealing"` or `"differential"`.
        config: `EngineConfig` (or a mapping accepted by
            `EngineConfig.from_mapping`); defaults when omitted.
        seed: Seed for the engine's random source.
        rng: Explicit random source (takes precedence over `seed`).
    """

    def __init__(
        self,
        target: object,
        width: int,
        height: int,
        strategy: str = "elitist",
        config: EngineConfig | Mapping[str, Any] | None = None,
        *,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        if int(width) <= 0 or int(height) <= 0:
            raise ValueError(f"canvas dimensions must be positive, got {width}x{height}")
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy: {strategy!r} (expected one of {list(STRATEGIES)})")
        if config is None:
            config = EngineConfig()
        elif not isinstance(config, EngineConfig):
            config = EngineConfig.from_mapping(config)
        self.config = config.validate()

        self.width = int(width)
        self.height = int(height)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.evaluator = Evaluator(target, self.width, self.height, metric=config.metric, backend=config.backend)
        self.strategy: Strategy = build_strategy(strategy, self.evaluator, self.config, self.rng)

        self._iteration = 0
        self._finished = False
        self._frozen_pixels: np.ndarray | None = None
        self.history: list[tuple[int, float]] = [(0, self.accuracy)]

    @property
    def kind(self) -> str:
        return self.strategy.kind

    @property
    def iteration(self) -> int:
        return self._iteration

    @property
    def accuracy(self) -> float:
        return self.strategy.best_accuracy

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def best_candidate(self) -> Candidate:
        return self.strategy.best.candidate

    def _should_stop(self) -> bool:
        return self._iteration >= self.config.max_iterations or self.accuracy >= self.config.target_accuracy

    def best_pixels(self) -> np.ndarray:
        """Render the current best candidate (cached once the run is finished)."""
        if self._frozen_pixels is not None:
            return self._frozen_pixels
        pixels = render(self.best_candidate)
        if self._finished:
            self._frozen_pixels = pixels
        return pixels

    def step_batch(self, batch_size: int) -> tuple[bool, np.ndarray]:
        """Run up to `batch_size` iterations, stopping early on termination.

        Returns:
            `(finished, best_pixels)` where `best_pixels` is a read-only flat
            RGBA buffer of the current best candidate.
        """
        if self._finished:
            return True, self.best_pixels()
        if batch_size < 0:
            raise ValueError(f"batch_size must be >= 0, got {batch_size}")

        for _ in range(int(batch_size)):
            if self._should_stop():
                self._finished = True
                break
            self.strategy.step(self._iteration)
            self._iteration += 1
        else:
            if batch_size > 0 and self._should_stop():
                self._finished = True

        if batch_size > 0:
            self.history.append((self._iteration, self.accuracy))
        return self._finished, self.best_pixels()


def initialize(
    target: object,
    width: int,
    height: int,
    strategy: str = "elitist",
    config: EngineConfig | Mapping[str, Any] | None = None,
    *,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> Engine:
    return Engine(target, width, height, strategy, config, seed=seed, rng=rng)


def step_batch(engine: Engine, batch_size: int) -> tuple[bool, np.ndarray]:
    return engine.step_batch(batch_size)


def get_iteration(engine: Engine) -> int:
    return engine.iteration


def get_accuracy(engine: Engine) -> float:
    return engine.accuracy


def is_finished(engine: Engine) -> bool:
    return engine.finished


def get_dimensions(engine: Engine) -> tuple[int, int]:
    return engine.dimensions
