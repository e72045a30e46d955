"""Search strategies driven by `polypaint.engine.Engine`.

Each strategy owns its own population state and implements one iteration in
`step`. The engine owns the iteration counter, termination and batching;
strategies only report their current best.

- `ElitistStrategy`: three-parent elitist evolution with a heavily mutated
  "wildcard" parent and a stagnation burst.
- `AnnealingStrategy`: single-chain simulated annealing with best-ever
  tracking and a reheat when the temperature underflows.
- `DifferentialStrategy`: DE/rand/1/bin over polygon colours and vertices
  with greedy per-index selection.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

import numpy as np

from .candidate import Candidate, Polygon, ScoredCandidate, sort_scored
from .config import EngineConfig
from .generator import initial_candidate
from .mutations import mutate_n
from .scoring import Evaluator


class Strategy(ABC):
    """Common interface: one `step` per iteration plus best-so-far reads."""

    kind: str = ""

    def __init__(self, evaluator: Evaluator, config: EngineConfig, rng: np.random.Generator) -> None:
        self.evaluator = evaluator
        self.config = config
        self.rng = rng

    @property
    def width(self) -> int:
        return self.evaluator.width

    @property
    def height(self) -> int:
        return self.evaluator.height

    def _fresh(self) -> Candidate:
        return initial_candidate(self.rng, self.width, self.height, n_polygons=self.config.initial_polygons)

    def _mutate(self, candidate: Candidate, count: int = 1) -> Candidate:
        return mutate_n(candidate, self.rng, count, min_polygons=self.config.min_polygons)

    def _scored(self, candidates: list[Candidate]) -> list[ScoredCandidate]:
        scores = self.evaluator.score_many(candidates)
        return [ScoredCandidate(s, c) for s, c in zip(scores, candidates)]

    @property
    @abstractmethod
    def best(self) -> ScoredCandidate:
        """Current best `(score, candidate)`."""

    @property
    def best_accuracy(self) -> float:
        return float(self.best.score)

    @abstractmethod
    def step(self, iteration: int) -> None:
        """Advance the search state by one iteration."""


class ElitistStrategy(Strategy):
    """Elitist evolution over a small parent set (sorted best first).

    Each iteration every parent spawns `children_per_parent` mutated
    children. Children and parents are ranked together; the top `n_elite`
    survive unchanged and the single worst of the pool is mutated
    `wildcard_mutations` times to become the last parent. With the default
    `growth_count=0` the parent set is always {best, second best, wildcard}.
    """

    kind = "elitist"

    def __init__(self, evaluator: Evaluator, config: EngineConfig, rng: np.random.Generator) -> None:
        super().__init__(evaluator, config, rng)
        self.parents: list[ScoredCandidate] = sort_scored(self._scored([self._fresh() for _ in range(3)]))
        self.n_elite = 2
        self.stale = 0

    @property
    def best(self) -> ScoredCandidate:
        return self.parents[0]

    def mutations_per_child(self, iteration: int) -> int:
        """`1 + min(iteration // mutation_scaling, max_extra_mutations)`; 1 when scaling is off."""
        scaling = self.config.mutation_scaling
        if scaling <= 0:
            return 1
        return 1 + min(iteration // scaling, self.config.max_extra_mutations)

    def step(self, iteration: int) -> None:
        cfg = self.config
        old_best = self.parents[0].score
        n_mut = self.mutations_per_child(iteration)

        children = [
            self._mutate(parent.candidate, n_mut) for parent in self.parents for _ in range(cfg.children_per_parent)
        ]
        pool = sort_scored(self._scored(children) + self.parents)

        elites = pool[: self.n_elite]
        worst = pool[-1].candidate
        wildcard = self._mutate(worst, cfg.wildcard_mutations)
        parents = [*elites, ScoredCandidate(self.evaluator.score(wildcard), wildcard)]

        if elites[0].score > old_best:
            self.stale = 0
        else:
            self.stale += 1

        # The burst targets the second elite, before the wildcard is ranked.
        if self.stale > cfg.stall_limit and len(parents) > 1:
            shaken = self._mutate(parents[1].candidate, cfg.stall_mutations)
            parents[1] = ScoredCandidate(self.evaluator.score(shaken), shaken)
            self.stale = 0

        self.parents = sort_scored(parents)

        if cfg.growth_count > 0 and iteration > 0 and iteration % cfg.growth_every == 0:
            self.n_elite = min(self.n_elite + cfg.growth_count, cfg.max_parents - 1)


def acceptance_probability(delta: float, temperature: float) -> float:
    """Metropolis acceptance: 1 for improvements, `exp(delta / T)` otherwise."""
    if delta > 0.0:
        return 1.0
    return math.exp(delta / temperature)


class AnnealingStrategy(Strategy):
    """Simulated annealing on a single candidate; reports the best ever seen."""

    kind = "annealing"

    def __init__(self, evaluator: Evaluator, config: EngineConfig, rng: np.random.Generator) -> None:
        super().__init__(evaluator, config, rng)
        start = self._fresh()
        score = self.evaluator.score(start)
        self.current = ScoredCandidate(score, start)
        self.best_ever = ScoredCandidate(score, start.copy())
        self.temperature = float(config.initial_temperature)

    @property
    def best(self) -> ScoredCandidate:
        return self.best_ever

    def accept(self, delta: float) -> bool:
        if delta > 0.0:
            return True
        return float(self.rng.random()) < acceptance_probability(delta, self.temperature)

    def cool(self) -> None:
        self.temperature *= self.config.cooling_rate
        if self.temperature < self.config.temperature_floor:
            self.temperature = self.config.reheat_temperature

    def step(self, iteration: int) -> None:
        neighbour = self._mutate(self.current.candidate)
        score = self.evaluator.score(neighbour)
        if self.accept(score - self.current.score):
            self.current = ScoredCandidate(score, neighbour)
            if score > self.best_ever.score:
                self.best_ever = ScoredCandidate(score, neighbour.copy())
        self.cool()


class DifferentialStrategy(Strategy):
    """Differential evolution with per-polygon binomial crossover.

    The trial for index `i` combines `base + F * (diff1 - diff2)` on colour
    channels and vertex coordinates for polygon slots shared by all four
    candidates, taking the target's own polygon for slots that skip
    crossover. Trials are built from the previous generation and replace
    their target only on strict improvement.
    """

    kind = "differential"

    def __init__(self, evaluator: Evaluator, config: EngineConfig, rng: np.random.Generator) -> None:
        super().__init__(evaluator, config, rng)
        if config.population_size < 4:
            raise ValueError("differential evolution needs a population of at least 4")
        self.population: list[ScoredCandidate] = sort_scored(
            self._scored([self._fresh() for _ in range(config.population_size)])
        )

    @property
    def best(self) -> ScoredCandidate:
        return self.population[0]

    def pick_three(self, exclude: int) -> tuple[int, int, int]:
        """Three distinct indices != `exclude` via a partial Fisher-Yates shuffle."""
        indices = [k for k in range(len(self.population)) if k != exclude]
        for j in range(3):
            k = int(self.rng.integers(j, len(indices)))
            indices[j], indices[k] = indices[k], indices[j]
        return indices[0], indices[1], indices[2]

    def combine(self, base: Polygon, diff1: Polygon, diff2: Polygon) -> Polygon:
        f = self.config.mutation_factor
        colour = base.colour.astype(float) + f * (diff1.colour.astype(float) - diff2.colour.astype(float))
        points = base.points.copy()
        n = min(len(points), len(diff1), len(diff2))
        points[:n] = base.points[:n] + f * (diff1.points[:n] - diff2.points[:n])
        np.clip(points[:n, 0], 0.0, float(self.width - 1), out=points[:n, 0])
        np.clip(points[:n, 1], 0.0, float(self.height - 1), out=points[:n, 1])
        return Polygon(points, np.clip(colour, 0.0, 255.0).astype(np.uint8))

    def trial(self, base: Candidate, diff1: Candidate, diff2: Candidate, target: Candidate) -> Candidate:
        out = base.copy()
        shared = min(len(base), len(diff1), len(diff2), len(target))
        for slot in range(shared):
            if float(self.rng.random()) < self.config.crossover_rate:
                out.polygons[slot] = self.combine(base.polygons[slot], diff1.polygons[slot], diff2.polygons[slot])
            else:
                out.polygons[slot] = target.polygons[slot].copy()
        return out

    def step(self, iteration: int) -> None:
        pop = self.population
        trials = []
        for i in range(len(pop)):
            a, b, c = self.pick_three(i)
            trials.append(self.trial(pop[a].candidate, pop[b].candidate, pop[c].candidate, pop[i].candidate))
        scores = self.evaluator.score_many(trials)

        next_pop = [
            ScoredCandidate(score, trial) if score > member.score else member
            for member, trial, score in zip(pop, trials, scores)
        ]
        self.population = sort_scored(next_pop)


STRATEGY_TYPES: dict[str, type[Strategy]] = {
    ElitistStrategy.kind: ElitistStrategy,
    AnnealingStrategy.kind: AnnealingStrategy,
    DifferentialStrategy.kind: DifferentialStrategy,
}


def build_strategy(kind: str, evaluator: Evaluator, config: EngineConfig, rng: np.random.Generator) -> Strategy:
    try:
        cls = STRATEGY_TYPES[kind]
    except KeyError:
        raise ValueError(f"Unknown strategy: {kind!r} (expected one of {sorted(STRATEGY_TYPES)})") from None
    return cls(evaluator, config, rng)
