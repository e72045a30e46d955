"""Engine configuration and config-file helpers.

`EngineConfig` holds every run knob with validated defaults. Config files
are expected to live under `configs/` at the repository root.

Supported formats:
- JSON (always)
- YAML (optional; requires `pyyaml` to be installed)

Keys are flag names, optionally wrapped in a `{"polypaint": {...}}` table;
per-strategy tables such as `{"annealing": {...}}` group their flags.
"""

from __future__ import annotations

import dataclasses
import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from .constants import INITIAL_POLYGONS, MIN_POLYGONS, REHEAT_TEMPERATURE, TEMPERATURE_FLOOR

STRATEGIES: tuple[str, ...] = ("elitist", "annealing", "differential")


@dataclass(frozen=True)
class EngineConfig:
    """Run configuration shared by all strategies.

    Termination: a run finishes once `max_iterations` iterations have been
    performed or the best accuracy reaches `target_accuracy`.
    """

    max_iterations: int = 100_000
    target_accuracy: float = 0.95
    metric: str = "sad"
    backend: str = "numpy"
    initial_polygons: int = INITIAL_POLYGONS
    min_polygons: int = MIN_POLYGONS

    # Elitist evolution
    children_per_parent: int = 5
    wildcard_mutations: int = 5
    stall_limit: int = 500
    stall_mutations: int = 20
    mutation_scaling: int = 0
    max_extra_mutations: int = 2
    growth_every: int = 1000
    growth_count: int = 0
    max_parents: int = 8

    # Simulated annealing
    initial_temperature: float = 1.0
    cooling_rate: float = 0.99995
    temperature_floor: float = TEMPERATURE_FLOOR
    reheat_temperature: float = REHEAT_TEMPERATURE

    # Differential evolution
    population_size: int = 6
    mutation_factor: float = 0.8
    crossover_rate: float = 0.9

    def validate(self) -> "EngineConfig":
        """Raise `ValueError` on the first invalid knob; return `self` otherwise."""
        checks = [
            (self.max_iterations >= 0, "max_iterations must be >= 0"),
            (0.0 < self.target_accuracy <= 1.0, "target_accuracy must be in (0, 1]"),
            (self.metric in {"sad", "mse"}, f"unknown metric {self.metric!r}"),
            (self.backend in {"numpy", "jax"}, f"unknown backend {self.backend!r}"),
            (self.initial_polygons >= 0, "initial_polygons must be >= 0"),
            (self.min_polygons >= 0, "min_polygons must be >= 0"),
            (self.children_per_parent >= 1, "children_per_parent must be >= 1"),
            (self.wildcard_mutations >= 0, "wildcard_mutations must be >= 0"),
            (self.stall_limit >= 0, "stall_limit must be >= 0"),
            (self.stall_mutations >= 0, "stall_mutations must be >= 0"),
            (self.mutation_scaling >= 0, "mutation_scaling must be >= 0 (0 disables)"),
            (self.max_extra_mutations >= 0, "max_extra_mutations must be >= 0"),
            (self.growth_every >= 1, "growth_every must be >= 1"),
            (self.growth_count >= 0, "growth_count must be >= 0"),
            (self.max_parents >= 3, "max_parents must be >= 3"),
            (self.initial_temperature > 0.0, "initial_temperature must be > 0"),
            (0.0 < self.cooling_rate < 1.0, "cooling_rate must be in (0, 1)"),
            (self.temperature_floor > 0.0, "temperature_floor must be > 0"),
            (self.reheat_temperature > self.temperature_floor, "reheat_temperature must exceed temperature_floor"),
            (self.population_size >= 4, "population_size must be >= 4"),
            (0.0 <= self.crossover_rate <= 1.0, "crossover_rate must be in [0, 1]"),
        ]
        for ok, message in checks:
            if not ok:
                raise ValueError(message)
        return self

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "EngineConfig":
        """Build a config from snake_case or camelCase keys (`maxIterations` etc.).

        Unknown keys raise `ValueError`.
        """
        fields = {f.name for f in dataclasses.fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in mapping.items():
            name = _snake_case(str(key))
            name = _ALIASES.get(name, name)
            if name not in fields:
                raise ValueError(f"Unknown config key: {key!r}")
            kwargs[name] = value
        return cls(**kwargs).validate()

    def replace(self, **changes: Any) -> "EngineConfig":
        return dataclasses.replace(self, **changes).validate()


# Alternate spellings accepted by `from_mapping`.
_ALIASES: dict[str, str] = {
    "children": "children_per_parent",
    "es_children_per_parent": "children_per_parent",
    "initial_temp": "initial_temperature",
    "temperature": "initial_temperature",
    "f": "mutation_factor",
    "cr": "crossover_rate",
}


def _snake_case(name: str) -> str:
    name = name.strip().replace("-", "_")
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name).lower()


def default_config_path(filename: str = "polypaint.json") -> Path | None:
    """Return `configs/<filename>` under the nearest directory with a `pyproject.toml`."""
    cwd = Path.cwd().resolve()
    root = next((cand for cand in (cwd, *cwd.parents) if (cand / "pyproject.toml").is_file()), cwd)
    path = root / "configs" / filename
    return path if path.is_file() else None


def load_config_file(path: Path) -> Any:
    suffix = path.suffix.lower()
    raw = path.read_text(encoding="utf-8")
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore[import-not-found]
        except Exception as exc:  # pragma: no cover
            raise SystemExit(f"YAML config requires pyyaml: {exc}") from exc
        return yaml.safe_load(raw)
    return json.loads(raw)


# Tables that only group CLI flags; their keys are hoisted to the top level.
_FLAG_GROUPS = frozenset((*STRATEGIES, "output"))


def _flag_tokens(mapping: dict[str, Any], source: Path) -> list[str]:
    tokens: list[str] = []
    for key, value in mapping.items():
        name = _snake_case(str(key))
        if isinstance(value, dict):
            if name not in _FLAG_GROUPS:
                raise TypeError(f"{source}: unexpected table {key!r}")
            tokens += _flag_tokens(value, source)
            continue
        if name in {"config", "no_config"}:
            raise ValueError(f"{source}: {key!r} cannot be set from a config file")
        if value is None or value is False:
            continue
        flag = "--" + name.replace("_", "-")
        tokens += [flag] if value is True else [flag, str(value)]
    return tokens


def config_to_argv(config_path: Path, *, section: str = "polypaint") -> list[str]:
    """Convert a JSON/YAML run file into CLI tokens.

    The file is a mapping of flag names (snake_case, kebab-case or camelCase),
    optionally wrapped in a `section` table. Tables named after a strategy or
    `output` group flags, so `{"annealing": {"coolingRate": 0.99}}` yields
    `--cooling-rate 0.99`. The tokens are meant to be prepended to the
    explicit flags, which therefore win.
    """
    data = load_config_file(config_path)
    if not isinstance(data, dict):
        raise TypeError(f"{config_path}: expected a mapping at top-level, got {type(data).__name__}")
    table = data.get(section, data)
    if not isinstance(table, dict):
        raise TypeError(f"{config_path}: expected {section!r} to be a mapping, got {type(table).__name__}")
    return _flag_tokens(table, config_path)
