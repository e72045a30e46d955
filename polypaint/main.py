"""Command-line runner: evolve a polygon painting of a target image.

Usage:
  python -m polypaint target.png --strategy annealing --out painting.png
  polypaint target.png --config configs/run.json

Progress is printed once per batch; snapshots and an accuracy plot are
optional.
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from .config import STRATEGIES, EngineConfig, config_to_argv, default_config_path
from .engine import Engine
from .image_io import load_rgba, plot_history, save_rgba


def build_parser() -> argparse.ArgumentParser:
    defaults = EngineConfig()
    ap = argparse.ArgumentParser(description="Approximate an image with evolved semi-transparent polygons")
    ap.add_argument("target", type=Path, help="Target image (PNG/JPEG)")
    ap.add_argument("--config", type=Path, default=None, help="JSON/YAML config (explicit flags override it)")
    ap.add_argument("--no-config", action="store_true", help="Ignore configs/polypaint.json")
    ap.add_argument("--strategy", type=str, default="elitist", choices=list(STRATEGIES))
    ap.add_argument("--metric", type=str, default=defaults.metric, choices=["sad", "mse"])
    ap.add_argument("--backend", type=str, default=defaults.backend, choices=["numpy", "jax"])
    ap.add_argument("--max-iterations", type=int, default=defaults.max_iterations)
    ap.add_argument("--target-accuracy", type=float, default=defaults.target_accuracy)
    ap.add_argument("--batch-size", type=int, default=500, help="Iterations per progress report")
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--initial-polygons", type=int, default=defaults.initial_polygons)
    ap.add_argument("--min-polygons", type=int, default=defaults.min_polygons)

    es = ap.add_argument_group("elitist")
    es.add_argument("--children-per-parent", type=int, default=10)
    es.add_argument("--wildcard-mutations", type=int, default=defaults.wildcard_mutations)
    es.add_argument("--stall-limit", type=int, default=defaults.stall_limit)
    es.add_argument("--stall-mutations", type=int, default=defaults.stall_mutations)
    es.add_argument(
        "--mutation-scaling",
        type=int,
        default=10_000,
        help="Add one mutation per child every N iterations (0 disables)",
    )
    es.add_argument("--max-extra-mutations", type=int, default=defaults.max_extra_mutations)
    es.add_argument("--growth-every", type=int, default=defaults.growth_every)
    es.add_argument("--growth-count", type=int, default=defaults.growth_count, help="Extra elites kept per growth step")
    es.add_argument("--max-parents", type=int, default=defaults.max_parents)

    sa = ap.add_argument_group("annealing")
    sa.add_argument("--initial-temperature", type=float, default=defaults.initial_temperature)
    sa.add_argument("--cooling-rate", type=float, default=defaults.cooling_rate)

    de = ap.add_argument_group("differential")
    de.add_argument("--population-size", type=int, default=defaults.population_size)
    de.add_argument("--mutation-factor", type=float, default=defaults.mutation_factor)
    de.add_argument("--crossover-rate", type=float, default=defaults.crossover_rate)

    out = ap.add_argument_group("output")
    out.add_argument("--out", type=Path, default=Path("output.png"))
    out.add_argument("--snapshot-dir", type=Path, default=None, help="Save intermediate renders here")
    out.add_argument("--snapshot-every", type=int, default=1000)
    out.add_argument("--plot", type=Path, default=None, help="Save an accuracy-vs-iteration plot")
    return ap


def config_from_args(args: argparse.Namespace) -> EngineConfig:
    return EngineConfig(
        max_iterations=args.max_iterations,
        target_accuracy=args.target_accuracy,
        metric=args.metric,
        backend=args.backend,
        initial_polygons=args.initial_polygons,
        min_polygons=args.min_polygons,
        children_per_parent=args.children_per_parent,
        wildcard_mutations=args.wildcard_mutations,
        stall_limit=args.stall_limit,
        stall_mutations=args.stall_mutations,
        mutation_scaling=args.mutation_scaling,
        max_extra_mutations=args.max_extra_mutations,
        growth_every=args.growth_every,
        growth_count=args.growth_count,
        max_parents=args.max_parents,
        initial_temperature=args.initial_temperature,
        cooling_rate=args.cooling_rate,
        population_size=args.population_size,
        mutation_factor=args.mutation_factor,
        crossover_rate=args.crossover_rate,
    ).validate()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    argv = list(sys.argv[1:] if argv is None else argv)
    ap = build_parser()

    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=Path, default=None)
    pre.add_argument("--no-config", action="store_true")
    known, _ = pre.parse_known_args(argv)
    config_path = known.config
    if config_path is None and not known.no_config:
        config_path = default_config_path("polypaint.json")
    if config_path is not None:
        argv = config_to_argv(config_path) + argv
    return ap.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    args = parse_args(argv)
    config = config_from_args(args)
    pixels, width, height = load_rgba(args.target)

    print(f"Painting {args.target} ({width}x{height}) with:")
    print(f"  Strategy: {args.strategy}")
    print(f"  Metric: {config.metric} ({config.backend})")
    print(f"  Max iterations: {config.max_iterations}")
    print(f"  Target accuracy: {config.target_accuracy * 100:.2f}%")

    engine = Engine(pixels, width, height, args.strategy, config, seed=args.seed)
    batch = max(1, int(args.batch_size))
    next_snapshot = args.snapshot_every if args.snapshot_every > 0 else None

    start_time = time.time()
    finished = False
    while not finished:
        finished, best = engine.step_batch(batch)
        print(f"Iteration {engine.iteration}: accuracy = {engine.accuracy * 100:.4f}%")
        if args.snapshot_dir is not None and next_snapshot is not None and engine.iteration >= next_snapshot:
            save_rgba(args.snapshot_dir / f"{args.strategy}_{engine.iteration:07d}.png", best, width, height)
            while next_snapshot <= engine.iteration:
                next_snapshot += args.snapshot_every
    elapsed = time.time() - start_time

    print(f"Finished after {engine.iteration} iterations with accuracy {engine.accuracy * 100:.4f}%")
    print(f"Done in {elapsed:.2f}s ({engine.iteration / max(elapsed, 1e-9):.2f} it/s)")

    save_rgba(args.out, engine.best_pixels(), width, height)
    print(f"Saved result to {args.out}")
    if args.plot is not None:
        plot_history(engine.history, args.plot, title=f"{args.strategy} ({config.metric})")
        print(f"Saved plot to {args.plot}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
