import json

import pytest

from polypaint.config import EngineConfig, config_to_argv, default_config_path


def test_defaults_are_valid() -> None:
    cfg = EngineConfig().validate()
    assert cfg.max_iterations == 100_000
    assert cfg.target_accuracy == 0.95
    assert (cfg.children_per_parent, cfg.population_size) == (5, 6)
    assert (cfg.initial_temperature, cfg.cooling_rate) == (1.0, 0.99995)
    assert (cfg.mutation_factor, cfg.crossover_rate) == (0.8, 0.9)


def test_from_mapping_accepts_camel_case_and_aliases() -> None:
    cfg = EngineConfig.from_mapping(
        {
            "maxIterations": 10,
            "targetAccuracy": 0.5,
            "initialTemp": 2.0,
            "coolingRate": 0.9,
            "populationSize": 8,
            "F": 1.2,
            "CR": 0.4,
            "es_children_per_parent": 3,
        }
    )
    assert cfg.max_iterations == 10
    assert cfg.target_accuracy == 0.5
    assert cfg.initial_temperature == 2.0
    assert cfg.cooling_rate == 0.9
    assert cfg.population_size == 8
    assert cfg.mutation_factor == 1.2
    assert cfg.crossover_rate == 0.4
    assert cfg.children_per_parent == 3


@pytest.mark.parametrize(
    "changes",
    [
        {"max_iterations": -1},
        {"target_accuracy": 0.0},
        {"target_accuracy": 1.5},
        {"metric": "ssim"},
        {"backend": "torch"},
        {"children_per_parent": 0},
        {"initial_temperature": 0.0},
        {"cooling_rate": 1.0},
        {"cooling_rate": 0.0},
        {"population_size": 3},
        {"crossover_rate": 1.1},
        {"growth_every": 0},
        {"reheat_temperature": 1e-5},
    ],
)
def test_validate_rejects(changes) -> None:
    with pytest.raises(ValueError):
        EngineConfig(**changes).validate()


def test_zero_iterations_and_unit_target_are_allowed() -> None:
    EngineConfig(max_iterations=0, target_accuracy=1.0).validate()


def test_from_mapping_rejects_unknown_keys() -> None:
    with pytest.raises(ValueError):
        EngineConfig.from_mapping({"mutationRate": 0.1})


def test_config_to_argv_section(tmp_path) -> None:
    path = tmp_path / "run.json"
    path.write_text(
        json.dumps(
            {
                "polypaint": {
                    "strategy": "annealing",
                    "maxIterations": 500,
                    "annealing": {"cooling_rate": 0.99},
                    "output": {"snapshot-every": 250},
                    "verbose": True,
                    "quiet": False,
                    "skip": None,
                }
            }
        ),
        encoding="utf-8",
    )
    argv = config_to_argv(path)
    assert argv == [
        "--strategy",
        "annealing",
        "--max-iterations",
        "500",
        "--cooling-rate",
        "0.99",
        "--snapshot-every",
        "250",
        "--verbose",
    ]


def test_config_to_argv_rejects_bad_keys(tmp_path) -> None:
    nested = tmp_path / "nested.json"
    nested.write_text(json.dumps({"sa": {"cooling_rate": 0.9}}), encoding="utf-8")
    with pytest.raises(TypeError):
        config_to_argv(nested)

    recursive = tmp_path / "recursive.json"
    recursive.write_text(json.dumps({"polypaint": {"config": "other.json"}}), encoding="utf-8")
    with pytest.raises(ValueError):
        config_to_argv(recursive)

    not_table = tmp_path / "not_table.json"
    not_table.write_text(json.dumps({"polypaint": ["--seed", "3"]}), encoding="utf-8")
    with pytest.raises(TypeError):
        config_to_argv(not_table)


def test_config_to_argv_rejects_non_mapping(tmp_path) -> None:
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(TypeError):
        config_to_argv(path)


def test_yaml_config(tmp_path) -> None:
    pytest.importorskip("yaml")
    path = tmp_path / "run.yaml"
    path.write_text("strategy: differential\npopulation_size: 7\n", encoding="utf-8")
    assert config_to_argv(path) == ["--strategy", "differential", "--population-size", "7"]


def test_default_config_path(tmp_path, monkeypatch) -> None:
    (tmp_path / "pyproject.toml").write_text("", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert default_config_path("polypaint.json") is None
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "polypaint.json").write_text("{}", encoding="utf-8")
    assert default_config_path("polypaint.json") == (tmp_path / "configs" / "polypaint.json").resolve()
