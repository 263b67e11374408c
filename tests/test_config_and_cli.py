from __future__ import annotations

import json

import pytest
import yaml

from conftest import MINIMAL_JOBS
from jssp.config import SolverConfig, instance_from_config, load_config, solver_config
from jssp.errors import ConfigError
from main import main


def _plain(value):
    """Tuples -> lists so yaml.safe_dump accepts the data."""
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


def _yaml_config(tmp_path, cfg: dict, name: str = "config.yaml") -> str:
    path = tmp_path / name
    path.write_text(yaml.safe_dump(_plain(cfg)), encoding="utf-8")
    return str(path)


def test_defaults_when_sections_missing():
    assert solver_config({}) == SolverConfig()


def test_solver_settings_read():
    cfg = {
        "log_level": "debug",
        "solver": {"time_limit_ms": 1500, "node_limit": 100, "workers": 2, "warm_start": True},
        "output": {"gantt": "out/g.png"},
    }
    settings = solver_config(cfg)
    assert settings.time_limit == 1.5
    assert settings.node_limit == 100
    assert settings.workers == 2
    assert settings.warm_start is True
    assert settings.gantt_path == "out/g.png"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "solver",
    [{"workers": 0}, {"time_limit_s": -1}, {"node_limit": -3}, {"workers": "many"}],
)
def test_invalid_solver_settings(solver):
    with pytest.raises(ConfigError):
        solver_config({"solver": solver})


def test_yaml_and_json_configs_load(tmp_path):
    yaml_path = _yaml_config(tmp_path, {"jobs": [[[0, 1]]]})
    json_path = tmp_path / "config.json"
    json_path.write_text(json.dumps({"jobs": [[[0, 1]]]}), encoding="utf-8")
    assert load_config(yaml_path) == load_config(str(json_path))


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_instance_file_relative_to_config(tmp_path):
    (tmp_path / "inst.txt").write_text("1 2\n0 2 1 3\n", encoding="utf-8")
    inst = instance_from_config({"instance": "inst.txt"}, base_dir=str(tmp_path))
    assert inst.jobs == [[(0, 2), (1, 3)]]


def test_config_without_instance_rejected():
    with pytest.raises(ConfigError):
        instance_from_config({"solver": {}})


def test_cli_prints_optimal_schedule(tmp_path, capsys):
    path = _yaml_config(tmp_path, {"log_level": "WARNING", "jobs": MINIMAL_JOBS})
    assert main(["--config", path]) == 0
    out = capsys.readouterr().out
    assert "Optimal Schedule Length: 11" in out
    assert "Machine 0: job_" in out
    assert "branches :" in out


def test_cli_writes_gantt(tmp_path):
    gantt = tmp_path / "charts" / "gantt.png"
    path = _yaml_config(
        tmp_path,
        {"jobs": MINIMAL_JOBS, "output": {"gantt": str(gantt)}, "solver": {"warm_start": True}},
    )
    assert main(["--config", path]) == 0
    assert gantt.exists()


def test_cli_reports_infeasible(tmp_path, capsys):
    path = _yaml_config(
        tmp_path,
        {"jobs": MINIMAL_JOBS, "precedences": [[[0, 1], [1, 0]], [[1, 1], [0, 0]]]},
    )
    assert main(["--config", path]) == 1
    assert "No solution found." in capsys.readouterr().out
