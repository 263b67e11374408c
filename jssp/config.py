"""Run configuration loaded from YAML or JSON.

Example::

    log_level: INFO
    instance: data/ft06.txt          # or an inline "jobs:" list
    solver:
      time_limit_s: 10
      node_limit: null
      workers: 1
      warm_start: false
    output:
      gantt: results/gantt.png
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from jssp.errors import ConfigError
from jssp.models import JobShopInstance
from jssp.parser import instance_from_data, parse_instance_file


@dataclass(slots=True)
class SolverConfig:
    """Everything one CLI run needs besides the instance itself."""

    time_limit: Optional[float] = None
    node_limit: Optional[int] = None
    workers: int = 1
    warm_start: bool = False
    gantt_path: Optional[str] = None
    log_level: str = "INFO"


def load_config(config_file: str) -> Dict[str, Any]:
    """Read a YAML (``.yml``/``.yaml``) or JSON config file into a dict."""
    if not os.path.isfile(config_file):
        raise FileNotFoundError(f"Config file not found: {config_file}")
    with open(config_file, "r", encoding="utf-8") as f:
        text = f.read()
    if config_file.endswith((".yml", ".yaml")):
        cfg = yaml.safe_load(text) or {}
    else:
        cfg = json.loads(text)
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config root must be a mapping, got {type(cfg).__name__}")
    return cfg


def solver_config(cfg: Dict[str, Any]) -> SolverConfig:
    """Extract solver/output settings, applying defaults for missing keys.

    ``time_limit_ms`` is accepted next to ``time_limit_s``.
    """
    solver_cfg = cfg.get("solver", {}) if isinstance(cfg.get("solver"), dict) else {}
    output_cfg = cfg.get("output", {}) if isinstance(cfg.get("output"), dict) else {}

    time_limit = solver_cfg.get("time_limit_s")
    if time_limit is None and solver_cfg.get("time_limit_ms") is not None:
        time_limit = float(solver_cfg["time_limit_ms"]) / 1000.0
    try:
        config = SolverConfig(
            time_limit=None if time_limit is None else float(time_limit),
            node_limit=(
                None if solver_cfg.get("node_limit") is None else int(solver_cfg["node_limit"])
            ),
            workers=int(solver_cfg.get("workers", 1)),
            warm_start=bool(solver_cfg.get("warm_start", False)),
            gantt_path=output_cfg.get("gantt"),
            log_level=str(cfg.get("log_level", "INFO")).upper(),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid solver settings: {e}") from e
    if config.time_limit is not None and config.time_limit < 0:
        raise ConfigError("solver.time_limit_s must be >= 0")
    if config.node_limit is not None and config.node_limit < 0:
        raise ConfigError("solver.node_limit must be >= 0")
    if config.workers < 1:
        raise ConfigError("solver.workers must be >= 1")
    return config


def instance_from_config(cfg: Dict[str, Any], base_dir: str = ".") -> JobShopInstance:
    """Resolve the instance: ``instance`` file path or inline ``jobs``.

    Relative paths are resolved against ``base_dir`` (the config's folder).
    """
    if cfg.get("instance"):
        path = str(cfg["instance"])
        if not os.path.isabs(path):
            path = os.path.join(base_dir, path)
        return parse_instance_file(path)
    if cfg.get("jobs") is not None:
        return instance_from_data(
            cfg["jobs"],
            machines_number=cfg.get("machines"),
            name=str(cfg.get("name", "inline")),
            extra_precedences=cfg.get("precedences"),
        )
    raise ConfigError("Config needs either 'instance' (file path) or 'jobs' (inline list)")
