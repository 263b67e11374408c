"""Exact job shop scheduling by branch-and-bound.

Exports the data structures, the model builder and the ``solve`` entry point.
"""

from jssp.errors import ConfigError, InstanceError, InvariantViolationError  # noqa: F401
from jssp.model_builder import IntervalVar, JobShopModel, build_model  # noqa: F401
from jssp.models import (  # noqa: F401
    JobShopInstance,
    Schedule,
    ScheduledTask,
    SearchStatistics,
    SolveResult,
    SolveStatus,
)
from jssp.optimizer import solve  # noqa: F401
from jssp.parser import parse_instance_file  # noqa: F401

__all__ = [
    "ConfigError",
    "InstanceError",
    "IntervalVar",
    "InvariantViolationError",
    "JobShopInstance",
    "JobShopModel",
    "Schedule",
    "ScheduledTask",
    "SearchStatistics",
    "SolveResult",
    "SolveStatus",
    "build_model",
    "parse_instance_file",
    "solve",
]
