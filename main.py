#!/usr/bin/env python3
"""Solve a job shop instance described by a YAML/JSON config file."""

import argparse
import logging
import os
import sys

from jssp.config import instance_from_config, load_config, solver_config
from jssp.formatting import format_result
from jssp.models import SolveStatus
from jssp.optimizer import solve
from jssp.visualization import plot_gantt


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Exact job shop solver (branch-and-bound)")
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to the YAML/JSON configuration file",
    )
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    settings = solver_config(cfg)
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("jssp")

    instance = instance_from_config(cfg, base_dir=os.path.dirname(os.path.abspath(args.config)))
    logger.info(
        "Instance: %s jobs=%d machines=%d tasks=%d",
        instance.name or "<unnamed>",
        instance.jobs_number,
        instance.machines_number,
        instance.tasks_number,
    )
    result = solve(
        instance,
        settings.time_limit,
        node_limit=settings.node_limit,
        workers=settings.workers,
        warm_start=settings.warm_start,
    )
    print(format_result(result))

    if settings.gantt_path and result.schedule is not None:
        path = plot_gantt(result.schedule, save_path=settings.gantt_path)
        logger.info("Saved Gantt chart to %s", path)
    return 0 if result.status is not SolveStatus.INFEASIBLE else 1


if __name__ == "__main__":
    sys.exit(main())
