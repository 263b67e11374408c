"""Pytest configuration and shared instance builders.

Also ensures the repository root is on sys.path so 'import jssp' and
'import main' work without installation.
"""

from __future__ import annotations

import itertools
import random
import sys
from pathlib import Path

import pytest

_root = Path(__file__).resolve().parents[1]
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from jssp.models import JobShopInstance  # noqa: E402

DATA_DIR = _root / "data"

# three jobs on three machines, optimal makespan 11
MINIMAL_JOBS = [
    [(0, 3), (1, 2), (2, 2)],
    [(0, 2), (2, 1), (1, 4)],
    [(1, 4), (2, 3)],
]


def random_jobs(
    jobs_number: int,
    machines_number: int,
    seed: int,
    max_duration: int = 9,
) -> list[list[tuple[int, int]]]:
    """Classic job shop: every job visits every machine once, random order."""
    rng = random.Random(seed)
    jobs = []
    for _ in range(jobs_number):
        machines = list(range(machines_number))
        rng.shuffle(machines)
        jobs.append([(m, rng.randint(1, max_duration)) for m in machines])
    return jobs


@pytest.fixture
def minimal_instance() -> JobShopInstance:
    return JobShopInstance.from_jobs(MINIMAL_JOBS, name="minimal")


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR


def check_schedule(jobs, result) -> None:
    """Assert machine exclusivity, job order and the reported makespan."""
    schedule = result.schedule
    assert schedule is not None
    for rows in schedule.machines:
        for a, b in itertools.combinations(rows, 2):
            assert a.end <= b.start or b.end <= a.start
    for j, job in enumerate(jobs):
        for k in range(len(job) - 1):
            assert schedule.start_of(j, k + 1) >= schedule.start_of(j, k) + job[k][1]
    last_ends = [schedule.start_of(j, len(job) - 1) + job[-1][1] for j, job in enumerate(jobs)]
    assert result.makespan == max(last_ends) == schedule.makespan
