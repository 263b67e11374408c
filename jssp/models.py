"""Core data structures for job shop instances, schedules and solver results.

This module defines:
    Task             -- alias describing a single operation (machine, duration).
    TaskKey          -- alias identifying an operation (job_id, task_index).
    JobShopInstance  -- immutable container with all jobs for one instance.
    ScheduledTask    -- one operation placed in time.
    Schedule         -- per-machine ordered rows plus makespan.
    SolveStatus      -- outcome of a solve (optimal / feasible / infeasible).
    SearchStatistics -- branch-and-bound counters reported next to a result.
    SolveResult      -- everything `solve` returns.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from jssp.errors import InstanceError

Task = tuple[int, int]  # (machine, duration)
TaskKey = tuple[int, int]  # (job_id, task_index)
Precedence = tuple[TaskKey, TaskKey]  # (before, after)


@dataclass(frozen=True)
class JobShopInstance:
    """Immutable representation of a job shop instance.

    Attributes:
        jobs: Nested list: jobs[j][k] -> (machine, duration).
        jobs_number: Number of jobs (J).
        machines_number: Number of machines (M).
        name: Optional label (file stem, config key, ...).
        extra_precedences: Additional ``before -> after`` links between
            arbitrary tasks, on top of the job order.
    """

    jobs: list[list[Task]]
    jobs_number: int
    machines_number: int
    name: str = ""
    extra_precedences: tuple[Precedence, ...] = ()

    @classmethod
    def from_jobs(
        cls,
        jobs: list[list[Task]],
        machines_number: Optional[int] = None,
        name: str = "",
        extra_precedences: Optional[list[Precedence]] = None,
    ) -> "JobShopInstance":
        """Build an instance inferring the machine count from the data.

        Only the shape is checked and normalised here; value checks live in
        the model builder.

        Raises:
            InstanceError: A job is not a sequence or a task is not a
                ``(machine, duration)`` pair.
        """
        if not isinstance(jobs, (list, tuple)):
            raise InstanceError(f"Jobs must be a list, got {type(jobs).__name__}")
        normalised = []
        for j, job in enumerate(jobs):
            if not isinstance(job, (list, tuple)):
                raise InstanceError(f"Job {j} must be a list of (machine, duration) pairs")
            row = []
            for k, task in enumerate(job):
                if not isinstance(task, (list, tuple)) or len(task) != 2:
                    raise InstanceError(
                        f"Task ({j}, {k}) must be a (machine, duration) pair, got {task!r}"
                    )
                row.append(tuple(task))
            normalised.append(row)
        if machines_number is None:
            machines_number = 1
            for job in normalised:
                for machine, _ in job:
                    if isinstance(machine, int):
                        machines_number = max(machines_number, machine + 1)
        links = tuple(
            (tuple(before), tuple(after)) for before, after in (extra_precedences or [])
        )
        return cls(
            jobs=normalised,  # type: ignore[arg-type]
            jobs_number=len(normalised),
            machines_number=machines_number,
            name=name,
            extra_precedences=links,  # type: ignore[arg-type]
        )

    @property
    def tasks_number(self) -> int:
        return sum(len(job) for job in self.jobs)


@dataclass(frozen=True)
class ScheduledTask:
    """Single scheduled operation with timing and identification data.

    Fields:
        job: Job identifier.
        task: Index of the operation inside its job (0-based).
        machine: Machine on which the operation is processed.
        start: Start time of the operation.
        end: Completion time (start + duration).
        duration: Processing time.
    """

    job: int
    task: int
    machine: int
    start: int
    end: int
    duration: int


@dataclass(frozen=True)
class Schedule:
    """Full schedule plus objective value.

    Fields:
        machines: ``machines[m]`` is the tuple of rows processed on machine
            ``m`` ordered by start time (shorter duration first on ties).
        makespan: Maximum completion time across all operations.
    """

    machines: tuple[tuple[ScheduledTask, ...], ...]
    makespan: int

    @property
    def operations(self) -> list[ScheduledTask]:
        """Flat list of rows, machine by machine."""
        return [row for rows in self.machines for row in rows]

    def start_of(self, job: int, task: int) -> int:
        for row in self.operations:
            if row.job == job and row.task == task:
                return row.start
        raise KeyError((job, task))


class SolveStatus(enum.Enum):
    OPTIMAL = "optimal"
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"


@dataclass
class SearchStatistics:
    """Counters collected while exploring the branch-and-bound tree.

    ``conflicts`` counts nodes whose propagation failed, ``pruned`` those cut
    by the lower bound and ``solutions`` the incumbent improvements.
    """

    nodes: int = 0
    branches: int = 0
    conflicts: int = 0
    pruned: int = 0
    solutions: int = 0
    wall_time: float = 0.0
    cancelled: bool = False

    def merge(self, other: "SearchStatistics") -> None:
        self.nodes += other.nodes
        self.branches += other.branches
        self.conflicts += other.conflicts
        self.pruned += other.pruned
        self.solutions += other.solutions
        self.cancelled = self.cancelled or other.cancelled


@dataclass(frozen=True)
class SolveResult:
    status: SolveStatus
    schedule: Optional[Schedule]
    makespan: Optional[int]
    statistics: SearchStatistics = field(default_factory=SearchStatistics)

    @property
    def is_optimal(self) -> bool:
        return self.status is SolveStatus.OPTIMAL
