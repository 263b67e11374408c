"""Model builder: interval variables, machine groups and precedence arcs.

The model keeps two views of the same tasks:

* ``intervals[job][index]`` -- dense arena addressed by position inside a job,
  used when reading or writing a schedule;
* flat task ids ``0..n-1`` (job-major) -- used by the propagation engine,
  whose per-node state is a handful of plain lists indexed by task id.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Optional

from jssp.errors import InstanceError
from jssp.models import JobShopInstance

logger = logging.getLogger("jssp.model")

# machine ids index a dense per-machine list; larger ids are almost certainly typos
MAX_MACHINES = 100_000


@dataclass
class IntervalVar:
    """Occupancy ``[start, start + duration)`` of one task on its machine.

    ``start_min``/``start_max`` describe the root start-time domain derived
    from the job chain and the horizon; ``start`` is set once a schedule has
    been extracted.
    """

    job: int
    index: int
    machine: int
    duration: int
    start_min: int = 0
    start_max: int = 0
    start: Optional[int] = None

    @property
    def name(self) -> str:
        return f"interval_{self.job}_{self.index}"

    @property
    def end(self) -> Optional[int]:
        if self.start is None:
            return None
        return self.start + self.duration

    @property
    def end_max(self) -> int:
        return self.start_max + self.duration

    def assign(self, start: int) -> None:
        if not (self.start_min <= start <= self.start_max):
            raise ValueError(
                f"{self.name}: start {start} outside domain "
                f"[{self.start_min}, {self.start_max}]"
            )
        self.start = start


@dataclass
class JobShopModel:
    """In-memory model produced by :func:`build_model`.

    Attributes:
        instance: Source instance.
        intervals: ``intervals[job][index]`` interval variables.
        tasks: Same variables indexed by flat task id.
        task_ids: ``task_ids[job][index]`` -> flat task id.
        durations: Duration per task id.
        machine_of: Machine per task id.
        machine_tasks: ``machine_tasks[m]`` task ids sharing machine ``m``.
        machine_pairs: Unordered pairs ``(a, b)``, ``a < b``, sharing a machine.
        successors: Static precedence arcs (job order and extra links).
        predecessors: Reverse of ``successors``.
        heads: Longest static chain of predecessors' durations per task.
        tails: Longest static chain of successors' durations per task.
        horizon: Sum of all durations.
        topological_order: Task ids in precedence order, None when the
            precedence graph has a cycle.
    """

    instance: JobShopInstance
    intervals: list[list[IntervalVar]]
    tasks: list[IntervalVar]
    task_ids: list[list[int]]
    durations: list[int]
    machine_of: list[int]
    machine_tasks: list[list[int]]
    machine_pairs: list[tuple[int, int]]
    successors: list[list[int]]
    predecessors: list[list[int]]
    heads: list[int]
    tails: list[int]
    horizon: int
    topological_order: Optional[list[int]]

    @property
    def tasks_number(self) -> int:
        return len(self.tasks)

    @property
    def machines_number(self) -> int:
        return len(self.machine_tasks)

    @property
    def cyclic(self) -> bool:
        return self.topological_order is None

    @property
    def last_tasks(self) -> list[int]:
        return [ids[-1] for ids in self.task_ids]

    def interval(self, job: int, index: int) -> IntervalVar:
        return self.intervals[job][index]

    def key_of(self, task_id: int) -> tuple[int, int]:
        var = self.tasks[task_id]
        return var.job, var.index


def validate_instance(instance: JobShopInstance) -> None:
    """Reject malformed instances.

    Raises:
        InstanceError: No jobs, an empty job, a non-positive or non-integer
            duration, a machine id outside ``[0, machines_number)`` or an
            extra precedence that does not reference existing tasks, or more
            than ``MAX_MACHINES`` machines.
    """
    if instance.jobs_number <= 0 or not instance.jobs:
        raise InstanceError("Instance has no jobs")
    if instance.jobs_number != len(instance.jobs):
        raise InstanceError(
            f"jobs_number={instance.jobs_number} but {len(instance.jobs)} jobs given"
        )
    if instance.machines_number > MAX_MACHINES:
        raise InstanceError(
            f"machines_number={instance.machines_number} exceeds the limit of {MAX_MACHINES}"
        )
    if instance.machines_number <= 0:
        raise InstanceError(f"machines_number must be positive, got {instance.machines_number}")
    for j, job in enumerate(instance.jobs):
        if not job:
            raise InstanceError(f"Job {j} has no tasks")
        for k, task in enumerate(job):
            if not isinstance(task, tuple) or len(task) != 2:
                raise InstanceError(f"Task ({j}, {k}) must be a (machine, duration) pair")
            machine, duration = task
            if not _is_int(machine) or not (0 <= machine < instance.machines_number):
                raise InstanceError(
                    f"Task ({j}, {k}): machine {machine!r} outside "
                    f"[0, {instance.machines_number})"
                )
            if not _is_int(duration) or duration <= 0:
                raise InstanceError(f"Task ({j}, {k}): duration must be positive, got {duration!r}")
    for before, after in instance.extra_precedences:
        for key in (before, after):
            if len(key) != 2 or not _task_exists(instance, key):
                raise InstanceError(f"Extra precedence references unknown task {key!r}")
        if tuple(before) == tuple(after):
            raise InstanceError(f"Extra precedence links task {before!r} to itself")


def build_model(instance: JobShopInstance) -> JobShopModel:
    """Construct the interval model for ``instance``.

    Args:
        instance: Problem data (jobs with (machine, duration) tuples).

    Returns:
        JobShopModel with one IntervalVar per task, per-machine groups, the
        static precedence graph with heads/tails and the horizon.

    Raises:
        InstanceError: If the instance is malformed (see validate_instance).
    """
    validate_instance(instance)

    intervals: list[list[IntervalVar]] = []
    tasks: list[IntervalVar] = []
    task_ids: list[list[int]] = []
    machine_tasks: list[list[int]] = [[] for _ in range(instance.machines_number)]
    for j, job in enumerate(instance.jobs):
        row: list[IntervalVar] = []
        ids: list[int] = []
        for k, (machine, duration) in enumerate(job):
            var = IntervalVar(job=j, index=k, machine=machine, duration=duration)
            machine_tasks[machine].append(len(tasks))
            ids.append(len(tasks))
            row.append(var)
            tasks.append(var)
        intervals.append(row)
        task_ids.append(ids)

    n = len(tasks)
    durations = [var.duration for var in tasks]
    machine_of = [var.machine for var in tasks]
    horizon = sum(durations)

    successors: list[list[int]] = [[] for _ in range(n)]
    predecessors: list[list[int]] = [[] for _ in range(n)]
    for ids in task_ids:
        for a, b in zip(ids, ids[1:]):
            successors[a].append(b)
            predecessors[b].append(a)
    for before, after in instance.extra_precedences:
        a = task_ids[before[0]][before[1]]
        b = task_ids[after[0]][after[1]]
        if b not in successors[a]:
            successors[a].append(b)
            predecessors[b].append(a)

    machine_pairs = [
        (a, b)
        for group in machine_tasks
        for i, a in enumerate(group)
        for b in group[i + 1 :]
    ]

    order = _topological_order(successors, predecessors)
    heads, tails = _chain_lengths(durations, successors, predecessors, order, task_ids)
    for t, var in enumerate(tasks):
        var.start_min = heads[t]
        var.start_max = horizon - tails[t] - durations[t]

    model = JobShopModel(
        instance=instance,
        intervals=intervals,
        tasks=tasks,
        task_ids=task_ids,
        durations=durations,
        machine_of=machine_of,
        machine_tasks=machine_tasks,
        machine_pairs=machine_pairs,
        successors=successors,
        predecessors=predecessors,
        heads=heads,
        tails=tails,
        horizon=horizon,
        topological_order=order,
    )
    logger.info(
        "Model built: jobs=%d machines=%d tasks=%d machine_pairs=%d horizon=%d%s",
        instance.jobs_number,
        instance.machines_number,
        n,
        len(machine_pairs),
        horizon,
        " (cyclic precedences)" if order is None else "",
    )
    return model


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _task_exists(instance: JobShopInstance, key: tuple) -> bool:
    job, index = key
    if not (_is_int(job) and _is_int(index)):
        return False
    return 0 <= job < instance.jobs_number and 0 <= index < len(instance.jobs[job])


def _topological_order(
    successors: list[list[int]], predecessors: list[list[int]]
) -> Optional[list[int]]:
    """Kahn's algorithm; smallest ready id first so the order is stable."""
    indegree = [len(p) for p in predecessors]
    ready = deque(t for t, d in enumerate(indegree) if d == 0)
    order: list[int] = []
    while ready:
        t = ready.popleft()
        order.append(t)
        for s in successors[t]:
            indegree[s] -= 1
            if indegree[s] == 0:
                ready.append(s)
    if len(order) != len(successors):
        return None
    return order


def _chain_lengths(
    durations: list[int],
    successors: list[list[int]],
    predecessors: list[list[int]],
    order: Optional[list[int]],
    task_ids: list[list[int]],
) -> tuple[list[int], list[int]]:
    n = len(durations)
    heads = [0] * n
    tails = [0] * n
    if order is None:
        # job chains only; a cyclic model is never searched
        for ids in task_ids:
            acc = 0
            for t in ids:
                heads[t] = acc
                acc += durations[t]
            acc = 0
            for t in reversed(ids):
                tails[t] = acc
                acc += durations[t]
        return heads, tails
    for t in order:
        for p in predecessors[t]:
            heads[t] = max(heads[t], heads[p] + durations[p])
    for t in reversed(order):
        for s in successors[t]:
            tails[t] = max(tails[t], tails[s] + durations[s])
    return heads, tails
