"""Turn a start-time assignment into a verified, machine-ordered schedule."""

from __future__ import annotations

from jssp.errors import InvariantViolationError
from jssp.model_builder import JobShopModel
from jssp.models import Schedule, ScheduledTask


def check_precedences(model: JobShopModel, starts: list[int]) -> bool:
    """Ensure every successor starts after its predecessor ends.

    Raises:
        InvariantViolationError: On the first violated arc, naming both tasks.
    """
    durations = model.durations
    for a, succs in enumerate(model.successors):
        end = starts[a] + durations[a]
        for b in succs:
            if starts[b] < end:
                raise InvariantViolationError(
                    f"Precedence violated: task {model.key_of(a)} ends at {end} "
                    f"but task {model.key_of(b)} starts at {starts[b]}"
                )
    return True


def check_no_machine_overlap(model: JobShopModel, starts: list[int]) -> bool:
    """Ensure no two tasks overlap on the same machine.

    Tasks of each machine are ordered by start; each must start no earlier
    than the previous one ended.

    Raises:
        InvariantViolationError: On the first detected overlap, naming the
            machine and both tasks.
    """
    durations = model.durations
    for machine, group in enumerate(model.machine_tasks):
        ordered = sorted(group, key=lambda t: (starts[t], durations[t], t))
        for prev, cur in zip(ordered, ordered[1:]):
            prev_end = starts[prev] + durations[prev]
            if starts[cur] < prev_end:
                raise InvariantViolationError(
                    f"Overlap on machine {machine}: task {model.key_of(prev)} "
                    f"[{starts[prev]},{prev_end}) and task {model.key_of(cur)} "
                    f"[{starts[cur]},{starts[cur] + durations[cur]})"
                )
    return True


def extract_schedule(model: JobShopModel, starts: list[int]) -> Schedule:
    """Validate ``starts`` and build the per-machine schedule.

    Args:
        model: Model the assignment belongs to.
        starts: Start time per flat task id.

    Returns:
        Schedule whose machine rows are ordered by start time, shorter
        duration first on ties (then job, task). Interval variables of the
        model get their ``start`` assigned.

    Raises:
        InvariantViolationError: If the assignment has the wrong length, a
            negative start, an end past the horizon, a precedence violation
            or a machine overlap.
    """
    if len(starts) != model.tasks_number:
        raise InvariantViolationError(
            f"Assignment covers {len(starts)} of {model.tasks_number} tasks"
        )
    for t, start in enumerate(starts):
        if start < 0 or start + model.durations[t] > model.horizon:
            raise InvariantViolationError(
                f"Task {model.key_of(t)} placed at [{start},{start + model.durations[t]}) "
                f"outside [0,{model.horizon}]"
            )
    check_precedences(model, starts)
    check_no_machine_overlap(model, starts)

    for t, var in enumerate(model.tasks):
        var.assign(starts[t])

    machines = []
    for group in model.machine_tasks:
        rows = [
            ScheduledTask(
                job=model.tasks[t].job,
                task=model.tasks[t].index,
                machine=model.tasks[t].machine,
                start=starts[t],
                end=starts[t] + model.durations[t],
                duration=model.durations[t],
            )
            for t in group
        ]
        rows.sort(key=lambda r: (r.start, r.duration, r.job, r.task))
        machines.append(tuple(rows))
    makespan = max(s + d for s, d in zip(starts, model.durations))
    return Schedule(machines=tuple(machines), makespan=makespan)
