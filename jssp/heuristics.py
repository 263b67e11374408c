"""Constructive schedules used to seed the incumbent.

serial_schedule    -- every task end to end in precedence order
                      (makespan == horizon, always feasible).
dispatch_schedule  -- list scheduling with a shortest processing time
                      priority; each picked task is appended to its machine
                      as early as its predecessors allow.
"""

from __future__ import annotations

from jssp.model_builder import JobShopModel


def serial_schedule(model: JobShopModel) -> tuple[list[int], int]:
    """Serialize all tasks in topological order.

    Returns:
        ``(starts, makespan)`` with ``makespan == model.horizon``.

    Raises:
        ValueError: If the precedence graph is cyclic.
    """
    if model.topological_order is None:
        raise ValueError("No serial schedule exists for cyclic precedences")
    starts = [0] * model.tasks_number
    clock = 0
    for t in model.topological_order:
        starts[t] = clock
        clock += model.durations[t]
    return starts, clock


def dispatch_schedule(model: JobShopModel) -> tuple[list[int], int]:
    """Shortest processing time list schedule.

    Repeatedly selects, among tasks whose predecessors are all placed, the
    one with minimal duration (ties broken by lower task id) and starts it
    at ``max(predecessors' end, machine ready time)``.

    Raises:
        ValueError: If the precedence graph is cyclic.
    """
    if model.topological_order is None:
        raise ValueError("No dispatch schedule exists for cyclic precedences")
    n = model.tasks_number
    durations = model.durations
    remaining = [len(p) for p in model.predecessors]
    ready_at = [0] * n
    machine_ready = [0] * model.machines_number
    starts = [0] * n
    candidates = {t for t in range(n) if remaining[t] == 0}
    while candidates:
        chosen = min(candidates, key=lambda t: (durations[t], t))
        candidates.remove(chosen)
        machine = model.machine_of[chosen]
        start = max(ready_at[chosen], machine_ready[machine])
        end = start + durations[chosen]
        starts[chosen] = start
        machine_ready[machine] = end
        for s in model.successors[chosen]:
            ready_at[s] = max(ready_at[s], end)
            remaining[s] -= 1
            if remaining[s] == 0:
                candidates.add(s)
    makespan = max(s + d for s, d in zip(starts, durations))
    return starts, makespan
