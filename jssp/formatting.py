"""Plain-text rendering of a schedule and of the search statistics."""

from __future__ import annotations

from jssp.models import Schedule, SearchStatistics, SolveResult, SolveStatus

COLUMN_WIDTH = 15


def format_schedule(schedule: Schedule, column_width: int = COLUMN_WIDTH) -> str:
    """Two aligned lines per machine: task names, then ``[start,end]``.

    Example::

        Machine 0: job_0_task_0   job_1_task_0
                   [0,3]          [3,5]
    """
    lines = []
    for machine, rows in enumerate(schedule.machines):
        names = f"Machine {machine}: "
        times = " " * len(names)
        for row in rows:
            names += f"{f'job_{row.job}_task_{row.task}':<{column_width}}"
            times += f"{f'[{row.start},{row.end}]':<{column_width}}"
        lines.append(names.rstrip())
        lines.append(times.rstrip())
    return "\n".join(lines)


def format_statistics(stats: SearchStatistics) -> str:
    return "\n".join(
        [
            "Statistics",
            f"  conflicts: {stats.conflicts}",
            f"  branches : {stats.branches}",
            f"  nodes    : {stats.nodes}",
            f"  pruned   : {stats.pruned}",
            f"  wall time: {stats.wall_time:f} s",
        ]
    )


def format_result(result: SolveResult) -> str:
    """Full report: header, schedule (if any) and statistics."""
    if result.status is SolveStatus.INFEASIBLE or result.schedule is None:
        return "No solution found.\n" + format_statistics(result.statistics)
    title = (
        "Optimal Schedule Length"
        if result.status is SolveStatus.OPTIMAL
        else "Best Schedule Length (time limit reached)"
    )
    return "\n".join(
        [
            "Solution:",
            f"{title}: {result.makespan}",
            format_schedule(result.schedule),
            format_statistics(result.statistics),
        ]
    )
