from conftest import MINIMAL_JOBS
from jssp.formatting import format_result, format_schedule, format_statistics
from jssp.models import Schedule, ScheduledTask, SearchStatistics, SolveResult, SolveStatus
from jssp.optimizer import solve
from jssp.visualization import plot_gantt


def _one_machine_schedule() -> Schedule:
    rows = (
        ScheduledTask(job=0, task=0, machine=0, start=0, end=3, duration=3),
        ScheduledTask(job=1, task=0, machine=0, start=3, end=5, duration=2),
    )
    return Schedule(machines=(rows,), makespan=5)


def test_schedule_columns_are_aligned():
    text = format_schedule(_one_machine_schedule())
    assert text.splitlines() == [
        "Machine 0: job_0_task_0   job_1_task_0",
        "           [0,3]          [3,5]",
    ]


def test_statistics_block():
    stats = SearchStatistics(nodes=4, branches=2, conflicts=1, pruned=1, wall_time=0.5)
    lines = format_statistics(stats).splitlines()
    assert lines[0] == "Statistics"
    assert "  conflicts: 1" in lines
    assert "  branches : 2" in lines
    assert lines[-1] == "  wall time: 0.500000 s"


def test_feasible_and_infeasible_headers():
    feasible = SolveResult(SolveStatus.FEASIBLE, _one_machine_schedule(), 5)
    assert "Best Schedule Length (time limit reached): 5" in format_result(feasible)
    infeasible = SolveResult(SolveStatus.INFEASIBLE, None, None)
    assert format_result(infeasible).startswith("No solution found.")


def test_gantt_smoke(tmp_path):
    result = solve(MINIMAL_JOBS)
    out = plot_gantt(result.schedule, save_path=str(tmp_path / "gantt" / "minimal.png"))
    written = tmp_path / "gantt" / "minimal.png"
    assert out == str(written)
    assert written.exists() and written.stat().st_size > 0
