import threading

import pytest

from conftest import MINIMAL_JOBS, random_jobs
from jssp.errors import InvariantViolationError
from jssp.heuristics import dispatch_schedule, serial_schedule
from jssp.incumbent import Cutoff, Incumbent
from jssp.model_builder import build_model
from jssp.models import JobShopInstance
from jssp.propagation import NodeStatus
from jssp.search import BranchAndBound, initial_node


def _engine(jobs, cutoff=None):
    model = build_model(JobShopInstance.from_jobs(jobs))
    starts, makespan = serial_schedule(model)
    incumbent = Incumbent(makespan, starts)
    return model, BranchAndBound(model, incumbent, cutoff or Cutoff())


def test_engine_exhausts_minimal_tree():
    model, engine = _engine(MINIMAL_JOBS)
    exhausted = engine.run([initial_node(model)])
    assert exhausted
    assert engine.incumbent.makespan == 11
    stats = engine.statistics
    assert stats.nodes >= 1
    assert stats.solutions >= 1
    assert not stats.cancelled


def test_root_of_single_task_is_infeasible_against_incumbent():
    model, engine = _engine([[(0, 7)]])
    root = initial_node(model)
    assert engine.expand(root) == []
    assert root.status is NodeStatus.INFEASIBLE
    assert engine.incumbent.makespan == 7


def test_initial_node_rejects_inconsistent_root_domains():
    model = build_model(JobShopInstance.from_jobs(MINIMAL_JOBS))
    second = model.tasks[model.task_ids[0][1]]
    second.start_max = second.start_min - 1
    with pytest.raises(InvariantViolationError, match="Root propagation"):
        initial_node(model)


def test_branching_node_has_two_private_children():
    model, engine = _engine(MINIMAL_JOBS)
    root = initial_node(model)
    children = engine.expand(root)
    assert root.status is NodeStatus.BRANCHING
    assert 1 <= len(children) <= 2
    for child in children:
        assert child.depth == 1
        assert child.status is NodeStatus.UNEXPLORED
        assert len(child.ordered) >= 1
    if len(children) == 2:
        assert children[0].ordered != children[1].ordered


def test_leaf_updates_incumbent():
    # no machine is shared, so the root is already a leaf
    model, engine = _engine([[(0, 2), (1, 3)], [(2, 4)]])
    root = initial_node(model)
    assert engine.expand(root) == []
    assert root.status is NodeStatus.FEASIBLE_LEAF
    assert engine.incumbent.makespan == 5


def test_node_limit_cancels_run():
    cutoff = Cutoff(node_limit=3)
    model, engine = _engine(random_jobs(8, 8, seed=7), cutoff=cutoff)
    assert not engine.run([initial_node(model)])
    assert cutoff.cancelled
    assert engine.statistics.cancelled
    assert engine.statistics.nodes == 3


def test_cutoff_tick_counts_nodes():
    cutoff = Cutoff(node_limit=2)
    assert not cutoff.tick()
    assert not cutoff.tick()
    assert cutoff.tick()
    assert cutoff.cancelled
    assert cutoff.tick()


def test_incumbent_only_accepts_strict_improvements():
    inc = Incumbent(10, [0, 1])
    assert not inc.offer(10, [5, 5])
    assert not inc.offer(12, [5, 5])
    assert inc.offer(9, [0, 2], source="test")
    assert inc.snapshot() == (9, [0, 2])
    assert inc.source == "test"
    assert inc.improvements == 1


def test_incumbent_concurrent_offers_keep_minimum():
    inc = Incumbent(1000, [0])

    def offer_range(values):
        for v in values:
            inc.offer(v, [v])

    threads = [
        threading.Thread(target=offer_range, args=(range(999, 100 - i, -1 - i),)) for i in range(4)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    best, starts = inc.snapshot()
    assert best == min(range(999, 100 - 3, -4))
    assert starts == [best]


def test_heuristic_schedules_are_upper_bounds():
    model = build_model(JobShopInstance.from_jobs(MINIMAL_JOBS))
    _, serial = serial_schedule(model)
    _, dispatch = dispatch_schedule(model)
    assert serial == model.horizon
    assert 11 <= dispatch <= serial
