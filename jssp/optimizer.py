"""Makespan minimisation driver.

``solve`` builds the model, seeds the incumbent with the serial schedule
(makespan == horizon), optionally improves it with a dispatch heuristic, runs
branch-and-bound until the tree is exhausted or the cutoff fires and hands the
incumbent to the extractor.
"""

from __future__ import annotations

import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Union

from jssp.errors import ConfigError
from jssp.extractor import extract_schedule
from jssp.heuristics import dispatch_schedule, serial_schedule
from jssp.incumbent import Cutoff, Incumbent
from jssp.model_builder import JobShopModel, build_model
from jssp.models import (
    JobShopInstance,
    Precedence,
    SearchStatistics,
    SolveResult,
    SolveStatus,
    Task,
)
from jssp.propagation import SearchNode
from jssp.search import BranchAndBound, initial_node

logger = logging.getLogger("jssp.optimizer")

# open nodes handed to each worker when the tree is split
FRONTIER_PER_WORKER = 4


def solve(
    jobs: Union[JobShopInstance, list[list[Task]]],
    time_limit: Optional[float] = None,
    *,
    node_limit: Optional[int] = None,
    workers: int = 1,
    warm_start: bool = False,
    extra_precedences: Optional[list[Precedence]] = None,
) -> SolveResult:
    """Minimise the makespan of a job shop instance.

    Args:
        jobs: Instance, or list of jobs each being a list of
            ``(machine, duration)`` pairs (machine count inferred).
        time_limit: Wall-clock budget in seconds; None runs to optimality.
        node_limit: Budget in explored nodes; None means unlimited.
        workers: Number of threads exploring disjoint subtrees.
        warm_start: Seed the incumbent with the dispatch heuristic too.
        extra_precedences: Additional ``(before, after)`` task links, only
            used when ``jobs`` is a plain list.

    Returns:
        SolveResult with status OPTIMAL (tree exhausted), FEASIBLE (cutoff
        fired first) or INFEASIBLE (cyclic extra precedences).

    Raises:
        InstanceError: Malformed instance.
        ConfigError: Negative limits or ``workers < 1``.
        InvariantViolationError: Internal inconsistency (solver bug).
    """
    if time_limit is not None and time_limit < 0:
        raise ConfigError(f"time_limit must be >= 0, got {time_limit}")
    if node_limit is not None and node_limit < 0:
        raise ConfigError(f"node_limit must be >= 0, got {node_limit}")
    if workers < 1:
        raise ConfigError(f"workers must be >= 1, got {workers}")

    if isinstance(jobs, JobShopInstance):
        instance = jobs
    else:
        instance = JobShopInstance.from_jobs(jobs, extra_precedences=extra_precedences)
    model = build_model(instance)
    return Optimizer(model, time_limit, node_limit, workers, warm_start).run()


class Optimizer:
    """Owns the incumbent and the cutoff for one solve of ``model``."""

    def __init__(
        self,
        model: JobShopModel,
        time_limit: Optional[float] = None,
        node_limit: Optional[int] = None,
        workers: int = 1,
        warm_start: bool = False,
    ):
        self.model = model
        self.workers = workers
        self.warm_start = warm_start
        self.cutoff = Cutoff(time_limit=time_limit, node_limit=node_limit)
        self.statistics = SearchStatistics()
        self.incumbent: Optional[Incumbent] = None

    def run(self) -> SolveResult:
        model = self.model
        if model.cyclic:
            logger.info("Extra precedences form a cycle: instance infeasible")
            self.statistics.wall_time = self.cutoff.elapsed()
            return SolveResult(SolveStatus.INFEASIBLE, None, None, self.statistics)

        starts, makespan = serial_schedule(model)
        self.incumbent = Incumbent(makespan, starts, source="serial")
        if self.warm_start:
            starts, makespan = dispatch_schedule(model)
            if self.incumbent.offer(makespan, starts, source="dispatch"):
                logger.info("Warm start: dispatch makespan=%d (horizon=%d)", makespan, model.horizon)

        root = initial_node(model)
        if self.workers == 1:
            engine = BranchAndBound(model, self.incumbent, self.cutoff, self.statistics)
            exhausted = engine.run([root])
        else:
            exhausted = self._run_parallel(root)

        self.statistics.wall_time = self.cutoff.elapsed()
        best, best_starts = self.incumbent.snapshot()
        schedule = extract_schedule(model, best_starts)
        status = SolveStatus.OPTIMAL if exhausted else SolveStatus.FEASIBLE
        logger.info(
            "Solve finished: status=%s makespan=%d nodes=%d branches=%d pruned=%d "
            "conflicts=%d time=%.3fs source=%s",
            status.value,
            best,
            self.statistics.nodes,
            self.statistics.branches,
            self.statistics.pruned,
            self.statistics.conflicts,
            self.statistics.wall_time,
            self.incumbent.source,
        )
        return SolveResult(status, schedule, best, self.statistics)

    def _split(self, root: SearchNode) -> tuple[list[SearchNode], bool]:
        """Expand breadth first until the frontier can feed every worker."""
        engine = BranchAndBound(
            self.model, self.incumbent, self.cutoff, self.statistics, name="split"
        )
        frontier = deque([root])
        target = self.workers * FRONTIER_PER_WORKER
        while frontier and len(frontier) < target:
            if self.cutoff.tick():
                self.statistics.cancelled = True
                return list(frontier), False
            frontier.extend(engine.expand(frontier.popleft()))
        return list(frontier), True

    def _run_worker(self, engine: BranchAndBound, share: list[SearchNode]) -> bool:
        """Run one share; a failing worker stops the others before re-raising."""
        try:
            return engine.run(share)
        except BaseException:
            logger.error("Worker %s failed, cancelling the search", engine.name)
            self.cutoff.cancel()
            raise

    def _run_parallel(self, root: SearchNode) -> bool:
        frontier, completed = self._split(root)
        if not completed:
            return False
        if not frontier:
            return True
        shares = [frontier[i :: self.workers] for i in range(self.workers)]
        shares = [share for share in shares if share]
        engines = [
            BranchAndBound(self.model, self.incumbent, self.cutoff, name=f"worker-{i}")
            for i in range(len(shares))
        ]
        logger.info("Parallel search: %d open nodes over %d workers", len(frontier), len(engines))
        with ThreadPoolExecutor(max_workers=len(engines), thread_name_prefix="jssp") as pool:
            futures = [
                pool.submit(self._run_worker, engine, share)
                for engine, share in zip(engines, shares)
            ]
            results = [future.result() for future in futures]
        for engine in engines:
            self.statistics.merge(engine.statistics)
        return all(results) and not self.cutoff.cancelled
