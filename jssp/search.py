"""Branch-and-bound over machine orderings.

Each node is expanded in four steps:

1. tighten latest starts against ``incumbent - 1`` and propagate
   (failure -> INFEASIBLE);
2. compare the node lower bound with the incumbent (>= -> PRUNED);
3. look for an undecided overlapping pair on some machine; none left means
   the earliest starts form a complete schedule (FEASIBLE_LEAF), which is
   offered to the incumbent;
4. otherwise BRANCHING: two children, "a before b" and "b before a", each
   propagated on its own copy of the state.

Exploration is depth first with an explicit stack.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from jssp.errors import InvariantViolationError
from jssp.incumbent import Cutoff, Incumbent
from jssp.model_builder import JobShopModel
from jssp.models import SearchStatistics
from jssp.propagation import (
    NodeStatus,
    SearchNode,
    add_ordering,
    lower_bound,
    propagate,
    root_node,
    schedule_from_node,
    select_conflict,
    tighten_deadline,
)

logger = logging.getLogger("jssp.search")


def initial_node(model: JobShopModel) -> SearchNode:
    """Propagated root bounded by the horizon.

    Raises:
        InvariantViolationError: If propagation fails on an acyclic model,
            which a serial schedule always satisfies.
    """
    node = root_node(model)
    if not propagate(model, node):
        raise InvariantViolationError(
            "Root propagation against the horizon failed on an acyclic model "
            f"(horizon={model.horizon})"
        )
    return node


class BranchAndBound:
    """Depth-first branch-and-bound engine for one worker.

    Args:
        model: Static job shop model.
        incumbent: Shared best solution; leaves are offered to it.
        cutoff: Shared budget / cancellation signal.
        statistics: Counters for this worker (created when omitted).
        name: Label used in log lines.
    """

    def __init__(
        self,
        model: JobShopModel,
        incumbent: Incumbent,
        cutoff: Cutoff,
        statistics: Optional[SearchStatistics] = None,
        name: str = "main",
    ):
        self.model = model
        self.incumbent = incumbent
        self.cutoff = cutoff
        self.statistics = statistics if statistics is not None else SearchStatistics()
        self.name = name

    def expand(self, node: SearchNode) -> list[SearchNode]:
        """Process one node; return its children in exploration order."""
        model = self.model
        stats = self.statistics
        stats.nodes += 1

        target = self.incumbent.makespan - 1
        if not tighten_deadline(model, node, target):
            node.status = NodeStatus.INFEASIBLE
            stats.conflicts += 1
            return []
        if lower_bound(model, node) > target:
            node.status = NodeStatus.PRUNED
            stats.pruned += 1
            return []

        pair = select_conflict(model, node)
        if pair is None:
            node.status = NodeStatus.FEASIBLE_LEAF
            starts, makespan = schedule_from_node(model, node)
            if self.incumbent.offer(makespan, starts, source=f"search:{self.name}"):
                stats.solutions += 1
                logger.info(
                    "[%s] new incumbent makespan=%d depth=%d nodes=%d",
                    self.name,
                    makespan,
                    node.depth,
                    stats.nodes,
                )
            return []

        node.status = NodeStatus.BRANCHING
        stats.branches += 1
        first, second = pair
        children = []
        for before, after in ((first, second), (second, first)):
            child = node.child()
            add_ordering(child, before, after)
            if propagate(model, child, forward=[before], backward=[after]):
                children.append(child)
            else:
                child.status = NodeStatus.INFEASIBLE
                stats.conflicts += 1
        logger.debug(
            "[%s] depth=%d branch %s<%s feasible_children=%d",
            self.name,
            node.depth,
            model.key_of(first),
            model.key_of(second),
            len(children),
        )
        return children

    def run(self, nodes: Iterable[SearchNode]) -> bool:
        """Explore the subtrees rooted at ``nodes`` depth first.

        Returns:
            True when every subtree was exhausted, False when the cutoff
            stopped the search first.
        """
        stack = list(nodes)
        stack.reverse()
        while stack:
            if self.cutoff.tick():
                self.statistics.cancelled = True
                logger.info(
                    "[%s] cutoff reached: open_nodes=%d explored=%d best=%d",
                    self.name,
                    len(stack),
                    self.statistics.nodes,
                    self.incumbent.makespan,
                )
                return False
            node = stack.pop()
            children = self.expand(node)
            stack.extend(reversed(children))
        return True
