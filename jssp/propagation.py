"""Bound propagation over the disjunctive graph.

Every search node carries, per task id, an ``earliest`` and ``latest`` start
time together with the machine orderings decided so far.  Propagation pushes
earliest starts forward and latest starts backward along all arcs (job order,
extra precedences, decided machine orderings) until a fixpoint, and turns
machine pairs that can only be sequenced one way into decided orderings.
"""

from __future__ import annotations

import enum
from collections import deque
from dataclasses import dataclass, field
from itertools import chain
from typing import Iterable, Optional

from jssp.model_builder import JobShopModel


class NodeStatus(enum.Enum):
    UNEXPLORED = "unexplored"
    BRANCHING = "branching"
    FEASIBLE_LEAF = "feasible_leaf"
    INFEASIBLE = "infeasible"
    PRUNED = "pruned"


@dataclass
class SearchNode:
    """State owned by one node of the branch-and-bound tree.

    Attributes:
        earliest: Earliest start per task id.
        latest: Latest start per task id.
        machine_successors: Decided orderings ``a -> b`` on a shared machine.
        machine_predecessors: Reverse of ``machine_successors``.
        ordered: Decided pairs, stored as ``(min_id, max_id)``.
        deadline: Makespan the latest starts were computed against.
        depth: Number of branching decisions above this node.
    """

    earliest: list[int]
    latest: list[int]
    machine_successors: list[list[int]]
    machine_predecessors: list[list[int]]
    ordered: set[tuple[int, int]] = field(default_factory=set)
    deadline: int = 0
    depth: int = 0
    status: NodeStatus = NodeStatus.UNEXPLORED

    def child(self) -> "SearchNode":
        """Private copy for a branch; nothing is shared with the parent."""
        return SearchNode(
            earliest=list(self.earliest),
            latest=list(self.latest),
            machine_successors=[list(s) for s in self.machine_successors],
            machine_predecessors=[list(p) for p in self.machine_predecessors],
            ordered=set(self.ordered),
            deadline=self.deadline,
            depth=self.depth + 1,
        )

    def is_ordered(self, a: int, b: int) -> bool:
        return (min(a, b), max(a, b)) in self.ordered


def root_node(model: JobShopModel) -> SearchNode:
    """Node without ordering decisions, bounded by the horizon."""
    n = model.tasks_number
    return SearchNode(
        earliest=[var.start_min for var in model.tasks],
        latest=[var.start_max for var in model.tasks],
        machine_successors=[[] for _ in range(n)],
        machine_predecessors=[[] for _ in range(n)],
        deadline=model.horizon,
    )


def add_ordering(node: SearchNode, before: int, after: int) -> None:
    node.machine_successors[before].append(after)
    node.machine_predecessors[after].append(before)
    node.ordered.add((min(before, after), max(before, after)))


def propagate(
    model: JobShopModel,
    node: SearchNode,
    forward: Optional[Iterable[int]] = None,
    backward: Optional[Iterable[int]] = None,
) -> bool:
    """Run bound propagation on ``node`` in place.

    Args:
        model: Static model (durations, precedence arcs, machine pairs).
        node: Node whose bounds are tightened.
        forward: Task ids whose earliest start changed; all tasks when None.
        backward: Task ids whose latest start changed; all tasks when None.

    Returns:
        False as soon as some task ends up with ``earliest > latest`` or a
        machine pair cannot be sequenced either way, True at the fixpoint.
    """
    n = model.tasks_number
    durations = model.durations
    est = node.earliest
    lst = node.latest

    fwd = deque(range(n) if forward is None else forward)
    bwd = deque(range(n) if backward is None else backward)
    in_fwd = [False] * n
    in_bwd = [False] * n
    for t in fwd:
        in_fwd[t] = True
    for t in bwd:
        in_bwd[t] = True

    while True:
        while fwd:
            a = fwd.popleft()
            in_fwd[a] = False
            end = est[a] + durations[a]
            for b in chain(model.successors[a], node.machine_successors[a]):
                if est[b] < end:
                    est[b] = end
                    if end > lst[b]:
                        return False
                    if not in_fwd[b]:
                        in_fwd[b] = True
                        fwd.append(b)
        while bwd:
            b = bwd.popleft()
            in_bwd[b] = False
            for a in chain(model.predecessors[b], node.machine_predecessors[b]):
                limit = lst[b] - durations[a]
                if lst[a] > limit:
                    lst[a] = limit
                    if est[a] > limit:
                        return False
                    if not in_bwd[a]:
                        in_bwd[a] = True
                        bwd.append(a)

        forced = False
        for a, b in model.machine_pairs:
            if (a, b) in node.ordered:
                continue
            a_first = est[a] + durations[a] <= lst[b]
            b_first = est[b] + durations[b] <= lst[a]
            if a_first and b_first:
                continue
            if not a_first and not b_first:
                return False
            before, after = (a, b) if a_first else (b, a)
            add_ordering(node, before, after)
            forced = True
            if not in_fwd[before]:
                in_fwd[before] = True
                fwd.append(before)
            if not in_bwd[after]:
                in_bwd[after] = True
                bwd.append(after)
        if not forced:
            return True


def tighten_deadline(model: JobShopModel, node: SearchNode, deadline: int) -> bool:
    """Cap latest starts so that every task can still end by ``deadline``.

    Returns:
        Result of the follow-up propagation (False when the node cannot
        produce a schedule with makespan ``<= deadline``).
    """
    if deadline >= node.deadline:
        return True
    node.deadline = deadline
    durations = model.durations
    changed = []
    for t in range(model.tasks_number):
        cap = deadline - model.tails[t] - durations[t]
        if node.latest[t] > cap:
            node.latest[t] = cap
            if node.earliest[t] > cap:
                return False
            changed.append(t)
    if not changed:
        return True
    return propagate(model, node, forward=(), backward=changed)


def lower_bound(model: JobShopModel, node: SearchNode) -> int:
    """Makespan lower bound for every completion of ``node``.

    Maximum of the longest remaining job chain (earliest end plus static
    tail) and, per machine, the earliest time it can start plus its total
    load plus the shortest tail leaving it.
    """
    durations = model.durations
    tails = model.tails
    est = node.earliest
    bound = max(est[t] + durations[t] + tails[t] for t in range(model.tasks_number))
    for group in model.machine_tasks:
        if not group:
            continue
        load = sum(durations[t] for t in group)
        start = min(est[t] for t in group)
        tail = min(tails[t] for t in group)
        bound = max(bound, start + load + tail)
    return bound


def windows_overlap(model: JobShopModel, node: SearchNode, a: int, b: int) -> bool:
    """True when some placement inside both windows makes ``a`` and ``b`` overlap."""
    durations = model.durations
    est = node.earliest
    lst = node.latest
    return not (lst[a] + durations[a] <= est[b] or lst[b] + durations[b] <= est[a])


def select_conflict(model: JobShopModel, node: SearchNode) -> Optional[tuple[int, int]]:
    """Pick the undecided overlapping machine pair to branch on.

    Smallest combined slack first, then largest combined duration, then the
    lowest task ids.  Returns the pair ordered so that the first element is
    scheduled first in the preferred child, or None when no conflict is left.
    """
    durations = model.durations
    est = node.earliest
    lst = node.latest
    best_key = None
    best_pair = None
    for a, b in model.machine_pairs:
        if (a, b) in node.ordered or not windows_overlap(model, node, a, b):
            continue
        slack = (lst[a] - est[a]) + (lst[b] - est[b])
        key = (slack, -(durations[a] + durations[b]), a, b)
        if best_key is None or key < best_key:
            best_key = key
            best_pair = (a, b)
    if best_pair is None:
        return None
    a, b = best_pair
    slack_ab = lst[b] - (est[a] + durations[a])
    slack_ba = lst[a] - (est[b] + durations[b])
    if slack_ba > slack_ab:
        return b, a
    return a, b


def schedule_from_node(model: JobShopModel, node: SearchNode) -> tuple[list[int], int]:
    """Earliest starts of a conflict-free node and the resulting makespan."""
    starts = list(node.earliest)
    makespan = max(s + d for s, d in zip(starts, model.durations))
    return starts, makespan
