"""Reading job shop instances.

Text format (JSPLIB / OR-Library)::

    # optional comment lines
    <jobs> <machines>
    <m> <p> <m> <p> ...      one line per job, (machine, duration) pairs

Machine ids may be zero- or one-based; a one-based file (all ids in
``1..machines``, at least one equal to ``machines``) is normalised to zero
based.
"""

from __future__ import annotations

import os
from typing import Any, Optional

from jssp.errors import InstanceError
from jssp.models import JobShopInstance


def parse_instance_text(text: str, name: str = "") -> JobShopInstance:
    """Parse the text format described in the module docstring.

    Raises:
        InstanceError: Invalid header, wrong number of job lines, odd token
            count, non-positive duration or machine id out of range.
    """
    lines = [
        line.strip()
        for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    if not lines:
        raise InstanceError("Empty instance")
    header = _ints(lines[0], "header")
    if len(header) < 2:
        raise InstanceError(f"Header must contain '<jobs> <machines>', got {lines[0]!r}")
    jobs_number, machines_number = header[0], header[1]
    if jobs_number <= 0 or machines_number <= 0:
        raise InstanceError(f"Header values must be positive, got {lines[0]!r}")
    body = lines[1:]
    if len(body) < jobs_number:
        raise InstanceError(f"Header declares {jobs_number} jobs, found {len(body)} job lines")

    raw: list[list[tuple[int, int]]] = []
    for j, line in enumerate(body[:jobs_number]):
        tokens = _ints(line, f"job {j}")
        if not tokens or len(tokens) % 2:
            raise InstanceError(f"Job {j}: expected (machine, duration) pairs, got {line!r}")
        raw.append([(tokens[i], tokens[i + 1]) for i in range(0, len(tokens), 2)])

    machines = [m for job in raw for (m, _) in job]
    if min(machines) >= 1 and max(machines) == machines_number:
        raw = [[(m - 1, p) for (m, p) in job] for job in raw]
    for j, job in enumerate(raw):
        for k, (m, p) in enumerate(job):
            if p <= 0:
                raise InstanceError(f"Task ({j}, {k}): non-positive duration {p}")
            if not (0 <= m < machines_number):
                raise InstanceError(f"Task ({j}, {k}): machine {m} outside [0, {machines_number})")
    return JobShopInstance(
        jobs=raw,
        jobs_number=jobs_number,
        machines_number=machines_number,
        name=name,
    )


def parse_instance_file(file_path: str) -> JobShopInstance:
    """Load an instance from a text file (see module docstring)."""
    with open(file_path, "r", encoding="utf-8") as f:
        text = f.read()
    name = os.path.splitext(os.path.basename(file_path))[0]
    return parse_instance_text(text, name=name)


def instance_from_data(
    jobs: Any,
    machines_number: Optional[int] = None,
    name: str = "",
    extra_precedences: Optional[list] = None,
) -> JobShopInstance:
    """Build an instance from decoded YAML/JSON data.

    ``jobs`` is a list of jobs, each a list of ``[machine, duration]``
    pairs; precedences are ``[[job, task], [job, task]]`` pairs.
    """
    if not isinstance(jobs, list):
        raise InstanceError(f"'jobs' must be a list, got {type(jobs).__name__}")
    for j, job in enumerate(jobs):
        if not isinstance(job, list):
            raise InstanceError(f"Job {j} must be a list of [machine, duration] pairs")
    return JobShopInstance.from_jobs(
        jobs,
        machines_number=machines_number,
        name=name,
        extra_precedences=extra_precedences,
    )


def _ints(line: str, what: str) -> list[int]:
    try:
        return [int(tok) for tok in line.split()]
    except ValueError as e:
        raise InstanceError(f"Non-integer token in {what}: {line!r}") from e
