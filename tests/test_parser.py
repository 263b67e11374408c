"""Pytest tests for the instance parser.

Each test writes a temporary instance file and asserts either successful
parsing (structure + normalization) or the correct exception.
"""

from __future__ import annotations

import pytest

from jssp.errors import InstanceError
from jssp.optimizer import solve
from jssp.parser import instance_from_data, parse_instance_file, parse_instance_text


def _write(tmp_path, content: str, name: str = "inst.txt"):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


def test_parse_simple_zero_based(tmp_path):
    inst = parse_instance_file(_write(tmp_path, "2 2\n0 5 1 3\n1 4 0 2\n"))
    assert inst.jobs_number == 2
    assert inst.machines_number == 2
    assert inst.jobs == [[(0, 5), (1, 3)], [(1, 4), (0, 2)]]
    assert inst.name == "inst"


def test_parse_one_based_normalization(tmp_path):
    inst = parse_instance_file(_write(tmp_path, "1 3\n1 10 2 5 3 7\n"))
    assert [m for (m, _) in inst.jobs[0]] == [0, 1, 2]


def test_comments_and_uneven_jobs():
    text = "# header comment\n3 3\n0 3 1 2 2 2\n\n0 2 2 1 1 4\n1 4 2 3\n"
    inst = parse_instance_text(text)
    assert [len(job) for job in inst.jobs] == [3, 3, 2]


def test_bundled_ft06(data_dir):
    inst = parse_instance_file(str(data_dir / "ft06.txt"))
    assert (inst.jobs_number, inst.machines_number) == (6, 6)
    assert sum(p for job in inst.jobs for _, p in job) == 197
    for job in inst.jobs:
        assert sorted(m for m, _ in job) == list(range(6))


@pytest.mark.parametrize(
    "content",
    [
        "",  # empty
        "2\n0 5 1 3\n",  # invalid header (only one int)
        "2 1\n0 5\n",  # declares 2 jobs, provides 1
        "1 2\n0 5 1\n",  # odd token count
        "1 1\n0 0\n",  # non-positive duration
        "1 2\n5 3 1 2\n",  # machine index out of range
        "1 2\n0 a 1 2\n",  # non-integer token
    ],
)
def test_parse_errors(content: str):
    with pytest.raises(InstanceError):
        parse_instance_text(content)


def test_instance_from_data_lists():
    inst = instance_from_data(
        [[[0, 3], [1, 2]], [[1, 1]]],
        extra_precedences=[[[0, 1], [1, 0]]],
    )
    assert inst.jobs == [[(0, 3), (1, 2)], [(1, 1)]]
    assert inst.machines_number == 2
    assert inst.extra_precedences == (((0, 1), (1, 0)),)


@pytest.mark.parametrize("jobs", [None, "0 3", [3], [[5]], [[[0, 3, 1]]]])
def test_instance_from_data_rejects_shapes(jobs):
    with pytest.raises(InstanceError):
        instance_from_data(jobs)


def test_bundled_minimal_instance_solves(data_dir):
    inst = parse_instance_file(str(data_dir / "minimal_3x3.txt"))
    assert inst.name == "minimal_3x3"
    assert solve(inst).makespan == 11
