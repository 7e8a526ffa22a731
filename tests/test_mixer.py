"""
tests/test_mixer.py — Round-robin interleave across sources
"""

import pytest

from mixer import mix_round_robin


def articles(source, n):
    return [{"source": source, "title": f"{source}{i}"} for i in range(n)]


def titles(mixed):
    return [a["title"] for a in mixed]


def test_one_per_source_in_registration_order():
    pool = articles("A", 4) + articles("B", 2) + articles("C", 3)
    mixed = mix_round_robin(pool, 6, ["A", "B", "C"])
    assert titles(mixed)[:3] == ["A0", "B0", "C0"]
    assert titles(mixed) == ["A0", "B0", "C0", "A1", "B1", "C1"]


def test_uneven_sources_five_two_eight():
    pool = articles("A", 5) + articles("B", 2) + articles("C", 8)
    mixed = titles(mix_round_robin(pool, 6, ["A", "B", "C"]))
    assert mixed[:3] == ["A0", "B0", "C0"]
    assert mixed == ["A0", "B0", "C0", "A1", "B1", "C1"]

    deeper = titles(mix_round_robin(pool, 12, ["A", "B", "C"]))
    assert [t for t in deeper[6:] if t.startswith("B")] == []
    assert deeper[6:] == ["A2", "C2", "A3", "C3", "A4", "C4"]


def test_exhausted_source_drops_out_and_the_rest_keep_alternating():
    pool = articles("A", 4) + articles("B", 2) + articles("C", 3)
    mixed = mix_round_robin(pool, 9, ["A", "B", "C"])
    assert titles(mixed) == ["A0", "B0", "C0", "A1", "B1", "C1", "A2", "C2", "A3"]


def test_registration_order_beats_arrival_order():
    pool = articles("C", 2) + articles("A", 2)
    assert titles(mix_round_robin(pool, 4, ["A", "C"])) == ["A0", "C0", "A1", "C1"]


def test_unknown_sources_follow_in_first_appearance_order():
    pool = articles("X", 1) + articles("A", 1) + articles("Y", 1)
    assert titles(mix_round_robin(pool, 3, ["A"])) == ["A0", "X0", "Y0"]


def test_single_source_is_a_plain_slice():
    pool = articles("A", 10)
    assert mix_round_robin(pool, 4) == pool[:4]


def test_fewer_articles_than_page_size():
    pool = articles("A", 1) + articles("B", 2)
    assert titles(mix_round_robin(pool, 12, ["A", "B"])) == ["A0", "B0", "B1"]


@pytest.mark.parametrize("page_size", [0, -1])
def test_non_positive_page_size_is_empty(page_size):
    assert mix_round_robin(articles("A", 3), page_size) == []


def test_empty_input():
    assert mix_round_robin([], 5, ["A"]) == []
