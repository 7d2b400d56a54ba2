import itertools

from repo_inventory.inventory import Accumulator, finalize
from repo_inventory.models import RepositoryRecord

from tests.fakes import repo


def record(name, url=None, **extra):
    return RepositoryRecord.from_payload(repo(name, url, **extra))


def test_accumulator_keeps_duplicates_in_arrival_order():
    acc = Accumulator()
    acc.add_page([record("a", "a"), record("b", "b")])
    acc.add_page([record("a", "a")])
    acc.add_page([])

    assert len(acc) == 3
    assert [r.url for r in acc.records] == ["a", "b", "a"]


def test_finalize_sorts_by_url():
    snapshot = finalize([record("z", "z"), record("a", "a"), record("m", "m")])
    assert snapshot.urls == ["a", "m", "z"]


def test_finalize_deduplicates_by_url_first_wins():
    first = record("first", "a")
    snapshot = finalize([first, record("b", "b"), record("second", "a")])

    assert snapshot.urls == ["a", "b"]
    assert snapshot.records[0].name == "first"


def test_finalize_is_case_sensitive_code_point_order():
    urls = ["https://github.com/o/b", "https://github.com/o/B", "https://github.com/o/a", "https://github.com/o/_"]
    snapshot = finalize([record(u.rsplit("/", 1)[1], u) for u in urls])
    # 'B' (0x42) < '_' (0x5f) < 'a' (0x61) < 'b' (0x62)
    assert snapshot.urls == [
        "https://github.com/o/B",
        "https://github.com/o/_",
        "https://github.com/o/a",
        "https://github.com/o/b",
    ]


def test_finalize_same_output_for_every_permutation():
    records = [record("r3"), record("r1"), record("r2"), record("r1"), record("r4")]
    expected = [r.to_payload() for r in finalize(records)]

    for permutation in itertools.permutations(records):
        assert [r.to_payload() for r in finalize(permutation)] == expected


def test_finalize_empty_input():
    snapshot = finalize([])
    assert len(snapshot) == 0
    assert snapshot.to_list() == []


def test_snapshot_payload_keeps_field_names():
    snapshot = finalize([record("r1", stargazerCount=3, isFork=False)])
    assert snapshot.to_list() == [
        {"name": "r1", "url": "https://github.com/octocat/r1", "stargazerCount": 3, "isFork": False}
    ]
