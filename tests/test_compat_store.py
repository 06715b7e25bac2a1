import threading

import pytest

from node_labeler.compat.store import CompatibilityStore, parse_compatibility
from node_labeler.core.errors import ParseError


def test_parse_keeps_only_true_entries():
    mapping = parse_compatibility(b'{"e2": {"pd-standard": true, "pd-ssd": true, "pd-extreme": false}}')

    assert mapping == {"e2": frozenset({"pd-standard", "pd-ssd"})}


def test_family_with_only_false_entries_is_known_but_empty():
    store = CompatibilityStore()
    store.refresh('{"c3": {"pd-standard": false}}')

    assert store.lookup("c3") == frozenset()
    assert store.lookup("e2") is None


@pytest.mark.parametrize("raw", [None, b"", "   \n", "{}"])
def test_absent_or_blank_input_is_empty_mapping(raw):
    store = CompatibilityStore({"e2": frozenset({"pd-ssd"})})
    store.refresh(raw)

    assert len(store) == 0
    assert store.lookup("e2") is None


@pytest.mark.parametrize(
    "raw",
    [
        b"{not json",
        b"[]",
        b'{"e2": ["pd-ssd"]}',
        b'{"e2": {"pd-ssd": "true"}}',
        b'{"e2": {"pd-ssd": 1}}',
        b'{"": {"pd-ssd": true}}',
        b'{"e2": {"": true}}',
        b"\xff\xfe",
    ],
)
def test_malformed_input_raises_and_keeps_previous_mapping(raw):
    store = CompatibilityStore()
    store.refresh(b'{"e2": {"pd-standard": true}}')
    before = store.snapshot()

    with pytest.raises(ParseError):
        store.refresh(raw)

    assert store.snapshot() is before
    assert store.lookup("e2") == frozenset({"pd-standard"})


def test_refresh_replaces_whole_mapping():
    store = CompatibilityStore()
    store.refresh('{"e2": {"pd-standard": true}, "n2": {"pd-balanced": true}}')
    store.refresh('{"n2": {"pd-ssd": true}}')

    assert store.families() == ["n2"]
    assert store.lookup("n2") == frozenset({"pd-ssd"})


def test_concurrent_lookups_see_complete_snapshots():
    small = '{"e2": {"pd-standard": true}}'
    large = '{"e2": {"pd-standard": true, "pd-ssd": true}, "n2": {"pd-balanced": true}}'
    valid = {frozenset({"pd-standard"}), frozenset({"pd-standard", "pd-ssd"})}

    store = CompatibilityStore()
    store.refresh(small)
    seen: list[object] = []
    done = threading.Event()

    def reader() -> None:
        while not done.is_set():
            seen.append(store.lookup("e2"))

    t = threading.Thread(target=reader)
    t.start()
    for i in range(200):
        store.refresh(large if i % 2 else small)
    done.set()
    t.join()

    assert seen
    assert all(v in valid for v in seen)
