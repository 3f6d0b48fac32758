import random

import pytest

from dkv.mapheap import HeapItem, MapHeap


def test_new_map_heap_is_empty():
    mh = MapHeap()
    assert len(mh) == 0
    assert 1 not in mh
    assert mh.peek() is None


def test_add_item():
    mh = MapHeap()
    mh.add_item(1, 100)
    mh.add_item(2, 200)
    mh.add_item(3, 50)

    assert len(mh) == 3
    assert 1 in mh
    assert 2 in mh
    assert 3 in mh

    item = mh.peek()
    assert item is not None
    assert (item.key, item.priority) == (3, 50)


def test_update_item():
    mh = MapHeap()
    mh.add_item(1, 100)
    mh.add_item(2, 200)

    mh.add_item(1, 300)
    item = mh.get_by_key(1)
    assert item is not None
    assert item.priority == 300
    assert len(mh) == 2

    assert mh.peek().key == 2

    mh.add_item(2, 50)
    top = mh.peek()
    assert (top.key, top.priority) == (2, 50)


def test_remove_by_key():
    mh = MapHeap()
    mh.add_item(1, 100)
    mh.add_item(2, 200)
    mh.add_item(3, 300)

    assert mh.remove_by_key(2) == 200
    assert len(mh) == 2
    assert 2 not in mh

    assert mh.remove_by_key(99) is None


def test_remove_by_key_keeps_zero_priority_distinct_from_missing():
    mh = MapHeap()
    mh.add_item(7, 0)
    assert mh.remove_by_key(7) == 0
    assert mh.remove_by_key(7) is None


def test_pop_order():
    mh = MapHeap()
    items = [(5, 50), (3, 30), (1, 10), (4, 40), (2, 20)]
    for key, priority in items:
        mh.add_item(key, priority)

    for key, priority in sorted(items, key=lambda kv: kv[1]):
        item = mh.pop()
        assert (item.key, item.priority) == (key, priority)
        assert item.index == -1

    assert len(mh) == 0


def test_pop_empty_raises():
    with pytest.raises(IndexError):
        MapHeap().pop()


def test_peek_empty_heap():
    assert MapHeap().peek() is None


def test_get_by_key():
    mh = MapHeap()
    mh.add_item(1, 100)
    mh.add_item(2, 200)

    item = mh.get_by_key(1)
    assert item is not None
    assert (item.key, item.priority) == (1, 100)

    assert mh.get_by_key(99) is None


def test_item_string():
    assert str(HeapItem(1, 100)) == "{Key: 1, Priority: 100}"


def test_indices_track_positions():
    mh = MapHeap()
    for key in range(20):
        mh.add_item(key, (key * 7) % 13)
    mh.remove_by_key(5)
    mh.add_item(3, 1000)
    for key in range(20):
        item = mh.get_by_key(key)
        if item is None:
            assert key == 5
            continue
        assert item.index >= 0
        assert mh._items[item.index] is item


def test_large_number_of_items_with_updates_and_removals():
    rng = random.Random(1234)
    mh = MapHeap()
    expected = {}
    for key in range(1000):
        priority = rng.randrange(100_000)
        mh.add_item(key, priority)
        expected[key] = priority

    for key in rng.sample(range(1000), 200):
        priority = rng.randrange(100_000)
        mh.add_item(key, priority)
        expected[key] = priority

    for key in rng.sample(range(1000), 300):
        assert mh.remove_by_key(key) == expected.pop(key)

    assert len(mh) == len(expected)

    popped = []
    while len(mh):
        item = mh.pop()
        assert expected[item.key] == item.priority
        popped.append(item.priority)

    assert popped == sorted(expected.values())
    assert len(popped) == 700