import logging

import pytest

from retrack import (
    batch,
    create_cell,
    flush_updates,
    get_effect_stats,
    observe,
    run_observer,
    set_config,
)


def test_batch_runs_observers_once():
    a = create_cell(1)
    b = create_cell(2)
    seen = []

    run_observer(lambda: seen.append(a.value + b.value))

    def update():
        a.value = 10
        b.value = 20
        assert seen == [3]

    batch(update)
    assert seen == [3, 30]


def test_batch_returns_result():
    assert batch(lambda: 42) == 42


def test_nested_batches_flush_once():
    count = create_cell(0)
    seen = []
    run_observer(lambda: seen.append(count.value))

    def inner():
        count.value += 1

    def outer():
        batch(inner)
        assert seen == [0]
        batch(inner)

    batch(outer)
    assert seen == [0, 2]


def test_batch_first_trigger_order():
    a = create_cell(0)
    b = create_cell(0)
    order = []

    run_observer(lambda: order.append(("a", a.value)))
    run_observer(lambda: order.append(("b", b.value)))
    order.clear()

    def update():
        b.value = 1
        a.value = 1
        b.value = 2

    batch(update)
    assert order == [("b", 2), ("a", 1)]


def test_batch_error_discards_queue():
    count = create_cell(0)
    seen = []
    run_observer(lambda: seen.append(count.value))

    def update():
        count.value = 1
        raise RuntimeError("abort")

    with pytest.raises(RuntimeError):
        batch(update)
    assert seen == [0]
    assert get_effect_stats()["queued_updates"] == 0

    # batching still works afterwards
    batch(lambda: setattr(count, "value", 2))
    assert seen == [0, 2]


def test_batch_flush_continues_after_errors(caplog):
    count = create_cell(0)
    seen = []

    def failing():
        if count.value:
            raise ValueError("failing observer")

    run_observer(failing)
    run_observer(lambda: seen.append(count.value))

    with caplog.at_level(logging.ERROR, logger="retrack"):
        batch(lambda: setattr(count, "value", 1))

    assert seen == [0, 1]
    assert "failing observer" in caplog.text


def test_batch_disabled():
    set_config(batch_updates=False)
    count = create_cell(0)
    seen = []
    run_observer(lambda: seen.append(count.value))

    def update():
        count.value = 1
        count.value = 2

    batch(update)
    assert seen == [0, 1, 2]


def test_flush_updates():
    state = observe({"a": 1})
    seen = []
    run_observer(lambda: seen.append(state["a"]))

    def update():
        state["a"] = 2
        assert get_effect_stats()["queued_updates"] == 1
        flush_updates()
        assert seen == [1, 2]
        state["a"] = 3

    batch(update)
    assert seen == [1, 2, 3]


def test_stopped_observer_is_removed_from_batch():
    count = create_cell(0)
    seen = []
    stop = run_observer(lambda: seen.append(count.value))

    def update():
        count.value = 1
        stop()

    batch(update)
    assert seen == [0]
