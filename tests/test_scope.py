import logging

from retrack import EffectScope, create_cell, create_scope, run_observer, watch


def test_scope_stops_observers():
    count = create_cell(0)
    seen = []
    calls = []
    scope = create_scope()
    assert isinstance(scope, EffectScope)
    assert scope.active

    def setup():
        run_observer(lambda: seen.append(count.value))
        watch(count, lambda new: calls.append(new))
        return "done"

    assert scope.run(setup) == "done"
    assert len(scope.effects) == 2

    count.value = 1
    assert seen == [0, 1]
    assert calls == [1]

    scope.stop()
    assert not scope.active
    count.value = 2
    assert seen == [0, 1]
    assert calls == [1]

    # stopping twice is fine
    scope.stop()


def test_observers_outside_scope_are_not_collected():
    count = create_cell(0)
    scope = create_scope()
    scope.run(lambda: None)
    seen = []

    run_observer(lambda: seen.append(count.value))
    scope.stop()
    count.value = 1
    assert seen == [0, 1]


def test_explicit_scope():
    count = create_cell(0)
    scope = create_scope()
    seen = []

    run_observer(lambda: seen.append(count.value), scope=scope)
    scope.stop()
    count.value = 1
    assert seen == [0]


def test_nested_scopes():
    count = create_cell(0)
    outer = create_scope()
    inner = create_scope()
    seen = []

    def setup_inner():
        run_observer(lambda: seen.append(("inner", count.value)))

    def setup_outer():
        inner.run(setup_inner)
        run_observer(lambda: seen.append(("outer", count.value)))

    outer.run(setup_outer)
    inner.stop()
    seen.clear()

    count.value = 1
    assert seen == [("outer", 1)]


def test_run_stopped_scope(caplog):
    scope = create_scope()
    scope.stop()
    called = []

    with caplog.at_level(logging.WARNING, logger="retrack"):
        assert scope.run(lambda: called.append(1)) is None

    assert called == []
    assert "scope is stopped" in caplog.text


def test_active_scope_is_restored_after_errors():
    scope = create_scope()

    def fail():
        raise RuntimeError()

    try:
        scope.run(fail)
    except RuntimeError:
        pass

    count = create_cell(0)
    run_observer(lambda: count.value)
    assert scope.effects == []
