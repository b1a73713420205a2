import logging

from retrack import (
    Computed,
    computed,
    create_cell,
    create_scope,
    enable_debug,
    observe,
    run_observer,
)


def test_computed_is_lazy_and_memoized():
    count = create_cell(1)
    called = 0

    def double():
        nonlocal called
        called += 1
        return count.value * 2

    result = computed(double)
    assert isinstance(result, Computed)
    assert called == 0
    assert result.dirty

    assert result.value == 2
    assert result.value == 2
    assert result() == 2
    assert result.get() == 2
    assert called == 1

    count.value = 2
    # invalidated but not recomputed until read
    assert called == 1
    assert result.dirty
    assert result.value == 4
    assert called == 2


def test_computed_triggers_observers():
    count = create_cell(1)
    double = computed(lambda: count.value * 2)
    seen = []

    run_observer(lambda: seen.append(double.value))
    assert seen == [2]

    count.value = 5
    assert seen == [2, 10]


def test_computed_invalidates_once_until_read():
    count = create_cell(0)
    called = 0

    def body():
        nonlocal called
        called += 1
        return count.value

    result = computed(body)
    assert result.value == 0

    count.value = 1
    count.value = 2
    count.value = 3
    assert called == 1
    assert result.value == 3
    assert called == 2


def test_computed_chain():
    a = create_cell(1)
    b = computed(lambda: a.value + 1)
    c = computed(lambda: b.value * 10)
    seen = []

    run_observer(lambda: seen.append(c.value))
    assert seen == [20]

    a.value = 2
    assert seen == [20, 30]


def test_computed_over_observed_data():
    state = observe({"items": [1, 2, 3]})
    total = computed(lambda: sum(state["items"]))
    assert total.value == 6

    state["items"].append(4)
    assert total.value == 10


def test_computed_decorator():
    first = create_cell("Ada")
    last = create_cell("Lovelace")

    @computed
    def full_name():
        return f"{first.value} {last.value}"

    assert isinstance(full_name, Computed)
    assert full_name.__name__ == "full_name"
    assert full_name.value == "Ada Lovelace"

    last.value = "Byron"
    assert full_name() == "Ada Byron"


def test_computed_setter():
    first = create_cell("Ada")
    last = create_cell("Lovelace")

    def set_full_name(value):
        first.value, last.value = value.split(" ")

    full_name = computed(
        get=lambda: f"{first.value} {last.value}",
        set=set_full_name,
    )
    seen = []
    run_observer(lambda: seen.append(full_name.value))

    full_name.value = "Grace Hopper"
    assert first.value == "Grace"
    assert last.value == "Hopper"
    assert full_name.value == "Grace Hopper"
    assert seen[-1] == "Grace Hopper"

    full_name.set("Alan Turing")
    assert full_name.get() == "Alan Turing"


def test_computed_setter_decorator():
    count = create_cell(1)

    def set_double(value):
        count.value = value // 2

    @computed(set=set_double)
    def double():
        return count.value * 2

    double.value = 10
    assert count.value == 5
    assert double.value == 10


def test_computed_without_setter_ignores_writes(caplog):
    count = create_cell(1)
    double = computed(lambda: count.value * 2)

    double.value = 100
    assert double.value == 2

    enable_debug()
    with caplog.at_level(logging.WARNING, logger="retrack"):
        double.value = 100
    assert "has no setter" in caplog.text
    assert double.value == 2


def test_computed_stop_keeps_last_value():
    count = create_cell(1)
    double = computed(lambda: count.value * 2)
    assert double.value == 2

    double.stop()
    count.value = 2
    assert not double.dirty
    assert double.value == 2


def test_computed_in_scope():
    count = create_cell(1)
    scope = create_scope()
    double = scope.run(lambda: computed(lambda: count.value * 2))
    assert double.value == 2

    scope.stop()
    count.value = 3
    assert double.value == 2


def test_computed_repr():
    double = computed(lambda: 2)
    assert "dirty" in repr(double)
    double.value
    assert repr(double).endswith(" 2>")
