"""
Computed cells are lazily evaluated, memoized derived values.
"""

from __future__ import annotations

from functools import update_wrapper
from typing import Callable, Generic, Optional, TypeVar

from .config import logger
from .context import VALUE_KEY, context
from .observer import Observer

T = TypeVar("T")


class Computed(Generic[T]):
    __slots__ = (
        "__dict__",
        "__weakref__",
        "_dirty",
        "_is_setting",
        "_setter",
        "_value",
        "observer",
    )
    __is_cell__ = True

    def __init__(
        self,
        getter: Callable[[], T],
        setter: Optional[Callable[[T], None]] = None,
    ) -> None:
        """
        Note: make sure getter doesn't need any arguments to run
        and that no reactive state is changed within the expression
        """
        self._value: Optional[T] = None
        self._dirty = True
        self._is_setting = False
        self._setter = setter
        self.observer = Observer(
            getter,
            lazy=True,
            scheduler=self._invalidate,
            collect_cleanup=False,
        )
        update_wrapper(self, getter, updated=())

    def _invalidate(self, job) -> None:
        # The job is never run from here: recomputation happens
        # on the next read
        if self._dirty:
            return
        self._dirty = True
        if not self._is_setting:
            context.trigger(self, VALUE_KEY)

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def value(self) -> T:
        context.track(self, VALUE_KEY)
        if self._dirty:
            if context.config.debug:
                logger.debug("[computed] recomputing %s", self.observer.fn_fqn)
            self._value = self.observer.run()
            self._dirty = False
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if self._setter is None:
            if context.config.debug:
                logger.warning(
                    "[computed] %s has no setter, ignoring write",
                    self.observer.fn_fqn,
                )
            return

        self._is_setting = True
        try:
            self._setter(new_value)
            self._dirty = True
            context.trigger(self, VALUE_KEY)
        finally:
            self._is_setting = False

    def get(self) -> T:
        return self.value

    def set(self, value: T) -> None:
        self.value = value

    def __call__(self) -> T:
        return self.value

    def stop(self) -> None:
        """Stops tracking; the last computed value is kept"""
        self.observer.stop()

    def __repr__(self):
        state = "dirty" if self._dirty else repr(self._value)
        return f"<Computed {self.observer.fn_fqn} {state}>"


def computed(
    _fn: Optional[Callable[[], T]] = None,
    *,
    get: Optional[Callable[[], T]] = None,
    set: Optional[Callable[[T], None]] = None,  # noqa: A002
):
    """
    Creates a computed cell for the given getter. Can be used as a plain
    function, with keyword arguments or as a decorator:

        total = computed(lambda: a.value + b.value)
        full_name = computed(get=get_full_name, set=set_full_name)

        @computed
        def total():
            return a.value + b.value
    """
    if _fn is not None:
        return Computed(_fn)
    if get is not None:
        return Computed(get, set)

    def decorator_computed(fn: Callable[[], T]) -> Computed[T]:
        return Computed(fn, set)

    return decorator_computed
