"""
Cells are single value reactive containers.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from .context import VALUE_KEY, context
from .object_utils import same_value
from .proxy import observe, to_raw

T = TypeVar("T")


class Cell(Generic[T]):
    """
    Reactive container for a single value. Reading `value` registers the
    running observer, writing a different value re-runs it. A composite
    value is observed too, so changes to nested data are tracked as well.
    """

    __slots__ = ("__weakref__", "_value")
    # cells are reactive already, so they are never wrapped by observe
    __observe_skip__ = True

    def __init__(self, value: T) -> None:
        self._value = to_raw(value)

    @property
    def value(self) -> T:
        context.track(self, VALUE_KEY)
        return observe(self._value)

    @value.setter
    def value(self, new_value: T) -> None:
        new_value = to_raw(new_value)
        if same_value(self._value, new_value):
            return
        self._value = new_value
        context.trigger(self, VALUE_KEY)

    def get(self) -> T:
        return self.value

    def set(self, value: T) -> None:
        self.value = value

    def __repr__(self):
        return f"{type(self).__name__}({self._value!r})"


class ShallowCell(Cell[T]):
    """
    Cell that only tracks replacement of its value as a whole: the value
    is handed out as is, so mutations of nested data are not observed.
    """

    __slots__ = ()

    def __init__(self, value: T) -> None:
        self._value = value

    @property
    def value(self) -> T:
        context.track(self, VALUE_KEY)
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        if same_value(self._value, new_value):
            return
        self._value = new_value
        context.trigger(self, VALUE_KEY)


def create_cell(value: T) -> Cell[T]:
    return Cell(value)


def create_shallow_cell(value: T) -> ShallowCell[T]:
    return ShallowCell(value)


def is_cell(value) -> bool:
    """Returns whether value is a cell (including computed cells)"""
    return isinstance(value, Cell) or getattr(value, "__is_cell__", False)


def is_shallow_cell(value) -> bool:
    return isinstance(value, ShallowCell)


def unref(value):
    """Returns the value of a cell, or the given value if it isn't one"""
    return value.value if is_cell(value) else value
