from __future__ import annotations

import re
import sys
from datetime import date, time, timedelta, tzinfo
from enum import Enum
from typing import Generic, TypeVar, cast
from weakref import WeakKeyDictionary, WeakSet, WeakValueDictionary

from .context import context

T = TypeVar("T")

# Values of these types are never observed
OPAQUE_TYPES = (
    set,
    frozenset,
    date,
    time,
    timedelta,
    tzinfo,
    re.Pattern,
    WeakKeyDictionary,
    WeakValueDictionary,
    WeakSet,
    Enum,
)


class Proxy(Generic[T]):
    """
    Proxy (observed view) for an object/target.

    Instantiating a Proxy will register it as the view of its target in
    the target map and destroying a Proxy will remove that registration.

    Please use the `observe` method to get a proxy for a certain object
    instead of directly creating one yourself. The `observe` method will
    either create or return the existing proxy and makes sure that there
    is at most one view per target.
    """

    __hash__ = None
    # the slots have to be very unique since we also proxy objects
    # which may define the attributes with the same names
    __slots__ = ("__depth__", "__target__", "__weakref__")

    def __init__(self, target: T, depth: int = 0):
        self.__target__ = target
        self.__depth__ = depth
        context.target_map.reference(self)

    def __del__(self):
        context.target_map.dereference(self)

    def __deepcopy__(self, memo):
        from .clone import deep_clone

        return deep_clone(self.__target__, memo)


# Lookup dict for mapping a type test to the proxy type that
# will convert an object of that type to an observed version
TYPE_LOOKUP = {}


def is_opaque(target) -> bool:
    """Returns whether the target is a value that is never observed"""
    if isinstance(target, OPAQUE_TYPES) or callable(target):
        return True
    cls = type(target)
    return getattr(cls, "__observe_skip__", False)


def is_stdlib_type(cls) -> bool:
    return cls.__module__.partition(".")[0] in sys.stdlib_module_names


def observe(target: T, depth: int = 0) -> T:
    """
    Returns an observed view of the given target. Reads through the view
    are tracked, writes through the view notify the observers that read
    the written key. Nested values are observed on access.

    Returns the target itself when it can't be observed (primitives and
    opaque values) or when `depth` exceeds the configured maximum.
    """
    if isinstance(target, Proxy):
        return target
    if depth > context.config.deep_max_depth or is_opaque(target):
        return target

    existing_proxy = context.target_map.get_proxy(target)
    if existing_proxy is not None:
        return existing_proxy

    for type_test, proxy_type in TYPE_LOOKUP.items():
        if type_test(target):
            return proxy_type(target, depth)

    if type(target) is tuple:
        return cast(T, tuple(observe(x, depth + 1) for x in target))

    # We can't proxy a plain value
    return target


def is_observed(value) -> bool:
    return isinstance(value, Proxy)


def to_raw(target: Proxy[T] | T) -> T:
    """
    Returns the raw object that is wrapped by the given view. Raw
    objects never contain views, so there is nothing to unwrap below
    the top level (except for tuples, which are observed per element).
    """
    if isinstance(target, Proxy):
        return target.__target__

    if isinstance(target, tuple):
        return cast(T, tuple(to_raw(t) for t in target))

    return target


def raw_args(args):
    return tuple(to_raw(arg) for arg in args)
