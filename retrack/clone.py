"""
Deep copying of (observed) data, used to retain previous values of deep
watchers without aliasing data that is about to be mutated in place.
"""

from copy import deepcopy
from typing import TypeVar

from .proxy import Proxy

T = TypeVar("T")


def deep_clone(value: T, memo: dict | None = None) -> T:
    """
    Returns a value-equal, reference-distinct copy of value. Dicts,
    lists, tuples and sets keep their kind, observed views are replaced
    by copies of their targets and shared or circular references are
    reproduced within the copy. Anything else is handed to
    `copy.deepcopy` with the same memo, which leaves immutable atoms
    (numbers, strings, None, ...) untouched.
    """
    if memo is None:
        memo = {}
    if isinstance(value, Proxy):
        value = value.__target__

    obj_id = id(value)
    if obj_id in memo:
        return memo[obj_id]

    if type(value) is dict:
        result = {}
        memo[obj_id] = result
        for key, item in value.items():
            result[deep_clone(key, memo)] = deep_clone(item, memo)
        return result

    if type(value) is list:
        result = []
        memo[obj_id] = result
        result.extend(deep_clone(item, memo) for item in value)
        return result

    if type(value) is set:
        result = set()
        memo[obj_id] = result
        result.update(deep_clone(item, memo) for item in value)
        return result

    if type(value) is tuple:
        result = tuple(deep_clone(item, memo) for item in value)
        # a tuple can only be part of a cycle through a mutable container
        # in which case that container has been memoized already
        return memo.setdefault(obj_id, result)

    return deepcopy(value, memo)
