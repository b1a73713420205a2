"""
Trap builders: each builder wraps a method of dict or list so that
calling it on a proxy tracks the keys it reads, or notifies the keys
it changed.
"""

from functools import wraps
from operator import index as as_index

from .context import ITERATE_KEY, LENGTH_KEY, context
from .object_utils import same_value
from .proxy import observe, raw_args, to_raw


def wrap(proxy, value):
    """Observes a value read through the proxy, one level deeper"""
    return observe(value, proxy.__depth__ + 1)


def return_value(proxy, retval):
    # in-place operators return the target, which should stay proxied
    return proxy if retval is proxy.__target__ else retval


def read_trap(method, obj_cls):
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        self._track_contents()
        value = fn(self.__target__, *raw_args(args), **kwargs)
        return wrap(self, value)

    return trap


def iterate_trap(method, obj_cls):
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        self._track_contents()
        iterator = fn(self.__target__, *args, **kwargs)
        if method == "items":
            return ((key, wrap(self, value)) for key, value in iterator)
        return (wrap(self, value) for value in iterator)

    return trap


def size_trap(method, obj_cls):
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        self._track_size()
        return fn(self.__target__, *args, **kwargs)

    return trap


def key_iterate_trap(method, obj_cls):
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        context.track(self.__target__, ITERATE_KEY)
        return fn(self.__target__, *args, **kwargs)

    return trap


def read_key_trap(method, obj_cls):
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        key = self._dep_key(args[0])
        if key is None:
            self._track_contents()
        else:
            context.track(self.__target__, key)
        value = fn(self.__target__, *args, **kwargs)
        return wrap(self, value)

    return trap


def has_key_trap(method, obj_cls):
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        target = self.__target__
        context.track(target, args[0])
        context.track(target, ITERATE_KEY)
        return fn(target, *args, **kwargs)

    return trap


def write_trap(method, obj_cls):
    """
    Generic trap for mutators of records: the record is compared before
    and after the mutation and exactly the changed keys are notified.
    """
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        target = self.__target__
        old = obj_cls.copy(target)
        kwargs = {key: to_raw(value) for key, value in kwargs.items()}
        with context.untracked():
            retval = fn(target, *raw_args(args), **kwargs)

        changed = [
            key
            for key, value in old.items()
            if key not in target or not same_value(value, target[key])
        ]
        added = [key for key in target if key not in old]
        if added or len(old) != len(target):
            changed.extend(added)
            changed.append(ITERATE_KEY)
        if changed:
            context.trigger(target, *changed)
        return return_value(self, retval)

    return trap


def write_key_trap(method, obj_cls):
    fn = getattr(obj_cls, method)
    getitem_fn = getattr(obj_cls, "get")

    @wraps(fn)
    def trap(self, *args, **kwargs):
        target = self.__target__
        key = args[0]
        is_new = key not in target
        old_value = getitem_fn(target, key)
        retval = fn(target, *raw_args(args), **kwargs)
        new_value = getitem_fn(target, key)

        if is_new:
            context.trigger(target, key, ITERATE_KEY)
        elif not same_value(old_value, new_value):
            context.trigger(target, key)

        if method == "setdefault":
            return wrap(self, retval)
        return retval

    return trap


def delete_key_trap(method, obj_cls):
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        target = self.__target__
        had_key = args[0] in target
        retval = fn(target, *args, **kwargs)
        if had_key:
            context.trigger(target, args[0], ITERATE_KEY)
        return retval

    return trap


def clamp_index(index, length):
    index = as_index(index)
    if index < 0:
        index += length
    return min(max(index, 0), length)


def mutation_start(method, args, target):
    """
    Returns the first index that is affected by the given mutation of a
    sequence. Every index from there up to the end of the sequence (old
    or new, whichever is longer) is notified after the mutation.
    """
    length = len(target)
    if method in ("append", "extend", "__iadd__"):
        return length
    if method == "insert":
        return clamp_index(args[0], length)
    if method == "pop":
        return clamp_index(args[0] if args else -1, length)
    if method == "remove":
        try:
            return list.index(target, args[0])
        except ValueError:
            return length
    if method in ("__setitem__", "__delitem__"):
        key = args[0]
        if isinstance(key, slice):
            start, _, step = key.indices(length)
            return start if step == 1 else 0
        return clamp_index(key, length)
    # sort, reverse, clear, __imul__
    return 0


def sequence_write_trap(method, obj_cls):
    """
    Mutations of sequences are applied with tracking suspended, after
    which the length, the presence key and all affected indices are
    notified at once.
    """
    fn = getattr(obj_cls, method)

    @wraps(fn)
    def trap(self, *args, **kwargs):
        target = self.__target__
        args = raw_args(args)
        old_length = len(target)
        start = mutation_start(method, args, target)
        with context.untracked():
            retval = fn(target, *args, **kwargs)
        new_length = len(target)

        keys = [LENGTH_KEY] if new_length != old_length else []
        keys.append(ITERATE_KEY)
        keys.extend(range(start, max(old_length, new_length)))
        context.trigger(target, *keys)
        return return_value(self, retval)

    return trap


def write_index_trap(method, obj_cls):
    fn = getattr(obj_cls, method)
    getitem_fn = getattr(obj_cls, "__getitem__")
    write_slice = sequence_write_trap(method, obj_cls)

    @wraps(fn)
    def trap(self, key, value):
        if isinstance(key, slice):
            return write_slice(self, key, value)

        target = self.__target__
        old_value = getitem_fn(target, key)
        value = to_raw(value)
        if same_value(old_value, value):
            return
        fn(target, key, value)
        context.trigger(target, clamp_index(key, len(target)), ITERATE_KEY)

    return trap


trap_map = {
    "READERS": read_trap,
    "KEYREADERS": read_key_trap,
    "HASKEY": has_key_trap,
    "ITERATORS": iterate_trap,
    "KEYITERATORS": key_iterate_trap,
    "SIZE": size_trap,
    "WRITERS": write_trap,
    "KEYWRITERS": write_key_trap,
    "KEYDELETERS": delete_key_trap,
    "SEQUENCEWRITERS": sequence_write_trap,
    "INDEXWRITERS": write_index_trap,
}


def construct_methods_traps_dict(obj_cls, traps, trap_map):
    return {
        method: trap_map[trap_type](method, obj_cls)
        for trap_type, methods in traps.items()
        for method in methods
    }
