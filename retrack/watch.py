"""
Watchers run a callback whenever the value of a watched source changes.
A source can be a function, a cell, an observed object or a list of
those.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Optional, TypeVar, Union

import patchdiff

from .cell import is_cell
from .clone import deep_clone
from .context import context
from .dict_proxy import DictProxyBase
from .list_proxy import ListProxyBase
from .object_proxy import ObjectProxyBase
from .object_proxy import type_test as is_user_object
from .object_utils import get_object_attrs, same_value
from .observer import Observer, StopFn, run_cleanup
from .proxy import Proxy, is_opaque, to_raw
from .scheduler import scheduler as default_scheduler

T = TypeVar("T")
WatchSource = Union[Callable[[], T], T]
WatchCallback = Callable[..., Any]

FLUSH_MODES = ("sync", "pre", "post")

# Keep references to tasks that run async callbacks until they're done
_background_tasks = set()


def traverse(obj, seen=None):
    """
    Recursively traverse the whole tree to make sure
    that all values have been 'get'
    """
    # only observed data registers dependencies,
    # so there's no point in traversing anything else
    if isinstance(obj, DictProxyBase):
        val_iter = obj.values()
    elif isinstance(obj, (ListProxyBase, tuple, list)):
        val_iter = iter(obj)
    elif isinstance(obj, ObjectProxyBase):
        attrs = get_object_attrs(obj.__target__)
        val_iter = (getattr(obj, attr, None) for attr in attrs)
    else:
        return

    # track which objects we have already seen to support(!) full traversal
    # of datastructures with cycles
    if seen is None:
        seen = set()
    seen.add(id(obj))
    for v in val_iter:
        if id(v) not in seen:
            traverse(v, seen=seen)


_CYCLE = object()
_MISSING = object()


def plain_data(value, path=None):
    """
    Converts raw data into dicts, lists and sets that can be diffed.
    Instances of user classes become a dict of their class and their
    attributes, so they compare by state instead of by identity.
    """
    if path is None:
        path = set()
    obj_id = id(value)
    if obj_id in path:
        return _CYCLE

    if isinstance(value, dict):
        convert = plain_dict
    elif isinstance(value, (list, tuple)):
        convert = plain_list
    elif not is_opaque(value) and is_user_object(value):
        convert = plain_object
    else:
        return value

    path.add(obj_id)
    try:
        return convert(value, path)
    finally:
        path.discard(obj_id)


def plain_dict(obj, path):
    return {key: plain_data(value, path) for key, value in obj.items()}


def plain_list(obj, path):
    return [plain_data(value, path) for value in obj]


def plain_object(obj, path):
    result = {"__class__": type(obj)}
    for attr in sorted(get_object_attrs(obj)):
        if attr.startswith("__"):
            continue
        value = getattr(obj, attr, _MISSING)
        if value is not _MISSING:
            result[attr] = plain_data(value, path)
    return result


def deep_equal(a, b) -> bool:
    a, b = plain_data(a), plain_data(b)
    if isinstance(a, (dict, list, set)) and type(a) is type(b):
        ops, _ = patchdiff.diff(a, b)
        return not ops
    return a == b


def source_getter(source: WatchSource[T]) -> Callable[[], T]:
    if is_cell(source):
        return lambda: source.value
    if callable(source):
        return source
    if isinstance(source, (list, tuple)):
        getters = [source_getter(item) for item in source]
        return lambda: [getter() for getter in getters]
    return lambda: source


class WrongNumberOfArgumentsError(TypeError):
    """
    Error that is used to signal that the wrong number of arguments is
    used for the callback
    """

    pass


def callback_arity(callback: Callable) -> int:
    """
    Returns the number of arguments (new, old, on_cleanup) that should
    be passed to the callback.
    """
    try:
        sig = inspect.signature(callback)
    except (TypeError, ValueError):
        return 3

    positional = []
    for param in sig.parameters.values():
        if param.kind is param.VAR_POSITIONAL:
            return 3
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            positional.append(param)

    required = [param for param in positional if param.default is param.empty]
    if len(required) > 3:
        raise WrongNumberOfArgumentsError(
            "Please use 0, 1, 2 or 3 arguments for callbacks"
        )
    # parameters with a default value are only passed when required
    # ones come before them (e.g. `lambda new, old, i=i: ...`)
    return max(len(required), 1 if positional else 0)


def run_coroutine(coro) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(coro)
        return

    task = loop.create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


class OnCleanup:
    """
    Passed as third argument to watch callbacks. Call it to register a
    function that runs before the next invocation of the callback, or
    when the watcher is stopped. `cancelled` turns True at that moment,
    which long running (async) callbacks can check to abandon their work.
    """

    __slots__ = ("_cleanup", "cancelled")

    def __init__(self) -> None:
        self._cleanup: Optional[Callable[[], None]] = None
        self.cancelled = False

    def __call__(self, fn: Callable[[], None]) -> None:
        if self.cancelled:
            run_cleanup(fn, "watch callback")
            return
        self._cleanup = fn

    def run(self) -> None:
        self.cancelled = True
        cleanup, self._cleanup = self._cleanup, None
        if cleanup is not None:
            run_cleanup(cleanup, "watch callback")


class Watcher:
    __slots__ = (
        "__weakref__",
        "_first_run",
        "_number_of_callback_args",
        "callback",
        "deep",
        "fn",
        "immediate",
        "multi",
        "observer",
        "on_cleanup",
        "value",
    )

    def __init__(
        self,
        source: WatchSource[T],
        callback: WatchCallback,
        immediate: bool = False,
        deep: bool = False,
        scheduler: Optional[Callable[[Callable[[], None]], None]] = None,
    ) -> None:
        """
        immediate: Run the callback right away with the initial value
        deep: Deep watch the watched value
        scheduler: Receives the job that re-evaluates the source
        """
        self.fn = source_getter(source)
        self.multi = isinstance(source, (list, tuple)) and not is_cell(source)
        self.callback = callback
        self._number_of_callback_args = callback_arity(callback)
        self.immediate = immediate
        self.deep = deep
        self.value = None
        self.on_cleanup: Optional[OnCleanup] = None
        self._first_run = True
        self.observer = Observer(
            self.evaluate, scheduler=scheduler, on_stop=self.run_pending_cleanup
        )

    def __repr__(self):
        return f"<Watcher {self.observer.id}>"

    def evaluate(self) -> None:
        """Body of the observer: runs on creation and on every change"""
        value = self.fn()
        if self.deep:
            traverse(value)

        if self._first_run:
            self._first_run = False
            if self.immediate:
                self.run_callback(value, None)
            self.value = self.snapshot(value)
            return

        if self.has_changed(value):
            self.run_callback(value, self.value)
            self.value = self.snapshot(value)

    def snapshot(self, value):
        return deep_clone(value) if self.deep else value

    def has_changed(self, value) -> bool:
        if self.deep:
            compare, value = deep_equal, to_raw_value(value)
        else:
            compare = same_value
        if self.multi:
            return any(not compare(old, new) for old, new in zip(self.value, value))
        return not compare(self.value, value)

    def run_callback(self, new, old) -> None:
        if self.on_cleanup is not None:
            self.on_cleanup.run()
        self.on_cleanup = on_cleanup = OnCleanup()

        args = (new, old, on_cleanup)[: self._number_of_callback_args]
        with context.untracked():
            maybe_coro = self.callback(*args)

        if inspect.iscoroutine(maybe_coro):
            run_coroutine(maybe_coro)

    def run_pending_cleanup(self) -> None:
        if self.on_cleanup is not None:
            on_cleanup, self.on_cleanup = self.on_cleanup, None
            on_cleanup.run()

    def stop(self) -> None:
        self.observer.stop()


def to_raw_value(value):
    if isinstance(value, list) and not isinstance(value, Proxy):
        return [to_raw(item) for item in value]
    return to_raw(value)


def watch(
    source: WatchSource[T],
    callback: WatchCallback,
    immediate: bool = False,
    deep: bool = False,
    flush: str = "sync",
    scheduler: Optional[Callable[[Callable[[], None]], None]] = None,
) -> StopFn:
    """
    Calls callback(new, old, on_cleanup) whenever the value of source
    changes. Returns a function that stops watching.

    flush: "sync" runs the callback as soon as the source changes, "pre"
        and "post" defer it to the next flush of the global scheduler
    scheduler: Custom scheduler that receives the re-evaluation job,
        overrides flush
    """
    if flush not in FLUSH_MODES:
        raise ValueError(f"Unknown flush mode {flush!r}, use one of {FLUSH_MODES}")
    if scheduler is None and flush != "sync":
        scheduler = default_scheduler.queue

    watcher = Watcher(
        source, callback, immediate=immediate, deep=deep, scheduler=scheduler
    )
    return watcher.stop


def watch_cell(cell, callback: WatchCallback, **options) -> StopFn:
    return watch(cell, callback, **options)


def watch_observed(obj, callback: WatchCallback, **options) -> StopFn:
    """Watches every nested value of an observed object"""
    options.setdefault("deep", True)
    return watch(obj, callback, **options)
