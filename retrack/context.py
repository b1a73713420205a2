"""
The reactive context owns all state that is shared between observers:
the dependency graph, the activation stack, the ambient effect scope and
the batch queue. A single global instance is used by the whole package.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace

from .config import Config, logger
from .scheduler import scheduler
from .target_map import TargetMap


class _Key:
    __slots__ = ("name",)

    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return f"<{self.name}>"


# Synthetic keys. Sentinels so they can't collide with keys of a dict.
VALUE_KEY = _Key("value")
ITERATE_KEY = _Key("keys")
LENGTH_KEY = _Key("length")


class ReactiveContext:
    __slots__ = (
        "active_scope",
        "batch_depth",
        "batch_queue",
        "config",
        "should_track",
        "stack",
        "target_map",
    )

    def __init__(self):
        self.target_map = TargetMap()
        self.config = Config()
        self.stack: list["Observer"] = []  # noqa: F821
        self.active_scope = None
        self.should_track = True
        self.batch_depth = 0
        self.batch_queue: dict["Observer", None] = {}  # noqa: F821

    @property
    def current(self):
        """The observer that is currently running, if any"""
        return self.stack[-1] if self.stack else None

    @property
    def batching(self) -> bool:
        return self.batch_depth > 0 and self.config.batch_updates

    def track(self, target, key) -> None:
        if not self.should_track or not self.stack:
            return
        observer = self.stack[-1]
        if not observer.active:
            return

        dep = self.target_map.dep(target, key, create=True)
        if observer.add_dep(dep) and self.config.debug:
            logger.debug("[track] %r registered for %r", observer, key)

    def trigger(self, target, *keys) -> None:
        """
        Runs (or schedules) every observer that depends on one of the
        given keys of the target. Observers that depend on multiple of
        the keys are only triggered once.
        """
        observers = {}
        for key in keys:
            dep = self.target_map.dep(target, key)
            if dep:
                observers.update(dict.fromkeys(dep.subscribers()))
        if not observers:
            return

        current = self.current
        cycle_prevention = self.config.cycle_prevention
        to_run = [
            observer
            for observer in observers
            if observer.active
            and observer is not current
            and not (cycle_prevention and observer in self.stack)
        ]

        if self.config.debug:
            logger.debug(
                "[trigger] %d of %d observers for %r",
                len(to_run),
                len(observers),
                keys if len(keys) > 1 else keys[0],
            )

        for observer in to_run:
            observer.update()

    @contextmanager
    def untracked(self):
        """Suspends dependency tracking for the duration of the block"""
        previous = self.should_track
        self.should_track = False
        try:
            yield
        finally:
            self.should_track = previous

    def reset(self) -> None:
        self.target_map.clear()
        self.config = Config()
        self.stack.clear()
        self.active_scope = None
        self.should_track = True
        self.batch_depth = 0
        self.batch_queue.clear()


# Construct global instance
context = ReactiveContext()


def enable_debug(enable: bool = True) -> None:
    """Turns the diagnostic tracing on or off"""
    context.config.debug = enable
    logger.setLevel("DEBUG" if enable else "NOTSET")


def get_config() -> Config:
    """Returns a copy of the active configuration"""
    return replace(context.config)


def set_config(**options) -> None:
    """
    Updates the active configuration, e.g.
    `set_config(batch_updates=False, deep_max_depth=3)`.
    Raises TypeError for unknown options.
    """
    context.config = replace(context.config, **options)
    if "debug" in options:
        enable_debug(options["debug"])


def get_effect_stats() -> dict:
    return {
        "active_effects": len(context.stack),
        "queued_updates": len(context.batch_queue),
    }


def reset_all() -> None:
    """
    Restores every piece of global state to its defaults. Intended for
    isolating independent test cases from each other.
    """
    context.reset()
    scheduler.clear()
    logger.setLevel("NOTSET")
