"""
Observers perform dependency tracking: while an observer runs, every
reactive read registers the observer as a subscriber of the value that
was read, and every later write to that value re-runs the observer.
"""

from __future__ import annotations

from itertools import count
from typing import Any, Callable, Optional

from .config import logger
from .context import context
from .dep import Dep

CleanupFn = Callable[[], None]
StopFn = Callable[[], None]

# Every Observer gets a unique ID, mostly for debugging purposes
_ids = count()


def run_cleanup(cleanup: CleanupFn, description: str) -> None:
    """
    Runs a cleanup callback. Errors are reported but never stop the
    observer (or watch binding) that registered the cleanup.
    """
    try:
        cleanup()
    except Exception:
        logger.exception("Error in %s cleanup", description)


class Observer:
    __slots__ = (
        "_deps",
        "active",
        "cleanup",
        "collect_cleanup",
        "fn",
        "id",
        "on_stop",
        "scheduler",
    )

    def __init__(
        self,
        fn: Callable[[], Any],
        lazy: bool = False,
        scheduler: Optional[Callable[[CleanupFn], None]] = None,
        scope=None,
        collect_cleanup: bool = True,
        on_stop: Optional[CleanupFn] = None,
    ) -> None:
        """
        lazy: Don't run the observer on creation
        scheduler: Receives a job to run when the observer is triggered,
            instead of running the observer right away
        scope: Additional scope (next to the active one) to register in
        collect_cleanup: Treat a callable return value of fn as cleanup
        on_stop: Called once when the observer is stopped
        """
        self.id = next(_ids)
        self.fn = fn
        self.active = True
        self.cleanup: Optional[CleanupFn] = None
        self.collect_cleanup = collect_cleanup
        self.scheduler = scheduler
        self.on_stop = on_stop
        self._deps: list[Dep] = []

        active_scope = context.active_scope
        if active_scope is not None and active_scope.active:
            active_scope.add(self.stop)
        if scope is not None and scope is not active_scope and scope.active:
            scope.add(self.stop)

        if not lazy:
            self.run()

    def __repr__(self):
        return f"<Observer {self.id} {self.fn_fqn}>"

    @property
    def fn_fqn(self) -> str:
        module = getattr(self.fn, "__module__", None)
        qualname = getattr(self.fn, "__qualname__", type(self.fn).__name__)
        return f"{module}.{qualname}" if module else qualname

    def run(self) -> Any:
        """
        Runs fn while tracking its dependencies. A cleanup returned by the
        previous run is called first.
        """
        if not self.active:
            return self.fn()

        if self.cleanup is not None:
            cleanup, self.cleanup = self.cleanup, None
            run_cleanup(cleanup, repr(self))

        stack = context.stack
        if len(stack) >= context.config.tracking_depth:
            raise RecursionError(
                f"Maximum tracking depth exceeded while running {self.fn_fqn}"
            )

        self.cleanup_deps()
        stack.append(self)
        should_track, context.should_track = context.should_track, True
        try:
            result = self.fn()
        finally:
            stack.pop()
            context.should_track = should_track

        if self.collect_cleanup and callable(result):
            if self.active:
                self.cleanup = result
            else:
                # stopped itself while running
                run_cleanup(result, repr(self))
        return result

    def update(self) -> None:
        """Called when one of the dependencies changed"""
        if not self.active:
            # stopped by an observer that was triggered before this one
            return
        if self.scheduler is not None:
            self.scheduler(self.job)
        elif context.batching:
            context.batch_queue.setdefault(self)
        else:
            self.run()

    def job(self) -> None:
        """Scheduled re-run, which is a no-op once the observer is stopped"""
        if self.active:
            self.run()

    def add_dep(self, dep: Dep) -> bool:
        if dep.add_sub(self):
            self._deps.append(dep)
            return True
        return False

    def cleanup_deps(self) -> None:
        for dep in self._deps:
            dep.remove_sub(self)
        self._deps.clear()

    def stop(self) -> None:
        if not self.active:
            return

        self.cleanup_deps()
        self.active = False
        context.batch_queue.pop(self, None)
        if self.cleanup is not None:
            cleanup, self.cleanup = self.cleanup, None
            run_cleanup(cleanup, repr(self))
        if self.on_stop is not None:
            run_cleanup(self.on_stop, repr(self))

        if context.config.debug:
            logger.debug("[observer] %r stopped", self)


def run_observer(
    body: Callable[[], Optional[CleanupFn]],
    lazy: bool = False,
    scheduler: Optional[Callable[[CleanupFn], None]] = None,
    scope=None,
) -> StopFn:
    """
    Runs body and re-runs it whenever one of the reactive values it
    read changes. When body returns a callable, it is called before the
    next run and when the observer is stopped.

    Returns a function that stops the observer.
    """
    observer = Observer(body, lazy=lazy, scheduler=scheduler, scope=scope)
    return observer.stop


effect = run_observer
