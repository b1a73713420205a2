"""
Batching coalesces all observers that are triggered while a batch is
open and runs each of them once, when the outermost batch closes.
"""

from typing import Callable, TypeVar

from .config import logger
from .context import context

T = TypeVar("T")


def batch(fn: Callable[[], T]) -> T:
    """
    Runs fn and defers every observer it triggers until fn returns.
    Nested batches are flushed by the outermost one only. When fn raises,
    the queued observers are discarded and the exception propagates.
    """
    if not context.config.batch_updates:
        return fn()

    context.batch_depth += 1
    try:
        result = fn()
    except BaseException:
        context.batch_queue.clear()
        raise
    finally:
        context.batch_depth -= 1

    if not context.batch_depth:
        flush_batch()
    return result


def flush_batch() -> None:
    """
    Runs every queued observer once, in the order in which they were
    first triggered. Errors are reported and don't prevent the remaining
    observers from running.
    """
    observers = list(context.batch_queue)
    context.batch_queue.clear()

    if context.config.debug:
        logger.debug("[batch] flushing %d observers", len(observers))

    for observer in observers:
        if not observer.active:
            continue
        try:
            observer.run()
        except Exception:
            logger.exception("Error while flushing batched %r", observer)


def flush_updates() -> None:
    """Runs the observers queued by the currently open batch right away"""
    if context.batch_queue:
        # observers triggered during the flush are queued again
        # for as long as the batch is open
        flush_batch()
