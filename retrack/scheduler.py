"""
The scheduler queues up and deduplicates jobs of observers that opted
into deferred execution (e.g. watchers with `flush="post"`) and should be
integrated in the event loop of your choosing.
"""

import asyncio
from collections import defaultdict


class Scheduler:
    __slots__ = (
        "__weakref__",
        "_queue",
        "circular",
        "detect_cycles",
        "flushing",
        "has",
        "index",
        "request_flush",
        "waiting",
    )

    def __init__(self):
        self._queue = []
        self.flushing = False
        self.has = set()
        self.circular = defaultdict(int)
        self.index = 0
        self.waiting = False
        self.request_flush = self.request_flush_raise
        self.detect_cycles = True

    def request_flush_raise(self):
        """
        Error raising default request flusher.
        """
        raise ValueError("No flush request handler registered")

    def register_request_flush(self, callback):
        """
        Register callback for registering a call to flush
        """
        self.request_flush = callback

    def request_flush_asyncio(self):
        loop = asyncio.get_running_loop()
        loop.call_soon(self.flush)

    def register_asyncio(self):
        """
        Utility function for integration with asyncio
        """
        self.register_request_flush(self.request_flush_asyncio)

    def flush(self):
        """
        Flush the queue to run all queued jobs.
        You can call this manually, or register a callback
        to request to perform the flush.
        """
        if not self._queue:
            return

        self.flushing = True
        self.waiting = False

        try:
            while self.index < len(self._queue):
                job = self._queue[self.index]
                self.has.discard(job)
                job()

                if self.detect_cycles:
                    self.circular[job] += 1
                    if self.circular[job] > 100:
                        raise RecursionError(
                            f"Infinite update loop detected in {job_name(job)}"
                        )

                self.index += 1
        finally:
            self.clear()

    def clear(self):
        self._queue.clear()
        self.flushing = False
        self.waiting = False
        self.has.clear()
        self.circular.clear()
        self.index = 0

    def queue(self, job):
        """
        Queues the job. Jobs that are queued already are skipped. Jobs that
        are queued while flushing run in the same flush.
        """
        if job in self.has:
            return

        self.has.add(job)
        self._queue.append(job)
        if not self.flushing and not self.waiting:
            self.waiting = True
            self.request_flush()

    def __len__(self):
        return len(self._queue) - self.index


def job_name(job) -> str:
    owner = getattr(job, "__self__", None)
    return repr(owner) if owner is not None else getattr(job, "__qualname__", "job")


# Construct global instance
scheduler = Scheduler()
