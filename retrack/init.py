import asyncio

from .scheduler import scheduler


def init(mode="asyncio"):
    """Connects the scheduler to the event loop of the given mode"""
    if mode != "asyncio":
        raise ValueError(f"Unsupported mode: {mode!r}")

    scheduler.register_asyncio()


def loop_factory():
    loop = asyncio.new_event_loop()
    if hasattr(asyncio, "eager_task_factory"):
        loop.set_task_factory(asyncio.eager_task_factory)
    return loop
