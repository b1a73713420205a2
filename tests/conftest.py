import gc

import pytest

from retrack import reset_all, scheduler


def noop():
    pass


@pytest.fixture
def noop_request_flush():
    old_callback = scheduler.request_flush
    scheduler.register_request_flush(noop)
    try:
        yield
    finally:
        scheduler.register_request_flush(old_callback)


@pytest.fixture(autouse=True)
def reset():
    # Collect garbage of previous tests first, so that no views or
    # finalizers of earlier tests end up in the fresh target map
    gc.collect()
    reset_all()
    try:
        yield
    finally:
        reset_all()
