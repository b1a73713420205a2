import pytest

from retrack import reset_all


@pytest.fixture(autouse=True)
def reset():
    reset_all()
    try:
        yield
    finally:
        reset_all()
