"""Shared fixtures: virtual clock, in-memory surface, fake image loader."""

from concurrent.futures import Executor, Future

import pytest
from PIL import Image

from minigame.errors import AssetLoadError
from minigame.renderer import CanvasSurface
from minigame.scheduler import ManualScheduler


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            result = fn(*args, **kwargs)
        except BaseException as e:
            future.set_exception(e)
        else:
            future.set_result(result)
        return future


class FakeLoader:
    """Resolves any identifier to a small solid image; records every call."""

    def __init__(self, fail=(), missing=()):
        self.calls: list[str] = []
        self.fail = set(fail)
        self.missing = set(missing)

    def resolve(self, identifier):
        self.calls.append(identifier)
        if identifier in self.fail:
            raise AssetLoadError(f"Failed to load image: {identifier}")
        if identifier in self.missing:
            return None
        return Image.new("RGBA", (8, 8), "red")


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def surface():
    return CanvasSurface(size=(96, 96))


@pytest.fixture
def loader():
    return FakeLoader()


@pytest.fixture
def inline_executor():
    return InlineExecutor()


@pytest.fixture
def make_loader():
    return FakeLoader
