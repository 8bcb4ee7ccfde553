"""Shared fixtures: isolated settings and a manual poll harness."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import pytest

from cogwheel.foundation.config import clear_settings_cache
from cogwheel.runtime.concurrency import Context, Waker


@dataclass
class CountingWaker:
    """Waker target that records how often it was woken."""

    count: int = 0

    def __call__(self) -> None:
        self.count += 1

    def context(self) -> Context:
        return Context.from_waker(Waker(self))


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def counter() -> CountingWaker:
    return CountingWaker()


@pytest.fixture
def make_counter() -> type[CountingWaker]:
    return CountingWaker
