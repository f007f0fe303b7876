from datetime import datetime, timedelta, timezone

import pytest

from update_scheduler import clock
from update_scheduler.config import get_settings


class FrozenClock:
    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="function")
def frozen_clock(monkeypatch: pytest.MonkeyPatch) -> FrozenClock:
    frozen = FrozenClock(datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc))
    monkeypatch.setattr(clock, "now", frozen.now)
    return frozen
