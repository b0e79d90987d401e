import datetime as dt

import pytest


class FrozenClock:
    """엔진에 주입하는 시계. 테스트에서 advance()로 시간을 흘린다."""

    def __init__(self, start: dt.datetime):
        self.now = start

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> dt.datetime:
        self.now = self.now + dt.timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FrozenClock(dt.datetime(2025, 3, 1, 12, 0, tzinfo=dt.timezone.utc))


@pytest.fixture
def services(clock):
    # 엔진 테스트는 In-Memory 저장소로 조립 (DB 불필요)
    from safety.container import build_services

    return build_services("memory", clock=clock)
