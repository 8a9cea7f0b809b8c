"""Shared fakes for the Huertbeat tests."""

import pytest

from hue_bridge import LightState, MockHueBridge


class FakeClock:
    """Manual monotonic clock. sleep() just moves time forward."""

    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def make_light(light_id, reachable=True, **kwargs):
    defaults = dict(
        name=f"Light {light_id}", on=False, brightness=100, hue=1000, saturation=100,
    )
    defaults.update(kwargs)
    return LightState(light_id=light_id, reachable=reachable, **defaults)


@pytest.fixture
def lights():
    return [make_light(1), make_light(2, reachable=False), make_light(3)]


@pytest.fixture
def bridge(lights):
    return MockHueBridge(lights)
