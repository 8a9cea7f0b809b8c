"""Beat pulse: toggles every reachable light on and off at the pulse period."""

import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from config import (
    BEATS_PER_PULSE, BRIGHTNESS, HUE_INCREMENT, INITIAL_HUE, SATURATION, SMOOTHNESS,
)
from hue_bridge import BridgeError, LightState, degrees_to_hue, unit_to_level
from log import get_logger
from timer import CorrectingInterval

logger = get_logger(__name__)


@dataclass(frozen=True)
class PulseSettings:
    """Tunable look of the pulse."""

    beats_per_pulse: float = BEATS_PER_PULSE
    brightness: float = BRIGHTNESS  # [0, 1]
    saturation: float = SATURATION  # [0, 1]
    initial_hue: int = INITIAL_HUE  # degrees
    hue_increment: int = HUE_INCREMENT  # degrees per tick
    smoothness: float = SMOOTHNESS  # [0, 1], 1 = transition takes the whole period

    def __post_init__(self):
        if self.beats_per_pulse <= 0:
            raise ValueError(f"beats_per_pulse must be positive, got {self.beats_per_pulse}")
        for name in ("brightness", "saturation", "smoothness"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name} must be in range 0-1, got {value}")
        if not 0 <= self.initial_hue < 360:
            raise ValueError(f"initial_hue must be in range 0-359, got {self.initial_hue}")


@dataclass
class PulseState:
    """Alternating on/off state and the hue of the next "on" half."""

    toggle: bool = True
    hue: int = INITIAL_HUE

    def advance(self, increment: int):
        self.toggle = not self.toggle
        self.hue = (self.hue + increment) % 360


def pulse_period(tempo: float, beats_per_pulse: float = BEATS_PER_PULSE) -> float:
    """Seconds between light toggles for a tempo in BPM."""
    if tempo <= 0:
        raise ValueError(f"Tempo must be positive, got {tempo}")
    return 60 / tempo * beats_per_pulse


def transition_time(period: float, smoothness: float = SMOOTHNESS) -> float:
    """Fade duration in seconds, rounded down to the bridge's 100ms steps."""
    return math.floor(period * 10 * smoothness) / 10


class PulseDriver:
    """
    Drives one light snapshot for one track.

    The first tick is applied synchronously by start(); later ticks run on a
    CorrectingInterval thread. The driver owns its PulseState and its copy of
    the lights, so nothing else writes light state while it runs.
    """

    def __init__(self, bridge, lights: list[LightState], period: float,
                 settings: Optional[PulseSettings] = None, name: str = "pulse",
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Optional[Callable[[float], None]] = None):
        self.bridge = bridge
        self.lights = lights
        self.period = period
        self.settings = settings or PulseSettings()
        self.state = PulseState(hue=self.settings.initial_hue)
        self.transition_time = transition_time(period, self.settings.smoothness)
        self._interval = CorrectingInterval(self.tick, period, name=name, clock=clock, sleep=sleep)

    @property
    def cancelled(self) -> bool:
        return self._interval.cancelled

    def start(self):
        self.tick()
        self._interval.start(immediate=False)

    def cancel(self):
        self._interval.cancel()

    def tick(self):
        """Apply the current state to all lights, then prepare the next one."""
        self.apply()
        self.state.advance(self.settings.hue_increment)

    def apply(self) -> int:
        """Write the current state to every reachable light. Returns writes sent."""
        toggle = self.state.toggle
        sent = 0

        for light in self.lights:
            if not light.reachable:
                continue

            light.on = toggle
            light.transition_time = self.transition_time

            if toggle:
                light.hue = degrees_to_hue(self.state.hue)
                light.brightness = unit_to_level(self.settings.brightness)
                light.saturation = unit_to_level(self.settings.saturation)

            try:
                self.bridge.save_light(light)
                sent += 1
            except BridgeError as e:
                logger.error(f"Couldn't connect to the lights: {e}")

        return sent
