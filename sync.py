"""Poll loop: follows the playing track and re-arms the pulse on every change."""

import time
from dataclasses import replace
from typing import Callable, Optional

from config import POLL_INTERVAL
from hue_bridge import BridgeError
from log import get_logger
from pulse import PulseDriver, PulseSettings, pulse_period
from spotify_client import SpotifyError, Track
from timer import CorrectingInterval

logger = get_logger(__name__)


class BeatSync:
    """
    Session state for one run: the last seen track and the active pulse.

    poll() is the only entry point that mutates the session. It is called
    once per poll tick by run(); a changed track id cancels the active pulse
    before anything else happens, so at most one pulse ever writes to the
    lights.
    """

    def __init__(self, music, bridge, settings: Optional[PulseSettings] = None,
                 poll_interval: float = POLL_INTERVAL,
                 driver_factory: Callable[..., PulseDriver] = PulseDriver,
                 on_change: Optional[Callable[[Optional[Track]], None]] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Optional[Callable[[float], None]] = None):
        self.music = music
        self.bridge = bridge
        self.settings = settings or PulseSettings()
        self.driver_factory = driver_factory
        self.on_change = on_change

        self.current_track_id: Optional[str] = None
        self.current_track: Optional[Track] = None
        self.pulse: Optional[PulseDriver] = None

        self._interval = CorrectingInterval(
            self.poll, poll_interval, name="poll", clock=clock, sleep=sleep
        )

    def run(self):
        """Poll until stop() is called. Blocks the calling thread."""
        logger.info(f"Checking for new songs every {self._interval.period:g}s")
        self._interval.run(immediate=True)

    def stop(self):
        self._interval.cancel()
        self._stop_pulse()

    def poll(self):
        """One poll tick."""
        try:
            track = self.music.current_track()
        except SpotifyError as e:
            logger.error(f"Couldn't connect to the Spotify API. Error {e.http_status}: {e}")
            return

        track_id = track.id if track is not None else None
        if track_id == self.current_track_id:
            return

        self._stop_pulse()
        self.current_track_id = track_id
        self.current_track = track

        if track is None:
            logger.info("Nothing playing, pulse stopped")
        else:
            logger.info(f"Now playing: {track}")
            self._arm(track)

        if self.on_change is not None:
            self.on_change(self.current_track)

    def _arm(self, track: Track):
        try:
            tempo = self.music.tempo(track.id)
            period = pulse_period(tempo, self.settings.beats_per_pulse)
        except (SpotifyError, ValueError) as e:
            logger.error(f"Couldn't analyze the track: {e}")
            return

        try:
            lights = self.bridge.get_all_lights()
        except BridgeError as e:
            logger.error(f"Couldn't connect to the lights: {e}")
            return

        # Results fetched for a track that is no longer current are dropped
        if self.current_track_id != track.id:
            logger.debug(f"Discarding stale analysis for {track.id}")
            return

        self.current_track = replace(track, tempo=tempo)
        self.pulse = self.driver_factory(
            self.bridge, lights, period, self.settings, name=f"pulse-{track.id}"
        )
        self.pulse.start()

        reachable = sum(1 for light in lights if light.reachable)
        logger.info(
            f"Pulsing {reachable}/{len(lights)} lights every {period:.2f}s ({tempo:.1f} BPM)"
        )

    def _stop_pulse(self):
        if self.pulse is not None:
            self.pulse.cancel()
            self.pulse = None
