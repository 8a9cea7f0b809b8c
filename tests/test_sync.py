"""Tests for the poll loop and track-change handling."""

from unittest.mock import Mock

import pytest

from hue_bridge import BridgeError, MockHueBridge
from pulse import PulseSettings
from spotify_client import SpotifyError, Track
from sync import BeatSync

from conftest import make_light

TRACK_A = Track(id="A", name="Song A", artists=["Artist"])
TRACK_B = Track(id="B", name="Song B", artists=["Artist"])


class DriverRecorder:
    """Driver factory that records lifecycle events instead of pulsing."""

    def __init__(self):
        self.events = []
        self.drivers = []
        self.active = 0
        self.max_active = 0

    def __call__(self, bridge, lights, period, settings, name=""):
        recorder = self

        class FakeDriver:
            def __init__(self):
                self.name = name
                self.lights = lights
                self.period = period

            def start(self):
                recorder.events.append(("start", self.name))
                recorder.active += 1
                recorder.max_active = max(recorder.max_active, recorder.active)

            def cancel(self):
                recorder.events.append(("cancel", self.name))
                recorder.active -= 1

        driver = FakeDriver()
        self.drivers.append(driver)
        return driver


@pytest.fixture
def music():
    music = Mock()
    music.current_track.return_value = TRACK_A
    music.tempo.return_value = 120.0
    return music


@pytest.fixture
def hue():
    hue = Mock()
    hue.get_all_lights.return_value = [make_light(1), make_light(2, reachable=False)]
    return hue


@pytest.fixture
def recorder():
    return DriverRecorder()


@pytest.fixture
def sync(music, hue, recorder):
    return BeatSync(music, hue, PulseSettings(), driver_factory=recorder)


def test_new_track_arms_pulse_with_tempo_period(sync, music, hue, recorder):
    sync.poll()

    music.tempo.assert_called_once_with("A")
    hue.get_all_lights.assert_called_once()
    assert recorder.events == [("start", "pulse-A")]
    assert recorder.drivers[0].period == pytest.approx(1.0)
    assert sync.current_track_id == "A"
    assert sync.current_track.tempo == 120.0


def test_unchanged_track_makes_no_further_calls(sync, music, hue, recorder):
    sync.poll()
    for _ in range(5):
        sync.poll()

    assert music.current_track.call_count == 6
    assert music.tempo.call_count == 1
    assert hue.get_all_lights.call_count == 1
    assert recorder.events == [("start", "pulse-A")]


def test_track_change_cancels_old_pulse_once_before_arming_new(sync, music, hue, recorder):
    sync.poll()
    music.current_track.return_value = TRACK_B
    sync.poll()
    sync.poll()

    assert recorder.events == [("start", "pulse-A"), ("cancel", "pulse-A"), ("start", "pulse-B")]
    assert [c.args for c in music.tempo.call_args_list] == [("A",), ("B",)]
    assert hue.get_all_lights.call_count == 2
    assert recorder.max_active == 1


def test_never_two_pulses_across_many_changes(sync, music, recorder):
    for track_id in ["A", "B", "A", "C", "C", "D"]:
        music.current_track.return_value = Track(id=track_id)
        sync.poll()

    assert recorder.max_active == 1
    assert recorder.active == 1
    cancels = [e for e in recorder.events if e[0] == "cancel"]
    assert len(cancels) == 4


def test_nothing_playing_from_start_is_a_no_op(sync, music, hue, recorder):
    music.current_track.return_value = None
    sync.poll()
    sync.poll()

    music.tempo.assert_not_called()
    hue.get_all_lights.assert_not_called()
    assert recorder.events == []
    assert sync.current_track_id is None


def test_playback_stopping_cancels_pulse(sync, music, recorder):
    sync.poll()
    music.current_track.return_value = None
    sync.poll()
    sync.poll()

    assert recorder.events == [("start", "pulse-A"), ("cancel", "pulse-A")]
    assert sync.pulse is None
    assert music.tempo.call_count == 1


def test_playback_resuming_rearms(sync, music, recorder):
    sync.poll()
    music.current_track.return_value = None
    sync.poll()
    music.current_track.return_value = TRACK_A
    sync.poll()

    assert recorder.events[-1] == ("start", "pulse-A")
    assert music.tempo.call_count == 2


def test_spotify_failure_keeps_current_pulse(sync, music, recorder):
    sync.poll()
    music.current_track.side_effect = SpotifyError("unavailable", http_status=503)
    sync.poll()

    assert recorder.events == [("start", "pulse-A")]
    assert sync.current_track_id == "A"

    music.current_track.side_effect = None
    sync.poll()
    assert recorder.events == [("start", "pulse-A")]


def test_analysis_failure_arms_nothing_and_is_not_retried(sync, music, hue, recorder):
    music.tempo.side_effect = SpotifyError("no features", http_status=404)
    sync.poll()
    sync.poll()

    assert recorder.events == []
    assert sync.current_track_id == "A"
    assert music.tempo.call_count == 1
    hue.get_all_lights.assert_not_called()


def test_zero_tempo_counts_as_analysis_failure(sync, music, recorder):
    music.tempo.return_value = 0
    sync.poll()
    assert recorder.events == []


def test_bridge_failure_arms_nothing(sync, hue, recorder):
    hue.get_all_lights.side_effect = BridgeError("no route to host")
    sync.poll()

    assert recorder.events == []
    assert sync.pulse is None


def test_stale_analysis_is_discarded(sync, music, recorder):
    def tempo(track_id):
        # A newer poll recorded a different track while this one was fetching
        sync.current_track_id = "B"
        return 120.0

    music.tempo.side_effect = tempo
    sync.poll()

    assert recorder.events == []
    assert sync.pulse is None


def test_on_change_reports_track_with_tempo(music, hue, recorder):
    seen = []
    sync = BeatSync(music, hue, driver_factory=recorder, on_change=seen.append)
    sync.poll()
    music.current_track.return_value = None
    sync.poll()

    assert seen[0].id == "A"
    assert seen[0].tempo == 120.0
    assert seen[1] is None


def test_run_polls_every_interval_until_stopped(music, hue, recorder, clock):
    polls = []

    def current_track():
        polls.append(clock())
        if len(polls) == 3:
            sync.stop()
        return TRACK_A

    music.current_track.side_effect = current_track
    sync = BeatSync(music, hue, driver_factory=recorder, poll_interval=1.0,
                    clock=clock, sleep=clock.sleep)
    sync.run()

    assert polls == pytest.approx([100.0, 101.0, 102.0])
    assert music.tempo.call_count == 1


def test_change_mid_pulse_restarts_lights_with_toggle_on(music):
    bridge = MockHueBridge([make_light(1), make_light(2, reachable=False)])
    sync = BeatSync(music, bridge, PulseSettings(initial_hue=230))
    try:
        sync.poll()
        first = sync.pulse
        first.tick()  # A's pulse is now in its "off" half

        music.current_track.return_value = TRACK_B
        bridge.writes.clear()
        sync.poll()

        assert first.cancelled
        assert sync.pulse is not first
        # B's first tick was applied immediately, on, with the initial hue
        light_id, params, _ = bridge.writes[0]
        assert light_id == 1
        assert params["on"] is True
        assert params["hue"] == round(230 / 360 * 65535)
        assert 2 not in [w[0] for w in bridge.writes]
    finally:
        sync.stop()
