"""Spotify Web API access: what's playing and how fast."""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests
import spotipy
from spotipy.exceptions import SpotifyException

from log import get_logger

logger = get_logger(__name__)


class SpotifyError(Exception):
    """A Spotify request failed. http_status is set when the API answered."""

    def __init__(self, message: str, http_status: Optional[int] = None):
        super().__init__(message)
        self.http_status = http_status


@dataclass(frozen=True)
class Track:
    """Currently playing track. tempo stays None until analysed."""

    id: str
    name: str = "(Unknown)"
    artists: List[str] = field(default_factory=list)
    tempo: Optional[float] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "Track":
        return cls(
            id=item["id"],
            name=item.get("name") or "(Unknown)",
            artists=[a.get("name") for a in item.get("artists") or [] if a.get("name")],
        )

    def main_artist_name(self) -> str:
        return self.artists[0] if self.artists else "Unknown"

    def __str__(self):
        return f"{self.name} - {self.main_artist_name()}"


class SpotifyClient:
    """
    Thin wrapper around spotipy.
    Only the two calls the beat sync needs.
    """

    def __init__(self, spotify: spotipy.Spotify):
        self.spotify = spotify

    def current_track(self) -> Optional[Track]:
        """
        Return the track being played, or None when nothing is playing.

        Paused playback, podcast episodes and local files (no id) all count
        as nothing playing.
        """
        playing = self._call("currently playing", self.spotify.current_user_playing_track)
        if not playing or not playing.get("is_playing", True):
            return None

        item = playing.get("item")
        if not item or item.get("type", "track") != "track" or not item.get("id"):
            return None
        return Track.from_item(item)

    def tempo(self, track_id: str) -> float:
        """
        Tempo in BPM for a track.
        Uses audio features, falls back to the full audio analysis.
        """
        tempo = None
        try:
            features = self._call("audio features", self.spotify.audio_features, [track_id])
            feature = features[0] if features else None
            tempo = feature.get("tempo") if feature else None
        except SpotifyError as e:
            logger.debug(f"Audio features unavailable for {track_id}: {e}")

        if not tempo:
            analysis = self._call("audio analysis", self.spotify.audio_analysis, track_id)
            tempo = (analysis or {}).get("track", {}).get("tempo")

        if not tempo or tempo <= 0:
            raise SpotifyError(f"No tempo available for track {track_id}")
        return float(tempo)

    @staticmethod
    def _call(what, func, *args):
        try:
            return func(*args)
        except SpotifyException as e:
            raise SpotifyError(f"{what} request failed: {e.msg}", http_status=e.http_status) from e
        except requests.RequestException as e:
            status = e.response.status_code if e.response is not None else None
            raise SpotifyError(f"{what} request failed: {e}", http_status=status) from e


# Mock data for running without a Spotify account
DEMO_PLAYLIST = [
    Track(id="demo-1", name="Heartbeat", artists=["Demo Band"], tempo=120.0),
    Track(id="demo-2", name="Slow Burn", artists=["Demo Band"], tempo=72.0),
    Track(id="demo-3", name="Sprint", artists=["Other Band"], tempo=174.0),
]


class MockSpotifyClient:
    """Cycles through a fixed playlist, one track every track_seconds."""

    def __init__(self, playlist: Optional[List[Track]] = None, track_seconds: float = 20.0,
                 clock: Callable[[], float] = time.monotonic):
        self.playlist = list(playlist if playlist is not None else DEMO_PLAYLIST)
        self.track_seconds = track_seconds
        self._clock = clock
        self._start = clock()

    def current_track(self) -> Optional[Track]:
        if not self.playlist:
            return None
        index = int((self._clock() - self._start) // self.track_seconds) % len(self.playlist)
        track = self.playlist[index]
        return Track(id=track.id, name=track.name, artists=list(track.artists))

    def tempo(self, track_id: str) -> float:
        for track in self.playlist:
            if track.id == track_id and track.tempo:
                return track.tempo
        raise SpotifyError(f"No tempo available for track {track_id}", http_status=404)
