#!/usr/bin/env python3
"""Huertbeat - pulses Philips Hue lights to whatever is playing on Spotify."""

import argparse
import sys
from typing import Optional

from auth import AuthError, authorize
from config import (
    BEATS_PER_PULSE, BRIGHTNESS, CREDENTIALS_FILE, HUE_INCREMENT, INITIAL_HUE,
    POLL_INTERVAL, SATURATION, SMOOTHNESS,
)
from credentials import load_credentials
from hue_bridge import HueBridge, MockHueBridge, discover_bridge
from log import get_logger, set_level
from pulse import PulseSettings
from spotify_client import MockSpotifyClient, SpotifyClient, Track
from sync import BeatSync

logger = get_logger(__name__)


def print_now_playing(track: Optional[Track]):
    if track is None:
        print("■ Nothing playing")
    elif track.tempo:
        print(f"▶ Now playing: {track}  [{track.tempo:.0f} BPM]")
    else:
        print(f"▶ Now playing: {track}  [no tempo]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pulse Philips Hue lights to the beat of Spotify")
    parser.add_argument("--mock", action="store_true", help="Use mock Spotify and Hue (no account or bridge needed)")
    parser.add_argument("--credentials", default=str(CREDENTIALS_FILE), help="Path to .credentials.json")
    parser.add_argument("--no-browser", action="store_true", help="Print the authorization URL instead of opening it")
    parser.add_argument("--quiet", action="store_true", help="Don't print now-playing lines")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging (every light write)")

    pulse = parser.add_argument_group("pulse")
    pulse.add_argument("--beats-per-pulse", type=float, default=BEATS_PER_PULSE,
                       help=f"Beats per light toggle (default={BEATS_PER_PULSE})")
    pulse.add_argument("--brightness", type=float, default=BRIGHTNESS,
                       help=f"Brightness of the on half, 0-1 (default={BRIGHTNESS})")
    pulse.add_argument("--saturation", type=float, default=SATURATION,
                       help=f"Saturation of the on half, 0-1 (default={SATURATION})")
    pulse.add_argument("--initial-hue", type=int, default=INITIAL_HUE,
                       help=f"Starting hue in degrees (default={INITIAL_HUE})")
    pulse.add_argument("--hue-increment", type=int, default=HUE_INCREMENT,
                       help=f"Degrees the hue moves every toggle (default={HUE_INCREMENT})")
    pulse.add_argument("--smoothness", type=float, default=SMOOTHNESS,
                       help=f"Share of the period spent fading, 0-1 (default={SMOOTHNESS})")
    pulse.add_argument("--poll-interval", type=float, default=POLL_INTERVAL,
                       help=f"Seconds between now-playing checks (default={POLL_INTERVAL})")
    pulse.add_argument("--mock-track-seconds", type=float, default=20.0, help=argparse.SUPPRESS)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_level("DEBUG")

    try:
        settings = PulseSettings(
            beats_per_pulse=args.beats_per_pulse,
            brightness=args.brightness,
            saturation=args.saturation,
            initial_hue=args.initial_hue,
            hue_increment=args.hue_increment,
            smoothness=args.smoothness,
        )
    except ValueError as e:
        parser.error(str(e))
    if args.poll_interval <= 0:
        parser.error("--poll-interval must be positive")

    if args.mock:
        music = MockSpotifyClient(track_seconds=args.mock_track_seconds)
        bridge = MockHueBridge()
        print("Using mock Spotify and Hue data (nothing will light up)")
    else:
        try:
            creds = load_credentials(args.credentials)
        except (FileNotFoundError, ValueError) as e:
            logger.error(f"Could not load credentials: {e}")
            sys.exit(1)

        host = creds.hue.host or discover_bridge()
        if not host:
            logger.error("No Hue Bridge host. Set 'hue.host' in the credentials file.")
            sys.exit(1)
        bridge = HueBridge(host, creds.hue.username)

        try:
            music = SpotifyClient(authorize(creds.spotify, open_browser=not args.no_browser))
        except AuthError as e:
            logger.error(f"Uh oh, auth failed: {e}")
            sys.exit(1)

    sync = BeatSync(
        music, bridge, settings,
        poll_interval=args.poll_interval,
        on_change=None if args.quiet else print_now_playing,
    )

    print("Huertbeat started!")
    print("Listening to Spotify...\n")
    print("[Ctrl+C to stop]")

    try:
        sync.run()
    except KeyboardInterrupt:
        print("\n\nStopping...")
    finally:
        sync.stop()
        print("Goodbye!")


if __name__ == "__main__":
    main()
