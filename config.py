"""Configuration for Huertbeat.

Hue Bridge and Spotify credentials live in .credentials.json (gitignored),
see credentials.py for its shape.
"""

from pathlib import Path

# Credentials file next to the scripts
CREDENTIALS_FILE = Path(__file__).parent / ".credentials.json"

# Polling interval in seconds (re-check for a new song every second)
POLL_INTERVAL = 1.0

# Pulse every two beats
BEATS_PER_PULSE = 2

# Color targets, [0, 1]
SATURATION = 1.0
BRIGHTNESS = 1.0

# Degrees
INITIAL_HUE = 230
HUE_INCREMENT = 53

# [0, 1] with 1 being the smoothest transition
SMOOTHNESS = 0.8

# Hue bridge native ranges
HUE_MAX = 65535  # uint16
LEVEL_MAX = 254  # uint8 brightness/saturation

# OAuth callback
CALLBACK_PORT = 1312
CALLBACK_PATH = "/callback"
SPOTIFY_SCOPE = "user-read-currently-playing"
AUTH_TIMEOUT = 300  # seconds to wait for the browser round trip
