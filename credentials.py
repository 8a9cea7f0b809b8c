"""Credentials loading for the Hue bridge and the Spotify app.

Expected shape of .credentials.json:

    {
        "hue": {
            "host": "<Hue bridge local IP, optional: discovered if missing>",
            "username": "<authenticated Hue bridge user>"
        },
        "spotify": {
            "clientId": "<Spotify app client ID>",
            "clientSecret": "<Spotify app client secret>",
            "redirectUri": "http://localhost:1312/callback"
        }
    }
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from config import CREDENTIALS_FILE


@dataclass(frozen=True)
class HueCredentials:
    host: Optional[str]
    username: str


@dataclass(frozen=True)
class SpotifyCredentials:
    client_id: str
    client_secret: str
    redirect_uri: str


@dataclass(frozen=True)
class Credentials:
    hue: HueCredentials
    spotify: SpotifyCredentials


def _require(section: dict, section_name: str, key: str) -> str:
    value = section.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(
            f"Credentials missing '{section_name}.{key}'\n"
            f"Must be a non-empty string."
        )
    return value.strip()


def parse_credentials(data: dict) -> Credentials:
    """Validate a decoded credentials document.

    Raises:
        ValueError: If a section or key is missing or empty
    """
    if not isinstance(data, dict):
        raise ValueError("Credentials must be a JSON object")

    for section_name in ("hue", "spotify"):
        if not isinstance(data.get(section_name), dict):
            raise ValueError(f"Credentials missing '{section_name}' section")

    hue = data["hue"]
    spotify = data["spotify"]

    host = hue.get("host")
    if host is not None and (not isinstance(host, str) or not host.strip()):
        raise ValueError("Credentials 'hue.host' must be a non-empty string when set")

    return Credentials(
        hue=HueCredentials(
            host=host.strip() if host else None,
            username=_require(hue, "hue", "username"),
        ),
        spotify=SpotifyCredentials(
            client_id=_require(spotify, "spotify", "clientId"),
            client_secret=_require(spotify, "spotify", "clientSecret"),
            redirect_uri=_require(spotify, "spotify", "redirectUri"),
        ),
    )


def load_credentials(path: Union[str, Path] = CREDENTIALS_FILE) -> Credentials:
    """Load and validate credentials from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file is not valid JSON
        ValueError: If the content is incomplete
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Credentials file not found: {path}\n"
            f"Create it with 'hue' (host, username) and 'spotify' "
            f"(clientId, clientSecret, redirectUri) sections."
        )
    return parse_credentials(json.loads(path.read_text()))
