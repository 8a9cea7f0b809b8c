"""Philips Hue bridge access: light snapshots, writes and discovery."""

import copy
import math
from dataclasses import dataclass
from typing import Optional

import requests
from phue import Bridge, PhueException

from config import HUE_MAX, LEVEL_MAX
from log import get_logger

logger = get_logger(__name__)


class BridgeError(Exception):
    """The Hue bridge could not be reached or rejected a request."""


@dataclass
class LightState:
    """Snapshot of a single Hue light, mutated and written back by the pulse."""

    light_id: int
    name: str
    reachable: bool
    on: bool
    brightness: int  # 0-254
    hue: Optional[int]  # 0-65535 (None for non-color lights)
    saturation: Optional[int]  # 0-254 (None for non-color lights)
    transition_time: Optional[float] = None  # seconds
    supports_color: bool = True
    model_id: str = ""  # e.g., LCT007, LST002, LWB010
    light_type: str = ""  # e.g., "Extended color light", "Dimmable light"

    @classmethod
    def from_api(cls, light_id, light_data: dict) -> "LightState":
        state = light_data.get("state", {})
        return cls(
            light_id=int(light_id),
            name=light_data.get("name", f"Light {light_id}"),
            reachable=state.get("reachable", False),
            on=state.get("on", False),
            brightness=state.get("bri", 0),
            hue=state.get("hue"),
            saturation=state.get("sat"),
            supports_color="hue" in state,
            model_id=light_data.get("modelid", ""),
            light_type=light_data.get("type", ""),
        )

    def to_params(self) -> dict:
        """Bridge state parameters for a write.

        Colour is only sent while the light is on; a light going dark keeps
        whatever colour it had.
        """
        params = {"on": self.on}
        if self.on:
            params["bri"] = self.brightness
            if self.supports_color:
                if self.hue is not None:
                    params["hue"] = self.hue
                if self.saturation is not None:
                    params["sat"] = self.saturation
        return params

    @property
    def transition_deciseconds(self) -> Optional[int]:
        # The bridge counts transitions in multiples of 100ms
        if self.transition_time is None:
            return None
        return int(math.floor(self.transition_time * 10 + 1e-9))


def degrees_to_hue(degrees: float) -> int:
    """Convert a hue in degrees (0-360) to the bridge's uint16 range."""
    return int(round(degrees / 360 * HUE_MAX))


def unit_to_level(value: float) -> int:
    """Convert a [0, 1] brightness/saturation to the bridge's 0-254 range."""
    return int(round(value * LEVEL_MAX))


def discover_bridge() -> Optional[str]:
    """Auto-discover a Hue Bridge on the network."""
    logger.info("Searching for Hue Bridge...")

    # Method 1: Philips discovery endpoint (requires internet)
    try:
        response = requests.get("https://discovery.meethue.com", timeout=5)
        bridges = response.json()
        if bridges:
            ip = bridges[0].get("internalipaddress")
            logger.info(f"Found bridge via Philips discovery: {ip}")
            return ip
    except (requests.RequestException, ValueError) as e:
        logger.debug(f"Philips discovery failed: {e}")

    # Method 2: Try common local IPs
    common_ips = [
        "192.168.1.1", "192.168.0.1",
        "192.168.1.2", "192.168.0.2",
        "10.0.0.1", "10.0.0.2",
    ]

    for ip in common_ips:
        try:
            response = requests.get(f"http://{ip}/api/config", timeout=1)
            if "bridgeid" in response.text.lower():
                logger.info(f"Found bridge at: {ip}")
                return ip
        except requests.RequestException:
            continue

    logger.warning("Could not auto-discover bridge.")
    return None


class HueBridge:
    """Reads and writes light state on a Philips Hue Bridge."""

    def __init__(self, host: str, username: str):
        self.host = host
        # With both ip and username phue skips registration entirely
        self.bridge = Bridge(host, username=username)

    def get_all_lights(self) -> list[LightState]:
        """Get current state of all lights."""
        try:
            data = self.bridge.get_light()
        except (PhueException, OSError) as e:
            raise BridgeError(f"Could not read lights from {self.host}: {e}") from e

        # The bridge answers errors (e.g. unauthorized user) with a list
        if isinstance(data, list):
            raise BridgeError(f"Bridge at {self.host} refused to list lights: {_describe_errors(data)}")

        return [LightState.from_api(light_id, light_data) for light_id, light_data in data.items()]

    def save_light(self, light: LightState):
        """Push one light's state to the bridge."""
        params = light.to_params()
        try:
            result = self.bridge.set_light(
                light.light_id, params, transitiontime=light.transition_deciseconds
            )
        except (PhueException, OSError) as e:
            raise BridgeError(f"Could not update light '{light.name}': {e}") from e

        errors = [entry for response in result or [] for entry in response if "error" in entry]
        if errors:
            logger.warning(f"Bridge rejected part of update for '{light.name}': {_describe_errors(errors)}")
        else:
            logger.debug(f"Saved '{light.name}': {params}")


def _describe_errors(entries: list) -> str:
    return "; ".join(
        entry.get("error", {}).get("description", str(entry)) if isinstance(entry, dict) else str(entry)
        for entry in entries
    )


# Demo/mock data for running without an actual Hue Bridge
class MockHueBridge:
    """In-memory bridge that records every write."""

    host = ""

    def __init__(self, lights: Optional[list[LightState]] = None):
        if lights is None:
            lights = [
                LightState(
                    light_id=1, name="Living Room", reachable=True, on=True,
                    brightness=200, hue=10000, saturation=200,
                    model_id="LCT007", light_type="Extended color light",
                ),
                LightState(
                    light_id=2, name="Bedroom", reachable=True, on=False,
                    brightness=120, hue=46920, saturation=150,
                    model_id="LST002", light_type="Extended color light",
                ),
                LightState(
                    light_id=3, name="Kitchen", reachable=False, on=False,
                    brightness=180, hue=None, saturation=None, supports_color=False,
                    model_id="LWB010", light_type="Dimmable light",
                ),
            ]
        self._lights = {light.light_id: light for light in lights}
        self.writes: list[tuple[int, dict, Optional[int]]] = []

    def get_all_lights(self) -> list[LightState]:
        return [copy.copy(light) for light in self._lights.values()]

    def save_light(self, light: LightState):
        params = light.to_params()
        self.writes.append((light.light_id, params, light.transition_deciseconds))
        stored = self._lights[light.light_id]
        stored.on = light.on
        if light.on:
            stored.brightness = light.brightness
            if stored.supports_color:
                stored.hue = light.hue
                stored.saturation = light.saturation
        logger.debug(f"[mock] '{light.name}' <- {params}")
