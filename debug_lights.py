#!/usr/bin/env python3
"""Debug script to see which lights would pulse and what they would be sent."""

import copy
import sys

from credentials import load_credentials
from hue_bridge import BridgeError, HueBridge, MockHueBridge
from pulse import PulseDriver, PulseSettings, pulse_period


def main():
    try:
        creds = load_credentials()
    except (FileNotFoundError, ValueError) as e:
        print(f"No usable credentials: {e}")
        return 1
    if not creds.hue.host:
        print("No 'hue.host' in credentials. Run main.py first to discover the bridge.")
        return 1

    try:
        lights = HueBridge(creds.hue.host, creds.hue.username).get_all_lights()
    except BridgeError as e:
        print(f"Could not connect: {e}")
        return 1

    print("=" * 70)
    print("LIGHTS ON THE BRIDGE")
    print("=" * 70)
    print(f"\n{'Light':<25} {'Reach':<6} {'On':<5} {'Hue':<8} {'Bri':<5} {'Sat':<5} {'Model'}")
    print("-" * 70)
    for light in lights:
        print(
            f"{light.name:<25} {'yes' if light.reachable else 'NO':<6} {'ON' if light.on else 'off':<5} "
            f"{light.hue if light.hue is not None else '-':<8} {light.brightness:<5} "
            f"{light.saturation if light.saturation is not None else '-':<5} {light.model_id}"
        )

    # Dry run of the first two pulse ticks at 120 BPM against a recording bridge
    settings = PulseSettings()
    period = pulse_period(120, settings.beats_per_pulse)
    dry = MockHueBridge(copy.deepcopy(lights))
    driver = PulseDriver(dry, copy.deepcopy(lights), period, settings)
    driver.tick()
    driver.tick()

    names = {light.light_id: light.name for light in lights}
    print(f"\nFirst two ticks at 120 BPM (period {period:.2f}s):")
    for light_id, params, transition in dry.writes:
        print(f"  {names[light_id]:<25} transition={transition}ds {params}")

    print(f"\nReachable: {sum(1 for light in lights if light.reachable)}/{len(lights)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
