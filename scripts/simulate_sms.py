#!/usr/bin/env python3
"""Interactive find-my-phone simulator.

Injects text messages into a :class:`smsbeacon.PhoneFinder` and prints every
event the core publishes. Each input line is ``<sender> <message...>``;
a few commands are recognised:

- ``:keyword NEW``   change the secret keyword
- ``:locate``        request the location explicitly
- ``:alarm``         trigger the alarm manually
- ``:status``        print the current snapshot
- ``:share``         print the share text for the held location
- ``:map``           print the static map URL (needs ``BEACON_MAP_ACCESS_TOKEN``)
- ``:quit``          exit

Configuration comes from ``BEACON_*`` environment variables. Without
``BEACON_GEOLOCATION_URL`` a fixed position is reported (``--lat/--lng``).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from smsbeacon import (
    BeaconConfig,
    BeaconConfigError,
    FinderEvent,
    LocationError,
    PhoneFinder,
    StaticGeolocationService,
    format_share_text,
)
from smsbeacon.geolocation import GeolocationService

_LOG = logging.getLogger("simulate_sms")


def _print_event(event: FinderEvent) -> None:
    details = event.model_dump(exclude_none=True, exclude={"kind", "observed_at"}, mode="json")
    print(f"[{event.observed_at:%H:%M:%S}] {event.kind.value} {details if details else ''}".rstrip())


async def _handle_line(finder: PhoneFinder, line: str) -> bool:
    if line == ":quit":
        return False
    if line.startswith(":keyword"):
        try:
            finder.set_keyword(line[len(":keyword") :])
        except BeaconConfigError as exc:
            print(f"error: {exc}")
        return True
    if line == ":locate":
        try:
            await finder.locate()
        except LocationError as exc:
            print(f"error: {exc.reason}")
        return True
    if line == ":alarm":
        finder.trigger_alarm()
        return True
    if line == ":status":
        print(finder.snapshot().model_dump_json(indent=2))
        return True
    if line == ":share":
        location = finder.location
        print(format_share_text(location) if location else "no location yet")
        return True
    if line == ":map":
        try:
            url = finder.static_map_url()
        except BeaconConfigError as exc:
            print(f"error: {exc}")
            return True
        print(url or "no location yet")
        return True

    sender, _, body = line.partition(" ")
    if not sender or not body:
        print("usage: <sender> <message...>")
        return True
    finder.receive(sender, body)
    return True


async def run(args: argparse.Namespace) -> None:
    overrides = {"keyword": args.keyword} if args.keyword else {}
    config = BeaconConfig.from_env(**overrides)

    geolocation: GeolocationService | None = None
    if not config.geolocation_url and not args.no_geolocation:
        geolocation = StaticGeolocationService(args.lat, args.lng, args.accuracy, delay=args.delay)

    loop = asyncio.get_running_loop()
    async with PhoneFinder(config, geolocation=geolocation, on_event=_print_event) as finder:
        print(f"keyword: {finder.keyword}  (type :quit to exit)")
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            if not await _handle_line(finder, line.strip()):
                break
        # Let a running alarm finish before shutting down.
        while finder.alarm.is_active:
            await asyncio.sleep(0.1)


def main() -> None:
    parser = argparse.ArgumentParser(description="Simulate inbound text messages against the finder core.")
    parser.add_argument("--keyword", help="Override the secret keyword")
    parser.add_argument("--lat", type=float, default=-23.5505, help="Latitude of the simulated position")
    parser.add_argument("--lng", type=float, default=-46.6333, help="Longitude of the simulated position")
    parser.add_argument("--accuracy", type=float, default=12.0, help="Accuracy in meters of the simulated position")
    parser.add_argument("--delay", type=float, default=0.5, help="Seconds the simulated fix takes")
    parser.add_argument("--no-geolocation", action="store_true", help="Simulate a host without geolocation")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        _LOG.info("Interrupted")


if __name__ == "__main__":
    main()
