#!/usr/bin/env python3
"""Live probe for the Bluetooth HFP adapter.

Connects to the local message bus, attaches a :class:`BluetoothHfp`
adapter and prints every semantic event it raises. Optionally turns the
radio on and dials a number. The radio is turned off on exit.

Bus location and device name come from the usual ``YODA_*`` variables.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import time
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyyoda import BluetoothHfp, MqttBus, YodaConfig, YodaError  # noqa: E402
from pyyoda.models import HfpEventType  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Watch HFP radio, connection and call events on the local bus.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--device-name",
        default=None,
        help="Advertised Bluetooth name (default: YODA_DEVICE_NAME or 'yoda').",
    )
    parser.add_argument(
        "--open",
        action="store_true",
        help="Turn the HFP radio on after connecting.",
    )
    parser.add_argument(
        "--dial",
        metavar="NUMBER",
        default=None,
        help="Dial NUMBER once a phone is connected.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


async def _run(args: argparse.Namespace) -> int:
    overrides = {"device_name": args.device_name} if args.device_name else {}
    config = YodaConfig.from_env(**overrides)

    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)

    bus = MqttBus(config, loop=loop)
    bus.start()
    hfp = BluetoothHfp.from_config(config, bus, loop=loop)
    dialed = False

    def on_radio(state: object) -> None:
        print(f"[probe] radio      : {state}")

    def on_connection(state: object) -> None:
        nonlocal dialed
        print(f"[probe] connection : {state}")
        device = hfp.get_connected_device()
        if device is not None:
            print(f"[probe]   device   : {device.name} ({device.address})")
        if args.dial and not dialed and hfp.is_connected():
            dialed = True
            print(f"[probe] Dialing {args.dial}")
            hfp.dial(args.dial)

    def on_call(state: object) -> None:
        print(f"[probe] call       : {state}")

    hfp.on(HfpEventType.RADIO_STATE_CHANGED, on_radio)
    hfp.on(HfpEventType.CONNECTION_STATE_CHANGED, on_connection)
    hfp.on(HfpEventType.CALL_STATE_CHANGED, on_call)

    started_at = time.time()
    print(f"[probe] Bus {config.bus_host}:{config.bus_port} device={config.device_name}")
    try:
        if args.open:
            print("[probe] Opening HFP radio")
            hfp.open()

        timeout = args.duration if args.duration > 0 else None
        try:
            await asyncio.wait_for(stop.wait(), timeout=timeout)
        except TimeoutError:
            print(f"[probe] Reached --duration={args.duration}s, stopping.")
    except YodaError as exc:
        print(f"[probe] {exc}", file=sys.stderr)
        return 2
    finally:
        try:
            hfp.destroy()
            # Let the grace delay run out so the adapter unsubscribes cleanly.
            await asyncio.sleep(config.hfp_destroy_grace)
        finally:
            bus.stop()

    print(f"[probe] runtime_s: {time.time() - started_at:.1f}")
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(_main())
