"""Command line entry point: run the garage door HomeKit bridge."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys

from pyhap.accessory_driver import AccessoryDriver

from garagebridge.bridge import GarageBridge
from garagebridge.config import BridgeConfig
from garagebridge.exceptions import GarageError
from garagebridge.homekit import GarageDoorAccessory, format_pincode

_logger = logging.getLogger("garagebridge")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="garagebridge",
        description="Expose a cloud-connected garage door opener as a HomeKit accessory.",
    )
    parser.add_argument("--config", default="config.json", help="config file (default: %(default)s)")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {"debug": True} if args.debug else {}
    try:
        config = BridgeConfig.from_file(args.config, **overrides)
    except GarageError as exc:
        print(f"garagebridge: {exc}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    storage_dir = os.path.join(config.storage_path, config.accessory_name)
    os.makedirs(storage_dir, exist_ok=True)
    driver = AccessoryDriver(
        port=config.homekit_port,
        persist_file=os.path.join(storage_dir, "accessory.state"),
        pincode=format_pincode(config.homekit_pin),
    )

    bridge = GarageBridge(config)
    try:
        driver.loop.run_until_complete(bridge.connect())
    except GarageError as exc:
        _logger.error("Startup failed: %s", exc)
        driver.loop.run_until_complete(bridge.close())
        return 1

    accessory = GarageDoorAccessory(driver, config.accessory_name, bridge=bridge, brand=config.brand)
    driver.add_accessory(accessory)

    signal.signal(signal.SIGINT, driver.signal_handler)
    signal.signal(signal.SIGTERM, driver.signal_handler)

    _logger.info("Starting HomeKit accessory server on port %d", config.homekit_port)
    driver.start()
    return 0


if __name__ == "__main__":
    sys.exit(main())
