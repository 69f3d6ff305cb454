"""
Console entry point for Advert.

Runs the broadcaster against the console host: fake players log the adverts
they receive and round ends can be simulated, which is enough to watch a
config.jsonc rotation and its hot reload without a game server.

Usage:
    python -m advert
    advert --data-dir ./data --round-seconds 30 --log-level DEBUG
    ADVERT_DATA_DIR=./data ADVERT_ROUND_SECONDS=30 advert

Command-line options override the matching ADVERT_* settings.
"""

import argparse
import dataclasses
import logging
import logging.handlers
import signal
import sys
import time
from typing import List, Optional

from advert.app.plugin import AdvertPlugin
from advert.config.provider import JsoncConfigProvider
from advert.config.settings import AdvertSettings, load_settings
from advert.host.console import (
    ConsolePlayerDirectory,
    InMemoryGameEventBus,
    MappingConVarAccessor,
    RoundSimulator,
    StaticEngineInfo,
)
from advert.host.public_ip import PublicIpResolver

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class _SafeWatchedFileHandler(logging.handlers.WatchedFileHandler):
    """WatchedFileHandler whose write failures never reach the broadcaster."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            super().emit(record)
        except (IOError, OSError):
            pass


def configure_logging(settings: AdvertSettings) -> None:
    """
    Configure root logging from settings.

    Console output always; a rotation-tolerant log file when ADVERT_LOG_FILE
    is set and writable.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)

    if settings.log_file:
        try:
            handler = _SafeWatchedFileHandler(settings.log_file, mode="a")
        except OSError as e:
            logger.warning(f"Cannot open log file {settings.log_file}: {e}")
            return
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root = logging.getLogger()
        if not any(
            isinstance(h, logging.handlers.WatchedFileHandler)
            and getattr(h, "baseFilename", None) == handler.baseFilename
            for h in root.handlers
        ):
            root.addHandler(handler)
        else:
            handler.close()


def build_plugin(settings: AdvertSettings, event_bus: InMemoryGameEventBus) -> AdvertPlugin:
    """Build an AdvertPlugin wired to the console host."""
    players = ConsolePlayerDirectory(settings.human_players, settings.bot_players)
    convars = MappingConVarAccessor({
        "hostname": settings.hostname,
        "hostport": settings.hostport,
    })
    ip_resolver = PublicIpResolver(
        settings.public_ip_url,
        timeout=settings.public_ip_timeout_sec,
        override=settings.public_ip,
    )
    engine = StaticEngineInfo(ip_resolver, settings.map_name)
    # Resolve before the first tick so ticks never wait on the network
    logger.info(f"Server address: {engine.server_ip}")

    provider = JsoncConfigProvider(settings.config_path, poll_interval_sec=settings.config_poll_sec)
    return AdvertPlugin(
        provider=provider,
        players=players,
        event_bus=event_bus,
        convars=convars,
        engine=engine,
        data_dir=settings.data_dir,
        plugin_dir=settings.plugin_dir,
        audio_api=None,
    )


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line options; None falls back to sys.argv."""
    parser = argparse.ArgumentParser(description="Advert - periodic server advert broadcaster")
    parser.add_argument(
        "--data-dir",
        help="Directory holding config.jsonc and sound files (ADVERT_DATA_DIR)",
    )
    parser.add_argument(
        "--config",
        dest="config_file",
        help="Config file name or absolute path (ADVERT_CONFIG_FILE)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        help="Log level: DEBUG, INFO, WARNING, ERROR or CRITICAL (ADVERT_LOG_LEVEL)",
    )
    parser.add_argument(
        "--round-seconds",
        type=float,
        help="Simulate a round end every N seconds, 0 disables (ADVERT_ROUND_SECONDS)",
    )
    return parser.parse_args(args)


def apply_overrides(settings: AdvertSettings, options: argparse.Namespace) -> AdvertSettings:
    """
    Return settings with every option given on the command line applied.

    Raises:
        ValueError: If an overridden value is invalid
    """
    overrides = {
        name: value
        for name, value in vars(options).items()
        if value is not None
    }
    if not overrides:
        return settings
    settings = dataclasses.replace(settings, **overrides)
    settings.validate()
    return settings


def main(args: Optional[List[str]] = None) -> int:
    """
    Run Advert on the console host until SIGINT/SIGTERM.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    options = parse_args(args)
    try:
        settings = apply_overrides(load_settings(), options)
    except ValueError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error(f"Advert failed to start: {e}")
        return 1

    configure_logging(settings)

    event_bus = InMemoryGameEventBus()
    plugin = build_plugin(settings, event_bus)

    if not plugin.load():
        logger.error("Advert is disabled, exiting")
        return 1

    simulator: Optional[RoundSimulator] = None
    if settings.round_seconds > 0:
        simulator = RoundSimulator(event_bus, settings.round_seconds)
        simulator.start()

    shutdown_requested = False

    def signal_handler(sig, frame):
        nonlocal shutdown_requested
        if shutdown_requested:
            logger.debug("Shutdown already in progress, ignoring duplicate signal")
            return
        shutdown_requested = True
        signal_name = "SIGTERM" if sig == signal.SIGTERM else "SIGINT"
        logger.info(f"Received {signal_name} - shutting down")

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.info("Advert running. Press Ctrl+C to stop.")
    try:
        while not shutdown_requested:
            time.sleep(0.1)
    finally:
        if simulator is not None:
            simulator.stop()
        plugin.unload()

    return 0


if __name__ == "__main__":
    sys.exit(main())
