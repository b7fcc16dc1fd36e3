#!/usr/bin/env python3
"""
main.py – запуск опроса дальномеров.

    rangelog --config sensors.json            # headless
    rangelog --config sensors.json --serve    # + status API (uvicorn)
"""

import argparse
import asyncio
import signal
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import serial

from .config import Settings, get_settings, load_settings
from .errors import ConfigError, StartupFatal
from .logging_config import get_logger, setup_logging
from .models import Health
from .poller import Poller
from .rotation import RotationPolicy
from .scheduler import Scheduler
from .serialio.channel import Channel, open_channel
from .writer import JsonLinesWriter

log = get_logger("rangelog.main")


@dataclass
class Runtime:
    settings: Settings
    channels: List[Channel]
    poller: Poller
    writer: JsonLinesWriter
    scheduler: Scheduler
    stop: asyncio.Event = field(default_factory=asyncio.Event)

    def health(self) -> Health:
        return Health(
            ok=self.poller.open_count > 0,
            ports_configured=len(self.channels),
            ports_open=self.poller.open_count,
            cycles_written=self.writer.written,
            write_failures=self.writer.failures,
        )

    async def run(self, max_cycles: Optional[int] = None) -> int:
        return await self.scheduler.run(self.stop, max_cycles)

    def close(self) -> None:
        self.writer.close()
        for ch in self.channels:
            ch.close()


def build_runtime(
    settings: Settings,
    serial_factory: Callable[..., serial.Serial] = serial.Serial,
) -> Runtime:
    """Open every configured port once. Raises ``StartupFatal`` if none is usable."""
    if not settings.port_paths:
        raise StartupFatal("No serial ports configured")

    channels: List[Channel] = []
    for path in settings.port_paths:
        mode = settings.mode_for(path)
        channels.append(open_channel(
            path,
            settings.baud_rate,
            settings.read_timeout,
            mode,
            command=settings.mode_command(mode),
            settle_delay=settings.settle_delay,
            serial_factory=serial_factory,
        ))

    poller = Poller(channels, settings.distance_bounds, settings.frequency_tracking)
    if poller.open_count == 0:
        raise StartupFatal("No serial ports available")

    worst = poller.open_count * settings.read_timeout
    log.info("Ports open: %d of %d, worst-case cycle %.3fs",
             poller.open_count, len(channels), worst)
    if worst > settings.sampling_interval:
        log.warning("Worst-case cycle (%.3fs) exceeds sampling interval (%.3fs)",
                    worst, settings.sampling_interval)

    policy = RotationPolicy(settings.rotation, settings.bucket_minutes)
    writer = JsonLinesWriter(settings.data_dir, policy)
    scheduler = Scheduler(poller, writer, settings.sampling_interval)
    return Runtime(settings, channels, poller, writer, scheduler)


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="rangelog", description="Poll serial rangefinders into JSON logs")
    p.add_argument("--config", help="JSON settings file (default: $RANGELOG_CONFIG)")
    p.add_argument("--serve", action="store_true", help="run the status API alongside the loop")
    p.add_argument("--max-cycles", type=int, default=None, help="stop after N cycles")
    p.add_argument("--log-level", default="INFO", type=str.upper,
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    p.add_argument("--no-log-files", action="store_true")
    return p.parse_args(argv)


async def _run_headless(runtime: Runtime, max_cycles: Optional[int]) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, runtime.stop.set)
        except NotImplementedError:
            pass    # Windows
    try:
        await runtime.run(max_cycles)
    finally:
        runtime.close()


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, log_to_file=not args.no_log_files)

    try:
        settings = load_settings(args.config) if args.config else get_settings()
        runtime = build_runtime(settings)
    except (ConfigError, StartupFatal) as e:
        log.error("%s", e)
        return 1

    if args.serve:
        import uvicorn
        from .api import create_app

        uvicorn.run(create_app(runtime, max_cycles=args.max_cycles),
                    host=settings.api_host, port=settings.api_port)
        return 0

    try:
        asyncio.run(_run_headless(runtime, args.max_cycles))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
