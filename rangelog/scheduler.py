import asyncio
import logging
import time
from datetime import datetime
from typing import Optional

from .poller import Poller
from .writer import JsonLinesWriter

log = logging.getLogger("rangelog.scheduler")


class Scheduler:
    """
    Fixed-cadence loop: poll all ports, append the record, sleep to the next tick.
    Serial reads and the file append run in the default executor; ``stop`` is checked every tick.
    """

    def __init__(self, poller: Poller, writer: JsonLinesWriter, interval: float):
        self.poller = poller
        self.writer = writer
        self.interval = interval

    def tick(self, now: datetime) -> bool:
        """One cycle: poll every port, append the record. Runs in the executor."""
        record = self.poller.poll_cycle(now)
        return self.writer.append(record, now)

    async def run(self, stop: Optional[asyncio.Event] = None, max_cycles: Optional[int] = None) -> int:
        stop = stop or asyncio.Event()
        loop = asyncio.get_running_loop()
        done = 0
        next_tick = time.monotonic()

        log.info("Poll loop started: %d ports, interval=%.3fs", len(self.poller.channels), self.interval)
        while not stop.is_set():
            if max_cycles is not None and done >= max_cycles:
                break

            await loop.run_in_executor(None, self.tick, datetime.now())
            done += 1

            next_tick += self.interval
            delay = next_tick - time.monotonic()
            if delay <= 0:
                log.debug("Cycle overran by %.1f ms", -delay * 1000)
                next_tick = time.monotonic()
                await asyncio.sleep(0)
                continue
            try:
                await asyncio.wait_for(stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        log.info("Poll loop stopped after %d cycles", done)
        return done
