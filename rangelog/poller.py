import logging
import time
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from .enums import ChannelState, Mode, Outcome
from .errors import ReadIoError
from .logging_config import log_hex_data
from .models import ChannelStatus, CycleRecord, DecodedReading, PortReading
from .serialio.channel import Channel, OpenChannel
from .serialio.decoder import decode

log = logging.getLogger("rangelog.poller")


def format_timestamp(now: datetime) -> str:
    """``YYYY-MM-DD HH:MM:SS.mmm`` (local time, milliseconds)."""
    return now.strftime("%Y-%m-%d %H:%M:%S.") + f"{now.microsecond // 1000:03d}"


# ────────── Poller ──────────────────────────────────────────────
class Poller:
    """
    • Один цикл = одно чтение с каждого порта, в порядке конфигурации
    • Merges every port's outcome into one ``CycleRecord``
    • Keeps per-port counters in ``self.statuses``

    A failure on one port never leaks into another port's slot.
    """

    def __init__(
        self,
        channels: Sequence[Channel],
        bounds: Tuple[int, int],
        frequency_tracking: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.channels = list(channels)
        self.min_mm, self.max_mm = bounds
        self.frequency_tracking = frequency_tracking
        self._clock = clock
        self.statuses: List[ChannelStatus] = [
            ChannelStatus(index=i, path=ch.path, mode=ch.mode, state=ch.state)
            for i, ch in enumerate(self.channels)
        ]
        self.cycles = 0

    # ───── публичные методы ────────────────────────────────────
    def poll_cycle(self, now: Optional[datetime] = None) -> CycleRecord:
        now = now or datetime.now()
        sensors = {}
        for channel, status in zip(self.channels, self.statuses):
            sensors[channel.path] = self._poll_one(channel, status)
        self.cycles += 1
        return CycleRecord(timestamp=format_timestamp(now), sensors=sensors)

    @property
    def open_count(self) -> int:
        return sum(1 for ch in self.channels if ch.state is ChannelState.OPEN)

    # ───── опрос одного порта ──────────────────────────────────
    def _poll_one(self, channel: Channel, status: ChannelStatus) -> PortReading:
        if not isinstance(channel, OpenChannel):
            status.record(DecodedReading.rejected(Outcome.UNAVAILABLE))
            return PortReading.from_mm(0)

        try:
            raw = channel.read_frame()
        except ReadIoError as e:
            log.error("Error reading from %s: %s", channel.path, e.cause)
            reading = DecodedReading.rejected(Outcome.IO_ERROR, str(e.cause))
            status.record(reading)
            return self._reading(0, 0.0)

        reading = decode(channel.mode, raw, self.min_mm, self.max_mm)
        frequency = 0.0

        if reading.outcome is Outcome.OK:
            frequency = channel.mark_accepted(self._clock())
            log.debug("%s: %d mm (%.2f Hz)", channel.path, reading.distance_mm, frequency)
        elif reading.outcome is Outcome.TIMEOUT:
            log.debug("No data from %s", channel.path)
        else:
            log.warning("Rejected reading from %s: %s", channel.path, reading.detail)
            if channel.mode is Mode.BINARY:
                log_hex_data(log, logging.DEBUG, f"Rejected frame from {channel.path}", raw)

        status.record(reading, frequency)
        return self._reading(reading.distance_mm, frequency)

    def _reading(self, distance_mm: int, frequency: float) -> PortReading:
        return PortReading.from_mm(distance_mm, frequency if self.frequency_tracking else None)
