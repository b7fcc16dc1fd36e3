"""
channel.py – один последовательный порт дальномера.

A configured port is either an ``OpenChannel`` (owns a ``serial.Serial``)
or an ``UnavailableChannel`` (open failed at startup, stays that way).
Only ``OpenChannel`` can be read.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Union

import serial

from ..enums import BINARY_FRAME_LEN, ChannelState, Mode
from ..errors import ReadIoError
from ..logging_config import get_logger, log_hex_data

_log = get_logger("rangelog.serialio.channel")


class UnavailableChannel:
    state = ChannelState.UNAVAILABLE

    def __init__(self, path: str, mode: Mode, reason: str):
        self.path = path
        self.mode = mode
        self.reason = reason

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"UnavailableChannel({self.path!r}, reason={self.reason!r})"


class OpenChannel:
    state = ChannelState.OPEN

    def __init__(self, path: str, mode: Mode, ser: serial.Serial):
        self.path = path
        self.mode = mode
        self._ser = ser
        self.last_read_instant: Optional[float] = None

    def send_mode_command(self, command: bytes, settle_delay: float) -> bool:
        """
        Flush both directions, send the 4-byte mode-select, wait ``settle_delay``.
        No ack is expected. A failed write is logged, the channel stays open.
        """
        try:
            self._ser.reset_input_buffer()
            self._ser.reset_output_buffer()
            log_hex_data(_log, logging.DEBUG, f"Mode select {self.mode.value} -> {self.path}", command)
            self._ser.write(command)
            self._ser.flush()
        except (serial.SerialException, OSError) as e:
            _log.warning("Failed to send mode command to %s: %s", self.path, e)
            return False
        if settle_delay:
            time.sleep(settle_delay)
        return True

    def read_frame(self) -> bytes:
        """
        One raw unit for the channel's mode: one line (text) or the newest
        complete 4-byte frame (binary). Binary mode drains every whole frame
        waiting in the input buffer so a streaming sensor never builds a backlog.
        ``b""`` means the read timed out with nothing received.
        """
        try:
            if self.mode is Mode.TEXT:
                raw = self._ser.readline()
            else:
                waiting = self._ser.in_waiting
                size = max(BINARY_FRAME_LEN, waiting - waiting % BINARY_FRAME_LEN)
                raw = self._ser.read(size)
        except (serial.SerialException, OSError) as e:
            raise ReadIoError(self.path, e) from e
        if raw:
            log_hex_data(_log, logging.DEBUG, f"RX {self.path}", raw, 32)
        if self.mode is Mode.BINARY and len(raw) > BINARY_FRAME_LEN:
            end = len(raw) - len(raw) % BINARY_FRAME_LEN
            raw = raw[end - BINARY_FRAME_LEN:end]
        return raw

    def mark_accepted(self, now: float) -> float:
        """
        Record an accepted reading at monotonic time ``now``.
        Returns the sampling frequency against the previous accepted one (0.0 if none).
        """
        last, self.last_read_instant = self.last_read_instant, now
        if last is None or now <= last:
            return 0.0
        return 1.0 / (now - last)

    def close(self) -> None:
        try:
            self._ser.close()
        except (serial.SerialException, OSError) as e:
            _log.warning("Error closing %s: %s", self.path, e)

    def __repr__(self) -> str:
        return f"OpenChannel({self.path!r}, mode={self.mode.value})"


Channel = Union[OpenChannel, UnavailableChannel]


def open_channel(
    path: str,
    baud: int,
    timeout: float,
    mode: Mode,
    command: Optional[bytes] = None,
    settle_delay: float = 0.0,
    serial_factory: Callable[..., serial.Serial] = serial.Serial,
) -> Channel:
    """Open ``path`` as 8N1 without flow control. Never raises."""
    try:
        ser = serial_factory(
            port=path,
            baudrate=baud,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            timeout=timeout,
            xonxoff=False,
            rtscts=False,
        )
    except (serial.SerialException, OSError, ValueError) as e:
        _log.error("Failed to open %s: %s", path, e)
        return UnavailableChannel(path, mode, str(e))

    _log.info("Serial open %s @ %d bps, mode=%s, timeout=%.3fs", path, baud, mode.value, timeout)
    channel = OpenChannel(path, mode, ser)
    if command:
        channel.send_mode_command(command, settle_delay)
    return channel
