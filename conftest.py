"""Shared fixtures: a scripted stand-in for ``serial.Serial``."""

import pytest
import serial

from rangelog.config import Settings


class FakeSerial:
    """
    Replays ``script`` one item per read()/readline().
    An item may be bytes or an exception instance (raised).
    An exhausted script behaves like a timeout (b"").
    """

    def __init__(self, script=(), fail_write=False, **kwargs):
        self.kwargs = kwargs
        self.script = list(script)
        self.fail_write = fail_write
        self.written = bytearray()
        self.reset_in = 0
        self.reset_out = 0
        self.closed = False
        self.reads = 0
        self.in_waiting = 0

    def _next(self):
        self.reads += 1
        if not self.script:
            return b""
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def read(self, size=1):
        return self._next()

    def readline(self):
        return self._next()

    def write(self, data):
        if self.fail_write:
            raise serial.SerialTimeoutException("Write timeout")
        self.written += data
        return len(data)

    def flush(self):
        pass

    def reset_input_buffer(self):
        self.reset_in += 1

    def reset_output_buffer(self):
        self.reset_out += 1

    def close(self):
        self.closed = True


class FakePorts:
    """``serial_factory`` replacement: known paths get a FakeSerial, the rest fail to open."""

    def __init__(self, scripts):
        self.scripts = scripts
        self.opened = {}

    def __call__(self, port, **kwargs):
        if port not in self.scripts:
            raise serial.SerialException(f"could not open port {port}: [Errno 2] No such file or directory")
        ser = FakeSerial(self.scripts[port], port=port, **kwargs)
        self.opened[port] = ser
        return ser


def frame(tenths_mm, header=0x54, checksum=0x00):
    return bytes([header, checksum, (tenths_mm >> 8) & 0xFF, tenths_mm & 0xFF])


@pytest.fixture
def settings(tmp_path):
    return Settings(
        port_paths=["/dev/ttyACM0", "/dev/ttyACM1", "/dev/ttyACM2"],
        min_distance_mm=500,
        max_distance_mm=6000,
        settle_delay=0,
        read_timeout=0.001,
        sampling_interval=0,
        data_dir=tmp_path,
    )
