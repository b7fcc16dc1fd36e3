from enum import Enum


class Mode(str, Enum):
    BINARY = "binary"      # 4-byte frames, header 0x54
    TEXT   = "text"        # newline-terminated decimal mm


class Outcome(str, Enum):
    OK           = "ok"
    TIMEOUT      = "timeout"        # no bytes this cycle
    MALFORMED    = "malformed"      # bad header / short frame / unparsable line
    OUT_OF_RANGE = "out_of_range"   # decoded, but outside distance bounds
    IO_ERROR     = "io_error"       # read failed for a reason other than timeout
    UNAVAILABLE  = "unavailable"    # port never opened


class Rotation(str, Enum):
    DAILY    = "daily"      # sensor_data_<YYYY-MM-DD>.json
    BUCKETED = "bucketed"   # sensor_data_<YYYY-MM-DD>_<HH>-<MM>.json


class ChannelState(str, Enum):
    OPEN        = "open"
    UNAVAILABLE = "unavailable"


BINARY_HEADER = 0x54
BINARY_FRAME_LEN = 4

# Mode-select commands, sent once right after the port is opened
MODE_COMMANDS = {
    Mode.BINARY: bytes([0x54, 0x01, 0x00, 0x55]),
    Mode.TEXT:   bytes([0x54, 0x02, 0x00, 0x56]),
}
