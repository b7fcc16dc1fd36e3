"""
decoder.py – разбор кадров дальномера.

* binary: ``54 xx HI LO`` – HI:LO big-endian, десятые доли мм
* text:   ``"1234\\n"`` – мм, одна строка на измерение

Decoders are pure: no I/O, no logging, same bytes in → same reading out.
Byte 1 of a binary frame is not checked by the sensor firmware contract
we rely on, so it is ignored here as well.
"""

from ..enums import BINARY_FRAME_LEN, BINARY_HEADER, Mode, Outcome
from ..models import DecodedReading

_TIMEOUT = DecodedReading.rejected(Outcome.TIMEOUT)


def bytes_to_decimal(hi: int, lo: int) -> int:
    return (hi << 8) | lo


def _in_bounds(value: int, min_mm: int, max_mm: int) -> DecodedReading:
    if min_mm <= value <= max_mm:
        return DecodedReading.accepted(value)
    return DecodedReading.rejected(
        Outcome.OUT_OF_RANGE, f"{value} mm outside [{min_mm}, {max_mm}]"
    )


def decode_binary(frame: bytes, min_mm: int, max_mm: int) -> DecodedReading:
    if not frame:
        return _TIMEOUT
    if len(frame) != BINARY_FRAME_LEN:
        return DecodedReading.rejected(
            Outcome.MALFORMED, f"frame length {len(frame)}, expected {BINARY_FRAME_LEN}"
        )
    if frame[0] != BINARY_HEADER:
        return DecodedReading.rejected(
            Outcome.MALFORMED, f"bad header 0x{frame[0]:02X}"
        )
    distance_mm = bytes_to_decimal(frame[2], frame[3]) // 10
    return _in_bounds(distance_mm, min_mm, max_mm)


def decode_text(line: bytes, min_mm: int, max_mm: int) -> DecodedReading:
    if not line:
        return _TIMEOUT
    if not line.endswith(b"\n"):
        return DecodedReading.rejected(Outcome.MALFORMED, f"incomplete line {line!r}")

    text = line.decode("ascii", errors="replace").strip()
    # str.isdigit() also accepts things like '²'
    if not text or not all("0" <= ch <= "9" for ch in text):
        return DecodedReading.rejected(Outcome.MALFORMED, f"not a number: {text!r}")
    return _in_bounds(int(text), min_mm, max_mm)


def decode(mode: Mode, raw: bytes, min_mm: int, max_mm: int) -> DecodedReading:
    if mode is Mode.TEXT:
        return decode_text(raw, min_mm, max_mm)
    return decode_binary(raw, min_mm, max_mm)
