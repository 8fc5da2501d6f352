"""Pure parts of the HDUS tuner driver.

This module covers the tuning frequency table, the signal level formulas
and the payload descrambling that the host applies to the bulk stream.
"""

from __future__ import annotations

import enum
import logging
import math
from typing import Union

from .descramble import TS_PACKET_SIZE, packet_decrypt
from .errors import TraceableError
from .settings import BandType

__all__ = [
    "XOR_TABLE",
    "SYNC_BYTE",
    "DecryptMode",
    "HdusStreamDecoder",
    "channel_frequency",
    "signal_level",
    "carrier_to_noise",
]

_log = logging.getLogger(__name__)

SYNC_BYTE = 0x47
_HEADER_SIZE = 4
_SIGNAL_REFERENCE = 5505024.0

# Applied to payload bytes 4..187 of every packet in XOR mode.
XOR_TABLE = bytes((
    0x6D, 0x4E, 0xF0, 0x1E, 0x59, 0x8B, 0xB2, 0xF0, 0x31, 0xF9, 0xD0, 0x85, 0xDD, 0x84, 0x4A, 0x6C,
    0x15, 0x1C, 0x1C, 0x0A, 0x5B, 0x61, 0x6F, 0x1A, 0xAD, 0x60, 0x46, 0xF2, 0xD5, 0x03, 0x91, 0xC7,
    0xB7, 0xDE, 0x68, 0x9A, 0x07, 0x47, 0x62, 0x5E, 0x39, 0xD6, 0x7E, 0x45, 0x10, 0x9D, 0x1A, 0xC4,
    0x4C, 0x7F, 0xB7, 0x03, 0xCC, 0xAD, 0x72, 0x6C, 0xE9, 0x1B, 0x85, 0xA8, 0xEE, 0x4B, 0xA9, 0x3A,
    0xFF, 0xF1, 0x3B, 0x16, 0xE0, 0x59, 0x4C, 0x3A, 0xD5, 0x4A, 0x14, 0x95, 0x0A, 0xD4, 0x25, 0x23,
    0xF6, 0x2F, 0xE3, 0x57, 0x35, 0xCE, 0x52, 0x84, 0x11, 0xA3, 0xCB, 0x34, 0xA7, 0x15, 0x60, 0xE1,
    0x98, 0x71, 0xF4, 0x1F, 0xF7, 0xBD, 0x22, 0x4B, 0x61, 0x8A, 0xD6, 0xAF, 0x24, 0x27, 0xC3, 0xA7,
    0x07, 0x9B, 0xA5, 0x57, 0x83, 0x80, 0x58, 0x07, 0x1D, 0xDE, 0x0A, 0xD8, 0xB9, 0x0A, 0xBE, 0xAC,
    0xA9, 0x76, 0x00, 0x1C, 0x23, 0x9F, 0x82, 0x79, 0x41, 0x56, 0xC8, 0x83, 0xC3, 0x38, 0x37, 0x4B,
    0x5A, 0xED, 0xC9, 0xD5, 0xF2, 0x87, 0x02, 0xC3, 0x79, 0xA0, 0x61, 0xD9, 0x63, 0x50, 0xCA, 0x72,
    0xC2, 0x51, 0x40, 0x98, 0xD9, 0x8B, 0xED, 0xA9, 0xA1, 0x4C, 0xA5, 0xE7, 0xAF, 0xF2, 0x08, 0x4D,
    0x82, 0xF8, 0xD5, 0x02, 0x61, 0xD8, 0xC2, 0xE1,
))


class DecryptMode(enum.IntEnum):
    """Payload scrambling used by the tuner; values are the chip's mode register."""

    XOR = 0x91
    DES = 0x80


def channel_frequency(band: Union[BandType, int], channel: int) -> int:
    """Centre frequency in MHz of a UHF (13-62) or CATV (13-63) channel."""
    band = BandType(band)
    if band is BandType.UHF and 13 <= channel <= 62:
        return 473 + (channel - 13) * 6
    if band is BandType.CATV and 13 <= channel <= 63:
        if channel <= 22:
            return 111 + (channel - 13) * 6
        if channel == 23:
            return 225
        if channel <= 27:
            return 233 + (channel - 24) * 6
        return 225 + (channel - 23) * 6
    raise TraceableError("unknown channel.")


def _check_raw(raw_value: int) -> None:
    if raw_value < 0:
        raise ValueError("raw signal value must not be negative")


def signal_level(raw_value: int) -> float:
    """Signal level in dB from the 24-bit value read from the demodulator.

    A raw value of zero gives 0.0.
    """
    _check_raw(raw_value)
    if raw_value == 0:
        return 0.0
    level = 20.0 * math.log10(_SIGNAL_REFERENCE / raw_value)
    return 0.0 if math.isinf(level) else level


def carrier_to_noise(raw_value: int) -> float:
    """Estimated carrier-to-noise ratio from the same raw demodulator value."""
    _check_raw(raw_value)
    if raw_value == 0:
        raise ValueError("carrier-to-noise ratio is undefined for a zero reading")
    p = 10.0 * math.log10(_SIGNAL_REFERENCE / raw_value)
    return (
        0.000024 * p ** 4
        - 0.0016 * p ** 3
        + 0.0398 * p ** 2
        + 0.5491 * p
        + 3.0965
    )


class HdusStreamDecoder:
    """Aligns the bulk stream on sync bytes and descrambles whole packets.

    Bytes before a sync byte are passed through unchanged.  An incomplete
    packet at the end of a chunk is kept until the next call to :meth:`feed`.
    """

    def __init__(self, mode: Union[DecryptMode, int] = DecryptMode.XOR) -> None:
        self.mode = DecryptMode(mode)
        self._pending = bytearray()

    def reset(self) -> None:
        """Discard any partial packet held from earlier input."""
        self._pending.clear()

    def _descramble(self, packet: bytearray) -> bytes:
        if self.mode is DecryptMode.XOR:
            payload = bytes(b ^ x for b, x in zip(packet[_HEADER_SIZE:], XOR_TABLE))
            return bytes(packet[:_HEADER_SIZE]) + payload
        return packet_decrypt(packet)

    def feed(self, data: Union[bytes, bytearray, memoryview]) -> bytes:
        """Process a chunk and return everything up to the last complete packet."""
        if not len(data):
            return b""
        buffer = self._pending + bytes(data)
        self._pending = bytearray()
        out = bytearray()
        pos = 0
        size = len(buffer)
        while True:
            start = pos
            found = buffer.find(SYNC_BYTE, pos)
            pos = size if found < 0 else found
            if pos != start:
                _log.info("sync %d bytes", pos - start)
                out += buffer[start:pos]
            if size - pos < TS_PACKET_SIZE:
                self._pending = buffer[pos:]
                break
            out += self._descramble(buffer[pos:pos + TS_PACKET_SIZE])
            pos += TS_PACKET_SIZE
        return bytes(out)