"""Descrambling of the DES-like payload cipher used by some tuners.

Each 188-byte TS packet keeps its 4-byte header.  The 184-byte payload is
first XORed with a fixed 8-byte pattern.  It is then decrypted in 8-byte
blocks: the first 16 blocks use one key schedule and the remaining 7 blocks
use another.
"""

from __future__ import annotations

import struct
from collections.abc import Sequence
from itertools import cycle

__all__ = [
    "TS_PACKET_SIZE",
    "BLOCK_SIZE",
    "KEY_SCHEDULES",
    "XOR_PATTERN",
    "block_decrypt",
    "packet_decrypt",
]

TS_PACKET_SIZE = 188
BLOCK_SIZE = 8
_HEADER_SIZE = 4
_FIRST_KEY_BYTES = 0x80  # 16 blocks with the first schedule, 7 with the second

_MASK32 = 0xFFFFFFFF


def _words(hex_text: str) -> tuple[int, ...]:
    """Unpack a hex string into big-endian 32-bit words."""
    return tuple(word for (word,) in struct.iter_unpack(">I", bytes.fromhex(hex_text)))


# Combined substitution/permutation tables, 64 words each.
_SBOXES: tuple[tuple[int, ...], ...] = tuple(
    _words(text)
    for text in (
        "0101040000000000000100000101040401010004000104040000000400010000"
        "0000040001010400010104040000040001000404010100040100000000000004"
        "0000040401000400010004000001040000010400010100000101000001000404"
        "0001000401000004010000040001000400000000000004040001040401000000"
        "0001000001010404000000040101000001010400010000000100000000000400"
        "0101000400010000000104000100000400000400000000040100040400010404"
        "0101040400010004010100000100040401000004000004040001040401010400"
        "0000040401000400010004000000000000010004000104000000000001010004",
        "8010802080008000000080000010802000100000000000208010002080008020"
        "8000002080108020801080008000000080008000001000000000002080100020"
        "0010800000100020800080200000000080000000000080000010802080100000"
        "0010002080000020000000000010800000008020801080008010000000008020"
        "0000000000108020801000200010000080008020801000008010800000008000"
        "8010000080008000000000208010802000108020000000200000800080000000"
        "0000802080108000001000008000002000100020800080208000002000100020"
        "0010800000000000800080000000802080000000801000208010802000108000",
        "0000020808020200000000000802000808000200000000000002020808000200"
        "0002000808000008080000080002000008020208000200080802000000000208"
        "0800000000000008080202000000020000020200080200000802000800020208"
        "0800020800020200000200000800020800000008080202080000020008000000"
        "0802020008000000000200080000020800020000080202000800020000000000"
        "0000020000020008080202080800020008000008000002000000000008020008"
        "0800020800020000080000000802020800000008000202080002020008000008"
        "0802000008000208000002080802000000020208000000080802000800020200",
        "0080200100002081000020810000008000802080008000810080000100002001"
        "0000000000802000008020000080208100000081000000000080008000800001"
        "0000000100002000008000000080200100000080008000000000200100002080"
        "0080008100000001000020800080008000002000008020800080208100000081"
        "0080008000800001008020000080208100000081000000000000000000802000"
        "0000208000800080008000810000000100802001000020810000208100000080"
        "0080208100000081000000010000200000800001000020010080208000800081"
        "0000200100002080008000000080200100000080008000000000200000802080",
        "0000010002080100020800004200010000080000000001004000000002080000"
        "4008010000080000020001004008010042000100420800000008010040000000"
        "0200000040080000400800000000000040000100420801004208010002000100"
        "4208000040000100000000004200000002080100020000004200000000080100"
        "0008000042000100000001000200000040000000020800004200010040080100"
        "0200010040000000420800000208010040080100000001000200000042080000"
        "4208010000080100420000004208010002080000000000004008000042000000"
        "0008010002000100400001000008000000000000400800000208010040000100",
        "2000001020400000000040002040401020400000000000102040401000400000"
        "2000400000404010004000002000001000400010200040002000000000004010"
        "0000000000400010200040100000400000404000200040100000001020400010"
        "2040001000000000004040102040400000004010004040002040400020000000"
        "2000400000000010204000100040400020404010004000000000401020000010"
        "0040000020004000200000000000401020000010204040100040400020400000"
        "0040401020404000000000002040001000000010000040002040000000404010"
        "0000400000400010200040100000000020404000200000000040001020004010",
        "0020000004200002040008020000000000000800040008020020080204200800"
        "0420080200200000000000000400000200000002040000000420000200000802"
        "0400080000200802002000020400080004000002042000000420080000200002"
        "0420000000000800000008020420080200200800000000020400000000200800"
        "0400000000200800002000000400080204000802042000020420000200000002"
        "0020000204000000040008000020000004200800000008020020080204200800"
        "0000080204000002042008020420000000200800000000000000000204200802"
        "0000000000200802042000000000080004000002040008000000080000200002",
        "1000104000001000000400001004104010000000100010400000004010000000"
        "0004004010040000100410400004100010041000000410400000100000000040"
        "1004000010000040100010000000104000041000000400401004004010041000"
        "0000104000000000000000001004004010000040100010000004104000040000"
        "0004104000040000100410000000100000000040100400400000100000041040"
        "1000100000000040100000401004000010040040100000000004000010001040"
        "0000000010041040000400401000004010040000100010001000104000000000"
        "1004104000041000000410000000104000001040000400401000000010041000",
    )
)

# Key schedules for the case where the chip's key registers are all zero.
KEY_SCHEDULES: tuple[tuple[int, ...], tuple[int, ...]] = (
    _words(
        "021219033d1312360c0c270a20393131032c082b3e011f00212a0702063a1c1f"
        "3a042a0c270a2b0c303d22033122341510313c0107140d0a261d06170c06260f"
        "33183332011d04020719151d27280c2c203022382a2f362a352a112529003038"
        "083f0d380b0924062916350c3204122d2c2424391d18331007360b38102c0b0d"
    ),
    _words(
        "042900000e151b283015150111080025001920382914030206320107 0e041030".replace(" ", "")
        + "2c02082808230802190613041901100509 1b2018101801000a001003361c1424".replace(" ", "")
        + "0927260201002001081c1001140c0b00040406123612041232200804 0c130a28".replace(" ", "")
        + "1303022005222411181519 00002e01081409041a300424013910283003220000".replace(" ", "")
    ),
)

XOR_PATTERN = bytes((0x00, 0x00, 0xB1, 0xF2, 0x00, 0x04, 0xF2, 0x04))

_BLOCK = struct.Struct(">II")


def _ror(value: int, shift: int) -> int:
    return ((value >> shift) | (value << (32 - shift))) & _MASK32


def _rol(value: int, shift: int) -> int:
    return ((value << shift) | (value >> (32 - shift))) & _MASK32


def _swap_bits(a: int, b: int, shift: int, mask: int) -> tuple[int, int]:
    tmp = ((a >> shift) ^ b) & mask
    return a ^ ((tmp << shift) & _MASK32), b ^ tmp


def _swap_odd(a: int, b: int) -> tuple[int, int]:
    tmp = (a ^ b) & 0xAAAAAAAA
    return a ^ tmp, b ^ tmp


def _f_even(ind: int) -> int:
    s = _SBOXES
    return (
        s[5][(ind >> 8) & 0x3F]
        ^ s[3][(ind >> 16) & 0x3F]
        ^ s[1][(ind >> 24) & 0x3F]
        ^ s[7][ind & 0x3F]
    )


def _f_odd(ind: int) -> int:
    s = _SBOXES
    return (
        s[4][(ind >> 8) & 0x3F]
        ^ s[2][(ind >> 16) & 0x3F]
        ^ s[0][(ind >> 24) & 0x3F]
        ^ s[6][ind & 0x3F]
    )


def _decrypt_words(key: Sequence[int], v0: int, v1: int) -> tuple[int, int]:
    v0, v1 = _swap_bits(v0, v1, 4, 0x0F0F0F0F)
    v0, v1 = _swap_bits(v0, v1, 16, 0x0000FFFF)
    v1, v0 = _swap_bits(v1, v0, 2, 0x33333333)
    v1, v0 = _swap_bits(v1, v0, 8, 0x00FF00FF)
    v1 = _rol(v1, 1)
    v0, v1 = _swap_odd(v0, v1)
    v0 = _rol(v0, 1)

    for k0, k1, k2, k3 in zip(*[iter(key)] * 4):
        v0 ^= _f_even(v1 ^ k0)
        v0 ^= _f_odd(_ror(v1, 4) ^ k1)
        v1 ^= _f_even(v0 ^ k2)
        v1 ^= _f_odd(_ror(v0, 4) ^ k3)

    v1 = _ror(v1, 1)
    v1, v0 = _swap_odd(v1, v0)
    v0 = _ror(v0, 1)
    v0, v1 = _swap_bits(v0, v1, 8, 0x00FF00FF)
    v0, v1 = _swap_bits(v0, v1, 2, 0x33333333)
    v1, v0 = _swap_bits(v1, v0, 16, 0x0000FFFF)
    v1, v0 = _swap_bits(v1, v0, 4, 0x0F0F0F0F)
    return v1, v0


def block_decrypt(key: Sequence[int], data: bytes | bytearray | memoryview) -> bytes:
    """Decrypt ``data`` (a whole number of 8-byte blocks) with a 32-word key schedule."""
    key = tuple(key)
    if len(key) != 32:
        raise ValueError("key schedule must hold 32 words")
    if any(not 0 <= word <= _MASK32 for word in key):
        raise ValueError("key words must be 32-bit unsigned values")
    view = memoryview(data).cast("B")
    if len(view) % BLOCK_SIZE:
        raise ValueError("data length must be a multiple of 8")
    return b"".join(
        _BLOCK.pack(*_decrypt_words(key, v0, v1)) for v0, v1 in _BLOCK.iter_unpack(view)
    )


def packet_decrypt(data: bytes | bytearray | memoryview) -> bytes:
    """Descramble one or more consecutive 188-byte TS packets."""
    view = memoryview(data).cast("B")
    if len(view) % TS_PACKET_SIZE:
        raise ValueError("data length must be a multiple of 188")
    out = bytearray()
    for start in range(0, len(view), TS_PACKET_SIZE):
        packet = view[start:start + TS_PACKET_SIZE]
        payload = bytes(
            b ^ x for b, x in zip(packet[_HEADER_SIZE:], cycle(XOR_PATTERN))
        )
        out += packet[:_HEADER_SIZE]
        out += block_decrypt(KEY_SCHEDULES[0], payload[:_FIRST_KEY_BYTES])
        out += block_decrypt(KEY_SCHEDULES[1], payload[_FIRST_KEY_BYTES:])
    return bytes(out)