"""Service selection for MPEG transport streams.

A :class:`Splitter` keeps only the packets that belong to the chosen
services.  It first reads the PAT and the PMTs of those services to learn
which PIDs to keep; see :meth:`Splitter.select`.  It then filters the
stream, rewriting the PAT so that it lists only the chosen services; see
:meth:`Splitter.split`.

Services are given as a comma-separated list.  Each entry is a numeric
service id or one of the keywords ``hd``/``sd1``, ``sd2``, ``sd3`` (first,
second or third service), ``1seg`` (the service whose PMT is on PID
0x1FC8), ``all`` or ``epg`` (only the PIDs that carry programme guide
data).
"""

from __future__ import annotations

import enum
import re
import sys
from dataclasses import dataclass
from typing import Optional, Union

__all__ = [
    "LENGTH_PACKET",
    "MAX_PID",
    "MAX_SERVICES",
    "SplitterError",
    "PmtVersion",
    "Splitter",
    "parse_sid_list",
    "crc32_mpeg",
    "get_pid",
]

LENGTH_PACKET = 188
MAX_PID = 8192
MAX_SERVICES = 50
LENGTH_CRC_DATA = 176
LENGTH_PAT_HEADER = 12

_NIT_PID = 0x0010
_ONESEG_PMT_PID = 0x1FC8
_EPG_PIDS = (0x11, 0x12, 0x23, 0x29)
_STREAM_TYPE_D = 0x0D
_CA_DESCRIPTOR_TAG = 0x09

_ATOI = re.compile(r"\s*([+-]?\d+)")

Buffer = Union[bytes, bytearray]


class SplitterError(RuntimeError):
    """The stream cannot be split as requested."""


@dataclass
class PmtVersion:
    """Last seen version of a kept PMT."""

    pid: int
    version: int = 0
    packet: int = 0


class _PmtResult(enum.Enum):
    SUCCESS = enum.auto()
    ERROR = enum.auto()
    CONTINUE = enum.auto()


def parse_sid_list(sid: str) -> list[str]:
    """Split a comma-separated service list; a trailing empty entry is dropped."""
    if not sid:
        return []
    parts = sid.split(",")
    if len(parts) > 1 and parts[-1] == "":
        parts.pop()
    return parts


def crc32_mpeg(data: Buffer) -> int:
    """CRC-32/MPEG-2 of ``data`` as used by PSI sections."""
    crc = 0xFFFFFFFF
    for byte in data:
        for shift in range(7, -1, -1):
            top = crc >> 31
            crc = (crc << 1) & 0xFFFFFFFF
            if top ^ ((byte >> shift) & 1):
                crc ^= 0x04C11DB7
    return crc


def get_pid(data: Buffer) -> int:
    """The 13-bit PID held in the first two bytes of ``data``."""
    return ((data[0] & 0x1F) << 8) + data[1]


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


class Splitter:
    """Keeps the packets of the services named in ``sid``."""

    def __init__(self, sid: str) -> None:
        self.sid_list = parse_sid_list(sid)
        self.pids = bytearray(MAX_PID)
        self.pmt_pids = bytearray(MAX_PID)
        self.pat: Optional[bytearray] = None
        self.pat_count = 0xFF
        self.pmt_retain = -1
        self.pmt_counter = 0
        self.avail_sids: list[int] = []
        self.avail_pmts: list[int] = []
        self.pmt_version: list[PmtVersion] = []
        self.chosen_sids: list[int] = []
        self.section_remain = [0] * MAX_PID
        self.packet_seq = bytearray(MAX_PID)

    @property
    def num_pmts(self) -> int:
        """Number of services listed in the PAT (NIT excluded)."""
        return len(self.avail_pmts)

    @property
    def settled(self) -> bool:
        """True once every kept PMT has been analysed."""
        return self.pmt_counter == self.pmt_retain

    def select(self, data: Buffer) -> bool:
        """Analyse PAT and PMTs; True once every PID to keep is known.

        The final packet of ``data`` is not examined.  When ``data`` is a
        bytearray, each PMT packet analysed here has its PID overwritten
        with the null PID so that it is not passed on twice.
        """
        length = len(data)
        index = 0
        while length - index - LENGTH_PACKET > 0:
            pid = get_pid(data[index + 1:index + 3])
            if pid == 0:
                self._analyze_pat(data, index)
            if self.pmt_pids[pid] == 1:
                if self._analyze_pmt(data, index, 1) is _PmtResult.SUCCESS:
                    self.pmt_pids[pid] += 1
                    self.pmt_counter += 1
                    if isinstance(data, bytearray):
                        data[index + 1] = 0xFF
                        data[index + 2] = 0xFF
            if self.pmt_counter == self.pmt_retain:
                return True
            index += LENGTH_PACKET
        return False

    def split(self, data: Buffer) -> bytes:
        """Return the packets of ``data`` that belong to the chosen services."""
        if len(data) % LENGTH_PACKET:
            raise ValueError("data length must be a multiple of 188")
        out = bytearray()
        version = 0
        for offset in range(0, len(data), LENGTH_PACKET):
            packet = data[offset:offset + LENGTH_PACKET]
            pid = get_pid(packet[1:3])
            if pid == 0:
                out += self._next_pat()
                continue
            if self.pmt_pids[pid]:
                if packet[1] & 0x40:
                    for entry in self.pmt_version:
                        if entry.pid == pid:
                            version = entry.version
                            break
                    if version != (packet[10] & 0x3E) or not self.settled:
                        self._rescan(data, offset)
                elif not self.settled:
                    self._rescan(data, offset)
            if self.pids[pid]:
                out += packet
        return bytes(out)

    def _next_pat(self) -> bytearray:
        if self.pat is None:
            raise SplitterError("no PAT has been analysed yet")
        if self.pat_count == 0xFF:
            self.pat_count = self.pat[3]
        else:
            self.pat_count = (self.pat_count + 1) & 0xFF
            if self.pat_count % 0x10 == 0:
                self.pat_count = (self.pat_count - 0x10) & 0xFF
        self.pat[3] = self.pat_count
        return self.pat

    def _analyze_pat(self, data: Buffer, o: int) -> None:
        if self.pat is not None:
            return
        try:
            positions = self._choose_services(data, o)
            self.pat = self._recreate_pat(data, o, positions)
        except IndexError:
            raise SplitterError("truncated PAT section") from None

    def _choose_services(self, data: Buffer, o: int) -> dict[int, int]:
        self.pmt_retain = 0
        self.pmt_version = []
        self.chosen_sids = []
        positions: dict[int, int] = {}

        size = data[o + 7]
        end = o + size + 8 - 4
        entries = []
        for i in range(o + 13, end, 4):
            pid = get_pid(data[i + 2:i + 4])
            if pid == _NIT_PID:
                continue
            entries.append((i, (data[i] << 8) + data[i + 1], pid))
        if len(entries) > MAX_SERVICES:
            raise SplitterError("too many services in PAT")
        self.avail_sids = [service_id for _, service_id, _ in entries]
        self.avail_pmts = [pid for _, _, pid in entries]

        def nth_sid(n: int) -> Optional[int]:
            return self.avail_sids[n] if n < len(self.avail_sids) else None

        def choose(i: int, service_id: int, pid: int) -> None:
            self.pmt_pids[pid] = 1
            self.pids[pid] = 1
            positions[pid] = i
            self.pmt_version.append(PmtVersion(pid))
            self.pmt_retain += 1
            self.chosen_sids.append(service_id)

        epg = False
        for i, service_id, pid in entries:
            for token in self.sid_list:
                name = token.lower()
                if service_id == _atoi(token):
                    choose(i, service_id, pid)
                elif name in ("hd", "sd1"):
                    if service_id == nth_sid(0):
                        choose(i, service_id, pid)
                elif name == "sd2":
                    if service_id == nth_sid(1):
                        choose(i, service_id, pid)
                elif name == "sd3":
                    if service_id == nth_sid(2):
                        choose(i, service_id, pid)
                elif name == "1seg":
                    if pid == _ONESEG_PMT_PID:
                        choose(i, service_id, pid)
                elif name == "all":
                    choose(i, service_id, pid)
                    break
                elif name == "epg":
                    epg = True
                    for epg_pid in _EPG_PIDS:
                        self.pids[epg_pid] = 1
                    break

        if self.sid_list and not (epg or self.chosen_sids):
            for i, service_id, pid in entries:
                choose(i, service_id, pid)

        print("Available sid = " + "".join(f"{s} " for s in self.avail_sids), file=sys.stderr)
        print("Chosen sid    =" + "".join(f" {s}" for s in self.chosen_sids), file=sys.stderr)
        print("Available PMT = " + "".join(f"0x{p:x} " for p in self.avail_pmts), file=sys.stderr)
        return positions

    @staticmethod
    def _recreate_pat(data: Buffer, o: int, positions: dict[int, int]) -> bytearray:
        selected = [positions[pid] for pid in sorted(positions)]
        length = LENGTH_PAT_HEADER + 4 * len(selected)
        if length > LENGTH_CRC_DATA:
            raise SplitterError("too many services to fit in one PAT")
        section = bytearray(data[o + 5:o + 13])
        if len(section) != LENGTH_PAT_HEADER - 4:
            raise IndexError("PAT header")
        section += bytes((0x00, 0x00, 0xE0, 0x10))
        for position in selected:
            section += data[position:position + 4]
        section[2] = (len(selected) * 4 + 0x0D) & 0xFF
        crc = crc32_mpeg(section)

        pat = bytearray(b"\xff" * LENGTH_PACKET)
        pat[0:5] = data[o:o + 5]
        pat[5:5 + length] = section
        pat[5 + length:9 + length] = crc.to_bytes(4, "big")
        return pat

    def _analyze_pmt(self, data: Buffer, o: int, mark: int) -> _PmtResult:
        try:
            return self._analyze_pmt_unchecked(data, o, mark)
        except IndexError:
            return _PmtResult.ERROR

    def _analyze_pmt_unchecked(self, b: Buffer, o: int, mark: int) -> _PmtResult:
        pid = get_pid(b[o + 1:o + 3])
        if b[o + 1] & 0x40:
            self.section_remain[pid] = ((b[o + 6] & 0x0F) << 8) + b[o + 7] + 3
            payload = 5
            for entry in self.pmt_version:
                if entry.pid == pid:
                    entry.version = b[o + 10] & 0x3E
            pcr = get_pid(b[o + 13:o + 15])
            self.pids[pcr] = mark

            n = (((b[o + 15] & 0x0F) << 8) + b[o + 16] + payload + 12) & 0xFF
            p = payload + 12
            while p < n:
                tag = b[o + p]
                length = b[o + p + 1]
                p += 2
                if tag == _CA_DESCRIPTOR_TAG and length >= 4 and p + length <= n:
                    ca_pid = ((b[o + p + 2] << 8) | b[o + p + 3]) & 0x1FFF
                    self.pids[ca_pid] = mark
                p += length
        else:
            if self.section_remain[pid] == 0:
                return _PmtResult.ERROR
            if (b[o + 3] & 0x0F) != ((self.packet_seq[pid] + 1) & 0x0F):
                return _PmtResult.ERROR
            payload = 4
            n = payload
        self.packet_seq[pid] = b[o + 3] & 0x0F

        nall = min(self.section_remain[pid] & 0xFF, LENGTH_PACKET - payload)
        retries = 0
        while n <= nall + payload - 5:
            if b[o + n] != _STREAM_TYPE_D:
                self.pids[get_pid(b[o + n + 1:o + n + 3])] = mark
            n = (n + 4 + ((b[o + n + 3] & 0x0F) << 8) + b[o + n + 4] + 1) & 0xFF
            retries += 1
            if retries > nall:
                return _PmtResult.ERROR
        self.section_remain[pid] -= nall
        if self.section_remain[pid] > 0:
            return _PmtResult.CONTINUE
        return _PmtResult.SUCCESS

    def _rescan(self, data: Buffer, o: int) -> bool:
        if self.pmt_counter == self.pmt_retain:
            self.pids[:] = self.pmt_pids
            self.pmt_counter = 0
            self.section_remain = [0] * MAX_PID
            self.packet_seq = bytearray(MAX_PID)
            print("Rescan PID ", file=sys.stderr)

        if self._analyze_pmt(data, o, 2) is _PmtResult.SUCCESS:
            self.pmt_counter += 1

        if self.pmt_retain != self.pmt_counter:
            return False
        for pid, value in enumerate(self.pids):
            if value:
                self.pids[pid] = value - 1
        print("Rescan PID End", file=sys.stderr)
        return True