"""Command-line parsing for the recorder: options, channels and HTTP requests."""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Sequence, Union

from .settings import HTTP_PORT, UDP_PORT, BandType, TunerType

__all__ = [
    "SIZE_CHUNK",
    "UsageError",
    "ChannelSpec",
    "Args",
    "parse_channel",
    "parse_options",
    "parse_http_request",
    "usage_text",
    "write_chunks",
]

_log = logging.getLogger(__name__)

# Largest number of bytes handed to a single write call.
SIZE_CHUNK = 1316

_PROG = "friiorec"
_ATOI = re.compile(r"\s*([+-]?[0-9]+)")
_DIGITS = re.compile(r"[0-9]*")

# long option name -> (option code, takes an argument)
_LONG_OPTIONS: dict[str, tuple[str, bool]] = {
    "b25": ("b", False),
    "B25": ("b", False),
    "round": ("r", True),
    "strip": ("s", False),
    "EMM": ("m", False),
    "emm": ("m", False),
    "sync": ("S", False),
    "hdus": ("h", False),
    "hdp": ("d", False),
    "lockfile": ("l", True),
    "lnb": ("n", False),
    "udp": ("u", True),
    "port": ("p", True),
    "http": ("H", True),
    "sid": ("i", True),
}

# short option letter -> takes an argument
_SHORT_OPTIONS: dict[str, bool] = {
    "b": False,
    "r": True,
    "s": False,
    "m": False,
    "S": False,
    "u": True,
    "p": True,
    "H": True,
    "i": True,
    "l": True,
}

_CHANNEL_TABLE = """\
Channels:
  13 - 62   : UHF13 - UHF62
  K13 - K63 : CATV13 - CATV63
  B1 ,BS01_0: BS朝日               C1 ,CS2 : ND2  110CS
  B2 ,BS01_1: BS-TBS               C2 ,CS4 : ND4  110CS
  B3 ,BS03_0: WOWOWプライム        C3 ,CS6 : ND6  110CS
  B4 ,BS03_1: BSジャパン           C4 ,CS8 : ND8  110CS
  B5 ,BS05_0: WOWOWライブ          C5 ,CS10: ND10 110CS
  B6 ,BS05_1: WOWOWシネマ          C6 ,CS12: ND12 110CS
  B7 ,BS07_0: スターチャンネル2/3  C7 ,CS14: ND14 110CS
  B8 ,BS07_1: BSアニマックス       C8 ,CS16: ND16 110CS
  B9 ,BS07_2: ディズニーチャンネル C9 ,CS18: ND18 110CS
  B10,BS09_0: BS11                 C10,CS20: ND20 110CS
  B11,BS09_1: スターチャンネル1    C11,CS22: ND22 110CS
  B12,BS09_2: TwellV               C12,CS24: ND24 110CS
  B13,BS11_0: FOX bs238
  B14,BS11_1: BSスカパー!
  B15,BS11_2: 放送大学
  B16,BS13_0: BS日テレ
  B17,BS13_1: BSフジ
  B18,BS15_0: NHK BS1
  B19,BS15_1: NHK BSプレミアム
  B20,BS17_0: 地デジ難視聴1(NHK/NHK-E/CX)
  B21,BS17_1: 地デジ難視聴2(NTV/TBS/EX/TX)
  B22,BS19_0: グリーンチャンネル
  B23,BS19_1: J SPORTS 1
  B24,BS19_2: J SPORTS 2
  B25,BS21_0: IMAGICA BS
  B26,BS21_1: J SPORTS 3
  B27,BS21_2: J SPORTS 4
  B28,BS23_0: BS釣りビジョン
  B29,BS23_1: 日本映画専門チャンネル
  B30,BS23_2: D-Life
"""


class UsageError(ValueError):
    """The command line is invalid; the program should exit with status 1."""

    exit_code = 1


@dataclass(frozen=True)
class ChannelSpec:
    """Tuner kind, band and channel number selected by a channel string."""

    tuner_type: TunerType
    band: BandType
    channel: int


@dataclass
class Args:
    """Parsed command-line options."""

    b25: bool = False
    round: int = 4
    strip: bool = False
    emm: bool = False
    sync: bool = False
    use_hdus: bool = False
    use_hdp: bool = False
    lockfile: Optional[str] = None
    lnb: bool = False
    ip: str = ""
    port: int = UDP_PORT
    http_mode: bool = False
    http_port: int = HTTP_PORT
    splitter: bool = False
    sid_list: Optional[str] = None
    std_out: bool = False
    tuner_type: TunerType = TunerType.FRIIO_WHITE
    band: BandType = BandType.UHF
    channel: int = 0
    forever: bool = False
    recsec: int = 0
    destfile: Optional[str] = None


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


def _parse_bs_node(rest: str) -> int:
    digits = _DIGITS.match(rest).group(0)
    node = int(digits) if digits else 0
    tail = rest[len(digits):]
    if node == 0 or node > 23 or node % 2 == 0 or not tail.startswith("_"):
        raise UsageError("BS channel node must be (1 <= node <= 23).")
    tail = tail[1:]
    slot = 8
    if tail[:1] and tail[0] in "0123456789":
        slot = int(tail[0])
        tail = tail[1:]
    if slot >= 8 or tail:
        raise UsageError("BS channel solt must be (0 <= solt <= 7).")
    # Older receivers expect slot numbering shifted by one on node 15.
    if node == 15:
        slot += 1
    return 0x4000 | (node << 4) | slot


def parse_channel(chstr: str, use_hdus: bool = False, use_hdp: bool = False) -> ChannelSpec:
    """Interpret a channel string such as ``27``, ``K20``, ``B3``, ``BS01_0`` or ``CS8``."""
    first = chstr[:1]
    second = chstr[1:2]
    if first in ("B", "b"):
        if second in ("S", "s"):
            channel = _parse_bs_node(chstr[2:])
        else:
            channel = _atoi(chstr[1:])
            if not 1 <= channel <= 30:
                raise UsageError("channel must be (B1 <= channel <= B30).")
        return ChannelSpec(TunerType.FRIIO_BLACK, BandType.BS, channel)
    if first in ("C", "c"):
        if second in ("S", "s"):
            channel = _atoi(chstr[2:])
            if channel % 2 == 0 and 1 <= channel // 2 <= 12:
                return ChannelSpec(TunerType.FRIIO_BLACK, BandType.CS, channel // 2)
            raise UsageError("channel must be (CS2 <= channel <= CS24).")
        channel = _atoi(chstr[1:])
        if not 1 <= channel <= 12:
            raise UsageError("channel must be (C1 <= channel <= C12).")
        return ChannelSpec(TunerType.FRIIO_BLACK, BandType.CS, channel)
    if first in ("K", "k"):
        tuner = TunerType.HDUS if use_hdus else TunerType.HDP
        channel = _atoi(chstr[1:])
        if not 13 <= channel <= 63:
            raise UsageError("channel must be (K13 <= channel <= K63).")
        return ChannelSpec(tuner, BandType.CATV, channel)

    if use_hdus:
        tuner = TunerType.HDUS
    elif use_hdp:
        tuner = TunerType.HDP
    else:
        tuner = TunerType.FRIIO_WHITE
    channel = _atoi(chstr)
    if not 13 <= channel <= 62:
        raise UsageError("channel must be (13 <= channel <= 62).")
    return ChannelSpec(tuner, BandType.UHF, channel)


def _match_long(name: str) -> Optional[tuple[str, bool]]:
    if name in _LONG_OPTIONS:
        return _LONG_OPTIONS[name]
    candidates = {spec for key, spec in _LONG_OPTIONS.items() if key.startswith(name)}
    if len(candidates) == 1:
        return candidates.pop()
    reason = "ambiguous" if candidates else "unrecognized"
    print(f"{_PROG}: {reason} option '--{name}'", file=sys.stderr)
    return None


def _scan(argv: Sequence[str]) -> Iterator[tuple[Optional[str], str]]:
    """Yield (code, value) for options and (None, arg) for operands, GNU style."""
    args = list(argv)
    i = 0
    while i < len(args):
        arg = args[i]
        i += 1
        if arg == "--":
            for rest in args[i:]:
                yield None, rest
            return
        if arg.startswith("--"):
            name, eq, value = arg[2:].partition("=")
            spec = _match_long(name)
            if spec is None:
                continue
            code, needs_value = spec
            if needs_value:
                if not eq:
                    if i >= len(args):
                        print(f"{_PROG}: option '--{name}' requires an argument", file=sys.stderr)
                        continue
                    value = args[i]
                    i += 1
                yield code, value
            elif eq:
                print(f"{_PROG}: option '--{name}' doesn't allow an argument", file=sys.stderr)
            else:
                yield code, ""
            continue
        if arg.startswith("-") and arg != "-":
            letters = arg[1:]
            pos = 0
            while pos < len(letters):
                letter = letters[pos]
                pos += 1
                if letter not in _SHORT_OPTIONS:
                    print(f"{_PROG}: invalid option -- '{letter}'", file=sys.stderr)
                    continue
                if not _SHORT_OPTIONS[letter]:
                    yield letter, ""
                    continue
                value = letters[pos:]
                if not value:
                    if i >= len(args):
                        print(f"{_PROG}: option requires an argument -- '{letter}'", file=sys.stderr)
                        break
                    value = args[i]
                    i += 1
                yield letter, value
                break
            continue
        yield None, arg


def parse_options(argv: Optional[Sequence[str]] = None) -> Args:
    """Parse the arguments (without the program name) into :class:`Args`."""
    if argv is None:
        argv = sys.argv[1:]
    args = Args()
    operands: list[str] = []
    for code, value in _scan(argv):
        if code is None:
            operands.append(value)
        elif code == "b":
            args.b25 = True
        elif code == "r":
            args.round = _atoi(value)
        elif code == "s":
            args.strip = True
        elif code == "m":
            args.emm = True
        elif code == "S":
            args.sync = True
        elif code == "h":
            args.use_hdus = True
        elif code == "d":
            args.use_hdp = True
        elif code == "l":
            args.lockfile = value
        elif code == "n":
            args.lnb = True
        elif code == "u":
            args.ip = value
        elif code == "p":
            args.port = _atoi(value)
        elif code == "H":
            args.http_mode = True
            args.http_port = _atoi(value)
            args.forever = True
            return args
        elif code == "i":
            args.splitter = True
            args.sid_list = value

    if len(operands) != 3:
        raise UsageError(usage_text(_PROG))

    chstr, recsec, destfile = operands
    spec = parse_channel(chstr, args.use_hdus, args.use_hdp)
    args.tuner_type, args.band, args.channel = spec.tuner_type, spec.band, spec.channel
    if recsec == "-":
        args.forever = True
    args.recsec = _atoi(recsec)
    args.destfile = destfile
    if destfile == "-":
        args.std_out = True
    if not args.forever and args.recsec <= 0:
        raise UsageError("recsec must be (recsec > 0).")
    return args


def parse_http_request(line: str) -> tuple[Optional[str], Optional[str]]:
    """Extract (channel, service list) from a request line like ``GET /C8/333 HTTP/1.1``."""
    words = line.split()
    if len(words) < 2:
        return None, None
    parts = [part for part in words[1].split("/") if part]
    if not parts:
        return None, None
    return parts[0], (parts[1] if len(parts) > 1 else None)


def usage_text(prog: str) -> str:
    """The usage message, including the table of channel names."""
    synopsis = (
        f"usage: {prog}"
        " [--b25 [--round N] [--strip] [--EMM] [--sync]]"
        " [--hdus] [--hdp]"
        " [--lockfile lock]"
        " [--lnb]"
        " [--udp ip [--port N]]"
        " [--http PortNo]"
        " [--sid SID1,SID2]"
        " channel recsec destfile\n"
    )
    return synopsis + _CHANNEL_TABLE


def write_chunks(
    write: Callable[[memoryview], Optional[int]],
    data: Union[bytes, bytearray, memoryview],
) -> int:
    """Write ``data`` in pieces of at most :data:`SIZE_CHUNK` bytes.

    ``write`` returns the number of bytes it took; a negative or zero count,
    or an :class:`OSError`, stops the transfer.  Returns the bytes written.
    """
    view = memoryview(data).cast("B")
    total = 0
    while total < len(view):
        chunk_end = min(total + SIZE_CHUNK, len(view))
        while total < chunk_end:
            try:
                written = write(view[total:chunk_end])
            except OSError:
                written = -1
            if written is None:
                written = chunk_end - total
            if written <= 0:
                _log.warning("write failed.")
                return total
            total += written
    return total