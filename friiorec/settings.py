"""Tuner kinds, frequency bands and tuning constants."""

from __future__ import annotations

import enum

__all__ = [
    "TunerType",
    "BandType",
    "tuner_type_name",
    "URB_ERROR_MAX",
    "B25_ERROR_MAX",
    "TSDATASIZE",
    "ASYNCBUFFTIME",
    "WHITE_ASYNCBUFFSIZE",
    "BLACK_ASYNCBUFFSIZE",
    "HDUS_ASYNCBUFFSIZE",
    "HDP_ASYNCBUFFSIZE",
    "REQUEST_TIMEOUT",
    "REQUEST_TIMEOUT_TS",
    "UDP_PORT",
    "HTTP_PORT",
]

# Maximum number of errors reported before going quiet.
URB_ERROR_MAX = 20
B25_ERROR_MAX = 100

# Bulk transfer size (usbfs limit).
TSDATASIZE = 16384

# Ring buffer lengths: ASYNCBUFFTIME seconds at an assumed average bitrate.
ASYNCBUFFTIME = 20
WHITE_ASYNCBUFFSIZE = 0x200000 * ASYNCBUFFTIME // TSDATASIZE  # ~16 Mbps
BLACK_ASYNCBUFFSIZE = 0x400000 * ASYNCBUFFTIME // TSDATASIZE  # ~32 Mbps
HDUS_ASYNCBUFFSIZE = WHITE_ASYNCBUFFSIZE
HDP_ASYNCBUFFSIZE = WHITE_ASYNCBUFFSIZE

# Outstanding asynchronous requests and polling interval (ms).
WHITE_REQUEST_RESERVE_NUM = 16
WHITE_REQUEST_POLLING_WAIT = 10
BLACK_REQUEST_RESERVE_NUM = 24
BLACK_REQUEST_POLLING_WAIT = 7
HDUS_REQUEST_RESERVE_NUM = WHITE_REQUEST_RESERVE_NUM
HDUS_REQUEST_POLLING_WAIT = WHITE_REQUEST_POLLING_WAIT
HDP_REQUEST_RESERVE_NUM = WHITE_REQUEST_RESERVE_NUM
HDP_REQUEST_POLLING_WAIT = WHITE_REQUEST_POLLING_WAIT

REQUEST_TIMEOUT = 1000  # control request timeout (ms)
REQUEST_TIMEOUT_TS = 2000  # TS bulk request timeout (ms)

TARGET_ID_VENDOR = 0x7A69
TARGET_ID_PRODUCT = 0x0001
TARGET_ID_VENDOR_HDUS = 0x3275
TARGET_ID_PRODUCT_HDUS = 0x6051
TARGET_ID_VENDOR_HDU = 0x3765
TARGET_ID_PRODUCT_HDU = 0x6001
TARGET_ID_PRODUCT_HDP = 0x7010
TARGET_ID_PRODUCT_HDP2 = 0x6111
TARGET_ID_PRODUCT_HDU2 = 0x6091
TARGET_ID_PRODUCT_QRS = 0x7020
TARGET_ID_PRODUCT_FS100U = 0x6081

ERROR_RETRY_MAX = 3
ERROR_RETRY_INTERVAL = 1000  # ms

DETECT_LOCKFILE_DEFAULT = "/var/lock/friiodetect"
DETECT_ERROR_RETRY_MAX = 3
DETECT_ERROR_RETRY_INTERVAL = 300  # ms

SETCHANNEL_COMMAND_INTERVAL = 5  # ms

TARGET_INTERFACE = 0
TARGET_ALTSETTING = 0
TARGET_ENDPOINT = 0x81

SIGNALLEVEL_RETRY_THRESHOLD = 10.0
SIGNALLEVEL_RETRY_MAX = 2
SIGNALLEVEL_RETRY_INTERVAL = 400  # ms

BASE_DIR_UDEV = "/dev/bus/usb"
BASE_DIR_USBFS = "/proc/bus/usb"

UDP_PORT = 1234
HTTP_PORT = 8888


class TunerType(enum.IntEnum):
    """Kind of tuner hardware."""

    FRIIO_WHITE = 0
    FRIIO_BLACK = 1
    HDUS = 2
    HDP = 3

    def display_name(self) -> str:
        """Human-readable name of the tuner kind."""
        return _TUNER_NAMES[self]


_TUNER_NAMES = {
    TunerType.FRIIO_WHITE: "Friio(White)",
    TunerType.FRIIO_BLACK: "Friio(Black)",
    TunerType.HDUS: "HDUS",
    TunerType.HDP: "HDP",
}


class BandType(enum.IntEnum):
    """Broadcast frequency band."""

    VHF = 0
    CATV = 1
    UHF = 2
    BS = 3
    CS = 4


def tuner_type_name(tuner_type: TunerType | int) -> str:
    """Return the display name for a tuner kind given as enum or integer."""
    return TunerType(tuner_type).display_name()