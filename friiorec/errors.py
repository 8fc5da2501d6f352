"""Exception types and numeric status codes used across the recorder."""

from __future__ import annotations

import enum
import os

__all__ = [
    "TraceableError",
    "UsbError",
    "BusyError",
    "NotReadyError",
    "IoError",
    "AribStdB25Code",
    "BCasCardCode",
    "Multi2Code",
    "TsSectionParserCode",
    "string_error",
]


def string_error(errnum: int) -> str:
    """Return the system's description of an errno value."""
    return os.strerror(errnum)


class TraceableError(RuntimeError):
    """Base class for recorder errors."""

    @property
    def message(self) -> str:
        """The error message without any extra context."""
        return str(self)


class UsbError(TraceableError):
    """A USB operation failed."""


class BusyError(TraceableError):
    """The device or interface is in use by someone else."""


class NotReadyError(TraceableError):
    """An operation was attempted before initialisation."""


class IoError(TraceableError):
    """A file I/O operation failed."""


class AribStdB25Code(enum.IntEnum):
    """Errors (negative) and warnings (positive) of the B25 decoder."""

    INVALID_PARAM = -1
    NO_ENOUGH_MEMORY = -2
    NON_TS_INPUT_STREAM = -3
    NO_PAT_IN_HEAD_16M = -4
    NO_PMT_IN_HEAD_32M = -5
    NO_ECM_IN_HEAD_32M = -6
    EMPTY_B_CAS_CARD = -7
    INVALID_B_CAS_STATUS = -8
    ECM_PROC_FAILURE = -9
    DECRYPT_FAILURE = -10
    PAT_PARSE_FAILURE = -11
    PMT_PARSE_FAILURE = -12
    ECM_PARSE_FAILURE = -13
    CAT_PARSE_FAILURE = -14
    EMM_PARSE_FAILURE = -15
    EMM_PROC_FAILURE = -16

    WARN_UNPURCHASED_ECM = 1
    WARN_TS_SECTION_ID_MISSMATCH = 2
    WARN_BROKEN_TS_SECTION = 3

    @property
    def is_error(self) -> bool:
        """True for error codes, False for warnings."""
        return self.value < 0


class BCasCardCode(enum.IntEnum):
    """Errors reported by the smart card layer."""

    INVALID_PARAMETER = -1
    NOT_INITIALIZED = -2
    NO_SMART_CARD_READER = -3
    ALL_READERS_CONNECTION_FAILED = -4
    NO_ENOUGH_MEMORY = -5
    TRANSMIT_FAILED = -6


class Multi2Code(enum.IntEnum):
    """Errors reported by the MULTI2 cipher layer."""

    INVALID_PARAMETER = -1
    UNSET_SYSTEM_KEY = -2
    UNSET_CBC_INIT = -3
    UNSET_SCRAMBLE_KEY = -4


class TsSectionParserCode(enum.IntEnum):
    """Errors (negative) and warnings (positive) of the TS section parser."""

    INVALID_PARAM = -1
    NO_ENOUGH_MEMORY = -2
    INVALID_TS_PID = -3
    NO_SECTION_DATA = -4

    WARN_CRC_MISSMATCH = 1
    WARN_LENGTH_MISSMATCH = 2

    @property
    def is_error(self) -> bool:
        """True for error codes, False for warnings."""
        return self.value < 0