"""Sending the recorded stream as UDP datagrams."""

from __future__ import annotations

import socket
from typing import Optional, TextIO, Union

from .errors import TraceableError

__all__ = ["UdpSender"]


class UdpSender:
    """Sends data to one host and port; does nothing until :meth:`init`."""

    def __init__(self, log: Optional[TextIO] = None) -> None:
        self.log = log
        self.host: Optional[str] = None
        self.port: Optional[int] = None
        self._address: Optional[tuple[str, int]] = None
        self._sock: Optional[socket.socket] = None

    def _write_log(self, text: str) -> None:
        if self.log is not None:
            self.log.write(text)

    def init(self, host: str, port: int) -> None:
        """Resolve ``host`` and open the socket; a second call is ignored."""
        if self._sock is not None:
            return
        self.host = host
        self.port = port
        self._write_log("creating socket...")
        try:
            ip = socket.gethostbyname(host)
        except (socket.gaierror, socket.herror, UnicodeError):
            raise TraceableError("failed to get host by name") from None
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError:
            raise TraceableError("failed to create socket") from None
        self._address = (ip, port)
        self._write_log(f"done. address = {ip}:{port}\n")

    def send(self, data: Union[bytes, bytearray, memoryview]) -> int:
        """Send ``data`` as one datagram; returns bytes sent, 0 if not open."""
        if self._sock is None or self._address is None:
            return 0
        return self._sock.sendto(data, self._address)

    def shutdown(self) -> None:
        """Close the socket if it is open."""
        if self._sock is not None:
            self._write_log("closing socket...")
            self._sock.close()
            self._write_log("done.\n")
            self._sock = None
            self._address = None

    def __enter__(self) -> "UdpSender":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()