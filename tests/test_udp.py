import io
import socket
from unittest import mock

import pytest

from friiorec.errors import TraceableError
from friiorec.udp import UdpSender


@pytest.fixture
def receiver():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    yield sock
    sock.close()


def test_send_before_init_returns_zero():
    assert UdpSender().send(b"abc") == 0


def test_send_delivers_datagram(receiver):
    port = receiver.getsockname()[1]
    with UdpSender() as sender:
        sender.init("127.0.0.1", port)
        assert sender.send(b"\x47" * 188) == 188
        data, _ = receiver.recvfrom(4096)
    assert data == b"\x47" * 188


def test_log_messages(receiver):
    port = receiver.getsockname()[1]
    log = io.StringIO()
    sender = UdpSender(log)
    sender.init("127.0.0.1", port)
    sender.shutdown()
    assert log.getvalue() == (
        f"creating socket...done. address = 127.0.0.1:{port}\n"
        "closing socket...done.\n"
    )


def test_shutdown_stops_sending(receiver):
    sender = UdpSender()
    sender.init("127.0.0.1", receiver.getsockname()[1])
    sender.shutdown()
    assert sender.send(b"x") == 0


def test_context_manager_closes(receiver):
    with UdpSender() as sender:
        sender.init("127.0.0.1", receiver.getsockname()[1])
    assert sender.send(b"x") == 0


def test_second_init_is_ignored(receiver):
    port = receiver.getsockname()[1]
    with UdpSender() as sender:
        sender.init("127.0.0.1", port)
        sender.init("127.0.0.1", port + 1)
        assert sender.port == port
        sender.send(b"hello")
        data, _ = receiver.recvfrom(100)
    assert data == b"hello"


def test_unresolvable_host_raises():
    with mock.patch("socket.gethostbyname", side_effect=socket.gaierror("no such host")):
        with pytest.raises(TraceableError, match="failed to get host by name"):
            UdpSender().init("nowhere.example.com", 1234)


def test_failed_init_leaves_sender_closed():
    sender = UdpSender()
    with mock.patch("socket.gethostbyname", side_effect=socket.gaierror("no such host")):
        with pytest.raises(TraceableError):
            sender.init("nowhere.example.com", 1234)
    assert sender.send(b"x") == 0