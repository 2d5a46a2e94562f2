import socket
import struct

import pytest

from spotcore.plain_connection import ConnectionLost, PlainConnection


@pytest.fixture
def pair():
    a, b = socket.socketpair()
    a.settimeout(2.0)
    b.settimeout(2.0)
    yield a, b
    a.close()
    b.close()


def _conn(sock, handler=None):
    conn = PlainConnection(handler)
    conn.sock = sock
    return conn


def _recv_exact(sock, size):
    buf = b""
    while len(buf) < size:
        chunk = sock.recv(size - len(buf))
        assert chunk
        buf += chunk
    return buf


def test_send_prefix_packet_layout(pair):
    a, b = pair
    conn = _conn(a)
    sent = conn.send_prefix_packet(b"\x00\x04", b"abc")
    assert sent == b"\x00\x04\x00\x00\x00\x09abc"
    assert _recv_exact(b, len(sent)) == sent


def test_send_prefix_packet_empty_prefix(pair):
    a, b = pair
    conn = _conn(a)
    sent = conn.send_prefix_packet(b"", b"hello")
    assert sent[4:] == b"hello"
    assert struct.unpack(">I", sent[:4])[0] == len(sent)


def test_recv_packet_round_trip(pair):
    a, b = pair
    conn = _conn(a)
    payload = bytes(range(100))
    frame = struct.pack(">I", 4 + len(payload)) + payload
    b.sendall(frame)
    assert conn.recv_packet() == frame


def test_write_block_large_data(pair):
    a, b = pair
    conn = _conn(a)
    data = bytes(i % 256 for i in range(300))
    assert conn.write_block(data) == len(data)
    assert _recv_exact(b, len(data)) == data


def test_read_block_peer_closed(pair):
    a, b = pair
    conn = _conn(a)
    b.sendall(b"ab")
    b.close()
    with pytest.raises(ConnectionLost):
        conn.read_block(4)


def test_timeout_handler_requests_reconnect(pair):
    a, _b = pair
    a.settimeout(0.02)
    calls = []

    def handler():
        calls.append(1)
        return len(calls) >= 2

    conn = _conn(a, handler)
    with pytest.raises(ConnectionLost):
        conn.read_block(4)
    assert len(calls) == 2


def test_read_after_timeout_continues(pair):
    a, b = pair
    a.settimeout(0.02)
    calls = []

    def handler():
        calls.append(1)
        b.sendall(b"wxyz")
        return False

    conn = _conn(a, handler)
    assert conn.read_block(4) == b"wxyz"
    assert calls


def test_not_connected_raises():
    conn = PlainConnection()
    with pytest.raises(ConnectionLost):
        conn.read_block(1)


def test_connect_to_ap_and_send():
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    port = listener.getsockname()[1]
    try:
        with PlainConnection() as conn:
            conn.connect_to_ap(f"127.0.0.1:{port}")
            assert conn.sock.gettimeout() == 3.0
            accepted, _ = listener.accept()
            with accepted:
                accepted.settimeout(2.0)
                sent = conn.send_prefix_packet(b"", b"hi")
                assert _recv_exact(accepted, len(sent)) == sent
        assert conn.sock is None
    finally:
        listener.close()


def test_connect_refused():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    conn = PlainConnection()
    with pytest.raises(ConnectionError):
        conn.connect_to_ap(f"127.0.0.1:{port}")
    assert conn.sock is None


def test_connect_bad_address():
    with pytest.raises(ValueError):
        PlainConnection().connect_to_ap("localhost")