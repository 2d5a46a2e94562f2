"""Unencrypted TCP connection to an access point, framed by length prefixes."""

from __future__ import annotations

import logging
import socket
import struct
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_SOCKET_TIMEOUT = 3.0
_WRITE_PIECE = 64
_SIZE = struct.Struct(">I")


@dataclass
class Packet:
    """A decoded packet: a command byte and its payload."""

    command: int
    data: bytes


class ConnectionLost(ConnectionError):
    """The connection broke and has to be re-established."""


def _never_reconnect() -> bool:
    return False


class PlainConnection:
    """A TCP socket exchanging size-prefixed packets.

    ``timeout_handler`` is asked, whenever a read or write times out,
    whether the connection should be given up; returning True raises
    :class:`ConnectionLost`, returning False keeps waiting.
    """

    def __init__(self, timeout_handler: Callable[[], bool] | None = None) -> None:
        self.timeout_handler = timeout_handler or _never_reconnect
        self.sock: socket.socket | None = None

    def __enter__(self) -> "PlainConnection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def connect_to_ap(self, address: str) -> None:
        """Connect to ``host:port``; raise ConnectionError when that fails."""
        host, sep, port = address.rpartition(":")
        if not sep or not host or not port:
            raise ValueError(f"address {address!r} is not of the form host:port")
        try:
            candidates = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_STREAM)
        except socket.gaierror as exc:
            logger.error("getaddrinfo failed for %s", address)
            raise ConnectionError(f"cannot resolve {address}") from exc

        for family, sock_type, proto, _name, sockaddr in candidates:
            if family not in (socket.AF_INET, socket.AF_INET6):
                continue
            sock = socket.socket(family, sock_type, proto)
            try:
                sock.connect(sockaddr)
            except OSError as exc:
                sock.close()
                raise ConnectionError(f"cannot connect to {address}") from exc
            sock.settimeout(_SOCKET_TIMEOUT)
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            self.sock = sock
            logger.debug("connected to %s", address)
            return
        raise ConnectionError(f"no usable address for {address}")

    def _socket(self) -> socket.socket:
        if self.sock is None:
            raise ConnectionLost("not connected")
        return self.sock

    def _handle_timeout(self) -> None:
        if self.timeout_handler():
            logger.error("connection lost, reconnection required")
            raise ConnectionLost("reconnection required")

    def recv_packet(self) -> bytes:
        """Read one packet, including its four-byte big-endian size prefix."""
        size_data = self.read_block(_SIZE.size)
        (packet_size,) = _SIZE.unpack(size_data)
        if packet_size < _SIZE.size:
            raise ConnectionLost(f"invalid packet size {packet_size}")
        return size_data + self.read_block(packet_size - _SIZE.size)

    def send_prefix_packet(self, prefix: bytes, data: bytes) -> bytes:
        """Send ``prefix``, the total size and ``data``; return the bytes sent."""
        prefix = bytes(prefix)
        data = bytes(data)
        packet = prefix + _SIZE.pack(len(prefix) + len(data) + _SIZE.size) + data
        self.write_block(packet)
        return packet

    def read_block(self, size: int) -> bytes:
        """Read exactly ``size`` bytes."""
        sock = self._socket()
        buf = bytearray()
        while len(buf) < size:
            try:
                chunk = sock.recv(size - len(buf))
            except socket.timeout:
                self._handle_timeout()
                continue
            except InterruptedError:
                continue
            except OSError as exc:
                raise ConnectionLost(f"read failed: {exc}") from exc
            if not chunk:
                raise ConnectionLost("connection closed by peer")
            buf += chunk
        return bytes(buf)

    def write_block(self, data: bytes) -> int:
        """Write all of ``data`` in small pieces; return its length."""
        sock = self._socket()
        view = memoryview(bytes(data))
        sent = 0
        while sent < len(view):
            try:
                n = sock.send(view[sent:sent + _WRITE_PIECE])
            except socket.timeout:
                self._handle_timeout()
                continue
            except InterruptedError:
                continue
            except OSError as exc:
                raise ConnectionLost(f"write failed: {exc}") from exc
            if n <= 0:
                raise ConnectionLost("write failed")
            sent += n
        return len(view)

    def close(self) -> None:
        """Shut down and close the socket."""
        if self.sock is None:
            return
        logger.info("closing socket")
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()
        self.sock = None