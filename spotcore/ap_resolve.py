"""Lookup of access point addresses through the resolver service."""

from __future__ import annotations

import json
import logging
import socket

logger = logging.getLogger(__name__)

_HOST = "apresolve.spotify.com"
_PORT = 80
_TIMEOUT = 10.0
_REQUEST = (
    "GET / HTTP/1.1\r\n"
    f"Host: {_HOST}\r\n"
    "Accept: application/json\r\n"
    "Connection: close\r\n"
    "\r\n\r\n"
).encode("ascii")


class ResolveError(Exception):
    """The access point list could not be obtained."""


def fetch_ap_list() -> str:
    """Request the access point list and return the JSON part of the reply."""
    try:
        sock = socket.create_connection((_HOST, _PORT), timeout=_TIMEOUT)
    except socket.gaierror as exc:
        logger.error("apresolve: DNS lookup error")
        raise ResolveError("resolve failed: DNS lookup error") from exc
    except OSError as exc:
        logger.error("could not connect to apresolve")
        raise ResolveError("resolve failed: cannot connect") from exc

    chunks = []
    with sock:
        try:
            sock.sendall(_REQUEST)
        except OSError as exc:
            logger.error("apresolve: can't send request")
            raise ResolveError("resolve failed: cannot send request") from exc
        while True:
            try:
                chunk = sock.recv(4096)
            except OSError:
                break
            if not chunk:
                break
            chunks.append(chunk)

    body = b"".join(chunks)
    start = body.find(b"{")
    if start < 0:
        raise ResolveError("resolve failed: no JSON in response")
    return body[start:].decode("utf-8", errors="replace")


def parse_first_ap(body: str) -> str:
    """Return the first entry of ``ap_list`` in a resolver JSON reply."""
    try:
        root = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ResolveError(f"invalid resolver reply: {exc}") from exc
    ap_list = root.get("ap_list") if isinstance(root, dict) else None
    if not isinstance(ap_list, list) or not ap_list or not isinstance(ap_list[0], str):
        raise ResolveError("resolver reply has no access points")
    return ap_list[0]


def fetch_first_ap_address() -> str:
    """Fetch the access point list and return its first address."""
    return parse_first_ap(fetch_ap_list())