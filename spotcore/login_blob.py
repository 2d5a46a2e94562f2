"""Login credentials and decoding of zeroconf login blobs."""

from __future__ import annotations

import json
from dataclasses import dataclass

from .crypto import (
    aes_ctr_xcrypt,
    aes_ecb_decrypt,
    base64_decode,
    base64_encode,
    pbkdf2_hmac_sha1,
    sha1,
    sha1_hmac,
)
from .json_format import format_json

_IV_SIZE = 16
_CHECKSUM_SIZE = 20
_AUTH_USER_PASS = 0
_TEXT_ENCODING = "utf-8"
_CHECKSUM_LABEL = b"checksum"
_ENCRYPTION_LABEL = b"encryption"
_LENGTH_SUFFIX = b"\x00\x00\x00\x14"


def decode_blob(blob: bytes, shared_key: bytes) -> bytes:
    """Decrypt the outer layer of a zeroconf blob.

    The blob is a 16-byte IV, the ciphertext and a 20-byte HMAC-SHA1
    checksum. Raises ValueError when the blob is too short or the
    checksum does not match.
    """
    blob = bytes(blob)
    if len(blob) < _IV_SIZE + _CHECKSUM_SIZE:
        raise ValueError("login blob is too short")
    iv = blob[:_IV_SIZE]
    encrypted = blob[_IV_SIZE:-_CHECKSUM_SIZE]
    checksum = blob[-_CHECKSUM_SIZE:]

    base = sha1(shared_key)[:16]
    checksum_mac = sha1_hmac(base, _CHECKSUM_LABEL)
    cipher_material = sha1_hmac(base, _ENCRYPTION_LABEL)[:16]

    if sha1_hmac(checksum_mac, encrypted) != checksum:
        raise ValueError("login blob checksum does not match")

    return aes_ctr_xcrypt(cipher_material, iv, encrypted)


def decode_blob_secondary(blob: bytes, username: str, device_id: str) -> bytes:
    """Decrypt the inner, base64-encoded layer of a zeroconf blob."""
    blob_data = base64_decode(bytes(blob))

    device_digest = sha1(device_id.encode(_TEXT_ENCODING))
    derived = pbkdf2_hmac_sha1(device_digest, username.encode(_TEXT_ENCODING), 256, 20)
    cipher_material = sha1(derived) + _LENGTH_SUFFIX

    decrypted = aes_ecb_decrypt(cipher_material, blob_data)
    if len(decrypted) <= 16:
        return decrypted
    return decrypted[:16] + bytes(a ^ b for a, b in zip(decrypted[16:], decrypted[:-16]))


class _BlobCursor:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def _byte(self, index: int) -> int:
        if index >= len(self.data):
            raise ValueError("login data is truncated")
        return self.data[index]

    def read_int(self) -> int:
        low = self._byte(self.pos)
        if not low & 0x80:
            self.pos += 1
            return low
        high = self._byte(self.pos + 1)
        self.pos += 2
        return (low & 0x7F) | (high << 7)

    def take(self, length: int) -> bytes:
        end = self.pos + length
        if end > len(self.data):
            raise ValueError("login data is truncated")
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk


@dataclass
class LoginBlob:
    """Credentials used to authenticate a session."""

    username: str
    auth_data: bytes
    auth_type: int

    @classmethod
    def from_zeroconf(
        cls, blob: bytes, shared_key: bytes, device_id: str, username: str
    ) -> "LoginBlob":
        """Build credentials from a blob handed over by a zeroconf client."""
        part_decoded = decode_blob(blob, shared_key)
        login_data = decode_blob_secondary(part_decoded, username, device_id)

        cursor = _BlobCursor(login_data)
        cursor.pos = 1
        cursor.pos += cursor.read_int()
        cursor.pos += 1
        auth_type = cursor.read_int()
        cursor.pos += 1
        auth_size = cursor.read_int()
        auth_data = cursor.take(auth_size)
        return cls(username=username, auth_data=auth_data, auth_type=auth_type)

    @classmethod
    def from_user_pass(cls, username: str, password: str) -> "LoginBlob":
        """Build credentials from a username and a plain password."""
        return cls(
            username=username,
            auth_data=password.encode(_TEXT_ENCODING),
            auth_type=_AUTH_USER_PASS,
        )

    @classmethod
    def from_json(cls, text: str) -> "LoginBlob":
        """Load credentials stored by :meth:`to_json`."""
        try:
            root = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid credentials JSON: {exc}") from exc
        if not isinstance(root, dict):
            raise ValueError("credentials JSON must be an object")
        auth_data = root.get("authData")
        username = root.get("username")
        auth_type = root.get("authType")
        if not isinstance(auth_data, str) or not isinstance(username, str):
            raise ValueError("credentials JSON needs string authData and username")
        if isinstance(auth_type, bool) or not isinstance(auth_type, (int, float)):
            raise ValueError("credentials JSON needs a numeric authType")
        return cls(
            username=username,
            auth_data=base64_decode(auth_data),
            auth_type=int(auth_type),
        )

    def to_json(self) -> str:
        """Serialise the credentials as JSON."""
        return format_json(
            {
                "authData": base64_encode(self.auth_data),
                "authType": self.auth_type,
                "username": self.username,
            }
        )