"""Cryptographic helpers: hashing, AES, PBKDF2, base64 and Diffie-Hellman."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import secrets

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

_AES_BLOCK = 16


def base64_encode(data: bytes) -> str:
    """Encode ``data`` as base64 without line breaks."""
    return base64.b64encode(bytes(data)).decode("ascii")


def base64_decode(data: str | bytes) -> bytes:
    """Decode base64 text, ignoring whitespace; raise ValueError if invalid."""
    raw = data.encode("ascii") if isinstance(data, str) else bytes(data)
    raw = b"".join(raw.split())
    try:
        return base64.b64decode(raw, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64 data: {exc}") from exc


def sha1(data: bytes) -> bytes:
    """Return the SHA-1 digest of ``data``."""
    return hashlib.sha1(bytes(data)).digest()


def sha1_hmac(key: bytes, message: bytes) -> bytes:
    """Return the HMAC-SHA1 of ``message`` under ``key``."""
    return hmac.new(bytes(key), bytes(message), hashlib.sha1).digest()


def aes_ctr_xcrypt(key: bytes, iv: bytes, data: bytes) -> bytes:
    """Encrypt or decrypt ``data`` with AES in CTR mode starting at counter ``iv``."""
    cipher = Cipher(algorithms.AES(bytes(key)), modes.CTR(bytes(iv)))
    transform = cipher.encryptor()
    return transform.update(bytes(data)) + transform.finalize()


def aes_ecb_decrypt(key: bytes, data: bytes) -> bytes:
    """Decrypt the whole 16-byte blocks of ``data`` with AES-ECB.

    Trailing bytes that do not fill a block are returned unchanged.
    """
    data = bytes(data)
    whole = len(data) - len(data) % _AES_BLOCK
    decryptor = Cipher(algorithms.AES(bytes(key)), modes.ECB()).decryptor()
    return decryptor.update(data[:whole]) + decryptor.finalize() + data[whole:]


def pbkdf2_hmac_sha1(password: bytes, salt: bytes, iterations: int, digest_size: int) -> bytes:
    """Derive ``digest_size`` bytes with PBKDF2-HMAC-SHA1."""
    return hashlib.pbkdf2_hmac("sha1", bytes(password), bytes(salt), iterations, digest_size)


def random_bytes(length: int) -> bytes:
    """Return ``length`` cryptographically secure random bytes."""
    return secrets.token_bytes(length)


def _to_int(value: bytes | int) -> int:
    if isinstance(value, int):
        return value
    return int.from_bytes(bytes(value), "big")


class DiffieHellman:
    """Finite-field Diffie-Hellman over a given prime and generator.

    Keys are big-endian byte strings as long as the prime.
    """

    def __init__(self, prime: bytes | int, generator: bytes | int) -> None:
        if isinstance(prime, int):
            self.key_size = (prime.bit_length() + 7) // 8
        else:
            self.key_size = len(prime)
        self.prime = _to_int(prime)
        self.generator = _to_int(generator)
        if self.prime < 3:
            raise ValueError("prime must be at least 3")
        self.private_key = random_bytes(self.key_size)
        self.public_key = bytes(self.key_size)

    def init_keys(self) -> None:
        """Generate a fresh private key and its public key."""
        self.private_key = random_bytes(self.key_size)
        exponent = int.from_bytes(self.private_key, "big")
        value = pow(self.generator, exponent, self.prime)
        self.public_key = value.to_bytes(self.key_size, "big")

    def calculate_shared(self, remote_key: bytes) -> bytes:
        """Combine the remote public key with our private key."""
        remote = int.from_bytes(bytes(remote_key), "big")
        exponent = int.from_bytes(self.private_key, "big")
        value = pow(remote, exponent, self.prime)
        return value.to_bytes(self.key_size, "big")