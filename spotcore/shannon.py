"""Shannon stream cipher with built-in MAC."""

from __future__ import annotations

from enum import Enum

_MASK = 0xFFFFFFFF
_N = 16
_FOLD = _N
_INITKONST = 0x6996C53A
_KEYP = 13


def _rotl(word: int, count: int) -> int:
    return ((word << count) | (word >> (32 - count))) & _MASK


def _sbox1(word: int) -> int:
    word ^= _rotl(word, 5) | _rotl(word, 7)
    word ^= _rotl(word, 19) | _rotl(word, 22)
    return word


def _sbox2(word: int) -> int:
    word ^= _rotl(word, 7) | _rotl(word, 22)
    word ^= _rotl(word, 5) | _rotl(word, 19)
    return word


class _Mode(Enum):
    MAC = "mac"
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"


class Shannon:
    """Shannon cipher state.

    Call :meth:`key` once, then :meth:`nonce` before each message. Data
    methods return new bytes; :meth:`finish` returns the MAC.
    """

    def __init__(self) -> None:
        self._r = [0] * _N
        self._crc = [0] * _N
        self._init_r = [0] * _N
        self._konst = 0
        self._sbuf = 0
        self._mbuf = 0
        self._nbuf = 0

    def _cycle(self) -> None:
        r = self._r
        t = r[12] ^ r[13] ^ self._konst
        t = _sbox1(t) ^ _rotl(r[0], 1)
        del r[0]
        r.append(t)
        t = _sbox2(r[2] ^ r[15])
        r[0] ^= t
        self._sbuf = t ^ r[8] ^ r[12]

    def _crcfunc(self, word: int) -> None:
        crc = self._crc
        t = crc[0] ^ crc[2] ^ crc[15] ^ word
        del crc[0]
        crc.append(t)

    def _macfunc(self, word: int) -> None:
        self._crcfunc(word)
        self._r[_KEYP] ^= word

    def _init_state(self) -> None:
        r = [1, 1]
        while len(r) < _N:
            r.append((r[-1] + r[-2]) & _MASK)
        self._r = r
        self._konst = _INITKONST

    def _diffuse(self) -> None:
        for _ in range(_FOLD):
            self._cycle()

    def _load_key(self, key: bytes) -> None:
        whole = len(key) & ~0x3
        for start in range(0, whole, 4):
            self._r[_KEYP] ^= int.from_bytes(key[start:start + 4], "little")
            self._cycle()
        if whole < len(key):
            extra = bytes(key[whole:]).ljust(4, b"\x00")
            self._r[_KEYP] ^= int.from_bytes(extra, "little")
            self._cycle()
        self._r[_KEYP] ^= len(key) & _MASK
        self._cycle()
        self._crc = list(self._r)
        self._diffuse()
        self._r = [a ^ b for a, b in zip(self._r, self._crc)]

    def key(self, key: bytes) -> None:
        """Set the key and reset the cipher."""
        self._init_state()
        self._load_key(key)
        self._konst = self._r[0]
        self._init_r = list(self._r)
        self._nbuf = 0

    def nonce(self, nonce: bytes) -> None:
        """Start a new message under the current key."""
        self._r = list(self._init_r)
        self._konst = _INITKONST
        self._load_key(nonce)
        self._konst = self._r[0]
        self._nbuf = 0

    def stream(self, data: bytes) -> bytes:
        """XOR ``data`` with keystream, without touching the MAC."""
        buf = bytearray(data)
        size = len(buf)
        i = 0
        while self._nbuf and i < size:
            buf[i] ^= self._sbuf & 0xFF
            self._sbuf >>= 8
            self._nbuf -= 8
            i += 1

        end = i + ((size - i) & ~0x3)
        while i < end:
            self._cycle()
            word = int.from_bytes(buf[i:i + 4], "little") ^ self._sbuf
            buf[i:i + 4] = word.to_bytes(4, "little")
            i += 4

        if i < size:
            self._cycle()
            self._nbuf = 32
            while self._nbuf and i < size:
                buf[i] ^= self._sbuf & 0xFF
                self._sbuf >>= 8
                self._nbuf -= 8
                i += 1
        return bytes(buf)

    def _partial_byte(self, buf: bytearray, i: int, mode: _Mode) -> None:
        shift = 32 - self._nbuf
        if mode is _Mode.DECRYPT:
            buf[i] ^= (self._sbuf >> shift) & 0xFF
            self._mbuf ^= buf[i] << shift
        else:
            self._mbuf ^= buf[i] << shift
            if mode is _Mode.ENCRYPT:
                buf[i] ^= (self._sbuf >> shift) & 0xFF
        self._nbuf -= 8

    def _absorb(self, data: bytes, mode: _Mode) -> bytes:
        buf = bytearray(data)
        size = len(buf)
        i = 0
        if self._nbuf:
            while self._nbuf and i < size:
                self._partial_byte(buf, i, mode)
                i += 1
            if self._nbuf:
                return bytes(buf)
            self._macfunc(self._mbuf)

        end = i + ((size - i) & ~0x3)
        while i < end:
            self._cycle()
            word = int.from_bytes(buf[i:i + 4], "little")
            if mode is _Mode.DECRYPT:
                word ^= self._sbuf
                self._macfunc(word)
            else:
                self._macfunc(word)
                if mode is _Mode.ENCRYPT:
                    word ^= self._sbuf
            buf[i:i + 4] = word.to_bytes(4, "little")
            i += 4

        if i < size:
            self._cycle()
            self._mbuf = 0
            self._nbuf = 32
            while self._nbuf and i < size:
                self._partial_byte(buf, i, mode)
                i += 1
        return bytes(buf)

    def mac_only(self, data: bytes) -> None:
        """Feed ``data`` into the MAC without encrypting it."""
        self._absorb(data, _Mode.MAC)

    def encrypt(self, data: bytes) -> bytes:
        """Encrypt ``data`` and feed the plaintext into the MAC."""
        return self._absorb(data, _Mode.ENCRYPT)

    def decrypt(self, data: bytes) -> bytes:
        """Decrypt ``data`` and feed the plaintext into the MAC."""
        return self._absorb(data, _Mode.DECRYPT)

    def finish(self, length: int) -> bytes:
        """Close the message and return a MAC of ``length`` bytes."""
        if length < 0:
            raise ValueError("MAC length must not be negative")
        if self._nbuf:
            self._macfunc(self._mbuf)

        self._cycle()
        self._r[_KEYP] ^= _INITKONST ^ (self._nbuf << 3)
        self._nbuf = 0

        self._r = [a ^ b for a, b in zip(self._r, self._crc)]
        self._diffuse()

        out = bytearray()
        remaining = length
        while remaining > 0:
            self._cycle()
            word = self._sbuf.to_bytes(4, "little")
            out += word[:min(4, remaining)]
            remaining -= 4
        return bytes(out)