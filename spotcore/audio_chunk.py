"""Encrypted audio chunks and their AES-CTR counter arithmetic."""

from __future__ import annotations

import threading

from .crypto import aes_ctr_xcrypt

_AUDIO_AES_IV = bytes(
    [0x72, 0xE0, 0x67, 0xFB, 0xDD, 0xCB, 0xCF, 0x77, 0xEB, 0xE8, 0xBC, 0x64, 0x3F, 0x63, 0x0D, 0x93]
)
_IV_MODULUS = 1 << (8 * len(_AUDIO_AES_IV))


def iv_sum(n: int) -> bytes:
    """Return the audio IV advanced by ``n`` AES blocks."""
    if n < 0:
        raise ValueError("block offset must not be negative")
    value = (int.from_bytes(_AUDIO_AES_IV, "big") + n) % _IV_MODULUS
    return value.to_bytes(len(_AUDIO_AES_IV), "big")


class AudioChunk:
    """A byte range of an encrypted audio file.

    ``header_loaded`` and ``loaded`` are events for the code that feeds
    the chunk to signal readers waiting on its header or its data.
    """

    def __init__(self, seq_id: int, audio_key: bytes, start_position: int, end_position: int) -> None:
        self.seq_id = seq_id
        self.audio_key = bytes(audio_key)
        self.start_position = start_position
        self.end_position = end_position
        self.decrypted_data = bytearray()
        self.header_file_size = 0
        self.is_loaded = False
        self.is_failed = False
        self.keep_in_memory = False
        self.header_loaded = threading.Event()
        self.loaded = threading.Event()

    def append_data(self, data: bytes) -> None:
        """Append received encrypted bytes."""
        self.decrypted_data += data

    def decrypt(self) -> None:
        """Decrypt the received bytes in place and mark the chunk loaded.

        The start position is then recomputed from the end position and the
        amount of data received.
        """
        iv = iv_sum(self.start_position // 16)
        self.decrypted_data = bytearray(aes_ctr_xcrypt(self.audio_key, iv, bytes(self.decrypted_data)))
        self.start_position = self.end_position - len(self.decrypted_data)
        self.is_loaded = True