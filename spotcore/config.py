"""Persistent player configuration stored as JSON."""

from __future__ import annotations

import json
import logging
import os
from enum import IntEnum
from pathlib import Path

from .json_format import format_json

logger = logging.getLogger(__name__)

_DEFAULT_VOLUME = 32767


class AudioFormat(IntEnum):
    """Audio formats selectable by bitrate."""

    OGG_VORBIS_96 = 0
    OGG_VORBIS_160 = 1
    OGG_VORBIS_320 = 2


_FORMAT_BY_BITRATE = {
    320: AudioFormat.OGG_VORBIS_320,
    160: AudioFormat.OGG_VORBIS_160,
    96: AudioFormat.OGG_VORBIS_96,
}
_BITRATE_BY_FORMAT = {fmt: rate for rate, fmt in _FORMAT_BY_BITRATE.items()}


class Config:
    """Device name, volume and audio format, kept in a JSON file."""

    def __init__(self, path: str | os.PathLike[str], default_device_name: str = "spotcore") -> None:
        self.path = os.fspath(path) if path else ""
        self.default_device_name = default_device_name
        self.volume = _DEFAULT_VOLUME
        self.device_name = default_device_name
        self.format = AudioFormat.OGG_VORBIS_160

    def _reset(self) -> None:
        self.volume = _DEFAULT_VOLUME
        self.device_name = self.default_device_name
        self.format = AudioFormat.OGG_VORBIS_160

    def load(self) -> bool:
        """Read the file; False when no path is configured.

        A missing or empty file resets every setting to its default. Keys
        absent from the file leave their settings unchanged.
        """
        if not self.path:
            return False
        try:
            text = Path(self.path).read_text(encoding="utf-8")
        except FileNotFoundError:
            text = ""

        if not text:
            self._reset()
            return True

        try:
            root = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("ignoring unreadable configuration in %s", self.path)
            return True
        if not isinstance(root, dict):
            logger.warning("ignoring configuration in %s: not an object", self.path)
            return True

        if "deviceName" in root:
            name = root["deviceName"]
            if not isinstance(name, str):
                raise ValueError("deviceName must be a string")
            self.device_name = name
        if "bitrate" in root:
            bitrate = root["bitrate"]
            if isinstance(bitrate, (int, float)) and not isinstance(bitrate, bool):
                self.format = _FORMAT_BY_BITRATE.get(int(bitrate), AudioFormat.OGG_VORBIS_320)
            else:
                self.format = AudioFormat.OGG_VORBIS_320
        if "volume" in root:
            volume = root["volume"]
            if isinstance(volume, bool) or not isinstance(volume, (int, float)):
                raise ValueError("volume must be a number")
            self.volume = int(volume)
        return True

    def save(self) -> bool:
        """Write the settings to the file; False when no path is configured."""
        if not self.path:
            return False
        text = format_json(
            {
                "volume": self.volume,
                "deviceName": self.device_name,
                "bitrate": _BITRATE_BY_FORMAT.get(self.format, 160),
            }
        )
        Path(self.path).write_text(text, encoding="utf-8")
        return True