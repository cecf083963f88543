"""Candle and strategy summary persistence."""

from raderbot.storage.fs import FsStorageManager
from raderbot.storage.manager import StorageManager

__all__ = ["FsStorageManager", "StorageManager"]
