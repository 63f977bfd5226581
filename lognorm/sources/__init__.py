"""Raw record sources."""

from lognorm.sources.base import MemorySource, RawSource
from lognorm.sources.local import LocalFileSource

__all__ = ["LocalFileSource", "MemorySource", "RawSource"]
