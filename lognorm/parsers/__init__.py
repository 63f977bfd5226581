"""Parser adapters turning raw records into candidate records."""

from lognorm.parsers.adapters import CSVAdapter, JSONAdapter, KeyValueAdapter, RegexAdapter
from lognorm.parsers.base import CandidateRecord, ParserAdapter, RawRecord, adapter_factory

__all__ = [
    "CandidateRecord",
    "CSVAdapter",
    "JSONAdapter",
    "KeyValueAdapter",
    "ParserAdapter",
    "RawRecord",
    "RegexAdapter",
    "adapter_factory",
]
