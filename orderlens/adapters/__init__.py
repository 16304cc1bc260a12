"""Source adapters: raw records to immutable Transactions."""

from .base_adapter import BaseAdapter
from .record_adapter import RecordAdapter

__all__ = ["BaseAdapter", "RecordAdapter"]
