"""Check history storage."""

from pingai.history.jsonl_store import HistoryPage, HistoryRecord, HistoryStore

__all__ = ["HistoryPage", "HistoryRecord", "HistoryStore"]
