"""Protocol interfaces for pluggable components."""

from pingai.protocols.adapter import ChatResponse, PingResult, ProtocolAdapter, StreamResponse
from pingai.protocols.config_source import ConfigSource
from pingai.protocols.history import HistorySink
from pingai.protocols.reporter import Reporter

__all__ = [
    "ChatResponse",
    "ConfigSource",
    "HistorySink",
    "PingResult",
    "ProtocolAdapter",
    "Reporter",
    "StreamResponse",
]
