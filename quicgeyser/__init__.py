"""Geyser streaming data model, wire format, filters and block assembly."""

__version__ = "0.1.6"

__all__ = [
    "account",
    "block",
    "block_builder",
    "block_meta",
    "channel_message",
    "compression",
    "config",
    "filters",
    "message",
    "net",
    "primitives",
    "stream_buffer",
    "transaction",
    "wire",
]