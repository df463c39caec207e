"""Request payload and wire envelope."""

from __future__ import annotations

from wsloader.protocol.messages import EventType, OutgoingMessage, Topic
from wsloader.protocol.payload import PayloadTemplate, load_payload

__all__ = [
    "EventType",
    "OutgoingMessage",
    "PayloadTemplate",
    "Topic",
    "load_payload",
]
