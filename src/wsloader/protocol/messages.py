"""Wire envelope for requests sent to the target server."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from wsloader.protocol.payload import encode_frozen

if TYPE_CHECKING:
    from wsloader.protocol.payload import PayloadTemplate


class EventType(str, Enum):
    """Value of the envelope's ``type`` field."""

    REQUEST = "req"
    REJECT = "rej"
    RESULT = "res"
    INFO = "info"


class Topic(str, Enum):
    """Protocol paths a message can be addressed to."""

    UNIT_RESERVE = "/unit/reserve"
    VAULT_OPEN = "/vault/open"
    VAULT_BORROW = "/vault/borrow"
    VAULT_REPAY = "/vault/repay"
    VAULT_REPO = "/vault/repo"
    VAULT_DEPOSIT = "/vault/deposit"
    VAULT_WITHDRAW = "/vault/withdraw"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OutgoingMessage:
    """A single envelope ``{type, id, topic, data}``.

    Attributes:
        event_type: Kind of event; load traffic is always a request.
        correlation_id: Unique id of this message instance.
        topic: Protocol path the message is addressed to.
        data: Request body, shared with the payload template it came from.
    """

    event_type: EventType
    correlation_id: str
    topic: Topic
    data: Any

    @classmethod
    def request(
        cls,
        template: PayloadTemplate,
        topic: Topic = Topic.VAULT_OPEN,
    ) -> OutgoingMessage:
        """Build a fresh request around *template* with a new correlation id."""
        return cls(
            event_type=EventType.REQUEST,
            correlation_id=str(uuid.uuid4()),
            topic=topic,
            data=template.data,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the envelope as a plain dict (data left as-is)."""
        return {
            "type": self.event_type.value,
            "id": self.correlation_id,
            "topic": self.topic.value,
            "data": self.data,
        }

    def to_json(self) -> str:
        """Serialize the envelope to the text frame sent on the wire."""
        return json.dumps(self.to_dict(), default=encode_frozen, separators=(",", ":"))
