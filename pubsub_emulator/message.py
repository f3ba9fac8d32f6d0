"""Published message and the push envelope delivered to subscription endpoints."""

import json
import random
import string
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

MESSAGE_ID_LENGTH = 5
_ID_ALPHABET = string.ascii_letters

# Push envelopes carry this literal instead of the real subscription name.
ENVELOPE_SUBSCRIPTION = "Subscription"


def generate_message_id(length: int = MESSAGE_ID_LENGTH) -> str:
    """Short random id; not cryptographically strong, only collision-avoiding in practice."""
    return "".join(random.choices(_ID_ALPHABET, k=length))


@dataclass
class Message:
    """Represents a message published to a topic."""

    data: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    message_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.message_id is None:
            self.message_id = generate_message_id()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attributes": dict(self.attributes),
            "data": self.data,
            "message_id": self.message_id,
        }

    def to_push_envelope(self) -> Dict[str, Any]:
        """Body POSTed to each push endpoint."""
        return {"message": self.to_dict(), "subscription": ENVELOPE_SUBSCRIPTION}

    def serialize(self) -> bytes:
        return json.dumps(self.to_push_envelope()).encode("utf-8")
