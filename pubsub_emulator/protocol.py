"""Wire shapes for the HTTP surface (request bodies, topic references, fixed responses)."""

from typing import Dict, List, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from pubsub_emulator.errors import MalformedRequest
from pubsub_emulator.message import Message

PROJECT = "localhost"
API_PREFIX = f"/v1/projects/{PROJECT}"
TOPIC_PREFIX = f"projects/{PROJECT}/topics/"

HEALTH_TEXT = "pub sub is running OK!!"

ModelT = TypeVar("ModelT", bound=BaseModel)


# ---- Subscriptions ----

class PushConfig(BaseModel):
    push_endpoint: str = Field(alias="pushEndpoint", min_length=1)


class SubscriptionBody(BaseModel):
    """PUT /subscriptions/{subId} body."""
    topic: str
    push_config: PushConfig = Field(alias="pushConfig")

    @property
    def topic_name(self) -> str:
        return short_topic_name(self.topic)

    @property
    def push_endpoint(self) -> str:
        return self.push_config.push_endpoint


# ---- Publish ----

class PubsubMessageBody(BaseModel):
    attributes: Dict[str, str] = Field(default_factory=dict)
    data: str = ""

    def to_message(self) -> Message:
        """Fresh Message with a newly generated message id."""
        return Message(data=self.data, attributes=dict(self.attributes))


class PublishRequest(BaseModel):
    """POST /topics/{topic}:publish body."""
    messages: List[PubsubMessageBody] = Field(default_factory=list)


def short_topic_name(reference: str) -> str:
    """projects/localhost/topics/<name> -> <name>."""
    if not reference.startswith(TOPIC_PREFIX) or len(reference) == len(TOPIC_PREFIX):
        raise MalformedRequest(
            f"topic {reference!r} must be of the form {TOPIC_PREFIX}<name>"
        )
    return reference[len(TOPIC_PREFIX):]


def decode_body(model: Type[ModelT], raw: bytes) -> ModelT:
    """Validate a JSON body against a model; any decode failure becomes MalformedRequest."""
    try:
        return model.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedRequest(f"malformed request body: {exc.errors()[0]['msg']}") from exc
