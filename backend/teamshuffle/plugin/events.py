"""Game client event payloads.

The client publishes API changes over a WAMP websocket as
``[8, "<event name>", <payload>]`` frames. The host relays those frames (or an
equivalent ``{"event": ..., "payload": ...}`` object) to the dispatcher.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

CONVERSATIONS_EVENT = "OnJsonApiEvent_lol-chat_v1_conversations"
WAMP_EVENT_OPCODE = 8


class ChatMessageData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = ""
    body: str = ""


class ConversationEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    event_type: str = Field(alias="eventType")
    # {conversation}/messages/{message id}
    uri: str = Field(pattern=r"^/.+/[^/]+$")
    data: ChatMessageData | None = None

    @property
    def messages_url(self) -> str:
        """Endpoint for posting to the conversation this message belongs to."""
        return self.uri[: self.uri.rfind("/")]


class EventFrame(BaseModel):
    event: str = Field(min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)


def parse_event_frame(raw: Any) -> EventFrame:  # noqa: ANN401
    """Parse a WAMP event frame or an ``{"event", "payload"}`` object.

    Raises ValueError (or pydantic's ValidationError) for anything else.
    """
    if isinstance(raw, list):
        if len(raw) != 3 or raw[0] != WAMP_EVENT_OPCODE:  # noqa: PLR2004
            raise ValueError("Expected a WAMP event frame [8, name, payload]")
        _, event, payload = raw
        return EventFrame(event=event, payload=payload)
    if isinstance(raw, dict):
        return EventFrame.model_validate(raw)
    raise ValueError(f"Unsupported event body of type {type(raw).__name__}")
