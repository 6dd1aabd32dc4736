# healthchat/schemas.py
"""
Request and response bodies for the /chat endpoint.

The inbound body accepts either a single `message` or a `messages` list
(the shape chat frontends send). `ChatRequest.to_turn()` resolves both
forms into one `NormalizedTurn` so nothing downstream inspects optional
fields.
"""

from dataclasses import dataclass
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_SESSION_ID = "default"
FALLBACK_REPLY = "Sorry, I encountered an error. Please try again."

UtteranceSource = Literal["message", "messages", "none"]


def _text_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class ChatTurn(BaseModel):
    role: Optional[str] = Field(default=None, description="'user', 'assistant' or 'system'.")
    content: Optional[str] = None

    @field_validator("role", "content", mode="before")
    @classmethod
    def _drop_non_text(cls, value: Any) -> Optional[str]:
        return _text_or_none(value)


@dataclass(frozen=True)
class NormalizedTurn:
    """
    A request reduced to what the relay needs.

    Attributes
    ----------
    session_id : str
        Caller session id, or "default".
    utterance : str | None
        The user text to send, or None when the body carried none.
    source : str
        Which request field supplied the utterance.
    """
    session_id: str
    utterance: Optional[str]
    source: UtteranceSource


class ChatRequest(BaseModel):
    """
    Input schema for the /chat endpoint.

    Parsing never rejects a body: fields of the wrong type are treated as
    absent, so a malformed request resolves to no utterance.

    Attributes
    ----------
    message : str, optional
        Single user message. Takes precedence when non-empty.
    messages : list[ChatTurn], optional
        Full client-side conversation; only the last user entry is used.
    session_id : str, optional
        Sent as `sessionId`. Groups consecutive requests.
    """
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    messages: Optional[List[ChatTurn]] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    @model_validator(mode="before")
    @classmethod
    def _require_object(cls, data: Any) -> Any:
        # A JSON array, string or number body carries no usable fields.
        return data if isinstance(data, dict) else {}

    @field_validator("message", mode="before")
    @classmethod
    def _message_text(cls, value: Any) -> Optional[str]:
        return _text_or_none(value)

    @field_validator("messages", mode="before")
    @classmethod
    def _message_list(cls, value: Any) -> Optional[List[Any]]:
        if not isinstance(value, list):
            return None
        return [item for item in value if isinstance(item, (dict, ChatTurn))]

    @field_validator("session_id", mode="before")
    @classmethod
    def _session_text(cls, value: Any) -> Optional[str]:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return _text_or_none(value)

    def to_turn(self) -> NormalizedTurn:
        if self.message:
            return self._turn(self.message, "message")
        for turn in reversed(self.messages or []):
            if turn.role == "user" and turn.content:
                return self._turn(turn.content, "messages")
        return self._turn(None, "none")

    def _turn(self, utterance: Optional[str], source: UtteranceSource) -> NormalizedTurn:
        return NormalizedTurn(
            session_id=self.session_id or DEFAULT_SESSION_ID,
            utterance=utterance,
            source=source,
        )


class MessageContext(BaseModel):
    # Always None; the route drops None fields, so the key is omitted.
    thoughts: Optional[str] = None
    data_points: List[str] = Field(default_factory=list)


class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str
    context: MessageContext = Field(default_factory=MessageContext)


class Choice(BaseModel):
    message: AssistantMessage


class ChatResponse(BaseModel):
    """
    Output envelope for the /chat endpoint, in the chat-completion
    `choices` shape the frontend already parses.
    """
    choices: List[Choice]

    @classmethod
    def from_reply(cls, content: str) -> "ChatResponse":
        return cls(choices=[Choice(message=AssistantMessage(content=content))])


class ErrorResponse(BaseModel):
    error: str
    message: str
    reply: str = FALLBACK_REPLY
