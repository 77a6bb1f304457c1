from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatMessage(BaseModel):
    """A single role-tagged turn in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(..., pattern="^(user|assistant)$")
    content: str


class ConversationRequest(BaseModel):
    """Request body for relaying a conversation to the model."""

    messages: list[ChatMessage] = Field(..., min_length=1)

    @field_validator("messages")
    @classmethod
    def last_message_from_user(cls, messages: list[ChatMessage]) -> list[ChatMessage]:
        if messages[-1].role != "user":
            raise ValueError("the last message must come from the user")
        return messages


class RelayResponse(BaseModel):
    """Assistant reply plus the crisis flag for the latest user message."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    is_crisis: bool = Field(..., alias="isCrisis")


class ErrorResponse(BaseModel):
    error: str


# Upstream gateway reply (OpenAI-compatible chat completion).
# Only the fields we read are declared; everything else is ignored.


class CompletionMessage(BaseModel):
    role: str | None = None
    content: str | None = None


class CompletionChoice(BaseModel):
    message: CompletionMessage | None = None


class ChatCompletion(BaseModel):
    choices: list[CompletionChoice] | None = None

    def reply_text(self) -> str | None:
        """Content of the first choice as sent, or None if absent or blank."""
        if not self.choices:
            return None
        message = self.choices[0].message
        if message is None or not message.content:
            return None
        return message.content if message.content.strip() else None
