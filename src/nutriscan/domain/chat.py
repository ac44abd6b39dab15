"""Chat transcript models."""

from dataclasses import dataclass
from enum import Enum


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """Single turn in a coach conversation."""

    role: ChatRole
    content: str

    def to_payload(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


WELCOME_MESSAGE = ChatMessage(
    role=ChatRole.ASSISTANT,
    content=(
        "Hey there! I'm NutriCoach, your personal nutrition partner. "
        "I'm here to support you on your health journey - no judgment, just "
        "helpful guidance. What's on your mind today?"
    ),
)
