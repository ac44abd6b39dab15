"""Client-side coach conversation driven by the streaming endpoint."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from nutriscan.adapters.gateway_stream_client import ByteStream
from nutriscan.domain.chat import WELCOME_MESSAGE, ChatRole
from nutriscan.services.chat_stream import ChatStreamParser, Transcript


class CoachStreamOpener(Protocol):
    """Interface for opening a coach reply stream."""

    async def open_coach_stream(
        self,
        messages: list[dict[str, str]],
        user_preferences: dict[str, list[str]] | None = None,
        conversation_id: UUID | None = None,
    ) -> ByteStream:
        """Open the stream; raise a typed error for non-OK responses."""


@dataclass
class CoachConversation:
    """Ordered transcript plus one in-flight reply at a time."""

    client: CoachStreamOpener
    transcript: Transcript = field(
        default_factory=lambda: Transcript(messages=[WELCOME_MESSAGE])
    )
    conversation_id: UUID | None = None
    user_preferences: dict[str, list[str]] | None = None
    busy: bool = False

    async def send(
        self, text: str, on_delta: Callable[[str], None] | None = None
    ) -> str:
        """Send a user turn and return the assistant reply."""
        text = text.strip()
        if not text or self.busy:
            return ""
        self.transcript.append(ChatRole.USER, text)
        self.busy = True
        try:
            stream = await self.client.open_coach_stream(
                messages=self.transcript.to_payload(),
                user_preferences=self.user_preferences,
                conversation_id=self.conversation_id,
            )
            parser = ChatStreamParser(self.transcript, on_delta=on_delta)
            try:
                async for chunk in stream.aiter_bytes():
                    parser.feed(chunk)
                    if parser.done:
                        break
            finally:
                await stream.aclose()
            return parser.close()
        finally:
            self.busy = False
