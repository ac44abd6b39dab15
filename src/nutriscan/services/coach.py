"""NutriCoach conversation relay and persistence."""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutriscan.adapters.gateway_stream_client import ByteStream, ChatStreamClient
from nutriscan.domain.chat import WELCOME_MESSAGE, ChatMessage, ChatRole
from nutriscan.domain.profiles import UserProfile
from nutriscan.services.chat_stream import ChatStreamParser

_logger = logging.getLogger(__name__)

NUTRICOACH_SYSTEM_PROMPT = """You are 'NutriCoach', a kind, non-judgmental, and \
highly analytical AI nutrition partner. Your goal is to guide the user towards \
sustainable nutritional habits.

## Core Behavior:
1. **Tone:** Always maintain a supportive, motivational interviewing style. Use \
gentle questions instead of commands. Never shame or lecture.
2. **Memory:** The conversation history is paramount. Always reference the \
user's previous goals, recent struggles, and progress.
3. **Personalization:** You have access to the user's health preferences \
(allergies, dietary restrictions, health conditions). Always tailor advice to \
their specific situation.
4. **Actionable Guidance:** When appropriate, provide specific, achievable \
suggestions. Focus on small wins and sustainable changes.
5. **Empathy First:** If a user expresses frustration or setback, acknowledge \
their feelings first before offering solutions.
6. **Tool Use:** When the user needs recipes or meal ideas, suggest healthy \
alternatives that fit their dietary needs.

## Response Style:
- Keep responses concise but warm (2-4 sentences typically)
- Ask one follow-up question to keep the conversation going
- Use emojis sparingly for warmth (1-2 max per message)
- Celebrate small victories enthusiastically"""


class ConversationRepository(Protocol):
    """Persistence interface for coach conversations."""

    def get_latest_conversation(self, user_id: UUID) -> UUID | None:
        """Return the most recently updated conversation id."""

    def create_conversation(self, user_id: UUID) -> UUID:
        """Create a conversation and return its id."""

    def list_messages(self, conversation_id: UUID) -> list[ChatMessage]:
        """Return messages ordered by creation time."""

    def add_message(self, conversation_id: UUID, message: ChatMessage) -> None:
        """Append a message to a conversation."""


def build_coach_system_prompt(profile: UserProfile | None) -> str:
    """Append the user's preferences to the base coach prompt."""
    prompt = NUTRICOACH_SYSTEM_PROMPT
    if profile is None:
        return prompt
    if profile.health_issues:
        prompt += f"\n\nUser's Health Conditions: {', '.join(sorted(profile.health_issues))}"
    allergies = profile.sensitivities | profile.intolerances
    if allergies:
        prompt += f"\nUser's Food Sensitivities/Allergies: {', '.join(sorted(allergies))}"
    if profile.dietary_preferences:
        prompt += (
            "\nUser's Dietary Preferences: "
            f"{', '.join(sorted(profile.dietary_preferences))}"
        )
    return prompt


@dataclass
class CoachService:
    """Relay coach replies from the gateway and persist the conversation."""

    stream_client: ChatStreamClient
    conversations: ConversationRepository
    model: str

    def load_history(self, user_id: UUID) -> tuple[UUID, list[ChatMessage]]:
        """Return the latest conversation, creating one when missing."""
        conversation_id = self.conversations.get_latest_conversation(user_id)
        if conversation_id is None:
            conversation_id = self.conversations.create_conversation(user_id)
            return conversation_id, [WELCOME_MESSAGE]
        history = self.conversations.list_messages(conversation_id)
        return conversation_id, history or [WELCOME_MESSAGE]

    async def open_reply(
        self,
        messages: list[ChatMessage],
        profile: UserProfile | None = None,
        conversation_id: UUID | None = None,
    ) -> AsyncIterator[bytes]:
        """Open a streamed reply; gateway errors raise before any bytes flow."""
        _logger.info(
            "NutriCoach processing %s messages for conversation %s",
            len(messages),
            conversation_id,
        )
        if conversation_id and messages and messages[-1].role is ChatRole.USER:
            self.conversations.add_message(conversation_id, messages[-1])
        payload: list[dict[str, object]] = [
            {"role": "system", "content": build_coach_system_prompt(profile)},
            *(message.to_payload() for message in messages),
        ]
        stream = await self.stream_client.open_stream(model=self.model, messages=payload)
        return self._relay(stream, conversation_id)

    async def _relay(
        self, stream: ByteStream, conversation_id: UUID | None
    ) -> AsyncIterator[bytes]:
        parser = ChatStreamParser()
        try:
            async for chunk in stream.aiter_bytes():
                parser.feed(chunk)
                yield chunk
        finally:
            await stream.aclose()
        content = parser.close()
        if conversation_id and content:
            self.conversations.add_message(
                conversation_id, ChatMessage(role=ChatRole.ASSISTANT, content=content)
            )
