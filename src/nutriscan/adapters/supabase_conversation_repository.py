"""Supabase-backed coach conversation repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutriscan.domain.chat import ChatMessage, ChatRole
from nutriscan.services.coach import ConversationRepository


@dataclass
class SupabaseConversationRepository(ConversationRepository):
    """Supabase implementation for conversations and chat messages."""

    client: Client

    def get_latest_conversation(self, user_id: UUID) -> UUID | None:
        """Return the most recently updated conversation for a user."""
        response = (
            self.client.table("conversations")
            .select("id")
            .eq("user_id", str(user_id))
            .order("updated_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return UUID(response.data[0]["id"])

    def create_conversation(self, user_id: UUID) -> UUID:
        """Create a conversation row and return its id."""
        response = (
            self.client.table("conversations")
            .insert({"user_id": str(user_id)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create conversation")
        return UUID(response.data[0]["id"])

    def list_messages(self, conversation_id: UUID) -> list[ChatMessage]:
        """Return chat messages ordered by creation time."""
        response = (
            self.client.table("chat_messages")
            .select("role, content")
            .eq("conversation_id", str(conversation_id))
            .order("created_at")
            .execute()
        )
        return [
            ChatMessage(role=ChatRole(row["role"]), content=row["content"])
            for row in response.data or []
        ]

    def add_message(self, conversation_id: UUID, message: ChatMessage) -> None:
        """Insert a chat message and bump the conversation timestamp."""
        self.client.table("chat_messages").insert(
            {
                "conversation_id": str(conversation_id),
                "role": message.role.value,
                "content": message.content,
            }
        ).execute()
        self.client.table("conversations").update(
            {"updated_at": datetime.now(tz=UTC).isoformat()}
        ).eq("id", str(conversation_id)).execute()
