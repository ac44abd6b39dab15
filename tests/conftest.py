"""Shared test fixtures."""

import json
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from uuid import UUID, uuid4

import pytest

from nutriscan.adapters.gateway_stream_client import ByteStream, ChatStreamClient
from nutriscan.adapters.openai_chat_client import ChatCompletionClient
from nutriscan.adapters.openfoodfacts_client import ProductDatabaseClient
from nutriscan.config import Settings
from nutriscan.containers import AppContainer
from nutriscan.domain.chat import ChatMessage
from nutriscan.domain.profiles import UserProfile
from nutriscan.services.analysis import AnalysisOrchestrator
from nutriscan.services.coach import CoachService, ConversationRepository
from nutriscan.services.contextualizer import NutritionContextualizer
from nutriscan.services.labels import LabelExtractor
from nutriscan.services.pipeline import ScanPipeline
from nutriscan.services.products import ProductResolver
from nutriscan.services.profiles import ProfileRepository, ProfileService

ANALYSIS_REPLY = """```json
{
  "healthScore": 7,
  "category": "healthy",
  "riskIngredients": [
    {"name": "palm oil", "risk": "medium", "explanation": "Saturated fat"}
  ],
  "recommendations": ["Pair with fruit"],
  "aiExplanation": "A reasonable snack.",
  "healthierAlternatives": [
    {"name": "Oat Bar", "brand": "Acme", "reason": "Less sugar", "estimatedScore": 8}
  ]
}
```"""


def sse_frame(content: str) -> bytes:
    """Encode one chat-completion delta as an SSE data line."""
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(payload)}\n\n".encode()


@dataclass
class FakeChatClient(ChatCompletionClient):
    """Fake chat client returning queued replies in order."""

    replies: list[str | Exception] = field(default_factory=list)
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete(
        self, *, model: str, messages: list[dict[str, object]]
    ) -> str:
        self.calls.append({"model": model, "messages": messages})
        if not self.replies:
            raise AssertionError("Unexpected chat completion call")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@dataclass
class FakeProductDatabase(ProductDatabaseClient):
    """Fake product database keyed by region (None is the primary host)."""

    payloads: dict[str | None, dict[str, object] | Exception] = field(
        default_factory=dict
    )
    calls: list[tuple[str, str | None]] = field(default_factory=list)

    async def fetch_product(
        self, barcode: str, region: str | None = None
    ) -> dict[str, object]:
        self.calls.append((barcode, region))
        payload = self.payloads.get(region, {"status": 0})
        if isinstance(payload, Exception):
            raise payload
        return payload


@dataclass
class FakeByteStream(ByteStream):
    """Byte stream that yields fixed chunks and records closing."""

    chunks: list[bytes] = field(default_factory=list)
    closed: bool = False

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class FakeStreamClient(ChatStreamClient):
    """Fake streaming client returning prepared streams."""

    streams: list[FakeByteStream | Exception] = field(default_factory=list)
    calls: list[dict[str, object]] = field(default_factory=list)

    async def open_stream(
        self, *, model: str, messages: list[dict[str, object]]
    ) -> ByteStream:
        self.calls.append({"model": model, "messages": messages})
        stream = self.streams.pop(0)
        if isinstance(stream, Exception):
            raise stream
        return stream

    async def open_coach_stream(
        self,
        messages: list[dict[str, str]],
        user_preferences: dict[str, list[str]] | None = None,
        conversation_id: UUID | None = None,
    ) -> ByteStream:
        return await self.open_stream(model="coach", messages=messages)


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile repository for tests."""

    profiles: dict[UUID, dict[str, object]] = field(default_factory=dict)
    preferences: dict[UUID, UserProfile] = field(default_factory=dict)

    def update_profile(self, user_id: UUID, age: int | None, gender: str | None) -> None:
        self.profiles[user_id] = {"age": age, "gender": gender}

    def save_health_preferences(self, user_id: UUID, profile: UserProfile) -> None:
        self.preferences[user_id] = profile

    def get_health_preferences(self, user_id: UUID) -> UserProfile | None:
        return self.preferences.get(user_id)


@dataclass
class InMemoryConversationRepository(ConversationRepository):
    """In-memory conversation repository for tests."""

    conversations: dict[UUID, UUID] = field(default_factory=dict)
    messages: dict[UUID, list[ChatMessage]] = field(default_factory=dict)

    def get_latest_conversation(self, user_id: UUID) -> UUID | None:
        for conversation_id, owner in reversed(self.conversations.items()):
            if owner == user_id:
                return conversation_id
        return None

    def create_conversation(self, user_id: UUID) -> UUID:
        conversation_id = uuid4()
        self.conversations[conversation_id] = user_id
        self.messages[conversation_id] = []
        return conversation_id

    def list_messages(self, conversation_id: UUID) -> list[ChatMessage]:
        return list(self.messages.get(conversation_id, []))

    def add_message(self, conversation_id: UUID, message: ChatMessage) -> None:
        self.messages.setdefault(conversation_id, []).append(message)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        ai_gateway_api_key="gateway-key",
        environment="test",
    )


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def product_database() -> FakeProductDatabase:
    return FakeProductDatabase()


@pytest.fixture
def stream_client() -> FakeStreamClient:
    return FakeStreamClient()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def conversation_repository() -> InMemoryConversationRepository:
    return InMemoryConversationRepository()


@pytest.fixture
def container(
    settings: Settings,
    chat_client: FakeChatClient,
    product_database: FakeProductDatabase,
    stream_client: FakeStreamClient,
    profile_repository: InMemoryProfileRepository,
    conversation_repository: InMemoryConversationRepository,
) -> AppContainer:
    model = settings.ai_model
    scan_pipeline = ScanPipeline(
        resolver=ProductResolver(
            database=product_database,
            search_client=chat_client,
            model=model,
        ),
        label_extractor=LabelExtractor(client=chat_client, model=model),
        orchestrator=AnalysisOrchestrator(client=chat_client, model=model),
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        scan_pipeline=scan_pipeline,
        contextualizer=NutritionContextualizer(client=chat_client, model=model),
        coach_service=CoachService(
            stream_client=stream_client,
            conversations=conversation_repository,
            model=model,
        ),
        profile_service=ProfileService(profile_repository),
        close_resources=close_resources,
    )
