"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutriscan.adapters.gateway_stream_client import HttpxChatStreamClient
from nutriscan.adapters.openai_chat_client import OpenAIChatClient
from nutriscan.adapters.openfoodfacts_client import HttpxOpenFoodFactsClient
from nutriscan.adapters.supabase_conversation_repository import (
    SupabaseConversationRepository,
)
from nutriscan.adapters.supabase_profile_repository import SupabaseProfileRepository
from nutriscan.config import Settings, parse_regions
from nutriscan.services.analysis import AnalysisOrchestrator
from nutriscan.services.coach import CoachService
from nutriscan.services.contextualizer import NutritionContextualizer
from nutriscan.services.labels import LabelExtractor
from nutriscan.services.pipeline import ScanPipeline
from nutriscan.services.products import ProductResolver
from nutriscan.services.profiles import ProfileService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    scan_pipeline: ScanPipeline
    contextualizer: NutritionContextualizer
    coach_service: CoachService
    profile_service: ProfileService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    profile_repository = SupabaseProfileRepository(supabase_client)
    conversation_repository = SupabaseConversationRepository(supabase_client)
    chat_client = OpenAIChatClient.create(
        api_key=resolved_settings.ai_gateway_api_key,
        base_url=resolved_settings.ai_gateway_base_url,
        timeout_seconds=resolved_settings.http_timeout_seconds * 4,
    )
    stream_client = HttpxChatStreamClient.create(
        api_key=resolved_settings.ai_gateway_api_key,
        base_url=resolved_settings.ai_gateway_base_url,
        timeout_seconds=resolved_settings.http_timeout_seconds * 4,
    )
    product_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.openfoodfacts_base_url,
        timeout_seconds=resolved_settings.http_timeout_seconds,
    )
    model = resolved_settings.ai_model
    scan_pipeline = ScanPipeline(
        resolver=ProductResolver(
            database=product_client,
            search_client=chat_client,
            model=model,
            regions=parse_regions(resolved_settings.openfoodfacts_regions),
        ),
        label_extractor=LabelExtractor(client=chat_client, model=model),
        orchestrator=AnalysisOrchestrator(client=chat_client, model=model),
    )
    contextualizer = NutritionContextualizer(client=chat_client, model=model)
    coach_service = CoachService(
        stream_client=stream_client,
        conversations=conversation_repository,
        model=model,
    )
    profile_service = ProfileService(profile_repository)

    async def close_resources() -> None:
        await product_client.close()
        await stream_client.close()
        await chat_client.close()

    return AppContainer(
        settings=resolved_settings,
        scan_pipeline=scan_pipeline,
        contextualizer=contextualizer,
        coach_service=coach_service,
        profile_service=profile_service,
        close_resources=close_resources,
    )
