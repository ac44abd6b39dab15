"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, StreamingResponse

from nutriscan.api.models import (
    AnalysisPayload,
    AnalyzeRequest,
    ContextualizeRequest,
    CoachRequest,
    OnboardingRequest,
    PreferencesPayload,
)
from nutriscan.app_logging import configure_logging
from nutriscan.containers import AppContainer
from nutriscan.domain.errors import (
    AIContractError,
    GatewayError,
    InvalidImageError,
    NutriScanError,
)
from nutriscan.domain.nutrition import ImagePayload
from nutriscan.domain.profiles import UserProfile


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/analyze-nutrition")
    async def analyze_nutrition(payload: AnalyzeRequest, request: Request) -> JSONResponse:
        """Resolve and analyze a product from a barcode or label photo."""
        state_container: AppContainer = request.app.state.container
        image = None
        if payload.image:
            try:
                image = ImagePayload.from_data_url(payload.image)
            except InvalidImageError as exc:
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"error": exc.message, "suggestion": exc.remediation},
                )
        profile = _resolve_profile(
            state_container, payload.user_preferences, payload.user_id, logger
        )
        session = await state_container.scan_pipeline.run(
            barcode=payload.barcode, image=image, profile=profile
        )
        if session.failure is not None:
            content: dict[str, object] = {"error": session.failure.message}
            if session.failure.suggestion:
                content["suggestion"] = session.failure.suggestion
            return JSONResponse(status_code=session.failure.status_code, content=content)
        analysis = AnalysisPayload.build(session.record, session.analysis)
        return JSONResponse(
            content={"analysis": analysis.model_dump(mode="json", by_alias=True)}
        )

    @app.post("/contextualize-nutrition")
    async def contextualize_nutrition(
        payload: ContextualizeRequest, request: Request
    ) -> JSONResponse:
        """Return a personalized narrative for raw nutrition data."""
        state_container: AppContainer = request.app.state.container
        profile = payload.user_preferences.to_profile() if payload.user_preferences else None
        try:
            context = await state_container.contextualizer.contextualize(
                payload.product_name, payload.nutrition_data, profile
            )
        except NutriScanError as exc:
            logger.exception("Contextualize nutrition error")
            return _error_response(state_container, exc)
        return JSONResponse(content=context.model_dump(mode="json", by_alias=True))

    @app.post("/nutricoach", response_model=None)
    async def nutricoach(
        payload: CoachRequest, request: Request
    ) -> StreamingResponse | JSONResponse:
        """Stream a NutriCoach reply as server-sent events."""
        state_container: AppContainer = request.app.state.container
        profile = _resolve_profile(
            state_container, payload.user_preferences, payload.user_id, logger
        )
        conversation_id = payload.conversation_id
        if conversation_id is None and payload.user_id is not None:
            conversation_id, _ = state_container.coach_service.load_history(payload.user_id)
        try:
            stream = await state_container.coach_service.open_reply(
                [message.to_message() for message in payload.messages],
                profile=profile,
                conversation_id=conversation_id,
            )
        except GatewayError as exc:
            logger.error("AI gateway error %s: %s", exc.status_code, exc.detail)
            return _error_response(state_container, exc)
        return StreamingResponse(stream, media_type="text/event-stream")

    @app.get("/nutricoach/history/{user_id}")
    async def nutricoach_history(user_id: UUID, request: Request) -> dict[str, object]:
        """Return the latest conversation and its messages."""
        state_container: AppContainer = request.app.state.container
        conversation_id, messages = state_container.coach_service.load_history(user_id)
        return {
            "conversationId": str(conversation_id),
            "messages": [message.to_payload() for message in messages],
        }

    @app.post("/onboarding")
    async def onboarding(payload: OnboardingRequest, request: Request) -> dict[str, str]:
        """Save onboarding answers."""
        state_container: AppContainer = request.app.state.container
        state_container.profile_service.save_onboarding(
            payload.user_id,
            payload.to_profile(),
            age=payload.age,
            gender=payload.gender,
        )
        return {"status": "ok"}

    @app.get("/profiles/{user_id}")
    async def get_profile(user_id: UUID, request: Request) -> dict[str, object]:
        """Return a user's health preferences."""
        state_container: AppContainer = request.app.state.container
        profile = state_container.profile_service.get_profile(user_id)
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return PreferencesPayload.from_profile(profile).model_dump()

    return app


def _resolve_profile(
    state_container: AppContainer,
    preferences: PreferencesPayload | None,
    user_id: UUID | None,
    logger: logging.Logger,
) -> UserProfile | None:
    """Prefer preferences sent with the request; fall back to the stored ones."""
    if preferences is not None:
        return preferences.to_profile()
    try:
        return state_container.profile_service.get_profile(user_id)
    except Exception:
        logger.exception("Failed to load health preferences", extra={"user_id": user_id})
        return None


def _error_response(state_container: AppContainer, exc: NutriScanError) -> JSONResponse:
    """Map a typed error to a JSON error body with a matching status."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = type(exc).message
    if isinstance(exc, GatewayError) and exc.status_code in {402, 429}:
        status_code = exc.status_code
    if isinstance(exc, AIContractError):
        message = "Invalid JSON response from AI"
    if state_container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        message = f"{message} (debug: {detail})"
    return JSONResponse(status_code=status_code, content={"error": message})
