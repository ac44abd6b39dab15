"""OpenAI-compatible chat completions client for the AI gateway."""

from dataclasses import dataclass
from typing import Protocol

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from nutriscan.domain.errors import (
    GATEWAY_UNREACHABLE_STATUS,
    AIContractError,
    GatewayError,
    gateway_error_for_status,
)


class ChatCompletionClient(Protocol):
    """Interface for non-streaming chat completions."""

    async def complete(
        self, *, model: str, messages: list[dict[str, object]]
    ) -> str:
        """Return the assistant message content."""


@dataclass
class OpenAIChatClient(ChatCompletionClient):
    """Chat client backed by the OpenAI SDK pointed at the gateway."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls, api_key: str, base_url: str, timeout_seconds: float = 60.0
    ) -> "OpenAIChatClient":
        """Create a client without SDK-level retries."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout_seconds,
                max_retries=0,
            )
        )

    async def complete(
        self, *, model: str, messages: list[dict[str, object]]
    ) -> str:
        """Call chat completions and return the first choice's content."""
        try:
            response = await self.client.chat.completions.create(
                model=model, messages=messages
            )
        except APIStatusError as exc:
            raise gateway_error_for_status(exc.status_code, exc.message) from exc
        except APIConnectionError as exc:
            raise GatewayError(GATEWAY_UNREACHABLE_STATUS, str(exc)) from exc
        if not response.choices:
            raise AIContractError("Gateway returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise AIContractError("Gateway returned an empty message")
        return content

    async def close(self) -> None:
        """Close the underlying SDK client."""
        await self.client.close()
