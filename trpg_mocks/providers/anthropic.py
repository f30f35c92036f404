"""Simulated Anthropic client (messages API)."""

from typing import Any

from .base import ProviderInstance


class _Messages:
    def __init__(self, owner: "AnthropicMock"):
        self._owner = owner

    async def create(self, **params: Any) -> dict[str, Any]:
        return await self._owner.invoke(params)


class AnthropicMock(ProviderInstance):
    """Mirrors ``client.messages.create(model=..., max_tokens=..., messages=[...])``.

    The prompt is the content of the first message.
    """

    provider_name = "anthropic"
    display_name = "Anthropic"
    style = "messages"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.messages = _Messages(self)
