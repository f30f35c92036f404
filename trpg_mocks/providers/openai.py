"""Simulated OpenAI client (chat completions)."""

from typing import Any

from .base import ProviderInstance


class _Completions:
    def __init__(self, owner: "OpenAIMock"):
        self._owner = owner

    async def create(self, **params: Any) -> dict[str, Any]:
        return await self._owner.invoke(params)


class _Chat:
    def __init__(self, owner: "OpenAIMock"):
        self.completions = _Completions(owner)


class OpenAIMock(ProviderInstance):
    """Mirrors ``client.chat.completions.create(model=..., messages=[...])``.

    The prompt is the content of the last message.
    """

    provider_name = "openai"
    display_name = "OpenAI"
    style = "chat"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.chat = _Chat(self)
