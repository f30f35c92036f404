"""Simulated Google Generative AI client (Gemini generate content)."""

from typing import Any

from .base import ProviderInstance


class GenerativeModelMock:
    """Model handle returned by :meth:`GoogleGenerativeAIMock.get_generative_model`.

    Shares the parent's scenario, so a scenario change on the client applies
    to every model it handed out.
    """

    def __init__(self, model: str, parent: "GoogleGenerativeAIMock"):
        self.model = model
        self._parent = parent

    async def generate_content(self, prompt: str | dict[str, Any]) -> dict[str, Any]:
        if isinstance(prompt, str):
            request: dict[str, Any] = {"prompt": prompt, "model": self.model}
        else:
            request = {**prompt, "model": self.model}
        return await self._parent.invoke(request)


class GoogleGenerativeAIMock(ProviderInstance):
    """Mirrors ``GoogleGenerativeAI(key).getGenerativeModel({model}).generateContent(prompt)``.

    ``body["response"]["text"]()`` returns the generated text.
    """

    provider_name = "google"
    display_name = "Google"
    style = "generate"

    def get_generative_model(self, model: str = "gemini-2.0-flash-lite") -> GenerativeModelMock:
        return GenerativeModelMock(model, self)
