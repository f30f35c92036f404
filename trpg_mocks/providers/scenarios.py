"""Scenario model and the pure outcome decision for provider simulators."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .content import select_content


class Scenario(str, Enum):
    """Outcome mode a provider instance produces on its next invocations."""

    SUCCESS = "success"
    API_ERROR = "api_error"
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    INVALID_KEY = "invalid_key"
    MODEL_NOT_FOUND = "model_not_found"


FAILURE_DESCRIPTIONS = {
    Scenario.API_ERROR: "API Error: Request failed",
    Scenario.TIMEOUT: "Request timeout",
    Scenario.RATE_LIMIT: "Rate limit exceeded",
    Scenario.INVALID_KEY: "Invalid API key",
    Scenario.MODEL_NOT_FOUND: "Model not found",
}


class ScenarioConfig(BaseModel):
    """Active scenario of a provider instance. Replaced wholesale, never merged."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        frozen=True,
    )

    scenario: Scenario = Scenario.SUCCESS
    delay_ms: int = Field(default=0, ge=0)
    custom_response_body: str | dict[str, Any] | None = None
    custom_error: str | Exception | None = None


@dataclass(frozen=True)
class Success:
    body: dict[str, Any]


@dataclass(frozen=True)
class Failure:
    kind: str
    message: str
    cause: Exception | None = None


Outcome = Success | Failure


# ---------------------------------------------------------------------------
# Request parsing and response bodies, per call style
# ---------------------------------------------------------------------------


def _message_text(message: Any) -> str:
    if isinstance(message, dict):
        content = message.get("content", "")
    else:
        content = getattr(message, "content", "")
    if isinstance(content, list):
        return " ".join(
            part.get("text", "") for part in content if isinstance(part, dict)
        )
    return content or ""


def extract_prompt(style: str, request: Any) -> str:
    """Pull the prompt text out of a provider-native request."""
    if isinstance(request, str):
        return request
    request = request or {}
    if style == "chat":
        messages = request.get("messages") or []
        return _message_text(messages[-1]) if messages else ""
    if style == "messages":
        messages = request.get("messages") or []
        return _message_text(messages[0]) if messages else ""
    if style == "generate":
        if "prompt" in request:
            return request["prompt"] or ""
        contents = request.get("contents") or []
        if contents:
            parts = contents[0].get("parts") or []
            return " ".join(part.get("text", "") for part in parts)
        return ""
    raise ValueError(f"Unknown call style: {style}")


def chat_completion_body(text: str, request: dict[str, Any]) -> dict[str, Any]:
    return {
        "choices": [{"message": {"content": text}}],
        "usage": {"total_tokens": 150, "prompt_tokens": 100, "completion_tokens": 50},
        "model": request.get("model") or "gpt-3.5-turbo",
    }


def messages_body(text: str, request: dict[str, Any]) -> dict[str, Any]:
    return {
        "content": [{"type": "text", "text": text}],
        "usage": {"input_tokens": 120, "output_tokens": 80},
        "model": request.get("model") or "claude-3-haiku-20240307",
    }


def generate_content_body(text: str, request: dict[str, Any]) -> dict[str, Any]:
    return {"response": {"text": lambda: text}}


BODY_BUILDERS: dict[str, Callable[[str, dict[str, Any]], dict[str, Any]]] = {
    "chat": chat_completion_body,
    "messages": messages_body,
    "generate": generate_content_body,
}


def decide_outcome(
    config: ScenarioConfig,
    style: str,
    request: Any,
    provider_label: str = "Provider",
) -> Outcome:
    """Compute the outcome of one invocation.

    Pure: depends only on the scenario snapshot and the request. Timing and
    dispatch live in the provider instance.
    """
    scenario = Scenario(config.scenario)

    if scenario is not Scenario.SUCCESS:
        if config.custom_error is not None:
            cause = config.custom_error if isinstance(config.custom_error, Exception) else None
            return Failure(kind=scenario.value, message=str(config.custom_error), cause=cause)
        description = FAILURE_DESCRIPTIONS[scenario]
        return Failure(
            kind=scenario.value,
            message=f"{provider_label} simulated {scenario.value}: {description}",
        )

    request_dict = request if isinstance(request, dict) else {}
    if isinstance(config.custom_response_body, dict):
        return Success(body=dict(config.custom_response_body))
    if isinstance(config.custom_response_body, str):
        text = config.custom_response_body
    else:
        text = select_content(style, extract_prompt(style, request))
    return Success(body=BODY_BUILDERS[style](text, request_dict))
