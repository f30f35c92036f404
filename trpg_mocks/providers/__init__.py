"""Simulated AI provider clients."""

from .anthropic import AnthropicMock
from .base import ProviderInstance
from .google import GenerativeModelMock, GoogleGenerativeAIMock
from .openai import OpenAIMock
from .registry import ProviderRegistry, list_providers
from .scenarios import Failure, Outcome, Scenario, ScenarioConfig, Success, decide_outcome

__all__ = [
    "AnthropicMock",
    "Failure",
    "GenerativeModelMock",
    "GoogleGenerativeAIMock",
    "OpenAIMock",
    "Outcome",
    "ProviderInstance",
    "ProviderRegistry",
    "Scenario",
    "ScenarioConfig",
    "Success",
    "decide_outcome",
    "list_providers",
]
