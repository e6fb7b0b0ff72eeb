"""Generation clients: OpenAI-compatible and Anthropic chat APIs behind one interface."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from src.config import Settings
from src.errors import GenerationConfigError
from src.pipeline_config import Provider

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.2
DEFAULT_REASONING_EFFORT = "medium"

# Reasoning models reject temperature and take reasoning_effort instead.
_REASONING_MODEL_RE = re.compile(r"^gpt-5", re.IGNORECASE)

# Local OpenAI-compatible servers ignore the key but the SDK requires one.
LOCAL_API_KEY = "local-llm"

Message = dict[str, str]


class StopReason(StrEnum):
    """Why a completion ended, normalized across providers."""

    OK = "ok"
    LENGTH = "length"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Completion:
    """Normalized result of a single generation call."""

    text: str
    stop_reason: StopReason = StopReason.OK
    response_id: str = "n/a"


@dataclass(frozen=True)
class ChatOptions:
    """Sampling overrides for one call; unset fields fall back to defaults."""

    temperature: float | None = None
    reasoning_effort: str | None = None


class GenerationClient(Protocol):
    """Prompt-in / text-out generation service."""

    async def complete(
        self,
        model: str,
        messages: list[Message],
        max_tokens: int,
        options: ChatOptions | None = None,
    ) -> Completion: ...


def uses_reasoning_effort(model: str) -> bool:
    return bool(_REASONING_MODEL_RE.match(model.strip()))


def build_chat_params(
    model: str,
    messages: list[Message],
    max_tokens: int,
    options: ChatOptions | None = None,
) -> dict[str, Any]:
    """Build non-streaming chat-completions parameters for *model*."""
    options = options or ChatOptions()
    params: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "max_completion_tokens": max_tokens,
        "stream": False,
    }
    if uses_reasoning_effort(model):
        params["reasoning_effort"] = options.reasoning_effort or DEFAULT_REASONING_EFFORT
    else:
        params["temperature"] = (
            DEFAULT_TEMPERATURE if options.temperature is None else options.temperature
        )
    return params


def _message_content_text(content: Any) -> str:
    """Flatten string or multi-part message content into plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
            elif getattr(part, "type", None) == "text":
                parts.append(str(getattr(part, "text", "")))
        return " ".join(p for p in parts if p).strip()
    return ""


def first_choice_text(response: Any) -> str:
    """Return the first choice's text (or refusal), stripped; ``""`` if absent."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content = _message_content_text(getattr(message, "content", None))
    refusal = getattr(message, "refusal", None)
    refusal = refusal if isinstance(refusal, str) else ""
    return (content or refusal or "").strip()


class OpenAIChatClient:
    """Chat completions against OpenAI or any OpenAI-compatible local server."""

    def __init__(self, client: AsyncOpenAI) -> None:
        self._client = client

    async def complete(
        self,
        model: str,
        messages: list[Message],
        max_tokens: int,
        options: ChatOptions | None = None,
    ) -> Completion:
        response = await self._client.chat.completions.create(
            **build_chat_params(model, messages, max_tokens, options)
        )
        choices = getattr(response, "choices", None) or []
        finish_reason = getattr(choices[0], "finish_reason", None) if choices else None
        if finish_reason == "length":
            stop_reason = StopReason.LENGTH
        elif finish_reason in ("stop", "tool_calls", "content_filter"):
            stop_reason = StopReason.OK
        else:
            stop_reason = StopReason.UNKNOWN
        return Completion(
            text=first_choice_text(response),
            stop_reason=stop_reason,
            response_id=str(getattr(response, "id", None) or "n/a"),
        )


class AnthropicChatClient:
    """Claude Messages API; system messages are lifted into ``system``."""

    def __init__(self, client: AsyncAnthropic) -> None:
        self._client = client

    async def complete(
        self,
        model: str,
        messages: list[Message],
        max_tokens: int,
        options: ChatOptions | None = None,
    ) -> Completion:
        options = options or ChatOptions()
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        conversation = [m for m in messages if m["role"] != "system"]

        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": conversation,
            "temperature": (
                DEFAULT_TEMPERATURE if options.temperature is None else options.temperature
            ),
        }
        if system:
            kwargs["system"] = system

        response = await self._client.messages.create(**kwargs)

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        ).strip()
        if response.stop_reason == "max_tokens":
            stop_reason = StopReason.LENGTH
        elif response.stop_reason in ("end_turn", "stop_sequence"):
            stop_reason = StopReason.OK
        else:
            stop_reason = StopReason.UNKNOWN
        return Completion(text=text, stop_reason=stop_reason, response_id=response.id or "n/a")


def build_client(settings: Settings) -> GenerationClient:
    """Create the generation client for the configured provider.

    Raises:
        GenerationConfigError: If a hosted provider has no API key, or a local
            provider has no base URL.
    """
    provider = Provider(settings.llm_provider)

    if provider is Provider.ANTHROPIC:
        if not settings.anthropic_api_key:
            raise GenerationConfigError("ANTHROPIC_API_KEY is not configured")
        return AnthropicChatClient(AsyncAnthropic(api_key=settings.anthropic_api_key))

    if provider is Provider.LOCAL:
        if not settings.llm_base_url:
            raise GenerationConfigError("LLM_BASE_URL is required for the local provider")
        logger.info("Using local OpenAI-compatible endpoint %s", settings.llm_base_url)
        return OpenAIChatClient(
            AsyncOpenAI(
                api_key=settings.openai_api_key or LOCAL_API_KEY,
                base_url=settings.llm_base_url,
            )
        )

    if not settings.openai_api_key:
        raise GenerationConfigError("OPENAI_API_KEY is not configured")
    return OpenAIChatClient(
        AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.llm_base_url or None)
    )
