"""Context-overflow detection for provider errors.

Providers report an oversized prompt only through free-text error messages,
so detection is inherently provider-coupled. Each integration gets its own
predicate; revisit the patterns whenever a provider or server is added.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from src.pipeline_config import Provider

OverflowPredicate = Callable[[BaseException], bool]

# OpenAI ("maximum context length") and llama.cpp / LM Studio ("tokens to keep").
_OPENAI_OVERFLOW_RE = re.compile(r"context length|tokens to keep", re.IGNORECASE)
_ANTHROPIC_OVERFLOW_RE = re.compile(
    r"context length|tokens to keep|prompt is too long|context window", re.IGNORECASE
)


def error_message(error: BaseException) -> str:
    """Best-effort provider message: ``body.error.message``, then ``message``, then ``str``."""
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        inner = body.get("error")
        if isinstance(inner, dict) and isinstance(inner.get("message"), str):
            return inner["message"]
        if isinstance(body.get("message"), str):
            return body["message"]
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error)


def is_context_window_error(error: BaseException) -> bool:
    """True when *error* reports an exceeded context length."""
    return bool(_OPENAI_OVERFLOW_RE.search(error_message(error)))


def is_anthropic_context_window_error(error: BaseException) -> bool:
    return bool(_ANTHROPIC_OVERFLOW_RE.search(error_message(error)))


def overflow_predicate_for(provider: str | Provider) -> OverflowPredicate:
    if Provider(provider) is Provider.ANTHROPIC:
        return is_anthropic_context_window_error
    return is_context_window_error
