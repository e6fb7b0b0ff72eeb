"""Test doubles: a scripted generation client and a word-count estimator."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from src.generation.client import ChatOptions, Completion, Message
from src.ingestion.models import TranscriptTurn

Reply = Completion | str | BaseException | Callable[[list[Message], int], Completion | str]


@dataclass
class RecordedCall:
    model: str
    messages: list[Message]
    max_tokens: int
    options: ChatOptions | None

    @property
    def system(self) -> str:
        return next((m["content"] for m in self.messages if m["role"] == "system"), "")

    @property
    def user(self) -> str:
        return next((m["content"] for m in self.messages if m["role"] == "user"), "")


@dataclass
class FakeClient:
    """Returns scripted replies in order and records every call.

    A reply may be a :class:`Completion`, a plain string, an exception to
    raise, or a callable taking ``(messages, max_tokens)``. When the script
    runs out, ``default`` is returned.
    """

    replies: list[Reply] = field(default_factory=list)
    default: str = "ok"
    calls: list[RecordedCall] = field(default_factory=list)

    async def complete(
        self,
        model: str,
        messages: list[Message],
        max_tokens: int,
        options: ChatOptions | None = None,
    ) -> Completion:
        self.calls.append(RecordedCall(model, messages, max_tokens, options))
        reply: Reply = self.replies.pop(0) if self.replies else self.default
        if callable(reply) and not isinstance(reply, BaseException):
            reply = reply(messages, max_tokens)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, str):
            return Completion(text=reply)
        return reply


class ContextLengthError(Exception):
    """Mimics an OpenAI-style context overflow."""

    def __init__(self) -> None:
        super().__init__("This model's maximum context length is 8192 tokens")


def word_count(text: str) -> int:
    """Deterministic estimator: one token per whitespace-separated word."""
    return len(text.split())


def speaker_turns(
    count: int, words_per_turn: int, speakers: tuple[str, ...] = ("A", "B")
) -> list[TranscriptTurn]:
    """Turns whose ``"[X]: w1 ... wn"`` rendering is exactly *words_per_turn* words."""
    return [
        TranscriptTurn(
            speaker=speakers[i % len(speakers)],
            text=" ".join(f"t{i}w{j}" for j in range(words_per_turn - 1)),
        )
        for i in range(count)
    ]
