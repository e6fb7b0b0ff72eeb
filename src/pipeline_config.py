"""Pipeline configuration: provider capabilities, prompt budgets and PipelineConfig."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.config import Settings


class Provider(StrEnum):
    """Generation providers the pipeline knows how to budget for."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    LOCAL = "local"


@dataclass(frozen=True)
class PromptBudget:
    """Estimated-token ceilings for each prompt component.

    All three limits must be positive integers.
    """

    max_prompt_tokens: int
    max_chunk_tokens: int
    chunk_summary_max_tokens: int

    def __post_init__(self) -> None:
        for name in ("max_prompt_tokens", "max_chunk_tokens", "chunk_summary_max_tokens"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

    def with_overrides(
        self,
        max_prompt_tokens: int | None = None,
        max_chunk_tokens: int | None = None,
        chunk_summary_max_tokens: int | None = None,
    ) -> PromptBudget:
        """Return a copy with any supplied limits replaced."""
        return PromptBudget(
            max_prompt_tokens=(
                self.max_prompt_tokens if max_prompt_tokens is None else max_prompt_tokens
            ),
            max_chunk_tokens=(
                self.max_chunk_tokens if max_chunk_tokens is None else max_chunk_tokens
            ),
            chunk_summary_max_tokens=(
                self.chunk_summary_max_tokens
                if chunk_summary_max_tokens is None
                else chunk_summary_max_tokens
            ),
        )


HOSTED_BUDGET = PromptBudget(
    max_prompt_tokens=120_000,
    max_chunk_tokens=6_000,
    chunk_summary_max_tokens=900,
)

LOCAL_BUDGET = PromptBudget(
    max_prompt_tokens=20_000,
    max_chunk_tokens=4_000,
    chunk_summary_max_tokens=600,
)


@dataclass(frozen=True)
class ProviderCapabilities:
    """What the orchestrators may assume about a provider.

    Hosted providers tolerate large contexts, so the direct path is always
    attempted first regardless of the local estimate.
    """

    provider: Provider
    tolerates_large_context: bool
    default_budget: PromptBudget
    max_answer_tokens: int


CAPABILITIES: dict[Provider, ProviderCapabilities] = {
    Provider.OPENAI: ProviderCapabilities(
        provider=Provider.OPENAI,
        tolerates_large_context=True,
        default_budget=HOSTED_BUDGET,
        max_answer_tokens=1200,
    ),
    Provider.ANTHROPIC: ProviderCapabilities(
        provider=Provider.ANTHROPIC,
        tolerates_large_context=True,
        default_budget=HOSTED_BUDGET,
        max_answer_tokens=1200,
    ),
    Provider.LOCAL: ProviderCapabilities(
        provider=Provider.LOCAL,
        tolerates_large_context=False,
        default_budget=LOCAL_BUDGET,
        max_answer_tokens=500,
    ),
}


def capabilities_for(provider: str | Provider) -> ProviderCapabilities:
    """Look up the capability descriptor for *provider*.

    Raises:
        ValueError: If *provider* is not a known provider name.
    """
    return CAPABILITIES[Provider(provider)]


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration for one reduction pipeline run.

    Built once (from settings or by the caller) and passed into every
    operation; nothing in the pipeline mutates it.
    """

    model: str = "gpt-4o-mini"
    capabilities: ProviderCapabilities = CAPABILITIES[Provider.OPENAI]
    budget: PromptBudget = HOSTED_BUDGET

    @classmethod
    def for_provider(cls, provider: str | Provider, model: str = "gpt-4o-mini") -> PipelineConfig:
        caps = capabilities_for(provider)
        return cls(model=model, capabilities=caps, budget=caps.default_budget)

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        """Derive the run configuration from application settings."""
        config = cls.for_provider(settings.llm_provider, settings.llm_model)
        return config.with_budget(
            max_prompt_tokens=settings.max_prompt_tokens,
            max_chunk_tokens=settings.max_chunk_tokens,
            chunk_summary_max_tokens=settings.chunk_summary_max_tokens,
        )

    def with_budget(
        self,
        max_prompt_tokens: int | None = None,
        max_chunk_tokens: int | None = None,
        chunk_summary_max_tokens: int | None = None,
    ) -> PipelineConfig:
        """Return a copy whose budget has the supplied limits overridden."""
        budget = self.budget.with_overrides(
            max_prompt_tokens=max_prompt_tokens,
            max_chunk_tokens=max_chunk_tokens,
            chunk_summary_max_tokens=chunk_summary_max_tokens,
        )
        return replace(self, budget=budget)
