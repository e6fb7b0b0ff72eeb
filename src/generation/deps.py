"""Collaborators shared by every stage of one pipeline invocation."""

from __future__ import annotations

from dataclasses import dataclass, field

from src.generation.client import GenerationClient
from src.generation.overflow import OverflowPredicate, is_context_window_error
from src.generation.tokens import estimate_tokens
from src.ingestion.chunking import TokenEstimator
from src.pipeline_config import PipelineConfig


@dataclass(frozen=True)
class GenerationDeps:
    """Client, immutable configuration, estimator and overflow predicate."""

    client: GenerationClient
    config: PipelineConfig = field(default_factory=PipelineConfig)
    estimate: TokenEstimator = estimate_tokens
    is_overflow: OverflowPredicate = is_context_window_error

    @property
    def model(self) -> str:
        return self.config.model
