"""Shared fixtures for the pipeline tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from src.generation.deps import GenerationDeps
from src.pipeline_config import PipelineConfig
from tests.fakes import FakeClient, word_count


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def make_deps() -> Callable[..., GenerationDeps]:
    """Build deps around a client using the word-count estimator.

    Defaults to the local provider so the budget gate is exercised; keyword
    arguments override individual budget limits.
    """

    def _make(
        client: FakeClient,
        config: PipelineConfig | None = None,
        **budget: int,
    ) -> GenerationDeps:
        config = config or PipelineConfig.for_provider("local", "test-model")
        if budget:
            config = config.with_budget(**budget)
        return GenerationDeps(client=client, config=config, estimate=word_count)

    return _make
