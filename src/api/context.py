# src/api/context.py — v1
"""Process-wide collaborators, built once and passed explicitly.

Holds the settings, job store, result cache, reasoning client and stage
registry. Each is created on first access; tests inject replacements
through the constructor and call ``reset()`` between cases.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from buildcheck.config.settings import Settings
from buildcheck.pipeline.orchestrator import PipelineOrchestrator

if TYPE_CHECKING:
    from buildcheck.cache.result_cache import ResultCache
    from buildcheck.jobs.base_job_store import BaseJobStore
    from buildcheck.llm.base_client import BaseLLMClient
    from buildcheck.pipeline.registry import StageRegistry

logger = logging.getLogger(__name__)

_UNSET = object()


class AppContext:
    """Lazily constructed application services."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        job_store: BaseJobStore | None = None,
        result_cache: ResultCache | None = None,
        llm_client: BaseLLMClient | None | object = _UNSET,
        registry: StageRegistry | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._job_store = job_store
        self._result_cache = result_cache
        self._llm_client = llm_client
        self._registry = registry

    @property
    def job_store(self) -> BaseJobStore:
        if self._job_store is None:
            from buildcheck.jobs.job_store_factory import create_job_store

            self._job_store = create_job_store(self.settings)
            logger.debug("Job store: %s", type(self._job_store).__name__)
        return self._job_store

    @property
    def result_cache(self) -> ResultCache | None:
        """The result cache, or None when CACHE_ENABLED is false."""
        if not self.settings.cache_enabled:
            return None
        if self._result_cache is None:
            from buildcheck.cache.result_cache import create_result_cache

            self._result_cache = create_result_cache(self.settings)
        return self._result_cache

    @property
    def llm_client(self) -> BaseLLMClient | None:
        if self._llm_client is _UNSET:
            from buildcheck.llm.client_factory import create_default_client

            self._llm_client = create_default_client(self.settings)
            if self._llm_client is None:
                logger.info("No reasoning-service key configured, AI stages will skip")
        return self._llm_client  # type: ignore[return-value]

    @property
    def registry(self) -> StageRegistry:
        if self._registry is None:
            from buildcheck.pipeline.registry import build_default_registry

            self._registry = build_default_registry(self.settings)
        return self._registry

    def orchestrator(self) -> PipelineOrchestrator:
        return PipelineOrchestrator(self.settings, self.registry, self.llm_client)

    async def reset(self) -> None:
        """Close and forget every constructed service."""
        if self._job_store is not None:
            self._job_store.close()
        if self._result_cache is not None:
            self._result_cache.store.close()
        self._job_store = None
        self._result_cache = None
        self._llm_client = _UNSET
        self._registry = None
