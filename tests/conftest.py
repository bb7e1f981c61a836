# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Settings are isolated from any local .env and the reasoning client is
scripted: no test touches the network.
"""

from __future__ import annotations

import pytest

from buildcheck.config.settings import Settings
from buildcheck.core.models import InputFile
from helpers import SAMPLE_BOQ_CSV, SAMPLE_IFC, ScriptedLLM, make_file


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from any local .env, caching in memory."""
    return Settings(
        _env_file=None,
        anthropic_api_key="",
        cache_backend="memory",
        cache_root=tmp_path / "cache",
        job_store_url="",
    )


@pytest.fixture
def ifc_file() -> InputFile:
    return make_file("casa.ifc", SAMPLE_IFC)


@pytest.fixture
def boq_file() -> InputFile:
    return make_file("mapa.csv", SAMPLE_BOQ_CSV)


@pytest.fixture
def scripted_llm() -> ScriptedLLM:
    return ScriptedLLM()
