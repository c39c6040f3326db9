"""Tests for the ResearchAgent session facade."""

import pytest
from conftest import FakeSynthesizer
from pydantic import ValidationError

from research_agent import ResearchAgent
from research_agent.observability import PipelineStage
from research_agent.research.registry import CapabilityKind


@pytest.fixture
def agent(app_settings):
    return ResearchAgent(app_settings, synthesizer=FakeSynthesizer())


@pytest.mark.integration
async def test_research_with_builtin_capabilities(agent):
    context = await agent.research("solar energy")

    assert {s.origin_engine for s in context.sources} == {"google", "semantic_scholar", "arxiv", "pubmed"}
    assert len(context.results) == 4
    assert context.verification.status == "completed"
    assert all(c.style == "apa" for c in context.report.citations)
    assert context.analysis.key_points == ["First point", "Second point"]


def test_status_before_research(agent):
    status = agent.status()

    assert status.status == "ready"
    assert status.session_id == agent.session_id
    assert status.capabilities == ["search", "analysis", "verification", "citation"]
    assert status.cache_size == 0
    assert status.history_count == 0


async def test_status_after_research(agent):
    await agent.research("solar energy")

    status = agent.status()

    assert status.cache_size == 1
    assert status.history_count == 1
    assert agent.history.list()[0].stage == PipelineStage.COMPLETED


async def test_update_config_rebuilds_pipeline(agent):
    session_id = agent.session_id
    await agent.research("solar energy")

    updated = agent.update_config({"research": {"max_sources": 1, "citation_style": "mla"}})
    context = await agent.research("wind energy")

    assert updated.research.max_sources == 1
    assert agent.settings is updated
    assert agent.session_id == session_id
    assert len(context.results) == 1
    assert context.report.citations[0].style == "mla"
    assert agent.status().history_count == 2


def test_invalid_update_keeps_settings(agent):
    before = agent.settings

    with pytest.raises(ValidationError):
        agent.update_config({"llm": {"temperature": 5}})

    assert agent.settings is before


def test_cache_disabled_reports_zero_size(app_settings):
    settings = app_settings.with_overrides({"storage": {"cache_enabled": False}})

    assert ResearchAgent(settings).status().cache_size == 0


async def test_update_config_misses_results_cached_under_old_settings(agent):
    verified = await agent.research("solar energy")

    agent.update_config({"research": {"verification_enabled": False}})
    context = await agent.research("solar energy")

    assert verified.verification is not None
    assert context.verification is None


async def test_update_config_keeps_registered_capabilities_and_cache(agent, fake_search):
    agent.pipeline.registry.register(CapabilityKind.SEARCH, fake_search)
    await agent.research("solar energy")
    cache = agent.pipeline.cache

    agent.update_config({"customization": {"tone": "casual"}})

    assert agent.pipeline.registry.get(CapabilityKind.SEARCH) is fake_search
    assert agent.pipeline.cache is cache
    assert agent.status().cache_size == 1
    assert agent.status().capabilities == ["search", "analysis", "verification", "citation"]


def test_update_config_reloads_builtins_with_new_settings(agent):
    agent.update_config({"research": {"search_engines": ["arxiv"]}})

    assert list(agent.pipeline.registry.get(CapabilityKind.SEARCH).engines) == ["arxiv"]


def test_update_config_with_new_cache_dir_replaces_cache(agent, tmp_path):
    cache = agent.pipeline.cache

    agent.update_config({"storage": {"cache_dir": str(tmp_path / "other")}})

    assert agent.pipeline.cache is not cache
    assert agent.pipeline.cache.directory == tmp_path / "other"
