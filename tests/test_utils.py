"""Tests for result persistence."""

import json

from research_agent.research.models import ResearchContext
from research_agent.utils import save_research_result


def test_saves_context_as_json(tmp_path):
    path = save_research_result(ResearchContext(topic="tides"), "session-1", tmp_path / "results")

    assert path.parent == tmp_path / "results"
    assert path.name.startswith("research_session-1_")
    assert json.loads(path.read_text())["topic"] == "tides"


def test_same_millisecond_gets_suffix(tmp_path, monkeypatch):
    monkeypatch.setattr("research_agent.utils.time.time", lambda: 1_700_000_000.0)
    context = ResearchContext(topic="tides")

    first = save_research_result(context, "s", tmp_path)
    second = save_research_result(context, "s", tmp_path)

    assert first.name == "research_s_1700000000000.json"
    assert second.name == "research_s_1700000000000_1.json"


def test_session_id_is_sanitized(tmp_path):
    path = save_research_result(ResearchContext(topic="tides"), "../evil/id", tmp_path)

    assert path.parent == tmp_path
    assert path.name.startswith("research____evil_id_")
