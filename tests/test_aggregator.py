"""Tests for deterministic report assembly."""

from __future__ import annotations

import pytest

from dossier.errors import ReferentialError
from dossier.main import Services


async def _populate(services: Services, project_id: str, round_id: str) -> dict:
    round_b = await services.research.create_round(project_id, "B", "deepen")
    await services.research.log_query(round_id, "second", "2026-02-01")
    await services.research.log_query(round_id, "first", "2026-01-01")
    await services.research.log_query(round_b, "only", "2026-01-15")

    a = await services.registry.acquire(project_id, "https://example.com/a", "article", round_id)
    b = await services.registry.acquire(project_id, "https://example.com/b", "paper", round_b)
    x1 = await services.extracts.capture(a.source_id, "quote", "x1", "ctx", "p. 1")
    x2 = await services.extracts.capture(a.source_id, "passage", "x2", "ctx", "p. 2")
    e1 = await services.evidence.promote(x2, "why x2")
    e2 = await services.evidence.record(a.source_id, "note", "e2", "ctx", "p. 3", "why e2")
    await services.lifecycle.archive_source(b.source_id)
    return {"sources": [a.source_id, b.source_id], "extracts": [x1, x2], "evidence": [e1, e2]}


@pytest.mark.asyncio
async def test_assemble_orders_every_level(services: Services, project_id: str, round_id: str) -> None:
    ids = await _populate(services, project_id, round_id)

    document = await services.aggregator.assemble(project_id)

    assert document.project.id == project_id
    assert [s.round.label for s in document.rounds] == ["A", "B"]
    assert [q.query_text for q in document.rounds[0].queries] == ["first", "second"]
    assert [q.query_text for q in document.rounds[1].queries] == ["only"]
    assert [s.source.id for s in document.sources] == ids["sources"]
    assert [e.id for e in document.sources[0].evidence] == ids["evidence"]
    assert [x.id for x in document.sources[0].extracts] == ids["extracts"]


@pytest.mark.asyncio
async def test_assemble_includes_archived_sources(services: Services, project_id: str, round_id: str) -> None:
    ids = await _populate(services, project_id, round_id)

    document = await services.aggregator.assemble(project_id)

    archived = document.sources[1]
    assert archived.source.id == ids["sources"][1]
    assert archived.source.is_archived is True
    assert await services.registry.list_for_project(project_id) != []
    assert ids["sources"][1] not in [s.id for s in await services.registry.list_for_project(project_id)]


@pytest.mark.asyncio
async def test_assemble_is_deterministic(services: Services, project_id: str, round_id: str) -> None:
    await _populate(services, project_id, round_id)

    first = await services.aggregator.assemble(project_id)
    second = await services.aggregator.assemble(project_id)

    assert first.to_dict() == second.to_dict()
    assert services.generator.generate(first) == services.generator.generate(second)


@pytest.mark.asyncio
async def test_assemble_unknown_project(services: Services) -> None:
    with pytest.raises(ReferentialError, match="Project not found"):
        await services.aggregator.assemble("missing")


@pytest.mark.asyncio
async def test_empty_project(services: Services, project_id: str) -> None:
    document = await services.aggregator.assemble(project_id)
    assert document.rounds == []
    assert document.sources == []
    assert document.to_dict()["project"]["status"] == "active"
