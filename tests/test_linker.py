"""Tests for the round / source junction."""

from __future__ import annotations

import pytest

from dossier.errors import ReferentialError
from dossier.main import Services
from dossier.models.outcome import Outcome


@pytest.mark.asyncio
async def test_link_twice_is_a_no_op(services: Services, project_id: str, round_id: str) -> None:
    round_b = await services.research.create_round(project_id, "B", "widen")
    acquired = await services.registry.acquire(project_id, "https://example.com/a", "article", round_id)

    assert await services.linker.link(round_b, acquired.source_id) is Outcome.LINKED
    assert await services.linker.link(round_b, acquired.source_id) is Outcome.LINKED

    assert len(await services.linker.list_sources(round_b)) == 1


@pytest.mark.asyncio
async def test_unlink_removes_only_the_link(services: Services, project_id: str, round_id: str) -> None:
    acquired = await services.registry.acquire(project_id, "https://example.com/a", "article", round_id)

    assert await services.linker.unlink(round_id, acquired.source_id) is Outcome.UNLINKED
    assert await services.linker.list_sources(round_id) == []
    assert (await services.registry.get(acquired.source_id)).id == acquired.source_id


@pytest.mark.asyncio
async def test_unlink_of_absent_link_is_not_an_error(services: Services, round_id: str) -> None:
    assert await services.linker.unlink(round_id, "never-linked") is Outcome.NOT_FOUND


@pytest.mark.asyncio
async def test_list_returns_sources_in_link_order(services: Services, project_id: str, round_id: str) -> None:
    round_b = await services.research.create_round(project_id, "B", "widen")
    first = await services.registry.acquire(project_id, "https://example.com/1", "article", round_id)
    second = await services.registry.acquire(project_id, "https://example.com/2", "article", round_id)

    await services.linker.link(round_b, second.source_id)
    await services.linker.link(round_b, first.source_id)

    listed = await services.linker.list_sources(round_b)
    assert [s.id for s in listed] == [second.source_id, first.source_id]
    assert listed[0].normalized_url == "example.com/2"


@pytest.mark.asyncio
async def test_link_to_unknown_source_is_not_found(services: Services, round_id: str) -> None:
    with pytest.raises(ReferentialError):
        await services.linker.link(round_id, "missing-source")
