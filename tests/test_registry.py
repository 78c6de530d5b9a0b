"""Tests for source acquisition and per-project de-duplication."""

from __future__ import annotations

import pytest

from dossier.errors import ReferentialError, ValidationError
from dossier.main import Services
from dossier.models.outcome import Outcome
from dossier.models.source import SourceMetadata, SourceType


@pytest.mark.asyncio
async def test_first_acquire_creates_source(services: Services, project_id: str, round_id: str) -> None:
    result = await services.registry.acquire(
        project_id, "http://Example.com/a/", "article", round_id, SourceMetadata(title="First")
    )
    assert result.created is True
    assert result.outcome is Outcome.CREATED

    source = await services.registry.get(result.source_id)
    assert source.url == "http://Example.com/a/"
    assert source.normalized_url == "example.com/a"
    assert source.source_type is SourceType.ARTICLE
    assert source.metadata.title == "First"
    assert source.is_archived is False


@pytest.mark.asyncio
async def test_same_canonical_url_is_reused(services: Services, project_id: str, round_id: str) -> None:
    first = await services.registry.acquire(project_id, "http://Example.com/a/", "article", round_id)
    second = await services.registry.acquire(project_id, "https://example.com/a", "article", round_id)

    assert second.created is False
    assert second.outcome is Outcome.REUSED
    assert second.source_id == first.source_id
    assert len(await services.registry.list_for_project(project_id)) == 1
    assert len(await services.linker.list_sources(round_id)) == 1


@pytest.mark.asyncio
async def test_reuse_never_overwrites_metadata(services: Services, project_id: str, round_id: str) -> None:
    first = await services.registry.acquire(
        project_id, "https://example.com/a", "paper", round_id,
        SourceMetadata(title="Original title", author="A. Author"),
    )
    await services.registry.acquire(
        project_id, "https://example.com/a?utm=x", "video", round_id,
        SourceMetadata(title="Other title", author="Someone else"),
    )

    source = await services.registry.get(first.source_id)
    assert source.metadata.title == "Original title"
    assert source.metadata.author == "A. Author"
    assert source.source_type is SourceType.PAPER


@pytest.mark.asyncio
async def test_blank_metadata_is_stored_as_null(services: Services, project_id: str, round_id: str) -> None:
    result = await services.registry.acquire(
        project_id, "https://example.com/b", "post", round_id,
        SourceMetadata(title="  ", published_at="", summary="Short summary"),
    )
    source = await services.registry.get(result.source_id)
    assert source.metadata.title is None
    assert source.metadata.published_at is None
    assert source.metadata.summary == "Short summary"


@pytest.mark.asyncio
async def test_same_url_in_another_project_is_a_distinct_source(
    services: Services, project_id: str, round_id: str
) -> None:
    other_project = await services.research.create_project("Other", "Another question?")
    other_round = await services.research.create_round(other_project, "A", "scope")

    first = await services.registry.acquire(project_id, "https://example.com/a", "article", round_id)
    second = await services.registry.acquire(other_project, "https://example.com/a", "article", other_round)

    assert second.created is True
    assert second.source_id != first.source_id


@pytest.mark.asyncio
async def test_reuse_from_a_second_round_links_both(services: Services, project_id: str, round_id: str) -> None:
    round_b = await services.research.create_round(project_id, "B", "deepen")
    first = await services.registry.acquire(project_id, "https://example.com/a", "article", round_id)
    second = await services.registry.acquire(project_id, "https://example.com/a/", "article", round_b)

    assert second.source_id == first.source_id
    assert [s.id for s in await services.linker.list_sources(round_id)] == [first.source_id]
    assert [s.id for s in await services.linker.list_sources(round_b)] == [first.source_id]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "url, source_type, message",
    [
        ("", "article", "url is required"),
        ("   ", "article", "url is required"),
        ("example.com/a", "article", "Invalid URL format"),
        ("http://not a host/a", "article", "Invalid URL format"),
        ("http:// /x", "article", "Invalid URL format"),
        ("https://exa<mple.com/p", "article", "Invalid URL format"),
        ("https://example.com/a", "podcast", "Invalid source_type"),
        ("https://example.com/a", None, "Invalid source_type"),
    ],
)
async def test_invalid_input_is_rejected(
    services: Services, project_id: str, round_id: str, url, source_type, message
) -> None:
    with pytest.raises(ValidationError, match=message):
        await services.registry.acquire(project_id, url, source_type, round_id)
    assert await services.registry.list_for_project(project_id, include_archived=True) == []


@pytest.mark.asyncio
async def test_missing_round_id_is_a_validation_error(services: Services, project_id: str) -> None:
    with pytest.raises(ValidationError, match="round_id is required"):
        await services.registry.acquire(project_id, "https://example.com/a", "article", None)


@pytest.mark.asyncio
async def test_unknown_round_is_reported_as_not_found(services: Services, project_id: str) -> None:
    with pytest.raises(ReferentialError, match="Round not found"):
        await services.registry.acquire(project_id, "https://example.com/a", "article", "no-such-round")


@pytest.mark.asyncio
async def test_round_of_another_project_is_not_found(services: Services, project_id: str) -> None:
    other_project = await services.research.create_project("Other", "Another question?")
    other_round = await services.research.create_round(other_project, "A", "scope")

    with pytest.raises(ReferentialError, match="Round not found"):
        await services.registry.acquire(project_id, "https://example.com/a", "article", other_round)


@pytest.mark.asyncio
async def test_default_listing_hides_archived(services: Services, project_id: str, round_id: str) -> None:
    kept = await services.registry.acquire(project_id, "https://example.com/kept", "article", round_id)
    gone = await services.registry.acquire(project_id, "https://example.com/gone", "article", round_id)
    await services.lifecycle.archive_source(gone.source_id)

    visible = await services.registry.list_for_project(project_id)
    everything = await services.registry.list_for_project(project_id, include_archived=True)

    assert [s.id for s in visible] == [kept.source_id]
    # Newest first
    assert [s.id for s in everything] == [gone.source_id, kept.source_id]


@pytest.mark.asyncio
async def test_get_unknown_source(services: Services) -> None:
    with pytest.raises(ReferentialError):
        await services.registry.get("missing")
