"""Report aggregator: assembles a project's full, deterministically ordered tree."""

from __future__ import annotations

import asyncio
import logging

from dossier.db.database import Database
from dossier.errors import ReferentialError
from dossier.models.evidence import Evidence, Extract
from dossier.models.project import Project, SearchQuery, SearchRound
from dossier.models.report import ReportDocument, RoundSection, SourceSection
from dossier.models.source import Source

logger = logging.getLogger(__name__)


def _creation_key(item) -> tuple:
    return (item.created_at or "", item.seq)


def _query_key(query: SearchQuery) -> tuple:
    return (query.executed_at, query.created_at or "", query.seq)


class ReportAggregator:
    """Selects and orders; no filtering, no business logic.

    Archived sources are included: the report is an audit artifact, unlike
    the default source listings.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def assemble(self, project_id: str) -> ReportDocument:
        project_row = await self.db.get_project(project_id)
        if project_row is None:
            raise ReferentialError("Project not found")

        round_rows, source_rows = await asyncio.gather(
            self.db.list_rounds(project_id),
            self.db.list_sources(project_id, include_archived=True, newest_first=False),
        )
        rounds = sorted((SearchRound.from_row(r) for r in round_rows), key=_creation_key)
        sources = sorted((Source.from_row(r) for r in source_rows), key=_creation_key)

        # Fan out per round and per source; everything is joined before sorting.
        round_sections, source_sections = await asyncio.gather(
            asyncio.gather(*[self._round_section(r) for r in rounds]),
            asyncio.gather(*[self._source_section(s) for s in sources]),
        )

        logger.info(
            "Assembled report for project %s: %d rounds, %d sources",
            project_id,
            len(round_sections),
            len(source_sections),
        )
        return ReportDocument(
            project=Project.from_row(project_row),
            rounds=list(round_sections),
            sources=list(source_sections),
        )

    async def _round_section(self, search_round: SearchRound) -> RoundSection:
        rows = await self.db.list_queries(search_round.id)
        queries = sorted((SearchQuery.from_row(r) for r in rows), key=_query_key)
        return RoundSection(round=search_round, queries=queries)

    async def _source_section(self, source: Source) -> SourceSection:
        evidence_rows, extract_rows = await asyncio.gather(
            self.db.list_evidence(source.id),
            self.db.list_extracts(source.id),
        )
        return SourceSection(
            source=source,
            evidence=sorted((Evidence.from_row(r) for r in evidence_rows), key=_creation_key),
            extracts=sorted((Extract.from_row(r) for r in extract_rows), key=_creation_key),
        )
