"""Projects, search rounds and the per-round query log."""

from __future__ import annotations

import logging
from datetime import date

from dossier.db.database import Database
from dossier.errors import ReferentialError
from dossier.models.project import Project, SearchQuery, SearchRound
from dossier.provenance.validation import optional_date, optional_text, require_date, require_text

logger = logging.getLogger(__name__)


class ResearchLog:
    def __init__(self, db: Database) -> None:
        self.db = db

    # -- Projects --

    async def create_project(
        self,
        title: str | None,
        research_question: str | None,
        hypothesis: str | None = None,
        timespan_start: str | date | None = None,
        timespan_end: str | date | None = None,
    ) -> str:
        project_id = await self.db.create_project(
            require_text(title, "title"),
            require_text(research_question, "research_question"),
            optional_text(hypothesis),
            optional_date(timespan_start, "timespan_start"),
            optional_date(timespan_end, "timespan_end"),
        )
        logger.info("Created project %s", project_id)
        return project_id

    async def get_project(self, project_id: str) -> Project:
        row = await self.db.get_project(project_id)
        if row is None:
            raise ReferentialError("Project not found")
        return Project.from_row(row)

    async def list_projects(self, include_archived: bool = False) -> list[Project]:
        rows = await self.db.list_projects(include_archived=include_archived)
        return [Project.from_row(r) for r in rows]

    # -- Rounds --

    async def create_round(
        self, project_id: str, label: str | None, objective: str | None
    ) -> str:
        round_id = await self.db.create_round(
            project_id,
            require_text(label, "label"),
            require_text(objective, "objective"),
        )
        logger.info("Created round %s in project %s", round_id, project_id)
        return round_id

    async def list_rounds(self, project_id: str) -> list[SearchRound]:
        rows = await self.db.list_rounds(project_id)
        return [SearchRound.from_row(r) for r in rows]

    # -- Queries --

    async def log_query(
        self,
        round_id: str,
        query_text: str | None,
        executed_at: str | date | None,
        notes: str | None = None,
    ) -> str:
        """Append an immutable query log entry to a round."""
        return await self.db.create_query(
            round_id,
            require_text(query_text, "query_text"),
            require_date(executed_at, "executed_at"),
            optional_text(notes),
        )

    async def list_queries(self, round_id: str) -> list[SearchQuery]:
        """By execution date, then creation order."""
        rows = await self.db.list_queries(round_id)
        return [SearchQuery.from_row(r) for r in rows]
