"""Round / source junction management."""

from __future__ import annotations

import logging

from dossier.db.database import Database
from dossier.models.outcome import Outcome
from dossier.models.source import Source

logger = logging.getLogger(__name__)


class RoundSourceLinker:
    """Records which sources were consulted during which round."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def link(self, round_id: str, source_id: str) -> Outcome:
        """Idempotent: linking an already linked pair leaves a single row."""
        await self.db.upsert_round_source(round_id, source_id)
        logger.info("Linked source %s to round %s", source_id, round_id)
        return Outcome.LINKED

    async def unlink(self, round_id: str, source_id: str) -> Outcome:
        removed = await self.db.delete_round_source(round_id, source_id)
        if not removed:
            return Outcome.NOT_FOUND
        logger.info("Unlinked source %s from round %s", source_id, round_id)
        return Outcome.UNLINKED

    async def list_sources(self, round_id: str, include_archived: bool = True) -> list[Source]:
        """Sources linked to the round, in link creation order."""
        rows = await self.db.list_round_sources(round_id, include_archived=include_archived)
        return [Source.from_row(r) for r in rows]
