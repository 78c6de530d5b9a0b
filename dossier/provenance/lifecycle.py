"""Deletion and archival, one method per entity as listed in LIFECYCLE_POLICIES."""

from __future__ import annotations

import logging

from dossier.db.database import Database
from dossier.errors import NotFoundOnDelete, ReferentialError
from dossier.models.outcome import MutationResult, Outcome

logger = logging.getLogger(__name__)


class LifecycleManager:
    """Owns every destructive operation in the system.

    Rounds are hard-deleted along with their queries and links only. Projects
    and sources are soft-archived and stay queryable by id. Extracts and
    evidence are deleted row by row with no effect on each other.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def delete_round(self, round_id: str) -> MutationResult:
        # Children first; each step is idempotent so a failed run can be retried.
        queries = await self.db.delete_round_queries(round_id)
        links = await self.db.delete_round_links(round_id)
        if not await self.db.delete_round(round_id):
            logger.warning("Round %s not found for deletion", round_id)
            raise NotFoundOnDelete("Round not found")
        logger.info("Deleted round %s (%d queries, %d links)", round_id, queries, links)
        return MutationResult(round_id, Outcome.DELETED)

    async def archive_source(self, source_id: str) -> MutationResult:
        if not await self.db.archive_source(source_id):
            raise ReferentialError("Source not found")
        logger.info("Archived source %s", source_id)
        return MutationResult(source_id, Outcome.ARCHIVED)

    async def archive_project(self, project_id: str) -> MutationResult:
        if not await self.db.archive_project(project_id):
            raise ReferentialError("Project not found")
        logger.info("Archived project %s", project_id)
        return MutationResult(project_id, Outcome.ARCHIVED)

    async def delete_extract(self, extract_id: str) -> MutationResult:
        if not await self.db.delete_extract(extract_id):
            logger.warning("Extract %s not found for deletion", extract_id)
            raise NotFoundOnDelete("Extract not found")
        logger.info("Deleted extract %s", extract_id)
        return MutationResult(extract_id, Outcome.DELETED)

    async def delete_evidence(self, evidence_id: str) -> MutationResult:
        if not await self.db.delete_evidence(evidence_id):
            logger.warning("Evidence %s not found for deletion", evidence_id)
            raise NotFoundOnDelete("Evidence not found")
        logger.info("Deleted evidence %s", evidence_id)
        return MutationResult(evidence_id, Outcome.DELETED)
