"""Source registry: per-project de-duplication of acquired URLs."""

from __future__ import annotations

import logging

from dossier.db.database import Database
from dossier.errors import ReferentialError, ValidationError
from dossier.models.outcome import AcquireResult
from dossier.models.source import Source, SourceMetadata, SourceType
from dossier.provenance.canonicalizer import canonicalize, is_well_formed
from dossier.provenance.linker import RoundSourceLinker
from dossier.provenance.validation import require_choice, require_text

logger = logging.getLogger(__name__)


class SourceRegistry:
    """Creates or reuses the project's Source for a URL and links it to a round.

    Lookup and insert are separate datastore calls, not one transaction. Two
    concurrent acquisitions of the same URL can both miss the lookup; the
    unique index on (project_id, normalized_url) then rejects the second insert
    with a ConflictError. That window is a known limitation and is neither
    retried nor turned into a reuse.
    """

    def __init__(self, db: Database, linker: RoundSourceLinker | None = None) -> None:
        self.db = db
        self.linker = linker or RoundSourceLinker(db)

    async def acquire(
        self,
        project_id: str,
        raw_url: str | None,
        source_type: str | SourceType | None,
        round_id: str | None,
        metadata: SourceMetadata | None = None,
    ) -> AcquireResult:
        url = require_text(raw_url, "url")
        if not is_well_formed(url):
            raise ValidationError(f"Invalid URL format: {url!r}")
        kind = require_choice(source_type, SourceType, "source_type")
        round_id = require_text(round_id, "round_id")

        round_row = await self.db.get_round(round_id)
        if round_row is None or round_row["project_id"] != project_id:
            raise ReferentialError("Round not found")

        normalized = canonicalize(url)
        existing = await self.db.find_source(project_id, normalized)
        if existing is not None:
            # First write wins: descriptive fields of the stored row are left as-is.
            source_id = existing["id"]
            created = False
            logger.info("Reusing source %s for %s", source_id, normalized)
        else:
            fields = (metadata or SourceMetadata()).cleaned()
            source_id = await self.db.create_source(
                project_id, url, normalized, kind.value, fields
            )
            created = True
            logger.info("Created source %s for %s", source_id, normalized)

        # No rollback if this fails: the source stays and a retry reuses it.
        await self.linker.link(round_id, source_id)
        return AcquireResult(source_id=source_id, created=created)

    async def get(self, source_id: str) -> Source:
        """Fetch a source by id, archived or not."""
        row = await self.db.get_source(source_id)
        if row is None:
            raise ReferentialError("Source not found")
        return Source.from_row(row)

    async def list_for_project(
        self, project_id: str, include_archived: bool = False
    ) -> list[Source]:
        """Newest first. Archived sources are hidden unless asked for."""
        rows = await self.db.list_sources(project_id, include_archived=include_archived)
        return [Source.from_row(r) for r in rows]
