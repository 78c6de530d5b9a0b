"""Extract store: raw, unjudged captures from a source."""

from __future__ import annotations

import logging

from dossier.db.database import Database
from dossier.errors import ReferentialError
from dossier.models.evidence import Extract, ExtractType
from dossier.provenance.validation import require_choice, require_text

logger = logging.getLogger(__name__)


class ExtractStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def capture(
        self,
        source_id: str,
        extract_type: str | ExtractType | None,
        text: str | None,
        context: str | None,
        location: str | None,
    ) -> str:
        """Store a verbatim capture and return its id. Every field is mandatory."""
        kind = require_choice(extract_type, ExtractType, "extract_type")
        extract_id = await self.db.create_extract(
            source_id,
            kind.value,
            require_text(text, "extract_text"),
            require_text(context, "context_text"),
            require_text(location, "location_ref"),
        )
        logger.info("Captured %s extract %s on source %s", kind.value, extract_id, source_id)
        return extract_id

    async def get(self, extract_id: str) -> Extract:
        row = await self.db.get_extract(extract_id)
        if row is None:
            raise ReferentialError("Extract not found")
        return Extract.from_row(row)

    async def list_for_source(self, source_id: str) -> list[Extract]:
        rows = await self.db.list_extracts(source_id)
        return [Extract.from_row(r) for r in rows]
