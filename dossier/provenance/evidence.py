"""Evidence store: relevance-justified claims tied to a source."""

from __future__ import annotations

import logging

from dossier.db.database import Database
from dossier.errors import ReferentialError, ValidationError
from dossier.models.evidence import Evidence, EvidenceType
from dossier.provenance.validation import require_choice, require_text

logger = logging.getLogger(__name__)


class EvidenceStore:
    """Records evidence, optionally promoted from an extract of the same source.

    Promotion copies the extract's fields; the stored ``extract_id`` is only a
    back-reference, so deleting the extract later leaves the evidence intact.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def record(
        self,
        source_id: str,
        evidence_type: str | EvidenceType | None,
        text: str | None,
        context: str | None,
        location: str | None,
        why_relevant: str | None,
        extract_id: str | None = None,
    ) -> str:
        kind = require_choice(evidence_type, EvidenceType, "evidence_type")
        evidence_text = require_text(text, "evidence_text")
        context_text = require_text(context, "context_text")
        location_ref = require_text(location, "location_ref")
        relevance = require_text(why_relevant, "why_relevant")

        if extract_id:
            extract = await self.db.get_extract(extract_id)
            if extract is None:
                raise ValidationError(f"Invalid extract_id {extract_id!r}")
            if extract["source_id"] != source_id:
                raise ValidationError("Extract does not belong to this source")

        evidence_id = await self.db.create_evidence(
            source_id,
            kind.value,
            evidence_text,
            context_text,
            location_ref,
            relevance,
            extract_id=extract_id or None,
        )
        logger.info("Recorded evidence %s on source %s", evidence_id, source_id)
        return evidence_id

    async def promote(
        self,
        extract_id: str,
        why_relevant: str | None,
        evidence_type: str | EvidenceType | None = None,
    ) -> str:
        """Turn an extract into evidence, reusing its text, context and location."""
        row = await self.db.get_extract(extract_id)
        if row is None:
            raise ReferentialError("Extract not found")
        return await self.record(
            row["source_id"],
            evidence_type or row["extract_type"],
            row["extract_text"],
            row["context_text"],
            row["location_ref"],
            why_relevant,
            extract_id=extract_id,
        )

    async def get(self, evidence_id: str) -> Evidence:
        row = await self.db.get_evidence(evidence_id)
        if row is None:
            raise ReferentialError("Evidence not found")
        return Evidence.from_row(row)

    async def list_for_source(self, source_id: str) -> list[Evidence]:
        rows = await self.db.list_evidence(source_id)
        return [Evidence.from_row(r) for r in rows]

    async def list_for_project(self, project_id: str) -> list[Evidence]:
        rows = await self.db.list_project_evidence(project_id)
        return [Evidence.from_row(r) for r in rows]
