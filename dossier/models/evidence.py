"""Extract and evidence data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ExtractType(Enum):
    QUOTE = "quote"
    PASSAGE = "passage"


class EvidenceType(Enum):
    QUOTE = "quote"
    PASSAGE = "passage"
    SCREENSHOT = "screenshot"
    NOTE = "note"


@dataclass
class Extract:
    """A raw, unjudged verbatim capture from a source."""

    id: str
    source_id: str
    extract_type: ExtractType
    extract_text: str
    context_text: str
    location_ref: str
    created_at: str = ""
    seq: int = 0

    @classmethod
    def from_row(cls, row: dict) -> Extract:
        return cls(
            id=row["id"],
            source_id=row["source_id"],
            extract_type=ExtractType(row["extract_type"]),
            extract_text=row["extract_text"],
            context_text=row["context_text"],
            location_ref=row["location_ref"],
            created_at=row["created_at"],
            seq=row["seq"],
        )


@dataclass
class Evidence:
    """A relevance claim tied to the research question.

    ``extract_id`` is a weak back-reference to the extract the evidence was
    promoted from. The promoted fields are copied, so the extract may be
    deleted without touching the evidence row.
    """

    id: str
    source_id: str
    evidence_type: EvidenceType
    evidence_text: str
    context_text: str
    location_ref: str
    why_relevant: str
    extract_id: str | None = None
    created_at: str = ""
    seq: int = 0

    @classmethod
    def from_row(cls, row: dict) -> Evidence:
        return cls(
            id=row["id"],
            source_id=row["source_id"],
            evidence_type=EvidenceType(row["evidence_type"]),
            evidence_text=row["evidence_text"],
            context_text=row["context_text"],
            location_ref=row["location_ref"],
            why_relevant=row["why_relevant"],
            extract_id=row["extract_id"],
            created_at=row["created_at"],
            seq=row["seq"],
        )
