"""Source data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SourceType(Enum):
    ARTICLE = "article"
    VIDEO = "video"
    PAPER = "paper"
    POST = "post"
    OTHER = "other"


# Descriptive fields a caller may supply when acquiring a source.
METADATA_FIELDS = ("title", "author", "publisher", "published_at", "summary", "notes")


@dataclass
class SourceMetadata:
    """Descriptive fields captured on first acquisition. Blank values are stored as NULL."""

    title: str | None = None
    author: str | None = None
    publisher: str | None = None
    published_at: str | None = None
    summary: str | None = None
    notes: str | None = None

    def cleaned(self) -> dict[str, str | None]:
        values = {}
        for name in METADATA_FIELDS:
            value = getattr(self, name)
            if isinstance(value, str):
                value = value.strip() or None
            values[name] = value
        return values


@dataclass
class Source:
    """A project-scoped, de-duplicated reference to an external document."""

    id: str
    project_id: str
    url: str
    normalized_url: str
    source_type: SourceType
    metadata: SourceMetadata = field(default_factory=SourceMetadata)
    is_archived: bool = False
    created_at: str = ""
    seq: int = 0

    @classmethod
    def from_row(cls, row: dict) -> Source:
        return cls(
            id=row["id"],
            project_id=row["project_id"],
            url=row["url"],
            normalized_url=row["normalized_url"],
            source_type=SourceType(row["source_type"]),
            metadata=SourceMetadata(**{name: row[name] for name in METADATA_FIELDS}),
            is_archived=bool(row["is_archived"]),
            created_at=row["created_at"],
            seq=row["seq"],
        )
