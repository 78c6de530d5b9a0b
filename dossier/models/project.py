"""Project, search round and search query data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ProjectStatus(Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


@dataclass
class Project:
    """A research question tracked across search rounds. Root of every other entity."""

    id: str
    title: str
    research_question: str
    hypothesis: str | None = None
    timespan_start: str | None = None
    timespan_end: str | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    created_at: str = ""
    seq: int = 0

    @classmethod
    def from_row(cls, row: dict) -> Project:
        return cls(
            id=row["id"],
            title=row["title"],
            research_question=row["research_question"],
            hypothesis=row["hypothesis"],
            timespan_start=row["timespan_start"],
            timespan_end=row["timespan_end"],
            status=ProjectStatus(row["status"]),
            created_at=row["created_at"],
            seq=row["seq"],
        )


@dataclass
class SearchRound:
    """One bounded iteration of searching with its own objective and query log."""

    id: str
    project_id: str
    label: str
    objective: str
    created_at: str = ""
    seq: int = 0

    @classmethod
    def from_row(cls, row: dict) -> SearchRound:
        return cls(
            id=row["id"],
            project_id=row["project_id"],
            label=row["label"],
            objective=row["objective"],
            created_at=row["created_at"],
            seq=row["seq"],
        )


@dataclass
class SearchQuery:
    """An immutable log entry of a query run during a round."""

    id: str
    round_id: str
    query_text: str
    executed_at: str
    notes: str | None = None
    created_at: str = ""
    seq: int = 0

    @classmethod
    def from_row(cls, row: dict) -> SearchQuery:
        return cls(
            id=row["id"],
            round_id=row["round_id"],
            query_text=row["query_text"],
            executed_at=row["executed_at"],
            notes=row["notes"],
            created_at=row["created_at"],
            seq=row["seq"],
        )
