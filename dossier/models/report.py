"""Report document tree handed to the rendering engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum

from dossier.models.evidence import Evidence, Extract
from dossier.models.project import Project, SearchQuery, SearchRound
from dossier.models.source import Source


@dataclass
class RoundSection:
    round: SearchRound
    queries: list[SearchQuery] = field(default_factory=list)


@dataclass
class SourceSection:
    source: Source
    evidence: list[Evidence] = field(default_factory=list)
    extracts: list[Extract] = field(default_factory=list)


@dataclass
class ReportDocument:
    """A fully ordered tree of a project's rounds, queries, sources, evidence and extracts."""

    project: Project
    rounds: list[RoundSection] = field(default_factory=list)
    sources: list[SourceSection] = field(default_factory=list)

    def to_dict(self) -> dict:
        return _plain(asdict(self))


def _plain(value):
    # Enums flattened to their values so the tree serializes as JSON.
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value
