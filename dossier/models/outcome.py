"""Outcome tags returned by mutating operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Outcome(Enum):
    CREATED = "created"
    REUSED = "reused"
    LINKED = "linked"
    UNLINKED = "unlinked"
    ARCHIVED = "archived"
    DELETED = "deleted"
    NOT_FOUND = "not-found"


@dataclass
class MutationResult:
    id: str
    outcome: Outcome


@dataclass
class AcquireResult:
    """Result of acquiring a URL into a round."""

    source_id: str
    created: bool

    @property
    def outcome(self) -> Outcome:
        return Outcome.CREATED if self.created else Outcome.REUSED
