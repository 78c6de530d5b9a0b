"""Per-entity lifecycle policies.

Projects and sources are never physically removed; rounds are, taking only
their own query log and round links with them. The table is the reference
for which LifecycleManager operation applies to each entity.
"""

from __future__ import annotations

from enum import Enum


class LifecyclePolicy(Enum):
    SOFT_ARCHIVE = "soft_archive"
    HARD_DELETE = "hard_delete"
    HARD_DELETE_CASCADE = "hard_delete_cascade"
    OWNED = "owned"


LIFECYCLE_POLICIES: dict[str, LifecyclePolicy] = {
    "project": LifecyclePolicy.SOFT_ARCHIVE,
    "search_round": LifecyclePolicy.HARD_DELETE_CASCADE,
    # Removed only through its round.
    "search_query": LifecyclePolicy.OWNED,
    "round_source": LifecyclePolicy.HARD_DELETE,
    "source": LifecyclePolicy.SOFT_ARCHIVE,
    "extract": LifecyclePolicy.HARD_DELETE,
    "evidence": LifecyclePolicy.HARD_DELETE,
}


def policy_for(entity: str) -> LifecyclePolicy:
    return LIFECYCLE_POLICIES[entity]
