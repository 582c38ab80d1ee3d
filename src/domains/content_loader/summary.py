# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Load states and the per-bundle load summary."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LoadState(str, Enum):
    """States of one bundle load.

    RECEIVED -> VALIDATED -> WRITING -> COMMITTED
    RECEIVED -> VALIDATION_FAILED
    WRITING -> ROLLED_BACK
    """

    RECEIVED = "received"
    VALIDATED = "validated"
    VALIDATION_FAILED = "validation_failed"
    WRITING = "writing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"

    @property
    def is_terminal(self) -> bool:
        return self in (LoadState.COMMITTED, LoadState.VALIDATION_FAILED, LoadState.ROLLED_BACK)


def _inserted_counts() -> dict[str, int]:
    return {"topics": 0, "lessons": 0, "examples": 0, "questions": 0}


def _updated_counts() -> dict[str, int]:
    return {"topics": 0, "lessons": 0}


def _deleted_counts() -> dict[str, int]:
    return {"examples": 0, "questions": 0}


@dataclass
class LoadSummary:
    """Result of one bundle load.

    Attributes:
        bundle_id: ``<category_slug>/<topic slug>`` of the loaded bundle.
        state: Current (finally: terminal) load state.
        categories_referenced: Number of categories the bundle resolved.
        inserted: New rows per entity (topics, lessons, examples, questions).
        updated: Existing rows overwritten in place (topics, lessons).
        deleted_children: Children removed by replacing lesson child sets.
        duration_ms: Wall time of the load in milliseconds.
        attempts: Number of attempts used, above 1 only after retries.
    """

    bundle_id: str
    state: LoadState = LoadState.RECEIVED
    categories_referenced: int = 0
    inserted: dict[str, int] = field(default_factory=_inserted_counts)
    updated: dict[str, int] = field(default_factory=_updated_counts)
    deleted_children: dict[str, int] = field(default_factory=_deleted_counts)
    duration_ms: float = 0.0
    attempts: int = 1

    def count_write(self, entity: str, created: bool) -> None:
        """Record an upserted row under ``inserted`` or ``updated``."""
        counts = self.inserted if created else self.updated
        counts[entity] += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "bundle_id": self.bundle_id,
            "state": self.state.value,
            "categories_referenced": self.categories_referenced,
            "inserted": dict(self.inserted),
            "updated": dict(self.updated),
            "deleted_children": dict(self.deleted_children),
            "duration_ms": round(self.duration_ms, 3),
            "attempts": self.attempts,
        }
