"""Structured progress events emitted during a migration.

Readers and the migration driver report progress by calling an injected
observer with `MigrationEvent` objects instead of writing to a stream. The
default observer forwards each event to the application logger.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .constants import APP_NAME

logger = logging.getLogger(APP_NAME)

HISTORY_READ = "history_read"
MARKERS_READ = "markers_read"
COMMIT_SKIPPED = "commit_skipped"
COMMIT_PLANNED = "commit_planned"
COMMIT_CREATED = "commit_created"
MIGRATION_FINISHED = "migration_finished"


@dataclass(frozen=True)
class MigrationEvent:
    """A single progress event.

    Attributes:
        name (str): The event kind (one of the module-level event names).
        data (dict[str, Any]): Event payload such as counts or identifiers.
    """

    name: str
    data: dict[str, Any] = field(default_factory=dict)


Observer = Callable[[MigrationEvent], None]


def log_event(event: MigrationEvent) -> None:
    """Default observer: writes the event to the application logger."""
    details = " ".join(f"{k}={v}" for k, v in event.data.items())
    if event.name == COMMIT_SKIPPED:
        logger.debug(f"{event.name} {details}")
    else:
        logger.info(f"{event.name} {details}")


class EventRecorder:
    """An observer that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[MigrationEvent] = []

    def __call__(self, event: MigrationEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [e.name for e in self.events]

    def of(self, name: str) -> list[MigrationEvent]:
        return [e for e in self.events if e.name == name]
