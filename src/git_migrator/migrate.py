import logging
from dataclasses import dataclass, field
from pathlib import Path

from .constants import APP_NAME
from .events import (
    COMMIT_CREATED,
    COMMIT_PLANNED,
    COMMIT_SKIPPED,
    MIGRATION_FINISHED,
    MigrationEvent,
    Observer,
    log_event,
)
from .git_wrapper import GitRepo, format_git_date
from .history import HistoryMap, read_destination_markers, read_history

logger = logging.getLogger(APP_NAME)


@dataclass
class MigrationResult:
    """Outcome of one migration run.

    Attributes:
        total (int): Number of records in the history being written.
        created (dict[str, str | None]): Global ids committed in this run, mapped
            to the new commit hash (None on a dry run or if it cannot be resolved).
        skipped (list[str]): Global ids already present in the destination.
        dry_run (bool): Whether commit creation was suppressed.
    """

    total: int = 0
    created: dict[str, str | None] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    dry_run: bool = False


def create_commits_in_repo(
    destination: Path | str,
    history: HistoryMap,
    *,
    observer: Observer | None = None,
    dry_run: bool = False,
    no_verify: bool = False,
) -> MigrationResult:
    """Writes the missing records of a history map into `destination`.

    The destination's markers are read first; every record whose global id is
    not already a commit message there becomes one empty commit. The map may
    come from any source, including several origins merged together.

    Args:
        destination (Path | str): The repository receiving the empty commits.
        history (HistoryMap): The records to write, keyed by global id.
        observer (Observer | None): Receives progress events. Defaults to logging.
        dry_run (bool): Report what would be created without committing.
        no_verify (bool): Bypass commit hooks in the destination.

    Returns:
        MigrationResult: What was created and what was already present.

    Raises:
        ValueError: If `destination` is empty.
        RepoNotFoundError: If the destination path does not exist.
        ToolInvocationError: If git fails. Commits created before the failure
                             are kept.
    """
    if not str(destination):
        raise ValueError("Destination repository path is empty")

    notify = observer or log_event

    logger.info(f"Creating commits in {destination}")
    existing = read_destination_markers(destination, observer=notify)
    repo = GitRepo(destination)
    result = MigrationResult(total=len(history), dry_run=dry_run)

    for global_id, record in history.items():
        if global_id in existing:
            result.skipped.append(global_id)
            notify(MigrationEvent(COMMIT_SKIPPED, {"global_id": global_id}))
            continue

        date = format_git_date(record.timestamp)
        if dry_run:
            result.created[global_id] = None
            notify(
                MigrationEvent(COMMIT_PLANNED, {"global_id": global_id, "date": date})
            )
            continue

        repo.commit_empty(global_id, record.timestamp, no_verify=no_verify)
        sha = repo.rev_parse("HEAD")
        result.created[global_id] = sha
        notify(
            MigrationEvent(
                COMMIT_CREATED, {"global_id": global_id, "date": date, "commit": sha}
            )
        )

    notify(
        MigrationEvent(
            MIGRATION_FINISHED,
            {
                "destination": str(destination),
                "total": result.total,
                "created": len(result.created),
                "skipped": len(result.skipped),
                "dry_run": dry_run,
            },
        )
    )
    return result


def migrate_to_fake_commit_repo(
    origin: Path | str,
    destination: Path | str,
    *,
    observer: Observer | None = None,
    dry_run: bool = False,
    no_verify: bool = False,
) -> MigrationResult:
    """Copies the commit timeline of `origin` into `destination`.

    Every origin commit becomes an empty destination commit whose message is
    its global identifier and whose dates are the origin author time. Commits
    whose identifier is already a destination commit message are skipped, so
    re-running after a full or partial run only creates what is missing.

    Records are processed in map order, which carries no meaning: each created
    commit is empty and independent of the others.

    Args:
        origin (Path | str): The repository whose timeline is copied. The path
                             is hashed exactly as spelled.
        destination (Path | str): The repository receiving the empty commits.
        observer (Observer | None): Receives progress events. Defaults to logging.
        dry_run (bool): Report what would be created without committing.
        no_verify (bool): Bypass commit hooks in the destination.

    Returns:
        MigrationResult: What was created and what was already present.

    Raises:
        ValueError: If `destination` is empty.
        RepoNotFoundError: If either repository path does not exist.
        ToolInvocationError: If git fails. Commits created before the failure
                             are kept.
    """
    if not str(destination):
        raise ValueError("Destination repository path is empty")

    notify = observer or log_event

    history = read_history(origin, observer=notify)
    for record in history.values():
        logger.debug(f"Timestamp: {record.timestamp} GlobalID: {record.global_id}")

    return create_commits_in_repo(
        destination, history, observer=notify, dry_run=dry_run, no_verify=no_verify
    )
