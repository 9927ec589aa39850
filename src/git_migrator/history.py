"""Reading commit timelines out of git repositories.

An origin repository is read into a `HistoryMap` keyed by global identifier
(`<path hash>-<commit hash>`). A destination repository is read back the same
way, except that the identifier is the commit subject: every commit created
by a migration carries its global identifier as its message, so the
destination's own log is the record of what has already been migrated.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .constants import (
    APP_NAME,
    FIELD_SEPARATOR,
    GLOBAL_ID_SEPARATOR,
    HISTORY_FORMAT,
    MARKER_FORMAT,
)
from .errors import MalformedLineError, ToolInvocationError
from .events import HISTORY_READ, MARKERS_READ, MigrationEvent, Observer, log_event
from .git_wrapper import GitRepo

logger = logging.getLogger(APP_NAME)

FNV32_OFFSET_BASIS = 2166136261
FNV32_PRIME = 16777619

TIMESTAMP_PATTERN = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class CommitRecord:
    """One commit of a timeline.

    Attributes:
        global_id (str): Stable identifier of the commit across repositories.
        path_hash (str): Decimal FNV-1a hash of the origin repository path.
        commit_id (str): The commit hash in the repository it was read from.
        timestamp (datetime): The author time, as a UTC-aware instant.
    """

    global_id: str
    path_hash: str
    commit_id: str
    timestamp: datetime


HistoryMap = dict[str, CommitRecord]


def path_hash(path: Path | str) -> str:
    """Computes the 32-bit FNV-1a hash of a repository path.

    The raw path string is hashed as given (no normalization), so the same
    repository reached through two different spellings yields two hashes.

    Args:
        path (Path | str): The repository path.

    Returns:
        str: The unsigned hash rendered in decimal.
    """
    h = FNV32_OFFSET_BASIS
    for byte in str(path).encode("utf-8"):
        h ^= byte
        h = (h * FNV32_PRIME) & 0xFFFFFFFF
    return str(h)


def make_global_id(hash_: str, commit_id: str) -> str:
    return f"{hash_}{GLOBAL_ID_SEPARATOR}{commit_id}"


def _parse_timestamp(line: str, raw: str) -> datetime:
    # Plain ASCII integers only: no padding, underscores or other digit scripts
    if not (raw.isascii() and TIMESTAMP_PATTERN.fullmatch(raw)):
        raise MalformedLineError(line, "Invalid timestamp")
    try:
        return datetime.fromtimestamp(int(raw), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        raise MalformedLineError(line, "Timestamp out of range") from None


def parse_history_line(line: str, hash_: str) -> CommitRecord:
    """Parses a `<hash>|<unix timestamp>` line from an origin repository.

    Raises:
        MalformedLineError: If fields are missing or the timestamp is not an
                            in-range integer.
    """
    fields = line.split(FIELD_SEPARATOR)
    if len(fields) < 2:
        raise MalformedLineError(line, "Invalid commit line")
    commit_id = fields[0]
    return CommitRecord(
        global_id=make_global_id(hash_, commit_id),
        path_hash=hash_,
        commit_id=commit_id,
        timestamp=_parse_timestamp(line, fields[1]),
    )


def parse_marker_line(line: str, hash_: str) -> CommitRecord:
    """Parses a `<hash>|<unix timestamp>|<subject>` line from a destination.

    The subject is taken verbatim as the global identifier, whether or not it
    has the `<path hash>-<commit hash>` shape. Only the first two separators
    split the line, so a subject containing '|' is kept whole rather than cut
    at its first '|'. Markers written by a migration never contain one.

    Raises:
        MalformedLineError: If fields are missing or the timestamp is not an
                            in-range integer.
    """
    fields = line.split(FIELD_SEPARATOR, 2)
    if len(fields) < 3:
        raise MalformedLineError(line, "Invalid commit line")
    return CommitRecord(
        global_id=fields[2],
        path_hash=hash_,
        commit_id=fields[0],
        timestamp=_parse_timestamp(line, fields[1]),
    )


def _read_log(repo: GitRepo, fmt: str) -> list[str]:
    """Runs `git log`, mapping an unborn branch to an empty listing."""
    try:
        return repo.log(fmt)
    except ToolInvocationError as e:
        if e.is_empty_history():
            logger.info(f"No commits found in branch: {repo.path}")
            return []
        raise ToolInvocationError(
            e.cmd, e.returncode, f"listing commits in {repo.path}: {e.output}"
        ) from e


def _collect(
    lines: list[str], parse: Callable[[str, str], CommitRecord], hash_: str
) -> tuple[HistoryMap, int]:
    history: HistoryMap = {}
    skipped = 0
    for line in lines:
        if not line:
            continue
        try:
            record = parse(line, hash_)
        except MalformedLineError as e:
            logger.warning(f"Skipping malformed log line: {e}")
            skipped += 1
            continue
        history[record.global_id] = record
    return history, skipped


def read_history(
    repo_path: Path | str, observer: Observer | None = None
) -> HistoryMap:
    """Reads the commit timeline of an origin repository.

    Args:
        repo_path (Path | str): The origin repository directory.
        observer (Observer | None): Receives a `history_read` event.
                                    Defaults to logging it.

    Returns:
        HistoryMap: Records keyed by global identifier. Empty if the current
                    branch has no commits.

    Raises:
        RepoNotFoundError: If `repo_path` does not exist.
        ToolInvocationError: If git fails for any other reason.
    """
    notify = observer or log_event
    repo = GitRepo(repo_path)
    logger.info(f"Getting commits in {repo_path}")

    hash_ = path_hash(repo_path)
    lines = _read_log(repo, HISTORY_FORMAT)
    history, skipped = _collect(lines, parse_history_line, hash_)

    notify(
        MigrationEvent(
            HISTORY_READ,
            {
                "repo": str(repo_path),
                "path_hash": hash_,
                "records": len(history),
                "skipped": skipped,
            },
        )
    )
    return history


def read_destination_markers(
    repo_path: Path | str, observer: Observer | None = None
) -> HistoryMap:
    """Reads the migration markers already present in a destination repository.

    Only the keys of the result matter to a migration. The recovered
    `path_hash` is taken from the destination folder name (the text before its
    first '-') and is informational only.

    Args:
        repo_path (Path | str): The destination repository directory.
        observer (Observer | None): Receives a `markers_read` event.
                                    Defaults to logging it.

    Returns:
        HistoryMap: Records keyed by commit subject.

    Raises:
        RepoNotFoundError: If `repo_path` does not exist.
        ToolInvocationError: If git fails for any other reason.
    """
    notify = observer or log_event
    repo = GitRepo(repo_path)
    logger.info(f"Getting markers in {repo_path}")

    hash_ = Path(repo_path).name.split(GLOBAL_ID_SEPARATOR, 1)[0]
    lines = _read_log(repo, MARKER_FORMAT)
    markers, skipped = _collect(lines, parse_marker_line, hash_)

    notify(
        MigrationEvent(
            MARKERS_READ,
            {"repo": str(repo_path), "markers": len(markers), "skipped": skipped},
        )
    )
    return markers
