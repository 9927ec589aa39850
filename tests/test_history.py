"""Tests for reading origin histories and destination markers."""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from git_migrator import history
from git_migrator.constants import HISTORY_FORMAT, MARKER_FORMAT
from git_migrator.errors import (
    MalformedLineError,
    RepoNotFoundError,
    ToolInvocationError,
)
from git_migrator.events import HISTORY_READ, MARKERS_READ, EventRecorder

EMPTY_BRANCH = (
    "fatal: your current branch 'main' does not have any commits yet\n"
)


@pytest.fixture
def mock_repo(mocker: MagicMock) -> MagicMock:
    """Patches GitRepo in the history module and returns the fake instance."""
    mock_cls = mocker.patch("git_migrator.history.GitRepo")
    repo = mock_cls.return_value
    repo.path = Path("/tmp/origin")
    return repo


def test_path_hash_known_values() -> None:
    """Verifies the FNV-1a implementation against reference vectors."""
    assert history.path_hash("") == "2166136261"
    assert history.path_hash("a") == "3826002220"
    assert history.path_hash("foobar") == str(0xBF9CF968)


def test_path_hash_accepts_paths() -> None:
    """Verifies that Path and str spellings of the same path hash identically."""
    assert history.path_hash(Path("/tmp/origin")) == history.path_hash("/tmp/origin")


def test_path_hash_uses_raw_spelling() -> None:
    """Verifies equivalent spellings of a path are not normalized together."""
    assert history.path_hash("./origin/") != history.path_hash("origin")


def test_read_history_builds_records(mock_repo: MagicMock) -> None:
    """Verifies one record per line, keyed by '<path hash>-<commit>'."""
    mock_repo.log.return_value = ["abc123|1700000000", "def456|1600000000"]

    result = history.read_history("/tmp/origin", observer=EventRecorder())

    h = history.path_hash("/tmp/origin")
    mock_repo.log.assert_called_once_with(HISTORY_FORMAT)
    assert set(result) == {f"{h}-abc123", f"{h}-def456"}

    record = result[f"{h}-abc123"]
    assert record.commit_id == "abc123"
    assert record.path_hash == h
    assert record.timestamp == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


def test_read_history_path_hash_is_stable(mock_repo: MagicMock) -> None:
    """Verifies that two reads of the same path derive the same identifiers."""
    mock_repo.log.return_value = ["abc123|1700000000"]

    first = history.read_history("/tmp/origin", observer=EventRecorder())
    second = history.read_history("/tmp/origin", observer=EventRecorder())

    assert first == second


def test_read_history_skips_malformed_lines(
    mock_repo: MagicMock, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies that bad lines are logged and skipped without aborting the read."""
    mock_repo.log.return_value = [
        "aaa|1700000000",
        "bbb|not-a-number",
        "ccc",
        "",
        "ddd|1700000100",
    ]
    recorder = EventRecorder()

    result = history.read_history("/tmp/origin", observer=recorder)

    assert sorted(r.commit_id for r in result.values()) == ["aaa", "ddd"]
    assert "Invalid timestamp" in caplog.text
    assert "Invalid commit line" in caplog.text

    (event,) = recorder.of(HISTORY_READ)
    assert event.data["records"] == 2
    assert event.data["skipped"] == 2


def test_read_history_skips_out_of_range_timestamps(
    mock_repo: MagicMock, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies an integer too large for a datetime skips only that line."""
    mock_repo.log.return_value = [
        "aaa|1700000000",
        "bbb|999999999999999",
        "ccc|1700000100",
    ]

    result = history.read_history("/tmp/origin", observer=EventRecorder())

    assert sorted(r.commit_id for r in result.values()) == ["aaa", "ccc"]
    assert "Timestamp out of range" in caplog.text


@pytest.mark.parametrize("raw", [" 12", "12 ", "1_000", "\u0661\u0662", "+", ""])
def test_parse_history_line_rejects_loose_integers(raw: str) -> None:
    """Verifies only plain ASCII integers are accepted as timestamps."""
    with pytest.raises(MalformedLineError, match="Invalid timestamp"):
        history.parse_history_line(f"abc|{raw}", "1")


def test_parse_history_line_accepts_signed_integers() -> None:
    later = history.parse_history_line("abc|+5", "1")
    earlier = history.parse_history_line("abc|-5", "1")

    assert later.timestamp == datetime.fromtimestamp(5, tz=timezone.utc)
    assert earlier.timestamp == datetime.fromtimestamp(-5, tz=timezone.utc)


def test_read_markers_skips_out_of_range_timestamps(mock_repo: MagicMock) -> None:
    mock_repo.log.return_value = ["111|99999999999999999999|42-abc", "222|5|42-def"]

    markers = history.read_destination_markers("/tmp/dest", observer=EventRecorder())

    assert list(markers) == ["42-def"]


def test_read_history_later_duplicate_wins(mock_repo: MagicMock) -> None:
    """Verifies that a repeated commit hash keeps the last line's timestamp."""
    mock_repo.log.return_value = ["abc|100", "abc|200"]

    result = history.read_history("/tmp/origin", observer=EventRecorder())

    (record,) = result.values()
    assert record.timestamp == datetime.fromtimestamp(200, tz=timezone.utc)


def test_read_history_empty_branch(mock_repo: MagicMock) -> None:
    """Verifies that an unborn branch is an empty history, not an error."""
    mock_repo.log.side_effect = ToolInvocationError(["log"], 128, EMPTY_BRANCH)

    assert history.read_history("/tmp/origin", observer=EventRecorder()) == {}


def test_read_history_empty_output(mock_repo: MagicMock) -> None:
    mock_repo.log.return_value = []

    assert history.read_history("/tmp/origin", observer=EventRecorder()) == {}


def test_read_history_propagates_other_git_errors(mock_repo: MagicMock) -> None:
    """Verifies that unrelated git failures surface with their diagnostic."""
    mock_repo.log.side_effect = ToolInvocationError(
        ["log"], 128, "fatal: not a git repository (or any of the parent directories)"
    )

    with pytest.raises(ToolInvocationError, match="not a git repository"):
        history.read_history("/tmp/origin", observer=EventRecorder())


def test_read_history_missing_path(tmp_path: Path) -> None:
    """Verifies that a missing origin raises RepoNotFoundError naming the path."""
    missing = tmp_path / "nope"

    with pytest.raises(RepoNotFoundError, match="nope"):
        history.read_history(missing)


def test_read_markers_uses_subject_verbatim(mock_repo: MagicMock) -> None:
    """Verifies that the commit subject is the key, even when it is not a marker."""
    mock_repo.log.return_value = [
        "111|1700000000|42-abc123",
        "222|1700000001|Initial commit",
        "333|1700000002|odd|subject",
    ]
    recorder = EventRecorder()

    markers = history.read_destination_markers("/tmp/7-dest", observer=recorder)

    mock_repo.log.assert_called_once_with(MARKER_FORMAT)
    assert set(markers) == {"42-abc123", "Initial commit", "odd|subject"}
    assert markers["42-abc123"].commit_id == "111"
    assert markers["42-abc123"].path_hash == "7"
    assert recorder.of(MARKERS_READ)[0].data["markers"] == 3


def test_read_markers_skips_malformed_lines(mock_repo: MagicMock) -> None:
    mock_repo.log.return_value = ["111|1700000000", "222|x|42-abc", "333|5|42-def"]

    markers = history.read_destination_markers("/tmp/dest", observer=EventRecorder())

    assert list(markers) == ["42-def"]


def test_read_markers_empty_branch(mock_repo: MagicMock) -> None:
    mock_repo.log.side_effect = ToolInvocationError(["log"], 128, EMPTY_BRANCH)

    assert history.read_destination_markers("/tmp/dest", observer=EventRecorder()) == {}
