"""Exception hierarchy for Git Migrator.

Library code raises these and lets them propagate; only the CLI turns them
into messages and exit codes.
"""

from pathlib import Path

from .constants import EMPTY_HISTORY_FRAGMENTS


class MigratorError(Exception):
    """Base class for every error raised by Git Migrator."""


class RepoNotFoundError(MigratorError):
    """A referenced repository path does not exist.

    Attributes:
        path (Path): The missing path.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(f"Repository path does not exist: {path}")


class ToolInvocationError(MigratorError):
    """The `git` command exited with a non-zero status.

    Attributes:
        cmd (list[str]): The argument vector passed to git.
        returncode (int): The exit status.
        output (str): The diagnostic text produced by git.
    """

    def __init__(self, args: list[str], returncode: int, output: str):
        self.cmd = list(args)
        self.returncode = returncode
        self.output = output.strip()
        super().__init__(
            f"Git error (exit {returncode}) running "
            f"'git {' '.join(self.cmd)}': {self.output}"
        )

    def is_empty_history(self) -> bool:
        """Returns True if git reported that the branch has no commits yet."""
        return all(fragment in self.output for fragment in EMPTY_HISTORY_FRAGMENTS)


class MalformedLineError(MigratorError, ValueError):
    """A line of `git log` output could not be parsed.

    Readers catch this, log it and skip the line.
    """

    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"{reason}: {line!r}")
