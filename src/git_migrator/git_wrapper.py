import logging
import os
import subprocess
from datetime import datetime
from pathlib import Path

from .constants import APP_NAME
from .errors import RepoNotFoundError, ToolInvocationError

logger = logging.getLogger(APP_NAME)


def format_git_date(timestamp: datetime) -> str:
    """Renders a timestamp as RFC 3339, the form passed to `git commit --date`.

    Args:
        timestamp (datetime): A timezone-aware instant.

    Returns:
        str: The RFC 3339 representation (e.g. '2023-11-14T22:13:20+00:00').
    """
    return timestamp.isoformat(timespec="seconds")


class GitRepo:
    """A wrapper around the Git command-line interface for a specific repository.

    Commands are executed with an argument vector through `subprocess`, never
    through a shell, so paths and commit messages are passed to git verbatim.

    Attributes:
        path (Path): The file system path to the repository.
    """

    def __init__(self, path: Path | str):
        """Initializes the GitRepo instance.

        Args:
            path (Path | str): The path to the repository directory.

        Raises:
            RepoNotFoundError: If the path is not an existing directory.
        """
        self.path = Path(path)
        if not self.path.is_dir():
            raise RepoNotFoundError(path)

    def _run(self, args: list[str], env: dict | None = None) -> str:
        """Executes a Git command within the repository context.

        Args:
            args (list[str]): A list of arguments to pass to the git command.
            env (Optional[dict], optional): Environment variables to pass to the
                                            subprocess. Defaults to None.

        Returns:
            str: The stripped stdout of the command.

        Raises:
            ToolInvocationError: If the git command returns a non-zero exit code.
        """
        logger.debug(f"Running git {' '.join(args)} in {self.path}")
        try:
            res = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=True,
                text=True,
                check=True,
                env=env,
            )
            return res.stdout.strip()
        except subprocess.CalledProcessError as e:
            raise ToolInvocationError(
                args, e.returncode, e.stderr or e.stdout or str(e)
            ) from e

    def log(self, fmt: str) -> list[str]:
        """Lists the commits reachable from HEAD using a pretty format.

        Args:
            fmt (str): The `--pretty=format:` string (e.g. '%H|%at').

        Returns:
            list[str]: One rendered line per commit, newest first.

        Raises:
            ToolInvocationError: If git fails, including when the current
                                 branch has no commits yet.
        """
        output = self._run(["log", f"--pretty=format:{fmt}"])
        return output.splitlines() if output else []

    def commit_empty(
        self, message: str, timestamp: datetime, no_verify: bool = False
    ) -> None:
        """Creates a commit without content changes at a given point in time.

        Both the author date and the committer date are set to `timestamp`.

        Args:
            message (str): The commit message.
            timestamp (datetime): The instant to stamp on the commit.
            no_verify (bool, optional): Whether to bypass commit hooks
                                        (`--no-verify`). Defaults to False.
        """
        date = format_git_date(timestamp)
        cmd = ["commit", "--allow-empty", "-m", message, "--date", date]
        if no_verify:
            cmd.append("--no-verify")
        env = {**os.environ, "GIT_COMMITTER_DATE": date}
        self._run(cmd, env=env)

    def rev_parse(self, rev: str) -> str | None:
        """Resolves a revision (tag, branch, relative ref) to a full SHA-1 hash.

        Args:
            rev (str): The revision to parse (e.g., 'HEAD', 'master').

        Returns:
            Optional[str]:  The full SHA-1 hash,
                            or None if the revision could not be resolved.
        """
        try:
            return self._run(["rev-parse", "--verify", rev])
        except ToolInvocationError as e:
            logger.debug(f"rev-parse failed for '{rev}': {e}")
            return None
