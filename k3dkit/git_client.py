"""Version control operations backed by the git executable."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .errors import GitError, ShellError
from .logger import get_logger
from .shell import Runner, exec_shell_return_strings

logger = get_logger(__name__)

MAIN_BRANCH = "main"
LEGACY_BRANCH = "master"

BOT_NAME = "kubefirst-bot"
BOT_EMAIL = "kubefirst-bot@kubefirst.com"


class GitClient:
    """Runs git commands against local repositories."""

    def __init__(
        self,
        runner: Runner = exec_shell_return_strings,
        author_name: str = BOT_NAME,
        author_email: str = BOT_EMAIL,
    ):
        self.runner = runner
        self.author_name = author_name
        self.author_email = author_email

    def _git(self, repo: Path, *args: str) -> str:
        try:
            stdout, _ = self.runner("git", "-C", str(repo), *args)
        except ShellError as error:
            raise GitError(f"git {' '.join(args)} failed in {repo}: {error}") from error
        return stdout

    def init(self, path: Path, initial_branch: str = LEGACY_BRANCH) -> None:
        """Initialize a repository with no history at ``path``."""
        if (path / ".git").exists():
            raise GitError(f"Repository already exists: {path}")
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise GitError(f"Failed to create repository directory {path}: {error}") from error
        logger.info(f"Initializing git repository at {path}")
        self._git(path, "init", f"--initial-branch={initial_branch}")

    def commit(self, repo: Path, message: str) -> str:
        """Stage every file in the worktree and commit it. Returns the new commit hash."""
        self._git(repo, "add", "--all")
        self._git(
            repo,
            "-c", f"user.name={self.author_name}",
            "-c", f"user.email={self.author_email}",
            "-c", "commit.gpgsign=false",
            "commit", "--quiet", "--message", message,
        )
        commit = self.head_commit(repo)
        logger.info(f"Committed {commit[:12]} in {repo}: {message}")
        return commit

    def set_ref_to_main_branch(self, repo: Path, branch: str = MAIN_BRANCH) -> None:
        """Point ``branch`` at the current HEAD commit and make it the checked out branch."""
        self._git(repo, "update-ref", f"refs/heads/{branch}", "HEAD")
        self._git(repo, "symbolic-ref", "HEAD", f"refs/heads/{branch}")

    def remove_branch_reference(self, repo: Path, name: str) -> None:
        self._git(repo, "branch", "--delete", "--force", name)

    def create_remote(self, repo: Path, name: str, urls: Sequence[str]) -> None:
        if not urls:
            raise GitError(f"Remote {name} needs at least one URL")
        self._git(repo, "remote", "add", name, urls[0])
        for url in urls[1:]:
            self._git(repo, "remote", "set-url", "--add", name, url)

    def head_commit(self, repo: Path) -> str:
        return self._git(repo, "rev-parse", "HEAD").strip()

    def current_branch(self, repo: Path) -> Optional[str]:
        ref = self._git(repo, "symbolic-ref", "--short", "HEAD").strip()
        return ref or None

    def commit_count(self, repo: Path) -> int:
        return int(self._git(repo, "rev-list", "--count", "--all").strip() or 0)

    def branches(self, repo: Path) -> List[str]:
        output = self._git(repo, "for-each-ref", "--format=%(refname:short)", "refs/heads")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def remotes(self, repo: Path) -> Dict[str, List[str]]:
        names = [line.strip() for line in self._git(repo, "remote").splitlines() if line.strip()]
        result: Dict[str, List[str]] = {}
        for name in names:
            urls = self._git(repo, "remote", "get-url", "--all", name)
            result[name] = [line.strip() for line in urls.splitlines() if line.strip()]
        return result
