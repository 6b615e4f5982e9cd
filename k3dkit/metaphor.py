from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Optional

from .errors import FilesystemError, GitError, ShellError
from .fsutil import copy_path, remove_path
from .git_client import LEGACY_BRANCH, GitClient
from .gitops import REPOS_TF
from .logger import get_logger
from .shell import Runner, exec_shell_return_strings, replace_placeholder
from .steps import Step, run_steps

logger = get_logger(__name__)

COMMIT_MESSAGE = "committing initial detokenized metaphor repo content"
METAPHOR_REPO_NAME_TOKEN = "METAPHOR_REPO_NAME"
REMOTE_NAME = "origin"


@dataclass(frozen=True)
class MetaphorOptions:
    destination_metaphor_repo_git_url: str
    gitops_repo_dir: Path
    metaphor_repo_name: str
    git_provider: str
    base_dir: Path

    @property
    def metaphor_dir(self) -> Path:
        return self.base_dir / "metaphor"

    @property
    def ci_dir(self) -> Path:
        return self.gitops_repo_dir / "ci"


def _init(options: MetaphorOptions, git: GitClient) -> None:
    git.init(options.metaphor_dir)


def _copy_metaphor(options: MetaphorOptions) -> None:
    copy_path(options.gitops_repo_dir / "metaphor", options.metaphor_dir)


def _copy_ci(options: MetaphorOptions) -> None:
    if options.git_provider == "github":
        source = options.ci_dir / ".github"
        logger.info(f"Copying github content: {source}")
        copy_path(source, options.metaphor_dir / ".github")
    elif options.git_provider == "gitlab":
        source = options.ci_dir / ".gitlab-ci.yml"
        logger.info(f"Copying gitlab content: {source}")
        copy_path(source, options.metaphor_dir / ".gitlab-ci.yml")
    else:
        logger.warning(f"No CI content for git provider '{options.git_provider}' - skipping")


def _copy_argo(options: MetaphorOptions) -> None:
    source = options.ci_dir / ".argo"
    logger.info(f"Copying argo workflows content: {source}")
    copy_path(source, options.metaphor_dir / ".argo")


def _copy_dockerfile(options: MetaphorOptions) -> None:
    build_dir = options.metaphor_dir / "build"
    try:
        build_dir.mkdir(exist_ok=True)
    except OSError as error:
        raise FilesystemError(f"Failed to create {build_dir}: {error}") from error
    copy_path(options.metaphor_dir / "Dockerfile", build_dir / "Dockerfile")


def _cleanup_gitops(options: MetaphorOptions) -> None:
    remove_path(options.ci_dir)
    remove_path(options.gitops_repo_dir / "metaphor")


def _commit(options: MetaphorOptions, git: GitClient) -> None:
    git.commit(options.metaphor_dir, COMMIT_MESSAGE)


def _normalize_branch(options: MetaphorOptions, git: GitClient) -> None:
    git.set_ref_to_main_branch(options.metaphor_dir)
    try:
        git.remove_branch_reference(options.metaphor_dir, LEGACY_BRANCH)
    except GitError as error:
        raise GitError(f"error removing previous git ref: {error}") from error


def _render_metaphor_name(options: MetaphorOptions, runner: Runner) -> None:
    path = options.gitops_repo_dir / REPOS_TF
    try:
        replace_placeholder(path, METAPHOR_REPO_NAME_TOKEN, options.metaphor_repo_name, runner=runner)
    except ShellError as error:
        raise ShellError(
            f"error replacing gitops repo name in repos.tf: {error}",
            stdout=error.stdout,
            stderr=error.stderr,
        ) from error


def _add_remote(options: MetaphorOptions, git: GitClient) -> None:
    url = options.destination_metaphor_repo_git_url
    try:
        git.create_remote(options.metaphor_dir, REMOTE_NAME, [url])
    except GitError as error:
        raise GitError(f"error problem creating metaphor repo remote: URL={url}: {error}") from error


def metaphor_plan(
    options: MetaphorOptions,
    git: GitClient,
    runner: Runner = exec_shell_return_strings,
) -> list[Step]:
    return [
        Step("init", partial(_init, options, git)),
        Step("copy-metaphor", partial(_copy_metaphor, options)),
        Step("copy-ci", partial(_copy_ci, options)),
        Step("copy-argo", partial(_copy_argo, options)),
        Step("copy-dockerfile", partial(_copy_dockerfile, options)),
        Step("cleanup-gitops", partial(_cleanup_gitops, options)),
        Step("commit", partial(_commit, options, git)),
        Step("normalize-branch", partial(_normalize_branch, options, git)),
        Step("render-metaphor-name", partial(_render_metaphor_name, options, runner)),
        Step("add-remote", partial(_add_remote, options, git)),
    ]


def adjust_metaphor_repo(
    destination_metaphor_repo_git_url: str,
    gitops_repo_dir: Path,
    metaphor_repo_name: str,
    git_provider: str,
    base_dir: Path,
    *,
    git: Optional[GitClient] = None,
    runner: Runner = exec_shell_return_strings,
) -> Path:
    """Build the metaphor repository at ``<base_dir>/metaphor`` from the pruned gitops tree.

    The new repository gets a single commit on ``main`` and an ``origin``
    remote. Returns the repository path.
    """
    options = MetaphorOptions(
        destination_metaphor_repo_git_url=destination_metaphor_repo_git_url,
        gitops_repo_dir=Path(gitops_repo_dir),
        metaphor_repo_name=metaphor_repo_name,
        git_provider=git_provider,
        base_dir=Path(base_dir),
    )
    run_steps("metaphor", metaphor_plan(options, git or GitClient(runner=runner), runner=runner))
    return options.metaphor_dir
