from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from pathlib import Path

from .config import CLOUD_PROVIDER, LOCALHOST_ARCH, SUPPORTED_PLATFORMS
from .errors import BootstrapError
from .fsutil import copy_path, remove_path
from .logger import get_logger
from .shell import Runner, exec_shell_return_strings, replace_placeholder
from .steps import Step, run_steps

logger = get_logger(__name__)

REPOS_TF = Path("terraform") / "github" / "repos.tf"
REPOS_TF_TEMPLATE = Path("terraform") / "github" / "repos.tf.tmpl"
GITOPS_REPO_NAME_TOKEN = "GITOPS_REPO_NAME"

CONSOLE_MANIFEST = Path("components") / "kubefirst" / "console.yaml"
CONSOLE_ARM_MANIFEST = Path("components") / "kubefirst" / "console-arm.yaml"
ATLANTIS_MANIFEST = Path("atlantis.yaml")


@dataclass(frozen=True)
class GitopsOptions:
    cloud_provider: str
    cluster_name: str
    cluster_type: str
    gitops_repo_dir: Path
    gitops_repo_name: str
    git_provider: str
    base_dir: Path
    remove_atlantis: bool = False
    platforms: tuple[str, ...] = SUPPORTED_PLATFORMS
    host_arch: str = LOCALHOST_ARCH

    @property
    def variant(self) -> str:
        return f"{self.cloud_provider}-{self.git_provider}"

    @property
    def registry_dir(self) -> Path:
        return self.gitops_repo_dir / "registry" / self.cluster_name

    @property
    def uses_arm_console(self) -> bool:
        return self.host_arch == "arm64" and self.cloud_provider == CLOUD_PROVIDER


def _prune_variants(options: GitopsOptions) -> None:
    for platform in options.platforms:
        if platform != options.variant:
            remove_path(options.gitops_repo_dir / platform)


def _promote_variant(options: GitopsOptions) -> None:
    variant_dir = options.gitops_repo_dir / options.variant
    logger.info(f"Populating gitops repository with driver content: {options.variant}")
    copy_path(variant_dir, options.gitops_repo_dir)
    remove_path(variant_dir)


def _promote_cluster_type(options: GitopsOptions) -> None:
    cluster_content = options.gitops_repo_dir / "cluster-types" / options.cluster_type
    logger.info(f"Populating {options.registry_dir} with {cluster_content}")
    copy_path(cluster_content, options.registry_dir)
    remove_path(options.gitops_repo_dir / "cluster-types")
    remove_path(options.gitops_repo_dir / "services")


def _select_console(options: GitopsOptions) -> None:
    # The console image differs per architecture; only the matching manifest is kept.
    if options.uses_arm_console:
        remove_path(options.registry_dir / CONSOLE_MANIFEST)
    else:
        remove_path(options.registry_dir / CONSOLE_ARM_MANIFEST)


def _remove_atlantis(options: GitopsOptions) -> None:
    remove_path(options.registry_dir / ATLANTIS_MANIFEST)


def _render_repos_tf(options: GitopsOptions, runner: Runner) -> None:
    path = options.gitops_repo_dir / REPOS_TF
    copy_path(options.gitops_repo_dir / REPOS_TF_TEMPLATE, path)
    replace_placeholder(path, GITOPS_REPO_NAME_TOKEN, options.gitops_repo_name, runner=runner)


def gitops_plan(options: GitopsOptions, runner: Runner = exec_shell_return_strings) -> list[Step]:
    for field_name in ("cloud_provider", "git_provider", "cluster_name", "cluster_type"):
        if not getattr(options, field_name):
            raise BootstrapError(f"Missing required value: {field_name}")

    steps = [
        Step("prune-variants", partial(_prune_variants, options)),
        Step("promote-variant", partial(_promote_variant, options)),
        Step("promote-cluster-type", partial(_promote_cluster_type, options)),
        Step("select-console", partial(_select_console, options)),
    ]
    if options.remove_atlantis:
        steps.append(Step("remove-atlantis", partial(_remove_atlantis, options)))
    steps.append(Step("render-repos-tf", partial(_render_repos_tf, options, runner)))
    return steps


def adjust_gitops_repo(
    cloud_provider: str,
    cluster_name: str,
    cluster_type: str,
    gitops_repo_dir: Path,
    gitops_repo_name: str,
    git_provider: str,
    base_dir: Path,
    remove_atlantis: bool = False,
    *,
    platforms: tuple[str, ...] = SUPPORTED_PLATFORMS,
    host_arch: str = LOCALHOST_ARCH,
    runner: Runner = exec_shell_return_strings,
) -> None:
    """Reduce a template tree to the selected provider variant and cluster type.

    The tree at ``gitops_repo_dir`` is modified in place. The first failing step
    raises and leaves the tree as it was at that point.
    """
    options = GitopsOptions(
        cloud_provider=cloud_provider,
        cluster_name=cluster_name,
        cluster_type=cluster_type,
        gitops_repo_dir=Path(gitops_repo_dir),
        gitops_repo_name=gitops_repo_name,
        git_provider=git_provider,
        base_dir=Path(base_dir),
        remove_atlantis=remove_atlantis,
        platforms=tuple(platforms),
        host_arch=host_arch,
    )
    run_steps("gitops", gitops_plan(options, runner=runner))
