from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Callable, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import CLOUD_PROVIDER, LOCALHOST_ARCH, get_config, load_bootstrap_file
from .errors import BootstrapError, ConfigError
from .git_client import GitClient
from .gitops import adjust_gitops_repo
from .logger import set_verbose, setup_file_logging
from .metaphor import adjust_metaphor_repo

app = typer.Typer(help="Materialize the gitops and metaphor repositories for a local k3d platform.")
console = Console()

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_INPUT = 2


class OutputFormat(str, Enum):
    table = "table"
    json = "json"
    md = "md"


class GitProvider(str, Enum):
    github = "github"
    gitlab = "gitlab"


def _json_print(payload: dict) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=True, sort_keys=True))


def _print_key_value_table(title: str, rows: list[tuple[str, str]]) -> None:
    table = Table(title=title)
    table.add_column("Field")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(key, value)
    console.print(table)


def _emit_success(
    command: str,
    output_format: OutputFormat,
    data: dict,
    md_renderer: Callable[[dict], str] | None = None,
) -> None:
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": True,
                "command": command,
                "exit_code": EXIT_OK,
                "data": data,
            }
        )
        return

    if output_format == OutputFormat.md and md_renderer is not None:
        console.print(md_renderer(data))
        return

    if output_format == OutputFormat.md:
        lines = [f"# {command}", ""]
        lines.extend(f"- **{key}**: {value}" for key, value in data.items())
        console.print("\n".join(lines))
    else:
        _print_key_value_table(
            title=command,
            rows=[(str(key), str(value)) for key, value in data.items()],
        )


def _emit_error(
    command: str,
    output_format: OutputFormat,
    exit_code: int,
    code: str,
    message: str,
) -> NoReturn:
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": False,
                "command": command,
                "exit_code": exit_code,
                "error": {
                    "code": code,
                    "message": message,
                },
            }
        )
    elif output_format == OutputFormat.md:
        console.print(f"# {command}\n\n- **status**: error\n- **code**: {code}\n- **message**: {message}")
    else:
        console.print(f"[red]Error ({code}):[/red] {message}")

    raise typer.Exit(code=exit_code)


def _emit_failure(command: str, output_format: OutputFormat, error: BootstrapError) -> NoReturn:
    if isinstance(error, ConfigError):
        _emit_error(command, output_format, EXIT_INVALID_INPUT, "invalid_input", str(error))
    _emit_error(command, output_format, EXIT_ERROR, "bootstrap_error", str(error))


def _metaphor_summary(repo: Path) -> dict:
    git = GitClient()
    return {
        "metaphor_dir": str(repo),
        "branch": git.current_branch(repo) or "",
        "commit": git.head_commit(repo),
        "remotes": {name: urls for name, urls in git.remotes(repo).items()},
    }


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs to this file."),
) -> None:
    set_verbose(verbose)
    if log_file is not None:
        setup_file_logging(log_file, verbose=verbose)


@app.command("gitops")
def gitops(
    gitops_dir: Path = typer.Argument(..., help="Template tree to reduce in place."),
    cluster_name: str = typer.Option(..., "--cluster-name", help="Registry directory name."),
    cluster_type: str = typer.Option("mgmt", "--cluster-type", help="Subtree of cluster-types/ to keep."),
    gitops_repo_name: str = typer.Option("gitops", "--gitops-repo-name", help="Name written into repos.tf."),
    git_provider: GitProvider = typer.Option(GitProvider.github, "--git-provider", help="Git provider."),
    cloud_provider: str = typer.Option(CLOUD_PROVIDER, "--cloud-provider", help="Cloud provider variant to keep."),
    base_dir: Optional[Path] = typer.Option(None, "--base-dir", help="Working directory (defaults to the parent of GITOPS_DIR)."),
    remove_atlantis: bool = typer.Option(False, "--remove-atlantis/--keep-atlantis", help="Drop the atlantis manifest."),
    host_arch: str = typer.Option(LOCALHOST_ARCH, "--arch", help="Host architecture used to pick the console manifest."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Reduce a gitops template tree to one provider variant and cluster type."""
    root = gitops_dir.resolve()
    if not root.is_dir():
        _emit_error("gitops", output_format, EXIT_INVALID_INPUT, "invalid_gitops_path", f"Gitops directory does not exist: {root}")

    try:
        adjust_gitops_repo(
            cloud_provider=cloud_provider,
            cluster_name=cluster_name,
            cluster_type=cluster_type,
            gitops_repo_dir=root,
            gitops_repo_name=gitops_repo_name,
            git_provider=git_provider.value,
            base_dir=(base_dir or root.parent).resolve(),
            remove_atlantis=remove_atlantis,
            host_arch=host_arch,
        )
    except BootstrapError as error:
        _emit_failure("gitops", output_format, error)

    data = {
        "gitops_dir": str(root),
        "variant": f"{cloud_provider}-{git_provider.value}",
        "registry": str(root / "registry" / cluster_name),
        "atlantis_removed": remove_atlantis,
    }
    _emit_success(command="gitops", output_format=output_format, data=data)


@app.command("metaphor")
def metaphor(
    gitops_dir: Path = typer.Argument(..., help="Pruned gitops tree."),
    destination_url: str = typer.Option(..., "--destination-url", help="URL for the origin remote."),
    metaphor_repo_name: str = typer.Option("metaphor", "--metaphor-repo-name", help="Name written into repos.tf."),
    git_provider: GitProvider = typer.Option(GitProvider.github, "--git-provider", help="Selects CI content."),
    base_dir: Optional[Path] = typer.Option(None, "--base-dir", help="Parent of the new metaphor repository (defaults to the parent of GITOPS_DIR)."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Assemble and commit the metaphor repository from a pruned gitops tree."""
    root = gitops_dir.resolve()
    if not root.is_dir():
        _emit_error("metaphor", output_format, EXIT_INVALID_INPUT, "invalid_gitops_path", f"Gitops directory does not exist: {root}")

    try:
        repo = adjust_metaphor_repo(
            destination_metaphor_repo_git_url=destination_url,
            gitops_repo_dir=root,
            metaphor_repo_name=metaphor_repo_name,
            git_provider=git_provider.value,
            base_dir=(base_dir or root.parent).resolve(),
        )
        data = _metaphor_summary(repo)
    except BootstrapError as error:
        _emit_failure("metaphor", output_format, error)

    _emit_success(command="metaphor", output_format=output_format, data=data)


@app.command("bootstrap")
def bootstrap(
    config_file: Path = typer.Option(..., "--config", "-c", help="YAML bootstrap settings."),
    home_dir: Optional[Path] = typer.Option(None, "--home", help="Home directory holding .k1 (defaults to $HOME)."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Run the gitops and metaphor steps for a configured cluster."""
    try:
        settings = load_bootstrap_file(config_file.resolve())
        config = get_config(
            config_name=settings.config_name,
            cluster_name=settings.cluster_name,
            gitops_repo_name=settings.gitops_repo_name,
            metaphor_repo_name=settings.metaphor_repo_name,
            git_provider=settings.git_provider,
            git_owner=settings.git_owner,
            git_protocol=settings.git_protocol,
            home_dir=home_dir,
        )
        if not config.gitops_dir.is_dir():
            raise ConfigError(f"Gitops template tree not found: {config.gitops_dir}")

        adjust_gitops_repo(
            cloud_provider=settings.cloud_provider,
            cluster_name=settings.cluster_name,
            cluster_type=settings.cluster_type,
            gitops_repo_dir=config.gitops_dir,
            gitops_repo_name=config.gitops_repo_name,
            git_provider=config.git_provider,
            base_dir=config.k1_dir,
            remove_atlantis=settings.remove_atlantis,
        )
        repo = adjust_metaphor_repo(
            destination_metaphor_repo_git_url=config.metaphor_remote_url(),
            gitops_repo_dir=config.gitops_dir,
            metaphor_repo_name=config.metaphor_repo_name,
            git_provider=config.git_provider,
            base_dir=config.k1_dir,
        )
        data = {"gitops_dir": str(config.gitops_dir), **_metaphor_summary(repo)}
    except BootstrapError as error:
        _emit_failure("bootstrap", output_format, error)

    def render_md(payload: dict) -> str:
        lines = ["# Bootstrap complete", ""]
        lines.append(f"- **gitops_dir**: `{payload['gitops_dir']}`")
        lines.append(f"- **metaphor_dir**: `{payload['metaphor_dir']}`")
        lines.append(f"- **branch**: `{payload['branch']}` at `{payload['commit'][:12]}`")
        for name, urls in payload["remotes"].items():
            lines.append(f"- **remote {name}**: {', '.join(urls)}")
        return "\n".join(lines)

    _emit_success(command="bootstrap", output_format=output_format, data=data, md_renderer=render_md)


@app.command("paths")
def paths(
    config_file: Path = typer.Option(..., "--config", "-c", help="YAML bootstrap settings."),
    home_dir: Optional[Path] = typer.Option(None, "--home", help="Home directory holding .k1 (defaults to $HOME)."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Show the local paths and destination URLs derived from a bootstrap file."""
    try:
        settings = load_bootstrap_file(config_file.resolve())
    except ConfigError as error:
        _emit_failure("paths", output_format, error)

    config = get_config(
        config_name=settings.config_name,
        cluster_name=settings.cluster_name,
        gitops_repo_name=settings.gitops_repo_name,
        metaphor_repo_name=settings.metaphor_repo_name,
        git_provider=settings.git_provider,
        git_owner=settings.git_owner,
        git_protocol=settings.git_protocol,
        home_dir=home_dir,
    )
    _emit_success(command="paths", output_format=output_format, data=config.as_dict())


@app.command("version")
def version(
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
) -> None:
    """Print version."""
    _emit_success(command="version", output_format=output_format, data={"version": __version__})


if __name__ == "__main__":
    app()
