import shutil
from pathlib import Path

import pytest

from k3dkit.errors import ShellError

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")
requires_sed = pytest.mark.skipif(shutil.which("sed") is None, reason="sed executable not available")

REPOS_TF_TEMPLATE = """resource "github_repository" "gitops" {
  name = GITOPS_REPO_NAME
}

resource "github_repository" "metaphor" {
  name = METAPHOR_REPO_NAME
}
"""


def _write(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def build_template_tree(
    root: Path,
    variants=("k3d-github", "aws-gitlab"),
    cluster_types=("local", "production"),
) -> Path:
    for variant in variants:
        _write(root / variant / "README.md", f"# {variant}\n")
        _write(root / variant / "terraform" / "github" / "repos.tf.tmpl", REPOS_TF_TEMPLATE)
        _write(root / variant / "terraform" / "vault" / "main.tf", f"# vault for {variant}\n")
        _write(root / variant / "terraform" / "vault" / ".terraform" / "providers" / "lock", "cache\n")
        _write(root / variant / ".git" / "HEAD", "ref: refs/heads/main\n")

    for cluster_type in cluster_types:
        base = root / "cluster-types" / cluster_type
        _write(base / "argocd.yaml", f"cluster-type: {cluster_type}\n")
        _write(base / "atlantis.yaml", "kind: Application\n")
        _write(base / "components" / "kubefirst" / "console.yaml", "arch: amd64\n")
        _write(base / "components" / "kubefirst" / "console-arm.yaml", "arch: arm64\n")

    _write(root / "services" / "legacy.yaml", "legacy: true\n")

    _write(root / "metaphor" / "Dockerfile", "FROM node:18\n")
    _write(root / "metaphor" / "index.js", "console.log('metaphor')\n")
    _write(root / "metaphor" / ".git" / "config", "[core]\n")

    _write(root / "ci" / ".github" / "workflows" / "main.yml", "name: ci\n")
    _write(root / "ci" / ".gitlab-ci.yml", "stages: [build]\n")
    _write(root / "ci" / ".argo" / "cwft-build.yaml", "kind: ClusterWorkflowTemplate\n")
    return root


@pytest.fixture
def template_tree(tmp_path: Path) -> Path:
    return build_template_tree(tmp_path / "gitops")


class RecordingRunner:
    """Stands in for the shell runner and records every invocation."""

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def __call__(self, command, *args, cwd=None):
        self.calls.append((command, *args))
        if self.fail_on is not None and command == self.fail_on:
            raise ShellError(f"{command} exited with status 1: boom", stderr="boom")
        return "", ""


@pytest.fixture
def recording_runner():
    return RecordingRunner()
