from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping

import yaml

from .errors import ConfigError

CLOUD_PROVIDER = "k3d"
DOMAIN_NAME = "kubefirst.dev"
GITHUB_HOST = "github.com"
GITLAB_HOST = "gitlab.com"

K3D_VERSION = "v5.4.6"
KUBECTL_VERSION = "v1.25.7"
MKCERT_VERSION = "v1.4.4"
TERRAFORM_VERSION = "1.3.8"

ARGOCD_PORT_FORWARD_URL = "http://localhost:8080"
VAULT_PORT_FORWARD_URL = "http://localhost:8200"

ARGOCD_URL = f"https://argocd.{DOMAIN_NAME}"
ARGO_WORKFLOWS_URL = f"https://argo.{DOMAIN_NAME}"
ATLANTIS_URL = f"https://atlantis.{DOMAIN_NAME}"
CHART_MUSEUM_URL = f"https://chartmuseum.{DOMAIN_NAME}"
KUBEFIRST_CONSOLE_URL = f"https://kubefirst.{DOMAIN_NAME}"
METAPHOR_DEVELOPMENT_URL = f"https://metaphor-development.{DOMAIN_NAME}"
METAPHOR_STAGING_URL = f"https://metaphor-staging.{DOMAIN_NAME}"
METAPHOR_PRODUCTION_URL = f"https://metaphor-production.{DOMAIN_NAME}"
VAULT_URL = f"https://vault.{DOMAIN_NAME}"

GIT_PROVIDERS = ("github", "gitlab")
GIT_PROTOCOLS = ("ssh", "https")

SUPPORTED_PLATFORMS = (
    "aws-github",
    "aws-gitlab",
    "civo-github",
    "civo-gitlab",
    "digitalocean-github",
    "digitalocean-gitlab",
    "k3d-github",
    "k3d-gitlab",
    "vultr-github",
    "vultr-gitlab",
)

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def _normalize_arch(machine: str) -> str:
    return _ARCH_ALIASES.get(machine.lower(), machine.lower())


def _normalize_os(name: str) -> str:
    if name.startswith("win"):
        return "windows"
    if name.startswith("linux"):
        return "linux"
    return name


LOCALHOST_ARCH = _normalize_arch(platform.machine())
LOCALHOST_OS = _normalize_os(sys.platform)


def git_host(git_provider: str) -> str:
    if git_provider == "github":
        return GITHUB_HOST
    if git_provider == "gitlab":
        return GITLAB_HOST
    return ""


@dataclass(frozen=True)
class K3dConfig:
    github_token: str
    gitlab_token: str

    destination_gitops_repo_url: str
    destination_gitops_repo_git_url: str
    destination_metaphor_repo_url: str
    destination_metaphor_repo_git_url: str

    gitops_dir: Path
    git_provider: str
    git_protocol: str
    k1_dir: Path
    k3d_client: Path
    kubeconfig: Path
    kubectl_client: Path
    kubefirst_config: Path
    metaphor_dir: Path
    mkcert_client: Path
    mkcert_pem_dir: Path
    mkcert_ssl_secret_dir: Path
    terraform_client: Path
    tools_dir: Path
    gitops_repo_name: str
    metaphor_repo_name: str

    @property
    def destination_gitops_repo_https_url(self) -> str:
        return self.destination_gitops_repo_url

    @property
    def destination_metaphor_repo_https_url(self) -> str:
        return self.destination_metaphor_repo_url

    def metaphor_remote_url(self) -> str:
        """Destination URL of the metaphor repository for the configured protocol."""
        if self.git_protocol == "https":
            return self.destination_metaphor_repo_url
        return self.destination_metaphor_repo_git_url

    def as_dict(self) -> dict[str, str]:
        hidden = {"github_token", "gitlab_token"}
        return {item.name: str(getattr(self, item.name)) for item in fields(self) if item.name not in hidden}


def get_config(
    config_name: str,
    cluster_name: str,
    gitops_repo_name: str,
    metaphor_repo_name: str,
    git_provider: str,
    git_owner: str,
    git_protocol: str,
    home_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> K3dConfig:
    """Build the per-run repository record for a local k3d cluster.

    All local paths live under ``~/.k1/configs/<config_name>``. Tokens are read
    from ``GITHUB_TOKEN`` and ``GITLAB_TOKEN``.
    """
    if not config_name:
        raise ConfigError("Config name must not be empty.")
    env = os.environ if environ is None else environ
    home = home_dir or Path.home()
    host = git_host(git_provider)

    k1_dir = home / ".k1" / "configs" / config_name
    tools_dir = k1_dir / "tools"
    ssl_dir = k1_dir / "ssl" / DOMAIN_NAME

    return K3dConfig(
        github_token=env.get("GITHUB_TOKEN", ""),
        gitlab_token=env.get("GITLAB_TOKEN", ""),
        destination_gitops_repo_url=f"https://{host}/{git_owner}/{gitops_repo_name}.git",
        destination_gitops_repo_git_url=f"git@{host}:{git_owner}/{gitops_repo_name}.git",
        destination_metaphor_repo_url=f"https://{host}/{git_owner}/{metaphor_repo_name}.git",
        destination_metaphor_repo_git_url=f"git@{host}:{git_owner}/{metaphor_repo_name}.git",
        gitops_dir=k1_dir / "gitops",
        git_provider=git_provider,
        git_protocol=git_protocol,
        k1_dir=k1_dir,
        k3d_client=tools_dir / "k3d",
        kubeconfig=k1_dir / "kubeconfig",
        kubectl_client=tools_dir / "kubectl",
        kubefirst_config=k1_dir / ".kubefirst",
        metaphor_dir=k1_dir / "metaphor",
        mkcert_client=tools_dir / "mkcert",
        mkcert_pem_dir=ssl_dir / "pem",
        mkcert_ssl_secret_dir=ssl_dir / "secrets",
        terraform_client=tools_dir / "terraform",
        tools_dir=tools_dir,
        gitops_repo_name=gitops_repo_name,
        metaphor_repo_name=metaphor_repo_name,
    )


@dataclass(frozen=True)
class BootstrapSettings:
    config_name: str
    cluster_name: str
    git_owner: str
    git_provider: str = "github"
    git_protocol: str = "ssh"
    cluster_type: str = "mgmt"
    gitops_repo_name: str = "gitops"
    metaphor_repo_name: str = "metaphor"
    cloud_provider: str = CLOUD_PROVIDER
    remove_atlantis: bool = False


_REQUIRED_KEYS = ("config_name", "cluster_name", "git_owner")


def _typed_values(path: Path, data: dict) -> dict:
    # YAML scalars arrive untyped; flags must be real booleans, names are kept as text.
    values = {}
    for item in fields(BootstrapSettings):
        if item.name not in data:
            continue
        value = data[item.name]
        if item.type == "bool":
            if not isinstance(value, bool):
                raise ConfigError(f"{item.name} in {path} must be true or false, got {value!r}")
        elif isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ConfigError(f"{item.name} in {path} must be a string, got {value!r}")
        else:
            value = str(value)
        values[item.name] = value
    return values


def load_bootstrap_file(path: Path) -> BootstrapSettings:
    if not path.exists():
        raise ConfigError(f"Bootstrap file does not exist: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Could not parse {path}: {error}") from error
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping in {path}")

    known = {item.name for item in fields(BootstrapSettings)}
    unknown = sorted(str(key) for key in set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown keys in {path}: {', '.join(unknown)}")

    missing = [key for key in _REQUIRED_KEYS if not str(data.get(key, "")).strip()]
    if missing:
        raise ConfigError(f"Missing required keys in {path}: {', '.join(missing)}")

    settings = BootstrapSettings(**_typed_values(path, data))
    if settings.git_provider not in GIT_PROVIDERS:
        raise ConfigError(f"Unsupported git provider: {settings.git_provider}")
    if settings.git_protocol not in GIT_PROTOCOLS:
        raise ConfigError(f"Unsupported git protocol: {settings.git_protocol}")
    return settings
