from pathlib import Path

import pytest

from k3dkit.config import _normalize_arch, get_config, load_bootstrap_file
from k3dkit.errors import ConfigError


def test_get_config_builds_destination_urls_and_paths(tmp_path: Path):
    config = get_config(
        config_name="dev",
        cluster_name="kubefirst",
        gitops_repo_name="gitops",
        metaphor_repo_name="metaphor",
        git_provider="github",
        git_owner="acme",
        git_protocol="ssh",
        home_dir=tmp_path,
        environ={"GITHUB_TOKEN": "ghp_x"},
    )

    assert config.destination_gitops_repo_url == "https://github.com/acme/gitops.git"
    assert config.destination_gitops_repo_git_url == "git@github.com:acme/gitops.git"
    assert config.destination_metaphor_repo_git_url == "git@github.com:acme/metaphor.git"
    assert config.k1_dir == tmp_path / ".k1" / "configs" / "dev"
    assert config.gitops_dir == config.k1_dir / "gitops"
    assert config.metaphor_dir == config.k1_dir / "metaphor"
    assert config.mkcert_pem_dir == config.k1_dir / "ssl" / "kubefirst.dev" / "pem"
    assert config.github_token == "ghp_x"
    assert config.gitlab_token == ""
    assert config.metaphor_remote_url() == "git@github.com:acme/metaphor.git"


def test_get_config_gitlab_https(tmp_path: Path):
    config = get_config("dev", "c", "gitops", "metaphor", "gitlab", "acme", "https", home_dir=tmp_path, environ={})

    assert config.destination_metaphor_repo_https_url == "https://gitlab.com/acme/metaphor.git"
    assert config.metaphor_remote_url() == "https://gitlab.com/acme/metaphor.git"


def test_config_is_immutable(tmp_path: Path):
    config = get_config("dev", "c", "gitops", "metaphor", "github", "acme", "ssh", home_dir=tmp_path, environ={})

    with pytest.raises(AttributeError):
        config.git_provider = "gitlab"


def test_as_dict_hides_tokens(tmp_path: Path):
    config = get_config("dev", "c", "g", "m", "github", "acme", "ssh", home_dir=tmp_path, environ={"GITHUB_TOKEN": "secret"})

    data = config.as_dict()
    assert "github_token" not in data
    assert "secret" not in data.values()
    assert data["gitops_dir"].endswith("gitops")


@pytest.mark.parametrize("machine, arch", [("x86_64", "amd64"), ("AMD64", "amd64"), ("aarch64", "arm64"), ("arm64", "arm64")])
def test_normalize_arch(machine: str, arch: str):
    assert _normalize_arch(machine) == arch


def test_load_bootstrap_file(tmp_path: Path):
    path = tmp_path / "bootstrap.yml"
    path.write_text(
        "config_name: dev\ncluster_name: kubefirst\ngit_owner: acme\ngit_provider: gitlab\nremove_atlantis: true\n",
        encoding="utf-8",
    )

    settings = load_bootstrap_file(path)

    assert settings.git_provider == "gitlab"
    assert settings.remove_atlantis is True
    assert settings.cloud_provider == "k3d"
    assert settings.cluster_type == "mgmt"


@pytest.mark.parametrize(
    "content, message",
    [
        ("cluster_name: x\ngit_owner: acme\n", "config_name"),
        ("config_name: dev\ncluster_name: x\ngit_owner: acme\ncolour: blue\n", "colour"),
        ("config_name: dev\ncluster_name: x\ngit_owner: acme\ngit_provider: bitbucket\n", "bitbucket"),
        ("- a\n- b\n", "mapping"),
    ],
)
def test_load_bootstrap_file_rejects_bad_content(tmp_path: Path, content: str, message: str):
    path = tmp_path / "bootstrap.yml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError, match=message):
        load_bootstrap_file(path)


def test_load_bootstrap_file_missing(tmp_path: Path):
    with pytest.raises(ConfigError, match="does not exist"):
        load_bootstrap_file(tmp_path / "absent.yml")


def test_load_bootstrap_file_coerces_numeric_names(tmp_path: Path):
    path = tmp_path / "bootstrap.yml"
    path.write_text("config_name: dev\ncluster_name: 2024\ngit_owner: acme\ngitops_repo_name: 1.5\n", encoding="utf-8")

    settings = load_bootstrap_file(path)

    assert settings.cluster_name == "2024"
    assert settings.gitops_repo_name == "1.5"


@pytest.mark.parametrize(
    "extra, message",
    [
        ('remove_atlantis: "false"\n', "remove_atlantis"),
        ("remove_atlantis: 0\n", "remove_atlantis"),
        ("cluster_type: true\n", "cluster_type"),
        ("cluster_type: [a, b]\n", "cluster_type"),
        ("cluster_type: null\n", "cluster_type"),
    ],
)
def test_load_bootstrap_file_rejects_mistyped_values(tmp_path: Path, extra: str, message: str):
    path = tmp_path / "bootstrap.yml"
    path.write_text("config_name: dev\ncluster_name: kubefirst\ngit_owner: acme\n" + extra, encoding="utf-8")

    with pytest.raises(ConfigError, match=message):
        load_bootstrap_file(path)
