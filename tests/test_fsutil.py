from pathlib import Path

import pytest

from k3dkit.errors import FilesystemError
from k3dkit.fsutil import copy_path, remove_path, should_skip


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/home/me/.k1/gitops/.git", True),
        ("/home/me/.k1/gitops/k3d-github/.git", True),
        ("/home/me/.k1/gitops/terraform/vault/.terraform", True),
        ("/home/me/.k1/gitops/terraform/vault/.terraform/providers/lock", True),
        ("/home/me/.k1/gitops/ci/.github", False),
        ("/home/me/.k1/gitops/ci/.gitlab-ci.yml", False),
        ("/home/me/.k1/gitops/.gitignore", False),
        ("/home/me/.k1/gitops/terraform/vault/main.tf", False),
        ("/.terraform", False),
    ],
)
def test_should_skip(path: str, expected: bool):
    assert should_skip(path) is expected


def test_should_skip_accepts_paths(tmp_path: Path):
    assert should_skip(tmp_path / "repo" / ".git")
    assert not should_skip(tmp_path / "repo" / "README.md")


def test_copy_path_merges_directory_and_skips_filtered_entries(tmp_path: Path):
    src = tmp_path / "src"
    (src / "nested").mkdir(parents=True)
    (src / "nested" / "a.txt").write_text("new", encoding="utf-8")
    (src / ".git").mkdir()
    (src / ".git" / "HEAD").write_text("ref", encoding="utf-8")
    (src / "tf" / ".terraform").mkdir(parents=True)
    (src / "tf" / ".terraform" / "cache").write_text("x", encoding="utf-8")

    dst = tmp_path / "dst"
    (dst / "nested").mkdir(parents=True)
    (dst / "nested" / "a.txt").write_text("old", encoding="utf-8")
    (dst / "keep.txt").write_text("keep", encoding="utf-8")

    copy_path(src, dst)

    assert (dst / "nested" / "a.txt").read_text(encoding="utf-8") == "new"
    assert (dst / "keep.txt").exists()
    assert not (dst / ".git").exists()
    assert (dst / "tf").is_dir()
    assert not (dst / "tf" / ".terraform").exists()


def test_copy_path_copies_single_file_into_new_parent(tmp_path: Path):
    src = tmp_path / "Dockerfile"
    src.write_text("FROM scratch\n", encoding="utf-8")

    copy_path(src, tmp_path / "build" / "Dockerfile")

    assert (tmp_path / "build" / "Dockerfile").read_text(encoding="utf-8") == "FROM scratch\n"
    assert src.exists()


def test_copy_path_missing_source_raises_with_path(tmp_path: Path):
    missing = tmp_path / "missing"
    with pytest.raises(FilesystemError, match="missing"):
        copy_path(missing, tmp_path / "dst")


def test_copy_path_skipped_source_is_noop(tmp_path: Path):
    copy_path(tmp_path / "repo" / ".git", tmp_path / "dst")

    assert not (tmp_path / "dst").exists()


def test_copy_path_uses_custom_predicate(tmp_path: Path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.txt").write_text("a", encoding="utf-8")
    (src / "b.log").write_text("b", encoding="utf-8")

    copy_path(src, tmp_path / "dst", skip=lambda path: path.endswith(".log"))

    assert (tmp_path / "dst" / "a.txt").exists()
    assert not (tmp_path / "dst" / "b.log").exists()


def test_remove_path_deletes_files_and_trees(tmp_path: Path):
    tree = tmp_path / "tree"
    (tree / "inner").mkdir(parents=True)
    (tree / "inner" / "file").write_text("x", encoding="utf-8")
    single = tmp_path / "single.txt"
    single.write_text("x", encoding="utf-8")

    remove_path(tree)
    remove_path(single)

    assert not tree.exists()
    assert not single.exists()


def test_remove_path_is_idempotent(tmp_path: Path):
    target = tmp_path / "absent"

    remove_path(target)
    remove_path(target)

    assert not target.exists()
