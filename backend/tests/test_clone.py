"""Tests for cloning repositories to disk."""

from pathlib import Path

import pytest
from git import GitCommandError

from repo_chat.core.errors import NotFoundError, ValidationError
from repo_chat.ingest import clone
from repo_chat.ingest.clone import CloneError, clone_repo_name, clone_to_disk


def test_clone_replaces_directory_contents(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = tmp_path / "public" / "repo"
    (root / "old").mkdir(parents=True)
    (root / "old" / "file.txt").write_text("stale")
    (root / "loose.txt").write_text("stale")
    calls = []

    def fake_clone_from(url, target):
        calls.append((url, Path(target)))
        Path(target).mkdir()

    monkeypatch.setattr(clone, "remote_exists", lambda url: True)
    monkeypatch.setattr(clone.Repo, "clone_from", staticmethod(fake_clone_from))

    name = clone_to_disk("owner/demo.git", root)
    assert name == "demo"
    assert calls == [("https://github.com/owner/demo", root / "demo")]
    assert sorted(p.name for p in root.iterdir()) == ["demo"]


def test_clone_requires_url(tmp_path: Path) -> None:
    with pytest.raises(ValidationError, match="URL is required"):
        clone_to_disk("", tmp_path)


def test_clone_unknown_remote(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "keep.txt").write_text("untouched")
    monkeypatch.setattr(clone, "remote_exists", lambda url: False)
    with pytest.raises(NotFoundError):
        clone_to_disk("owner/absent", tmp_path)
    assert (tmp_path / "keep.txt").exists()


def test_clone_failure_is_wrapped(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_clone_from(url, target):
        raise GitCommandError("clone", 128)

    monkeypatch.setattr(clone, "remote_exists", lambda url: True)
    monkeypatch.setattr(clone.Repo, "clone_from", staticmethod(failing_clone_from))
    with pytest.raises(CloneError):
        clone_to_disk("owner/demo", tmp_path)


def test_clone_repo_name() -> None:
    assert clone_repo_name("https://github.com/owner/demo.git") == "demo"
    assert clone_repo_name("https://github.com/owner/demo/") == "demo"
