import os

import pytest

from helpers import git


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Keep user config, credentials and parent repositories out of tests."""
    for name in ("DIFFGEN_API_KEY", "OPENAI_API_KEY", "DIFFGEN_ENDPOINT", "DIFFGEN_MODEL", "DIFFGEN_PORT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DIFFGEN_CONFIG", str(tmp_path / "no-global-config.toml"))
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    return tmp_path


@pytest.fixture
def git_repo(isolated_env):
    """Repository with tags v1.0.0 and v1.1.0, where v1.1.0 adds a.txt."""
    root = isolated_env / "repo"
    root.mkdir()
    git(root, "init", "-q")
    (root / "README.md").write_text("hello\n", encoding="utf-8")
    git(root, "add", "README.md")
    git(root, "commit", "-q", "-m", "Initial commit", date="2024-05-01T10:00:00+00:00")
    git(root, "tag", "v1.0.0")
    (root / "a.txt").write_text("a\n", encoding="utf-8")
    git(root, "add", "a.txt")
    git(root, "commit", "-q", "-m", "Add a.txt", date="2024-06-01T10:00:00+00:00")
    git(root, "tag", "v1.1.0")
    return root
