"""Tests for git queries and history text assembly."""

from datetime import datetime, timezone

import pytest

import diffgen.git as git_module
from diffgen.errors import GitCommandError, InvalidSelection, NotAVersionControlRepository
from diffgen.git import GitRepository, Range, collect_history

from helpers import git, requires_git


class FakeRepo:
    def __init__(self, outputs):
        self.outputs = outputs
        self.calls = []

    def run(self, *args):
        self.calls.append(args)
        return self.outputs.get(args[0], "")


def test_range_rejects_identical_refs():
    with pytest.raises(InvalidSelection):
        Range("abc", "abc")


def test_range_spec_is_two_dot():
    assert Range("v1.0.0", "v1.1.0").spec == "v1.0.0..v1.1.0"


def test_collect_history_uses_placeholders_for_empty_sections():
    repo = FakeRepo({"log": "", "diff": "  \n"})

    text = collect_history(repo, Range("a", "b"))

    assert text.splitlines()[0] == "# Git History"
    assert "## Commit Log\n(No commits)" in text
    assert "## Changed Files (name-status)\n(No file changes)" in text
    assert "## Diff Stats\n(No stats)" in text


def test_collect_history_sections_in_fixed_order():
    repo = FakeRepo({"log": "abc1234\tAlice\t2024-01-01\tFix", "diff": "M\tx.py"})

    text = collect_history(repo, Range("a", "b"))

    log_at = text.index("## Commit Log")
    files_at = text.index("## Changed Files (name-status)")
    stats_at = text.index("## Diff Stats")
    assert log_at < files_at < stats_at
    assert [call[0] for call in repo.calls] == ["log", "diff", "diff"]
    assert all("a..b" in call for call in repo.calls)


def test_discover_outside_repository(isolated_env):
    outside = isolated_env / "plain"
    outside.mkdir()

    with pytest.raises(NotAVersionControlRepository):
        GitRepository.discover(outside)


def test_discover_without_git_binary(monkeypatch, tmp_path):
    def fake_run(*_args, **_kwargs):
        raise FileNotFoundError("git")

    monkeypatch.setattr(git_module.subprocess, "run", fake_run)

    with pytest.raises(NotAVersionControlRepository) as exc:
        GitRepository.discover(tmp_path)
    assert "not found" in str(exc.value)


@requires_git
def test_discover_returns_toplevel(git_repo):
    nested = git_repo / "sub"
    nested.mkdir()

    repo = GitRepository.discover(nested)

    assert repo.root == git_repo.resolve()


@requires_git
def test_resolve_tags_newest_first(git_repo):
    tags = GitRepository(git_repo).resolve_tags()

    assert [tag.name for tag in tags] == ["v1.1.0", "v1.0.0"]
    assert tags[0].date == "2024-06-01"
    assert tags[0].label.startswith("v1.1.0 | 2024-06-01")


@requires_git
def test_resolve_commits(git_repo):
    commits = GitRepository(git_repo).resolve_commits(limit=100)

    assert [c.subject for c in commits] == ["Add a.txt", "Initial commit"]
    assert len(commits[0].hash) == 40
    assert commits[0].label.split()[0] == commits[0].hash[:7]


@requires_git
def test_resolve_commits_empty_repository(isolated_env):
    root = isolated_env / "empty"
    root.mkdir()
    git(root, "init", "-q")

    assert GitRepository(root).resolve_commits() == []


@requires_git
def test_revision_before(git_repo):
    repo = GitRepository(git_repo)
    first = git(git_repo, "rev-parse", "v1.0.0")

    assert repo.revision_before(datetime(2024, 5, 15, tzinfo=timezone.utc)) == first
    assert repo.revision_before(datetime(2024, 1, 1, tzinfo=timezone.utc)) == ""


@requires_git
def test_is_ancestry_path(git_repo):
    repo = GitRepository(git_repo)

    assert repo.is_ancestry_path("v1.0.0", "v1.1.0") is True
    assert repo.is_ancestry_path("v1.1.0", "v1.0.0") is False


@requires_git
def test_diff_summary_lists_added_file(git_repo):
    text = GitRepository(git_repo).diff_summary(Range("v1.0.0", "v1.1.0"))

    assert "A\ta.txt" in text
    assert "Add a.txt" in text
    assert "1 file changed" in text


@requires_git
def test_run_raises_on_bad_revision(git_repo):
    with pytest.raises(GitCommandError) as exc:
        GitRepository(git_repo).run("log", "nope..v1.1.0")
    assert exc.value.returncode != 0


@requires_git
def test_revision_before_empty_repository(isolated_env):
    root = isolated_env / "empty"
    root.mkdir()
    git(root, "init", "-q")

    assert GitRepository(root).revision_before(datetime(2024, 5, 15, tzinfo=timezone.utc)) == ""
