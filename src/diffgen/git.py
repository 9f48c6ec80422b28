"""Read-only access to the git history of a working tree."""

import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .errors import GitCommandError, InvalidSelection, NotAVersionControlRepository

HISTORY_LOG_FORMAT = "%h%x09%an%x09%ad%x09%s%x0a%b"

NO_COMMITS = "(No commits)"
NO_FILE_CHANGES = "(No file changes)"
NO_STATS = "(No stats)"


@dataclass(frozen=True)
class Range:
    """Exclusive-inclusive span ``from_ref..to_ref`` of history."""

    from_ref: str
    to_ref: str

    def __post_init__(self):
        if self.from_ref == self.to_ref:
            raise InvalidSelection(f"FROM and TO cannot be the same ({self.from_ref}).")

    @property
    def spec(self) -> str:
        return f"{self.from_ref}..{self.to_ref}"


@dataclass(frozen=True)
class TagInfo:
    name: str
    date: str
    subject: str

    @property
    def label(self) -> str:
        return " | ".join(part for part in (self.name, self.date, self.subject) if part)


@dataclass(frozen=True)
class CommitInfo:
    hash: str
    date: str
    subject: str

    @property
    def label(self) -> str:
        return f"{self.hash[:7]}  {self.date}  {self.subject}"


def _truncate_text_tail(value: str, max_chars: int) -> str:
    value = (value or "").strip()
    if len(value) <= max_chars:
        return value
    return "..." + value[-(max_chars - 3) :].lstrip()


class GitRepository:
    """Thin wrapper around the ``git`` binary, rooted at a working tree."""

    def __init__(self, root):
        self.root = Path(root)

    @classmethod
    def discover(cls, cwd) -> "GitRepository":
        """Return the repository containing ``cwd``.

        Raises NotAVersionControlRepository when ``cwd`` is not inside a
        work tree or git is not installed.
        """
        try:
            inside = subprocess.run(
                ["git", "rev-parse", "--is-inside-work-tree"],
                cwd=str(cwd),
                capture_output=True,
                text=True,
            )
            if inside.returncode != 0 or inside.stdout.strip() != "true":
                raise NotAVersionControlRepository()
            top = subprocess.run(
                ["git", "rev-parse", "--show-toplevel"],
                cwd=str(cwd),
                capture_output=True,
                text=True,
            )
        except OSError:
            raise NotAVersionControlRepository("git was not found on PATH.")
        toplevel = top.stdout.strip()
        if top.returncode != 0 or not toplevel:
            raise NotAVersionControlRepository()
        return cls(Path(toplevel).resolve())

    def run(self, *args: str) -> str:
        try:
            proc = subprocess.run(
                ["git", *args],
                cwd=str(self.root),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise GitCommandError(args, -1, str(e))
        if proc.returncode != 0:
            raise GitCommandError(args, proc.returncode, _truncate_text_tail(proc.stderr, 2000))
        return proc.stdout or ""

    def resolve_tags(self) -> list[TagInfo]:
        """List tags, newest first by creation date."""
        out = self.run(
            "for-each-ref",
            "--sort=-creatordate",
            "--format=%(refname:short)%09%(creatordate:short)%09%(subject)",
            "refs/tags",
        )
        tags = []
        for line in out.splitlines():
            if not line.strip():
                continue
            name, _, rest = line.partition("\t")
            date, _, subject = rest.partition("\t")
            tags.append(TagInfo(name=name, date=date, subject=subject))
        return tags

    def has_commits(self) -> bool:
        # HEAD is unborn in a fresh repository; rev-list and log fail there.
        return bool(self.run("rev-parse", "--all").strip())

    def resolve_commits(self, limit: int = 100) -> list[CommitInfo]:
        if not self.has_commits():
            return []
        out = self.run("log", "-n", str(limit), "--date=short", "--pretty=format:%H%x09%ad%x09%s")
        commits = []
        for line in out.splitlines():
            if not line.strip():
                continue
            parts = line.split("\t", 2)
            while len(parts) < 3:
                parts.append("")
            commits.append(CommitInfo(hash=parts[0], date=parts[1], subject=parts[2]))
        return commits

    def revision_before(self, when: datetime) -> str:
        """Return the newest revision reachable from HEAD committed at or before ``when``."""
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        if not self.has_commits():
            return ""
        iso = when.astimezone(timezone.utc).isoformat()
        return self.run("rev-list", "-1", f"--before={iso}", "HEAD").strip()

    def is_ancestry_path(self, from_ref: str, to_ref: str) -> bool:
        out = self.run("rev-list", "--ancestry-path", f"{from_ref}..{to_ref}")
        return bool(out.strip())

    def diff_summary(self, rng: Range) -> str:
        return collect_history(self, rng)


def _section(text: str, placeholder: str) -> str:
    text = (text or "").strip()
    return text or placeholder


def collect_history(repo: GitRepository, rng: Range) -> str:
    """Render the commit log, name-status and stat summary for ``rng``."""
    log_text = repo.run("log", rng.spec, "--date=iso", f"--pretty=format:{HISTORY_LOG_FORMAT}")
    files_text = repo.run("diff", "--name-status", rng.spec)
    stats_text = repo.run("diff", "--stat", rng.spec)
    return "\n".join(
        [
            "# Git History",
            "",
            "## Commit Log",
            _section(log_text, NO_COMMITS),
            "",
            "## Changed Files (name-status)",
            _section(files_text, NO_FILE_CHANGES),
            "",
            "## Diff Stats",
            _section(stats_text, NO_STATS),
        ]
    )
