"""Shared test helpers: scripted prompting and throwaway git repositories."""

import os
import shutil
import subprocess

import pytest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


class ScriptedPrompter:
    """Replays queued answers and records every question asked."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.asked = []

    def _next(self, kind, message, choices=None):
        self.asked.append((kind, message, choices))
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {message}")
        return self.answers.pop(0)

    def choose_one(self, message, choices):
        return self._next("choose_one", message, list(choices))

    def read_text(self, message):
        return self._next("read_text", message)

    def read_secret(self, message):
        return self._next("read_secret", message)


def git(cwd, *args, date=None):
    env = dict(os.environ)
    env.update(
        {
            "GIT_AUTHOR_NAME": "Alice",
            "GIT_AUTHOR_EMAIL": "alice@example.com",
            "GIT_COMMITTER_NAME": "Alice",
            "GIT_COMMITTER_EMAIL": "alice@example.com",
        }
    )
    if date:
        env["GIT_AUTHOR_DATE"] = date
        env["GIT_COMMITTER_DATE"] = date
    return subprocess.run(
        ["git", "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false", *args],
        cwd=str(cwd),
        env=env,
        check=True,
        capture_output=True,
        text=True,
    ).stdout.strip()

