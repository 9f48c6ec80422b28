"""Error types raised by the changelog pipeline.

Every error is a ``click.ClickException`` so the CLI prints it as a single
``Error: ...`` line and exits with status 1.
"""

import click


class DiffgenError(click.ClickException):
    """Base class for all diffgen failures."""

    pass


class NotAVersionControlRepository(DiffgenError):
    def __init__(self, message="This tool must be run inside a Git repository."):
        super().__init__(message)


class GitCommandError(DiffgenError):
    def __init__(self, args, returncode, stderr=""):
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        message = f"git {' '.join(self.command)} failed (exit {returncode})."
        if stderr:
            message += f"\nstderr_tail: {stderr}"
        super().__init__(message)


class NoTagsFound(DiffgenError):
    def __init__(self, message="No tags found."):
        super().__init__(message)


class NoCommitsFound(DiffgenError):
    def __init__(self, message="No commits found."):
        super().__init__(message)


class InvalidSelection(DiffgenError):
    def __init__(self, message="FROM and TO cannot be the same."):
        super().__init__(message)


class DateParseFailure(DiffgenError):
    def __init__(self, text):
        self.text = text
        super().__init__(f"Could not parse date {text!r}. Please try again with clearer input.")


class NoRevisionForTimestamp(DiffgenError):
    def __init__(self, message="Could not find commits for the given time range."):
        super().__init__(message)


class SelectionAborted(DiffgenError):
    def __init__(self, message="Aborted."):
        super().__init__(message)


class MissingCredential(DiffgenError):
    def __init__(self, message="An API key is required (set DIFFGEN_API_KEY or OPENAI_API_KEY)."):
        super().__init__(message)


class CompletionServiceError(DiffgenError):
    """The completion endpoint answered with a failure (or could not be reached)."""

    def __init__(self, status_code, body):
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"Completion request failed: {body}"
        else:
            message = f"Completion service error: {status_code} - {body}"
        super().__init__(message)


class EmptyCompletion(DiffgenError):
    def __init__(self, message="Received empty content from the model."):
        super().__init__(message)


class ServerSpawnFailure(DiffgenError):
    """docsify could not be started. Non-fatal: the changelog is already written."""

    def __init__(self, reason, hint):
        self.hint = hint
        super().__init__(f"Failed to start docsify serve: {reason}")


class ConfigError(DiffgenError):
    pass


class SiteNotFound(DiffgenError):
    def __init__(self, site_dir):
        self.site_dir = site_dir
        super().__init__(f"No generated site found at {site_dir}. Run `diffgen generate` first.")
