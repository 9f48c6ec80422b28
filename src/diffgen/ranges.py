"""Turn an interactive selection into a history ``Range``."""

from datetime import timezone

import click
import dateparser
import parsedatetime

from .errors import DateParseFailure, InvalidSelection, NoCommitsFound, NoRevisionForTimestamp, NoTagsFound
from .git import Range

COMMIT_LIMIT = 100

MODES = [
    ("Generate change log between different versions", "tags"),
    ("Generate change log between different commits", "commits"),
    ("Generate change log between a time interval", "time"),
]

_DATEPARSER_SETTINGS = {
    "RETURN_AS_TIMEZONE_AWARE": True,
    "PREFER_DATES_FROM": "past",
}


def _pick_pair(prompter, choices, noun):
    from_ref = prompter.choose_one(f"Select the older {noun} (FROM):", choices)
    to_ref = prompter.choose_one(f"Select the newer {noun} (TO):", choices)
    if from_ref == to_ref:
        raise InvalidSelection(f"FROM and TO {noun}s cannot be the same.")
    return Range(from_ref, to_ref)


def select_by_tags(repo, prompter) -> Range:
    tags = repo.resolve_tags()
    if not tags:
        raise NoTagsFound()
    choices = [(tag.label, tag.name) for tag in tags]
    return _pick_pair(prompter, choices, "release")


def select_by_commits(repo, prompter) -> Range:
    commits = repo.resolve_commits(COMMIT_LIMIT)
    if not commits:
        raise NoCommitsFound()
    choices = [(commit.label, commit.hash) for commit in commits]
    rng = _pick_pair(prompter, choices, "commit")

    # Unrelated or reversed picks still produce a plain two-dot diff.
    if not repo.is_ancestry_path(rng.from_ref, rng.to_ref):
        click.secho(
            f"Warning: {rng.from_ref[:7]} is not an ancestor of {rng.to_ref[:7]}; "
            "the changelog will compare the two snapshots directly.",
            fg="yellow",
            err=True,
        )
    return rng


def parse_when(text: str):
    """Parse a free-text date such as ``2024-05-01`` or ``last monday 9am`` as UTC."""
    if not text or not text.strip():
        raise DateParseFailure(text)
    text = text.strip()
    parsed = dateparser.parse(text, settings=_DATEPARSER_SETTINGS)
    if parsed is None:
        # dateparser has no "last <weekday>" support.
        parsed, status = parsedatetime.Calendar().parseDT(text)
        if not status:
            raise DateParseFailure(text)
    # Naive results are local time.
    return parsed.astimezone(timezone.utc)


def select_by_time_range(repo, prompter) -> Range:
    start_text = prompter.read_text('Enter start date/time (e.g., "2024-05-01" or "last Monday 9am"):')
    end_text = prompter.read_text('Enter end date/time (e.g., "2024-06-01" or "yesterday 5pm"):')
    start = parse_when(start_text)
    end = parse_when(end_text)
    if start > end:
        start, end = end, start

    base_before_start = repo.revision_before(start)
    to_ref = repo.revision_before(end)
    if not base_before_start or not to_ref:
        raise NoRevisionForTimestamp()
    if base_before_start == to_ref:
        raise InvalidSelection("No commits were made in the given time range.")
    return Range(base_before_start, to_ref)


_STRATEGIES = {
    "tags": select_by_tags,
    "commits": select_by_commits,
    "time": select_by_time_range,
}


def resolve_range(mode: str, repo, prompter) -> Range:
    try:
        strategy = _STRATEGIES[mode]
    except KeyError:
        raise ValueError(f"Unknown range mode: {mode!r}")
    return strategy(repo, prompter)
