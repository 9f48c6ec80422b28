"""Command-line entry point: ``diffgen`` (defaults to ``diffgen generate``)."""

from pathlib import Path

import click
from click_default_group import DefaultGroup

from .changelog import ChangelogGenerator, ensure_api_key, missing_sections
from .config import load_config
from .errors import SiteNotFound
from .git import GitRepository
from .prompts import QuestionaryPrompter
from .ranges import MODES, resolve_range
from .site import publish_site, write_changelog, write_site


def _make_prompter():
    return QuestionaryPrompter()


def _make_generator(config):
    return ChangelogGenerator(config.completion, config.api_key)


@click.group(cls=DefaultGroup, default="generate", default_if_no_args=True)
@click.version_option(None, "-v", "--version", package_name="diffgen")
def cli():
    """Generate a changelog from git history and serve it as a docsify site."""
    pass


@cli.command("generate")
@click.option("--no-serve", is_flag=True, help="Write the changelog and site without starting docsify.")
@click.option("-p", "--port", type=int, help="Port for docsify serve (default: site.port config, 3000).")
def generate_cmd(no_serve, port):
    """Interactively pick a range of history and generate its changelog."""
    repo = GitRepository.discover(Path.cwd())
    config = load_config(project_root=repo.root)
    prompter = _make_prompter()

    mode = prompter.choose_one("What would you like to generate?", MODES)
    rng = resolve_range(mode, repo, prompter)

    click.echo(f"Collecting history for {rng.spec}...")
    history = repo.diff_summary(rng)

    config = ensure_api_key(config, prompter)
    click.echo("Generating changelog...")
    markdown = _make_generator(config).generate(history)

    out_path = write_changelog(repo.root, markdown, config.site.output)
    click.echo(f"\nChangelog written to: {out_path}")

    missing = missing_sections(markdown)
    if missing:
        click.secho(
            f"Warning: generated changelog is missing section(s): {', '.join(missing)}",
            fg="yellow",
            err=True,
        )

    site_dir = write_site(repo.root, markdown, config.site.dir)
    if no_serve:
        click.echo(f"Site written to: {site_dir}")
        return
    publish_site(site_dir, port or config.site.port, search_roots=(repo.root, Path.cwd()))


@cli.command("serve")
@click.option("-p", "--port", type=int, help="Port for docsify serve (default: site.port config, 3000).")
def serve_cmd(port):
    """Serve the previously generated changelog site."""
    repo = GitRepository.discover(Path.cwd())
    config = load_config(project_root=repo.root)
    site_dir = repo.root / config.site.dir
    if not (site_dir / "README.md").exists():
        raise SiteNotFound(site_dir)
    publish_site(site_dir, port or config.site.port, search_roots=(repo.root, Path.cwd()))


def main():
    cli()
