"""Write the changelog to disk and serve it as a docsify site."""

import os
import shutil
import subprocess
from pathlib import Path

import click
from jinja2 import Environment, PackageLoader

from .config import DEFAULT_OUTPUT, DEFAULT_PORT, DEFAULT_SITE_DIR
from .errors import ServerSpawnFailure

_jinja_env = Environment(
    loader=PackageLoader("diffgen", "templates"),
    autoescape=True,
)


def get_template(name):
    """Get a Jinja2 template by name."""
    return _jinja_env.get_template(name)


def render_index_html(title="Changelog"):
    return get_template("index.html").render(
        title=title,
        docsify_options={"name": title, "loadSidebar": False, "subMaxLevel": 2},
    )


def write_changelog(root, markdown, filename=DEFAULT_OUTPUT) -> Path:
    out_path = Path(root) / filename
    out_path.write_text(markdown, encoding="utf-8")
    return out_path


def write_site(root, markdown, site_dirname=DEFAULT_SITE_DIR) -> Path:
    """Mirror ``markdown`` into the site directory.

    README.md is rewritten on every run; index.html is only created when
    missing so local edits to it survive.
    """
    site_dir = Path(root) / site_dirname
    site_dir.mkdir(parents=True, exist_ok=True)
    (site_dir / "README.md").write_text(markdown, encoding="utf-8")
    index_path = site_dir / "index.html"
    if not index_path.exists():
        index_path.write_text(render_index_html(), encoding="utf-8")
    return site_dir


def _docsify_candidates(root: Path) -> list[Path]:
    cmd_name = "docsify.cmd" if os.name == "nt" else "docsify"
    return [
        root / "node_modules" / ".bin" / cmd_name,
        root / "node_modules" / "docsify-cli" / "bin" / "docsify",
    ]


def resolve_docsify_bin(search_roots) -> str:
    """Locate docsify, preferring local installs over the one on PATH."""
    for root in search_roots:
        for candidate in _docsify_candidates(Path(root)):
            if candidate.exists():
                return str(candidate)
    return shutil.which("docsify") or "docsify"


def manual_serve_hint(site_dir, port) -> str:
    return (
        'Tip: install globally with "npm i -g docsify-cli" or run:\n'
        f"  npx docsify-cli serve {site_dir} -p {port}"
    )


def spawn_server(site_dir, port=DEFAULT_PORT, search_roots=()):
    executable = resolve_docsify_bin(search_roots)
    try:
        return subprocess.Popen([executable, "serve", str(site_dir), "-p", str(port)])
    except OSError as e:
        raise ServerSpawnFailure(e.strerror or str(e), manual_serve_hint(site_dir, port))


def publish_site(site_dir, port=DEFAULT_PORT, search_roots=()) -> bool:
    """Serve ``site_dir`` until the server exits or the user presses Ctrl+C.

    Returns False when the server could not be started; that is reported as
    a warning only.
    """
    try:
        proc = spawn_server(site_dir, port, search_roots)
    except ServerSpawnFailure as e:
        click.secho(e.format_message(), fg="yellow", err=True)
        click.echo(e.hint, err=True)
        return False

    click.echo(f"\nServing changelog at http://localhost:{port} (press Ctrl+C to stop)\n")
    try:
        proc.wait()
    except KeyboardInterrupt:
        proc.terminate()
        proc.wait()
    return True
