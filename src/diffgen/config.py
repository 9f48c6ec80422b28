"""Layered configuration: global TOML, repo TOML, then environment."""

import os
import sys
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from urllib.parse import urlparse

from .errors import ConfigError

DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 1200
DEFAULT_SITE_DIR = ".diffgen_site"
DEFAULT_PORT = 3000
DEFAULT_OUTPUT = "CHANGELOG.generated.md"

API_KEY_ENV_VARS = ("DIFFGEN_API_KEY", "OPENAI_API_KEY")

REPO_CONFIG_FILENAME = ".diffgen.toml"


@dataclass(frozen=True)
class CompletionSettings:
    endpoint: str = DEFAULT_ENDPOINT
    model: str | None = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    auth_header: str = "authorization"
    # None waits indefinitely.
    timeout: float | None = None


@dataclass(frozen=True)
class SiteSettings:
    dir: str = DEFAULT_SITE_DIR
    port: int = DEFAULT_PORT
    output: str = DEFAULT_OUTPUT


@dataclass(frozen=True)
class DiffgenConfig:
    completion: CompletionSettings = field(default_factory=CompletionSettings)
    site: SiteSettings = field(default_factory=SiteSettings)
    api_key: str | None = None

    def with_api_key(self, api_key: str) -> "DiffgenConfig":
        return replace(self, api_key=api_key)


def _env_first(*names: str) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.environ.get(name)
        if val is None:
            continue
        val = val.strip()
        if val:
            return val
    return None


def _global_config_path() -> Path:
    override = os.environ.get("DIFFGEN_CONFIG")
    if override:
        return Path(override).expanduser()

    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / "diffgen" / "config.toml"
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "diffgen" / "config.toml"
        return home / "AppData" / "Roaming" / "diffgen" / "config.toml"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "diffgen" / "config.toml"
    return home / ".config" / "diffgen" / "config.toml"


def _read_toml_file(path: Path) -> dict:
    try:
        raw = path.read_bytes()
    except OSError:
        return {}
    try:
        obj = tomllib.loads(raw.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"Invalid config file {path}: {e}")
    return obj if isinstance(obj, dict) else {}


def _deep_merge_dicts(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge_dicts(out[k], v)
        else:
            out[k] = v
    return out


def _config_get(cfg: dict, dotted_key: str, default=None):
    cur = cfg
    for part in dotted_key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def _coerce(value, kind, key: str):
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid value for {key}: {value!r}")


def _default_auth_header(endpoint: str) -> str:
    host = urlparse(endpoint).hostname or ""
    return "api-key" if host.endswith(".openai.azure.com") else "authorization"


def load_raw_config(*, project_root: Path | None) -> dict:
    cfg: dict = {}

    global_path = _global_config_path()
    if global_path.exists():
        cfg = _deep_merge_dicts(cfg, _read_toml_file(global_path))

    if project_root is not None:
        repo_path = project_root / REPO_CONFIG_FILENAME
        if repo_path.exists():
            cfg = _deep_merge_dicts(cfg, _read_toml_file(repo_path))

    return cfg


def load_config(*, project_root: Path | None = None) -> DiffgenConfig:
    """Build the run configuration for ``project_root``.

    Environment variables win over the repo file, which wins over the
    global file. The credential is only ever read from the environment.
    """
    cfg = load_raw_config(project_root=project_root)

    endpoint = os.environ.get("DIFFGEN_ENDPOINT") or _config_get(cfg, "completion.endpoint") or DEFAULT_ENDPOINT

    model = os.environ.get("DIFFGEN_MODEL")
    if model is None:
        model = _config_get(cfg, "completion.model", DEFAULT_MODEL)
    model = str(model).strip() or None

    auth_header = _config_get(cfg, "completion.auth_header") or _default_auth_header(endpoint)
    auth_header = str(auth_header).strip().lower()
    if auth_header not in ("authorization", "api-key"):
        raise ConfigError(f"completion.auth_header must be 'authorization' or 'api-key', got {auth_header!r}")

    temperature = _coerce(_config_get(cfg, "completion.temperature", DEFAULT_TEMPERATURE), float, "completion.temperature")
    max_tokens = _coerce(_config_get(cfg, "completion.max_tokens", DEFAULT_MAX_TOKENS), int, "completion.max_tokens")
    if max_tokens <= 0:
        raise ConfigError("completion.max_tokens must be positive")
    timeout = _coerce(_config_get(cfg, "completion.timeout", 0), float, "completion.timeout")

    port_raw = os.environ.get("DIFFGEN_PORT") or _config_get(cfg, "site.port", DEFAULT_PORT)
    port = _coerce(port_raw, int, "site.port")
    if not 0 < port < 65536:
        raise ConfigError(f"site.port out of range: {port}")

    return DiffgenConfig(
        completion=CompletionSettings(
            endpoint=endpoint,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            auth_header=auth_header,
            timeout=timeout if timeout > 0 else None,
        ),
        site=SiteSettings(
            dir=str(_config_get(cfg, "site.dir") or DEFAULT_SITE_DIR),
            port=port,
            output=str(_config_get(cfg, "site.output") or DEFAULT_OUTPUT),
        ),
        api_key=_env_first(*API_KEY_ENV_VARS),
    )
