from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import os
import tomllib
import tomli_w

from copilotdash.errors import ConfigError
from copilotdash.models import Scope, ScopeKind


HOME = Path.home()
CONFIG_PATH = HOME / ".config/copilotdash/config.toml"
TOKEN_ENV = "GITHUB_TOKEN"


@dataclass
class GitHubConfig:
    scope: str = ScopeKind.ORGANIZATION.value
    organization: str = ""
    enterprise: str = ""
    token: str = ""
    api_version: str = "2022-11-28"
    base_url: str = "https://api.github.com"
    timeout_seconds: float = 30.0


@dataclass
class StoreConfig:
    path: str = str(HOME / ".local/state/copilotdash")


@dataclass
class DashboardConfig:
    window_days: int = 31
    refresh_seconds: int = 300


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json: bool = False


@dataclass
class Config:
    github: GitHubConfig = field(default_factory=GitHubConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Path = CONFIG_PATH) -> Config:
    if not path.exists():
        cfg = Config()
        save_config(cfg, path)
        return cfg

    raw = tomllib.loads(path.read_text())
    github_raw = raw.get("github", {})
    store_raw = raw.get("store", {})
    dashboard_raw = raw.get("dashboard", {})
    logging_raw = raw.get("logging", {})

    defaults = GitHubConfig()
    return Config(
        github=GitHubConfig(
            scope=github_raw.get("scope", defaults.scope),
            organization=github_raw.get("organization", ""),
            enterprise=github_raw.get("enterprise", ""),
            token=github_raw.get("token", ""),
            api_version=github_raw.get("api_version", defaults.api_version),
            base_url=github_raw.get("base_url", defaults.base_url),
            timeout_seconds=float(github_raw.get("timeout_seconds", defaults.timeout_seconds)),
        ),
        store=StoreConfig(path=store_raw.get("path", StoreConfig().path)),
        dashboard=DashboardConfig(
            window_days=int(dashboard_raw.get("window_days", 31)),
            refresh_seconds=int(dashboard_raw.get("refresh_seconds", 300)),
        ),
        logging=LoggingConfig(
            level=logging_raw.get("level", "INFO"),
            json=bool(logging_raw.get("json", False)),
        ),
    )


def save_config(cfg: Config, path: Path = CONFIG_PATH) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "github": {
            "scope": cfg.github.scope,
            "organization": cfg.github.organization,
            "enterprise": cfg.github.enterprise,
            "token": cfg.github.token,
            "api_version": cfg.github.api_version,
            "base_url": cfg.github.base_url,
            "timeout_seconds": cfg.github.timeout_seconds,
        },
        "store": {"path": cfg.store.path},
        "dashboard": {
            "window_days": cfg.dashboard.window_days,
            "refresh_seconds": cfg.dashboard.refresh_seconds,
        },
        "logging": {"level": cfg.logging.level, "json": cfg.logging.json},
    }
    path.write_text(tomli_w.dumps(payload))


_INT_KEYS = {"dashboard.window_days", "dashboard.refresh_seconds"}
_FLOAT_KEYS = {"github.timeout_seconds"}
_BOOL_KEYS = {"logging.json"}
_STR_KEYS = {
    "github.scope",
    "github.organization",
    "github.enterprise",
    "github.token",
    "github.api_version",
    "github.base_url",
    "store.path",
    "logging.level",
}


def set_config_value(cfg: Config, dotted_key: str, value: str) -> None:
    section_name, _, field_name = dotted_key.partition(".")
    if dotted_key == "github.scope" and value not in {k.value for k in ScopeKind}:
        raise ValueError(f"unknown scope kind: {value}")

    if dotted_key in _INT_KEYS:
        coerced: object = int(value)
    elif dotted_key in _FLOAT_KEYS:
        coerced = float(value)
    elif dotted_key in _BOOL_KEYS:
        coerced = value.strip().lower() in {"1", "true", "yes", "on"}
    elif dotted_key in _STR_KEYS:
        coerced = value
    else:
        raise ValueError(f"unsupported key: {dotted_key}")

    setattr(getattr(cfg, section_name), field_name, coerced)


def resolve_token(cfg: Config) -> str:
    return cfg.github.token or os.environ.get(TOKEN_ENV, "")


def resolve_scope(cfg: Config) -> Scope:
    """Pick the enterprise or organization scope the deployment is bound to."""
    try:
        kind = ScopeKind(cfg.github.scope)
    except ValueError:
        raise ConfigError(f"unknown github.scope {cfg.github.scope!r}") from None

    name = cfg.github.enterprise if kind == ScopeKind.ENTERPRISE else cfg.github.organization
    if not name:
        raise ConfigError(f"github.{kind.value} must be set when github.scope is {kind.value!r}")
    if not resolve_token(cfg):
        raise ConfigError(f"github.token or ${TOKEN_ENV} is required")
    return Scope(kind=kind, name=name)
