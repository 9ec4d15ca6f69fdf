"""Unified configuration loaded from .fieldnotes.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".fieldnotes.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "fieldnotes" / "config.toml"

_TRUTHY = ("true", "1", "yes")


class SiteConfig(BaseModel):
    """[site] section."""

    directory: str = "."
    posts_dir: str = "_posts"
    pages_dir: str = "_tabs"
    baseurl: str = ""
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    @field_validator("baseurl")
    @classmethod
    def _normalize_baseurl(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = "/" + value
        return value

    @property
    def tz(self) -> tzinfo:
        return ZoneInfo(self.timezone)


class PermalinkConfig(BaseModel):
    """[permalinks] section — patterns such as ``/posts/:slug/``."""

    post: str = "/posts/:slug/"
    page: str = "/:slug/"


class LinksConfig(BaseModel):
    """[links] section."""

    ignore_prefixes: list[str] = Field(default_factory=lambda: ["/assets/"])


class CheckConfig(BaseModel):
    """[check] section."""

    strict: bool = False
    allow_unknown_keys: list[str] = Field(default_factory=list)


class AuthoringConfig(BaseModel):
    """[authoring] section — defaults for scaffolded content."""

    default_categories: list[str] = Field(default_factory=list)
    comments: bool = True


class FieldnotesConfig(BaseModel):
    """Top-level configuration model for the toolkit."""

    site: SiteConfig = Field(default_factory=SiteConfig)
    permalinks: PermalinkConfig = Field(default_factory=PermalinkConfig)
    links: LinksConfig = Field(default_factory=LinksConfig)
    check: CheckConfig = Field(default_factory=CheckConfig)
    authoring: AuthoringConfig = Field(default_factory=AuthoringConfig)

    @property
    def site_dir(self) -> Path:
        return Path(self.site.directory)

    @property
    def posts_path(self) -> Path:
        return self.site_dir / self.site.posts_dir

    @property
    def pages_path(self) -> Path:
        return self.site_dir / self.site.pages_dir


def load_config(
    path: str | Path | None = None,
    site_dir: str | Path | None = None,
) -> FieldnotesConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .fieldnotes.toml in the site directory (if provided)
    3. .fieldnotes.toml in CWD
    4. ~/.config/fieldnotes/config.toml

    Then overlay environment variables. A site directory passed here
    becomes ``site.directory`` unless the TOML file sets one.

    Args:
        path: Explicit path to a TOML file.
        site_dir: Site root, also searched for a config file.

    Returns:
        Merged FieldnotesConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        search_dirs = [Path(site_dir)] if site_dir is not None else []
        search_dirs.extend(CONFIG_SEARCH_PATHS)
        candidates = [d / CONFIG_FILENAME for d in search_dirs]
        candidates.append(GLOBAL_CONFIG_PATH)
        for candidate in candidates:
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break

    if site_dir is not None:
        site = data.setdefault("site", {})
        if isinstance(site, dict):
            site.setdefault("directory", str(site_dir))

    try:
        config = FieldnotesConfig.model_validate(data) if data else FieldnotesConfig()
    except ValueError as exc:
        logger.warning("Invalid configuration, using defaults: %s", exc)
        config = FieldnotesConfig()
        if site_dir is not None:
            config.site.directory = str(site_dir)

    return _apply_env_vars(config)


def merge_cli_overrides(config: FieldnotesConfig, **cli_kwargs: object) -> FieldnotesConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "site_directory": ("site", "directory"),
        "baseurl": ("site", "baseurl"),
        "timezone": ("site", "timezone"),
        "strict": ("check", "strict"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = str(value) if isinstance(value, Path) else value

    return FieldnotesConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: FieldnotesConfig) -> FieldnotesConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "FIELDNOTES_SITE_DIR": ("site", "directory"),
        "FIELDNOTES_TIMEZONE": ("site", "timezone"),
        "FIELDNOTES_BASEURL": ("site", "baseurl"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    strict_raw = os.environ.get("FIELDNOTES_STRICT")
    if strict_raw is not None:
        data["check"]["strict"] = strict_raw.lower() in _TRUTHY

    return FieldnotesConfig.model_validate(data)
