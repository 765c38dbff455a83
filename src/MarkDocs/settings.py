from __future__ import annotations

import logging
import os
import re
from dataclasses import asdict, dataclass
from pathlib import Path

import yaml

from .model import ProviderConfig, RetentionMode

logger = logging.getLogger(__name__)

SETTINGS_ENV_VAR = "MARKDOCS_SETTINGS"
DEFAULT_SETTINGS_PATH = Path("~/.config/markdocs/settings.yaml")

PROVIDERS = ("mermaid.ink", "mermaidchart", "custom")
RETENTION_MODES = tuple(mode.value for mode in RetentionMode)
THEME_NAME_RE = re.compile(r"[A-Za-z0-9_-]*")


@dataclass
class Settings:
    provider: str = "mermaid.ink"
    api_key: str = ""
    theme: str = "neutral"
    code_retention: str = RetentionMode.ALT.value

    def validate(self) -> None:
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unknown mermaid provider: {self.provider!r} (expected one of {', '.join(PROVIDERS)})")
        if self.code_retention not in RETENTION_MODES:
            raise ValueError(
                f"Unknown code retention mode: {self.code_retention!r} (expected one of {', '.join(RETENTION_MODES)})"
            )
        if not THEME_NAME_RE.fullmatch(self.theme):
            raise ValueError(f"Invalid theme name: {self.theme!r} (letters, digits, - and _ only)")

    def to_provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            provider_name=self.provider,
            api_key_or_url=self.api_key,
            theme=self.theme,
            code_retention=RetentionMode(self.code_retention),
        )


def resolve_settings_path(path: str | Path | None = None) -> Path:
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get(SETTINGS_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_SETTINGS_PATH.expanduser()


class SettingsStore:
    """Per-user settings persisted as a small YAML mapping."""

    def __init__(self, path: str | Path | None = None):
        self.path = resolve_settings_path(path)

    def get(self) -> Settings:
        if not self.path.exists():
            return Settings()
        data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {self.path} must contain a mapping.")

        defaults = Settings()
        settings = Settings(
            provider=str(data.get("provider") or defaults.provider),
            api_key=str(data.get("api_key") or ""),
            theme=str(data.get("theme") or defaults.theme),
            code_retention=str(data.get("code_retention") or defaults.code_retention),
        )
        if settings.provider not in PROVIDERS:
            logger.warning("Ignoring unknown provider %r in %s", settings.provider, self.path)
            settings.provider = defaults.provider
        if settings.code_retention not in RETENTION_MODES:
            logger.warning("Ignoring unknown code retention %r in %s", settings.code_retention, self.path)
            settings.code_retention = defaults.code_retention
        if not THEME_NAME_RE.fullmatch(settings.theme):
            logger.warning("Ignoring invalid theme %r in %s", settings.theme, self.path)
            settings.theme = defaults.theme
        return settings

    def set(self, settings: Settings) -> dict:
        settings.validate()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(yaml.safe_dump(asdict(settings), sort_keys=False), encoding="utf-8")
        logger.debug("Saved settings to %s", self.path)
        return {"success": True}
