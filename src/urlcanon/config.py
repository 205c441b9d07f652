from __future__ import annotations

import os
import tomllib
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from urlcanon.errors import RegexParseError
from urlcanon.query import compile_removal_rules

CONFIG_ENV = "URLCANON_CONFIG"

PRESETS: dict[str, tuple[str, ...]] = {
    "tracking": (
        r"^utm_",
        r"^stm_",
        r"^(fbclid|gclid|yclid|dclid|msclkid|igshid)$",
        r"^(mc_cid|mc_eid|_hsenc|_hsmi|mkt_tok)$",
        r"^(_ga|_gl)$",
    ),
    "session": (r"^(?i:phpsessid|jsessionid|sessionid|sid)$",),
}


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or validated."""


class NormalizerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    remove_patterns: list[str] = Field(default_factory=list)
    presets: list[str] = Field(default_factory=list)
    log_level: str = "WARNING"

    @field_validator("remove_patterns")
    @classmethod
    def _patterns_compile(cls, value: list[str]) -> list[str]:
        try:
            compile_removal_rules(value)
        except RegexParseError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @field_validator("presets")
    @classmethod
    def _presets_known(cls, value: list[str]) -> list[str]:
        unknown = [name for name in value if name not in PRESETS]
        if unknown:
            raise ValueError(
                f"Unknown preset(s) {', '.join(unknown)}; choose from {', '.join(PRESETS)}"
            )
        return value

    @field_validator("log_level")
    @classmethod
    def _level_known(cls, value: str) -> str:
        level = value.upper()
        try:
            logger.level(level)
        except ValueError as exc:
            raise ValueError(f"Unknown log level {value!r}") from exc
        return level

    def effective_patterns(
        self,
        extra_patterns: list[str] | None = None,
        extra_presets: list[str] | None = None,
    ) -> list[str]:
        """Configured patterns, then preset patterns, then caller extras; no duplicates."""
        patterns: list[str] = list(self.remove_patterns)
        for name in [*self.presets, *(extra_presets or [])]:
            if name not in PRESETS:
                raise ConfigError(f"Unknown preset {name!r}")
            patterns.extend(PRESETS[name])
        patterns.extend(extra_patterns or [])
        return list(dict.fromkeys(patterns))


def resolve_config_path(path: str | Path | None = None) -> Path | None:
    raw = path or os.environ.get(CONFIG_ENV)
    if not raw:
        return None
    return Path(raw).expanduser().resolve()


def load_config(path: str | Path | None = None) -> NormalizerConfig:
    config_path = resolve_config_path(path)
    if config_path is None:
        return NormalizerConfig()

    try:
        with config_path.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError:
        logger.warning(
            "No config found at {config_path}; using defaults",
            config_path=config_path,
        )
        return NormalizerConfig()
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {config_path}: {exc}") from exc

    # Settings may live at the top level or under [urlcanon].
    section = raw.get("urlcanon", raw)
    try:
        return NormalizerConfig.model_validate(section)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc
