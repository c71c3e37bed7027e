"""Configuration loading and validation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .classifier import (
    DEFAULT_CATEGORY_PREFIX,
    DEFAULT_LABEL_PREFIX,
    DEFAULT_NEEDS_FLAG,
    PROCESSED_POLICIES,
    Classifier,
    default_fallback_label,
)
from .runner import DEFAULT_HEADER, DEFAULT_PAGE_SIZE, RunSettings
from .tokenizer import DEFAULT_DELIMITERS
from .types import MaildirAccount

LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "HEADERLABELS_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/headerlabels/config.yaml")
DEFAULT_ROOT_DIR = Path("~/.local/lib/headerlabels")
DEFAULT_LOG_LEVEL = "info"
DEFAULT_MARK_PROCESSED = "categorized"
DEFAULT_INTERVAL = 300.0
DEFAULT_RECONCILE_INTERVAL = 86400.0


class ConfigError(ValueError):
    """Raised when configuration is invalid or missing."""


@dataclass(frozen=True)
class LoggingConfig:
    """Logging-related configuration."""

    level: str = DEFAULT_LOG_LEVEL
    debug_file: bool = False


@dataclass(frozen=True)
class ScheduleConfig:
    """Intervals, in seconds, for the daemon's periodic passes."""

    interval: float = DEFAULT_INTERVAL
    reconcile_interval: float = DEFAULT_RECONCILE_INTERVAL


@dataclass(frozen=True)
class LabelingConfig:
    """How header tokens turn into labels."""

    header: str = DEFAULT_HEADER
    delimiters: str = DEFAULT_DELIMITERS
    label_prefix: str = DEFAULT_LABEL_PREFIX
    nested_labels: bool = True
    category_prefix: str = DEFAULT_CATEGORY_PREFIX
    needs_flag: str = DEFAULT_NEEDS_FLAG
    fallback_label: str = ""
    processed_label: str = ""
    mark_processed: str = DEFAULT_MARK_PROCESSED
    allow: tuple[str, ...] = ()


@dataclass(frozen=True)
class Config:
    """Fully parsed configuration."""

    root_dir: Path
    maildirs: list[MaildirAccount]
    labeling: LabelingConfig
    logging: LoggingConfig
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    query: str = ""
    page_size: int = DEFAULT_PAGE_SIZE
    prewarm_labels: bool = False

    def build_classifier(self) -> Classifier:
        labeling = self.labeling
        return Classifier(
            labeling.allow,
            category_prefix=labeling.category_prefix,
            needs_flag=labeling.needs_flag,
            label_prefix=labeling.label_prefix,
            nested_labels=labeling.nested_labels,
            fallback_label=labeling.fallback_label,
            delimiters=labeling.delimiters,
            processed_policy=PROCESSED_POLICIES[labeling.mark_processed],
        )

    def run_settings(self, *, dry_run: bool = False) -> RunSettings:
        return RunSettings(
            processed_label=self.labeling.processed_label,
            header=self.labeling.header,
            query=self.query,
            page_size=self.page_size,
            prewarm_labels=self.prewarm_labels,
            dry_run=dry_run,
        )


def load_config(path: Path | str | None = None) -> Config:
    """Load and validate configuration from YAML."""

    config_path = resolve_config_path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping.")

    return _parse_config(raw)


def resolve_config_path(explicit: Path | str | None) -> Path:
    if explicit:
        return Path(explicit).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def _parse_config(raw: dict[str, Any]) -> Config:
    root_dir = Path(raw.get("rootdir") or raw.get("root_dir") or DEFAULT_ROOT_DIR).expanduser()
    return Config(
        root_dir=root_dir,
        maildirs=_parse_maildirs(raw.get("maildirs")),
        labeling=_parse_labeling(raw),
        logging=_parse_logging(raw.get("logging")),
        schedule=_parse_schedule(raw.get("schedule")),
        query=_optional_string(raw.get("query"), "query"),
        page_size=_parse_page_size(raw.get("page_size")),
        prewarm_labels=_boolean(raw.get("prewarm_labels", False), "prewarm_labels"),
    )


def _parse_maildirs(value: Any) -> list[MaildirAccount]:
    if value is None:
        raise ConfigError("At least one maildir must be configured.")
    if not isinstance(value, list):
        raise ConfigError("maildirs must be a list.")
    if not value:
        raise ConfigError("At least one maildir must be configured.")

    maildirs: list[MaildirAccount] = []
    seen: set[str] = set()
    for idx, entry in enumerate(value, start=1):
        if not isinstance(entry, dict):
            raise ConfigError(f"maildirs[{idx}] must be a mapping.")
        name = entry.get("name")
        path = entry.get("path")
        if not name or not path:
            raise ConfigError(f"maildirs[{idx}] requires 'name' and 'path'.")
        if str(name) in seen:
            raise ConfigError(f"maildirs[{idx}] duplicates account name '{name}'.")
        seen.add(str(name))
        maildirs.append(MaildirAccount(name=str(name), path=Path(path).expanduser()))
    return maildirs


def _parse_labeling(raw: dict[str, Any]) -> LabelingConfig:
    header = _optional_string(raw.get("header"), "header").strip() or DEFAULT_HEADER
    delimiters = raw.get("delimiters", DEFAULT_DELIMITERS)
    if not isinstance(delimiters, str) or not delimiters:
        raise ConfigError("delimiters must be a non-empty string of characters.")
    if '"' in delimiters:
        raise ConfigError("delimiters cannot contain the quote character.")

    label_prefix = _string_field(raw, "label_prefix", DEFAULT_LABEL_PREFIX)
    category_prefix = _string_field(raw, "category_prefix", DEFAULT_CATEGORY_PREFIX)
    needs_flag = _string_field(raw, "needs_flag", DEFAULT_NEEDS_FLAG).strip()
    fallback_label = _optional_string(raw.get("fallback_label"), "fallback_label").strip()
    processed_label = _optional_string(raw.get("processed_label"), "processed_label").strip()

    mark_processed = str(raw.get("mark_processed", DEFAULT_MARK_PROCESSED)).strip().lower()
    if mark_processed not in PROCESSED_POLICIES:
        choices = ", ".join(sorted(PROCESSED_POLICIES))
        raise ConfigError(f"mark_processed must be one of: {choices}.")

    labeling = LabelingConfig(
        header=header,
        delimiters=delimiters,
        label_prefix=label_prefix,
        nested_labels=_boolean(raw.get("nested_labels", True), "nested_labels"),
        category_prefix=category_prefix,
        needs_flag=needs_flag,
        fallback_label=fallback_label or default_fallback_label(label_prefix, category_prefix),
        processed_label=processed_label or f"{label_prefix}processed",
        mark_processed=mark_processed,
        allow=_parse_allow(raw.get("allow")),
    )
    if not labeling.allow:
        LOGGER.warning("No allow patterns configured; only the fallback label will be applied.")
    return labeling


def _parse_allow(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError("allow must be a list of patterns.")
    patterns: list[str] = []
    for idx, entry in enumerate(value, start=1):
        if not isinstance(entry, str):
            raise ConfigError(f"allow[{idx}] must be a string.")
        if not entry.strip():
            LOGGER.warning("Ignoring empty allow pattern at position %s", idx)
            continue
        patterns.append(entry.strip())
    return tuple(patterns)


def _parse_schedule(value: Any) -> ScheduleConfig:
    if value is None:
        return ScheduleConfig()
    if not isinstance(value, dict):
        raise ConfigError("schedule must be a mapping.")
    interval = _positive_number(value.get("interval", DEFAULT_INTERVAL), "schedule.interval")
    reconcile = _positive_number(
        value.get("reconcile_interval", DEFAULT_RECONCILE_INTERVAL),
        "schedule.reconcile_interval",
    )
    return ScheduleConfig(interval=interval, reconcile_interval=reconcile)


def _parse_page_size(value: Any) -> int:
    if value is None:
        return DEFAULT_PAGE_SIZE
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError("page_size must be a positive integer.")
    return value


def _parse_logging(value: Any) -> LoggingConfig:
    if value is None:
        return LoggingConfig()
    if not isinstance(value, dict):
        raise ConfigError("logging must be a mapping.")
    level = str(value.get("level", DEFAULT_LOG_LEVEL)).lower()
    debug_file = _boolean(value.get("debug_file", False), "logging.debug_file")
    return LoggingConfig(level=level, debug_file=debug_file)


def _string_field(raw: dict[str, Any], name: str, default: str) -> str:
    value = raw.get(name, default)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigError(f"{name} must be a string.")
    return value


def _optional_string(value: Any, field_name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"{field_name} must be a string.")
    return value


def _boolean(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{field_name} must be true or false.")
    return value


def _positive_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{field_name} must be a positive number of seconds.")
    return float(value)


__all__ = [
    "CONFIG_ENV_VAR",
    "Config",
    "ConfigError",
    "LabelingConfig",
    "LoggingConfig",
    "ScheduleConfig",
    "load_config",
    "resolve_config_path",
]
