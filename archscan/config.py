"""Configuration loading and validation for architecture scans."""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import translate as glob_translate
from pathlib import Path
from typing import Any, Optional

import yaml


class ConfigError(Exception):
    """Error in scan configuration."""

    def __init__(
        self,
        message: str,
        file: Optional[str] = None,
        error_type: str = "config_invalid",
    ):
        super().__init__(message)
        self.message = message
        self.file = file
        self.error_type = error_type

    def to_json(self) -> dict[str, Any]:
        """Serialize error to JSON format for machine parsing."""
        result: dict[str, Any] = {
            "error": self.error_type,
            "message": self.message,
        }
        if self.file:
            result["file"] = self.file
        return result

    def __str__(self) -> str:
        if self.file:
            return f"{self.message} | file: {self.file}"
        return self.message


DEFAULT_CONFIG_PATH = ".archscan.yaml"


@dataclass
class DirectoryConfig:
    """Conventional subdirectories of the source root, per component kind."""

    entity: list[str] = field(default_factory=lambda: ["Entity"])
    controller: list[str] = field(default_factory=lambda: ["Controller"])
    repository: list[str] = field(default_factory=lambda: ["Repository"])
    # First existing directory wins
    service: list[str] = field(default_factory=lambda: ["Service", "Services"])
    # Searched when the event scan root itself is missing
    event_fallbacks: list[str] = field(
        default_factory=lambda: ["EventListener", "EventSubscriber", "Listener"]
    )


@dataclass
class PatternConfig:
    """Filename glob patterns for candidate files, per component kind."""

    entity: list[str] = field(default_factory=lambda: ["*.php"])
    controller: list[str] = field(default_factory=lambda: ["*Controller.php"])
    repository: list[str] = field(default_factory=lambda: ["*Repository.php"])
    service: list[str] = field(
        default_factory=lambda: ["*Service.php", "*Manager.php", "*Handler.php"]
    )
    event: list[str] = field(default_factory=lambda: ["*.php"])


@dataclass
class ScanConfig:
    """Complete scan configuration."""

    version: str = "1.0"
    source_dir: str = "src"
    skip_dirs: list[str] = field(
        default_factory=lambda: [".git", "vendor", "var", "node_modules", "cache"]
    )
    max_file_size: int = 1048576  # 1MB
    relation_workers: int = 1
    directories: DirectoryConfig = field(default_factory=DirectoryConfig)
    patterns: PatternConfig = field(default_factory=PatternConfig)


def get_default_config() -> ScanConfig:
    """Return the default scan configuration."""
    return ScanConfig()


def _as_list(value: Any, key: str, config_file: Optional[str]) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ConfigError(
        f"'{key}' must be a string or a list of strings",
        file=config_file,
    )


def _merge_section(section_cls: type, data: Any, key: str, config_file: Optional[str]):
    """Build a section dataclass from a mapping, keeping defaults for missing keys."""
    section = section_cls()
    if data is None:
        return section
    if not isinstance(data, dict):
        raise ConfigError(f"'{key}' must be a mapping", file=config_file)

    for name, value in data.items():
        if not hasattr(section, name):
            raise ConfigError(f"Unknown key '{key}.{name}'", file=config_file)
        setattr(section, name, _as_list(value, f"{key}.{name}", config_file))
    return section


def _validate_glob(pattern: str, config_file: Optional[str] = None) -> None:
    """Validate a glob pattern."""
    try:
        glob_translate(pattern)
    except Exception as e:
        raise ConfigError(
            f"Invalid glob pattern '{pattern}': {e}",
            file=config_file,
        )
    if pattern.count("[") != pattern.count("]"):
        raise ConfigError(
            f"Invalid glob pattern '{pattern}': unclosed bracket",
            file=config_file,
        )


def validate_config(config: ScanConfig, config_file: Optional[str] = None) -> None:
    """Validate configuration values.

    Raises:
        ConfigError: If configuration is invalid.
    """
    if not config.source_dir or not isinstance(config.source_dir, str):
        raise ConfigError("'source_dir' must be a non-empty string", file=config_file)

    if not isinstance(config.max_file_size, int) or config.max_file_size <= 0:
        raise ConfigError("'max_file_size' must be a positive integer", file=config_file)

    if not isinstance(config.relation_workers, int) or config.relation_workers < 1:
        raise ConfigError("'relation_workers' must be an integer >= 1", file=config_file)

    for patterns in vars(config.patterns).values():
        for pattern in patterns:
            _validate_glob(pattern, config_file)


def load_config(config_path: Path | str) -> ScanConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the .archscan.yaml file.

    Returns:
        ScanConfig with loaded values merged with defaults.

    Raises:
        ConfigError: If the file exists but contains invalid configuration.
    """
    config_path = Path(config_path)
    config_file = str(config_path)

    defaults = get_default_config()

    if not config_path.exists():
        return defaults

    try:
        content = config_path.read_text()
        if not content.strip():
            return defaults

        data = yaml.safe_load(content)
        if not data:
            return defaults
        if not isinstance(data, dict):
            raise ConfigError(
                "Top-level scan config must be a mapping",
                file=config_file,
            )

    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML: {e}",
            file=config_file,
        )

    skip_dirs = data.get("skip_dirs", defaults.skip_dirs)

    config = ScanConfig(
        version=str(data.get("version", defaults.version)),
        source_dir=data.get("source_dir", defaults.source_dir),
        skip_dirs=_as_list(skip_dirs, "skip_dirs", config_file),
        max_file_size=data.get("max_file_size", defaults.max_file_size),
        relation_workers=data.get("relation_workers", defaults.relation_workers),
        directories=_merge_section(DirectoryConfig, data.get("directories"), "directories", config_file),
        patterns=_merge_section(PatternConfig, data.get("patterns"), "patterns", config_file),
    )

    validate_config(config, config_file)

    return config
