"""Configuration loading for typsite (.typsite.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import TypsiteError

CONFIG_FILENAME = ".typsite.yml"

DEFAULT_WATCH_DIRS = ("content", "static", "lib")


class ConfigError(TypsiteError):
    """Raised when the configuration file cannot be parsed or is unsafe to use."""


@dataclass
class DevConfig:
    """Dev server and watcher settings."""

    host: str = "0.0.0.0"
    port: int = 3000
    debounce_ms: int = 100
    keepalive_seconds: float = 15.0
    broadcast_capacity: int = 16

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


@dataclass
class SiteConfig:
    """Represents the project layout and settings defined in .typsite.yml."""

    root: Path
    content_dir: str = "content"
    static_dir: str = "static"
    output_dir: str = "out"
    source_extension: str = "typ"
    watch_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_WATCH_DIRS))
    dev: DevConfig = field(default_factory=DevConfig)

    @property
    def content_path(self) -> Path:
        return self.root / self.content_dir

    @property
    def static_path(self) -> Path:
        return self.root / self.static_dir

    @property
    def output_path(self) -> Path:
        return self.root / self.output_dir

    @property
    def watch_paths(self) -> List[Path]:
        return [self.root / name for name in self.watch_dirs]


def load_config(root: Path) -> SiteConfig:
    """Load configuration for the project rooted at ``root``."""
    root = root.expanduser().resolve()
    config_file = root / CONFIG_FILENAME

    if not config_file.exists():
        return SiteConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = SiteConfig(root=root)
    config.content_dir = _as_str(data.get("content_dir")) or config.content_dir
    config.static_dir = _as_str(data.get("static_dir")) or config.static_dir
    config.output_dir = _as_str(data.get("output_dir")) or config.output_dir

    extension = _as_str(data.get("source_extension"))
    if extension:
        config.source_extension = extension.lstrip(".")

    if "watch_dirs" in data:
        config.watch_dirs = _as_str_list(data.get("watch_dirs"))

    dev_data = _as_dict(data.get("dev"))
    if dev_data:
        defaults = DevConfig()
        config.dev = DevConfig(
            host=_or_default(_as_str(dev_data.get("host")), defaults.host),
            port=_or_default(_as_int(dev_data.get("port")), defaults.port),
            debounce_ms=_or_default(_as_int(dev_data.get("debounce_ms")), defaults.debounce_ms),
            keepalive_seconds=_or_default(
                _as_float(dev_data.get("keepalive_seconds")), defaults.keepalive_seconds
            ),
            broadcast_capacity=_or_default(
                _as_int(dev_data.get("broadcast_capacity")), defaults.broadcast_capacity
            ),
        )

    _validate(config)
    return config


def _validate(config: SiteConfig) -> None:
    dev = config.dev
    if not 0 <= dev.port <= 65535:
        raise ConfigError(f"dev.port {dev.port} is not a valid TCP port")
    if dev.debounce_ms < 0:
        raise ConfigError("dev.debounce_ms must not be negative")
    if dev.keepalive_seconds <= 0:
        raise ConfigError("dev.keepalive_seconds must be positive")
    if dev.broadcast_capacity < 1:
        raise ConfigError("dev.broadcast_capacity must be at least 1")

    # The output directory is wiped on every build, so it must live strictly
    # inside the project and share no subtree with anything the build reads.
    root = config.root
    output = config.output_path.resolve()
    if output == root or not output.is_relative_to(root):
        raise ConfigError(
            f"output_dir '{config.output_dir}' resolves to {output}, which is not strictly inside "
            "the project root, and would overwrite files the build does not own"
        )
    sources = [config.content_path, config.static_path, *config.watch_paths]
    for source in sources:
        source = source.resolve()
        if output == source or output.is_relative_to(source) or source.is_relative_to(output):
            raise ConfigError(
                f"output_dir '{config.output_dir}' would overwrite project sources in {source}"
            )


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None else value


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []
