"""
Configuration for the Reef Controller
=====================================
Process runtime settings loaded from ``REEF_*`` environment variables, the
channel file loader, and the logging setup.

Channel declarations (inputs, outputs, their programs and drivers) live in a
JSON file pointed to by ``REEF_CHANNELS_PATH``; everything else is tuned via
environment variables. Defaults are Raspberry Pi friendly.
"""

from __future__ import annotations

import json
import os
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from reef.domain.exceptions import ConfigurationError
from reef.schemas.channels import ReefConfigFile


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    channels_path: str = field(default_factory=lambda: os.getenv("REEF_CHANNELS_PATH", "config/channels.json"))

    # Scheduler
    scheduler_quantum: float = field(default_factory=lambda: _env_float("REEF_SCHEDULER_QUANTUM", 0.25))
    max_workers: int = field(default_factory=lambda: _env_int("REEF_MAX_WORKERS", 4))
    device_timeout: float = field(default_factory=lambda: _env_float("REEF_DEVICE_TIMEOUT", 5.0))
    history_size: int = field(default_factory=lambda: _env_int("REEF_HISTORY_SIZE", 100))

    # Hardware
    i2c_bus: int = field(default_factory=lambda: _env_int("REEF_I2C_BUS", 1))
    mqtt_broker_host: str = field(default_factory=lambda: os.getenv("REEF_MQTT_HOST", "localhost"))
    mqtt_broker_port: int = field(default_factory=lambda: _env_int("REEF_MQTT_PORT", 1883))

    eventbus_queue_size: int = field(default_factory=lambda: _env_int("REEF_EVENTBUS_QUEUE_SIZE", 1024))
    eventbus_worker_count: int = field(default_factory=lambda: _env_int("REEF_EVENTBUS_WORKER_COUNT", 2))

    DEBUG: bool = field(default_factory=lambda: _env_bool("REEF_DEBUG", False))
    log_dir: str = field(default_factory=lambda: os.getenv("REEF_LOG_DIR", "logs"))

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.scheduler_quantum <= 0:
            raise ConfigurationError("REEF_SCHEDULER_QUANTUM must be positive")
        if self.max_workers < 1:
            raise ConfigurationError("REEF_MAX_WORKERS must be at least 1")
        if self.device_timeout <= 0:
            raise ConfigurationError("REEF_DEVICE_TIMEOUT must be positive")
        if self.history_size < 1:
            raise ConfigurationError("REEF_HISTORY_SIZE must be at least 1")


def setup_logging(debug: bool = False, log_dir: str = "logs") -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    log_level = logging.DEBUG if debug else logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid adding duplicates when called more than once
    has_console = any(getattr(h, "name", "") == "reef_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "reef_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "reef_console"
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if not has_file:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "reef.log"),
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "reef_file"
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"reef_console", "reef_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))

    # paho logs every packet at DEBUG
    logging.getLogger("paho").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    return AppConfig()


def load_channel_config(path: str | Path) -> ReefConfigFile:
    """
    Read and validate the JSON channel file.

    Raises:
        ConfigurationError: if the file is missing, is not JSON, or does not
            match the channel file schema.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigurationError(f"Channel file not found: {path}", detail={"path": str(path)}) from None
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            f"Channel file {path} is not valid JSON: {exc}",
            detail={"path": str(path), "line": exc.lineno},
        ) from exc

    try:
        return ReefConfigFile.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Channel file {path} is invalid: {exc.error_count()} error(s)\n{exc}",
            detail={"path": str(path), "errors": exc.errors(include_url=False)},
        ) from exc
