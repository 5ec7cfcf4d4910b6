"""
Configuration management for btnotify.

Handles:
- Retry and backoff settings for delivery
- Readiness wait settings for the Bluetooth adapter
- Target device and known device addresses
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional, Any
import logging

logger = logging.getLogger(__name__)

# Default paths
DEFAULT_DATA_DIR = Path.home() / ".btnotify"

DEFAULT_RETRY_LIMIT = 10
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_POLL_INTERVAL_MS = 500
DEFAULT_MAX_WAIT_MS = 20000

ENCODINGS = ("text", "cbor")


@dataclass
class Config:
    """
    Main btnotify configuration.

    Stored at ~/.btnotify/config.json
    """
    # Delivery
    retry_limit: int = DEFAULT_RETRY_LIMIT
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS

    # Readiness wait
    readiness_poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    readiness_max_wait_ms: int = DEFAULT_MAX_WAIT_MS
    readiness_max_polls: Optional[int] = None
    auto_enable_medium: bool = False

    # Method
    method_enabled: bool = True
    target_device: Optional[str] = None
    rfcomm_channel: Optional[int] = None  # None = look up via SDP
    encoding: str = "text"

    # Known devices, name -> address
    devices: Dict[str, str] = field(default_factory=dict)

    # Paths
    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)

    @property
    def config_path(self) -> Path:
        return self.data_dir / "config.json"

    def validate(self) -> None:
        """Raise ValueError for settings the delivery engine cannot use."""
        if self.retry_limit < 0:
            raise ValueError(f"retry_limit must be >= 0, got {self.retry_limit}")
        if self.retry_delay_ms < 0:
            raise ValueError(f"retry_delay_ms must be >= 0, got {self.retry_delay_ms}")
        if self.readiness_poll_interval_ms <= 0:
            raise ValueError("readiness_poll_interval_ms must be positive")
        if self.readiness_max_wait_ms < 0:
            raise ValueError("readiness_max_wait_ms must be >= 0")
        if self.readiness_max_polls is not None and self.readiness_max_polls < 1:
            raise ValueError("readiness_max_polls must be >= 1")
        if self.encoding not in ENCODINGS:
            raise ValueError(f"Unknown encoding: {self.encoding}")

    def to_dict(self) -> dict:
        return {
            "retry_limit": self.retry_limit,
            "retry_delay_ms": self.retry_delay_ms,
            "readiness_poll_interval_ms": self.readiness_poll_interval_ms,
            "readiness_max_wait_ms": self.readiness_max_wait_ms,
            "readiness_max_polls": self.readiness_max_polls,
            "auto_enable_medium": self.auto_enable_medium,
            "method_enabled": self.method_enabled,
            "target_device": self.target_device,
            "rfcomm_channel": self.rfcomm_channel,
            "encoding": self.encoding,
            "devices": dict(self.devices),
        }

    @classmethod
    def from_dict(cls, data: dict, data_dir: Optional[Path] = None) -> "Config":
        # Filter to only known fields to handle config evolution
        known_fields = {f.name for f in fields(cls)} - {"data_dir"}
        filtered = {k: v for k, v in data.items() if k in known_fields}
        return cls(data_dir=data_dir or DEFAULT_DATA_DIR, **filtered)

    def ensure_data_dir(self) -> None:
        """Create data directory if it doesn't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def save(self) -> None:
        """Save configuration to disk."""
        self.ensure_data_dir()

        with open(self.config_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.debug(f"Configuration saved to {self.config_path}")

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> "Config":
        """Load configuration from disk."""
        data_dir = data_dir or DEFAULT_DATA_DIR
        config_path = data_dir / "config.json"

        if not config_path.exists():
            return cls(data_dir=data_dir)

        with open(config_path, 'r') as f:
            data = json.load(f)

        return cls.from_dict(data, data_dir=data_dir)

    def set_value(self, key: str, raw: str) -> Any:
        """Set a scalar option from its string form (used by the CLI)."""
        if key in ("devices", "data_dir") or key not in self.to_dict():
            raise KeyError(key)

        current = getattr(self, key)
        if key in ("auto_enable_medium", "method_enabled"):
            value: Any = raw.strip().lower() in ("1", "true", "yes", "on")
        elif key in ("target_device", "rfcomm_channel", "readiness_max_polls") and raw.lower() in ("", "none", "null"):
            value = None
        elif key in ("rfcomm_channel", "readiness_max_polls") or isinstance(current, int):
            value = int(raw)
        else:
            value = raw

        setattr(self, key, value)
        return value


# Global config instance
_config: Optional[Config] = None


def get_config(data_dir: Optional[Path] = None) -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load(data_dir)
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
