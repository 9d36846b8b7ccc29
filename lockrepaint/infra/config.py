"""
Configuration management using Pydantic Settings.

Architecture Decision: Why pydantic-settings?
- Type-safe configuration with validation
- Supports multiple sources (YAML, env vars, defaults)
- Easy to test with different configurations

Sources, lowest priority first:
1. Default values (match a stock Cinnamon desktop)
2. Environment variables (LOCKREPAINT_*)
3. YAML config file
4. Explicit override mappings passed to load_settings()

YAML and overrides are merged shallowly: a later mapping replaces whole
top-level keys, it never merges into nested values.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional
import yaml

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_NAME = "lockrepaint"


class Settings(BaseSettings):
    """
    Process-wide configuration. Frozen once constructed.
    """
    model_config = SettingsConfigDict(
        env_prefix='LOCKREPAINT_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        frozen=True,
    )

    # Screensaver bus endpoint
    service: str = "org.cinnamon.ScreenSaver"
    path: str = "/org/cinnamon/ScreenSaver"
    interface: str = "org.cinnamon.ScreenSaver"

    # "<schema> <key>" handed to `gsettings get`
    gsetting: str = "org.cinnamon.desktop.session idle-delay"

    # Timing (seconds)
    settle_delay_seconds: float = Field(default=3.0, ge=0, description="Wait before probing DPMS after a lock")
    recheck_cushion_seconds: float = Field(default=5.0, gt=0, description="Recheck delay used when idle time already exceeds the threshold")
    screen_off_delay_seconds: float = Field(default=0.0, ge=0, description="Wait before forcing the monitor off")

    # Idle duration probe. xprintidle reports milliseconds.
    idle_duration_command: List[str] = Field(default_factory=lambda: ["xprintidle"])
    idle_duration_unit: Literal["ms", "s"] = "ms"

    # Monitor power probe
    monitor_query_command: List[str] = Field(default_factory=lambda: ["xset", "q"])
    monitor_off_marker: str = "Monitor is Off"

    # Actuators
    chvt_command: List[str] = Field(default_factory=lambda: ["sudo", "chvt"])
    intermediate_terminal: int = Field(default=1, ge=1)
    display_terminal: int = Field(default=7, ge=1)
    power_off_command: List[str] = Field(default_factory=lambda: ["xset", "dpms", "force", "off"])

    # Behaviour switches
    retry_failed_interface: bool = Field(default=True, description="Retry bus acquisition after a failure instead of caching it")
    cancel_recheck_on_unlock: bool = Field(default=True, description="Abort an outstanding recheck when the screen unlocks")

    # Startup subscription
    subscribe_attempts: int = Field(default=5, ge=1, description="Tries at subscribing to lock events before exiting")
    subscribe_retry_seconds: float = Field(default=5.0, ge=0, description="Wait between subscription attempts")

    log_level: str = "INFO"

    @field_validator("gsetting")
    @classmethod
    def _check_gsetting(cls, value: str) -> str:
        if len(value.split()) != 2:
            raise ValueError("gsetting must be '<schema> <key>'")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def gsetting_args(self) -> List[str]:
        """The schema and key as separate argv entries"""
        return self.gsetting.split()


def default_config_dir() -> Path:
    """Per-user config directory (~/.config/lockrepaint or $XDG_CONFIG_HOME)"""
    base = os.getenv('XDG_CONFIG_HOME')
    return (Path(base) if base else Path.home() / '.config') / APP_NAME


def find_config_file() -> Optional[Path]:
    """Locate settings.yaml: workspace config folder first, then the user's config directory"""
    config_file = Path("config/settings.yaml")
    if config_file.exists():
        return config_file

    config_file = default_config_dir() / "settings.yaml"
    if config_file.exists():
        return config_file
    return None


def load_yaml_config(config_file: Optional[Path]) -> Dict[str, Any]:
    """Load a YAML mapping. A missing or empty file yields an empty mapping."""
    if config_file is None or not config_file.exists():
        return {}

    with open(config_file, 'r', encoding='utf-8') as f:
        config_data = yaml.safe_load(f)

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ValueError(f"{config_file}: expected a mapping at top level")
    return config_data


def merge_shallow(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merge mappings left to right, replacing first-level keys only"""
    merged: Dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


def load_settings(*overrides: Mapping[str, Any], config_file: Optional[Path] = None) -> Settings:
    """
    Build the settings object.

    Args:
        *overrides: Mappings applied over the YAML file, later ones winning
        config_file: Explicit YAML path; located with find_config_file() if omitted

    Returns:
        Frozen Settings instance
    """
    if config_file is None:
        config_file = find_config_file()

    data = merge_shallow(load_yaml_config(config_file), *overrides)
    # Init kwargs outrank environment variables in pydantic-settings
    return Settings(**data)


# Global settings instance, used only by the entry point
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reload_settings(*overrides: Mapping[str, Any]) -> Settings:
    """Reload settings from file"""
    global _settings
    _settings = load_settings(*overrides)
    return _settings
