"""
Configuration management for the load economics engine.

Handles loading and accessing:
- Business configuration (config.yaml)
- Environment variables
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from src.core.exceptions import ConfigurationError
from src.data.models.pay import PayType


class EconomicsConfig(BaseModel):
    """Defaults applied when a dispatcher or driver has no configuration."""

    default_fee_percentage: float = Field(12, ge=0, le=100)
    default_pay_type: PayType = PayType.PERCENTAGE_OF_NET
    default_pay_percentage: float = Field(50, ge=0, le=100)


class FleetConfig(BaseModel):
    """Fleet table settings."""

    page_size: int = Field(10, gt=0)


class RouteConfig(BaseModel):
    """Route analysis settings."""

    page_size: int = Field(10, gt=0)
    very_profitable_rate: float = 2.5
    profitable_rate: float = 2.0
    moderate_rate: float = 1.5
    marker_min_size: float = 8
    marker_max_size: float = 50
    marker_load_ceiling: int = Field(100, gt=0)


class GeocodingConfig(BaseModel):
    """Geocoding provider and cache settings."""

    cache_ttl_seconds: Optional[float] = None
    timeout_seconds: float = 10.0
    region: Optional[str] = "us"


class AccessConfig(BaseModel):
    """Access gate settings."""

    trial_period_days: int = Field(30, ge=0)


class EnvironmentSettings(BaseSettings):
    """Environment variables configuration."""

    # Google Maps API
    google_maps_api_key: Optional[str] = Field(None, alias="GOOGLE_MAPS_API_KEY")

    # Optional on-disk geocode cache
    geocode_cache_path: Optional[str] = Field(None, alias="GEOCODE_CACHE_PATH")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(True, alias="LOG_JSON")

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


class ConfigManager:
    """
    Central configuration manager for the engine.

    Loads and provides access to:
    - Business configuration from config/config.yaml
    - Environment variables from .env

    Every section is optional; missing keys fall back to the model defaults.
    """

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_dir: Optional path to config directory. Defaults to project root/config.
        """
        if config_dir is None:
            # Default to config/ directory in project root
            project_root = Path(__file__).parent.parent.parent
            config_dir = project_root / "config"

        self.config_dir = config_dir
        self._business_config: Optional[dict[str, Any]] = None
        self._env_settings: Optional[EnvironmentSettings] = None

    @property
    def business_config(self) -> dict[str, Any]:
        """Load and return business configuration from config.yaml."""
        if self._business_config is None:
            config_path = self.config_dir / "config.yaml"
            if not config_path.exists():
                self._business_config = {}
            else:
                with open(config_path, "r") as f:
                    loaded = yaml.safe_load(f) or {}
                if not isinstance(loaded, dict):
                    raise ConfigurationError(f"{config_path} must contain a mapping")
                self._business_config = loaded
        return self._business_config

    @property
    def env(self) -> EnvironmentSettings:
        """Load and return environment settings."""
        if self._env_settings is None:
            self._env_settings = EnvironmentSettings()
        return self._env_settings

    def _section(self, name: str) -> dict[str, Any]:
        section = self.business_config.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"Config section '{name}' must be a mapping")
        return section

    def get_economics_config(self) -> EconomicsConfig:
        """Get fee and driver pay defaults."""
        return EconomicsConfig(**self._section("economics"))

    def get_fleet_config(self) -> FleetConfig:
        """Get fleet table configuration."""
        return FleetConfig(**self._section("fleet"))

    def get_route_config(self) -> RouteConfig:
        """Get route analysis configuration."""
        return RouteConfig(**self._section("routes"))

    def get_geocoding_config(self) -> GeocodingConfig:
        """Get geocoding configuration."""
        return GeocodingConfig(**self._section("geocoding"))

    def get_access_config(self) -> AccessConfig:
        """Get access gate configuration."""
        return AccessConfig(**self._section("access"))

    def get_api_key(self, provider: str) -> Optional[str]:
        """
        Get API key for a specific provider.

        Args:
            provider: Provider name ("google_maps")

        Returns:
            API key or None if not set
        """
        provider_map = {
            "google_maps": self.env.google_maps_api_key,
        }
        return provider_map.get(provider.lower())


# Global config instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """
    Get the global configuration manager instance.

    Returns:
        ConfigManager singleton instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
