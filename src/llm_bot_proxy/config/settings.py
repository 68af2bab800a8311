"""
Application settings and configuration management.

Supports loading from:
1. SOPS-encrypted YAML files (config.enc.yaml)
2. Environment variables (fallback)

Settings are read once at process start and passed explicitly into the
request handler; core logic never looks configuration up on its own.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from .constants import (
    DEFAULT_ALT_ORIGIN_TEMPLATE,
    DEFAULT_CLIENT_IP_HEADER,
    DEFAULT_COUNTRY_HEADER,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_FRAGMENT_ELEMENT_ID,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TELEMETRY_ENDPOINT,
)

logger = logging.getLogger(__name__)


def _safe_float(value: Any, default: float) -> float:
    """Parse a float, using default on error."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _safe_int(value: Any, default: int) -> int:
    """Parse an int, using default on error."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _safe_bool(value: Any, default: bool) -> bool:
    """Parse a bool from config or env text."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# Main Settings
# =============================================================================


@dataclass
class Settings:
    """Application settings for the content proxy."""

    # Organization whose curated content is served to AI visitors
    organization_id: str = ""

    # Primary origin; empty means "the inbound request's own origin"
    origin_url: str = ""

    # Secondary content store
    alt_origin_template: str = DEFAULT_ALT_ORIGIN_TEMPLATE
    fragment_element_id: str = DEFAULT_FRAGMENT_ELEMENT_ID

    # Telemetry
    telemetry_endpoint: str = DEFAULT_TELEMETRY_ENDPOINT
    telemetry_enabled: bool = True

    # Outbound fetches
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS

    # Platform-provided client context headers
    client_ip_header: str = DEFAULT_CLIENT_IP_HEADER
    country_header: str = DEFAULT_COUNTRY_HEADER

    # Server
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @property
    def has_organization_id(self) -> bool:
        """True when an organization id is configured (blank counts as unset)."""
        return bool(self.organization_id and self.organization_id.strip())

    @property
    def alt_origin(self) -> str:
        """Secondary-store origin for this organization, or '' when unset."""
        if not self.has_organization_id:
            return ""
        return self.alt_origin_template.format(
            organization_id=self.organization_id.strip()
        ).rstrip("/")

    def validate(self, require_organization_id: bool = True) -> list[str]:
        """
        Validate settings values. Returns list of errors.

        A missing organization id only disables the AI path, so callers that
        can run without it pass require_organization_id=False.
        """
        errors = []

        if require_organization_id and not self.has_organization_id:
            errors.append("organization_id is required for AI visitor processing")

        if "{organization_id}" not in self.alt_origin_template:
            errors.append("alt_origin_template must contain '{organization_id}'")

        if self.fetch_timeout_seconds <= 0:
            errors.append(
                f"fetch_timeout_seconds must be > 0, got {self.fetch_timeout_seconds}"
            )

        if not self.origin_url:
            errors.append(
                "origin_url is required (the backend serving the real site, "
                "e.g. http://127.0.0.1:8000)"
            )
        elif not self.origin_url.startswith(("http://", "https://")):
            errors.append(f"origin_url must be an http(s) URL, got {self.origin_url!r}")

        if not 0 < self.port < 65536:
            errors.append(f"port must be 1-65535, got {self.port}")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "organization_id": self.organization_id,
            "origin_url": self.origin_url,
            "alt_origin_template": self.alt_origin_template,
            "fragment_element_id": self.fragment_element_id,
            "telemetry_endpoint": self.telemetry_endpoint,
            "telemetry_enabled": self.telemetry_enabled,
            "fetch_timeout_seconds": self.fetch_timeout_seconds,
            "client_ip_header": self.client_ip_header,
            "country_header": self.country_header,
            "host": self.host,
            "port": self.port,
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Settings":
        """Create Settings from configuration dictionary (e.g., from SOPS)."""
        proxy = config.get("proxy", {}) or {}
        content = config.get("content", {}) or {}
        telemetry = config.get("telemetry", {}) or {}
        server = config.get("server", {}) or {}

        return cls(
            organization_id=str(config.get("organization_id", "") or ""),
            origin_url=proxy.get("origin_url", ""),
            fetch_timeout_seconds=_safe_float(
                proxy.get("fetch_timeout_seconds"), DEFAULT_FETCH_TIMEOUT_SECONDS
            ),
            client_ip_header=proxy.get("client_ip_header", DEFAULT_CLIENT_IP_HEADER),
            country_header=proxy.get("country_header", DEFAULT_COUNTRY_HEADER),
            alt_origin_template=content.get(
                "alt_origin_template", DEFAULT_ALT_ORIGIN_TEMPLATE
            ),
            fragment_element_id=content.get(
                "fragment_element_id", DEFAULT_FRAGMENT_ELEMENT_ID
            ),
            telemetry_endpoint=telemetry.get("endpoint", DEFAULT_TELEMETRY_ENDPOINT),
            telemetry_enabled=_safe_bool(telemetry.get("enabled"), True),
            host=server.get("host", DEFAULT_HOST),
            port=_safe_int(server.get("port"), DEFAULT_PORT),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        return cls(
            organization_id=os.environ.get("ORGANIZATION_ID", ""),
            origin_url=os.environ.get("ORIGIN_URL", ""),
            alt_origin_template=os.environ.get(
                "ALT_ORIGIN_TEMPLATE", DEFAULT_ALT_ORIGIN_TEMPLATE
            ),
            fragment_element_id=os.environ.get(
                "FRAGMENT_ELEMENT_ID", DEFAULT_FRAGMENT_ELEMENT_ID
            ),
            telemetry_endpoint=os.environ.get(
                "TELEMETRY_ENDPOINT", DEFAULT_TELEMETRY_ENDPOINT
            ),
            telemetry_enabled=_safe_bool(os.environ.get("TELEMETRY_ENABLED"), True),
            fetch_timeout_seconds=_safe_float(
                os.environ.get("FETCH_TIMEOUT_SECONDS"), DEFAULT_FETCH_TIMEOUT_SECONDS
            ),
            client_ip_header=os.environ.get(
                "CLIENT_IP_HEADER", DEFAULT_CLIENT_IP_HEADER
            ),
            country_header=os.environ.get("COUNTRY_HEADER", DEFAULT_COUNTRY_HEADER),
            host=os.environ.get("PROXY_HOST", DEFAULT_HOST),
            port=_safe_int(os.environ.get("PROXY_PORT"), DEFAULT_PORT),
        )


# Default config file path
DEFAULT_CONFIG_PATH = Path("config.enc.yaml")


@lru_cache
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get cached settings instance.

    Loads from SOPS-encrypted config file if available, otherwise from env vars.

    Args:
        config_path: Optional path to SOPS-encrypted config file

    Returns:
        Settings instance
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if path.exists():
        try:
            from .sops_loader import decrypt_sops_file

            config = decrypt_sops_file(path)
            return Settings.from_dict(config)
        except (OSError, RuntimeError) as e:
            logger.warning(f"Failed to load SOPS config from {path}: {e}")
            logger.warning("Falling back to environment variables")

    return Settings.from_env()


def clear_settings_cache() -> None:
    """Clear the cached settings (useful for testing)."""
    get_settings.cache_clear()
