"""
Configuration Management Module

Configures proxy parameters via environment variables or .env file.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DetectionMode = Literal["union", "strict"]


def parse_csv(value: str) -> list[str]:
    """Split a comma-separated setting, dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """
    Application Configuration Class

    All configuration items can be overridden by environment variables, with names matching fields (uppercase).
    """

    # Application Config
    APP_NAME: str = "Git CORS Proxy"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # CORS Config
    # Comma-separated list of allowed origins
    # Example: "https://app.example.com,https://staging.example.com"
    ALLOWED_ORIGINS: str = ""
    # Allow localhost / 127.0.0.1 origins on any port
    CORS_ALLOW_LOCALHOST: bool = True
    # Verbose diagnostic logging, never changes behavior
    CORS_ENABLE_LOGGING: bool = False

    # Upstream Config
    # Comma-separated list of domains proxied over plain HTTP
    # Example: "localhost,git.internal.example.com"
    INSECURE_HTTP_ORIGINS: str = ""
    # "union" accepts the strict Smart HTTP shapes plus the path/service/user-agent heuristic,
    # "strict" accepts the six Smart HTTP shapes only
    GIT_DETECTION_MODE: DetectionMode = "union"
    # Request timeout (seconds)
    HTTP_TIMEOUT: int = 300
    # Let the HTTP client follow upstream redirects instead of rewriting Location
    UPSTREAM_FOLLOW_REDIRECTS: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    def to_proxy_config(self) -> "ProxyConfig":
        return ProxyConfig(
            allowed_origins=frozenset(parse_csv(self.ALLOWED_ORIGINS)),
            allow_loopback=self.CORS_ALLOW_LOCALHOST,
            insecure_origins=frozenset(parse_csv(self.INSECURE_HTTP_ORIGINS)),
            verbose_logging=self.CORS_ENABLE_LOGGING,
            detection_mode=self.GIT_DETECTION_MODE,
            timeout=self.HTTP_TIMEOUT,
            follow_redirects=self.UPSTREAM_FOLLOW_REDIRECTS,
        )


@dataclass(frozen=True)
class ProxyConfig:
    """
    Immutable snapshot of the settings the forwarding engine needs.

    Built once at startup and injected into every request.
    """

    allowed_origins: frozenset[str] = frozenset()
    allow_loopback: bool = True
    insecure_origins: frozenset[str] = frozenset()
    verbose_logging: bool = False
    detection_mode: DetectionMode = "union"
    timeout: int = 300
    follow_redirects: bool = False


@lru_cache()
def get_settings() -> Settings:
    """
    Get application configuration (Singleton)

    Uses lru_cache to ensure configuration is loaded only once.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()


@lru_cache()
def get_proxy_config() -> ProxyConfig:
    """Get the immutable proxy configuration derived from the settings."""
    return get_settings().to_proxy_config()
