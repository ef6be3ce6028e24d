"""
Configuration management for Storefront Domains.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8000

    # Redis
    redis_url: str = "redis://localhost:6379"
    use_redis: bool = True
    key_prefix: str = "storefront:"

    # Netlify (domain provider)
    netlify_api_url: str = "https://api.netlify.com/api/v1"
    netlify_site_id: str = ""
    netlify_access_token: str = ""
    provider_timeout: float = 15.0  # seconds per provider API call
    probe_timeout: float = 10.0  # seconds per HTTP reachability probe

    # Reconciliation
    poll_interval: float = 10.0  # seconds between status checks
    max_poll_ticks: int = 0  # 0 = poll until active or removed
    ssl_retry_interval: int = 1800  # 30 minutes between certificate requests

    # Advisory DNS records used when the provider returns none
    fallback_a_record: str = "75.2.60.5"
    fallback_cname_target: str = ""

    # Logging
    log_level: str = "INFO"

    # Debug mode
    debug: bool = False

    model_config = {
        "env_prefix": "STOREFRONT_",
        "env_file": ".env",
        "extra": "ignore"
    }

    def validate_required(self) -> bool:
        """Validate that required settings are configured."""
        if not self.netlify_site_id:
            raise ValueError(
                "STOREFRONT_NETLIFY_SITE_ID is required. "
                "Find it under Site configuration > Site details in Netlify."
            )
        if not self.netlify_access_token:
            raise ValueError(
                "STOREFRONT_NETLIFY_ACCESS_TOKEN is required. "
                "Create a personal access token under User settings > Applications."
            )
        return True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    # In production, validate required fields
    if not settings.debug:
        try:
            settings.validate_required()
        except ValueError as e:
            import logging
            logging.warning(f"Configuration warning: {e}")
    return settings
