"""
Configuration management for Dealer SEO Hub
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Dealer SEO Hub"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 4
    app_base_url: str = "http://localhost:8000"

    # Database
    database_url: str = "sqlite:///./dealer_seo.db"

    # SEOWorks fulfillment webhook
    seoworks_webhook_secret: str = ""
    # When False, events for unknown task ids are rejected with 404
    seoworks_auto_create_requests: bool = False
    seoworks_fallback_user_email: str = ""
    default_package_type: str = "GOLD"

    # Google Analytics 4 / Search Console (service account with per-dealership access)
    ga4_credentials_path: str = "./credentials/ga4-credentials.json"
    gsc_credentials_path: str = "./credentials/gsc-credentials.json"
    analytics_cache_seconds: int = 300

    # LLM Configuration
    anthropic_api_key: Optional[str] = None
    llm_model: str = "claude-sonnet-4-20250514"
    enable_llm_chat: bool = True
    llm_max_tokens: int = 1000

    # Notifications
    resend_api_key: Optional[str] = None
    notification_from_email: str = "SEO Hub <notifications@example.com>"

    # Authentication
    initial_admin_email: str = ""
    initial_admin_password: str = ""
    session_duration_hours: int = 72

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
