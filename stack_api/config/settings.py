from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for account deletion

    # AWS S3 for profile images (will read from uppercase env vars automatically)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Auth flow
    flow_refresh_timeout_sec: float = 15.0  # 0 disables the timeout
    auth_cache_ttl_sec: int = 60
    password_reset_redirect_url: Optional[str] = None

    # Social
    feed_page_size: int = 20
    group_messages_page_size: int = 30
    username_search_limit: int = 10
    max_username_length: int = 30

    # PostgREST returns at most max-rows (1000 by default) per request
    query_page_size: int = 1000

    # App
    app_name: str = "stack-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def flow_refresh_timeout(self) -> Optional[float]:
        return self.flow_refresh_timeout_sec if self.flow_refresh_timeout_sec > 0 else None

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
