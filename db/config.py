from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Core Application Settings
    addon_name: str = "EpisodeFusion"
    version: str = "1.0.0"
    description: str = (
        "Multi-provider anime episode aggregator with Redis-backed caching."
    )
    logging_level: str = "INFO"

    # Cache Settings
    redis_url: str | None = None
    redis_max_connections: int = 100
    redis_circuit_failure_threshold: int = 5
    redis_circuit_recovery_timeout: int = 60

    # Time-related Settings
    releasing_cache_ttl: int = 60 * 60 * 3  # 3 hours
    finished_cache_ttl: int = 60 * 60 * 24 * 45  # 45 days
    http_timeout: float = 9.0

    # Upstream Service URLs
    consumet_url: str = "https://api.consumet.org"
    anify_url: str = "https://anify.eltik.cc"
    malsync_url: str = "https://api.malsync.moe/mal/anime/anilist:"
    zoro_url: str = "https://aniwatch-api.vercel.app"
    anizip_url: str = "https://api.ani.zip"
    requests_proxy_url: str | None = None

    # Provider Settings
    primary_provider_id: str = "gogoanime"
    provider_aliases: dict[str, str] = Field(
        default_factory=lambda: {"gogoanime": "gogobackup"}
    )
    secondary_excluded_providers: list[str] = Field(
        default_factory=lambda: ["9anime"]
    )
    mapped_providers: list[str] = Field(
        default_factory=lambda: ["gogoanime", "zoro"]
    )

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
