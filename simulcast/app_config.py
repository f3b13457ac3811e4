from pydantic import BaseModel

from simulcast.shared.config import config


def _str(key: str, default: str = "") -> str:
    return (config.get(key) or default).strip()


def _opt(key: str) -> str | None:
    return (config.get(key) or "").strip() or None


def _int(key: str, default: int) -> int:
    return int((config.get(key) or "").strip() or default)


def _float(key: str, default: float) -> float:
    return float((config.get(key) or "").strip() or default)


def _bool(key: str, default: str = "false") -> bool:
    return _str(key, default).lower() == "true"


class AppEnvironConfig(BaseModel):
    DEBUG: bool = _bool("DEBUG", "false")

    API_HOST: str = _str("API_HOST", "0.0.0.0")
    API_PORT: int = _int("API_PORT", 8000)
    API_WORKERS: int = _int("API_WORKERS", 1)
    API_CORS_ORIGINS: list[str] = [
        x.strip() for x in _str("API_CORS_ORIGINS", "*").split(",") if x.strip()
    ]
    APP_BASE_URL: str = _str("APP_BASE_URL", "http://localhost:8000")
    OAUTH_REDIRECT_PATH: str = _str("OAUTH_REDIRECT_PATH", "/dashboard.html")
    STREAM_RELAY_URL: str = _str("STREAM_RELAY_URL")

    # Identity provider (bearer ID tokens)
    AUTH_JWKS_URL: str | None = _opt("AUTH_JWKS_URL")
    AUTH_JWT_SECRET: str | None = _opt("AUTH_JWT_SECRET")
    AUTH_AUDIENCE: str | None = _opt("AUTH_AUDIENCE")
    AUTH_ISSUER: str | None = _opt("AUTH_ISSUER")

    # At-rest token encryption and OAuth state signing
    TOKEN_ENCRYPTION_KEY: str = _str("TOKEN_ENCRYPTION_KEY", "local-dev-key")
    OAUTH_STATE_SECRET: str | None = _opt("OAUTH_STATE_SECRET")
    OAUTH_STATE_TTL_SECONDS: int = _int("OAUTH_STATE_TTL_SECONDS", 600)

    # YouTube / Google OAuth
    YOUTUBE_CLIENT_ID: str | None = _opt("YOUTUBE_CLIENT_ID")
    YOUTUBE_CLIENT_SECRET: str | None = _opt("YOUTUBE_CLIENT_SECRET")
    YOUTUBE_REDIRECT_URI: str | None = _opt("YOUTUBE_REDIRECT_URI")
    YOUTUBE_SCOPES: list[str] = _str(
        "YOUTUBE_SCOPES",
        "https://www.googleapis.com/auth/youtube "
        "https://www.googleapis.com/auth/youtube.readonly "
        "https://www.googleapis.com/auth/youtube.upload",
    ).replace(",", " ").split()

    # YouTube broadcast lifecycle tuning
    YOUTUBE_MAX_ATTEMPTS: int = _int("YOUTUBE_MAX_ATTEMPTS", 3)
    YOUTUBE_RETRY_BASE_SECONDS: float = _float("YOUTUBE_RETRY_BASE_SECONDS", 1.0)
    YOUTUBE_TRANSITION_MAX_ATTEMPTS: int = _int("YOUTUBE_TRANSITION_MAX_ATTEMPTS", 5)
    YOUTUBE_TRANSITION_RETRY_BASE_SECONDS: float = _float(
        "YOUTUBE_TRANSITION_RETRY_BASE_SECONDS", 2.0
    )
    YOUTUBE_POLL_INTERVAL_SECONDS: float = _float("YOUTUBE_POLL_INTERVAL_SECONDS", 2.0)
    YOUTUBE_POLL_TIMEOUT_SECONDS: float = _float("YOUTUBE_POLL_TIMEOUT_SECONDS", 30.0)
    YOUTUBE_BROADCAST_DURATION_SECONDS: int = _int("YOUTUBE_BROADCAST_DURATION_SECONDS", 7200)
    YOUTUBE_PRIVACY_STATUS: str = _str("YOUTUBE_PRIVACY_STATUS", "unlisted")

    # Twitch
    TWITCH_CLIENT_ID: str | None = _opt("TWITCH_CLIENT_ID")
    TWITCH_CLIENT_SECRET: str | None = _opt("TWITCH_CLIENT_SECRET")
    TWITCH_REDIRECT_URI: str | None = _opt("TWITCH_REDIRECT_URI")
    TWITCH_INGEST_URL: str = _str("TWITCH_INGEST_URL", "rtmp://live.twitch.tv/app")

    # Relay
    RELAY_HOST: str = _str("RELAY_HOST", "0.0.0.0")
    RELAY_PORT: int = _int("RELAY_PORT", _int("PORT", 8080))
    RELAY_HEARTBEAT_SECONDS: float = _float("RELAY_HEARTBEAT_SECONDS", 15.0)
    RELAY_INPUT_QUEUE_FRAMES: int = _int("RELAY_INPUT_QUEUE_FRAMES", 256)
    RELAY_KILL_TIMEOUT_SECONDS: float = _float("RELAY_KILL_TIMEOUT_SECONDS", 5.0)
    FFMPEG_PATH: str = _str("FFMPEG_PATH", "ffmpeg")

    # Observability
    LOGFIRE_ENABLE: bool = _bool("LOGFIRE_ENABLE", "false")
    LOGFIRE_TOKEN: str | None = _opt("LOGFIRE_TOKEN")


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
