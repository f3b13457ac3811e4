import os
import warnings

warnings.filterwarnings("ignore", category=DeprecationWarning, module="simulcast.*")

# Deterministic settings for tests; must be set before simulcast is imported.
os.environ.update(
    {
        "DEBUG": "false",
        "TOKEN_ENCRYPTION_KEY": "test-encryption-key",
        "OAUTH_STATE_SECRET": "test-state-secret",
        "AUTH_JWT_SECRET": "test-jwt-secret-with-enough-length-for-hs256",
        "AUTH_JWKS_URL": "",
        "AUTH_AUDIENCE": "",
        "AUTH_ISSUER": "",
        "YOUTUBE_CLIENT_ID": "yt-client",
        "YOUTUBE_CLIENT_SECRET": "yt-secret",
        "YOUTUBE_REDIRECT_URI": "http://localhost:8000/api/v1/oauth/youtube/callback",
        "TWITCH_CLIENT_ID": "tw-client",
        "TWITCH_CLIENT_SECRET": "tw-secret",
        "TWITCH_REDIRECT_URI": "http://localhost:8000/api/v1/oauth/twitch/callback",
        "APP_BASE_URL": "https://app.example.com",
        "OAUTH_REDIRECT_PATH": "/dashboard.html",
        "STREAM_RELAY_URL": "wss://relay.example.com",
        "TWITCH_INGEST_URL": "rtmp://live.twitch.tv/app/",
        "YOUTUBE_RETRY_BASE_SECONDS": "0",
        "YOUTUBE_TRANSITION_RETRY_BASE_SECONDS": "0",
        "YOUTUBE_POLL_INTERVAL_SECONDS": "0",
        "YOUTUBE_POLL_TIMEOUT_SECONDS": "0.05",
    }
)

from tests.fixtures.mongo_fixtures import *  # noqa: E402, F403
from tests.fixtures.store_fixtures import *  # noqa: E402, F403
from tests.fixtures.youtube_fixtures import *  # noqa: E402, F403
