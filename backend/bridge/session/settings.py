"""Bridge client (emitter and sync) configuration via environment variables."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from bridge.session.emitter import DEFAULT_POLL_INTERVAL_MS
from bridge.session.sync import DEFAULT_SERVER_URL, DEFAULT_SYNC_INTERVAL_MS, DEFAULT_TIMEOUT_SECONDS

# Floor for timer intervals; anything faster just burns CPU re-reading storage.
MIN_INTERVAL_MS = 50


class BridgeClientSettings(BaseSettings):
    model_config = {"env_prefix": "BRIDGE_CLIENT_"}

    server_url: str = Field(default=DEFAULT_SERVER_URL, pattern=r"^https?://")
    poll_interval_ms: int = Field(default=DEFAULT_POLL_INTERVAL_MS, ge=MIN_INTERVAL_MS)
    sync_interval_ms: int = Field(default=DEFAULT_SYNC_INTERVAL_MS, ge=MIN_INTERVAL_MS)
    request_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    storage_file: Path | None = None
