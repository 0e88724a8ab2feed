"""Bridge server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from shared.validators import StringListEnvSettingsSource, parse_origin_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class BridgeServerSettings(BaseSettings):
    model_config = {"env_prefix": "BRIDGE_"}

    host: str = Field(default="127.0.0.1", min_length=1)
    port: int = Field(default=5174, ge=1, le=65535)
    # Overlay tools run in arbitrary origins and the data is not sensitive.
    cors_origins: list[str] = ["*"]
    log_dir: str | None = None
    static_dir: str = "static"
    # Serve the bundled demo run until a browser has pushed real data.
    fallback_data: bool = True
    max_body_bytes: int = Field(default=5 * 1024 * 1024, ge=1024)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_origin_list(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
