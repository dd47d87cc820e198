"""Game server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class GameServerSettings(BaseSettings):
    model_config = {"env_prefix": "TICTACTOE_", "populate_by_name": True}

    host: str = Field(default="0.0.0.0", min_length=1)  # noqa: S104
    # Bare PORT is honoured too, as most hosting platforms set it.
    port: int = Field(default=3000, ge=1, le=65535, validation_alias=AliasChoices("TICTACTOE_PORT", "PORT"))
    static_dir: str = Field(default="public", min_length=1)
    cors_origins: list[str] = []
    log_dir: str | None = None
    max_message_size: int = Field(default=4096, ge=64)
    outbox_size: int = Field(default=256, ge=1)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

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
