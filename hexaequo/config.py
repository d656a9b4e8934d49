from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Default material per colour
    tiles_per_player: int = 9
    discs_per_player: int = 6
    rings_per_player: int = 3

    # Ex Aequo after this many occurrences of one position
    repetition_limit: int = 3

    model_config = SettingsConfigDict(
        env_prefix="HEXAEQUO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
