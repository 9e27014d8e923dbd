import re
from typing import Literal
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Booking evaluation
    NO_POLICY_FALLBACK: Literal["unrestricted", "blocked"] = "unrestricted"
    DEFAULT_SHIFT_END: str = ""  # HH:MM, empty = no shift end check
    TIMEZONE: str = "America/Sao_Paulo"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @field_validator("DEFAULT_SHIFT_END")
    @classmethod
    def check_shift_end(cls, v: str) -> str:
        if v and not re.match(r"^([01]\d|2[0-3]):[0-5]\d$", v):
            raise ValueError("DEFAULT_SHIFT_END must be HH:MM or empty")
        return v


settings = Settings()
