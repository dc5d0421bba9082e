# imarchive/src/imarchive/core/config.py

from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

KEYRING_SERVICE = "imarchive"


class Settings(BaseSettings):
    # Storage locations
    archive_root: Path = Field(default=Path("ImageArchives"))
    output_root: Path = Field(default=Path("DataOutput"))
    catalog_path: Path = Field(default=Path("data.db"))
    database_url: Optional[str] = Field(default=None)

    # AI labeling ("none" disables the labeler)
    multimodal_provider: str = Field(default="none")
    ollama_url: str = Field(default="http://localhost:11434")
    vision_model_name: str = Field(default="llama3.2-vision")
    openai_vision_model: str = Field(default="gpt-4o-mini")
    openai_api_key: Optional[str] = Field(default=None)
    label_prompt: str = Field(
        default="Give a short label (a few words) for the main subject of this image. Reply with the label only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="IMARCHIVE_",
        extra="ignore",
    )

    def build_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.catalog_path}"

    def get_secure_value(self, key: str, default=None):
        attr_name = key.lower()
        try:
            secure = keyring.get_password(KEYRING_SERVICE, key)
            return secure or getattr(self, attr_name, default)
        except KeyringError:
            return getattr(self, attr_name, default)


def get_settings() -> Settings:
    """Read settings from the environment and the optional .env file."""
    return Settings()
