"""Configuration management for Lather."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings."""

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: Literal["default", "console"] = Field(default="default", description="Log output profile")

    # SOAP Client Configuration
    strict: bool = Field(default=True, description="Parse SOAP responses strictly against the WSDL")
    xml_huge_tree: bool = Field(default=False, description="Allow very large XML documents")
    wsdl_cache: bool = Field(default=False, description="Cache fetched WSDL documents on disk")
    wsdl_cache_path: Optional[Path] = Field(None, description="SQLite file used for the WSDL cache")

    model_config = SettingsConfigDict(
        env_prefix="LATHER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_settings() -> Settings:
    """Get settings loaded from the environment and an optional .env file."""
    return Settings()
