"""Pydantic-based configuration helpers for the interaction router."""

from __future__ import annotations

import binascii
import os
from functools import lru_cache
from typing import Iterable, List

from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_API_BASE_URL = "https://discord.com/api/v10"


class AppSettings(BaseModel):
    """Settings required to verify interactions and call back into the platform."""

    public_key: str = Field(..., alias="DISCORD_PUBLIC_KEY")
    bot_token: str = Field(..., alias="DISCORD_BOT_TOKEN")
    database_url: str = Field("sqlite:///interactions.db", alias="DATABASE_URL")
    api_base_url: str = Field(DEFAULT_API_BASE_URL, alias="DISCORD_API_BASE_URL")
    interactions_path: str = Field("/interactions", alias="INTERACTIONS_PATH")
    kv_namespaces: List[str] = Field(default_factory=list, alias="KV_NAMESPACES")
    durable_objects: List[str] = Field(default_factory=list, alias="DURABLE_OBJECTS")
    rest_timeout_seconds: float = Field(10.0, alias="REST_TIMEOUT_SECONDS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("public_key")
    @classmethod
    def _validate_public_key(cls, value: str) -> str:
        key = value.strip()
        if len(key) != 64:
            raise ValueError("Public key must be 32 bytes encoded as 64 hex characters")
        try:
            binascii.unhexlify(key)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Public key must be hex encoded") from exc
        return key

    @field_validator("kv_namespaces", "durable_objects", mode="before")
    @classmethod
    def _split_bindings(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, list):
            return [item.strip() for item in value if item.strip()]
        return [item.strip() for item in value.split(",") if item.strip()]

    @field_validator("interactions_path")
    @classmethod
    def _ensure_leading_slash(cls, value: str) -> str:
        path = value.strip() or "/"
        return path if path.startswith("/") else f"/{path}"

    @field_validator("rest_timeout_seconds")
    @classmethod
    def _ensure_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("REST timeout must be greater than zero")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


def _format_missing(fields: Iterable[str]) -> str:
    """Return a human-friendly comma-separated list of missing env vars."""

    unique: List[str] = []
    for field in fields:
        if field not in unique:
            unique.append(field)
    return ", ".join(unique)


@lru_cache()
def get_settings() -> AppSettings:
    """Fetch and cache settings from environment variables."""

    try:
        return AppSettings.model_validate(os.environ)
    except ValidationError as exc:
        missing = [str(error["loc"][0]) for error in exc.errors() if error["type"] == "missing"]
        if not missing:
            raise RuntimeError(f"Invalid configuration: {exc}") from exc
        message = (
            "Missing required environment variables: "
            f"{_format_missing(missing)}"
        )
        raise RuntimeError(message) from exc
