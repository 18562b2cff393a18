"""
Client configuration – built once per run and handed to the pipeline.

Reads DEEPSEEK_API_KEY / DEEPSEEK_BASE_URL / DEEPSEEK_MODEL from the
environment (after loading a local .env file).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

PLACEHOLDER_KEY = "sk-YOUR_API_KEY_HERE"
DEFAULT_BASE_URL = "https://api.deepseek.com/v1"
DEFAULT_MODEL = "deepseek-chat"


class ClientConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(1000, ge=1)
    max_attempts: int = Field(10, ge=1)
    initial_delay: float = Field(1.0, ge=0.0)
    timeout: float = 120.0

    @property
    def has_credential(self) -> bool:
        key = self.api_key.strip()
        return bool(key) and key != PLACEHOLDER_KEY

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        load_dotenv()
        values = dict(
            api_key=os.getenv("DEEPSEEK_API_KEY", ""),
            base_url=os.getenv("DEEPSEEK_BASE_URL", DEFAULT_BASE_URL),
            model=os.getenv("DEEPSEEK_MODEL", DEFAULT_MODEL),
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
