"""Environment-driven settings for kvprobe.

Values come from the process environment (and a local ``.env`` file when
present). Command-line flags always take precedence over these defaults; the
resolver in :mod:`kvprobe.cli` only falls back to them when a flag is absent.
"""
from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

load_dotenv()

DEFAULT_ALGORITHM = "RS256"

# Fixed probe payload; only its SHA-256 digest is ever sent to the vault.
TEST_MESSAGE = b"Test message for Azure Key Vault signing and verification"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    vault_url: str = ""
    key_name: str = ""
    algorithm: str = DEFAULT_ALGORITHM
    log_level: str = "WARNING"
    interactive_login: bool = True

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v}")
        return level


def load_settings() -> Settings:
    return Settings(
        vault_url=os.getenv("KVPROBE_VAULT_URL", os.getenv("AZURE_KEYVAULT_URL", "")),
        key_name=os.getenv("KVPROBE_KEY_NAME", ""),
        algorithm=os.getenv("KVPROBE_ALGORITHM", DEFAULT_ALGORITHM),
        log_level=os.getenv("KVPROBE_LOG_LEVEL", "WARNING"),
        interactive_login=_env_flag("KVPROBE_INTERACTIVE_LOGIN", "true"),
    )
