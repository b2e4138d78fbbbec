"""
Configuration for the chat demo.

Defaults live on the Settings model; every field can be overridden through a
PLAYGROUND_* environment variable via Settings.from_env().
"""

import os
from typing import Mapping, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

from cryptolab.session_key import PROTOCOL_SALT


ENV_PREFIX = "PLAYGROUND_"
DEFAULT_ROSTER = ("Bob", "Alice", "Eve", "Julia")
DECRYPTION_ERROR_TEXT = "Decryption Error"


class Settings(BaseModel):
    """Runtime settings shared by the kernel, the server and the terminal client"""
    model_config = ConfigDict(frozen=True)

    protocol_salt: bytes = PROTOCOL_SALT
    curve: str = "secp521r1"
    demo_roster: Tuple[str, ...] = DEFAULT_ROSTER
    decryption_error_text: str = DECRYPTION_ERROR_TEXT
    wire_log_size: int = Field(default=100, ge=0)
    host: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, lt=65536)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Settings with overrides applied
        """
        if environ is None:
            environ = os.environ

        overrides = {}
        if f"{ENV_PREFIX}SALT" in environ:
            overrides["protocol_salt"] = environ[f"{ENV_PREFIX}SALT"].encode("utf-8")
        if f"{ENV_PREFIX}ROSTER" in environ:
            roster = [name.strip() for name in environ[f"{ENV_PREFIX}ROSTER"].split(",")]
            overrides["demo_roster"] = tuple(name for name in roster if name)
        for field in ("curve", "decryption_error_text", "wire_log_size", "host", "port", "log_level"):
            key = ENV_PREFIX + field.upper()
            if key in environ:
                overrides[field] = environ[key]

        return cls(**overrides)
