from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal, Optional
import logging

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    # Listener
    HOST: str = "0.0.0.0"
    PORT: int = 5001
    # Reply to every parsed frame with an R12 heartbeat
    SEND_ACK: bool = True

    # Per-connection hardening
    CONNECTION_TIMEOUT: float = 120.0  # seconds of inactivity before close
    KEEPALIVE_INTERVAL: int = 30  # seconds idle before TCP keep-alive starts
    MAX_BUFFER_SIZE: int = 8192  # characters held without an end marker

    # Statistics log period, 0 disables
    STATS_LOG_INTERVAL: int = 60

    # Logging
    PROD: bool = False
    LOG_LEVEL: Optional[LogLevel] = None
    LOG_FORMAT: Literal["json", "console"] = "json"
    LOG_FILE: Optional[str] = None

    @field_validator("SEND_ACK", mode="before")
    @classmethod
    def _send_ack_flag(cls, value):
        # Only "true" (any case) enables acks; any other string disables them
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return value

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper() or None
        return value

    def get_log_level(self) -> int:
        """Explicit LOG_LEVEL wins, otherwise INFO in production and DEBUG elsewhere"""
        if self.LOG_LEVEL:
            return getattr(logging, self.LOG_LEVEL)
        return logging.INFO if self.PROD else logging.DEBUG


settings = Settings()
