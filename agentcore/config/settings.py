from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import model_validator
from typing import Optional
import logging

from agentcore.exceptions import ConfigError


class AgentLoopSettings(BaseSettings):
    """Environment-driven defaults for the agent loop (AGENTCORE_* variables)"""

    # === Loop ===
    step_name: str = "AgentLoop"
    system_prompt: Optional[str] = None
    max_iterations: int = 10

    # === Compaction ===
    auto_compact: bool = False
    max_context_tokens: int = 100_000
    max_messages: Optional[int] = None
    preserve_recent_count: int = 5
    preserve_system_messages: bool = True
    compaction_focus_instructions: Optional[str] = None
    sliding_window_keep_first: int = 2
    sliding_window_keep_last: int = 5

    # === Checkpointing ===
    checkpoint_interval: int = 1

    # === Observability ===
    log_level: str = "INFO"
    log_format: str = "json"
    service_name: str = "agentcore"

    model_config = SettingsConfigDict(
        env_prefix="AGENTCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_settings(self) -> "AgentLoopSettings":
        """Validate ranges and normalize enumerated values"""

        if self.max_iterations < 0:
            raise ConfigError(f"max_iterations must be >= 0, got {self.max_iterations}")
        if self.checkpoint_interval < 1:
            raise ConfigError(f"checkpoint_interval must be >= 1, got {self.checkpoint_interval}")
        if self.max_context_tokens < 0:
            raise ConfigError(f"max_context_tokens must be >= 0, got {self.max_context_tokens}")
        if self.preserve_recent_count < 0:
            raise ConfigError(f"preserve_recent_count must be >= 0, got {self.preserve_recent_count}")

        if self.log_level.upper() not in logging._nameToLevel:
            raise ConfigError(f"Invalid log level: {self.log_level}")
        self.log_level = self.log_level.upper()

        normalized_format = self.log_format.strip().lower()
        if normalized_format not in {"json", "console"}:
            raise ConfigError(
                f"Invalid log_format value. Expected 'json' or 'console'. Got: {self.log_format}"
            )
        self.log_format = normalized_format

        return self
