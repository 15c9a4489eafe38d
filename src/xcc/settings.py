"""Environment-based configuration using pydantic-settings.

Every value can be set through an ``XCC_``-prefixed environment variable or an
optional ``.env`` file in the working directory.
"""

from __future__ import annotations

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="XCC_", case_sensitive=False, extra="ignore"
    )

    # Logging
    log_level: str = Field(default="WARNING", description="Application log level")
    log_format: str = Field(default="text", description="Log format: json or text")

    # Plugins
    plugin_paths: List[str] = Field(
        default_factory=list, description="Extra plugin directories, loaded after the built-in plugin"
    )
    discover_plugins: bool = Field(
        default=True, description="Load xcc plugins installed in the global site-packages"
    )
    plugin_prefix: str = Field(default="xcc_plugin_", description="Directory prefix of installed plugins")

    # Watch / process supervision
    debounce_ms: int = Field(default=500, description="Quiet period before a change triggers a re-run")
    restart_delay_ms: int = Field(default=5, description="Delay between a child exit and its restart")
    node_binary: str = Field(default="node", description="Interpreter used by node-watch")
    default_script: str = Field(default="index.js", description="Script run by node-watch without --file")
    project_marker: str = Field(default="package.json", description="File marking a project root")
    watch_debug: bool = Field(default=False, description="Log every raw change notification")

    @field_validator("log_format")
    def validate_log_format(cls, v):
        if v.lower() not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v.lower()

    @field_validator("debounce_ms", "restart_delay_ms")
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("delays must not be negative")
        return v
