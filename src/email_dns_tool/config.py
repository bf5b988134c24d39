"""Configuration management for email-dns-tool."""

import logging
from pathlib import Path
from typing import Any, Literal

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

import tomli_w
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_DNS_TIMEOUT,
    DEFAULT_DOH_ENDPOINT,
    DEFAULT_SPF_TIMEOUT,
    SPF_MAX_DEPTH,
)

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = "email-dns-tool"
CONFIG_FILE_NAME = ".email-dns-tool.toml"


class OutputConfig(BaseModel):
    """Output configuration."""

    color: bool = Field(default=True, description="Enable colored output")
    verbosity: str = Field(
        default="normal",
        description="Verbosity level: quiet, normal, verbose, debug",
    )
    format: Literal["cli", "json", "jsonlines"] = Field(
        default="cli", description="Output format: cli, json, jsonlines"
    )


class ResolverConfig(BaseModel):
    """DNS resolution and SPF expansion settings."""

    transport: Literal["doh", "dns"] = Field(
        default="doh",
        description="DNS transport: doh (DNS-over-HTTPS JSON API) or dns (classic resolver)",
    )
    doh_endpoint: str = Field(
        default=DEFAULT_DOH_ENDPOINT, description="DNS-over-HTTPS JSON endpoint"
    )
    nameservers: list[str] | None = Field(
        default=None,
        description="Nameservers for the dns transport (None = system resolvers)",
    )
    timeout: float = Field(
        default=DEFAULT_DNS_TIMEOUT, gt=0, description="Timeout of a single DNS query in seconds"
    )
    spf_timeout: float = Field(
        default=DEFAULT_SPF_TIMEOUT,
        gt=0,
        description="Time budget for expanding a whole SPF include tree in seconds",
    )
    spf_max_depth: int = Field(
        default=SPF_MAX_DEPTH, ge=0, description="Maximum SPF include nesting depth"
    )
    dkim_selector: str | None = Field(
        default=None, description="DKIM selector checked when none is given on the command line"
    )


class Config(BaseSettings):
    """
    Main configuration for email-dns-tool.

    Values passed in (merged from TOML files) win; environment variables
    such as ``EMAIL_DNS_TOOL_RESOLVER__TIMEOUT=8`` fill in anything the
    files leave unset.
    """

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_DNS_TOOL_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    output: OutputConfig = Field(default_factory=OutputConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)

    def to_toml(self) -> str:
        """
        Export configuration to TOML string.

        ``None`` values are left out, TOML has no null.
        """
        return tomli_w.dumps(self.model_dump(mode="json", exclude_none=True))

    def to_toml_file(self, path: Path) -> None:
        """
        Export configuration to TOML file.

        Args:
            path: Path to save the TOML file
        """
        with open(path, "wb") as f:
            tomli_w.dump(self.model_dump(mode="json", exclude_none=True), f)
        logger.info(f"Exported config to: {path}")

    @classmethod
    def from_toml_file(cls, path: Path) -> "Config":
        """
        Import configuration from TOML file.

        Args:
            path: Path to the TOML file

        Returns:
            Config object
        """
        with open(path, "rb") as f:
            config_data = tomllib.load(f)
        logger.info(f"Imported config from: {path}")
        return cls(**config_data)


def get_config_paths() -> list[Path]:
    """
    Get existing configuration file paths in order of precedence (lowest to highest).

    Returns:
        List of config file paths
    """
    candidates = [
        # System-wide config
        Path("/etc") / CONFIG_DIR_NAME / "config.toml",
        # User config in ~/.config
        Path.home() / ".config" / CONFIG_DIR_NAME / "config.toml",
        # User config in home directory
        Path.home() / CONFIG_FILE_NAME,
        # Current directory config
        Path.cwd() / CONFIG_FILE_NAME,
    ]
    return [path for path in candidates if path.exists()]


def load_config(extra_paths: list[Path] | None = None) -> Config:
    """
    Load configuration from files.

    Configuration is loaded in this order (later files override earlier):
    1. System-wide config (/etc/email-dns-tool/config.toml)
    2. User config (~/.config/email-dns-tool/config.toml)
    3. User home config (~/.email-dns-tool.toml)
    4. Current directory config (.email-dns-tool.toml)
    5. ``extra_paths`` (e.g. the --config option), in order

    Files that cannot be read are logged and skipped.

    Args:
        extra_paths: Additional config files with the highest precedence

    Returns:
        Merged configuration

    Raises:
        pydantic.ValidationError: If the merged values are invalid
    """
    config_data: dict[str, Any] = {}

    for config_path in get_config_paths() + list(extra_paths or []):
        try:
            with open(config_path, "rb") as f:
                file_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            continue
        config_data = _merge_configs(config_data, file_data)
        logger.debug(f"Loaded config from {config_path}")

    return Config(**config_data)


def _merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    Args:
        base: Base configuration
        override: Configuration to override base with

    Returns:
        Merged configuration
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_configs(result[key], value)
        else:
            result[key] = value

    return result
