from __future__ import annotations

import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from gitstore.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.github.com"


def expand_env_vars(config_str: str) -> str:
    """
    Expand environment variables in the format ${VAR_NAME} within a YAML string.
    Skips expansion in YAML comments (lines starting with #).

    Args:
        config_str: YAML configuration string potentially containing ${VAR_NAME} placeholders

    Returns:
        YAML string with all ${VAR_NAME} placeholders expanded to environment variable values

    Raises:
        KeyError: If a referenced environment variable is not set
    """
    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        try:
            return os.environ[var_name]
        except KeyError:
            msg = f"Environment variable '{var_name}' referenced in config.yaml but not set"
            raise KeyError(msg) from None

    lines = []
    for line in config_str.split("\n"):
        stripped = line.lstrip()
        if stripped.startswith("#"):
            lines.append(line)
        else:
            lines.append(re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}", replace_var, line))

    return "\n".join(lines)


def load_config_from_yaml(config_path: str | None = None) -> dict:
    """
    Load YAML configuration file and expand environment variables.

    Args:
        config_path: Path to config.yaml file. If None, uses CONFIG_PATH environment variable.
                     Defaults to /app/config.yaml if neither is set.

    Returns:
        Dictionary containing parsed configuration

    Raises:
        FileNotFoundError: If config file is not found
        ValueError: If YAML is invalid or a referenced environment variable is not set
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "/app/config.yaml")

    config_file = Path(config_path)
    if not config_file.exists():
        msg = (
            f"Configuration file not found at {config_path}\n"
            f"Use CONFIG_PATH environment variable to override location."
        )
        raise FileNotFoundError(msg)

    with open(config_file) as f:
        config_str = f.read()

    try:
        expanded_config = expand_env_vars(config_str)
    except KeyError as e:
        msg = f"Error expanding environment variables in config.yaml: {e}"
        raise ValueError(msg) from None

    try:
        config_dict = yaml.safe_load(expanded_config)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in config.yaml: {e}"
        raise ValueError(msg) from None

    # An empty file is allowed; everything may come from the environment
    if config_dict is None:
        return {}

    if not isinstance(config_dict, dict):
        msg = "config.yaml must contain a YAML mapping/dictionary at root level"
        raise ValueError(msg)

    return config_dict


class UpstreamConfig(BaseModel):
    """Immutable coordinates and limits for talking to the content store."""

    api_base_url: str = DEFAULT_API_BASE_URL
    token: str = Field(..., repr=False)
    owner: str
    repo: str
    branch: str = "main"
    timeout_seconds: float = 15.0
    max_concurrent_requests: int = 8

    model_config = ConfigDict(frozen=True)

    @property
    def repo_path(self) -> str:
        """API path prefix of the target repository."""
        return f"/repos/{self.owner}/{self.repo}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
    )

    # Content store coordinates (GITHUB_TOKEN / GITHUB_OWNER / GITHUB_REPO also work)
    github_token: str = Field(..., repr=False)
    github_owner: str
    github_repo: str
    github_branch: str = "main"
    github_api_base_url: str = DEFAULT_API_BASE_URL

    # Upstream limits
    upstream_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout for a single content store request",
    )
    max_concurrent_requests: int = Field(
        default=8,
        ge=1,
        description="Maximum simultaneous content store requests",
    )

    # Details aggregation deadline
    details_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Deadline for a whole details aggregation",
    )

    # CORS
    cors_enabled: bool = True
    cors_allowed_origins: list[str] = Field(default=["*"])

    # Observability
    log_level: str = "INFO"
    log_json: bool = True

    def upstream_config(self) -> UpstreamConfig:
        """Build the immutable upstream configuration handed to the client."""
        return UpstreamConfig(
            api_base_url=self.github_api_base_url.rstrip("/"),
            token=self.github_token,
            owner=self.github_owner,
            repo=self.github_repo,
            branch=self.github_branch,
            timeout_seconds=self.upstream_timeout_seconds,
            max_concurrent_requests=self.max_concurrent_requests,
        )


def _section(config_dict: dict, name: str) -> dict[str, Any]:
    value = config_dict.get(name)
    return value if isinstance(value, dict) else {}


def flatten_config(config_dict: dict) -> dict[str, Any]:
    """
    Flatten the nested config.yaml structure into Settings field names.

    Keys missing from the file are left out so environment variables can
    still supply them.
    """
    mapping = {
        ("github", "token"): "github_token",
        ("github", "owner"): "github_owner",
        ("github", "repo"): "github_repo",
        ("github", "branch"): "github_branch",
        ("github", "api_base_url"): "github_api_base_url",
        ("upstream", "timeout_seconds"): "upstream_timeout_seconds",
        ("upstream", "max_concurrent_requests"): "max_concurrent_requests",
        ("details", "timeout_seconds"): "details_timeout_seconds",
        ("logging", "level"): "log_level",
        ("logging", "json"): "log_json",
        ("cors", "enabled"): "cors_enabled",
        ("cors", "allowed_origins"): "cors_allowed_origins",
    }

    flat_config: dict[str, Any] = {}
    for (section, key), field_name in mapping.items():
        value = _section(config_dict, section).get(key)
        if value is not None:
            flat_config[field_name] = value

    return flat_config


def build_settings_from_yaml(config_path: str | None = None) -> Settings:
    """
    Load settings from YAML config file with environment variable expansion.

    Raises:
        ConfigurationError: If the file is missing, unparseable, or fails validation
    """
    source = config_path or os.environ.get("CONFIG_PATH", "/app/config.yaml")
    try:
        config_dict = load_config_from_yaml(config_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        raise ConfigurationError(str(e), context={"config_file": source}) from e

    try:
        return Settings(**flatten_config(config_dict))
    except ValidationError as e:
        logger.error(f"Configuration validation error: {e}")
        raise ConfigurationError(
            "Invalid configuration",
            context={"config_file": source, "errors": e.error_count()},
        ) from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings, loading them on first use."""
    return build_settings_from_yaml()
