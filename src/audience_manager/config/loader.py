"""Configuration loading and merging logic."""

import json
import os
from pathlib import Path
from typing import Any, Optional

from audience_manager.config.defaults import (
    CONFIG_SEARCH_PATHS,
    ENV_ADVERTISER_ID,
    ENV_NETWORK_ID,
)
from audience_manager.config.models import AudienceManagerConfig


def find_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file.

    Args:
        explicit_path: Explicitly specified config file path (from CLI).

    Returns:
        Path to config file if found, None otherwise.
    """
    if explicit_path is not None:
        if explicit_path.exists():
            return explicit_path
        raise FileNotFoundError(f"Config file not found: {explicit_path}")

    # Search default locations
    for search_path in CONFIG_SEARCH_PATHS:
        if search_path.exists():
            return search_path

    return None


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file.

    Args:
        path: Path to the configuration file.

    Returns:
        Parsed configuration dictionary.
    """
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def merge_cli_overrides(
    config: AudienceManagerConfig,
    network_id: Optional[str] = None,
    advertiser_id: Optional[str] = None,
    concurrency: Optional[int] = None,
    retry_attempts: Optional[int] = None,
) -> AudienceManagerConfig:
    """Merge CLI overrides into the configuration.

    CLI arguments take precedence over config file values.

    Args:
        config: Base configuration from file.
        network_id: CM360 network (account) ID.
        advertiser_id: CM360 advertiser ID.
        concurrency: Max concurrent job invocations.
        retry_attempts: Max retries of transient API failures.

    Returns:
        Configuration with CLI overrides applied.
    """
    data = config.model_dump()

    if network_id is not None:
        data["account"]["network_id"] = network_id
    if advertiser_id is not None:
        data["account"]["advertiser_id"] = advertiser_id
    if concurrency is not None:
        data["runner"]["max_concurrency"] = concurrency
    if retry_attempts is not None:
        data["api"]["retry_attempts"] = retry_attempts

    return AudienceManagerConfig.model_validate(data)


def load_config(
    config_path: Optional[Path] = None,
    **cli_overrides: Any,
) -> AudienceManagerConfig:
    """Load configuration with CLI overrides.

    Configuration is loaded from the following sources (in order of priority):
    1. CLI arguments (highest priority)
    2. Environment variables
    3. Config file (if found)
    4. Default values (lowest priority)

    Args:
        config_path: Explicit config file path (from --config CLI option).
        **cli_overrides: CLI argument overrides.

    Returns:
        Merged configuration object.
    """
    config = AudienceManagerConfig()

    found_config = find_config_file(config_path)
    if found_config is not None:
        file_data = load_config_file(found_config)
        config = AudienceManagerConfig.model_validate(file_data)

    if network_id := os.environ.get(ENV_NETWORK_ID):
        if cli_overrides.get("network_id") is None:
            cli_overrides["network_id"] = network_id

    if advertiser_id := os.environ.get(ENV_ADVERTISER_ID):
        if cli_overrides.get("advertiser_id") is None:
            cli_overrides["advertiser_id"] = advertiser_id

    return merge_cli_overrides(config, **cli_overrides)
