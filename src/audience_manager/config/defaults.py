"""Default configuration values for the audience manager."""

from pathlib import Path

# Default configuration file name
DEFAULT_CONFIG_FILENAME = "audience-manager.config.json"

# Search paths for configuration file (in order of priority)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / DEFAULT_CONFIG_FILENAME,
    Path.home() / ".config" / "audience-manager" / "config.json",
]

# Environment variables
ENV_ACCESS_TOKEN = "CM360_ACCESS_TOKEN"
ENV_NETWORK_ID = "CM360_NETWORK_ID"
ENV_ADVERTISER_ID = "CM360_ADVERTISER_ID"

# DFA Reporting API
DEFAULT_API_BASE_URL = "https://www.googleapis.com/"
DEFAULT_API_SCOPE = "dfareporting"
DEFAULT_API_VERSION = "v4"

# Concurrent job invocations. The remote platform caps simultaneous
# executions at 30 per user, leave room for the operator's own activity.
DEFAULT_MAX_CONCURRENCY = 10
MAX_CONCURRENCY_CEILING = 30

# Life span assigned to fetched lists that carry none
DEFAULT_LIFE_SPAN = 90

# Term type of every generated population term
DEFAULT_TERM_TYPE = "CUSTOM_VARIABLE_TERM"

# Source of lists created by this tool
DEFAULT_LIST_SOURCE = "REMARKETING_LIST_SOURCE_DFA"
