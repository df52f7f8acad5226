"""Bearer token providers for the remote API."""

import logging
import os
from typing import Protocol, runtime_checkable

from audience_manager.config.defaults import ENV_ACCESS_TOKEN
from audience_manager.exceptions import ConfigError

logger = logging.getLogger("audience_manager.api.auth")


@runtime_checkable
class TokenProvider(Protocol):
    """Supplies OAuth2 access tokens."""

    def get_token(self, refresh: bool = False) -> str:
        """Return an access token.

        Args:
            refresh: Whether a fresh token is requested (e.g. after a 401).

        Returns:
            The bearer token.
        """
        ...


class StaticTokenProvider:
    """Provider for a token handed over by the caller."""

    def __init__(self, token: str):
        if not token:
            raise ConfigError("Access token must not be empty")
        self._token = token

    def get_token(self, refresh: bool = False) -> str:
        return self._token


class EnvTokenProvider:
    """Provider reading the token from an environment variable.

    The variable is read again on every refresh, so an external process can
    rotate it while a batch is running.
    """

    def __init__(self, variable: str = ENV_ACCESS_TOKEN):
        self._variable = variable
        self._token = ""

    def get_token(self, refresh: bool = False) -> str:
        if refresh or not self._token:
            token = os.environ.get(self._variable, "")
            if not token:
                raise ConfigError(
                    f"No access token found. Set {self._variable} or pass --token."
                )
            if refresh:
                logger.debug(f"Reloaded access token from {self._variable}")
            self._token = token
        return self._token
