"""Campaign Manager 360 API access."""

from audience_manager.api.auth import EnvTokenProvider, StaticTokenProvider, TokenProvider
from audience_manager.api.base import BaseApi
from audience_manager.api.cm360 import CampaignManagerApi
from audience_manager.api.facade import CampaignManagerFacade
from audience_manager.api.protocol import CampaignManager

__all__ = [
    "BaseApi",
    "CampaignManager",
    "CampaignManagerApi",
    "CampaignManagerFacade",
    "EnvTokenProvider",
    "StaticTokenProvider",
    "TokenProvider",
]
