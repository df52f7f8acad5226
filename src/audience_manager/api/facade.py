"""Account-bound facade over the Campaign Manager 360 client."""

import asyncio
import logging
from typing import AsyncIterator, Optional

from audience_manager.api.cm360 import CampaignManagerApi
from audience_manager.exceptions import ProfileNotFoundError
from audience_manager.models.remote import (
    Advertiser,
    FloodlightActivity,
    RemarketingList,
    RemarketingListShare,
    UserDefinedVariableConfiguration,
)

logger = logging.getLogger("audience_manager.api.facade")


class CampaignManagerFacade:
    """Binds the API client to one network and advertiser.

    The user profile of the network is resolved on first use and cached for
    the lifetime of the facade.
    """

    def __init__(
        self,
        api: CampaignManagerApi,
        network_id: str,
        advertiser_id: str,
        advertisers_filter: Optional[list[str]] = None,
    ):
        """Initialize the facade.

        Args:
            api: Low-level API client.
            network_id: CM360 network (account) ID.
            advertiser_id: CM360 advertiser ID owning the lists.
            advertisers_filter: Advertisers to restrict reference data to.
        """
        self._api = api
        self._network_id = str(network_id)
        self._advertiser_id = str(advertiser_id)
        self._advertisers_filter = list(advertisers_filter or [])
        self._profile_id: Optional[str] = None
        self._profile_lock = asyncio.Lock()

    @property
    def network_id(self) -> str:
        return self._network_id

    @property
    def advertiser_id(self) -> str:
        return self._advertiser_id

    async def get_user_profile_id(self) -> str:
        """Resolve the user profile bound to the network.

        Raises:
            ProfileNotFoundError: If the user has no profile in the network.
        """
        async with self._profile_lock:
            if self._profile_id is None:
                profiles = await self._api.get_user_profiles()
                for profile in profiles:
                    if profile.account_id == self._network_id:
                        self._profile_id = profile.profile_id
                        break
                else:
                    raise ProfileNotFoundError(
                        f"Could not find a user profile associated with the CM360 "
                        f"network {self._network_id}. Create one in the CM360 UI "
                        "before retrying this operation."
                    )
                logger.debug(
                    f"Using user profile {self._profile_id} for network {self._network_id}"
                )
        return self._profile_id

    async def get_user_defined_variable_configurations(
        self,
    ) -> list[UserDefinedVariableConfiguration]:
        profile_id = await self.get_user_profile_id()
        return await self._api.get_user_defined_variable_configurations(profile_id)

    async def get_floodlight_activities(self) -> list[FloodlightActivity]:
        profile_id = await self.get_user_profile_id()
        return await self._api.get_floodlight_activities(profile_id)

    async def iter_advertisers(
        self, max_results_per_page: int = 100
    ) -> AsyncIterator[list[Advertiser]]:
        profile_id = await self.get_user_profile_id()
        async for page in self._api.iter_advertisers(
            profile_id,
            self._advertisers_filter,
            max_results_per_page,
        ):
            yield page

    async def get_remarketing_lists(self) -> list[RemarketingList]:
        profile_id = await self.get_user_profile_id()
        return await self._api.get_remarketing_lists(profile_id)

    async def create_remarketing_list(
        self, remarketing_list: RemarketingList
    ) -> RemarketingList:
        """Create a list owned by the bound advertiser."""
        profile_id = await self.get_user_profile_id()
        extended = remarketing_list.model_copy(
            update={"advertiser_id": self._advertiser_id}
        )
        return await self._api.create_remarketing_list(profile_id, extended)

    async def update_remarketing_list(
        self, remarketing_list: RemarketingList
    ) -> RemarketingList:
        profile_id = await self.get_user_profile_id()
        return await self._api.update_remarketing_list(profile_id, remarketing_list)

    async def get_remarketing_list_shares_resource(
        self, remarketing_list_id: str
    ) -> RemarketingListShare:
        profile_id = await self.get_user_profile_id()
        return await self._api.get_remarketing_list_shares_resource(
            profile_id, remarketing_list_id
        )

    async def get_remarketing_list_shares(self, remarketing_list_id: str) -> list[str]:
        profile_id = await self.get_user_profile_id()
        return await self._api.get_remarketing_list_shares(profile_id, remarketing_list_id)

    async def update_remarketing_list_shares(
        self, remarketing_list_id: str, resource: RemarketingListShare
    ) -> None:
        profile_id = await self.get_user_profile_id()
        await self._api.update_remarketing_list_shares(
            profile_id, remarketing_list_id, resource
        )
