"""Campaign Manager 360 (DFA Reporting API) client."""

import logging
from typing import AsyncIterator, Optional

import httpx

from audience_manager.api.auth import TokenProvider
from audience_manager.api.base import BaseApi
from audience_manager.config.defaults import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_SCOPE,
    DEFAULT_API_VERSION,
)
from audience_manager.models.remote import (
    Advertiser,
    FloodlightActivity,
    RemarketingList,
    RemarketingListShare,
    UserDefinedVariableConfiguration,
    UserProfile,
)

logger = logging.getLogger("audience_manager.api.cm360")


class CampaignManagerApi(BaseApi):
    """Endpoints used to manage remarketing lists of one advertiser."""

    def __init__(
        self,
        advertiser_id: str,
        token_provider: TokenProvider,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = DEFAULT_API_BASE_URL,
        api_scope: str = DEFAULT_API_SCOPE,
        api_version: str = DEFAULT_API_VERSION,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 60.0,
    ):
        super().__init__(
            api_scope,
            api_version,
            token_provider,
            client=client,
            base_url=base_url,
            max_retries=max_retries,
            retry_delay=retry_delay,
            timeout=timeout,
        )
        self._advertiser_id = str(advertiser_id)

    @property
    def advertiser_id(self) -> str:
        return self._advertiser_id

    async def get_user_profiles(self) -> list[UserProfile]:
        """List the user profiles of the authenticated user."""
        result = await self.execute_api_request("userprofiles")
        return [UserProfile.model_validate(item) for item in result.get("items", [])]

    async def get_user_defined_variable_configurations(
        self, profile_id: str
    ) -> list[UserDefinedVariableConfiguration]:
        """List the custom variables of the advertiser's floodlight configuration."""
        path = f"userprofiles/{profile_id}/floodlightConfigurations/{self._advertiser_id}"
        result = await self.execute_api_request(path)
        return [
            UserDefinedVariableConfiguration.model_validate(item)
            for item in result.get("userDefinedVariableConfigurations", [])
        ]

    async def get_floodlight_activities(self, profile_id: str) -> list[FloodlightActivity]:
        """List the floodlight activities of the advertiser."""
        path = (
            f"userprofiles/{profile_id}/floodlightActivities"
            f"?advertiserId={self._advertiser_id}"
        )
        result = await self.execute_api_request(path)
        return [
            FloodlightActivity.model_validate(item)
            for item in result.get("floodlightActivities", [])
        ]

    async def iter_advertisers(
        self,
        profile_id: str,
        advertisers_filter: Optional[list[str]] = None,
        max_results_per_page: int = 100,
        max_pages: int = -1,
    ) -> AsyncIterator[list[Advertiser]]:
        """Fetch advertisers of the network page by page.

        Args:
            profile_id: User profile ID.
            advertisers_filter: Restrict to these advertiser IDs.
            max_results_per_page: Page size.
            max_pages: Maximum number of pages, -1 for all.

        Yields:
            The advertisers of each page.
        """
        params = {
            "sortField": "NAME",
            "maxResults": max_results_per_page,
            "ids": list(advertisers_filter or []),
        }
        path = f"userprofiles/{profile_id}/advertisers"
        path += self.object_to_url_query(path, params)

        async for page in self.execute_paged_api_request(path, max_pages=max_pages):
            yield [Advertiser.model_validate(item) for item in page.get("advertisers", [])]

    async def get_remarketing_lists(self, profile_id: str) -> list[RemarketingList]:
        """List the remarketing lists of the advertiser."""
        path = (
            f"userprofiles/{profile_id}/remarketingLists"
            f"?advertiserId={self._advertiser_id}"
        )
        result = await self.execute_api_request(path)
        return [
            RemarketingList.model_validate(item)
            for item in result.get("remarketingLists", [])
        ]

    async def create_remarketing_list(
        self, profile_id: str, remarketing_list: RemarketingList
    ) -> RemarketingList:
        """Create a remarketing list.

        Not retried: a retry after a lost response would create a duplicate.
        """
        result = await self.execute_api_request(
            f"userprofiles/{profile_id}/remarketingLists",
            method="POST",
            payload=remarketing_list.to_payload(),
            retry_on_failure=False,
        )
        return RemarketingList.model_validate(result)

    async def update_remarketing_list(
        self, profile_id: str, remarketing_list: RemarketingList
    ) -> RemarketingList:
        """Replace a remarketing list."""
        result = await self.execute_api_request(
            f"userprofiles/{profile_id}/remarketingLists",
            method="PUT",
            payload=remarketing_list.to_payload(),
        )
        return RemarketingList.model_validate(result)

    async def get_remarketing_list_shares_resource(
        self, profile_id: str, remarketing_list_id: str
    ) -> RemarketingListShare:
        """Fetch the sharing settings of a remarketing list."""
        result = await self.execute_api_request(
            f"userprofiles/{profile_id}/remarketingListShares/{remarketing_list_id}"
        )
        return RemarketingListShare.model_validate(result)

    async def get_remarketing_list_shares(
        self, profile_id: str, remarketing_list_id: str
    ) -> list[str]:
        """Fetch the advertiser IDs a remarketing list is shared with."""
        resource = await self.get_remarketing_list_shares_resource(
            profile_id, remarketing_list_id
        )
        return resource.shared_advertiser_ids

    async def update_remarketing_list_shares(
        self,
        profile_id: str,
        remarketing_list_id: str,
        resource: RemarketingListShare,
    ) -> None:
        """Patch the sharing settings of a remarketing list."""
        await self.execute_api_request(
            f"userprofiles/{profile_id}/remarketingListShares?id={remarketing_list_id}",
            method="PATCH",
            payload=resource.to_payload(),
        )
