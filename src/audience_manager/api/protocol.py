"""Interface the controllers use to reach Campaign Manager 360."""

from typing import AsyncIterator, Protocol, runtime_checkable

from audience_manager.models.remote import (
    Advertiser,
    FloodlightActivity,
    RemarketingList,
    RemarketingListShare,
    UserDefinedVariableConfiguration,
)


@runtime_checkable
class CampaignManager(Protocol):
    """Account-bound access to remarketing lists and reference data.

    Implementations resolve the user profile themselves; callers never pass
    profile IDs.
    """

    @property
    def advertiser_id(self) -> str:
        """The advertiser the lists belong to."""
        ...

    async def get_user_defined_variable_configurations(
        self,
    ) -> list[UserDefinedVariableConfiguration]:
        ...

    async def get_floodlight_activities(self) -> list[FloodlightActivity]:
        ...

    def iter_advertisers(
        self, max_results_per_page: int = 100
    ) -> AsyncIterator[list[Advertiser]]:
        ...

    async def get_remarketing_lists(self) -> list[RemarketingList]:
        ...

    async def create_remarketing_list(
        self, remarketing_list: RemarketingList
    ) -> RemarketingList:
        ...

    async def update_remarketing_list(
        self, remarketing_list: RemarketingList
    ) -> RemarketingList:
        ...

    async def get_remarketing_list_shares_resource(
        self, remarketing_list_id: str
    ) -> RemarketingListShare:
        ...

    async def get_remarketing_list_shares(self, remarketing_list_id: str) -> list[str]:
        ...

    async def update_remarketing_list_shares(
        self, remarketing_list_id: str, resource: RemarketingListShare
    ) -> None:
        ...
