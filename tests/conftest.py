"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from audience_manager.config.models import AudienceManagerConfig
from audience_manager.models.audience import Audience, AudienceRule
from audience_manager.sheets.memory import InMemoryWorkbook


@pytest.fixture
def config() -> AudienceManagerConfig:
    """Default configuration bound to a test account."""
    return AudienceManagerConfig.model_validate(
        {"account": {"network_id": "1000", "advertiser_id": "2000"}}
    )


@pytest.fixture
def workbook() -> InMemoryWorkbook:
    """An empty in-memory workbook."""
    return InMemoryWorkbook()


@pytest.fixture
def sample_audience() -> Audience:
    """An audience with two rule groups and one share."""
    return Audience(
        id="42",
        name="Buyers",
        description="People who bought",
        life_span=30,
        floodlight_id="555",
        rules=[
            AudienceRule(group=0, variable_name="U1", operator="STRING_EQUALS", value="a,b"),
            AudienceRule(
                group=1,
                variable_name="U2",
                variable_friendly_name="Category",
                operator="STRING_CONTAINS",
                value="shoes",
                negation=True,
            ),
        ],
        shares=["3000"],
    )


@pytest.fixture
def campaign_manager() -> AsyncMock:
    """An account-bound CM360 facade with no data."""
    cm = AsyncMock()
    cm.advertiser_id = "2000"
    cm.get_remarketing_lists.return_value = []
    cm.get_user_defined_variable_configurations.return_value = []
    cm.get_floodlight_activities.return_value = []
    cm.get_remarketing_list_shares.return_value = []

    async def no_advertisers(max_results_per_page=100):
        return
        yield  # pragma: no cover

    cm.iter_advertisers = MagicMock(side_effect=no_advertisers)
    return cm
