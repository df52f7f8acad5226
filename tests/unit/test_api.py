"""Tests for the CM360 API client, token providers and facade."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from audience_manager.api import (
    BaseApi,
    CampaignManagerApi,
    CampaignManagerFacade,
    EnvTokenProvider,
    StaticTokenProvider,
)
from audience_manager.exceptions import ApiError, ConfigError, ProfileNotFoundError
from audience_manager.models.remote import (
    RemarketingList,
    RemarketingListShare,
    UserProfile,
)


class CountingTokenProvider:
    """Token provider recording refresh requests."""

    def __init__(self):
        self.refreshes = 0

    def get_token(self, refresh: bool = False) -> str:
        if refresh:
            self.refreshes += 1
        return f"token-{self.refreshes}"


def make_api(handler, token_provider=None, max_retries=3) -> CampaignManagerApi:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CampaignManagerApi(
        "2000",
        token_provider or CountingTokenProvider(),
        client=client,
        max_retries=max_retries,
        retry_delay=0,
    )


class TestTokenProviders:
    """Tests for the token providers."""

    def test_static_token(self):
        """Test the static provider returns its token."""
        assert StaticTokenProvider("abc").get_token(refresh=True) == "abc"

    def test_static_token_must_not_be_empty(self):
        """Test an empty token is refused."""
        with pytest.raises(ConfigError):
            StaticTokenProvider("")

    def test_env_token_reloaded_on_refresh(self, monkeypatch):
        """Test the environment is read again when refreshing."""
        monkeypatch.setenv("TEST_CM360_TOKEN", "first")
        provider = EnvTokenProvider("TEST_CM360_TOKEN")
        assert provider.get_token() == "first"

        monkeypatch.setenv("TEST_CM360_TOKEN", "second")
        assert provider.get_token() == "first"
        assert provider.get_token(refresh=True) == "second"

    def test_env_token_missing(self, monkeypatch):
        """Test a missing variable raises ConfigError."""
        monkeypatch.delenv("TEST_CM360_TOKEN", raising=False)
        with pytest.raises(ConfigError):
            EnvTokenProvider("TEST_CM360_TOKEN").get_token()


class TestBaseApi:
    """Tests for BaseApi helpers."""

    def test_build_api_url(self):
        """Test relative paths are placed under scope and version."""
        api = BaseApi("dfareporting", "v4", StaticTokenProvider("t"))
        assert (
            api.build_api_url("userprofiles")
            == "https://www.googleapis.com/dfareporting/v4/userprofiles"
        )
        absolute = "https://www.googleapis.com/dfareporting/v4/x?pageToken=1"
        assert api.build_api_url(absolute) == absolute

    def test_build_headers(self):
        """Test the bearer token is set."""
        api = BaseApi("s", "v1", StaticTokenProvider("secret"))
        headers = api.build_headers()
        assert headers["Authorization"] == "Bearer secret"
        assert headers["Content-Type"] == "application/json"

    def test_object_to_url_query(self):
        """Test list parameters are repeated and empty ones dropped."""
        query = BaseApi.object_to_url_query(
            "advertisers", {"sortField": "NAME", "ids": ["1", "2"], "empty": []}
        )
        assert query == "?sortField=NAME&ids=1&ids=2"
        assert BaseApi.object_to_url_query("a?x=1", {"y": 2}) == "&y=2"
        assert BaseApi.object_to_url_query("a", {}) == ""


class TestCampaignManagerApi:
    """Tests for CampaignManagerApi."""

    @pytest.mark.asyncio
    async def test_get_remarketing_lists(self):
        """Test lists are requested for the advertiser and parsed."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"remarketingLists": [{"id": 7, "name": "L", "lifeSpan": 30}]},
            )

        api = make_api(handler)
        lists = await api.get_remarketing_lists("p1")

        assert lists[0].id == "7"
        assert lists[0].life_span == 30
        assert seen[0].url.path == "/dfareporting/v4/userprofiles/p1/remarketingLists"
        assert seen[0].url.params["advertiserId"] == "2000"
        assert seen[0].headers["Authorization"] == "Bearer token-0"

    @pytest.mark.asyncio
    async def test_retries_transient_errors_with_fresh_token(self):
        """Test 401/5xx are retried and the token refreshed."""
        tokens = []
        responses = iter([401, 503, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            tokens.append(request.headers["Authorization"])
            status = next(responses)
            if status != 200:
                return httpx.Response(status)
            return httpx.Response(200, json={"items": [{"profileId": 1, "accountId": 2}]})

        provider = CountingTokenProvider()
        api = make_api(handler, provider)
        profiles = await api.get_user_profiles()

        assert profiles == [UserProfile(profile_id="1", account_id="2")]
        assert tokens == ["Bearer token-0", "Bearer token-1", "Bearer token-2"]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        """Test persistent failures raise ApiError with the status."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500, text="oops")

        api = make_api(handler, max_retries=2)
        with pytest.raises(ApiError) as exc_info:
            await api.get_user_profiles()

        assert exc_info.value.status_code == 500
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self):
        """Test a 400 fails on the first attempt."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(400, text="bad request")

        api = make_api(handler)
        with pytest.raises(ApiError):
            await api.get_user_profiles()
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_create_is_not_retried(self):
        """Test creation is attempted once even on a transient error."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        api = make_api(handler)
        with pytest.raises(ApiError):
            await api.create_remarketing_list("p1", RemarketingList(name="L"))
        assert len(calls) == 1
        assert calls[0].method == "POST"

    @pytest.mark.asyncio
    async def test_create_sends_camel_case_body(self):
        """Test the request body uses API field names."""
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "99", "name": "L"})

        api = make_api(handler)
        created = await api.create_remarketing_list(
            "p1", RemarketingList(name="L", life_span=30, advertiser_id="2000")
        )

        assert created.id == "99"
        assert bodies[0] == {"name": "L", "lifeSpan": 30, "advertiserId": "2000"}

    @pytest.mark.asyncio
    async def test_iter_advertisers_follows_page_tokens(self):
        """Test pages are fetched until no next page token is returned."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if "pageToken" not in request.url.params:
                return httpx.Response(
                    200,
                    json={"advertisers": [{"id": 1, "name": "A"}], "nextPageToken": "n2"},
                )
            return httpx.Response(200, json={"advertisers": [{"id": 2, "name": "B"}]})

        api = make_api(handler)
        pages = [page async for page in api.iter_advertisers("p1", ["1", "2"], 1)]

        assert [[a.id for a in page] for page in pages] == [["1"], ["2"]]
        assert requests[0].url.params.get_list("ids") == ["1", "2"]
        assert requests[0].url.params["sortField"] == "NAME"
        assert requests[1].url.params["pageToken"] == "n2"

    @pytest.mark.asyncio
    async def test_iter_advertisers_max_pages(self):
        """Test paging stops at the page limit."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"advertisers": [], "nextPageToken": "more"})

        api = make_api(handler)
        pages = [page async for page in api.iter_advertisers("p1", max_pages=2)]
        assert len(pages) == 2

    @pytest.mark.asyncio
    async def test_update_shares(self):
        """Test shares are patched by list id."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={})

        api = make_api(handler)
        await api.update_remarketing_list_shares(
            "p1", "42", RemarketingListShare(shared_advertiser_ids=["3000"])
        )

        assert requests[0].method == "PATCH"
        assert requests[0].url.params["id"] == "42"
        assert json.loads(requests[0].content) == {"sharedAdvertiserIds": ["3000"]}


class TestCampaignManagerFacade:
    """Tests for CampaignManagerFacade."""

    @pytest.fixture
    def api(self):
        api = AsyncMock(spec=CampaignManagerApi)
        api.get_user_profiles.return_value = [
            UserProfile(profile_id="11", account_id="999"),
            UserProfile(profile_id="22", account_id="1000"),
        ]
        return api

    @pytest.mark.asyncio
    async def test_resolves_profile_once(self, api):
        """Test the profile of the network is looked up once."""
        facade = CampaignManagerFacade(api, "1000", "2000")

        assert await facade.get_user_profile_id() == "22"
        await facade.get_remarketing_lists()

        api.get_user_profiles.assert_awaited_once()
        api.get_remarketing_lists.assert_awaited_once_with("22")

    @pytest.mark.asyncio
    async def test_missing_profile(self, api):
        """Test an unknown network raises ProfileNotFoundError."""
        facade = CampaignManagerFacade(api, "1", "2000")
        with pytest.raises(ProfileNotFoundError):
            await facade.get_floodlight_activities()

    @pytest.mark.asyncio
    async def test_create_sets_advertiser(self, api):
        """Test created lists belong to the bound advertiser."""
        api.create_remarketing_list.return_value = RemarketingList(id="5", name="L")
        facade = CampaignManagerFacade(api, "1000", "2000")

        await facade.create_remarketing_list(RemarketingList(name="L"))

        profile_id, sent = api.create_remarketing_list.await_args.args
        assert profile_id == "22"
        assert sent.advertiser_id == "2000"

    @pytest.mark.asyncio
    async def test_shares_delegate_with_profile(self, api):
        """Test share calls pass the profile and list id."""
        api.get_remarketing_list_shares.return_value = ["3000"]
        facade = CampaignManagerFacade(api, "1000", "2000")

        assert await facade.get_remarketing_list_shares("42") == ["3000"]
        api.get_remarketing_list_shares.assert_awaited_once_with("22", "42")
