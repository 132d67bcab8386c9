"""
注册中心客户端测试
"""

import pytest

from modstash.exceptions import (
    NoMatchingVersionError,
    NoVersionsAvailableError,
    RegistryError,
    RemoteNotFoundError,
    RemoteVersionNotFoundError,
)
from modstash.models import Stability
from modstash.services import FicsitClient


class TestListVersions:
    @pytest.mark.asyncio
    async def test_sorted_with_unparseable_last(self, catalog):
        for version in ["2.0.0", "nightly", "1.0.0", "1.2.0", "dev"]:
            catalog.add("X", version)
        versions = await catalog.list_versions("X")
        assert [v.version for v in versions] == ["1.0.0", "1.2.0", "2.0.0", "nightly", "dev"]
        assert versions[0].stability == Stability.RELEASE

    @pytest.mark.asyncio
    async def test_unknown_mod(self, catalog):
        with pytest.raises(RemoteNotFoundError):
            await catalog.list_versions("missing")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("stability", [None, "nightly"])
    async def test_bad_stability_is_registry_error(self, catalog, stability):
        catalog.add("X", "1.0.0", stability=stability)
        with pytest.raises(RegistryError):
            await catalog.list_versions("X")


class TestLatestVersion:
    @pytest.mark.asyncio
    async def test_max_across_tiers_not_stability(self, catalog):
        catalog.add("X", "1.0.0").add("X", "1.2.0").add("X", "2.0.0")
        catalog.set_latest("X", alpha="2.0.0-alpha.1", release="1.2.0")
        assert await catalog.latest_version("X") == "2.0.0-alpha.1"

    @pytest.mark.asyncio
    async def test_release_wins_when_higher(self, catalog):
        catalog.add("X", "1.0.0")
        catalog.set_latest("X", alpha="0.9.0", beta="1.0.0-beta.2", release="1.0.0")
        assert await catalog.latest_version("X") == "1.0.0"

    @pytest.mark.asyncio
    async def test_no_tier_has_a_value(self, catalog):
        catalog.add("X", "1.0.0")
        catalog.set_latest("X")
        with pytest.raises(NoVersionsAvailableError):
            await catalog.latest_version("X")


class TestDownload:
    @pytest.mark.asyncio
    async def test_link_for_missing_version(self, catalog):
        catalog.add("X", "1.0.0")
        with pytest.raises(RemoteVersionNotFoundError) as exc_info:
            await catalog.download_link("X", "9.9.9")
        assert isinstance(exc_info.value, NoMatchingVersionError)

    @pytest.mark.asyncio
    async def test_retries_with_v_prefix(self, catalog):
        catalog.add("X", "v1.0.0", manifest_version="1.0.0")
        matched, data = await catalog.download_version("X", "1.0.0")
        assert matched == "v1.0.0"
        assert data
        assert ("link", "X", "1.0.0") in catalog.calls
        assert ("link", "X", "v1.0.0") in catalog.calls

    @pytest.mark.asyncio
    async def test_gives_up_after_one_retry(self, catalog):
        catalog.add("X", "1.0.0")
        with pytest.raises(RemoteVersionNotFoundError):
            await catalog.download_version("X", "2.0.0")
        assert len([c for c in catalog.calls if c[0] == "link"]) == 2


class TestFicsitClient:
    def _client(self, monkeypatch, data):
        client = FicsitClient(site_url="https://example.test/")
        requests = []

        async def fake_request(query, variables):
            requests.append(variables)
            return data

        monkeypatch.setattr(client, "_request", fake_request)
        return client, requests

    @pytest.mark.asyncio
    async def test_relative_links_are_made_absolute(self, monkeypatch):
        client, requests = self._client(
            monkeypatch, {"getMod": {"version": {"link": "/v1/version/abc/download"}}}
        )
        link = await client.download_link("X", "1.0.0")
        assert link == "https://example.test/v1/version/abc/download"
        assert requests == [{"modID": "X", "version": "1.0.0"}]

    @pytest.mark.asyncio
    async def test_unknown_mod_on_link(self, monkeypatch):
        client, _ = self._client(monkeypatch, {"getMod": None})
        with pytest.raises(RemoteNotFoundError):
            await client.download_link("X", "1.0.0")

    @pytest.mark.asyncio
    async def test_missing_version_on_link(self, monkeypatch):
        client, _ = self._client(monkeypatch, {"getMod": {"version": None}})
        with pytest.raises(RemoteVersionNotFoundError):
            await client.download_link("X", "1.0.0")

    @pytest.mark.asyncio
    async def test_latest_versions_projection(self, monkeypatch):
        client, _ = self._client(
            monkeypatch,
            {
                "getMod": {
                    "latestVersions": {
                        "alpha": {"version": "2.0.0-alpha.1"},
                        "beta": None,
                        "release": {"version": "1.2.0"},
                    }
                }
            },
        )
        assert await client.latest_version("X") == "2.0.0-alpha.1"

    @pytest.mark.asyncio
    async def test_close_without_session(self):
        async with FicsitClient() as client:
            assert client.api_url.endswith("/v2/query")
