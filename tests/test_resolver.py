"""
版本约束解析测试
"""

import pytest

from modstash.exceptions import (
    InvalidConstraintError,
    NoMatchingVersionError,
    NothingDownloadedError,
    RemoteNotFoundError,
    RemoteVersionNotFoundError,
    ResolveError,
)
from modstash.services import ConstraintResolver, VersionSource
from modstash.store import InstalledMods
from modstash.versioning import parse_constraint


class TestSelect:
    @pytest.mark.parametrize(
        "versions",
        [
            ["1.0.0"],
            ["0.1.0", "0.2.0", "3.0.0"],
            ["1.0.0", "1.0.1", "1.1.0", "2.0.0", "10.0.0"],
        ],
    )
    def test_unconstrained_picks_lowest(self, versions):
        assert ConstraintResolver.select(versions, parse_constraint("*")) == versions[0]

    def test_lowest_satisfying_not_highest(self):
        versions = ["1.0.0", "1.5.0", "1.9.0", "2.0.0"]
        spec = parse_constraint(">=1.2.0 <2.0.0")
        assert ConstraintResolver.select(versions, spec) == "1.5.0"

    def test_skips_unparseable(self):
        assert ConstraintResolver.select(["bogus", "1.0.0"], parse_constraint("*")) == "1.0.0"

    def test_no_match(self):
        assert ConstraintResolver.select(["1.0.0"], parse_constraint(">=2.0.0")) is None


class TestResolve:
    @pytest.mark.asyncio
    async def test_catalog_source(self, resolver, catalog):
        for version in ["2.0.0", "1.0.0", "1.5.0"]:
            catalog.add("B", version)
        assert await resolver.resolve("B", "^1.0.0", VersionSource.CATALOG) == "1.0.0"

    @pytest.mark.asyncio
    async def test_catalog_no_match(self, resolver, catalog):
        catalog.add("B", "1.0.0")
        with pytest.raises(RemoteVersionNotFoundError):
            await resolver.resolve("B", ">=5.0.0", VersionSource.CATALOG)

    @pytest.mark.asyncio
    async def test_catalog_unknown_mod(self, resolver):
        with pytest.raises(RemoteNotFoundError):
            await resolver.resolve("B", "*", VersionSource.CATALOG)

    @pytest.mark.asyncio
    async def test_local_source(self, resolver, store, archive, catalog):
        await store.store("B", "1.5.0", archive("B", "1.5.0"))
        await store.store("B", "1.2.0", archive("B", "1.2.0"))
        assert await resolver.resolve("B", ">=1.0.0 <2.0.0", VersionSource.LOCAL) == "1.2.0"
        assert catalog.calls == []

    @pytest.mark.asyncio
    async def test_local_nothing_downloaded(self, resolver):
        with pytest.raises(NothingDownloadedError):
            await resolver.resolve("B", "*", VersionSource.LOCAL)
        assert await resolver.find("B", "*", VersionSource.LOCAL) is None

    @pytest.mark.asyncio
    async def test_local_no_match(self, resolver, store, archive):
        await store.store("B", "1.0.0", archive("B", "1.0.0"))
        with pytest.raises(NoMatchingVersionError):
            await resolver.resolve("B", "^2.0.0", VersionSource.LOCAL)
        assert await resolver.find("B", "^2.0.0", VersionSource.LOCAL) is None

    @pytest.mark.asyncio
    async def test_installed_source(self, resolver, tmp_path, target, archive):
        source = tmp_path / "b.zip"
        source.write_bytes(archive("B", "1.1.0"))
        installed = InstalledMods(target)
        installed.install_archive(str(source))

        assert await resolver.find("B", "^1.0.0", VersionSource.INSTALLED, installed) == "1.1.0"
        assert await resolver.find("B", "^2.0.0", VersionSource.INSTALLED, installed) is None

    @pytest.mark.asyncio
    async def test_invalid_constraint_always_raises(self, resolver, store, archive):
        await store.store("B", "1.0.0", archive("B", "1.0.0"))
        with pytest.raises(InvalidConstraintError):
            await resolver.find("B", ">>1.0.0", VersionSource.LOCAL)

    @pytest.mark.asyncio
    async def test_installed_source_needs_target(self, resolver):
        with pytest.raises(ResolveError):
            await resolver.resolve("B", "*", VersionSource.INSTALLED)
