"""
测试公共夹具

FakeCatalog 以内存数据实现注册中心，并记录每一次查询和下载，
测试据此断言某个依赖没有访问注册中心。
"""

import io
import json
import zipfile
from typing import Dict, List, Optional

import pytest

from modstash.exceptions import RemoteNotFoundError
from modstash.services import (
    AcquisitionEngine,
    CatalogBase,
    ConstraintResolver,
    InstallationEngine,
    ModUpdater,
)
from modstash.store import LocalModStore


def build_archive(
    mod_id: Optional[str],
    version: str = "1.0.0",
    dependencies: Optional[Dict[str, str]] = None,
    name: Optional[str] = None,
    with_manifest: bool = True,
) -> bytes:
    """构造一个模组压缩包"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as z:
        if with_manifest:
            manifest = {
                "mod_id": mod_id,
                "name": name or mod_id,
                "version": version,
                "description": f"{mod_id} test mod",
                "authors": ["tester"],
                "objects": [{"path": f"{mod_id}.pak", "type": "pak"}],
                "dependencies": dependencies or {},
                "optional_dependencies": {},
            }
            z.writestr("data.json", json.dumps(manifest))
        z.writestr(f"{mod_id}.pak", b"payload")
    return buffer.getvalue()


class FakeCatalog(CatalogBase):
    """内存注册中心"""

    def __init__(self):
        self.mods: Dict[str, List[dict]] = {}
        self.latest: Dict[str, Dict[str, Optional[str]]] = {}
        self.calls: List[tuple] = []
        self.broken: Dict[tuple, bytes] = {}

    def add(
        self,
        mod_id: str,
        version: str,
        dependencies: Optional[Dict[str, str]] = None,
        stability: Optional[str] = "release",
        manifest_version: Optional[str] = None,
    ) -> "FakeCatalog":
        self.mods.setdefault(mod_id, []).append(
            {
                "version": version,
                "stability": stability,
                "dependencies": dependencies or {},
                "manifest_version": manifest_version or version,
            }
        )
        return self

    def add_malformed(self, mod_id: str, version: str) -> "FakeCatalog":
        self.add(mod_id, version)
        self.broken[(mod_id, version)] = build_archive(mod_id, version, with_manifest=False)
        return self

    def set_latest(self, mod_id: str, **tiers: Optional[str]) -> "FakeCatalog":
        self.latest[mod_id] = tiers
        return self

    def calls_for(self, mod_id: str) -> List[tuple]:
        return [call for call in self.calls if call[1] == mod_id]

    def _entry(self, mod_id: str, version: str) -> Optional[dict]:
        for entry in self.mods.get(mod_id, []):
            if entry["version"] == version:
                return entry
        return None

    async def _query_versions(self, mod_id: str):
        self.calls.append(("versions", mod_id))
        if mod_id not in self.mods:
            return None
        return [
            {"version": e["version"], "stability": e["stability"]}
            for e in self.mods[mod_id]
        ]

    async def _query_latest(self, mod_id: str):
        self.calls.append(("latest", mod_id))
        if mod_id not in self.mods:
            return None
        if mod_id in self.latest:
            return {
                tier: self.latest[mod_id].get(tier)
                for tier in ("alpha", "beta", "release")
            }
        tiers: Dict[str, Optional[str]] = {"alpha": None, "beta": None, "release": None}
        for entry in self.mods[mod_id]:
            tiers[entry["stability"]] = entry["version"]
        return tiers

    async def _query_link(self, mod_id: str, version: str):
        self.calls.append(("link", mod_id, version))
        if mod_id not in self.mods:
            raise RemoteNotFoundError(f"模组 {mod_id} 不存在")
        if self._entry(mod_id, version) is None:
            return None
        return f"fake://{mod_id}/{version}"

    async def fetch(self, url: str) -> bytes:
        mod_id, version = url[len("fake://"):].split("/", 1)
        self.calls.append(("fetch", mod_id, version))
        if (mod_id, version) in self.broken:
            return self.broken[(mod_id, version)]
        entry = self._entry(mod_id, version)
        return build_archive(mod_id, entry["manifest_version"], entry["dependencies"])


@pytest.fixture
def archive():
    """构造压缩包内容的工厂"""
    return build_archive


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def cache_dir(tmp_path):
    return str(tmp_path / "cache")


@pytest.fixture
def target(tmp_path):
    path = tmp_path / "game"
    path.mkdir()
    return str(path)


@pytest.fixture
def store(cache_dir) -> LocalModStore:
    return LocalModStore(cache_dir)


@pytest.fixture
def resolver(catalog, store) -> ConstraintResolver:
    return ConstraintResolver(catalog, store)


@pytest.fixture
def acquisition(catalog, store, resolver) -> AcquisitionEngine:
    return AcquisitionEngine(catalog, store, resolver)


@pytest.fixture
def installation(store, resolver, acquisition) -> InstallationEngine:
    return InstallationEngine(store, resolver, acquisition)


@pytest.fixture
def updater(catalog, store, acquisition) -> ModUpdater:
    return ModUpdater(catalog, store, acquisition)
