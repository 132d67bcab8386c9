"""
主协调器

整合注册中心客户端、本地缓存和各引擎，为 CLI 提供完整的命令流程。
"""

import os
from typing import List, Optional

from loguru import logger

from modstash.exceptions import ConfigValidationError, NotDownloadedError
from modstash.models import (
    AcquireResult,
    InstallResult,
    ModManifest,
    ModStashConfig,
    UpdateResult,
)
from modstash.services import (
    AcquisitionEngine,
    CatalogBase,
    ConstraintResolver,
    FicsitClient,
    InstallationEngine,
    ModUpdater,
)
from modstash.store import InstalledMods, LocalModStore


class ModStashOrchestrator:
    """ModStash 主协调器"""

    def __init__(self, config: ModStashConfig, client: Optional[CatalogBase] = None):
        self.config = config
        self._owned_client = client is None
        self.client = client or FicsitClient(
            api_url=config.api_url, site_url=config.site_url
        )
        self.store = LocalModStore(config.cache_dir)
        self.resolver = ConstraintResolver(self.client, self.store)
        self.acquisition = AcquisitionEngine(self.client, self.store, self.resolver)
        self.installation = InstallationEngine(
            self.store, self.resolver, self.acquisition
        )
        self.updater = ModUpdater(self.client, self.store, self.acquisition)

    def _target(self, target: Optional[str]) -> str:
        """确定安装目标"""
        path = target or self.config.install_path
        if not path:
            raise ConfigValidationError("请指定安装路径")
        if not os.path.isdir(path):
            raise ConfigValidationError(
                f"安装路径无效: {path}", context={"path": path}
            )
        return path

    async def download(self, mod_id: str, version: Optional[str] = None) -> AcquireResult:
        """下载模组及依赖，未指定版本时使用最新版本"""
        if not version:
            version = await self.client.latest_version(mod_id)
            logger.info(f"[查询] {mod_id} 最新版本为 {version}")
        return await self.acquisition.acquire(mod_id, version)

    def remove(self, mod_id: str, version: Optional[str] = None) -> List[str]:
        """删除已下载的模组，未指定版本时删除所有版本"""
        versions = [version] if version else self.store.list_downloaded(mod_id)
        return [self.store.remove(mod_id, v) for v in versions]

    async def update(self, mod_id: str) -> UpdateResult:
        return await self.updater.update(mod_id)

    async def check_updates(self, apply: bool = False) -> List[UpdateResult]:
        return await self.updater.check_for_updates(apply)

    async def install(
        self,
        mod_id: str,
        version: Optional[str] = None,
        target: Optional[str] = None,
        download: bool = False,
    ) -> InstallResult:
        """
        安装模组及依赖

        Args:
            mod_id: 模组 ID
            version: 版本，未指定时使用已下载的最新版本
            target: 安装目标，未指定时使用配置中的 install_path
            download: 模组未下载时是否先下载
        """
        path = self._target(target)

        if not version:
            try:
                version = self.store.latest_downloaded(mod_id)
            except NotDownloadedError:
                if not download:
                    raise
                version = await self.client.latest_version(mod_id)

        if download:
            try:
                self.store.find_archive(mod_id, version)
            except NotDownloadedError:
                acquired = await self.acquisition.acquire(mod_id, version)
                version = acquired.version

        return await self.installation.install(mod_id, version, path)

    def uninstall(
        self,
        mod_id: str,
        version: Optional[str] = None,
        target: Optional[str] = None,
    ) -> List[str]:
        return InstalledMods(self._target(target)).uninstall(mod_id, version)

    def list_downloaded(self) -> List[ModManifest]:
        return self.store.list_mods()

    def list_installed(self, target: Optional[str] = None) -> List[ModManifest]:
        return InstalledMods(self._target(target)).list_installed()

    def list_versions(self, mod_id: str) -> List[str]:
        """已下载的版本，未下载时返回空列表"""
        try:
            return self.store.list_downloaded(mod_id)
        except NotDownloadedError:
            return []

    async def close(self):
        """关闭自己创建的客户端"""
        if self._owned_client:
            await self.client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
