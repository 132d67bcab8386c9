"""
模组更新服务

比较本地缓存的最新版本与注册中心的最新版本，必要时下载新版本并清理旧版本。
"""

from typing import List

from loguru import logger

from modstash.exceptions import ArchiveMalformedError, ModStashError
from modstash.models import UpdateResult, normalize_version
from modstash.services.acquisition import AcquisitionEngine
from modstash.services.api_client import CatalogBase
from modstash.store import LocalModStore
from modstash.versioning import is_newer


class ModUpdater:
    """模组更新器"""

    def __init__(
        self,
        client: CatalogBase,
        store: LocalModStore,
        acquisition: AcquisitionEngine,
    ):
        self.client = client
        self.store = store
        self.acquisition = acquisition

    async def update(self, mod_id: str) -> UpdateResult:
        """
        更新模组到注册中心的最新版本

        先下载新版本的依赖闭包，成功后再删除该模组的其它缓存版本。

        Raises:
            NothingDownloadedError: 该模组没有已下载版本
        """
        current = self.store.latest_downloaded(mod_id)
        latest = normalize_version(await self.client.latest_version(mod_id))
        result = UpdateResult(
            mod_id=mod_id, previous_version=current, latest_version=latest
        )
        if latest == current:
            logger.info(f"[跳过] {mod_id} 已是最新版本 ({current})")
            return result

        result.acquire = await self.acquisition.acquire(mod_id, latest)
        for version in self.store.list_downloaded(mod_id):
            if version != result.acquire.version:
                self.store.remove(mod_id, version)

        result.updated = True
        logger.success(f"[更新] {mod_id}: {current} -> {result.acquire.version}")
        return result

    async def check_for_updates(self, apply: bool = False) -> List[UpdateResult]:
        """
        检查所有已下载模组的更新

        Args:
            apply: 是否直接下载更新

        Returns:
            有可用更新的模组列表
        """
        available = []
        for mod_id in self.store.mod_ids():
            try:
                current = self.store.latest_downloaded(mod_id)
                latest = normalize_version(await self.client.latest_version(mod_id))
                if not is_newer(current, latest):
                    continue

                if apply:
                    result = await self.update(mod_id)
                else:
                    result = UpdateResult(
                        mod_id=mod_id, previous_version=current, latest_version=latest
                    )
                    logger.info(f"[更新] {mod_id}@{latest} 可用 (当前 {current})")
                available.append(result)
            except ArchiveMalformedError:
                raise
            except ModStashError as e:
                logger.error(f"[错误] 检查 {mod_id} 的更新失败: {e}")
        return available
