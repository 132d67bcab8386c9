"""
依赖闭包下载服务

下载模组并递归下载其必需依赖。本地已有满足约束的依赖版本时直接复用，
不再访问注册中心；单个依赖失败只影响该子树，兄弟依赖照常处理。
"""

from typing import List

from loguru import logger

from modstash.exceptions import (
    ArchiveMalformedError,
    CyclicDependencyError,
    ModStashError,
)
from modstash.models import (
    AcquireResult,
    DependencyOutcome,
    ModManifest,
    normalize_version,
)
from modstash.services.api_client import CatalogBase
from modstash.services.resolver import ConstraintResolver, VersionSource
from modstash.store import LocalModStore


class AcquisitionEngine:
    """依赖闭包下载器"""

    def __init__(
        self,
        client: CatalogBase,
        store: LocalModStore,
        resolver: ConstraintResolver,
    ):
        self.client = client
        self.store = store
        self.resolver = resolver

    async def acquire(self, mod_id: str, version: str) -> AcquireResult:
        """
        下载模组及其依赖闭包

        根模组的任何失败都会直接抛出；依赖的失败被记录在结果中。

        Args:
            mod_id: 模组 ID
            version: 具体版本

        Returns:
            AcquireResult
        """
        result = AcquireResult(mod_id=mod_id, version=normalize_version(version))
        result.version = await self._acquire(mod_id, version, result, [])

        if result.satisfied:
            logger.success(
                f"[完成] {mod_id}@{result.version} 及依赖下载完成，共 {result.total_count} 个模组"
            )
        else:
            logger.warning(
                f"[警告] {mod_id}@{result.version} 的部分依赖下载失败 ({len(result.failures)} 个)"
            )
        return result

    async def _acquire(
        self,
        mod_id: str,
        version: str,
        result: AcquireResult,
        chain: List[str],
    ) -> str:
        """递归下载，返回实际存储的版本"""
        if mod_id in chain:
            cycle = " -> ".join(chain + [mod_id])
            raise CyclicDependencyError(
                f"检测到循环依赖: {cycle}", context={"chain": chain + [mod_id]}
            )
        chain = chain + [mod_id]

        logger.info(f"[下载] {mod_id}@{version}")
        matched, data = await self.client.download_version(mod_id, version)
        path = await self.store.store(mod_id, normalize_version(matched), data)
        manifest = ModManifest.from_archive(path)
        version = manifest.version or normalize_version(matched)
        result.total_count += 1
        logger.success(f"[完成] 已下载 {mod_id}@{version}")

        parent = f"{mod_id}@{version}"
        for dep_id, constraint in manifest.dependencies.items():
            outcome = DependencyOutcome(mod_id=dep_id, constraint=constraint, parent=parent)
            result.outcomes.append(outcome)
            try:
                local_version = await self.resolver.find(
                    dep_id, constraint, VersionSource.LOCAL
                )
                if local_version is not None:
                    outcome.version = local_version
                    outcome.skipped = True
                    logger.info(f"[依赖] {dep_id}@{local_version} 已下载，跳过")
                    continue

                dep_version = await self.resolver.resolve(
                    dep_id, constraint, VersionSource.CATALOG
                )
                outcome.version = dep_version
                logger.info(f"[依赖] {parent} 需要 {dep_id}@{dep_version}")
                outcome.version = await self._acquire(dep_id, dep_version, result, chain)
            except ArchiveMalformedError:
                raise
            except ModStashError as e:
                outcome.success = False
                outcome.reason = str(e)
                result.satisfied = False
                logger.error(
                    f"[错误] 下载依赖 {dep_id}@{constraint} 失败 (被 {parent} 依赖): {e}"
                )

        return version
