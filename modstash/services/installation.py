"""
依赖闭包安装服务

把本地缓存中的模组及其依赖复制到安装目标的 mods 目录。
安装目标中已有满足约束的依赖时跳过；缓存中没有的依赖会先下载。
"""

from typing import List

from loguru import logger

from modstash.exceptions import (
    ArchiveMalformedError,
    CyclicDependencyError,
    ModStashError,
)
from modstash.models import DependencyOutcome, InstallResult, normalize_version
from modstash.services.acquisition import AcquisitionEngine
from modstash.services.resolver import ConstraintResolver, VersionSource
from modstash.store import InstalledMods, LocalModStore


class InstallationEngine:
    """依赖闭包安装器"""

    def __init__(
        self,
        store: LocalModStore,
        resolver: ConstraintResolver,
        acquisition: AcquisitionEngine,
    ):
        self.store = store
        self.resolver = resolver
        self.acquisition = acquisition

    async def install(self, mod_id: str, version: str, target: str) -> InstallResult:
        """
        安装模组及其依赖闭包

        目标中已安装该模组的任意版本时不做任何操作。
        根模组不在本地缓存中时抛出 NotDownloadedError，调用方需要先下载。

        Args:
            mod_id: 模组 ID
            version: 具体版本
            target: 安装目标目录

        Returns:
            InstallResult
        """
        installed = InstalledMods(target)
        version = normalize_version(version)
        result = InstallResult(mod_id=mod_id, version=version)
        result.newly_installed = await self._install(
            mod_id, version, installed, result, []
        )

        if not result.newly_installed:
            logger.info(f"[跳过] {mod_id} 已安装")
        elif result.satisfied:
            logger.success(
                f"[完成] {mod_id}@{version} 安装完成，共安装 {len(result.installed)} 个模组"
            )
        else:
            logger.warning(
                f"[警告] {mod_id}@{version} 的部分依赖安装失败 ({len(result.failures)} 个)"
            )
        return result

    async def _install(
        self,
        mod_id: str,
        version: str,
        installed: InstalledMods,
        result: InstallResult,
        chain: List[str],
    ) -> bool:
        """递归安装，返回是否新安装了该模组"""
        if mod_id in chain:
            cycle = " -> ".join(chain + [mod_id])
            raise CyclicDependencyError(
                f"检测到循环依赖: {cycle}", context={"chain": chain + [mod_id]}
            )
        chain = chain + [mod_id]

        if installed.is_installed(mod_id):
            return False

        archive_path = self.store.find_archive(mod_id, version)
        installed.install_archive(archive_path)
        result.installed.append(f"{mod_id}@{version}")
        logger.success(f"[安装] {mod_id}@{version}")

        parent = f"{mod_id}@{version}"
        for dep_id, constraint in self.store.get_dependencies(mod_id, version).items():
            outcome = DependencyOutcome(mod_id=dep_id, constraint=constraint, parent=parent)
            result.outcomes.append(outcome)
            try:
                present = await self.resolver.find(
                    dep_id, constraint, VersionSource.INSTALLED, installed
                )
                if present is not None:
                    outcome.version = present
                    outcome.skipped = True
                    logger.debug(f"[依赖] {dep_id}@{present} 已安装，跳过")
                    continue

                dep_version = await self.resolver.find(
                    dep_id, constraint, VersionSource.LOCAL
                )
                if dep_version is None:
                    dep_version = await self.resolver.resolve(
                        dep_id, constraint, VersionSource.CATALOG
                    )
                    logger.info(
                        f"[依赖] {dep_id}@{constraint} 未下载，开始下载 {dep_id}@{dep_version}"
                    )
                    acquired = await self.acquisition.acquire(dep_id, dep_version)
                    dep_version = acquired.version
                    if not acquired.satisfied:
                        result.satisfied = False
                        result.outcomes.extend(acquired.failures)
                outcome.version = dep_version

                if not await self._install(dep_id, dep_version, installed, result, chain):
                    conflicting = ", ".join(installed.versions_of(dep_id))
                    outcome.success = False
                    outcome.reason = f"已安装不满足约束的版本 {conflicting}"
                    result.satisfied = False
                    logger.error(
                        f"[错误] 无法安装依赖 {dep_id}@{constraint} (被 {parent} 依赖): {outcome.reason}"
                    )
                else:
                    logger.info(f"[依赖] 已为 {parent} 安装 {dep_id}@{dep_version}")
            except ArchiveMalformedError:
                raise
            except ModStashError as e:
                outcome.success = False
                outcome.reason = str(e)
                result.satisfied = False
                logger.error(
                    f"[错误] 安装依赖 {dep_id}@{constraint} 失败 (被 {parent} 依赖): {e}"
                )

        return True
