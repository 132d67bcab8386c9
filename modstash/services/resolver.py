"""
版本约束解析服务

从本地缓存、已安装目录或注册中心中选出满足约束的版本。
按升序扫描并返回第一个满足约束的版本，即最低的满足版本；
现有模组的依赖图依赖这一行为，不要改为选择最高版本。
"""

from enum import Enum
from typing import Iterable, List, Optional

from loguru import logger

from modstash.exceptions import (
    NoMatchingVersionError,
    NotDownloadedError,
    RemoteVersionNotFoundError,
    ResolveError,
)
from modstash.services.api_client import CatalogBase
from modstash.store import InstalledMods, LocalModStore
from modstash.versioning import VersionConstraint, parse_constraint, parse_version


class VersionSource(Enum):
    """版本来源"""

    LOCAL = "local"
    CATALOG = "catalog"
    INSTALLED = "installed"


class ConstraintResolver:
    """版本约束解析器"""

    def __init__(self, client: CatalogBase, store: LocalModStore):
        self.client = client
        self.store = store

    @staticmethod
    def select(versions: Iterable[str], constraint: VersionConstraint) -> Optional[str]:
        """
        返回第一个满足约束的版本

        Args:
            versions: 已按升序排列的版本
            constraint: 已解析的约束

        Returns:
            满足约束的版本或 None
        """
        for version in versions:
            parsed = parse_version(version)
            if parsed is None:
                logger.debug(f"跳过无法解析的版本 {version}")
                continue
            if constraint.match(parsed):
                return version
        return None

    async def _versions(
        self,
        mod_id: str,
        source: VersionSource,
        installed: Optional[InstalledMods],
    ) -> List[str]:
        """获取来源中的版本列表（升序）"""
        if source == VersionSource.LOCAL:
            return self.store.list_downloaded(mod_id)
        if source == VersionSource.CATALOG:
            return [v.version for v in await self.client.list_versions(mod_id)]
        if installed is None:
            raise ResolveError(
                "解析已安装版本需要提供安装目标", context={"mod_id": mod_id}
            )
        return installed.versions_of(mod_id)

    async def resolve(
        self,
        mod_id: str,
        constraint: str,
        source: VersionSource,
        installed: Optional[InstalledMods] = None,
    ) -> str:
        """
        解析满足约束的版本

        Args:
            mod_id: 模组 ID
            constraint: 版本约束表达式
            source: 版本来源
            installed: 安装目标（source 为 INSTALLED 时必需）

        Raises:
            InvalidConstraintError: 约束表达式无效
            NoMatchingVersionError: 没有满足约束的版本
            RemoteVersionNotFoundError: 注册中心没有满足约束的版本
        """
        spec = parse_constraint(constraint)
        versions = await self._versions(mod_id, source, installed)
        version = self.select(versions, spec)
        if version is not None:
            return version

        context = {"mod_id": mod_id, "constraint": constraint, "source": source.value}
        if source == VersionSource.CATALOG:
            raise RemoteVersionNotFoundError(
                f"注册中心没有满足 {mod_id}@{constraint} 的版本", context=context
            )
        raise NoMatchingVersionError(
            f"没有满足 {mod_id}@{constraint} 的版本", context=context
        )

    async def find(
        self,
        mod_id: str,
        constraint: str,
        source: VersionSource,
        installed: Optional[InstalledMods] = None,
    ) -> Optional[str]:
        """
        与 resolve 相同，但没有匹配版本或来源为空时返回 None

        约束表达式无效时仍然抛出 InvalidConstraintError。
        """
        try:
            return await self.resolve(mod_id, constraint, source, installed)
        except (NoMatchingVersionError, NotDownloadedError):
            return None
