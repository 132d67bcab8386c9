"""
注册中心数据模型
"""

from dataclasses import dataclass
from enum import Enum

from modstash.exceptions import RegistryError


class Stability(Enum):
    """版本稳定性等级"""

    ALPHA = "alpha"
    BETA = "beta"
    RELEASE = "release"


@dataclass
class CatalogVersion:
    """注册中心中的一个版本"""

    version: str
    stability: Stability

    @classmethod
    def from_ficsit(cls, data: dict) -> "CatalogVersion":
        """
        将 ficsit.app 返回的版本条目转换为 CatalogVersion 对象。

        Raises:
            RegistryError: 条目缺少版本号或稳定性等级未知
        """
        version = data.get("version")
        stability = data.get("stability")
        if not isinstance(version, str) or not version:
            raise RegistryError(
                f"注册中心返回了无效的版本条目: {data}", context={"entry": data}
            )
        try:
            return cls(version=version, stability=Stability(stability))
        except ValueError:
            raise RegistryError(
                f"版本 {version} 的稳定性等级未知: {stability}",
                context={"entry": data},
            )
