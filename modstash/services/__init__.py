"""
ModStash 服务层

包含业务逻辑服务：注册中心客户端、版本约束解析、依赖闭包下载与安装、更新检查。
"""

from modstash.services.api_client import CatalogBase, FicsitClient
from modstash.services.resolver import ConstraintResolver, VersionSource
from modstash.services.acquisition import AcquisitionEngine
from modstash.services.installation import InstallationEngine
from modstash.services.updater import ModUpdater

__all__ = [
    "CatalogBase",
    "FicsitClient",
    "ConstraintResolver",
    "VersionSource",
    "AcquisitionEngine",
    "InstallationEngine",
    "ModUpdater",
]
