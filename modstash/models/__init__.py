"""
ModStash 数据模型包

包含清单、注册中心、结果和配置模型定义。
"""

from modstash.models.manifest import (
    MANIFEST_NAME,
    ModFile,
    ModManifest,
    normalize_version,
)
from modstash.models.catalog import Stability, CatalogVersion
from modstash.models.result import (
    DependencyOutcome,
    AcquireResult,
    InstallResult,
    UpdateResult,
)
from modstash.models.config import ModStashConfig, load_config, load_config_file

__all__ = [
    # 清单模型
    "MANIFEST_NAME",
    "ModFile",
    "ModManifest",
    "normalize_version",
    # 注册中心模型
    "Stability",
    "CatalogVersion",
    # 结果模型
    "DependencyOutcome",
    "AcquireResult",
    "InstallResult",
    "UpdateResult",
    # 配置模型
    "ModStashConfig",
    "load_config",
    "load_config_file",
]
