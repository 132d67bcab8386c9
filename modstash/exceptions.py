"""
ModStash 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
库内部只抛出异常，是否终止进程由 CLI 层决定。
"""

from typing import Any, Dict, Optional
import aiohttp


class ModStashError(Exception):
    """ModStash 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(ModStashError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class RegistryError(ModStashError):
    """注册中心返回的业务错误"""

    def _get_default_code(self) -> str:
        return "E200"


class RemoteNotFoundError(RegistryError):
    """注册中心不存在该模组"""

    def _get_default_code(self) -> str:
        return "E204"


class NoVersionsAvailableError(RegistryError):
    """模组没有任何可用版本"""

    def _get_default_code(self) -> str:
        return "E205"


class IOFailureError(ModStashError):
    """文件系统或网络传输错误"""

    def _get_default_code(self) -> str:
        return "E300"


class APIError(IOFailureError):
    """API 请求失败"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        response: Optional[aiohttp.ClientResponse] = None,
    ):
        super().__init__(message, code, context)
        self.response = response
        if response:
            self.context["status_code"] = response.status
            self.context["url"] = str(response.url)

    def _get_default_code(self) -> str:
        return "E301"


class DownloadNetworkError(IOFailureError):
    """下载网络错误"""

    def _get_default_code(self) -> str:
        return "E302"


class StorageIOError(IOFailureError):
    """本地文件操作错误"""

    def _get_default_code(self) -> str:
        return "E303"


class StoreError(ModStashError):
    """本地缓存 / 安装目录相关错误"""

    def _get_default_code(self) -> str:
        return "E400"


class NotDownloadedError(StoreError):
    """本地缓存中没有对应模组"""

    def _get_default_code(self) -> str:
        return "E401"


class NothingDownloadedError(NotDownloadedError):
    """该模组没有任何已下载版本"""

    def _get_default_code(self) -> str:
        return "E402"


class VersionNotDownloadedError(NotDownloadedError):
    """指定版本未下载"""

    def _get_default_code(self) -> str:
        return "E403"


class NotInstalledError(StoreError):
    """模组未安装到目标目录"""

    def _get_default_code(self) -> str:
        return "E410"


class ArchiveMalformedError(StoreError):
    """
    模组压缩包缺少 data.json 或无法读取

    无法识别身份的压缩包不能参与依赖解析，引擎遇到时总是直接抛出。
    """

    def _get_default_code(self) -> str:
        return "E420"


class ResolveError(ModStashError):
    """版本解析相关错误"""

    def _get_default_code(self) -> str:
        return "E500"


class InvalidConstraintError(ResolveError):
    """版本约束表达式无效"""

    def _get_default_code(self) -> str:
        return "E501"


class NoMatchingVersionError(ResolveError):
    """没有满足约束的版本"""

    def _get_default_code(self) -> str:
        return "E502"


class RemoteVersionNotFoundError(RegistryError, NoMatchingVersionError):
    """注册中心没有该版本或没有满足约束的版本"""

    def _get_default_code(self) -> str:
        return "E206"


class CyclicDependencyError(ResolveError):
    """依赖图中存在循环"""

    def _get_default_code(self) -> str:
        return "E503"


__all__ = [
    # 基础异常
    "ModStashError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    # 注册中心异常
    "RegistryError",
    "RemoteNotFoundError",
    "NoVersionsAvailableError",
    "RemoteVersionNotFoundError",
    # IO 异常
    "IOFailureError",
    "APIError",
    "DownloadNetworkError",
    "StorageIOError",
    # 存储异常
    "StoreError",
    "NotDownloadedError",
    "NothingDownloadedError",
    "VersionNotDownloadedError",
    "NotInstalledError",
    "ArchiveMalformedError",
    # 解析异常
    "ResolveError",
    "InvalidConstraintError",
    "NoMatchingVersionError",
    "CyclicDependencyError",
]
