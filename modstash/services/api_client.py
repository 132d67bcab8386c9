"""
注册中心客户端

CatalogBase 定义版本目录的通用逻辑（排序、最新版本、下载链接），
具体传输由子类实现；FicsitClient 通过 aiohttp 访问 ficsit.app GraphQL API。
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import aiohttp
from loguru import logger

from modstash.exceptions import (
    APIError,
    DownloadNetworkError,
    NoVersionsAvailableError,
    RemoteNotFoundError,
    RemoteVersionNotFoundError,
)
from modstash.models import CatalogVersion, Stability
from modstash.models.config import FICSIT_API_URL, FICSIT_SITE_URL
from modstash.versioning import parse_version, sort_versions


MOD_VERSIONS_QUERY = """
query($modID: ModID!){
    getMod(modId: $modID)
    {
        versions
        {
            version,
            stability
        }
    }
}
"""

MOD_LATEST_QUERY = """
query($modID: ModID!){
    getMod(modId: $modID)
    {
        latestVersions
        {
            alpha { version }
            beta { version }
            release { version }
        }
    }
}
"""

MOD_LINK_QUERY = """
query($modID: ModID!, $version: String!){
    getMod(modId: $modID)
    {
        version(version: $version)
        {
            link
        }
    }
}
"""


class CatalogBase(ABC):
    """版本目录基类"""

    @abstractmethod
    async def _query_versions(self, mod_id: str) -> Optional[List[dict]]:
        """
        查询模组的全部版本

        Returns:
            [{"version": ..., "stability": ...}]，模组不存在时返回 None
        """

    @abstractmethod
    async def _query_latest(self, mod_id: str) -> Optional[Dict[str, Optional[str]]]:
        """
        查询每个稳定性等级的最新版本

        Returns:
            {"alpha": "x", "beta": None, ...}，模组不存在时返回 None
        """

    @abstractmethod
    async def _query_link(self, mod_id: str, version: str) -> Optional[str]:
        """
        查询指定版本的下载链接

        Raises:
            RemoteNotFoundError: 模组不存在

        Returns:
            下载链接，版本不存在时返回 None
        """

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """下载链接内容"""

    async def list_versions(self, mod_id: str) -> List[CatalogVersion]:
        """
        获取模组的所有版本，按语义化版本升序排列

        Raises:
            RemoteNotFoundError: 注册中心没有该模组
        """
        response = await self._query_versions(mod_id)
        if response is None:
            raise RemoteNotFoundError(
                f"模组 {mod_id} 不存在", context={"mod_id": mod_id}
            )
        versions = [CatalogVersion.from_ficsit(v) for v in response]
        return sort_versions(versions, key=lambda v: v.version)

    async def latest_version(self, mod_id: str) -> str:
        """
        获取模组最新版本

        取 alpha / beta / release 各自的最新版本，再按语义化版本取最大值，
        因此更高的 alpha 可以胜过较低的 release。

        Raises:
            RemoteNotFoundError: 注册中心没有该模组
            NoVersionsAvailableError: 没有任何可用版本
        """
        latest = await self._query_latest(mod_id)
        if latest is None:
            raise RemoteNotFoundError(
                f"模组 {mod_id} 不存在", context={"mod_id": mod_id}
            )

        candidates = []
        for stability in Stability:
            version = latest.get(stability.value)
            if version:
                candidates.append(version)

        if not candidates:
            raise NoVersionsAvailableError(
                f"模组 {mod_id} 没有可用版本", context={"mod_id": mod_id}
            )

        ordered = sort_versions(candidates)
        parsed = [v for v in ordered if parse_version(v) is not None]
        return parsed[-1] if parsed else ordered[-1]

    async def download_link(self, mod_id: str, version: str) -> str:
        """
        获取指定版本的下载链接

        Raises:
            RemoteVersionNotFoundError: 注册中心没有该版本
        """
        link = await self._query_link(mod_id, version)
        if not link:
            raise RemoteVersionNotFoundError(
                f"模组 {mod_id} 没有版本 {version}",
                context={"mod_id": mod_id, "version": version},
            )
        return link

    async def download_version(self, mod_id: str, version: str) -> tuple[str, bytes]:
        """
        下载指定版本的压缩包

        部分模组历史上用 "v" 前缀标记版本，找不到时带前缀重试一次。

        Returns:
            tuple: (注册中心中匹配的版本字符串, 压缩包内容)
        """
        try:
            link = await self.download_link(mod_id, version)
        except RemoteVersionNotFoundError:
            if version.startswith("v"):
                raise
            prefixed = f"v{version}"
            logger.debug(f"[查询] {mod_id}@{version} 不存在，尝试 {prefixed}")
            link = await self.download_link(mod_id, prefixed)
            version = prefixed

        return version, await self.fetch(link)

    async def close(self):
        """释放资源"""

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()


class FicsitClient(CatalogBase):
    """ficsit.app GraphQL 客户端"""

    def __init__(
        self,
        api_url: str = FICSIT_API_URL,
        site_url: str = FICSIT_SITE_URL,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_url = api_url
        self.site_url = site_url.rstrip("/")
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def _request(self, query: str, variables: dict) -> dict:
        """发送 GraphQL 请求，返回 data 字段"""
        try:
            async with self.session.post(
                self.api_url, json={"query": query, "variables": variables}
            ) as response:
                if response.status != 200:
                    raise APIError(
                        f"API 请求失败 (状态码: {response.status})",
                        response=response,
                    )
                payload = await response.json()
        except aiohttp.ClientError as e:
            raise APIError(
                f"API 请求失败: {e}", context={"url": self.api_url}
            )

        if payload.get("errors"):
            messages = "; ".join(
                str(err.get("message", err)) for err in payload["errors"]
            )
            raise APIError(
                f"API 返回错误: {messages}", context={"variables": variables}
            )
        return payload.get("data") or {}

    async def _query_versions(self, mod_id: str) -> Optional[List[dict]]:
        data = await self._request(MOD_VERSIONS_QUERY, {"modID": mod_id})
        mod = data.get("getMod")
        if mod is None:
            return None
        return mod.get("versions") or []

    async def _query_latest(self, mod_id: str) -> Optional[Dict[str, Optional[str]]]:
        data = await self._request(MOD_LATEST_QUERY, {"modID": mod_id})
        mod = data.get("getMod")
        if mod is None:
            return None
        latest = mod.get("latestVersions") or {}
        return {
            stability.value: (latest.get(stability.value) or {}).get("version")
            for stability in Stability
        }

    async def _query_link(self, mod_id: str, version: str) -> Optional[str]:
        data = await self._request(
            MOD_LINK_QUERY, {"modID": mod_id, "version": version}
        )
        mod = data.get("getMod")
        if mod is None:
            raise RemoteNotFoundError(
                f"模组 {mod_id} 不存在", context={"mod_id": mod_id}
            )
        version_info = mod.get("version")
        if not version_info or not version_info.get("link"):
            return None
        link = version_info["link"]
        if link.startswith("http://") or link.startswith("https://"):
            return link
        return self.site_url + link

    async def fetch(self, url: str) -> bytes:
        """下载压缩包内容"""
        logger.debug(f"[下载] {url}")
        try:
            async with self.session.get(url) as response:
                if response.status != 200:
                    raise DownloadNetworkError(
                        f"HTTP {response.status}",
                        context={"url": url, "status": response.status},
                    )
                return await response.read()
        except aiohttp.ClientError as e:
            raise DownloadNetworkError(
                f"下载失败: {e}", context={"url": url}
            )

    async def close(self):
        """关闭客户端"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()
