"""
本地模组缓存

缓存目录下每个模组一个子目录，每个版本一个 <mod_id>_<version>.zip。
所有查询都通过重新扫描目录并读取压缩包清单完成，不维护内存索引，
进程中途被终止后缓存依然可以被正确识别。
"""

import os
from typing import Dict, List, Tuple

import aiofiles
from loguru import logger

from modstash.exceptions import (
    ModStashError,
    NothingDownloadedError,
    StorageIOError,
    VersionNotDownloadedError,
)
from modstash.models import ModManifest, normalize_version
from modstash.versioning import sort_versions

ARCHIVE_SUFFIX = ".zip"
PARTIAL_SUFFIX = ".part"


def list_archives(directory: str) -> List[str]:
    """列出目录下的 zip 文件（不递归）"""
    try:
        names = sorted(os.listdir(directory))
    except FileNotFoundError:
        return []
    except OSError as e:
        raise StorageIOError(
            f"无法读取目录: {directory}", context={"error": str(e)}
        )
    return [
        os.path.join(directory, name)
        for name in names
        if name.endswith(ARCHIVE_SUFFIX)
        and os.path.isfile(os.path.join(directory, name))
    ]


class LocalModStore:
    """本地模组缓存"""

    def __init__(self, cache_dir: str):
        self.cache_dir = cache_dir

    def mod_dir(self, mod_id: str) -> str:
        """模组的缓存子目录"""
        return os.path.join(self.cache_dir, mod_id)

    def archive_name(self, mod_id: str, version: str) -> str:
        return f"{mod_id}_{normalize_version(version)}{ARCHIVE_SUFFIX}"

    def _scan(self, mod_id: str) -> List[Tuple[str, ModManifest]]:
        """读取模组目录下所有压缩包的清单"""
        return [
            (path, ModManifest.from_archive(path))
            for path in list_archives(self.mod_dir(mod_id))
        ]

    def list_downloaded(self, mod_id: str) -> List[str]:
        """
        获取已下载的版本列表（升序）

        Raises:
            NothingDownloadedError: 该模组没有任何已下载版本
        """
        entries = self._scan(mod_id)
        if not entries:
            raise NothingDownloadedError(
                f"模组 {mod_id} 未下载", context={"mod_id": mod_id}
            )
        return sort_versions(manifest.version for _, manifest in entries)

    def latest_downloaded(self, mod_id: str) -> str:
        """获取已下载的最新版本"""
        return self.list_downloaded(mod_id)[-1]

    def find_archive(self, mod_id: str, version: str) -> str:
        """
        查找指定版本的压缩包路径

        Raises:
            VersionNotDownloadedError: 没有清单版本与之完全一致的压缩包
        """
        version = normalize_version(version)
        for path, manifest in self._scan(mod_id):
            if manifest.version == version:
                return path
        raise VersionNotDownloadedError(
            f"模组 {mod_id}@{version} 未找到",
            context={"mod_id": mod_id, "version": version},
        )

    def read_manifest(self, mod_id: str, version: str) -> ModManifest:
        """读取指定版本的清单"""
        return ModManifest.from_archive(self.find_archive(mod_id, version))

    def get_dependencies(self, mod_id: str, version: str) -> Dict[str, str]:
        """获取指定版本的必需依赖"""
        return self.read_manifest(mod_id, version).dependencies

    def remove(self, mod_id: str, version: str) -> str:
        """
        删除指定版本，模组目录为空时一并删除

        Returns:
            被删除的压缩包路径
        """
        path = self.find_archive(mod_id, version)
        try:
            os.remove(path)
            mod_dir = self.mod_dir(mod_id)
            if not os.listdir(mod_dir):
                os.rmdir(mod_dir)
        except OSError as e:
            raise StorageIOError(
                f"删除失败: {path}", context={"error": str(e)}
            )
        logger.info(f"[删除] {mod_id}@{normalize_version(version)}")
        return path

    async def store(self, mod_id: str, version: str, data: bytes) -> str:
        """
        写入压缩包

        先写入临时文件并校验清单，再替换为正式文件名；
        同一版本的其它压缩包会被删除，保证 (mod_id, version) 唯一。

        Args:
            mod_id: 模组 ID
            version: 版本
            data: 压缩包内容

        Returns:
            压缩包路径
        """
        mod_dir = self.mod_dir(mod_id)
        path = os.path.join(mod_dir, self.archive_name(mod_id, version))
        partial_path = path + PARTIAL_SUFFIX

        try:
            os.makedirs(mod_dir, exist_ok=True)
            async with aiofiles.open(partial_path, "wb") as f:
                await f.write(data)
        except OSError as e:
            raise StorageIOError(
                f"写入失败: {path}", context={"error": str(e)}
            )

        try:
            manifest = ModManifest.from_archive(partial_path)
        except ModStashError:
            os.remove(partial_path)
            if not os.listdir(mod_dir):
                os.rmdir(mod_dir)
            raise

        if manifest.mod_id and manifest.mod_id != mod_id:
            logger.warning(
                f"[警告] {os.path.basename(path)} 的清单 mod_id 为 {manifest.mod_id}"
            )
        if manifest.version != normalize_version(version):
            logger.warning(
                f"[警告] {os.path.basename(path)} 的清单版本为 {manifest.version}"
            )

        try:
            for existing, existing_manifest in self._scan(mod_id):
                if existing != path and existing_manifest.version == manifest.version:
                    logger.debug(f"[清理] 删除重复的压缩包 {existing}")
                    os.remove(existing)
            os.replace(partial_path, path)
        except OSError as e:
            raise StorageIOError(
                f"写入失败: {path}", context={"error": str(e)}
            )
        return path

    def mod_ids(self) -> List[str]:
        """所有有缓存的模组 ID"""
        try:
            names = sorted(os.listdir(self.cache_dir))
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageIOError(
                f"无法读取目录: {self.cache_dir}", context={"error": str(e)}
            )
        return [
            name
            for name in names
            if os.path.isdir(self.mod_dir(name)) and list_archives(self.mod_dir(name))
        ]

    def list_mods(self) -> List[ModManifest]:
        """缓存中所有压缩包的清单"""
        manifests = []
        for mod_id in self.mod_ids():
            entries = self._scan(mod_id)
            manifests.extend(
                sort_versions((m for _, m in entries), key=lambda m: m.version)
            )
        return manifests
