"""
已安装模组

安装目标下的 mods 目录平铺存放压缩包，文件名不做约定，
是否安装某个模组只通过读取压缩包清单判断。
"""

import os
import shutil
from typing import List, Optional

from loguru import logger

from modstash.exceptions import NotInstalledError, StorageIOError
from modstash.models import ModManifest, normalize_version
from modstash.versioning import sort_versions
from modstash.store.local import list_archives


class InstalledMods:
    """安装目标中的模组"""

    def __init__(self, target: str):
        self.target = target
        self.mods_dir = os.path.join(target, "mods")

    def _scan(self) -> List[tuple[str, ModManifest]]:
        return [
            (path, ModManifest.from_archive(path))
            for path in list_archives(self.mods_dir)
        ]

    def list_installed(self) -> List[ModManifest]:
        """所有已安装模组的清单"""
        return [manifest for _, manifest in self._scan()]

    def versions_of(self, mod_id: str) -> List[str]:
        """已安装的指定模组版本（升序）"""
        return sort_versions(
            manifest.version
            for _, manifest in self._scan()
            if manifest.mod_id == mod_id
        )

    def is_installed(self, mod_id: str) -> bool:
        """是否安装了该模组的任意版本"""
        return len(self.versions_of(mod_id)) > 0

    def install_archive(self, archive_path: str) -> str:
        """
        复制压缩包到 mods 目录

        Returns:
            安装后的文件路径
        """
        dest_path = os.path.join(self.mods_dir, os.path.basename(archive_path))
        try:
            os.makedirs(self.mods_dir, exist_ok=True)
            shutil.copy2(archive_path, dest_path)
        except OSError as e:
            raise StorageIOError(
                f"复制文件失败: {archive_path}", context={"error": str(e)}
            )
        return dest_path

    def uninstall(self, mod_id: str, version: Optional[str] = None) -> List[str]:
        """
        卸载模组

        Args:
            mod_id: 模组 ID
            version: 版本，为 None 时卸载所有版本

        Returns:
            被删除的文件列表

        Raises:
            NotInstalledError: 没有匹配的已安装模组
        """
        wanted = normalize_version(version) if version else None
        removed = []
        for path, manifest in self._scan():
            if manifest.mod_id != mod_id:
                continue
            if wanted is not None and manifest.version != wanted:
                continue
            try:
                os.remove(path)
            except OSError as e:
                raise StorageIOError(
                    f"删除失败: {path}", context={"error": str(e)}
                )
            logger.info(f"[卸载] {mod_id}@{manifest.version}")
            removed.append(path)

        if not removed:
            target = f"{mod_id}@{wanted}" if wanted else mod_id
            raise NotInstalledError(
                f"模组 {target} 未安装",
                context={"mod_id": mod_id, "version": wanted, "target": self.target},
            )
        return removed
