"""
模组清单模型

每个模组压缩包内有且仅有一个 data.json，描述模组身份、版本和依赖。
"""

import json
import zipfile
from dataclasses import dataclass, field
from typing import Dict, List

from modstash.exceptions import ArchiveMalformedError, StorageIOError

MANIFEST_NAME = "data.json"


def normalize_version(version: str) -> str:
    """去掉版本号前缀 v"""
    if version.startswith("v"):
        return version[1:]
    return version


@dataclass
class ModFile:
    """压缩包内的文件条目"""

    path: str
    type: str


@dataclass
class ModManifest:
    """
    模组清单 (data.json)。
    """

    mod_id: str
    name: str
    version: str
    description: str = ""
    authors: List[str] = field(default_factory=list)
    objects: List[ModFile] = field(default_factory=list)
    dependencies: Dict[str, str] = field(default_factory=dict)
    optional_dependencies: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict, source: str = "") -> "ModManifest":
        """
        将 data.json 内容转换为 ModManifest 对象。

        Args:
            data: data.json 内容
            source: 清单来源（压缩包路径），用于错误信息

        Raises:
            ArchiveMalformedError: 字段类型不正确
        """

        def malformed(key: str) -> ArchiveMalformedError:
            return ArchiveMalformedError(
                f"{source or MANIFEST_NAME} 的 {key} 字段格式错误",
                context={"archive": source, "field": key},
            )

        raw_objects = data.get("objects") or []
        if not isinstance(raw_objects, list) or not all(
            isinstance(obj, dict) for obj in raw_objects
        ):
            raise malformed("objects")

        for key in ("dependencies", "optional_dependencies"):
            value = data.get(key) or {}
            if not isinstance(value, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in value.items()
            ):
                raise malformed(key)

        authors = data.get("authors") or []
        if not isinstance(authors, list):
            raise malformed("authors")

        return cls(
            mod_id=str(data.get("mod_id") or ""),
            name=str(data.get("name") or ""),
            version=normalize_version(str(data.get("version") or "")),
            description=str(data.get("description") or ""),
            authors=[str(a) for a in authors],
            objects=[
                ModFile(path=str(obj.get("path", "")), type=str(obj.get("type", "")))
                for obj in raw_objects
            ],
            dependencies=dict(data.get("dependencies") or {}),
            optional_dependencies=dict(data.get("optional_dependencies") or {}),
        )

    @classmethod
    def from_archive(cls, archive_path: str) -> "ModManifest":
        """
        从模组压缩包中读取清单

        Args:
            archive_path: 压缩包路径

        Returns:
            ModManifest

        Raises:
            ArchiveMalformedError: 压缩包无法打开或缺少 data.json
            StorageIOError: 文件读取失败
        """
        try:
            with zipfile.ZipFile(archive_path) as z:
                if MANIFEST_NAME not in z.namelist():
                    raise ArchiveMalformedError(
                        f"{archive_path} 不包含 {MANIFEST_NAME}，请联系模组作者",
                        context={"archive": archive_path},
                    )
                content = z.read(MANIFEST_NAME).decode("utf-8")
        except zipfile.BadZipFile as e:
            raise ArchiveMalformedError(
                f"无法读取压缩包 {archive_path}: {e}",
                context={"archive": archive_path},
            )
        except OSError as e:
            raise StorageIOError(
                f"读取文件失败: {archive_path}",
                context={"archive": archive_path, "error": str(e)},
            )

        try:
            data = json.loads(content)
        except ValueError as e:
            raise ArchiveMalformedError(
                f"{archive_path} 中的 {MANIFEST_NAME} 不是合法 JSON: {e}",
                context={"archive": archive_path},
            )
        if not isinstance(data, dict):
            raise ArchiveMalformedError(
                f"{archive_path} 中的 {MANIFEST_NAME} 格式错误",
                context={"archive": archive_path},
            )
        return cls.from_dict(data, source=archive_path)
