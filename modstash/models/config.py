"""
配置模型

定义 ModStash 的运行配置，支持从字典 / 配置文件加载。
"""

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import toml
import yaml

from modstash.exceptions import ConfigParseError, ConfigValidationError

FICSIT_SITE_URL = "https://api.ficsit.app"
FICSIT_API_URL = FICSIT_SITE_URL + "/v2/query"


def default_cache_dir() -> str:
    """默认缓存目录: $MODSTASH_HOME/mods 或 ~/.modstash/mods"""
    home = os.environ.get("MODSTASH_HOME") or os.path.join(
        os.path.expanduser("~"), ".modstash"
    )
    return os.path.join(home, "mods")


@dataclass
class ModStashConfig:
    """ModStash 配置"""

    cache_dir: str = field(default_factory=default_cache_dir)
    api_url: str = FICSIT_API_URL
    site_url: str = FICSIT_SITE_URL
    install_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModStashConfig":
        """
        从字典创建配置

        未知字段会被拒绝，避免拼写错误被静默忽略。
        """
        if not isinstance(data, dict):
            raise ConfigValidationError("配置必须是一个字典")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigValidationError(
                f"未知的配置项: {', '.join(unknown)}",
                context={"unknown": unknown},
            )

        for key, value in data.items():
            if value is not None and not isinstance(value, str):
                raise ConfigValidationError(
                    f"配置项 {key} 必须是字符串",
                    context={"key": key},
                )

        config = cls(**{k: v for k, v in data.items() if v is not None})
        config.cache_dir = os.path.expanduser(config.cache_dir)
        if config.install_path:
            config.install_path = os.path.expanduser(config.install_path)
        return config

    def merge(self, **overrides: Optional[str]) -> "ModStashConfig":
        """用非空参数覆盖配置项"""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update({k: v for k, v in overrides.items() if v is not None})
        return ModStashConfig.from_dict(data)


def load_config_file(config_path: str) -> Dict[str, Any]:
    """
    加载配置文件

    Args:
        config_path: 配置文件路径 (.toml / .json / .yaml / .yml)

    Returns:
        配置字典
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigParseError(f"配置文件不存在: {config_path}")

    suffix = path.suffix.lower()

    try:
        if suffix == ".toml":
            data = toml.load(config_path)
        elif suffix == ".json":
            data = json.loads(path.read_text())
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(path.read_text())
        else:
            raise ConfigParseError(f"不支持的配置文件格式: {suffix}")
    except (toml.TomlDecodeError, yaml.YAMLError, ValueError) as e:
        raise ConfigParseError(
            f"配置文件解析失败: {e}", context={"path": config_path}
        )

    if data is None:
        return {}
    # 允许把配置放在 [modstash] 段下
    if isinstance(data, dict) and isinstance(data.get("modstash"), dict):
        return data["modstash"]
    return data


def load_config(config_path: Optional[str] = None) -> ModStashConfig:
    """加载配置，未指定文件时使用默认值"""
    if config_path is None:
        return ModStashConfig()
    return ModStashConfig.from_dict(load_config_file(config_path))
