"""
ModStash 存储层

包含本地缓存和安装目标的目录扫描与读写。
"""

from modstash.store.local import LocalModStore
from modstash.store.installed import InstalledMods

__all__ = [
    "LocalModStore",
    "InstalledMods",
]
