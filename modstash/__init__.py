"""
ModStash

模组下载、依赖解析与安装管理。
"""

__version__ = "0.1.0"
