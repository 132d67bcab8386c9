"""
日志配置

进度信息通过 loguru 输出到 stderr，stdout 只留给命令本身的输出 (click.echo)，
便于脚本读取 list / mods-dir 等命令的结果。
"""

import os
import sys
from typing import Optional, TextIO

from loguru import logger

DEBUG_ENV = "MODSTASH_DEBUG"

LOG_FORMAT = "<level>{level: <8}</level> | {message}"
DEBUG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> | {message}"
)


def resolve_level(level: Optional[str] = None) -> str:
    """显式指定的级别优先，其次是 MODSTASH_DEBUG 环境变量"""
    if level:
        return level.upper()
    if os.environ.get(DEBUG_ENV, "0").lower() in ("1", "true", "yes"):
        return "DEBUG"
    return "INFO"


def setup_logger(level: Optional[str] = None, sink: TextIO = sys.stderr) -> None:
    """
    配置 CLI 使用的日志输出

    Args:
        level: 日志级别，为 None 时根据 MODSTASH_DEBUG 决定
        sink: 输出目标
    """
    level = resolve_level(level)
    debug = level == "DEBUG"

    logger.remove()
    logger.add(
        sink,
        level=level,
        format=DEBUG_FORMAT if debug else LOG_FORMAT,
        backtrace=debug,
        diagnose=debug,
    )
    logger.debug(f"日志级别: {level}")
