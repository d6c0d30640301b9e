"""日志工具：fedfs 命名空间下的 logger，及 CLI 使用的 stderr 输出配置。"""

from __future__ import annotations

import logging
from typing import Any

ROOT_LOGGER_NAME = "fedfs"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# setup_logging 当前挂在 fedfs 根 logger 上的 handler
_handler: logging.Handler | None = None


def get_logger(name: str | None = None) -> logging.Logger:
    """返回 fedfs 下的子 logger；name 可为模块 __name__（已带 fedfs. 前缀时不重复添加）。"""
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(verbose: bool = False) -> logging.Logger:
    """给 fedfs 根 logger 挂一个指向当前 sys.stderr 的 handler（替换之前挂的），verbose 时为 DEBUG 级别。"""
    global _handler
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(_handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger


def summarize(obj: Any, max_length: int = 255) -> str:
    """对象字符串化并截断到 max_length。"""
    text = str(obj)
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
