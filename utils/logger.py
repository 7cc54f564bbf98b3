"""
Logger Configuration
统一日志配置 (CLI 与 HTTP 入口调用一次，其余模块只用 logging.getLogger(__name__))
"""
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Union

from rich.logging import RichHandler
from rich.console import Console


# 输出到 stderr，stdout 留给 CLI 的 JSON 结果
console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_FORMAT_SIMPLE = "%(message)s"

LOG_DIR = Path(__file__).parent.parent / "logs"

# 这些库在 INFO 级别会逐请求打印
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "urllib3")


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def setup_logger(
    name: Optional[str] = None,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    use_rich: bool = True,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> logging.Logger:
    """
    设置日志记录器

    Args:
        name: 日志记录器名称 (None 表示根记录器，覆盖所有模块日志)
        level: 日志级别，可以是 "DEBUG" 这样的字符串
        log_file: 写入 logs/ 目录下的文件名 (可选)
        use_rich: 是否使用 Rich 美化输出
        quiet: 压到 WARNING 的第三方记录器

    Returns:
        配置好的 Logger 实例
    """
    level = _coerce_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    for noisy in quiet:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    # 避免重复添加 handler
    if logger.handlers:
        return logger

    if use_rich:
        console_handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_DIR / log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger
