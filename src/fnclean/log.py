"""日志配置"""

import logging

from rich.logging import RichHandler


def setup_logging(verbose: bool = False) -> logging.Logger:
    """配置 fnclean 日志输出到 rich 控制台

    Args:
        verbose: 是否输出 DEBUG 级别

    Returns:
        fnclean 根 logger
    """
    logger = logging.getLogger("fnclean")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger
