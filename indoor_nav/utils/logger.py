"""
日志系统模块
统一的日志配置和管理
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from logging.handlers import RotatingFileHandler

from indoor_nav import config


def setup_logger(
    name: str,
    log_file: str = None,
    level: int = logging.INFO,
    console: bool = True,
    max_bytes: int = 10*1024*1024,  # 10MB
    backup_count: int = 5
) -> logging.Logger:
    """配置日志记录器

    Args:
        name: 日志记录器名称
        log_file: 日志文件路径（None则只输出到控制台）
        level: 日志级别
        console: 是否输出到控制台
        max_bytes: 单个日志文件最大字节数
        backup_count: 保留的备份文件数量

    Returns:
        配置好的Logger对象

    Example:
        >>> nav_logger = setup_logger('indoor_nav.navigation', 'data/logs/nav.log')
        >>> nav_logger.info('开始导航')
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # 避免重复添加handler
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt=config.LOG_FORMAT,
        datefmt=config.LOG_DATE_FORMAT
    )

    # 文件处理器（带轮转）
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # 控制台处理器
    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def setup_all_loggers(base_dir: str = None, level: int = None):
    """按配置文件设置 indoor_nav 日志

    子模块统一使用 logging.getLogger(__name__)，因此只需要配置
    'indoor_nav' 根记录器，子记录器会向上传播。

    Args:
        base_dir: 日志目录（None则使用config.LOG_DIR）
        level: 日志级别（None则使用config.LOG_LEVEL）

    Returns:
        配置好的根Logger
    """
    if base_dir is None:
        base_dir = config.LOG_DIR
    if level is None:
        level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    log_file = None
    if config.ENABLE_FILE_LOG:
        timestamp = datetime.now().strftime('%Y%m%d')
        log_file = Path(base_dir) / f'indoor_nav_{timestamp}.log'

    return setup_logger(
        'indoor_nav',
        log_file=log_file,
        level=level,
        console=config.ENABLE_CONSOLE_LOG
    )
