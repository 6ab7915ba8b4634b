import os
import threading
from datetime import datetime
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table


class LogLevel(Enum):
    """日志级别"""
    DEBUG = 0
    INFO = 1
    SUCCESS = 2
    WARNING = 3
    ERROR = 4


_LEVEL_STYLES = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "blue",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red bold",
}


class Logger:
    """
    日志记录器（线程安全）

    支持：
    - 彩色输出（rich）
    - 表格汇总
    - 日志级别控制
    - 多线程安全（预览接口会并发拉取字段）
    """

    def __init__(self, name="BaseSnapshot", level=LogLevel.INFO, console: Optional[Console] = None):
        self.name = name
        self.level = level
        self._lock = threading.Lock()
        self.console = console or Console(stderr=True)

        # 从环境变量读取日志级别
        env_level = os.getenv("BASESNAP_LOG_LEVEL", "").upper()
        if env_level in LogLevel.__members__:
            self.level = LogLevel[env_level]

    def set_level(self, level: LogLevel):
        """设置日志级别"""
        self.level = level

    def _should_log(self, level: LogLevel) -> bool:
        return level.value >= self.level.value

    def _log(self, level: LogLevel, icon, message):
        if not self._should_log(level):
            return

        timestamp = datetime.now().strftime("%H:%M:%S")
        style = _LEVEL_STYLES[level]
        with self._lock:
            self.console.print(
                f"[cyan][{timestamp}][/cyan] [{style}]{icon} {escape(str(message))}[/{style}]",
                markup=True,
                highlight=False,
            )

    def debug(self, message, icon="🔧"):
        """调试信息 - 仅在 DEBUG 模式显示"""
        self._log(LogLevel.DEBUG, icon, message)

    def info(self, message, icon="ℹ️ "):
        self._log(LogLevel.INFO, icon, message)

    def success(self, message, icon="✅"):
        self._log(LogLevel.SUCCESS, icon, message)

    def warning(self, message, icon="⚠️ "):
        self._log(LogLevel.WARNING, icon, message)

    def error(self, message, icon="❌"):
        self._log(LogLevel.ERROR, icon, message)

    def header(self, message, icon=""):
        """打印标题"""
        if not self._should_log(LogLevel.INFO):
            return

        with self._lock:
            title = f"{icon} {message}" if icon else str(message)
            self.console.print(Panel(escape(title), style="bold magenta", width=60))

    def summary_table(self, title: str, data: dict):
        """打印汇总表格

        Args:
            title: 表格标题
            data: 字典，key 为行名，value 为值
        """
        if not self._should_log(LogLevel.INFO):
            return

        with self._lock:
            table = Table(title=escape(title), show_header=True, header_style="bold cyan")
            table.add_column("项目", style="dim")
            table.add_column("数量", justify="right")

            # 表名等来自用户输入，需转义后再交给 rich
            for key, value in data.items():
                key = str(key)
                cell = escape(str(value))
                if "失败" in key or "错误" in key:
                    cell = f"[red]{cell}[/red]"
                table.add_row(escape(key), cell)

            self.console.print(table)


# 全局日志实例
logger = Logger()
