"""
统一日志模块

初始化器的每一行日志都带上运行上下文：
    2026-10-19T12:00:00.123Z [INFO    ] [Xk3v9Qa1bc] [certificados_db:certificates] ✓ Index created

- run_id 来自 core.correlation
- db_name 由 LogContext 注入，步骤路径由 LogContext.scope 嵌套而成
- LogContext.operation 记录单个集合/步骤的耗时

使用示例:
    with LogContext(db_name="certificados_db"):
        with LogContext.operation("certificates"):
            logger.info("Creating indexes")
"""

from __future__ import annotations
import contextvars
import logging
import os
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterator

from sgad_docstore.core.correlation import get_run_id


class LogLevel(str, Enum):
    """日志级别（与 LOG_LEVEL 取值一致）"""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

    def to_logging_level(self) -> int:
        return logging.getLevelName(self.value)

    @classmethod
    def parse(cls, value: str | None, default: "LogLevel" = None) -> "LogLevel":
        """宽松解析，未知取值回落到 default（默认 INFO）"""
        try:
            return cls((value or "").strip().upper())
        except ValueError:
            return default or cls.INFO


# 驱动自身的日志只保留告警
_DRIVER_LOGGERS = ("pymongo", "motor")

_log_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "log_context", default={}
)
_step_path: contextvars.ContextVar[tuple[str, ...]] = contextvars.ContextVar(
    "step_path", default=()
)


class LogContext:
    """
    日志上下文

    作为上下文管理器使用时注入键值（db_name 等）；
    scope / operation 额外压入一个步骤名。
    """

    def __init__(self, **kwargs: Any):
        self._props = kwargs
        self._token: contextvars.Token | None = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set({**_log_context.get(), **self._props})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        return _log_context.get().get(key, default)

    @classmethod
    def step(cls) -> str | None:
        """当前步骤路径，如 "certificates" 或 "certificates/seeds" """
        path = _step_path.get()
        return "/".join(path) if path else None

    @classmethod
    @contextmanager
    def scope(cls, name: str, **kwargs: Any) -> Iterator[None]:
        path_token = _step_path.set((*_step_path.get(), name))
        try:
            with cls(**kwargs):
                yield
        finally:
            _step_path.reset(path_token)

    @classmethod
    @contextmanager
    def operation(
        cls,
        name: str,
        level: LogLevel = LogLevel.DEBUG,
        **kwargs: Any,
    ) -> Iterator[None]:
        """
        计时步骤：正常结束按 level 记录耗时，异常时记 error 并继续抛出
        """
        logger = logging.getLogger("sgad_docstore.operation")
        started = time.perf_counter()
        with cls.scope(name, **kwargs):
            try:
                yield
            except Exception as e:
                elapsed_ms = (time.perf_counter() - started) * 1000
                logger.error(f"{name} failed after {elapsed_ms:.0f}ms: {type(e).__name__}: {e}")
                raise
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.log(level.to_logging_level(), f"{name} done in {elapsed_ms:.0f}ms")


class ContextFormatter(logging.Formatter):
    """
    输出格式：timestamp [LEVEL] [run_id] [db:step] message

    run_id 只取最外层运行 ID；未处于运行中时显示 "*"。
    """

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        ct = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return ct.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ct.microsecond // 1000:03d}Z"

    def format(self, record: logging.LogRecord) -> str:
        run_id = get_run_id()
        rid = "*" if run_id == "-" else run_id.split("::")[0]

        db_name = LogContext.get("db_name")
        step = LogContext.step()
        if db_name and step:
            record.ctx = f"[{rid}] [{db_name}:{step}]"
        elif db_name:
            record.ctx = f"[{rid}] [{db_name}]"
        else:
            record.ctx = f"[{rid}]"
        return super().format(record)


_initialized = False


def setup_logging(
    log_dir: str | None = None,
    log_level: str = "INFO",
    console: bool = True,
    file: bool = False,
) -> str | None:
    """
    配置根日志器（进程内只生效一次）

    Args:
        log_dir: 文件日志目录，默认 LOG_DIR 或 "logs"
        log_level: 日志级别，LOG_LEVEL 环境变量优先
        console: 输出到 stderr
        file: 额外写入 <log_dir>/init-YYYY-MM-DD.log（按天追加）

    Returns:
        日志文件路径（启用文件输出时）
    """
    global _initialized
    if _initialized:
        return None

    level = LogLevel.parse(os.getenv("LOG_LEVEL") or log_level).to_logging_level()
    formatter = ContextFormatter("%(asctime)s [%(levelname)-8s] %(ctx)s %(message)s")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    log_file_path = None
    if file:
        log_path = Path(log_dir or os.getenv("LOG_DIR", "logs"))
        log_path.mkdir(parents=True, exist_ok=True)
        log_file = log_path / f"init-{datetime.now(timezone.utc):%Y-%m-%d}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        log_file_path = str(log_file)

    for name in _DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _initialized = True
    return log_file_path


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "LogLevel",
    "LogContext",
    "ContextFormatter",
    "setup_logging",
    "get_logger",
]
