"""
Run ID 模块

为每次初始化运行生成短 ID，并通过 contextvars 在日志中传播：
- generate_run_id: 生成运行 ID
- ContextualCorrelator: 作用域上下文，支持嵌套

使用示例:
    with correlator.scope(generate_run_id()):
        logger.info("Initializing...")  # 日志自动包含 run_id
"""

import contextvars
from contextlib import contextmanager
from typing import Generator, NewType

from nanoid import generate


# =============================================================================
# ID 生成配置
# =============================================================================

# URL-safe 字母表（数字 + 大小写字母）
ID_GENERATION_ALPHABET: str = (
    "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)

ID_SIZE: int = 10

RunId = NewType("RunId", str)


_run_id: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="")


def generate_run_id() -> RunId:
    """
    生成唯一运行 ID

    Returns:
        RunId: 10 位 nanoid
    """
    return RunId(generate(alphabet=ID_GENERATION_ALPHABET, size=ID_SIZE))


# =============================================================================
# ContextualCorrelator
# =============================================================================


class ContextualCorrelator:
    """
    上下文关联器

    使用示例:
        with correlator.scope("R1234xyz"):
            print(correlator.run_id)  # R1234xyz

            with correlator.scope("certificates"):
                print(correlator.run_id)  # R1234xyz::certificates
    """

    @contextmanager
    def scope(self, scope_id: str) -> Generator[str, None, None]:
        """
        进入新的作用域

        Args:
            scope_id: 作用域标识符

        Yields:
            当前完整的 run_id
        """
        current = _run_id.get()
        new_scope = f"{current}::{scope_id}" if current else scope_id
        token = _run_id.set(new_scope)
        try:
            yield new_scope
        finally:
            _run_id.reset(token)

    @property
    def run_id(self) -> str:
        """获取当前 run_id"""
        return _run_id.get() or "-"


correlator = ContextualCorrelator()


def get_run_id() -> str:
    """获取当前 run_id（便捷函数）"""
    return correlator.run_id
