"""
统一异常模块

提供：
1. 初始化器异常层级
2. pymongo 异常到初始化器异常的转换
"""

from typing import Any

from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError


# =============================================================================
# 自定义异常类
# =============================================================================


class InitializerError(Exception):
    """初始化器基础异常"""

    def __init__(
        self,
        message: str,
        error_code: str = "INITIALIZER_ERROR",
        detail: Any = None,
    ):
        self.message = message
        self.error_code = error_code
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "code": self.error_code,
            "message": self.message,
            "detail": self.detail,
        }


class ConfigurationError(InitializerError):
    """集合规格定义错误（构建期发现）"""

    def __init__(self, message: str, detail: Any = None):
        super().__init__(message, error_code="CONFIGURATION_ERROR", detail=detail)


class StoreConnectionError(InitializerError):
    """存储不可达，致命错误，不产出摘要"""

    def __init__(self, message: str, detail: Any = None):
        super().__init__(message, error_code="CONNECTION_ERROR", detail=detail)


class SchemaConflictError(InitializerError):
    """已存在集合的 validator 与规格不一致（仅 strict 模式）"""

    def __init__(self, collection: str, message: str, detail: Any = None):
        self.collection = collection
        super().__init__(message, error_code="SCHEMA_CONFLICT", detail=detail)


class IndexConflictError(InitializerError):
    """已存在索引与声明的索引冲突"""

    def __init__(self, collection: str, message: str, detail: Any = None):
        self.collection = collection
        super().__init__(message, error_code="INDEX_CONFLICT", detail=detail)


class StoreOperationError(InitializerError):
    """单个集合上的服务端操作失败（非连接类错误）"""

    def __init__(self, collection: str, message: str, server_code: int | None = None):
        self.collection = collection
        self.server_code = server_code
        super().__init__(message, error_code="STORE_OPERATION_FAILED", detail={"server_code": server_code})


class ValidationRejectedError(InitializerError):
    """文档未通过集合 validator"""

    def __init__(self, collection: str, violations: list[str]):
        self.collection = collection
        self.violations = violations
        super().__init__(
            f"Document rejected by {collection} validator: {'; '.join(violations)}",
            error_code="VALIDATION_REJECTED",
            detail=violations,
        )


# =============================================================================
# pymongo 异常转换
# =============================================================================


def is_connection_failure(exc: BaseException) -> bool:
    """是否为连接类错误（ServerSelectionTimeoutError 是 ConnectionFailure 子类）"""
    return isinstance(exc, (ConnectionFailure, ServerSelectionTimeoutError))


def to_connection_error(exc: BaseException, db_name: str | None = None) -> StoreConnectionError:
    """将 pymongo 连接错误转换为 StoreConnectionError"""
    target = f" ({db_name})" if db_name else ""
    return StoreConnectionError(f"Document store unreachable{target}: {exc}", detail=str(exc))
