"""
核心基础设施模块

提供日志、运行 ID、异常等基础功能
"""

from sgad_docstore.core.correlation import (
    correlator,
    generate_run_id,
    get_run_id,
    ContextualCorrelator,
    RunId,
)
from sgad_docstore.core.logging import (
    setup_logging,
    get_logger,
    LogContext,
    LogLevel,
)
from sgad_docstore.core.exceptions import (
    InitializerError,
    ConfigurationError,
    StoreConnectionError,
    SchemaConflictError,
    IndexConflictError,
    StoreOperationError,
    ValidationRejectedError,
)

__all__ = [
    # Correlation
    "correlator",
    "generate_run_id",
    "get_run_id",
    "ContextualCorrelator",
    "RunId",
    # Logging
    "setup_logging",
    "get_logger",
    "LogContext",
    "LogLevel",
    # Exceptions
    "InitializerError",
    "ConfigurationError",
    "StoreConnectionError",
    "SchemaConflictError",
    "IndexConflictError",
    "StoreOperationError",
    "ValidationRejectedError",
]
