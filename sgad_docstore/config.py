"""
配置管理模块

支持从环境变量、.env 文件加载配置
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from sgad_docstore.services.database.config import CERTIFICATES_DB_NAME, NOSQL_DB_NAME


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class DatabaseConfig(BaseModel):
    """数据库配置"""

    mongodb_uri: str = Field(default="mongodb://localhost:27017")
    server_selection_timeout_ms: int = Field(default=3000, gt=0)  # 快速失败

    certificates_db_name: str = Field(default=CERTIFICATES_DB_NAME)
    nosql_db_name: str = Field(default=NOSQL_DB_NAME)


class InitializerConfig(BaseModel):
    """初始化器配置"""

    strict: bool = Field(default=False, description="已存在集合的 validator 不一致时报 SchemaConflictError")


class LoggingConfig(BaseModel):
    """日志配置"""

    level: str = Field(default="INFO")
    log_dir: str = Field(default="logs")
    to_file: bool = Field(default=False)


class AppConfig(BaseModel):
    """应用配置"""

    environment: str = Field(default="development")

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    initializer: InitializerConfig = Field(default_factory=InitializerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(env_file: str | Path | None = None) -> AppConfig:
    """
    加载配置

    优先级：
    1. 环境变量
    2. .env 文件
    3. 默认值

    Args:
        env_file: .env 文件路径，默认为当前目录的 .env

    Returns:
        AppConfig: 应用配置对象

    Example:
        ```python
        from sgad_docstore.config import load_config

        config = load_config()
        print(config.database.mongodb_uri)
        ```
    """
    if env_file is None:
        env_file = Path.cwd() / ".env"

    if Path(env_file).exists():
        load_dotenv(env_file)

    return AppConfig(
        environment=os.getenv("ENVIRONMENT", "development"),
        database=DatabaseConfig(
            mongodb_uri=os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
            server_selection_timeout_ms=int(os.getenv("MONGODB_TIMEOUT_MS", "3000")),
            certificates_db_name=os.getenv("CERTIFICATES_DB_NAME", CERTIFICATES_DB_NAME),
            nosql_db_name=os.getenv("NOSQL_DB_NAME", NOSQL_DB_NAME),
        ),
        initializer=InitializerConfig(
            strict=_env_flag("INITIALIZER_STRICT"),
        ),
        logging=LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO"),
            log_dir=os.getenv("LOG_DIR", "logs"),
            to_file=_env_flag("LOG_TO_FILE"),
        ),
    )
