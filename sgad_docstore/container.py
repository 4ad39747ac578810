"""
初始化入口

每个目标数据库一个可调用入口：
- initialize_store: 通用入口（任意 StoreDefinition）
- initialize_certificates_db / initialize_nosql_db: 两个固定目标库

MongoDB 客户端由调用方创建并显式传入，可在同一进程中初始化多个库。
"""

import logging
from datetime import timezone
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient

from sgad_docstore.config import DatabaseConfig
from sgad_docstore.core.exceptions import is_connection_failure, to_connection_error
from sgad_docstore.models import InitializationSummary, StoreDefinition
from sgad_docstore.services.database import (
    CERTIFICATES_DB_NAME,
    CERTIFICATES_STORE,
    NOSQL_DB_NAME,
    NOSQL_STORE,
    Database,
    with_db_name,
)
from sgad_docstore.services.initializer import SchemaInitializer

logger = logging.getLogger(__name__)


async def connect(config: DatabaseConfig) -> AsyncIOMotorClient:
    """
    创建 MongoDB 客户端并探测连接

    Raises:
        StoreConnectionError: ping 失败
    """
    logger.info(f"Connecting to MongoDB: {config.mongodb_uri}")

    # 读取时返回带 UTC 时区的 datetime
    client = AsyncIOMotorClient(
        config.mongodb_uri,
        serverSelectionTimeoutMS=config.server_selection_timeout_ms,
        tz_aware=True,
        tzinfo=timezone.utc,
    )
    try:
        await client.admin.command("ping")
    except Exception as e:
        client.close()
        if is_connection_failure(e):
            raise to_connection_error(e) from e
        raise
    return client


async def initialize_store(
    mongo_client: Any,
    store: StoreDefinition,
    strict: bool = False,
    db_name: str | None = None,
) -> InitializationSummary:
    """
    初始化单个目标数据库

    Args:
        mongo_client: MongoDB 客户端
        store: 集合规格
        strict: 是否启用 validator 冲突检测
        db_name: 覆盖 store 的默认数据库名

    Returns:
        InitializationSummary
    """
    if db_name:
        store = with_db_name(store, db_name)
    database = Database(mongo_client, store.db_name)
    await database.ping()
    return await SchemaInitializer(database, strict=strict).run(store.specs)


async def initialize_certificates_db(
    mongo_client: Any,
    db_name: str = CERTIFICATES_DB_NAME,
    strict: bool = False,
) -> InitializationSummary:
    """初始化 certificados_db"""
    return await initialize_store(mongo_client, CERTIFICATES_STORE, strict=strict, db_name=db_name)


async def initialize_nosql_db(
    mongo_client: Any,
    db_name: str = NOSQL_DB_NAME,
    strict: bool = False,
) -> InitializationSummary:
    """初始化 sgad_nosql"""
    return await initialize_store(mongo_client, NOSQL_STORE, strict=strict, db_name=db_name)
