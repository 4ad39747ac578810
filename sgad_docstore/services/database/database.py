"""
数据库管理器

封装单个目标数据库（Motor）的访问，统一转换 pymongo 连接错误。
数据库句柄总是显式传入，不使用进程级单例。
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from pymongo.errors import CollectionInvalid, OperationFailure

from sgad_docstore.core.exceptions import is_connection_failure, to_connection_error
from sgad_docstore.services.database.config import NAMESPACE_EXISTS

logger = logging.getLogger(__name__)


class Database:
    """
    数据库管理器

    Usage:
        db = Database(mongo_client, "certificados_db")
        await db.ping()
        names = await db.list_collection_names()
    """

    def __init__(self, mongo_client: Any | None, db_name: str):
        self._client = mongo_client
        self._db_name = db_name
        self._db = mongo_client[db_name] if mongo_client is not None else None

        if self._db is not None:
            logger.info(f"Database connected: {db_name}")

    @property
    def is_connected(self) -> bool:
        """是否已连接"""
        return self._db is not None

    @property
    def name(self) -> str:
        """数据库名称"""
        return self._db_name

    @property
    def client(self) -> Any:
        """获取 MongoDB 客户端"""
        return self._client

    def collection(self, name: str) -> Any:
        """
        获取集合

        Args:
            name: 集合名称（建议使用 COLLECTIONS 常量）

        Returns:
            MongoDB Collection 对象

        Raises:
            RuntimeError: 数据库未连接
        """
        if self._db is None:
            raise RuntimeError("Database not connected")
        return self._db[name]

    @contextmanager
    def _guard(self) -> Iterator[None]:
        """连接类错误统一转换为 StoreConnectionError"""
        try:
            yield
        except Exception as e:
            if is_connection_failure(e):
                raise to_connection_error(e, self._db_name) from e
            raise

    # =========================================================================
    # 集合
    # =========================================================================

    async def ping(self) -> None:
        """探测连接，失败抛出 StoreConnectionError"""
        with self._guard():
            await self._client.admin.command("ping")

    async def list_collection_names(self) -> list[str]:
        if self._db is None:
            raise RuntimeError("Database not connected")
        with self._guard():
            return sorted(await self._db.list_collection_names())

    async def create_collection(self, collection_name: str, validator: dict) -> bool:
        """
        创建带 validator 的集合

        Returns:
            True 表示本次创建；False 表示集合已存在（并发创建视为成功）
        """
        if self._db is None:
            raise RuntimeError("Database not connected")
        with self._guard():
            try:
                await self._db.create_collection(collection_name, validator=validator)
                return True
            except CollectionInvalid:
                return False
            except OperationFailure as e:
                if e.code == NAMESPACE_EXISTS:
                    return False
                raise

    async def get_validator(self, collection_name: str) -> dict | None:
        """读取线上集合的 validator，不存在时返回 None"""
        if self._db is None:
            raise RuntimeError("Database not connected")
        with self._guard():
            cursor = await self._db.list_collections(filter={"name": collection_name})
            infos = await cursor.to_list(length=None)
        if not infos:
            return None
        return (infos[0].get("options") or {}).get("validator")

    # =========================================================================
    # 索引与文档
    # =========================================================================

    async def index_information(self, collection_name: str) -> dict[str, dict]:
        with self._guard():
            return await self.collection(collection_name).index_information()

    async def create_index(self, collection_name: str, keys: list[tuple[str, int]], **options: Any) -> str:
        with self._guard():
            return await self.collection(collection_name).create_index(keys, **options)

    async def find_one(self, collection_name: str, query: dict) -> dict | None:
        with self._guard():
            return await self.collection(collection_name).find_one(query)

    async def insert_one(self, collection_name: str, document: dict) -> Any:
        """插入文档，返回 inserted_id"""
        with self._guard():
            result = await self.collection(collection_name).insert_one(document)
            return result.inserted_id

    async def count_documents(self, collection_name: str, query: dict | None = None) -> int:
        with self._guard():
            return await self.collection(collection_name).count_documents(query or {})

    # =========================================================================
    # 统计与快照
    # =========================================================================

    async def get_collection_stats(self) -> dict:
        """获取集合统计信息"""
        if self._db is None:
            return {}

        stats = {}
        for collection_name in await self.list_collection_names():
            stats[collection_name] = {
                "count": await self.count_documents(collection_name),
                "indexes": sorted(await self.index_information(collection_name)),
            }
        return stats

    async def snapshot(self) -> dict:
        """
        数据库完整状态快照（集合 → validator、索引、文档）

        用于比较两次初始化之后的状态是否一致。
        """
        state = {}
        for collection_name in await self.list_collection_names():
            with self._guard():
                cursor = self.collection(collection_name).find({})
                documents = await cursor.to_list(length=None)
            state[collection_name] = {
                "validator": await self.get_validator(collection_name),
                "indexes": await self.index_information(collection_name),
                "documents": sorted(documents, key=lambda d: str(d.get("_id"))),
            }
        return state


def get_database(mongo_client: Any | None, db_name: str) -> Database | None:
    """
    获取数据库实例

    Args:
        mongo_client: MongoDB 客户端
        db_name: 数据库名称

    Returns:
        Database 实例，未连接时返回 None
    """
    if mongo_client is None:
        return None
    return Database(mongo_client, db_name)
