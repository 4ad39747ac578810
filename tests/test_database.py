"""
Database 封装测试
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import (
    CollectionInvalid,
    OperationFailure,
    ServerSelectionTimeoutError,
    WriteError,
)

from sgad_docstore.core.exceptions import StoreConnectionError
from sgad_docstore.services.database import CERTIFICATES_STORE, COLLECTIONS, Database, get_database


class TestDatabase:
    """Database 测试"""

    def test_not_connected(self):
        db = Database(None, "certificados_db")
        assert db.is_connected is False
        assert db.name == "certificados_db"
        with pytest.raises(RuntimeError):
            db.collection("certificates")

    def test_get_database(self, mongo_client):
        assert get_database(None, "certificados_db") is None
        db = get_database(mongo_client, "certificados_db")
        assert db.is_connected
        assert db.client is mongo_client

    @pytest.mark.asyncio
    async def test_create_collection(self, certificates_db):
        """重复创建返回 False 而不是报错"""
        validator = {"$jsonSchema": {"bsonType": "object"}}
        assert await certificates_db.create_collection("certificates", validator) is True
        assert await certificates_db.create_collection("certificates", validator) is False
        assert await certificates_db.get_validator("certificates") == validator
        assert await certificates_db.list_collection_names() == ["certificates"]

    @pytest.mark.asyncio
    async def test_create_collection_namespace_exists(self):
        """服务端 NamespaceExists(48) 视为已存在"""
        raw_db = MagicMock()
        raw_db.create_collection = AsyncMock(
            side_effect=OperationFailure("Collection already exists. NS: certificados_db.certificates", code=48)
        )
        client = MagicMock()
        client.__getitem__.return_value = raw_db

        assert await Database(client, "certificados_db").create_collection("certificates", {}) is False

    @pytest.mark.asyncio
    async def test_create_collection_other_failure_propagates(self):
        raw_db = MagicMock()
        raw_db.create_collection = AsyncMock(side_effect=OperationFailure("not authorized", code=13))
        client = MagicMock()
        client.__getitem__.return_value = raw_db

        with pytest.raises(OperationFailure):
            await Database(client, "certificados_db").create_collection("certificates", {})

    @pytest.mark.asyncio
    async def test_create_collection_invalid(self):
        raw_db = MagicMock()
        raw_db.create_collection = AsyncMock(side_effect=CollectionInvalid("collection certificates already exists"))
        client = MagicMock()
        client.__getitem__.return_value = raw_db

        assert await Database(client, "certificados_db").create_collection("certificates", {}) is False

    @pytest.mark.asyncio
    async def test_create_index_with_name_option(self, certificates_db):
        """索引选项里的 name 与集合名参数互不冲突"""
        created = await certificates_db.create_index(
            "certificates",
            [("certificateNumber", 1)],
            name="certificateNumber_1",
            unique=True,
            sparse=True,
        )

        assert created == "certificateNumber_1"
        info = await certificates_db.index_information("certificates")
        assert info["certificateNumber_1"]["unique"] is True
        assert info["certificateNumber_1"]["sparse"] is True

    @pytest.mark.asyncio
    async def test_insert_rejected_by_validator(self, certificates_db):
        """集合 validator 拒绝枚举外的值（code 121）"""
        spec = CERTIFICATES_STORE.get(COLLECTIONS.CERTIFICATES)
        await certificates_db.create_collection(spec.name, spec.to_validator())

        with pytest.raises(WriteError) as exc_info:
            await certificates_db.insert_one(
                spec.name,
                {
                    "refereeId": "REF001",
                    "certificateType": "license",
                    "issuedDate": datetime(2024, 1, 15, tzinfo=timezone.utc),
                    "status": "bogus",
                },
            )
        assert exc_info.value.code == 121
        assert await certificates_db.count_documents(spec.name) == 0

    @pytest.mark.asyncio
    async def test_get_validator_missing_collection(self, certificates_db):
        assert await certificates_db.get_validator("certificates") is None

    @pytest.mark.asyncio
    async def test_connection_failure_translated(self, mongo_client, certificates_db):
        """pymongo 连接错误统一转换为 StoreConnectionError"""
        mongo_client.reachable = False

        with pytest.raises(StoreConnectionError) as exc_info:
            await certificates_db.ping()
        assert exc_info.value.error_code == "CONNECTION_ERROR"
        assert isinstance(exc_info.value.__cause__, ServerSelectionTimeoutError)

        with pytest.raises(StoreConnectionError):
            await certificates_db.list_collection_names()
        with pytest.raises(StoreConnectionError):
            await certificates_db.find_one("certificates", {})

    @pytest.mark.asyncio
    async def test_documents(self, certificates_db):
        inserted_id = await certificates_db.insert_one("certificates", {"refereeId": "REF001"})
        assert inserted_id is not None

        found = await certificates_db.find_one("certificates", {"refereeId": "REF001"})
        assert found["_id"] == inserted_id
        assert await certificates_db.count_documents("certificates") == 1
        assert await certificates_db.count_documents("certificates", {"refereeId": "REF002"}) == 0

    @pytest.mark.asyncio
    async def test_collection_stats(self, certificates_db):
        await certificates_db.create_collection("certificates", {})
        await certificates_db.create_index("certificates", [("status", 1)], name="status_1")
        await certificates_db.insert_one("certificates", {"status": "active"})

        stats = await certificates_db.get_collection_stats()
        assert stats == {"certificates": {"count": 1, "indexes": ["_id_", "status_1"]}}

    @pytest.mark.asyncio
    async def test_snapshot(self, certificates_db):
        await certificates_db.create_collection("certificates", {"$jsonSchema": {"bsonType": "object"}})
        await certificates_db.insert_one("certificates", {"status": "active"})

        snapshot = await certificates_db.snapshot()
        assert list(snapshot) == ["certificates"]
        assert snapshot["certificates"]["validator"] == {"$jsonSchema": {"bsonType": "object"}}
        assert list(snapshot["certificates"]["indexes"]) == ["_id_"]
        assert snapshot["certificates"]["documents"][0]["status"] == "active"
