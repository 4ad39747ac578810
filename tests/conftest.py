"""
测试公共夹具

FakeMongoClient: 内存版 Motor 客户端，覆盖初始化器用到的异步接口
（集合创建、validator 读取、索引、文档查找/插入），并按 MongoDB 的方式
抛出 pymongo 异常，用于幂等性和中断恢复的端到端测试。
"""

import copy
from types import SimpleNamespace

import pytest
from bson.objectid import ObjectId
from pymongo.errors import (
    CollectionInvalid,
    DuplicateKeyError,
    OperationFailure,
    ServerSelectionTimeoutError,
    WriteError,
)

from sgad_docstore.models import FieldType, get_path
from sgad_docstore.services.database import Database

_MISSING = object()


def schema_violations(schema: dict, value, path: str = "$root") -> list[str]:
    """按 $jsonSchema 的 bsonType / enum / required / properties 校验取值"""
    if "enum" in schema and value not in schema["enum"]:
        return [f"{path}: {value!r} not in enum"]
    if "bsonType" in schema:
        types = schema["bsonType"]
        types = types if isinstance(types, list) else [types]
        violations = FieldType.of(*types).check(value, path)
        if violations:
            return violations
    violations = []
    if isinstance(value, dict):
        for name in schema.get("required", []):
            if name not in value:
                violations.append(f"{path}.{name}: required field missing")
        for name, child in schema.get("properties", {}).items():
            if name in value:
                violations.extend(schema_violations(child, value[name], f"{path}.{name}"))
    return violations


class FakeCursor:
    def __init__(self, items):
        self._items = [copy.deepcopy(item) for item in items]

    async def to_list(self, length=None):
        return list(self._items if length is None else self._items[:length])


class FakeCollection:
    def __init__(self, database: "FakeDatabase", name: str):
        self._database = database
        self.name = name

    @property
    def _state(self) -> dict:
        # MongoDB 在首次写入时隐式创建集合
        return self._database.ensure_namespace(self.name)

    def _matches(self, document: dict, query: dict) -> bool:
        return all(get_path(document, k, _MISSING) == v for k, v in query.items())

    async def index_information(self) -> dict:
        self._database.check_reachable()
        if self.name not in self._database.namespaces:
            return {}
        return copy.deepcopy(self._state["indexes"])

    async def create_index(self, keys, name=None, unique=False, sparse=False, **kwargs):
        self._database.check_reachable()
        keys = [tuple(k) for k in keys]
        name = name or "_".join(f"{f}_{d}" for f, d in keys)
        indexes = self._state["indexes"]

        for existing_name, body in indexes.items():
            same_keys = [tuple(k) for k in body["key"]] == keys
            same_options = body.get("unique", False) == unique and body.get("sparse", False) == sparse
            if existing_name == name and not same_keys:
                raise OperationFailure(f"Index with name: {name} already exists with different key", code=86)
            if same_keys and same_options and existing_name == name:
                return name
            if same_keys:
                raise OperationFailure(
                    f"An equivalent index already exists with the same name but different options: {existing_name}",
                    code=85,
                )

        body = {"v": 2, "key": keys}
        if unique:
            body["unique"] = True
            seen = set()
            for document in self._state["documents"]:
                values = tuple(get_path(document, f, None) for f, _ in keys)
                if values in seen:
                    raise DuplicateKeyError(f"E11000 duplicate key error index: {name}", code=11000)
                seen.add(values)
        if sparse:
            body["sparse"] = True
        indexes[name] = body
        return name

    async def find_one(self, query: dict):
        self._database.check_reachable()
        if self.name not in self._database.namespaces:
            return None
        for document in self._state["documents"]:
            if self._matches(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query: dict):
        documents = self._state["documents"] if self.name in self._database.namespaces else []
        return FakeCursor(d for d in documents if self._matches(d, query))

    async def insert_one(self, document: dict):
        self._database.check_reachable()
        document.setdefault("_id", ObjectId())
        state = self._state
        validator = state["options"].get("validator") or {}
        if "$jsonSchema" in validator and schema_violations(validator["$jsonSchema"], document):
            raise WriteError("Document failed validation", code=121)
        for name, body in state["indexes"].items():
            if not body.get("unique"):
                continue
            fields = [f for f, _ in body["key"]]
            values = tuple(get_path(document, f, _MISSING) for f in fields)
            if body.get("sparse") and all(v is _MISSING for v in values):
                continue
            for other in state["documents"]:
                if tuple(get_path(other, f, _MISSING) for f in fields) == values:
                    raise DuplicateKeyError(f"E11000 duplicate key error index: {name}", code=11000)
        state["documents"].append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def count_documents(self, query: dict) -> int:
        self._database.check_reachable()
        if self.name not in self._database.namespaces:
            return 0
        return sum(1 for d in self._state["documents"] if self._matches(d, query))


class FakeDatabase:
    def __init__(self, client: "FakeMongoClient", name: str):
        self._client = client
        self.name = name
        self.namespaces: dict[str, dict] = {}

    def check_reachable(self) -> None:
        self._client.check_reachable()

    def ensure_namespace(self, name: str, validator=None) -> dict:
        if name not in self.namespaces:
            options = {"validator": copy.deepcopy(validator)} if validator else {}
            self.namespaces[name] = {
                "options": options,
                "indexes": {"_id_": {"v": 2, "key": [("_id", 1)]}},
                "documents": [],
            }
        return self.namespaces[name]

    def __getitem__(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    async def list_collection_names(self) -> list[str]:
        self.check_reachable()
        return list(self.namespaces)

    async def create_collection(self, name: str, validator=None, **kwargs):
        self.check_reachable()
        if name in self.namespaces:
            raise CollectionInvalid(f"collection {name} already exists")
        self.ensure_namespace(name, validator)
        return FakeCollection(self, name)

    async def list_collections(self, filter=None):
        self.check_reachable()
        wanted = (filter or {}).get("name")
        return FakeCursor(
            {"name": name, "type": "collection", "options": state["options"]}
            for name, state in self.namespaces.items()
            if wanted is None or name == wanted
        )


class FakeAdmin:
    def __init__(self, client: "FakeMongoClient"):
        self._client = client

    async def command(self, name: str):
        self._client.check_reachable()
        return {"ok": 1.0}


class FakeMongoClient:
    def __init__(self):
        self._databases: dict[str, FakeDatabase] = {}
        self.admin = FakeAdmin(self)
        self.reachable = True
        self.closed = False

    def check_reachable(self) -> None:
        if not self.reachable:
            raise ServerSelectionTimeoutError("localhost:27017: [Errno 111] Connection refused")

    def __getitem__(self, name: str) -> FakeDatabase:
        if name not in self._databases:
            self._databases[name] = FakeDatabase(self, name)
        return self._databases[name]

    def close(self) -> None:
        self.closed = True


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mongo_client():
    """内存版 MongoDB 客户端"""
    return FakeMongoClient()


@pytest.fixture
def certificates_db(mongo_client):
    return Database(mongo_client, "certificados_db")


@pytest.fixture
def nosql_db(mongo_client):
    return Database(mongo_client, "sgad_nosql")
