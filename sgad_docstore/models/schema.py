"""
集合规格模型

集合的 validator、索引和种子数据全部以纯数据声明：
- FieldType: 字段类型（bson 类型 / 封闭枚举 / 嵌套对象）
- IndexSpec: 索引定义（有序键 + unique/sparse）
- SeedDocument: 种子文档（按自然键幂等插入）
- CollectionSpec: 单个集合的完整规格
- StoreDefinition: 一个目标数据库及其集合规格

规格在构建期校验，运行期不可变。
"""

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from bson.decimal128 import Decimal128
from bson.int64 import Int64
from bson.objectid import ObjectId

from sgad_docstore.core.exceptions import ConfigurationError, ValidationRejectedError
from sgad_docstore.models.enums import BsonType

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

_MISSING = object()


def _is_int32(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, (bool, Int64))
        and _INT32_MIN <= value <= _INT32_MAX
    )


# bsonType 别名 → Python 值判定
_BSON_CHECKS = {
    BsonType.STRING: lambda v: isinstance(v, str),
    BsonType.DATE: lambda v: isinstance(v, datetime),
    BsonType.INT: _is_int32,
    BsonType.LONG: lambda v: isinstance(v, int) and not isinstance(v, bool),
    BsonType.DOUBLE: lambda v: isinstance(v, float),
    BsonType.DECIMAL: lambda v: isinstance(v, Decimal128),
    BsonType.BOOL: lambda v: isinstance(v, bool),
    BsonType.OBJECT: lambda v: isinstance(v, Mapping),
    BsonType.ARRAY: lambda v: isinstance(v, (list, tuple)),
    BsonType.OBJECT_ID: lambda v: isinstance(v, ObjectId),
    BsonType.NULL: lambda v: v is None,
}


def get_path(document: Mapping, path: str, default: Any = None) -> Any:
    """按点路径读取嵌套字段（"period.year"）"""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


# =============================================================================
# FieldType
# =============================================================================


class FieldKind(str, Enum):
    """FieldType 标签"""
    BSON = "bson"
    ENUM = "enum"
    OBJECT = "object"


@dataclass(frozen=True)
class FieldType:
    """
    字段类型（标签变体）

    - BSON: 一个或多个 bsonType
    - ENUM: 封闭字符串集合，validator 是唯一可信来源
    - OBJECT: 嵌套对象，带 required 和 properties
    """
    kind: FieldKind
    bson_types: tuple[BsonType, ...] = ()
    values: tuple[str, ...] = ()
    required: tuple[str, ...] = ()
    properties: Mapping[str, "FieldType"] = field(default_factory=dict)

    @classmethod
    def of(cls, *bson_types: BsonType | str) -> "FieldType":
        if not bson_types:
            raise ConfigurationError("FieldType.of() requires at least one bsonType")
        return cls(FieldKind.BSON, bson_types=tuple(BsonType(t) for t in bson_types))

    @classmethod
    def enum(cls, values: type[Enum] | Iterable[str]) -> "FieldType":
        if isinstance(values, type) and issubclass(values, Enum):
            resolved = tuple(member.value for member in values)
        else:
            resolved = tuple(values)
        if not resolved:
            raise ConfigurationError("FieldType.enum() requires at least one value")
        return cls(FieldKind.ENUM, values=resolved)

    @classmethod
    def object(
        cls,
        properties: Mapping[str, "FieldType"],
        required: Iterable[str] = (),
    ) -> "FieldType":
        required = tuple(required)
        unknown = [name for name in required if name not in properties]
        if unknown:
            raise ConfigurationError(f"Nested required fields not declared: {unknown}")
        return cls(FieldKind.OBJECT, required=required, properties=dict(properties))

    def to_schema(self) -> dict:
        """渲染为 $jsonSchema 片段"""
        if self.kind is FieldKind.ENUM:
            return {"enum": list(self.values)}
        if self.kind is FieldKind.OBJECT:
            schema: dict[str, Any] = {"bsonType": BsonType.OBJECT.value}
            if self.required:
                schema["required"] = list(self.required)
            schema["properties"] = {
                name: field_type.to_schema() for name, field_type in self.properties.items()
            }
            return schema
        if len(self.bson_types) == 1:
            return {"bsonType": self.bson_types[0].value}
        return {"bsonType": [t.value for t in self.bson_types]}

    def check(self, value: Any, path: str) -> list[str]:
        """返回违规描述列表，空列表表示通过"""
        if self.kind is FieldKind.ENUM:
            if isinstance(value, str) and value in self.values:
                return []
            return [f"{path}: {value!r} is not one of {list(self.values)}"]

        if self.kind is FieldKind.OBJECT:
            if not isinstance(value, Mapping):
                return [f"{path}: expected object, got {type(value).__name__}"]
            violations = [
                f"{path}.{name}: required field missing"
                for name in self.required
                if name not in value
            ]
            for name, field_type in self.properties.items():
                if name in value:
                    violations.extend(field_type.check(value[name], f"{path}.{name}"))
            return violations

        if any(_BSON_CHECKS[t](value) for t in self.bson_types):
            return []
        expected = "|".join(t.value for t in self.bson_types)
        return [f"{path}: expected bsonType {expected}, got {type(value).__name__}"]

    def enumerations(self, prefix: str) -> dict[str, frozenset[str]]:
        """收集本字段及嵌套字段的枚举集合"""
        if self.kind is FieldKind.ENUM:
            return {prefix: frozenset(self.values)}
        found: dict[str, frozenset[str]] = {}
        for name, field_type in self.properties.items():
            found.update(field_type.enumerations(f"{prefix}.{name}"))
        return found

    def accepts_subpath(self, parts: list[str]) -> bool:
        """点路径的剩余部分是否可落在本字段内"""
        if not parts:
            return True
        if self.kind is FieldKind.OBJECT:
            child = self.properties.get(parts[0])
            return child is not None and child.accepts_subpath(parts[1:])
        # 未声明结构的 object/array 允许任意子路径
        return self.kind is FieldKind.BSON and any(
            t in (BsonType.OBJECT, BsonType.ARRAY) for t in self.bson_types
        )


# =============================================================================
# IndexSpec
# =============================================================================


@dataclass(frozen=True)
class IndexSpec:
    """
    索引定义

    name 使用 MongoDB 默认命名规则（field_dir 以 "_" 连接），
    与原有库中已存在的索引名保持一致。
    """
    keys: tuple[tuple[str, int], ...]
    unique: bool = False
    sparse: bool = False

    def __post_init__(self):
        if not self.keys:
            raise ConfigurationError("IndexSpec requires at least one key")
        for field_name, direction in self.keys:
            if direction not in (1, -1):
                raise ConfigurationError(
                    f"Unsupported index direction {direction!r} on {field_name}"
                )

    @classmethod
    def of(cls, *keys: tuple[str, int], unique: bool = False, sparse: bool = False) -> "IndexSpec":
        return cls(keys=tuple(keys), unique=unique, sparse=sparse)

    @property
    def name(self) -> str:
        return "_".join(f"{field_name}_{direction}" for field_name, direction in self.keys)

    @property
    def signature(self) -> tuple[tuple[str, int], ...]:
        return self.keys

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(field_name for field_name, _ in self.keys)

    def to_options(self) -> dict[str, Any]:
        """create_index 的关键字参数"""
        options: dict[str, Any] = {"name": self.name}
        if self.unique:
            options["unique"] = True
        if self.sparse:
            options["sparse"] = True
        return options

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "keys": [list(key) for key in self.keys],
            "unique": self.unique,
            "sparse": self.sparse,
        }


# =============================================================================
# SeedDocument
# =============================================================================


@dataclass(frozen=True)
class SeedDocument:
    """
    种子文档

    natural_key 是查找过滤条件：存在则跳过，不存在才插入。
    marker=True 表示没有业务主键的信息类种子（如欢迎通知），
    natural_key 只是一次性插入的标记条件。
    """
    natural_key: Mapping[str, Any]
    document: Mapping[str, Any]
    timestamp_fields: tuple[str, ...] = ()
    marker: bool = False

    def build(self, now: datetime) -> dict:
        """生成待插入文档，时间戳字段写入 now"""
        doc = copy.deepcopy(dict(self.document))
        for field_name in self.timestamp_fields:
            doc[field_name] = now
        return doc

    def key_label(self) -> str:
        return ", ".join(f"{k}={v!r}" for k, v in self.natural_key.items())


# =============================================================================
# CollectionSpec
# =============================================================================


@dataclass(frozen=True)
class CollectionSpec:
    """
    集合规格

    构建期校验：
    - required 字段必须在 field_types 中声明
    - 索引字段（含点路径）必须在 field_types 中声明
    - 自然键必须与文档内容一致，且不包含时间戳字段
    - 种子文档必须通过 validator
    - 同一唯一索引上，种子文档的键值互不相同，且由自然键覆盖
    """
    name: str
    field_types: Mapping[str, FieldType]
    required_fields: tuple[str, ...] = ()
    indexes: tuple[IndexSpec, ...] = ()
    seed_documents: tuple[SeedDocument, ...] = ()
    description: str = ""

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("Collection name must not be empty")
        self._check_required_fields()
        self._check_index_fields()
        self._check_seed_documents()

    def _check_required_fields(self) -> None:
        missing = [f for f in self.required_fields if f not in self.field_types]
        if missing:
            raise ConfigurationError(
                f"{self.name}: required fields not declared in field_types: {missing}"
            )

    def _check_index_fields(self) -> None:
        names = [index.name for index in self.indexes]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ConfigurationError(f"{self.name}: duplicate index definitions {sorted(duplicates)}")

        for index in self.indexes:
            for path in index.fields:
                if not self.declares_path(path):
                    raise ConfigurationError(
                        f"{self.name}: index {index.name} references undeclared field {path!r}"
                    )

    def _check_seed_documents(self) -> None:
        for seed in self.seed_documents:
            for key, value in seed.natural_key.items():
                if key in seed.timestamp_fields:
                    raise ConfigurationError(
                        f"{self.name}: natural key {key!r} is a timestamp field"
                    )
                if get_path(seed.document, key, _MISSING) != value:
                    raise ConfigurationError(
                        f"{self.name}: natural key {key}={value!r} does not match seed document"
                    )
            try:
                self.validate_document(seed.build(datetime(1970, 1, 1)))
            except ValidationRejectedError as e:
                raise ConfigurationError(
                    f"{self.name}: seed [{seed.key_label()}] violates validator", detail=e.violations
                ) from e

        for index in self.indexes:
            if not index.unique:
                continue
            seen: set[tuple] = set()
            for seed in self.seed_documents:
                values = tuple(get_path(seed.document, f, _MISSING) for f in index.fields)
                present = any(v is not _MISSING for v in values)
                if index.sparse and not present:
                    continue
                if values in seen:
                    raise ConfigurationError(
                        f"{self.name}: seed documents collide on unique index {index.name}"
                    )
                seen.add(values)
                if not present:
                    continue
                uncovered = [f for f in index.fields if f not in seed.natural_key]
                if uncovered:
                    raise ConfigurationError(
                        f"{self.name}: natural key of seed [{seed.key_label()}] "
                        f"must include unique index fields {uncovered}"
                    )

    def declares_path(self, path: str) -> bool:
        """点路径是否落在已声明字段上"""
        head, *rest = path.split(".")
        field_type = self.field_types.get(head)
        return field_type is not None and field_type.accepts_subpath(rest)

    def to_validator(self) -> dict:
        """渲染为 createCollection 的 validator"""
        schema: dict[str, Any] = {"bsonType": BsonType.OBJECT.value}
        if self.required_fields:
            schema["required"] = list(self.required_fields)
        schema["properties"] = {
            name: field_type.to_schema() for name, field_type in self.field_types.items()
        }
        return {"$jsonSchema": schema}

    def enumerations(self) -> dict[str, frozenset[str]]:
        found: dict[str, frozenset[str]] = {}
        for name, field_type in self.field_types.items():
            found.update(field_type.enumerations(name))
        return found

    def validate_document(self, document: Mapping[str, Any]) -> None:
        """
        按 validator 校验文档

        Raises:
            ValidationRejectedError: 列出所有违规项
        """
        violations = [
            f"{name}: required field missing"
            for name in self.required_fields
            if name not in document
        ]
        for name, field_type in self.field_types.items():
            if name in document:
                violations.extend(field_type.check(document[name], name))
        if violations:
            raise ValidationRejectedError(self.name, violations)


# =============================================================================
# StoreDefinition
# =============================================================================


@dataclass(frozen=True)
class StoreDefinition:
    """目标数据库及其有序集合规格"""
    db_name: str
    specs: tuple[CollectionSpec, ...]
    description: str = ""

    def __post_init__(self):
        names = self.collection_names
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"{self.db_name}: duplicate collection specs {duplicates}")

    @property
    def collection_names(self) -> list[str]:
        return [spec.name for spec in self.specs]

    def get(self, name: str) -> CollectionSpec | None:
        return next((spec for spec in self.specs if spec.name == name), None)


def validator_summary(validator: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    从线上 validator 中提取可比较的部分：required 集合与枚举集合

    只支持 $jsonSchema 形式；其他形式返回空摘要。
    """
    schema = (validator or {}).get("$jsonSchema") or {}
    enums: dict[str, frozenset[str]] = {}

    def walk(properties: Mapping[str, Any], prefix: str) -> None:
        for name, body in (properties or {}).items():
            path = f"{prefix}{name}"
            if isinstance(body, Mapping):
                if "enum" in body:
                    enums[path] = frozenset(body["enum"])
                walk(body.get("properties") or {}, f"{path}.")

    walk(schema.get("properties") or {}, "")
    return {
        "required": frozenset(schema.get("required") or ()),
        "enumerations": enums,
    }
