"""
Schema 初始化器

对一个目标数据库按声明顺序应用集合规格：
    ensure_collection → ensure_indexes → ensure_seed_rows → 审计记录 + 摘要

幂等保证：
- 集合已存在：不重建，不迁移 validator（不一致时 strict 模式报错，否则记 warning）
- 索引已存在且一致：跳过；同键不同 unique/sparse：IndexConflictError
- 种子文档按自然键查找，已存在则跳过，从不覆盖已有数据
- 并发创建导致的"已存在"/重复键视为成功

目标库状态（absent → schema-declared → indexed → seeded）的任何中间态
都可以直接重新 run 补齐，中途取消无需回滚。
"""

import logging
from typing import Callable, Sequence

from pymongo.errors import DuplicateKeyError, OperationFailure, WriteError

from sgad_docstore import __version__
from sgad_docstore.core.correlation import correlator, generate_run_id
from sgad_docstore.core.exceptions import (
    ConfigurationError,
    IndexConflictError,
    InitializerError,
    SchemaConflictError,
    StoreConnectionError,
    StoreOperationError,
    ValidationRejectedError,
)
from sgad_docstore.core.logging import LogContext
from sgad_docstore.models import (
    AuditAction,
    CollectionReport,
    CollectionSpec,
    IndexSpec,
    InitializationSummary,
    SeedOutcome,
    validator_summary,
)
from sgad_docstore.services.database.collections import COLLECTIONS
from sgad_docstore.services.database.config import (
    DOCUMENT_VALIDATION_FAILURE,
    DUPLICATE_KEY,
    INDEX_KEY_SPECS_CONFLICT,
    INDEX_OPTIONS_CONFLICT,
    SYSTEM_USER,
)
from sgad_docstore.services.database.database import Database
from sgad_docstore.utils.datetime import utc_now

logger = logging.getLogger(__name__)


def _key_signature(key: Sequence) -> tuple:
    """index_information() 的 key 归一化为 ((field, int_direction), ...)"""
    normalized = []
    for field_name, direction in key:
        if isinstance(direction, (int, float)) and not isinstance(direction, bool):
            direction = int(direction)
        normalized.append((field_name, direction))
    return tuple(normalized)


class SchemaInitializer:
    """
    Schema 初始化器

    无跨调用状态；唯一的外部状态是传入的 Database 句柄。

    Usage:
        initializer = SchemaInitializer(Database(client, "certificados_db"))
        summary = await initializer.run(CERTIFICATES_STORE.specs)
    """

    def __init__(
        self,
        database: Database,
        strict: bool = False,
        audit_collection: str = COLLECTIONS.AUDIT_LOGS,
        clock: Callable = utc_now,
    ):
        """
        Args:
            database: 目标数据库
            strict: 已存在集合的 validator 与规格不一致时是否抛出 SchemaConflictError
            audit_collection: 写入初始化审计记录的集合
            clock: 种子文档时间戳来源
        """
        self._db = database
        self._strict = strict
        self._audit_collection = audit_collection
        self._clock = clock

    @property
    def strict(self) -> bool:
        return self._strict

    # =========================================================================
    # ensure_collection
    # =========================================================================

    async def ensure_collection(self, spec: CollectionSpec) -> bool:
        """
        确保集合存在

        Returns:
            True 表示本次创建了集合

        Raises:
            SchemaConflictError: strict 模式下线上 validator 与规格不一致
        """
        if spec.name not in await self._db.list_collection_names():
            if await self._db.create_collection(spec.name, spec.to_validator()):
                logger.info(f"✓ Collection created: {spec.name}")
                return True
            logger.info(f"○ Collection created concurrently: {spec.name}")
        else:
            logger.debug(f"○ Collection already exists: {spec.name}")

        try:
            await self._check_schema(spec)
        except SchemaConflictError as e:
            if self._strict:
                raise
            logger.warning(f"⚠ {e.message} (not migrated): {e.detail}")
        return False

    async def _check_schema(self, spec: CollectionSpec) -> None:
        live = validator_summary(await self._db.get_validator(spec.name))
        differences = []

        expected_required = frozenset(spec.required_fields)
        if live["required"] != expected_required:
            differences.append({
                "field": "required",
                "expected": sorted(expected_required),
                "actual": sorted(live["required"]),
            })

        expected_enums = spec.enumerations()
        for path in sorted(set(expected_enums) | set(live["enumerations"])):
            expected = expected_enums.get(path)
            actual = live["enumerations"].get(path)
            if expected != actual:
                differences.append({
                    "field": path,
                    "expected": sorted(expected) if expected is not None else None,
                    "actual": sorted(actual) if actual is not None else None,
                })

        if differences:
            raise SchemaConflictError(
                spec.name,
                f"Existing validator of {spec.name} disagrees with the declared schema",
                detail=differences,
            )

    # =========================================================================
    # ensure_indexes
    # =========================================================================

    async def ensure_indexes(self, spec: CollectionSpec) -> tuple[int, int]:
        """
        按声明顺序确保索引存在

        Returns:
            (created, existing)

        Raises:
            IndexConflictError: 同一键签名已存在 unique/sparse 不同的索引，
                同名索引键不同，或已有文档违反唯一约束
        """
        info = await self._db.index_information(spec.name)
        live_by_signature = {
            _key_signature(body["key"]): (name, body) for name, body in info.items()
        }

        created = 0
        existing = 0
        for index in spec.indexes:
            live = live_by_signature.get(index.signature)
            if live is not None:
                self._check_index_flags(spec.name, index, *live)
                logger.debug(f"○ Index already exists: {spec.name}.{index.name}")
                existing += 1
                continue

            if index.name in info:
                raise IndexConflictError(
                    spec.name,
                    f"Index name {spec.name}.{index.name} is taken by different keys",
                    detail={"expected": index.describe(), "actual": info[index.name]},
                )

            try:
                await self._db.create_index(spec.name, list(index.keys), **index.to_options())
            except DuplicateKeyError as e:
                raise IndexConflictError(
                    spec.name,
                    f"Existing documents violate unique index {spec.name}.{index.name}: {e}",
                    detail=index.describe(),
                ) from e
            except OperationFailure as e:
                if e.code in (INDEX_OPTIONS_CONFLICT, INDEX_KEY_SPECS_CONFLICT, DUPLICATE_KEY):
                    raise IndexConflictError(
                        spec.name,
                        f"Index {spec.name}.{index.name} conflicts with an existing index: {e}",
                        detail=index.describe(),
                    ) from e
                raise
            logger.info(f"✓ Index created: {spec.name}.{index.name}")
            created += 1

        return created, existing

    @staticmethod
    def _check_index_flags(collection: str, index: IndexSpec, live_name: str, live: dict) -> None:
        live_unique = bool(live.get("unique", False))
        live_sparse = bool(live.get("sparse", False))
        if live_unique != index.unique or live_sparse != index.sparse:
            raise IndexConflictError(
                collection,
                f"Index {collection}.{live_name} exists with unique={live_unique}, "
                f"sparse={live_sparse}; declared unique={index.unique}, sparse={index.sparse}",
                detail={"expected": index.describe(), "actual": live},
            )

    # =========================================================================
    # ensure_seed_rows
    # =========================================================================

    async def ensure_seed_rows(self, spec: CollectionSpec) -> SeedOutcome:
        """
        确保种子文档存在

        按自然键查找：不存在才插入，存在则保持原样。
        未通过 validator 的种子只影响它自己，记为 rejected。
        """
        outcome = SeedOutcome()
        for seed in spec.seed_documents:
            label = seed.key_label()
            document = seed.build(self._clock())
            try:
                spec.validate_document(document)
            except ValidationRejectedError as e:
                logger.error(f"✗ Seed rejected: {spec.name} [{label}]: {e.message}")
                outcome.rejected.append(label)
                continue

            if await self._db.find_one(spec.name, dict(seed.natural_key)) is not None:
                logger.debug(f"○ Seed already present: {spec.name} [{label}]")
                outcome.skipped += 1
                continue

            try:
                await self._db.insert_one(spec.name, document)
            except DuplicateKeyError:
                logger.info(f"○ Seed inserted concurrently: {spec.name} [{label}]")
                outcome.skipped += 1
                continue
            except WriteError as e:
                if e.code != DOCUMENT_VALIDATION_FAILURE:
                    raise
                logger.error(f"✗ Seed rejected by server validator: {spec.name} [{label}]: {e}")
                outcome.rejected.append(label)
                continue

            logger.info(f"✓ Seed inserted: {spec.name} [{label}]")
            outcome.inserted += 1

        return outcome

    # =========================================================================
    # run
    # =========================================================================

    async def run(self, specs: Sequence[CollectionSpec]) -> InitializationSummary:
        """
        按声明顺序初始化所有集合

        单集合上的 InitializerError 和服务端 OperationFailure 只终止该集合，
        记录在该集合的 report.error 中；StoreConnectionError 直接抛出，不产出摘要。

        Returns:
            InitializationSummary
        """
        names = [spec.name for spec in specs]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate collection specs: {duplicates}")

        run_id = generate_run_id()
        summary = InitializationSummary(db_name=self._db.name, run_id=run_id)

        with correlator.scope(run_id), LogContext(db_name=self._db.name):
            logger.info(
                f"Initializing {self._db.name}: {len(specs)} collections "
                f"(strict={self._strict})"
            )

            for spec in specs:
                report = CollectionReport(name=spec.name)
                summary.reports.append(report)
                with LogContext.operation(spec.name):
                    try:
                        report.created = await self.ensure_collection(spec)
                        created, existing = await self.ensure_indexes(spec)
                        report.indexes_created = created
                        report.indexes_existing = existing
                        report.apply_seeds(await self.ensure_seed_rows(spec))
                    except StoreConnectionError:
                        raise
                    except InitializerError as e:
                        logger.error(f"✗ {e.error_code}: {e.message}")
                        report.error = e
                    except OperationFailure as e:
                        logger.error(f"✗ Store operation failed on {spec.name}: {e}")
                        report.error = StoreOperationError(spec.name, str(e), server_code=e.code)

            with LogContext.scope("audit"):
                try:
                    summary.audit_recorded = await self._record_audit(specs, summary)
                except OperationFailure as e:
                    logger.error(f"✗ Audit record not written: {e}")

            summary.collections_present = await self._db.list_collection_names()
            summary.finished_at = utc_now()

            logger.info(
                f"Initialization of {self._db.name} completed - "
                f"collections created: {len(summary.collections_created)}, "
                f"indexes created: {summary.indexes_created}, existing: {summary.indexes_existing}, "
                f"seeds inserted: {summary.seeds_inserted}, skipped: {summary.seeds_skipped}, "
                f"failures: {len(summary.failures)}"
            )

        return summary

    async def _record_audit(
        self,
        specs: Sequence[CollectionSpec],
        summary: InitializationSummary,
    ) -> bool:
        """
        写入初始化审计记录

        - 首次初始化：database_initialization（按 action + entityId 标记去重）
        - 已初始化且本次新建了集合：database_schema_update
        - 无变化：不写入，重复运行后 audit_logs 保持不变（并非每次运行一条）
        """
        spec = next((s for s in specs if s.name == self._audit_collection), None)
        report = summary.report(self._audit_collection)
        if spec is None or report is None or not report.ok:
            logger.warning(f"Audit collection {self._audit_collection} unavailable, skipping audit record")
            return False

        marker = {
            "action": AuditAction.DATABASE_INITIALIZATION.value,
            "entityId": self._db.name,
        }
        collections_created = summary.collections_created
        if await self._db.find_one(spec.name, marker) is None:
            action = AuditAction.DATABASE_INITIALIZATION
        elif collections_created:
            action = AuditAction.DATABASE_SCHEMA_UPDATE
        else:
            logger.debug("○ Nothing changed, no audit record written")
            return False

        document = {
            "action": action.value,
            "userId": SYSTEM_USER,
            "entityType": "database",
            "entityId": self._db.name,
            "changes": {
                "collections_created": collections_created,
                "run_id": summary.run_id,
            },
            "ipAddress": "localhost",
            "userAgent": f"sgad-docstore/{__version__}",
            "timestamp": self._clock(),
        }
        spec.validate_document(document)
        await self._db.insert_one(spec.name, document)
        logger.info(f"✓ Audit record written: {action.value} ({len(collections_created)} collections created)")
        return True
