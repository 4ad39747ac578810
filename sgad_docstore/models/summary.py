"""
初始化运行摘要

CollectionReport: 单个集合的处理结果
InitializationSummary: 单个数据库的运行摘要
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sgad_docstore.core.exceptions import InitializerError
from sgad_docstore.utils.datetime import to_iso, utc_now


@dataclass
class SeedOutcome:
    """ensure_seed_rows 的结果"""
    inserted: int = 0
    skipped: int = 0
    rejected: list[str] = field(default_factory=list)


@dataclass
class CollectionReport:
    """单个集合的处理结果"""
    name: str
    created: bool = False
    indexes_created: int = 0
    indexes_existing: int = 0
    seeds_inserted: int = 0
    seeds_skipped: int = 0
    seeds_rejected: list[str] = field(default_factory=list)
    error: Optional[InitializerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def apply_seeds(self, outcome: SeedOutcome) -> None:
        self.seeds_inserted = outcome.inserted
        self.seeds_skipped = outcome.skipped
        self.seeds_rejected = list(outcome.rejected)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "created": self.created,
            "indexes_created": self.indexes_created,
            "indexes_existing": self.indexes_existing,
            "seeds_inserted": self.seeds_inserted,
            "seeds_skipped": self.seeds_skipped,
            "seeds_rejected": self.seeds_rejected,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class InitializationSummary:
    """
    单个数据库的运行摘要

    collections_present 来自运行结束后的实际集合列表，
    failures 列出被隔离的单集合失败。
    """
    db_name: str
    run_id: str
    reports: list[CollectionReport] = field(default_factory=list)
    collections_present: list[str] = field(default_factory=list)
    audit_recorded: bool = False
    started_at: datetime = field(default_factory=utc_now)
    finished_at: Optional[datetime] = None

    @property
    def collections_created(self) -> list[str]:
        return [r.name for r in self.reports if r.created]

    @property
    def failures(self) -> list[CollectionReport]:
        return [r for r in self.reports if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failures and not any(r.seeds_rejected for r in self.reports)

    @property
    def indexes_created(self) -> int:
        return sum(r.indexes_created for r in self.reports)

    @property
    def indexes_existing(self) -> int:
        return sum(r.indexes_existing for r in self.reports)

    @property
    def seeds_inserted(self) -> int:
        return sum(r.seeds_inserted for r in self.reports)

    @property
    def seeds_skipped(self) -> int:
        return sum(r.seeds_skipped for r in self.reports)

    @property
    def seeds_rejected(self) -> int:
        return sum(len(r.seeds_rejected) for r in self.reports)

    def report(self, name: str) -> Optional[CollectionReport]:
        return next((r for r in self.reports if r.name == name), None)

    def to_dict(self) -> dict:
        return {
            "db_name": self.db_name,
            "run_id": self.run_id,
            "ok": self.ok,
            "collections_present": self.collections_present,
            "collections_created": self.collections_created,
            "indexes": {"created": self.indexes_created, "existing": self.indexes_existing},
            "seeds": {
                "inserted": self.seeds_inserted,
                "skipped": self.seeds_skipped,
                "rejected": self.seeds_rejected,
            },
            "failures": [
                {"collection": r.name, **r.error.to_dict()} for r in self.failures
            ],
            "audit_recorded": self.audit_recorded,
            "started_at": to_iso(self.started_at),
            "finished_at": to_iso(self.finished_at),
            "collections": [r.to_dict() for r in self.reports],
        }
