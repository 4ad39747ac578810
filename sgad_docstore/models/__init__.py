"""
数据模型模块

集合规格（纯数据）、枚举和运行摘要
"""

from sgad_docstore.models.enums import (
    BsonType,
    CertificateType,
    CertificateStatus,
    DocumentType,
    ProcessingStatus,
    CertificateNotificationType,
    NotificationType,
    InvoiceStatus,
    AuditAction,
)
from sgad_docstore.models.schema import (
    FieldKind,
    FieldType,
    IndexSpec,
    SeedDocument,
    CollectionSpec,
    StoreDefinition,
    get_path,
    validator_summary,
)
from sgad_docstore.models.summary import (
    SeedOutcome,
    CollectionReport,
    InitializationSummary,
)

__all__ = [
    # 枚举
    "BsonType",
    "CertificateType",
    "CertificateStatus",
    "DocumentType",
    "ProcessingStatus",
    "CertificateNotificationType",
    "NotificationType",
    "InvoiceStatus",
    "AuditAction",
    # 规格
    "FieldKind",
    "FieldType",
    "IndexSpec",
    "SeedDocument",
    "CollectionSpec",
    "StoreDefinition",
    "get_path",
    "validator_summary",
    # 摘要
    "SeedOutcome",
    "CollectionReport",
    "InitializationSummary",
]
