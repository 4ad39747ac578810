"""
集合规格定义

两个目标库的 validator、索引和种子数据。
字段名、枚举字符串和索引键必须与线上已有数据逐字一致。
"""

from sgad_docstore.models import (
    BsonType,
    CertificateNotificationType,
    CertificateStatus,
    CertificateType,
    CollectionSpec,
    DocumentType,
    FieldType,
    IndexSpec,
    InvoiceStatus,
    NotificationType,
    ProcessingStatus,
    SeedDocument,
    StoreDefinition,
)
from sgad_docstore.services.database.collections import COLLECTIONS
from sgad_docstore.services.database.config import (
    ADMIN_USER,
    CERTIFICATES_DB_NAME,
    NOSQL_DB_NAME,
    SYSTEM_USER,
)
from sgad_docstore.utils.datetime import utc_date

STRING = FieldType.of(BsonType.STRING)
DATE = FieldType.of(BsonType.DATE)
INT = FieldType.of(BsonType.INT)
BOOL = FieldType.of(BsonType.BOOL)
OBJECT = FieldType.of(BsonType.OBJECT)
ARRAY = FieldType.of(BsonType.ARRAY)
DECIMAL = FieldType.of(BsonType.DECIMAL)

ASC = 1
DESC = -1


# =============================================================================
# 共用集合
# =============================================================================


def audit_logs_spec() -> CollectionSpec:
    """审计日志（两个库结构相同，初始化审计记录由初始化器写入）"""
    return CollectionSpec(
        name=COLLECTIONS.AUDIT_LOGS,
        required_fields=("action", "userId", "timestamp"),
        field_types={
            "action": STRING,
            "userId": STRING,
            "entityType": STRING,
            "entityId": STRING,
            "changes": OBJECT,
            "ipAddress": STRING,
            "userAgent": STRING,
            "timestamp": DATE,
        },
        indexes=(
            IndexSpec.of(("userId", ASC)),
            IndexSpec.of(("action", ASC)),
            IndexSpec.of(("timestamp", DESC)),
            IndexSpec.of(("entityType", ASC), ("entityId", ASC)),
        ),
        description="Logs de auditoría del sistema",
    )


def processing_logs_spec(with_processing_time: bool) -> CollectionSpec:
    """CSV/Excel 处理日志；certificados_db 额外记录 processingTime"""
    field_types = {
        "filename": STRING,
        "status": FieldType.enum(ProcessingStatus),
        "processedAt": DATE,
        "recordsProcessed": INT,
        "errors": ARRAY,
        "uploadedBy": STRING,
    }
    if with_processing_time:
        field_types["processingTime"] = INT
    return CollectionSpec(
        name=COLLECTIONS.PROCESSING_LOGS,
        required_fields=("filename", "status", "processedAt"),
        field_types=field_types,
        indexes=(
            IndexSpec.of(("filename", ASC)),
            IndexSpec.of(("status", ASC)),
            IndexSpec.of(("processedAt", DESC)),
        ),
        description="Logs de procesamiento de archivos CSV/Excel",
    )


def welcome_notification(message: str) -> SeedDocument:
    """一次性的"系统已初始化"通知，没有业务主键，按标记条件去重"""
    return SeedDocument(
        natural_key={"userId": ADMIN_USER, "type": "system", "title": "Sistema Inicializado"},
        document={
            "userId": ADMIN_USER,
            "type": "system",
            "title": "Sistema Inicializado",
            "message": message,
            "read": False,
            "metadata": {"priority": "low", "category": "system"},
        },
        timestamp_fields=("createdAt",),
        marker=True,
    )


def notifications_spec(type_values, seed: SeedDocument) -> CollectionSpec:
    return CollectionSpec(
        name=COLLECTIONS.NOTIFICATIONS,
        required_fields=("userId", "type", "message", "createdAt"),
        field_types={
            "userId": STRING,
            "type": FieldType.enum(type_values),
            "message": STRING,
            "title": STRING,
            "read": BOOL,
            "createdAt": DATE,
            "metadata": OBJECT,
        },
        indexes=(
            IndexSpec.of(("userId", ASC)),
            IndexSpec.of(("read", ASC)),
            IndexSpec.of(("createdAt", DESC)),
            IndexSpec.of(("type", ASC)),
        ),
        seed_documents=(seed,),
        description="Notificaciones del sistema",
    )


# =============================================================================
# certificados_db
# =============================================================================


CERTIFICATES = CollectionSpec(
    name=COLLECTIONS.CERTIFICATES,
    required_fields=("refereeId", "certificateType", "issuedDate"),
    field_types={
        "refereeId": STRING,
        "certificateType": FieldType.enum(CertificateType),
        "certificateNumber": STRING,
        "issuedDate": DATE,
        "expiryDate": DATE,
        "issuingAuthority": STRING,
        "documentUrl": STRING,
        "status": FieldType.enum(CertificateStatus),
        "metadata": OBJECT,
        "createdAt": DATE,
        "updatedAt": DATE,
    },
    indexes=(
        IndexSpec.of(("refereeId", ASC)),
        IndexSpec.of(("certificateType", ASC)),
        IndexSpec.of(("status", ASC)),
        IndexSpec.of(("expiryDate", ASC)),
        IndexSpec.of(("certificateNumber", ASC), unique=True, sparse=True),
    ),
    seed_documents=(
        SeedDocument(
            natural_key={"certificateNumber": "LIC-2024-001"},
            document={
                "refereeId": "example-referee-id-001",
                "certificateType": CertificateType.LICENSE.value,
                "certificateNumber": "LIC-2024-001",
                "issuedDate": utc_date(2024, 1, 15),
                "expiryDate": utc_date(2025, 1, 15),
                "issuingAuthority": "Federación Colombiana de Fútbol",
                "status": CertificateStatus.ACTIVE.value,
                "metadata": {"level": "nacional", "sport": "futbol"},
            },
            timestamp_fields=("createdAt", "updatedAt"),
        ),
    ),
    description="Certificados y licencias de árbitros",
)

REFEREE_DOCUMENTS = CollectionSpec(
    name=COLLECTIONS.REFEREE_DOCUMENTS,
    required_fields=("refereeId", "documentType", "uploadedAt"),
    field_types={
        "refereeId": STRING,
        "documentType": FieldType.enum(DocumentType),
        "fileName": STRING,
        "fileUrl": STRING,
        "fileSize": INT,
        "mimeType": STRING,
        "uploadedAt": DATE,
        "uploadedBy": STRING,
        "description": STRING,
        "tags": ARRAY,
    },
    indexes=(
        IndexSpec.of(("refereeId", ASC)),
        IndexSpec.of(("documentType", ASC)),
        IndexSpec.of(("uploadedAt", DESC)),
        IndexSpec.of(("tags", ASC)),
    ),
    description="Documentos administrativos de árbitros",
)

CERTIFICATES_STORE = StoreDefinition(
    db_name=CERTIFICATES_DB_NAME,
    specs=(
        CERTIFICATES,
        REFEREE_DOCUMENTS,
        processing_logs_spec(with_processing_time=True),
        audit_logs_spec(),
        notifications_spec(
            CertificateNotificationType,
            welcome_notification(
                f"La base de datos {CERTIFICATES_DB_NAME} ha sido inicializada correctamente"
            ),
        ),
    ),
    description="Referee Certificates & Documents Database",
)


# =============================================================================
# sgad_nosql
# =============================================================================


INVOICE_DOCUMENTS = CollectionSpec(
    name=COLLECTIONS.INVOICE_DOCUMENTS,
    required_fields=("refereeId", "period", "generatedAt"),
    field_types={
        "refereeId": STRING,
        "period": FieldType.object(
            properties={"year": INT, "month": INT},
            required=("year", "month"),
        ),
        "totalAmount": DECIMAL,
        "matches": ARRAY,
        "pdfPath": STRING,
        "qrCode": STRING,
        "bankDetails": OBJECT,
        "status": FieldType.enum(InvoiceStatus),
        "generatedAt": DATE,
        "paidAt": DATE,
    },
    indexes=(
        IndexSpec.of(("refereeId", ASC)),
        IndexSpec.of(("period.year", ASC), ("period.month", ASC)),
        IndexSpec.of(("status", ASC)),
        IndexSpec.of(("generatedAt", DESC)),
    ),
    description="Documentos de facturas generadas",
)


def configuration_seed(key: str, value, description: str) -> SeedDocument:
    return SeedDocument(
        natural_key={"key": key},
        document={
            "key": key,
            "value": value,
            "description": description,
            "updatedBy": SYSTEM_USER,
        },
        timestamp_fields=("updatedAt",),
    )


SYSTEM_CONFIGURATION = CollectionSpec(
    name=COLLECTIONS.SYSTEM_CONFIGURATION,
    required_fields=("key", "value"),
    field_types={
        "key": STRING,
        "value": FieldType.of(
            BsonType.STRING,
            BsonType.OBJECT,
            BsonType.ARRAY,
            BsonType.BOOL,
            BsonType.INT,
            BsonType.DECIMAL,
        ),
        "description": STRING,
        "updatedAt": DATE,
        "updatedBy": STRING,
    },
    indexes=(IndexSpec.of(("key", ASC), unique=True),),
    seed_documents=(
        configuration_seed(
            "eligibility_period_months",
            6,
            "Meses que debe pasar para que un árbitro pueda dirigir el mismo equipo",
        ),
        configuration_seed(
            "notification_settings",
            {
                "email_enabled": True,
                "sms_enabled": False,
                "push_enabled": True,
                "assignment_notification": True,
                "invoice_notification": True,
                "reminder_hours": [24, 2],
            },
            "Configuraciones de notificaciones del sistema",
        ),
        configuration_seed(
            "billing_settings",
            {
                "currency": "COP",
                "qr_bank": "bancolombia",
                "invoice_due_days": 30,
                "late_fee_percentage": 0.02,
            },
            "Configuraciones de facturación",
        ),
    ),
    description="Configuraciones del sistema",
)

NOSQL_STORE = StoreDefinition(
    db_name=NOSQL_DB_NAME,
    specs=(
        processing_logs_spec(with_processing_time=False),
        notifications_spec(
            NotificationType,
            welcome_notification("El sistema SGAD ha sido inicializado correctamente"),
        ),
        INVOICE_DOCUMENTS,
        audit_logs_spec(),
        SYSTEM_CONFIGURATION,
    ),
    description="SGAD auxiliary NoSQL store",
)


STORES: dict[str, StoreDefinition] = {
    "certificates": CERTIFICATES_STORE,
    "nosql": NOSQL_STORE,
}


def with_db_name(store: StoreDefinition, db_name: str) -> StoreDefinition:
    """同一组规格指向另一个数据库名（多环境部署）"""
    if db_name == store.db_name:
        return store
    return StoreDefinition(db_name=db_name, specs=store.specs, description=store.description)
