"""
数据模型枚举

集合 validator 中的封闭取值集合，字符串值必须与线上数据逐字一致
"""

from enum import Enum


class BsonType(str, Enum):
    """$jsonSchema bsonType 别名"""
    STRING = "string"
    DATE = "date"
    INT = "int"
    LONG = "long"
    DOUBLE = "double"
    DECIMAL = "decimal"
    BOOL = "bool"
    OBJECT = "object"
    ARRAY = "array"
    OBJECT_ID = "objectId"
    NULL = "null"


class CertificateType(str, Enum):
    """证书类型"""
    LICENSE = "license"
    MEDICAL = "medical"
    TRAINING = "training"
    INSURANCE = "insurance"
    OTHER = "other"


class CertificateStatus(str, Enum):
    """证书状态"""
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"
    PENDING = "pending"


class DocumentType(str, Enum):
    """裁判行政文件类型"""
    ID_CARD = "id_card"
    CONTRACT = "contract"
    TAX_FORM = "tax_form"
    BANK_INFO = "bank_info"
    OTHER = "other"


class ProcessingStatus(str, Enum):
    """CSV/Excel 处理状态"""
    SUCCESS = "success"
    ERROR = "error"
    PROCESSING = "processing"


class CertificateNotificationType(str, Enum):
    """certificados_db 通知类型"""
    ASSIGNMENT = "assignment"
    CERTIFICATE_EXPIRY = "certificate_expiry"
    DOCUMENT_REQUIRED = "document_required"
    SYSTEM = "system"


class NotificationType(str, Enum):
    """sgad_nosql 通知类型"""
    ASSIGNMENT = "assignment"
    INVOICE = "invoice"
    REMINDER = "reminder"
    SYSTEM = "system"


class InvoiceStatus(str, Enum):
    """发票状态"""
    GENERATED = "generated"
    SENT = "sent"
    PAID = "paid"


class AuditAction(str, Enum):
    """初始化器写入的审计动作"""
    DATABASE_INITIALIZATION = "database_initialization"
    DATABASE_SCHEMA_UPDATE = "database_schema_update"
