"""
集合名称定义

certificados_db: certificates, referee_documents, processing_logs, audit_logs, notifications
sgad_nosql: processing_logs, notifications, invoice_documents, audit_logs, system_configuration
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Collections:
    """集合名称定义（两个库共用同名集合）"""

    CERTIFICATES = "certificates"                  # 裁判证书与执照
    REFEREE_DOCUMENTS = "referee_documents"        # 裁判行政文件
    PROCESSING_LOGS = "processing_logs"            # CSV/Excel 处理日志
    AUDIT_LOGS = "audit_logs"                      # 审计日志
    NOTIFICATIONS = "notifications"                # 系统通知
    INVOICE_DOCUMENTS = "invoice_documents"        # 已生成的发票
    SYSTEM_CONFIGURATION = "system_configuration"  # 系统配置项


COLLECTIONS = Collections()
