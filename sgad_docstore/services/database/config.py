"""
数据库配置

目标数据库名称和初始化器常量
"""

# 证书与文件库
CERTIFICATES_DB_NAME = "certificados_db"

# 辅助 NoSQL 库
NOSQL_DB_NAME = "sgad_nosql"

# 系统种子数据的归属用户
SYSTEM_USER = "system"
ADMIN_USER = "admin@sgad.com"

# 服务端错误码
DOCUMENT_VALIDATION_FAILURE = 121
INDEX_OPTIONS_CONFLICT = 85
INDEX_KEY_SPECS_CONFLICT = 86
NAMESPACE_EXISTS = 48
DUPLICATE_KEY = 11000
