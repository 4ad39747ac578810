"""
数据库服务模块

提供数据库访问封装和两个目标库的集合规格
"""

from sgad_docstore.services.database.database import Database, get_database
from sgad_docstore.services.database.collections import COLLECTIONS
from sgad_docstore.services.database.config import CERTIFICATES_DB_NAME, NOSQL_DB_NAME
from sgad_docstore.services.database.stores import (
    CERTIFICATES_STORE,
    NOSQL_STORE,
    STORES,
    with_db_name,
)

__all__ = [
    "CERTIFICATES_DB_NAME",
    "NOSQL_DB_NAME",
    "COLLECTIONS",
    "Database",
    "get_database",
    "CERTIFICATES_STORE",
    "NOSQL_STORE",
    "STORES",
    "with_db_name",
]
