"""
SGAD 文档库 Schema 初始化器

为 certificados_db 与 sgad_nosql 幂等地创建集合 validator、索引和种子数据
"""

__version__ = "0.1.0"

from sgad_docstore.container import (  # noqa: E402
    connect,
    initialize_store,
    initialize_certificates_db,
    initialize_nosql_db,
)
from sgad_docstore.services.initializer import SchemaInitializer  # noqa: E402

__all__ = [
    "__version__",
    "connect",
    "initialize_store",
    "initialize_certificates_db",
    "initialize_nosql_db",
    "SchemaInitializer",
]
