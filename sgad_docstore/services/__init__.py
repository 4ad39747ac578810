"""
服务模块
"""

from sgad_docstore.services.initializer import SchemaInitializer

__all__ = ["SchemaInitializer"]
