"""
工具函数模块
"""

from sgad_docstore.utils.datetime import (
    utc_now,
    utc_date,
    ensure_utc,
    to_iso,
)

__all__ = [
    "utc_now",
    "utc_date",
    "ensure_utc",
    "to_iso",
]
