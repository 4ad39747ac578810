"""
时间处理工具函数

- 存储：始终使用 UTC
- 传输/输出：使用 ISO 8601 格式
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    获取当前 UTC 时间（带时区）

    MongoDB 只保存毫秒精度，这里截断微秒，保证写入值与读回值一致。

    Example:
        >>> utc_now().tzinfo
        datetime.timezone.utc
    """
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def utc_date(year: int, month: int, day: int) -> datetime:
    """构造 UTC 零点日期"""
    return datetime(year, month, day, tzinfo=timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    确保 datetime 有 UTC 时区信息

    MongoDB 默认返回 naive datetime，需要补上 UTC 时区。

    Example:
        >>> ensure_utc(datetime(2026, 1, 1, 12, 0, 0)).tzinfo
        datetime.timezone.utc
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """
    转换为 ISO 8601 格式字符串

    Example:
        >>> to_iso(datetime(2026, 2, 3, 10, 30, 0, tzinfo=timezone.utc))
        '2026-02-03T10:30:00+00:00'
    """
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()
