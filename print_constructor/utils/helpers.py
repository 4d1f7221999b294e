"""辅助函数模块.

提供 ID 生成、时间戳、数值与字典处理等通用辅助函数。
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Mapping
from urllib.parse import quote

from print_constructor.utils.constants import PRICE_PRECISION, QR_SERVICE_URL


def generate_element_id() -> str:
    """生成设计元素 ID.

    Returns:
        带前缀的 12 位随机 ID
    """
    return f"el_{uuid.uuid4().hex[:12]}"


def generate_short_id(length: int = 8) -> str:
    """生成短 ID.

    Args:
        length: ID 长度

    Returns:
        短 ID 字符串
    """
    return uuid.uuid4().hex[:length]


def utc_now() -> datetime:
    """返回带时区的当前 UTC 时间."""
    return datetime.now(timezone.utc)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """限制值在指定范围内.

    Args:
        value: 原始值
        min_val: 最小值
        max_val: 最大值

    Returns:
        限制后的值
    """
    return max(min_val, min(max_val, value))


def round_money(value: float) -> float:
    """按货币精度四舍五入."""
    return round(value + 0.0, PRICE_PRECISION)


def merge_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """深度合并字典.

    override 中的值优先，嵌套字典递归合并。

    Args:
        base: 基础字典
        override: 覆盖字典

    Returns:
        合并后的新字典
    """
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def qr_code_url(data: str, pixels: int = 200) -> str:
    """生成二维码图片地址.

    Args:
        data: 二维码内容
        pixels: 图片边长（像素）

    Returns:
        二维码服务的图片 URL
    """
    return f"{QR_SERVICE_URL}?size={pixels}x{pixels}&data={quote(data, safe='')}"
