"""校验、报价与导出结果模型."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DesignValidationResult:
    """设计校验结果.

    所有规则都会执行，消息逐条累积；valid 当且仅当没有错误。
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        """是否校验通过."""
        return not self.errors

    def add_error(self, message: str) -> None:
        """添加错误."""
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        """添加警告."""
        self.warnings.append(message)

    def add_suggestion(self, message: str) -> None:
        """添加建议."""
        self.suggestions.append(message)

    def to_dict(self) -> dict[str, Any]:
        """转换为字典."""
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "suggestions": list(self.suggestions),
        }


@dataclass
class PriceQuote:
    """报价结果.

    Attributes:
        total: 总价（非负，保留两位小数）
        breakdown: 分项明细，含 details 子字典
        currency: 货币
    """

    total: float
    breakdown: dict[str, Any]
    currency: str = "UAH"

    def to_dict(self) -> dict[str, Any]:
        """转换为字典."""
        return {"total": self.total, "breakdown": self.breakdown, "currency": self.currency}


@dataclass
class ExportResult:
    """导出结果.

    Attributes:
        data: 编码后的二进制数据
        mime_type: MIME 类型
        format: 导出格式
        width: 像素宽度（矢量/数据格式为 0）
        height: 像素高度
    """

    data: bytes
    mime_type: str
    format: str
    width: int = 0
    height: int = 0

    @property
    def size(self) -> int:
        """数据字节数."""
        return len(self.data)
