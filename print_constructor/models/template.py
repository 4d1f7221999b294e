"""设计模板数据模型.

模板是一组可复用的设计元素加描述信息，实例化时元素会获得新的 ID。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from print_constructor.models.design_element import DesignElement
from print_constructor.utils.helpers import utc_now


class TemplateMetadata(BaseModel):
    """模板描述信息."""

    author: str = ""
    description: str = ""
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    usage_count: int = Field(default=0, ge=0)
    rating: float = Field(default=0, ge=0, le=5)


class DesignTemplate(BaseModel):
    """设计模板.

    Attributes:
        id: 模板 ID
        name: 模板名称
        product_type: 适用的产品类型
        is_premium: 是否高级模板
        tags: 标签
        style: 风格标签
        industry: 适用行业
        elements: 模板元素
        attributes: 产品专用扩展字段（尺寸、折页方式、包装结构等）
    """

    id: str
    name: str
    category: str = ""
    subcategory: str = ""
    product_type: str
    thumbnail: str = ""
    is_premium: bool = False
    tags: list[str] = Field(default_factory=list)
    style: Optional[str] = None
    industry: list[str] = Field(default_factory=list)
    elements: list[DesignElement] = Field(default_factory=list)
    metadata: TemplateMetadata = Field(default_factory=TemplateMetadata)
    attributes: dict[str, Any] = Field(default_factory=dict)

    def instantiate_elements(self) -> list[DesignElement]:
        """生成模板元素的独立副本，每个副本都有新 ID."""
        return [element.with_new_id() for element in self.elements]

    def to_json(self) -> str:
        """序列化为 JSON 字符串."""
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "DesignTemplate":
        """从 JSON 字符串反序列化."""
        return cls.model_validate_json(json_str)
