"""项目文档状态模型.

Features:
    - 文档显示设置（纯展示用途，不影响价格和校验）
    - 项目元数据
    - 正反面元素集合
    - 历史快照与完整项目序列化格式
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from print_constructor.models.design_element import DesignElement
from print_constructor.utils.constants import (
    DEFAULT_GRID_SIZE,
    DEFAULT_ZOOM,
    PROJECT_SCHEMA_VERSION,
)
from print_constructor.utils.helpers import utc_now


class DocumentSettings(BaseModel):
    """文档显示设置."""

    snap_to_grid: bool = True
    grid_size: float = Field(default=DEFAULT_GRID_SIZE, gt=0)
    show_guides: bool = True
    show_rulers: bool = True
    show_bleed: bool = True
    show_safe_area: bool = True
    zoom: float = Field(default=DEFAULT_ZOOM, gt=0)


class ProjectMetadata(BaseModel):
    """项目元数据."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    auto_save_at: Optional[datetime] = None
    version: str = PROJECT_SCHEMA_VERSION


class DocumentSides(BaseModel):
    """正反面元素集合.

    back 仅在产品为双面时存在。
    """

    front: list[DesignElement] = Field(default_factory=list)
    back: Optional[list[DesignElement]] = None


class ProjectSnapshot(BaseModel):
    """历史快照内容."""

    sides: DocumentSides
    metadata: ProjectMetadata


class HistoryState(BaseModel):
    """历史记录序列化格式."""

    states: list[str] = Field(default_factory=list)
    current_index: int = -1
    max_states: int = Field(default=50, ge=1)


class SerializedProject(BaseModel):
    """完整项目序列化格式."""

    id: str
    name: str = ""
    product_type: str
    product_config: dict[str, Any]
    current_side: int = 0
    sides: DocumentSides
    history: HistoryState
    metadata: ProjectMetadata
    settings: DocumentSettings
