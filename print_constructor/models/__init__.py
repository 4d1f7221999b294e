"""数据模型模块."""

from print_constructor.models.app_settings import Settings
from print_constructor.models.design_element import (
    DesignElement,
    ElementType,
    GradientFill,
    ImageData,
    ShapeData,
    ShapeKind,
    TextAlign,
    TextData,
)
from print_constructor.models.product_config import (
    Area,
    Dimensions,
    ProductConfig,
    ProductConstraints,
    QRCodeSettings,
    Unit,
)
from print_constructor.models.project_state import (
    DocumentSettings,
    HistoryState,
    ProjectMetadata,
    SerializedProject,
)
from print_constructor.models.results import DesignValidationResult, ExportResult, PriceQuote
from print_constructor.models.template import DesignTemplate, TemplateMetadata

__all__ = [
    # 设置
    "Settings",
    # 设计元素
    "DesignElement",
    "ElementType",
    "GradientFill",
    "ImageData",
    "ShapeData",
    "ShapeKind",
    "TextAlign",
    "TextData",
    # 产品配置
    "Area",
    "Dimensions",
    "ProductConfig",
    "ProductConstraints",
    "QRCodeSettings",
    "Unit",
    # 项目状态
    "DocumentSettings",
    "HistoryState",
    "ProjectMetadata",
    "SerializedProject",
    # 结果
    "DesignValidationResult",
    "ExportResult",
    "PriceQuote",
    # 模板
    "DesignTemplate",
    "TemplateMetadata",
]
