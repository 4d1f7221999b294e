"""产品配置数据模型.

描述印刷产品的物理规格、印刷区域、材料选项和定价基准。

Features:
    - 物理尺寸与单位换算
    - 印刷区域与出血
    - 文件约束
    - 默认值合并（调用方提供的值始终优先）
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from print_constructor.models.design_element import Bounds
from print_constructor.utils.constants import UNITS_PER_INCH
from print_constructor.utils.helpers import merge_dicts

ConfigT = TypeVar("ConfigT", bound="ProductConfig")


class Unit(str, Enum):
    """物理单位枚举."""

    MM = "mm"
    CM = "cm"
    INCH = "in"
    PX = "px"


class Dimensions(BaseModel):
    """产品物理尺寸."""

    width: float = Field(gt=0, description="宽度")
    height: float = Field(gt=0, description="高度")
    unit: Unit = Field(default=Unit.MM, description="单位")
    dpi: int = Field(default=300, gt=0, description="印刷分辨率")

    @property
    def pixels_per_unit(self) -> float:
        """每单位对应的像素数."""
        if self.unit == Unit.PX:
            return 1.0
        return self.dpi / UNITS_PER_INCH[self.unit.value]

    @property
    def max_side(self) -> float:
        """最大边长."""
        return max(self.width, self.height)

    def size_in(self, unit: Union[Unit, str]) -> tuple[float, float]:
        """换算为指定单位的 (宽, 高)，px 按 dpi 换算."""
        unit = Unit(unit)
        if unit == self.unit:
            return (self.width, self.height)
        factor = self._units_per_inch(unit) / self._units_per_inch(self.unit)
        return (self.width * factor, self.height * factor)

    def _units_per_inch(self, unit: Unit) -> float:
        if unit == Unit.PX:
            return float(self.dpi)
        return UNITS_PER_INCH[unit.value]


class Area(BaseModel):
    """矩形区域（印刷区、安全区等）."""

    x: float = 0
    y: float = 0
    width: float = Field(gt=0)
    height: float = Field(gt=0)

    def contains(self, bounds: Bounds) -> bool:
        """判断边界框是否完全位于区域内.

        Args:
            bounds: (left, top, right, bottom)

        Returns:
            是否完全包含
        """
        left, top, right, bottom = bounds
        return (
            left >= self.x
            and top >= self.y
            and right <= self.x + self.width
            and bottom <= self.y + self.height
        )


class ProductConstraints(BaseModel):
    """设计文件约束."""

    min_font_size: float = Field(default=6, gt=0)
    max_colors: Optional[int] = None
    allowed_file_types: list[str] = Field(default_factory=lambda: ["pdf", "png", "jpg"])
    max_file_size: int = Field(default=50, description="最大文件大小 (MB)")
    required_dpi: int = Field(default=300, gt=0)


class ProductConfig(BaseModel):
    """产品配置基类.

    各产品专用配置在此基础上增加扩展字段。

    Attributes:
        dimensions: 物理尺寸
        print_area: 印刷区域
        bleed_area: 出血宽度
        sides: 印刷面数 (1 或 2)
        base_price: 基础价格
        price_per_unit: 单价
    """

    id: str = ""
    name: str = ""
    category: str = ""
    dimensions: Dimensions
    print_area: Area
    bleed_area: float = Field(default=0, ge=0)
    materials: list[str] = Field(default_factory=list)
    finishes: list[str] = Field(default_factory=list)
    orientation: str = "landscape"
    sides: int = Field(default=1, ge=1, le=2)
    min_quantity: int = Field(default=1, ge=1)
    max_quantity: int = Field(default=100000, ge=1)
    base_price: float = Field(default=0, ge=0)
    price_per_unit: float = Field(default=0, ge=0)
    constraints: ProductConstraints = Field(default_factory=ProductConstraints)

    model_config = ConfigDict(extra="ignore")

    @property
    def area(self) -> float:
        """产品面积（配置单位的平方）."""
        return self.dimensions.width * self.dimensions.height

    @classmethod
    def with_defaults(
        cls: Type[ConfigT],
        supplied: Union["ProductConfig", Mapping[str, Any], None],
        defaults: Mapping[str, Any],
    ) -> ConfigT:
        """合并默认值并构建配置.

        只填充调用方缺失的字段，从不覆盖已提供的值，重复调用结果不变。

        Args:
            supplied: 调用方提供的配置（模型或字典）
            defaults: 产品默认配置

        Returns:
            完整的配置实例
        """
        return cls.model_validate(merge_dicts(defaults, config_to_dict(supplied)))


def config_to_dict(supplied: Union[ProductConfig, Mapping[str, Any], None]) -> dict[str, Any]:
    """将调用方配置转换为字典（模型只取显式设置的字段）."""
    if supplied is None:
        return {}
    if isinstance(supplied, BaseModel):
        return supplied.model_dump(exclude_unset=True)
    return dict(supplied)


class QRCodeSettings(BaseModel):
    """二维码设置."""

    enabled: bool = False
    data: str = ""
    size: float = Field(default=15, gt=0)
    position: tuple[float, float] = (0, 0)
