"""设计元素数据模型.

提供印刷品设计文档中的可视化元素模型，元素按类型携带不同的载荷数据。

Features:
    - 元素通用几何属性（位置、尺寸、旋转、层级）
    - 文字、图片、形状三种载荷的标签联合类型
    - CSS 渐变字符串解析为结构化渐变描述
    - 快速创建元素的工厂方法
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from print_constructor.utils.helpers import generate_element_id


# ===================
# 类型别名
# ===================

Point = tuple[float, float]
Bounds = tuple[float, float, float, float]


# ===================
# 枚举定义
# ===================


class ElementType(str, Enum):
    """元素类型枚举."""

    TEXT = "text"
    IMAGE = "image"
    SHAPE = "shape"
    BACKGROUND = "background"
    LOGO = "logo"


class ShapeKind(str, Enum):
    """形状种类枚举."""

    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    TRIANGLE = "triangle"
    POLYGON = "polygon"
    LINE = "line"
    ARROW = "arrow"


class TextAlign(str, Enum):
    """文字对齐方式."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


# 元素类型允许的载荷种类
ALLOWED_PAYLOADS: dict[ElementType, tuple[str, ...]] = {
    ElementType.TEXT: ("text",),
    ElementType.IMAGE: ("image",),
    ElementType.LOGO: ("image",),
    ElementType.SHAPE: ("shape",),
    ElementType.BACKGROUND: ("shape", "image"),
}


# ===================
# 渐变填充
# ===================


class ColorStop(BaseModel):
    """渐变色标."""

    offset: float = Field(ge=0, le=1, description="位置 (0-1)")
    color: str = Field(description="颜色")


class GradientFill(BaseModel):
    """渐变填充描述.

    Attributes:
        gradient: 渐变类型（linear 或 radial）
        angle: 线性渐变角度（度，CSS 约定，180 为自上而下）
        stops: 色标列表
    """

    gradient: Literal["linear", "radial"] = "linear"
    angle: float = 180.0
    stops: list[ColorStop] = Field(min_length=2)

    @classmethod
    def from_css(cls, value: str) -> "GradientFill":
        """解析 CSS 渐变字符串.

        支持 ``linear-gradient(135deg, #6366f1, #8b5cf6)`` 与
        ``radial-gradient(circle, rgba(0, 255, 255, 0.1), transparent)`` 形式。

        Args:
            value: CSS 渐变字符串

        Returns:
            GradientFill 实例

        Raises:
            ValueError: 字符串不是有效的渐变
        """
        match = re.fullmatch(r"\s*(linear|radial)-gradient\((.*)\)\s*", value, re.S)
        if not match:
            raise ValueError(f"无效的渐变描述: {value}")

        kind, body = match.group(1), match.group(2)
        args = _split_top_level(body)
        angle = 180.0
        if args:
            first = args[0].strip()
            if first.endswith("deg"):
                angle = float(first[:-3])
                args = args[1:]
            elif first.startswith("to ") or first in ("circle", "ellipse"):
                args = args[1:]

        raw_stops: list[tuple[str, Optional[float]]] = []
        for arg in args:
            stop_match = re.fullmatch(r"\s*(.+?)\s+(-?\d+(?:\.\d+)?)%\s*", arg)
            if stop_match:
                raw_stops.append((stop_match.group(1), float(stop_match.group(2)) / 100))
            else:
                raw_stops.append((arg.strip(), None))

        if len(raw_stops) < 2:
            raise ValueError(f"渐变至少需要两个色标: {value}")

        last = len(raw_stops) - 1
        stops = [
            ColorStop(
                color=color,
                offset=min(1.0, max(0.0, offset if offset is not None else i / last)),
            )
            for i, (color, offset) in enumerate(raw_stops)
        ]
        return cls(gradient=kind, angle=angle, stops=stops)


def _split_top_level(body: str) -> list[str]:
    """按顶层逗号切分（忽略括号内的逗号）."""
    parts: list[str] = []
    depth = 0
    current = ""
    for char in body:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += char
    if current.strip():
        parts.append(current)
    return parts


# ===================
# 元素载荷
# ===================


class TextShadow(BaseModel):
    """文字阴影."""

    offset_x: float = 0
    offset_y: float = 0
    blur: float = Field(default=0, ge=0)
    color: str = "rgba(0, 0, 0, 0.5)"


class TextData(BaseModel):
    """文字载荷.

    文本中可包含 ``{{placeholder}}`` 占位符，渲染前由产品字段替换。
    """

    kind: Literal["text"] = "text"
    text: str = ""
    font_family: str = "Arial"
    font_size: float = Field(default=12, gt=0)
    font_weight: str = "normal"
    font_style: str = "normal"
    color: str = "#000000"
    background_color: Optional[str] = None
    text_align: TextAlign = TextAlign.LEFT
    line_height: float = Field(default=1.2, gt=0)
    letter_spacing: float = 0
    text_decoration: str = "none"
    text_shadow: Optional[TextShadow] = None

    @field_validator("text_shadow", mode="before")
    @classmethod
    def parse_shadow(cls, v: Any) -> Any:
        """解析 CSS 阴影，如 ``2px 2px 4px rgba(0,0,0,0.3)``（px 视为产品单位）."""
        if not isinstance(v, str):
            return v
        if v.strip() in ("", "none"):
            return None
        match = re.fullmatch(r"\s*(-?[\d.]+)(?:px)?\s+(-?[\d.]+)(?:px)?(?:\s+([\d.]+)(?:px)?)?\s*(.*)", v)
        if not match:
            raise ValueError(f"无效的阴影描述: {v}")
        offset_x, offset_y, blur, color = match.groups()
        return {
            "offset_x": float(offset_x),
            "offset_y": float(offset_y),
            "blur": float(blur or 0),
            "color": color.strip() or "rgba(0, 0, 0, 0.5)",
        }

    @property
    def is_bold(self) -> bool:
        """是否粗体."""
        return self.font_weight in ("bold", "bolder") or (
            self.font_weight.isdigit() and int(self.font_weight) >= 600
        )


class ImageData(BaseModel):
    """图片载荷.

    裁剪矩形以源图尺寸的百分比表示。
    """

    kind: Literal["image"] = "image"
    src: str = ""
    alt: str = ""
    filter: Optional[str] = None
    brightness: float = Field(default=1.0, ge=0)
    contrast: float = Field(default=1.0, ge=0)
    saturation: float = Field(default=1.0, ge=0)
    blur: float = Field(default=0, ge=0)
    crop_x: float = Field(default=0, ge=0, le=100)
    crop_y: float = Field(default=0, ge=0, le=100)
    crop_width: float = Field(default=100, gt=0, le=100)
    crop_height: float = Field(default=100, gt=0, le=100)
    mask_shape: Optional[Literal["circle", "ellipse", "rounded", "hexagon", "heart"]] = None


class ShapeData(BaseModel):
    """形状载荷."""

    kind: Literal["shape"] = "shape"
    shape: ShapeKind = ShapeKind.RECTANGLE
    fill: Union[GradientFill, str] = "#cccccc"
    stroke: Optional[str] = None
    stroke_width: float = Field(default=0, ge=0)
    stroke_dash_array: Optional[list[float]] = None
    border_radius: Optional[float] = Field(default=None, ge=0)
    points: Optional[list[Point]] = None

    @field_validator("fill", mode="before")
    @classmethod
    def parse_gradient(cls, v: Any) -> Any:
        """将 CSS 渐变字符串转换为结构化描述."""
        if isinstance(v, str) and "gradient(" in v:
            return GradientFill.from_css(v)
        return v

    @field_validator("points", mode="before")
    @classmethod
    def parse_points(cls, v: Any) -> Any:
        """接受 ``{"x": .., "y": ..}`` 形式的点."""
        if isinstance(v, list):
            return [(p["x"], p["y"]) if isinstance(p, dict) else p for p in v]
        return v

    @property
    def has_stroke(self) -> bool:
        """是否绘制描边."""
        return bool(self.stroke) and self.stroke != "none" and self.stroke_width > 0


ElementData = Annotated[Union[TextData, ImageData, ShapeData], Field(discriminator="kind")]


# ===================
# 设计元素
# ===================


class DesignElement(BaseModel):
    """设计元素.

    印刷品某一面上的定位、可旋转、分层的可视化元素。

    Attributes:
        id: 元素唯一标识（创建时生成）
        type: 元素类型
        x: X 坐标（产品物理单位）
        y: Y 坐标（产品物理单位）
        width: 宽度
        height: 高度
        rotation: 旋转角度，规范化到 [0, 360)
        opacity: 不透明度 (0-1)
        layer: 层级，数值越大越靠前
        locked: 是否锁定（锁定仍参与渲染）
        visible: 是否可见
        data: 类型相关载荷

    Example:
        >>> element = DesignElement.text_element("{{companyName}}", x=5, y=5, font_size=14)
        >>> element.data.text
        '{{companyName}}'
    """

    id: str = Field(default_factory=generate_element_id, description="元素唯一ID")
    type: ElementType = Field(description="元素类型")

    x: float = Field(default=0, description="X坐标")
    y: float = Field(default=0, description="Y坐标")
    width: float = Field(gt=0, description="宽度")
    height: float = Field(gt=0, description="高度")
    rotation: float = Field(default=0, description="旋转角度")
    opacity: float = Field(default=1.0, ge=0, le=1, description="不透明度")
    layer: int = Field(default=0, ge=0, description="层级")

    locked: bool = Field(default=False, description="是否锁定")
    visible: bool = Field(default=True, description="是否可见")

    data: ElementData

    model_config = ConfigDict(use_enum_values=False)

    @model_validator(mode="before")
    @classmethod
    def infer_payload_kind(cls, values: Any) -> Any:
        """载荷未声明 kind 时按元素类型推断."""
        if not isinstance(values, dict):
            return values
        data = values.get("data")
        if isinstance(data, dict) and "kind" not in data:
            element_type = values.get("type")
            element_type = getattr(element_type, "value", element_type)
            inferred = {
                "text": "text",
                "image": "image",
                "logo": "image",
                "shape": "shape",
                "background": "image" if "src" in data else "shape",
            }.get(element_type)
            if inferred:
                values = {**values, "data": {**data, "kind": inferred}}
        return values

    @field_validator("rotation")
    @classmethod
    def normalize_rotation(cls, v: float) -> float:
        """将旋转角度规范化到 [0, 360)."""
        return v % 360

    @model_validator(mode="after")
    def check_payload(self) -> "DesignElement":
        """校验载荷与元素类型匹配."""
        allowed = ALLOWED_PAYLOADS[self.type]
        if self.data.kind not in allowed:
            raise ValueError(f"元素类型 {self.type.value} 不能携带 {self.data.kind} 载荷")
        return self

    @property
    def bounds(self) -> Bounds:
        """获取元素边界框 (left, top, right, bottom)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @property
    def area(self) -> float:
        """元素面积."""
        return self.width * self.height

    def with_new_id(self) -> "DesignElement":
        """复制元素并分配新的 ID."""
        return self.model_copy(update={"id": generate_element_id()}, deep=True)

    # ===================
    # 工厂方法
    # ===================

    @classmethod
    def text_element(
        cls,
        text: str,
        x: float = 0,
        y: float = 0,
        width: float = 50,
        height: float = 10,
        font_size: float = 12,
        layer: int = 1,
        element_id: Optional[str] = None,
        **data: Any,
    ) -> "DesignElement":
        """快速创建文字元素.

        Args:
            text: 文字内容
            x: X坐标
            y: Y坐标
            width: 宽度
            height: 高度
            font_size: 字号
            layer: 层级
            element_id: 指定 ID，默认自动生成
            **data: 其他文字载荷字段

        Returns:
            DesignElement 实例
        """
        return cls(
            id=element_id or generate_element_id(),
            type=ElementType.TEXT,
            x=x,
            y=y,
            width=width,
            height=height,
            layer=layer,
            data=TextData(text=text, font_size=font_size, **data),
        )

    @classmethod
    def shape_element(
        cls,
        shape: ShapeKind | str = ShapeKind.RECTANGLE,
        x: float = 0,
        y: float = 0,
        width: float = 10,
        height: float = 10,
        fill: Any = "#cccccc",
        layer: int = 0,
        element_id: Optional[str] = None,
        element_type: ElementType = ElementType.SHAPE,
        **data: Any,
    ) -> "DesignElement":
        """快速创建形状元素."""
        return cls(
            id=element_id or generate_element_id(),
            type=element_type,
            x=x,
            y=y,
            width=width,
            height=height,
            layer=layer,
            data=ShapeData(shape=ShapeKind(shape), fill=fill, **data),
        )

    @classmethod
    def image_element(
        cls,
        src: str,
        x: float = 0,
        y: float = 0,
        width: float = 20,
        height: float = 20,
        layer: int = 1,
        element_id: Optional[str] = None,
        element_type: ElementType = ElementType.IMAGE,
        **data: Any,
    ) -> "DesignElement":
        """快速创建图片元素."""
        return cls(
            id=element_id or generate_element_id(),
            type=element_type,
            x=x,
            y=y,
            width=width,
            height=height,
            layer=layer,
            data=ImageData(src=src, **data),
        )
