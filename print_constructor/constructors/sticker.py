"""贴纸构造器.

Features:
    - 材质、背胶和使用环境的兼容性检查
    - 模切轮廓复杂度分析（点数与锐角）
    - 从元素几何自动生成模切轮廓
    - 可变数据（编号、条码）字段
    - 导出时的镭射、反光与覆膜效果，PDF 叠加红色模切线
"""

from __future__ import annotations

import math
from datetime import date
from functools import lru_cache
from typing import Any, Literal, Mapping, Optional, Sequence

from PIL import Image, ImageDraw
from pydantic import BaseModel, Field, field_validator

from print_constructor.core.base_constructor import BaseConstructor
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.design_element import (
    DesignElement,
    ElementType,
    GradientFill,
    ImageData,
    Point,
    ShapeData,
    ShapeKind,
    TextAlign,
    TextData,
)
from print_constructor.models.product_config import ProductConfig, Unit
from print_constructor.models.results import DesignValidationResult, PriceQuote
from print_constructor.models.template import DesignTemplate, TemplateMetadata
from print_constructor.services import effects
from print_constructor.services.exporter import RenderJob
from print_constructor.services.pricing import PriceBuilder, tier_rate
from print_constructor.services.rasterizer import draw_dashed_line, parse_color
from print_constructor.utils.helpers import qr_code_url
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)

StickerType = Literal["vinyl", "paper", "transparent", "holographic", "reflective", "removable", "permanent"]
ApplicationArea = Literal["indoor", "outdoor", "automotive", "packaging", "promotional", "safety", "decorative"]
CutType = Literal["kiss-cut", "die-cut", "contour-cut", "perforation-cut", "laser-cut", "no-cut"]
CutComplexity = Literal["simple", "medium", "complex", "very-complex"]


# ===================
# 常量定义
# ===================

QUANTITY_DISCOUNTS = [(10000, 0.30), (5000, 0.25), (1000, 0.20), (500, 0.15), (250, 0.10), (100, 0.05)]

MATERIAL_MULTIPLIERS = {
    "vinyl": 1.0,
    "paper": 0.7,
    "transparent": 1.3,
    "holographic": 2.5,
    "reflective": 3.0,
    "removable": 1.4,
    "permanent": 1.1,
}

CUT_MULTIPLIERS = {
    "kiss-cut": 1.0,
    "die-cut": 1.2,
    "laser-cut": 1.8,
    "perforation-cut": 1.4,
}
CONTOUR_CUT_MULTIPLIERS = {"simple": 1.3, "medium": 1.6, "complex": 2.2, "very-complex": 3.5}

# 每 cm² 价格
LAMINATION_PRICE_PER_CM2 = 5
WEEDING_PRICE_PER_CM2 = 2
LAMINATION_MULTIPLIERS = {"uv_protection": 1.3, "anti_scratch": 1.2}
ANTI_GRAFFITI_MULTIPLIER = 1.8

SPECIAL_FEATURE_PRICES = {
    "qr_integration": 2,
    "variable_data": 5,
    "security_features": 10,
    "glow": 8,
    "thermal": 6,
    "scratch": 12,
}
PACKAGING_PRICES = {"individual": 1, "transfer_tape": 3, "application_instructions": 0.5}

# 轮廓点数阈值
COMPLEXITY_THRESHOLDS = [(100, "very-complex"), (50, "complex"), (20, "medium")]
TIGHT_CORNER_ANGLE = 30
DEFAULT_BRIDGE_WIDTH = 2
# 沿轮廓相距不足 桥宽 × 该系数 的两处视为相邻，不参与连接桥检查
BRIDGE_PATH_FACTOR = 3

MIN_ELEMENT_SIZE = 3
SMALL_STICKER_SIDE = 30
OUTDOOR_MAX_TEMPERATURE = 80
OUTDOOR_MIN_TEMPERATURE = -20
TEXT_CUT_MARGIN = 2
CIRCLE_CUT_STEP = 10

QR_ELEMENT_ID = "sticker_qr_code"
QR_MARGIN = 2
MIN_EXPORT_DPI = 300

CUT_LINE_COLOR = "#ff0000"

HOLOGRAPHIC_BACKGROUND = GradientFill(
    angle=45,
    stops=[{"offset": 0, "color": "#ffd700"}, {"offset": 1, "color": "#ff69b4"}],
)
HOLOGRAPHIC_SHAPE_FILL = GradientFill(
    gradient="radial",
    stops=[
        {"offset": 0, "color": "#ffd700"},
        {"offset": 0.5, "color": "#ff69b4"},
        {"offset": 1, "color": "#00ffff"},
    ],
)
HOLOGRAPHIC_OVERLAY = GradientFill(
    angle=135,
    stops=[
        {"offset": 0, "color": "rgba(255, 0, 0, 0.1)"},
        {"offset": 0.2, "color": "rgba(255, 165, 0, 0.1)"},
        {"offset": 0.4, "color": "rgba(255, 255, 0, 0.1)"},
        {"offset": 0.6, "color": "rgba(0, 255, 0, 0.1)"},
        {"offset": 0.8, "color": "rgba(0, 0, 255, 0.1)"},
        {"offset": 1, "color": "rgba(128, 0, 128, 0.1)"},
    ],
)
REFLECTIVE_OVERLAY = GradientFill(
    gradient="radial",
    stops=[
        {"offset": 0, "color": "rgba(255, 255, 255, 0.3)"},
        {"offset": 0.5, "color": "rgba(192, 192, 192, 0.2)"},
        {"offset": 1, "color": "rgba(128, 128, 128, 0.1)"},
    ],
)
LAMINATION_OVERLAY = GradientFill(
    angle=160,
    stops=[{"offset": 0, "color": "rgba(255, 255, 255, 0.2)"}, {"offset": 1, "color": "rgba(255, 255, 255, 0)"}],
)

BACKGROUND_COLORS = {"reflective": "#c0c0c0", "transparent": None}

VARIABLE_SAMPLES = {"number": "001", "code": "ABC123"}

STICKER_TYPE_PRESETS: dict[str, dict[str, Any]] = {
    "vinyl": {"sticker_properties": {"weather_resistance": True, "adhesive_strength": "high"}},
    "paper": {"sticker_properties": {"weather_resistance": False, "adhesive_strength": "medium"}},
    "holographic": {"special_features": {"security_features": True}},
    "reflective": {"application_area": "safety"},
}

CUT_TYPE_PRESETS: dict[str, dict[str, Any]] = {
    "contour-cut": {"weeding_required": True},
    "kiss-cut": {"weeding_required": False},
    "laser-cut": {"minimum_cut_radius": 0.5},
}

MATERIAL_RECOMMENDATIONS: dict[str, list[tuple[str, str]]] = {
    "outdoor": [("vinyl", "乙烯基：耐候、耐用"), ("reflective", "反光材质：用于安全标识")],
    "automotive": [("vinyl", "乙烯基：耐高温"), ("reflective", "反光材质：用于车牌与车身标识")],
    "packaging": [("paper", "纸质：包装用的经济方案"), ("transparent", "透明材质：适合品牌标签")],
}
DEFAULT_MATERIAL_RECOMMENDATIONS = [("vinyl", "乙烯基：通用方案"), ("paper", "纸质：经济方案")]


# ===================
# 配置模型
# ===================


class TemperatureRange(BaseModel):
    min: float = -10
    max: float = 60


class StickerProperties(BaseModel):
    """材质属性（厚度单位 μm）."""

    material: Literal["vinyl", "paper", "polyester", "polypropylene", "static-cling", "fabric"] = "vinyl"
    adhesive: Literal["permanent", "removable", "repositionable", "none", "static"] = "permanent"
    adhesive_strength: Literal["low", "medium", "high", "aggressive"] = "medium"
    finish: Literal["gloss", "matte", "semi-gloss", "textured", "metallic", "holographic"] = "gloss"
    thickness: float = Field(default=80, gt=0)
    weather_resistance: bool = False
    fade_resistance: bool = True
    scratch_resistance: bool = False
    temperature: TemperatureRange = Field(default_factory=TemperatureRange)


class CuttingDetails(BaseModel):
    """模切参数（长度单位 mm）."""

    cut_path: list[Point] = Field(default_factory=list)
    cut_complexity: CutComplexity = "simple"
    minimum_cut_radius: float = Field(default=1, ge=0)
    bridge_width: float = Field(default=DEFAULT_BRIDGE_WIDTH, ge=0)
    weeding_required: bool = False
    cut_tolerance: float = Field(default=0.1, ge=0)

    @field_validator("cut_path", mode="before")
    @classmethod
    def parse_points(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [(p["x"], p["y"]) if isinstance(p, dict) else p for p in v]
        return v


class Lamination(BaseModel):
    enabled: bool = False
    type: Literal["protective", "decorative", "anti-graffiti", "anti-slip"] = "protective"
    thickness: float = 25
    uv_protection: bool = False
    anti_scratch: bool = False


class PackagingOptions(BaseModel):
    individual: bool = True
    sheets: bool = False
    rolls: bool = False
    transfer_tape: bool = False
    application_instructions: bool = False


class StickerSpecialFeatures(BaseModel):
    qr_integration: bool = False
    variable_data: bool = False
    security_features: bool = False
    glow: bool = False
    thermal: bool = False
    scratch: bool = False

    def enabled(self) -> list[str]:
        return [name for name, value in self.model_dump().items() if value]


class StickerConfig(ProductConfig):
    """贴纸配置."""

    category: str = "stickers"
    sticker_type: StickerType = "vinyl"
    application_area: ApplicationArea = "indoor"
    cut_type: CutType = "contour-cut"
    sticker_properties: StickerProperties = Field(default_factory=StickerProperties)
    cutting_details: CuttingDetails = Field(default_factory=CuttingDetails)
    lamination: Lamination = Field(default_factory=Lamination)
    packaging_options: PackagingOptions = Field(default_factory=PackagingOptions)
    special_features: StickerSpecialFeatures = Field(default_factory=StickerSpecialFeatures)


class CutAnalysis(BaseModel):
    """模切轮廓分析结果."""

    complexity: CutComplexity = "simple"
    too_complex: bool = False
    tight_corners: bool = False
    thin_bridges: bool = False


# ===================
# 轮廓几何
# ===================


def rectangle_path(x: float, y: float, width: float, height: float, margin: float = 0) -> list[Point]:
    """闭合矩形轮廓（首尾点相同）."""
    left, top = x - margin, y - margin
    right, bottom = x + width + margin, y + height + margin
    return [(left, top), (right, top), (right, bottom), (left, bottom), (left, top)]


def circle_path(x: float, y: float, width: float, height: float, step: int = CIRCLE_CUT_STEP) -> list[Point]:
    """按 step 度采样的闭合圆形轮廓."""
    cx, cy = x + width / 2, y + height / 2
    radius = min(width, height) / 2
    return [
        (cx + radius * math.cos(math.radians(angle)), cy + radius * math.sin(math.radians(angle)))
        for angle in range(0, 361, step)
    ]


def vertex_angle(prev: Point, curr: Point, next_: Point) -> Optional[float]:
    """curr 处两条边的夹角（度），存在零长度边时返回 None."""
    v1 = (prev[0] - curr[0], prev[1] - curr[1])
    v2 = (next_[0] - curr[0], next_[1] - curr[1])
    mag1 = math.hypot(*v1)
    mag2 = math.hypot(*v2)
    if mag1 == 0 or mag2 == 0:
        return None
    cos = (v1[0] * v2[0] + v1[1] * v2[1]) / (mag1 * mag2)
    return math.degrees(math.acos(max(-1.0, min(1.0, cos))))


def point_segment_distance(point: Point, start: Point, end: Point) -> float:
    """点到线段的距离."""
    dx, dy = end[0] - start[0], end[1] - start[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.hypot(point[0] - start[0], point[1] - start[1])
    t = ((point[0] - start[0]) * dx + (point[1] - start[1]) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(point[0] - (start[0] + t * dx), point[1] - (start[1] + t * dy))


def has_thin_bridge(path: Sequence[Point], bridge_width: float) -> bool:
    """检查轮廓是否存在过窄的连接桥.

    沿轮廓相距较远的顶点与线段之间，空间距离小于桥宽即视为细颈。
    """
    if bridge_width <= 0 or len(path) < 4:
        return False

    positions = [0.0]
    for prev, curr in zip(path, path[1:]):
        positions.append(positions[-1] + math.hypot(curr[0] - prev[0], curr[1] - prev[1]))
    total = positions[-1]
    closed = path[0] == path[-1]
    min_separation = bridge_width * BRIDGE_PATH_FACTOR

    for i, point in enumerate(path):
        for j in range(len(path) - 1):
            separation = min(abs(positions[i] - positions[j]), abs(positions[i] - positions[j + 1]))
            if closed:
                separation = min(separation, total - separation)
            if separation < min_separation:
                continue
            if point_segment_distance(point, path[j], path[j + 1]) < bridge_width:
                return True
    return False


def analyze_cut_path(path: Sequence[Point], bridge_width: float = DEFAULT_BRIDGE_WIDTH) -> CutAnalysis:
    """分析模切轮廓.

    点数超过 100 视为过于复杂；任一顶点夹角小于 30 度视为刀具难以加工的锐角；
    存在窄于桥宽的细颈时标记连接桥过窄。

    Args:
        path: 轮廓点列表
        bridge_width: 最小连接桥宽度

    Returns:
        CutAnalysis
    """
    complexity: CutComplexity = "simple"
    for threshold, level in COMPLEXITY_THRESHOLDS:
        if len(path) > threshold:
            complexity = level  # type: ignore[assignment]
            break

    tight_corners = False
    for i in range(1, len(path) - 1):
        angle = vertex_angle(path[i - 1], path[i], path[i + 1])
        if angle is not None and angle < TIGHT_CORNER_ANGLE:
            tight_corners = True
            break

    return CutAnalysis(
        complexity=complexity,
        too_complex=complexity == "very-complex",
        tight_corners=tight_corners,
        thin_bridges=has_thin_bridge(path, bridge_width),
    )


def size_multiplier(area_cm2: float) -> float:
    """尺寸乘数，特别小的贴纸加工难度更高."""
    if area_cm2 > 100:
        return 2.5
    if area_cm2 > 50:
        return 2.0
    if area_cm2 > 25:
        return 1.5
    if area_cm2 > 10:
        return 1.2
    if area_cm2 < 5:
        return 1.8
    return 1.0


def sample_variable_data(text: str, today: Optional[date] = None) -> str:
    """用示例值替换可变数据占位符（``{{number}}``、``{{code}}``、``{{date}}``、``###``）."""
    samples = {**VARIABLE_SAMPLES, "date": (today or date.today()).isoformat()}
    for name, value in samples.items():
        text = text.replace(f"{{{{{name}}}}}", value)
    return text.replace("###", "001")


# ===================
# 种子模板
# ===================


@lru_cache(maxsize=1)
def _seed_templates() -> tuple[DesignTemplate, ...]:
    logo = DesignTemplate(
        id="st_logo_001",
        name="企业标志贴纸",
        category="stickers",
        subcategory="corporate",
        product_type="stickers",
        thumbnail="/templates/stickers/corporate-logo.jpg",
        tags=["logo", "corporate", "contour-cut", "professional"],
        attributes={
            "sticker_type": "vinyl",
            "application_area": "promotional",
            "cut_type": "contour-cut",
            "shape": "logo-shaped",
            "has_contour_cut": True,
            "complexity": "medium",
            "weatherproof": True,
        },
        elements=[
            DesignElement.image_element(
                "/placeholder-company-logo.svg", x=5, y=5, width=40, height=40,
                element_id="logo_shape", alt="Company Logo",
            ),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Sticker Team",
            description="品牌推广用的标志轮廓模切贴纸",
            usage_count=156,
            rating=4.7,
        ),
    )
    warning = DesignTemplate(
        id="st_warning_001",
        name="警示贴纸",
        category="stickers",
        subcategory="safety",
        product_type="stickers",
        thumbnail="/templates/stickers/warning-safety.jpg",
        tags=["warning", "safety", "outdoor", "durable"],
        attributes={
            "sticker_type": "reflective",
            "application_area": "safety",
            "cut_type": "die-cut",
            "shape": "rectangle",
            "has_contour_cut": False,
            "complexity": "simple",
            "weatherproof": True,
        },
        elements=[
            DesignElement.shape_element(
                width=80, height=30, fill="#ff6b35", element_id="warning_bg",
                stroke="#ffffff", stroke_width=2,
            ).model_copy(update={"locked": True}),
            DesignElement.text_element(
                "注意！", x=5, y=8, width=70, height=14, font_size=12, layer=2,
                element_id="warning_text", font_family="Inter", font_weight="bold",
                color="#ffffff", text_align=TextAlign.CENTER, letter_spacing=1,
            ),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Sticker Team",
            description="反光警示贴纸",
            usage_count=89,
            rating=4.9,
        ),
    )
    holographic = DesignTemplate(
        id="st_holographic_001",
        name="镭射防伪标签",
        category="stickers",
        subcategory="security",
        product_type="stickers",
        thumbnail="/templates/stickers/holographic-security.jpg",
        is_premium=True,
        tags=["holographic", "security", "anti-counterfeit", "premium"],
        attributes={
            "sticker_type": "holographic",
            "application_area": "packaging",
            "cut_type": "kiss-cut",
            "shape": "custom",
            "has_contour_cut": True,
            "complexity": "complex",
            "weatherproof": False,
        },
        elements=[
            DesignElement.shape_element(
                "circle", width=40, height=40, element_id="holo_pattern",
                fill="radial-gradient(circle, rgba(255, 215, 0, 0.8), rgba(255, 20, 147, 0.8))",
                stroke="#c0c0c0", stroke_width=1,
            ),
            DesignElement.text_element(
                "ORIGINAL", x=8, y=16, width=24, height=8, font_size=6,
                element_id="security_text", font_family="Inter", font_weight="bold",
                text_align=TextAlign.CENTER, line_height=1, letter_spacing=0.5,
            ),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Sticker Team",
            description="防伪镭射标签",
            usage_count=45,
            rating=4.8,
        ),
    )
    return (logo, warning, holographic)


# ===================
# 构造器
# ===================


class StickerConstructor(BaseConstructor):
    """贴纸构造器.

    Example:
        >>> constructor = StickerConstructor()
        >>> constructor.update_cut_path([(0, 0), (50, 0), (25, 40), (0, 0)])
        'simple'
    """

    product_type = "stickers"
    config_class = StickerConfig
    config: StickerConfig

    def default_config(self, supplied: Mapping[str, Any]) -> dict[str, Any]:
        dimensions = {**{"width": 50, "height": 50, "unit": "mm", "dpi": 300}, **supplied.get("dimensions", {})}
        width, height = dimensions["width"], dimensions["height"]
        return {
            "name": "贴纸",
            "category": "stickers",
            "dimensions": dimensions,
            "print_area": {"x": 2, "y": 2, "width": width - 4, "height": height - 4},
            "bleed_area": 2,
            "materials": ["vinyl"],
            "finishes": ["gloss"],
            "orientation": "landscape" if width >= height else "portrait",
            "sides": 1,
            "min_quantity": 10,
            "max_quantity": 100000,
            "base_price": 50,
            "price_per_unit": 2,
            "constraints": {"min_font_size": 4, "required_dpi": 300},
            "cutting_details": {"cut_path": rectangle_path(0, 0, width, height)},
        }

    def seed_templates(self) -> list[DesignTemplate]:
        return list(_seed_templates())

    def get_area_cm2(self) -> float:
        width_cm, height_cm = self.config.dimensions.size_in(Unit.CM)
        return round(width_cm * height_cm, 6)

    def analyze_cut_complexity(self) -> CutAnalysis:
        details = self.config.cutting_details
        return analyze_cut_path(details.cut_path, details.bridge_width)

    # ===================
    # 校验
    # ===================

    def validate_design(self) -> DesignValidationResult:
        """校验贴纸设计.

        检查元素尺寸、字号、模切轮廓、使用环境与材质匹配、二维码和可变数据。
        """
        result = DesignValidationResult()
        config = self.config
        elements = self.get_all_elements()
        max_side = config.dimensions.max_side

        for element in elements:
            if element.width < MIN_ELEMENT_SIZE or element.height < MIN_ELEMENT_SIZE:
                result.add_error(f'元素 "{element.id}" 尺寸过小，无法保证印刷质量（最小 {MIN_ELEMENT_SIZE}mm）')

        text_elements = [e for e in elements if isinstance(e.data, TextData)]
        min_font_size = 6 if max_side < SMALL_STICKER_SIDE else 4
        for element in text_elements:
            if element.data.font_size < min_font_size:
                result.add_error(f"字号 {element.data.font_size}pt 对 {max_side:g}mm 的贴纸过小")

        if config.cut_type == "contour-cut":
            analysis = self.analyze_cut_complexity()
            if analysis.too_complex:
                result.add_error("模切轮廓过于复杂，请简化形状或改用 kiss-cut")
            if analysis.tight_corners:
                result.add_error(f"模切转角半径不应小于 {config.cutting_details.minimum_cut_radius:g}mm")
            if analysis.thin_bridges:
                result.add_error(f"连接桥宽度不应小于 {config.cutting_details.bridge_width:g}mm")

        properties = config.sticker_properties
        application = config.application_area
        if application == "outdoor" and not properties.weather_resistance:
            result.add_error("户外使用需要耐候材质")
        if application == "automotive" and properties.adhesive_strength == "low":
            result.add_error("车贴需要强力背胶")
        if application == "safety" and config.sticker_type != "reflective":
            result.add_error("警示贴纸必须使用反光材质")

        if application in ("outdoor", "automotive"):
            if properties.temperature.max < OUTDOOR_MAX_TEMPERATURE:
                result.add_error(f"户外材质需耐受 {OUTDOOR_MAX_TEMPERATURE}°C 高温")
            if properties.temperature.min > OUTDOOR_MIN_TEMPERATURE:
                result.add_error(f"户外材质需在 {OUTDOOR_MIN_TEMPERATURE}°C 低温下使用")

        if application == "outdoor" and not config.lamination.enabled:
            result.add_warning("户外使用建议覆膜")

        special = config.special_features
        if special.qr_integration and not any("qr" in element.id for element in elements):
            result.add_error("已启用二维码，但设计中没有二维码元素")

        if special.variable_data:
            has_variables = any("{{" in e.data.text or "###" in e.data.text for e in text_elements)
            if not has_variables:
                result.add_error("已启用可变数据，但设计中没有可变数据字段")

        return result

    # ===================
    # 报价
    # ===================

    def calculate_price(self, quantity: int) -> PriceQuote:
        """计算贴纸报价.

        大批量折扣力度更大；覆膜和排废按面积计价，特殊工艺和包装按件计价。
        """
        config = self.config
        builder = PriceBuilder(config.base_price, config.price_per_unit, quantity, self.settings.currency)
        area = self.get_area_cm2()
        cutting = config.cutting_details

        if config.cut_type == "contour-cut":
            cutting_multiplier = CONTOUR_CUT_MULTIPLIERS[cutting.cut_complexity]
        else:
            cutting_multiplier = CUT_MULTIPLIERS.get(config.cut_type, 1.0)

        builder.multiply("size", size_multiplier(area))
        builder.multiply("material", MATERIAL_MULTIPLIERS[config.sticker_type])
        builder.multiply("cutting", cutting_multiplier)
        builder.discount(tier_rate(quantity, QUANTITY_DISCOUNTS))

        lamination = config.lamination
        lamination_price = 0.0
        if lamination.enabled:
            lamination_price = quantity * area * LAMINATION_PRICE_PER_CM2
            for option, factor in LAMINATION_MULTIPLIERS.items():
                if getattr(lamination, option):
                    lamination_price *= factor
            if lamination.type == "anti-graffiti":
                lamination_price *= ANTI_GRAFFITI_MULTIPLIER
        builder.surcharge("lamination", lamination_price)

        special = config.special_features
        special_price = sum(quantity * SPECIAL_FEATURE_PRICES[name] for name in special.enabled())
        builder.surcharge("special_features", special_price)

        packaging = config.packaging_options
        packaging_price = sum(
            quantity * unit_price for name, unit_price in PACKAGING_PRICES.items() if getattr(packaging, name)
        )
        builder.surcharge("packaging", packaging_price)

        weeding_price = quantity * area * WEEDING_PRICE_PER_CM2 if cutting.weeding_required else 0.0
        builder.surcharge("weeding", weeding_price)

        dimensions = config.dimensions
        builder.detail("size", f"{dimensions.width:g}x{dimensions.height:g}{dimensions.unit.value}")
        builder.detail("area", f"{area:.1f}cm²")
        builder.detail("material", config.sticker_type)
        builder.detail("cut_type", config.cut_type)
        builder.detail("cut_complexity", cutting.cut_complexity)
        builder.detail("has_lamination", lamination.enabled)
        builder.detail("special_features", special.enabled())
        return builder.build(
            {
                "size_multiplier": size_multiplier(area),
                "material_multiplier": MATERIAL_MULTIPLIERS[config.sticker_type],
                "cutting_multiplier": cutting_multiplier,
                "lamination_price": round(lamination_price, 2),
                "special_features_price": round(special_price, 2),
                "packaging_price": round(packaging_price, 2),
                "weeding_price": round(weeding_price, 2),
            }
        )

    # ===================
    # 导出
    # ===================

    def resolve_text(self, text: str) -> str:
        if self.config.special_features.variable_data:
            return sample_variable_data(text)
        return text

    def _holographic_elements(self, elements: list[DesignElement]) -> list[DesignElement]:
        """镭射贴纸：渐变形状改用彩虹渐变，并在底层加镭射底色."""
        dimensions = self.config.dimensions
        background = DesignElement.shape_element(
            width=dimensions.width,
            height=dimensions.height,
            fill=HOLOGRAPHIC_BACKGROUND,
            element_type=ElementType.BACKGROUND,
        )
        converted = []
        for element in elements:
            if isinstance(element.data, ShapeData) and isinstance(element.data.fill, GradientFill):
                element = element.model_copy(
                    update={"data": element.data.model_copy(update={"fill": HOLOGRAPHIC_SHAPE_FILL})}
                )
            converted.append(element)
        return [background, *converted]

    def _draw_cut_path(self, canvas: Image.Image, scale: float) -> Image.Image:
        path = self.config.cutting_details.cut_path
        draw = ImageDraw.Draw(canvas)
        color = parse_color(CUT_LINE_COLOR)
        dash = [2 * scale, 2 * scale]
        width = max(1, round(scale * 0.1))
        for start, end in zip(path, path[1:]):
            draw_dashed_line(
                draw, (start[0] * scale, start[1] * scale), (end[0] * scale, end[1] * scale), dash, color, width
            )
        return canvas

    def build_render_job(self, format: str, dpi: Optional[float]) -> RenderJob:
        """贴纸导出：材质底色与材质效果，PDF 轮廓模切时叠加红色虚线."""
        config = self.config
        if dpi is None:
            dpi = max(config.dimensions.dpi, MIN_EXPORT_DPI)
        job = super().build_render_job(format, dpi)
        job.background = BACKGROUND_COLORS.get(config.sticker_type, "#ffffff")

        if config.sticker_type == "holographic":
            job.elements = self._holographic_elements(job.elements)
            job.post_effects.append(lambda canvas, scale: effects.overlay_gradient(canvas, HOLOGRAPHIC_OVERLAY))
        elif config.sticker_type == "reflective":
            job.post_effects.append(lambda canvas, scale: effects.overlay_gradient(canvas, REFLECTIVE_OVERLAY))

        if config.lamination.enabled:
            job.post_effects.append(
                lambda canvas, scale: effects.overlay_gradient(
                    canvas, LAMINATION_OVERLAY, (0, 0, canvas.width, max(1, canvas.height // 3))
                )
            )

        if format.lower() == "pdf" and config.cut_type == "contour-cut":
            job.post_effects.append(self._draw_cut_path)
        return job

    # ===================
    # 贴纸专用操作
    # ===================

    def update_sticker_type(self, sticker_type: StickerType) -> None:
        """切换贴纸材质并套用对应预设."""
        self._update_config(sticker_type=sticker_type)
        for key, value in STICKER_TYPE_PRESETS.get(sticker_type, {}).items():
            if isinstance(value, Mapping):
                self._merge_section(key, value)
            else:
                self._update_config(**{key: value})
        self._emit(ConstructorEvent.STICKER_TYPE_CHANGED, sticker_type)

    def update_cut_type(self, cut_type: CutType) -> None:
        """切换模切方式并调整模切参数."""
        self._update_config(cut_type=cut_type)
        preset = CUT_TYPE_PRESETS.get(cut_type)
        if preset:
            self._merge_section("cutting_details", preset)
        self._emit(ConstructorEvent.CUT_TYPE_CHANGED, cut_type)

    def update_cut_path(self, path: Sequence[Point]) -> CutComplexity:
        """替换模切轮廓并重新计算复杂度.

        Returns:
            新的轮廓复杂度
        """
        points = [tuple(point) for point in path]
        complexity = analyze_cut_path(points).complexity
        self._merge_section("cutting_details", {"cut_path": points, "cut_complexity": complexity})
        logger.debug(f"模切轮廓更新: {len(points)} 个点, 复杂度 {complexity}")
        self._emit(ConstructorEvent.CUT_PATH_UPDATED, {"path": points, "complexity": complexity})
        return complexity

    def generate_cut_path_from_element(self, element_id: str) -> bool:
        """按元素几何生成模切轮廓.

        矩形和圆形按外形生成，图片按边界框，文字按边界框外扩 2mm。

        Returns:
            是否生成了轮廓
        """
        element = self.get_element(element_id)
        if element is None:
            return False

        box = (element.x, element.y, element.width, element.height)
        path: list[Point] = []
        if isinstance(element.data, ShapeData):
            if element.data.shape == ShapeKind.RECTANGLE:
                path = rectangle_path(*box)
            elif element.data.shape == ShapeKind.CIRCLE:
                path = circle_path(*box)
        elif isinstance(element.data, ImageData):
            path = rectangle_path(*box)
        elif isinstance(element.data, TextData):
            path = rectangle_path(*box, margin=TEXT_CUT_MARGIN)

        if not path:
            return False
        self.update_cut_path(path)
        return True

    def add_qr_code_sticker(self, data: str, size: float = 15) -> Optional[DesignElement]:
        """在右下角添加二维码（固定 ID sticker_qr_code）."""
        self._merge_section("special_features", {"qr_integration": True})
        dimensions = self.config.dimensions
        element = DesignElement.image_element(
            qr_code_url(data),
            x=dimensions.width - size - QR_MARGIN,
            y=dimensions.height - size - QR_MARGIN,
            width=size,
            height=size,
            layer=10,
            element_id=QR_ELEMENT_ID,
            alt="QR Code",
        )
        added = self._replace_element(element)
        self._emit(ConstructorEvent.QR_CODE_ADDED, {"data": data, "size": size})
        return added

    def add_variable_data_field(
        self,
        field_name: str,
        position: Point,
        format: str = "###",
    ) -> Optional[DesignElement]:
        """添加可变数据字段（编号、条码等），元素 ID 为 ``variable_{field_name}``."""
        self._merge_section("special_features", {"variable_data": True})
        element = DesignElement.text_element(
            format,
            x=position[0],
            y=position[1],
            width=20,
            height=8,
            font_size=8,
            layer=5,
            element_id=f"variable_{field_name}",
            font_family="Inter",
            line_height=1,
        )
        added = self._replace_element(element)
        self._emit(ConstructorEvent.VARIABLE_DATA_ADDED, {"field_name": field_name, "format": format})
        return added

    def get_sticker_properties(self) -> StickerProperties:
        return self.config.sticker_properties.model_copy(deep=True)

    def get_cutting_details(self) -> CuttingDetails:
        return self.config.cutting_details.model_copy(deep=True)

    def get_special_features(self) -> StickerSpecialFeatures:
        return self.config.special_features.model_copy()

    @staticmethod
    def get_material_recommendations(application: str) -> list[dict[str, str]]:
        """按使用环境推荐材质."""
        options = MATERIAL_RECOMMENDATIONS.get(application, DEFAULT_MATERIAL_RECOMMENDATIONS)
        return [{"material": material, "description": description} for material, description in options]
