"""亚克力构造器.

Features:
    - 板材厚度、透明度、表面与边缘处理
    - 安装系统与角部安装区检查
    - LED 照明与透明度兼容性检查
    - 二维码与智能交互功能
    - 导出时的透明背景、图片增艳与高光效果
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Mapping, Optional

from PIL import Image
from pydantic import BaseModel, Field

from print_constructor.core.base_constructor import BaseConstructor
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.design_element import (
    Bounds,
    DesignElement,
    ElementType,
    GradientFill,
    ImageData,
)
from print_constructor.models.product_config import ProductConfig, Unit
from print_constructor.models.results import DesignValidationResult, PriceQuote
from print_constructor.models.template import DesignTemplate, TemplateMetadata
from print_constructor.services import effects
from print_constructor.services.exporter import RenderJob
from print_constructor.services.pricing import PriceBuilder, tier_rate
from print_constructor.utils.helpers import qr_code_url
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)

Thickness = Literal[3, 5, 8, 10, 12, 15]
QRType = Literal["laser-etched", "printed", "embedded"]


# ===================
# 常量定义
# ===================

STANDARD_SIZES: dict[str, tuple[float, float]] = {
    "small": (20, 15),
    "medium": (30, 20),
    "large": (50, 35),
    "extra-large": (80, 60),
    "custom": (30, 20),
}

QUANTITY_DISCOUNTS = [(20, 0.15), (10, 0.10), (5, 0.05)]

# 面积 (dm²) 与最小厚度 (mm)
THICKNESS_RULES = [(25, 8), (50, 10)]

# 角部安装区边长（与尺寸同单位）
MOUNTING_ZONE_SIZE = 3
LARGE_PANEL_SIDE_CM = 60
MIN_LARGE_STANDOFF_MM = 20
MIN_EDGE_LIT_THICKNESS = 5

AREA_MATERIAL_RATE = 0.1
THICKNESS_MATERIAL_RATE = 0.05
ACRYLIC_GRADE_SURCHARGES = {"premium": 0.3, "uv-resistant": 0.4, "anti-glare": 0.5, "colored": 0.2}
EDGE_FINISH_SURCHARGES = {"flame-polished": 0.2, "diamond-polished": 0.4}

MOUNTING_PRICES = {"standoff-bolts": 200, "floating-mount": 150, "magnetic": 300}
HARDWARE_MULTIPLIERS = {"stainless-steel": 1.5, "brass": 2.0}

ILLUMINATION_PRICES = {"edge-lit": 500, "back-lit": 800, "ambient": 1200}
RGB_LED_MULTIPLIER = 1.5
BATTERY_PRICE = 200

PRINT_TYPE_SURCHARGES = {"reverse-print": 0.3, "double-sided": 0.8, "sandwiched": 1.2}
COLOR_PROFILE_SURCHARGES = {"wide-gamut": 0.2, "pantone-matched": 0.4}
ULTRA_HIGH_RESOLUTION_SURCHARGE = 0.3

QR_PRICES = {"laser-etched": 150, "embedded": 300}
INTERACTIVITY_PRICES = {"touch_sensitive": 800, "proximity_lighting": 600, "smart_connectivity": 1000}
CARBON_NEUTRAL_PRICE = 100

QR_ELEMENT_ID = "acrylic_qr_code"
QR_SIZE = 6
QR_MARGIN = 8
MIN_EXPORT_DPI = 300

TRANSPARENCY_BACKGROUNDS = {
    "frosted": "rgba(255, 255, 255, 0.3)",
    "semi-transparent": "rgba(255, 255, 255, 0.1)",
    "opaque": "#ffffff",
    "crystal-clear": None,
}

PANEL_GLOSS = GradientFill(
    gradient="radial",
    stops=[{"offset": 0, "color": "rgba(255, 255, 255, 0.1)"}, {"offset": 1, "color": "rgba(255, 255, 255, 0)"}],
)
IMAGE_GLOSS = GradientFill(
    angle=160,
    stops=[{"offset": 0, "color": "rgba(255, 255, 255, 0.3)"}, {"offset": 1, "color": "rgba(255, 255, 255, 0)"}],
)

ACRYLIC_TYPE_PRESETS: dict[str, dict[str, Any]] = {
    "logo-display": {"design_style": "corporate", "acrylic_properties": {"thickness": 8}},
    "digital-art": {"design_style": "artistic", "illumination": {"enabled": True}},
    "signage": {"design_style": "modern", "modern_features": {"qr_integration": {"enabled": True}}},
}

DESIGN_PRESETS: dict[str, dict[str, Any]] = {
    "corporate": {
        "acrylic_properties": {
            "thickness": 8, "transparency": "crystal-clear",
            "surface_finish": "high-gloss", "edge_finish": "diamond-polished",
        },
        "mounting_system": {
            "type": "standoff-bolts",
            "hardware": {"material": "stainless-steel", "visible": True, "standoff_distance": 15},
        },
    },
    "modern": {
        "acrylic_properties": {
            "thickness": 5, "transparency": "semi-transparent",
            "surface_finish": "matte", "edge_finish": "polished",
        },
        "illumination": {"enabled": True, "type": "edge-lit", "led_type": "cool-white"},
    },
    "luxury": {
        "acrylic_properties": {
            "thickness": 12, "transparency": "crystal-clear", "grade": "premium",
            "surface_finish": "high-gloss", "edge_finish": "diamond-polished",
        },
        "mounting_system": {
            "type": "floating-mount",
            "hardware": {"material": "brass", "visible": False},
        },
    },
    "tech": {
        "acrylic_properties": {"thickness": 5, "transparency": "frosted", "surface_finish": "matte"},
        "illumination": {"enabled": True, "type": "ambient", "led_type": "rgb", "brightness": 80},
    },
}


# ===================
# 配置模型
# ===================


class AcrylicProperties(BaseModel):
    """板材属性（厚度单位 mm）."""

    thickness: Thickness = 5
    transparency: Literal["crystal-clear", "frosted", "semi-transparent", "opaque"] = "crystal-clear"
    grade: Literal["standard", "premium", "uv-resistant", "anti-glare", "colored"] = "premium"
    color_tint: Optional[str] = None
    surface_finish: Literal["high-gloss", "matte", "textured", "brushed"] = "high-gloss"
    edge_finish: Literal["polished", "flame-polished", "diamond-polished", "satin"] = "diamond-polished"


class MountingHardware(BaseModel):
    material: Literal["stainless-steel", "chrome", "black-oxide", "brass", "aluminum"] = "stainless-steel"
    visible: bool = True
    standoff_distance: Optional[float] = 15


class MountingSystem(BaseModel):
    type: Literal[
        "standoff-bolts", "floating-mount", "wall-cleat", "easel-back", "magnetic", "suction-cups"
    ] = "standoff-bolts"
    hardware: MountingHardware = Field(default_factory=MountingHardware)
    wall_distance: float = 15


class Illumination(BaseModel):
    """LED 照明."""

    enabled: bool = False
    type: Literal["edge-lit", "back-lit", "front-lit", "ambient"] = "edge-lit"
    led_type: Literal["warm-white", "cool-white", "rgb", "programmable"] = "cool-white"
    power: Optional[Literal["battery", "plug-in", "usb"]] = "plug-in"
    brightness: float = Field(default=80, ge=0, le=100)
    color_temperature: int = 6500


class PrintingDetails(BaseModel):
    print_type: Literal["direct-print", "reverse-print", "double-sided", "sandwiched"] = "reverse-print"
    color_profile: Literal["standard-rgb", "wide-gamut", "pantone-matched"] = "wide-gamut"
    resolution: Literal["standard", "high", "ultra-high"] = "high"
    uv_protection: bool = True
    scratch_resistant: bool = True


class QRIntegration(BaseModel):
    enabled: bool = False
    type: QRType = "laser-etched"
    functionality: Literal["info", "portfolio", "contact", "ar-experience"] = "info"
    data: str = ""


class Interactivity(BaseModel):
    enabled: bool = False
    touch_sensitive: bool = False
    proximity_lighting: bool = False
    smart_connectivity: bool = False


class Sustainability(BaseModel):
    enabled: bool = True
    recyclable: bool = True
    eco_friendly_inks: bool = True
    carbon_neutral: bool = False


class ModernFeatures(BaseModel):
    qr_integration: QRIntegration = Field(default_factory=QRIntegration)
    interactivity: Interactivity = Field(default_factory=Interactivity)
    sustainability: Sustainability = Field(default_factory=Sustainability)

    def enabled(self) -> list[str]:
        return [name for name in type(self).model_fields if getattr(self, name).enabled]


class AcrylicConfig(ProductConfig):
    """亚克力配置."""

    category: str = "acrylic"
    acrylic_type: Literal[
        "photo-print", "digital-art", "typography", "logo-display", "architectural", "signage"
    ] = "photo-print"
    design_style: Literal["minimalist", "modern", "corporate", "artistic", "tech", "luxury"] = "modern"
    acrylic_properties: AcrylicProperties = Field(default_factory=AcrylicProperties)
    mounting_system: MountingSystem = Field(default_factory=MountingSystem)
    illumination: Illumination = Field(default_factory=Illumination)
    printing_details: PrintingDetails = Field(default_factory=PrintingDetails)
    modern_features: ModernFeatures = Field(default_factory=ModernFeatures)


def mounting_zones(width: float, height: float, size: float = MOUNTING_ZONE_SIZE) -> list[Bounds]:
    """四个角部安装区 (left, top, right, bottom)."""
    return [
        (0, 0, size, size),
        (width - size, 0, width, size),
        (0, height - size, size, height),
        (width - size, height - size, width, height),
    ]


def _overlaps(a: Bounds, b: Bounds) -> bool:
    return a[0] < b[2] and a[2] > b[0] and a[1] < b[3] and a[3] > b[1]


# ===================
# 种子模板
# ===================


@lru_cache(maxsize=1)
def _seed_templates() -> tuple[DesignTemplate, ...]:
    corporate = DesignTemplate(
        id="ac_corporate_001",
        name="企业标志展示",
        category="acrylic",
        subcategory="corporate",
        product_type="acrylic",
        thumbnail="/templates/acrylic/corporate-logo.jpg",
        tags=["corporate", "logo", "minimalist", "professional"],
        style="corporate",
        attributes={
            "acrylic_type": "logo-display",
            "design_style": "corporate",
            "recommended_thickness": 8,
            "has_illumination": False,
            "modern_features": ["uv-protection", "scratch-resistant"],
            "target_audience": "corporate",
        },
        elements=[
            DesignElement.shape_element(
                element_id="corp_bg", element_type=ElementType.BACKGROUND,
                width=30, height=20, fill="transparent",
            ).model_copy(update={"locked": True}),
            DesignElement.image_element(
                "/placeholder-corporate-logo.svg", x=5, y=5, width=20, height=10, layer=1,
                element_id="company_logo", element_type=ElementType.LOGO, alt="Company Logo",
            ),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Acrylic Team",
            description="适合办公室的优雅企业展示方案",
            usage_count=78,
            rating=4.8,
        ),
    )
    modern = DesignTemplate(
        id="ac_modern_001",
        name="发光现代艺术",
        category="acrylic",
        subcategory="modern-art",
        product_type="acrylic",
        thumbnail="/templates/acrylic/modern-illuminated.jpg",
        is_premium=True,
        tags=["modern", "illuminated", "artistic", "premium"],
        style="artistic",
        attributes={
            "acrylic_type": "digital-art",
            "design_style": "artistic",
            "recommended_thickness": 10,
            "has_illumination": True,
            "modern_features": ["edge-lit", "rgb-lighting", "smart-connectivity"],
            "target_audience": "residential",
        },
        elements=[
            DesignElement.shape_element(
                element_id="modern_art_bg", element_type=ElementType.BACKGROUND, width=40, height=30,
                fill="linear-gradient(45deg, rgba(139, 69, 19, 0.1), rgba(255, 215, 0, 0.1))",
            ),
            DesignElement.shape_element(
                "polygon", x=10, y=8, width=20, height=14, fill="#667eea", layer=1,
                element_id="geometric_pattern", stroke="#764ba2", stroke_width=0.2,
                points=[(0, 7), (10, 0), (20, 7), (10, 14)],
            ).model_copy(update={"opacity": 0.8}),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Acrylic Team",
            description="带 RGB 灯光的室内现代艺术",
            usage_count=34,
            rating=4.9,
        ),
    )
    tech = DesignTemplate(
        id="ac_tech_001",
        name="科技风二维码标牌",
        category="acrylic",
        subcategory="technology",
        product_type="acrylic",
        thumbnail="/templates/acrylic/tech-qr.jpg",
        is_premium=True,
        tags=["tech", "qr-code", "interactive", "futuristic"],
        style="tech",
        attributes={
            "acrylic_type": "signage",
            "design_style": "tech",
            "recommended_thickness": 5,
            "has_illumination": True,
            "modern_features": ["laser-etched-qr", "proximity-lighting", "ar-experience"],
            "target_audience": "corporate",
        },
        elements=[
            DesignElement.shape_element(
                element_id="tech_grid_bg", element_type=ElementType.BACKGROUND, width=25, height=25,
                fill="radial-gradient(circle, rgba(0, 255, 255, 0.1), transparent)",
            ).model_copy(update={"locked": True}),
            DesignElement.shape_element(
                x=18, y=18, width=5, height=5, fill="#00ffff", layer=2,
                element_id="qr_code_area", stroke="#ffffff", stroke_width=0.1,
            ),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Acrylic Team",
            description="带交互元素的科技感设计",
            usage_count=25,
            rating=4.7,
        ),
    )
    return (corporate, modern, tech)


# ===================
# 构造器
# ===================


class AcrylicConstructor(BaseConstructor):
    """亚克力构造器.

    尺寸单位默认为厘米，板材厚度为毫米。

    Example:
        >>> constructor = AcrylicConstructor({"dimensions": {"width": 60, "height": 50, "unit": "cm"}})
        >>> constructor.get_area_dm2()
        30.0
    """

    product_type = "acrylic"
    config_class = AcrylicConfig
    config: AcrylicConfig

    def default_config(self, supplied: Mapping[str, Any]) -> dict[str, Any]:
        width, height = STANDARD_SIZES["medium"]
        dimensions = {**{"width": width, "height": height, "unit": "cm", "dpi": 300}, **supplied.get("dimensions", {})}
        return {
            "name": "亚克力",
            "category": "acrylic",
            "dimensions": dimensions,
            "print_area": {"x": 1, "y": 1, "width": dimensions["width"] - 2, "height": dimensions["height"] - 2},
            "bleed_area": 0.5,
            "materials": ["cast_acrylic"],
            "finishes": ["high-gloss"],
            "orientation": "landscape" if dimensions["width"] >= dimensions["height"] else "portrait",
            "sides": 1,
            "min_quantity": 1,
            "max_quantity": 500,
            "base_price": 300,
            "price_per_unit": 500,
            "constraints": {"min_font_size": 10, "required_dpi": 300},
        }

    def seed_templates(self) -> list[DesignTemplate]:
        return list(_seed_templates())

    def get_area_dm2(self) -> float:
        """面板面积（dm²）."""
        width_cm, height_cm = self.config.dimensions.size_in(Unit.CM)
        return round(width_cm * height_cm / 100, 6)

    # ===================
    # 校验
    # ===================

    def validate_design(self) -> DesignValidationResult:
        """校验亚克力设计.

        检查厚度与面积、支架距离、角部安装区、照明兼容性、印刷方式、二维码工艺和环保设置。
        """
        result = DesignValidationResult()
        config = self.config
        dimensions = config.dimensions
        properties = config.acrylic_properties
        elements = self.get_all_elements()
        area = self.get_area_dm2()
        thickness = properties.thickness

        for threshold, minimum in THICKNESS_RULES:
            if area > threshold and thickness < minimum:
                result.add_error(f"面积超过 {threshold} dm² 的面板建议厚度不低于 {minimum}mm")

        mounting = config.mounting_system
        if mounting.type == "standoff-bolts":
            max_side_cm = max(dimensions.size_in(Unit.CM))
            standoff = mounting.hardware.standoff_distance or 0
            if max_side_cm > LARGE_PANEL_SIDE_CM and standoff < MIN_LARGE_STANDOFF_MM:
                result.add_error(f"大尺寸面板建议支架距离不低于 {MIN_LARGE_STANDOFF_MM}mm")

        zones = mounting_zones(dimensions.width, dimensions.height)
        for element in elements:
            if element.type == ElementType.BACKGROUND:
                continue
            if any(_overlaps(element.bounds, zone) for zone in zones):
                result.add_error(f'元素 "{element.id}" 可能与安装五金件冲突')

        illumination = config.illumination
        if illumination.enabled:
            if illumination.type == "edge-lit" and thickness < MIN_EDGE_LIT_THICKNESS:
                result.add_error(f"侧边发光建议厚度不低于 {MIN_EDGE_LIT_THICKNESS}mm")
            if illumination.type == "back-lit" and properties.transparency == "opaque":
                result.add_error("不透明亚克力无法有效使用背光照明")
            if illumination.led_type == "rgb" and not illumination.power:
                result.add_error("RGB 照明需要指定供电方式")

        if config.printing_details.print_type == "reverse-print":
            if not any(isinstance(element.data, ImageData) for element in elements):
                result.add_warning("背面印刷通常用于图片，当前设计没有图片元素")

        qr = config.modern_features.qr_integration
        if qr.enabled and qr.type == "laser-etched" and properties.surface_finish == "high-gloss":
            result.add_error("激光雕刻的二维码在高光表面上可能不易识别")

        sustainability = config.modern_features.sustainability
        if sustainability.carbon_neutral and not sustainability.eco_friendly_inks:
            result.add_error("碳中和产品建议使用环保油墨")

        return result

    # ===================
    # 报价
    # ===================

    def calculate_price(self, quantity: int) -> PriceQuote:
        """计算亚克力报价.

        材料乘数随面积和厚度增长；安装、照明和智能功能按件附加。
        """
        config = self.config
        builder = PriceBuilder(config.base_price, config.price_per_unit, quantity, self.settings.currency)
        properties = config.acrylic_properties
        area = self.get_area_dm2()

        material_multiplier = (
            1
            + area * AREA_MATERIAL_RATE
            + properties.thickness * THICKNESS_MATERIAL_RATE
            + ACRYLIC_GRADE_SURCHARGES.get(properties.grade, 0)
            + EDGE_FINISH_SURCHARGES.get(properties.edge_finish, 0)
        )

        printing = config.printing_details
        printing_multiplier = (
            1
            + PRINT_TYPE_SURCHARGES.get(printing.print_type, 0)
            + COLOR_PROFILE_SURCHARGES.get(printing.color_profile, 0)
            + (ULTRA_HIGH_RESOLUTION_SURCHARGE if printing.resolution == "ultra-high" else 0)
        )

        builder.multiply("material", material_multiplier)
        builder.multiply("printing", printing_multiplier)
        builder.discount(tier_rate(quantity, QUANTITY_DISCOUNTS))

        mounting = config.mounting_system
        mounting_price = quantity * MOUNTING_PRICES.get(mounting.type, 0)
        if mounting.type == "standoff-bolts":
            mounting_price *= HARDWARE_MULTIPLIERS.get(mounting.hardware.material, 1.0)
        builder.surcharge("mounting", mounting_price)

        illumination = config.illumination
        illumination_price = 0.0
        if illumination.enabled:
            illumination_price = quantity * ILLUMINATION_PRICES.get(illumination.type, 0)
            if illumination.led_type == "rgb":
                illumination_price *= RGB_LED_MULTIPLIER
            if illumination.power == "battery":
                illumination_price += quantity * BATTERY_PRICE
        builder.surcharge("illumination", illumination_price)

        modern = config.modern_features
        modern_price = 0.0
        if modern.qr_integration.enabled:
            modern_price += quantity * QR_PRICES.get(modern.qr_integration.type, 0)
        if modern.interactivity.enabled:
            for name, unit_price in INTERACTIVITY_PRICES.items():
                if getattr(modern.interactivity, name):
                    modern_price += quantity * unit_price
        if modern.sustainability.carbon_neutral:
            modern_price += quantity * CARBON_NEUTRAL_PRICE
        builder.surcharge("modern_features", modern_price)

        width_cm, height_cm = config.dimensions.size_in(Unit.CM)
        builder.detail("size", f"{width_cm:g}x{height_cm:g}cm")
        builder.detail("thickness", f"{properties.thickness}mm")
        builder.detail("area", f"{area:.1f}dm²")
        builder.detail("grade", properties.grade)
        builder.detail("mounting", mounting.type)
        builder.detail("has_illumination", illumination.enabled)
        builder.detail("modern_features", modern.enabled())
        return builder.build(
            {
                "material_multiplier": round(material_multiplier, 4),
                "printing_multiplier": round(printing_multiplier, 4),
                "mounting_price": round(mounting_price, 2),
                "illumination_price": round(illumination_price, 2),
                "modern_features_price": round(modern_price, 2),
            }
        )

    # ===================
    # 导出
    # ===================

    def _enhance_image(self, image: Image.Image, element: DesignElement) -> Image.Image:
        """亚克力图片增艳，背光时再提亮，高光表面叠加高光."""
        image = effects.adjust_tone(image, brightness=1.05, contrast=1.05, saturation=1.1)
        illumination = self.config.illumination
        if illumination.enabled and illumination.type == "back-lit":
            level = illumination.brightness / 100
            image = effects.adjust_tone(image, brightness=1 + level * 0.3, contrast=1 + level * 0.2)
        if self.config.acrylic_properties.surface_finish == "high-gloss":
            image = effects.overlay_gradient(image, IMAGE_GLOSS, (0, 0, image.width, max(1, image.height // 4)))
        return image

    def build_render_job(self, format: str, dpi: Optional[float]) -> RenderJob:
        if dpi is None:
            dpi = max(self.config.dimensions.dpi, MIN_EXPORT_DPI)
        job = super().build_render_job(format, dpi)
        job.background = TRANSPARENCY_BACKGROUNDS[self.config.acrylic_properties.transparency]
        job.adjust_image = self._enhance_image
        if self.config.acrylic_properties.surface_finish == "high-gloss":
            job.post_effects.append(lambda canvas, scale: effects.overlay_gradient(canvas, PANEL_GLOSS))
        return job

    # ===================
    # 亚克力专用操作
    # ===================

    def update_acrylic_type(self, acrylic_type: str) -> None:
        """切换亚克力类型并套用对应预设."""
        self._update_config(acrylic_type=acrylic_type)
        preset = ACRYLIC_TYPE_PRESETS.get(acrylic_type, {})
        for key, value in preset.items():
            if isinstance(value, Mapping):
                self._merge_section(key, value)
            else:
                self._update_config(**{key: value})
        self._emit(ConstructorEvent.ACRYLIC_TYPE_CHANGED, acrylic_type)

    def update_acrylic_properties(self, properties: Mapping[str, Any]) -> AcrylicProperties:
        self._merge_section("acrylic_properties", properties)
        result = self.get_acrylic_properties()
        self._emit(ConstructorEvent.ACRYLIC_PROPERTIES_UPDATED, result)
        return result

    def update_mounting_system(self, mounting: Mapping[str, Any]) -> MountingSystem:
        self._merge_section("mounting_system", mounting)
        result = self.get_mounting_system()
        self._emit(ConstructorEvent.MOUNTING_SYSTEM_UPDATED, result)
        return result

    def update_illumination(self, illumination: Mapping[str, Any]) -> Illumination:
        self._merge_section("illumination", illumination)
        result = self.get_illumination()
        self._emit(ConstructorEvent.ILLUMINATION_UPDATED, result)
        return result

    def update_printing_details(self, details: Mapping[str, Any]) -> PrintingDetails:
        self._merge_section("printing_details", details)
        result = self.config.printing_details.model_copy()
        self._emit(ConstructorEvent.PRINTING_DETAILS_UPDATED, result)
        return result

    def update_modern_features(self, features: Mapping[str, Any]) -> ModernFeatures:
        self._merge_section("modern_features", features)
        result = self.get_modern_features()
        self._emit(ConstructorEvent.MODERN_FEATURES_UPDATED, result)
        return result

    def add_qr_code(self, data: str, qr_type: QRType = "laser-etched") -> Optional[DesignElement]:
        """添加二维码（右下角 6x6，激光雕刻时半透明）."""
        self._merge_section(
            "modern_features",
            {"qr_integration": {"enabled": True, "type": qr_type, "functionality": "info", "data": data}},
        )
        dimensions = self.config.dimensions
        element = DesignElement.image_element(
            qr_code_url(data),
            x=dimensions.width - QR_MARGIN,
            y=dimensions.height - QR_MARGIN,
            width=QR_SIZE,
            height=QR_SIZE,
            layer=10,
            element_id=QR_ELEMENT_ID,
            alt="QR Code",
        )
        if qr_type == "laser-etched":
            element = element.model_copy(update={"opacity": 0.8})
        added = self._replace_element(element)
        self._emit(ConstructorEvent.QR_CODE_ADDED, {"type": qr_type, "data": data})
        return added

    def enable_smart_features(
        self,
        touch_sensitive: bool = False,
        proximity_lighting: bool = False,
        smart_connectivity: bool = False,
    ) -> Interactivity:
        """启用智能交互；接近感应需要照明，未开启时自动开启 RGB 侧光."""
        features = {
            "touch_sensitive": touch_sensitive,
            "proximity_lighting": proximity_lighting,
            "smart_connectivity": smart_connectivity,
        }
        self._update_config(modern_features={"interactivity": Interactivity(enabled=True, **features)})
        if proximity_lighting and not self.config.illumination.enabled:
            self._update_config(
                illumination=Illumination(
                    enabled=True, type="edge-lit", led_type="rgb", power="plug-in", brightness=60
                )
            )
        self._emit(ConstructorEvent.SMART_FEATURES_ENABLED, features)
        return self.config.modern_features.interactivity.model_copy()

    def apply_design_preset(self, preset: str) -> bool:
        """应用设计预设（corporate / modern / luxury / tech）.

        Returns:
            预设是否存在
        """
        values = DESIGN_PRESETS.get(preset)
        if values is None:
            logger.warning(f"未知的亚克力设计预设: {preset}")
            return False
        for section, changes in values.items():
            self._merge_section(section, changes)
        if preset == "tech":
            self.enable_smart_features(proximity_lighting=True, smart_connectivity=True)
        self._emit(ConstructorEvent.PRESET_APPLIED, preset)
        return True

    def get_thickness_recommendations(self) -> list[dict[str, Any]]:
        """按面板面积推荐厚度."""
        area = self.get_area_dm2()
        if area < 10:
            options = [(3, "轻薄经济型"), (5, "标准厚度，性价比最佳")]
        elif area < 25:
            options = [(5, "标准厚度"), (8, "更高强度")]
        else:
            options = [(8, "大面板最低要求"), (10, "推荐厚度"), (12, "最高强度")]
        return [{"thickness": thickness, "description": description} for thickness, description in options]

    def get_acrylic_properties(self) -> AcrylicProperties:
        return self.config.acrylic_properties.model_copy()

    def get_mounting_system(self) -> MountingSystem:
        return self.config.mounting_system.model_copy(deep=True)

    def get_illumination(self) -> Illumination:
        return self.config.illumination.model_copy()

    def get_modern_features(self) -> ModernFeatures:
        return self.config.modern_features.model_copy(deep=True)
