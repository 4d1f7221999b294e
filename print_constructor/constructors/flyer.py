"""传单构造器.

Features:
    - 标准尺寸（A4/A5/A6/DL/自定义）与折页方式
    - 内容区块、品牌元素与营销功能（折扣、二维码）
    - 折线跨越检查
    - 展开图导出（多联画布 + 虚线折线）
"""

from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import Any, Literal, Mapping, Optional

from PIL import Image, ImageDraw
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from print_constructor.core.base_constructor import (
    BaseConstructor,
    resolve_field,
    substitute_placeholders,
)
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.design_element import DesignElement, ElementType, ImageData, TextData
from print_constructor.models.product_config import ProductConfig, QRCodeSettings
from print_constructor.models.results import DesignValidationResult, PriceQuote
from print_constructor.models.template import DesignTemplate, TemplateMetadata
from print_constructor.services.exporter import RenderJob
from print_constructor.services.pricing import PriceBuilder, tier_rate
from print_constructor.services.rasterizer import draw_dashed_line, parse_color
from print_constructor.utils.helpers import qr_code_url
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)

FlyerSize = Literal["A4", "A5", "A6", "DL", "custom"]
FoldType = Literal["single", "bifold", "trifold", "z-fold", "gate-fold", "accordion"]
FlyerType = Literal["promotional", "event", "product-catalog", "service-menu", "announcement", "real-estate"]


# ===================
# 常量定义
# ===================

SIZE_DIMENSIONS: dict[str, tuple[float, float]] = {
    "A4": (210, 297),
    "A5": (148, 210),
    "A6": (105, 148),
    "DL": (99, 210),
    "custom": (200, 300),
}

FOLD_PAGES = {
    "single": 2,
    "bifold": 4,
    "trifold": 6,
    "z-fold": 6,
    "gate-fold": 8,
    "accordion": 8,
}

# 展开图画布宽度倍数
FOLD_PANELS = {"bifold": 2, "trifold": 3, "gate-fold": 2}

QUANTITY_DISCOUNTS = [(10000, 0.25), (5000, 0.20), (1000, 0.15), (500, 0.10), (250, 0.05)]
SIZE_MULTIPLIERS = {"A4": 1.0, "A5": 0.7, "A6": 0.5, "DL": 0.6, "custom": 1.2}
FOLD_MULTIPLIERS = {"bifold": 1.3, "trifold": 1.6, "z-fold": 1.7, "gate-fold": 2.0, "accordion": 2.2}
MATERIAL_SURCHARGES = {"glossy_paper": 0.10, "textured_paper": 0.15, "synthetic_paper": 0.30}
FEATURE_PRICES = {"perforation": 0.10, "scoring": 0.05, "die_cutting": 0.80}
SPOT_COLOR_PRICE = 0.30
DOUBLE_SIDED_MULTIPLIER = 1.8

FOLD_SAFE_MARGIN = 5  # mm
MIN_FONT_SIZE = 8
HEADLINE_ELEMENT_ID = "main_headline"
HEADLINE_MIN_FONT_SIZE = 24
LARGE_IMAGE_SIZE = 50
QR_ELEMENT_ID = "flyer_qr_code"
QR_MIN_SIZE = 15

FOLD_LINE_COLOR = "#cccccc"

FLYER_TYPE_PRESETS: dict[str, dict[str, str]] = {
    "promotional": {"headline": "限时特惠！", "call_to_action": "立即致电！"},
    "event": {"headline": "欢迎加入我们！", "call_to_action": "预订席位"},
    "product-catalog": {"headline": "我们的产品", "call_to_action": "了解更多"},
}


# ===================
# 配置模型
# ===================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentSections(_CamelModel):
    """传单内容区块."""

    headline: str = ""
    subheadline: str = ""
    body_text: str = ""
    call_to_action: str = ""
    contact_info: str = ""
    disclaimer: str = ""


class BrandingElements(_CamelModel):
    logo: Optional[str] = None
    company_name: str = ""
    brand_colors: list[str] = Field(default_factory=lambda: ["#3b82f6", "#ffffff"])
    fonts: list[str] = Field(default_factory=lambda: ["Inter", "Roboto"])


class DiscountOffer(_CamelModel):
    enabled: bool = False
    percentage: Optional[float] = Field(default=None, gt=0, le=100)
    code: Optional[str] = None
    valid_until: Optional[date] = None


class SocialHandle(BaseModel):
    platform: str
    handle: str
    icon: str = ""


class MarketingFeatures(_CamelModel):
    discount_offer: Optional[DiscountOffer] = None
    qr_code: Optional[QRCodeSettings] = None
    social_media: list[SocialHandle] = Field(default_factory=list)


class PrintFeatures(_CamelModel):
    perforation: bool = False
    scoring: bool = False
    die_cutting: bool = False
    spot_colors: list[str] = Field(default_factory=list)

    def enabled(self) -> list[str]:
        return [name for name, value in self.model_dump().items() if value]


class FlyerConfig(ProductConfig):
    """传单配置."""

    category: str = "flyers"
    flyer_type: FlyerType = "promotional"
    size: FlyerSize = "A4"
    fold_type: Optional[FoldType] = None
    pages: int = Field(default=2, ge=1)
    content_sections: ContentSections = Field(default_factory=ContentSections)
    branding_elements: BrandingElements = Field(default_factory=BrandingElements)
    marketing_features: MarketingFeatures = Field(default_factory=MarketingFeatures)
    print_features: PrintFeatures = Field(default_factory=PrintFeatures)


def fold_lines(fold_type: Optional[str], width: float) -> list[float]:
    """计算折线横坐标.

    Args:
        fold_type: 折页方式
        width: 成品宽度

    Returns:
        折线位置列表（单页和风琴折为空）
    """
    if fold_type == "bifold":
        return [width / 2]
    if fold_type in ("trifold", "z-fold"):
        return [width / 3, width / 3 * 2]
    if fold_type == "gate-fold":
        return [width / 4, width / 2, width / 4 * 3]
    return []


# ===================
# 种子模板
# ===================


@lru_cache(maxsize=1)
def _seed_templates() -> tuple[DesignTemplate, ...]:
    star = [(15, 0), (18, 10), (30, 10), (21, 17), (24, 30), (15, 22), (6, 30), (9, 17), (0, 10), (12, 10)]
    promo = DesignTemplate(
        id="fl_promo_001",
        name="门店促销",
        category="flyers",
        subcategory="promotional",
        product_type="flyers",
        thumbnail="/templates/flyers/promo-sale.jpg",
        tags=["promotional", "sale", "discount", "retail"],
        industry=["retail", "fashion", "electronics", "home"],
        attributes={
            "flyer_type": "promotional",
            "size": "A4",
            "color_scheme": ["#ef4444", "#ffffff", "#1f2937"],
            "has_images": True,
            "has_discount": True,
            "complexity": "medium",
        },
        elements=[
            DesignElement.shape_element(
                element_id="promo_bg",
                element_type=ElementType.BACKGROUND,
                width=210,
                height=297,
                fill="linear-gradient(135deg, #ef4444, #dc2626)",
            ).model_copy(update={"locked": True}),
            DesignElement.shape_element(
                "polygon", x=20, y=20, width=30, height=30, fill="#ffffff", layer=1,
                element_id="deco_star_1", points=star,
            ).model_copy(update={"rotation": 15, "opacity": 0.2, "locked": True}),
            DesignElement.text_element(
                "{{headline}}", x=20, y=60, width=170, height=50, font_size=42, layer=2,
                element_id=HEADLINE_ELEMENT_ID, font_family="Inter", font_weight="bold", color="#ffffff",
                text_align="center", line_height=1.1, letter_spacing=-1,
                text_shadow="0.5 0.5 1 rgba(0,0,0,0.3)",
            ),
            DesignElement.shape_element(
                "circle", x=150, y=30, width=50, height=50, fill="#fbbf24", layer=3,
                element_id="discount_badge", stroke="#ffffff", stroke_width=1,
            ),
            DesignElement.text_element(
                "{{discountPercentage}}%", x=160, y=48, width=30, height=15, font_size=18, layer=4,
                element_id="discount_text", font_family="Inter", font_weight="bold", color="#1f2937",
                text_align="center",
            ),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Design Team",
            description="用于折扣活动的醒目促销传单",
            usage_count=156,
            rating=4.6,
        ),
    )
    event = DesignTemplate(
        id="fl_event_001",
        name="活动传单",
        category="flyers",
        subcategory="event",
        product_type="flyers",
        thumbnail="/templates/flyers/event-modern.jpg",
        is_premium=True,
        tags=["event", "conference", "party", "modern"],
        industry=["events", "entertainment", "conference", "party"],
        attributes={
            "flyer_type": "event",
            "size": "A5",
            "color_scheme": ["#8b5cf6", "#ffffff", "#1f2937", "#fbbf24"],
            "has_images": True,
            "has_discount": False,
            "complexity": "complex",
        },
        metadata=TemplateMetadata(
            author="Poliprint Design Team",
            description="面向活动与会议的现代设计",
            usage_count=89,
            rating=4.9,
        ),
    )
    catalog = DesignTemplate(
        id="fl_product_001",
        name="产品目录",
        category="flyers",
        subcategory="catalog",
        product_type="flyers",
        thumbnail="/templates/flyers/product-catalog.jpg",
        tags=["catalog", "products", "business", "clean"],
        industry=["retail", "manufacturing", "services", "technology"],
        attributes={
            "flyer_type": "product-catalog",
            "size": "A4",
            "fold_type": "trifold",
            "color_scheme": ["#3b82f6", "#ffffff", "#f8fafc", "#1e293b"],
            "has_images": True,
            "has_discount": False,
            "complexity": "complex",
        },
        metadata=TemplateMetadata(
            author="Poliprint Design Team",
            description="专业的商品与服务目录",
            usage_count=203,
            rating=4.7,
        ),
    )
    return (promo, event, catalog)


# ===================
# 构造器
# ===================


class FlyerConstructor(BaseConstructor):
    """传单构造器.

    Example:
        >>> constructor = FlyerConstructor({"size": "A5", "fold_type": "bifold"})
        >>> constructor.config.dimensions.width
        148.0
        >>> constructor.get_fold_lines()
        [74.0]
    """

    product_type = "flyers"
    config_class = FlyerConfig
    config: FlyerConfig

    def default_config(self, supplied: Mapping[str, Any]) -> dict[str, Any]:
        size = supplied.get("size", "A4")
        width, height = SIZE_DIMENSIONS.get(size, SIZE_DIMENSIONS["A4"])
        dimensions = {**{"width": width, "height": height, "unit": "mm", "dpi": 300}, **supplied.get("dimensions", {})}
        fold_type = supplied.get("fold_type")
        return {
            "name": "传单",
            "category": "flyers",
            "dimensions": dimensions,
            "print_area": {"x": 5, "y": 5, "width": dimensions["width"] - 10, "height": dimensions["height"] - 10},
            "bleed_area": 3,
            "materials": ["coated_paper"],
            "finishes": ["matte", "glossy"],
            "orientation": "portrait",
            "sides": 1,
            "min_quantity": 100,
            "max_quantity": 100000,
            "base_price": 100,
            "price_per_unit": 0.8,
            "constraints": {"min_font_size": MIN_FONT_SIZE, "required_dpi": 300},
            "flyer_type": "promotional",
            "size": size,
            "pages": FOLD_PAGES.get(fold_type, 2) if fold_type else 2,
        }

    def seed_templates(self) -> list[DesignTemplate]:
        return list(_seed_templates())

    def get_fold_lines(self) -> list[float]:
        """当前折页方式的折线位置（产品单位）."""
        return fold_lines(self.config.fold_type, self.config.dimensions.width)

    # ===================
    # 校验
    # ===================

    def validate_design(self) -> DesignValidationResult:
        """校验传单设计.

        检查必填内容、字号、折线跨越、大尺寸图片分辨率、折扣与二维码设置。
        """
        result = DesignValidationResult()
        config = self.config
        elements = self.get_all_elements()

        sections = config.content_sections
        if not sections.headline:
            result.add_error("传单必须填写主标题")
        if not sections.call_to_action:
            result.add_error("有效的传单需要行动号召 (CTA)")
        if not sections.contact_info:
            result.add_error("必须填写联系方式")

        for element in elements:
            if not isinstance(element.data, TextData):
                continue
            if element.data.font_size < MIN_FONT_SIZE:
                result.add_error(
                    f'字号 "{element.data.font_size:g}" 对传单印刷过小，最小为 {MIN_FONT_SIZE}'
                )
            if element.id == HEADLINE_ELEMENT_ID and element.data.font_size < HEADLINE_MIN_FONT_SIZE:
                result.add_error(f"主标题字号应不小于 {HEADLINE_MIN_FONT_SIZE} 以保证醒目")

        lines = self.get_fold_lines()
        for element in elements:
            if element.type == ElementType.BACKGROUND:
                continue
            if any(
                element.x < line + FOLD_SAFE_MARGIN and element.x + element.width > line - FOLD_SAFE_MARGIN
                for line in lines
            ):
                result.add_error(f'元素 "{element.id}" 跨越折线，折叠时可能被裁切')

        for element in elements:
            if isinstance(element.data, ImageData) and (
                element.width > LARGE_IMAGE_SIZE or element.height > LARGE_IMAGE_SIZE
            ):
                result.add_warning(f'请确认图片 "{element.id}" 的分辨率不低于 300 DPI')

        discount = config.marketing_features.discount_offer
        if discount and discount.enabled:
            if not discount.percentage and not discount.code:
                result.add_error("折扣活动需要设置折扣比例或优惠码")
            if discount.valid_until and discount.valid_until < date.today():
                result.add_error("折扣截止日期已过")

        qr = config.marketing_features.qr_code
        if qr and qr.enabled:
            if not qr.data:
                result.add_error("二维码已启用但未设置内容")
            if qr.size < QR_MIN_SIZE:
                result.add_error(f"二维码尺寸对传单过小（最小 {QR_MIN_SIZE}mm）")

        return result

    # ===================
    # 报价
    # ===================

    def calculate_price(self, quantity: int) -> PriceQuote:
        """计算传单报价（尺寸、折页、材料和面数乘数；印刷工艺按张附加）."""
        config = self.config
        builder = PriceBuilder(config.base_price, config.price_per_unit, quantity, self.settings.currency)

        size_multiplier = SIZE_MULTIPLIERS.get(config.size, 1.0)
        fold_multiplier = FOLD_MULTIPLIERS.get(config.fold_type or "single", 1.0)
        material_multiplier = 1 + sum(
            surcharge for material, surcharge in MATERIAL_SURCHARGES.items() if material in config.materials
        )
        sides_multiplier = DOUBLE_SIDED_MULTIPLIER if config.sides == 2 else 1.0

        builder.multiply("size", size_multiplier)
        builder.multiply("fold", fold_multiplier)
        builder.multiply("material", material_multiplier)
        builder.multiply("sides", sides_multiplier)
        builder.discount(tier_rate(quantity, QUANTITY_DISCOUNTS))

        features = config.print_features
        for name, unit_price in FEATURE_PRICES.items():
            if getattr(features, name):
                builder.surcharge(name, quantity * unit_price)
        if features.spot_colors:
            builder.surcharge("spot_colors", quantity * len(features.spot_colors) * SPOT_COLOR_PRICE)

        builder.detail("size", config.size)
        builder.detail("fold_type", config.fold_type or "single")
        builder.detail("materials", ", ".join(config.materials))
        builder.detail("sides", config.sides)
        builder.detail("print_features", features.enabled())
        quote = builder.build()
        quote.breakdown.update(
            {
                "size_multiplier": size_multiplier,
                "fold_multiplier": fold_multiplier,
                "material_multiplier": round(material_multiplier, 4),
                "sides_multiplier": sides_multiplier,
                "features_price": round(sum(quote.breakdown["surcharges"].values()), 2),
            }
        )
        return quote

    # ===================
    # 导出
    # ===================

    def placeholder_values(self) -> dict[str, Any]:
        """文本占位符字段值."""
        config = self.config
        values: dict[str, Any] = config.content_sections.model_dump(by_alias=True)
        values["companyName"] = config.branding_elements.company_name
        discount = config.marketing_features.discount_offer
        if discount:
            values["discountPercentage"] = f"{discount.percentage:g}" if discount.percentage else None
            values["discountCode"] = discount.code
        return values

    def resolve_text(self, text: str) -> str:
        return substitute_placeholders(text, self.placeholder_values())

    def build_render_job(self, format: str, dpi: Optional[float]) -> RenderJob:
        """展开图导出：折页产品的画布按联数加宽，并叠加虚线折线."""
        job = super().build_render_job(format, dpi)
        fold_type = self.config.fold_type
        job.width_factor = FOLD_PANELS.get(fold_type or "", 1)

        lines = self.get_fold_lines()
        if lines:

            def draw_fold_lines(canvas: Image.Image, scale: float) -> Image.Image:
                draw = ImageDraw.Draw(canvas)
                color = parse_color(FOLD_LINE_COLOR)
                dash = [2 * scale, 2 * scale]
                for line in lines:
                    x = line * scale
                    draw_dashed_line(draw, (x, 0), (x, canvas.height), dash, color, max(1, round(scale * 0.2)))
                return canvas

            job.post_effects.append(draw_fold_lines)
        return job

    # ===================
    # 传单专用操作
    # ===================

    def get_content_sections(self) -> ContentSections:
        return self.config.content_sections.model_copy()

    def get_branding_elements(self) -> BrandingElements:
        return self.config.branding_elements.model_copy(deep=True)

    def get_marketing_features(self) -> MarketingFeatures:
        return self.config.marketing_features.model_copy(deep=True)

    def get_print_features(self) -> PrintFeatures:
        return self.config.print_features.model_copy(deep=True)

    def update_content_section(self, section: str, content: str) -> bool:
        """更新内容区块（``headline``、``callToAction`` 等）."""
        name = resolve_field(ContentSections, section)
        if name is None:
            return False
        self._update_config(content_sections={name: content})
        self._notify_dynamic_text()
        self._emit(ConstructorEvent.CONTENT_SECTION_UPDATED, {"section": section, "content": content})
        return True

    def update_branding_element(self, element: str, value: Any) -> bool:
        """更新品牌元素."""
        name = resolve_field(BrandingElements, element)
        if name is None:
            return False
        self._update_config(branding_elements={name: value})
        self._emit(ConstructorEvent.BRANDING_ELEMENT_UPDATED, {"element": element, "value": value})
        return True

    def add_discount_offer(
        self,
        percentage: Optional[float] = None,
        code: Optional[str] = None,
        valid_until: Optional[date | str] = None,
    ) -> DiscountOffer:
        """启用折扣活动."""
        offer = DiscountOffer(enabled=True, percentage=percentage, code=code, valid_until=valid_until)
        self._update_config(marketing_features={"discount_offer": offer})
        self._emit(ConstructorEvent.DISCOUNT_OFFER_ADDED, offer.model_copy())
        return offer

    def remove_discount_offer(self) -> None:
        self._update_config(marketing_features={"discount_offer": DiscountOffer(enabled=False)})
        self._emit(ConstructorEvent.DISCOUNT_OFFER_REMOVED)

    def add_qr_code(
        self,
        data: str,
        size: float = 20,
        position: tuple[float, float] = (170, 250),
    ) -> Optional[DesignElement]:
        """添加二维码元素（固定 ID flyer_qr_code）."""
        qr = QRCodeSettings(enabled=True, data=data, size=size, position=position)
        self._update_config(marketing_features={"qr_code": qr})
        element = DesignElement.image_element(
            qr_code_url(data, 300),
            x=position[0],
            y=position[1],
            width=size,
            height=size,
            layer=10,
            element_id=QR_ELEMENT_ID,
            alt="QR Code",
        )
        added = self._replace_element(element)
        self._emit(ConstructorEvent.QR_CODE_ADDED, added)
        return added

    def remove_qr_code(self) -> bool:
        qr = self.config.marketing_features.qr_code
        if not qr or not qr.enabled:
            return False
        self.remove_element(QR_ELEMENT_ID)
        self._update_config(marketing_features={"qr_code": qr.model_copy(update={"enabled": False})})
        self._emit(ConstructorEvent.QR_CODE_REMOVED)
        return True

    def update_print_feature(self, feature: str, value: bool | list[str]) -> bool:
        """更新印刷工艺（spot_colors 接收颜色列表）."""
        name = resolve_field(PrintFeatures, feature)
        if name is None:
            return False
        self._update_config(print_features={name: value})
        self._emit(ConstructorEvent.PRINT_FEATURE_UPDATED, {"feature": feature, "enabled": value})
        return True

    def change_fold_type(self, fold_type: Optional[str]) -> int:
        """更换折页方式并更新页数.

        Returns:
            新的页数
        """
        pages = FOLD_PAGES.get(fold_type or "single", 2)
        self._update_config(fold_type=fold_type, pages=pages)
        self._emit(ConstructorEvent.FOLD_TYPE_CHANGED, {"fold_type": fold_type, "pages": pages})
        return pages

    def apply_flyer_type(self, flyer_type: str) -> None:
        """切换传单类型并套用对应的标题和 CTA 预设."""
        changes: dict[str, Any] = {"flyer_type": flyer_type}
        preset = FLYER_TYPE_PRESETS.get(flyer_type)
        if preset:
            changes["content_sections"] = preset
        self._update_config(**changes)
        self._emit(ConstructorEvent.FLYER_TYPE_CHANGED, flyer_type)

    def get_templates_by_size(self, size: str) -> list[DesignTemplate]:
        return [t for t in self.get_available_templates() if t.attributes.get("size") == size]
