"""名片构造器.

Features:
    - 企业信息字段与文本占位符替换
    - 二维码元素
    - 特殊工艺（圆角、压纹、烫金、局部 UV、覆膜）
    - 按行业和风格筛选模板
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Mapping, Optional

from PIL import Image, ImageDraw
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from print_constructor.core.base_constructor import (
    BaseConstructor,
    resolve_field,
    substitute_placeholders,
)
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.design_element import (
    DesignElement,
    ElementType,
    TextData,
)
from print_constructor.models.product_config import ProductConfig, QRCodeSettings
from print_constructor.models.results import DesignValidationResult, PriceQuote
from print_constructor.models.template import DesignTemplate, TemplateMetadata
from print_constructor.services.exporter import RenderJob
from print_constructor.services.pricing import PriceBuilder, tier_rate
from print_constructor.utils.helpers import qr_code_url
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# 常量定义
# ===================

QUANTITY_DISCOUNTS = [(1000, 0.15), (500, 0.10), (250, 0.05)]

MATERIAL_SURCHARGES = {
    "thick_cardstock": 0.20,
    "textured_paper": 0.15,
    "recycled_paper": 0.10,
}

# 每张的特殊工艺附加费
FEATURE_PRICES = {
    "rounded_corners": 0.05,
    "embossing": 0.30,
    "foiling": 0.50,
    "spot_uv": 0.20,
}
LAMINATION_PRICE = 0.10

DOUBLE_SIDED_MULTIPLIER = 1.6

REQUIRED_FIELDS = ("company_name", "person_name", "phone")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

QR_ELEMENT_ID = "qr_code"
QR_MIN_SIZE = 10
ROUNDED_CORNER_RADIUS = 3  # mm


# ===================
# 配置模型
# ===================


class SocialLink(BaseModel):
    platform: str
    url: str


class CorporateFields(BaseModel):
    """企业信息字段.

    文本元素中的 ``{{companyName}}`` 等占位符按驼峰别名取值。
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    company_name: str = ""
    person_name: str = ""
    position: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    address: str = ""
    social_media: list[SocialLink] = Field(default_factory=list)

    def placeholder_values(self) -> dict[str, str]:
        """占位符字段值（驼峰键）."""
        values = self.model_dump(by_alias=True, exclude={"social_media"})
        return {key: value for key, value in values.items() if isinstance(value, str)}


class SpecialFeatures(BaseModel):
    """特殊工艺."""

    rounded_corners: bool = False
    embossing: bool = False
    foiling: bool = False
    spot_uv: bool = False
    lamination_glossy: bool = False
    lamination_matte: bool = True

    def enabled(self) -> list[str]:
        return [name for name, value in self.model_dump().items() if value]


class BusinessCardConfig(ProductConfig):
    """名片配置."""

    category: str = "business-cards"
    corporate_fields: CorporateFields = Field(default_factory=CorporateFields)
    qr_code: Optional[QRCodeSettings] = None
    special_features: SpecialFeatures = Field(default_factory=SpecialFeatures)


# ===================
# 种子模板
# ===================


@lru_cache(maxsize=1)
def _seed_templates() -> tuple[DesignTemplate, ...]:
    corporate = DesignTemplate(
        id="bc_corporate_001",
        name="经典商务",
        category="business-cards",
        subcategory="corporate",
        product_type="business-cards",
        thumbnail="/templates/business-cards/corporate-classic.jpg",
        tags=["corporate", "classic", "professional"],
        style="corporate",
        industry=["consulting", "finance", "law", "real-estate"],
        attributes={"color_scheme": ["#1f2937", "#ffffff", "#3b82f6"], "has_logo": True, "has_qr": False},
        elements=[
            DesignElement.shape_element(
                element_id="bg_001",
                element_type=ElementType.BACKGROUND,
                width=85,
                height=55,
                fill="#ffffff",
            ).model_copy(update={"locked": True}),
            DesignElement.image_element(
                "/placeholder-logo.svg", x=5, y=5, width=20, height=15, element_id="logo_001", alt="Company Logo"
            ),
            DesignElement.text_element(
                "{{companyName}}", x=30, y=8, width=50, height=10, font_size=12, layer=2,
                element_id="company_name", font_family="Inter", font_weight="bold", color="#1f2937",
            ),
            DesignElement.text_element(
                "{{personName}}", x=5, y=25, width=40, height=8, font_size=14, layer=2,
                element_id="person_name", font_family="Inter", font_weight="600", color="#1f2937",
            ),
            DesignElement.text_element(
                "{{position}}", x=5, y=33, width=40, height=6, font_size=10, layer=2,
                element_id="position", font_family="Inter", color="#6b7280",
            ),
            DesignElement.text_element(
                "{{phone}} | {{email}}\n{{website}}", x=5, y=40, width=75, height=10, font_size=8, layer=2,
                element_id="contact_info", font_family="Inter", color="#374151", line_height=1.3,
            ),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Design Team",
            description="经典商务名片模板",
            usage_count=245,
            rating=4.8,
        ),
    )
    creative = DesignTemplate(
        id="bc_creative_001",
        name="创意渐变",
        category="business-cards",
        subcategory="creative",
        product_type="business-cards",
        thumbnail="/templates/business-cards/creative-modern.jpg",
        is_premium=True,
        tags=["creative", "modern", "gradient", "colorful"],
        style="creative",
        industry=["design", "marketing", "tech", "startup"],
        attributes={"color_scheme": ["#6366f1", "#8b5cf6", "#ec4899", "#f59e0b"], "has_logo": True, "has_qr": True},
        elements=[
            DesignElement.shape_element(
                element_id="gradient_bg",
                element_type=ElementType.BACKGROUND,
                width=85,
                height=55,
                fill="linear-gradient(135deg, #6366f1, #8b5cf6)",
            ).model_copy(update={"locked": True}),
            DesignElement(
                id="deco_circle",
                type=ElementType.SHAPE,
                x=60,
                y=-10,
                width=35,
                height=35,
                opacity=0.1,
                layer=1,
                locked=True,
                data={"shape": "circle", "fill": "#ffffff"},
            ),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Design Team",
            description="带渐变的现代创意模板",
            usage_count=189,
            rating=4.9,
        ),
    )
    minimal = DesignTemplate(
        id="bc_minimal_001",
        name="极简风格",
        category="business-cards",
        subcategory="minimal",
        product_type="business-cards",
        thumbnail="/templates/business-cards/minimal-clean.jpg",
        tags=["minimal", "clean", "typography", "simple"],
        style="minimal",
        industry=["architecture", "consulting", "photography", "freelance"],
        attributes={"color_scheme": ["#000000", "#ffffff", "#f3f4f6"], "has_logo": False, "has_qr": False},
        metadata=TemplateMetadata(
            author="Poliprint Design Team",
            description="以排版为重点的极简设计",
            usage_count=156,
            rating=4.7,
        ),
    )
    return (corporate, creative, minimal)


# ===================
# 构造器
# ===================


class BusinessCardConstructor(BaseConstructor):
    """名片构造器.

    Example:
        >>> constructor = BusinessCardConstructor({"base_price": 50, "price_per_unit": 0.5})
        >>> constructor.update_corporate_field("companyName", "Poliprint")
        >>> constructor.resolve_text("{{companyName}}")
        'Poliprint'
    """

    product_type = "business-cards"
    config_class = BusinessCardConfig
    config: BusinessCardConfig

    def default_config(self, supplied: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "name": "名片",
            "category": "business-cards",
            "dimensions": {"width": 85, "height": 55, "unit": "mm", "dpi": 300},
            "print_area": {"x": 2, "y": 2, "width": 81, "height": 51},
            "bleed_area": 2,
            "materials": ["standard_cardstock"],
            "finishes": ["matte", "glossy"],
            "orientation": "landscape",
            "sides": 1,
            "min_quantity": 50,
            "max_quantity": 100000,
            "base_price": 50,
            "price_per_unit": 0.5,
            "constraints": {"min_font_size": 6, "required_dpi": 300},
        }

    def seed_templates(self) -> list[DesignTemplate]:
        return list(_seed_templates())

    # ===================
    # 校验
    # ===================

    def validate_design(self) -> DesignValidationResult:
        """校验名片设计.

        检查字号下限、文字与背景同色、必填企业字段、邮箱格式、
        印刷区域越界和二维码设置。
        """
        result = DesignValidationResult()
        config = self.config
        elements = self.get_all_elements()
        min_font = config.constraints.min_font_size

        for element in elements:
            if not isinstance(element.data, TextData):
                continue
            if element.data.font_size < min_font:
                result.add_error(f'字号 "{element.data.font_size:g}" 过小，最小为 {min_font:g}')
            if element.data.background_color and element.data.color == element.data.background_color:
                result.add_error(f"元素 {element.id} 的文字颜色与背景色相同，文字将不可见")

        fields = config.corporate_fields
        for name in REQUIRED_FIELDS:
            if not getattr(fields, name):
                result.add_error(f'必填字段 "{to_camel(name)}" 未填写')

        if fields.email and not EMAIL_PATTERN.match(fields.email):
            result.add_error("邮箱地址格式不正确")

        for element in elements:
            if element.type == ElementType.BACKGROUND:
                continue
            if not config.print_area.contains(element.bounds):
                result.add_error(f'元素 "{element.id}" 超出印刷区域')

        qr = config.qr_code
        if qr and qr.enabled:
            if not qr.data:
                result.add_error("二维码已启用但未设置内容")
            if qr.size < QR_MIN_SIZE:
                result.add_error(f"二维码尺寸过小（最小 {QR_MIN_SIZE}mm）")

        return result

    # ===================
    # 报价
    # ===================

    def calculate_price(self, quantity: int) -> PriceQuote:
        """计算名片报价.

        材料乘数按所选材料累加，双面乘 1.6；特殊工艺按张数收取附加费，不参与折扣。
        """
        config = self.config
        builder = PriceBuilder(config.base_price, config.price_per_unit, quantity, self.settings.currency)

        material_multiplier = 1 + sum(
            surcharge for material, surcharge in MATERIAL_SURCHARGES.items() if material in config.materials
        )
        builder.multiply("material", material_multiplier)
        builder.multiply("sides", DOUBLE_SIDED_MULTIPLIER if config.sides == 2 else 1.0)
        builder.discount(tier_rate(quantity, QUANTITY_DISCOUNTS))

        features = config.special_features
        for name, unit_price in FEATURE_PRICES.items():
            if getattr(features, name):
                builder.surcharge(name, quantity * unit_price)
        if features.lamination_glossy or features.lamination_matte:
            builder.surcharge("lamination", quantity * LAMINATION_PRICE)

        builder.detail("materials", ", ".join(config.materials))
        builder.detail("sides", config.sides)
        builder.detail("special_features", features.enabled())
        quote = builder.build()
        quote.breakdown["material_multiplier"] = round(material_multiplier, 4)
        quote.breakdown["sides_multiplier"] = DOUBLE_SIDED_MULTIPLIER if config.sides == 2 else 1.0
        quote.breakdown["effects_price"] = round(sum(quote.breakdown["surcharges"].values()), 2)
        return quote

    # ===================
    # 导出
    # ===================

    def resolve_text(self, text: str) -> str:
        """用企业信息字段替换占位符."""
        return substitute_placeholders(text, self.config.corporate_fields.placeholder_values())

    def build_render_job(self, format: str, dpi: Optional[float]) -> RenderJob:
        job = super().build_render_job(format, dpi)
        if self.config.special_features.rounded_corners:
            job.post_effects.append(_round_corners)
        return job

    # ===================
    # 名片专用操作
    # ===================

    def get_corporate_fields(self) -> CorporateFields:
        return self.config.corporate_fields.model_copy(deep=True)

    def update_corporate_field(self, field: str, value: Any) -> bool:
        """更新企业信息字段.

        Args:
            field: 字段名（``companyName`` 或 ``company_name``）
            value: 字段值

        Returns:
            字段是否存在
        """
        name = resolve_field(CorporateFields, field)
        if name is None:
            return False

        fields = self.config.corporate_fields.model_dump()
        fields[name] = value
        self._update_config(corporate_fields=CorporateFields.model_validate(fields))

        self._notify_dynamic_text()

        self._emit(ConstructorEvent.CORPORATE_FIELD_UPDATED, {"field": field, "value": value})
        return True

    def add_qr_code(
        self,
        data: str,
        size: float = 15,
        position: tuple[float, float] = (65, 35),
    ) -> Optional[DesignElement]:
        """添加二维码元素（固定 ID qr_code，层级 10）."""
        self._update_config(qr_code=QRCodeSettings(enabled=True, data=data, size=size, position=position))
        element = DesignElement.image_element(
            qr_code_url(data),
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
        """移除二维码."""
        qr = self.config.qr_code
        if not qr or not qr.enabled:
            return False
        self.remove_element(QR_ELEMENT_ID)
        self._update_config(qr_code=qr.model_copy(update={"enabled": False}))
        self._emit(ConstructorEvent.QR_CODE_REMOVED)
        return True

    def get_qr_code_config(self) -> Optional[QRCodeSettings]:
        return self.config.qr_code.model_copy() if self.config.qr_code else None

    def get_special_features(self) -> SpecialFeatures:
        return self.config.special_features.model_copy()

    def update_special_feature(self, feature: str, enabled: bool) -> bool:
        """开关特殊工艺."""
        name = resolve_field(SpecialFeatures, feature)
        if name is None:
            return False
        self._update_config(special_features={name: enabled})
        self._emit(ConstructorEvent.SPECIAL_FEATURE_UPDATED, {"feature": feature, "enabled": enabled})
        return True

    def apply_style(self, style: str) -> bool:
        """加载指定风格的第一个模板."""
        for template in self.get_available_templates():
            if template.style == style:
                loaded = self.load_template(template.id)
                self._emit(ConstructorEvent.STYLE_APPLIED, style)
                return loaded
        return False

    def get_templates_by_industry(self, industry: str) -> list[DesignTemplate]:
        return [t for t in self.get_available_templates() if industry in t.industry]


def _round_corners(canvas: Image.Image, scale: float) -> Image.Image:
    """裁出圆角（角外区域透明）."""
    radius = round(ROUNDED_CORNER_RADIUS * scale)
    mask = Image.new("L", canvas.size, 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, canvas.width - 1, canvas.height - 1), radius=radius, fill=255)
    alpha = canvas.getchannel("A")
    canvas.putalpha(Image.composite(alpha, mask, mask))
    return canvas
