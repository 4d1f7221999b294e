"""画布（油画布）构造器.

Features:
    - 画布类型与艺术风格预设
    - 画框、装裱与内框深度
    - 图片增强：色彩校正、滤镜、艺术效果、放大
    - 分辨率要求随画布尺寸阶梯变化
    - 房间效果预览描述与尺寸推荐
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Any, Literal, Mapping, Optional

from PIL import Image, ImageFilter
from pydantic import BaseModel, Field

from print_constructor.core.base_constructor import BaseConstructor
from print_constructor.core.events import ConstructorEvent
from print_constructor.models.design_element import DesignElement, ElementType, ImageData
from print_constructor.models.product_config import ProductConfig, Unit
from print_constructor.models.results import DesignValidationResult, PriceQuote
from print_constructor.models.template import DesignTemplate, TemplateMetadata
from print_constructor.services import effects
from print_constructor.services.exporter import RenderJob
from print_constructor.services.pricing import PriceBuilder, tier_rate
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)

CanvasType = Literal["photo-print", "art-reproduction", "digital-art", "mixed-media", "abstract", "landscape"]
FilterType = Literal["vintage", "black-white", "sepia", "cross-process", "high-contrast", "soft-focus", "sharp", "none"]
ArtisticEffect = Literal[
    "oil-painting", "watercolor", "pencil-sketch", "charcoal", "impressionist", "pop-art", "none"
]
RoomType = Literal["living-room", "bedroom", "office", "kitchen", "hallway"]


# ===================
# 常量定义
# ===================

STANDARD_SIZES: dict[str, tuple[float, float]] = {
    "small": (40, 30),
    "medium": (60, 40),
    "large": (75, 50),
    "extra-large": (100, 75),
    "custom": (60, 40),
}

QUANTITY_DISCOUNTS = [(10, 0.10), (5, 0.05), (3, 0.03)]

# 面积阶梯 (dm², 乘数)：面积严格大于阈值时取该乘数
AREA_MULTIPLIERS = [(100, 3.5), (50, 2.5), (25, 1.8), (10, 1.3)]

CANVAS_TYPE_MULTIPLIERS = {
    "art-reproduction": 1.5,
    "digital-art": 1.3,
    "mixed-media": 1.4,
    "photo-print": 1.0,
}
TEXTURE_SURCHARGES = {"fine-art": 0.3, "watercolor-paper": 0.4, "canvas-textured": 0.2}
COATING_SURCHARGES = {"gloss": 0.1, "satin": 0.05}

# 每厘米周长的画框价格
FRAME_PRICES_PER_CM = {"traditional-frame": 8, "floating-frame": 12}
MATTING_PRICE_PER_DM2 = 15

PROCESSING_PRICES = {
    "color_correction": 50,
    "filters": 30,
    "artistic": 100,
    "upscaling": 150,
}

DEEP_STRETCHER_INCHES = 1.5
DEEP_STRETCHER_MULTIPLIER = 1.2

LARGE_IMAGE_COVERAGE = 0.8
MAX_UPSCALING_DPI = 600
OIL_PAINTING_MAX_STRENGTH = 70
MIN_EXPORT_DPI = 300

CANVAS_TYPE_PRESETS: dict[str, dict[str, str]] = {
    "photo-print": {"artwork_style": "photographic", "texture": "fine-art"},
    "art-reproduction": {"artwork_style": "painterly", "texture": "canvas-textured"},
    "digital-art": {"artwork_style": "vector", "texture": "smooth"},
}

COLOR_PRESETS: dict[str, dict[str, Any]] = {
    "portrait": {
        "color_correction": {
            "enabled": True, "brightness": 5, "contrast": 10, "saturation": 15, "vibrance": 20,
            "highlights": -10, "shadows": 10, "whites": 5, "blacks": -5,
        },
    },
    "landscape": {
        "color_correction": {
            "enabled": True, "brightness": 0, "contrast": 15, "saturation": 25, "vibrance": 30,
            "highlights": -15, "shadows": 15, "whites": 0, "blacks": -10,
        },
    },
    "vintage": {
        "filters": {"enabled": True, "type": "vintage", "intensity": 60},
        "color_correction": {
            "enabled": True, "brightness": -5, "contrast": 20, "saturation": -20, "vibrance": -10,
            "highlights": -20, "shadows": 20, "whites": -10, "blacks": 10,
        },
    },
}

RECOMMENDED_SIZES: dict[str, list[tuple[str, str]]] = {
    "living-room": [
        ("80x60cm", "客厅标准尺寸"),
        ("100x75cm", "适合作为主题墙的大幅画布"),
        ("120x80cm", "室内空间的视觉中心"),
    ],
    "bedroom": [
        ("60x40cm", "适合卧室的温馨尺寸"),
        ("80x60cm", "床头上方的中等尺寸"),
    ],
    "office": [
        ("40x30cm", "办公桌旁的紧凑尺寸"),
        ("60x40cm", "办公室标准尺寸"),
    ],
}
DEFAULT_RECOMMENDED_SIZES = [("60x40cm", "通用尺寸")]


# ===================
# 配置模型
# ===================


class Matting(BaseModel):
    enabled: bool = False
    color: str = "#ffffff"
    width: float = Field(default=5, ge=0)


class FrameOptions(BaseModel):
    """画框设置."""

    type: Literal["gallery-wrap", "traditional-frame", "floating-frame", "none"] = "gallery-wrap"
    frame_color: str = "#8B4513"
    frame_width: float = Field(default=3, ge=0)
    matting: Matting = Field(default_factory=Matting)


class CanvasProperties(BaseModel):
    """画布材质属性（内框深度单位为英寸）."""

    texture: Literal["smooth", "fine-art", "canvas-textured", "watercolor-paper"] = "fine-art"
    edge_treatment: Literal["gallery-wrap", "mirror", "white", "black", "continue-image"] = "gallery-wrap"
    stretcher_depth: float = Field(default=1.5, gt=0)
    coating: Literal["matte", "satin", "gloss", "none"] = "satin"


class ColorCorrection(BaseModel):
    """色彩校正，各项取值 -100 到 100."""

    enabled: bool = False
    brightness: float = Field(default=0, ge=-100, le=100)
    contrast: float = Field(default=0, ge=-100, le=100)
    saturation: float = Field(default=0, ge=-100, le=100)
    vibrance: float = Field(default=0, ge=-100, le=100)
    highlights: float = Field(default=0, ge=-100, le=100)
    shadows: float = Field(default=0, ge=-100, le=100)
    whites: float = Field(default=0, ge=-100, le=100)
    blacks: float = Field(default=0, ge=-100, le=100)


class FilterSettings(BaseModel):
    enabled: bool = False
    type: FilterType = "none"
    intensity: float = Field(default=50, ge=0, le=100)


class ArtisticSettings(BaseModel):
    enabled: bool = False
    effect: ArtisticEffect = "none"
    strength: float = Field(default=50, ge=0, le=100)


class UpscalingSettings(BaseModel):
    enabled: bool = False
    algorithm: Literal["bicubic", "lanczos", "ai-enhance"] = "ai-enhance"
    target_dpi: int = Field(default=300, gt=0)


class ImageEnhancements(BaseModel):
    color_correction: ColorCorrection = Field(default_factory=ColorCorrection)
    filters: FilterSettings = Field(default_factory=FilterSettings)
    artistic: ArtisticSettings = Field(default_factory=ArtisticSettings)
    upscaling: UpscalingSettings = Field(default_factory=UpscalingSettings)

    def enabled(self) -> list[str]:
        return [name for name in type(self).model_fields if getattr(self, name).enabled]


class RoomVisualization(BaseModel):
    enabled: bool = False
    room_type: RoomType = "living-room"
    lighting_type: Literal["natural", "warm", "cool", "dramatic"] = "natural"


class DisplaySettings(BaseModel):
    hanging_hardware: Literal["wire", "sawtooth", "d-rings", "none"] = "wire"
    wall_mockup: bool = True
    room_visualization: RoomVisualization = Field(default_factory=RoomVisualization)


class CanvasConfig(ProductConfig):
    """画布配置."""

    category: str = "canvas"
    canvas_type: CanvasType = "photo-print"
    artwork_style: Literal[
        "photographic", "painterly", "sketchy", "watercolor", "oil-painting", "vector", "vintage"
    ] = "photographic"
    frame_options: FrameOptions = Field(default_factory=FrameOptions)
    canvas_properties: CanvasProperties = Field(default_factory=CanvasProperties)
    image_enhancements: ImageEnhancements = Field(default_factory=ImageEnhancements)
    display_settings: DisplaySettings = Field(default_factory=DisplaySettings)


def minimum_dpi(max_side_cm: float) -> int:
    """画布所需最低分辨率（尺寸越大观看距离越远，要求越低）."""
    if max_side_cm > 100:
        return 200
    if max_side_cm > 60:
        return 250
    if max_side_cm > 40:
        return 300
    return 350


def area_multiplier(area_dm2: float) -> float:
    for threshold, multiplier in AREA_MULTIPLIERS:
        if area_dm2 > threshold:
            return multiplier
    return 1.0


def required_image_dpi(width: float, height: float) -> int:
    """大幅图片元素建议的源图分辨率."""
    size = math.sqrt(width * height)
    if size > 50:
        return 350
    if size > 30:
        return 300
    if size > 20:
        return 250
    return 200


# ===================
# 图片处理
# ===================


def apply_filter(image: Image.Image, filter_type: str, intensity: float) -> Image.Image:
    """按类型和强度 (0-100) 应用图片滤镜."""
    t = intensity / 100
    if filter_type == "vintage":
        return effects.adjust_tone(effects.sepia(image, t * 0.8), brightness=1 + t * 0.1, contrast=1 + t * 0.2)
    if filter_type == "black-white":
        return effects.grayscale(image, t)
    if filter_type == "sepia":
        return effects.sepia(image, t)
    if filter_type == "high-contrast":
        return effects.adjust_tone(image, contrast=1 + t * 0.5)
    if filter_type == "soft-focus":
        return effects.gaussian_blur(image, t * 2)
    if filter_type == "sharp":
        return effects.adjust_tone(image, brightness=1 + t * 0.05, contrast=1 + t * 0.3)
    return image


def apply_artistic_effect(image: Image.Image, effect: str, strength: float) -> Image.Image:
    """模拟艺术效果（强度 0-100）."""
    s = strength / 100
    if effect == "oil-painting":
        return effects.adjust_tone(effects.gaussian_blur(image, s * 2), contrast=1 + s * 0.3)
    if effect == "watercolor":
        image = effects.ensure_rgba(image)
        return Image.blend(image, image.filter(ImageFilter.SMOOTH_MORE), 0.1 + s * 0.2)
    if effect == "pencil-sketch":
        return effects.adjust_tone(effects.grayscale(image, s), contrast=1 + s * 0.5)
    if effect == "impressionist":
        return effects.adjust_tone(effects.gaussian_blur(image, s * 1.5), saturation=1 + s * 0.5)
    return image


def apply_color_correction(image: Image.Image, correction: ColorCorrection) -> Image.Image:
    """色彩校正（亮度、对比度、饱和度按百分比偏移）."""
    return effects.adjust_tone(
        image,
        brightness=(100 + correction.brightness) / 100,
        contrast=(100 + correction.contrast) / 100,
        saturation=(100 + correction.saturation) / 100,
    )


# ===================
# 种子模板
# ===================


@lru_cache(maxsize=1)
def _seed_templates() -> tuple[DesignTemplate, ...]:
    photo = DesignTemplate(
        id="cv_photo_001",
        name="高品质照片打印",
        category="canvas",
        subcategory="photography",
        product_type="canvas",
        thumbnail="/templates/canvas/photo-print.jpg",
        tags=["photography", "high-quality", "portrait", "landscape"],
        attributes={
            "canvas_type": "photo-print",
            "artwork_style": "photographic",
            "aspect_ratio": "3:2",
            "recommended_size": "60x40cm",
            "color_profile": "rgb",
            "has_artistic_effects": False,
            "is_high_resolution": True,
        },
        elements=[
            DesignElement.image_element(
                "/placeholder-photo.jpg", x=0, y=0, width=60, height=40, layer=0,
                element_id="main_photo", alt="Main Photo",
            ),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Canvas Team",
            description="专业照片画布打印",
            usage_count=89,
            rating=4.8,
        ),
    )
    art = DesignTemplate(
        id="cv_art_001",
        name="艺术复制品",
        category="canvas",
        subcategory="fine-art",
        product_type="canvas",
        thumbnail="/templates/canvas/art-reproduction.jpg",
        is_premium=True,
        tags=["fine-art", "painting", "reproduction", "museum-quality"],
        attributes={
            "canvas_type": "art-reproduction",
            "artwork_style": "painterly",
            "aspect_ratio": "4:3",
            "recommended_size": "75x50cm",
            "color_profile": "wide-gamut",
            "has_artistic_effects": True,
            "is_high_resolution": True,
        },
        elements=[
            DesignElement.shape_element(
                element_id="art_background", element_type=ElementType.BACKGROUND,
                width=75, height=50, fill="#f8f6f0",
            ).model_copy(update={"locked": True}),
            DesignElement.image_element(
                "/placeholder-artwork.jpg", x=5, y=5, width=65, height=40, layer=1,
                element_id="artwork_main", alt="Fine Art Reproduction", contrast=1.05, saturation=1.1,
            ),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Canvas Team",
            description="博物馆级艺术作品复制",
            usage_count=45,
            rating=4.9,
        ),
    )
    abstract = DesignTemplate(
        id="cv_abstract_001",
        name="抽象艺术",
        category="canvas",
        subcategory="modern-art",
        product_type="canvas",
        thumbnail="/templates/canvas/abstract-modern.jpg",
        is_premium=True,
        tags=["abstract", "modern", "contemporary", "geometric"],
        attributes={
            "canvas_type": "abstract",
            "artwork_style": "vector",
            "aspect_ratio": "1:1",
            "recommended_size": "60x60cm",
            "color_profile": "rgb",
            "has_artistic_effects": True,
            "is_high_resolution": True,
        },
        elements=[
            DesignElement.shape_element(
                element_id="abstract_bg", element_type=ElementType.BACKGROUND,
                width=60, height=60, fill="linear-gradient(45deg, #667eea, #764ba2)",
            ),
        ],
        metadata=TemplateMetadata(
            author="Poliprint Canvas Team",
            description="适合室内装饰的现代抽象艺术",
            usage_count=67,
            rating=4.7,
        ),
    )
    return (photo, art, abstract)


# ===================
# 构造器
# ===================


class CanvasConstructor(BaseConstructor):
    """画布构造器.

    尺寸单位默认为厘米。
    """

    product_type = "canvas"
    config_class = CanvasConfig
    config: CanvasConfig

    def default_config(self, supplied: Mapping[str, Any]) -> dict[str, Any]:
        width, height = STANDARD_SIZES["medium"]
        dimensions = {**{"width": width, "height": height, "unit": "cm", "dpi": 300}, **supplied.get("dimensions", {})}
        return {
            "name": "画布",
            "category": "canvas",
            "dimensions": dimensions,
            "print_area": {"x": 0, "y": 0, "width": dimensions["width"], "height": dimensions["height"]},
            "bleed_area": 1,
            "materials": ["cotton_canvas"],
            "finishes": ["satin"],
            "orientation": "landscape" if dimensions["width"] >= dimensions["height"] else "portrait",
            "sides": 1,
            "min_quantity": 1,
            "max_quantity": 100,
            "base_price": 200,
            "price_per_unit": 350,
            "constraints": {"min_font_size": 12, "required_dpi": 300},
        }

    def seed_templates(self) -> list[DesignTemplate]:
        return list(_seed_templates())

    def _size_cm(self) -> tuple[float, float]:
        return self.config.dimensions.size_in(Unit.CM)

    def get_minimum_dpi(self) -> int:
        return minimum_dpi(max(self._size_cm()))

    # ===================
    # 校验
    # ===================

    def validate_design(self) -> DesignValidationResult:
        """校验画布设计.

        检查分辨率与尺寸匹配、大幅图片源分辨率、艺术效果强度、
        包边画布的边缘元素和放大分辨率上限。
        """
        result = DesignValidationResult()
        config = self.config
        dimensions = config.dimensions
        elements = self.get_all_elements()
        canvas_area = dimensions.width * dimensions.height

        for element in elements:
            if not isinstance(element.data, ImageData):
                continue
            if element.area > canvas_area * LARGE_IMAGE_COVERAGE:
                factor = self._size_cm()[0] / dimensions.width
                required = required_image_dpi(element.width * factor, element.height * factor)
                if required > 300:
                    result.add_warning(
                        f'图片 "{element.id}" 打印时可能出现像素化，建议源图分辨率不低于 {required} DPI'
                    )

        min_dpi = self.get_minimum_dpi()
        if dimensions.dpi < min_dpi:
            width_cm, height_cm = self._size_cm()
            result.add_error(f"{width_cm:g}x{height_cm:g}cm 的画布需要不低于 {min_dpi} DPI 的分辨率")

        enhancements = config.image_enhancements
        artistic = enhancements.artistic
        if (
            artistic.enabled
            and config.canvas_type == "photo-print"
            and artistic.effect == "oil-painting"
            and artistic.strength > OIL_PAINTING_MAX_STRENGTH
        ):
            result.add_error("油画效果强度过高，可能使照片失真")

        if config.canvas_properties.edge_treatment == "gallery-wrap":
            for element in elements:
                if element.type == ElementType.BACKGROUND:
                    continue
                left, top, right, bottom = element.bounds
                if left <= 0 or top <= 0 or right >= dimensions.width or bottom >= dimensions.height:
                    result.add_error(
                        f'元素 "{element.id}" 触及画布边缘，包边时这部分会被折到侧面'
                    )

        if enhancements.upscaling.enabled and enhancements.upscaling.target_dpi > MAX_UPSCALING_DPI:
            result.add_error(f"放大分辨率超过 {MAX_UPSCALING_DPI} DPI 可能产生伪影")

        return result

    # ===================
    # 报价
    # ===================

    def calculate_price(self, quantity: int) -> PriceQuote:
        """计算画布报价.

        面积阶梯、画布类型、材质涂层和内框深度为乘数；画框、装裱和图片处理按件附加。
        """
        config = self.config
        builder = PriceBuilder(config.base_price, config.price_per_unit, quantity, self.settings.currency)
        width_cm, height_cm = self._size_cm()
        area_dm2 = width_cm * height_cm / 100

        properties = config.canvas_properties
        size_multiplier = area_multiplier(area_dm2)
        type_multiplier = CANVAS_TYPE_MULTIPLIERS.get(config.canvas_type, 1.0)
        material_multiplier = (
            1
            + TEXTURE_SURCHARGES.get(properties.texture, 0)
            + COATING_SURCHARGES.get(properties.coating, 0)
        )
        depth_multiplier = DEEP_STRETCHER_MULTIPLIER if properties.stretcher_depth > DEEP_STRETCHER_INCHES else 1.0

        builder.multiply("size", size_multiplier)
        builder.multiply("canvas_type", type_multiplier)
        builder.multiply("material", material_multiplier)
        builder.multiply("depth", depth_multiplier)
        builder.discount(tier_rate(quantity, QUANTITY_DISCOUNTS))

        frame = config.frame_options
        frame_price = 0.0
        if frame.type in FRAME_PRICES_PER_CM:
            perimeter = 2 * (width_cm + height_cm)
            frame_price = quantity * perimeter * FRAME_PRICES_PER_CM[frame.type]
            if frame.matting.enabled:
                frame_price += quantity * area_dm2 * MATTING_PRICE_PER_DM2
        builder.surcharge("frame", frame_price)

        enhancements = config.image_enhancements
        processing_price = 0.0
        if enhancements.color_correction.enabled:
            processing_price += quantity * PROCESSING_PRICES["color_correction"]
        if enhancements.filters.enabled and enhancements.filters.type != "none":
            processing_price += quantity * PROCESSING_PRICES["filters"]
        if enhancements.artistic.enabled and enhancements.artistic.effect != "none":
            processing_price += quantity * PROCESSING_PRICES["artistic"]
        if enhancements.upscaling.enabled:
            processing_price += quantity * PROCESSING_PRICES["upscaling"]
        builder.surcharge("processing", processing_price)

        builder.detail("size", f"{width_cm:g}x{height_cm:g}cm")
        builder.detail("area", f"{area_dm2:.1f}dm²")
        builder.detail("canvas_type", config.canvas_type)
        builder.detail("texture", properties.texture)
        builder.detail("frame_type", frame.type)
        builder.detail("depth_cm", round(properties.stretcher_depth * 2.54, 2))
        builder.detail("enhancements", enhancements.enabled())
        return builder.build(
            {
                "size_multiplier": size_multiplier,
                "canvas_type_multiplier": type_multiplier,
                "material_multiplier": round(material_multiplier, 4),
                "depth_multiplier": depth_multiplier,
                "frame_price": round(frame_price, 2),
                "processing_price": round(processing_price, 2),
            }
        )

    # ===================
    # 导出
    # ===================

    def _enhance_image(self, image: Image.Image, element: DesignElement) -> Image.Image:
        enhancements = self.config.image_enhancements
        if enhancements.filters.enabled and enhancements.filters.type != "none":
            image = apply_filter(image, enhancements.filters.type, enhancements.filters.intensity)
        if enhancements.artistic.enabled and enhancements.artistic.effect != "none":
            image = apply_artistic_effect(image, enhancements.artistic.effect, enhancements.artistic.strength)
        return image

    def build_render_job(self, format: str, dpi: Optional[float]) -> RenderJob:
        """画布导出分辨率不低于 300 DPI，图片应用滤镜与艺术效果，整幅做色彩校正."""
        if dpi is None:
            dpi = max(self.config.dimensions.dpi, MIN_EXPORT_DPI)
        job = super().build_render_job(format, dpi)
        job.adjust_image = self._enhance_image

        correction = self.config.image_enhancements.color_correction.model_copy()
        if correction.enabled:
            job.post_effects.append(lambda canvas, scale: apply_color_correction(canvas, correction))
        return job

    # ===================
    # 画布专用操作
    # ===================

    def update_canvas_type(self, canvas_type: str) -> None:
        """切换画布类型并套用风格和材质预设."""
        changes: dict[str, Any] = {"canvas_type": canvas_type}
        preset = CANVAS_TYPE_PRESETS.get(canvas_type)
        if preset:
            changes["artwork_style"] = preset["artwork_style"]
            changes["canvas_properties"] = {"texture": preset["texture"]}
        self._update_config(**changes)
        self._emit(ConstructorEvent.CANVAS_TYPE_CHANGED, canvas_type)

    def update_frame_options(self, options: Mapping[str, Any]) -> FrameOptions:
        self._update_config(frame_options=options)
        frame = self.get_frame_options()
        self._emit(ConstructorEvent.FRAME_OPTIONS_UPDATED, frame)
        return frame

    def update_canvas_properties(self, properties: Mapping[str, Any]) -> CanvasProperties:
        self._update_config(canvas_properties=properties)
        result = self.get_canvas_properties()
        self._emit(ConstructorEvent.CANVAS_PROPERTIES_UPDATED, result)
        return result

    def update_image_enhancements(self, enhancements: Mapping[str, Mapping[str, Any]]) -> ImageEnhancements:
        """更新图片增强设置（每个分组内按字段合并）."""
        self._merge_section("image_enhancements", enhancements)
        result = self.get_image_enhancements()
        self._emit(ConstructorEvent.IMAGE_ENHANCEMENTS_UPDATED, result)
        return result

    def update_color_correction(self, corrections: Mapping[str, Any]) -> ColorCorrection:
        self.update_image_enhancements({"color_correction": corrections})
        correction = self.config.image_enhancements.color_correction.model_copy()
        self._emit(ConstructorEvent.COLOR_CORRECTION_UPDATED, correction)
        return correction

    def apply_preset(self, preset: str) -> bool:
        """应用色彩预设（portrait / landscape / vintage）.

        Returns:
            预设是否存在
        """
        values = COLOR_PRESETS.get(preset)
        if values is None:
            logger.warning(f"未知的画布预设: {preset}")
            return False
        self.update_image_enhancements(values)
        self._emit(ConstructorEvent.PRESET_APPLIED, preset)
        return True

    def generate_room_visualization(self, room_type: str) -> dict[str, Any]:
        """启用房间效果预览并返回预览描述."""
        visualization = RoomVisualization(enabled=True, room_type=room_type, lighting_type="natural")
        self._update_config(display_settings={"room_visualization": visualization})
        width_cm, height_cm = self._size_cm()
        description = {
            "room_type": room_type,
            "lighting_type": visualization.lighting_type,
            "canvas_size": f"{width_cm:g}x{height_cm:g}cm",
            "frame_type": self.config.frame_options.type,
            "hanging_hardware": self.config.display_settings.hanging_hardware,
            "recommended_sizes": self.get_recommended_sizes(room_type),
        }
        self._emit(ConstructorEvent.ROOM_VISUALIZATION_GENERATED, room_type)
        return description

    @staticmethod
    def get_recommended_sizes(room_type: str) -> list[dict[str, str]]:
        sizes = RECOMMENDED_SIZES.get(room_type, DEFAULT_RECOMMENDED_SIZES)
        return [{"size": size, "description": description} for size, description in sizes]

    def get_canvas_properties(self) -> CanvasProperties:
        return self.config.canvas_properties.model_copy()

    def get_frame_options(self) -> FrameOptions:
        return self.config.frame_options.model_copy(deep=True)

    def get_image_enhancements(self) -> ImageEnhancements:
        return self.config.image_enhancements.model_copy(deep=True)

    def get_display_settings(self) -> DisplaySettings:
        return self.config.display_settings.model_copy(deep=True)
